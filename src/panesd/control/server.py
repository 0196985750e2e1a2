"""FastAPI HTTP control surface for the video wall.

Lets an operator check the session, switch interactive mode, and send the
wall somewhere by hand.

    GET  /health              -> {"status": "ok", "connected": true}
    GET  /status              -> session status
    POST /interactive         <- {"enabled": true}
    POST /navigate            <- {"url": "http://..."}
    GET  /navigate/{url:path} -> same as POST /navigate
    POST /advance             -> skip to the next presentation
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from panesd.domain.models import NavigationResult, SessionStatus
from panesd.service import VideoWallService
from panesd.session.advancer import MANUAL

logger = logging.getLogger(__name__)


class InteractiveRequest(BaseModel):
    enabled: bool = Field(description="True suspends automatic advancement")


class NavigateRequest(BaseModel):
    url: str = Field(min_length=1, description="URL to show on the wall")


class HealthResponse(BaseModel):
    status: str = "ok"
    connected: bool = False


class NavigateResponse(BaseModel):
    status: str = "ok"
    url: str
    id: int | None = None


def create_app(
    service: VideoWallService | None = None,
    manage_service: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: The session manager to expose. Built from default
                 settings if None.
        manage_service: Start and stop the service with the app lifespan.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        svc: VideoWallService = app.state.service
        if manage_service:
            await svc.start()
        logger.info("Control surface started")
        yield
        if manage_service:
            await svc.stop()
        logger.info("Control surface stopped")

    app = FastAPI(
        title="panesd",
        description="Control surface for the video wall session manager",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.service = service or VideoWallService()

    def _navigate_response(url: str, result: NavigationResult) -> NavigateResponse:
        if not result.sent:
            raise HTTPException(status_code=503, detail="disconnected")
        return NavigateResponse(url=url, id=result.command_id)

    @app.get("/health")
    async def health_check() -> HealthResponse:
        status = await app.state.service.state.snapshot()
        return HealthResponse(status="ok", connected=status.connected)

    @app.get("/status")
    async def get_status() -> SessionStatus:
        return await app.state.service.state.snapshot()

    @app.post("/interactive")
    async def set_interactive(request: InteractiveRequest) -> SessionStatus:
        svc: VideoWallService = app.state.service
        await svc.state.set_interactive(request.enabled)
        return await svc.state.snapshot()

    @app.post("/navigate")
    async def navigate(request: NavigateRequest) -> NavigateResponse:
        svc: VideoWallService = app.state.service
        result = await svc.navigation.navigate(request.url)
        return _navigate_response(request.url, result)

    @app.get("/navigate/{url:path}")
    async def navigate_by_path(url: str) -> NavigateResponse:
        svc: VideoWallService = app.state.service
        result = await svc.navigation.navigate(url)
        return _navigate_response(url, result)

    @app.post("/advance")
    async def advance() -> NavigateResponse:
        svc: VideoWallService = app.state.service
        result = await svc.advancer.advance(MANUAL)
        if result is None:
            raise HTTPException(status_code=409, detail="interactive mode is on")
        return _navigate_response(svc.advancer.next_url, result)

    return app

