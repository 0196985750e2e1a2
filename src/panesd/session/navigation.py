"""Navigate and evaluate commands issued over the current connection."""

from __future__ import annotations

import json
import logging
from typing import Any

from panesd.devtools.connection import ConnectionLost
from panesd.domain.models import NavigationResult, NavigationStatus
from panesd.session.state import SessionState

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT_SRC = "/javascripts/growingpanes.js"


def instrumentation_script(src: str = DEFAULT_SCRIPT_SRC) -> str:
    """JavaScript that appends a <script src=...> tag to the page body."""
    return (
        "var script = document.createElement('script');\n"
        f"script.setAttribute('src', {json.dumps(src)});\n"
        "document.body.appendChild(script);"
    )


class NavigationController:
    """Sends Page.navigate / Runtime.evaluate through whatever connection
    the session currently holds.

    Neither call blocks waiting for a connection: with none published the
    result is UNAVAILABLE and the caller decides what to do.
    """

    def __init__(self, state: SessionState) -> None:
        self._state = state

    async def navigate(self, url: str) -> NavigationResult:
        result = await self._send("Page.navigate", {"url": url}, url=url)
        if result.sent:
            logger.info("Navigating to %s (id=%d)", url, result.command_id)
        else:
            logger.warning("Navigation to %s unavailable: not connected", url)
        return result

    async def evaluate(self, script: str) -> NavigationResult:
        result = await self._send("Runtime.evaluate", {"expression": script})
        if not result.sent:
            logger.warning("Script evaluation unavailable: not connected")
        return result

    async def _send(
        self, method: str, params: dict[str, Any], url: str | None = None
    ) -> NavigationResult:
        conn = await self._state.connection()
        if conn is None:
            return NavigationResult(status=NavigationStatus.UNAVAILABLE, url=url)
        try:
            command_id = await conn.send(method, params)
        except ConnectionLost as e:
            logger.debug("%s failed: %s", method, e)
            return NavigationResult(status=NavigationStatus.UNAVAILABLE, url=url)
        return NavigationResult(status=NavigationStatus.SENT, url=url, command_id=command_id)
