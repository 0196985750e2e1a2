"""Tests for PresentationAdvancer."""

from __future__ import annotations

import asyncio

import pytest

from panesd.devtools.connection import ControlConnection
from panesd.domain.models import NavigationStatus, PresentationPhase, WatchdogExpired
from panesd.session.advancer import DONE, MANUAL

NEXT_URL = "http://wall.test/presentations/next"


async def _attach(session, sample_tab, make_socket, make_connector):
    ws = make_socket()
    conn = await ControlConnection.connect(sample_tab, connector=make_connector(ws))
    await session.state.set_connection(conn)
    return ws


def _navigations(ws) -> list[str]:
    return [frame["params"]["url"] for frame in ws.sent if frame["method"] == "Page.navigate"]


class TestAdvance:
    @pytest.mark.asyncio
    async def test_advance_navigates_to_next_url(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        ws = await _attach(session, sample_tab, make_socket, make_connector)
        session.advancer.page_loaded()

        result = await session.advancer.advance(DONE)

        assert result is not None and result.sent
        assert _navigations(ws) == [NEXT_URL]
        assert session.advancer.phase == PresentationPhase.LOADING
        assert session.advancer.advance_count == 1

    @pytest.mark.asyncio
    async def test_interactive_suppresses(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        ws = await _attach(session, sample_tab, make_socket, make_connector)
        await session.state.set_interactive(True)

        assert await session.advancer.advance(DONE) is None
        assert await session.advancer.advance("slide_timeout") is None
        assert await session.advancer.advance(MANUAL) is None
        assert _navigations(ws) == []

    @pytest.mark.asyncio
    async def test_suppression_rearms_fired_watchdog(self, session, clock) -> None:
        await session.state.set_interactive(True)
        session.advancer.page_loaded()
        clock.advance(30.0)
        assert session.slide.check() is True
        assert not session.slide.armed

        await session.advancer.advance("slide_timeout")
        assert session.slide.armed
        assert session.slide.deadline == clock() + 30.0

    @pytest.mark.asyncio
    async def test_done_while_loading_is_ignored(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        ws = await _attach(session, sample_tab, make_socket, make_connector)
        session.advancer.page_loaded()

        await session.advancer.advance(DONE)
        assert await session.advancer.advance(DONE) is None
        assert _navigations(ws) == [NEXT_URL]

    @pytest.mark.asyncio
    async def test_watchdog_while_loading_retries(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        ws = await _attach(session, sample_tab, make_socket, make_connector)
        await session.advancer.advance(DONE)
        await session.advancer.advance("presentation_timeout")
        assert _navigations(ws) == [NEXT_URL, NEXT_URL]

    @pytest.mark.asyncio
    async def test_concurrent_triggers_navigate_once(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        ws = await _attach(session, sample_tab, make_socket, make_connector)
        session.advancer.page_loaded()
        await asyncio.gather(
            session.advancer.advance(DONE),
            session.advancer.advance(DONE),
        )
        assert _navigations(ws) == [NEXT_URL]

    @pytest.mark.asyncio
    async def test_unavailable_keeps_watchdogs_armed(self, session) -> None:
        session.advancer.page_loaded()
        result = await session.advancer.advance(DONE)

        assert result is not None
        assert result.status == NavigationStatus.UNAVAILABLE
        assert session.advancer.phase == PresentationPhase.ACTIVE
        assert session.slide.armed and session.presentation.armed

    @pytest.mark.asyncio
    async def test_page_loaded_arms_all(self, session) -> None:
        session.advancer.page_loaded()
        assert session.slide.armed
        assert session.presentation.armed
        assert session.advancer.phase == PresentationPhase.ACTIVE


class TestRun:
    @pytest.mark.asyncio
    async def test_expiry_advances(
        self, session, clock, sample_tab, make_socket, make_connector
    ) -> None:
        ws = await _attach(session, sample_tab, make_socket, make_connector)
        session.advancer.page_loaded()
        clock.advance(30.0)
        assert session.slide.check() is True

        task = asyncio.create_task(session.advancer.run())
        try:
            for _ in range(100):
                if _navigations(ws):
                    break
                await asyncio.sleep(0.01)
        finally:
            task.cancel()
        assert _navigations(ws) == [NEXT_URL]

    @pytest.mark.asyncio
    async def test_stale_expiry_dropped(
        self, session, clock, sample_tab, make_socket, make_connector
    ) -> None:
        ws = await _attach(session, sample_tab, make_socket, make_connector)
        session.advancer.page_loaded()
        session.expirations.put_nowait(
            WatchdogExpired(name="slide", deadline=clock() - 1, fired_at=clock())
        )

        task = asyncio.create_task(session.advancer.run())
        await asyncio.sleep(0.05)
        task.cancel()
        assert session.expirations.empty()
        assert _navigations(ws) == []
