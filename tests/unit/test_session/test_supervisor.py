"""Tests for ConnectionSupervisor."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import pytest

from panesd.domain.models import NavigationStatus, TabDescriptor
from panesd.session.supervisor import ConnectionSupervisor


class FakeDiscovery:
    """Returns the sample tab; later calls can be held behind a gate."""

    def __init__(self, tab: TabDescriptor) -> None:
        self.tab = tab
        self.calls = 0
        self.gate = asyncio.Event()
        self.gate.set()

    async def wait_for_tab(self) -> TabDescriptor:
        self.calls += 1
        await self.gate.wait()
        return self.tab


class ExplodingDispatcher:
    """Raises on the first frame, then delegates."""

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.seen: list[Any] = []

    async def dispatch(self, raw: Any) -> Any:
        self.seen.append(raw)
        if len(self.seen) == 1:
            raise RuntimeError("boom")
        return await self.inner.dispatch(raw)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def poll() -> None:
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


def make_supervisor(session, discovery, connector, dispatcher=None) -> ConnectionSupervisor:
    return ConnectionSupervisor(
        discovery,
        session.state,
        dispatcher or session.dispatcher,
        session.advancer,
        connector=connector,
        retry_delay=0.01,
    )


class TestSupervisor:
    @pytest.mark.asyncio
    async def test_connects_and_publishes(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        ws = make_socket()
        supervisor = make_supervisor(session, FakeDiscovery(sample_tab), make_connector(ws))
        task = asyncio.create_task(supervisor.run())
        try:
            await wait_until(lambda: supervisor.connect_count == 1)
            assert supervisor.is_running
            assert (await session.state.snapshot()).connected
            assert ws.methods() == ["Page.enable", "Runtime.enable", "Console.enable"]
            assert session.slide.armed and session.presentation.armed
        finally:
            await supervisor.stop()
            await asyncio.wait_for(task, 2.0)
        assert not supervisor.is_running
        assert ws.closed
        assert await session.state.connection() is None

    @pytest.mark.asyncio
    async def test_reconnects_after_drop(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        first, second = make_socket(), make_socket()
        discovery = FakeDiscovery(sample_tab)
        supervisor = make_supervisor(session, discovery, make_connector(first, second))
        task = asyncio.create_task(supervisor.run())
        try:
            await wait_until(lambda: supervisor.connect_count == 1)
            discovery.gate.clear()
            first.drop()
            await wait_until(lambda: discovery.calls == 2)

            # Reconnecting: control requests see "disconnected" without blocking.
            result = await asyncio.wait_for(session.navigation.navigate("http://wall.test/"), 0.5)
            assert result.status == NavigationStatus.UNAVAILABLE
            assert not (await session.state.snapshot()).connected

            discovery.gate.set()
            await wait_until(lambda: supervisor.connect_count == 2)
            result = await session.navigation.navigate("http://wall.test/")
            assert result.sent
            assert second.sent[-1]["params"] == {"url": "http://wall.test/"}
        finally:
            await supervisor.stop()
            await asyncio.wait_for(task, 2.0)

    @pytest.mark.asyncio
    async def test_connect_failure_retries(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        ws = make_socket()
        discovery = FakeDiscovery(sample_tab)
        connector = make_connector(OSError("refused"), ws)
        supervisor = make_supervisor(session, discovery, connector)
        task = asyncio.create_task(supervisor.run())
        try:
            await wait_until(lambda: supervisor.connect_count == 1)
            assert len(connector.urls) == 2
            assert discovery.calls == 2
        finally:
            await supervisor.stop()
            await asyncio.wait_for(task, 2.0)

    @pytest.mark.asyncio
    async def test_dispatch_error_does_not_stop_reading(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        ws = make_socket()
        dispatcher = ExplodingDispatcher(session.dispatcher)
        supervisor = make_supervisor(
            session, FakeDiscovery(sample_tab), make_connector(ws), dispatcher
        )
        task = asyncio.create_task(supervisor.run())
        try:
            await wait_until(lambda: supervisor.connect_count == 1)
            ws.push({"method": "Page.frameNavigated", "params": {"frame": {"url": "x"}}})
            ws.push(
                {
                    "method": "Page.frameNavigated",
                    "params": {"frame": {"url": "http://h/presentations/5/display"}},
                }
            )
            await wait_until(lambda: len(dispatcher.seen) == 2)
            await asyncio.sleep(0.05)
            assert await session.state.presentation_id() == "5"
            assert supervisor.connect_count == 1
        finally:
            await supervisor.stop()
            await asyncio.wait_for(task, 2.0)

    @pytest.mark.asyncio
    async def test_cancel_cleans_up(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        ws = make_socket()
        supervisor = make_supervisor(session, FakeDiscovery(sample_tab), make_connector(ws))
        task = asyncio.create_task(supervisor.run())
        await wait_until(lambda: supervisor.connect_count == 1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert ws.closed
        assert not supervisor.is_running
        assert await session.state.connection() is None

    @pytest.mark.asyncio
    async def test_reconnect_after_drop_waits_retry_delay(
        self, session, sample_tab, make_socket, make_connector
    ) -> None:
        sockets = [make_socket() for _ in range(4)]
        for ws in sockets:
            ws.drop()
        connector = make_connector(*sockets, make_socket())
        loop = asyncio.get_running_loop()
        connected_at: list[float] = []

        async def timed_connector(url, **kwargs):
            connected_at.append(loop.time())
            return await connector(url, **kwargs)

        supervisor = ConnectionSupervisor(
            FakeDiscovery(sample_tab),
            session.state,
            session.dispatcher,
            session.advancer,
            connector=timed_connector,
            retry_delay=0.05,
        )
        task = asyncio.create_task(supervisor.run())
        try:
            await wait_until(lambda: supervisor.connect_count == 5)
        finally:
            await supervisor.stop()
            await asyncio.wait_for(task, 2.0)

        gaps = [b - a for a, b in zip(connected_at, connected_at[1:])]
        assert len(gaps) == 4
        assert all(gap >= 0.045 for gap in gaps)
