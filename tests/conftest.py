"""Shared test fixtures for the panesd test suite.

Provides common fixtures used across unit tests: sample tab descriptors,
an in-memory websocket, a scripted connector, a controllable clock, and a
fully wired session built on top of them.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Callable

import pytest
import pytest_asyncio
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

from panesd.config.settings import PresentationConfig, Settings
from panesd.domain.models import TabDescriptor, WatchdogExpired
from panesd.session.advancer import PresentationAdvancer
from panesd.session.dispatcher import MessageDispatcher
from panesd.session.navigation import NavigationController
from panesd.session.state import SessionState
from panesd.session.watchdog import WatchdogTimer

NEXT_URL = "http://wall.test/presentations/next"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeWebSocket:
    """In-memory stand-in for a websockets ClientConnection."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.incoming: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False
        self.fail_send = False

    def push(self, frame: Any) -> None:
        """Queue a frame (dict -> JSON text) or an exception for recv()."""
        if isinstance(frame, dict):
            frame = json.dumps(frame)
        self.incoming.put_nowait(frame)

    def drop(self) -> None:
        self.push(ConnectionClosedError(None, None))

    async def send(self, frame: str) -> None:
        if self.fail_send:
            raise ConnectionClosedError(None, None)
        self.sent.append(json.loads(frame))

    async def recv(self) -> Any:
        item = await self.incoming.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.incoming.put_nowait(ConnectionClosedOK(None, None))

    def methods(self) -> list[str]:
        return [frame["method"] for frame in self.sent]


class FakeConnector:
    """Hands out queued sockets (or raises queued errors) per connect call."""

    def __init__(self, *results: Any) -> None:
        self.results = list(results)
        self.urls: list[str] = []

    async def __call__(self, url: str, **kwargs: Any) -> Any:
        self.urls.append(url)
        if not self.results:
            raise OSError("connection refused")
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Session:
    """A wired-up session with fake time, for dispatcher/advancer tests."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.state = SessionState()
        self.navigation = NavigationController(self.state)
        self.expirations: asyncio.Queue[WatchdogExpired] = asyncio.Queue()
        self.slide = WatchdogTimer("slide", 30.0, self.expirations, clock=clock)
        self.presentation = WatchdogTimer("presentation", 300.0, self.expirations, clock=clock)
        self.advancer = PresentationAdvancer(
            self.state,
            self.navigation,
            next_url=NEXT_URL,
            watchdogs=[self.slide, self.presentation],
            expirations=self.expirations,
        )
        self.dispatcher = MessageDispatcher(
            self.state, self.navigation, self.advancer, self.slide
        )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_tab() -> TabDescriptor:
    """A debuggable page target."""
    return TabDescriptor(
        id="ABC123",
        title="Video Wall",
        url="http://localhost:3000/presentations/7/display",
        webSocketDebuggerUrl="ws://127.0.0.1:2345/devtools/page/ABC123",
    )


@pytest.fixture
def sample_tab_json() -> dict[str, Any]:
    """A discovery entry as the browser serves it."""
    return {
        "description": "",
        "devtoolsFrontendUrl": "/devtools/inspector.html?ws=127.0.0.1:2345/devtools/page/ABC123",
        "id": "ABC123",
        "title": "Video Wall",
        "type": "page",
        "url": "http://localhost:3000/presentations/7/display",
        "webSocketDebuggerUrl": "ws://127.0.0.1:2345/devtools/page/ABC123",
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        presentation=PresentationConfig(
            next_url=NEXT_URL,
            slide_timeout=30,
            presentation_timeout=300,
        )
    )


@pytest.fixture
def make_socket() -> Callable[[], FakeWebSocket]:
    return FakeWebSocket


@pytest.fixture
def make_connector() -> Callable[..., FakeConnector]:
    return FakeConnector


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def session(clock: FakeClock) -> AsyncIterator[Session]:
    """A session whose watchdogs run on the fake clock.

    Stops the watchdogs on teardown so no checker task outlives the loop.
    """
    s = Session(clock)
    yield s
    s.advancer.stop_watchdogs()
