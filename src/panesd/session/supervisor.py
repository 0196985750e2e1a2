"""Connection supervision: discover, connect, read, and start over."""

from __future__ import annotations

import asyncio
import logging

from panesd.devtools.connection import (
    ConnectionFailed,
    ConnectionLost,
    Connector,
    ControlConnection,
)
from panesd.devtools.discovery import TabDiscovery
from panesd.session.advancer import PresentationAdvancer
from panesd.session.dispatcher import MessageDispatcher
from panesd.session.state import SessionState

logger = logging.getLogger(__name__)


class ConnectionSupervisor:
    """Keeps exactly one live control connection and is its only reader.

    Reconnection blocks only this task. While it runs, the session holds no
    connection, so control surface requests see "disconnected" instead of
    waiting.
    """

    def __init__(
        self,
        discovery: TabDiscovery,
        state: SessionState,
        dispatcher: MessageDispatcher,
        advancer: PresentationAdvancer,
        connector: Connector | None = None,
        open_timeout: float = 10.0,
        retry_delay: float = 0.1,
    ) -> None:
        self._discovery = discovery
        self._state = state
        self._dispatcher = dispatcher
        self._advancer = advancer
        self._connector = connector
        self._open_timeout = open_timeout
        self._retry_delay = retry_delay
        self._running = False
        self._connection: ControlConnection | None = None
        self._connect_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def connect_count(self) -> int:
        return self._connect_count

    async def connect(self) -> ControlConnection:
        """Discover a target and connect to it, retrying until it works."""
        while True:
            tab = await self._discovery.wait_for_tab()
            try:
                return await ControlConnection.connect(
                    tab, connector=self._connector, open_timeout=self._open_timeout
                )
            except ConnectionFailed as e:
                logger.warning("%s; rediscovering", e)
                await asyncio.sleep(self._retry_delay)

    async def run(self) -> None:
        """Supervise the connection until stopped or cancelled."""
        self._running = True
        logger.info("Connection supervisor starting")
        try:
            while self._running:
                conn = await self.connect()
                self._connection = conn
                self._connect_count += 1
                await self._state.set_connection(conn)
                # A page that loaded before we attached never sends
                # domContentEventFired, so start its watchdogs now.
                self._advancer.page_loaded()
                try:
                    await self._read_loop(conn)
                finally:
                    await self._state.clear_connection(conn)
                    await conn.close()
                    self._connection = None
                if self._running:
                    await asyncio.sleep(self._retry_delay)
        finally:
            self._running = False
            logger.info("Connection supervisor stopped")

    async def stop(self) -> None:
        """Signal the supervisor to stop and close the live connection."""
        self._running = False
        if self._connection is not None:
            await self._connection.close()
        logger.info("Connection supervisor stop requested")

    async def _read_loop(self, conn: ControlConnection) -> None:
        while self._running:
            try:
                raw = await conn.receive()
            except ConnectionLost as e:
                if self._running:
                    logger.warning("Connection lost (%s); reconnecting", e)
                return
            try:
                await self._dispatcher.dispatch(raw)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Error dispatching frame: %s", e, exc_info=True)
