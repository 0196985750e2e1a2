"""Duplex control connection to a single debuggable target.

Commands are fire-and-forget: ``send`` writes one frame and returns the
correlation id it used; replies come back through ``receive`` like any
other frame and are only logged by the dispatcher.

A ControlConnection is single use. Once it drops to DISCONNECTED it is
never reopened; the supervisor builds a new one.
"""

from __future__ import annotations

import itertools
import json
import logging
from typing import Any, Awaitable, Callable

from websockets.asyncio.client import connect as websocket_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from panesd.domain.models import ConnectionState, TabDescriptor

logger = logging.getLogger(__name__)

# The debugging endpoint rejects ids outside the signed 32-bit range.
MAX_COMMAND_ID = 2**31 - 1

# Page: navigation events. Runtime: script evaluation. Console: console messages.
ENABLE_COMMANDS = ("Page.enable", "Runtime.enable", "Console.enable")

Connector = Callable[..., Awaitable[Any]]


class ConnectionFailed(ConnectionError):
    """Raised when the duplex channel cannot be opened."""


class ConnectionLost(ConnectionError):
    """Raised when a read or write on an open channel fails."""


class ControlConnection:
    """Owns the websocket to one target and the id sequence used on it."""

    def __init__(
        self,
        descriptor: TabDescriptor,
        connector: Connector | None = None,
        open_timeout: float = 10.0,
    ) -> None:
        self._descriptor = descriptor
        self._connector = connector or websocket_connect
        self._open_timeout = open_timeout
        self._ws: Any = None
        self._state = ConnectionState.DISCONNECTED
        self._used = False
        self._ids = itertools.count(1)

    @classmethod
    async def connect(
        cls,
        descriptor: TabDescriptor,
        connector: Connector | None = None,
        open_timeout: float = 10.0,
    ) -> ControlConnection:
        """Open a channel to ``descriptor`` and enable the event domains.

        Raises:
            ConnectionFailed: If the channel cannot be opened.
        """
        conn = cls(descriptor, connector=connector, open_timeout=open_timeout)
        await conn.open()
        await conn.enable_domains()
        return conn

    @property
    def descriptor(self) -> TabDescriptor:
        return self._descriptor

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    def next_id(self) -> int:
        command_id = next(self._ids)
        if command_id > MAX_COMMAND_ID:
            self._ids = itertools.count(2)
            command_id = 1
        return command_id

    async def open(self) -> None:
        if self._used:
            raise RuntimeError("ControlConnection is single use; create a new one")
        self._used = True
        self._state = ConnectionState.CONNECTING
        url = self._descriptor.web_socket_debugger_url
        logger.info("Connecting to %s", url)
        try:
            self._ws = await self._connector(
                url, max_size=None, open_timeout=self._open_timeout
            )
        except (OSError, TimeoutError, WebSocketException) as e:
            self._state = ConnectionState.DISCONNECTED
            raise ConnectionFailed(f"Failed to open {url}: {e}") from e
        self._state = ConnectionState.CONNECTED
        logger.info("Connected to target %s", self._descriptor.id)

    async def enable_domains(self) -> None:
        """Send the enable commands in order. Failures are logged, not raised."""
        for method in ENABLE_COMMANDS:
            try:
                await self.send(method)
            except ConnectionLost as e:
                logger.warning("Could not send %s: %s", method, e)

    async def send(self, method: str, params: dict[str, Any] | None = None) -> int:
        """Write one command frame and return its correlation id.

        Raises:
            ConnectionLost: If the channel is not connected or the write fails.
        """
        if not self.is_connected:
            raise ConnectionLost(f"Cannot send {method}: connection is {self._state.value}")
        command_id = self.next_id()
        frame = json.dumps({"method": method, "params": params, "id": command_id})
        try:
            await self._ws.send(frame)
        except (ConnectionClosed, OSError) as e:
            self._state = ConnectionState.DISCONNECTED
            raise ConnectionLost(f"Write of {method} failed: {e}") from e
        logger.debug("Sent %s (id=%d)", method, command_id)
        return command_id

    async def receive(self) -> Any:
        """Read and JSON-decode the next frame.

        Raises:
            ConnectionLost: On any read or decode error.
        """
        if not self.is_connected:
            raise ConnectionLost(f"Cannot read: connection is {self._state.value}")
        try:
            frame = await self._ws.recv()
            return json.loads(frame)
        except (ConnectionClosed, OSError, ValueError) as e:
            self._state = ConnectionState.DISCONNECTED
            raise ConnectionLost(f"Read failed: {e}") from e

    async def close(self) -> None:
        """Close the channel. Safe to call more than once."""
        self._state = ConnectionState.DISCONNECTED
        ws, self._ws = self._ws, None
        if ws is None:
            return
        try:
            await ws.close()
        except (ConnectionClosed, OSError) as e:
            logger.debug("Error while closing channel: %s", e)
