"""Shared session state.

The read loop publishes and withdraws connections here while control
surface handlers read the connection, toggle interactive mode and ask
for status. Every access goes through one asyncio.Lock.
"""

from __future__ import annotations

import asyncio
import logging

from panesd.devtools.connection import ControlConnection
from panesd.domain.models import ConnectionState, SessionStatus

logger = logging.getLogger(__name__)


class SessionState:
    """Connection handle, interactive flag and current presentation id."""

    def __init__(self, interactive: bool = False) -> None:
        self._lock = asyncio.Lock()
        self._connection: ControlConnection | None = None
        self._interactive = interactive
        self._presentation_id: str | None = None

    async def connection(self) -> ControlConnection | None:
        """The published connection, or None while (re)connecting."""
        async with self._lock:
            return self._connection

    async def set_connection(self, connection: ControlConnection) -> None:
        async with self._lock:
            self._connection = connection
        logger.info("Session attached to target %s", connection.descriptor.id)

    async def clear_connection(self, connection: ControlConnection | None = None) -> None:
        """Withdraw the connection.

        If ``connection`` is given, only withdraw it if it is still the
        published one.
        """
        async with self._lock:
            if connection is not None and self._connection is not connection:
                return
            self._connection = None
        logger.info("Session detached from browser")

    async def is_interactive(self) -> bool:
        async with self._lock:
            return self._interactive

    async def set_interactive(self, enabled: bool) -> None:
        async with self._lock:
            changed = self._interactive != enabled
            self._interactive = enabled
        if changed:
            logger.info("Interactive mode %s", "on" if enabled else "off")

    async def presentation_id(self) -> str | None:
        async with self._lock:
            return self._presentation_id

    async def set_presentation_id(self, presentation_id: str | None) -> None:
        async with self._lock:
            previous = self._presentation_id
            self._presentation_id = presentation_id
        if previous != presentation_id:
            logger.info("Current presentation: %s", presentation_id or "(none)")

    async def snapshot(self) -> SessionStatus:
        async with self._lock:
            conn = self._connection
            state = conn.state if conn is not None else ConnectionState.DISCONNECTED
            return SessionStatus(
                connected=state == ConnectionState.CONNECTED,
                connection_state=state,
                interactive=self._interactive,
                presentation_id=self._presentation_id,
                tab_title=conn.descriptor.title if conn is not None else None,
                tab_url=conn.descriptor.url if conn is not None else None,
            )
