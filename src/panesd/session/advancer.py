"""Presentation advancement policy.

Turns done-signals from the page and watchdog expiries into navigations to
the next-presentation endpoint, unless interactive mode is on.

Lifecycle: LOADING -> ACTIVE -> ADVANCING -> LOADING ...
"""

from __future__ import annotations

import asyncio
import logging

from panesd.domain.models import NavigationResult, PresentationPhase, WatchdogExpired
from panesd.session.navigation import NavigationController
from panesd.session.state import SessionState
from panesd.session.watchdog import WatchdogTimer

logger = logging.getLogger(__name__)

DONE = "done"
MANUAL = "manual"


class PresentationAdvancer:
    """Decides whether a trigger becomes a navigation.

    Triggers are serialized, so a done-signal racing a watchdog expiry
    produces one navigation, not two. While the next presentation is
    loading, done-signals (which can only come from the page being left)
    are ignored; watchdog expiries are not, so a page that never loads is
    still skipped.
    """

    def __init__(
        self,
        state: SessionState,
        navigation: NavigationController,
        next_url: str,
        watchdogs: list[WatchdogTimer],
        expirations: asyncio.Queue[WatchdogExpired],
    ) -> None:
        self._state = state
        self._navigation = navigation
        self._next_url = next_url
        self._watchdogs = {w.name: w for w in watchdogs}
        self._expirations = expirations
        self._phase = PresentationPhase.ACTIVE
        self._lock = asyncio.Lock()
        self._advance_count = 0

    @property
    def phase(self) -> PresentationPhase:
        return self._phase

    @property
    def next_url(self) -> str:
        return self._next_url

    @property
    def advance_count(self) -> int:
        return self._advance_count

    def page_loaded(self) -> None:
        """A page finished loading: arm every watchdog and go ACTIVE."""
        for watchdog in self._watchdogs.values():
            watchdog.start()
        self._phase = PresentationPhase.ACTIVE

    async def advance(self, reason: str) -> NavigationResult | None:
        """Navigate to the next presentation.

        Returns the navigation result, or None when the trigger was
        ignored or suppressed.
        """
        async with self._lock:
            if self._phase == PresentationPhase.LOADING and reason == DONE:
                logger.info("Ignoring done-signal: next presentation is already loading")
                return None

            if await self._state.is_interactive():
                logger.info("Advance (%s) suppressed: interactive mode is on", reason)
                self._rearm_fired()
                return None

            self._phase = PresentationPhase.ADVANCING
            for watchdog in self._watchdogs.values():
                watchdog.stop()

            logger.info("Advancing presentation (%s)", reason)
            result = await self._navigation.navigate(self._next_url)
            if result.sent:
                self._phase = PresentationPhase.LOADING
                self._advance_count += 1
            else:
                logger.warning("Advance (%s) failed: browser unavailable, will retry", reason)
                self._phase = PresentationPhase.ACTIVE
            # Armed again right away so a page that never loads, or a lost
            # connection, still gets another attempt.
            for watchdog in self._watchdogs.values():
                watchdog.start()
            return result

    async def run(self) -> None:
        """Consume watchdog expiries forever."""
        while True:
            expired = await self._expirations.get()
            watchdog = self._watchdogs.get(expired.name)
            if watchdog is not None and watchdog.armed:
                logger.debug("Dropping stale expiry from re-armed watchdog %s", expired.name)
                continue
            try:
                await self.advance(f"{expired.name}_timeout")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Error advancing after %s expiry: %s", expired.name, e)

    def stop_watchdogs(self) -> None:
        for watchdog in self._watchdogs.values():
            watchdog.stop()

    def _rearm_fired(self) -> None:
        for watchdog in self._watchdogs.values():
            if not watchdog.armed:
                watchdog.start()
