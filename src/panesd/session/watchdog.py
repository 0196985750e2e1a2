"""Re-armable expiry timers.

A watchdog does not call policy code. When its deadline passes it puts a
single WatchdogExpired event on a queue and disarms; whoever consumes the
queue decides what an expiry means.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from panesd.domain.models import WatchdogExpired

logger = logging.getLogger(__name__)

DEFAULT_TICK = 1.0


class WatchdogTimer:
    """Fires once if not kept alive within ``timeout`` seconds.

    The deadline is a plain float owned by the event loop thread: keep_alive
    overwrites it and the checker reads it, with no lock in between.

    Example usage::

        expirations: asyncio.Queue[WatchdogExpired] = asyncio.Queue()
        slide = WatchdogTimer("slide", 30.0, expirations)
        slide.start()
        slide.keep_alive()          # pushes the deadline out again
        expired = await expirations.get()
    """

    def __init__(
        self,
        name: str,
        timeout: float,
        expirations: asyncio.Queue[WatchdogExpired],
        tick: float = DEFAULT_TICK,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        if tick <= 0:
            raise ValueError(f"tick must be positive, got {tick}")
        self._name = name
        self._timeout = timeout
        self._expirations = expirations
        self._tick = tick
        self._clock = clock
        self._deadline = 0.0
        self._armed = False
        self._checker: asyncio.Task[None] | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def deadline(self) -> float | None:
        return self._deadline if self._armed else None

    def start(self) -> None:
        """Arm the watchdog, or refresh the deadline if already armed."""
        self._deadline = self._clock() + self._timeout
        if self._armed:
            return
        self._armed = True
        self._cancel_checker()
        self._checker = asyncio.get_running_loop().create_task(
            self._run_checker(), name=f"watchdog-{self._name}"
        )
        logger.debug("Watchdog %s armed for %.1fs", self._name, self._timeout)

    def keep_alive(self) -> None:
        """Push the deadline to now + timeout. Ignored while disarmed."""
        if not self._armed:
            logger.debug("keepAlive for disarmed watchdog %s ignored", self._name)
            return
        self._deadline = self._clock() + self._timeout

    def stop(self) -> None:
        """Disarm without firing."""
        if self._armed:
            logger.debug("Watchdog %s disarmed", self._name)
        self._armed = False
        self._cancel_checker()

    def check(self) -> bool:
        """Evaluate one tick. Returns True if the watchdog fired."""
        if not self._armed:
            return False
        now = self._clock()
        if now < self._deadline:
            return False
        self._armed = False
        self._expirations.put_nowait(
            WatchdogExpired(name=self._name, deadline=self._deadline, fired_at=now)
        )
        logger.info("Watchdog %s expired after %.1fs", self._name, self._timeout)
        return True

    async def _run_checker(self) -> None:
        while self._armed:
            await asyncio.sleep(self._tick)
            if self.check():
                break

    def _cancel_checker(self) -> None:
        checker, self._checker = self._checker, None
        if checker is not None and not checker.done():
            checker.cancel()
