"""Wiring of the session components into one runnable service."""

from __future__ import annotations

import asyncio
import logging

from panesd.config.settings import Settings
from panesd.devtools.connection import Connector
from panesd.devtools.discovery import TabDiscovery
from panesd.domain.models import WatchdogExpired
from panesd.session.advancer import PresentationAdvancer
from panesd.session.dispatcher import MessageDispatcher
from panesd.session.navigation import NavigationController, instrumentation_script
from panesd.session.state import SessionState
from panesd.session.supervisor import ConnectionSupervisor
from panesd.session.watchdog import WatchdogTimer

logger = logging.getLogger(__name__)


def _log_task_exit(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("%s task died: %s", task.get_name(), exc, exc_info=exc)


class VideoWallService:
    """Builds and runs the session manager for one browser.

    Coordinates: discovery -> connection -> dispatch -> advance -> navigate
    """

    def __init__(
        self,
        settings: Settings | None = None,
        discovery: TabDiscovery | None = None,
        connector: Connector | None = None,
    ) -> None:
        self.settings = settings or Settings()
        browser = self.settings.browser
        presentation = self.settings.presentation

        self.state = SessionState()
        self.navigation = NavigationController(self.state)
        self.expirations: asyncio.Queue[WatchdogExpired] = asyncio.Queue()
        self.slide_watchdog = WatchdogTimer(
            "slide", presentation.slide_timeout, self.expirations, tick=presentation.watchdog_tick
        )
        self.presentation_watchdog = WatchdogTimer(
            "presentation",
            presentation.presentation_timeout,
            self.expirations,
            tick=presentation.watchdog_tick,
        )
        self.advancer = PresentationAdvancer(
            self.state,
            self.navigation,
            next_url=presentation.next_url,
            watchdogs=[self.slide_watchdog, self.presentation_watchdog],
            expirations=self.expirations,
        )
        self.dispatcher = MessageDispatcher(
            self.state,
            self.navigation,
            self.advancer,
            self.slide_watchdog,
            presentation_pattern=presentation.id_pattern,
            script=instrumentation_script(presentation.script_src),
        )
        self.discovery = discovery or TabDiscovery(
            browser.discovery_url, poll_interval=browser.poll_interval
        )
        self.supervisor = ConnectionSupervisor(
            self.discovery,
            self.state,
            self.dispatcher,
            self.advancer,
            connector=connector,
            open_timeout=browser.open_timeout,
            retry_delay=browser.poll_interval,
        )
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        if self.is_running:
            logger.warning("Service already running")
            return
        self._tasks = [
            asyncio.create_task(self.supervisor.run(), name="supervisor"),
            asyncio.create_task(self.advancer.run(), name="advancer"),
        ]
        for task in self._tasks:
            task.add_done_callback(_log_task_exit)
        logger.info(
            "Video wall service started (browser=%s, next=%s)",
            self.discovery.url,
            self.advancer.next_url,
        )

    async def stop(self) -> None:
        await self.supervisor.stop()
        self.advancer.stop_watchdogs()
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug("Task %s had already failed: %s", task.get_name(), e)
        self._tasks = []
        await self.discovery.close()
        logger.info("Video wall service stopped")
