"""Routing of inbound frames to session behavior."""

from __future__ import annotations

import logging
import re
from typing import Any

from panesd.devtools.messages import classify, decode_event
from panesd.domain.models import (
    ConsoleMessageAdded,
    DomContentEventFired,
    ErrorResponseMessage,
    EventMessage,
    FrameNavigated,
    InboundMessage,
    MalformedEvent,
    ResponseMessage,
    UnhandledEvent,
    UnrecognizedMessage,
)
from panesd.session.advancer import DONE, PresentationAdvancer
from panesd.session.navigation import NavigationController, instrumentation_script
from panesd.session.state import SessionState
from panesd.session.watchdog import WatchdogTimer

logger = logging.getLogger(__name__)

DEFAULT_PRESENTATION_PATTERN = r"presentations/(\d+)/display"

# Function names the injected page script logs from at "info" level.
DONE_SIGNAL = "GrowingPanes.done"
KEEP_ALIVE_SIGNAL = "GrowingPanes.keepAlive"


class MessageDispatcher:
    """Classifies each frame from the read loop and acts on it.

    - Page.domContentEventFired: inject the page script, arm watchdogs
    - Page.frameNavigated: track the current presentation id
    - Console.messageAdded (info): done-signal or slide keepAlive

    Responses and errors are only logged. Malformed payloads are logged
    and dropped without touching session state.
    """

    def __init__(
        self,
        state: SessionState,
        navigation: NavigationController,
        advancer: PresentationAdvancer,
        slide_watchdog: WatchdogTimer,
        presentation_pattern: str = DEFAULT_PRESENTATION_PATTERN,
        script: str | None = None,
    ) -> None:
        self._state = state
        self._navigation = navigation
        self._advancer = advancer
        self._slide_watchdog = slide_watchdog
        self._pattern = re.compile(presentation_pattern)
        self._script = script if script is not None else instrumentation_script()

    async def dispatch(self, raw: Any) -> InboundMessage:
        message = classify(raw)
        if isinstance(message, EventMessage):
            await self._handle_event(message)
        elif isinstance(message, ResponseMessage):
            logger.debug("Response id=%d: %s", message.id, message.result)
        elif isinstance(message, ErrorResponseMessage):
            logger.warning(
                "Error response id=%s code=%s: %s %s",
                message.id, message.code, message.message, message.data,
            )
        elif isinstance(message, UnrecognizedMessage):
            logger.warning("Unrecognized frame (%s): %.200r", message.reason, message.raw)
        return message

    async def _handle_event(self, message: EventMessage) -> None:
        event = decode_event(message)

        if isinstance(event, MalformedEvent):
            logger.warning("Dropping malformed %s event: %s", event.method, event.reason)
        elif isinstance(event, DomContentEventFired):
            await self._page_loaded()
        elif isinstance(event, FrameNavigated):
            await self._frame_navigated(event)
        elif isinstance(event, ConsoleMessageAdded):
            await self._console_message(event)
        elif isinstance(event, UnhandledEvent):
            logger.debug("Event %s", event.method)

    async def _page_loaded(self) -> None:
        logger.info("Page loaded, injecting instrumentation script")
        await self._navigation.evaluate(self._script)
        self._advancer.page_loaded()

    async def _frame_navigated(self, event: FrameNavigated) -> None:
        """Track the presentation id from the top-level frame's URL.

        Sub-frame navigations (those with a parentId) are ignored, so an
        embedded iframe never clears or replaces the id. A top-level URL
        that does not match the pattern clears it.
        """
        if not event.is_top_level:
            return
        match = self._pattern.search(event.url)
        await self._state.set_presentation_id(match.group(1) if match else None)

    async def _console_message(self, event: ConsoleMessageAdded) -> None:
        if event.level != "info":
            return
        if event.function_name == DONE_SIGNAL:
            logger.info("Page signalled done")
            await self._advancer.advance(DONE)
        elif event.function_name == KEEP_ALIVE_SIGNAL:
            logger.debug("Slide keepAlive")
            self._slide_watchdog.keep_alive()
        elif event.function_name is None:
            logger.debug("Info console message without stack frame: %.80s", event.text)
