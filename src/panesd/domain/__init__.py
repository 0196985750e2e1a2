"""Domain models for panesd.

This package contains the core data structures, enumerations, and value
objects used throughout the daemon. All models use Pydantic v2 for
validation and serialization.
"""

from panesd.domain.models import (
    ConnectionState,
    ConsoleMessageAdded,
    DomContentEventFired,
    ErrorResponseMessage,
    EventMessage,
    FrameNavigated,
    InboundMessage,
    MalformedEvent,
    NavigationResult,
    NavigationStatus,
    PageEvent,
    PresentationPhase,
    ResponseMessage,
    SessionStatus,
    TabDescriptor,
    UnhandledEvent,
    UnrecognizedMessage,
    WatchdogExpired,
)

__all__ = [
    "ConnectionState",
    "ConsoleMessageAdded",
    "DomContentEventFired",
    "ErrorResponseMessage",
    "EventMessage",
    "FrameNavigated",
    "InboundMessage",
    "MalformedEvent",
    "NavigationResult",
    "NavigationStatus",
    "PageEvent",
    "PresentationPhase",
    "ResponseMessage",
    "SessionStatus",
    "TabDescriptor",
    "UnhandledEvent",
    "UnrecognizedMessage",
    "WatchdogExpired",
]
