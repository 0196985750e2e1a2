"""Core domain models for the panesd system.

These models represent the data flowing through the session manager:
debuggable tabs found by discovery, inbound DevTools protocol frames and
the typed page events decoded from them, watchdog expiries, navigation
results, and the status snapshot served by the control surface.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ConnectionState(str, enum.Enum):
    """Lifecycle of a single control connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class PresentationPhase(str, enum.Enum):
    """Where the wall is in the presentation lifecycle."""

    LOADING = "loading"  # Navigation issued, waiting for DOMContentLoaded
    ACTIVE = "active"  # Page loaded, watchdogs armed
    ADVANCING = "advancing"  # A trigger is being turned into a navigation


class NavigationStatus(str, enum.Enum):
    SENT = "sent"
    UNAVAILABLE = "unavailable"


# ---------------------------------------------------------------------------
# Discovery Models
# ---------------------------------------------------------------------------


class TabDescriptor(BaseModel):
    """A debuggable target as listed by the browser's discovery endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(description="Target id")
    title: str = Field(default="")
    url: str = Field(default="")
    type: str = Field(default="page")
    web_socket_debugger_url: str = Field(
        alias="webSocketDebuggerUrl",
        min_length=1,
        description="Address of the duplex channel for this target",
    )
    description: str = Field(default="")
    devtools_frontend_url: str | None = Field(default=None, alias="devtoolsFrontendUrl")
    favicon_url: str | None = Field(default=None, alias="faviconUrl")


# ---------------------------------------------------------------------------
# Inbound Protocol Frames (tagged union)
# ---------------------------------------------------------------------------


class EventMessage(BaseModel):
    """A notification pushed by the browser (no id)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["event"] = "event"
    method: str
    params: dict[str, Any] = Field(default_factory=dict)


class ResponseMessage(BaseModel):
    """A successful reply to one of our commands."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["response"] = "response"
    id: int
    result: Any = None


class ErrorResponseMessage(BaseModel):
    """A failed reply to one of our commands."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    id: int | None = None
    code: int | None = None
    message: str = ""
    data: list[str] = Field(default_factory=list)


class UnrecognizedMessage(BaseModel):
    """A frame that is none of the above; kept as data instead of raising."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unrecognized"] = "unrecognized"
    raw: Any = None
    reason: str = ""


InboundMessage = Union[EventMessage, ResponseMessage, ErrorResponseMessage, UnrecognizedMessage]


# ---------------------------------------------------------------------------
# Page Events (decoded from EventMessage)
# ---------------------------------------------------------------------------


class DomContentEventFired(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: float | None = None


class FrameNavigated(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    frame_id: str | None = None
    parent_id: str | None = None

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None


class ConsoleMessageAdded(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str
    text: str = ""
    function_name: str | None = Field(
        default=None, description="Function name of the top stack frame, if any"
    )


class UnhandledEvent(BaseModel):
    """An event method the session manager does not act on."""

    model_config = ConfigDict(frozen=True)

    method: str


class MalformedEvent(BaseModel):
    """A known event whose payload did not have the expected shape."""

    model_config = ConfigDict(frozen=True)

    method: str
    reason: str


PageEvent = Union[
    DomContentEventFired,
    FrameNavigated,
    ConsoleMessageAdded,
    UnhandledEvent,
    MalformedEvent,
]


# ---------------------------------------------------------------------------
# Session Models
# ---------------------------------------------------------------------------


class WatchdogExpired(BaseModel):
    """Emitted once by a watchdog when its deadline passes."""

    model_config = ConfigDict(frozen=True)

    name: str
    deadline: float = Field(description="Monotonic deadline that was missed")
    fired_at: float = Field(description="Monotonic time the checker noticed")


class NavigationResult(BaseModel):
    """Outcome of a navigate or evaluate request."""

    model_config = ConfigDict(frozen=True)

    status: NavigationStatus
    url: str | None = None
    command_id: int | None = None

    @property
    def sent(self) -> bool:
        return self.status == NavigationStatus.SENT


class SessionStatus(BaseModel):
    """Point-in-time view of the session served by the control surface."""

    connected: bool
    connection_state: ConnectionState
    interactive: bool
    presentation_id: str | None = None
    tab_title: str | None = None
    tab_url: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)
