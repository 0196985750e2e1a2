"""Strict decoding of inbound DevTools protocol frames.

Two steps, both total (they never raise on bad input):

``classify`` turns a decoded JSON frame into one of the InboundMessage
variants, looking only at which top-level fields are present.
``decode_event`` turns an EventMessage for one of the methods the session
manager cares about into a typed page event, or a MalformedEvent when the
nested payload does not have the expected shape.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from panesd.domain.models import (
    ConsoleMessageAdded,
    DomContentEventFired,
    ErrorResponseMessage,
    EventMessage,
    FrameNavigated,
    InboundMessage,
    MalformedEvent,
    PageEvent,
    ResponseMessage,
    UnhandledEvent,
    UnrecognizedMessage,
)

logger = logging.getLogger(__name__)

DOM_CONTENT_EVENT_FIRED = "Page.domContentEventFired"
FRAME_NAVIGATED = "Page.frameNavigated"
CONSOLE_MESSAGE_ADDED = "Console.messageAdded"


# ---------------------------------------------------------------------------
# Wire payload shapes
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _DomContentParams(_WireModel):
    timestamp: float | None = None


class _Frame(_WireModel):
    url: str
    id: str | None = None
    parentId: str | None = None


class _FrameNavigatedParams(_WireModel):
    frame: _Frame


class _CallFrame(_WireModel):
    functionName: str = ""


class _ConsoleMessage(_WireModel):
    level: str
    text: str = ""
    stackTrace: list[_CallFrame] = Field(default_factory=list)


class _ConsoleMessageAddedParams(_WireModel):
    message: _ConsoleMessage


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"{location}: {first['msg']}"


# ---------------------------------------------------------------------------
# Frame classification
# ---------------------------------------------------------------------------


def _error_data(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(item) for item in value]
    return [str(value)]


def classify(raw: Any) -> InboundMessage:
    """Classify a decoded frame by field presence.

    ``method`` present means event, ``error`` present means error
    response, ``result`` present means response. Anything else, or a
    frame whose fields have the wrong types, is an UnrecognizedMessage.
    """
    if not isinstance(raw, dict):
        return UnrecognizedMessage(
            raw=raw, reason=f"frame is {type(raw).__name__}, expected an object"
        )

    try:
        if "method" in raw:
            params = raw.get("params")
            return EventMessage(
                method=raw["method"],
                params={} if params is None else params,
            )
        if "error" in raw:
            error = raw["error"]
            if not isinstance(error, dict):
                return UnrecognizedMessage(raw=raw, reason="error field is not an object")
            return ErrorResponseMessage(
                id=raw.get("id"),
                code=error.get("code"),
                message=error.get("message") or "",
                data=_error_data(error.get("data")),
            )
        if "result" in raw:
            return ResponseMessage(id=raw.get("id"), result=raw["result"])
    except ValidationError as e:
        return UnrecognizedMessage(raw=raw, reason=_describe(e))

    return UnrecognizedMessage(raw=raw, reason="no method, result or error field")


# ---------------------------------------------------------------------------
# Event decoding
# ---------------------------------------------------------------------------


def _decode_dom_content(params: dict[str, Any]) -> PageEvent:
    payload = _DomContentParams.model_validate(params)
    return DomContentEventFired(timestamp=payload.timestamp)


def _decode_frame_navigated(params: dict[str, Any]) -> PageEvent:
    payload = _FrameNavigatedParams.model_validate(params)
    return FrameNavigated(
        url=payload.frame.url,
        frame_id=payload.frame.id,
        parent_id=payload.frame.parentId,
    )


def _decode_console_message(params: dict[str, Any]) -> PageEvent:
    message = _ConsoleMessageAddedParams.model_validate(params).message
    top = message.stackTrace[0].functionName if message.stackTrace else None
    return ConsoleMessageAdded(level=message.level, text=message.text, function_name=top or None)


_DECODERS: dict[str, Callable[[dict[str, Any]], PageEvent]] = {
    DOM_CONTENT_EVENT_FIRED: _decode_dom_content,
    FRAME_NAVIGATED: _decode_frame_navigated,
    CONSOLE_MESSAGE_ADDED: _decode_console_message,
}


def decode_event(message: EventMessage) -> PageEvent:
    """Decode an event into a typed page event. Never raises."""
    decoder = _DECODERS.get(message.method)
    if decoder is None:
        return UnhandledEvent(method=message.method)
    try:
        return decoder(message.params)
    except ValidationError as e:
        return MalformedEvent(method=message.method, reason=_describe(e))
