"""DevTools protocol module for panesd.

Everything that speaks to the browser directly: target discovery over
HTTP, the websocket control connection, and strict decoding of inbound
frames.

Public API:
    TabDiscovery -- Polls the discovery endpoint for debuggable targets
    ControlConnection -- Single-use duplex channel to one target
    classify / decode_event -- Inbound frame decoding
"""

from panesd.devtools.connection import ConnectionFailed, ConnectionLost, ControlConnection
from panesd.devtools.discovery import DiscoveryUnavailable, TabDiscovery
from panesd.devtools.messages import classify, decode_event

__all__ = [
    "ConnectionFailed",
    "ConnectionLost",
    "ControlConnection",
    "DiscoveryUnavailable",
    "TabDiscovery",
    "classify",
    "decode_event",
]
