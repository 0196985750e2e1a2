"""Session management module for panesd.

Contains the long-running pieces that keep the wall moving: the shared
session state, expiry watchdogs, the advancement policy, frame dispatch
and the connection supervisor.

Public API:
    SessionState -- Shared connection / interactive / presentation state
    WatchdogTimer -- Re-armable expiry timer
    NavigationController -- Navigate and evaluate commands
    PresentationAdvancer -- Advance / suppress decisions
    MessageDispatcher -- Routes inbound frames
    ConnectionSupervisor -- Discover, connect, read, reconnect
"""

from panesd.session.advancer import PresentationAdvancer
from panesd.session.dispatcher import MessageDispatcher
from panesd.session.navigation import NavigationController
from panesd.session.state import SessionState
from panesd.session.supervisor import ConnectionSupervisor
from panesd.session.watchdog import WatchdogTimer

__all__ = [
    "ConnectionSupervisor",
    "MessageDispatcher",
    "NavigationController",
    "PresentationAdvancer",
    "SessionState",
    "WatchdogTimer",
]
