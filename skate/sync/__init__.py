"""
Live slide synchronization for Skate.

This package keeps every open viewer on the same slide. Viewers hold a
WebSocket open; a control request that passes the password check is
broadcast to all of them as the number of the slide to show.

Exports:
    ConnectionRegistry: Shared map of open connections to their outbound queues
    Broadcaster: Pushes a slide number to every registered connection
    ControlGate: Checks a control request's password
    ViewerSession: Drives one viewer WebSocket from handshake to teardown
    ConnectionState: Lifecycle states of a ViewerSession
"""

from .broadcast import Broadcaster
from .gate import ControlGate
from .registry import ConnectionRegistry
from .session import ConnectionState, ViewerSession

__all__ = [
    "Broadcaster",
    "ConnectionRegistry",
    "ConnectionState",
    "ControlGate",
    "ViewerSession",
]
