"""
Outbound events module.

Maps device data and notifications onto the node's event stream and
status display.
"""
from .emitter import (
    STATUS_CONNECTED,
    STATUS_INITIALIZING,
    STATUS_NOT_CONFIGURED,
    STATUS_NOT_REACHABLE,
    EventEmitter,
    StatusLevel,
    StatusShape,
    StatusUpdate,
)

__all__ = [
    "STATUS_CONNECTED",
    "STATUS_INITIALIZING",
    "STATUS_NOT_CONFIGURED",
    "STATUS_NOT_REACHABLE",
    "EventEmitter",
    "StatusLevel",
    "StatusShape",
    "StatusUpdate",
]
