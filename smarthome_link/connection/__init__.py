"""
Connection module.

Handles the device connection state machine and its timers.
"""
from .controller import ConnectionController, ConnectionState
from .timer import RecurringTimer

__all__ = [
    "ConnectionController",
    "ConnectionState",
    "RecurringTimer",
]
