"""
Event polling module.

Handles scheduled snapshot polling of the connected device.
"""
from .engine import PollingEngine

__all__ = [
    "PollingEngine",
]
