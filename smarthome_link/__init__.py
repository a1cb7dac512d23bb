"""
Smart Home Link.

Keeps a connection to one smart plug or bulb on the LAN, turns its
state into an event stream and accepts control commands.
"""
from .node import SmartDeviceNode

__version__ = "0.1.0"

__all__ = [
    "SmartDeviceNode",
]
