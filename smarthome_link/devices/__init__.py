"""
Device module.

Capability descriptors, the client interfaces, device sessions and
the subscription filter.
"""
from .capabilities import (
    BULB,
    BULB_ALT,
    PLUG,
    DeviceCapabilities,
    MeterStyle,
    PushBinding,
    get_capabilities,
)
from .client import DeviceClient, DeviceHandle, load_client_factory
from .session import DeviceSession, open_session
from .subscription import SubscriptionFilter

__all__ = [
    "BULB",
    "BULB_ALT",
    "PLUG",
    "DeviceCapabilities",
    "MeterStyle",
    "PushBinding",
    "get_capabilities",
    "DeviceClient",
    "DeviceHandle",
    "load_client_factory",
    "DeviceSession",
    "open_session",
    "SubscriptionFilter",
]
