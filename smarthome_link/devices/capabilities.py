"""
Device capability descriptors.

Plugs and bulbs share one connection state machine. What differs
between them - event vocabulary, push notifications, metering, the
field holding the on/off state and the parametrized commands - is
described here.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ..errors import ConfigurationError


# Subscription tags
INFO_EVENTS = "getInfoEvents"
METER_EVENTS = "getMeterEvents"
POWER_UPDATE_EVENTS = "getPowerUpdateEvents"
IN_USE_EVENTS = "getInUseEvents"
ONLINE_EVENTS = "getOnlineEvents"


class MeterStyle(str, Enum):
    """How a device reports real-time metering."""
    NONE = "none"
    WATTS = "watts"            # power, voltage, current
    MILLIWATTS = "milliwatts"  # power_mw


@dataclass(frozen=True)
class PushBinding:
    """Maps a device notification onto an outbound event."""
    device_event: str
    tag: str
    key: str
    value: bool


@dataclass(frozen=True)
class DeviceCapabilities:
    """
    Capability set of one device type.

    Attributes:
        device_type: Configuration name of the type.
        discovery_type: Category passed to LAN discovery.
        event_tags: Subscription vocabulary accepted by the filter.
        push_bindings: Device notifications and the events they produce.
        power_path: Path to the on/off value inside a snapshot.
        meter_style: Metering format, NONE if the device has no meter.
        parameters: Parametrized command name -> light state key.
        on_level: Status colour used for "turned on".
        off_level: Status colour used for "turned off".
        device_polling: Device must self-poll to emit push notifications.
    """
    device_type: str
    discovery_type: str
    event_tags: Tuple[str, ...]
    push_bindings: Tuple[PushBinding, ...]
    power_path: Tuple[str, ...]
    meter_style: MeterStyle = MeterStyle.NONE
    parameters: Mapping[str, str] = field(default_factory=dict)
    on_level: str = "yellow"
    off_level: str = "green"
    device_polling: bool = False

    @property
    def has_metering(self) -> bool:
        """Check if the device reports real-time metering."""
        return self.meter_style is not MeterStyle.NONE

    def read_power(self, snapshot: Dict[str, Any]) -> Optional[bool]:
        """
        Read the on/off state from a snapshot.

        Args:
            snapshot: Device snapshot payload.

        Returns:
            True/False, or None if the field is missing.
        """
        value: Any = snapshot
        for key in self.power_path:
            if not isinstance(value, dict) or key not in value:
                return None
            value = value[key]
        if value is None:
            return None
        return value == 1 or value is True


_ONLINE_BINDINGS = (
    PushBinding("device-online", ONLINE_EVENTS, "online", True),
    PushBinding("device-offline", ONLINE_EVENTS, "online", False),
)


PLUG = DeviceCapabilities(
    device_type="plug",
    discovery_type="plug",
    event_tags=(
        METER_EVENTS,
        INFO_EVENTS,
        POWER_UPDATE_EVENTS,
        IN_USE_EVENTS,
        ONLINE_EVENTS,
    ),
    push_bindings=(
        PushBinding("power-on", POWER_UPDATE_EVENTS, "powerOn", True),
        PushBinding("power-off", POWER_UPDATE_EVENTS, "powerOn", False),
        PushBinding("in-use", IN_USE_EVENTS, "inUse", True),
        PushBinding("not-in-use", IN_USE_EVENTS, "inUse", False),
    ) + _ONLINE_BINDINGS,
    power_path=("relay_state",),
    meter_style=MeterStyle.WATTS,
)

BULB = DeviceCapabilities(
    device_type="bulb",
    discovery_type="bulb",
    event_tags=(
        METER_EVENTS,
        INFO_EVENTS,
        POWER_UPDATE_EVENTS,
        ONLINE_EVENTS,
    ),
    push_bindings=(
        PushBinding("lightstate-on", POWER_UPDATE_EVENTS, "powerOn", True),
        PushBinding("lightstate-off", POWER_UPDATE_EVENTS, "powerOn", False),
    ) + _ONLINE_BINDINGS,
    power_path=("light_state", "on_off"),
    meter_style=MeterStyle.MILLIWATTS,
    parameters={"brightness": "brightness", "temperature": "color_temp"},
    on_level="green",
    off_level="red",
    device_polling=True,
)

# Bulbs without an energy meter
BULB_ALT = DeviceCapabilities(
    device_type="bulb-alt",
    discovery_type="bulb",
    event_tags=(
        INFO_EVENTS,
        POWER_UPDATE_EVENTS,
        ONLINE_EVENTS,
    ),
    push_bindings=BULB.push_bindings,
    power_path=("light_state", "on_off"),
    parameters={"brightness": "brightness", "temperature": "color_temp"},
    on_level="green",
    off_level="red",
    device_polling=True,
)

CAPABILITIES: Dict[str, DeviceCapabilities] = {
    caps.device_type: caps for caps in (PLUG, BULB, BULB_ALT)
}


def get_capabilities(device_type: str) -> DeviceCapabilities:
    """
    Look up the descriptor for a device type.

    Raises:
        ConfigurationError: If the type is unknown.
    """
    try:
        return CAPABILITIES[device_type]
    except KeyError:
        raise ConfigurationError(
            f"Unknown device type '{device_type}'", field="device_type"
        ) from None
