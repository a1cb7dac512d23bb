"""
Outbound event and status mapping.

Turns snapshots, meter readings and push notifications into the
node's outbound events, and status changes into status updates.
No I/O happens here.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..devices.capabilities import DeviceCapabilities, MeterStyle, PushBinding
from ..devices.subscription import SubscriptionFilter

logger = logging.getLogger(__name__)


class StatusLevel(str, Enum):
    """Status colour shown by the host."""
    GREY = "grey"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class StatusShape(str, Enum):
    """Status marker shape shown by the host."""
    DOT = "dot"
    RING = "ring"


@dataclass(frozen=True)
class StatusUpdate:
    """A status display update."""
    level: StatusLevel
    label: str
    shape: StatusShape = StatusShape.DOT

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for serialization."""
        return {
            "level": self.level.value,
            "shape": self.shape.value,
            "label": self.label,
        }


STATUS_NOT_CONFIGURED = StatusUpdate(StatusLevel.RED, "not configured", StatusShape.RING)
STATUS_INITIALIZING = StatusUpdate(StatusLevel.GREY, "initializing…")
STATUS_CONNECTED = StatusUpdate(StatusLevel.GREEN, "connected")
STATUS_NOT_REACHABLE = StatusUpdate(StatusLevel.RED, "not reachable", StatusShape.RING)

EventSink = Callable[[Dict[str, Any]], None]
StatusSink = Callable[[StatusUpdate], None]


def utc_timestamp() -> str:
    """Generation timestamp attached to every event."""
    return datetime.now(timezone.utc).isoformat()


def format_number(value: Any, places: int) -> str:
    """Format a reading with at most ``places`` decimals, trimming zeros."""
    try:
        text = f"{float(value):.{places}f}"
    except (TypeError, ValueError):
        return "?"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class EventEmitter:
    """
    Maps device data onto outbound events.

    Snapshot and meter events are always emitted. Push notifications
    are only emitted when their category is enabled in the filter.
    """

    def __init__(
        self,
        capabilities: DeviceCapabilities,
        subscriptions: SubscriptionFilter,
        event_sink: EventSink,
        status_sink: StatusSink,
        clock: Callable[[], str] = utc_timestamp,
    ):
        """
        Initialize the emitter.

        Args:
            capabilities: Device capability descriptor.
            subscriptions: Subscription filter of the node.
            event_sink: Receives outbound event payloads.
            status_sink: Receives status updates.
            clock: Timestamp source.
        """
        self.capabilities = capabilities
        self.subscriptions = subscriptions
        self._event_sink = event_sink
        self._status_sink = status_sink
        self._clock = clock

        self.events_sent = 0
        self.events_suppressed = 0
        self.last_status: Optional[StatusUpdate] = None

    def report_status(self, status: StatusUpdate) -> None:
        """Forward a status update to the host."""
        self.last_status = status
        try:
            self._status_sink(status)
        except Exception as e:
            logger.error(f"Error in status sink: {e}")

    def emit_snapshot(self, snapshot: Dict[str, Any]) -> Dict[str, Any]:
        """
        Emit a device snapshot.

        Updates the cached power state and the status text first.

        Returns:
            The emitted payload.
        """
        power = self.capabilities.read_power(snapshot)
        self.subscriptions.record_power(power)
        if power:
            self.report_status(
                StatusUpdate(StatusLevel(self.capabilities.on_level), "turned on")
            )
        else:
            self.report_status(
                StatusUpdate(StatusLevel(self.capabilities.off_level), "turned off")
            )

        payload = dict(snapshot)
        payload["timestamp"] = self._clock()
        self._send(payload)
        return payload

    def emit_meter_snapshot(self, reading: Dict[str, Any]) -> Dict[str, Any]:
        """
        Emit a real-time meter reading.

        The status text gets a human readable power draw. Raw fields
        are passed through untouched.

        Returns:
            The emitted payload.
        """
        state = self.subscriptions.power_label
        payload = dict(reading)

        if self.capabilities.meter_style is MeterStyle.MILLIWATTS:
            power_w = _milliwatts_to_watts(reading.get("power_mw"))
            if power_w is not None:
                payload["power_w"] = power_w
            label = f"{state} [{format_number(power_w, 2)}W]"
            level = StatusLevel.GREY
        else:
            power = format_number(reading.get("power"), 2)
            voltage = format_number(reading.get("voltage"), 1)
            current = format_number(reading.get("current"), 3)
            label = f"{state} [{power}W: {voltage}V@{current}A]"
            level = StatusLevel.YELLOW

        self.report_status(StatusUpdate(level, label))

        payload["timestamp"] = self._clock()
        self._send(payload)
        return payload

    def emit_push(self, binding: PushBinding) -> bool:
        """
        Emit a push notification if its category is enabled.

        Returns:
            True if an event was emitted.
        """
        if not self.subscriptions.is_enabled(binding.tag):
            self.events_suppressed += 1
            return False

        self._send({
            binding.key: binding.value,
            "timestamp": self._clock(),
        })
        return True

    def emit_result(self, result: Dict[str, Any]) -> Dict[str, Any]:
        """Emit the raw result of a device call."""
        payload = dict(result)
        payload["timestamp"] = self._clock()
        self._send(payload)
        return payload

    def _send(self, payload: Dict[str, Any]) -> None:
        """Deliver a payload to the event sink."""
        self.events_sent += 1
        try:
            self._event_sink(payload)
        except Exception as e:
            logger.error(f"Error in event sink: {e}")


def _milliwatts_to_watts(value: Any) -> Optional[float]:
    try:
        return round(float(value) / 1000, 3)
    except (TypeError, ValueError):
        return None
