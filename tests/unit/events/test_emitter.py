"""
Unit tests for EventEmitter.
"""
from smarthome_link.devices.capabilities import (
    BULB,
    POWER_UPDATE_EVENTS,
    PLUG,
    PushBinding,
)
from smarthome_link.devices.subscription import SubscriptionFilter
from smarthome_link.events.emitter import (
    EventEmitter,
    StatusLevel,
    StatusShape,
    StatusUpdate,
    format_number,
)

TIMESTAMP = "2024-01-01T00:00:00+00:00"


def _bulb_emitter(recorder):
    subscriptions = SubscriptionFilter(BULB.event_tags)
    return EventEmitter(
        BULB,
        subscriptions,
        event_sink=recorder.event,
        status_sink=recorder.status,
        clock=lambda: TIMESTAMP,
    )


class TestSnapshot:
    """Test snapshot events."""

    def test_payload_and_timestamp(self, plug_emitter, recorder):
        """The snapshot is passed through with a timestamp."""
        payload = plug_emitter.emit_snapshot({"relay_state": 1, "alias": "Desk"})

        assert payload == {"relay_state": 1, "alias": "Desk", "timestamp": TIMESTAMP}
        assert recorder.events == [payload]

    def test_status_turned_on(self, plug_emitter, recorder, plug_filter):
        plug_emitter.emit_snapshot({"relay_state": 1})

        assert recorder.statuses[-1] == StatusUpdate(StatusLevel.YELLOW, "turned on")
        assert plug_filter.last_power is True

    def test_status_turned_off(self, plug_emitter, recorder):
        plug_emitter.emit_snapshot({"relay_state": 0})

        assert recorder.statuses[-1] == StatusUpdate(StatusLevel.GREEN, "turned off")

    def test_bulb_colours(self, recorder):
        emitter = _bulb_emitter(recorder)

        emitter.emit_snapshot({"light_state": {"on_off": 1}})
        emitter.emit_snapshot({"light_state": {"on_off": 0}})

        assert [s.level for s in recorder.statuses] == [StatusLevel.GREEN, StatusLevel.RED]

    def test_snapshot_emitted_with_empty_filter(self, plug_emitter, recorder, plug_filter):
        """Snapshots do not depend on the subscription filter."""
        plug_filter.clear()

        plug_emitter.emit_snapshot({"relay_state": 1})

        assert len(recorder.events) == 1


class TestMeterSnapshot:
    """Test meter events."""

    def test_plug_label(self, plug_emitter, recorder, plug_filter):
        plug_filter.record_power(True)

        payload = plug_emitter.emit_meter_snapshot(
            {"power": 12.5, "voltage": 230.1, "current": 0.054}
        )

        assert recorder.statuses[-1].label == "turned on [12.5W: 230.1V@0.054A]"
        assert recorder.statuses[-1].level is StatusLevel.YELLOW
        assert payload["power"] == 12.5
        assert payload["timestamp"] == TIMESTAMP

    def test_bulb_derives_watts(self, recorder):
        emitter = _bulb_emitter(recorder)
        emitter.subscriptions.record_power(True)

        payload = emitter.emit_meter_snapshot({"power_mw": 8500})

        assert payload["power_mw"] == 8500
        assert payload["power_w"] == 8.5
        assert recorder.statuses[-1].label == "turned on [8.5W]"

    def test_missing_fields_render_placeholder(self, plug_emitter, recorder):
        plug_emitter.emit_meter_snapshot({})

        assert recorder.statuses[-1].label == "turned off [?W: ?V@?A]"


class TestPush:
    """Test push notifications."""

    BINDING = PushBinding("power-on", POWER_UPDATE_EVENTS, "powerOn", True)

    def test_enabled_category_emits(self, plug_emitter, recorder, plug_filter):
        plug_filter.replace({POWER_UPDATE_EVENTS})

        assert plug_emitter.emit_push(self.BINDING) is True
        assert recorder.events == [{"powerOn": True, "timestamp": TIMESTAMP}]

    def test_disabled_category_suppressed(self, plug_emitter, recorder):
        assert plug_emitter.emit_push(self.BINDING) is False
        assert recorder.events == []
        assert plug_emitter.events_suppressed == 1


class TestStatus:
    """Test status forwarding."""

    def test_sink_errors_are_contained(self, plug_filter):
        def broken(_):
            raise RuntimeError("host gone")

        emitter = EventEmitter(PLUG, plug_filter, event_sink=broken, status_sink=broken)

        emitter.emit_snapshot({"relay_state": 1})

        assert emitter.events_sent == 1

    def test_status_to_dict(self):
        update = StatusUpdate(StatusLevel.RED, "not reachable", StatusShape.RING)

        assert update.to_dict() == {"level": "red", "shape": "ring", "label": "not reachable"}


class TestFormatNumber:
    """Test reading formatting."""

    def test_trims_zeros(self):
        assert format_number(12.50, 2) == "12.5"
        assert format_number(230.0, 1) == "230"

    def test_rounds(self):
        assert format_number(0.05449, 3) == "0.054"

    def test_invalid(self):
        assert format_number(None, 2) == "?"
        assert format_number("abc", 2) == "?"
