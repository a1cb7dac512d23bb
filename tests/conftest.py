"""
Shared pytest fixtures for smarthome-link tests.

Provides fixtures for:
- A scripted in-memory device client and device handle
- Status and event recorders standing in for the host
- Node factories
"""
import asyncio
import copy
from typing import Any, Callable, Dict, List, Optional

import pytest
import pytest_asyncio

from smarthome_link.config import NodeSettings
from smarthome_link.devices.capabilities import PLUG
from smarthome_link.devices.subscription import SubscriptionFilter
from smarthome_link.events.emitter import EventEmitter, StatusUpdate
from smarthome_link.node import SmartDeviceNode


# ============================================================================
# Fake device client
# ============================================================================

PLUG_SYS_INFO = {
    "alias": "Desk lamp",
    "model": "HS110(EU)",
    "relay_state": 1,
    "on_time": 1234,
}

PLUG_REALTIME = {
    "power": 12.5,
    "voltage": 230.1,
    "current": 0.054,
    "total": 1.2,
}

BULB_SYS_INFO = {
    "alias": "Hall",
    "model": "KL130(EU)",
    "light_state": {"on_off": 1, "brightness": 80, "color_temp": 2700},
}

BULB_REALTIME = {"power_mw": 8500}


class FakeDeviceHandle:
    """
    Scripted device handle.

    Calls whose name is in ``failing`` raise ConnectionError. Pending
    calls can be held with ``block`` and released with ``release``.
    """

    def __init__(
        self,
        host: str = "10.0.0.5",
        model: str = "HS110(EU)",
        sys_info: Optional[Dict[str, Any]] = None,
        realtime: Optional[Dict[str, Any]] = None,
    ):
        self.host = host
        self.model = model
        self.sys_info = copy.deepcopy(sys_info if sys_info is not None else PLUG_SYS_INFO)
        self.realtime = dict(realtime if realtime is not None else PLUG_REALTIME)
        self.failing: set = set()
        self.calls: List[tuple] = []
        self.handlers: Dict[str, List[Callable[[], None]]] = {}
        self.polling_interval: Optional[int] = None
        self.polling_stopped = False
        self._gates: Dict[str, asyncio.Event] = {}

    def block(self, name: str) -> None:
        """Hold calls to ``name`` until ``release`` is called."""
        self._gates[name] = asyncio.Event()

    def release(self, name: str) -> None:
        self._gates.pop(name).set()

    async def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name,) + args)
        gate = self._gates.get(name)
        if gate is not None:
            await gate.wait()
        if name in self.failing:
            raise ConnectionError(f"{name} timed out")

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def get_info(self) -> Dict[str, Any]:
        await self._call("get_info")
        return {"model": self.model}

    async def get_sys_info(self) -> Dict[str, Any]:
        await self._call("get_sys_info")
        return copy.deepcopy(self.sys_info)

    async def get_realtime(self) -> Dict[str, Any]:
        await self._call("get_realtime")
        return dict(self.realtime)

    async def set_power_state(self, value: bool) -> None:
        await self._call("set_power_state", value)
        if "relay_state" in self.sys_info:
            self.sys_info["relay_state"] = 1 if value else 0
        if "light_state" in self.sys_info:
            self.sys_info["light_state"]["on_off"] = 1 if value else 0

    async def set_light_state(self, state: Dict[str, Any]) -> None:
        await self._call("set_light_state", state)
        self.sys_info.setdefault("light_state", {}).update(state)

    async def erase_stats(self) -> Dict[str, Any]:
        await self._call("erase_stats")
        return {"err_code": 0}

    def on(self, event: str, handler: Callable[[], None]) -> Callable[[], None]:
        self.handlers.setdefault(event, []).append(handler)

        def unsubscribe() -> None:
            self.handlers[event].remove(handler)

        return unsubscribe

    def emit(self, event: str) -> None:
        """Fire a device notification."""
        for handler in list(self.handlers.get(event, [])):
            handler()

    def start_polling(self, interval_ms: int) -> None:
        self.polling_interval = interval_ms

    def stop_polling(self) -> None:
        self.polling_stopped = True


class FakeDeviceClient:
    """
    Scripted device client.

    Every successful lookup returns a fresh handle built by
    ``handle_factory``; ``handles`` keeps them in lookup order.
    """

    def __init__(
        self,
        handle_factory: Optional[Callable[[str], FakeDeviceHandle]] = None,
        announced: Optional[List[FakeDeviceHandle]] = None,
    ):
        self.handle_factory = handle_factory or (lambda host: FakeDeviceHandle(host))
        self.announced = list(announced or [])
        self.handles: List[FakeDeviceHandle] = []
        self.fail_lookups = False
        self.lookups = 0
        self.discovery_types: Optional[List[str]] = None
        self.discovery_stopped = False
        self._gate: Optional[asyncio.Event] = None

    def block_lookups(self) -> None:
        self._gate = asyncio.Event()

    def release_lookups(self) -> None:
        gate, self._gate = self._gate, None
        gate.set()

    @property
    def last_handle(self) -> Optional[FakeDeviceHandle]:
        return self.handles[-1] if self.handles else None

    async def get_device(self, host: str) -> FakeDeviceHandle:
        self.lookups += 1
        if self._gate is not None:
            await self._gate.wait()
        if self.fail_lookups:
            raise ConnectionError(f"no response from {host}")
        handle = self.handle_factory(host)
        self.handles.append(handle)
        return handle

    def start_discovery(
        self,
        device_types: List[str],
        on_device: Callable[[FakeDeviceHandle], None],
    ) -> None:
        self.discovery_types = list(device_types)
        loop = asyncio.get_running_loop()
        for handle in self.announced:
            loop.call_soon(on_device, handle)

    def stop_discovery(self) -> None:
        self.discovery_stopped = True


class Recorder:
    """Collects status updates and events like a host would."""

    def __init__(self):
        self.statuses: List[StatusUpdate] = []
        self.events: List[Dict[str, Any]] = []

    def status(self, update: StatusUpdate) -> None:
        self.statuses.append(update)

    def event(self, payload: Dict[str, Any]) -> None:
        self.events.append(payload)

    @property
    def labels(self) -> List[str]:
        return [update.label for update in self.statuses]

    def clear(self) -> None:
        self.statuses.clear()
        self.events.clear()


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def recorder():
    """Host stand-in collecting statuses and events."""
    return Recorder()


@pytest.fixture
def fake_handle():
    """A plug handle with default sys info and metering."""
    return FakeDeviceHandle()


@pytest.fixture
def fake_client():
    """A plug client that succeeds on every lookup."""
    return FakeDeviceClient()


@pytest.fixture
def bulb_client():
    """A bulb client that succeeds on every lookup."""
    return FakeDeviceClient(
        lambda host: FakeDeviceHandle(
            host, model="KL130(EU)", sys_info=BULB_SYS_INFO, realtime=BULB_REALTIME
        )
    )


@pytest.fixture
def handle_factory():
    """Build custom fake handles."""
    return FakeDeviceHandle


@pytest.fixture
def client_factory():
    """Build custom fake clients."""
    return FakeDeviceClient


@pytest.fixture
def plug_filter():
    """Subscription filter with the plug vocabulary."""
    return SubscriptionFilter(PLUG.event_tags)


@pytest.fixture
def plug_emitter(plug_filter, recorder):
    """Event emitter for a plug with a fixed clock."""
    return EventEmitter(
        PLUG,
        plug_filter,
        event_sink=recorder.event,
        status_sink=recorder.status,
        clock=lambda: "2024-01-01T00:00:00+00:00",
    )


@pytest.fixture
def node_settings():
    """Build node settings; timers are slow enough to never fire in a test."""
    def _build(**overrides) -> NodeSettings:
        values = {
            "name": "test node",
            "device": "10.0.0.5",
            "device_type": "plug",
            "interval": 60000,
            "event_interval": 60000,
        }
        values.update(overrides)
        return NodeSettings(**values)

    return _build


@pytest_asyncio.fixture
async def make_node(node_settings, recorder):
    """
    Build nodes wired to the recorder.

    Every node built is closed after the test.
    """
    nodes: List[SmartDeviceNode] = []

    def _build(client, **overrides) -> SmartDeviceNode:
        node = SmartDeviceNode(
            node_settings(**overrides),
            client,
            status_sink=recorder.status,
            event_sink=recorder.event,
        )
        nodes.append(node)
        return node

    yield _build

    for node in nodes:
        await node.close()


@pytest_asyncio.fixture
async def connected_node(make_node, fake_client, recorder):
    """A plug node that completed its first connect."""
    node = make_node(fake_client)
    node.start()
    await node.controller.drain()
    recorder.clear()
    return node
