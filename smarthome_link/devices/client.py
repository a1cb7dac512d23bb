"""
Device client interfaces.

The LAN protocol itself lives in an external client library. These
protocols describe the surface the link relies on, so any client
exposing it can be plugged in through the ``client_factory`` setting.
"""
import importlib
import logging
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


@runtime_checkable
class DeviceHandle(Protocol):
    """A resolved device on the LAN."""

    host: str
    model: str

    async def get_info(self) -> Dict[str, Any]:
        ...

    async def get_sys_info(self) -> Dict[str, Any]:
        ...

    async def get_realtime(self) -> Dict[str, Any]:
        ...

    async def set_power_state(self, value: bool) -> Any:
        ...

    async def set_light_state(self, state: Dict[str, Any]) -> Any:
        ...

    async def erase_stats(self) -> Dict[str, Any]:
        ...

    def on(self, event: str, handler: Callable[[], None]) -> Unsubscribe:
        ...


@runtime_checkable
class DeviceClient(Protocol):
    """Entry point of the device client library."""

    async def get_device(self, host: str) -> DeviceHandle:
        ...

    def start_discovery(
        self,
        device_types: List[str],
        on_device: Callable[[DeviceHandle], None],
    ) -> None:
        ...

    def stop_discovery(self) -> None:
        ...


ClientFactory = Callable[[], DeviceClient]


def load_client_factory(path: Optional[str]) -> ClientFactory:
    """
    Import a client factory from a ``module:attribute`` path.

    Args:
        path: Import path, e.g. ``"mypackage.lan:Client"``.

    Returns:
        The factory callable.

    Raises:
        ConfigurationError: If the path is missing or cannot be imported.
    """
    if not path:
        raise ConfigurationError(
            "No device client factory configured", field="client_factory"
        )

    module_name, _, attribute = path.partition(":")
    if not attribute:
        raise ConfigurationError(
            f"Invalid client factory path '{path}', expected 'module:attribute'",
            field="client_factory",
        )

    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(
            f"Cannot load client factory '{path}': {e}",
            field="client_factory",
        ) from e

    if not callable(factory):
        raise ConfigurationError(
            f"Client factory '{path}' is not callable", field="client_factory"
        )

    logger.debug(f"Loaded device client factory {path}")
    return factory
