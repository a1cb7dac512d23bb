"""
Smart device link - main entry point.

Runs one node from the environment settings:
1. Loads the device client factory
2. Connects to the configured plug or bulb
3. Logs status updates and emits events as JSON log lines
4. Stops on SIGINT/SIGTERM
"""
import asyncio
import json
import logging
import signal
import sys
from typing import Any, Dict, Optional

from .config import SmartHomeSettings, get_settings
from .devices.client import load_client_factory
from .events.emitter import StatusUpdate
from .node import SmartDeviceNode

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)
event_logger = logging.getLogger("smarthome_link.events")


class NodeRunner:
    """Runs a single node until shutdown."""

    def __init__(self, settings: Optional[SmartHomeSettings] = None):
        self.settings = settings or get_settings()
        self.node: Optional[SmartDeviceNode] = None
        self._running = False
        self._shutdown_event = asyncio.Event()

    async def start(self) -> None:
        """Build and start the node."""
        logging.getLogger().setLevel(self.settings.log_level.upper())
        logger.info(f"Starting {self.settings.app_name}...")

        client_factory = load_client_factory(self.settings.client_factory)
        self.node = SmartDeviceNode(
            self.settings.node,
            client_factory(),
            status_sink=self._on_status,
            event_sink=self._on_event,
        )
        self.node.start()
        self._running = True

    async def stop(self) -> None:
        """Close the node."""
        if not self._running:
            return

        logger.info(f"Stopping {self.settings.app_name}...")
        self._running = False
        self._shutdown_event.set()

        if self.node:
            await self.node.close()
            logger.info(f"Final stats: {self.node.get_stats()}")

    async def serve_forever(self) -> None:
        """Run until shutdown."""
        await self._shutdown_event.wait()

    def _on_status(self, status: StatusUpdate) -> None:
        logger.info(f"[{self.settings.node.name}] status: {status.label} ({status.level.value})")

    def _on_event(self, payload: Dict[str, Any]) -> None:
        event_logger.info(json.dumps(payload, default=str))


def setup_signal_handlers(runner: NodeRunner, loop: asyncio.AbstractEventLoop):
    """Setup signal handlers for graceful shutdown."""
    def signal_handler():
        logger.info("Received shutdown signal")
        loop.create_task(runner.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            signal.signal(sig, lambda s, f: signal_handler())


async def main():
    """Main entry point."""
    runner = NodeRunner()
    setup_signal_handlers(runner, asyncio.get_running_loop())

    try:
        await runner.start()
        await runner.serve_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        await runner.stop()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
