"""
Subscription filter.

Holds the event categories the consumer enabled and the last power
state seen in a snapshot.
"""
import logging
from typing import FrozenSet, Iterable, Optional

logger = logging.getLogger(__name__)

TAG_DELIMITER = "|"


class SubscriptionFilter:
    """
    Enabled event categories of one node.

    The set is always replaced as a whole. Tags outside the device
    vocabulary are dropped.
    """

    def __init__(self, vocabulary: Iterable[str]):
        self.vocabulary: FrozenSet[str] = frozenset(vocabulary)
        self._enabled: FrozenSet[str] = frozenset()
        self.last_power: Optional[bool] = None

    @property
    def enabled(self) -> FrozenSet[str]:
        """Currently enabled tags."""
        return self._enabled

    def is_enabled(self, tag: str) -> bool:
        """Check if a category is enabled."""
        return tag in self._enabled

    def parse(self, payload: str) -> FrozenSet[str]:
        """
        Split a ``|`` separated tag list, keeping known tags only.

        Args:
            payload: e.g. ``"getInfoEvents|getOnlineEvents"``.

        Returns:
            Recognised tags, possibly empty.
        """
        tags = (part.strip() for part in payload.split(TAG_DELIMITER))
        return frozenset(tag for tag in tags if tag in self.vocabulary)

    def replace(self, tags: Iterable[str]) -> FrozenSet[str]:
        """Replace the enabled set, ignoring unknown tags."""
        self._enabled = frozenset(tag for tag in tags if tag in self.vocabulary)
        logger.debug(f"Enabled events: {sorted(self._enabled) or 'none'}")
        return self._enabled

    def clear(self) -> None:
        """Disable all events."""
        self.replace(())

    def record_power(self, power: Optional[bool]) -> None:
        """Remember the power state of the latest snapshot."""
        self.last_power = power

    @property
    def power_label(self) -> str:
        """Status text for the last known power state."""
        return "turned on" if self.last_power else "turned off"

    def __repr__(self) -> str:
        return (
            f"SubscriptionFilter("
            f"enabled={sorted(self._enabled)}, "
            f"last_power={self.last_power})"
        )
