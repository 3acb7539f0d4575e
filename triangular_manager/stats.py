"""
Per-exchange status and statistics collection.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from triangular_manager.constants import ExchangeStatus
from triangular_manager.interfaces import TimeProvider, get_time_provider
from triangular_manager.registry import ExchangeRegistry, RegistryEntry
from triangular_manager.utils import get_logger, timestamp_to_iso

logger = get_logger(__name__)


@dataclass(frozen=True)
class ManagerStats:
    """Aggregated statistics across every registered exchange."""

    total_exchanges: int
    available_exchanges: int
    active_exchanges: int
    exchanges: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    last_update: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalExchanges": self.total_exchanges,
            "availableExchanges": self.available_exchanges,
            "activeExchanges": self.active_exchanges,
            "exchanges": {key: dict(value) for key, value in self.exchanges.items()},
            "lastUpdate": self.last_update,
        }


class StatsAggregator:
    """Collects adapter statistics, falling back to a synthesized status."""

    def __init__(
        self,
        registry: ExchangeRegistry,
        time_provider: Optional[TimeProvider] = None,
    ):
        self.registry = registry
        self.time_provider = time_provider or get_time_provider()

    def collect(self) -> ManagerStats:
        """Collect statistics for every registered exchange. Never raises."""
        entries = self.registry.snapshot()
        exchanges: Dict[str, Dict[str, Any]] = {}

        for entry in entries:
            exchanges[entry.key] = self._entry_stats(entry)

        return ManagerStats(
            total_exchanges=len(entries),
            available_exchanges=sum(1 for entry in entries if entry.available),
            active_exchanges=sum(1 for entry in entries if entry.is_scannable),
            exchanges=exchanges,
            last_update=timestamp_to_iso(self.time_provider.current_timestamp()),
        )

    def _entry_stats(self, entry: RegistryEntry) -> Dict[str, Any]:
        if entry.available and entry.capability.has_stats:
            try:
                return entry.capability.get_stats()
            except Exception as e:
                logger.warning("⚠️ %s stats unavailable: %s", entry.name, e)
        return self._basic_status(entry)

    @staticmethod
    def _basic_status(entry: RegistryEntry) -> Dict[str, Any]:
        status = ExchangeStatus.LOADED if entry.available else ExchangeStatus.NOT_LOADED
        return {
            "available": entry.available,
            "active": entry.active,
            "status": status.value,
        }
