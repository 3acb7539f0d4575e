"""
Base Exchange Adapter Interface

Provides the abstraction layer between the manager and exchange-specific
triangular arbitrage modules. Every adapter implements the three async
capabilities; statistics reporting is optional and is captured once, at
registration time, as an explicit capability variant.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..constants import CapabilityKind
from ..interfaces import StatsProvider
from ..models import ExecutionResult, Opportunity, ProfitResult, TradePath


class TriangularAdapter(ABC):
    """Abstract base class for per-exchange triangular arbitrage adapters"""

    def __init__(self, name: str, config: Optional[Dict[str, Any]] = None):
        """
        Initialize exchange adapter

        Args:
            name: Exchange display name reported on opportunities
            config: Adapter-specific configuration dictionary
        """
        self.name = name
        self.config = config or {}

    @abstractmethod
    async def scan_opportunities(self, show_activity: bool = False) -> List[Opportunity]:
        """Scan every configured path and return the resulting opportunities"""
        pass

    @abstractmethod
    async def calculate_profit(
        self, path: TradePath, amount: float
    ) -> ProfitResult:
        """Calculate round-trip profit for one path and start amount"""
        pass

    @abstractmethod
    async def execute_opportunity(self, opportunity: Opportunity) -> ExecutionResult:
        """Execute every leg of an opportunity"""
        pass

    async def initialize(self) -> None:
        """Prepare the adapter (load markets, connect, etc.)"""
        pass

    async def close(self) -> None:
        """Clean up resources"""
        pass


@dataclass(frozen=True)
class AdapterCapability:
    """
    An adapter handle tagged with the optional capabilities it exposes.

    Consumers branch on ``kind`` instead of probing the handle for methods.
    """

    handle: Any
    kind: CapabilityKind = CapabilityKind.BASIC

    @property
    def has_stats(self) -> bool:
        return self.kind is CapabilityKind.WITH_STATS

    def get_stats(self) -> Dict[str, Any]:
        if not self.has_stats:
            raise TypeError("Adapter does not expose statistics")
        return self.handle.get_stats()


def with_stats(handle: Any) -> AdapterCapability:
    """Wrap an adapter that reports its own statistics."""
    return AdapterCapability(handle=handle, kind=CapabilityKind.WITH_STATS)


def basic(handle: Any) -> AdapterCapability:
    """Wrap an adapter without a statistics capability."""
    return AdapterCapability(handle=handle, kind=CapabilityKind.BASIC)


def capability_for(handle: Any) -> AdapterCapability:
    """
    Build the capability variant for an adapter handle.

    Handles that are already an AdapterCapability are returned unchanged.
    Otherwise the handle is classified once against StatsProvider.
    """
    if isinstance(handle, AdapterCapability):
        return handle
    if isinstance(handle, StatsProvider):
        return with_stats(handle)
    return basic(handle)
