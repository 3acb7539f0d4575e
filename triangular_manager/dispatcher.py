"""
Routing of single-exchange triangular arbitrage calls.

Validates an exchange key against the registry and forwards the call to that
exchange's adapter. Adapter results are returned unchanged and adapter
exceptions propagate to the caller.
"""

from typing import List

from triangular_manager.constants import DEFAULT_CALCULATION_AMOUNT
from triangular_manager.exceptions import UnavailableError, UnknownExchangeError
from triangular_manager.models import ExecutionResult, Opportunity, ProfitResult, TradePath
from triangular_manager.registry import ExchangeRegistry, RegistryEntry
from triangular_manager.utils import get_logger

logger = get_logger(__name__)


class RouteDispatcher:
    """Forwards scan, profit and execute calls to one exchange adapter."""

    def __init__(self, registry: ExchangeRegistry, reject_disabled: bool = False):
        """
        Args:
            registry: Registry shared with the rest of the manager
            reject_disabled: If True, profit and execute calls against a
                disabled exchange raise UnavailableError instead of being
                forwarded. Scans of a disabled exchange always return [].
        """
        self.registry = registry
        self.reject_disabled = reject_disabled

    def resolve(self, key: str) -> RegistryEntry:
        """
        Look up an exchange and make sure its adapter is loaded.

        Raises:
            UnknownExchangeError: If the key is not registered
            UnavailableError: If the exchange has no adapter loaded
        """
        entry = self.registry.get(key)
        if entry is None:
            raise UnknownExchangeError(str(key))
        if not entry.available:
            raise UnavailableError(str(key))
        return entry

    async def route_scan(self, key: str, show_activity: bool = False) -> List[Opportunity]:
        """Scan one exchange. A disabled exchange yields an empty list."""
        return await self.scan_entry(self.resolve(key), show_activity)

    async def scan_entry(
        self, entry: RegistryEntry, show_activity: bool = False
    ) -> List[Opportunity]:
        """Scan an already-resolved entry, honouring its active flag."""
        if not entry.available:
            raise UnavailableError(entry.key)
        if not entry.active:
            logger.info("⏸️ %s triangular module is disabled", entry.name)
            return []
        return await entry.adapter.scan_opportunities(show_activity)

    async def route_calculate_profit(
        self, key: str, path: TradePath, amount: float = DEFAULT_CALCULATION_AMOUNT
    ) -> ProfitResult:
        """Calculate profit for one path on one exchange."""
        entry = self._resolve_enabled(key)
        return await entry.adapter.calculate_profit(path, amount)

    async def route_execute(self, key: str, opportunity: Opportunity) -> ExecutionResult:
        """Execute an opportunity on one exchange."""
        entry = self._resolve_enabled(key)
        logger.info(
            "🔺 Routing execution of %s to %s", opportunity.path_name, entry.name
        )
        return await entry.adapter.execute_opportunity(opportunity)

    def _resolve_enabled(self, key: str) -> RegistryEntry:
        entry = self.resolve(key)
        if self.reject_disabled and not entry.active:
            raise UnavailableError(str(key), reason="triangular module is disabled")
        return entry
