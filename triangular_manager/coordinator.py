"""
Unified scanning across every active exchange.

The coordinator selects all available and active registry entries from one
consistent snapshot, scans them concurrently, isolates per-exchange failures
and timeouts, and returns the merged opportunities ranked by net profit.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from triangular_manager.constants import DEFAULT_SCAN_TIMEOUT_SECONDS, ScanFailureReason
from triangular_manager.dispatcher import RouteDispatcher
from triangular_manager.exceptions import ValidationError
from triangular_manager.interfaces import TimeProvider, get_time_provider
from triangular_manager.metrics import ScanMetrics
from triangular_manager.models import Opportunity
from triangular_manager.registry import ExchangeRegistry, RegistryEntry
from triangular_manager.utils import (
    format_duration,
    format_profit,
    get_logger,
    is_finite_number,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScanSummary:
    """Summary statistics of one unified scan."""

    exchanges_scanned: Tuple[str, ...] = ()
    failed_exchanges: Tuple[str, ...] = ()
    total_opportunities: int = 0
    profitable_count: int = 0
    duration_seconds: float = 0.0


@dataclass(frozen=True)
class _ExchangeScanResult:
    key: str
    opportunities: List[Opportunity] = field(default_factory=list)
    failure: Optional[ScanFailureReason] = None


class ScanCoordinator:
    """Fans a scan out to every active exchange and ranks the results."""

    def __init__(
        self,
        registry: ExchangeRegistry,
        dispatcher: Optional[RouteDispatcher] = None,
        timeout_seconds: Optional[float] = DEFAULT_SCAN_TIMEOUT_SECONDS,
        metrics: Optional[ScanMetrics] = None,
        time_provider: Optional[TimeProvider] = None,
    ):
        """
        Args:
            registry: Registry shared with the dispatcher
            dispatcher: Dispatcher used to forward each scan; one is created
                over the same registry when omitted
            timeout_seconds: Per-exchange scan timeout. None disables it.
            metrics: Optional Prometheus metrics sink
            time_provider: Clock used to measure scan duration
        """
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValidationError(
                f"Scan timeout must be positive, got {timeout_seconds}"
            )
        self.registry = registry
        self.dispatcher = dispatcher or RouteDispatcher(registry)
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics
        self.time_provider = time_provider or get_time_provider()
        self.last_summary: Optional[ScanSummary] = None

    def select_exchanges(self) -> Tuple[RegistryEntry, ...]:
        """Entries that are both available and active, from one snapshot."""
        return tuple(entry for entry in self.registry.snapshot() if entry.is_scannable)

    async def scan_all(self, show_activity: bool = False) -> List[Opportunity]:
        """
        Scan all active exchanges for triangular opportunities.

        A failing or timed-out exchange contributes no results and never
        aborts the scan. The merged list is sorted by net profit, highest
        first, keeping the original order of equal values.

        Returns:
            Opportunities from every exchange, ranked by net profit percent
        """
        logger.info(
            "🔺 Starting unified triangular arbitrage scan across all exchanges..."
        )
        selected = self.select_exchanges()

        if not selected:
            logger.warning("⚠️ No triangular exchange modules available")
            self.last_summary = ScanSummary()
            return []

        if self.metrics:
            self.metrics.record_scan_started()
        started = self.time_provider.monotonic()

        results = await asyncio.gather(
            *(self._scan_exchange(entry, show_activity) for entry in selected)
        )

        opportunities: List[Opportunity] = []
        for result in results:
            opportunities.extend(result.opportunities)
        opportunities.sort(key=lambda o: o.net_profit_percent, reverse=True)

        profitable_count = sum(1 for o in opportunities if o.profitable)
        duration = self.time_provider.monotonic() - started

        self.last_summary = ScanSummary(
            exchanges_scanned=tuple(entry.key for entry in selected),
            failed_exchanges=tuple(r.key for r in results if r.failure is not None),
            total_opportunities=len(opportunities),
            profitable_count=profitable_count,
            duration_seconds=duration,
        )
        if self.metrics:
            self.metrics.record_scan_completed(duration, profitable_count)

        logger.info(
            "🔺 Unified scan complete in %s. Found %d profitable opportunities "
            "across %d exchanges",
            format_duration(duration),
            profitable_count,
            len(selected),
        )
        if opportunities:
            best = opportunities[0]
            logger.info(
                "Best: %s on %s at %s",
                best.path_name,
                best.exchange,
                format_profit(best.net_profit_percent),
            )
        return opportunities

    async def _scan_exchange(
        self, entry: RegistryEntry, show_activity: bool
    ) -> _ExchangeScanResult:
        """Scan one exchange, converting any failure into an empty result."""
        logger.info("🔍 Scanning %s triangular opportunities...", entry.name)
        try:
            scan = self.dispatcher.scan_entry(entry, show_activity)
            if self.timeout_seconds is not None:
                opportunities = await asyncio.wait_for(scan, self.timeout_seconds)
            else:
                opportunities = await scan
            if opportunities is None:
                opportunities = []
            elif not isinstance(opportunities, (list, tuple)):
                raise TypeError(
                    f"Expected a list of opportunities, got {type(opportunities).__name__}"
                )
            opportunities = self._well_formed(entry, opportunities)
        except asyncio.TimeoutError:
            logger.warning(
                "⏱️ %s scan timed out after %.1fs", entry.name, self.timeout_seconds
            )
            return self._failed(entry, ScanFailureReason.TIMEOUT)
        except Exception as e:
            logger.error("❌ %s scan failed: %s", entry.name, e, exc_info=True)
            return self._failed(entry, ScanFailureReason.ERROR)

        logger.info(
            "✅ %s scan complete: %d opportunities", entry.name, len(opportunities)
        )
        if self.metrics:
            self.metrics.record_exchange_result(entry.key, len(opportunities))
        return _ExchangeScanResult(key=entry.key, opportunities=opportunities)

    def _failed(
        self, entry: RegistryEntry, reason: ScanFailureReason
    ) -> _ExchangeScanResult:
        if self.metrics:
            self.metrics.record_exchange_failure(entry.key, reason)
        return _ExchangeScanResult(key=entry.key, failure=reason)

    @staticmethod
    def _well_formed(entry: RegistryEntry, opportunities) -> List[Opportunity]:
        """Drop results that cannot be ranked by net profit."""
        ranked = []
        for opportunity in opportunities:
            if is_finite_number(getattr(opportunity, "net_profit_percent", None)):
                ranked.append(opportunity)
            else:
                logger.warning(
                    "Dropping %s result without a numeric net profit: %r",
                    entry.name,
                    opportunity,
                )
        return ranked
