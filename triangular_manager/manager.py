"""
Triangular arbitrage manager.

Composition root that owns the exchange registry and wires it into the route
dispatcher, the scan coordinator, the position sizer and the statistics
aggregator. Nothing is registered at import time: exchanges from the
configuration are declared on construction and their adapters are loaded by
an explicit ``initialize()`` call.
"""

from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Union

from dotenv import load_dotenv

from triangular_manager import logging_config
from triangular_manager.config_loader import (
    ExchangeConfig,
    ManagerRuntimeConfig,
    get_default_config,
    load_manager_config,
)
from triangular_manager.constants import DEFAULT_CALCULATION_AMOUNT
from triangular_manager.coordinator import ScanCoordinator
from triangular_manager.dispatcher import RouteDispatcher
from triangular_manager.exchanges.ccxt_adapter import CcxtTriangularAdapter
from triangular_manager.interfaces import TimeProvider
from triangular_manager.metrics import ScanMetrics, get_metrics
from triangular_manager.models import ExecutionResult, Opportunity, ProfitResult, TradePath
from triangular_manager.registry import ExchangeListing, ExchangeRegistry, RegistryEntry
from triangular_manager.sizing import PositionSizer, SizingRequest, SizingResult, detect_currency
from triangular_manager.stats import ManagerStats, StatsAggregator
from triangular_manager.utils import get_logger

logger = get_logger(__name__)

AdapterFactory = Callable[[ExchangeConfig], Any]


class TriangularManager:
    """Unified entry point for triangular arbitrage across exchanges."""

    def __init__(
        self,
        config: Optional[ManagerRuntimeConfig] = None,
        registry: Optional[ExchangeRegistry] = None,
        metrics: Optional[ScanMetrics] = None,
        time_provider: Optional[TimeProvider] = None,
    ):
        """
        Args:
            config: Runtime configuration; defaults to the known exchanges
                declared without adapters
            registry: Registry to populate; a fresh one is created when omitted
            metrics: Prometheus metrics sink. The process-wide instance from
                get_metrics() is used when metrics are enabled and none is given.
            time_provider: Clock shared by the coordinator and aggregator
        """
        self.config = config or get_default_config()
        self.registry = registry or ExchangeRegistry()

        if metrics is None and self.config.observability.metrics_enabled:
            metrics = get_metrics()
        self.metrics = metrics

        self.dispatcher = RouteDispatcher(
            self.registry, reject_disabled=self.config.scan.reject_disabled_routes
        )
        self.coordinator = ScanCoordinator(
            self.registry,
            dispatcher=self.dispatcher,
            timeout_seconds=self.config.scan.timeout_seconds,
            metrics=self.metrics,
            time_provider=time_provider,
        )
        self.sizer = PositionSizer(
            min_trade_amount=self.config.sizing.min_trade_amount, metrics=self.metrics
        )
        self.stats = StatsAggregator(self.registry, time_provider=time_provider)

        self._initialized = False
        self._metrics_server_started = False

        for exchange in self.config.exchanges:
            self.registry.declare(exchange.key, exchange.name, exchange.active)

    @classmethod
    def from_config_file(
        cls, config_path: Union[str, Path], **kwargs
    ) -> "TriangularManager":
        """
        Load environment credentials and a YAML configuration file.

        Application logging is configured at the file's
        ``observability.logging.level``.
        """
        load_dotenv()
        config = load_manager_config(config_path)
        logging_config.setup(config.observability.log_level)
        return cls(config, **kwargs)

    @property
    def initialized(self) -> bool:
        return self._initialized

    def register_adapter(
        self,
        key: str,
        adapter: Any,
        name: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> RegistryEntry:
        """Register an externally built adapter under an exchange key."""
        return self.registry.register(key, adapter, name=name, active=active)

    async def initialize(self, adapter_factory: Optional[AdapterFactory] = None) -> None:
        """
        Load an adapter for every configured exchange that names one.

        An exchange whose adapter cannot be built or initialized stays
        declared but unavailable; the remaining exchanges still load.
        Adapters registered beforehand are left untouched.

        Args:
            adapter_factory: Builds an adapter from an ExchangeConfig.
                Defaults to CcxtTriangularAdapter.from_config.
        """
        factory = adapter_factory or CcxtTriangularAdapter.from_config

        for exchange in self.config.exchanges:
            if not exchange.loadable:
                continue
            entry = self.registry.get(exchange.key)
            if entry is not None and entry.available:
                continue

            adapter = None
            try:
                adapter = factory(exchange)
                await adapter.initialize()
            except Exception as e:
                logger.warning("⚠️ %s triangular module not available: %s", exchange.name, e)
                if adapter is not None:
                    await self._close_adapter(exchange.name, adapter)
                continue

            self.registry.register(exchange.key, adapter, name=exchange.name)

        if self.metrics and self.config.observability.metrics_enabled:
            self._metrics_server_started = await self.metrics.start_server(
                port=self.config.observability.metrics_port,
                path=self.config.observability.metrics_path,
            )

        self._initialized = True
        available = self.get_available_exchanges()
        logger.info(
            "🔺 Triangular manager ready: %d of %d exchanges available",
            len(available),
            len(self.registry),
        )

    async def close(self) -> None:
        """Close every loaded adapter and the metrics server."""
        for entry in self.registry.snapshot():
            if entry.available:
                await self._close_adapter(entry.name, entry.adapter)

        if self.metrics and self._metrics_server_started:
            await self.metrics.stop_server()
            self._metrics_server_started = False
        self._initialized = False

    async def scan_all(self, show_activity: Optional[bool] = None) -> List[Opportunity]:
        """Scan every active exchange; see ScanCoordinator.scan_all."""
        if show_activity is None:
            show_activity = self.config.scan.show_activity
        return await self.coordinator.scan_all(show_activity)

    async def scan_exchange(self, key: str, show_activity: bool = False) -> List[Opportunity]:
        return await self.dispatcher.route_scan(key, show_activity)

    async def calculate_profit(
        self, key: str, path: TradePath, amount: float = DEFAULT_CALCULATION_AMOUNT
    ) -> ProfitResult:
        return await self.dispatcher.route_calculate_profit(key, path, amount)

    async def execute(self, key: str, opportunity: Opportunity) -> ExecutionResult:
        return await self.dispatcher.route_execute(key, opportunity)

    def size(self, request: SizingRequest) -> SizingResult:
        return self.sizer.size(request)

    def size_opportunity(
        self, opportunity: Opportunity, balances: Mapping[str, float]
    ) -> SizingResult:
        """
        Size an opportunity from per-currency balances.

        The opportunity's base currency selects the balance; a currency with
        no balance entry sizes as zero and is rejected as insufficient.
        """
        currency = detect_currency(opportunity.path)
        request = SizingRequest(
            balance=balances.get(currency, 0.0),
            portfolio_percent=self.config.sizing.portfolio_percent,
            max_trade_amount=self.config.sizing.max_trade_amount,
            currency=currency,
            exchange=opportunity.exchange,
            path=opportunity.path,
            profit_percent=opportunity.net_profit_percent,
        )
        return self.sizer.size(request)

    def get_stats(self) -> ManagerStats:
        return self.stats.collect()

    def get_available_exchanges(self) -> List[ExchangeListing]:
        return self.registry.list()

    def set_exchange_active(self, key: str, active: bool) -> bool:
        return self.registry.set_active(key, active)

    @staticmethod
    async def _close_adapter(name: str, adapter: Any) -> None:
        if not hasattr(adapter, "close"):
            return
        try:
            await adapter.close()
        except Exception as e:
            logger.error("Error closing %s adapter: %s", name, e)
