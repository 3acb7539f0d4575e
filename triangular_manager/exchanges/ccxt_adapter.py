"""
ccxt-backed triangular arbitrage adapter.

Evaluates a fixed set of configured triangular paths on any exchange supported
by ccxt, using one ticker snapshot per scan. Exchange-specific REST details and
request signing stay inside ccxt.
"""

from typing import Any, Dict, Iterable, List, Optional

import ccxt.async_support as ccxt

from ..constants import (
    DEFAULT_CALCULATION_AMOUNT,
    DEFAULT_FEE_BPS,
    DEFAULT_PROFIT_THRESHOLD_PERCENT,
    OrderSide,
)
from ..exceptions import ExchangeError, ExecutionError
from ..interfaces import TimeProvider, get_time_provider
from ..models import Opportunity, TradePath
from ..utils import format_profit, get_logger, is_positive_number, timestamp_to_iso
from .base_adapter import TriangularAdapter

logger = get_logger(__name__)


def create_ccxt_exchange(
    exchange_id: str,
    api_key: Optional[str] = None,
    secret: Optional[str] = None,
    options: Optional[Dict[str, Any]] = None,
):
    """Instantiate an async ccxt exchange by id."""
    if not isinstance(exchange_id, str) or not exchange_id:
        raise ExchangeError(
            f"The exchange id must be a non-empty string, got {exchange_id!r}"
        )
    if not hasattr(ccxt, exchange_id):
        raise ExchangeError(
            f"The exchange '{exchange_id}' is not supported by the ccxt library.",
            exchange=exchange_id,
        )

    params: Dict[str, Any] = {"enableRateLimit": True}
    if api_key:
        params["apiKey"] = api_key
    if secret:
        params["secret"] = secret
    if options:
        params.update(options)

    exchange_class = getattr(ccxt, exchange_id)
    return exchange_class(params)


class CcxtTriangularAdapter(TriangularAdapter):
    """Triangular adapter over an async ccxt exchange instance."""

    def __init__(
        self,
        name: str,
        exchange,
        paths: Iterable[TradePath],
        fee_bps: float = DEFAULT_FEE_BPS,
        profit_threshold_percent: float = DEFAULT_PROFIT_THRESHOLD_PERCENT,
        calculation_amount: float = DEFAULT_CALCULATION_AMOUNT,
        time_provider: Optional[TimeProvider] = None,
    ):
        """
        Args:
            name: Exchange display name stamped on every opportunity
            exchange: ccxt async exchange (or compatible) instance
            paths: Triangular paths evaluated on each scan
            fee_bps: Taker fee per leg in basis points
            profit_threshold_percent: Net profit above which a path is profitable
            calculation_amount: Start amount used when scanning
            time_provider: Clock used for opportunity timestamps
        """
        super().__init__(
            name,
            {
                "fee_bps": fee_bps,
                "profit_threshold_percent": profit_threshold_percent,
                "calculation_amount": calculation_amount,
            },
        )
        self.exchange = exchange
        self.paths = tuple(paths)
        self.fee_rate = fee_bps / 10000.0
        self.profit_threshold_percent = profit_threshold_percent
        self.calculation_amount = calculation_amount
        self.time_provider = time_provider or get_time_provider()

        self._scan_count = 0
        self._last_scan: Optional[float] = None
        self._last_profitable = 0

    @classmethod
    def from_config(cls, config) -> "CcxtTriangularAdapter":
        """Build an adapter from a normalized ExchangeConfig."""
        exchange = create_ccxt_exchange(
            config.ccxt_id, api_key=config.api_key, secret=config.secret_key
        )
        return cls(
            name=config.name,
            exchange=exchange,
            paths=config.paths,
            fee_bps=config.fee_bps,
            profit_threshold_percent=config.profit_threshold_percent,
            calculation_amount=config.calculation_amount,
        )

    async def initialize(self) -> None:
        """Load exchange markets"""
        if hasattr(self.exchange, "load_markets"):
            await self.exchange.load_markets()

    async def close(self) -> None:
        """Close the exchange connection"""
        if hasattr(self.exchange, "close"):
            await self.exchange.close()

    async def scan_opportunities(self, show_activity: bool = False) -> List[Opportunity]:
        """Evaluate every configured path against one ticker snapshot."""
        pairs = sorted({pair for path in self.paths for pair in path.pairs})
        if not pairs:
            return []

        tickers = await self.exchange.fetch_tickers(pairs)
        opportunities = []
        for path in self.paths:
            try:
                opportunity = self._evaluate(path, tickers, self.calculation_amount)
            except ExchangeError as e:
                logger.warning("Skipping %s on %s: %s", path.display_name, self.name, e)
                continue
            opportunities.append(opportunity)
            if show_activity:
                logger.info(
                    "%s %s: %s (threshold %.2f%%)",
                    "✅ PROFITABLE" if opportunity.profitable else "❌ Not profitable",
                    opportunity.path_name,
                    format_profit(opportunity.net_profit_percent),
                    self.profit_threshold_percent,
                )

        opportunities.sort(key=lambda o: o.net_profit_percent, reverse=True)
        self._scan_count += 1
        self._last_scan = self.time_provider.current_timestamp()
        self._last_profitable = sum(1 for o in opportunities if o.profitable)
        logger.debug(
            "%s scan complete. Found %d profitable opportunities",
            self.name,
            self._last_profitable,
        )
        return opportunities

    async def calculate_profit(
        self, path: TradePath, amount: float = DEFAULT_CALCULATION_AMOUNT
    ) -> Opportunity:
        """Calculate round-trip profit for one path using fresh tickers."""
        if not is_positive_number(amount):
            raise ExchangeError(
                f"Calculation amount must be positive, got {amount!r}",
                exchange=self.name,
            )
        tickers = await self.exchange.fetch_tickers(list(path.pairs))
        return self._evaluate(path, tickers, float(amount))

    async def execute_opportunity(self, opportunity: Opportunity) -> Dict[str, Any]:
        """
        Execute every leg of an opportunity with sequential market orders.

        Raises:
            ExecutionError: If the opportunity belongs to another exchange or
                any leg fails; completed legs are listed in ``details``.
        """
        if opportunity.exchange != self.name:
            raise ExecutionError(
                f"Opportunity from {opportunity.exchange} cannot execute on {self.name}",
                exchange=self.name,
                path_name=opportunity.path_name,
            )

        start_amount = opportunity.start_amount or self.calculation_amount
        current = float(start_amount)
        orders: List[Dict[str, Any]] = []

        logger.info(
            "🔺 EXECUTING: %s %s - %s profit",
            self.name,
            opportunity.path_name,
            format_profit(opportunity.net_profit_percent),
        )

        for leg, step in enumerate(opportunity.path.steps, start=1):
            try:
                price = opportunity.prices.get(step.pair)
                if step.side is OrderSide.BUY:
                    if not is_positive_number(price):
                        raise ExchangeError(f"No reference price for {step.pair}")
                    quantity = current / price
                else:
                    quantity = current
                order = await self.exchange.create_order(
                    step.pair, "market", step.side.value, quantity
                )
            except Exception as e:
                raise ExecutionError(
                    f"Leg {leg} ({step.side.value} {step.pair}) failed: {e}",
                    exchange=self.name,
                    path_name=opportunity.path_name,
                    details={"completed_orders": orders},
                ) from e

            filled = order.get("filled") or quantity
            average = order.get("average") or price
            orders.append(
                {
                    "leg": leg,
                    "id": order.get("id"),
                    "pair": step.pair,
                    "side": step.side.value,
                    "amount": filled,
                    "price": average,
                }
            )
            if step.side is OrderSide.BUY:
                current = filled * (1 - self.fee_rate)
            elif is_positive_number(average):
                current = filled * average * (1 - self.fee_rate)
            else:
                # The sell filled but its proceeds cannot be valued
                raise ExecutionError(
                    f"Leg {leg} ({step.side.value} {step.pair}) has no fill price",
                    exchange=self.name,
                    path_name=opportunity.path_name,
                    details={"completed_orders": orders},
                )

        profit = current - start_amount
        logger.info(
            "✅ %s %s executed: %.4f → %.4f", self.name, opportunity.path_name,
            start_amount, current,
        )
        return {
            "success": True,
            "exchange": self.name,
            "path_name": opportunity.path_name,
            "orders": orders,
            "start_amount": start_amount,
            "final_amount": current,
            "profit": profit,
            "profit_percent": profit / start_amount * 100,
            "timestamp": timestamp_to_iso(self.time_provider.current_timestamp()),
        }

    def get_stats(self) -> Dict[str, Any]:
        """Path counts and last scan information"""
        return {
            "exchange": self.name,
            "totalPaths": len(self.paths),
            "scanCount": self._scan_count,
            "lastProfitable": self._last_profitable,
            "lastScan": timestamp_to_iso(self._last_scan) if self._last_scan else None,
        }

    def _evaluate(
        self, path: TradePath, tickers: Dict[str, Dict[str, Any]], amount: float
    ) -> Opportunity:
        """Walk the path through the ticker snapshot, applying a fee per leg."""
        gross = amount
        net = amount
        prices: Dict[str, float] = {}

        for step in path.steps:
            price = self._leg_price(tickers.get(step.pair), step)
            if price is None:
                raise ExchangeError(
                    f"No usable price for {step.pair}", exchange=self.name
                )
            prices[step.pair] = price
            if step.side is OrderSide.BUY:
                gross = gross / price
                net = net / price * (1 - self.fee_rate)
            else:
                gross = gross * price
                net = net * price * (1 - self.fee_rate)

        net_profit_percent = (net - amount) / amount * 100
        return Opportunity(
            exchange=self.name,
            path=path,
            net_profit_percent=net_profit_percent,
            profitable=net_profit_percent > self.profit_threshold_percent,
            profit_percent=(gross - amount) / amount * 100,
            start_amount=amount,
            final_amount=net,
            prices=prices,
            timestamp=timestamp_to_iso(self.time_provider.current_timestamp()),
        )

    @staticmethod
    def _leg_price(ticker: Optional[Dict[str, Any]], step) -> Optional[float]:
        # Buying pays the ask, selling receives the bid; fall back to last
        if not ticker:
            return None
        preferred = ticker.get("ask") if step.side is OrderSide.BUY else ticker.get("bid")
        for candidate in (preferred, ticker.get("last")):
            if is_positive_number(candidate):
                return float(candidate)
        return None
