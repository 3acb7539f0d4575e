"""
Value objects exchanged between adapters, the coordinator and the sizer.

All types here are frozen dataclasses, created fresh for every scan or sizing
call and never mutated afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from triangular_manager.constants import MIN_PATH_HOPS, OrderSide
from triangular_manager.exceptions import ValidationError

# Adapter results are passed through unchanged by the dispatcher.
ProfitResult = Any
ExecutionResult = Any


@dataclass(frozen=True)
class TradeStep:
    """One hop of a triangular path: a trading pair and the side to take."""

    pair: str
    side: OrderSide

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TradeStep":
        side = data.get("side", "buy")
        return cls(pair=str(data["pair"]), side=OrderSide(str(side).lower()))


@dataclass(frozen=True)
class TradePath:
    """
    A closed currency cycle with one trading step per hop.

    ``currencies`` lists the cycle including the return to its start, e.g.
    ``("USDT", "BTC", "ETH", "USDT")`` for three hops.
    """

    currencies: Tuple[str, ...]
    steps: Tuple[TradeStep, ...]
    name: Optional[str] = None

    def __post_init__(self):
        currencies = tuple(self.currencies)
        steps = tuple(self.steps)
        object.__setattr__(self, "currencies", currencies)
        object.__setattr__(self, "steps", steps)

        if len(steps) < MIN_PATH_HOPS:
            raise ValidationError(
                f"Trade path needs at least {MIN_PATH_HOPS} hops, got {len(steps)}",
                {"currencies": list(currencies)},
            )
        if len(currencies) != len(steps) + 1:
            raise ValidationError(
                "Trade path must list one more currency than steps",
                {"currencies": list(currencies), "steps": len(steps)},
            )
        if currencies[0] != currencies[-1]:
            raise ValidationError(
                f"Trade path must return to its start currency {currencies[0]}",
                {"currencies": list(currencies)},
            )

    @property
    def start_currency(self) -> str:
        return self.currencies[0]

    @property
    def pairs(self) -> Tuple[str, ...]:
        return tuple(step.pair for step in self.steps)

    @property
    def display_name(self) -> str:
        return self.name or " → ".join(self.currencies)


@dataclass(frozen=True)
class Opportunity:
    """A triangular arbitrage opportunity reported by one exchange adapter."""

    exchange: str
    path: TradePath
    net_profit_percent: float
    profitable: bool
    profit_percent: Optional[float] = None
    start_amount: Optional[float] = None
    final_amount: Optional[float] = None
    prices: Dict[str, float] = field(default_factory=dict)
    timestamp: Optional[str] = None

    @property
    def currencies(self) -> Tuple[str, ...]:
        return self.path.currencies

    @property
    def path_name(self) -> str:
        return self.path.display_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exchange": self.exchange,
            "pathName": self.path_name,
            "currencies": list(self.path.currencies),
            "steps": [
                {"pair": step.pair, "side": step.side.value} for step in self.path.steps
            ],
            "netProfitPercent": self.net_profit_percent,
            "profitable": self.profitable,
            "profitPercent": self.profit_percent,
            "startAmount": self.start_amount,
            "finalAmount": self.final_amount,
            "prices": dict(self.prices),
            "timestamp": self.timestamp,
        }
