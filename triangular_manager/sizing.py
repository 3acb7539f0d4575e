"""
Portfolio-percentage position sizing with an absolute safety cap.

Trade amount = MIN(balance * portfolio_percent / 100, max_trade_amount).

Balances are per currency (a USDT balance never funds a ZAR path). Every
outcome is reported through the returned SizingResult: an amount below the
minimum is a logged "lost opportunity", a binding cap is a warning, and
neither blocks later scans.
"""

from collections import abc
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from triangular_manager.constants import (
    BASE_CURRENCY_PRIORITY,
    DEFAULT_BASE_CURRENCY,
    MIN_TRADE_AMOUNT,
    PAIR_SEPARATORS,
    PATH_CONTAINMENT_CURRENCIES,
    AppliedCap,
    SizingOutcome,
)
from triangular_manager.metrics import ScanMetrics
from triangular_manager.models import TradePath
from triangular_manager.utils import (
    format_amount,
    get_logger,
    is_finite_number,
    is_valid_percentage,
)

logger = get_logger(__name__)

PathLike = Union[TradePath, Sequence[str]]


@dataclass(frozen=True)
class SizingRequest:
    """Inputs for one sizing decision."""

    balance: float
    portfolio_percent: float
    max_trade_amount: float
    currency: str = DEFAULT_BASE_CURRENCY
    exchange: Optional[str] = None
    path: Optional[PathLike] = None
    profit_percent: Optional[float] = None


@dataclass(frozen=True)
class SizingBreakdown:
    """Echo of the inputs plus the constraint that bound the amount."""

    balance: float
    portfolio_percent: float
    portfolio_amount: float
    max_trade_amount: float
    min_trade_amount: float
    applied_cap: AppliedCap
    currency: str


@dataclass(frozen=True)
class SizingResult:
    """Outcome of a sizing decision. Only one of warning/reason is ever set."""

    amount: float
    can_trade: bool
    breakdown: SizingBreakdown
    warning: Optional[str] = None
    reason: Optional[str] = None

    @property
    def outcome(self) -> SizingOutcome:
        if not self.can_trade:
            return SizingOutcome.REJECTED
        if self.warning is not None:
            return SizingOutcome.CAPPED
        return SizingOutcome.ALLOWED


@dataclass(frozen=True)
class BalanceDisplay:
    """Formatted balance change strings."""

    starting: str
    current: str
    change: str
    change_percent: str
    is_gain: bool


class PositionSizer:
    """Converts a balance and sizing parameters into a bounded trade amount."""

    def __init__(
        self,
        min_trade_amount: float = MIN_TRADE_AMOUNT,
        metrics: Optional[ScanMetrics] = None,
    ):
        self.min_trade_amount = min_trade_amount
        self.metrics = metrics

    def size(self, request: SizingRequest) -> SizingResult:
        """
        Calculate the trade amount for one opportunity.

        Never raises: invalid inputs are reported as a rejection with a reason.

        Args:
            request: Balance, portfolio percent, cap and currency context

        Returns:
            SizingResult with the amount, the trade decision and a breakdown
        """
        invalid = self._invalid_input(request)
        if invalid is not None:
            return self._record(request, self._reject_invalid(request, invalid))

        balance = float(request.balance)
        percent = float(request.portfolio_percent)
        max_trade = float(request.max_trade_amount)
        currency = request.currency

        portfolio_amount = balance * percent / 100
        amount = min(portfolio_amount, max_trade)
        cap_binding = portfolio_amount > max_trade

        breakdown = SizingBreakdown(
            balance=balance,
            portfolio_percent=percent,
            portfolio_amount=portfolio_amount,
            max_trade_amount=max_trade,
            min_trade_amount=self.min_trade_amount,
            applied_cap=AppliedCap.MAX_TRADE if cap_binding else AppliedCap.PORTFOLIO,
            currency=currency,
        )

        if amount < self.min_trade_amount:
            reason = (
                f"Insufficient {currency} balance: {format_amount(balance)} "
                f"({percent:g}% = {format_amount(portfolio_amount)}, "
                f"min {format_amount(self.min_trade_amount)} required)"
            )
            logger.info(
                "Lost opportunity - insufficient balance | exchange=%s path=%s "
                "currency=%s balance=%s portfolio_percent=%s portfolio_amount=%s "
                "min_required=%s profit_if_funded=%s",
                request.exchange or "unknown",
                _describe_path(request.path),
                currency,
                format_amount(balance),
                percent,
                format_amount(portfolio_amount),
                self.min_trade_amount,
                request.profit_percent or 0,
            )
            result = SizingResult(
                amount=amount, can_trade=False, breakdown=breakdown, reason=reason
            )
            return self._record(request, result)

        warning = None
        if cap_binding:
            warning = (
                f"Max trade cap limiting: Portfolio {percent:g}% = "
                f"{format_amount(portfolio_amount)} {currency}, capped at "
                f"{format_amount(max_trade)} {currency}"
            )
            logger.warning(
                "Trade amount capped by max_trade_amount | exchange=%s path=%s "
                "currency=%s portfolio_amount=%s max_trade_amount=%s capped_amount=%s",
                request.exchange or "unknown",
                _describe_path(request.path),
                currency,
                format_amount(portfolio_amount),
                format_amount(max_trade),
                format_amount(amount),
            )

        result = SizingResult(
            amount=amount, can_trade=True, breakdown=breakdown, warning=warning
        )
        return self._record(request, result)

    def detect_currency(self, value: Any) -> str:
        """Detect the base currency of a path, pair or currency code."""
        return detect_currency(value)

    def _invalid_input(self, request: SizingRequest) -> Optional[str]:
        if not is_finite_number(request.balance) or float(request.balance) < 0:
            return f"balance must be a non-negative number, got {request.balance!r}"
        if not is_valid_percentage(request.portfolio_percent):
            return (
                "portfolio_percent must be between 0 and 100, "
                f"got {request.portfolio_percent!r}"
            )
        if (
            not is_finite_number(request.max_trade_amount)
            or float(request.max_trade_amount) < 0
        ):
            return (
                "max_trade_amount must be a non-negative number, "
                f"got {request.max_trade_amount!r}"
            )
        return None

    def _reject_invalid(self, request: SizingRequest, problem: str) -> SizingResult:
        logger.warning("Rejected sizing request: %s", problem)
        breakdown = SizingBreakdown(
            balance=_as_float(request.balance),
            portfolio_percent=_as_float(request.portfolio_percent),
            portfolio_amount=0.0,
            max_trade_amount=_as_float(request.max_trade_amount),
            min_trade_amount=self.min_trade_amount,
            applied_cap=AppliedCap.PORTFOLIO,
            currency=request.currency,
        )
        return SizingResult(
            amount=0.0,
            can_trade=False,
            breakdown=breakdown,
            reason=f"Invalid sizing request: {problem}",
        )

    def _record(self, request: SizingRequest, result: SizingResult) -> SizingResult:
        if self.metrics:
            self.metrics.record_sizing_decision(request.currency, result.outcome)
        return result


def detect_currency(value: Any) -> str:
    """
    Detect the base currency from a triangular path, a trading pair or a
    plain currency code.

    Paths (a TradePath or a sequence such as ["USDT", "BTC", "ETH", "USDT"])
    are classified by their start currency. Strings such as "BTCUSDT",
    "BTC/USDT" or "ZAR" are matched against the priority list, first as the
    whole code, then as a trailing quote currency, then as a leading one.
    Anything unrecognised falls back to USDT; this function never raises.
    """
    if isinstance(value, TradePath):
        return _currency_from_path(value.currencies)
    if isinstance(value, str):
        return _currency_from_string(value)
    if isinstance(value, abc.Sequence):
        return _currency_from_path(value)
    return DEFAULT_BASE_CURRENCY


def _currency_from_path(currencies: Sequence[Any]) -> str:
    if len(currencies) < 1 or not isinstance(currencies[0], str):
        return DEFAULT_BASE_CURRENCY

    start = currencies[0].strip().upper()
    if start in BASE_CURRENCY_PRIORITY:
        return start
    for currency in PATH_CONTAINMENT_CURRENCIES:
        if currency in start:
            return currency
    return DEFAULT_BASE_CURRENCY


def _currency_from_string(value: str) -> str:
    cleaned = value.strip().upper()
    for separator in PAIR_SEPARATORS:
        cleaned = cleaned.replace(separator, "")
    if not cleaned:
        return DEFAULT_BASE_CURRENCY

    if cleaned in BASE_CURRENCY_PRIORITY:
        return cleaned
    # Quote currency is conventionally the trailing token
    for currency in BASE_CURRENCY_PRIORITY:
        if cleaned.endswith(currency):
            return currency
    for currency in BASE_CURRENCY_PRIORITY:
        if cleaned.startswith(currency):
            return currency
    return DEFAULT_BASE_CURRENCY


def update_balance_after_trade(
    current_balance: float, amount_used: float, profit_amount: float
) -> float:
    """
    Balance after a completed cycle.

    The traded amount returns to the same currency at the end of the cycle,
    so only the realised profit (or loss) changes the balance.
    """
    return current_balance + profit_amount


def format_balance_display(
    starting_balance: float, current_balance: float, currency: str
) -> BalanceDisplay:
    """Format starting/current balances and the change between them."""
    change = current_balance - starting_balance
    change_percent = (
        (change / starting_balance) * 100 if starting_balance > 0 else 0.0
    )
    sign = "+" if change >= 0 else ""

    return BalanceDisplay(
        starting=f"{currency} {format_amount(starting_balance)}",
        current=f"{currency} {format_amount(current_balance)}",
        change=f"{sign}{currency} {format_amount(change)}",
        change_percent=f"{sign}{format_amount(change_percent)}%",
        is_gain=change >= 0,
    )


def _describe_path(path: Optional[PathLike]) -> str:
    if path is None:
        return "unknown"
    if isinstance(path, TradePath):
        return "→".join(path.currencies)
    if isinstance(path, str):
        return path
    return "→".join(str(currency) for currency in path)


def _as_float(value: Any) -> float:
    return float(value) if is_finite_number(value) else 0.0
