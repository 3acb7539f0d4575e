"""
Constants and enums for the triangular arbitrage manager.

Centralizes string literals and magic numbers shared by the registry,
the sizer and the bundled exchange adapter.
"""

from enum import Enum


class OrderSide(Enum):
    """Order side enumeration."""

    BUY = "buy"
    SELL = "sell"


class CapabilityKind(Enum):
    """Which optional capabilities an adapter exposes."""

    BASIC = "basic"
    WITH_STATS = "with_stats"


class ExchangeStatus(Enum):
    """Load status reported for exchanges without their own statistics."""

    LOADED = "loaded"
    NOT_LOADED = "not_loaded"


class AppliedCap(Enum):
    """Which constraint bound a sized trade amount."""

    MAX_TRADE = "maxTrade"
    PORTFOLIO = "portfolio"


class ScanFailureReason(Enum):
    """Why a single exchange contributed no results to a unified scan."""

    ERROR = "error"
    TIMEOUT = "timeout"


class SizingOutcome(Enum):
    """Outcome label recorded for each sizing decision."""

    ALLOWED = "allowed"
    CAPPED = "capped"
    REJECTED = "rejected"


# Position sizing
MIN_TRADE_AMOUNT = 10.0
DEFAULT_PORTFOLIO_PERCENT = 10.0
DEFAULT_MAX_TRADE_AMOUNT = 1000.0

# Base currencies in detection priority order
BASE_CURRENCY_PRIORITY = ("USDT", "ZAR", "USDC", "USD", "EUR", "BTC", "ETH")
DEFAULT_BASE_CURRENCY = "USDT"
PATH_CONTAINMENT_CURRENCIES = ("USDT", "ZAR")
PAIR_SEPARATORS = ("/", "-", "_")

# Scanning
DEFAULT_SCAN_TIMEOUT_SECONDS = 30.0
DEFAULT_CALCULATION_AMOUNT = 100.0
MIN_PATH_HOPS = 3

# Bundled adapter defaults
DEFAULT_FEE_BPS = 10.0
DEFAULT_PROFIT_THRESHOLD_PERCENT = 0.5

# Exchanges known before any adapter is loaded: key -> (display name, active)
DEFAULT_EXCHANGES = {
    "LUNO": ("LUNO", True),
    "VALR": ("VALR", False),
    "CHAINEX": ("ChainEX", False),
}
