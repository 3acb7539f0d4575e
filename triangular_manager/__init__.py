"""
Triangular Arbitrage Manager.

Coordinates triangular arbitrage across several exchanges: a registry of
per-exchange adapters, routing of single-exchange calls, unified concurrent
scanning, portfolio-percentage position sizing and statistics aggregation.
"""

PROJECT_NAME = "Triangular-Arbitrage-Manager"
VERSION = "1.0.0"

# Export main components for easier imports
from triangular_manager.coordinator import ScanCoordinator, ScanSummary
from triangular_manager.dispatcher import RouteDispatcher
from triangular_manager.exceptions import (
    ConfigurationError,
    ExchangeError,
    ExecutionError,
    TriangularManagerError,
    UnavailableError,
    UnknownExchangeError,
    ValidationError,
)
from triangular_manager.manager import TriangularManager
from triangular_manager.models import Opportunity, TradePath, TradeStep
from triangular_manager.registry import ExchangeRegistry
from triangular_manager.sizing import (
    PositionSizer,
    SizingRequest,
    SizingResult,
    detect_currency,
)
from triangular_manager.stats import ManagerStats, StatsAggregator

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "TriangularManager",
    "ExchangeRegistry",
    "RouteDispatcher",
    "ScanCoordinator",
    "ScanSummary",
    "PositionSizer",
    "SizingRequest",
    "SizingResult",
    "detect_currency",
    "StatsAggregator",
    "ManagerStats",
    "Opportunity",
    "TradePath",
    "TradeStep",
    "TriangularManagerError",
    "ConfigurationError",
    "ValidationError",
    "ExchangeError",
    "UnknownExchangeError",
    "UnavailableError",
    "ExecutionError",
]
