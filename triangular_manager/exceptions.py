"""
Exception hierarchy for the triangular arbitrage manager.

Routed single-exchange calls raise these directly; aggregate operations
(unified scans, statistics collection) catch per-exchange failures instead.
"""

from typing import Optional, Dict, Any


class TriangularManagerError(Exception):
    """Base exception for all triangular arbitrage manager errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(TriangularManagerError):
    """Raised when there are configuration-related issues."""

    pass


class ValidationError(TriangularManagerError):
    """Raised when validation of data or configuration fails."""

    pass


class ExchangeError(TriangularManagerError):
    """Raised when an exchange lookup or exchange operation fails."""

    def __init__(
        self,
        message: str,
        exchange: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.exchange = exchange


class UnknownExchangeError(ExchangeError):
    """Raised when an exchange key is not present in the registry."""

    def __init__(self, exchange: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Unknown exchange for triangular arbitrage: {exchange}",
            exchange=exchange,
            details=details,
        )


class UnavailableError(ExchangeError):
    """Raised when an exchange is registered but has no adapter loaded."""

    def __init__(
        self,
        exchange: str,
        reason: str = "triangular module not available",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(f"{exchange} {reason}", exchange=exchange, details=details)
        self.reason = reason


class ExecutionError(TriangularManagerError):
    """Raised when an adapter fails to execute an opportunity."""

    def __init__(
        self,
        message: str,
        exchange: Optional[str] = None,
        path_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.exchange = exchange
        self.path_name = path_name
