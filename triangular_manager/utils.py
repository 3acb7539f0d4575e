"""
Common utilities and helper functions for the triangular arbitrage manager.

This module provides centralized helpers for timestamp handling, exchange key
normalization, numeric validation and structured logging.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Union


# Timestamp utilities
def timestamp_to_iso(timestamp: float) -> str:
    """Convert Unix timestamp to ISO 8601 string."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"


# Exchange key utilities
def normalize_exchange_key(key: Any) -> str:
    """
    Normalize an exchange identifier for registry lookups.

    Keys are case-insensitive, so 'luno', 'Luno' and ' LUNO ' all map to 'LUNO'.
    Non-string keys are converted with str() first.
    """
    return str(key).strip().upper()


# Validation utilities
def is_finite_number(value: Any) -> bool:
    """Check if value is a real, finite number (bools excluded)."""
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (ValueError, TypeError):
        return False


def is_positive_number(value: Any) -> bool:
    """Check if value is a positive number."""
    return is_finite_number(value) and float(value) > 0


def is_valid_percentage(value: Any, allow_zero: bool = True) -> bool:
    """Check if value is a valid percentage (0-100)."""
    if not is_finite_number(value):
        return False
    num = float(value)
    return (0 <= num <= 100) if allow_zero else (0 < num <= 100)


# Logging utilities
def get_logger(
    name: str,
    level: Union[str, int] = logging.INFO,
) -> logging.Logger:
    """
    Get a structured logger with consistent formatting.

    Args:
        name: Logger name (typically __name__)
        level: Logging level

    Returns:
        Configured logger with structured output
    """
    logger = logging.getLogger(name)

    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()

        format_str = (
            "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
        )

        formatter = logging.Formatter(format_str, datefmt="%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def format_profit(percent_profit: float) -> str:
    """Format a profit percentage with a sign prefix.

    Args:
        percent_profit: Profit already expressed in percent (1.5 means 1.5%).

    Returns:
        str: Formatted string, e.g. '+1.50%' or '-0.25%'.

    Examples:
        >>> format_profit(1.5)
        '+1.50%'
        >>> format_profit(-0.25)
        '-0.25%'
    """
    if percent_profit >= 0:
        return f"+{percent_profit:.2f}%"
    else:
        return f"{percent_profit:.2f}%"


def format_amount(value: float, decimals: int = 2) -> str:
    """Format a currency amount with a fixed number of decimals."""
    return f"{value:.{decimals}f}"
