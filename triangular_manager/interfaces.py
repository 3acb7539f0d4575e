"""
Dependency injection interfaces for improved testability and modularity.

Provides lightweight protocols for time and for the optional statistics
capability of exchange adapters.
"""

import time
from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class TimeProvider(Protocol):
    """Protocol for time-related operations."""

    def current_timestamp(self) -> float:
        """Get current Unix timestamp."""
        ...

    def monotonic(self) -> float:
        """Get a monotonic clock reading for measuring durations."""
        ...


@runtime_checkable
class StatsProvider(Protocol):
    """Protocol for adapters that report their own statistics."""

    def get_stats(self) -> Dict[str, Any]:
        """Return adapter statistics."""
        ...


class SystemTimeProvider:
    """Production time provider using system time."""

    def current_timestamp(self) -> float:
        """Get current Unix timestamp."""
        return time.time()

    def monotonic(self) -> float:
        """Get a monotonic clock reading."""
        return time.perf_counter()


class DeterministicTimeProvider:
    """Deterministic time provider for testing."""

    def __init__(self, start_time: float = 1640995200.0):  # 2022-01-01
        self._current_time = start_time

    def current_timestamp(self) -> float:
        """Get current timestamp."""
        return self._current_time

    def monotonic(self) -> float:
        """Monotonic reading tied to the simulated clock."""
        return self._current_time

    def advance_time(self, seconds: float) -> None:
        """Manually advance time by specified seconds."""
        self._current_time += seconds

    def set_time(self, timestamp: float) -> None:
        """Set current time to specific timestamp."""
        self._current_time = timestamp


# Default provider - can be overridden for testing
_default_time_provider = SystemTimeProvider()


def get_time_provider() -> TimeProvider:
    """Get the current time provider instance."""
    return _default_time_provider


def set_time_provider(provider: TimeProvider) -> None:
    """Set the global time provider (mainly for testing)."""
    global _default_time_provider
    _default_time_provider = provider
