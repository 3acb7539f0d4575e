"""
Exchange registry for triangular arbitrage adapters.

Holds one entry per exchange key with its adapter capability and the
operator-controlled ``active`` flag. The registry is an explicit value owned
by the composition root and shared by reference with the dispatcher,
coordinator and statistics aggregator. It performs no I/O.
"""

import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from triangular_manager.exceptions import UnknownExchangeError, ValidationError
from triangular_manager.exchanges.base_adapter import AdapterCapability, capability_for
from triangular_manager.utils import get_logger, normalize_exchange_key

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    """Immutable view of one registry row."""

    key: str
    name: str
    capability: Optional[AdapterCapability] = None
    active: bool = True

    @property
    def available(self) -> bool:
        return self.capability is not None

    @property
    def is_scannable(self) -> bool:
        # active is meaningless without a loaded adapter
        return self.available and self.active

    @property
    def adapter(self) -> Any:
        return self.capability.handle if self.capability is not None else None


@dataclass(frozen=True)
class ExchangeListing:
    """Public listing of an available exchange."""

    key: str
    name: str
    active: bool


class ExchangeRegistry:
    """
    Table of exchange keys to adapter capabilities and flags.

    All reads and writes go through a single lock so that ``snapshot()``
    observes a consistent table even if configuration changes concurrently.
    """

    def __init__(self):
        self._entries: Dict[str, RegistryEntry] = {}
        self._lock = threading.RLock()

    def declare(self, key: str, name: Optional[str] = None, active: bool = True) -> RegistryEntry:
        """
        Declare an exchange whose adapter is not loaded yet.

        Existing entries keep their adapter; only name and flag are updated.
        """
        normalized = self._validate_key(key)
        with self._lock:
            existing = self._entries.get(normalized)
            if existing is not None:
                entry = replace(existing, name=name or existing.name, active=active)
            else:
                entry = RegistryEntry(key=normalized, name=name or normalized, active=active)
            self._entries[normalized] = entry
        logger.debug("Declared exchange %s (active=%s)", normalized, active)
        return entry

    def register(
        self,
        key: str,
        adapter: Any,
        name: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> RegistryEntry:
        """
        Register (or replace) the adapter for an exchange key.

        Registration is an idempotent overwrite: a key never has more than
        one entry. A non-null adapter marks the entry available; a null
        adapter leaves it declared but unavailable. When ``active`` is not
        given, an existing entry keeps its flag and a new entry is active.
        """
        normalized = self._validate_key(key)
        capability = capability_for(adapter) if adapter is not None else None

        with self._lock:
            existing = self._entries.get(normalized)
            if existing is not None:
                entry = replace(
                    existing,
                    name=name or existing.name,
                    capability=capability,
                    active=existing.active if active is None else active,
                )
            else:
                entry = RegistryEntry(
                    key=normalized,
                    name=name or normalized,
                    capability=capability,
                    active=True if active is None else active,
                )
            self._entries[normalized] = entry

        if entry.available:
            logger.info(
                "✅ %s triangular module registered (%s)",
                entry.name,
                entry.capability.kind.value,
            )
        return entry

    def set_active(self, key: str, active: bool) -> bool:
        """
        Enable or disable an exchange.

        Raises:
            UnknownExchangeError: If the key is not registered
        """
        normalized = normalize_exchange_key(key)
        with self._lock:
            existing = self._entries.get(normalized)
            if existing is None:
                raise UnknownExchangeError(str(key))
            self._entries[normalized] = replace(existing, active=bool(active))

        logger.info(
            "%s %s triangular arbitrage",
            "✅ Enabled" if active else "⏸️ Disabled",
            existing.name,
        )
        return True

    def get(self, key: str) -> Optional[RegistryEntry]:
        """Look up an entry by case-insensitive key."""
        normalized = normalize_exchange_key(key)
        with self._lock:
            return self._entries.get(normalized)

    def list(self) -> List[ExchangeListing]:
        """List every available exchange, active or not."""
        with self._lock:
            return [
                ExchangeListing(key=entry.key, name=entry.name, active=entry.active)
                for entry in self._entries.values()
                if entry.available
            ]

    def snapshot(self) -> Tuple[RegistryEntry, ...]:
        """Return a consistent, immutable copy of every entry."""
        with self._lock:
            return tuple(self._entries.values())

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @staticmethod
    def _validate_key(key: Any) -> str:
        normalized = normalize_exchange_key(key) if key is not None else ""
        if not normalized:
            raise ValidationError("Exchange key must be a non-empty string")
        return normalized
