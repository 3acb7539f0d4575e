from .base_adapter import AdapterCapability, TriangularAdapter, basic, capability_for, with_stats
from .ccxt_adapter import CcxtTriangularAdapter, create_ccxt_exchange

__all__ = [
    "AdapterCapability",
    "TriangularAdapter",
    "CcxtTriangularAdapter",
    "basic",
    "capability_for",
    "create_ccxt_exchange",
    "with_stats",
]
