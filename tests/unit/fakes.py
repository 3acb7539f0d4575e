"""Adapter doubles and value builders shared by the unit tests."""

import asyncio

from triangular_manager.constants import OrderSide
from triangular_manager.models import Opportunity, TradePath, TradeStep


def make_path(start="USDT", name=None):
    """Three-hop cycle start -> BTC -> ETH -> start."""
    return TradePath(
        currencies=(start, "BTC", "ETH", start),
        steps=(
            TradeStep(f"BTC/{start}", OrderSide.BUY),
            TradeStep("ETH/BTC", OrderSide.BUY),
            TradeStep(f"ETH/{start}", OrderSide.SELL),
        ),
        name=name,
    )


def make_opportunity(exchange, net_profit_percent, profitable=None, start="USDT", name=None):
    if profitable is None:
        profitable = net_profit_percent > 0.5
    return Opportunity(
        exchange=exchange,
        path=make_path(start, name),
        net_profit_percent=net_profit_percent,
        profitable=profitable,
    )


class FakeAdapter:
    """Adapter without a statistics capability."""

    def __init__(self, name, opportunities=None, scan_error=None, delay=0.0):
        self.name = name
        self.opportunities = list(opportunities or [])
        self.scan_error = scan_error
        self.delay = delay
        self.scan_calls = []
        self.profit_calls = []
        self.executed = []
        self.initialized = False
        self.closed = False

    async def initialize(self):
        self.initialized = True

    async def close(self):
        self.closed = True

    async def scan_opportunities(self, show_activity=False):
        self.scan_calls.append(show_activity)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.scan_error is not None:
            raise self.scan_error
        return list(self.opportunities)

    async def calculate_profit(self, path, amount):
        self.profit_calls.append((path, amount))
        return {"exchange": self.name, "path": path, "amount": amount}

    async def execute_opportunity(self, opportunity):
        self.executed.append(opportunity)
        return {"exchange": self.name, "success": True}


class StatsAdapter(FakeAdapter):
    """Adapter that reports its own statistics."""

    def __init__(self, name, stats=None, stats_error=None, **kwargs):
        super().__init__(name, **kwargs)
        self.stats = stats if stats is not None else {"totalPaths": 2, "lastScan": None}
        self.stats_error = stats_error

    def get_stats(self):
        if self.stats_error is not None:
            raise self.stats_error
        return self.stats
