"""
Unit tests for single-exchange routing
"""

import pytest

from fakes import FakeAdapter, make_opportunity, make_path
from triangular_manager.dispatcher import RouteDispatcher
from triangular_manager.exceptions import UnavailableError, UnknownExchangeError
from triangular_manager.registry import ExchangeRegistry


@pytest.fixture
def registry():
    return ExchangeRegistry()


@pytest.fixture
def dispatcher(registry):
    return RouteDispatcher(registry)


class TestRouteScan:
    """Test routed scans"""

    @pytest.mark.asyncio
    async def test_unknown_exchange_raises(self, dispatcher):
        with pytest.raises(UnknownExchangeError):
            await dispatcher.route_scan("unknown")

    @pytest.mark.asyncio
    async def test_unavailable_exchange_raises(self, registry, dispatcher):
        registry.declare("VALR")

        with pytest.raises(UnavailableError) as exc_info:
            await dispatcher.route_scan("VALR")

        assert exc_info.value.exchange == "VALR"
        assert "not available" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_disabled_exchange_returns_empty_list(self, registry, dispatcher):
        adapter = FakeAdapter("LUNO", opportunities=[make_opportunity("LUNO", 1.0)])
        registry.register("LUNO", adapter, active=False)

        result = await dispatcher.route_scan("LUNO")

        assert result == []
        assert adapter.scan_calls == []

    @pytest.mark.asyncio
    async def test_scan_forwards_unchanged(self, registry, dispatcher):
        opportunities = [make_opportunity("LUNO", 0.2), make_opportunity("LUNO", 1.4)]
        adapter = FakeAdapter("LUNO", opportunities=opportunities)
        registry.register("LUNO", adapter)

        result = await dispatcher.route_scan("luno", show_activity=True)

        assert result == opportunities
        assert adapter.scan_calls == [True]

    @pytest.mark.asyncio
    async def test_adapter_failure_propagates(self, registry, dispatcher):
        registry.register("LUNO", FakeAdapter("LUNO", scan_error=ConnectionError("down")))

        with pytest.raises(ConnectionError):
            await dispatcher.route_scan("LUNO")


class TestRouteProfitAndExecute:
    """Test routed profit calculation and execution"""

    @pytest.mark.asyncio
    async def test_calculate_profit_forwards(self, registry, dispatcher):
        adapter = FakeAdapter("LUNO")
        registry.register("LUNO", adapter)
        path = make_path("ZAR")

        result = await dispatcher.route_calculate_profit("LUNO", path, 250.0)

        assert result == {"exchange": "LUNO", "path": path, "amount": 250.0}
        assert adapter.profit_calls == [(path, 250.0)]

    @pytest.mark.asyncio
    async def test_calculate_profit_default_amount(self, registry, dispatcher):
        adapter = FakeAdapter("LUNO")
        registry.register("LUNO", adapter)

        await dispatcher.route_calculate_profit("LUNO", make_path())

        assert adapter.profit_calls[0][1] == 100.0

    @pytest.mark.asyncio
    async def test_execute_forwards(self, registry, dispatcher):
        adapter = FakeAdapter("LUNO")
        registry.register("LUNO", adapter)
        opportunity = make_opportunity("LUNO", 1.2)

        result = await dispatcher.route_execute("LUNO", opportunity)

        assert result == {"exchange": "LUNO", "success": True}
        assert adapter.executed == [opportunity]

    @pytest.mark.asyncio
    async def test_execute_unknown_raises(self, dispatcher):
        with pytest.raises(UnknownExchangeError):
            await dispatcher.route_execute("nope", make_opportunity("nope", 1.0))

    @pytest.mark.asyncio
    async def test_profit_unavailable_raises(self, registry, dispatcher):
        registry.declare("CHAINEX", "ChainEX")

        with pytest.raises(UnavailableError):
            await dispatcher.route_calculate_profit("CHAINEX", make_path())

    @pytest.mark.asyncio
    async def test_disabled_exchange_still_forwarded_by_default(self, registry, dispatcher):
        adapter = FakeAdapter("LUNO")
        registry.register("LUNO", adapter, active=False)

        await dispatcher.route_calculate_profit("LUNO", make_path(), 10.0)

        assert len(adapter.profit_calls) == 1

    @pytest.mark.asyncio
    async def test_disabled_exchange_rejected_when_configured(self, registry):
        dispatcher = RouteDispatcher(registry, reject_disabled=True)
        adapter = FakeAdapter("LUNO")
        registry.register("LUNO", adapter, active=False)

        with pytest.raises(UnavailableError) as exc_info:
            await dispatcher.route_execute("LUNO", make_opportunity("LUNO", 1.0))

        assert exc_info.value.reason == "triangular module is disabled"
        assert adapter.executed == []
        # Scans stay a soft no-op
        assert await dispatcher.route_scan("LUNO") == []
