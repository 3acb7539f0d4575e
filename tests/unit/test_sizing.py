"""
Unit tests for position sizing and base currency detection
"""

import logging
import math

import pytest
from prometheus_client import CollectorRegistry

from fakes import make_path
from triangular_manager.constants import AppliedCap, SizingOutcome
from triangular_manager.metrics import ScanMetrics
from triangular_manager.sizing import (
    PositionSizer,
    SizingRequest,
    detect_currency,
    format_balance_display,
    update_balance_after_trade,
)


@pytest.fixture
def sizer():
    return PositionSizer()


class TestSize:
    """Test trade amount calculation"""

    def test_max_trade_cap_binding(self, sizer):
        result = sizer.size(
            SizingRequest(balance=1000, portfolio_percent=10, max_trade_amount=50)
        )

        assert result.amount == 50
        assert result.can_trade is True
        assert result.warning is not None
        assert "capped at 50.00" in result.warning
        assert result.reason is None
        assert result.breakdown.applied_cap is AppliedCap.MAX_TRADE
        assert result.breakdown.portfolio_amount == 100
        assert result.outcome is SizingOutcome.CAPPED

    def test_below_minimum_is_rejected(self, sizer):
        result = sizer.size(
            SizingRequest(balance=50, portfolio_percent=10, max_trade_amount=1000)
        )

        assert result.can_trade is False
        assert result.amount == 5
        assert result.reason is not None
        assert result.warning is None
        assert "Insufficient USDT balance" in result.reason
        assert result.outcome is SizingOutcome.REJECTED

    def test_portfolio_percent_within_cap(self, sizer):
        result = sizer.size(
            SizingRequest(balance=1000, portfolio_percent=5, max_trade_amount=1000)
        )

        assert result.amount == 50
        assert result.can_trade is True
        assert result.warning is None
        assert result.reason is None
        assert result.breakdown.applied_cap is AppliedCap.PORTFOLIO
        assert result.outcome is SizingOutcome.ALLOWED

    def test_equal_values_resolve_to_portfolio(self, sizer):
        result = sizer.size(
            SizingRequest(balance=500, portfolio_percent=10, max_trade_amount=50)
        )

        assert result.amount == 50
        assert result.warning is None
        assert result.breakdown.applied_cap is AppliedCap.PORTFOLIO

    def test_exact_minimum_can_trade(self, sizer):
        result = sizer.size(
            SizingRequest(balance=100, portfolio_percent=10, max_trade_amount=1000)
        )
        assert result.amount == 10
        assert result.can_trade is True

    def test_cap_below_minimum_rejects_without_warning(self, sizer):
        result = sizer.size(
            SizingRequest(balance=1000, portfolio_percent=10, max_trade_amount=5)
        )

        assert result.can_trade is False
        assert result.amount == 5
        assert result.warning is None
        assert result.reason is not None
        assert result.breakdown.applied_cap is AppliedCap.MAX_TRADE

    def test_currency_echoed_in_breakdown(self, sizer):
        result = sizer.size(
            SizingRequest(
                balance=20000, portfolio_percent=10, max_trade_amount=500, currency="ZAR"
            )
        )

        assert result.breakdown.currency == "ZAR"
        assert "ZAR" in result.warning

    def test_custom_minimum(self):
        sizer = PositionSizer(min_trade_amount=100)
        result = sizer.size(
            SizingRequest(balance=500, portfolio_percent=10, max_trade_amount=1000)
        )
        assert result.can_trade is False
        assert result.breakdown.min_trade_amount == 100

    @pytest.mark.parametrize(
        "balance,percent,max_trade",
        [
            (-1, 10, 100),
            (math.nan, 10, 100),
            ("lots", 10, 100),
            (1000, 150, 100),
            (1000, -5, 100),
            (1000, 10, -1),
            (1000, 10, math.inf),
        ],
    )
    def test_invalid_input_rejected_without_raising(self, sizer, balance, percent, max_trade):
        result = sizer.size(
            SizingRequest(balance=balance, portfolio_percent=percent, max_trade_amount=max_trade)
        )

        assert result.can_trade is False
        assert result.amount == 0.0
        assert result.reason.startswith("Invalid sizing request")
        assert result.warning is None

    def test_lost_opportunity_logged_at_info(self, sizer, caplog):
        with caplog.at_level(logging.INFO):
            sizer.size(
                SizingRequest(
                    balance=50,
                    portfolio_percent=10,
                    max_trade_amount=1000,
                    exchange="LUNO",
                    path=make_path("USDT"),
                )
            )

        records = [r for r in caplog.records if "Lost opportunity" in r.getMessage()]
        assert len(records) == 1
        assert records[0].levelno == logging.INFO
        assert "LUNO" in records[0].getMessage()

    def test_cap_logged_as_warning(self, sizer, caplog):
        with caplog.at_level(logging.WARNING):
            sizer.size(SizingRequest(balance=1000, portfolio_percent=10, max_trade_amount=50))

        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_decisions_recorded_in_metrics(self):
        metrics = ScanMetrics(CollectorRegistry())
        sizer = PositionSizer(metrics=metrics)

        sizer.size(SizingRequest(balance=1000, portfolio_percent=10, max_trade_amount=50))
        sizer.size(SizingRequest(balance=50, portfolio_percent=10, max_trade_amount=1000))

        counter = metrics.sizing_decisions_total
        assert counter.labels(currency="USDT", outcome="capped")._value.get() == 1
        assert counter.labels(currency="USDT", outcome="rejected")._value.get() == 1


class TestDetectCurrency:
    """Test base currency detection"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (["USDT", "BTC", "ETH", "USDT"], "USDT"),
            (["ZAR", "BTC", "ETH", "ZAR"], "ZAR"),
            (("eur", "BTC", "ETH", "eur"), "EUR"),
            (["BTC", "ETH", "USDT", "BTC"], "BTC"),
            (["XZARX", "BTC", "ETH", "XZARX"], "ZAR"),
            (["DOGE", "BTC", "ETH", "DOGE"], "USDT"),
            ([], "USDT"),
        ],
    )
    def test_path_input(self, value, expected):
        assert detect_currency(value) == expected

    def test_trade_path_input(self):
        assert detect_currency(make_path("ZAR")) == "ZAR"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("BTCUSDT", "USDT"),
            ("BTCZAR", "ZAR"),
            ("", "USDT"),
            ("zar", "ZAR"),
            ("BTC/USDC", "USDC"),
            ("eth-eur", "EUR"),
            ("ETH_BTC", "BTC"),
            ("USDTXYZ", "USDT"),
            ("DOGEXRP", "USDT"),
            ("/-_", "USDT"),
        ],
    )
    def test_string_input(self, value, expected):
        assert detect_currency(value) == expected

    @pytest.mark.parametrize("value", [None, 42, 3.5, {"USDT": 1}])
    def test_unclassifiable_input_defaults(self, value):
        assert detect_currency(value) == "USDT"

    def test_sizer_delegates(self, sizer):
        assert sizer.detect_currency("BTCZAR") == "ZAR"


class TestBalanceHelpers:
    """Test balance bookkeeping helpers"""

    def test_update_balance_adds_profit(self):
        assert update_balance_after_trade(1000.0, 100.0, 2.5) == 1002.5
        assert update_balance_after_trade(1000.0, 100.0, -1.0) == 999.0

    def test_format_gain(self):
        display = format_balance_display(1000.0, 1050.0, "USDT")

        assert display.starting == "USDT 1000.00"
        assert display.current == "USDT 1050.00"
        assert display.change == "+USDT 50.00"
        assert display.change_percent == "+5.00%"
        assert display.is_gain is True

    def test_format_loss(self):
        display = format_balance_display(200.0, 190.0, "ZAR")

        assert display.change == "ZAR -10.00"
        assert display.change_percent == "-5.00%"
        assert display.is_gain is False

    def test_format_zero_start(self):
        display = format_balance_display(0.0, 10.0, "USDT")
        assert display.change_percent == "+0.00%"
