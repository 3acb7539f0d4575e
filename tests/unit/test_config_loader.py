"""Tests for the config_loader module."""

from pathlib import Path

import pytest
import yaml

from triangular_manager.config_loader import (
    ExchangeConfig,
    ManagerRuntimeConfig,
    ScanConfig,
    SizingConfig,
    get_default_config,
    load_manager_config,
    load_yaml_config,
)
from triangular_manager.constants import OrderSide
from triangular_manager.exceptions import ConfigurationError, ValidationError

EXAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "configs" / "manager.yaml"


def _path(currencies, sides=("buy", "buy", "sell"), **extra):
    start, mid, last = currencies[0], currencies[1], currencies[2]
    data = {
        "currencies": list(currencies),
        "steps": [
            {"pair": f"{mid}/{start}", "side": sides[0]},
            {"pair": f"{last}/{mid}", "side": sides[1]},
            {"pair": f"{last}/{start}", "side": sides[2]},
        ],
    }
    data.update(extra)
    return data


def _write(tmp_path, data):
    config_file = tmp_path / "manager.yaml"
    config_file.write_text(yaml.dump(data))
    return config_file


def test_load_yaml_config_valid(tmp_path):
    """Test loading a valid YAML configuration."""
    config_data = {"name": "test_manager", "scan": {"timeout_seconds": 5}}
    assert load_yaml_config(_write(tmp_path, config_data)) == config_data


def test_load_yaml_config_file_not_found():
    """Test loading config from non-existent file."""
    with pytest.raises(ConfigurationError, match="Configuration file not found"):
        load_yaml_config("/non/existent/file.yaml")


def test_load_yaml_config_empty_file(tmp_path):
    """Test loading config from empty file."""
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")

    with pytest.raises(ConfigurationError, match="Empty configuration file"):
        load_yaml_config(config_file)


def test_load_yaml_config_invalid_yaml(tmp_path):
    """Test loading config with invalid YAML."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("invalid: yaml: content: [")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_yaml_config(config_file)


def test_load_yaml_config_non_mapping(tmp_path):
    """Test that a list root is rejected."""
    config_file = tmp_path / "list.yaml"
    config_file.write_text("- a\n- b\n")

    with pytest.raises(ConfigurationError, match="must be a mapping"):
        load_yaml_config(config_file)


def test_load_manager_config_full(tmp_path, monkeypatch):
    """Test loading and normalizing a complete configuration."""
    monkeypatch.setenv("LUNO_API_KEY", "key-123")
    monkeypatch.setenv("LUNO_SECRET", "secret-456")
    config_file = _write(
        tmp_path,
        {
            "name": "unit",
            "scan": {"timeout_seconds": 12.5, "show_activity": True},
            "sizing": {"portfolio_percent": 20, "max_trade_amount": 500},
            "exchanges": {
                "luno": {
                    "name": "LUNO",
                    "ccxt_id": "luno",
                    "fee_bps": 25,
                    "api_key_env": "LUNO_API_KEY",
                    "secret_env": "LUNO_SECRET",
                    "paths": [
                        _path(["zar", "btc", "eth", "zar"], name="ZAR-BTC-ETH"),
                        _path(["ZAR", "ETH", "BTC", "ZAR"], enabled=False),
                    ],
                },
                "VALR": {"active": False},
            },
            "observability": {"metrics": {"enabled": True, "port": 9100}},
        },
    )

    config = load_manager_config(config_file)

    assert isinstance(config, ManagerRuntimeConfig)
    assert config.name == "unit"
    assert config.scan == ScanConfig(timeout_seconds=12.5, show_activity=True)
    assert config.sizing == SizingConfig(portfolio_percent=20, max_trade_amount=500)
    assert config.observability.metrics_enabled is True
    assert config.observability.metrics_port == 9100

    luno = config.get_exchange("LUNO")
    assert luno.key == "LUNO"
    assert luno.loadable is True
    assert luno.fee_bps == 25
    assert luno.api_key == "key-123"
    assert luno.secret_key == "secret-456"
    assert len(luno.paths) == 1
    assert luno.paths[0].currencies == ("ZAR", "BTC", "ETH", "ZAR")
    assert luno.paths[0].steps[2].side is OrderSide.SELL
    assert luno.paths[0].name == "ZAR-BTC-ETH"

    valr = config.get_exchange("valr")
    assert valr.name == "VALR"
    assert valr.active is False
    assert valr.loadable is False
    assert config.get_exchange("binance") is None


def test_missing_credentials_resolve_to_none(tmp_path, monkeypatch):
    monkeypatch.delenv("MISSING_KEY", raising=False)
    config_file = _write(
        tmp_path, {"exchanges": {"LUNO": {"ccxt_id": "luno", "api_key_env": "MISSING_KEY"}}}
    )

    assert load_manager_config(config_file).get_exchange("LUNO").api_key is None


@pytest.mark.parametrize(
    "data",
    [
        {"unknown_section": {}},
        {"scan": {"timeout_seconds": 0}},
        {"sizing": {"portfolio_percent": 150}},
        {"exchanges": {"LUNO": {}, "luno": {}}},
        {"exchanges": {"LUNO": {"paths": [_path(["USDT", "BTC", "ETH", "ZAR"])]}}},
        {"exchanges": {"LUNO": {"paths": [{"currencies": ["USDT", "BTC", "USDT"], "steps": []}]}}},
        {"exchanges": {"LUNO": {"paths": [_path(["USDT", "BTC", "ETH", "USDT"], sides=("buy", "hold", "sell"))]}}},
    ],
)
def test_load_manager_config_invalid(tmp_path, data):
    """Test schema violations surface as ValidationError."""
    with pytest.raises(ValidationError, match="Configuration validation failed"):
        load_manager_config(_write(tmp_path, data))


def test_example_config_loads():
    """Test the bundled example configuration."""
    config = load_manager_config(EXAMPLE_CONFIG)

    assert [exchange.key for exchange in config.exchanges] == ["LUNO", "VALR", "CHAINEX"]
    assert config.get_exchange("CHAINEX").name == "ChainEX"
    assert len(config.get_exchange("LUNO").paths) == 2


def test_get_default_config():
    """Test default configuration declares the known exchanges."""
    config = get_default_config()

    exchanges = {exchange.key: exchange for exchange in config.exchanges}
    assert set(exchanges) == {"LUNO", "VALR", "CHAINEX"}
    assert exchanges["LUNO"].active is True
    assert exchanges["VALR"].active is False
    assert exchanges["CHAINEX"].name == "ChainEX"
    assert all(not exchange.loadable for exchange in config.exchanges)
    assert config.scan.timeout_seconds == 30.0


def test_runtime_config_is_frozen():
    config = get_default_config()

    with pytest.raises(AttributeError):
        config.name = "changed"
    with pytest.raises(AttributeError):
        ExchangeConfig(key="X", name="X").active = False
