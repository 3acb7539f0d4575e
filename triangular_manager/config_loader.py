"""
Configuration loading and normalization for the triangular arbitrage manager.

Provides a centralized way to load, validate, and normalize configuration
files with proper defaults and read-only access.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from .config_schema import ExchangeSchema, ManagerConfig, validate_manager_config
from .constants import (
    DEFAULT_CALCULATION_AMOUNT,
    DEFAULT_EXCHANGES,
    DEFAULT_FEE_BPS,
    DEFAULT_MAX_TRADE_AMOUNT,
    DEFAULT_PORTFOLIO_PERCENT,
    DEFAULT_PROFIT_THRESHOLD_PERCENT,
    DEFAULT_SCAN_TIMEOUT_SECONDS,
    MIN_TRADE_AMOUNT,
    OrderSide,
)
from .exceptions import ConfigurationError, ValidationError
from .models import TradePath, TradeStep
from .utils import normalize_exchange_key


@dataclass(frozen=True)
class ScanConfig:
    """Normalized unified scan configuration."""

    timeout_seconds: float = DEFAULT_SCAN_TIMEOUT_SECONDS
    show_activity: bool = False
    reject_disabled_routes: bool = False


@dataclass(frozen=True)
class SizingConfig:
    """Normalized position sizing configuration."""

    portfolio_percent: float = DEFAULT_PORTFOLIO_PERCENT
    max_trade_amount: float = DEFAULT_MAX_TRADE_AMOUNT
    min_trade_amount: float = MIN_TRADE_AMOUNT


@dataclass(frozen=True)
class ObservabilityConfig:
    """Normalized observability configuration."""

    metrics_enabled: bool = False
    metrics_port: int = 8000
    metrics_path: str = "/metrics"
    log_level: str = "INFO"


@dataclass(frozen=True)
class ExchangeConfig:
    """Normalized exchange configuration."""

    key: str
    name: str
    ccxt_id: Optional[str] = None
    active: bool = True
    fee_bps: float = DEFAULT_FEE_BPS
    profit_threshold_percent: float = DEFAULT_PROFIT_THRESHOLD_PERCENT
    calculation_amount: float = DEFAULT_CALCULATION_AMOUNT
    api_key: Optional[str] = None
    secret_key: Optional[str] = None
    paths: Tuple[TradePath, ...] = ()

    @property
    def loadable(self) -> bool:
        """Whether an adapter can be built for this exchange."""
        return self.ccxt_id is not None


@dataclass(frozen=True)
class ManagerRuntimeConfig:
    """Immutable runtime configuration object."""

    name: str = "triangular_manager"
    exchanges: Tuple[ExchangeConfig, ...] = ()
    scan: ScanConfig = field(default_factory=ScanConfig)
    sizing: SizingConfig = field(default_factory=SizingConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    def get_exchange(self, key: str) -> Optional[ExchangeConfig]:
        normalized = normalize_exchange_key(key)
        for exchange in self.exchanges:
            if exchange.key == normalized:
                return exchange
        return None


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and parse YAML configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to load config {config_path}: {e}")

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"Configuration root must be a mapping: {config_path}"
        )

    return config_dict


def _resolve_secret(env_name: Optional[str]) -> Optional[str]:
    """Read a credential from the environment by variable name."""
    if not env_name:
        return None
    return os.environ.get(env_name)


def _normalize_exchange_config(key: str, schema: ExchangeSchema) -> ExchangeConfig:
    """Normalize one exchange section."""
    normalized_key = normalize_exchange_key(key)
    paths = tuple(
        TradePath(
            currencies=tuple(path.currencies),
            steps=tuple(
                TradeStep(pair=step.pair, side=OrderSide(step.side))
                for step in path.steps
            ),
            name=path.name,
        )
        for path in schema.paths
        if path.enabled
    )

    return ExchangeConfig(
        key=normalized_key,
        name=schema.name or normalized_key,
        ccxt_id=schema.ccxt_id,
        active=schema.active,
        fee_bps=schema.fee_bps,
        profit_threshold_percent=schema.profit_threshold_percent,
        calculation_amount=schema.calculation_amount,
        api_key=_resolve_secret(schema.api_key_env),
        secret_key=_resolve_secret(schema.secret_env),
        paths=paths,
    )


def normalize_manager_config(config: ManagerConfig) -> ManagerRuntimeConfig:
    """Convert a validated schema into the frozen runtime configuration."""
    exchanges = tuple(
        _normalize_exchange_config(key, schema)
        for key, schema in config.exchanges.items()
    )

    return ManagerRuntimeConfig(
        name=config.name,
        exchanges=exchanges,
        scan=ScanConfig(
            timeout_seconds=config.scan.timeout_seconds,
            show_activity=config.scan.show_activity,
            reject_disabled_routes=config.scan.reject_disabled_routes,
        ),
        sizing=SizingConfig(
            portfolio_percent=config.sizing.portfolio_percent,
            max_trade_amount=config.sizing.max_trade_amount,
            min_trade_amount=config.sizing.min_trade_amount,
        ),
        observability=ObservabilityConfig(
            metrics_enabled=config.observability.metrics.enabled,
            metrics_port=config.observability.metrics.port,
            metrics_path=config.observability.metrics.path,
            log_level=config.observability.logging.level,
        ),
    )


def load_manager_config(config_path: Union[str, Path]) -> ManagerRuntimeConfig:
    """
    Load and normalize a manager configuration file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Normalized and frozen manager configuration

    Raises:
        ConfigurationError: If the configuration cannot be loaded or is invalid
        ValidationError: If the configuration fails schema validation
    """
    config_dict = load_yaml_config(config_path)

    try:
        config = validate_manager_config(config_dict)
    except PydanticValidationError as e:
        raise ValidationError(f"Configuration validation failed: {e}")

    try:
        return normalize_manager_config(config)
    except ValidationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to normalize configuration: {e}")


def get_default_config() -> ManagerRuntimeConfig:
    """
    Default configuration: the known exchanges declared without adapters.

    Useful for tests or as a fallback when no configuration file exists.
    """
    return ManagerRuntimeConfig(
        exchanges=tuple(
            ExchangeConfig(key=key, name=name, active=active)
            for key, (name, active) in DEFAULT_EXCHANGES.items()
        )
    )
