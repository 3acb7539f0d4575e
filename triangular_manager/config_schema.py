"""
Configuration schema validation using Pydantic
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from triangular_manager.constants import (
    DEFAULT_CALCULATION_AMOUNT,
    DEFAULT_FEE_BPS,
    DEFAULT_MAX_TRADE_AMOUNT,
    DEFAULT_PORTFOLIO_PERCENT,
    DEFAULT_PROFIT_THRESHOLD_PERCENT,
    DEFAULT_SCAN_TIMEOUT_SECONDS,
    MIN_PATH_HOPS,
    MIN_TRADE_AMOUNT,
)


class StepSchema(BaseModel):
    """One hop of a triangular path"""

    pair: str = Field(min_length=1, description="Exchange trading pair symbol")
    side: Literal["buy", "sell"] = Field(description="Order side for this hop")


class PathSchema(BaseModel):
    """Triangular path configuration"""

    name: Optional[str] = None
    currencies: List[str] = Field(description="Currency cycle, start repeated at end")
    steps: List[StepSchema] = Field(description="One step per hop")
    enabled: bool = True

    @field_validator("currencies")
    @classmethod
    def validate_currencies(cls, v):
        for currency in v:
            if not isinstance(currency, str) or len(currency) < 2:
                raise ValueError(f"Invalid currency code: {currency}")
        return [currency.upper() for currency in v]

    @model_validator(mode="after")
    def validate_cycle(self):
        if len(self.steps) < MIN_PATH_HOPS:
            raise ValueError(f"a path needs at least {MIN_PATH_HOPS} steps")
        if len(self.currencies) != len(self.steps) + 1:
            raise ValueError("currencies must list one more entry than steps")
        if self.currencies[0] != self.currencies[-1]:
            raise ValueError("currencies must return to the start currency")
        return self


class ExchangeSchema(BaseModel):
    """Per-exchange adapter configuration"""

    name: Optional[str] = None
    ccxt_id: Optional[str] = Field(
        default=None, description="ccxt exchange id; omit to declare only"
    )
    active: bool = True
    fee_bps: float = Field(ge=0, le=1000, default=DEFAULT_FEE_BPS)
    profit_threshold_percent: float = Field(
        ge=-100, le=100, default=DEFAULT_PROFIT_THRESHOLD_PERCENT
    )
    calculation_amount: float = Field(gt=0, default=DEFAULT_CALCULATION_AMOUNT)
    api_key_env: Optional[str] = None
    secret_env: Optional[str] = None
    paths: List[PathSchema] = Field(default_factory=list)


class ScanSchema(BaseModel):
    """Unified scan configuration"""

    timeout_seconds: float = Field(
        gt=0, le=3600, default=DEFAULT_SCAN_TIMEOUT_SECONDS
    )
    show_activity: bool = False
    reject_disabled_routes: bool = False


class SizingSchema(BaseModel):
    """Position sizing configuration"""

    portfolio_percent: float = Field(ge=0, le=100, default=DEFAULT_PORTFOLIO_PERCENT)
    max_trade_amount: float = Field(ge=0, default=DEFAULT_MAX_TRADE_AMOUNT)
    min_trade_amount: float = Field(ge=0, default=MIN_TRADE_AMOUNT)


class MetricsSchema(BaseModel):
    """Metrics server configuration"""

    enabled: bool = False
    port: int = Field(ge=1024, le=65535, default=8000)
    path: str = Field(
        pattern=r"^/[a-zA-Z0-9_/-]*$", default="/metrics", description="Metrics endpoint path"
    )


class LoggingSchema(BaseModel):
    """Logging configuration"""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


class ObservabilitySchema(BaseModel):
    """Observability configuration"""

    metrics: MetricsSchema = Field(default_factory=MetricsSchema)
    logging: LoggingSchema = Field(default_factory=LoggingSchema)


class ManagerConfig(BaseModel):
    """Complete manager configuration schema"""

    name: str = Field(min_length=1, max_length=100, default="triangular_manager")
    exchanges: Dict[str, ExchangeSchema] = Field(default_factory=dict)
    scan: ScanSchema = Field(default_factory=ScanSchema)
    sizing: SizingSchema = Field(default_factory=SizingSchema)
    observability: ObservabilitySchema = Field(default_factory=ObservabilitySchema)

    @field_validator("exchanges")
    @classmethod
    def validate_exchange_keys(cls, v):
        seen = set()
        for key in v:
            normalized = key.strip().upper()
            if not normalized:
                raise ValueError("Exchange keys cannot be empty")
            if normalized in seen:
                raise ValueError(f"Duplicate exchange key (case-insensitive): {key}")
            seen.add(normalized)
        return v

    model_config = {
        "extra": "forbid",  # Disallow extra fields
        "validate_assignment": True,
    }


def validate_manager_config(config_dict: Dict) -> ManagerConfig:
    """
    Validate a manager configuration dictionary

    Raises:
        pydantic.ValidationError: If configuration is invalid
    """
    return ManagerConfig(**config_dict)

