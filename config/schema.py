"""
Configuration schema with validation.

All configuration is validated at load time using Pydantic.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from domain.signals import SignalThresholds


class IndicatorConfig(BaseModel):
    """Indicator windows and label thresholds."""

    rsi_period: int = Field(default=14, ge=2, le=200)
    bollinger_period: int = Field(default=20, ge=2, le=200)
    sma_period: int = Field(default=20, ge=1, le=200)
    overbought: float = Field(default=70.0, gt=0.0, lt=100.0, description="RSI above = overbought")
    oversold: float = Field(default=30.0, gt=0.0, lt=100.0, description="RSI below = oversold")

    @model_validator(mode="after")
    def oversold_below_overbought(self) -> "IndicatorConfig":
        if self.oversold >= self.overbought:
            raise ValueError("oversold must be less than overbought")
        return self

    def to_thresholds(self) -> SignalThresholds:
        return SignalThresholds(
            overbought=self.overbought,
            oversold=self.oversold,
            rsi_period=self.rsi_period,
            bollinger_period=self.bollinger_period,
            sma_period=self.sma_period,
        )


class DispatcherConfig(BaseModel):
    """Where indicator computations run."""

    mode: Literal["worker", "inline"] = "worker"
    timeout_seconds: float | None = Field(default=None, gt=0.0, le=300.0)


class DemoConfig(BaseModel):
    """Synthetic history used when no market-data provider is configured."""

    days: int = Field(default=30, ge=1, le=365)
    volatility: float = Field(default=0.02, gt=0.0, le=0.5)
    seed: int | None = None


class PreferencesConfig(BaseModel):
    """Location of the persisted settings/watchlist file."""

    path: Path = Field(default_factory=lambda: Path.home() / ".config" / "stockwatch" / "preferences.json")


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class StockwatchConfig(BaseModel):
    """
    Root configuration model.

    All settings are validated on load.
    """

    # Tickers shown when the watchlist is empty
    default_watchlist: list[str] = Field(default_factory=lambda: [
        "AAPL", "MSFT", "GOOGL", "AMZN", "NVDA", "TSLA",
    ])

    # Subsections
    indicators: IndicatorConfig = Field(default_factory=IndicatorConfig)
    dispatcher: DispatcherConfig = Field(default_factory=DispatcherConfig)
    demo: DemoConfig = Field(default_factory=DemoConfig)
    preferences: PreferencesConfig = Field(default_factory=PreferencesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("default_watchlist")
    @classmethod
    def validate_tickers(cls, v: list[str]) -> list[str]:
        """Validate ticker format."""
        validated = []
        for ticker in v:
            ticker = ticker.upper().strip()
            if not ticker or len(ticker) > 10:
                raise ValueError(f"Invalid ticker format: {ticker}")
            validated.append(ticker)
        return validated
