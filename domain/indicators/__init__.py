"""Technical indicators library.

Pure functions over a price series ordered oldest first. Each function
returns a value for the most recent window only, or ``None`` (MACD:
``MACDResult.insufficient()``) when the window exceeds the available
history. Insufficient data is a normal result, never an exception; only a
non-positive or non-integer period raises ``InvalidPeriodError``.

Indicators:
    - SMA: Simple Moving Average of the trailing window
    - EMA: Exponential Moving Average seeded with the window's oldest price
    - RSI: Relative Strength Index from simple gain/loss averages
    - MACD: EMA(12) - EMA(26) with a fixed-ratio signal line
    - Bollinger Bands: SMA +/- 2 population standard deviations

Example:
    >>> from domain.indicators import calculate_rsi, calculate_macd
    >>>
    >>> closes = list(range(1, 31))
    >>> calculate_rsi(closes)
    100.0
"""

from domain.indicators.base import (
    BollingerBands,
    MACDResult,
    PriceSeries,
    round_price,
    validate_period,
)
from domain.indicators.bollinger import calculate_bollinger_bands
from domain.indicators.macd import calculate_macd
from domain.indicators.moving_averages import calculate_ema, calculate_sma, sma_series
from domain.indicators.rsi import calculate_rsi

__all__ = [
    # Base types
    "BollingerBands",
    "MACDResult",
    "PriceSeries",
    # Indicators
    "calculate_sma",
    "calculate_ema",
    "calculate_rsi",
    "calculate_macd",
    "calculate_bollinger_bands",
    # Series helpers
    "sma_series",
    # Utilities
    "round_price",
    "validate_period",
]
