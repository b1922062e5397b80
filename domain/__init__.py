from .models import (
    ChartPoint,
    Currency,
    StockQuote,
    Theme,
    Ticker,
    UserSettings,
    WatchlistItem,
    prices_of,
    sort_chronologically,
    volumes_of,
)
from .enums import SignalLabel
from .indicators import (
    BollingerBands,
    MACDResult,
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
)
from .signals import (
    IndicatorSignal,
    IndicatorSummary,
    SignalThresholds,
    SmaComparison,
    classify_bollinger,
    classify_macd,
    classify_rsi,
    compare_to_sma,
    compute_all,
)

__all__ = [
    # Chart data
    "ChartPoint",
    "StockQuote",
    "prices_of",
    "volumes_of",
    "sort_chronologically",
    # Preferences
    "Currency",
    "Theme",
    "Ticker",
    "UserSettings",
    "WatchlistItem",
    # Indicator results
    "BollingerBands",
    "MACDResult",
    "SignalLabel",
    # Indicator math
    "calculate_sma",
    "calculate_ema",
    "calculate_rsi",
    "calculate_macd",
    "calculate_bollinger_bands",
    # Aggregation
    "IndicatorSignal",
    "IndicatorSummary",
    "SignalThresholds",
    "SmaComparison",
    "classify_rsi",
    "classify_macd",
    "classify_bollinger",
    "compare_to_sma",
    "compute_all",
]
