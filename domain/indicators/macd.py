"""MACD (Moving Average Convergence Divergence) indicator."""

from domain.indicators.base import MACDResult, PriceSeries, round_price
from domain.indicators.moving_averages import calculate_ema

FAST_PERIOD = 12
SLOW_PERIOD = 26

# Fixed fraction of the MACD line used in place of a 9-period EMA signal line
SIGNAL_RATIO = 0.8


def calculate_macd(prices: PriceSeries) -> MACDResult:
    """Calculate MACD for the most recent window.

    MACD Line = EMA(12) - EMA(26)
    Signal Line = MACD Line * 0.8
    Histogram = MACD Line - Signal Line

    The signal line is a fixed-ratio stand-in, not an EMA of the MACD
    line, so the histogram is always 20% of the MACD line before rounding.

    Args:
        prices: Prices ordered oldest first

    Returns:
        MACDResult with each field rounded to 2 decimals independently,
        or MACDResult.insufficient() when fewer than 26 prices exist

    Example:
        >>> calculate_macd(list(range(1, 10)))
        MACDResult(macd=None, signal=None, histogram=None)
    """
    if len(prices) < SLOW_PERIOD:
        return MACDResult.insufficient()

    fast_ema = calculate_ema(prices, FAST_PERIOD)
    slow_ema = calculate_ema(prices, SLOW_PERIOD)

    if fast_ema is None or slow_ema is None:
        return MACDResult.insufficient()

    macd_line = fast_ema - slow_ema
    signal_line = macd_line * SIGNAL_RATIO
    histogram = macd_line - signal_line

    return MACDResult(
        macd=round_price(macd_line),
        signal=round_price(signal_line),
        histogram=round_price(histogram),
    )
