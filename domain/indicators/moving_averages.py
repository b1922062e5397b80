"""Moving average indicators."""

from domain.indicators.base import PriceSeries, validate_period


def calculate_sma(prices: PriceSeries, period: int) -> float | None:
    """Calculate the Simple Moving Average of the most recent window.

    Args:
        prices: Prices ordered oldest first
        period: Number of trailing values to average

    Returns:
        Mean of the last ``period`` prices, or None if history is shorter

    Example:
        >>> calculate_sma([10, 11, 12, 13, 14, 15], 3)
        14.0
    """
    validate_period(period)
    if len(prices) < period:
        return None

    window = prices[-period:]
    return sum(window) / period


def calculate_ema(prices: PriceSeries, period: int) -> float | None:
    """Calculate the Exponential Moving Average of the most recent window.

    The recurrence is seeded with the oldest price inside the window
    (``prices[-period]``) rather than an SMA warm-up, then smoothed forward
    with alpha = 2/(period+1). Results therefore differ from charting
    packages that seed with an SMA of the first window.

    Args:
        prices: Prices ordered oldest first
        period: EMA period

    Returns:
        Final EMA value (unrounded), or None if history is shorter

    Example:
        >>> calculate_ema([10, 11, 12], 3)
        11.25
    """
    validate_period(period)
    if len(prices) < period:
        return None

    alpha = 2.0 / (period + 1)
    ema = prices[-period]

    for price in prices[len(prices) - period + 1:]:
        ema = price * alpha + ema * (1 - alpha)

    return ema


def sma_series(values: PriceSeries, period: int) -> list[float | None]:
    """Calculate the trailing SMA at every index.

    Used for chart overlays where each point carries its own average.

    Returns:
        List the same length as ``values``, with None until the window fills

    Example:
        >>> sma_series([10, 11, 12, 13, 14, 15], 3)
        [None, None, 11.0, 12.0, 13.0, 14.0]
    """
    validate_period(period)
    if len(values) < period:
        return [None] * len(values)

    result: list[float | None] = [None] * (period - 1)

    # Running window sum
    window_sum = sum(values[:period])
    result.append(window_sum / period)
    for i in range(period, len(values)):
        window_sum += values[i] - values[i - period]
        result.append(window_sum / period)

    return result
