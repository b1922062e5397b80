"""Bollinger Bands indicator."""

from domain.indicators.base import (
    BollingerBands,
    PriceSeries,
    round_price,
    validate_period,
)

STD_DEV_MULTIPLIER = 2.0


def calculate_bollinger_bands(
    prices: PriceSeries,
    period: int = 20,
) -> BollingerBands | None:
    """Calculate Bollinger Bands over the most recent window.

    Upper Band = SMA + (2 * standard_deviation)
    Middle Band = SMA
    Lower Band = SMA - (2 * standard_deviation)

    Uses the population standard deviation (divides by ``period``).

    Args:
        prices: Prices ordered oldest first
        period: Window for SMA and standard deviation (default: 20)

    Returns:
        BollingerBands rounded to 2 decimals, or None if history is shorter

    Example:
        >>> calculate_bollinger_bands([100] * 20)
        BollingerBands(upper=100.0, middle=100.0, lower=100.0)
    """
    validate_period(period)
    if len(prices) < period:
        return None

    window = prices[-period:]
    mean = sum(window) / period
    variance = sum((x - mean) ** 2 for x in window) / period
    std = variance ** 0.5

    return BollingerBands(
        upper=round_price(mean + STD_DEV_MULTIPLIER * std),
        middle=round_price(mean),
        lower=round_price(mean - STD_DEV_MULTIPLIER * std),
    )
