"""Relative Strength Index (RSI) indicator."""

from domain.indicators.base import PriceSeries, round_price, validate_period


def calculate_rsi(prices: PriceSeries, period: int = 14) -> float | None:
    """Calculate RSI over the most recent ``period`` price changes.

    Simple averages of gains and losses over a single window (no Wilder
    smoothing). Returns values on a 0-100 scale, rounded to 2 decimals.

    Args:
        prices: Prices ordered oldest first
        period: Number of changes to sample (default: 14)

    Returns:
        RSI value, or None when fewer than ``period + 1`` prices exist

    Example:
        >>> calculate_rsi(list(range(1, 31)), 14)
        100.0

    Notes:
        - Flat changes count toward losses (they add zero)
        - Zero average loss yields exactly 100, including a flat window
    """
    validate_period(period)
    if len(prices) < period + 1:
        return None

    gains = 0.0
    losses = 0.0

    # Newest change first
    for i in range(1, period + 1):
        change = prices[-i] - prices[-i - 1]
        if change > 0:
            gains += change
        else:
            losses += abs(change)

    avg_gain = gains / period
    avg_loss = losses / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return round_price(100.0 - (100.0 / (1.0 + rs)))
