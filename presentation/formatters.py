"""Display formatting for prices, volumes and percentage changes."""

from domain.models import Currency

_CURRENCY_SYMBOLS = {
    Currency.USD: "$",
    Currency.KRW: "₩",
}


def format_currency(value: float, currency: Currency | str = Currency.USD) -> str:
    """Format a price with currency symbol and thousands separators.

    Example:
        >>> format_currency(1234.5)
        '$1,234.50'
        >>> format_currency(-3.2, "KRW")
        '-₩3.20'
    """
    currency = Currency(currency)
    symbol = _CURRENCY_SYMBOLS[currency]
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_large_number(value: float) -> str:
    """Abbreviate with T/B/M/K suffixes (one decimal).

    Example:
        >>> format_large_number(2_500_000_000)
        '2.5B'
        >>> format_large_number(950)
        '950'
    """
    for threshold, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K")):
        if value >= threshold:
            return f"{value / threshold:.1f}{suffix}"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_volume(volume: float) -> str:
    return format_large_number(volume)


def format_percent_change(value: float) -> str:
    """Signed percentage with two decimals.

    Example:
        >>> format_percent_change(1.456)
        '+1.46%'
    """
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"


def format_optional(value: float | None, fmt: str = "{:.2f}", missing: str = "N/A") -> str:
    """Format a possibly-insufficient indicator value."""
    if value is None:
        return missing
    return fmt.format(value)
