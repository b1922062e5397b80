"""Base types and helpers for technical indicators."""

import math
from dataclasses import dataclass
from typing import Any, Sequence

from ports.errors import InvalidPeriodError

# Prices are read-only sequences ordered oldest first
PriceSeries = Sequence[float]


@dataclass(frozen=True)
class MACDResult:
    """MACD line, signal line and histogram.

    Either all three values are present or all three are None
    (not enough history for the slow EMA).
    """
    macd: float | None
    signal: float | None
    histogram: float | None

    @classmethod
    def insufficient(cls) -> "MACDResult":
        return cls(macd=None, signal=None, histogram=None)

    @property
    def available(self) -> bool:
        return self.macd is not None and self.signal is not None

    def to_dict(self) -> dict[str, float | None]:
        return {"macd": self.macd, "signal": self.signal, "histogram": self.histogram}


@dataclass(frozen=True)
class BollingerBands:
    """Volatility envelope: upper >= middle >= lower."""
    upper: float
    middle: float
    lower: float

    @property
    def width(self) -> float:
        return self.upper - self.lower

    def to_dict(self) -> dict[str, float]:
        return {"upper": self.upper, "middle": self.middle, "lower": self.lower}


def validate_period(period: Any, name: str = "period") -> int:
    """Reject windows that are not positive integers.

    Raises:
        InvalidPeriodError: If period is not an int > 0 (bools rejected)
    """
    if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
        raise InvalidPeriodError(period, name=name)
    return period


def round_price(value: float, digits: int = 2) -> float:
    """Round half up, the way dashboards display prices.

    Unlike the builtin ``round`` (banker's rounding), ties go toward
    positive infinity: 0.125 -> 0.13 and -0.125 -> -0.12.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
