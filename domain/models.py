"""
Domain models - pure data structures with validation.

Chart points are plain frozen dataclasses because they are created in bulk
and fed straight into the indicator math. User-facing preferences are
pydantic models so they validate on load from disk.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Iterable

from pydantic import BaseModel, Field
from pydantic.functional_validators import AfterValidator


# ============================================================================
# Chart data
# ============================================================================

@dataclass(frozen=True)
class ChartPoint:
    """
    One calendar day's observation.

    Attributes:
        date: ISO-8601 calendar date ("YYYY-MM-DD")
        price: Closing price
        volume: Traded volume
        sma: Optional precomputed moving average for chart overlays
    """
    date: str
    price: float
    volume: float
    sma: float | None = None

    def __post_init__(self) -> None:
        # Raises ValueError on malformed dates
        datetime.strptime(self.date, "%Y-%m-%d")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "date": self.date,
            "price": self.price,
            "volume": self.volume,
        }
        if self.sma is not None:
            data["sma"] = self.sma
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChartPoint":
        sma = data.get("sma")
        return cls(
            date=str(data["date"]),
            price=float(data["price"]),
            volume=float(data.get("volume", 0)),
            sma=float(sma) if sma is not None else None,
        )


@dataclass(frozen=True)
class StockQuote:
    """
    Latest trading-day snapshot for one symbol.

    ``change`` and ``change_percent`` are measured against ``previous_close``.
    ``market_cap`` is 0 when the provider does not report it.
    """
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    volume: float
    market_cap: float
    high: float
    low: float
    open: float
    previous_close: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change": self.change,
            "change_percent": self.change_percent,
            "volume": self.volume,
            "market_cap": self.market_cap,
            "high": self.high,
            "low": self.low,
            "open": self.open,
            "previous_close": self.previous_close,
        }


def prices_of(points: Iterable[ChartPoint]) -> list[float]:
    """Project chart points onto their closing prices."""
    return [p.price for p in points]


def volumes_of(points: Iterable[ChartPoint]) -> list[float]:
    """Project chart points onto their volumes."""
    return [p.volume for p in points]


def sort_chronologically(points: Iterable[ChartPoint]) -> list[ChartPoint]:
    """Order points oldest first, as the indicator math expects."""
    return sorted(points, key=lambda p: p.date)


# ============================================================================
# Preferences
# ============================================================================

def normalize_ticker(v: str) -> str:
    """Upper-case and validate a ticker symbol."""
    v = v.upper().strip()
    if not v:
        raise ValueError("ticker cannot be empty")
    if len(v) > 10:
        raise ValueError("ticker too long (max 10 chars)")
    if not v.replace("-", "").replace(".", "").isalnum():
        raise ValueError("ticker must be alphanumeric (with - or .)")
    return v


Ticker = Annotated[str, AfterValidator(normalize_ticker)]


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Currency(str, Enum):
    USD = "USD"
    KRW = "KRW"


class UserSettings(BaseModel):
    """Display preferences persisted between sessions."""
    model_config = {"frozen": True, "extra": "forbid"}

    theme: Theme = Theme.LIGHT
    currency: Currency = Currency.USD
    refresh_interval_ms: int = Field(default=30_000, ge=1_000, le=3_600_000)
    show_volume: bool = True
    show_market_cap: bool = True


class WatchlistItem(BaseModel):
    """A symbol the user is tracking."""
    model_config = {"frozen": True, "extra": "forbid"}

    symbol: Ticker
    name: str = ""
    added_at: datetime = Field(default_factory=datetime.now)
