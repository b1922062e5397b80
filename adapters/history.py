"""
Price history adapters.

Both adapters return daily ChartPoints ordered oldest first, each carrying
a trailing SMA for chart overlays.

- DemoHistoryAdapter: synthesized data around a per-symbol base price,
  for running without network access or API keys. Also serves fixed
  quote snapshots for a handful of well-known symbols.
- YahooHistoryAdapter: daily closes from Yahoo Finance via yfinance
"""

import logging
import math
import random
from datetime import date, datetime, timedelta
from typing import Any, Callable, Sequence

import yfinance as yf

from domain.indicators import round_price, sma_series
from domain.models import ChartPoint, StockQuote, normalize_ticker
from ports.errors import DataError, ErrorCode, FetchError, InvalidTickerError

logger = logging.getLogger(__name__)

# Reference prices the demo data oscillates around
DEMO_BASE_PRICES: dict[str, float] = {
    "AAPL": 150.0,
    "GOOGLE": 2750.0,
    "GOOGL": 2750.0,
    "MSFT": 320.0,
    "TSLA": 850.0,
    "AMZN": 185.0,
    "NVDA": 450.0,
    "META": 300.0,
    "NFLX": 500.0,
    "BRK": 350000.0,
}
DEFAULT_BASE_PRICE = 100.0

# Fixed quote snapshots shown alongside demo history
DEMO_QUOTES: dict[str, StockQuote] = {
    q.symbol: q for q in (
        StockQuote("AAPL", "Apple Inc.", 150.25, 2.15, 1.45, 45_678_900,
                   2.5e12, 152.0, 148.5, 149.75, 148.1),
        StockQuote("GOOGLE", "Alphabet Inc.", 2750.8, -15.2, -0.55, 23_456_700,
                   1.8e12, 2770.0, 2740.5, 2755.25, 2766.0),
        StockQuote("MSFT", "Microsoft Corporation", 320.45, 5.3, 1.68, 34_567_800,
                   2.4e12, 322.0, 318.5, 319.75, 315.15),
        StockQuote("TSLA", "Tesla, Inc.", 850.75, 25.5, 3.09, 56_789_000,
                   8.5e11, 855.0, 840.25, 845.5, 825.25),
        StockQuote("AMZN", "Amazon.com, Inc.", 185.3, -2.7, -1.44, 67_890_100,
                   1.9e12, 188.0, 184.5, 186.75, 188.0),
    )
}

SMA_PERIOD = 20


def _symbol(symbol: str) -> str:
    try:
        return normalize_ticker(symbol)
    except ValueError as e:
        raise InvalidTickerError(symbol, str(e)) from None


def attach_sma(points: Sequence[ChartPoint], period: int = SMA_PERIOD) -> list[ChartPoint]:
    """Return copies of ``points`` with ``sma`` set to the trailing average."""
    averages = sma_series([p.price for p in points], period)
    return [
        ChartPoint(date=p.date, price=p.price, volume=p.volume, sma=avg)
        for p, avg in zip(points, averages)
    ]


class DemoHistoryAdapter:
    """
    Synthesizes daily history around a fixed base price.

    Each day's price is base * (1 + noise) with noise uniform in
    +/- volatility/2; its SMA overlay sits halfway between base and price.
    Pass a seeded ``rng`` (or ``seed``) for reproducible output.
    """

    def __init__(
        self,
        seed: int | None = None,
        volatility: float = 0.02,
        rng: random.Random | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.volatility = volatility
        self._rng = rng or random.Random(seed)
        self._today = today

    @property
    def source_name(self) -> str:
        return "demo"

    def base_price(self, symbol: str) -> float:
        return DEMO_BASE_PRICES.get(_symbol(symbol), DEFAULT_BASE_PRICE)

    def get_quote(self, symbol: str) -> StockQuote | None:
        """Snapshot quote for the symbols in DEMO_QUOTES, else None."""
        return DEMO_QUOTES.get(_symbol(symbol))

    def get_history(self, symbol: str, days: int = 30) -> list[ChartPoint]:
        if days <= 0:
            raise DataError(self.source_name, f"days must be positive, got {days}", field="days")

        base = self.base_price(symbol)
        today = self._today()
        points = []

        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            change = (self._rng.random() - 0.5) * self.volatility
            volume = math.floor(1_000_000 + self._rng.random() * 5_000_000)
            points.append(ChartPoint(
                date=day.isoformat(),
                price=round_price(base * (1 + change)),
                volume=float(volume),
                sma=round_price(base * (1 + change * 0.5)),
            ))

        logger.debug(f"Generated {len(points)} demo points for {symbol}")
        return points


class YahooHistoryAdapter:
    """Daily closing prices and volumes from Yahoo Finance."""

    def __init__(self, sma_period: int = SMA_PERIOD):
        self.sma_period = sma_period

    @property
    def source_name(self) -> str:
        return "yahoo"

    def _download(self, symbol: str, days: int) -> Any:
        # Calendar window wide enough for `days` sessions plus the SMA warm-up
        lookback = (days + self.sma_period) * 2 + 7
        start = (datetime.now() - timedelta(days=lookback)).strftime("%Y-%m-%d")
        try:
            return yf.download(
                symbol,
                start=start,
                interval="1d",
                progress=False,
                auto_adjust=True,
                threads=False,
            )
        except Exception as e:
            raise FetchError(
                self.source_name,
                f"Download failed: {e}",
                symbol=symbol,
                cause=e,
            ) from e

    def _daily_bars(self, symbol: str, days: int, columns: Sequence[str]) -> Any:
        frame = self._download(symbol, days)

        if frame is None or frame.empty:
            raise FetchError(
                self.source_name,
                f"No data returned for {symbol}",
                code=ErrorCode.FETCH_NOT_FOUND,
                symbol=symbol,
            )

        if frame.columns.nlevels > 1:
            frame.columns = frame.columns.get_level_values(0)

        for column in columns:
            if column not in frame.columns:
                raise DataError.missing(self.source_name, column)

        frame = frame.sort_index().dropna(subset=["Close"])
        if frame.empty:
            raise DataError.empty(self.source_name, f"No closing prices for {symbol}")
        return frame

    def get_history(self, symbol: str, days: int = 30) -> list[ChartPoint]:
        if days <= 0:
            raise DataError(self.source_name, f"days must be positive, got {days}", field="days")

        symbol = _symbol(symbol)
        frame = self._daily_bars(symbol, days, ("Close", "Volume"))

        points = []
        for index, row in frame.iterrows():
            points.append(ChartPoint(
                date=index.strftime("%Y-%m-%d"),
                price=float(row["Close"]),
                volume=_volume(row["Volume"]),
            ))

        logger.info(f"Fetched {len(points)} daily closes for {symbol}")
        return attach_sma(points, self.sma_period)[-days:]

    def get_quote(self, symbol: str) -> StockQuote | None:
        """
        Quote built from the latest daily bar.

        Change is measured against the prior session's close (the bar's own
        open when only one session is available). Market cap is not part of
        the download and is reported as 0.
        """
        symbol = _symbol(symbol)
        frame = self._daily_bars(symbol, 2, ("Open", "High", "Low", "Close", "Volume"))

        last = frame.iloc[-1]
        price = float(last["Close"])
        if len(frame) > 1:
            previous = float(frame.iloc[-2]["Close"])
        else:
            previous = float(last["Open"])
        change = price - previous

        return StockQuote(
            symbol=symbol,
            name=symbol,
            price=price,
            change=round_price(change),
            change_percent=round_price(change / previous * 100) if previous else 0.0,
            volume=_volume(last["Volume"]),
            market_cap=0.0,
            high=float(last["High"]),
            low=float(last["Low"]),
            open=float(last["Open"]),
            previous_close=previous,
        )


def _volume(value: Any) -> float:
    volume = float(value)
    return 0.0 if math.isnan(volume) else volume
