"""
Indicator aggregation and signal labelling.

Combines RSI, MACD, Bollinger Bands and the SMA(20) reference into a single
summary with qualitative labels. A short history is a normal steady state,
so every sub-indicator that cannot be computed degrades to an
"unavailable" neutral label instead of failing the whole summary.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from domain.enums import SignalLabel
from domain.indicators import (
    BollingerBands,
    MACDResult,
    PriceSeries,
    calculate_bollinger_bands,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
)
from ports.errors import InvalidPeriodError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SignalThresholds:
    """Label thresholds and windows used by compute_all."""
    overbought: float = 70.0
    oversold: float = 30.0
    rsi_period: int = 14
    bollinger_period: int = 20
    sma_period: int = 20

    def __post_init__(self) -> None:
        if self.oversold >= self.overbought:
            raise ValueError("oversold must be below overbought")


@dataclass(frozen=True)
class IndicatorSignal:
    """Label for one indicator plus whether the indicator was computable."""
    label: SignalLabel
    available: bool = True

    @classmethod
    def unavailable(cls) -> "IndicatorSignal":
        return cls(label=SignalLabel.NEUTRAL, available=False)


@dataclass(frozen=True)
class SmaComparison:
    """Position of the current price relative to its moving average."""
    sma: float | None
    deviation_percent: float
    above: bool


@dataclass(frozen=True)
class IndicatorSummary:
    """All indicators for one series, with derived labels."""
    current_price: float
    rsi: float | None
    macd: MACDResult
    bollinger: BollingerBands | None
    sma: float | None
    rsi_signal: IndicatorSignal
    macd_signal: IndicatorSignal
    bollinger_signal: IndicatorSignal
    sma_comparison: SmaComparison
    degraded: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "current_price": self.current_price,
            "rsi": {
                "value": self.rsi,
                "label": self.rsi_signal.label.value,
                "available": self.rsi_signal.available,
            },
            "macd": {
                **self.macd.to_dict(),
                "label": self.macd_signal.label.value,
                "available": self.macd_signal.available,
            },
            "bollinger_bands": {
                **(self.bollinger.to_dict() if self.bollinger else
                   {"upper": None, "middle": None, "lower": None}),
                "label": self.bollinger_signal.label.value,
                "available": self.bollinger_signal.available,
            },
            "sma": {
                "value": self.sma_comparison.sma,
                "deviation_percent": self.sma_comparison.deviation_percent,
                "above": self.sma_comparison.above,
            },
        }


# ============================================================================
# Labelling
# ============================================================================

def classify_rsi(rsi: float | None, thresholds: SignalThresholds) -> IndicatorSignal:
    """Overbought above the upper threshold, oversold below the lower one."""
    if rsi is None:
        return IndicatorSignal.unavailable()
    if rsi > thresholds.overbought:
        return IndicatorSignal(SignalLabel.OVERBOUGHT)
    if rsi < thresholds.oversold:
        return IndicatorSignal(SignalLabel.OVERSOLD)
    return IndicatorSignal(SignalLabel.NEUTRAL)


def classify_macd(macd: MACDResult) -> IndicatorSignal:
    """Buy bias when the MACD line is above its signal line."""
    if macd.macd is None or macd.signal is None:
        return IndicatorSignal.unavailable()
    if macd.macd > macd.signal:
        return IndicatorSignal(SignalLabel.BUY_SIGNAL)
    return IndicatorSignal(SignalLabel.SELL_SIGNAL)


def classify_bollinger(bands: BollingerBands | None, current_price: float) -> IndicatorSignal:
    """Overbought above the upper band, oversold below the lower band."""
    if bands is None:
        return IndicatorSignal.unavailable()
    if current_price > bands.upper:
        return IndicatorSignal(SignalLabel.OVERBOUGHT)
    if current_price < bands.lower:
        return IndicatorSignal(SignalLabel.OVERSOLD)
    return IndicatorSignal(SignalLabel.NEUTRAL)


def compare_to_sma(current_price: float, sma: float | None) -> SmaComparison:
    """Percentage deviation of the price from its SMA (0% when SMA is missing or zero)."""
    if not sma:
        return SmaComparison(sma=sma, deviation_percent=0.0, above=False)
    deviation = (current_price - sma) / sma * 100
    return SmaComparison(sma=sma, deviation_percent=deviation, above=current_price > sma)


# ============================================================================
# Aggregation
# ============================================================================

def _degrade(name: str, compute: Callable[[], T], fallback: T, degraded: list[str]) -> T:
    """Run one sub-indicator, downgrading unexpected failures to ``fallback``."""
    try:
        return compute()
    except InvalidPeriodError:
        raise
    except (ArithmeticError, TypeError, ValueError) as e:
        logger.warning(f"{name} unavailable: {e}")
        degraded.append(name)
        return fallback


def compute_all(
    prices: PriceSeries,
    current_price: float,
    sma_value: float | None = None,
    thresholds: SignalThresholds | None = None,
) -> IndicatorSummary:
    """
    Compute every indicator for a series and label the results.

    Args:
        prices: Prices ordered oldest first
        current_price: Latest quote to compare against bands and SMA
        sma_value: Caller's own SMA reference (e.g. the chart's last
            precomputed SMA); computed from ``prices`` when omitted
        thresholds: Label thresholds and windows (defaults: 70/30, 14/20/20)

    Returns:
        IndicatorSummary. Never raises for data reasons.

    Raises:
        InvalidPeriodError: If ``thresholds`` carries a non-positive window
    """
    thresholds = thresholds or SignalThresholds()
    degraded: list[str] = []

    rsi = _degrade(
        "rsi", lambda: calculate_rsi(prices, thresholds.rsi_period), None, degraded,
    )
    macd = _degrade(
        "macd", lambda: calculate_macd(prices), MACDResult.insufficient(), degraded,
    )
    bands = _degrade(
        "bollinger",
        lambda: calculate_bollinger_bands(prices, thresholds.bollinger_period),
        None,
        degraded,
    )
    if sma_value is None:
        sma_value = _degrade(
            "sma", lambda: calculate_sma(prices, thresholds.sma_period), None, degraded,
        )

    return IndicatorSummary(
        current_price=current_price,
        rsi=rsi,
        macd=macd,
        bollinger=bands,
        sma=sma_value,
        rsi_signal=classify_rsi(rsi, thresholds),
        macd_signal=classify_macd(macd),
        bollinger_signal=classify_bollinger(bands, current_price),
        sma_comparison=compare_to_sma(current_price, sma_value),
        degraded=tuple(degraded),
    )
