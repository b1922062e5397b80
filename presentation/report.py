"""
Indicator report generator.

Transforms an IndicatorSummary into markdown or a JSON-ready dict.
Pure formatting logic - no I/O except final writing.
"""

import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TextIO

from domain import (
    ChartPoint,
    IndicatorSignal,
    IndicatorSummary,
    SignalLabel,
    SignalThresholds,
    StockQuote,
    volumes_of,
)
from domain.models import Currency

from .formatters import (
    format_currency,
    format_large_number,
    format_optional,
    format_percent_change,
    format_volume,
)


@dataclass
class ReportData:
    """Everything needed to render one symbol's indicator report."""
    symbol: str
    summary: IndicatorSummary
    points: list[ChartPoint] = field(default_factory=list)
    source: str = "demo"
    quote: StockQuote | None = None
    thresholds: SignalThresholds = field(default_factory=SignalThresholds)
    currency: Currency = Currency.USD
    show_volume: bool = True
    show_market_cap: bool = True
    generated_at: datetime = field(default_factory=datetime.now)


_LABEL_TEXT = {
    SignalLabel.OVERBOUGHT: "Overbought",
    SignalLabel.OVERSOLD: "Oversold",
    SignalLabel.NEUTRAL: "Neutral",
    SignalLabel.BUY_SIGNAL: "Buy signal",
    SignalLabel.SELL_SIGNAL: "Sell signal",
}


def label_text(signal: IndicatorSignal) -> str:
    """Human-readable label; unavailable indicators say so explicitly."""
    if not signal.available:
        return "Insufficient data"
    return _LABEL_TEXT[signal.label]


# ============================================================================
# Section Generators
# ============================================================================

def _quote_lines(data: ReportData) -> list[str]:
    quote = data.quote
    sign = "+" if quote.change >= 0 else ""
    lines = [
        f"**Company:** {quote.name}",
        (
            f"**Change:** {sign}{format_currency(quote.change, data.currency)} "
            f"({format_percent_change(quote.change_percent)})"
        ),
        (
            f"**Day range:** {format_currency(quote.low, data.currency)} - "
            f"{format_currency(quote.high, data.currency)} "
            f"(open {format_currency(quote.open, data.currency)}, "
            f"prev close {format_currency(quote.previous_close, data.currency)})"
        ),
    ]
    if data.show_market_cap and quote.market_cap > 0:
        lines.append(f"**Market cap:** {format_large_number(quote.market_cap)}")
    return lines


def generate_header(data: ReportData) -> str:
    lines = [
        f"# {data.symbol} technical indicators",
        "",
        f"*Generated: {data.generated_at.strftime('%Y-%m-%d %H:%M')} | Source: {data.source}*",
        "",
        f"**Current price:** {format_currency(data.summary.current_price, data.currency)}",
    ]
    if data.quote is not None:
        lines.extend(_quote_lines(data))
    if data.points:
        first, last = data.points[0], data.points[-1]
        lines.append(f"**History:** {len(data.points)} days ({first.date} to {last.date})")
        if data.show_volume:
            volumes = volumes_of(data.points)
            lines.append(f"**Last volume:** {format_volume(last.volume)}")
            lines.append(f"**Average volume:** {format_volume(sum(volumes) / len(volumes))}")
    lines.append("")
    return "\n".join(lines)


def generate_indicator_table(data: ReportData) -> str:
    summary = data.summary
    macd = summary.macd
    bands = summary.bollinger
    t = data.thresholds

    if bands is not None:
        bands_text = (
            f"{format_currency(bands.lower, data.currency)} / "
            f"{format_currency(bands.middle, data.currency)} / "
            f"{format_currency(bands.upper, data.currency)}"
        )
    else:
        bands_text = "N/A"

    lines = [
        "| Indicator | Value | Signal |",
        "|-----------|-------|--------|",
        (
            f"| RSI ({t.rsi_period}) | {format_optional(summary.rsi)} "
            f"| {label_text(summary.rsi_signal)} |"
        ),
        (
            f"| MACD | {format_optional(macd.macd)} "
            f"(signal {format_optional(macd.signal)}, hist {format_optional(macd.histogram)}) "
            f"| {label_text(summary.macd_signal)} |"
        ),
        f"| Bollinger ({t.bollinger_period}) | {bands_text} | {label_text(summary.bollinger_signal)} |",
        "",
    ]
    return "\n".join(lines)


def generate_sma_section(data: ReportData) -> str:
    comparison = data.summary.sma_comparison
    label = f"**SMA ({data.thresholds.sma_period}):**"
    if comparison.sma is None:
        return f"{label} N/A\n"

    position = "above" if comparison.above else "below"
    return (
        f"{label} {format_currency(comparison.sma, data.currency)} "
        f"(price {position}, {format_percent_change(comparison.deviation_percent)})\n"
    )


def generate_markdown_report(data: ReportData) -> str:
    """Generate the full markdown report for one symbol."""
    return "\n".join([
        generate_header(data),
        generate_indicator_table(data),
        generate_sma_section(data),
    ])


def report_to_dict(data: ReportData) -> dict[str, Any]:
    """JSON-ready representation of a report."""
    quote = None
    if data.quote is not None:
        quote = data.quote.to_dict()
        if not data.show_market_cap:
            del quote["market_cap"]

    return {
        "symbol": data.symbol,
        "source": data.source,
        "generated_at": data.generated_at.isoformat(),
        "quote": quote,
        "indicators": data.summary.to_dict(),
        "history": [p.to_dict() for p in data.points],
    }


def write_report(data: ReportData, output: TextIO | None = None) -> str:
    """Generate markdown and write it to ``output`` (default: stdout)."""
    content = generate_markdown_report(data)
    (output or sys.stdout).write(content)
    return content
