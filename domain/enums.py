from enum import Enum


class SignalLabel(str, Enum):
    """Qualitative reading derived from an indicator value."""
    OVERBOUGHT = "overbought"
    OVERSOLD = "oversold"
    NEUTRAL = "neutral"
    BUY_SIGNAL = "buy_signal"
    SELL_SIGNAL = "sell_signal"
