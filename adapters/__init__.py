from .history import (
    DEMO_BASE_PRICES,
    DEMO_QUOTES,
    DemoHistoryAdapter,
    YahooHistoryAdapter,
    attach_sma,
)

__all__ = [
    "DEMO_BASE_PRICES",
    "DEMO_QUOTES",
    "DemoHistoryAdapter",
    "YahooHistoryAdapter",
    "attach_sma",
]
