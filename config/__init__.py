from .loader import ConfigError, load_config, get_config, reload_config
from .schema import (
    StockwatchConfig,
    IndicatorConfig,
    DispatcherConfig,
    DemoConfig,
    PreferencesConfig,
    LoggingConfig,
)

__all__ = [
    "ConfigError",
    "load_config",
    "get_config",
    "reload_config",
    "StockwatchConfig",
    "IndicatorConfig",
    "DispatcherConfig",
    "DemoConfig",
    "PreferencesConfig",
    "LoggingConfig",
]
