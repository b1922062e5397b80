"""
Configuration loader.

Layers, lowest priority first:
1. Built-in defaults (the pydantic schema)
2. The first TOML file found: ./stockwatch.toml, ./.stockwatch.toml,
   ~/.config/stockwatch/config.toml (or an explicit path)
3. STOCKWATCH_* environment variables
"""

import logging
import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ports.errors import EngineError, ErrorCode

from .schema import StockwatchConfig

logger = logging.getLogger(__name__)

SEARCH_PATHS = (
    Path("stockwatch.toml"),
    Path(".stockwatch.toml"),
    Path.home() / ".config" / "stockwatch" / "config.toml",
)

ENV_PREFIX = "STOCKWATCH_"

# STOCKWATCH_<suffix> -> dotted config key
ENV_OVERRIDES = {
    "DISPATCH_MODE": "dispatcher.mode",
    "DISPATCH_TIMEOUT": "dispatcher.timeout_seconds",
    "DEMO_SEED": "demo.seed",
    "PREFERENCES_PATH": "preferences.path",
    "LOG_LEVEL": "logging.level",
}


class ConfigError(EngineError):
    """Raised when a config file cannot be read or fails validation."""

    def __init__(self, message: str, source: str | None = None, field: str | None = None):
        self.field = field
        context = {"field": field} if field else {}
        super().__init__(
            message=message,
            code=ErrorCode.CONFIG_INVALID,
            source=source,
            context=context,
        )


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Cannot read TOML: {e}", source=str(path)) from e

    logger.info(f"Loaded config from: {path}")
    return data


def _file_layer(config_path: Path | str | None) -> dict[str, Any]:
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}", source=str(path))
        return _read_toml(path)

    path = next((p for p in SEARCH_PATHS if p.is_file()), None)
    return _read_toml(path) if path else {}


def _env_layer() -> dict[str, Any]:
    layer: dict[str, Any] = {}

    for suffix, dotted in ENV_OVERRIDES.items():
        raw = os.environ.get(ENV_PREFIX + suffix)
        if raw is None:
            continue
        section, key = dotted.split(".")
        layer.setdefault(section, {})[key] = raw

    watchlist = os.environ.get(ENV_PREFIX + "WATCHLIST")
    if watchlist:
        layer["default_watchlist"] = [t for t in (s.strip() for s in watchlist.split(",")) if t]

    return layer


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay ``overlay`` onto a copy of ``base``."""
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _describe(error: ValidationError) -> tuple[str, str | None]:
    """Summarize pydantic errors as (message, dotted field of the first)."""
    details = error.errors()
    if not details:
        return str(error), None

    fields = [".".join(str(part) for part in d.get("loc", ())) for d in details]
    message = "; ".join(f"{f}: {d.get('msg', 'invalid')}" for f, d in zip(fields, details))
    return message, fields[0] or None


def load_config(config_path: Path | str | None = None) -> StockwatchConfig:
    """
    Load and validate configuration.

    Args:
        config_path: Explicit TOML file; when omitted the search paths are tried

    Raises:
        ConfigError: If the file is missing/unreadable or a value is invalid
    """
    data = _file_layer(config_path)

    overrides = _env_layer()
    if overrides:
        logger.debug(f"Environment overrides: {sorted(overrides)}")
        data = _merge(data, overrides)

    try:
        return StockwatchConfig.model_validate(data)
    except ValidationError as e:
        message, field = _describe(e)
        raise ConfigError(f"Invalid configuration: {message}", field=field) from None


@lru_cache
def get_config() -> StockwatchConfig:
    """Process-wide configuration, loaded on first use."""
    return load_config()


def reload_config() -> StockwatchConfig:
    """Drop the cached configuration and load it again."""
    get_config.cache_clear()
    return get_config()
