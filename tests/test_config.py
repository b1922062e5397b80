"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from config import (
    ConfigError,
    DispatcherConfig,
    IndicatorConfig,
    LoggingConfig,
    StockwatchConfig,
    get_config,
    load_config,
    reload_config,
)
from domain import SignalThresholds

ENV_VARS = [
    "STOCKWATCH_DISPATCH_MODE",
    "STOCKWATCH_DISPATCH_TIMEOUT",
    "STOCKWATCH_DEMO_SEED",
    "STOCKWATCH_PREFERENCES_PATH",
    "STOCKWATCH_LOG_LEVEL",
    "STOCKWATCH_WATCHLIST",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "stockwatch.toml"
    path.write_text(
        'default_watchlist = ["aapl", "msft"]\n'
        "\n"
        "[indicators]\n"
        "rsi_period = 10\n"
        "overbought = 80\n"
        "\n"
        "[dispatcher]\n"
        'mode = "inline"\n'
        "timeout_seconds = 1.5\n"
        "\n"
        "[demo]\n"
        "seed = 99\n"
    )
    return path


class TestSchema:
    """Defaults and validators."""

    def test_defaults(self):
        config = StockwatchConfig()
        assert config.indicators.rsi_period == 14
        assert config.indicators.oversold < config.indicators.overbought
        assert config.dispatcher.mode == "worker"
        assert config.dispatcher.timeout_seconds is None
        assert config.demo.days == 30
        assert len(config.default_watchlist) > 0

    def test_thresholds_must_be_ordered(self):
        with pytest.raises(PydanticValidationError):
            IndicatorConfig(overbought=30.0, oversold=70.0)

    def test_to_thresholds(self):
        thresholds = IndicatorConfig(rsi_period=9, overbought=75.0).to_thresholds()
        assert isinstance(thresholds, SignalThresholds)
        assert thresholds.rsi_period == 9
        assert thresholds.overbought == 75.0

    def test_unknown_dispatch_mode(self):
        with pytest.raises(PydanticValidationError):
            DispatcherConfig(mode="process")

    def test_log_level_case_insensitive(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_watchlist_normalized(self):
        assert StockwatchConfig(default_watchlist=[" aapl "]).default_watchlist == ["AAPL"]


class TestLoadConfig:
    """File and environment layering."""

    def test_loads_file(self, config_file):
        config = load_config(config_file)

        assert config.default_watchlist == ["AAPL", "MSFT"]
        assert config.indicators.rsi_period == 10
        assert config.indicators.overbought == 80.0
        assert config.indicators.bollinger_period == 20
        assert config.dispatcher.mode == "inline"
        assert config.dispatcher.timeout_seconds == 1.5
        assert config.demo.seed == 99

    def test_env_overrides_file(self, config_file, monkeypatch):
        monkeypatch.setenv("STOCKWATCH_DISPATCH_MODE", "worker")
        monkeypatch.setenv("STOCKWATCH_LOG_LEVEL", "warning")
        monkeypatch.setenv("STOCKWATCH_WATCHLIST", "nvda, tsla,")
        monkeypatch.setenv("STOCKWATCH_PREFERENCES_PATH", "/tmp/sw-prefs.json")

        config = load_config(config_file)

        assert config.dispatcher.mode == "worker"
        assert config.dispatcher.timeout_seconds == 1.5
        assert config.logging.level == "WARNING"
        assert config.default_watchlist == ["NVDA", "TSLA"]
        assert config.preferences.path == Path("/tmp/sw-prefs.json")

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path / "nope.toml")
        assert "not found" in str(exc_info.value)

    def test_malformed_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[indicators\nrsi_period = ")

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert exc_info.value.source == str(path)

    def test_invalid_values_name_field(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[demo]\ndays = 0\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert exc_info.value.field == "demo.days"

    def test_invalid_env_value(self, config_file, monkeypatch):
        monkeypatch.setenv("STOCKWATCH_DISPATCH_TIMEOUT", "soon")
        with pytest.raises(ConfigError):
            load_config(config_file)


class TestCachedConfig:
    """Process-wide config via get_config/reload_config."""

    @pytest.fixture(autouse=True)
    def fresh_cache(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        get_config.cache_clear()
        yield
        get_config.cache_clear()

    def test_discovers_file_in_working_directory(self, config_file):
        assert get_config().demo.seed == 99

    def test_cached_until_reload(self, config_file):
        first = get_config()
        config_file.write_text("[demo]\nseed = 7\n")

        assert get_config() is first
        assert get_config().demo.seed == 99

        reloaded = reload_config()
        assert reloaded.demo.seed == 7
        assert get_config() is reloaded
