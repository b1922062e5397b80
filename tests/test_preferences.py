"""Tests for the settings and watchlist store."""

import json

import pytest
from pydantic import ValidationError

from domain import Currency, Theme
from ports import InvalidTickerError
from services import PreferencesStore


@pytest.fixture
def prefs_path(tmp_path):
    return tmp_path / "prefs" / "preferences.json"


@pytest.fixture
def store(prefs_path):
    s = PreferencesStore(prefs_path)
    s.load()
    return s


class TestLoading:
    """Reading preferences from disk."""

    def test_missing_file_gives_defaults(self, store, prefs_path):
        assert not prefs_path.exists()
        assert store.settings.theme == Theme.LIGHT
        assert store.settings.currency == Currency.USD
        assert store.settings.refresh_interval_ms == 30_000
        assert store.watchlist == ()

    def test_corrupt_file_gives_defaults(self, prefs_path):
        prefs_path.parent.mkdir(parents=True)
        prefs_path.write_text("{not json")

        s = PreferencesStore(prefs_path)
        snapshot = s.load()

        assert snapshot.watchlist == []
        assert s.settings.theme == Theme.LIGHT

    def test_invalid_values_give_defaults(self, prefs_path):
        prefs_path.parent.mkdir(parents=True)
        prefs_path.write_text(json.dumps({"settings": {"refresh_interval_ms": 5}}))

        s = PreferencesStore(prefs_path)
        s.load()
        assert s.settings.refresh_interval_ms == 30_000


class TestWatchlist:
    """Adding and removing symbols."""

    def test_add_normalizes_and_persists(self, store, prefs_path):
        assert store.add_to_watchlist("aapl", "Apple Inc.") is True
        assert store.symbols == ["AAPL"]
        assert store.contains("Aapl")

        reloaded = PreferencesStore(prefs_path)
        reloaded.load()
        assert reloaded.symbols == ["AAPL"]
        assert reloaded.watchlist[0].name == "Apple Inc."

    def test_add_duplicate(self, store):
        store.add_to_watchlist("MSFT")
        assert store.add_to_watchlist("msft") is False
        assert store.symbols == ["MSFT"]

    def test_name_defaults_to_symbol(self, store):
        store.add_to_watchlist("NVDA")
        assert store.watchlist[0].name == "NVDA"

    def test_preserves_insertion_order(self, store):
        for symbol in ("TSLA", "AAPL", "BRK.B"):
            store.add_to_watchlist(symbol)
        assert store.symbols == ["TSLA", "AAPL", "BRK.B"]

    def test_remove(self, store):
        store.add_to_watchlist("AAPL")
        store.add_to_watchlist("MSFT")

        assert store.remove_from_watchlist("aapl") is True
        assert store.symbols == ["MSFT"]
        assert store.remove_from_watchlist("AAPL") is False

    def test_invalid_ticker(self, store):
        with pytest.raises(InvalidTickerError):
            store.add_to_watchlist("")
        with pytest.raises(InvalidTickerError):
            store.add_to_watchlist("$$$")


class TestSettings:
    """Updating display settings."""

    def test_update_persists(self, store, prefs_path):
        store.update_settings(theme="dark", currency="KRW")

        reloaded = PreferencesStore(prefs_path)
        reloaded.load()
        assert reloaded.settings.theme == Theme.DARK
        assert reloaded.settings.currency == Currency.KRW
        assert reloaded.settings.show_volume is True

    def test_string_values_are_coerced(self, store):
        settings = store.update_settings(show_volume="false", refresh_interval_ms="60000")
        assert settings.show_volume is False
        assert settings.refresh_interval_ms == 60_000

    def test_out_of_range_rejected(self, store):
        with pytest.raises(ValidationError):
            store.update_settings(refresh_interval_ms=10)
        assert store.settings.refresh_interval_ms == 30_000

    def test_unknown_setting_rejected(self, store):
        with pytest.raises(ValidationError):
            store.update_settings(font_size=12)


class TestSaving:
    """Writing preferences to disk."""

    def test_failed_write_keeps_previous_file(self, store, prefs_path, monkeypatch):
        store.add_to_watchlist("AAPL")
        before = prefs_path.read_text()

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("services.preferences.os.replace", broken_replace)
        with pytest.raises(OSError):
            store.add_to_watchlist("MSFT")

        assert prefs_path.read_text() == before
        assert [p.name for p in prefs_path.parent.iterdir()] == [prefs_path.name]

    def test_overwrites_existing_file(self, store, prefs_path):
        store.add_to_watchlist("AAPL")
        store.remove_from_watchlist("AAPL")

        assert json.loads(prefs_path.read_text())["watchlist"] == []
        assert [p.name for p in prefs_path.parent.iterdir()] == [prefs_path.name]


class TestSubscriptions:
    """Change notifications."""

    def test_listener_receives_snapshots(self, store):
        seen = []
        unsubscribe = store.subscribe(seen.append)

        store.add_to_watchlist("AAPL")
        store.update_settings(theme="dark")
        unsubscribe()
        store.add_to_watchlist("MSFT")

        assert len(seen) == 2
        assert [i.symbol for i in seen[0].watchlist] == ["AAPL"]
        assert seen[1].settings.theme == Theme.DARK

    def test_unsubscribe_twice(self, store):
        unsubscribe = store.subscribe(lambda snapshot: None)
        unsubscribe()
        unsubscribe()

    def test_no_notification_for_noop(self, store):
        store.add_to_watchlist("AAPL")
        seen = []
        store.subscribe(seen.append)

        store.add_to_watchlist("AAPL")
        store.remove_from_watchlist("MSFT")

        assert seen == []
