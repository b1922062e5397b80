"""
User preferences and watchlist storage.

A single JSON file holds display settings and the watchlist. The store is
an explicit object: construct it with a path, call ``load()`` at startup,
and pass it to whatever needs it. Every mutation is written through to
disk immediately and announced to subscribers.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, Field, ValidationError

from domain.models import UserSettings, WatchlistItem, normalize_ticker
from ports.errors import InvalidTickerError

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES_PATH = Path.home() / ".config" / "stockwatch" / "preferences.json"

Listener = Callable[["PreferencesSnapshot"], None]


class PreferencesSnapshot(BaseModel):
    """Everything persisted between sessions."""

    settings: UserSettings = Field(default_factory=UserSettings)
    watchlist: list[WatchlistItem] = Field(default_factory=list)


class PreferencesStore:
    """
    File-backed settings and watchlist service.

    Usage:
        store = PreferencesStore(path)
        store.load()
        store.add_to_watchlist("AAPL", "Apple Inc.")
        store.update_settings(theme="dark")
    """

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path else DEFAULT_PREFERENCES_PATH
        self._snapshot = PreferencesSnapshot()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> PreferencesSnapshot:
        """
        Load preferences from disk.

        A missing file means first run and yields defaults. An unreadable
        or invalid file is logged and replaced by defaults on next save.
        """
        if not self.path.exists():
            logger.debug(f"No preferences at {self.path}, using defaults")
            self._snapshot = PreferencesSnapshot()
            return self._snapshot

        try:
            self._snapshot = PreferencesSnapshot.model_validate_json(self.path.read_bytes())
            logger.info(f"Loaded preferences from: {self.path}")
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable preferences {self.path}: {e}")
            self._snapshot = PreferencesSnapshot()

        return self._snapshot

    def save(self) -> None:
        """Write the current snapshot to disk, replacing the old file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(self._snapshot.model_dump_json(indent=2))
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved preferences to: {self.path}")

    def _commit(self, snapshot: PreferencesSnapshot) -> None:
        self._snapshot = snapshot
        self.save()
        for listener in list(self._listeners):
            listener(snapshot)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def settings(self) -> UserSettings:
        return self._snapshot.settings

    def update_settings(self, **changes: Any) -> UserSettings:
        """
        Merge ``changes`` into the current settings.

        Raises:
            pydantic.ValidationError: If a field is unknown or out of range
        """
        merged = {**self._snapshot.settings.model_dump(), **changes}
        settings = UserSettings.model_validate(merged)
        self._commit(self._snapshot.model_copy(update={"settings": settings}))
        return settings

    # ------------------------------------------------------------------
    # Watchlist
    # ------------------------------------------------------------------

    @property
    def watchlist(self) -> tuple[WatchlistItem, ...]:
        return tuple(self._snapshot.watchlist)

    @property
    def symbols(self) -> list[str]:
        return [item.symbol for item in self._snapshot.watchlist]

    def contains(self, symbol: str) -> bool:
        return _normalize(symbol) in self.symbols

    def add_to_watchlist(self, symbol: str, name: str = "") -> bool:
        """Add a symbol; returns False if it is already tracked."""
        symbol = _normalize(symbol)
        if symbol in self.symbols:
            return False
        item = WatchlistItem(symbol=symbol, name=name or symbol)
        self._commit(self._snapshot.model_copy(
            update={"watchlist": [*self._snapshot.watchlist, item]}
        ))
        logger.info(f"Added {symbol} to watchlist")
        return True

    def remove_from_watchlist(self, symbol: str) -> bool:
        """Remove a symbol; returns False if it was not tracked."""
        symbol = _normalize(symbol)
        remaining = [item for item in self._snapshot.watchlist if item.symbol != symbol]
        if len(remaining) == len(self._snapshot.watchlist):
            return False
        self._commit(self._snapshot.model_copy(update={"watchlist": remaining}))
        logger.info(f"Removed {symbol} from watchlist")
        return True


def _normalize(symbol: str) -> str:
    try:
        return normalize_ticker(symbol)
    except ValueError as e:
        raise InvalidTickerError(symbol, str(e)) from None
