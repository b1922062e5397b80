"""Services layer for stockwatch."""

from .dispatcher import DispatchMode, DispatcherState, IndicatorDispatcher
from .preferences import PreferencesSnapshot, PreferencesStore

__all__ = [
    "DispatchMode",
    "DispatcherState",
    "IndicatorDispatcher",
    "PreferencesSnapshot",
    "PreferencesStore",
]
