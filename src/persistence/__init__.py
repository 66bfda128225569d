"""
Persistence for the board game: users, the current game, finished games, settings.

Each manager owns one partition of a key-value store and stores a JSON payload
there. Read failures fall back to empty/default values; write failures are
reported as `WriteResult` (users, game state) or only logged (history, settings).
"""

from .facade import DataPersistence
from .game_state import GameStateManager
from .history import GameHistoryManager
from .models import DEFAULT_SETTINGS, GameSnapshot, HistoryEntry, Settings, UserRecord
from .namespace import STORAGE_KEYS, ReadResult, ReadStatus, StorageKeys, WriteResult
from .settings import SettingsManager
from .users import UserManager

__all__ = [
    "DEFAULT_SETTINGS",
    "STORAGE_KEYS",
    "DataPersistence",
    "GameHistoryManager",
    "GameSnapshot",
    "GameStateManager",
    "HistoryEntry",
    "ReadResult",
    "ReadStatus",
    "Settings",
    "SettingsManager",
    "StorageKeys",
    "UserManager",
    "UserRecord",
    "WriteResult",
]
