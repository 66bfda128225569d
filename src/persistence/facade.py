from __future__ import annotations

from typing import Optional

from storage.config import DEFAULT_AUTOSAVE_DELAY_MS, DEFAULT_HISTORY_LIMIT, StorageConfig
from storage.debounce import Scheduler
from storage.kv_store import KeyValueStore

from .game_state import GameStateManager
from .history import GameHistoryManager
from .namespace import Clock, StorageKeys, utc_now
from .settings import SettingsManager
from .users import UserManager


class DataPersistence:
    """
    The four record managers sharing one key-value store.

    Each manager owns its own partition; none calls another.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        keys: Optional[StorageKeys] = None,
        autosave_delay_ms: int = DEFAULT_AUTOSAVE_DELAY_MS,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        scheduler: Optional[Scheduler] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.keys = keys or StorageKeys.with_prefix()
        self.users = UserManager(store, key=self.keys.user_data)
        self.game_state = GameStateManager(
            store,
            key=self.keys.game_state,
            autosave_delay_ms=autosave_delay_ms,
            scheduler=scheduler,
            clock=clock,
        )
        self.history = GameHistoryManager(
            store, key=self.keys.game_history, limit=history_limit, clock=clock
        )
        self.settings = SettingsManager(store, key=self.keys.settings)

    # -------- Construction helpers --------
    @classmethod
    def from_config(
        cls,
        config: StorageConfig,
        *,
        store: Optional[KeyValueStore] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> "DataPersistence":
        return cls(
            store or config.build_store(),
            keys=StorageKeys.with_prefix(config.key_prefix),
            autosave_delay_ms=config.autosave_delay_ms,
            history_limit=config.history_limit,
            scheduler=scheduler,
        )

    @classmethod
    def from_env(cls) -> "DataPersistence":
        return cls.from_config(StorageConfig.from_env())
