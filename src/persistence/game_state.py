from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ValidationError

from storage.config import DEFAULT_AUTOSAVE_DELAY_MS
from storage.debounce import Debouncer, Scheduler
from storage.kv_store import KeyValueStore

from .models import GameSnapshot
from .namespace import (
    STORAGE_KEYS,
    Clock,
    Partition,
    ReadResult,
    ReadStatus,
    WriteResult,
    iso_timestamp,
    to_plain,
    utc_now,
)


logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"


class GameStateManager:
    """
    Save/load/clear of the single current game snapshot.

    - Every save overwrites the snapshot wholesale and stamps `timestamp` and
      `version`; the game fields themselves are not interpreted.
    - `auto_save` is a trailing-edge debounce: the write happens once no call
      has arrived for `autosave_delay_ms`, and persists the last state passed.
      The pending slot belongs to this instance.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = STORAGE_KEYS.game_state,
        autosave_delay_ms: int = DEFAULT_AUTOSAVE_DELAY_MS,
        scheduler: Optional[Scheduler] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.partition = Partition(store, key)
        self._clock = clock
        self._autosave = Debouncer(autosave_delay_ms / 1000.0, scheduler=scheduler)

    def save_game_state(self, state: BaseModel | Mapping[str, Any]) -> WriteResult:
        payload = {
            **to_plain(state),
            "timestamp": iso_timestamp(self._clock()),
            "version": SCHEMA_VERSION,
        }
        result = self.partition.write(payload)
        if not result:
            logger.error("Error saving game state: %s", result.error or result.reason)
        return result

    def load_result(self) -> ReadResult[GameSnapshot]:
        result = self.partition.read()
        if not result.ok:
            return result
        try:
            snapshot = GameSnapshot.model_validate(result.value)
        except ValidationError as ex:
            logger.error("Error loading game state: %s", ex)
            return ReadResult(ReadStatus.CORRUPT, error=str(ex))
        return ReadResult(ReadStatus.OK, value=snapshot)

    def load_game_state(self) -> Optional[GameSnapshot]:
        return self.load_result().value

    def has_saved_game(self) -> bool:
        return self.partition.exists()

    def clear_game_state(self) -> None:
        # A pending auto-save would bring the cleared game back
        self._autosave.cancel()
        self.partition.delete()

    # -------- Debounced auto-save --------
    def auto_save(self, state: BaseModel | Mapping[str, Any]) -> None:
        snapshot = to_plain(state)
        self._autosave.call(lambda: self.save_game_state(snapshot))

    @property
    def auto_save_pending(self) -> bool:
        return self._autosave.pending

    def flush(self) -> bool:
        """Write a pending auto-save now. Returns False if none was pending."""
        return self._autosave.flush()

    def cancel_auto_save(self) -> bool:
        return self._autosave.cancel()
