from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any, List, Mapping

from pydantic import BaseModel, TypeAdapter, ValidationError

from storage.config import DEFAULT_HISTORY_LIMIT
from storage.kv_store import KeyValueStore

from .models import HistoryEntry
from .namespace import (
    STORAGE_KEYS,
    Clock,
    Partition,
    ReadResult,
    ReadStatus,
    iso_timestamp,
    to_plain,
    utc_now,
)


logger = logging.getLogger(__name__)

_HISTORY = TypeAdapter(List[HistoryEntry])

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def epoch_millis(dt: datetime) -> int:
    return (dt - _EPOCH) // timedelta(milliseconds=1)


class GameHistoryManager:
    """
    Append-only, capacity-bounded log of completed games, newest first.

    Adding is best-effort: failures are logged, never reported to the caller.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = STORAGE_KEYS.game_history,
        limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Clock = utc_now,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self.partition = Partition(store, key)
        self._limit = limit
        self._clock = clock

    def read_history(self) -> ReadResult[List[HistoryEntry]]:
        result = self.partition.read()
        if not result.ok:
            return result
        try:
            entries = _HISTORY.validate_python(result.value)
        except ValidationError as ex:
            logger.error("Error loading game history: %s", ex)
            return ReadResult(ReadStatus.CORRUPT, error=str(ex))
        return ReadResult(ReadStatus.OK, value=entries)

    def get_history(self) -> List[HistoryEntry]:
        return self.read_history().value_or([])

    def _next_id(self, now_ms: int, history: List[HistoryEntry]) -> int:
        # Wall-clock millis, bumped past the newest id so ids keep increasing
        if history and history[0].id >= now_ms:
            return history[0].id + 1
        return now_ms

    def add_game_to_history(self, game_data: BaseModel | Mapping[str, Any]) -> None:
        current = self.read_history()
        if current.status is ReadStatus.UNAVAILABLE:
            logger.error("Error saving game history: store unavailable")
            return
        if current.status is ReadStatus.CORRUPT:
            logger.warning("Discarding unreadable game history at %s", self.partition.key)
        history = current.value_or([])

        now = self._clock()
        entry = {
            **to_plain(game_data),
            "completedAt": iso_timestamp(now),
            "id": self._next_id(epoch_millis(now), history),
        }
        payload = [entry] + [h.to_payload() for h in history]
        del payload[self._limit:]

        result = self.partition.write(payload)
        if not result:
            logger.error("Error saving game history: %s", result.error or result.reason)

    def clear_history(self) -> None:
        self.partition.delete()
