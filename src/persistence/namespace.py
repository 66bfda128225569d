from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Callable, Generic, Mapping, Optional, TypeVar

from pydantic import BaseModel

from storage.config import DEFAULT_KEY_PREFIX
from storage.kv_store import KeyValueStore, StorageError


logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


class PartitionName(str, Enum):
    GAME_STATE = "game_state"
    USER_DATA = "user_data"
    GAME_HISTORY = "game_history"
    SETTINGS = "settings"


@dataclass(frozen=True)
class StorageKeys:
    """The four store keys, one per partition."""

    game_state: str
    user_data: str
    game_history: str
    settings: str

    @classmethod
    def with_prefix(cls, prefix: str = DEFAULT_KEY_PREFIX) -> "StorageKeys":
        return cls(**{p.value: f"{prefix}{p.value}" for p in PartitionName})

    def key_for(self, partition: PartitionName) -> str:
        return getattr(self, partition.value)

    def as_dict(self) -> dict[str, str]:
        return {p.name: self.key_for(p) for p in PartitionName}


STORAGE_KEYS = StorageKeys.with_prefix()


def utc_now() -> datetime:
    return datetime.now(UTC)


def iso_timestamp(dt: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a "Z" suffix, e.g. 2026-10-18T09:30:00.123Z."""
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def dump_json(payload: Any) -> str:
    # Compact JSON, insertion order preserved
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def to_plain(record: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    """Plain dict for merging; models contribute only explicitly set fields."""
    if isinstance(record, BaseModel):
        return record.model_dump(by_alias=True, mode="json", exclude_unset=True)
    return dict(record)


class ReadStatus(str, Enum):
    OK = "ok"
    ABSENT = "absent"
    CORRUPT = "corrupt"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ReadResult(Generic[T]):
    status: ReadStatus
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ReadStatus.OK

    def value_or(self, default: T) -> T:
        return self.value if self.status is ReadStatus.OK and self.value is not None else default


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a write; truthy iff it succeeded."""

    ok: bool
    reason: Optional[str] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> "WriteResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str, error: Optional[BaseException | str] = None) -> "WriteResult":
        return cls(ok=False, reason=reason, error=str(error) if error is not None else None)


class Partition:
    """
    One store key holding one JSON payload.

    `read` and `write` never raise: failures come back as `ReadResult` /
    `WriteResult`. Absence of the key is a valid "never saved" state.
    """

    def __init__(self, store: KeyValueStore, key: str) -> None:
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def exists(self) -> bool:
        try:
            return self._store.get(self._key) is not None
        except StorageError:
            logger.error("Error checking %s", self._key, exc_info=True)
            return False

    def read(self) -> ReadResult[Any]:
        try:
            raw = self._store.get(self._key)
        except StorageError as ex:
            logger.error("Error reading %s: %s", self._key, ex)
            return ReadResult(ReadStatus.UNAVAILABLE, error=str(ex))
        if raw is None:
            return ReadResult(ReadStatus.ABSENT)
        try:
            return ReadResult(ReadStatus.OK, value=json.loads(raw))
        except ValueError as ex:
            logger.error("Error decoding %s: %s", self._key, ex)
            return ReadResult(ReadStatus.CORRUPT, error=str(ex))

    def write(self, payload: Any) -> WriteResult:
        try:
            encoded = dump_json(payload)
        except (TypeError, ValueError) as ex:
            logger.error("Error encoding %s: %s", self._key, ex)
            return WriteResult.failure("unencodable", ex)
        try:
            self._store.set(self._key, encoded)
        except StorageError as ex:
            logger.error("Error writing %s: %s", self._key, ex)
            return WriteResult.failure("storage", ex)
        return WriteResult.success()

    def delete(self) -> bool:
        try:
            self._store.delete(self._key)
        except StorageError as ex:
            logger.error("Error deleting %s: %s", self._key, ex)
            return False
        return True
