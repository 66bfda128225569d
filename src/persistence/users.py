from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from storage.kv_store import KeyValueStore

from .models import StatValue, UserRecord
from .namespace import STORAGE_KEYS, Partition, ReadResult, ReadStatus, WriteResult, to_plain


logger = logging.getLogger(__name__)


class UserManager:
    """
    CRUD and authentication over the stored user list.

    - The list keeps insertion order; lookups are a linear scan by `username`.
    - `save_user` merges into an existing record (incoming fields win) or appends.
    - Reads never fail: absent or malformed data reads as an empty list.
    - Records are validated one at a time. An invalid record is skipped on read
      (and logged) but written back untouched, so one bad entry neither hides
      the other users nor gets lost. Only a payload that is not a list is corrupt.
    """

    def __init__(self, store: KeyValueStore, *, key: str = STORAGE_KEYS.user_data) -> None:
        self.partition = Partition(store, key)

    def _read_raw(self) -> ReadResult[List[Any]]:
        result = self.partition.read()
        if result.ok and not isinstance(result.value, list):
            logger.error("Error loading users: stored value is not a list")
            return ReadResult(ReadStatus.CORRUPT, error="stored value is not a list")
        return result

    def read_users(self) -> ReadResult[List[UserRecord]]:
        result = self._read_raw()
        if not result.ok:
            return result
        users: List[UserRecord] = []
        for i, item in enumerate(result.value):
            try:
                users.append(UserRecord.model_validate(item))
            except ValidationError as ex:
                logger.warning("Skipping invalid user record at index %d: %s", i, ex)
        return ReadResult(ReadStatus.OK, value=users)

    def get_all_users(self) -> List[UserRecord]:
        return self.read_users().value_or([])

    def get_user(self, username: str) -> Optional[UserRecord]:
        for user in self.get_all_users():
            if user.username == username:
                return user
        return None

    def authenticate(self, username: str, password: str) -> Optional[UserRecord]:
        user = self.get_user(username)
        if user is not None and user.password == password:
            return user
        return None

    def save_user(self, record: UserRecord | Mapping[str, Any]) -> WriteResult:
        current = self._read_raw()
        if current.status in (ReadStatus.CORRUPT, ReadStatus.UNAVAILABLE):
            logger.error("Error saving user data: existing data is %s", current.status.value)
            return WriteResult.failure(current.status.value, current.error)
        users = list(current.value_or([]))

        incoming = to_plain(record)
        username = incoming.get("username")
        index = next(
            (i for i, u in enumerate(users) if isinstance(u, dict) and u.get("username") == username),
            None,
        )
        merged = {**users[index], **incoming} if index is not None else incoming

        try:
            validated = UserRecord.model_validate(merged)
        except ValidationError as ex:
            logger.error("Error saving user data: %s", ex)
            return WriteResult.failure("invalid", ex)

        if index is None:
            users.append(validated.to_payload())
        else:
            users[index] = validated.to_payload()
        return self.partition.write(users)

    def update_stats(self, username: str, stats: Mapping[str, StatValue]) -> WriteResult:
        user = self.get_user(username)
        if user is None:
            return WriteResult.failure("not_found")
        merged = user.model_copy(update={"stats": {**user.stats, **dict(stats)}})
        return self.save_user(merged.to_payload())
