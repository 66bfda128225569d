from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError


class StorageError(RuntimeError):
    """Base error for key-value store backends."""


class QuotaExceededError(StorageError):
    """A write would push the store past its capacity."""


class KeyValueStore(Protocol):
    """Synchronous string-keyed store; the backing medium for every partition."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class MemoryKeyValueStore:
    """
    Process-local store, optionally bounded like browser storage.

    - `quota_bytes` caps the UTF-8 size of all keys and values together.
    - A `set` that would exceed the quota raises `QuotaExceededError` and
      leaves the previous value in place.
    """

    def __init__(self, *, quota_bytes: Optional[int] = None) -> None:
        if quota_bytes is not None and quota_bytes <= 0:
            raise ValueError("quota_bytes must be > 0")
        self._quota = quota_bytes
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            if self._quota is not None:
                used = self._used_bytes()
                old = self._data.get(key)
                if old is not None:
                    used -= _entry_size(key, old)
                if used + _entry_size(key, value) > self._quota:
                    raise QuotaExceededError(
                        f"storage quota of {self._quota} bytes exceeded writing {key!r}"
                    )
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def _used_bytes(self) -> int:
        return sum(_entry_size(k, v) for k, v in self._data.items())

    def used_bytes(self) -> int:
        with self._lock:
            return self._used_bytes()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


class JsonFileKeyValueStore:
    """
    Key-value store backed by a single JSON file: { key: value, ... }.

    - Loaded lazily on first access; a corrupt or non-object file reads as empty.
    - Every mutation rewrites the whole file, so data survives restarts.
    - Unlike a best-effort cache, write failures surface as `StorageError`.
    - Load, modify and rewrite happen under one lock, so a debounced write on a
      timer thread cannot drop a key written concurrently by the caller.
    """

    def __init__(self, path: os.PathLike[str] | str) -> None:
        self._path = Path(path)
        self._data: Dict[str, str] = {}
        self._loaded = False
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        try:
            if self._path.exists():
                with self._path.open("r", encoding="utf-8") as f:
                    raw = json.load(f)
                    if isinstance(raw, dict):
                        self._data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        except (OSError, ValueError):
            # Corrupt file: start fresh, the next write replaces it
            self._data = {}

    def _save(self, data: Dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
        except OSError as ex:
            raise StorageError(f"failed to write {self._path}") from ex

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            self._ensure_loaded()
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._ensure_loaded()
            updated = dict(self._data)
            updated[key] = value
            self._save(updated)
            self._data = updated

    def delete(self, key: str) -> None:
        with self._lock:
            self._ensure_loaded()
            if key not in self._data:
                return
            updated = {k: v for k, v in self._data.items() if k != key}
            self._save(updated)
            self._data = updated


class S3KeyValueStore:
    """
    S3-backed store: one object per key at `{prefix}{key}`.

    - A missing object (`NoSuchKey` / `404`) reads as absent.
    - Any other `ClientError`, and any `BotoCoreError` (no credentials,
      unreachable endpoint, timeouts), is re-raised as `StorageError`.
    """

    def __init__(
        self,
        *,
        s3: Optional[object] = None,
        bucket: str,
        prefix: str = "",
        region_name: Optional[str] = None,
    ) -> None:
        if not bucket:
            raise ValueError("bucket is required")
        self._s3 = s3 or boto3.client("s3", region_name=region_name)
        self._bucket = bucket
        self._prefix = prefix

    def _object_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            resp = self._s3.get_object(Bucket=self._bucket, Key=self._object_key(key))
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                return None
            raise StorageError(f"failed to read s3://{self._bucket}/{self._object_key(key)}") from e
        except BotoCoreError as e:
            raise StorageError(f"failed to read s3://{self._bucket}/{self._object_key(key)}") from e
        try:
            body = resp["Body"].read()
        except BotoCoreError as e:
            raise StorageError(f"failed to read body of s3://{self._bucket}/{self._object_key(key)}") from e
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as ex:
            raise StorageError(f"object for {key!r} is not UTF-8 text") from ex

    def set(self, key: str, value: str) -> None:
        try:
            self._s3.put_object(
                Bucket=self._bucket,
                Key=self._object_key(key),
                Body=value.encode("utf-8"),
                ContentType="application/json",
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"failed to write s3://{self._bucket}/{self._object_key(key)}") from e

    def delete(self, key: str) -> None:
        # S3 DeleteObject succeeds for missing keys
        try:
            self._s3.delete_object(Bucket=self._bucket, Key=self._object_key(key))
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"failed to delete s3://{self._bucket}/{self._object_key(key)}") from e
