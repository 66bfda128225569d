from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .kv_store import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore, S3KeyValueStore


# Environment variable names
ENV_BACKEND = "TAB_STORAGE_BACKEND"
ENV_PATH = "TAB_STORAGE_PATH"
ENV_BUCKET = "TAB_STORAGE_BUCKET"
ENV_OBJECT_PREFIX = "TAB_STORAGE_PREFIX"
ENV_KEY_PREFIX = "TAB_KEY_PREFIX"
ENV_AUTOSAVE_DELAY_MS = "TAB_AUTOSAVE_DELAY_MS"
ENV_HISTORY_LIMIT = "TAB_HISTORY_LIMIT"
ENV_QUOTA_BYTES = "TAB_STORAGE_QUOTA_BYTES"

BACKENDS = ("memory", "file", "s3")

DEFAULT_KEY_PREFIX = "tab_"
DEFAULT_PATH = os.path.join(".cache", "tab_storage.json")
DEFAULT_AUTOSAVE_DELAY_MS = 2000
DEFAULT_HISTORY_LIMIT = 50


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _getenv_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = _getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Invalid integer for {name}: {raw!r}") from None


@dataclass(frozen=True)
class StorageConfig:
    backend: str = "memory"
    path: str = DEFAULT_PATH
    bucket: Optional[str] = None
    object_prefix: str = ""
    key_prefix: str = DEFAULT_KEY_PREFIX
    autosave_delay_ms: int = DEFAULT_AUTOSAVE_DELAY_MS
    history_limit: int = DEFAULT_HISTORY_LIMIT
    quota_bytes: Optional[int] = None

    @classmethod
    def from_env(cls) -> "StorageConfig":
        backend = (_getenv(ENV_BACKEND, "memory") or "memory").lower()
        if backend not in BACKENDS:
            raise RuntimeError(
                f"Unsupported {ENV_BACKEND} {backend!r}; expected one of {', '.join(BACKENDS)}"
            )
        return cls(
            backend=backend,
            path=_getenv(ENV_PATH, DEFAULT_PATH) or DEFAULT_PATH,
            bucket=_getenv(ENV_BUCKET),
            object_prefix=_getenv(ENV_OBJECT_PREFIX, "") or "",
            key_prefix=_getenv(ENV_KEY_PREFIX, DEFAULT_KEY_PREFIX) or DEFAULT_KEY_PREFIX,
            autosave_delay_ms=_getenv_int(ENV_AUTOSAVE_DELAY_MS, DEFAULT_AUTOSAVE_DELAY_MS),
            history_limit=_getenv_int(ENV_HISTORY_LIMIT, DEFAULT_HISTORY_LIMIT),
            quota_bytes=_getenv_int(ENV_QUOTA_BYTES, None),
        )

    def build_store(self) -> KeyValueStore:
        if self.backend == "memory":
            return MemoryKeyValueStore(quota_bytes=self.quota_bytes)
        if self.backend == "file":
            return JsonFileKeyValueStore(self.path)
        if self.backend == "s3":
            if not self.bucket:
                raise RuntimeError(f"Missing required configuration: {ENV_BUCKET}")
            return S3KeyValueStore(bucket=self.bucket, prefix=self.object_prefix)
        raise RuntimeError(f"Unsupported storage backend: {self.backend!r}")
