from __future__ import annotations

import pytest

from storage.config import StorageConfig
from storage.kv_store import JsonFileKeyValueStore, MemoryKeyValueStore


_ALL_VARS = (
    "TAB_STORAGE_BACKEND",
    "TAB_STORAGE_PATH",
    "TAB_STORAGE_BUCKET",
    "TAB_STORAGE_PREFIX",
    "TAB_KEY_PREFIX",
    "TAB_AUTOSAVE_DELAY_MS",
    "TAB_HISTORY_LIMIT",
    "TAB_STORAGE_QUOTA_BYTES",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ALL_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_from_empty_env():
    cfg = StorageConfig.from_env()
    assert cfg.backend == "memory"
    assert cfg.key_prefix == "tab_"
    assert cfg.autosave_delay_ms == 2000
    assert cfg.history_limit == 50
    assert cfg.quota_bytes is None
    assert isinstance(cfg.build_store(), MemoryKeyValueStore)


def test_empty_values_count_as_unset(monkeypatch):
    monkeypatch.setenv("TAB_KEY_PREFIX", "")
    monkeypatch.setenv("TAB_HISTORY_LIMIT", "")
    cfg = StorageConfig.from_env()
    assert cfg.key_prefix == "tab_"
    assert cfg.history_limit == 50


def test_file_backend(monkeypatch, tmp_path):
    monkeypatch.setenv("TAB_STORAGE_BACKEND", "FILE")
    monkeypatch.setenv("TAB_STORAGE_PATH", str(tmp_path / "s.json"))
    store = StorageConfig.from_env().build_store()
    assert isinstance(store, JsonFileKeyValueStore)
    assert store.path == tmp_path / "s.json"


def test_s3_backend_requires_bucket(monkeypatch):
    monkeypatch.setenv("TAB_STORAGE_BACKEND", "s3")
    cfg = StorageConfig.from_env()
    with pytest.raises(RuntimeError):
        cfg.build_store()


def test_unknown_backend_rejected(monkeypatch):
    monkeypatch.setenv("TAB_STORAGE_BACKEND", "redis")
    with pytest.raises(RuntimeError):
        StorageConfig.from_env()


def test_invalid_integer_rejected(monkeypatch):
    monkeypatch.setenv("TAB_AUTOSAVE_DELAY_MS", "soon")
    with pytest.raises(RuntimeError):
        StorageConfig.from_env()


def test_quota_from_env(monkeypatch):
    monkeypatch.setenv("TAB_STORAGE_QUOTA_BYTES", "1024")
    cfg = StorageConfig.from_env()
    assert cfg.quota_bytes == 1024
