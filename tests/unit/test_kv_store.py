from __future__ import annotations

import json
import threading

import pytest

from storage.kv_store import (
    JsonFileKeyValueStore,
    MemoryKeyValueStore,
    QuotaExceededError,
    StorageError,
)


def test_memory_store_get_set_delete():
    store = MemoryKeyValueStore()
    assert store.get("k") is None

    store.set("k", "v")
    assert store.get("k") == "v"

    store.delete("k")
    store.delete("k")  # idempotent
    assert store.get("k") is None


def test_memory_store_quota_keeps_previous_value():
    store = MemoryKeyValueStore(quota_bytes=10)
    store.set("k", "1234")  # 5 bytes

    with pytest.raises(QuotaExceededError):
        store.set("k", "x" * 20)
    assert store.get("k") == "1234"

    # Replacing a value only counts the new size
    store.set("k", "123456789")
    assert store.used_bytes() == 10


def test_quota_error_is_storage_error():
    assert issubclass(QuotaExceededError, StorageError)


def test_memory_store_rejects_bad_quota():
    with pytest.raises(ValueError):
        MemoryKeyValueStore(quota_bytes=0)


def test_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "store.json"
    s1 = JsonFileKeyValueStore(path)
    s1.set("a", '{"x":1}')
    s1.set("b", "[]")
    s1.delete("b")

    s2 = JsonFileKeyValueStore(path)
    assert s2.get("a") == '{"x":1}'
    assert s2.get("b") is None
    assert json.loads(path.read_text(encoding="utf-8")) == {"a": '{"x":1}'}


def test_file_store_corrupt_file_reads_empty(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")

    store = JsonFileKeyValueStore(path)
    assert store.get("a") is None

    store.set("a", "1")
    assert JsonFileKeyValueStore(path).get("a") == "1"


def test_file_store_write_failure_raises_storage_error(tmp_path):
    # Parent "directory" is a regular file, so the write cannot succeed
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JsonFileKeyValueStore(blocker / "store.json")

    with pytest.raises(StorageError):
        store.set("a", "1")
    assert store.get("a") is None


@pytest.mark.parametrize("run", range(10))
def test_file_store_concurrent_writers_keep_both_keys(tmp_path, run):
    path = tmp_path / "store.json"
    store = JsonFileKeyValueStore(path)
    start = threading.Barrier(2)

    def writer(key: str) -> None:
        start.wait()
        for i in range(20):
            store.set(key, f'{{"n":{i}}}')

    threads = [
        threading.Thread(target=writer, args=("tab_game_state",)),
        threading.Thread(target=writer, args=("tab_game_history",)),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    reopened = JsonFileKeyValueStore(path)
    assert reopened.get("tab_game_state") == '{"n":19}'
    assert reopened.get("tab_game_history") == '{"n":19}'


def test_memory_store_concurrent_writers_respect_quota():
    store = MemoryKeyValueStore(quota_bytes=1000)
    errors = []

    def writer(prefix: str) -> None:
        for i in range(200):
            try:
                store.set(f"{prefix}{i % 20}", "x" * 30)
            except QuotaExceededError:
                errors.append(prefix)

    threads = [threading.Thread(target=writer, args=(p,)) for p in ("a", "b")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.used_bytes() <= 1000
    assert errors
