from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import pytest

from tabstate._flush import WriteQueue
from tabstate.cache import TabStateCache
from tabstate.exceptions import StoreError, TabStateError
from tabstate.models import LiveTab, parse_tab_id
from tabstate.reconcile import reconcile
from tabstate.store import JsonFileStore, MemoryStore


class _SlowFirstWriteStore(MemoryStore):
    """First write for each key yields to the loop a few times before landing."""

    def __init__(self) -> None:
        super().__init__()
        self.order: list[tuple[str, Any]] = []
        self._seen: set[Any] = set()

    async def set(self, key: Any, record: dict[str, Any]) -> None:
        if key not in self._seen:
            self._seen.add(key)
            for _ in range(5):
                await asyncio.sleep(0)
        self.order.append((str(key), record.get("n")))
        await super().set(key, record)


class _FailingStore(MemoryStore):
    async def set(self, key: Any, record: dict[str, Any]) -> None:
        raise OSError("quota exceeded")


def test_parse_tab_id() -> None:
    assert parse_tab_id(0) == 0
    assert parse_tab_id(12) == 12
    assert parse_tab_id("12") == 12
    assert parse_tab_id(-1) is None
    assert parse_tab_id(True) is None
    assert parse_tab_id("cfg") is None
    assert parse_tab_id("1e3") is None
    assert parse_tab_id("05") is None
    assert parse_tab_id("0") == 0
    assert parse_tab_id(1.0) is None


@pytest.mark.asyncio
async def test_writes_for_one_key_land_in_issue_order() -> None:
    store = _SlowFirstWriteStore()
    queue = WriteQueue(store)

    queue.submit_set(1, {"n": 1})
    queue.submit_set(1, {"n": 2})
    queue.submit_remove(1)
    queue.submit_set(2, {"n": 9})
    await queue.drain()

    ones = [entry for entry in store.order if entry[0] == "1"]
    assert ones == [("1", 1), ("1", 2)]
    assert 1 not in store.data
    assert store.data[2] == {"n": 9}
    assert queue.pending == 0


@pytest.mark.asyncio
async def test_failed_write_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    cache = TabStateCache(_FailingStore())

    with caplog.at_level(logging.WARNING, logger="tabstate._flush"):
        cache.set(1, "url", "https://a.test/")
        await cache.flush()

    assert cache.get(1, "url") == "https://a.test/"
    assert "Store set failed for key 1" in caplog.text


def test_persistent_writes_need_a_running_loop() -> None:
    cache = TabStateCache(MemoryStore())
    with pytest.raises(TabStateError):
        cache.set(1, "url", "https://a.test/")

    assert cache.get(1) is None
    assert len(cache) == 0


def test_no_loop_failure_leaves_tracked_record_untouched() -> None:
    cache = TabStateCache(MemoryStore())
    cache.track(1, {"url": "https://a.test/", "meta": {"n": 1}})

    with pytest.raises(TabStateError):
        cache.set(1, "meta", "n", 2)
    with pytest.raises(TabStateError):
        cache.delete(1, "meta", "n")
    with pytest.raises(TabStateError):
        cache.remove(1)

    assert cache.get(1) == {"url": "https://a.test/", "meta": {"n": 1}}


@pytest.mark.asyncio
async def test_json_file_store_round_trip_keeps_foreign_keys(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"5": {"url": "http://old"}, "6": {"url": "http://x"}, "cfg": {"theme": "dark"}}))

    store = JsonFileStore(path, tabs=[LiveTab(id=5, url="http://new")])
    cache = TabStateCache(store)
    reconcile(cache, await store.wait_ready())
    cache.set(5, "styleIds", "0", [1])
    await cache.flush()

    on_disk = json.loads(path.read_text())
    assert on_disk == {"5": {"url": "http://new", "styleIds": {"0": [1]}}, "cfg": {"theme": "dark"}}


@pytest.mark.asyncio
async def test_json_file_store_missing_file_is_empty(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "nested" / "state.json")
    snapshot = await store.wait_ready()
    assert snapshot.persisted == {}

    await store.set(3, {"url": "https://a.test/"})
    assert (tmp_path / "nested" / "state.json").exists()
    assert await store.snapshot() == {"3": {"url": "https://a.test/"}}

    await store.remove(3)
    await store.remove(3)
    assert await store.snapshot() == {}


@pytest.mark.asyncio
async def test_json_file_store_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("[1, 2]")
    with pytest.raises(StoreError):
        await JsonFileStore(path).wait_ready()
