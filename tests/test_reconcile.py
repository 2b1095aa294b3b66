from __future__ import annotations

import pytest

from tabstate.cache import TabStateCache
from tabstate.models import LiveTab, ReadySnapshot
from tabstate.reconcile import reconcile
from tabstate.store import MemoryStore


def _http_only(url: str) -> bool:
    return url.startswith(("http://", "https://"))


@pytest.mark.asyncio
async def test_reconcile_rebuilds_cache_and_collects_orphans() -> None:
    store = MemoryStore(
        {5: {"url": "http://old"}, 6: {"url": "http://x"}, "cfg": {}},
        tabs=[LiveTab(id=5, url="http://new")],
    )
    cache = TabStateCache(store)

    report = reconcile(cache, await store.wait_ready(), _http_only)
    await cache.flush()

    assert list(cache.keys()) == [5]
    assert cache.get(5) == {"url": "http://new"}
    assert store.removed_keys() == [6]
    assert ("set", "cfg") not in store.calls
    assert ("remove", "cfg") not in store.calls
    assert store.data["cfg"] == {}
    assert report.tracked == [5]
    assert report.written == [5]
    assert report.removed == [6]


@pytest.mark.asyncio
async def test_unchanged_url_reuses_record_without_writing() -> None:
    persisted = {"3": {"url": "https://a.test/", "styleIds": {"0": [1, 2]}, "meta": {"x": 1}}}
    store = MemoryStore(persisted, tabs=[{"id": 3, "url": "https://a.test/"}])
    cache = TabStateCache(store)

    report = reconcile(cache, await store.wait_ready(), _http_only)
    await cache.flush()

    assert cache.get(3) == persisted["3"]
    assert cache.get_style_ids(3) == {"0": [1, 2]}
    assert report.written == []
    assert store.calls == []


@pytest.mark.asyncio
async def test_new_live_tab_gets_fresh_persisted_record() -> None:
    store = MemoryStore(tabs=[LiveTab(id=11, url="https://fresh.test/")])
    cache = TabStateCache(store)

    reconcile(cache, await store.wait_ready(), _http_only)
    await cache.flush()

    assert store.data[11] == {"url": "https://fresh.test/"}


@pytest.mark.asyncio
async def test_unsupported_live_tab_is_untracked_and_its_record_deleted() -> None:
    store = MemoryStore(
        {"7": {"url": "chrome://newtab"}},
        tabs=[LiveTab(id=7, url="chrome://newtab")],
    )
    cache = TabStateCache(store)

    report = reconcile(cache, await store.wait_ready(), _http_only)
    await cache.flush()

    assert 7 not in cache
    assert report.removed == ["7"]
    assert store.data == {}


@pytest.mark.asyncio
async def test_foreign_keys_survive_reconciliation() -> None:
    foreign = {"-1": {}, "abc": 1, "1.5": {}, " 2": {}, "": {}, "²": {}, "05": {"url": "http://dup"}}
    store = MemoryStore(foreign)
    cache = TabStateCache(store)

    report = reconcile(cache, await store.wait_ready(), _http_only)
    await cache.flush()

    assert report.removed == []
    assert store.calls == []


@pytest.mark.asyncio
async def test_torn_record_is_replaced_for_live_tab() -> None:
    store = MemoryStore({4: "garbage"}, tabs=[LiveTab(id=4, url="https://a.test/")])
    cache = TabStateCache(store)

    reconcile(cache, await store.wait_ready(), _http_only)
    await cache.flush()

    assert store.data[4] == {"url": "https://a.test/"}


def test_reconcile_without_persistence_only_fills_cache() -> None:
    cache = TabStateCache()
    snapshot = ReadySnapshot(
        persisted={1: {"url": "https://a.test/"}, 2: {"url": "https://b.test/"}},
        tabs=[LiveTab(id=1, url="https://a.test/")],
    )

    report = reconcile(cache, snapshot, _http_only)

    assert list(cache.keys()) == [1]
    assert report.removed == [2]


def test_reconcile_does_not_alias_snapshot_records() -> None:
    cache = TabStateCache()
    record = {"url": "https://a.test/", "meta": {"n": 1}}
    snapshot = ReadySnapshot(persisted={1: record}, tabs=[LiveTab(id=1, url="https://a.test/")])

    reconcile(cache, snapshot, _http_only)
    cache.set(1, "meta", "n", 2)

    assert record["meta"]["n"] == 1
