"""Persistent store interface and two small implementations.

The cache only needs three things from a store: a one-shot readiness
snapshot, an upsert and a delete.  Keys share one namespace with
unrelated subsystems, so implementations must keep foreign keys intact.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol

from tabstate.exceptions import StoreError
from tabstate.models import LiveTab, ReadySnapshot

_logger = logging.getLogger(__name__)

StoreKey = int | str


class StateStore(Protocol):
    """Asynchronous key-value store backing the tab state cache."""

    async def wait_ready(self) -> ReadySnapshot:
        """Resolve once with the persisted namespace and the live tab list."""
        ...

    async def set(self, key: StoreKey, record: dict[str, Any]) -> None: ...

    async def remove(self, key: StoreKey) -> None: ...


def _live_tabs(tabs: Iterable[LiveTab | Mapping[str, Any]]) -> list[LiveTab]:
    return [tab if isinstance(tab, LiveTab) else LiveTab.model_validate(tab) for tab in tabs]


class MemoryStore:
    """Dict-backed store.

    Every ``set`` / ``remove`` is appended to :attr:`calls` as
    ``(operation, key)`` so tests can assert on what was issued.
    """

    def __init__(
        self,
        data: Mapping[StoreKey, Any] | None = None,
        *,
        tabs: Iterable[LiveTab | Mapping[str, Any]] = (),
    ) -> None:
        self.data: dict[StoreKey, Any] = copy.deepcopy(dict(data or {}))
        self.tabs = _live_tabs(tabs)
        self.calls: list[tuple[str, StoreKey]] = []

    async def wait_ready(self) -> ReadySnapshot:
        return ReadySnapshot(persisted=copy.deepcopy(self.data), tabs=list(self.tabs))

    async def set(self, key: StoreKey, record: dict[str, Any]) -> None:
        self.calls.append(("set", key))
        self.data[key] = copy.deepcopy(record)

    async def remove(self, key: StoreKey) -> None:
        self.calls.append(("remove", key))
        self.data.pop(key, None)

    def removed_keys(self) -> list[StoreKey]:
        return [key for op, key in self.calls if op == "remove"]


class JsonFileStore:
    """Store persisted as a single JSON object on disk.

    JSON object keys are always strings, so tab ids come back as digit
    strings; :func:`tabstate.models.parse_tab_id` handles both forms.
    File IO runs in a worker thread; whole-file rewrites are serialized.
    """

    def __init__(self, path: str | Path, *, tabs: Iterable[LiveTab | Mapping[str, Any]] = ()) -> None:
        self.path = Path(path)
        self.tabs = _live_tabs(tabs)
        self._data: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            parsed = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read state file {self.path}: {exc}") from exc
        if not isinstance(parsed, dict):
            raise StoreError(f"State file {self.path} does not hold a JSON object")
        return parsed

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self.path)

    async def _loaded(self) -> dict[str, Any]:
        if self._data is None:
            self._data = await asyncio.to_thread(self._read)
            _logger.debug("Loaded %d key(s) from %s", len(self._data), self.path)
        return self._data

    async def wait_ready(self) -> ReadySnapshot:
        data = await self._loaded()
        return ReadySnapshot(persisted=copy.deepcopy(data), tabs=list(self.tabs))

    async def set(self, key: StoreKey, record: dict[str, Any]) -> None:
        async with self._lock:
            data = await self._loaded()
            data[str(key)] = copy.deepcopy(record)
            await asyncio.to_thread(self._write, copy.deepcopy(data))

    async def remove(self, key: StoreKey) -> None:
        async with self._lock:
            data = await self._loaded()
            if str(key) not in data:
                return
            del data[str(key)]
            await asyncio.to_thread(self._write, copy.deepcopy(data))

    async def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(await self._loaded())
