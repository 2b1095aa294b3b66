"""In-memory tab state cache with write-through persistence.

This is the only component that mutates tab records.  Every mutation
issues a write of the whole resulting record to the store; the write is
scheduled, not awaited, so the cache can run ahead of the store.  A crash
between the two is an accepted gap: the next startup reconciliation
repairs whatever drift it left behind.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, Literal

from tabstate._flush import WriteQueue
from tabstate._paths import delete_path, get_path, set_path
from tabstate.config import TabStateConfig
from tabstate.events import UrlChangeBus, UrlListener
from tabstate.models import STYLE_IDS_KEY, TabRecord
from tabstate.store import StateStore

_logger = logging.getLogger(__name__)


class TabStateCache:
    """Tab id -> record mapping kept in step with a persistent store.

    Parameters
    ----------
    store : StateStore or None
        Backing store.  ``None`` (or ``config.persistence=False``) makes
        the cache memory-only; this is decided once, here.
    config : TabStateConfig or None
        Runtime configuration.
    bus : UrlChangeBus or None
        Listener registry shared with the navigation reactor.
    """

    def __init__(
        self,
        store: StateStore | None = None,
        *,
        config: TabStateConfig | None = None,
        bus: UrlChangeBus | None = None,
    ) -> None:
        self._config = config or TabStateConfig()
        self._records: dict[int, TabRecord] = {}
        self._bus = bus if bus is not None else UrlChangeBus()
        self._writes: WriteQueue | None = None
        if store is not None and self._config.persistence:
            self._writes = WriteQueue(store)

    @property
    def persistence_enabled(self) -> bool:
        return self._writes is not None

    @property
    def bus(self) -> UrlChangeBus:
        return self._bus

    @property
    def pending_writes(self) -> int:
        return self._writes.pending if self._writes is not None else 0

    def on_off(self, fn: UrlListener, enabled: bool = True) -> None:
        self._bus.on_off(fn, enabled)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, tab_id: int, *path: Any) -> Any:
        """Return a copy of the value at *path* in the tab's record.

        ``None`` when the tab is untracked or any key along the path is
        missing.  With no path the whole record is returned.
        """
        record = self._records.get(tab_id)
        if record is None:
            return None
        return copy.deepcopy(get_path(record, path))

    def get_style_ids(self, tab_id: int) -> dict[str, Any] | Literal[False]:
        """Return the tab's frame id -> style ids mapping.

        ``False`` means no data: the tab is untracked, or tracked without
        a ``styleIds`` field yet.  An empty mapping is returned as-is.
        """
        record = self._records.get(tab_id)
        if record is None:
            return False
        style_ids = record.get(STYLE_IDS_KEY)
        if style_ids is None:
            return False
        return copy.deepcopy(style_ids)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def keys(self) -> Iterator[int]:
        """Iterate over tracked tab ids; removing tabs meanwhile is safe."""
        return iter(list(self._records))

    def entries(self) -> Iterator[tuple[int, Mapping[str, Any]]]:
        """Iterate ``(tab_id, read-only view of the record)`` pairs.

        Views are live and top-level read-only; nested values must not be
        modified in place either.  Use :meth:`set` / :meth:`delete`.
        """
        for tab_id, record in list(self._records.items()):
            yield tab_id, MappingProxyType(record)

    items = entries

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set(self, tab_id: int, *path_and_value: Any) -> None:
        """Write a value at a key path, creating the record if needed.

        ``set(7, "foo", 123)`` makes tab 7's record ``{"foo": 123}``;
        ``set(7, "foo", "bar", 1)`` makes it ``{"foo": {"bar": 1}}``.
        The last positional argument is always the value.
        """
        if len(path_and_value) < 2:
            raise TypeError("set() needs at least one key and a value")
        *path, value = path_and_value
        self._check_writable()
        record = self._records.get(tab_id)
        created = record is None
        if record is None:
            record = {}
        set_path(record, path, value)
        if created:
            self._records[tab_id] = record
        self._persist(tab_id, record)

    def delete(self, tab_id: int, *path: Any) -> bool:
        """Delete the final key of *path* from the tab's record.

        Untracked tabs are a true no-op (nothing written).  For a tracked
        tab the record is written through even when nothing was removed.
        Returns whether a key was actually removed.
        """
        if not path:
            raise TypeError("delete() needs at least one key")
        record = self._records.get(tab_id)
        if record is None:
            return False
        self._check_writable()
        removed = delete_path(record, path)
        self._persist(tab_id, record)
        return removed

    def remove(self, tab_id: int) -> None:
        """Forget the tab and delete its persisted record."""
        self._check_writable()
        self._records.pop(tab_id, None)
        _logger.debug("Evicted tab %s", tab_id)
        if self._writes is not None:
            self._writes.submit_remove(tab_id)

    def track(self, tab_id: int, record: TabRecord) -> None:
        """Insert *record* as the tab's state without writing it."""
        self._records[tab_id] = record

    def persist(self, tab_id: int) -> None:
        record = self._records.get(tab_id)
        if record is not None:
            self._check_writable()
            self._persist(tab_id, record)

    def remove_persisted(self, key: int | str) -> None:
        """Delete a persisted key that has no cache entry."""
        self._check_writable()
        if self._writes is not None:
            self._writes.submit_remove(key)

    def _check_writable(self) -> None:
        # raise before any in-memory change
        if self._writes is not None:
            self._writes.ensure_ready()

    def _persist(self, tab_id: int, record: TabRecord) -> None:
        if self._writes is not None:
            self._writes.submit_set(tab_id, record)

    async def flush(self) -> None:
        """Wait for all writes issued so far to settle."""
        if self._writes is not None:
            await self._writes.drain()
