"""One-shot startup reconciliation of cache, store and live tabs.

While the host process was not running, tabs were closed and navigated
without anyone noticing.  Reconciliation rebuilds the cache from the
persisted records of the tabs that are still open and deletes the
persisted records of the ones that are gone.  Keys that are not tab ids
belong to other subsystems sharing the store and are never touched.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from tabstate.cache import TabStateCache
from tabstate.models import URL_KEY, ReadySnapshot, ReconcileReport, TabRecord, parse_tab_id
from tabstate.urls import UrlPredicate, supported

_logger = logging.getLogger(__name__)


def _persisted_records(persisted: dict[int | str, Any]) -> dict[int, TabRecord]:
    records: dict[int, TabRecord] = {}
    for key, value in persisted.items():
        tab_id = parse_tab_id(key)
        # A non-dict value is a torn or foreign write; treat the tab as having no data.
        if tab_id is None or not isinstance(value, dict):
            continue
        records.setdefault(tab_id, value)
    return records


def reconcile(
    cache: TabStateCache,
    snapshot: ReadySnapshot,
    supported: UrlPredicate = supported,
) -> ReconcileReport:
    """Align *cache* with the live tabs and collect orphaned records.

    Live tabs with a supported URL become tracked, reusing their persisted
    record (other fields carried over verbatim) or starting from an empty
    one.  A record is re-persisted only if it was created or its URL had
    drifted.  Afterwards every persisted tab key not present in the cache
    is deleted from the store.
    """
    persisted = _persisted_records(snapshot.persisted)
    tracked: list[int] = []
    written: list[int] = []

    for tab in snapshot.tabs:
        if not supported(tab.url):
            continue
        data = persisted.get(tab.id)
        record: TabRecord = {} if data is None else copy.deepcopy(data)
        dirty = data is None or record.get(URL_KEY) != tab.url
        if dirty:
            record[URL_KEY] = tab.url
        cache.track(tab.id, record)
        if dirty:
            cache.persist(tab.id)
            written.append(tab.id)
        tracked.append(tab.id)

    removed: list[int | str] = []
    for key in snapshot.persisted:
        tab_id = parse_tab_id(key)
        if tab_id is not None and tab_id not in cache:
            cache.remove_persisted(key)
            removed.append(key)

    _logger.debug(
        "Reconciled %d live tab(s): tracked=%d written=%d removed=%d",
        len(snapshot.tabs),
        len(tracked),
        len(written),
        len(removed),
    )
    return ReconcileReport(tracked=tracked, written=written, removed=removed)
