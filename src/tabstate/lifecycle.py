"""Evict tab state when the host closes or replaces a tab."""

from __future__ import annotations

import logging
from typing import Any

from tabstate.cache import TabStateCache
from tabstate.events import EventSource

_logger = logging.getLogger(__name__)


class LifecycleHooks:
    """Tab removed / replaced handlers bound to a cache."""

    def __init__(self, cache: TabStateCache) -> None:
        self._cache = cache
        self._removed: EventSource | None = None
        self._replaced: EventSource | None = None

    @property
    def attached(self) -> bool:
        return self._removed is not None or self._replaced is not None

    def on_removed(self, tab_id: int, *_info: Any) -> None:
        self._cache.remove(tab_id)

    def on_replaced(self, added_tab_id: int, removed_tab_id: int) -> None:
        # The new id gets its own record from its first navigation.
        _logger.debug("Tab %s replaced by %s", removed_tab_id, added_tab_id)
        self._cache.remove(removed_tab_id)

    def attach(self, removed: EventSource | None = None, replaced: EventSource | None = None) -> None:
        self.detach()
        if removed is not None:
            removed.add_listener(self.on_removed)
            self._removed = removed
        if replaced is not None:
            replaced.add_listener(self.on_replaced)
            self._replaced = replaced

    def detach(self) -> None:
        removed, self._removed = self._removed, None
        replaced, self._replaced = self._replaced, None
        if removed is not None:
            removed.remove_listener(self.on_removed)
        if replaced is not None:
            replaced.remove_listener(self.on_replaced)
