"""High-level facade wiring cache, reactor, reconciler and lifecycle hooks."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Iterator, Mapping
from typing import Any, Literal

from tabstate.cache import TabStateCache
from tabstate.config import TabStateConfig
from tabstate.events import EventSource, UrlChangeBus, UrlListener
from tabstate.exceptions import NotStartedError, TabStateError
from tabstate.lifecycle import LifecycleHooks
from tabstate.models import NavigationEvent, NotificationReport, ReconcileReport
from tabstate.navigation import NavigationReactor
from tabstate.reconcile import reconcile
from tabstate.store import StateStore
from tabstate.urls import UrlPredicate, supported_for

_logger = logging.getLogger(__name__)


class TabManager:
    """Per-tab state tracking for one host process.

    Usage::

        async with TabManager(config, store=store, navigation=nav_events) as tabs:
            tabs.on_off(on_url_change)
            tabs.set(tab_id, "styleIds", "0", [1, 2])

    Parameters
    ----------
    config : TabStateConfig or None
        Runtime configuration.  Defaults to ``TabStateConfig()``.
    store : StateStore or None
        Persistent store.  Ignored when ``config.persistence`` is false.
    navigation : EventSource or None
        Source of :class:`~tabstate.models.NavigationEvent` payloads.
    tab_removed, tab_replaced : EventSource or None
        Tab lifecycle sources, only subscribed when
        ``config.lifecycle_hooks`` is true.
    supported : callable or None
        URL support predicate.  Defaults to one built from *config*.
    background_ready : awaitable or None
        One-shot gate delaying the navigation subscription until the
        host has finished initializing.
    """

    def __init__(
        self,
        config: TabStateConfig | None = None,
        *,
        store: StateStore | None = None,
        navigation: EventSource | None = None,
        tab_removed: EventSource | None = None,
        tab_replaced: EventSource | None = None,
        supported: UrlPredicate | None = None,
        background_ready: Awaitable[Any] | None = None,
    ) -> None:
        self._config = config or TabStateConfig()
        self._store = store if self._config.persistence else None
        self._supported = supported or supported_for(self._config)
        self.bus = UrlChangeBus()
        self.cache = TabStateCache(self._store, config=self._config, bus=self.bus)
        self._reactor = NavigationReactor(self.cache, supported=self._supported)
        self._hooks = LifecycleHooks(self.cache)
        self._navigation = navigation
        self._tab_removed = tab_removed
        self._tab_replaced = tab_replaced
        self._background_ready = background_ready
        self._reconcile_task: asyncio.Task[ReconcileReport | None] | None = None
        self._started = False
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TabManager:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    @property
    def started(self) -> bool:
        return self._started and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        """Schedule reconciliation and subscribe to host events.

        Reconciliation runs in the background once the store is ready.
        Lifecycle hooks are attached immediately; the navigation
        subscription waits for ``background_ready`` and is skipped if the
        manager was closed meanwhile.  Calling this twice is a no-op; a
        closed manager cannot be restarted, since reconciliation is one-shot.
        """
        if self._closed:
            raise TabStateError("TabManager is closed and cannot be restarted")
        if self._started:
            return
        self._started = True

        if self._store is not None:
            self._reconcile_task = asyncio.create_task(self._reconcile_when_ready(self._store))

        if self._config.lifecycle_hooks:
            self._hooks.attach(self._tab_removed, self._tab_replaced)
        else:
            _logger.debug("Lifecycle hooks disabled; orphans are left for the next reconciliation")

        if self._navigation is None:
            return
        gate, self._background_ready = self._background_ready, None
        if gate is not None:
            await gate
        if self._closed:
            _logger.debug("Closed while waiting for background readiness; not attaching")
            return
        self._reactor.attach(self._navigation)

    async def _reconcile_when_ready(self, store: StateStore) -> ReconcileReport | None:
        try:
            snapshot = await store.wait_ready()
        except Exception:
            _logger.warning("Store readiness failed; skipping reconciliation", exc_info=True)
            return None
        return reconcile(self.cache, snapshot, self._supported)

    async def reconciled(self) -> ReconcileReport | None:
        """Wait for startup reconciliation.

        Returns ``None`` when persistence is disabled or the store failed
        to become ready.
        """
        if not self._started:
            raise NotStartedError("TabManager.start() has not been called")
        task = self._reconcile_task
        if task is None or task.cancelled():
            return None
        return await task

    async def close(self) -> None:
        """Unsubscribe from host events and wait for outstanding writes."""
        self._closed = True
        self._reactor.detach()
        self._hooks.detach()
        task = self._reconcile_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self.cache.flush()

    # ------------------------------------------------------------------
    # Cache passthroughs
    # ------------------------------------------------------------------

    def on_off(self, fn: UrlListener, enabled: bool = True) -> None:
        self.bus.on_off(fn, enabled)

    def get(self, tab_id: int, *path: Any) -> Any:
        return self.cache.get(tab_id, *path)

    def get_style_ids(self, tab_id: int) -> dict[str, Any] | Literal[False]:
        return self.cache.get_style_ids(tab_id)

    def set(self, tab_id: int, *path_and_value: Any) -> None:
        self.cache.set(tab_id, *path_and_value)

    def delete(self, tab_id: int, *path: Any) -> bool:
        return self.cache.delete(tab_id, *path)

    def remove(self, tab_id: int) -> None:
        self.cache.remove(tab_id)

    def keys(self) -> Iterator[int]:
        return self.cache.keys()

    def entries(self) -> Iterator[tuple[int, Mapping[str, Any]]]:
        return self.cache.entries()

    def handle_navigation(self, event: NavigationEvent | Mapping[str, Any]) -> NotificationReport | None:
        """Feed one navigation event directly, bypassing the event source."""
        return self._reactor.handle(event)
