"""Turns top-frame navigations into cache updates and URL change notifications."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Mapping
from typing import Any

from tabstate.cache import TabStateCache
from tabstate.events import EventSource
from tabstate.models import URL_KEY, NavigationEvent, NotificationReport, UrlChange
from tabstate.urls import UrlPredicate, supported

_logger = logging.getLogger(__name__)


class NavigationReactor:
    """Consume navigation events for a :class:`TabStateCache`.

    Sub-frame navigations are ignored.  A top-frame navigation always
    updates and persists the tab's ``url``; listeners are only told about
    it when the new URL passes the support predicate.
    """

    def __init__(self, cache: TabStateCache, *, supported: UrlPredicate = supported) -> None:
        self._cache = cache
        self._supported = supported
        self._source: EventSource | None = None

    @property
    def attached(self) -> bool:
        return self._source is not None

    def handle(self, event: NavigationEvent | Mapping[str, Any]) -> NotificationReport | None:
        """Apply one navigation event.

        Returns the notification report, or ``None`` when no listener was
        notified (sub-frame event or unsupported URL).
        """
        if not isinstance(event, NavigationEvent):
            event = NavigationEvent.model_validate(event)
        if not event.is_top_frame:
            return None

        tab_id = event.tab_id
        old_url = self._cache.get(tab_id, URL_KEY)
        self._cache.set(tab_id, URL_KEY, event.url)

        if not self._supported(event.url):
            _logger.debug("Tab %s navigated to unsupported url, not notifying", tab_id)
            return None

        report = self._cache.bus.emit(UrlChange(tab_id=tab_id, url=event.url, old_url=old_url))
        if not report.ok:
            _logger.debug("Tab %s: %d of %d listener(s) failed", tab_id, len(report.failures), len(report.outcomes))
        return report

    def attach(self, source: EventSource) -> None:
        if self._source is source:
            return
        self.detach()
        source.add_listener(self.handle)
        self._source = source

    def detach(self) -> None:
        source = self._source
        self._source = None
        if source is not None:
            source.remove_listener(self.handle)

    async def start(self, source: EventSource, background_ready: Awaitable[Any] | None = None) -> None:
        """Subscribe to *source* once the background readiness gate opens."""
        if background_ready is not None:
            await background_ready
        self.attach(source)
        _logger.debug("Navigation reactor attached")
