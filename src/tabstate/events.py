"""URL change notification bus."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from tabstate.models import ListenerOutcome, NotificationReport, UrlChange

_logger = logging.getLogger(__name__)

UrlListener = Callable[[UrlChange], Any]


def _listener_name(fn: UrlListener) -> str:
    name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None)
    return str(name) if name else repr(fn)


class UrlChangeBus:
    """Ordered set of URL change listeners.

    Listeners run synchronously in registration order.  A listener that
    raises is logged and recorded as a failed outcome; the remaining
    listeners still run and nothing is re-raised.
    """

    def __init__(self) -> None:
        # dict keys double as an insertion-ordered set
        self._listeners: dict[UrlListener, None] = {}

    def on_off(self, fn: UrlListener, enabled: bool = True) -> None:
        """Add (``enabled=True``) or remove *fn*; both directions are idempotent."""
        if enabled:
            self._listeners.setdefault(fn, None)
        else:
            self._listeners.pop(fn, None)

    def subscribe(self, fn: UrlListener) -> None:
        self.on_off(fn, True)

    def unsubscribe(self, fn: UrlListener) -> None:
        self.on_off(fn, False)

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, fn: object) -> bool:
        return fn in self._listeners

    def emit(self, change: UrlChange) -> NotificationReport:
        """Deliver *change* to every listener registered when the call starts.

        A listener unsubscribed by an earlier listener during the same
        emission is skipped; one subscribed during it waits for the next.
        """
        outcomes: list[ListenerOutcome] = []
        for fn in list(self._listeners):
            if fn not in self._listeners:
                continue
            name = _listener_name(fn)
            try:
                fn(change)
            except Exception as exc:
                _logger.exception("URL change listener %s failed for tab %s", name, change.tab_id)
                outcomes.append(ListenerOutcome(listener=name, ok=False, error=f"{type(exc).__name__}: {exc}"))
            else:
                outcomes.append(ListenerOutcome(listener=name, ok=True))
        return NotificationReport(change=change, outcomes=outcomes)


class EventSource(Protocol):
    """Host event emitter (navigation committed, tab removed, ...)."""

    def add_listener(self, fn: Callable[..., Any]) -> None: ...

    def remove_listener(self, fn: Callable[..., Any]) -> None: ...


class EventChannel:
    """Minimal in-process :class:`EventSource`.

    Stands in for a host event object in scripts and tests.  ``dispatch``
    calls listeners synchronously; their exceptions propagate.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._listeners: list[Callable[..., Any]] = []

    def add_listener(self, fn: Callable[..., Any]) -> None:
        if fn not in self._listeners:
            self._listeners.append(fn)

    def remove_listener(self, fn: Callable[..., Any]) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    def has_listener(self, fn: Callable[..., Any]) -> bool:
        return fn in self._listeners

    def dispatch(self, *args: Any) -> None:
        for fn in list(self._listeners):
            fn(*args)
