"""Custom exception hierarchy for tabstate."""

from __future__ import annotations


class TabStateError(Exception):
    """Base exception for all tabstate errors."""


class TabStateConfigError(TabStateError):
    """Invalid or missing configuration."""


class StoreError(TabStateError):
    """Persistent store failure (unreadable backing file, bad payload shape)."""

    def __init__(self, message: str, *, key: int | str | None = None) -> None:
        self.key = key
        super().__init__(message)


class NotStartedError(TabStateError):
    """A :class:`~tabstate.manager.TabManager` operation needs ``start()`` first."""
