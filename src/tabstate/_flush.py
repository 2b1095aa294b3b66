"""Fire-and-forget scheduling of store writes."""

from __future__ import annotations

import asyncio
import copy
import logging
from functools import partial
from typing import Any, Literal

from tabstate.exceptions import TabStateError
from tabstate.store import StateStore, StoreKey

_logger = logging.getLogger(__name__)

_Op = Literal["set", "remove"]


class WriteQueue:
    """Issue store writes without making the caller wait for them.

    Writes for one key are chained and land in issue order.  Writes for
    different keys run independently.  A failed write is logged and
    dropped; it is never retried and never reaches the mutating caller.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store
        self._tails: dict[StoreKey, asyncio.Task[None]] = {}
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit_set(self, key: StoreKey, record: dict[str, Any]) -> None:
        # Snapshot now: later in-place mutations belong to later writes.
        self._submit("set", key, copy.deepcopy(record))

    def submit_remove(self, key: StoreKey) -> None:
        self._submit("remove", key, None)

    def ensure_ready(self) -> asyncio.AbstractEventLoop:
        """Return the running loop, or raise if writes cannot be scheduled."""
        try:
            return asyncio.get_running_loop()
        except RuntimeError as exc:
            raise TabStateError("Persistent writes require a running event loop") from exc

    def _submit(self, op: _Op, key: StoreKey, record: dict[str, Any] | None) -> None:
        loop = self.ensure_ready()
        previous = self._tails.get(key)
        task = loop.create_task(self._run(op, key, record, previous))
        self._tails[key] = task
        self._pending.add(task)
        task.add_done_callback(partial(self._done, key))

    async def _run(
        self,
        op: _Op,
        key: StoreKey,
        record: dict[str, Any] | None,
        previous: asyncio.Task[None] | None,
    ) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait({previous})
        try:
            if op == "set":
                assert record is not None  # noqa: S101
                await self._store.set(key, record)
            else:
                await self._store.remove(key)
        except Exception:
            _logger.warning("Store %s failed for key %r", op, key, exc_info=True)

    def _done(self, key: StoreKey, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if self._tails.get(key) is task:
            del self._tails[key]

    async def drain(self) -> None:
        """Wait until every write issued so far (and any issued meanwhile) has settled."""
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
