"""Deep get / set / delete on nested dict records by key path."""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from typing import Any


def get_path(record: Any, path: Sequence[Hashable]) -> Any:
    """Walk *path* through nested dicts.

    Returns ``None`` as soon as a key is missing or a non-dict value is
    reached before the path is exhausted.
    """
    node = record
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
        if node is None:
            return None
    return node


def _replaceable(value: Any) -> bool:
    return value is None or (isinstance(value, (bool, int, float, str)) and not value)


def set_path(record: dict[Hashable, Any], path: Sequence[Hashable], value: Any) -> None:
    """Write *value* at *path*, creating intermediate dicts as needed.

    A missing intermediate key, or one holding an empty scalar (``None``,
    ``False``, ``0``, ``""``), gets a fresh dict.  Any other non-dict
    intermediate raises ``TypeError``; the record is left untouched then.
    """
    if not path:
        raise ValueError("path must contain at least one key")
    *parents, last = path

    # Validate first so a bad path never leaves half-created containers behind.
    node: Any = record
    for depth, key in enumerate(parents):
        child = node.get(key)
        if _replaceable(child):
            break
        if not isinstance(child, dict):
            where = ".".join(str(k) for k in parents[: depth + 1])
            raise TypeError(f"cannot descend into non-dict value at {where!r}")
        node = child

    node = record
    for key in parents:
        child = node.get(key)
        if _replaceable(child):
            child = {}
            node[key] = child
        node = child
    node[last] = value


def delete_path(record: dict[Hashable, Any], path: Sequence[Hashable]) -> bool:
    """Remove the final key of *path*.

    Creates no structure.  Returns ``False`` when an intermediate is missing
    or not a dict, or when the final key is absent.
    """
    if not path:
        raise ValueError("path must contain at least one key")
    *parents, last = path
    node = get_path(record, parents) if parents else record
    if not isinstance(node, dict) or last not in node:
        return False
    del node[last]
    return True
