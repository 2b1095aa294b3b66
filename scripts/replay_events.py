#!/usr/bin/env python3
"""Replay recorded tab events through a TabManager.

Reads a JSON session file, reconciles against the state file, replays
every event in order and prints the resulting cache.  Handy for checking
what a sequence of navigations and tab closes leaves behind on disk.

Session file format::

    {
      "tabs": [{"id": 1, "url": "https://example.com/"}],
      "events": [
        {"type": "navigate", "tabId": 1, "frameId": 0, "url": "https://example.org/"},
        {"type": "set", "tabId": 1, "path": ["styleIds", "0"], "value": [3, 7]},
        {"type": "delete", "tabId": 1, "path": ["styleIds", "0"]},
        {"type": "removed", "tabId": 1},
        {"type": "replaced", "added": 4, "removed": 2}
      ]
    }

Usage::

    python scripts/replay_events.py session.json --state state.json

Options::

    --state FILE            JSON state file (default: tabstate.json)
    --no-persistence        Keep everything in memory
    --no-lifecycle-hooks    Ignore removed/replaced events
    --quiet-listeners       Do not print URL change notifications
    -v, --verbose           Debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from tabstate import (  # noqa: E402
    EventChannel,
    JsonFileStore,
    TabManager,
    TabStateConfig,
    UrlChange,
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay tab events through tabstate")
    parser.add_argument("session", type=Path, help="JSON session file")
    parser.add_argument("--state", type=Path, default=Path("tabstate.json"), help="JSON state file")
    parser.add_argument("--no-persistence", action="store_true", help="Keep everything in memory")
    parser.add_argument("--no-lifecycle-hooks", action="store_true", help="Ignore removed/replaced events")
    parser.add_argument("--quiet-listeners", action="store_true", help="Do not print URL changes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def _print_change(change: UrlChange) -> None:
    print(f"tab {change.tab_id}: {change.old_url or '-'} -> {change.url}")


def _replay(event: dict[str, Any], manager: TabManager, channels: dict[str, EventChannel]) -> None:
    kind = event.get("type")
    if kind == "navigate":
        channels["navigate"].dispatch(event)
    elif kind == "removed":
        channels["removed"].dispatch(event["tabId"])
    elif kind == "replaced":
        channels["replaced"].dispatch(event["added"], event["removed"])
    elif kind == "set":
        manager.set(event["tabId"], *event["path"], event["value"])
    elif kind == "delete":
        manager.delete(event["tabId"], *event["path"])
    else:
        raise ValueError(f"Unknown event type: {kind!r}")


async def _run(args: argparse.Namespace) -> int:
    session = json.loads(args.session.read_text(encoding="utf-8"))
    config = TabStateConfig.from_env(
        persistence=not args.no_persistence,
        lifecycle_hooks=not args.no_lifecycle_hooks,
    )
    channels = {name: EventChannel(name) for name in ("navigate", "removed", "replaced")}
    store = JsonFileStore(args.state, tabs=session.get("tabs", []))

    async with TabManager(
        config,
        store=store,
        navigation=channels["navigate"],
        tab_removed=channels["removed"],
        tab_replaced=channels["replaced"],
    ) as manager:
        report = await manager.reconciled()
        if report is not None:
            logging.getLogger(__name__).info(
                "reconciled: tracked=%s written=%s removed=%s",
                report.tracked,
                report.written,
                report.removed,
            )
        if not args.quiet_listeners:
            manager.on_off(_print_change)
        for event in session.get("events", []):
            _replay(event, manager, channels)
        state = {str(tab_id): dict(record) for tab_id, record in manager.entries()}

    print(json.dumps(state, indent=2, sort_keys=True))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
