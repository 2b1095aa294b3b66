"""tabstate - per-tab state cache reconciled with a persistent store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tabstate")
except PackageNotFoundError:
    __version__ = "0+local"
from tabstate.cache import TabStateCache
from tabstate.config import TabStateConfig
from tabstate.events import EventChannel, EventSource, UrlChangeBus
from tabstate.exceptions import NotStartedError, StoreError, TabStateConfigError, TabStateError
from tabstate.lifecycle import LifecycleHooks
from tabstate.manager import TabManager
from tabstate.models import (
    STYLE_IDS_KEY,
    TOP_FRAME_ID,
    URL_KEY,
    ListenerOutcome,
    LiveTab,
    NavigationEvent,
    NotificationReport,
    ReadySnapshot,
    ReconcileReport,
    UrlChange,
    parse_tab_id,
)
from tabstate.navigation import NavigationReactor
from tabstate.reconcile import reconcile
from tabstate.store import JsonFileStore, MemoryStore, StateStore
from tabstate.urls import make_supported, supported

__all__ = [
    "__version__",
    "EventChannel",
    "EventSource",
    "JsonFileStore",
    "LifecycleHooks",
    "ListenerOutcome",
    "LiveTab",
    "MemoryStore",
    "NavigationEvent",
    "NavigationReactor",
    "NotStartedError",
    "NotificationReport",
    "ReadySnapshot",
    "ReconcileReport",
    "STYLE_IDS_KEY",
    "StateStore",
    "StoreError",
    "TOP_FRAME_ID",
    "TabManager",
    "TabStateCache",
    "TabStateConfig",
    "TabStateConfigError",
    "TabStateError",
    "URL_KEY",
    "UrlChange",
    "UrlChangeBus",
    "make_supported",
    "parse_tab_id",
    "reconcile",
    "supported",
]
