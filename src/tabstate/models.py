"""Event, snapshot and report models.

Everything that crosses a component boundary (events delivered by the
host, snapshots delivered by the store, reports returned to callers) is
validated here.  Tab records themselves stay plain dicts: their shape is
open-ended and owned by whichever collaborator writes to them.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

#: Frame id of a tab's top-level document.
TOP_FRAME_ID = 0

#: Record key holding the tab's current URL.
URL_KEY = "url"

#: Record key holding the frame id -> style ids mapping.
STYLE_IDS_KEY = "styleIds"

TabRecord = dict[str, Any]


def parse_tab_id(key: Any) -> int | None:
    """Return the tab id encoded by a persisted key, or ``None``.

    Only non-negative ``int`` keys and strings of ASCII decimal digits are
    tab keys; digit strings must be in canonical form (no leading zeros).
    Anything else belongs to another subsystem sharing the store.
    """
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key if key >= 0 else None
    if isinstance(key, str) and key.isascii() and key.isdigit():
        tab_id = int(key)
        # "05" is not how a tab id is written, so it is not ours
        return tab_id if str(tab_id) == key else None
    return None


class NavigationEvent(BaseModel):
    """A committed navigation in one frame of a tab."""

    model_config = ConfigDict(frozen=True)

    tab_id: int = Field(..., ge=0, validation_alias=AliasChoices("tab_id", "tabId"))
    frame_id: int = Field(default=TOP_FRAME_ID, ge=0, validation_alias=AliasChoices("frame_id", "frameId"))
    url: str

    @property
    def is_top_frame(self) -> bool:
        return self.frame_id == TOP_FRAME_ID


class UrlChange(BaseModel):
    """Payload delivered to URL change listeners."""

    model_config = ConfigDict(frozen=True)

    tab_id: int
    url: str
    old_url: str | None = None


class LiveTab(BaseModel):
    """A tab that is open in the host right now."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0)
    url: str = ""


class ReadySnapshot(BaseModel):
    """What the store hands over once it is ready.

    ``persisted`` is the whole namespace as stored, tab keys and foreign
    keys alike; ``tabs`` is the host's live tab list at the same instant.
    """

    model_config = ConfigDict(frozen=True)

    persisted: dict[int | str, Any] = Field(default_factory=dict)
    tabs: list[LiveTab] = Field(default_factory=list)

    @field_validator("persisted", mode="before")
    @classmethod
    def _accept_mappings(cls, value: Any) -> Any:
        if value is None:
            return {}
        return dict(value) if not isinstance(value, dict) else value


class ListenerOutcome(BaseModel):
    """Result of delivering one change to one listener."""

    model_config = ConfigDict(frozen=True)

    listener: str
    ok: bool
    error: str | None = None


class NotificationReport(BaseModel):
    """Per-listener outcomes of a single URL change notification."""

    model_config = ConfigDict(frozen=True)

    change: UrlChange
    outcomes: list[ListenerOutcome] = Field(default_factory=list)

    @property
    def failures(self) -> list[ListenerOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def ok(self) -> bool:
        return not self.failures


class ReconcileReport(BaseModel):
    """Summary of one startup reconciliation pass."""

    model_config = ConfigDict(frozen=True)

    tracked: list[int] = Field(default_factory=list, description="Tab ids inserted into the cache")
    written: list[int] = Field(default_factory=list, description="Tab ids whose record was (re)persisted")
    removed: list[int | str] = Field(default_factory=list, description="Persisted keys deleted as orphans")
