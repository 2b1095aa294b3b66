"""Runtime configuration for tabstate."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from tabstate.exceptions import TabStateConfigError

DEFAULT_SUPPORTED_SCHEMES: tuple[str, ...] = ("http", "https", "file", "ftp")


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise TabStateConfigError(f"Not a boolean value: {value!r}")


def _env_schemes(value: str) -> tuple[str, ...]:
    schemes = tuple(part.strip().lower().rstrip(":") for part in value.split(",") if part.strip())
    if not schemes:
        raise TabStateConfigError("TABSTATE_SUPPORTED_SCHEMES must name at least one scheme")
    return schemes


@dataclasses.dataclass(frozen=True)
class TabStateConfig:
    """Tab state configuration.

    Parameters
    ----------
    persistence : bool
        Write cache mutations through to the persistent store and run
        startup reconciliation.  When ``False`` the cache is memory-only
        even if a store object is supplied.
    lifecycle_hooks : bool
        Register tab removed / replaced listeners.  Disable this in hosts
        that should stay dormant until genuinely needed; orphaned entries
        are then collected by the next startup reconciliation instead.
    supported_schemes : tuple of str
        URL schemes eligible for tracking and change notification.
    extension_url : str or None
        Base URL of the extension's own pages (e.g.
        ``"chrome-extension://abcdef/"``).  Pages under it are supported
        regardless of scheme.
    """

    persistence: bool = True
    lifecycle_hooks: bool = True
    supported_schemes: tuple[str, ...] = DEFAULT_SUPPORTED_SCHEMES
    extension_url: str | None = None

    def __post_init__(self) -> None:
        if not self.supported_schemes and not self.extension_url:
            raise TabStateConfigError("At least one supported scheme or an extension_url is required")

    @classmethod
    def from_env(cls, **overrides: Any) -> TabStateConfig:
        """Create configuration from ``TABSTATE_*`` environment variables.

        Explicit keyword arguments override environment values.

        Returns
        -------
        TabStateConfig
            Populated configuration.

        Raises
        ------
        TabStateConfigError
            If a variable holds an unparseable value.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        if "persistence" not in overrides:
            config_kwargs["persistence"] = _env_bool(env.get("TABSTATE_PERSISTENCE"), True)
        if "lifecycle_hooks" not in overrides:
            config_kwargs["lifecycle_hooks"] = _env_bool(env.get("TABSTATE_LIFECYCLE_HOOKS"), True)

        schemes_env = env.get("TABSTATE_SUPPORTED_SCHEMES")
        if schemes_env is not None and "supported_schemes" not in overrides:
            config_kwargs["supported_schemes"] = _env_schemes(schemes_env)

        extension_url = env.get("TABSTATE_EXTENSION_URL")
        if extension_url:
            config_kwargs["extension_url"] = extension_url

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
