"""URL eligibility for tracking and change notification."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from tabstate.config import DEFAULT_SUPPORTED_SCHEMES, TabStateConfig

UrlPredicate = Callable[[str], bool]


def _scheme(url: str) -> str:
    scheme, sep, _ = url.partition(":")
    return scheme.lower() if sep else ""


def make_supported(
    schemes: Iterable[str] = DEFAULT_SUPPORTED_SCHEMES,
    *,
    extension_url: str | None = None,
) -> UrlPredicate:
    """Build a predicate accepting *schemes* plus pages under *extension_url*."""
    allowed = frozenset(s.lower() for s in schemes)

    def supported(url: str) -> bool:
        if not url:
            return False
        if extension_url and url.startswith(extension_url):
            return True
        return _scheme(url) in allowed

    return supported


def supported_for(config: TabStateConfig) -> UrlPredicate:
    return make_supported(config.supported_schemes, extension_url=config.extension_url)


supported = make_supported()
"""Default predicate: http(s), file and ftp URLs."""
