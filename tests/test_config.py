from __future__ import annotations

import pytest

from tabstate.config import TabStateConfig
from tabstate.exceptions import TabStateConfigError
from tabstate.urls import make_supported, supported, supported_for


def test_from_env_reads_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TABSTATE_PERSISTENCE", "off")
    monkeypatch.setenv("TABSTATE_LIFECYCLE_HOOKS", "0")
    monkeypatch.setenv("TABSTATE_SUPPORTED_SCHEMES", "https, ftp:")
    monkeypatch.setenv("TABSTATE_EXTENSION_URL", "moz-extension://abc/")

    config = TabStateConfig.from_env()

    assert config.persistence is False
    assert config.lifecycle_hooks is False
    assert config.supported_schemes == ("https", "ftp")
    assert config.extension_url == "moz-extension://abc/"


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TABSTATE_PERSISTENCE", "no")
    config = TabStateConfig.from_env(persistence=True)
    assert config.persistence is True


def test_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TABSTATE_PERSISTENCE",
        "TABSTATE_LIFECYCLE_HOOKS",
        "TABSTATE_SUPPORTED_SCHEMES",
        "TABSTATE_EXTENSION_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    assert TabStateConfig.from_env() == TabStateConfig()


def test_invalid_env_values_raise(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TABSTATE_PERSISTENCE", "maybe")
    with pytest.raises(TabStateConfigError):
        TabStateConfig.from_env()


def test_config_needs_something_supported() -> None:
    with pytest.raises(TabStateConfigError):
        TabStateConfig(supported_schemes=())


def test_default_supported_predicate() -> None:
    assert supported("https://example.com/")
    assert supported("HTTP://example.com/")
    assert supported("file:///tmp/x.html")
    assert supported("ftp://mirror.test/")
    assert not supported("chrome://settings")
    assert not supported("about:blank")
    assert not supported("")


def test_extension_pages_are_supported_when_configured() -> None:
    predicate = supported_for(TabStateConfig(extension_url="chrome-extension://abc/"))
    assert predicate("chrome-extension://abc/manage.html")
    assert not predicate("chrome-extension://other/page.html")


def test_make_supported_custom_schemes() -> None:
    predicate = make_supported(["https"])
    assert predicate("https://a.test/")
    assert not predicate("http://a.test/")
