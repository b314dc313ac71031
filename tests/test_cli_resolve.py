"""Tests for pagesbridge.cli._resolve — host app import resolution."""

import sys
import types

import pytest

from pagesbridge.cli._resolve import resolve_app


async def asgi_app(scope, receive, send) -> None:
    pass


@pytest.fixture
def _fake_app_module(monkeypatch: pytest.MonkeyPatch) -> None:
    """Register a fake module with ASGI apps on sys.modules."""
    mod = types.ModuleType("_fake_host_app")
    mod.app = asgi_app  # type: ignore[attr-defined]
    mod.custom = asgi_app  # type: ignore[attr-defined]
    mod.create_app = lambda: asgi_app  # type: ignore[attr-defined]
    mod.not_an_app = "just a string"  # type: ignore[attr-defined]

    def broken_factory():
        raise RuntimeError("no database")

    mod.broken_factory = broken_factory  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "_fake_host_app", mod)


@pytest.mark.usefixtures("_fake_app_module")
class TestResolveApp:
    def test_explicit_attribute(self) -> None:
        assert resolve_app("_fake_host_app:app") is asgi_app

    def test_custom_attribute(self) -> None:
        assert resolve_app("_fake_host_app:custom") is asgi_app

    def test_default_attribute(self) -> None:
        """Omitting :attr defaults to 'app'."""
        assert resolve_app("_fake_host_app") is asgi_app

    def test_factory(self) -> None:
        assert resolve_app("_fake_host_app:create_app") is asgi_app

    def test_factory_error(self) -> None:
        with pytest.raises(TypeError, match="no database"):
            resolve_app("_fake_host_app:broken_factory")

    def test_missing_module(self) -> None:
        with pytest.raises(ModuleNotFoundError):
            resolve_app("nonexistent_module_xyz:app")

    def test_missing_attribute(self) -> None:
        with pytest.raises(AttributeError):
            resolve_app("_fake_host_app:does_not_exist")

    def test_not_callable(self) -> None:
        with pytest.raises(TypeError, match="not an ASGI application"):
            resolve_app("_fake_host_app:not_an_app")
