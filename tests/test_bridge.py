"""Tests for pagesbridge.bridge — discovery, wrangler start-up, and route installation."""

from collections.abc import Callable
from typing import TypeAlias
from pathlib import Path

import pytest

from pagesbridge.bridge import FunctionsBridge, bridge_app, collect_routes, on_create_dev_server
from pagesbridge.config import BridgeConfig
from pagesbridge.errors import ConfigurationError, DiscoveryParseFailure
from pagesbridge.middleware.proxy import FunctionsProxy
from pagesbridge.options import PluginOptions
from pagesbridge.routing.route import FunctionRoute

FakeWrangler: TypeAlias = Callable[..., BridgeConfig]


@pytest.fixture(autouse=True)
def _no_atexit(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep test processes from piling up interpreter-exit hooks."""
    monkeypatch.setattr("atexit.register", lambda func: func)


def _by_path(routes: list[FunctionRoute]) -> dict[str, FunctionRoute]:
    return {route.route_path: route for route in routes}


class TestCollectRoutes:
    async def test_routable_files_only(self, functions_dir: Path) -> None:
        routes = _by_path(await collect_routes(functions_dir))

        assert set(routes) == {"/", "/users/:id"}
        assert routes["/"].methods == frozenset({"GET"})
        assert routes["/users/:id"].methods == frozenset({"GET", "DELETE"})
        assert routes["/users/:id"].source == "users/[id].ts"

    async def test_on_route_callback(self, functions_dir: Path) -> None:
        seen: list[FunctionRoute] = []

        routes = await collect_routes(functions_dir, on_route=seen.append)

        assert seen == routes

    async def test_extensions_filter(self, functions_dir: Path) -> None:
        (functions_dir / "legacy.js").write_text("export function onRequestPost() {}\n")

        ts_only = await collect_routes(functions_dir, (".ts",))
        both = await collect_routes(functions_dir)

        assert "/legacy" not in _by_path(ts_only)
        assert "/legacy" in _by_path(both)

    async def test_missing_directory(self, tmp_path: Path) -> None:
        assert await collect_routes(tmp_path / "functions") == []

    async def test_parse_failure_propagates(self, functions_dir: Path) -> None:
        (functions_dir / "broken.ts").write_text("export const = ;\n")

        with pytest.raises(DiscoveryParseFailure) as exc_info:
            await collect_routes(functions_dir)

        assert exc_info.value.path == functions_dir / "broken.ts"


class TestFunctionsBridge:
    def test_options_from_mapping(self) -> None:
        bridge = FunctionsBridge({"kv": "CACHE"})

        assert bridge.options.kv == ("CACHE",)
        assert "--kv=CACHE" in bridge.wrangler.command

    def test_options_instance(self) -> None:
        options = PluginOptions(log_level="warn")
        assert FunctionsBridge(options).options is options

    def test_invalid_options(self) -> None:
        with pytest.raises(ConfigurationError):
            FunctionsBridge({"logLevel": "loud"})

    async def test_setup_installs_routes(
        self,
        fake_wrangler: FakeWrangler,
        functions_dir: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        bridge = FunctionsBridge(config=fake_wrangler(functions_dir=functions_dir))
        proxy = FunctionsProxy()

        with caplog.at_level("INFO"):
            try:
                await bridge.setup(proxy)
            finally:
                await bridge.aclose()

        assert bridge.address == "http://127.0.0.1:8788"
        installed = {r.route.route_path: r for r in proxy.routes}
        assert set(installed) == {"/", "/users/:id"}
        assert {r.target for r in proxy.routes} == {"http://127.0.0.1:8788"}
        assert "Proxying Cloudflare function at /users/:id" in caplog.text
        assert "Proxying 2 Cloudflare function route(s)" in caplog.text

    async def test_quiet_log_level(
        self,
        fake_wrangler: FakeWrangler,
        functions_dir: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        config = fake_wrangler(functions_dir=functions_dir)

        with caplog.at_level("INFO", logger="pagesbridge"):
            proxy = await on_create_dev_server(None, {"logLevel": "warn"}, config=config)
            for hook in proxy._shutdown_hooks:
                await hook()

        assert len(proxy.routes) == 2
        assert "Proxying" not in caplog.text

    async def test_discovery_failure_stops_wrangler(
        self, fake_wrangler: FakeWrangler, functions_dir: Path
    ) -> None:
        (functions_dir / "broken.ts").write_text("export function (\n")
        bridge = FunctionsBridge(config=fake_wrangler(functions_dir=functions_dir))

        with pytest.raises(DiscoveryParseFailure):
            await bridge.setup(FunctionsProxy())

        assert not bridge.wrangler.running


class TestOnCreateDevServer:
    async def test_returns_ready_proxy(
        self, fake_wrangler: FakeWrangler, functions_dir: Path
    ) -> None:
        proxy = await on_create_dev_server(
            None, {"d1": "DB"}, config=fake_wrangler(functions_dir=functions_dir)
        )
        try:
            assert len(proxy.routes) == 2
        finally:
            for hook in proxy._shutdown_hooks:
                await hook()

    async def test_startup_timeout_exits(
        self, fake_wrangler: FakeWrangler, caplog: pytest.LogCaptureFixture
    ) -> None:
        config = fake_wrangler("time.sleep(60)\n", start_timeout=0.5)

        with pytest.raises(SystemExit) as exc_info:
            await on_create_dev_server(None, config=config)

        assert exc_info.value.code == 1
        assert "Timed out waiting for Wrangler Pages dev server to start" in caplog.text

    async def test_unreadable_source_exits(
        self,
        fake_wrangler: FakeWrangler,
        functions_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        async def unreadable(path: str | Path) -> list[str]:
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr("pagesbridge.functions.discovery.discover", unreadable)

        with pytest.raises(SystemExit) as exc_info:
            await on_create_dev_server(None, config=fake_wrangler(functions_dir=functions_dir))

        assert exc_info.value.code == 1
        assert "Cloudflare functions bridge failed to start" in caplog.text

    async def test_invalid_options_exit(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            await on_create_dev_server(None, {"port": 3000})

        assert exc_info.value.code == 1


class TestBridgeApp:
    def test_invalid_options_raise_immediately(self) -> None:
        with pytest.raises(ConfigurationError):
            bridge_app(None, {"unknown": True})

    def test_nothing_started_before_lifespan(self) -> None:
        proxy = bridge_app(None)

        assert proxy.routes == []

    async def test_lifespan_startup_bootstraps(
        self, fake_wrangler: FakeWrangler, functions_dir: Path
    ) -> None:
        proxy = bridge_app(None, config=fake_wrangler(functions_dir=functions_dir))

        routes_at_shutdown: list[int] = []
        incoming = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        sent: list[dict] = []

        async def receive() -> dict:
            message = incoming.pop(0)
            if message["type"] == "lifespan.shutdown":
                routes_at_shutdown.append(len(proxy.routes))
            return message

        async def send(message: dict) -> None:
            sent.append(message)

        await proxy({"type": "lifespan"}, receive, send)

        assert routes_at_shutdown == [2]
        assert sent[0]["type"] == "lifespan.startup.complete"
