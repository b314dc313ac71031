"""Bridge bootstrap — start wrangler, discover functions, install routes.

Two entry points, both returning the ``FunctionsProxy`` that should be
served in place of the host app:

- ``on_create_dev_server(app, options)`` — awaited by a host that is
  already running an event loop; everything is ready on return.
- ``bridge_app(app, options)`` — synchronous; the bootstrap runs when the
  ASGI server delivers ``lifespan.startup``.

Any startup failure (timeout, bad readiness signal, unparseable or
unreadable source) is logged and ends the process with exit status 1.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import anyio

from pagesbridge._internal.asgi import ASGIApp
from pagesbridge.config import BridgeConfig
from pagesbridge.functions.discovery import discover_source_file, find_source_files
from pagesbridge.functions.synthesis import synthesize
from pagesbridge.middleware.proxy import FunctionsProxy
from pagesbridge.options import PluginOptions
from pagesbridge.routing.route import FunctionRoute
from pagesbridge.wrangler.process import WranglerProcess

logger = logging.getLogger("pagesbridge.bridge")


def _leaf(group: BaseExceptionGroup) -> BaseException:
    """First non-group exception inside a (possibly nested) exception group."""
    exc: BaseException = group
    while isinstance(exc, BaseExceptionGroup):
        exc = exc.exceptions[0]
    return exc


async def collect_routes(
    functions_dir: str | Path,
    extensions: tuple[str, ...] = (".js", ".ts"),
    *,
    on_route: Callable[[FunctionRoute], object] | None = None,
) -> list[FunctionRoute]:
    """Discover every functions file concurrently and synthesize its route.

    *on_route* is called as each route becomes available, so the returned
    list (and the callback order) follows discovery completion order.

    Raises:
        DiscoveryParseFailure: The first file that failed to parse; the
            remaining discoveries are cancelled.
        OSError: A file could not be read.
    """
    root = Path(functions_dir)
    routes: list[FunctionRoute] = []

    async def _one(path: Path) -> None:
        source = await discover_source_file(path, root)
        route = synthesize(source.relative_path, source.exports)
        if route is None:
            logger.debug("Skipping %s (no routable handlers)", source.relative_path)
            return
        routes.append(route)
        if on_route is not None:
            on_route(route)

    try:
        async with anyio.create_task_group() as tg:
            for path in find_source_files(root, extensions):
                tg.start_soon(_one, path)
    except BaseExceptionGroup as group:
        raise _leaf(group) from None

    return routes


class FunctionsBridge:
    """Lifecycle owner: one wrangler process feeding one proxy.

    Usage::

        bridge = FunctionsBridge({"kv": "CACHE"})
        bridge.register_cleanup()
        await bridge.setup(proxy)
        ...
        await bridge.aclose()
    """

    __slots__ = ("address", "config", "options", "routes", "wrangler")

    def __init__(
        self,
        options: PluginOptions | Mapping[str, Any] | None = None,
        config: BridgeConfig | None = None,
    ) -> None:
        if not isinstance(options, PluginOptions):
            options = PluginOptions.from_mapping(options or {})
        self.options = options
        self.config = config or BridgeConfig()
        self.wrangler = WranglerProcess(options.to_options(), self.config)
        self.address: str | None = None
        self.routes: list[FunctionRoute] = []

    def register_cleanup(self) -> None:
        """Make sure wrangler is terminated when the interpreter exits.

        Idempotent; call it once from the top-level bootstrap.
        """
        self.wrangler.register_cleanup()

    async def start(self) -> str:
        """Start wrangler and return its address."""
        self.address = await self.wrangler.start()
        return self.address

    async def install_routes(self, proxy: FunctionsProxy, address: str) -> list[FunctionRoute]:
        """Discover functions and install each route on *proxy* as it is found."""
        self.routes = await collect_routes(
            self.config.functions_dir,
            self.config.extensions,
            on_route=lambda route: proxy.install(route, address),
        )
        if self.options.is_verbose:
            logger.info(
                "Proxying %d Cloudflare function route(s) to %s", len(self.routes), address
            )
        return self.routes

    async def setup(self, proxy: FunctionsProxy) -> None:
        """Full bootstrap: cleanup hook, wrangler start, route installation."""
        self.register_cleanup()
        address = await self.start()
        proxy.on_shutdown(self.aclose)
        try:
            await self.install_routes(proxy, address)
        except BaseException:
            await self.aclose()
            raise

    async def aclose(self) -> None:
        await self.wrangler.aclose()


def _proxy_for(app: ASGIApp | None, bridge: FunctionsBridge) -> FunctionsProxy:
    return FunctionsProxy(
        app,
        forward_timeout=bridge.config.forward_timeout,
        verbose=bridge.options.is_verbose,
    )


async def _bootstrap(bridge: FunctionsBridge, proxy: FunctionsProxy) -> None:
    try:
        await bridge.setup(proxy)
    except Exception as exc:
        logger.exception("Cloudflare functions bridge failed to start: %s", exc)
        raise SystemExit(1) from exc


async def on_create_dev_server(
    app: ASGIApp | None,
    plugin_options: PluginOptions | Mapping[str, Any] | None = None,
    *,
    config: BridgeConfig | None = None,
) -> FunctionsProxy:
    """Start the bridge and return a proxy wrapping *app*.

    Raises:
        SystemExit: With status 1 if options are invalid or startup fails.
    """
    try:
        bridge = FunctionsBridge(plugin_options, config)
    except Exception as exc:
        logger.exception("Invalid Cloudflare functions options: %s", exc)
        raise SystemExit(1) from exc

    proxy = _proxy_for(app, bridge)
    await _bootstrap(bridge, proxy)
    return proxy


def bridge_app(
    app: ASGIApp | None,
    plugin_options: PluginOptions | Mapping[str, Any] | None = None,
    *,
    config: BridgeConfig | None = None,
) -> FunctionsProxy:
    """Wrap *app* so the bridge starts on the ASGI ``lifespan.startup`` event.

    Options are validated immediately; invalid options raise
    ``ConfigurationError`` here rather than at startup.
    """
    bridge = FunctionsBridge(plugin_options, config)
    proxy = _proxy_for(app, bridge)

    async def _startup() -> None:
        await _bootstrap(bridge, proxy)

    proxy.on_startup(_startup)
    return proxy
