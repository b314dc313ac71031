"""pagesbridge — Cloudflare Pages Functions for any ASGI dev server.

Runs ``wrangler pages dev`` next to your dev server, finds the handlers
under ``functions/``, and proxies matching requests to wrangler.

Basic usage::

    from pagesbridge import bridge_app

    app = bridge_app(my_asgi_app, {"kv": ["CACHE"], "logLevel": "info"})

Or from an async host hook::

    from pagesbridge import on_create_dev_server

    app = await on_create_dev_server(my_asgi_app, {"d1": "DB"})
"""

__version__ = "0.1.0.dev0"
__all__ = [
    "BridgeConfig",
    "BridgeError",
    "ConfigurationError",
    "DiscoveryParseFailure",
    "FunctionRoute",
    "FunctionsBridge",
    "FunctionsProxy",
    "MalformedReadinessSignal",
    "PluginOptions",
    "ProxyForwardingFailure",
    "StartupTimeout",
    "WranglerProcess",
    "bridge_app",
    "on_create_dev_server",
    "synthesize",
    "wrangler_args",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import pagesbridge`` fast: tree-sitter and httpx load on first use.
    """
    if name == "BridgeConfig":
        from pagesbridge.config import BridgeConfig

        return BridgeConfig

    if name == "PluginOptions":
        from pagesbridge.options import PluginOptions

        return PluginOptions

    if name in ("FunctionsBridge", "bridge_app", "on_create_dev_server"):
        from pagesbridge import bridge as _bridge

        return getattr(_bridge, name)

    if name == "FunctionsProxy":
        from pagesbridge.middleware.proxy import FunctionsProxy

        return FunctionsProxy

    if name == "FunctionRoute":
        from pagesbridge.routing.route import FunctionRoute

        return FunctionRoute

    if name == "synthesize":
        from pagesbridge.functions.synthesis import synthesize

        return synthesize

    if name in ("WranglerProcess", "wrangler_args"):
        from pagesbridge import wrangler as _wrangler

        return getattr(_wrangler, name)

    if name in (
        "BridgeError",
        "ConfigurationError",
        "DiscoveryParseFailure",
        "MalformedReadinessSignal",
        "ProxyForwardingFailure",
        "StartupTimeout",
    ):
        from pagesbridge import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
