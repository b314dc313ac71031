"""Development server.

Starts a pounce ASGI server with the live proxy object. Uses
single-worker mode so exactly one wrangler process is supervised.
"""

from __future__ import annotations

from pagesbridge._internal.asgi import ASGIApp


def run_dev_server(
    app: ASGIApp,
    host: str,
    port: int,
    *,
    reload: bool = True,
    reload_include: tuple[str, ...] = (".js", ".ts"),
    reload_dirs: tuple[str, ...] = (),
) -> None:
    """Start a pounce dev server with the given ASGI app.

    Pounce's ``run()`` takes an import string, but the proxy is a live
    object. We use ``pounce.Server`` directly with the ASGI callable.

    Args:
        app: ASGI callable (usually a ``FunctionsProxy``).
        host: Bind host address.
        port: Bind port number.
        reload: Enable auto-reload on file changes (default True).
        reload_include: Extra file extensions to watch when reload is
            active; functions sources by default.
        reload_dirs: Extra directories to watch alongside cwd.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=reload,
        reload_include=reload_include,
        reload_dirs=reload_dirs,
    )
    server = Server(config, app)
    server.run()
