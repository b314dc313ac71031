"""``pagesbridge run`` — development server with functions proxied to wrangler.

Resolves the host ASGI app, wraps it with ``bridge_app`` so wrangler
starts on lifespan startup, and serves the result with the pounce dev
server.
"""

import argparse
import logging
import sys

from pagesbridge.bridge import bridge_app
from pagesbridge.cli._options import build_config, load_options, python_log_level
from pagesbridge.cli._resolve import resolve_app


def run_server(args: argparse.Namespace) -> None:
    """Start the dev server with the functions bridge in front of the app."""
    app = None
    if args.app is not None:
        try:
            app = resolve_app(args.app)
        except (ModuleNotFoundError, AttributeError, TypeError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc

    options = load_options(args.options)
    logging.basicConfig(
        level=python_log_level(options),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    proxy = bridge_app(app, options, config=build_config(args))

    from pagesbridge.server.dev import run_dev_server

    run_dev_server(proxy, args.host, args.port, reload=not args.no_reload)
