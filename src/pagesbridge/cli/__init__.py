"""pagesbridge CLI — route listing, wrangler command preview, and dev server.

Entry point registered as ``pagesbridge`` in ``pyproject.toml``::

    [project.scripts]
    pagesbridge = "pagesbridge.cli:main"
"""

import argparse
import sys


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--functions-dir",
        default=None,
        help="Functions root directory (default: ./functions)",
    )
    parser.add_argument(
        "--options",
        default=None,
        metavar="FILE",
        help="JSON file with plugin options (kv, d1, binding, logLevel, ...)",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``pagesbridge`` command."""
    parser = argparse.ArgumentParser(
        prog="pagesbridge",
        description="pagesbridge — Cloudflare Pages Functions for any ASGI dev server.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- pagesbridge routes -----------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List routes synthesized from functions")
    routes_parser.add_argument(
        "--functions-dir",
        default=None,
        help="Functions root directory (default: ./functions)",
    )

    # -- pagesbridge args -------------------------------------------------
    args_parser = subparsers.add_parser("args", help="Print the wrangler command line")
    _add_common(args_parser)
    args_parser.add_argument(
        "--wrangler",
        default=None,
        help="Wrangler executable (default: wrangler)",
    )

    # -- pagesbridge run --------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Serve an ASGI app with functions proxied")
    run_parser.add_argument(
        "app",
        nargs="?",
        default=None,
        help="Import string of the host ASGI app (e.g. myapp:app); omit to serve functions only",
    )
    run_parser.add_argument("--host", default="127.0.0.1", help="Bind host address")
    run_parser.add_argument("--port", type=int, default=8000, help="Bind port number")
    run_parser.add_argument(
        "--wrangler",
        default=None,
        help="Wrangler executable (default: wrangler)",
    )
    run_parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable auto-reload on file changes",
    )
    _add_common(run_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from pagesbridge.cli._routes import run_routes

        run_routes(args)
    elif args.command == "args":
        from pagesbridge.cli._args import run_args

        run_args(args)
    elif args.command == "run":
        from pagesbridge.cli._run import run_server

        run_server(args)
