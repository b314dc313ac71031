"""``pagesbridge routes`` — list routes synthesized from the functions root.

Discovers and parses every handler file without starting wrangler, then
prints the route table with methods, path, and source file.
"""

import argparse
import asyncio
import sys

from pagesbridge.bridge import collect_routes
from pagesbridge.config import BridgeConfig
from pagesbridge.errors import DiscoveryParseFailure
from pagesbridge.routing.pattern import MountPattern


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of METHODS, PATH, and FILE for every routable file.

    Rows are ordered by match precedence: the route that wins an
    overlap is listed first.
    """
    config = BridgeConfig()
    functions_dir = args.functions_dir or config.functions_dir

    try:
        routes = asyncio.run(collect_routes(functions_dir, config.extensions))
    except DiscoveryParseFailure as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not routes:
        print("No routes found.")
        return

    routes.sort(key=lambda r: r.source)
    routes.sort(key=lambda r: MountPattern.compile(r.route_path).specificity, reverse=True)

    rows = [(route.method_label, route.route_path, route.source) for route in routes]

    # Column widths
    max_methods = max(max(len(r[0]) for r in rows), 7)  # "METHODS" header
    max_path = max(max(len(r[1]) for r in rows), 4)  # "PATH" header

    fmt = f"{{:<{max_methods}}}  {{:<{max_path}}}  {{}}"
    print(fmt.format("METHODS", "PATH", "FILE"))
    sep_len = max_methods + max_path + 4 + max((len(r[2]) for r in rows), default=0)
    print("-" * min(sep_len, 80))
    for methods, path, source in rows:
        print(fmt.format(methods, path, source))
