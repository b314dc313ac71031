"""Route synthesis — file location + exports to a mounted route.

Follows the Cloudflare Pages Functions file-based routing convention::

    index.ts               -> /
    users/index.ts         -> /users
    users/[id].ts          -> /users/:id
    files/[[path]].ts      -> /files/*
    _middleware.ts         -> (never routed)

See https://developers.cloudflare.com/pages/functions/api-reference/#methods
"""

import re
from collections.abc import Iterable
from pathlib import PurePosixPath

from pagesbridge.routing.route import FunctionRoute

# Catch-all handler: every HTTP method
CATCH_ALL_HANDLER = "onRequest"

# Base name (sans extension) of files that are never routed
MIDDLEWARE_MARKER = "_middleware"

# Exact, case-sensitive export name -> HTTP method
HANDLER_METHODS: dict[str, str] = {
    "onRequestGet": "GET",
    "onRequestPost": "POST",
    "onRequestPatch": "PATCH",
    "onRequestPut": "PUT",
    "onRequestDelete": "DELETE",
    "onRequestHead": "HEAD",
    "onRequestOptions": "OPTIONS",
}

_EXTENSION_RE = re.compile(r"\.[^/.]+$")
_CATCH_ALL_SEGMENT_RE = re.compile(r"\[\[.+?\]\]")
_PARAM_SEGMENT_RE = re.compile(r"\[(.+?)\]")


def route_path(relative_path: str) -> str:
    """Translate a path relative to the functions root into a route path.

    Every bracketed segment is rewritten, not just the first::

        "api/[org]/[repo].ts" -> "/api/:org/:repo"

    Idempotent on paths that are already normalized.
    """
    path = _EXTENSION_RE.sub("", relative_path)
    path = _CATCH_ALL_SEGMENT_RE.sub("*", path)
    path = _PARAM_SEGMENT_RE.sub(r":\1", path)
    path = path.replace("\\", "/").strip("/")
    if path == "index":
        path = ""
    elif path.endswith("/index"):
        path = path.removesuffix("/index")
    return f"/{path}"


def synthesize(relative_path: str, export_names: Iterable[str]) -> FunctionRoute | None:
    """Build the route for one functions file, or ``None`` if it is not routable.

    A file is skipped when it is middleware, or when it exports neither
    ``onRequest`` nor any ``onRequest<Method>`` handler. Unknown export
    names are ignored.
    """
    stem = PurePosixPath(relative_path.replace("\\", "/")).stem
    if stem == MIDDLEWARE_MARKER:
        return None

    exports = frozenset(export_names)
    match_all = CATCH_ALL_HANDLER in exports
    methods = frozenset(HANDLER_METHODS[name] for name in exports if name in HANDLER_METHODS)
    if not match_all and not methods:
        return None

    return FunctionRoute(
        route_path=route_path(relative_path),
        methods=methods,
        match_all=match_all,
        source=relative_path,
    )
