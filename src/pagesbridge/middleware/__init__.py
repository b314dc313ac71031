"""Middleware — raw ASGI wrappers placed in front of the host app.

Built-in middleware:
    FunctionsProxy -- Forward function routes to wrangler, fall through otherwise
"""

from pagesbridge.middleware.proxy import FunctionsProxy, not_found_app

__all__ = [
    "FunctionsProxy",
    "not_found_app",
]
