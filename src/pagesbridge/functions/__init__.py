"""Functions — discovery of handler files and synthesis of their routes."""

from pagesbridge.functions.discovery import SourceFile, discover, find_source_files
from pagesbridge.functions.synthesis import (
    CATCH_ALL_HANDLER,
    HANDLER_METHODS,
    MIDDLEWARE_MARKER,
    route_path,
    synthesize,
)

__all__ = [
    "CATCH_ALL_HANDLER",
    "HANDLER_METHODS",
    "MIDDLEWARE_MARKER",
    "SourceFile",
    "discover",
    "find_source_files",
    "route_path",
    "synthesize",
]
