"""ASGI app resolution — resolves ``"module:attribute"`` strings to host apps.

Used by ``pagesbridge run`` to locate the ASGI app to wrap.
"""

import importlib
import inspect

from pagesbridge._internal.asgi import ASGIApp


def resolve_app(import_string: str) -> ASGIApp:
    """Resolve an import string to an ASGI application.

    Accepts ``"module:attribute"`` format.  When the attribute portion
    is omitted, defaults to ``"app"`` (e.g. ``"myapp"`` resolves to
    ``myapp.app``).

    Supports factory functions: a plain function taking no arguments is
    called and its result used as the app.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not callable.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if inspect.isfunction(obj) and not inspect.iscoroutinefunction(obj):
        if not inspect.signature(obj).parameters:
            try:
                obj = obj()
            except Exception as exc:
                msg = f"Factory function {import_string!r} raised an error: {exc}"
                raise TypeError(msg) from exc

    if not callable(obj):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not an ASGI application"
        raise TypeError(msg)

    return obj
