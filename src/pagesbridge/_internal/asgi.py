"""ASGI type aliases.

Raw ASGI callables as seen by the proxy and the wrapped host app.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

# Raw ASGI 3.0 types
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]

# Any ASGI 3.0 application, e.g. the host dev server being wrapped
ASGIApp: TypeAlias = Callable[[Scope, Receive, Send], Awaitable[None]]
