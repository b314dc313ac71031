"""Argument translation — plugin options to wrangler CLI arguments.

Pure functions, no state. Input order is output order.
"""

import re
from collections.abc import Iterable

from pagesbridge.options import Flag, OptionValue, Text, TextList, TextMap

_CASE_BOUNDARY_RE = re.compile(r"([a-z])([A-Z])")


def cli_name(name: str) -> str:
    """Convert a mixed-case option name to its hyphenated CLI form.

    ``compatibilityFlag`` -> ``compatibility-flag``
    """
    return _CASE_BOUNDARY_RE.sub(r"\1-\2", name).lower()


def wrangler_args(options: Iterable[tuple[str, OptionValue]]) -> list[str]:
    """Translate ``(name, OptionValue)`` pairs into wrangler CLI arguments.

    Examples::

        wrangler_args([("liveReload", Flag(True))])       -> ["--live-reload"]
        wrangler_args([("kv", TextList(("A", "B")))])      -> ["--kv=A", "--kv=B"]
        wrangler_args([("binding", TextMap((("K", "v"),)))]) -> ["--binding=K=v"]
        wrangler_args([("logLevel", Text(""))])            -> []
    """
    args: list[str] = []
    for name, value in options:
        arg = cli_name(name)
        match value:
            case Flag(enabled=True):
                args.append(f"--{arg}")
            case Flag():
                pass
            case TextList(items=items):
                args.extend(f"--{arg}={item}" for item in items)
            case TextMap(entries=entries):
                args.extend(f"--{arg}={key}={val}" for key, val in entries)
            case Text(value=text) if text:
                args.append(f"--{arg}={text}")
    return args
