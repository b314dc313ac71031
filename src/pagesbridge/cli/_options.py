"""Option and config loading shared by ``pagesbridge args`` and ``pagesbridge run``."""

import argparse
import json
import logging
import sys
from pathlib import Path

from pagesbridge.config import BridgeConfig
from pagesbridge.errors import ConfigurationError
from pagesbridge.options import PluginOptions

# wrangler log level -> Python logging level
_PYTHON_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "log": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "none": logging.CRITICAL,
}


def load_options(path: str | None) -> PluginOptions:
    """Read and validate a JSON options file; no file means defaults.

    Exits with status 1 on unreadable or invalid files.
    """
    if path is None:
        return PluginOptions()
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Error: cannot read options file {path!r}: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not isinstance(raw, dict):
        print(f"Error: options file {path!r} must contain a JSON object", file=sys.stderr)
        raise SystemExit(1)

    try:
        return PluginOptions.from_mapping(raw)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


def build_config(args: argparse.Namespace) -> BridgeConfig:
    """BridgeConfig from CLI flags, defaults for anything not given."""
    overrides: dict[str, object] = {}
    if getattr(args, "functions_dir", None):
        overrides["functions_dir"] = args.functions_dir
    if getattr(args, "wrangler", None):
        overrides["wrangler_command"] = (args.wrangler,)
    return BridgeConfig(**overrides)


def python_log_level(options: PluginOptions) -> int:
    """The logging level matching wrangler's ``logLevel``."""
    return _PYTHON_LEVELS[options.log_level]
