"""Wrangler integration — argument translation and process supervision."""

from pagesbridge.wrangler.args import cli_name, wrangler_args
from pagesbridge.wrangler.process import ReadinessSignal, WranglerProcess

__all__ = [
    "ReadinessSignal",
    "WranglerProcess",
    "cli_name",
    "wrangler_args",
]
