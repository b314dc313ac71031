"""``pagesbridge args`` — print the wrangler command line without running it."""

import argparse
import shlex

from pagesbridge.cli._options import build_config, load_options
from pagesbridge.wrangler.process import WranglerProcess


def run_args(args: argparse.Namespace) -> None:
    """Print the exact command ``pagesbridge run`` would spawn."""
    options = load_options(args.options)
    wrangler = WranglerProcess(options.to_options(), build_config(args))
    print(shlex.join(wrangler.command))
