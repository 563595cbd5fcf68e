# sgingress/utils/output.py

import logging

from rich.console import Console
from rich.logging import RichHandler

# Addresses and rule descriptions are printed verbatim, never as markup
console = Console(stderr=True, markup=False, emoji=False, highlight=False)


def short_print(msg, style=None, out=None):
    (out or console).print(msg, style=style, soft_wrap=True)


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # botocore is very chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.INFO if verbose else logging.WARNING)
