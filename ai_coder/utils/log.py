"""Logging setup shared by the CLI entry point."""

import logging

from rich.logging import RichHandler

from .ansi import err_console

LOG_FORMAT = "%(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    """Send all records to stderr through rich.

    With *debug* every logger, including ``openai`` and ``httpx``, emits
    DEBUG records, which shows each request and response.
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[RichHandler(console=err_console, show_path=False, markup=False)],
        force=True,
    )
    for name in ("openai", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(level)
