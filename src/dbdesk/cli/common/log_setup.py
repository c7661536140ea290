"""Logging setup for the CLI."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from dbdesk.cli.common.output import console


def setup_logging(level: str = "WARNING", *, verbose: bool = False) -> None:
    """Route `dbdesk.*` loggers through a Rich handler on the shared console."""
    logger = logging.getLogger("dbdesk")
    resolved = logging.DEBUG if verbose else logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.WARNING
    logger.setLevel(resolved)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console,
            show_path=verbose,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.propagate = False
