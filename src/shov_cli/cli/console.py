"""CLI console helpers.

Two Rich consoles are used: human-readable results go to stdout,
everything else (status spinners, notes, errors, logs) goes to stderr so
that ``--json`` output on stdout stays machine-parseable.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


def get_rich_console(*, stderr: bool = True) -> Console:
    """Create a Rich console bound to the *current* stderr/stdout."""
    return Console(stderr=stderr)


class _ConsoleProxy:
    """``print``-compatible proxy that resolves the stream on each call."""

    def __init__(self, *, stderr: bool) -> None:
        self._stderr = stderr

    def print(self, *objects: object, **kwargs: Any) -> None:
        get_rich_console(stderr=self._stderr).print(*objects, **kwargs)

    def status(self, message: str) -> Any:
        return get_rich_console(stderr=self._stderr).status(message)


console = _ConsoleProxy(stderr=True)
"""Diagnostics, spinners and errors."""

out = _ConsoleProxy(stderr=False)
"""Human-readable command results."""


def emit_json(data: Any) -> None:
    """Write exactly one JSON document to stdout."""
    sys.stdout.write(json.dumps(data, indent=2, default=str) + "\n")
    sys.stdout.flush()


def emit_json_line(data: Any) -> None:
    """Write one compact JSON record to stdout, for streamed output."""
    sys.stdout.write(json.dumps(data, separators=(",", ":"), default=str) + "\n")
    sys.stdout.flush()


def configure_logging(verbose: bool) -> None:
    """Route ``shov_cli`` log records through Rich on stderr."""
    logger = logging.getLogger("shov_cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RichHandler(
        console=get_rich_console(),
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
