"""CLI application entry point and command routing for shov.

This module is the **sole error boundary** for the entire application.
:func:`main` renders :class:`~shov_cli.exceptions.ShovError` according
to the output mode; :func:`cli` additionally catches
``KeyboardInterrupt`` and any unexpected ``Exception`` and turns them
into well-defined exit codes.

Architecture notes
------------------
* No business logic lives here; handlers in :mod:`shov_cli.cli.commands`
  delegate to the core and infrastructure layers.
* ``print()`` is forbidden outside the CLI layer; Rich consoles (and
  :func:`~shov_cli.cli.console.emit_json`) are used exclusively.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Mapping
from typing import NoReturn

import httpx
from rich.markup import escape

from shov_cli.cli import exit_codes
from shov_cli.cli.commands import register_all
from shov_cli.cli.commands._options import add_json_option
from shov_cli.cli.console import configure_logging, console, emit_json
from shov_cli.cli.context import CommandContext
from shov_cli.exceptions import InputValidationError, ShovError
from shov_cli.infra.config_store import FileConfigStore
from shov_cli.settings import Settings
from shov_cli.version import __version__

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

class ShovArgumentParser(argparse.ArgumentParser):
    """Parser whose usage errors become :class:`InputValidationError`.

    Sub-parsers inherit the class, so a missing positional or a bad option
    value anywhere in the tree reaches the same error boundary as every
    other failure instead of exiting with status 2.
    """

    def error(self, message: str) -> NoReturn:
        raise InputValidationError(message, hint=self.format_usage().strip())


def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser with every sub-command."""
    parser = ShovArgumentParser(
        prog="shov",
        description="Command line interface for the Shov edge data platform.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log HTTP traffic and other debug details to stderr.",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="<command>", parser_class=ShovArgumentParser)
    register_all(subparsers)

    doctor = subparsers.add_parser("doctor", help="Check the environment and configuration")
    add_json_option(doctor)
    doctor.set_defaults(handler=_handle_doctor)
    return parser


def _handle_doctor(ctx: CommandContext) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from shov_cli.cli.doctor import run_doctor

    return run_doctor(ctx)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(
    argv: list[str] | None = None,
    *,
    settings: Settings | None = None,
    store: FileConfigStore | None = None,
    transport: httpx.BaseTransport | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Run the shov CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.
    settings, store, transport, environ:
        Collaborators normally derived from the process environment.
        Tests pass their own to avoid touching the network, the real
        home directory or ``os.environ``.

    Returns
    -------
    int
        OS process exit code.
    """
    argv = sys.argv[1:] if argv is None else argv
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except ShovError as exc:
        _report(exc, json_mode="--json" in argv)
        return exit_codes.GENERAL_ERROR

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help(sys.stderr)
        return exit_codes.SUCCESS

    configure_logging(args.verbose)
    env = os.environ if environ is None else environ
    settings = settings or Settings.from_env(env)
    store = store or FileConfigStore(global_dir=settings.global_config_dir)
    ctx = CommandContext(args=args, settings=settings, store=store, environ=env, transport=transport)

    logger.debug("Running %r against %s", args.command, settings.api_url)
    try:
        return handler(ctx)
    except ShovError as exc:
        _report(exc, json_mode=ctx.json_mode)
        return exit_codes.GENERAL_ERROR
    finally:
        ctx.close()


def _report(exc: ShovError, *, json_mode: bool) -> None:
    if json_mode:
        emit_json(exc.to_dict())
        return
    console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    if exc.hint:
        console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(str(exc))}"
        )
        sys.exit(exit_codes.GENERAL_ERROR)
