"""Shared argparse option groups."""

from __future__ import annotations

import argparse


def add_credential_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-p", "--project", help="Project name (or use .shov config)")
    parser.add_argument("-k", "--key", dest="api_key", help="API key (or use .shov config)")


def add_json_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--json", action="store_true", help="Output JSON for scripting")


def data_command(
    subparsers: argparse._SubParsersAction,
    name: str,
    help_text: str,
) -> argparse.ArgumentParser:
    """Create a sub-command carrying ``--project``, ``--key`` and ``--json``."""
    parser = subparsers.add_parser(name, help=help_text, description=help_text)
    add_credential_options(parser)
    add_json_option(parser)
    return parser


def positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {raw!r}")
    return value
