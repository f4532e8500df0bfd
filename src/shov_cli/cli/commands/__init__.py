"""Sub-command modules.

Each module exposes ``register(subparsers)``, which adds its parsers and
binds a handler via ``set_defaults(handler=...)``.  Handlers take a
:class:`~shov_cli.cli.context.CommandContext` and return an exit code.
"""

from __future__ import annotations

import argparse

from shov_cli.cli.commands import (
    backups,
    code,
    collections,
    events,
    files,
    kv,
    otp,
    projects,
    realtime,
    search,
    secrets,
)

_MODULES = (projects, kv, collections, search, files, realtime, otp, code, secrets, backups, events)


def register_all(subparsers: argparse._SubParsersAction) -> None:
    for module in _MODULES:
        module.register(subparsers)
