"""Per-invocation state shared by every command handler.

A :class:`CommandContext` bundles the parsed arguments with the config
store and a lazily created gateway client, and implements the dual
output contract: a single JSON document in ``--json`` mode, a Rich
rendering otherwise.
"""

from __future__ import annotations

import argparse
import contextlib
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from shov_cli.cli import exit_codes
from shov_cli.cli.console import console, emit_json
from shov_cli.core.models import EffectiveCredentials
from shov_cli.core.resolver import resolve
from shov_cli.exceptions import OperationFailedError
from shov_cli.infra.config_store import FileConfigStore
from shov_cli.infra.gateway import GatewayClient
from shov_cli.settings import Settings


@dataclass
class CommandContext:
    """Everything a handler needs; built once by :func:`~shov_cli.cli.app.main`."""

    args: argparse.Namespace
    settings: Settings
    store: FileConfigStore
    environ: Mapping[str, str]
    transport: httpx.BaseTransport | None = None
    _gateway: GatewayClient | None = field(default=None, init=False, repr=False)

    # ------------------------------------------------------------------
    # Lazily created collaborators
    # ------------------------------------------------------------------

    @property
    def json_mode(self) -> bool:
        return bool(getattr(self.args, "json", False))

    @property
    def gateway(self) -> GatewayClient:
        if self._gateway is None:
            self._gateway = GatewayClient(self.settings, transport=self.transport)
        return self._gateway

    def credentials(self) -> EffectiveCredentials:
        """Resolve credentials from ``--project``/``--key`` and config files."""
        return resolve(
            self.store,
            getattr(self.args, "project", None),
            getattr(self.args, "api_key", None),
            environ=self.environ,
        )

    def close(self) -> None:
        if self._gateway is not None:
            self._gateway.close()
            self._gateway = None

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def status(self, message: str) -> Iterator[None]:
        """Show a spinner in human mode; stay silent in ``--json`` mode."""
        if self.json_mode:
            yield
            return
        with console.status(message):
            yield

    def note(self, message: str) -> None:
        """Print a secondary line on stderr (suppressed in ``--json`` mode)."""
        if not self.json_mode:
            console.print(message)

    def finish(
        self,
        data: dict[str, Any],
        render: Callable[[dict[str, Any]], None],
        *,
        failure: str,
    ) -> int:
        """Emit *data* according to the output mode and pick the exit code.

        A payload with ``success: false`` is a failure even though the
        HTTP call succeeded.
        """
        ok = data.get("success", True) is not False
        if self.json_mode:
            emit_json(data)
            return exit_codes.SUCCESS if ok else exit_codes.GENERAL_ERROR
        if not ok:
            raise OperationFailedError(f"{failure}: {data.get('error') or 'Unknown error'}")
        render(data)
        return exit_codes.SUCCESS
