"""``shov doctor``: environment and configuration diagnostics.

Collects the runtime versions, the config files in play and the
credential source the resolver would pick, then renders them as a Rich
table (or one JSON document with ``--json``).  No network calls are
made.
"""

from __future__ import annotations

import platform
import sys

import httpx
from rich.table import Table

from shov_cli.cli import exit_codes
from shov_cli.cli.console import console, emit_json
from shov_cli.cli.context import CommandContext
from shov_cli.core.resolver import try_resolve
from shov_cli.version import __version__

Check = tuple[str, str, str]

OK = "OK"
WARN = "WARN"
FAIL = "FAIL"

_STATUS_MARKUP = {
    OK: "[green]OK[/green]",
    WARN: "[yellow]WARN[/yellow]",
    FAIL: "[red]FAIL[/red]",
}


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> Check:
    """Return (label, value, status) for the Python version row."""
    ok = sys.version_info[:2] >= (3, 10)
    return "Python", platform.python_version(), OK if ok else FAIL


def _httpx_version_check() -> Check:
    return "httpx", httpx.__version__, OK


def _local_config_check(ctx: CommandContext) -> Check:
    path = ctx.store.local_path
    if not path.is_file():
        return "Local config", f"{path} (missing)", WARN
    local = ctx.store.load_local()
    if not local.is_complete:
        return "Local config", f"{path} (incomplete)", FAIL
    return "Local config", f"{path} ({local.project})", OK


def _global_config_check(ctx: CommandContext) -> Check:
    path = ctx.store.global_path
    if not path.is_file():
        return "Global config", f"{path} (missing)", WARN
    count = len(ctx.store.list_projects())
    return "Global config", f"{path} ({count} project(s))", OK


def _credentials_check(ctx: CommandContext) -> Check:
    creds = try_resolve(ctx.store, environ=ctx.environ)
    if creds is None:
        return "Credentials", "none found", WARN
    return "Credentials", f"{creds.project_name} via {creds.source.value} ({creds.masked_key})", OK


def _api_url_check(ctx: CommandContext) -> Check:
    return "API URL", ctx.settings.api_url, OK


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(ctx: CommandContext) -> int:
    """Execute all diagnostic checks and render a summary.

    Returns :data:`exit_codes.GENERAL_ERROR` when any check fails;
    warnings alone still exit successfully.
    """
    checks = [
        ("shov", __version__, OK),
        _python_version_check(),
        _httpx_version_check(),
        _local_config_check(ctx),
        _global_config_check(ctx),
        _credentials_check(ctx),
        _api_url_check(ctx),
    ]
    has_failure = any(status == FAIL for _, _, status in checks)

    if ctx.json_mode:
        emit_json(
            {
                "success": not has_failure,
                "checks": [{"component": label, "value": value, "status": status} for label, value, status in checks],
            },
        )
        return exit_codes.GENERAL_ERROR if has_failure else exit_codes.SUCCESS

    table = Table(
        title="shov doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    for label, value, status in checks:
        table.add_row(label, value, _STATUS_MARKUP[status])

    console.print()
    console.print(table)
    console.print()

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR
    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
