"""Serverless function management under ``shov code``.

``pull`` downloads every function's source one after another; each
download is independent, so a failure aborts the remaining ones but
leaves the files already written in place.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from rich.markup import escape

from shov_cli.cli import exit_codes
from shov_cli.cli.commands._options import data_command, positive_int
from shov_cli.cli.console import emit_json, out
from shov_cli.cli.context import CommandContext
from shov_cli.cli.render import format_timestamp, print_records
from shov_cli.core.models import EffectiveCredentials
from shov_cli.exceptions import InputValidationError, OperationFailedError

DEFAULT_SOURCE_SUFFIX = ".js"


def register(subparsers: argparse._SubParsersAction) -> None:
    code = subparsers.add_parser("code", help="Manage serverless functions")
    sub = code.add_subparsers(dest="code_command", metavar="<command>", required=True)

    p = data_command(sub, "list", "List deployed functions")
    p.set_defaults(handler=handle_list)

    p = data_command(sub, "write", "Deploy (create or replace) a function from a source file")
    p.add_argument("name")
    p.add_argument("file", type=Path, help="Path to the function source")
    p.set_defaults(handler=handle_write)

    p = data_command(sub, "read", "Print a function's source")
    p.add_argument("name")
    p.add_argument("-o", "--output", type=Path, help="Write the source to this file instead")
    p.set_defaults(handler=handle_read)

    p = data_command(sub, "delete", "Delete a function")
    p.add_argument("name")
    p.set_defaults(handler=handle_delete)

    p = data_command(sub, "rollback", "Roll a function back to a previous version")
    p.add_argument("name")
    p.add_argument("--version", dest="target_version", type=positive_int, help="Version to restore (default: previous)")
    p.set_defaults(handler=handle_rollback)

    p = data_command(sub, "logs", "Show recent function logs")
    p.add_argument("name", nargs="?", help="Only show logs for this function")
    p.add_argument("-l", "--limit", type=positive_int, default=50)
    p.set_defaults(handler=handle_logs)

    p = data_command(sub, "pull", "Download the source of every function")
    p.add_argument("--dir", dest="directory", type=Path, default=Path("functions"), help="Target directory")
    p.set_defaults(handler=handle_pull)


def _post(ctx: CommandContext, creds: EffectiveCredentials, action: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
    return ctx.gateway.post(f"/code-{action}/{creds.project_name}", body or {}, api_key=creds.api_key)


def handle_list(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status("Listing functions..."):
        data = _post(ctx, creds, "list")

    def render(payload: dict[str, Any]) -> None:
        functions = payload.get("functions") or []
        if not functions:
            out.print("[dim]No functions deployed.[/dim]")
            return
        rows = [
            {**fn, "updatedAt": format_timestamp(fn.get("updatedAt"))}
            for fn in functions
            if isinstance(fn, dict)
        ]
        print_records(rows, ("name", "version", "url", "updatedAt"), title="Functions")

    return ctx.finish(data, render, failure="Failed to list functions")


def handle_write(ctx: CommandContext) -> int:
    source_path: Path = ctx.args.file
    if not source_path.is_file():
        raise InputValidationError(f"File not found at {source_path.resolve()}")
    source = source_path.read_text(encoding="utf-8")
    creds = ctx.credentials()

    with ctx.status(f'Deploying function "{ctx.args.name}"...'):
        data = _post(ctx, creds, "write", {"name": ctx.args.name, "code": source})

    def render(payload: dict[str, Any]) -> None:
        out.print(f'[bold green]Function "{escape(ctx.args.name)}" deployed.[/bold green]')
        if payload.get("version") is not None:
            out.print(f"  Version: [yellow]{payload['version']}[/yellow]")
        if payload.get("url"):
            out.print(f"  URL: [cyan]{escape(str(payload['url']))}[/cyan]")

    return ctx.finish(data, render, failure="Failed to deploy function")


def handle_read(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    data = _post(ctx, creds, "read", {"name": ctx.args.name})
    output: Path | None = ctx.args.output

    if output is not None and data.get("success", True) is not False:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(str(data.get("code") or ""), encoding="utf-8")

    def render(payload: dict[str, Any]) -> None:
        if output is not None:
            out.print(f'[green]Saved "{escape(ctx.args.name)}" to {escape(str(output))}.[/green]')
        else:
            out.print(str(payload.get("code") or ""), markup=False, highlight=False)

    return ctx.finish(data, render, failure="Failed to read function")


def handle_delete(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status(f'Deleting function "{ctx.args.name}"...'):
        data = _post(ctx, creds, "delete", {"name": ctx.args.name})

    def render(_: dict[str, Any]) -> None:
        out.print(f'[green]Function "{escape(ctx.args.name)}" deleted.[/green]')

    return ctx.finish(data, render, failure="Failed to delete function")


def handle_rollback(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body: dict[str, Any] = {"name": ctx.args.name}
    if ctx.args.target_version is not None:
        body["version"] = ctx.args.target_version
    with ctx.status(f'Rolling back "{ctx.args.name}"...'):
        data = _post(ctx, creds, "rollback", body)

    def render(payload: dict[str, Any]) -> None:
        version = payload.get("version", ctx.args.target_version)
        suffix = f" to version {version}" if version is not None else ""
        out.print(f'[green]Function "{escape(ctx.args.name)}" rolled back{suffix}.[/green]')

    return ctx.finish(data, render, failure="Failed to roll back function")


def handle_logs(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body: dict[str, Any] = {"limit": ctx.args.limit}
    if ctx.args.name:
        body["name"] = ctx.args.name
    data = _post(ctx, creds, "logs", body)

    def render(payload: dict[str, Any]) -> None:
        logs = payload.get("logs") or []
        if not logs:
            out.print("[dim]No logs found.[/dim]")
            return
        for entry in logs:
            if not isinstance(entry, dict):
                out.print(escape(str(entry)))
                continue
            level = str(entry.get("level") or "info").upper()
            colour = {"ERROR": "red", "WARN": "yellow", "WARNING": "yellow"}.get(level, "dim")
            out.print(
                f"[dim]{format_timestamp(entry.get('timestamp'))}[/dim] "
                f"[{colour}]{level:<5}[/{colour}] "
                f"[cyan]{escape(str(entry.get('function') or ''))}[/cyan] "
                f"{escape(str(entry.get('message') or ''))}",
            )

    return ctx.finish(data, render, failure="Failed to fetch logs")


def handle_pull(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    directory: Path = ctx.args.directory

    listing = _post(ctx, creds, "list")
    if listing.get("success") is False:
        raise OperationFailedError(f"Failed to list functions: {listing.get('error') or 'Unknown error'}")
    names = [str(fn["name"]) for fn in listing.get("functions") or [] if isinstance(fn, dict) and fn.get("name")]

    directory.mkdir(parents=True, exist_ok=True)
    written: list[str] = []
    for name in names:
        with ctx.status(f'Downloading "{name}"...'):
            data = _post(ctx, creds, "read", {"name": name})
        if data.get("success") is False:
            raise OperationFailedError(f'Failed to read function "{name}": {data.get("error") or "Unknown error"}')
        target = directory / _source_filename(name)
        target.write_text(str(data.get("code") or ""), encoding="utf-8")
        written.append(str(target))
        ctx.note(f"  [green]✓[/green] {escape(name)} → {escape(str(target))}")

    if ctx.json_mode:
        emit_json({"success": True, "directory": str(directory), "files": written})
    elif not names:
        out.print("[dim]No functions deployed; nothing to pull.[/dim]")
    else:
        out.print(f"[bold green]Pulled {len(written)} function(s) into {escape(str(directory))}.[/bold green]")
    return exit_codes.SUCCESS


def _source_filename(name: str) -> str:
    safe = name.replace("/", "_").replace("\\", "_")
    return safe if Path(safe).suffix else f"{safe}{DEFAULT_SOURCE_SUFFIX}"
