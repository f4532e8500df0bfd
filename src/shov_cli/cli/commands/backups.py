"""Point-in-time backup commands under ``shov backup``."""

from __future__ import annotations

import argparse
from typing import Any

from rich.markup import escape

from shov_cli.cli.commands._options import data_command, positive_int
from shov_cli.cli.console import out
from shov_cli.cli.context import CommandContext
from shov_cli.cli.render import format_timestamp, print_records
from shov_cli.core.values import split_csv


def register(subparsers: argparse._SubParsersAction) -> None:
    backup = subparsers.add_parser("backup", help="Browse and restore point-in-time backups")
    sub = backup.add_subparsers(dest="backup_command", metavar="<command>", required=True)

    p = data_command(sub, "timeline", "List available restore points")
    p.add_argument("-l", "--limit", type=positive_int, default=20)
    p.set_defaults(handler=handle_timeline)

    p = data_command(sub, "restore", "Restore the project to a point in time")
    p.add_argument("timestamp", help="ISO-8601 timestamp or epoch milliseconds")
    p.add_argument("--collections", help="Comma-separated collections to restore (default: all)")
    p.set_defaults(handler=handle_restore)

    p = data_command(sub, "clone", "Clone the project's data into a new project")
    p.add_argument("new_project", metavar="new-project")
    p.add_argument("--at", dest="timestamp", help="Point in time to clone from (default: now)")
    p.set_defaults(handler=handle_clone)


def handle_timeline(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status("Fetching backup timeline..."):
        data = ctx.gateway.get(
            "/backups/timeline",
            api_key=creds.api_key,
            params={"project": creds.project_name, "limit": ctx.args.limit},
        )

    def render(payload: dict[str, Any]) -> None:
        points = payload.get("timeline") or payload.get("backups") or []
        if not points:
            out.print("[dim]No restore points available yet.[/dim]")
            return
        rows = [
            {**point, "timestamp": format_timestamp(point.get("timestamp"))}
            for point in points
            if isinstance(point, dict)
        ]
        print_records(rows, ("timestamp", "type", "collections", "size"), title="Restore points")

    return ctx.finish(data, render, failure="Failed to fetch backup timeline")


def handle_restore(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body: dict[str, Any] = {"project": creds.project_name, "mode": "restore", "timestamp": ctx.args.timestamp}
    collections = split_csv(ctx.args.collections)
    if collections:
        body["collections"] = collections
    with ctx.status(f"Restoring {creds.project_name} to {ctx.args.timestamp}..."):
        data = ctx.gateway.post("/backups/restore", body, api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        out.print(f"[bold green]Project restored to {escape(ctx.args.timestamp)}.[/bold green]")
        if payload.get("restored") is not None:
            out.print(f"  Items restored: [cyan]{payload['restored']}[/cyan]")

    return ctx.finish(data, render, failure="Restore failed")


def handle_clone(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body: dict[str, Any] = {
        "project": creds.project_name,
        "mode": "clone",
        "targetProject": ctx.args.new_project,
        "timestamp": ctx.args.timestamp,
    }
    with ctx.status(f'Cloning into "{ctx.args.new_project}"...'):
        data = ctx.gateway.post("/backups/restore", body, api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        out.print(f'[bold green]Cloned into project "{escape(ctx.args.new_project)}".[/bold green]')
        if payload.get("apiKey"):
            out.print(f"  API Key: [yellow]{escape(str(payload['apiKey']))}[/yellow]")

    return ctx.finish(data, render, failure="Clone failed")
