"""Analytics event commands under ``shov events``."""

from __future__ import annotations

import argparse
from typing import Any

from rich.markup import escape

from shov_cli.cli.commands._options import data_command, positive_int
from shov_cli.cli.console import out
from shov_cli.cli.context import CommandContext
from shov_cli.cli.render import compact, format_timestamp
from shov_cli.core.values import parse_json_argument


def register(subparsers: argparse._SubParsersAction) -> None:
    events = subparsers.add_parser("events", help="Track and query analytics events")
    sub = events.add_subparsers(dest="events_command", metavar="<command>", required=True)

    p = data_command(sub, "track", "Record an event")
    p.add_argument("name")
    p.add_argument("--properties", help="JSON object of event properties")
    p.set_defaults(handler=handle_track)

    p = data_command(sub, "query", "Query recorded events")
    p.add_argument("--name", help="Only events with this name")
    p.add_argument("--since", help="ISO-8601 timestamp or relative window such as 24h")
    p.add_argument("-l", "--limit", type=positive_int, default=100)
    p.set_defaults(handler=handle_query)

    p = data_command(sub, "tail", "Show the most recent events")
    p.add_argument("-l", "--limit", type=positive_int, default=20)
    p.set_defaults(handler=handle_tail)


def handle_track(ctx: CommandContext) -> int:
    properties = parse_json_argument(ctx.args.properties, "Properties", expect=dict) if ctx.args.properties else {}
    creds = ctx.credentials()
    data = ctx.gateway.post(
        f"/events/{creds.project_name}",
        {"name": ctx.args.name, "properties": properties},
        api_key=creds.api_key,
    )

    def render(_: dict[str, Any]) -> None:
        out.print(f'[green]Event "{escape(ctx.args.name)}" tracked.[/green]')

    return ctx.finish(data, render, failure="Failed to track event")


def handle_query(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body = {"name": ctx.args.name, "since": ctx.args.since, "limit": ctx.args.limit}
    with ctx.status("Querying events..."):
        data = ctx.gateway.post(
            f"/events/{creds.project_name}/query",
            {k: v for k, v in body.items() if v is not None},
            api_key=creds.api_key,
        )
    return ctx.finish(data, _print_events, failure="Failed to query events")


def handle_tail(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    data = ctx.gateway.get(
        f"/events-tail/{creds.project_name}", api_key=creds.api_key, params={"limit": ctx.args.limit},
    )
    return ctx.finish(data, _print_events, failure="Failed to fetch events")


def _print_events(payload: dict[str, Any]) -> None:
    events = payload.get("events") or []
    if not events:
        out.print("[dim]No events found.[/dim]")
        return
    for event in events:
        if not isinstance(event, dict):
            continue
        properties = event.get("properties")
        out.print(
            f"[dim]{format_timestamp(event.get('timestamp'))}[/dim] "
            f"[cyan]{escape(str(event.get('name') or ''))}[/cyan]"
            + (f" {compact(properties)}" if properties else ""),
        )
