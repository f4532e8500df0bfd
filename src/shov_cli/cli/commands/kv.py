"""Key/value commands: ``set``, ``get``, ``forget`` and ``contents``."""

from __future__ import annotations

import argparse
from typing import Any
from urllib.parse import quote

from rich.markup import escape

from shov_cli.cli.commands._options import data_command, positive_int
from shov_cli.cli.console import out
from shov_cli.cli.context import CommandContext
from shov_cli.cli.render import pretty, print_records
from shov_cli.core.values import parse_value


def register(subparsers: argparse._SubParsersAction) -> None:
    p = data_command(subparsers, "set", "Set a key-value pair in your project")
    p.add_argument("name", metavar="key")
    p.add_argument("value", help="JSON value, or a plain string")
    p.add_argument("--ttl", type=positive_int, help="Time to live in seconds")
    p.add_argument("--no-vector", action="store_true", help="Exclude from vector search/embedding")
    p.set_defaults(handler=handle_set)

    p = data_command(subparsers, "get", "Get a value from your project")
    p.add_argument("name", metavar="key")
    p.set_defaults(handler=handle_get)

    p = data_command(subparsers, "forget", "Forget a key-value pair")
    p.add_argument("name", metavar="key")
    p.set_defaults(handler=handle_forget)

    p = data_command(subparsers, "contents", "List the contents of the project (keys, collections, files)")
    p.set_defaults(handler=handle_contents)


def handle_set(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body: dict[str, Any] = {"name": ctx.args.name, "value": parse_value(ctx.args.value)}
    if ctx.args.ttl is not None:
        body["ttl"] = ctx.args.ttl
    if ctx.args.no_vector:
        body["excludeFromVector"] = True

    with ctx.status("Setting value..."):
        data = ctx.gateway.post(f"/set/{creds.project_name}", body, api_key=creds.api_key)

    def render(_: dict[str, Any]) -> None:
        out.print(f'[green]Successfully set "{escape(ctx.args.name)}".[/green]')

    return ctx.finish(data, render, failure="Failed to set value")


def handle_get(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    data = ctx.gateway.post(f"/get/{creds.project_name}", {"name": ctx.args.name}, api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        out.print(f'Value for "{escape(ctx.args.name)}":')
        out.print(pretty(payload.get("value")))

    return ctx.finish(data, render, failure="Failed to get value")


def handle_forget(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status("Forgetting item..."):
        data = ctx.gateway.delete(
            f"/forget/{creds.project_name}/{quote(ctx.args.name, safe='')}",
            api_key=creds.api_key,
        )

    def render(_: dict[str, Any]) -> None:
        out.print(f'[green]Successfully forgot "{escape(ctx.args.name)}".[/green]')

    return ctx.finish(data, render, failure="Failed to forget item")


def handle_contents(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status("Fetching contents..."):
        data = ctx.gateway.post(f"/contents/{creds.project_name}", api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        contents = payload.get("contents")
        if not isinstance(contents, list) or not contents:
            out.print("[dim]No contents found in this project.[/dim]")
            return
        records = [
            {
                "type": entry.get("type"),
                "name": entry.get("name"),
                "value": entry.get("value"),
            }
            for entry in contents
            if isinstance(entry, dict)
        ]
        print_records(records, ("type", "name", "value"), title=f"Contents of {creds.project_name}")

    return ctx.finish(data, render, failure="Failed to fetch contents")
