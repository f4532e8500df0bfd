"""Collection commands and the atomic ``batch`` command."""

from __future__ import annotations

import argparse
from typing import Any
from urllib.parse import quote

from rich.markup import escape

from shov_cli.cli import exit_codes
from shov_cli.cli.commands._options import data_command, positive_int
from shov_cli.cli.console import console, emit_json, out
from shov_cli.cli.context import CommandContext
from shov_cli.cli.render import compact, print_items
from shov_cli.core.values import batch_failures, parse_json_argument, parse_value, validate_batch


def register(subparsers: argparse._SubParsersAction) -> None:
    p = data_command(subparsers, "add", "Add an item to a collection")
    p.add_argument("collection")
    p.add_argument("value", help="JSON value, or a plain string")
    p.add_argument("--ttl", type=positive_int, help="Time to live in seconds")
    p.add_argument("--no-vector", action="store_true", help="Exclude from vector search/embedding")
    p.set_defaults(handler=handle_add)

    p = data_command(subparsers, "add-many", "Add multiple items to a collection from a JSON array")
    p.add_argument("collection")
    p.add_argument("items", metavar="items-json")
    p.add_argument("--no-vector", action="store_true", help="Exclude from vector search/embedding")
    p.set_defaults(handler=handle_add_many)

    p = data_command(subparsers, "where", "Find items in a collection based on a filter")
    p.add_argument("collection")
    p.add_argument("-f", "--filter", default="{}", help="JSON object to filter by")
    p.add_argument("-l", "--limit", type=positive_int, default=50, help="Maximum number of results")
    p.add_argument("--offset", type=positive_int, help="Skip this many results (pagination)")
    p.set_defaults(handler=handle_where)

    p = data_command(subparsers, "count", "Count the items in a collection, optionally filtered")
    p.add_argument("collection")
    p.add_argument("-f", "--filter", help="JSON object to filter by")
    p.set_defaults(handler=handle_count)

    p = data_command(subparsers, "update", "Update an item in a collection by its ID")
    p.add_argument("collection")
    p.add_argument("id")
    p.add_argument("value", help="JSON value, or a plain string")
    p.add_argument("--no-vector", action="store_true", help="Exclude from vector search/embedding")
    p.set_defaults(handler=handle_update)

    p = data_command(subparsers, "remove", "Remove an item from a collection by its ID")
    p.add_argument("collection")
    p.add_argument("id")
    p.set_defaults(handler=handle_remove)

    p = data_command(subparsers, "clear", "Clear all items from a collection")
    p.add_argument("collection")
    p.set_defaults(handler=handle_clear)

    p = data_command(subparsers, "batch", "Execute up to 50 operations atomically in one transaction")
    p.add_argument("operations", metavar="operations-json")
    p.set_defaults(handler=handle_batch)


def handle_add(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    value = parse_value(ctx.args.value)
    body: dict[str, Any] = {"name": ctx.args.collection, "value": value}
    if ctx.args.ttl is not None:
        body["ttl"] = ctx.args.ttl
    if ctx.args.no_vector:
        body["excludeFromVector"] = True

    data = ctx.gateway.post(f"/add/{creds.project_name}", body, api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        out.print("[green]Item added to collection[/green]")
        out.print(f"  Collection: [cyan]{escape(ctx.args.collection)}[/cyan]")
        out.print(f"  Item ID: [yellow]{escape(str(payload.get('id')))}[/yellow]")
        out.print(f"  Value: [dim]{compact(value)}[/dim]")

    return ctx.finish(data, render, failure="Failed to add to collection")


def handle_add_many(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    items = parse_json_argument(ctx.args.items, "Items", expect=list)
    body: dict[str, Any] = {"name": ctx.args.collection, "items": items}
    if ctx.args.no_vector:
        body["excludeFromVector"] = True

    with ctx.status(f'Adding {len(items)} items to collection "{ctx.args.collection}"...'):
        data = ctx.gateway.post(f"/add-many/{creds.project_name}", body, api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        ids = payload.get("ids") or []
        out.print(
            f'[green]Successfully added {len(ids)} items to collection "{escape(ctx.args.collection)}".[/green]',
        )

    return ctx.finish(data, render, failure="Failed to add items")


def handle_where(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body: dict[str, Any] = {
        "name": ctx.args.collection,
        "filter": parse_json_argument(ctx.args.filter, "Filter", expect=dict),
        "limit": ctx.args.limit,
    }
    if ctx.args.offset is not None:
        body["offset"] = ctx.args.offset

    data = ctx.gateway.post(f"/where/{creds.project_name}", body, api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        items = payload.get("items") or []
        out.print(f'[green]Found {len(items)} items in "{escape(ctx.args.collection)}":[/green]')
        print_items(items, empty="No items found matching filter")

    return ctx.finish(data, render, failure="Failed to query collection")


def handle_count(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body: dict[str, Any] = {"name": ctx.args.collection}
    if ctx.args.filter:
        body["filter"] = parse_json_argument(ctx.args.filter, "Filter", expect=dict)

    data = ctx.gateway.post(f"/count/{creds.project_name}", body, api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        suffix = " matching filter" if ctx.args.filter else ""
        out.print(
            f'Collection "[cyan]{escape(ctx.args.collection)}[/cyan]" has '
            f"[bold]{payload.get('count', 0)}[/bold] items{suffix}.",
        )

    return ctx.finish(data, render, failure="Failed to count items")


def handle_update(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body: dict[str, Any] = {"collection": ctx.args.collection, "value": parse_value(ctx.args.value)}
    if ctx.args.no_vector:
        body["excludeFromVector"] = True

    with ctx.status(f'Updating item "{ctx.args.id}"...'):
        data = ctx.gateway.post(
            f"/update/{creds.project_name}/{quote(ctx.args.id, safe='')}", body, api_key=creds.api_key,
        )

    def render(_: dict[str, Any]) -> None:
        out.print(f'[green]Item "{escape(ctx.args.id)}" updated successfully.[/green]')

    return ctx.finish(data, render, failure="Failed to update item")


def handle_remove(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status("Removing item..."):
        data = ctx.gateway.post(
            f"/remove/{creds.project_name}/{quote(ctx.args.id, safe='')}",
            {"collection": ctx.args.collection},
            api_key=creds.api_key,
        )

    def render(_: dict[str, Any]) -> None:
        out.print(f'[green]Successfully removed item "{escape(ctx.args.id)}".[/green]')

    return ctx.finish(data, render, failure="Failed to remove item")


def handle_clear(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status(f'Clearing collection "{ctx.args.collection}"...'):
        data = ctx.gateway.post(
            f"/clear/{creds.project_name}", {"name": ctx.args.collection}, api_key=creds.api_key,
        )

    def render(payload: dict[str, Any]) -> None:
        out.print(
            f"[green]Successfully removed {payload.get('count', 0)} items from collection "
            f'"{escape(ctx.args.collection)}".[/green]',
        )

    return ctx.finish(data, render, failure="Failed to clear collection")


def handle_batch(ctx: CommandContext) -> int:
    operations = validate_batch(parse_json_argument(ctx.args.operations, "Operations"))
    creds = ctx.credentials()

    with ctx.status(f"Executing {len(operations)} operations in one transaction..."):
        data = ctx.gateway.post(
            f"/batch/{creds.project_name}", {"operations": operations}, api_key=creds.api_key,
        )

    failures = batch_failures(data, operations)
    ok = data.get("success", True) is not False and not failures

    if ctx.json_mode:
        emit_json(data)
        return exit_codes.SUCCESS if ok else exit_codes.GENERAL_ERROR

    if data.get("transactionId"):
        out.print(f"Transaction: [yellow]{escape(str(data['transactionId']))}[/yellow]")
    results = data.get("results") if isinstance(data.get("results"), list) else []
    for index, result in enumerate(results):
        op_type = operations[index].get("type") if index < len(operations) else "?"
        if isinstance(result, dict) and result.get("success") is False:
            out.print(f"  [red]✗[/red] #{index + 1} {op_type}: [red]{escape(str(result.get('error') or 'failed'))}[/red]")
        else:
            detail = result.get("id") or result.get("value") if isinstance(result, dict) else result
            extra = f" [dim]{compact(detail)}[/dim]" if detail is not None else ""
            out.print(f"  [green]✓[/green] #{index + 1} {op_type}{extra}")

    if ok:
        out.print(f"[bold green]Batch completed: {len(operations)} operations committed.[/bold green]")
        return exit_codes.SUCCESS

    console.print(f"[bold red]Batch failed:[/bold red] {escape(str(data.get('error') or 'one or more operations failed'))}")
    for failure in failures:
        console.print(
            f"  Operation #{failure.index + 1} ({escape(str(failure.type))}) failed: {escape(failure.error)}",
        )
    if data.get("rolledBack") or data.get("success") is False:
        console.print("[yellow]The transaction was rolled back; no changes were applied.[/yellow]")
    return exit_codes.GENERAL_ERROR
