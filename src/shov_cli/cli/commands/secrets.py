"""Function secret management under ``shov secrets``.

Secrets apply to every function unless ``--functions`` narrows them to
a comma-separated subset.
"""

from __future__ import annotations

import argparse
from typing import Any

from rich.markup import escape

from shov_cli.cli.commands._options import data_command
from shov_cli.cli.console import out
from shov_cli.cli.context import CommandContext
from shov_cli.cli.render import format_timestamp, print_records
from shov_cli.core.values import parse_json_argument, split_csv
from shov_cli.exceptions import InputValidationError


def register(subparsers: argparse._SubParsersAction) -> None:
    secrets = subparsers.add_parser("secrets", help="Manage function secrets")
    sub = secrets.add_subparsers(dest="secrets_command", metavar="<command>", required=True)

    p = data_command(sub, "list", "List secret names (values are never shown)")
    p.set_defaults(handler=handle_list)

    p = data_command(sub, "set", "Create or replace a secret")
    p.add_argument("name")
    p.add_argument("value")
    _add_functions_option(p)
    p.set_defaults(handler=handle_set)

    p = data_command(sub, "set-many", 'Set several secrets from a JSON object, e.g. \'{"A": "1"}\'')
    p.add_argument("secrets", metavar="secrets-json")
    _add_functions_option(p)
    p.set_defaults(handler=handle_set_many)

    p = data_command(sub, "delete", "Delete a secret")
    p.add_argument("name")
    _add_functions_option(p)
    p.set_defaults(handler=handle_delete)


def _add_functions_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--functions", help="Comma-separated function names (default: all functions)")


def _scoped(body: dict[str, Any], functions: str | None) -> dict[str, Any]:
    names = split_csv(functions)
    if names:
        body["functions"] = names
    return body


def handle_list(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    data = ctx.gateway.post(f"/secrets-list/{creds.project_name}", api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        secrets = payload.get("secrets") or []
        if not secrets:
            out.print("[dim]No secrets configured.[/dim]")
            return
        rows = []
        for secret in secrets:
            if isinstance(secret, str):
                rows.append({"name": secret})
            elif isinstance(secret, dict):
                rows.append(
                    {
                        "name": secret.get("name"),
                        "functions": ", ".join(secret.get("functions") or []) or "all",
                        "updatedAt": format_timestamp(secret.get("updatedAt")),
                    },
                )
        print_records(rows, ("name", "functions", "updatedAt"), title="Secrets")

    return ctx.finish(data, render, failure="Failed to list secrets")


def handle_set(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body = _scoped({"name": ctx.args.name, "value": ctx.args.value}, ctx.args.functions)
    with ctx.status(f'Setting secret "{ctx.args.name}"...'):
        data = ctx.gateway.post(f"/secrets-set/{creds.project_name}", body, api_key=creds.api_key)

    def render(_: dict[str, Any]) -> None:
        out.print(f'[green]Secret "{escape(ctx.args.name)}" saved.[/green]')

    return ctx.finish(data, render, failure="Failed to set secret")


def handle_set_many(ctx: CommandContext) -> int:
    raw = parse_json_argument(ctx.args.secrets, "Secrets", expect=dict)
    if not raw:
        raise InputValidationError("Secrets object cannot be empty.")
    secrets = [{"name": str(name), "value": str(value)} for name, value in raw.items()]
    creds = ctx.credentials()
    body = _scoped({"secrets": secrets}, ctx.args.functions)
    with ctx.status(f"Setting {len(secrets)} secrets..."):
        data = ctx.gateway.post(f"/secrets-set-many/{creds.project_name}", body, api_key=creds.api_key)

    def render(_: dict[str, Any]) -> None:
        out.print(f"[green]{len(secrets)} secrets saved.[/green]")

    return ctx.finish(data, render, failure="Failed to set secrets")


def handle_delete(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    body = _scoped({"name": ctx.args.name}, ctx.args.functions)
    with ctx.status(f'Deleting secret "{ctx.args.name}"...'):
        data = ctx.gateway.post(f"/secrets-delete/{creds.project_name}", body, api_key=creds.api_key)

    def render(_: dict[str, Any]) -> None:
        out.print(f'[green]Secret "{escape(ctx.args.name)}" deleted.[/green]')

    return ctx.finish(data, render, failure="Failed to delete secret")
