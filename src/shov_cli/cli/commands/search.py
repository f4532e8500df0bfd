"""``shov search``: vector search over a collection, project or organization."""

from __future__ import annotations

import argparse
from typing import Any

from rich.markup import escape

from shov_cli.cli.commands._options import data_command, positive_int
from shov_cli.cli.console import out
from shov_cli.cli.context import CommandContext
from shov_cli.cli.render import compact, format_timestamp
from shov_cli.core.values import normalize_min_score, parse_json_argument


def register(subparsers: argparse._SubParsersAction) -> None:
    p = data_command(subparsers, "search", "Perform a vector search on a collection, project, or organization")
    p.add_argument("query")
    p.add_argument("-c", "--collection", help="Search within a specific collection")
    scope = p.add_mutually_exclusive_group()
    scope.add_argument("--project-wide", action="store_true", help="Search all collections in the project (default)")
    scope.add_argument("--org-wide", action="store_true", help="Search all projects in the organization")
    p.add_argument(
        "--min-score",
        "--minScore",
        dest="min_score",
        help="Minimum similarity score (0.0 to 1.0; 1-100 is read as a percentage)",
    )
    p.add_argument(
        "--top-k",
        "--topK",
        "--limit",
        dest="top_k",
        type=positive_int,
        help="Maximum number of results to return (default: 10)",
    )
    p.add_argument("--filters", help="JSON object to filter results by field, e.g. '{\"user_id\": \"123\"}'")
    p.add_argument("--offset", type=positive_int, help="Skip this many results (pagination)")
    p.set_defaults(handler=handle_search)


def build_search_payload(ctx: CommandContext) -> dict[str, Any]:
    """Translate search flags into the request body (no I/O besides notes)."""
    args = ctx.args
    payload: dict[str, Any] = {
        "query": args.query,
        "collection": args.collection,
        "orgWide": bool(args.org_wide),
    }
    if args.min_score is not None:
        score, corrected = normalize_min_score(args.min_score)
        if corrected:
            ctx.note(f"[dim](Note: --min-score {args.min_score} was auto-corrected to {score})[/dim]")
        payload["minScore"] = score
    if args.top_k is not None:
        payload["topK"] = args.top_k
    if args.filters:
        payload["filters"] = parse_json_argument(args.filters, "Filters", expect=dict)
    if args.offset is not None:
        payload["offset"] = args.offset
    return payload


def handle_search(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    payload = build_search_payload(ctx)

    if ctx.args.collection:
        scope = f'in collection "{ctx.args.collection}"'
    elif ctx.args.org_wide:
        scope = "in the organization"
    else:
        scope = f'in project "{creds.project_name}"'
    ctx.note(f'[blue]Searching {escape(scope)} for: "{escape(ctx.args.query)}"...[/blue]')

    data = ctx.gateway.post(f"/search/{creds.project_name}", payload, api_key=creds.api_key)

    def render(result: dict[str, Any]) -> None:
        items = result.get("items") or []
        out.print(f"[green]Found {len(items)} results:[/green]")
        for index, item in enumerate(items, start=1):
            score = item.get("_score")
            score_text = f" (Score: {score:.4f})" if isinstance(score, (int, float)) else ""
            out.print(f"  {index}. {escape(str(item.get('id', '')))}{score_text}")
            label = item.get("name")
            colour = "green" if item.get("type") == "key" else "blue"
            if label is not None:
                out.print(f"     [{colour}]{escape(str(label))}[/{colour}]: {compact(item.get('value'))}")
            else:
                out.print(f"     {compact(item.get('value'))}")
            if item.get("createdAt") is not None:
                out.print(f"     [dim]{format_timestamp(item.get('createdAt'))}[/dim]")

    return ctx.finish(data, render, failure="Search failed")
