"""Presentation helpers shared by the command modules.

Pure transforms plus Rich table builders: no requests, no config
access.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from rich.markup import escape
from rich.table import Table

from shov_cli.cli.console import out


def compact(value: Any) -> str:
    """One-line JSON rendering, safe for Rich markup."""
    return escape(json.dumps(value, default=str, ensure_ascii=False))


def pretty(value: Any) -> str:
    return escape(json.dumps(value, indent=2, default=str, ensure_ascii=False))


def format_timestamp(raw: Any) -> str:
    """Render ISO strings or epoch milliseconds as local date-time text."""
    if raw is None or raw == "":
        return "—"
    try:
        if isinstance(raw, (int, float)):
            moment = datetime.fromtimestamp(raw / 1000 if raw > 1e11 else raw)
        else:
            moment = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except (ValueError, OverflowError, OSError):
        return str(raw)
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def format_size(size: Any) -> str:
    if not isinstance(size, (int, float)):
        return "Unknown"
    if size < 1024:
        return f"{int(size)} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def build_table(title: str | None, columns: Sequence[str]) -> Table:
    table = Table(
        title=title,
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    for column in columns:
        table.add_column(column)
    return table


def print_items(items: Iterable[dict[str, Any]], *, empty: str = "No items found") -> None:
    """Numbered listing of collection items (id, value, creation time)."""
    count = 0
    for index, item in enumerate(items, start=1):
        count += 1
        out.print(f"  {index}. [yellow]{escape(str(item.get('id', '')))}[/yellow]")
        out.print(f"     [dim]{compact(item.get('value'))}[/dim]")
        if item.get("createdAt") is not None:
            out.print(f"     [dim]{format_timestamp(item.get('createdAt'))}[/dim]")
    if count == 0:
        out.print(f"[dim]  {empty}[/dim]")


def print_records(records: Sequence[dict[str, Any]], columns: Sequence[str], *, title: str | None = None) -> None:
    """Render a list of flat dicts as a table restricted to *columns*."""
    table = build_table(title, columns)
    for record in records:
        table.add_row(*(_cell(record.get(column)) for column in columns))
    out.print(table)


def _cell(value: Any) -> str:
    if value is None:
        return "—"
    if isinstance(value, (dict, list)):
        return compact(value)
    return escape(str(value))
