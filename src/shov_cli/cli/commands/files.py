"""File storage commands: ``upload``, ``upload-url``, ``files`` and ``forget-file``."""

from __future__ import annotations

import argparse
import mimetypes
from pathlib import Path
from typing import Any
from urllib.parse import quote

from rich.markup import escape

from shov_cli.cli.commands._options import data_command
from shov_cli.cli.console import out
from shov_cli.cli.context import CommandContext
from shov_cli.cli.progress import UploadProgress
from shov_cli.cli.render import format_size, pretty, print_records
from shov_cli.exceptions import InputValidationError

FILE_COLUMNS: tuple[str, ...] = ("id", "filename", "mimeType", "size", "createdAt")


def register(subparsers: argparse._SubParsersAction) -> None:
    p = data_command(subparsers, "upload", "Upload a file to your project")
    p.add_argument("path", metavar="file-path")
    p.set_defaults(handler=handle_upload)

    p = data_command(subparsers, "upload-url", "Get a pre-signed URL for client-side file uploads")
    p.add_argument("file_name", metavar="file-name")
    p.add_argument("--mime-type", help="The MIME type of the file")
    p.set_defaults(handler=handle_upload_url)

    p = data_command(subparsers, "forget-file", "Delete a file by filename")
    p.add_argument("filename")
    p.set_defaults(handler=handle_forget_file)

    files = subparsers.add_parser("files", help="Manage project files")
    files_sub = files.add_subparsers(dest="files_command", metavar="<command>", required=True)

    p = data_command(files_sub, "list", "List all files in the project")
    p.set_defaults(handler=handle_list)

    p = data_command(files_sub, "get", "Get metadata for a specific file")
    p.add_argument("file_id", metavar="file-id")
    p.set_defaults(handler=handle_get)

    p = data_command(files_sub, "delete", "Delete a file from the project")
    p.add_argument("file_id", metavar="file-id")
    p.set_defaults(handler=handle_delete)


def handle_upload(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    path = Path(ctx.args.path)
    if not path.is_file():
        raise InputValidationError(f"File not found at {path.resolve()}")

    if ctx.json_mode:
        data = ctx.gateway.upload(creds.project_name, creds.api_key, path)
    else:
        with UploadProgress(path.name, total=path.stat().st_size) as progress:
            data = ctx.gateway.upload(creds.project_name, creds.api_key, path, on_progress=progress)

    def render(payload: dict[str, Any]) -> None:
        out.print("[bold green]File uploaded successfully![/bold green]")
        out.print(f"  File ID: [yellow]{escape(str(payload.get('fileId')))}[/yellow]")
        if payload.get("url"):
            out.print(f"  URL: [cyan]{escape(str(payload['url']))}[/cyan]")

    return ctx.finish(data, render, failure="File upload failed")


def handle_upload_url(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    mime_type = ctx.args.mime_type or mimetypes.guess_type(ctx.args.file_name)[0] or "application/octet-stream"
    with ctx.status("Generating pre-signed URL..."):
        data = ctx.gateway.post(
            f"/upload-url/{creds.project_name}",
            {"fileName": ctx.args.file_name, "mimeType": mime_type},
            api_key=creds.api_key,
        )

    def render(payload: dict[str, Any]) -> None:
        out.print("[bold green]Pre-signed URL generated successfully![/bold green]")
        out.print(f"  File ID: [yellow]{escape(str(payload.get('fileId')))}[/yellow]")
        out.print(f"  Upload URL: [cyan]{escape(str(payload.get('url')))}[/cyan]")
        out.print("[yellow]This URL is valid for 15 minutes.[/yellow]")

    return ctx.finish(data, render, failure="Failed to get upload URL")


def handle_list(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status("Listing files..."):
        data = ctx.gateway.post(f"/files-list/{creds.project_name}", api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        files = payload.get("files") or []
        out.print(f"[green]Found {len(files)} files.[/green]")
        if files:
            rows = [{**f, "size": format_size(f.get("size"))} for f in files if isinstance(f, dict)]
            print_records(rows, FILE_COLUMNS)

    return ctx.finish(data, render, failure="Failed to list files")


def handle_get(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    data = ctx.gateway.post(
        f"/files-get/{creds.project_name}/{quote(ctx.args.file_id, safe='')}", api_key=creds.api_key,
    )

    def render(payload: dict[str, Any]) -> None:
        out.print("[green]File found:[/green]")
        out.print(pretty(payload.get("file")))

    return ctx.finish(data, render, failure="Failed to get file")


def handle_delete(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status(f"Deleting file {ctx.args.file_id}..."):
        data = ctx.gateway.delete(
            f"/files-delete/{creds.project_name}/{quote(ctx.args.file_id, safe='')}", api_key=creds.api_key,
        )

    def render(payload: dict[str, Any]) -> None:
        out.print(f"[green]{escape(str(payload.get('message') or 'File deleted.'))}[/green]")

    return ctx.finish(data, render, failure="Failed to delete file")


def handle_forget_file(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status(f'Deleting file "{ctx.args.filename}"...'):
        data = ctx.gateway.delete(
            f"/forget-file/{creds.project_name}/{quote(ctx.args.filename, safe='')}", api_key=creds.api_key,
        )

    def render(_: dict[str, Any]) -> None:
        out.print(f'[green]Successfully deleted file "{escape(ctx.args.filename)}".[/green]')

    return ctx.finish(data, render, failure="Failed to delete file")
