"""Project bootstrap and credential commands.

``new``, ``claim``, ``init``, ``config``, ``whoami``, ``projects``,
``switch`` and ``forget-project``.  Apart from ``new`` and ``claim``
(anonymous API calls) these only touch the local and global config
files.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from rich.markup import escape

from shov_cli.cli import exit_codes
from shov_cli.cli.commands._options import add_json_option
from shov_cli.cli.console import console, emit_json, out
from shov_cli.cli.context import CommandContext
from shov_cli.cli.prompts import prompt_api_key, prompt_project_name, prompt_verification_code
from shov_cli.cli.render import format_timestamp
from shov_cli.core.models import EffectiveCredentials, LocalConfig, mask_api_key
from shov_cli.core.resolver import ENV_API_KEY, ENV_PROJECT, try_resolve
from shov_cli.exceptions import ConfigurationError, InputValidationError, OperationFailedError
from shov_cli.infra import env_file


def register(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser("new", help="Create a new Shov project")
    p.add_argument("name", nargs="?", help="Project name (server generates one if omitted)")
    p.add_argument("-e", "--email", help="Your email address (optional)")
    p.add_argument("--code", help="Verification code, skips the interactive prompt")
    add_json_option(p)
    p.set_defaults(handler=handle_new)

    p = subparsers.add_parser(
        "claim",
        help="Claim a project with your email address",
        description="Claim a project with your email address. The project name is optional "
        "when run from a project directory.",
    )
    p.add_argument("email")
    p.add_argument("name", nargs="?")
    p.add_argument("--code", help="Verification code, skips the interactive prompt")
    add_json_option(p)
    p.set_defaults(handler=handle_claim)

    p = subparsers.add_parser("init", help="Initialize Shov in an existing project directory")
    p.add_argument("-p", "--project", help="Project name")
    p.add_argument("-k", "--key", dest="api_key", help="API key")
    p.add_argument("-e", "--email", help="Email to record in the global registry")
    add_json_option(p)
    p.set_defaults(handler=handle_init)

    p = subparsers.add_parser("config", help="Show current project configuration")
    add_json_option(p)
    p.set_defaults(handler=handle_config)

    p = subparsers.add_parser("whoami", help="Show current user and project information")
    add_json_option(p)
    p.set_defaults(handler=handle_whoami)

    p = subparsers.add_parser("projects", help="List all locally known projects")
    add_json_option(p)
    p.set_defaults(handler=handle_projects)

    p = subparsers.add_parser("switch", help="Switch this directory to a different project")
    p.add_argument("name")
    add_json_option(p)
    p.set_defaults(handler=handle_switch)

    p = subparsers.add_parser("forget-project", help="Remove a project from the global registry")
    p.add_argument("name")
    add_json_option(p)
    p.set_defaults(handler=handle_forget_project)


# ---------------------------------------------------------------------------
# new / claim
# ---------------------------------------------------------------------------

def handle_new(ctx: CommandContext) -> int:
    name: str | None = ctx.args.name
    email: str | None = ctx.args.email

    if not name:
        ctx.note("[dim]No project name provided, the server will generate one.[/dim]")

    body = {"projectName": name, "email": email}
    with ctx.status(f"Creating project '{name}'..." if name else "Creating project..."):
        data = ctx.gateway.post("/new", body)

    if data.get("requiresVerification"):
        ctx.note(f"[cyan]{escape(str(data.get('message') or 'A verification code was sent to your email.'))}[/cyan]")
        code = ctx.args.code or prompt_verification_code(email)
        with ctx.status("Verifying code..."):
            data = ctx.gateway.post(
                "/new/verify",
                {"projectName": data.get("projectName") or name, "email": email, "pin": code},
            )

    if data.get("success") is False or not isinstance(data.get("project"), dict):
        if ctx.json_mode:
            emit_json(data)
            return exit_codes.GENERAL_ERROR
        raise OperationFailedError(f"Project creation failed: {data.get('error') or 'Unknown error'}")

    project: dict[str, Any] = data["project"]
    project_name = str(project.get("name") or name)
    api_key = str(project.get("apiKey") or "")

    ctx.store.save_local(LocalConfig(project=project_name, api_key=api_key, email=email))
    owner = email or ctx.store.load_global().email
    if owner:
        ctx.store.add_project(project_name, api_key, owner)

    env_path: Path | None = None
    env_error: str | None = None
    try:
        env_path = env_file.add_api_key(ctx.store.local_path.parent, api_key)
    except OSError as exc:
        env_error = str(exc)

    if ctx.json_mode:
        emit_json(data)
        return exit_codes.SUCCESS

    out.print(f"[bold green]Project '{escape(project_name)}' created![/bold green]")
    out.print(f"  API Key: [yellow]{escape(api_key)}[/yellow]")
    out.print("  Project details saved to local [dim].shov[/dim] file.")
    if env_path is not None:
        out.print(f"  Added {ENV_API_KEY} to [dim]{escape(env_path.name)}[/dim].")
    elif env_error is not None:
        console.print(f"[yellow]Could not add the API key to your .env file: {escape(env_error)}[/yellow]")
        console.print(f"Please add the following to your environment file:\n  [bold]{ENV_API_KEY}={escape(api_key)}[/bold]")
    if not email:
        out.print('[dim]Run "shov claim <email>" to attach this project to your account.[/dim]')
    return exit_codes.SUCCESS


def handle_claim(ctx: CommandContext) -> int:
    email: str = ctx.args.email
    name: str | None = ctx.args.name
    if not name:
        local = ctx.store.load_local()
        if not local.project:
            raise InputValidationError(
                "No project name specified and no local project found.",
                hint="Pass the project name: shov claim <email> <project>",
            )
        name = local.project
        ctx.note(f"[dim]Project '{escape(name)}' detected from local .shov file.[/dim]")

    with ctx.status(f"Initiating claim for project '{name}'..."):
        initiated = ctx.gateway.post("/claim/initiate", {"projectName": name, "email": email})
    if initiated.get("success") is False:
        if ctx.json_mode:
            emit_json(initiated)
            return exit_codes.GENERAL_ERROR
        raise OperationFailedError(f"Failed to initiate claim: {initiated.get('error') or 'Unknown error'}")
    if initiated.get("message"):
        ctx.note(f"[green]{escape(str(initiated['message']))}[/green]")

    code = ctx.args.code or prompt_verification_code(email)
    with ctx.status("Verifying code and claiming project..."):
        verified = ctx.gateway.post("/claim/verify", {"projectName": name, "email": email, "pin": code})

    def render(data: dict[str, Any]) -> None:
        out.print(f"[bold green]{escape(str(data.get('message') or 'Project claimed.'))}[/bold green]")
        out.print("[green]You can now manage this project from your account.[/green]")

    return ctx.finish(verified, render, failure="Claim failed")


# ---------------------------------------------------------------------------
# init / switch / forget-project
# ---------------------------------------------------------------------------

def handle_init(ctx: CommandContext) -> int:
    ctx.note("[blue]Initializing Shov in current directory...[/blue]")
    project = ctx.args.project or prompt_project_name()
    api_key = ctx.args.api_key or prompt_api_key()
    if not project or not api_key:
        raise InputValidationError("Project name and API key are required.")

    email = ctx.args.email or ctx.store.default_email()
    ctx.store.save_local(LocalConfig(project=project, api_key=api_key, email=email))
    if email:
        ctx.store.add_project(project, api_key, email)

    if ctx.json_mode:
        emit_json({"success": True, "project": project, "registered": bool(email)})
        return exit_codes.SUCCESS

    out.print("[bold green]Shov initialized successfully![/bold green]")
    out.print(f"  Project: [cyan]{escape(project)}[/cyan]")
    out.print(f"  API Key: [yellow]{escape(mask_api_key(api_key))}[/yellow]")
    return exit_codes.SUCCESS


def handle_switch(ctx: CommandContext) -> int:
    name: str = ctx.args.name
    record = ctx.store.get_project(name)
    if record is None:
        known = ", ".join(sorted(ctx.store.list_projects())) or "none"
        raise ConfigurationError(
            f'Project "{name}" not found in the global registry.',
            hint=f"Available projects: {known}",
        )

    ctx.store.save_local(LocalConfig(project=name, api_key=record.api_key, email=record.email))

    if ctx.json_mode:
        emit_json({"success": True, "project": name, "email": record.email})
        return exit_codes.SUCCESS
    out.print(f'[bold green]Switched to project "{escape(name)}"[/bold green]')
    out.print(f"  Email: [dim]{escape(record.email or 'Not set')}[/dim]")
    out.print(f"  API Key: [yellow]{escape(mask_api_key(record.api_key))}[/yellow]")
    return exit_codes.SUCCESS


def handle_forget_project(ctx: CommandContext) -> int:
    name: str = ctx.args.name
    removed = ctx.store.remove_project(name)
    if ctx.json_mode:
        emit_json({"success": removed, "project": name})
        return exit_codes.SUCCESS if removed else exit_codes.GENERAL_ERROR
    if not removed:
        raise ConfigurationError(f'Project "{name}" is not in the global registry.')
    out.print(f'[green]Removed "{escape(name)}" from the global registry.[/green]')
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# config / whoami / projects (credential-agnostic)
# ---------------------------------------------------------------------------

def _detected(ctx: CommandContext) -> EffectiveCredentials | None:
    return try_resolve(ctx.store, environ=ctx.environ)


def _credentials_dict(detected: EffectiveCredentials | None) -> dict[str, Any] | None:
    if detected is None:
        return None
    return {
        "project": detected.project_name,
        "apiKey": detected.masked_key,
        "source": detected.source.value,
    }


def handle_config(ctx: CommandContext) -> int:
    detected = _detected(ctx)
    global_config = ctx.store.load_global()
    local = ctx.store.load_local()
    env_project = ctx.environ.get(ENV_PROJECT)
    env_key = ctx.environ.get(ENV_API_KEY)

    if ctx.json_mode:
        emit_json(
            {
                "current": _credentials_dict(detected),
                "email": global_config.email,
                "projects": sorted(global_config.projects),
                "local": {"project": local.project, "apiKey": mask_api_key(local.api_key)} if local else None,
                "env": {ENV_PROJECT: env_project, ENV_API_KEY: mask_api_key(env_key) if env_key else None},
                "apiUrl": ctx.settings.api_url,
            },
        )
        return exit_codes.SUCCESS

    out.print("[bold]Shov Configuration:[/bold]\n")
    if detected is not None:
        out.print("[bold]Current Project:[/bold]")
        out.print(f"  Name: [cyan]{escape(detected.project_name)}[/cyan]")
        out.print(f"  API Key: [yellow]{escape(detected.masked_key)}[/yellow]")
        out.print(f"  Source: [dim]{detected.source.value}[/dim]\n")
    else:
        out.print("[yellow]No active project found.[/yellow]")
        out.print('[dim]Run "shov new" to create a project or "shov init" to initialize an existing project.[/dim]\n')

    if global_config.email:
        out.print("[bold]Global Settings:[/bold]")
        out.print(f"  Default Email: [dim]{escape(global_config.email)}[/dim]\n")

    if global_config.projects:
        out.print("[bold]Available Projects:[/bold]")
        for name, record in global_config.projects.items():
            marker = "[green]●[/green]" if detected and detected.project_name == name else "[dim]○[/dim]"
            out.print(f"  {marker} [cyan]{escape(name)}[/cyan] ([dim]{escape(record.email or '-')}[/dim])")
        out.print()

    if local:
        out.print("[bold]Local Configuration:[/bold]")
        out.print(f"  File: [dim]{escape(str(ctx.store.local_path))}[/dim]")
        if local.project:
            out.print(f"  Project: [cyan]{escape(local.project)}[/cyan]")
        if local.api_key:
            out.print(f"  API Key: [yellow]{escape(mask_api_key(local.api_key))}[/yellow]")
        out.print()

    if env_project or env_key:
        out.print("[bold]Environment Variables:[/bold]")
        if env_project:
            out.print(f"  {ENV_PROJECT}: [cyan]{escape(env_project)}[/cyan]")
        if env_key:
            out.print(f"  {ENV_API_KEY}: [yellow]{escape(mask_api_key(env_key))}[/yellow]")
    return exit_codes.SUCCESS


def handle_whoami(ctx: CommandContext) -> int:
    detected = _detected(ctx)
    email = ctx.store.default_email()

    if ctx.json_mode:
        emit_json({"user": email, "current": _credentials_dict(detected)})
        return exit_codes.SUCCESS

    out.print("[bold]Current User & Project:[/bold]\n")
    out.print(f"  User: [cyan]{escape(email)}[/cyan]" if email else "  User: [dim]Not set[/dim]")
    if detected is not None:
        out.print(f"  Project: [cyan]{escape(detected.project_name)}[/cyan]")
        out.print(f"  API Key: [yellow]{escape(detected.masked_key)}[/yellow]")
        out.print(f"  Source: [dim]{detected.source.value}[/dim]")
    else:
        out.print("  Project: [dim]None active[/dim]\n")
        out.print('[dim]Run "shov new" to create a project or "shov switch <project>" to activate one.[/dim]')
    return exit_codes.SUCCESS


def handle_projects(ctx: CommandContext) -> int:
    projects = ctx.store.list_projects()
    detected = _detected(ctx)
    active = detected.project_name if detected else None

    if ctx.json_mode:
        emit_json(
            {
                name: {"email": record.email, "createdAt": record.created_at, "active": name == active}
                for name, record in projects.items()
            },
        )
        return exit_codes.SUCCESS

    if not projects:
        out.print("[yellow]No projects found.[/yellow]")
        out.print('[dim]Run "shov new" to create your first project.[/dim]')
        return exit_codes.SUCCESS

    out.print("[bold]Available Projects:[/bold]\n")
    for name, record in projects.items():
        is_active = name == active
        marker = "[green]●[/green]" if is_active else "[dim]○[/dim]"
        status = " [green](active)[/green]" if is_active else ""
        out.print(f"  {marker} [cyan]{escape(name)}[/cyan]{status}")
        out.print(f"    Email: [dim]{escape(record.email or '-')}[/dim]")
        out.print(f"    Created: [dim]{format_timestamp(record.created_at)}[/dim]\n")
    if active is None:
        out.print('[dim]Use "shov switch <project>" to activate a project.[/dim]')
    return exit_codes.SUCCESS
