"""One-time password commands: ``send-otp`` and ``verify-otp``."""

from __future__ import annotations

import argparse
from typing import Any

from rich.markup import escape

from shov_cli.cli.commands._options import data_command
from shov_cli.cli.console import out
from shov_cli.cli.context import CommandContext


def register(subparsers: argparse._SubParsersAction) -> None:
    p = data_command(subparsers, "send-otp", "Send a one-time password (OTP) to an identifier")
    p.add_argument("identifier", help="Email address (or other identifier)")
    p.add_argument("--digits", type=int, choices=(4, 6), default=4, help="Number of digits in the OTP")
    p.set_defaults(handler=handle_send_otp)

    p = data_command(subparsers, "verify-otp", "Verify an OTP for an identifier")
    p.add_argument("identifier")
    p.add_argument("pin")
    p.set_defaults(handler=handle_verify_otp)


def handle_send_otp(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status(f"Sending OTP to {ctx.args.identifier}..."):
        data = ctx.gateway.post(
            f"/send-otp/{creds.project_name}",
            {"identifier": ctx.args.identifier, "digits": ctx.args.digits},
            api_key=creds.api_key,
        )

    def render(payload: dict[str, Any]) -> None:
        out.print(f"[green]{escape(str(payload.get('message') or 'OTP sent.'))}[/green]")

    return ctx.finish(data, render, failure="Failed to send OTP")


def handle_verify_otp(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    with ctx.status(f"Verifying OTP for {ctx.args.identifier}..."):
        data = ctx.gateway.post(
            f"/verify-otp/{creds.project_name}",
            {"identifier": ctx.args.identifier, "pin": ctx.args.pin},
            api_key=creds.api_key,
        )

    def render(_: dict[str, Any]) -> None:
        out.print("[bold green]OTP verified successfully![/bold green]")

    return ctx.finish(data, render, failure="Failed to verify OTP")
