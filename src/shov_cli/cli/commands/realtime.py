"""Real-time commands: ``token``, ``broadcast`` and ``subscribe``.

``subscribe`` keeps the process alive until Ctrl+C, which closes the
event stream and exits cleanly.  With ``--json`` it writes one compact
JSON record per event (newline-delimited JSON).
"""

from __future__ import annotations

import argparse
from typing import Any

from rich.markup import escape

from shov_cli.cli import exit_codes
from shov_cli.cli.commands._options import data_command, positive_int
from shov_cli.cli.console import console, emit_json_line, out
from shov_cli.cli.context import CommandContext
from shov_cli.cli.render import compact, format_timestamp, pretty
from shov_cli.core.values import parse_json_argument, parse_subscriptions, parse_value
from shov_cli.infra.realtime import (
    DEFAULT_TOKEN_EXPIRY,
    MessageKind,
    Subscription,
    SubscriptionMessage,
    create_streaming_token,
)

STREAMING_TOKEN_TYPE = "streaming"


def register(subparsers: argparse._SubParsersAction) -> None:
    p = data_command(subparsers, "token", "Create a temporary token for client-side operations")
    p.add_argument("type", help='Token type, e.g. "streaming"')
    p.add_argument("data", help="JSON data for the token (subscriptions for streaming tokens)")
    p.add_argument("--expires", type=positive_int, default=DEFAULT_TOKEN_EXPIRY, help="Expiry in seconds (default: 3600)")
    p.set_defaults(handler=handle_token)

    p = data_command(subparsers, "broadcast", "Broadcast a message to subscribers of a subscription")
    p.add_argument("subscription", help='JSON subscription, e.g. \'{"channel": "chat"}\'')
    p.add_argument("message", help="JSON message, or a plain string")
    p.set_defaults(handler=handle_broadcast)

    p = data_command(subparsers, "subscribe", "Subscribe to real-time updates from collections, keys, or channels")
    p.add_argument("subscriptions", help="JSON array of subscriptions")
    p.add_argument("--expires", type=positive_int, default=DEFAULT_TOKEN_EXPIRY, help="Token expiry in seconds")
    p.add_argument("--verbose", dest="show_heartbeats", action="store_true", help="Show heartbeat messages")
    p.set_defaults(handler=handle_subscribe)


def handle_token(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    token_type: str = ctx.args.type
    if token_type == STREAMING_TOKEN_TYPE:
        data = create_streaming_token(
            ctx.gateway, creds, parse_subscriptions(ctx.args.data), expires_in=ctx.args.expires,
        )
    else:
        data = ctx.gateway.post(
            f"/token/{creds.project_name}",
            {"type": token_type, "data": parse_value(ctx.args.data), "expires_in": ctx.args.expires},
            api_key=creds.api_key,
        )

    def render(payload: dict[str, Any]) -> None:
        out.print(f"[bold green]{escape(token_type)} token created.[/bold green]")
        out.print(f"  Token: [yellow]{escape(str(payload.get('token')))}[/yellow]")
        if payload.get("expiresAt") is not None:
            out.print(f"  Expires: [dim]{format_timestamp(payload['expiresAt'])}[/dim]")
        else:
            out.print(f"  Expires in: [dim]{ctx.args.expires} seconds[/dim]")

    return ctx.finish(data, render, failure="Failed to create token")


def handle_broadcast(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    subscription = parse_json_argument(ctx.args.subscription, "Subscription", expect=dict)
    body = {"subscription": subscription, "message": parse_value(ctx.args.message)}
    data = ctx.gateway.post(f"/broadcast/{creds.project_name}", body, api_key=creds.api_key)

    def render(payload: dict[str, Any]) -> None:
        out.print("[bold green]Message broadcast.[/bold green]")
        if payload.get("messageId") is not None:
            out.print(f"  Message ID: [yellow]{escape(str(payload['messageId']))}[/yellow]")
        if payload.get("delivered") is not None:
            out.print(f"  Delivered to: [cyan]{payload['delivered']}[/cyan] subscriber(s)")

    return ctx.finish(data, render, failure="Failed to broadcast message")


def handle_subscribe(ctx: CommandContext) -> int:
    creds = ctx.credentials()
    subscriptions = parse_subscriptions(ctx.args.subscriptions)
    subscription = Subscription(ctx.gateway, creds, subscriptions, expires_in=ctx.args.expires)

    try:
        with ctx.status("Connecting to real-time stream..."):
            subscription.open()
        ctx.note(f"[green]Subscribed to {len(subscriptions)} stream(s). Press Ctrl+C to stop.[/green]")
        for message in subscription.events():
            _show(ctx, message)
        ctx.note("[yellow]The server closed the stream.[/yellow]")
    except KeyboardInterrupt:
        ctx.note("\n[yellow]Subscription closed.[/yellow]")
    finally:
        subscription.close()
    return exit_codes.SUCCESS


def _show(ctx: CommandContext, message: SubscriptionMessage) -> None:
    if ctx.json_mode:
        if message.kind is not MessageKind.PING or ctx.args.show_heartbeats:
            emit_json_line({"type": message.kind.value, "data": message.payload})
        return

    if message.kind is MessageKind.CONNECTED:
        console.print("[dim]Connection established.[/dim]")
    elif message.kind is MessageKind.PING:
        if ctx.args.show_heartbeats:
            console.print("[dim]♥ heartbeat[/dim]")
    else:
        payload = message.payload
        if isinstance(payload, dict) and "data" in payload:
            source = payload.get("subscription") or payload.get("channel") or payload.get("collection")
            prefix = f"[cyan]{compact(source)}[/cyan] " if source is not None else ""
            out.print(f"{prefix}{pretty(payload['data'])}")
        else:
            out.print(pretty(payload))
