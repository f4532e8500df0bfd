"""Real-time subscription over Server-Sent Events.

Lifecycle::

    IDLE --open()--> TOKEN_REQUESTED --> CONNECTED --events()*--> CLOSED

A scoped streaming token is requested first, then the event stream is
opened with that token.  The subscription ends on :meth:`close` (called
by the CLI on Ctrl+C) or on a stream error.  There is no automatic
reconnect.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from shov_cli.core.models import EffectiveCredentials
from shov_cli.exceptions import StreamError
from shov_cli.infra.gateway import GatewayClient
from shov_cli.infra.sse import ServerSentEvent, parse_sse

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_EXPIRY: int = 3600


class SubscriptionState(str, Enum):
    IDLE = "idle"
    TOKEN_REQUESTED = "token_requested"
    CONNECTED = "connected"
    CLOSED = "closed"


class MessageKind(str, Enum):
    CONNECTED = "connected"
    PING = "ping"
    MESSAGE = "message"


@dataclass(frozen=True, slots=True)
class SubscriptionMessage:
    kind: MessageKind
    payload: Any


def create_streaming_token(
    gateway: GatewayClient,
    credentials: EffectiveCredentials,
    subscriptions: list[dict[str, Any]],
    *,
    expires_in: int = DEFAULT_TOKEN_EXPIRY,
) -> dict[str, Any]:
    """Issue a short-lived token scoped to *subscriptions*."""
    return gateway.post(
        f"/token/{credentials.project_name}",
        {"type": "streaming", "subscriptions": subscriptions, "expires_in": expires_in},
        api_key=credentials.api_key,
    )


def classify_event(sse: ServerSentEvent) -> SubscriptionMessage:
    """Map a raw SSE block onto one of the three message kinds.

    The kind comes from the ``event:`` field when it names one, else
    from a ``type`` field inside the JSON data.
    """
    try:
        payload: Any = json.loads(sse.data) if sse.data else None
    except ValueError:
        payload = sse.data

    name = sse.event
    if name not in (MessageKind.CONNECTED.value, MessageKind.PING.value) and isinstance(payload, dict):
        name = str(payload.get("type") or name)

    if name in (MessageKind.CONNECTED.value, "connection", "ack"):
        return SubscriptionMessage(MessageKind.CONNECTED, payload)
    if name in (MessageKind.PING.value, "heartbeat"):
        return SubscriptionMessage(MessageKind.PING, payload)
    return SubscriptionMessage(MessageKind.MESSAGE, payload)


class Subscription:
    """One live event-stream connection.

    Usage::

        sub = Subscription(gateway, credentials, [{"channel": "chat"}])
        try:
            sub.open()
            for msg in sub.events():
                ...
        finally:
            sub.close()
    """

    def __init__(
        self,
        gateway: GatewayClient,
        credentials: EffectiveCredentials,
        subscriptions: list[dict[str, Any]],
        *,
        expires_in: int = DEFAULT_TOKEN_EXPIRY,
    ) -> None:
        self._gateway = gateway
        self._credentials = credentials
        self._subscriptions = subscriptions
        self._expires_in = expires_in
        self._stack = ExitStack()
        self._response: httpx.Response | None = None
        self.state: SubscriptionState = SubscriptionState.IDLE

    def open(self) -> None:
        """Request a token and connect.  Valid only from ``IDLE``."""
        if self.state is not SubscriptionState.IDLE:
            raise StreamError(f"Cannot open a subscription in state {self.state.value!r}.")

        self.state = SubscriptionState.TOKEN_REQUESTED
        try:
            token_data = create_streaming_token(
                self._gateway, self._credentials, self._subscriptions, expires_in=self._expires_in,
            )
            token = token_data.get("token")
            if not token:
                raise StreamError(
                    f"Failed to create streaming token: {token_data.get('error') or 'no token returned'}",
                )
            self._response = self._stack.enter_context(
                self._gateway.stream(
                    f"/subscribe/{self._credentials.project_name}",
                    params={"token": token},
                ),
            )
        except BaseException:
            self.close()
            raise
        self.state = SubscriptionState.CONNECTED
        logger.debug("Subscribed to %d stream(s)", len(self._subscriptions))

    def events(self) -> Iterator[SubscriptionMessage]:
        """Yield messages until the server ends the stream.

        Raises
        ------
        StreamError
            On a transport failure; the subscription is closed first.
        """
        if self.state is not SubscriptionState.CONNECTED or self._response is None:
            raise StreamError("Subscription is not connected.")
        try:
            for sse in parse_sse(self._response.iter_lines()):
                yield classify_event(sse)
        except httpx.HTTPError as exc:
            self.close()
            raise StreamError(
                f"Connection error: {exc}",
                hint="The stream was closed. Run the command again to resubscribe.",
            ) from exc
        self.close()

    def close(self) -> None:
        """Release the connection (idempotent)."""
        if self.state is SubscriptionState.CLOSED:
            return
        self.state = SubscriptionState.CLOSED
        self._response = None
        self._stack.close()
