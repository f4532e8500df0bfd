"""Minimal Server-Sent Events parser.

Works on an iterable of decoded lines (``httpx.Response.iter_lines``)
and yields one :class:`ServerSentEvent` per blank-line-terminated block.
A block still open when the input ends is discarded, so a half-read
message can never surface.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ServerSentEvent:
    event: str
    """Event name; ``"message"`` when the block has no ``event:`` field."""

    data: str
    id: str | None = None


def parse_sse(lines: Iterable[str]) -> Iterator[ServerSentEvent]:
    event = ""
    data: list[str] = []
    event_id: str | None = None

    for raw in lines:
        line = raw.rstrip("\r\n")

        if not line:
            if data or event:
                yield ServerSentEvent(event=event or "message", data="\n".join(data), id=event_id)
            event, data, event_id = "", [], None
            continue

        if line.startswith(":"):
            continue

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "event":
            event = value
        elif name == "data":
            data.append(value)
        elif name == "id":
            event_id = value
        # "retry" and unknown fields are ignored
