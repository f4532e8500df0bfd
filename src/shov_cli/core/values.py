"""Argument normalisation: pure transforms from CLI strings to payloads.

Everything here runs before any network call, so a malformed argument
is reported without contacting the API.
"""

from __future__ import annotations

import json
import math
from typing import Any

from shov_cli.core.models import MAX_BATCH_OPERATIONS, OPERATION_TYPES, BatchFailure, JSONValue
from shov_cli.exceptions import InputValidationError


def parse_value(text: str) -> JSONValue:
    """Decode *text* as JSON, falling back to the raw string."""
    try:
        return json.loads(text)
    except ValueError:
        return text


def parse_json_argument(text: str, what: str, *, expect: type | None = None) -> Any:
    """Strictly decode a JSON argument.

    Parameters
    ----------
    text:
        Raw argument value.
    what:
        Human name of the argument, used in error messages.
    expect:
        ``dict`` or ``list`` to enforce the top-level shape.

    Raises
    ------
    InputValidationError
        If *text* is not valid JSON or has the wrong shape.
    """
    try:
        value = json.loads(text)
    except ValueError as exc:
        raise InputValidationError(
            f"{what} must be valid JSON.",
            hint=f"Received: {text!r}",
        ) from exc
    if expect is dict and not isinstance(value, dict):
        raise InputValidationError(f"{what} must be a JSON object.")
    if expect is list and not isinstance(value, list):
        raise InputValidationError(f"{what} must be a JSON array.")
    return value


def normalize_min_score(raw: str | float) -> tuple[float, bool]:
    """Map a similarity threshold onto the ``[0, 1]`` scale.

    Values in ``(1, 100]`` are treated as percentages and divided by 100;
    values in ``[0, 1]`` pass through unchanged.

    Returns
    -------
    tuple[float, bool]
        The normalised score and whether it was auto-corrected.
    """
    try:
        score = float(raw)
    except (TypeError, ValueError) as exc:
        raise InputValidationError(f"--min-score must be a number, got {raw!r}.") from exc
    if math.isnan(score) or score < 0 or score > 100:
        raise InputValidationError(
            f"--min-score must be between 0 and 1 (or 0 and 100), got {raw!r}.",
        )
    if score > 1:
        return score / 100, True
    return score, False


def validate_batch(operations: Any) -> list[dict[str, Any]]:
    """Check the shape of a batch before it is sent.

    Only the shape is checked: a non-empty array of at most
    :data:`MAX_BATCH_OPERATIONS` objects with a known ``type``.  All
    deeper semantics belong to the server.
    """
    if not isinstance(operations, list):
        raise InputValidationError("Operations must be a JSON array.")
    if not operations:
        raise InputValidationError(
            "Operations array cannot be empty.",
            hint='Example: \'[{"type": "set", "name": "k", "value": 1}]\'',
        )
    if len(operations) > MAX_BATCH_OPERATIONS:
        raise InputValidationError(
            f"Too many operations: {len(operations)} (maximum {MAX_BATCH_OPERATIONS}).",
            hint="Split the work into several batches.",
        )
    for index, op in enumerate(operations):
        if not isinstance(op, dict):
            raise InputValidationError(f"Operation #{index + 1} must be a JSON object.")
        if op.get("type") not in OPERATION_TYPES:
            raise InputValidationError(
                f"Operation #{index + 1} has unknown type {op.get('type')!r}.",
                hint=f"Valid types: {', '.join(OPERATION_TYPES)}.",
            )
    return operations


def batch_failures(result: dict[str, Any], operations: list[dict[str, Any]] | None = None) -> list[BatchFailure]:
    """Return the sub-operations a batch response marks as failed."""
    failures: list[BatchFailure] = []
    results = result.get("results")
    if not isinstance(results, list):
        return failures
    for index, item in enumerate(results):
        if not isinstance(item, dict) or item.get("success", True) is not False:
            continue
        op_type = item.get("type")
        if op_type is None and operations is not None and index < len(operations):
            op_type = operations[index].get("type")
        failures.append(
            BatchFailure(index=index, type=op_type, error=str(item.get("error") or "Unknown error")),
        )
    return failures


def parse_subscriptions(text: str) -> list[dict[str, Any]]:
    """Decode a subscription list (a single object is accepted too)."""
    value = parse_json_argument(text, "Subscriptions")
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list) or not value:
        raise InputValidationError(
            "Subscriptions must be a non-empty JSON array.",
            hint='Example: \'[{"collection": "users"}, {"channel": "chat"}]\'',
        )
    for sub in value:
        if not isinstance(sub, dict) or not ({"collection", "key", "channel"} & sub.keys()):
            raise InputValidationError(
                "Each subscription needs a 'collection', 'key' or 'channel' field.",
            )
    return value


def split_csv(text: str | None) -> list[str] | None:
    """Split ``"a, b,c"`` into ``["a", "b", "c"]``; ``None`` stays ``None``."""
    if text is None:
        return None
    return [part.strip() for part in text.split(",") if part.strip()]


def humanize_seconds(seconds: int) -> str:
    """Render a wait as ``"45 seconds"`` or ``"2 minutes"`` (rounded up)."""
    if seconds < 60:
        return f"{seconds} second{'s' if seconds != 1 else ''}"
    minutes = math.ceil(seconds / 60)
    return f"{minutes} minute{'s' if minutes != 1 else ''}"
