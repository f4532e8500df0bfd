"""Classification of non-2xx API responses into typed exceptions.

The server attaches a structured ``details.reason`` code to most error
payloads; that code is matched first.  Older endpoints only send a
free-text ``error`` message, so substring matching remains as a
fallback.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from shov_cli.core.values import humanize_seconds
from shov_cli.exceptions import (
    AlreadyClaimedError,
    ApiError,
    AuthenticationError,
    QuotaExceededError,
    RateLimitError,
    RequestValidationError,
    ResourceNotFoundError,
)

UPGRADE_URL: str = "https://shov.com/pricing"

# Reason codes carried in ``details.reason``.
REASON_AUTH_REQUIRED = "authentication_required"
REASON_PLAN_LIMIT = "plan_limit_exceeded"
REASON_QUOTA = "quota_exceeded"
REASON_ALREADY_CLAIMED = "already_claimed"
REASON_NOT_FOUND = "not_found"
REASON_EMAIL_ALIAS = "email_alias"
REASON_DISPOSABLE_EMAIL = "disposable_email"
REASON_INVALID_EMAIL = "invalid_email"

_VALIDATION_HINTS: dict[str, str] = {
    REASON_EMAIL_ALIAS: (
        "Email aliases (plus-addressing such as name+tag@example.com) are not "
        "accepted. Use your primary address."
    ),
    REASON_DISPOSABLE_EMAIL: "Disposable email providers are not accepted. Use a permanent address.",
    REASON_INVALID_EMAIL: "Check the email address for typos (expected name@domain.tld).",
}

# Fallback substrings, checked in order, for payloads without a reason code.
_VALIDATION_SIGNALS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("alias", "plus"), REASON_EMAIL_ALIAS),
    (("disposable",), REASON_DISPOSABLE_EMAIL),
    (("invalid email", "email format", "valid email"), REASON_INVALID_EMAIL),
)


def classify(
    status: int,
    payload: Mapping[str, Any] | None,
    headers: Mapping[str, str] | None = None,
) -> ApiError:
    """Build the exception describing a failed response.

    Parameters
    ----------
    status:
        HTTP status code (non-2xx).
    payload:
        Decoded JSON body, or ``None`` when the body was not JSON.
    headers:
        Response headers (only ``Retry-After`` is consulted).
    """
    body: dict[str, Any] = dict(payload or {})
    message = str(body.get("error") or body.get("message") or f"API request failed with status {status}")
    details = body.get("details") if isinstance(body.get("details"), dict) else {}
    reason = details.get("reason") or body.get("reason")
    common: dict[str, Any] = {"status": status, "reason": reason, "payload": body}

    if status == 429:
        retry_after = _retry_after(headers, body)
        hint = (
            f"Rate limit exceeded. Please wait {humanize_seconds(retry_after)} before trying again."
            if retry_after is not None
            else "Rate limit exceeded. Please wait a moment before trying again."
        )
        return RateLimitError(message, retry_after=retry_after, hint=hint, **common)

    if status == 401:
        return AuthenticationError(
            message,
            hint=(
                "Check your API key. Run \"shov init\" to configure this directory, "
                "or pass --project and --key."
            ),
            **common,
        )

    if status == 403:
        lowered = message.lower()
        if reason == REASON_ALREADY_CLAIMED or "already claimed" in lowered:
            return AlreadyClaimedError(
                message,
                hint="This project already belongs to an account. Log in to that account to manage it.",
                **common,
            )
        if reason in (REASON_PLAN_LIMIT, REASON_QUOTA) or "limit" in lowered or "quota" in lowered:
            return QuotaExceededError(message, hint=_quota_hint(details, body), **common)

    if status == 404 and (reason == REASON_NOT_FOUND or reason is None):
        return ResourceNotFoundError(
            message,
            hint="Names are case-sensitive. Check the spelling of the project, key or item.",
            **common,
        )

    if status == 400:
        return RequestValidationError(message, hint=_validation_hint(reason, message), **common)

    upgrade = body.get("upgradeMessage")
    return ApiError(message, hint=str(upgrade) if upgrade else None, **common)


def _retry_after(headers: Mapping[str, str] | None, body: Mapping[str, Any]) -> int | None:
    raw: Any = None
    if headers is not None:
        raw = headers.get("retry-after") or headers.get("Retry-After")
    if raw is None:
        raw = body.get("retryAfter")
    if raw is None:
        return None
    try:
        return max(0, int(float(raw)))
    except (TypeError, ValueError):
        return None


def _quota_hint(details: Mapping[str, Any], body: Mapping[str, Any]) -> str:
    lines: list[str] = []
    usage = details.get("usage") if isinstance(details.get("usage"), dict) else None
    if usage and "current" in usage and "limit" in usage:
        lines.append(f"Current usage: {usage['current']} of {usage['limit']}.")
    upgrade = body.get("upgradeMessage")
    lines.append(str(upgrade) if upgrade else f"Upgrade your plan at {UPGRADE_URL}")
    return "\n".join(lines)


def _validation_hint(reason: str | None, message: str) -> str | None:
    if reason in _VALIDATION_HINTS:
        return _VALIDATION_HINTS[reason]
    lowered = message.lower()
    for signals, code in _VALIDATION_SIGNALS:
        if any(signal in lowered for signal in signals):
            return _VALIDATION_HINTS[code]
    return None
