"""Tests for classification of non-2xx responses."""

from __future__ import annotations

import pytest

from shov_cli.exceptions import (
    AlreadyClaimedError,
    ApiError,
    AuthenticationError,
    QuotaExceededError,
    RateLimitError,
    RequestValidationError,
    ResourceNotFoundError,
)
from shov_cli.infra.api_errors import UPGRADE_URL, classify


class TestRateLimit:
    def test_retry_after_header_is_humanised(self) -> None:
        err = classify(429, {"error": "Too many requests"}, {"retry-after": "120"})
        assert isinstance(err, RateLimitError)
        assert err.retry_after == 120
        assert "Please wait 2 minutes" in (err.hint or "")

    def test_retry_after_from_body(self) -> None:
        err = classify(429, {"error": "slow", "retryAfter": 30}, {})
        assert isinstance(err, RateLimitError)
        assert "30 seconds" in (err.hint or "")

    def test_without_retry_after(self) -> None:
        err = classify(429, None, None)
        assert isinstance(err, RateLimitError)
        assert err.retry_after is None
        assert "wait a moment" in (err.hint or "")


class TestForbidden:
    def test_quota_from_reason_code_with_usage(self) -> None:
        payload = {
            "error": "Limit reached",
            "details": {"reason": "plan_limit_exceeded", "usage": {"current": 1000, "limit": 1000}},
        }
        err = classify(403, payload)
        assert isinstance(err, QuotaExceededError)
        assert err.reason == "plan_limit_exceeded"
        assert "Current usage: 1000 of 1000." in (err.hint or "")
        assert UPGRADE_URL in (err.hint or "")

    def test_quota_prefers_server_upgrade_message(self) -> None:
        err = classify(403, {"error": "quota exceeded", "upgradeMessage": "Go Pro!"})
        assert isinstance(err, QuotaExceededError)
        assert err.hint == "Go Pro!"

    def test_already_claimed(self) -> None:
        err = classify(403, {"error": "Project already claimed"})
        assert isinstance(err, AlreadyClaimedError)

    def test_other_forbidden_is_plain_api_error(self) -> None:
        err = classify(403, {"error": "Forbidden"})
        assert type(err) is ApiError
        assert err.status == 403


class TestOtherStatuses:
    def test_unauthorized(self) -> None:
        err = classify(401, {"error": "Invalid API key"})
        assert isinstance(err, AuthenticationError)
        assert str(err) == "Invalid API key"

    def test_not_found(self) -> None:
        assert isinstance(classify(404, {"error": "Key not found"}), ResourceNotFoundError)

    @pytest.mark.parametrize(
        ("payload", "needle"),
        [
            ({"error": "bad", "details": {"reason": "email_alias"}}, "aliases"),
            ({"error": "Disposable email addresses are not allowed"}, "Disposable"),
            ({"error": "Please provide a valid email"}, "typos"),
        ],
    )
    def test_validation_hints(self, payload: dict[str, object], needle: str) -> None:
        err = classify(400, payload)
        assert isinstance(err, RequestValidationError)
        assert needle in (err.hint or "")

    def test_message_falls_back_to_status(self) -> None:
        err = classify(502, None)
        assert str(err) == "API request failed with status 502"
        assert err.payload == {}
