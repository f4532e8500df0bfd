"""Smoke tests: verify scaffold wiring.

These tests prove that:
* The CLI entry point is importable and callable.
* The exception hierarchy is correctly structured.
* Version is accessible.
* Exit codes are defined.
* Every top-level command is routed to a handler.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from unittest.mock import patch

import pytest

from shov_cli import __version__
from shov_cli.cli import exit_codes
from shov_cli.cli.app import _build_parser, cli, main
from shov_cli.exceptions import (
    AlreadyClaimedError,
    ApiError,
    AuthenticationError,
    ConfigurationError,
    InputValidationError,
    OperationFailedError,
    QuotaExceededError,
    RateLimitError,
    RequestValidationError,
    ResourceNotFoundError,
    ShovError,
    StreamError,
    TransportError,
)


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

class TestVersion:
    def test_version_is_string(self) -> None:
        assert isinstance(__version__, str)

    def test_version_is_semver_like(self) -> None:
        parts = __version__.split(".")
        assert len(parts) == 3
        assert all(part.isdigit() for part in parts)


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------

class TestExceptions:
    @pytest.mark.parametrize(
        "exc_class",
        [
            ConfigurationError,
            InputValidationError,
            TransportError,
            StreamError,
            OperationFailedError,
            ApiError,
        ],
    )
    def test_all_exceptions_inherit_from_base(self, exc_class: type[ShovError]) -> None:
        assert issubclass(exc_class, ShovError)

    @pytest.mark.parametrize(
        "exc_class",
        [
            RateLimitError,
            AuthenticationError,
            QuotaExceededError,
            AlreadyClaimedError,
            ResourceNotFoundError,
            RequestValidationError,
        ],
    )
    def test_api_errors_inherit_from_api_error(self, exc_class: type[ApiError]) -> None:
        assert issubclass(exc_class, ApiError)

    def test_hint_is_stored(self) -> None:
        err = ShovError("boom", hint="try this")
        assert str(err) == "boom"
        assert err.hint == "try this"

    def test_hint_defaults_to_none(self) -> None:
        assert ShovError("boom").hint is None

    def test_to_dict_envelope(self) -> None:
        assert ShovError("boom", hint="h").to_dict() == {"success": False, "error": "boom", "hint": "h"}
        assert ShovError("boom").to_dict() == {"success": False, "error": "boom"}

    def test_api_error_envelope_carries_status(self) -> None:
        err = ApiError("nope", status=403, reason="quota_exceeded")
        assert err.to_dict() == {"success": False, "error": "nope", "status": 403, "reason": "quota_exceeded"}

    def test_rate_limit_keeps_retry_after(self) -> None:
        err = RateLimitError("slow down", status=429, retry_after=12)
        assert err.retry_after == 12
        assert err.status == 429


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class TestExitCodes:
    def test_success_is_zero(self) -> None:
        assert exit_codes.SUCCESS == 0

    def test_general_error_is_one(self) -> None:
        assert exit_codes.GENERAL_ERROR == 1

    def test_keyboard_interrupt_is_130(self) -> None:
        assert exit_codes.KEYBOARD_INTERRUPT == 130


# ---------------------------------------------------------------------------
# CLI routing
# ---------------------------------------------------------------------------

class TestCLIRouting:
    def test_no_args_returns_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        """No arguments should print help and exit 0."""
        code = main([])
        assert code == exit_codes.SUCCESS
        assert "usage: shov" in capsys.readouterr().err

    def test_version_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0

    @pytest.mark.parametrize(
        "command",
        [
            "new", "claim", "init", "config", "whoami", "projects", "switch", "forget-project",
            "set", "get", "forget", "contents",
            "add", "add-many", "where", "count", "update", "remove", "clear", "batch",
            "search", "upload", "upload-url", "files", "forget-file",
            "token", "broadcast", "subscribe", "send-otp", "verify-otp",
            "code", "secrets", "backup", "events", "doctor",
        ],
    )
    def test_command_is_registered(self, command: str) -> None:
        parser = _build_parser()
        subparsers = next(a for a in parser._actions if a.dest == "command")
        assert command in subparsers.choices

    def test_unknown_command_is_a_general_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["frobnicate"]) == exit_codes.GENERAL_ERROR
        err = capsys.readouterr().err
        assert "invalid choice" in err
        assert "usage: shov" in err

    @patch("shov_cli.cli.doctor.run_doctor", return_value=exit_codes.SUCCESS)
    def test_doctor_returns_success(self, _mock_doc: object, run: Callable[..., int]) -> None:
        assert run("doctor") == exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

class TestErrorBoundary:
    def test_missing_credentials_renders_hint(self, run: Callable[..., int], capsys: pytest.CaptureFixture[str]) -> None:
        code = run("get", "greeting")
        assert code == exit_codes.GENERAL_ERROR
        err = capsys.readouterr().err
        assert "Project configuration not found." in err
        assert "shov init" in err

    def test_missing_credentials_in_json_mode(self, run: Callable[..., int], capsys: pytest.CaptureFixture[str]) -> None:
        code = run("get", "greeting", "--json")
        assert code == exit_codes.GENERAL_ERROR
        payload = json.loads(capsys.readouterr().out)
        assert payload["success"] is False
        assert payload["error"] == "Project configuration not found."

    def test_cli_maps_keyboard_interrupt_to_130(self) -> None:
        with patch("shov_cli.cli.app.main", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.KEYBOARD_INTERRUPT

    def test_cli_maps_unexpected_error_to_general_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("shov_cli.cli.app.main", side_effect=RuntimeError("kaboom")):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.GENERAL_ERROR
        assert "RuntimeError: kaboom" in capsys.readouterr().err

    def test_cli_exits_with_main_result(self) -> None:
        with patch("shov_cli.cli.app.main", return_value=exit_codes.SUCCESS):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.SUCCESS

    def test_missing_positional_in_json_mode(
        self, run: Callable[..., int], capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = run("batch", "--json")
        assert code == exit_codes.GENERAL_ERROR
        payload = json.loads(capsys.readouterr().out)
        assert payload["success"] is False
        assert "operations" in payload["error"]
        assert payload["hint"].startswith("usage: shov batch")

    def test_bad_option_value_in_json_mode(
        self, run: Callable[..., int], capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = run("search", "q", "--top-k", "abc", "--json")
        assert code == exit_codes.GENERAL_ERROR
        payload = json.loads(capsys.readouterr().out)
        assert payload["success"] is False
        assert "--top-k" in payload["error"]
        assert "expected an integer" in payload["error"]

    def test_bad_option_value_renders_usage_hint(
        self, run: Callable[..., int], capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert run("search", "q", "--top-k", "abc") == exit_codes.GENERAL_ERROR
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Error:" in captured.err
        assert "usage: shov search" in captured.err

    def test_missing_nested_subcommand(self, run: Callable[..., int], capsys: pytest.CaptureFixture[str]) -> None:
        assert run("code") == exit_codes.GENERAL_ERROR
        assert "usage: shov code" in capsys.readouterr().err
