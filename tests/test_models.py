"""Tests for the frozen domain models and their on-disk shapes."""

from __future__ import annotations

import dataclasses

import pytest

from shov_cli.core.models import (
    CredentialSource,
    EffectiveCredentials,
    GlobalConfig,
    LocalConfig,
    ProjectRecord,
    mask_api_key,
)


# ---------------------------------------------------------------------------
# LocalConfig
# ---------------------------------------------------------------------------

class TestLocalConfig:
    def test_from_dict_uses_camel_case_key(self) -> None:
        cfg = LocalConfig.from_dict({"project": "acme", "apiKey": "k", "email": "a@b.co"})
        assert cfg == LocalConfig(project="acme", api_key="k", email="a@b.co")

    def test_to_dict_omits_missing_email(self) -> None:
        assert LocalConfig(project="acme", api_key="k").to_dict() == {"project": "acme", "apiKey": "k"}

    def test_is_complete_needs_both_fields(self) -> None:
        assert LocalConfig(project="acme", api_key="k").is_complete
        assert not LocalConfig(project="acme").is_complete
        assert not LocalConfig(api_key="k").is_complete

    def test_empty_config_is_falsy(self) -> None:
        assert not LocalConfig()
        assert LocalConfig(email="a@b.co")

    def test_is_frozen(self) -> None:
        cfg = LocalConfig(project="acme")
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.project = "other"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# GlobalConfig
# ---------------------------------------------------------------------------

class TestGlobalConfig:
    def test_from_dict_skips_malformed_entries(self) -> None:
        cfg = GlobalConfig.from_dict(
            {"email": "me@x.io", "projects": {"good": {"apiKey": "k1"}, "bad": "not-a-dict"}},
        )
        assert cfg.email == "me@x.io"
        assert list(cfg.projects) == ["good"]
        assert cfg.projects["good"].api_key == "k1"

    def test_round_trip_shape(self) -> None:
        record = ProjectRecord(api_key="k1", email="me@x.io", created_at="2026-01-01T00:00:00+00:00")
        data = GlobalConfig(email="me@x.io", projects={"acme": record}).to_dict()
        assert data == {
            "email": "me@x.io",
            "projects": {"acme": {"apiKey": "k1", "email": "me@x.io", "createdAt": "2026-01-01T00:00:00+00:00"}},
        }

    def test_with_project_upserts_without_mutating(self) -> None:
        original = GlobalConfig(projects={"acme": ProjectRecord(api_key="old")})
        updated = original.with_project("acme", ProjectRecord(api_key="new"))
        assert original.projects["acme"].api_key == "old"
        assert updated.projects["acme"].api_key == "new"

    def test_without_project(self) -> None:
        cfg = GlobalConfig(email="e", projects={"a": ProjectRecord("1"), "b": ProjectRecord("2")})
        trimmed = cfg.without_project("a")
        assert list(trimmed.projects) == ["b"]
        assert trimmed.email == "e"


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

class TestCredentials:
    def test_mask_keeps_first_twenty_characters(self) -> None:
        key = "shov_live_0123456789abcdefghijklmnop"
        assert mask_api_key(key) == "shov_live_0123456789..."

    def test_masked_key_property(self) -> None:
        creds = EffectiveCredentials("acme", "k" * 40, CredentialSource.ENV)
        assert creds.masked_key == "k" * 20 + "..."

    def test_source_values_are_strings(self) -> None:
        assert CredentialSource.LOCAL.value == "local"
        assert CredentialSource.GLOBAL == "global"
