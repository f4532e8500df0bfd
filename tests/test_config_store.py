"""Tests for the file-backed config store and the dotenv writer."""

from __future__ import annotations

import json
from pathlib import Path

from dotenv import dotenv_values

from shov_cli.core.models import LocalConfig
from shov_cli.infra import env_file
from shov_cli.infra.config_store import FileConfigStore


# ---------------------------------------------------------------------------
# Local file
# ---------------------------------------------------------------------------

class TestLocalFile:
    def test_missing_file_loads_empty(self, store: FileConfigStore) -> None:
        assert store.load_local() == LocalConfig()
        assert not store.has_local()

    def test_save_writes_pretty_json(self, store: FileConfigStore, workdir: Path) -> None:
        store.save_local(LocalConfig(project="acme", api_key="k", email="me@x.io"))
        text = (workdir / ".shov").read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert json.loads(text) == {"project": "acme", "apiKey": "k", "email": "me@x.io"}

    def test_corrupt_file_is_ignored(self, store: FileConfigStore, workdir: Path) -> None:
        (workdir / ".shov").write_text("{not json", encoding="utf-8")
        assert store.load_local() == LocalConfig()

    def test_non_object_json_is_ignored(self, store: FileConfigStore, workdir: Path) -> None:
        (workdir / ".shov").write_text("[1, 2]", encoding="utf-8")
        assert store.load_local() == LocalConfig()

    def test_default_local_dir_follows_cwd(self, workdir: Path, home: Path) -> None:
        assert FileConfigStore(global_dir=home).local_path == workdir / ".shov"


# ---------------------------------------------------------------------------
# Global registry
# ---------------------------------------------------------------------------

class TestGlobalRegistry:
    def test_add_project_creates_directory(self, store: FileConfigStore, home: Path) -> None:
        record = store.add_project("acme", "k1", "me@x.io")
        assert (home / "config.json").is_file()
        assert record.created_at is not None
        assert store.get_project("acme") == record

    def test_add_project_overwrites_existing_entry(self, store: FileConfigStore) -> None:
        store.add_project("acme", "old", None)
        store.add_project("acme", "new", None)
        assert store.get_project("acme").api_key == "new"  # type: ignore[union-attr]
        assert list(store.list_projects()) == ["acme"]

    def test_remove_project(self, store: FileConfigStore) -> None:
        store.add_project("acme", "k1", None)
        assert store.remove_project("acme") is True
        assert store.remove_project("acme") is False
        assert store.list_projects() == {}

    def test_global_email_preserves_projects(self, store: FileConfigStore) -> None:
        store.add_project("acme", "k1", None)
        store.set_global_email("me@x.io")
        assert store.load_global().email == "me@x.io"
        assert "acme" in store.list_projects()

    def test_default_email_prefers_local(self, store: FileConfigStore) -> None:
        store.set_global_email("global@x.io")
        assert store.default_email() == "global@x.io"
        store.save_local(LocalConfig(project="acme", api_key="k", email="local@x.io"))
        assert store.default_email() == "local@x.io"


# ---------------------------------------------------------------------------
# Dotenv writer
# ---------------------------------------------------------------------------

class TestEnvFile:
    def test_creates_dotenv_when_absent(self, tmp_path: Path) -> None:
        written = env_file.add_api_key(tmp_path, "secret-key")
        assert written == tmp_path / ".env"
        assert dotenv_values(written)["SHOV_API_KEY"] == "secret-key"

    def test_prefers_env_local(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("A=1\n", encoding="utf-8")
        (tmp_path / ".env.local").write_text("B=2\n", encoding="utf-8")
        written = env_file.add_api_key(tmp_path, "secret-key")
        assert written == tmp_path / ".env.local"
        assert "SHOV_API_KEY" not in dotenv_values(tmp_path / ".env")

    def test_existing_key_is_not_overwritten(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("SHOV_API_KEY=original\n", encoding="utf-8")
        assert env_file.add_api_key(tmp_path, "replacement") is None
        assert dotenv_values(tmp_path / ".env")["SHOV_API_KEY"] == "original"

    def test_appends_to_existing_entries(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("OTHER=value\n", encoding="utf-8")
        env_file.add_api_key(tmp_path, "secret-key")
        values = dotenv_values(tmp_path / ".env")
        assert values == {"OTHER": "value", "SHOV_API_KEY": "secret-key"}
