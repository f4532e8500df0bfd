"""Shared pytest fixtures and configuration for the shov-cli test suite.

Guidelines
----------
* No internet access in any test: HTTP goes through
  :class:`httpx.MockTransport` via the :class:`FakeApi` fixture.
* Config files live under ``tmp_path``; the real home directory and
  ``os.environ`` are never consulted.
* Core tests must be pure: no side effects.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import pytest

from shov_cli.cli.app import main
from shov_cli.core.models import LocalConfig
from shov_cli.infra.config_store import FileConfigStore
from shov_cli.settings import Settings

API_URL = "https://api.shov.test"
PROJECT = "acme"
API_KEY = "shov_live_0123456789abcdefghijklmnop"

Responder = Callable[[httpx.Request], httpx.Response]


@dataclass
class FakeApi:
    """Route table for :class:`httpx.MockTransport` that records requests.

    Routes are keyed by ``(METHOD, path)`` with the ``/api`` prefix
    stripped; values are either a JSON-able payload (served with 200) or a
    callable taking the request.
    """

    routes: dict[tuple[str, str], Any] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def on(self, method: str, path: str, payload: Any = None, *, status: int = 200, headers: dict[str, str] | None = None) -> None:
        if callable(payload):
            self.routes[(method.upper(), path)] = payload
        else:
            body = {"success": True} if payload is None else payload
            self.routes[(method.upper(), path)] = lambda _req: httpx.Response(status, json=body, headers=headers)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        responder = self.routes.get((request.method, path))
        if responder is None:
            return httpx.Response(404, json={"success": False, "error": f"No route for {request.method} {path}"})
        return responder(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    monkeypatch.chdir(path)
    return path


@pytest.fixture
def home(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".shov"


@pytest.fixture
def store(workdir: Path, home: Path) -> FileConfigStore:
    return FileConfigStore(local_dir=workdir, global_dir=home)


@pytest.fixture
def configured(store: FileConfigStore) -> FileConfigStore:
    """A store whose working directory is bound to ``acme``."""
    store.save_local(LocalConfig(project=PROJECT, api_key=API_KEY))
    return store


@pytest.fixture
def settings(home: Path) -> Settings:
    return Settings(api_url=API_URL, timeout=5.0, global_config_dir=home)


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def run(settings: Settings, store: FileConfigStore, api: FakeApi) -> Callable[..., int]:
    """Invoke :func:`main` with isolated collaborators."""

    def _run(*argv: str, environ: dict[str, str] | None = None) -> int:
        return main(
            list(argv),
            settings=settings,
            store=store,
            transport=api.transport,
            environ=environ or {},
        )

    return _run
