"""Runtime settings resolved from the process environment.

Settings are rebuilt on every invocation; nothing is cached between
commands.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

PRODUCTION_URL: str = "https://shov.com"
STAGING_URL: str = "https://staging.shov.com"
DEVELOPMENT_URL: str = "http://127.0.0.1:8787"

DEFAULT_TIMEOUT: float = 30.0

LOCAL_CONFIG_NAME: str = ".shov"
GLOBAL_CONFIG_NAME: str = "config.json"


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable runtime configuration."""

    api_url: str = PRODUCTION_URL
    """Base URL of the Shov API, without the ``/api`` prefix."""

    timeout: float = DEFAULT_TIMEOUT
    """Per-request timeout in seconds (ignored for the event stream)."""

    global_config_dir: Path | None = None
    """Directory of the global registry; ``None`` means ``~/.shov``."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            api_url=_api_url(env),
            timeout=_timeout(env.get("SHOV_TIMEOUT")),
            global_config_dir=Path(env["SHOV_CONFIG_DIR"]) if env.get("SHOV_CONFIG_DIR") else None,
        )


def _api_url(env: Mapping[str, str]) -> str:
    override = env.get("SHOV_API_URL")
    if override:
        return override.rstrip("/")
    stage = env.get("SHOV_ENV", "").lower()
    if stage == "staging":
        return STAGING_URL
    if stage == "development":
        return DEVELOPMENT_URL
    return PRODUCTION_URL


def _timeout(raw: str | None) -> float:
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT
    return value if value > 0 else DEFAULT_TIMEOUT
