"""File-backed implementation of :class:`~shov_cli.core.protocols.ConfigSource`.

Two JSON files act as persisted state shared between invocations:

* ``./.shov``: the current directory's project binding.
* ``~/.shov/config.json``: the per-user registry of known projects.

Both are re-read on every call.  There is no locking: concurrent
invocations writing the same file race and the last writer wins, which
is acceptable for a single-user CLI.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from shov_cli.core.models import GlobalConfig, LocalConfig, ProjectRecord
from shov_cli.settings import GLOBAL_CONFIG_NAME, LOCAL_CONFIG_NAME

logger = logging.getLogger(__name__)


class FileConfigStore:
    """Read and write the local and global configuration files.

    Parameters
    ----------
    local_dir:
        Directory holding ``.shov``.  ``None`` means the current working
        directory *at call time*.
    global_dir:
        Directory holding ``config.json``.  ``None`` means ``~/.shov``.
    """

    def __init__(self, local_dir: Path | None = None, global_dir: Path | None = None) -> None:
        self._local_dir = local_dir
        self._global_dir = global_dir

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def local_path(self) -> Path:
        return (self._local_dir or Path.cwd()) / LOCAL_CONFIG_NAME

    @property
    def global_dir(self) -> Path:
        return self._global_dir or Path.home() / ".shov"

    @property
    def global_path(self) -> Path:
        return self.global_dir / GLOBAL_CONFIG_NAME

    # ------------------------------------------------------------------
    # Local file
    # ------------------------------------------------------------------

    def has_local(self) -> bool:
        return self.local_path.is_file()

    def load_local(self) -> LocalConfig:
        data = _read_json(self.local_path)
        return LocalConfig.from_dict(data) if data else LocalConfig()

    def save_local(self, config: LocalConfig) -> None:
        _write_json(self.local_path, config.to_dict())

    # ------------------------------------------------------------------
    # Global registry
    # ------------------------------------------------------------------

    def load_global(self) -> GlobalConfig:
        data = _read_json(self.global_path)
        return GlobalConfig.from_dict(data) if data else GlobalConfig()

    def save_global(self, config: GlobalConfig) -> None:
        self.global_dir.mkdir(parents=True, exist_ok=True)
        _write_json(self.global_path, config.to_dict())

    def add_project(self, name: str, api_key: str, email: str | None) -> ProjectRecord:
        """Upsert *name* into the registry and persist it."""
        record = ProjectRecord(
            api_key=api_key,
            email=email,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self.save_global(self.load_global().with_project(name, record))
        return record

    def remove_project(self, name: str) -> bool:
        """Delete *name* from the registry; report whether it existed."""
        config = self.load_global()
        if name not in config.projects:
            return False
        self.save_global(config.without_project(name))
        return True

    def get_project(self, name: str) -> ProjectRecord | None:
        return self.load_global().projects.get(name)

    def list_projects(self) -> dict[str, ProjectRecord]:
        return dict(self.load_global().projects)

    def set_global_email(self, email: str) -> None:
        config = self.load_global()
        self.save_global(GlobalConfig(email=email, projects=dict(config.projects)))

    def default_email(self) -> str | None:
        """Local email wins over the global default."""
        return self.load_local().email or self.load_global().email


# ---------------------------------------------------------------------------
# JSON file helpers
# ---------------------------------------------------------------------------

def _read_json(path: Path) -> dict[str, Any]:
    """Return the JSON object stored at *path*, or ``{}`` on any problem."""
    try:
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.debug("Ignoring unreadable config file %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _write_json(path: Path, data: dict[str, Any]) -> None:
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
