"""Domain models for shov-cli.

All models are **frozen** dataclasses: immutable snapshots with no
behaviour beyond data access and conversion to/from the JSON shapes
stored on disk.  They carry zero I/O and zero dependencies on external
packages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

JSONValue = Union[None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]]
"""Schema-less JSON value carried in collection items and batch operations."""


# ---------------------------------------------------------------------------
# Local project file (``.shov``)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class LocalConfig:
    """Per-directory project binding."""

    project: str = ""
    api_key: str = ""
    email: str | None = None

    @property
    def is_complete(self) -> bool:
        """``True`` when both project and API key are present."""
        return bool(self.project and self.api_key)

    def __bool__(self) -> bool:
        return bool(self.project or self.api_key or self.email)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LocalConfig:
        email = data.get("email")
        return cls(
            project=str(data.get("project") or ""),
            api_key=str(data.get("apiKey") or ""),
            email=str(email) if email else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"project": self.project, "apiKey": self.api_key}
        if self.email:
            out["email"] = self.email
        return out


# ---------------------------------------------------------------------------
# Global multi-project registry (``~/.shov/config.json``)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ProjectRecord:
    """One entry of the global registry."""

    api_key: str
    email: str | None = None
    created_at: str | None = None
    """ISO-8601 timestamp recorded when the project was registered."""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectRecord:
        return cls(
            api_key=str(data.get("apiKey") or ""),
            email=data.get("email"),
            created_at=data.get("createdAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"apiKey": self.api_key, "email": self.email, "createdAt": self.created_at}


@dataclass(frozen=True, slots=True)
class GlobalConfig:
    """Per-user registry of known projects plus a default email."""

    email: str | None = None
    projects: dict[str, ProjectRecord] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.email or self.projects)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GlobalConfig:
        raw_projects = data.get("projects")
        projects: dict[str, ProjectRecord] = {}
        if isinstance(raw_projects, dict):
            for name, record in raw_projects.items():
                if isinstance(record, dict):
                    projects[str(name)] = ProjectRecord.from_dict(record)
        return cls(email=data.get("email") or None, projects=projects)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.email:
            out["email"] = self.email
        out["projects"] = {name: rec.to_dict() for name, rec in self.projects.items()}
        return out

    def with_project(self, name: str, record: ProjectRecord) -> GlobalConfig:
        """Return a copy with *name* upserted (last write wins)."""
        projects = dict(self.projects)
        projects[name] = record
        return GlobalConfig(email=self.email, projects=projects)

    def without_project(self, name: str) -> GlobalConfig:
        projects = {k: v for k, v in self.projects.items() if k != name}
        return GlobalConfig(email=self.email, projects=projects)


# ---------------------------------------------------------------------------
# Resolved credentials (never persisted)
# ---------------------------------------------------------------------------

class CredentialSource(str, Enum):
    """Where the effective project/API-key pair came from."""

    EXPLICIT = "explicit"
    LOCAL = "local"
    ENV = "env"
    GLOBAL = "global"


@dataclass(frozen=True, slots=True)
class EffectiveCredentials:
    """The project name and API key a command will use."""

    project_name: str
    api_key: str
    source: CredentialSource

    @property
    def masked_key(self) -> str:
        return mask_api_key(self.api_key)


def mask_api_key(api_key: str) -> str:
    """Show the first 20 characters of *api_key* followed by ``...``."""
    return f"{api_key[:20]}..."


# ---------------------------------------------------------------------------
# Batch operation
# ---------------------------------------------------------------------------

OPERATION_TYPES: tuple[str, ...] = ("set", "get", "add", "update", "remove", "forget", "clear")
"""Operation kinds the batch endpoint accepts."""

MAX_BATCH_OPERATIONS: int = 50


@dataclass(frozen=True, slots=True)
class BatchFailure:
    """A sub-operation the server reported as failed."""

    index: int
    """Zero-based position in the submitted operations array."""

    type: str | None
    error: str
