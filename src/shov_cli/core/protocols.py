"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols and never on concrete
implementations, which keeps the dependencies pointing inward.
"""

from __future__ import annotations

from typing import Protocol

from shov_cli.core.models import GlobalConfig, LocalConfig


class ConfigSource(Protocol):
    """Read-only view of the two persisted configuration files.

    Any object implementing :meth:`load_local` and :meth:`load_global`
    satisfies this protocol structurally (no explicit inheritance
    required).
    """

    def load_local(self) -> LocalConfig:
        """Return the current directory's project binding.

        Implementations must return an empty :class:`LocalConfig` when the
        file is absent or unreadable: never raise.
        """
        ...  # pragma: no cover

    def load_global(self) -> GlobalConfig:
        """Return the per-user registry, or an empty one.  Never raises."""
        ...  # pragma: no cover
