"""Single source of the package version."""

from __future__ import annotations

__version__: str = "2.5.0"
