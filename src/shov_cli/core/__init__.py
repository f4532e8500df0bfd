"""Core layer: pure models, credential resolution and argument checks.

Rules
-----
* No ``print()`` calls.
* No filesystem or network I/O.
* No imports from ``cli`` or ``infra``.
"""

from shov_cli.core.models import (
    CredentialSource,
    EffectiveCredentials,
    GlobalConfig,
    LocalConfig,
    ProjectRecord,
)
from shov_cli.core.protocols import ConfigSource
from shov_cli.core.resolver import resolve, try_resolve

__all__: list[str] = [
    "ConfigSource",
    "CredentialSource",
    "EffectiveCredentials",
    "GlobalConfig",
    "LocalConfig",
    "ProjectRecord",
    "resolve",
    "try_resolve",
]
