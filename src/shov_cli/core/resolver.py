"""Effective credential resolution.

Priority order, first match wins:

1. Explicit ``--project`` **and** ``--key`` flags.
2. The local ``.shov`` file, when it holds both project and key.
3. ``SHOV_PROJECT`` **and** ``SHOV_API_KEY`` environment variables.
4. An explicit ``--project`` found in the global registry with a stored
   key.

Anything else fails closed with :class:`ConfigurationError`: no request
may ever be sent without an API key.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from shov_cli.core.models import CredentialSource, EffectiveCredentials
from shov_cli.core.protocols import ConfigSource
from shov_cli.exceptions import ConfigurationError

ENV_PROJECT: str = "SHOV_PROJECT"
ENV_API_KEY: str = "SHOV_API_KEY"


def resolve(
    source: ConfigSource,
    explicit_project: str | None = None,
    explicit_api_key: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> EffectiveCredentials:
    """Return the credentials a command should use.

    Parameters
    ----------
    source:
        Config store used for the local file and the global registry.
    explicit_project, explicit_api_key:
        Values of the ``--project`` / ``--key`` flags, if given.
    environ:
        Environment mapping; defaults to :data:`os.environ`.

    Raises
    ------
    ConfigurationError
        If none of the sources yields a complete pair.
    """
    env = os.environ if environ is None else environ

    if explicit_project and explicit_api_key:
        return EffectiveCredentials(explicit_project, explicit_api_key, CredentialSource.EXPLICIT)

    local = source.load_local()
    if local.is_complete:
        return EffectiveCredentials(local.project, local.api_key, CredentialSource.LOCAL)

    env_project = env.get(ENV_PROJECT)
    env_key = env.get(ENV_API_KEY)
    if env_project and env_key:
        return EffectiveCredentials(env_project, env_key, CredentialSource.ENV)

    if explicit_project:
        record = source.load_global().projects.get(explicit_project)
        if record is not None and record.api_key:
            return EffectiveCredentials(explicit_project, record.api_key, CredentialSource.GLOBAL)

    raise ConfigurationError(
        "Project configuration not found.",
        hint='Run "shov init" to set up a project, or use --project and --key options.',
    )


def try_resolve(
    source: ConfigSource,
    explicit_project: str | None = None,
    explicit_api_key: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> EffectiveCredentials | None:
    """Like :func:`resolve` but return ``None`` instead of raising."""
    try:
        return resolve(source, explicit_project, explicit_api_key, environ=environ)
    except ConfigurationError:
        return None
