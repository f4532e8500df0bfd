"""Record a freshly issued API key in the project's dotenv file.

``.env.local`` is preferred when it exists, then ``.env``; when neither
exists a new ``.env`` is created.  An existing ``SHOV_API_KEY`` entry is
never overwritten.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import dotenv_values, set_key

from shov_cli.core.resolver import ENV_API_KEY


def add_api_key(directory: Path, api_key: str) -> Path | None:
    """Write ``SHOV_API_KEY`` into the directory's dotenv file.

    Returns
    -------
    Path | None
        The file written, or ``None`` when the key was already present.

    Raises
    ------
    OSError
        If the file cannot be written.
    """
    target = directory / ".env"
    for candidate in (directory / ".env.local", directory / ".env"):
        if candidate.is_file():
            target = candidate
            break

    if target.is_file() and ENV_API_KEY in dotenv_values(target):
        return None

    if not target.exists():
        target.touch()
    set_key(str(target), ENV_API_KEY, api_key, quote_mode="never")
    return target
