"""Interactive prompts for the CLI layer.

Used by project bootstrap commands: verification codes for ``new`` and
``claim``, and the project name / API key asked by ``init``.  Prompts
render on stderr so that stdout stays clean in ``--json`` mode.  A
cancelled prompt (Ctrl+C or Esc makes questionary return ``None``) is
turned into a typed error.
"""

from __future__ import annotations

import sys

import questionary
from prompt_toolkit.output import create_output

from shov_cli.exceptions import InputValidationError


def _ask_text(message: str, *, secret: bool = False) -> str:
    prompt = questionary.password if secret else questionary.text
    answer: str | None = prompt(message, output=create_output(stdout=sys.stderr)).ask()
    if answer is None:
        raise InputValidationError("Prompt cancelled.")
    return answer.strip()


def prompt_verification_code(destination: str | None = None) -> str:
    """Ask for the one-time code emailed to *destination*.

    Raises
    ------
    InputValidationError
        If the user cancels or submits an empty code.
    """
    where = f" to {destination}" if destination else ""
    code = _ask_text(f"Please enter the verification code sent{where}:")
    if not code:
        raise InputValidationError(
            "No verification code entered.",
            hint="Check your inbox (and spam folder) for the code, then run the command again.",
        )
    return code


def prompt_project_name() -> str:
    return _ask_text("What is your project name?")


def prompt_api_key() -> str:
    return _ask_text("What is your API key?", secret=True)
