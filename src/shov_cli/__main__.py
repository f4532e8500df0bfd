"""Allow ``python -m shov_cli`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m shov_cli`` behaves identically to the ``shov`` console
script.
"""

from __future__ import annotations

from shov_cli.cli.app import cli

if __name__ == "__main__":
    cli()
