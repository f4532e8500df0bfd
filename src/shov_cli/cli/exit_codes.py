"""Exit-code constants used by the CLI layer.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Clean exit: command completed and the server reported success."""

GENERAL_ERROR: int = 1
"""Any caught error, including a 2xx response that reports failure."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C at a prompt.  Follows POSIX convention (128 + SIGINT=2)."""
