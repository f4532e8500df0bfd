"""shov-cli: command-line client for the Shov backend platform.

Key/value, collections, vector search, files, real-time pub/sub and
serverless functions, all reached over the Shov HTTP API.
"""

from shov_cli.version import __version__

__all__: list[str] = ["__version__"]
