"""Infrastructure layer: external system integration.

This layer wraps all interaction with the Shov HTTP API, the event
stream and the configuration files on disk.  Every raw third-party
exception must be caught here and re-raised as a
:class:`~shov_cli.exceptions.ShovError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
"""

from shov_cli.infra.config_store import FileConfigStore
from shov_cli.infra.gateway import GatewayClient
from shov_cli.infra.realtime import Subscription, create_streaming_token

__all__: list[str] = [
    "FileConfigStore",
    "GatewayClient",
    "Subscription",
    "create_streaming_token",
]
