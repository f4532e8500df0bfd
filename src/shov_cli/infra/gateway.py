"""httpx-backed client for the Shov HTTP API.

This module is the **only** place in the codebase that issues HTTP
requests.  All httpx exceptions are caught here and re-raised as typed
:class:`~shov_cli.exceptions.ShovError` subclasses: nothing raw escapes
the infrastructure boundary.

The client interprets HTTP status only.  Business-level ``success``
flags inside 2xx payloads are left to the caller.
"""

from __future__ import annotations

import json
import logging
import mimetypes
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import httpx

from shov_cli.exceptions import InputValidationError, TransportError
from shov_cli.infra.api_errors import classify
from shov_cli.settings import Settings
from shov_cli.version import __version__

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE: int = 64 * 1024
_BODYLESS_METHODS: frozenset[str] = frozenset({"GET", "HEAD"})


class GatewayClient:
    """Thin JSON-over-HTTP client bound to one API base URL.

    Usage::

        with GatewayClient(Settings.from_env()) as gateway:
            data = gateway.request("POST", "/get/acme", {"name": "k"}, api_key=key)

    Parameters
    ----------
    settings:
        Base URL and timeout.
    transport:
        Optional httpx transport, e.g. :class:`httpx.MockTransport` in tests.
    """

    def __init__(self, settings: Settings, *, transport: httpx.BaseTransport | None = None) -> None:
        self._settings = settings
        self._client = httpx.Client(
            base_url=f"{settings.api_url}/api",
            timeout=settings.timeout,
            transport=transport,
            headers={"User-Agent": f"shov-cli/{__version__}"},
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> GatewayClient:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def api_url(self) -> str:
        return self._settings.api_url

    # ------------------------------------------------------------------
    # JSON requests
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        api_key: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON payload.

        Parameters
        ----------
        method:
            HTTP verb.
        path:
            Path below ``/api`` (e.g. ``"/set/acme"``).
        body:
            JSON-serialisable payload; omitted for GET/HEAD and when ``None``.
        api_key:
            Bearer credential.  ``None`` sends an unauthenticated request.
        params:
            Optional query-string parameters.

        Raises
        ------
        ApiError
            (or a subclass) for any non-2xx status.
        TransportError
            When the API is unreachable or the body is not JSON.
        """
        method = method.upper()
        headers = self._headers(api_key)
        content: bytes | None = None
        if body is not None and method not in _BODYLESS_METHODS:
            content = json.dumps(body).encode("utf-8")

        logger.debug("> %s %s%s", method, self._client.base_url, path)
        if content is not None:
            logger.debug("> Payload: %s", json.dumps(body, indent=2))

        try:
            response = self._client.request(
                method,
                path,
                content=content,
                headers=headers,
                params=_clean_params(params),
            )
        except httpx.HTTPError as exc:
            raise TransportError(
                f"Could not reach the Shov API: {exc}",
                hint=f"Check your network connection ({self.api_url}).",
            ) from exc

        return self._handle_response(response)

    def post(self, path: str, body: Any = None, *, api_key: str | None = None) -> dict[str, Any]:
        return self.request("POST", path, {} if body is None else body, api_key=api_key)

    def get(self, path: str, *, api_key: str | None = None, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.request("GET", path, api_key=api_key, params=params)

    def delete(self, path: str, body: Any = None, *, api_key: str | None = None) -> dict[str, Any]:
        return self.request("DELETE", path, body, api_key=api_key)

    # ------------------------------------------------------------------
    # File upload (raw streaming body)
    # ------------------------------------------------------------------

    def upload(
        self,
        project: str,
        api_key: str,
        file_path: Path,
        *,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> dict[str, Any]:
        """Stream *file_path* to ``/upload/<project>`` without buffering it.

        Parameters
        ----------
        on_progress:
            Called with ``(bytes_sent, total_bytes)`` after each chunk.

        Raises
        ------
        InputValidationError
            If *file_path* is not a readable file.
        """
        path = Path(file_path)
        if not path.is_file():
            raise InputValidationError(f"File not found at {path.resolve()}")

        size = path.stat().st_size
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": mime_type,
            "Content-Length": str(size),
            "x-shov-filename": path.name,
        }
        logger.debug("> POST upload %s (%d bytes, %s)", path.name, size, mime_type)

        try:
            response = self._client.post(
                f"/upload/{project}",
                content=_iter_file(path, size, on_progress),
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Upload failed: {exc}") from exc
        return self._handle_response(response)

    # ------------------------------------------------------------------
    # Streaming GET (Server-Sent Events)
    # ------------------------------------------------------------------

    @contextmanager
    def stream(self, path: str, *, params: dict[str, Any] | None = None) -> Iterator[httpx.Response]:
        """Open a long-lived GET and yield the streaming response.

        The connection is released when the ``with`` block exits.
        Non-2xx statuses are classified before the body is consumed.
        """
        logger.debug("> GET %s%s (stream)", self._client.base_url, path)
        try:
            with self._client.stream(
                "GET",
                path,
                params=_clean_params(params),
                headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
                timeout=httpx.Timeout(self._settings.timeout, read=None),
            ) as response:
                if not response.is_success:
                    response.read()
                    self._handle_response(response)
                yield response
        except httpx.HTTPError as exc:
            raise TransportError(f"Could not open event stream: {exc}") from exc

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _headers(api_key: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    @staticmethod
    def _handle_response(response: httpx.Response) -> dict[str, Any]:
        payload: Any
        if not response.content:
            payload = {}
        else:
            try:
                payload = response.json()
            except ValueError:
                payload = None

        if not response.is_success:
            raise classify(response.status_code, payload if isinstance(payload, dict) else None, response.headers)

        if payload is None:
            raise TransportError(
                f"The API returned a non-JSON response (status {response.status_code}).",
            )
        if not isinstance(payload, dict):
            return {"data": payload}
        return payload


def _iter_file(path: Path, total: int, on_progress: Callable[[int, int], None] | None) -> Iterator[bytes]:
    sent = 0
    with path.open("rb") as fh:
        while chunk := fh.read(UPLOAD_CHUNK_SIZE):
            sent += len(chunk)
            if on_progress is not None:
                on_progress(sent, total)
            yield chunk


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    if params is None:
        return None
    return {k: v for k, v in params.items() if v is not None}
