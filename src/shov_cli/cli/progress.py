"""Rich-based progress display driven by the upload byte counter.

:class:`UploadProgress` is passed as ``on_progress`` to
:meth:`~shov_cli.infra.gateway.GatewayClient.upload`; the infra layer
only reports ``(sent, total)`` pairs.

Shutdown-safe: calls after :meth:`stop` are silently ignored.
"""

from __future__ import annotations

from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from shov_cli.cli.console import get_rich_console


class UploadProgress:
    """Callable progress adapter for Rich.

    Usage::

        with UploadProgress("photo.png", total=size) as progress:
            gateway.upload(project, key, path, on_progress=progress)
    """

    def __init__(self, description: str, *, total: int) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=get_rich_console(),
            transient=True,
        )
        if len(description) > 50:
            description = description[:47] + "..."
        self._description = description
        self._total = total
        self._task_id: int | None = None
        self._started: bool = False

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> UploadProgress:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if not self._started:
            self._progress.start()
            self._task_id = self._progress.add_task(self._description, total=self._total)
            self._started = True

    def stop(self) -> None:
        """Stop the Rich progress display (idempotent)."""
        if self._started:
            self._progress.stop()
            self._started = False

    # ------------------------------------------------------------------
    # Callback
    # ------------------------------------------------------------------

    def __call__(self, sent: int, total: int) -> None:
        if not self._started or self._task_id is None:
            return
        self._progress.update(self._task_id, completed=sent, total=total)
