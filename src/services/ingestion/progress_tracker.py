"""Ingestion progress tracking with callback-based listener notification.

Holds the current :class:`~src.models.rag.IngestionStatus` and broadcasts
every change to registered listeners (Observer pattern):

    IngestionService ──update()──→ IngestionProgressTracker ──callback(status)──→ CLI printer
                                                             ──→ (any other listener)

The status is created once per process and mutated forward only; a failed
run ends in the ``error`` state and is never rolled back.  Listener errors
are logged and skipped so a broken listener cannot stop ingestion.  Both
sync and async callbacks are supported.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from src.models.rag import IngestionState, IngestionStatus
from src.utils.logging import get_logger

Listener = Callable[[IngestionStatus], Any]


class IngestionProgressTracker:
    """Tracks and broadcasts ingestion progress."""

    def __init__(self) -> None:
        self._status = IngestionStatus()
        self._listeners: list[Listener] = []
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def status(self) -> IngestionStatus:
        return self._status

    async def update(self, **changes: Any) -> IngestionStatus:
        """Apply *changes* to the status and notify listeners.

        Parameters
        ----------
        **changes:
            Any :class:`IngestionStatus` field, e.g.
            ``state=IngestionState.LOADING, current_file="sour.pdf"``.
        """
        self._status = self._status.model_copy(update=changes)
        self._logger.debug(
            "ingestion_progress",
            state=self._status.state.value,
            processed=self._status.processed_files,
            total=self._status.total_files,
            current_file=self._status.current_file,
        )
        await self._notify_listeners()
        return self._status

    async def start(self, total_files: int) -> IngestionStatus:
        return await self.update(
            total_files=total_files,
            processed_files=0,
            current_file=None,
            state=IngestionState.LOADING,
            message=None,
        )

    async def fail(self, message: str) -> IngestionStatus:
        return await self.update(state=IngestionState.ERROR, current_file=None, message=message)

    def register_listener(self, callback: Listener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)
            self._logger.debug("listener_registered", total_listeners=len(self._listeners))

    def unregister_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def get_status(self) -> dict:
        status = self._status
        return {
            "state": status.state.value,
            "total_files": status.total_files,
            "processed_files": status.processed_files,
            "current_file": status.current_file,
            "percentage": status.percentage,
            "message": status.message,
        }

    async def _notify_listeners(self) -> None:
        for callback in list(self._listeners):
            try:
                result = callback(self._status)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:  # noqa: BLE001
                self._logger.warning(
                    "listener_callback_error",
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
