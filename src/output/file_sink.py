"""Buffered target file sink.

This module buffers serialized text in memory and flushes it to disk
from a background task. ``write`` reports when the buffer is full and
drain listeners fire once the flush stops, either because the buffer
is empty again or because a write failed. After a failure the next
``write``, ``drained`` or ``close`` raises.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import BinaryIO, Callable

from core.constants import DEFAULT_HIGH_WATER_MARK, TARGET_ENCODING
from core.errors import DocshiftSinkError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

DrainListener = Callable[[], None]


class FileSink:
    """Target file with a bounded write buffer and a drain signal."""

    def __init__(self, target_path: Path, high_water_mark: int = DEFAULT_HIGH_WATER_MARK) -> None:
        self._target_path = target_path
        self._high_water_mark = high_water_mark
        self._handle: BinaryIO | None = None
        self._buffer: list[bytes] = []
        self._buffered_bytes = 0
        self._flush_task: asyncio.Task[None] | None = None
        self._drained = asyncio.Event()
        self._drained.set()
        self._drain_pending = False
        self._drain_listeners: list[DrainListener] = []
        self._error: DocshiftSinkError | None = None
        self._bytes_written = 0

    @property
    def target_path(self) -> Path:
        """Path of the file being written."""
        return self._target_path

    @property
    def buffered_bytes(self) -> int:
        """Bytes accepted but not yet written to disk."""
        return self._buffered_bytes

    @property
    def bytes_written(self) -> int:
        """Bytes written to disk so far."""
        return self._bytes_written

    async def open(self) -> None:
        """Create or truncate the target file.

        Raises:
            DocshiftSinkError: If the file cannot be opened for writing.
        """
        try:
            self._handle = await asyncio.to_thread(open, self._target_path, "wb")
        except OSError as error:
            raise DocshiftSinkError(
                f"Failed to open target at {self._target_path}: {error.strerror or error}. "
                "Check the TARGET path and permissions."
            ) from error

    def add_drain_listener(self, listener: DrainListener) -> None:
        """Register a callback fired each time a full buffer drains or fails."""
        self._drain_listeners.append(listener)

    def write(self, text: str) -> bool:
        """Queue text for writing.

        Args:
            text: Serialized output.

        Returns:
            False once buffered bytes reach the high-water mark, True otherwise.

        Raises:
            DocshiftSinkError: If the sink is not open or an earlier flush failed.
        """
        self._raise_if_failed()
        if self._handle is None:
            raise DocshiftSinkError(f"Target {self._target_path} is not open for writing.")
        data = text.encode(TARGET_ENCODING)
        self._buffer.append(data)
        self._buffered_bytes += len(data)
        self._drained.clear()
        if self._flush_task is None:
            self._flush_task = asyncio.get_running_loop().create_task(self._flush())
        if self._buffered_bytes >= self._high_water_mark:
            self._drain_pending = True
            return False
        return True

    async def drained(self) -> None:
        """Wait until every buffered byte has been written.

        Raises:
            DocshiftSinkError: If flushing failed.
        """
        await self._drained.wait()
        self._raise_if_failed()

    async def close(self) -> None:
        """Flush remaining output and close the file.

        Raises:
            DocshiftSinkError: If flushing or closing failed.
        """
        await self._drained.wait()
        await self._close_handle()
        self._raise_if_failed()

    async def release(self) -> None:
        """Close the file after an aborted run, keeping partial output."""
        await self._drained.wait()
        await self._close_handle()
        if self._error is not None:
            _LOGGER.warning(
                "target_flush_failed",
                target_path=str(self._target_path),
                error=str(self._error),
            )

    async def _flush(self) -> None:
        while self._buffer and self._error is None:
            data = b"".join(self._buffer)
            self._buffer.clear()
            await self._write_to_disk(data)
            self._buffered_bytes -= len(data)
        self._flush_task = None
        self._buffer.clear()
        self._buffered_bytes = 0
        if self._drain_pending:
            self._drain_pending = False
            for listener in list(self._drain_listeners):
                listener()
        self._drained.set()

    async def _write_to_disk(self, data: bytes) -> None:
        try:
            await asyncio.to_thread(self._write_blocking, data)
        except OSError as error:
            self._error = DocshiftSinkError(
                f"Failed to write target at {self._target_path}: {error.strerror or error}."
            )
            self._error.__cause__ = error
            return
        self._bytes_written += len(data)

    def _write_blocking(self, data: bytes) -> None:
        if self._handle is None:
            raise OSError(f"{self._target_path} is closed")
        self._handle.write(data)
        self._handle.flush()

    async def _close_handle(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        try:
            await asyncio.to_thread(handle.close)
        except OSError as error:
            if self._error is None:
                self._error = DocshiftSinkError(
                    f"Failed to close target at {self._target_path}: {error.strerror or error}."
                )
                self._error.__cause__ = error

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise self._error
