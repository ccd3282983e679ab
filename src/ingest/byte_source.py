"""Pausable chunked byte source.

This module reads a local source file in fixed-size chunks without
blocking the event loop. Downstream stages pause and resume it to apply
backpressure while the target catches up.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import AsyncIterator, BinaryIO

from core.errors import DocshiftSourceError, DocshiftValidationError


def require_source_file(source: str) -> Path:
    """Resolve a source argument to an existing file.

    Args:
        source: Source path as given on the command line.

    Returns:
        Expanded source path.

    Raises:
        DocshiftValidationError: If the path is empty or not an existing file.
    """
    if not source:
        raise DocshiftValidationError("No SOURCE file. Provide the file to transform.")
    source_path = Path(source).expanduser()
    if not source_path.is_file():
        raise DocshiftValidationError(
            f"Failed to read source at {source_path}: file does not exist. "
            "Provide an existing SOURCE file."
        )
    return source_path


async def read_source_bytes(source_path: Path) -> bytes:
    """Read a whole source file off the event loop thread.

    Args:
        source_path: Existing source file.

    Returns:
        File contents.

    Raises:
        DocshiftSourceError: If the file cannot be read.
    """
    try:
        return await asyncio.to_thread(source_path.read_bytes)
    except OSError as error:
        raise DocshiftSourceError(
            f"Failed to read source at {source_path}: {error.strerror or error}."
        ) from error


class FileByteSource:
    """Chunked file reader with explicit pause/resume flow control."""

    def __init__(self, source_path: Path, chunk_size: int) -> None:
        self._source_path = source_path
        self._chunk_size = chunk_size
        self._flowing = asyncio.Event()
        self._flowing.set()

    @property
    def source_path(self) -> Path:
        """Path of the file being read."""
        return self._source_path

    @property
    def paused(self) -> bool:
        """Whether reads are currently held back."""
        return not self._flowing.is_set()

    def pause(self) -> None:
        """Stop reading further chunks until resumed."""
        self._flowing.clear()

    def resume(self) -> None:
        """Allow reading to continue."""
        self._flowing.set()

    async def chunks(self) -> AsyncIterator[bytes]:
        """Yield file contents chunk by chunk, waiting while paused.

        Yields:
            Non-empty byte chunks in file order.

        Raises:
            DocshiftSourceError: If the file cannot be opened or read.
        """
        try:
            handle = open(self._source_path, "rb")
        except OSError as error:
            raise DocshiftSourceError(
                f"Failed to open source at {self._source_path}: {error.strerror or error}."
            ) from error
        try:
            while True:
                await self._flowing.wait()
                chunk = await self._read_chunk(handle)
                if not chunk:
                    return
                yield chunk
        finally:
            handle.close()

    async def _read_chunk(self, handle: BinaryIO) -> bytes:
        try:
            return await asyncio.to_thread(handle.read, self._chunk_size)
        except OSError as error:
            raise DocshiftSourceError(
                f"Failed to read source at {self._source_path}: {error.strerror or error}."
            ) from error
