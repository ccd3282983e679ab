"""Backpressure-aware document writer.

This module serializes documents to a target sink, bracketing them as a
JSON array when the source was one. When the sink reports a full buffer
the writer pauses its upstream source and holds further writes until the
sink signals that it has drained.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

from core.constants import ARRAY_CLOSE, ARRAY_FIRST_SEPARATOR, ARRAY_OPEN, ARRAY_SEPARATOR
from core.errors import DocshiftParseError, DocshiftSinkError
from core.logging_config import get_logger
from core.types import ContainerShape, Document, FlowState, PipelineState
from output.file_sink import FileSink
from output.progress import TransformProgressTracker

_LOGGER = get_logger(__name__)


class PausableSource(Protocol):
    """Upstream producer the writer can hold back."""

    def pause(self) -> None: ...

    def resume(self) -> None: ...


def serialize_document(value: Any, indent: str) -> str:
    """Serialize a JSON value with the given indentation lead.

    Args:
        value: JSON-representable value.
        indent: Lead string per nesting level; empty for compact output.

    Returns:
        JSON text without a trailing newline.

    Raises:
        DocshiftParseError: If the value holds a number JSON cannot represent,
            such as one that overflowed to infinity while decoding.
    """
    try:
        if not indent:
            return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
        return json.dumps(value, ensure_ascii=False, allow_nan=False, indent=indent)
    except ValueError as error:
        raise DocshiftParseError(
            f"Failed to serialize document: {error}. "
            "Keep numbers in the source within the double-precision range."
        ) from error


def nest_in_array(serialized: str, indent: str) -> str:
    """Indent every line of a serialized document one level."""
    return indent + serialized.replace("\n", "\n" + indent)


class DocumentWriter:
    """Write a document stream to a sink with explicit flow control.

    Lifecycle: ``idle -> opened -> streaming <-> paused -> closed``, or
    ``error_closed`` after ``abort``. Leaving ``paused`` requires the sink's
    drain signal.
    """

    def __init__(
        self,
        sink: FileSink,
        indent: str,
        progress: TransformProgressTracker,
        upstream: PausableSource | None = None,
    ) -> None:
        self._sink = sink
        self._indent = indent
        self._progress = progress
        self._upstream = upstream
        self._shape: ContainerShape | None = None
        self._state: PipelineState = "idle"
        self._flow: FlowState = "streaming"
        self._written = 0
        self._pause_count = 0

    @property
    def state(self) -> PipelineState:
        """Current pipeline state."""
        return self._state

    @property
    def written_count(self) -> int:
        """Number of documents written so far."""
        return self._written

    @property
    def pause_count(self) -> int:
        """Number of times the upstream was paused for backpressure."""
        return self._pause_count

    def open(self, shape: ContainerShape) -> None:
        """Start output for a source of the given container shape.

        Args:
            shape: ``array`` emits an opening bracket, ``single`` emits nothing.

        Raises:
            DocshiftSinkError: If the writer was already opened or the sink failed.
        """
        if self._state != "idle":
            raise DocshiftSinkError(f"Writer for {self._sink.target_path} is already open.")
        self._shape = shape
        self._sink.add_drain_listener(self._on_drain)
        self._state = "opened"
        if shape == "array":
            self._emit(ARRAY_OPEN)

    async def write(self, document: Document, index: int) -> None:
        """Serialize one document.

        Args:
            document: Document to write.
            index: Zero-based position of the document in the output.

        Raises:
            DocshiftParseError: If the document holds a non-finite number.
            DocshiftSinkError: If the writer is not open or the sink failed.
        """
        if self._state not in ("opened", "streaming", "paused"):
            raise DocshiftSinkError(
                f"Cannot write to {self._sink.target_path} in state {self._state}."
            )
        await self._wait_while_paused()
        output = serialize_document(document, self._indent)
        if self._shape == "array":
            separator = ARRAY_SEPARATOR if index > 0 else ARRAY_FIRST_SEPARATOR
            output = separator + nest_in_array(output, self._indent)
        self._emit(output)
        self._written += 1
        self._progress.log_progress(self._written)

    async def close(self, count: int) -> None:
        """Finish the output and close the sink.

        Args:
            count: Total documents written, reported in the summary.

        Raises:
            DocshiftSinkError: If the final flush or close failed.
        """
        if self._state == "idle":
            raise DocshiftSinkError(f"Writer for {self._sink.target_path} was never opened.")
        self._progress.log_final(count)
        await self._wait_while_paused()
        if self._shape == "array":
            self._emit(ARRAY_CLOSE)
        await self._sink.close()
        self._state = "closed"
        _LOGGER.info(
            "target_saved",
            transformation=self._progress.transformation,
            count=count,
            target_path=str(self._sink.target_path),
        )

    async def abort(self) -> None:
        """Stop after a failure, leaving partial output in place."""
        self._state = "error_closed"
        await self._sink.release()

    def _emit(self, text: str) -> None:
        flushed = self._sink.write(text)
        if self._state == "opened":
            self._state = "streaming"
        if not flushed and self._flow == "streaming":
            self._flow = "paused"
            self._state = "paused"
            self._pause_count += 1
            if self._upstream is not None:
                self._upstream.pause()

    async def _wait_while_paused(self) -> None:
        if self._flow == "paused":
            await self._sink.drained()

    def _on_drain(self) -> None:
        if self._flow != "paused":
            return
        self._flow = "streaming"
        if self._state == "paused":
            self._state = "streaming"
        if self._upstream is not None:
            self._upstream.resume()
