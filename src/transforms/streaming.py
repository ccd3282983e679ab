"""Shared streaming transform loop.

This module wires a decoder event stream through a per-document function
into a backpressure-aware writer. It is used by every transformation that
streams its output.
"""

from __future__ import annotations

from contextlib import aclosing
from pathlib import Path
from typing import AsyncGenerator, Callable

from core.config import TransformSettings
from core.errors import DocshiftError, DocshiftParseError
from core.logging_config import get_logger
from core.types import DecoderEvent, Document, DocumentEvent, ShapeEvent, TransformResult
from ingest.byte_source import FileByteSource
from output.document_writer import DocumentWriter
from output.file_sink import FileSink
from output.progress import TransformProgressTracker

_LOGGER = get_logger(__name__)

DocumentTransform = Callable[[Document], Document]


async def run_streaming_transform(
    transformation: str,
    events: AsyncGenerator[DecoderEvent, None],
    source: FileByteSource,
    target_path: Path,
    settings: TransformSettings,
    transform_document: DocumentTransform,
    progress_event: str = "documents_transformed",
) -> TransformResult:
    """Stream decoded documents through a transform into the target.

    Args:
        transformation: Transformation name for logs and the result.
        events: Decoder events produced from ``source``.
        source: Byte source paused while the target drains.
        target_path: Output file path.
        settings: Indentation, buffer, and progress settings.
        transform_document: Per-document function applied in source order.
        progress_event: Log event name for progress notifications.

    Returns:
        Transformation result with the written document count.

    Raises:
        DocshiftParseError: If the source is malformed.
        DocshiftSourceError: If the source cannot be read.
        DocshiftSinkError: If the target cannot be written.
    """
    progress = TransformProgressTracker(
        transformation=transformation,
        event_name=progress_event,
        interval=settings.progress_interval,
    )
    sink = FileSink(target_path, settings.high_water_mark)
    writer = DocumentWriter(sink, settings.indent, progress, upstream=source)
    await sink.open()
    count = 0
    try:
        async with aclosing(events) as stream:
            async for event in stream:
                if isinstance(event, ShapeEvent):
                    writer.open(event.shape)
                elif isinstance(event, DocumentEvent):
                    await writer.write(transform_document(event.document), count)
                    count += 1
        if writer.state == "idle":
            raise DocshiftParseError(f"Source {source.source_path} produced no output.")
        await writer.close(count)
    except DocshiftError as error:
        _LOGGER.error(
            "transform_failed",
            transformation=transformation,
            source_path=str(source.source_path),
            target_path=str(target_path),
            written=count,
            error=str(error),
        )
        await writer.abort()
        raise
    return TransformResult(
        transformation=transformation,
        document_count=count,
        target_path=str(target_path),
    )
