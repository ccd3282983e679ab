"""CSV to JSON transform.

This module converts each CSV data row into a JSON object keyed by the
header row, dropping empty cells, and streams the objects as a JSON array.
"""

from __future__ import annotations

from contextlib import aclosing
from pathlib import Path
from typing import AsyncGenerator, Sequence

from core.config import TransformSettings
from core.constants import CSV_TRANSFORMATION
from core.types import (
    DecoderEvent,
    Document,
    DocumentEvent,
    EndEvent,
    ShapeEvent,
    TransformRequest,
    TransformResult,
)
from ingest.byte_source import FileByteSource, require_source_file
from ingest.csv_reader import read_csv_rows
from transforms.streaming import run_streaming_transform


def row_to_document(headings: Sequence[str], row: Sequence[str]) -> Document:
    """Zip a header row with a data row.

    Cells with an empty value, cells beyond the header width, and cells
    under an empty heading are left out.

    Args:
        headings: Field names from the header row.
        row: Cell values of one data row.

    Returns:
        Sparse document in header order.
    """
    return {
        heading: value
        for heading, value in zip(headings, row)
        if heading and value != ""
    }


async def csv_documents(source: FileByteSource) -> AsyncGenerator[DecoderEvent, None]:
    """Adapt CSV rows into decoder events, always shaped as an array.

    Args:
        source: Chunked CSV source.

    Yields:
        An array shape event, one document per data row, then the end event.
    """
    yield ShapeEvent(shape="array")
    headings: list[str] | None = None
    async with aclosing(read_csv_rows(source)) as rows:
        async for index, row in rows:
            if index == 0:
                headings = row
                continue
            yield DocumentEvent(document=row_to_document(headings or [], row))
    yield EndEvent()


def _keep_document(document: Document) -> Document:
    return document


async def csv_to_json(request: TransformRequest, settings: TransformSettings) -> TransformResult:
    """Stream a CSV source to the target as a JSON array of objects.

    Args:
        request: Source and target paths.
        settings: Runtime settings.

    Returns:
        Transformation result counting data rows.
    """
    source_path = require_source_file(request.source_path)
    source = FileByteSource(source_path, settings.chunk_size)
    return await run_streaming_transform(
        CSV_TRANSFORMATION,
        csv_documents(source),
        source,
        Path(request.target_path),
        settings,
        _keep_document,
        progress_event="rows_transformed",
    )
