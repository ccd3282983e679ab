"""Identifier clearing transform.

This module strips the ``_id`` field from every document of a JSON
source while streaming it to the target.
"""

from __future__ import annotations

from pathlib import Path

from core.config import TransformSettings
from core.constants import CLEAR_IDS_TRANSFORMATION, IDENTIFIER_FIELD
from core.types import Document, TransformRequest, TransformResult
from ingest.byte_source import FileByteSource, require_source_file
from ingest.document_decoder import decode_documents
from transforms.streaming import run_streaming_transform


def clear_identifier(document: Document) -> Document:
    """Remove the identifier field from a document in place.

    Args:
        document: Decoded document.

    Returns:
        The same document without ``_id``.
    """
    document.pop(IDENTIFIER_FIELD, None)
    return document


async def clear_identifiers(
    request: TransformRequest,
    settings: TransformSettings,
) -> TransformResult:
    """Stream a JSON source to the target with identifiers removed.

    Args:
        request: Source and target paths.
        settings: Runtime settings.

    Returns:
        Transformation result.
    """
    source_path = require_source_file(request.source_path)
    source = FileByteSource(source_path, settings.chunk_size)
    return await run_streaming_transform(
        CLEAR_IDS_TRANSFORMATION,
        decode_documents(source),
        source,
        Path(request.target_path),
        settings,
        clear_identifier,
    )
