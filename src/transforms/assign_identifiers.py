"""Identifier assignment transform.

This module gives every document of a JSON source a CouchDB-generated
``_id``. The whole source is loaded at once, identifiers are requested
concurrently through a shared batch coordinator, and the result is written
as one JSON array.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import httpx

from core.config import TransformSettings
from core.constants import ADD_IDS_TRANSFORMATION, IDENTIFIER_FIELD
from core.errors import DocshiftError, DocshiftParseError
from core.logging_config import get_logger
from core.types import Document, TransformRequest, TransformResult
from ingest.byte_source import read_source_bytes, require_source_file
from output.document_writer import serialize_document
from output.file_sink import FileSink
from store.identifier_coordinator import IdentifierCoordinator
from store.uuid_client import CouchUuidClient

_LOGGER = get_logger(__name__)


async def assign_identifiers(
    request: TransformRequest,
    settings: TransformSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TransformResult:
    """Assign fetched identifiers to every document lacking one.

    Args:
        request: Source and target paths.
        settings: Runtime settings including the CouchDB root URL.
        transport: Optional httpx transport, mainly for tests.

    Returns:
        Transformation result.

    Raises:
        DocshiftParseError: If the source is not valid JSON documents.
        DocshiftFetchError: If identifiers cannot be fetched.
        DocshiftSinkError: If the target cannot be written.
    """
    source_path = require_source_file(request.source_path)
    documents = parse_documents(await read_source_bytes(source_path), source_path)
    batch_size = min(len(documents), settings.identifier_batch_limit)
    _LOGGER.info(
        "identifiers_fetching",
        count=len(documents),
        batch_size=batch_size,
        couchdb_root_url=settings.couchdb_root_url,
    )
    async with CouchUuidClient(
        settings.couchdb_root_url,
        timeout=settings.request_timeout,
        transport=transport,
    ) as client:
        coordinator = IdentifierCoordinator(client.fetch_identifiers)
        assigned = await asyncio.gather(
            *(assign_identifier(document, coordinator, batch_size) for document in documents)
        )
    target_path = Path(request.target_path)
    await write_documents(list(assigned), target_path, settings)
    _LOGGER.info(
        "target_saved",
        transformation=ADD_IDS_TRANSFORMATION,
        count=len(assigned),
        identifiers_issued=coordinator.issued_count,
        target_path=str(target_path),
    )
    return TransformResult(
        transformation=ADD_IDS_TRANSFORMATION,
        document_count=len(assigned),
        target_path=str(target_path),
    )


async def assign_identifier(
    document: Document,
    coordinator: IdentifierCoordinator,
    batch_size: int,
) -> Document:
    """Give one document an identifier unless it already has one.

    Args:
        document: Document to update in place.
        coordinator: Shared identifier coordinator.
        batch_size: Batch size hint for fetches this call starts.

    Returns:
        The updated document, or the untouched one if it had an ``_id``.
    """
    existing = document.get(IDENTIFIER_FIELD)
    if existing:
        _LOGGER.warning("document_has_identifier", identifier=str(existing))
        return document
    document[IDENTIFIER_FIELD] = await coordinator.request_identifier(batch_size)
    return document


def parse_documents(payload: bytes, source_path: Path) -> list[Document]:
    """Parse a whole JSON source into a list of documents.

    Args:
        payload: Raw source bytes.
        source_path: Source path for error context.

    Returns:
        Documents in source order; a single object becomes a one-element list.

    Raises:
        DocshiftParseError: If the payload is not an object or array of objects.
    """
    try:
        parsed: Any = json.loads(payload)
    except ValueError as error:
        raise DocshiftParseError(
            f"Failed to parse source at {source_path}: {error}. Fix the JSON syntax and retry."
        ) from error
    if isinstance(parsed, dict):
        return [parsed]
    if not isinstance(parsed, list) or not all(isinstance(item, dict) for item in parsed):
        raise DocshiftParseError(
            f"Invalid source at {source_path}: expected a JSON object or an array of objects."
        )
    return parsed


async def write_documents(
    documents: list[Document],
    target_path: Path,
    settings: TransformSettings,
) -> None:
    """Serialize all documents as one JSON array and write them at once.

    Raises:
        DocshiftParseError: If a document holds a non-finite number.
        DocshiftSinkError: If the target cannot be written.
    """
    output = serialize_document(documents, settings.indent)
    sink = FileSink(target_path, settings.high_water_mark)
    await sink.open()
    try:
        sink.write(output)
        await sink.close()
    except DocshiftError:
        await sink.release()
        raise
