"""Public SDK surface for docshift.

This module provides a stable import path for library users.
It re-exports the transformation entry points and typed models.
"""

from __future__ import annotations

from core.config import TransformSettings
from core.errors import (
    DocshiftError,
    DocshiftFetchError,
    DocshiftParseError,
    DocshiftSinkError,
    DocshiftSourceError,
    DocshiftValidationError,
)
from core.types import TransformRequest, TransformResult
from ingest.document_decoder import DocumentDecoder
from store.identifier_coordinator import IdentifierCoordinator
from store.uuid_client import CouchUuidClient
from transforms.assign_identifiers import assign_identifiers
from transforms.clear_identifiers import clear_identifiers
from transforms.csv_to_json import csv_to_json
from transforms.registry import run_transformation, supported_transformations

__all__ = [
    "CouchUuidClient",
    "DocshiftError",
    "DocshiftFetchError",
    "DocshiftParseError",
    "DocshiftSinkError",
    "DocshiftSourceError",
    "DocshiftValidationError",
    "DocumentDecoder",
    "IdentifierCoordinator",
    "TransformRequest",
    "TransformResult",
    "TransformSettings",
    "assign_identifiers",
    "clear_identifiers",
    "csv_to_json",
    "run_transformation",
    "supported_transformations",
]
