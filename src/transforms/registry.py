"""Transformation lookup and execution.

This module maps transformation names onto their operations and runs
one transformation on a fresh event loop.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from core.config import TransformSettings
from core.constants import (
    ADD_IDS_TRANSFORMATION,
    CLEAR_IDS_TRANSFORMATION,
    CSV_TRANSFORMATION,
)
from core.errors import DocshiftValidationError
from core.types import TransformRequest, TransformResult
from transforms.assign_identifiers import assign_identifiers
from transforms.clear_identifiers import clear_identifiers
from transforms.csv_to_json import csv_to_json

TransformOperation = Callable[[TransformRequest, TransformSettings], Awaitable[TransformResult]]

TRANSFORMATIONS: dict[str, TransformOperation] = {
    CLEAR_IDS_TRANSFORMATION: clear_identifiers,
    ADD_IDS_TRANSFORMATION: assign_identifiers,
    CSV_TRANSFORMATION: csv_to_json,
}

TRANSFORMATION_SUMMARIES: dict[str, str] = {
    CLEAR_IDS_TRANSFORMATION: "Clear the _id property of each document in the SOURCE file",
    ADD_IDS_TRANSFORMATION: (
        "Fetch UUIDs from a CouchDB instance and use as _ids for each doc in the SOURCE file"
    ),
    CSV_TRANSFORMATION: (
        "Convert a .csv file to JSON, one object per row keyed by the first row's values"
    ),
}


def supported_transformations() -> tuple[str, ...]:
    """Return supported transformation names."""
    return tuple(TRANSFORMATIONS)


def resolve_transformation(name: str | None) -> TransformOperation:
    """Look up a transformation by name.

    Args:
        name: Transformation name from the command line.

    Returns:
        The transformation coroutine function.

    Raises:
        DocshiftValidationError: If the name is missing or unknown.
    """
    if not name:
        raise DocshiftValidationError("No transformation specified.")
    operation = TRANSFORMATIONS.get(name)
    if operation is None:
        raise DocshiftValidationError(
            f"Unknown transformation: {name}. "
            f"Supported transformations: {', '.join(supported_transformations())}."
        )
    return operation


def validate_request(request: TransformRequest) -> TransformOperation:
    """Check a request before any I/O and return its operation.

    Raises:
        DocshiftValidationError: If source, target, or transformation is missing or unknown.
    """
    if not request.source_path:
        raise DocshiftValidationError("No SOURCE file.")
    if not request.target_path:
        raise DocshiftValidationError("No TARGET file.")
    return resolve_transformation(request.transformation)


async def run_transformation_async(
    request: TransformRequest,
    settings: TransformSettings,
) -> TransformResult:
    """Validate and run one transformation on the current event loop."""
    operation = validate_request(request)
    return await operation(request, settings)


def run_transformation(request: TransformRequest, settings: TransformSettings) -> TransformResult:
    """Validate and run one transformation to completion.

    Args:
        request: Transformation name with source and target paths.
        settings: Runtime settings.

    Returns:
        Transformation result.

    Raises:
        DocshiftError: If validation, parsing, fetching, or writing fails.
    """
    operation = validate_request(request)
    return asyncio.run(operation(request, settings))
