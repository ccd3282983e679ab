"""Shared typed models.

This module defines immutable data models used by the ingest, store,
output, and transform layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

Document = dict[str, Any]
ContainerShape = Literal["single", "array"]
FlowState = Literal["streaming", "paused"]
PipelineState = Literal["idle", "opened", "streaming", "paused", "closed", "error_closed"]


@dataclass(frozen=True)
class ShapeEvent:
    """Container shape signal, emitted once before any document.

    Attributes:
        shape: ``array`` for a top-level JSON array, ``single`` otherwise.
    """

    shape: ContainerShape


@dataclass(frozen=True)
class DocumentEvent:
    """One completed top-level document.

    Attributes:
        document: Decoded JSON object in source key order.
    """

    document: Document


@dataclass(frozen=True)
class EndEvent:
    """Terminal event for a fully decoded source."""


DecoderEvent = Union[ShapeEvent, DocumentEvent, EndEvent]


@dataclass(frozen=True)
class TransformRequest:
    """One transformation invocation.

    Attributes:
        transformation: Transformation name, e.g. ``clear-ids``.
        source_path: Input file path.
        target_path: Output file path.
    """

    transformation: str
    source_path: str
    target_path: str


@dataclass(frozen=True)
class TransformResult:
    """Outcome of a completed transformation.

    Attributes:
        transformation: Transformation name that ran.
        document_count: Number of documents written to the target.
        target_path: Output file path.
    """

    transformation: str
    document_count: int
    target_path: str
