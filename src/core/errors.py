"""docshift exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class DocshiftError(Exception):
    """Base exception for all docshift failures."""


class DocshiftValidationError(DocshiftError):
    """Raised for invalid command arguments or runtime configuration."""


class DocshiftParseError(DocshiftError):
    """Raised for malformed JSON or CSV source content."""


class DocshiftSourceError(DocshiftError):
    """Raised when the source file cannot be read."""


class DocshiftSinkError(DocshiftError):
    """Raised when the target file cannot be written."""


class DocshiftFetchError(DocshiftError):
    """Raised when the remote identifier source fails or answers badly."""
