"""Runtime configuration model for docshift.

This module owns option and environment variable parsing and validation.
Other modules consume a typed settings object instead of raw values.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import os
from urllib.parse import urlsplit, urlunsplit

from core.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_COUCHDB_URL,
    DEFAULT_HIGH_WATER_MARK,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    MAX_IDENTIFIER_BATCH_SIZE,
    TAB_INDENT,
    TABS_INDENT_OPTION,
)
from core.errors import DocshiftValidationError


@dataclass(frozen=True)
class TransformSettings:
    """Validated runtime settings for one transformation run.

    Attributes:
        indent: Lead string used for each indentation level, empty for compact output.
        couchdb_root_url: CouchDB instance root URL used for ``_uuids`` requests.
        chunk_size: Number of bytes read from the source per chunk.
        high_water_mark: Buffered target bytes at which the sink reports full.
        progress_interval: Documents between progress notifications.
        identifier_batch_limit: Upper bound for identifiers fetched per request.
        request_timeout: Timeout in seconds for CouchDB requests.
    """

    indent: str = ""
    couchdb_root_url: str = DEFAULT_COUCHDB_URL
    chunk_size: int = DEFAULT_CHUNK_SIZE
    high_water_mark: int = DEFAULT_HIGH_WATER_MARK
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL
    identifier_batch_limit: int = MAX_IDENTIFIER_BATCH_SIZE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "TransformSettings":
        """Build settings from process environment variables.

        Returns:
            A validated settings object.

        Raises:
            DocshiftValidationError: If environment values are invalid.
        """
        chunk_size = _parse_positive_int(
            "DOCSHIFT_CHUNK_SIZE", os.getenv("DOCSHIFT_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE))
        )
        high_water_mark = _parse_positive_int(
            "DOCSHIFT_HIGH_WATER_MARK",
            os.getenv("DOCSHIFT_HIGH_WATER_MARK", str(DEFAULT_HIGH_WATER_MARK)),
        )
        request_timeout = _parse_timeout(
            os.getenv("DOCSHIFT_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT_SECONDS))
        )
        return cls(
            chunk_size=chunk_size,
            high_water_mark=high_water_mark,
            request_timeout=request_timeout,
        )

    def with_options(self, indent: str | None, url: str | None) -> "TransformSettings":
        """Return settings updated from command options.

        Args:
            indent: Raw ``--indent`` value: integer, ``tabs``, or None.
            url: Raw ``--url`` value or None for the default instance.

        Returns:
            Settings with indentation and CouchDB root applied.

        Raises:
            DocshiftValidationError: If the indent or URL is invalid.
        """
        return replace(
            self,
            indent=parse_indent(indent),
            couchdb_root_url=normalize_couchdb_url(url or DEFAULT_COUCHDB_URL),
        )


def parse_indent(raw_value: str | None) -> str:
    """Convert an ``--indent`` option into an indentation lead string.

    Args:
        raw_value: Number of spaces, ``tabs``, or None.

    Returns:
        ``"\\t"`` for tabs, N spaces for a number, empty string otherwise.

    Raises:
        DocshiftValidationError: If the value is neither a number nor ``tabs``.
    """
    if raw_value is None:
        return ""
    if raw_value == TABS_INDENT_OPTION:
        return TAB_INDENT
    try:
        width = int(raw_value, 10)
    except ValueError as error:
        raise DocshiftValidationError(
            f"Invalid --indent value '{raw_value}': "
            'the --indent option must be a number or "tabs".'
        ) from error
    return " " * max(width, 0)


def normalize_couchdb_url(raw_url: str) -> str:
    """Reduce a CouchDB URL to its instance root.

    ``_uuids`` lives at the instance level, not the database level, so any
    database path, query, or fragment is dropped.

    Args:
        raw_url: URL given on the command line.

    Returns:
        ``scheme://host[:port]`` root URL.

    Raises:
        DocshiftValidationError: If the URL has no http(s) scheme or host.
    """
    parts = urlsplit(raw_url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise DocshiftValidationError(
            f"Invalid --url value '{raw_url}': expected an http(s) URL such as "
            f"{DEFAULT_COUCHDB_URL}."
        )
    return urlunsplit((parts.scheme, parts.netloc, "", "", ""))


def _parse_positive_int(name: str, raw_value: str) -> int:
    try:
        value = int(raw_value)
    except ValueError as error:
        raise DocshiftValidationError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a positive number."
        ) from error
    if value <= 0:
        raise DocshiftValidationError(
            f"Invalid {name} value: expected a positive integer, got {value}."
        )
    return value


def _parse_timeout(raw_value: str) -> float:
    try:
        value = float(raw_value)
    except ValueError as error:
        raise DocshiftValidationError(
            "Invalid DOCSHIFT_REQUEST_TIMEOUT value: "
            f"expected number of seconds, got '{raw_value}'."
        ) from error
    if value <= 0:
        raise DocshiftValidationError(
            f"Invalid DOCSHIFT_REQUEST_TIMEOUT value: expected a positive number, got {value}."
        )
    return value
