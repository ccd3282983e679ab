"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import TransformSettings, normalize_couchdb_url, parse_indent
from core.constants import DEFAULT_CHUNK_SIZE
from core.errors import DocshiftValidationError


def test_from_env_reads_chunk_size(monkeypatch: pytest.MonkeyPatch) -> None:
    """Settings should read the chunk size override from environment."""
    monkeypatch.setenv("DOCSHIFT_CHUNK_SIZE", "512")

    settings = TransformSettings.from_env()

    assert settings.chunk_size == 512


def test_from_env_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Settings should fall back to defaults when nothing is set."""
    monkeypatch.delenv("DOCSHIFT_CHUNK_SIZE", raising=False)

    settings = TransformSettings.from_env()

    assert settings.chunk_size == DEFAULT_CHUNK_SIZE


def test_from_env_raises_for_invalid_high_water_mark(monkeypatch: pytest.MonkeyPatch) -> None:
    """Settings should fail for a non-numeric high-water mark."""
    monkeypatch.setenv("DOCSHIFT_HIGH_WATER_MARK", "lots")

    with pytest.raises(DocshiftValidationError):
        TransformSettings.from_env()

    assert os.getenv("DOCSHIFT_HIGH_WATER_MARK") == "lots"


def test_from_env_raises_for_non_positive_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Settings should reject a zero request timeout."""
    monkeypatch.setenv("DOCSHIFT_REQUEST_TIMEOUT", "0")

    with pytest.raises(DocshiftValidationError):
        TransformSettings.from_env()


@pytest.mark.parametrize(
    ("raw_value", "expected"),
    [(None, ""), ("0", ""), ("2", "  "), ("4", "    "), ("tabs", "\t")],
)
def test_parse_indent_builds_lead_string(raw_value: str | None, expected: str) -> None:
    """Indent option should map onto the per-level lead string."""
    assert parse_indent(raw_value) == expected


def test_parse_indent_rejects_words() -> None:
    """Indent option must be a number or tabs."""
    with pytest.raises(DocshiftValidationError, match="number or"):
        parse_indent("wide")


def test_normalize_couchdb_url_drops_database_path() -> None:
    """CouchDB URL should be reduced to its instance root."""
    root_url = normalize_couchdb_url("http://admin:pw@db.example:5984/mydb/_design/app?x=1#top")

    assert root_url == "http://admin:pw@db.example:5984"


def test_normalize_couchdb_url_rejects_non_http() -> None:
    """Non-http URLs should be rejected before any request."""
    with pytest.raises(DocshiftValidationError):
        normalize_couchdb_url("ftp://db.example/")


def test_with_options_applies_indent_and_url() -> None:
    """Command options should be folded into settings."""
    settings = TransformSettings().with_options("tabs", "https://couch.example/db")

    assert (settings.indent, settings.couchdb_root_url) == ("\t", "https://couch.example")
