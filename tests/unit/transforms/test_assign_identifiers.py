"""Unit tests for the add-ids transform."""

from __future__ import annotations

import asyncio
import itertools
import json
from pathlib import Path

import httpx
import pytest

from core.config import TransformSettings
from core.errors import DocshiftFetchError, DocshiftParseError
from core.types import TransformRequest
from transforms.assign_identifiers import assign_identifiers, parse_documents
from tests.fixture_paths import fixture_path


class _CouchUuids:
    """MockTransport handler serving sequential uuids and recording counts."""

    def __init__(self) -> None:
        self.counts: list[int] = []
        self._counter = itertools.count()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        count = int(request.url.params["count"])
        self.counts.append(count)
        uuids = [f"uuid-{next(self._counter)}" for _ in range(count)]
        return httpx.Response(200, json={"uuids": uuids})


def _run(source: Path, target: Path, handler, settings: TransformSettings | None = None):
    request = TransformRequest("add-ids", str(source), str(target))
    transport = httpx.MockTransport(handler)
    return asyncio.run(assign_identifiers(request, settings or TransformSettings(), transport))


def test_assign_identifiers_gives_each_document_a_uuid(tmp_path: Path) -> None:
    """Documents without _id should receive fetched identifiers in order."""
    source_path = tmp_path / "in.json"
    source_path.write_text('[{"a": 1}, {"b": 2}, {"c": 3}]', encoding="utf-8")
    target_path = tmp_path / "out.json"
    couch = _CouchUuids()

    _run(source_path, target_path, couch)

    documents = json.loads(target_path.read_text(encoding="utf-8"))
    assert [document["_id"] for document in documents] == ["uuid-0", "uuid-1", "uuid-2"]
    assert couch.counts == [3]


def test_assign_identifiers_passes_through_existing_ids(tmp_path: Path) -> None:
    """Documents that already have _id should be left untouched."""
    target_path = tmp_path / "out.json"
    couch = _CouchUuids()

    _run(fixture_path("json/docs_array.json"), target_path, couch)

    documents = json.loads(target_path.read_text(encoding="utf-8"))
    assert [document["_id"] for document in documents] == ["a1", "b2", "uuid-0"]


def test_assign_identifiers_skips_fetch_when_all_have_ids(tmp_path: Path) -> None:
    """No identifier fetch should happen when every document has an _id."""
    source_path = tmp_path / "in.json"
    source_path.write_text('[{"_id": "x"}, {"_id": "y"}]', encoding="utf-8")
    couch = _CouchUuids()

    _run(source_path, tmp_path / "out.json", couch)

    assert couch.counts == []


def test_assign_identifiers_wraps_single_document(tmp_path: Path) -> None:
    """A single-document source should be written as a one-element array."""
    source_path = tmp_path / "in.json"
    source_path.write_text('{"title": "solo"}', encoding="utf-8")
    target_path = tmp_path / "out.json"

    result = _run(source_path, target_path, _CouchUuids())

    assert json.loads(target_path.read_text(encoding="utf-8")) == [
        {"title": "solo", "_id": "uuid-0"}
    ]
    assert result.document_count == 1


def test_assign_identifiers_caps_batch_size(tmp_path: Path) -> None:
    """Batches should not exceed the configured identifier limit."""
    source_path = tmp_path / "in.json"
    source_path.write_text(json.dumps([{"n": index} for index in range(7)]), encoding="utf-8")
    target_path = tmp_path / "out.json"
    couch = _CouchUuids()

    _run(source_path, target_path, couch, TransformSettings(identifier_batch_limit=3))

    documents = json.loads(target_path.read_text(encoding="utf-8"))
    assert len({document["_id"] for document in documents}) == 7
    assert couch.counts == [3, 3, 3]


def test_assign_identifiers_uses_indent(tmp_path: Path) -> None:
    """Output should follow the configured indentation."""
    source_path = tmp_path / "in.json"
    source_path.write_text('[{"a": 1}]', encoding="utf-8")
    target_path = tmp_path / "out.json"

    _run(source_path, target_path, _CouchUuids(), TransformSettings(indent="  "))

    assert target_path.read_text(encoding="utf-8") == (
        '[\n  {\n    "a": 1,\n    "_id": "uuid-0"\n  }\n]'
    )


def test_assign_identifiers_raises_when_couchdb_fails(tmp_path: Path) -> None:
    """A failing CouchDB should abort the run without writing the target."""
    source_path = tmp_path / "in.json"
    source_path.write_text('[{"a": 1}, {"b": 2}]', encoding="utf-8")
    target_path = tmp_path / "out.json"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "internal"})

    with pytest.raises(DocshiftFetchError):
        _run(source_path, target_path, handler)

    assert target_path.exists() is False


def test_parse_documents_rejects_scalars(tmp_path: Path) -> None:
    """Sources must hold objects."""
    with pytest.raises(DocshiftParseError):
        parse_documents(b"[1, 2]", tmp_path / "in.json")
