"""Unit tests for the incremental JSON document decoder."""

from __future__ import annotations

import asyncio

import pytest

from core.errors import DocshiftParseError
from core.types import DecoderEvent, DocumentEvent, EndEvent, ShapeEvent
from ingest.byte_source import FileByteSource
from ingest.document_decoder import DocumentDecoder, decode_documents
from tests.fixture_paths import fixture_path


def _decode_in_chunks(payload: bytes, chunk_size: int) -> list[DecoderEvent]:
    decoder = DocumentDecoder()
    events: list[DecoderEvent] = []
    for start in range(0, len(payload), chunk_size):
        events.extend(decoder.feed(payload[start : start + chunk_size]))
    events.extend(decoder.close())
    return events


def _documents(events: list[DecoderEvent]) -> list[dict]:
    return [event.document for event in events if isinstance(event, DocumentEvent)]


def test_decoder_emits_array_shape_before_documents() -> None:
    """Array sources should signal array shape first, then each element."""
    events = _decode_in_chunks(b'[{"a": 1}, {"b": 2}]', chunk_size=3)

    assert events == [
        ShapeEvent(shape="array"),
        DocumentEvent(document={"a": 1}),
        DocumentEvent(document={"b": 2}),
        EndEvent(),
    ]


def test_decoder_emits_single_shape_for_object() -> None:
    """A top-level object should decode as one single-shaped document."""
    events = _decode_in_chunks(b'{"_id": "x", "nested": {"k": [1, 2]}}', chunk_size=5)

    assert events == [
        ShapeEvent(shape="single"),
        DocumentEvent(document={"_id": "x", "nested": {"k": [1, 2]}}),
        EndEvent(),
    ]


def test_decoder_emits_document_as_soon_as_it_closes() -> None:
    """A document should be available before the rest of the array arrives."""
    decoder = DocumentDecoder()

    events = list(decoder.feed(b'[{"a": 1}, {"b"'))

    assert events == [ShapeEvent(shape="array"), DocumentEvent(document={"a": 1})]


def test_decoder_result_is_independent_of_chunk_size() -> None:
    """Chunk boundaries should never change the decoded documents."""
    payload = fixture_path("json/docs_array.json").read_bytes()
    expected = _documents(_decode_in_chunks(payload, chunk_size=len(payload)))

    results = [_documents(_decode_in_chunks(payload, size)) for size in (1, 2, 7, 64)]

    assert all(result == expected for result in results)


def test_decoder_preserves_key_order_and_floats() -> None:
    """Documents should keep source key order and decode decimals as floats."""
    events = _decode_in_chunks(b'[{"z": 1.5, "a": null, "m": true}]', chunk_size=4)

    document = _documents(events)[0]

    assert list(document.items()) == [("z", 1.5), ("a", None), ("m", True)]


def test_decoder_handles_empty_array() -> None:
    """An empty array should produce the shape and end events only."""
    events = _decode_in_chunks(b"[ ]", chunk_size=1)

    assert events == [ShapeEvent(shape="array"), EndEvent()]


def test_decoder_raises_for_malformed_json_after_valid_documents() -> None:
    """Documents before a syntax error should be yielded, then the error raised."""
    decoder = DocumentDecoder()
    payload = fixture_path("json/malformed.json").read_bytes()
    seen: list[DecoderEvent] = []

    with pytest.raises(DocshiftParseError):
        for start in range(len(payload)):
            seen.extend(decoder.feed(payload[start : start + 1]))
        seen.extend(decoder.close())

    assert seen == [ShapeEvent(shape="array"), DocumentEvent(document={"a": 1})]


def test_decoder_raises_for_truncated_source() -> None:
    """A source that ends inside a document should fail on close."""
    decoder = DocumentDecoder()
    list(decoder.feed(b'[{"a": 1}, {"b": 2'))

    with pytest.raises(DocshiftParseError):
        list(decoder.close())


def test_decoder_raises_for_empty_source() -> None:
    """An empty source holds no document and should fail."""
    decoder = DocumentDecoder()

    with pytest.raises(DocshiftParseError):
        list(decoder.close())


def test_decoder_rejects_top_level_scalar() -> None:
    """A bare number is neither a document nor an array of documents."""
    with pytest.raises(DocshiftParseError):
        _decode_in_chunks(b"42 ", chunk_size=8)


def test_decoder_rejects_non_object_array_element() -> None:
    """Array elements must be objects."""
    with pytest.raises(DocshiftParseError, match="element 1"):
        _decode_in_chunks(b'[{"a": 1}, 2]', chunk_size=8)


def test_decode_documents_reads_file_source() -> None:
    """The async wrapper should stream events from a chunked file source."""
    source = FileByteSource(fixture_path("json/single_doc.json"), chunk_size=8)

    async def collect() -> list[DecoderEvent]:
        return [event async for event in decode_documents(source)]

    events = asyncio.run(collect())

    assert events[0] == ShapeEvent(shape="single") and events[-1] == EndEvent()


def test_decoder_keeps_objects_under_empty_keys_inside_single_document() -> None:
    """A nested object under an empty-string key should not end the document."""
    events = _decode_in_chunks(b'{"": {"x": 1}, "b": [{"": {}}], "c": 2}', chunk_size=4)

    assert _documents(events) == [{"": {"x": 1}, "b": [{"": {}}], "c": 2}]


def test_decoder_keeps_nested_arrays_inside_array_elements() -> None:
    """Nested containers in array elements should stay inside their document."""
    events = _decode_in_chunks(b'[{"items": [[1], {"": []}]}, {"b": 2}]', chunk_size=5)

    assert _documents(events) == [{"items": [[1], {"": []}]}, {"b": 2}]
