"""Incremental JSON document decoder.

This module turns a chunked byte stream into a container shape signal
followed by completed top-level documents. It is built on ijson's push
interface, so only the document currently being assembled is held in memory.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import AsyncGenerator, Iterator

import ijson

from core.errors import DocshiftParseError
from core.types import ContainerShape, DecoderEvent, DocumentEvent, EndEvent, ShapeEvent
from ingest.byte_source import FileByteSource

_CONTAINER_START_EVENTS = ("start_map", "start_array")
_CONTAINER_END_EVENTS = ("end_map", "end_array")


class DocumentDecoder:
    """Push-mode decoder for one JSON document or an array of documents.

    ``feed`` and ``close`` return lazy iterators; a parse failure is raised
    after the documents completed before it have been yielded.
    """

    def __init__(self) -> None:
        self._events = ijson.sendable_list()
        self._parser = ijson.parse_coro(self._events, use_float=True)
        self._shape: ContainerShape | None = None
        self._builder: ijson.ObjectBuilder | None = None
        self._depth = 0
        self._document_index = 0
        self._closed = False

    @property
    def shape(self) -> ContainerShape | None:
        """Container shape once the first structural token was seen."""
        return self._shape

    def feed(self, chunk: bytes) -> Iterator[DecoderEvent]:
        """Decode one chunk of source bytes.

        Args:
            chunk: Next bytes of the source.

        Yields:
            Shape and document events completed by this chunk.

        Raises:
            DocshiftParseError: If the bytes are not valid JSON documents.
        """
        if self._closed:
            raise DocshiftParseError("Cannot feed a closed document decoder.")
        try:
            self._parser.send(chunk)
        except (ijson.JSONError, UnicodeDecodeError) as error:
            self._closed = True
            yield from self._take_events()
            raise _parse_error(error, self._document_index) from error
        yield from self._take_events()

    def close(self) -> Iterator[DecoderEvent]:
        """Finish decoding after the last chunk.

        Yields:
            Any remaining document events, then the end event.

        Raises:
            DocshiftParseError: If the source is empty or truncated.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._parser.close()
        except (ijson.JSONError, UnicodeDecodeError) as error:
            yield from self._take_events()
            raise _parse_error(error, self._document_index) from error
        yield from self._take_events()
        if self._shape is None:
            raise DocshiftParseError(
                "Failed to parse source: no JSON document found. "
                "Provide a JSON object or an array of objects."
            )
        yield EndEvent()

    def _take_events(self) -> Iterator[DecoderEvent]:
        pending = list(self._events)
        del self._events[:]
        for _prefix, event, value in pending:
            decoded = self._handle_event(event, value)
            if decoded is not None:
                yield decoded

    def _handle_event(self, event: str, value: object) -> DecoderEvent | None:
        if self._shape is None:
            return self._start_container(event)
        if self._builder is None and event == "end_array":
            return None
        if self._builder is None:
            if event != "start_map":
                raise DocshiftParseError(
                    f"Failed to parse source: array element {self._document_index} "
                    "is not a JSON object. Every document must be an object."
                )
            self._builder = ijson.ObjectBuilder()
        self._builder.event(event, value)
        if event in _CONTAINER_START_EVENTS:
            self._depth += 1
        elif event in _CONTAINER_END_EVENTS:
            self._depth -= 1
        if self._depth == 0:
            document = self._builder.value
            self._builder = None
            self._document_index += 1
            return DocumentEvent(document=document)
        return None

    def _start_container(self, event: str) -> DecoderEvent:
        if event not in _CONTAINER_START_EVENTS:
            raise DocshiftParseError(
                "Failed to parse source: top-level value is not a JSON object or array. "
                "Provide a JSON object or an array of objects."
            )
        if event == "start_array":
            self._shape = "array"
        else:
            self._shape = "single"
            self._builder = ijson.ObjectBuilder()
            self._builder.event(event, None)
            self._depth = 1
        return ShapeEvent(shape=self._shape)


async def decode_documents(source: FileByteSource) -> AsyncGenerator[DecoderEvent, None]:
    """Decode a byte source into shape, document, and end events.

    Args:
        source: Chunked source; pausing it holds back further reads.

    Yields:
        Decoder events in source order.

    Raises:
        DocshiftParseError: If the source is not valid JSON documents.
        DocshiftSourceError: If the source cannot be read.
    """
    decoder = DocumentDecoder()
    async with aclosing(source.chunks()) as chunks:
        async for chunk in chunks:
            for event in decoder.feed(chunk):
                yield event
    for event in decoder.close():
        yield event


def _parse_error(error: Exception, document_index: int) -> DocshiftParseError:
    return DocshiftParseError(
        f"Failed to parse source near document {document_index}: {error}. "
        "Fix the JSON syntax and retry."
    )
