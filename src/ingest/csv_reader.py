"""Incremental CSV row reader.

This module decodes CSV bytes chunk by chunk into rows of cell strings.
Row 0 is the header; quoted cells may span chunks and lines.
"""

from __future__ import annotations

import codecs
import csv
import io
from contextlib import aclosing
from typing import AsyncGenerator

from core.constants import SOURCE_ENCODING
from core.errors import DocshiftParseError
from ingest.byte_source import FileByteSource

_QUOTE_CHAR = '"'


class CsvRowDecoder:
    """Push-mode CSV decoder for comma-separated, header-first sources."""

    def __init__(self) -> None:
        # utf-8-sig drops a leading byte order mark
        self._text_decoder = codecs.getincrementaldecoder(f"{SOURCE_ENCODING}-sig")()
        self._pending_line = ""
        self._record_lines: list[str] = []
        self._record_quotes = 0
        self._line_number = 0

    def feed(self, chunk: bytes) -> list[list[str]]:
        """Decode one chunk and return the rows it completes.

        Args:
            chunk: Next bytes of the CSV source.

        Returns:
            Completed, non-blank rows in source order.

        Raises:
            DocshiftParseError: If the bytes are not valid UTF-8 or CSV.
        """
        return self._consume(self._decode(chunk, final=False), final=False)

    def close(self) -> list[list[str]]:
        """Flush the final record after the last chunk.

        Returns:
            Remaining rows.

        Raises:
            DocshiftParseError: If a quoted field is left open.
        """
        rows = self._consume(self._decode(b"", final=True), final=True)
        if self._record_lines:
            raise DocshiftParseError(
                f"Failed to parse CSV at line {self._line_number}: unterminated quoted field. "
                "Close the quote and retry."
            )
        return rows

    def _decode(self, chunk: bytes, final: bool) -> str:
        try:
            return self._text_decoder.decode(chunk, final)
        except UnicodeDecodeError as error:
            raise DocshiftParseError(
                f"Failed to decode CSV source as {SOURCE_ENCODING}: {error.reason}. "
                "Save the file as UTF-8 and retry."
            ) from error

    def _consume(self, text: str, final: bool) -> list[list[str]]:
        rows: list[list[str]] = []
        lines = io.StringIO(self._pending_line + text, newline="").readlines()
        self._pending_line = ""
        # a trailing \r may be the first half of a \r\n split across chunks
        if not final and lines and not lines[-1].endswith("\n"):
            self._pending_line = lines.pop()
        for line in lines:
            self._line_number += 1
            self._record_lines.append(line)
            self._record_quotes += line.count(_QUOTE_CHAR)
            if self._record_quotes % 2 == 0:
                row = self._parse_record("".join(self._record_lines))
                self._record_lines = []
                self._record_quotes = 0
                if row:
                    rows.append(row)
        return rows

    def _parse_record(self, record: str) -> list[str]:
        try:
            return next(csv.reader([record], strict=True), [])
        except csv.Error as error:
            raise DocshiftParseError(
                f"Failed to parse CSV at line {self._line_number}: {error}. "
                "Fix the row quoting and retry."
            ) from error


async def read_csv_rows(source: FileByteSource) -> AsyncGenerator[tuple[int, list[str]], None]:
    """Read CSV rows from a chunked byte source.

    Args:
        source: Chunked source; pausing it holds back further reads.

    Yields:
        ``(index, row)`` pairs, index 0 being the header row.

    Raises:
        DocshiftParseError: If the source is not valid CSV.
        DocshiftSourceError: If the source cannot be read.
    """
    decoder = CsvRowDecoder()
    index = 0
    async with aclosing(source.chunks()) as chunks:
        async for chunk in chunks:
            for row in decoder.feed(chunk):
                yield index, row
                index += 1
    for row in decoder.close():
        yield index, row
        index += 1
