# src/rowstream/plugins/decoders/csv_decoder.py
"""CSV decoder for rowstream.

Decodes delimited text from byte chunks using csv.reader over an incremental
text stream, so quoted fields may contain separators and embedded newlines
even when a chunk boundary falls inside them.
"""

import csv
import ctypes
import io
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from pydantic import field_validator

from rowstream.contracts import DecodeError, Row, RowTooLargeError
from rowstream.plugins.config_base import TabularDecoderConfig
from rowstream.plugins.decoders.base import BaseDecoder, RowAssembler

# Largest value csv.field_size_limit accepts (a C long) on every platform
_FIELD_SIZE_LIMIT = ctypes.c_ulong(-1).value // 2


class CsvDecoderConfig(TabularDecoderConfig):
    """Configuration for the CSV decoder.

    Inherits headers, strict, skip_lines, encoding and max_row_bytes from
    TabularDecoderConfig. The transforms are plain callables and can only
    be set from code, not from a settings file.
    """

    separator: str = ","
    quote: str = '"'
    escape: str | None = None
    map_headers: Callable[[str, int], str | None] | None = None
    map_values: Callable[[str, int, Any], Any] | None = None

    @field_validator("separator", "quote", "escape")
    @classmethod
    def validate_single_character(cls, v: str | None) -> str | None:
        if v is not None and len(v) != 1:
            raise ValueError(f"must be a single character, got {v!r}")
        return v


class _ChunkReader(io.RawIOBase):
    """Read-only raw stream over an iterable of byte chunks.

    Pulls the next chunk only when the previous one is used up.
    """

    def __init__(self, chunks: Iterable[bytes | str], encoding: str) -> None:
        super().__init__()
        self._chunks = iter(chunks)
        self._encoding = encoding
        self._pending = memoryview(b"")

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        while not self._pending:
            try:
                chunk = next(self._chunks)
            except StopIteration:
                return 0
            if isinstance(chunk, str):
                chunk = chunk.encode(self._encoding)
            self._pending = memoryview(chunk)

        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


class CsvDecoder(BaseDecoder):
    """Decode delimited text into rows.

    Config options:
        separator: Field separator (default: ",")
        quote: Quote character (default: '"')
        escape: Escape character inside quoted fields (default: doubled quote)
        encoding: Text encoding (default: "utf-8")
        headers: None (first record), a list (None entries drop columns), or False
        skip_lines: Number of leading records discarded before the header
        strict: Record cell count must match the header length
        map_headers: ``(header, index) -> str | None``; None drops the column
        map_values: ``(header, index, value) -> value``
        max_row_bytes: Maximum encoded size of one record
    """

    name = "csv"
    config_class = CsvDecoderConfig
    _config: CsvDecoderConfig

    def decode(self, chunks: Iterable[bytes]) -> Iterator[Row]:
        """Decode byte chunks into rows.

        Blank records are skipped. Values are strings unless map_values
        converts them.

        Raises:
            DecodeError: On CSV syntax errors, undecodable bytes, a strict-mode
                length mismatch, or a record exceeding max_row_bytes.
        """
        config = self._config
        raw = _ChunkReader(chunks, config.encoding)
        # newline="" is required for embedded newlines in quoted fields
        text = io.TextIOWrapper(io.BufferedReader(raw), encoding=config.encoding, newline="")
        # Record size is bounded by max_row_bytes, not by the csv module default
        csv.field_size_limit(_FIELD_SIZE_LIMIT)
        reader = csv.reader(text, **self._dialect_options())

        # Skipped records are preamble (comments, version lines) and may not be
        # valid CSV, so parse failures there are not surfaced. Undecodable bytes
        # still are: the text stream cannot resynchronize after them.
        for _ in range(config.skip_lines):
            try:
                if next(reader, None) is None:
                    return
            except csv.Error:
                continue
            except UnicodeDecodeError as e:
                raise self._encoding_error(e, reader.line_num + 1) from e

        assembler = RowAssembler(
            self._supplied_headers(),
            strict=config.effective_strict,
            map_values=config.map_values,
        )
        if config.headers is None:
            header_record = self._next_record(reader)
            if header_record is None:
                return  # Empty source
            assembler.headers = self._map_headers(header_record)

        while True:
            values = self._next_record(reader)
            if values is None:
                return
            self._check_size(values, reader.line_num)
            yield assembler.assemble(values, reader.line_num)

    def _dialect_options(self) -> dict[str, Any]:
        config = self._config
        escape = config.escape if config.escape != config.quote else None
        return {
            "delimiter": config.separator,
            "quotechar": config.quote,
            "escapechar": escape,
            "doublequote": escape is None,
        }

    def _supplied_headers(self) -> list[str | None] | None:
        headers = self._config.headers
        if not isinstance(headers, list):
            return None
        return self._map_headers(headers)

    def _map_headers(self, headers: list[str | None] | list[str]) -> list[str | None]:
        map_headers = self._config.map_headers
        if map_headers is None:
            return list(headers)
        return [None if header is None else map_headers(header, index) for index, header in enumerate(headers)]

    def _next_record(self, reader: Any) -> list[str] | None:
        """Read the next non-blank record, or None at end of input."""
        while True:
            try:
                values: list[str] = next(reader)
            except StopIteration:
                return None
            except csv.Error as e:
                raise DecodeError(f"CSV parse error: {e}", line_number=reader.line_num) from e
            except UnicodeDecodeError as e:
                raise self._encoding_error(e, reader.line_num + 1) from e
            if values:
                return values

    def _encoding_error(self, error: UnicodeDecodeError, line_number: int) -> DecodeError:
        return DecodeError(f"invalid {self._config.encoding} encoding: {error}", line_number=line_number)

    def _check_size(self, values: list[str], line_number: int) -> None:
        max_row_bytes = self._config.max_row_bytes
        if max_row_bytes is None:
            return
        if len(self._config.separator.join(values).encode(self._config.encoding)) > max_row_bytes:
            raise RowTooLargeError(max_row_bytes, line_number=line_number)
