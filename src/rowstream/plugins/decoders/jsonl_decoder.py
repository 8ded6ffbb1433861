# src/rowstream/plugins/decoders/jsonl_decoder.py
"""JSON lines decoder for rowstream.

Decodes newline-delimited JSON (https://jsonlines.org/) from arbitrary byte
chunks. Chunks may split a line at any byte, including between the ``\\r``
and ``\\n`` of a CRLF terminator; the framer carries the partial line across
chunk boundaries and flushes a final unterminated line at end of input.

Tabular mode (default): every line is a JSON array. Unless headers are
supplied, the first line that is not skipped or a comment must be an array
of strings and becomes the header; later lines are zipped against it.

Object mode (``tabular: false``): every line is a JSON object which becomes
the row as-is. A ``null`` line is a decode error like any other
non-object; a Row is always a mapping.

NOTE: Non-standard JSON constants (NaN, Infinity, -Infinity) are rejected at
parse time; they cannot be fingerprinted.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from typing import Any

from pydantic import field_validator, model_validator

from rowstream.contracts import DecodeError, Row, RowTooLargeError
from rowstream.plugins.config_base import TabularDecoderConfig
from rowstream.plugins.decoders.base import BaseDecoder, RowAssembler

_CR = b"\r"
_LF = b"\n"


def _reject_nonfinite_constant(value: str) -> None:
    """Reject non-standard JSON constants (NaN, Infinity, -Infinity).

    Passed to json.loads via parse_constant.

    Raises:
        ValueError: Always - these constants are not allowed
    """
    raise ValueError(f"Non-standard JSON constant '{value}' not allowed. Use null for missing values, not NaN/Infinity.")


class JsonLinesDecoderConfig(TabularDecoderConfig):
    """Configuration for the JSON lines decoder.

    Inherits headers, strict, skip_lines, encoding and max_row_bytes from
    TabularDecoderConfig.
    """

    newline: str | None = None
    skip_comments: bool | str = False
    tabular: bool = True

    @field_validator("newline")
    @classmethod
    def validate_newline(cls, v: str | None) -> str | None:
        if v is not None and len(v.encode("utf-8")) != 1:
            raise ValueError(f"newline must be a single-byte character, got {v!r}")
        return v

    @field_validator("skip_comments")
    @classmethod
    def validate_skip_comments(cls, v: bool | str) -> bool | str:
        if isinstance(v, str) and not v:
            raise ValueError("skip_comments prefix cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_ascii_compatible_encoding(self) -> JsonLinesDecoderConfig:
        # Lines are framed on raw bytes, so the terminator must encode as one byte
        if "\n".encode(self.encoding) != _LF:
            raise ValueError(f"encoding {self.encoding!r} is not supported for JSON lines; use an ASCII-compatible encoding")
        return self

    @property
    def comment_prefix(self) -> bytes | None:
        if self.skip_comments is False:
            return None
        if self.skip_comments is True:
            return b"#"
        return self.skip_comments.encode(self.encoding)


class JsonLinesFramer:
    """Reconstructs logical lines from a sequence of byte chunks.

    The line terminator is either configured or auto-detected from the first
    terminator seen (``\\n``, or ``\\r`` not followed by ``\\n``) and frozen
    for the rest of the stream. With a ``\\n`` terminator that was not
    explicitly configured as something else, a trailing ``\\r`` is stripped
    so CRLF sources decode cleanly.

    ``max_row_bytes`` counts the terminator byte; the partial line carried
    across chunks is checked too, so malformed input cannot buffer unbounded.

    Usage:
        framer = JsonLinesFramer()
        for chunk in chunks:
            for line in framer.feed(chunk):
                ...
        for line in framer.close():
            ...
    """

    def __init__(self, newline: bytes | None = None, *, max_row_bytes: int | None = None) -> None:
        self._newline = newline
        self._strip_cr = newline is None or newline == _LF
        self._max_row_bytes = max_row_bytes
        self._buffer = bytearray()
        # Offset in _buffer already scanned for a terminator
        self._scan_from = 0
        self._line_number = 0
        self._closed = False

    @property
    def newline(self) -> bytes | None:
        """Detected or configured terminator; None until detection happens."""
        return self._newline

    @property
    def line_number(self) -> int:
        """Number of physical lines emitted so far (1-based number of the last line)."""
        return self._line_number

    def feed(self, chunk: bytes) -> Iterator[bytes]:
        """Add a chunk and yield every line it completes (terminator removed)."""
        if self._closed:
            raise RuntimeError("JsonLinesFramer.feed() called after close()")
        self._buffer += chunk
        yield from self._drain(final=False)

    def close(self) -> Iterator[bytes]:
        """Signal end of input and yield any remaining lines."""
        self._closed = True
        yield from self._drain(final=True)
        if self._buffer:
            line = bytes(self._buffer)
            self._buffer.clear()
            self._scan_from = 0
            self._check_length(len(line))
            self._line_number += 1
            yield self._strip(line)

    def _drain(self, *, final: bool) -> Iterator[bytes]:
        while True:
            if self._newline is None and not self._detect_newline(final=final):
                self._check_length(len(self._buffer))
                return

            assert self._newline is not None
            index = self._buffer.find(self._newline, self._scan_from)
            if index < 0:
                self._scan_from = len(self._buffer)
                self._check_length(len(self._buffer))
                return

            self._check_length(index + 1)
            line = bytes(self._buffer[:index])
            del self._buffer[: index + 1]
            self._scan_from = 0
            self._line_number += 1
            yield self._strip(line)

    def _detect_newline(self, *, final: bool) -> bool:
        """Freeze the terminator from the first one in the buffer.

        Returns False when the buffer holds no terminator yet, or ends in a
        bare ``\\r`` whose meaning depends on the next (unseen) byte.
        """
        lf = self._buffer.find(_LF)
        cr = self._buffer.find(_CR)
        if lf < 0 and cr < 0:
            return False

        if cr < 0 or (0 <= lf < cr):
            self._newline = _LF
        elif cr + 1 < len(self._buffer):
            self._newline = _LF if self._buffer[cr + 1 : cr + 2] == _LF else _CR
        elif final:
            self._newline = _CR
        else:
            return False
        return True

    def _strip(self, line: bytes) -> bytes:
        if self._strip_cr and self._newline == _LF and line.endswith(_CR):
            return line[:-1]
        return line

    def _check_length(self, length: int) -> None:
        if self._max_row_bytes is not None and length > self._max_row_bytes:
            raise RowTooLargeError(self._max_row_bytes, line_number=self._line_number + 1)


class _LineParser:
    """Per-decode-pass line interpretation: comments, skips, header capture."""

    def __init__(self, config: JsonLinesDecoderConfig) -> None:
        self._config = config
        self._comment_prefix = config.comment_prefix
        self._lines_to_skip = config.skip_lines
        headers = config.headers if isinstance(config.headers, list) else None
        self._awaiting_header = config.tabular and config.headers is None
        self._assembler = RowAssembler(headers, strict=config.effective_strict)

    def parse(self, line: bytes, line_number: int) -> Row | None:
        """Interpret one framed line; None means the line produced no row."""
        if self._comment_prefix is not None and line.startswith(self._comment_prefix):
            return None
        if not line.strip():
            return None
        if self._lines_to_skip > 0:
            self._lines_to_skip -= 1
            return None

        value = self._loads(line, line_number)

        if not self._config.tabular:
            if not isinstance(value, dict):
                raise DecodeError(f"Each line must be a JSON object, got {type(value).__name__}", line_number=line_number)
            return value

        if not isinstance(value, list):
            raise DecodeError(f"Each line must be a JSON array, got {type(value).__name__}", line_number=line_number)

        if self._awaiting_header:
            if not all(isinstance(cell, str) for cell in value):
                raise DecodeError("The first line must be an array of strings (headers)", line_number=line_number)
            self._assembler.headers = list(value)
            self._awaiting_header = False
            return None

        return self._assembler.assemble(value, line_number)

    def _loads(self, line: bytes, line_number: int) -> Any:
        try:
            text = line.decode(self._config.encoding)
        except UnicodeDecodeError as e:
            raise DecodeError(f"invalid {self._config.encoding} encoding: {e}", line_number=line_number) from e
        try:
            return json.loads(text, parse_constant=_reject_nonfinite_constant)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError subclass
            raise DecodeError(f"JSON parse error: {e}", line_number=line_number) from e


class JsonLinesDecoder(BaseDecoder):
    """Decode newline-delimited JSON into rows.

    Config options:
        newline: Line terminator; auto-detected when not set
        max_row_bytes: Maximum bytes per line including the terminator
        skip_comments: True (``#``) or a prefix marking comment lines
        skip_lines: Number of leading lines to discard before the header
        headers: None (first line), a list (None entries drop columns), or False
        strict: Row cell count must match the header length
        tabular: Lines are arrays (default) or, when False, objects
        encoding: ASCII-compatible text encoding (default: "utf-8")
    """

    name = "jsonl"
    config_class = JsonLinesDecoderConfig
    _config: JsonLinesDecoderConfig

    def decode(self, chunks: Iterable[bytes]) -> Iterator[Row]:
        """Decode byte chunks into rows.

        Yields:
            One row per data line, in source order.

        Raises:
            DecodeError: On malformed JSON, a bad header, a strict-mode length
                mismatch, or a line exceeding max_row_bytes.
        """
        config = self._config
        newline = config.newline.encode(config.encoding) if config.newline is not None else None
        framer = JsonLinesFramer(newline, max_row_bytes=config.max_row_bytes)
        parser = _LineParser(config)

        for chunk in chunks:
            if isinstance(chunk, str):
                chunk = chunk.encode(config.encoding)
            for line in framer.feed(chunk):
                row = parser.parse(line, framer.line_number)
                if row is not None:
                    yield row

        for line in framer.close():
            row = parser.parse(line, framer.line_number)
            if row is not None:
                yield row
