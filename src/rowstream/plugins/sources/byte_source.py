# src/rowstream/plugins/sources/byte_source.py
"""Local byte sources.

A byte source supplies a lazy sequence of byte chunks. Chunks are read only
as the consumer asks for them, so a paused pipeline stops draining its
source.
"""

import gzip
import zlib
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import BinaryIO

import structlog

from rowstream.contracts import SourceError

logger = structlog.get_logger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def gunzip_chunks(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Incrementally decompress gzip data arriving in chunks.

    Handles multi-member gzip streams (concatenated .gz files).

    Raises:
        SourceError: If the data is not valid gzip.
    """
    decompressor = zlib.decompressobj(wbits=zlib.MAX_WBITS | 16)
    member_started = False
    try:
        for chunk in chunks:
            data = chunk
            while data:
                member_started = True
                output = decompressor.decompress(data)
                if output:
                    yield output
                if not decompressor.eof:
                    break
                data = decompressor.unused_data
                decompressor = zlib.decompressobj(wbits=zlib.MAX_WBITS | 16)
                member_started = False
        tail = decompressor.flush()
        if tail:
            yield tail
    except zlib.error as e:
        raise SourceError(f"Invalid gzip data: {e}") from e
    if member_started and not decompressor.eof:
        raise SourceError("Truncated gzip data")


class StreamByteSource:
    """Byte source over a caller-provided binary stream.

    The stream can only be read once; a second open() raises SourceError.
    The stream is not closed by rowstream - it belongs to the caller.
    """

    def __init__(self, stream: BinaryIO, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._stream = stream
        self._chunk_size = chunk_size
        self._opened = False

    def open(self) -> Iterator[bytes]:
        if self._opened:
            raise SourceError("StreamByteSource can only be opened once")
        self._opened = True
        return self._read()

    def _read(self) -> Iterator[bytes]:
        while True:
            chunk = self._stream.read(self._chunk_size)
            if not chunk:
                return
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            yield chunk


class IterableByteSource:
    """Byte source over an iterable of chunks.

    ``str`` chunks are encoded as UTF-8. If the iterable is a one-shot
    iterator it can only be opened once.
    """

    def __init__(self, chunks: Iterable[bytes | str]) -> None:
        self._chunks = chunks

    def open(self) -> Iterator[bytes]:
        for chunk in self._chunks:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk


class FileByteSource:
    """Byte source reading a local file; ``*.gz`` files are decompressed."""

    def __init__(self, path: Path | str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._path = Path(path)
        self._chunk_size = chunk_size

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> Iterator[bytes]:
        if not self._path.exists():
            raise SourceError(f"File not found: {self._path}")
        return self._read()

    def _read(self) -> Iterator[bytes]:
        logger.debug("Opening file source", path=str(self._path))
        opener = gzip.open if self._path.suffix == ".gz" else open
        try:
            with opener(self._path, "rb") as f:
                while True:
                    chunk = f.read(self._chunk_size)
                    if not chunk:
                        return
                    yield chunk
        except (OSError, EOFError) as e:
            # gzip.BadGzipFile is an OSError subclass
            raise SourceError(f"Failed to read {self._path}: {e}") from e
