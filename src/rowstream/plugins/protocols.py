# src/rowstream/plugins/protocols.py
"""Plugin protocols defining the contracts for each plugin type.

These protocols define what methods plugins must implement.
They're used for type checking, not runtime enforcement (that's pluggy's job).

Plugin Types:
- FormatDecoder: Converts byte chunks into rows (one per source)
- ByteSource: Supplies byte chunks from a local stream or remote URL
"""

from collections.abc import Iterable, Iterator
from typing import Protocol, runtime_checkable

from rowstream.contracts import Row


@runtime_checkable
class FormatDecoderProtocol(Protocol):
    """Protocol for format decoders.

    decode() returns a lazy iterator. Each call owns fresh framing state, so
    calling decode() again on a new chunk iterator restarts from scratch.
    Bytes are only pulled from ``chunks`` when another row is needed.

    Example:
        class MyDecoder:
            name = "mine"

            def decode(self, chunks: Iterable[bytes]) -> Iterator[Row]:
                for chunk in chunks:
                    ...
    """

    name: str

    def decode(self, chunks: Iterable[bytes]) -> Iterator[Row]:
        """Decode byte chunks into rows.

        Raises:
            DecodeError: On malformed input. No partial row is yielded for a
                malformed line.
        """
        ...


@runtime_checkable
class ByteSourceProtocol(Protocol):
    """Protocol for byte sources.

    open() starts a new read of the source from the beginning and returns a
    lazy iterator of byte chunks. Closing the iterator releases the
    underlying handle.
    """

    def open(self) -> Iterator[bytes]:
        """Open the source.

        Raises:
            SourceError: If the source cannot be read.
        """
        ...
