# src/rowstream/engine/pipeline.py
"""PausableRowPipeline: cooperatively suspendable source -> decoder -> processor.

The pipeline is an explicit state machine (see PipelineState) holding one
continuation: the decoder's row generator. Pausing means simply not pulling
more rows; the generator stays suspended where it was, so the byte source
is not drained further while paused and resuming re-engages the same decode
step instead of restarting it. At a pause point exactly one row is decoded
ahead, to tell a pause on the final row apart from a real suspension.

Lifecycle:
    IDLE --process_some--> STREAMING <--> PAUSED
    IDLE --fastforward--> FAST_FORWARDING --> STREAMING
    STREAMING --> FINISHED (source exhausted, complete() called once)
    any active state --> ERRORED (decode, source or processor failure)

FINISHED and ERRORED are terminal; the pipeline is not reusable. Calls must
be serialized by the caller - one consumer per pipeline.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any, BinaryIO, Final, NoReturn

import structlog

from rowstream.contracts import (
    Marker,
    PipelineState,
    PipelineStateError,
    ResumeMarkerNotFoundError,
    Row,
    RowProcessor,
)
from rowstream.core.canonical import row_fingerprint
from rowstream.plugins.sources.byte_source import DEFAULT_CHUNK_SIZE, IterableByteSource, StreamByteSource
from rowstream.plugins.sources.http_source import HttpByteSource

if TYPE_CHECKING:
    import httpx

    from rowstream.plugins.protocols import ByteSourceProtocol, FormatDecoderProtocol

logger = structlog.get_logger(__name__)

# Returned by _next_row() when the decoder is exhausted
_END: Final = object()
# Lookahead slot is empty
_EMPTY: Final = object()


class PausableRowPipeline:
    """Drives rows from a byte source through a decoder into a RowProcessor.

    Usage:
        pipeline = PausableRowPipeline(FileByteSource("data.csv"), CsvDecoder(), processor)
        marker = pipeline.process_some()   # runs until processor says "safe to pause"
        ...persist marker...
        while not pipeline.is_finished:
            marker = pipeline.process_some()

    On a restarted run, call fastforward(marker) first instead of
    process_some(): it re-reads the source from the start, discards rows
    until one has the given fingerprint, then continues delivering rows from
    the next one.
    """

    def __init__(
        self,
        source: ByteSourceProtocol,
        decoder: FormatDecoderProtocol,
        processor: RowProcessor,
    ) -> None:
        self._source = source
        self._decoder = decoder
        self._processor = processor

        self._state = PipelineState.IDLE
        self._chunks: Iterator[bytes] | None = None
        self._rows: Iterator[Row] | None = None
        # Row (or _END) decoded ahead of a pause, or the error decoding it raised
        self._lookahead: Any = _EMPTY
        self._lookahead_error: Exception | None = None
        self._rows_processed = 0
        self._rows_skipped = 0
        self._last_marker: Marker | None = None

    @classmethod
    def from_stream(
        cls,
        stream: BinaryIO | Iterable[bytes | str],
        processor: RowProcessor,
        decoder: FormatDecoderProtocol | None = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> PausableRowPipeline:
        """Build a pipeline over a locally provided binary stream or chunk iterable.

        The decoder defaults to CSV with a header row.
        """
        source: ByteSourceProtocol
        if hasattr(stream, "read"):
            source = StreamByteSource(stream, chunk_size=chunk_size)  # type: ignore[arg-type]
        else:
            source = IterableByteSource(stream)  # type: ignore[arg-type]
        return cls(source, decoder if decoder is not None else _default_decoder(), processor)

    @classmethod
    def from_url(
        cls,
        url: str,
        processor: RowProcessor,
        decoder: FormatDecoderProtocol | None = None,
        *,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> PausableRowPipeline:
        """Build a pipeline that fetches a URL (gunzipped when the path ends in .gz).

        The decoder defaults to CSV with a header row.
        """
        source = HttpByteSource(url, client=client, timeout=timeout, chunk_size=chunk_size)
        return cls(source, decoder if decoder is not None else _default_decoder(), processor)

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_finished(self) -> bool:
        """True once the source was exhausted and complete() has run."""
        return self._state is PipelineState.FINISHED

    @property
    def rows_processed(self) -> int:
        """Rows handed to the processor by this pipeline instance."""
        return self._rows_processed

    @property
    def rows_skipped(self) -> int:
        """Rows discarded by fastforward, including the matched row."""
        return self._rows_skipped

    @property
    def last_marker(self) -> Marker | None:
        """Marker of the most recent pause (or fastforward match)."""
        return self._last_marker

    def process_some(self) -> Marker | None:
        """Deliver rows until the processor signals a safe pause point.

        Returns:
            The fingerprint of the last processed row when pausing, or None
            once the source is exhausted and complete() has been invoked.
            A pause requested on the final row finishes the run instead, so
            None is returned. Calling again after None keeps returning None.

        Raises:
            PipelineStateError: If the pipeline already failed or is running.
            DecodeError, SourceError: Propagated from the decoder/source.
            Exception: Whatever the processor raised, unchanged.
        """
        if self._state is PipelineState.FINISHED:
            return None
        self._check_not_failed_or_running("process_some")

        if self._state is PipelineState.IDLE:
            self._attach()
        self._transition(PipelineState.STREAMING)
        return self._drive()

    def fastforward(self, marker: Marker) -> Marker | None:
        """Resume a restarted run from a previously returned marker.

        Re-decodes from the beginning of the source without calling
        process(), until a row's fingerprint equals ``marker``. Rows after
        the match are then delivered exactly as process_some() would.

        Note: with duplicate rows in the source the first identical row
        matches, which may not be the occurrence that was checkpointed.

        Returns:
            Same as process_some(), counting from the row after the match.

        Raises:
            PipelineStateError: If any processing already happened on this pipeline.
            ResumeMarkerNotFoundError: If the source ends without a match;
                process() and complete() are never invoked in that case.
        """
        if self._state is not PipelineState.IDLE:
            raise PipelineStateError(f"fastforward() is only allowed on a fresh pipeline, current state is '{self._state}'")

        self._attach()
        self._transition(PipelineState.FAST_FORWARDING)

        while True:
            row = self._next_row()
            if row is _END:
                self._fail(ResumeMarkerNotFoundError(marker, self._rows_skipped))
            self._rows_skipped += 1
            if self._fingerprint(row) == marker:
                break

        logger.info("Fastforward matched resume marker", marker=marker, rows_skipped=self._rows_skipped)
        self._last_marker = marker
        self._transition(PipelineState.STREAMING)
        return self._drive()

    def _drive(self) -> Marker | None:
        processor = self._processor
        while True:
            row = self._next_row()
            if row is _END:
                return self._finish()

            try:
                can_pause = processor.process(row)
            except Exception as e:
                self._fail(e, row_number=self._rows_skipped + self._rows_processed + 1)
            self._rows_processed += 1

            if can_pause:
                marker = self._fingerprint(row)
                self._last_marker = marker
                # A pause on the final row completes the run in this same call
                if self._peek() is _END:
                    return self._finish()
                self._transition(PipelineState.PAUSED)
                logger.debug("Pipeline paused", marker=marker, rows_processed=self._rows_processed)
                return marker

    def _finish(self) -> None:
        self._release()
        try:
            self._processor.complete()
        except Exception as e:
            self._fail(e)
        self._transition(PipelineState.FINISHED)
        logger.debug("Pipeline finished", rows_processed=self._rows_processed, rows_skipped=self._rows_skipped)
        return None

    def _attach(self) -> None:
        """Open the byte source and start the decoder on it."""
        try:
            self._chunks = self._source.open()
            self._rows = self._decoder.decode(self._chunks)
        except Exception as e:
            self._fail(e)

    def _next_row(self) -> Any:
        if self._lookahead_error is not None:
            error, self._lookahead_error = self._lookahead_error, None
            self._fail(error, row_number=self._rows_skipped + self._rows_processed + 1)
        if self._lookahead is not _EMPTY:
            row, self._lookahead = self._lookahead, _EMPTY
            return row
        assert self._rows is not None
        try:
            return next(self._rows, _END)
        except Exception as e:
            self._fail(e, row_number=self._rows_skipped + self._rows_processed + 1)

    def _peek(self) -> Any:
        """Decode one row ahead; a decode error is held until the next call."""
        assert self._rows is not None
        try:
            self._lookahead = next(self._rows, _END)
        except Exception as e:
            self._lookahead_error = e
        return self._lookahead

    def _fingerprint(self, row: Row) -> Marker:
        try:
            return row_fingerprint(row)
        except (TypeError, ValueError) as e:
            self._fail(e)

    def _fail(self, error: Exception, *, row_number: int | None = None) -> NoReturn:
        """Enter ERRORED, release the source and raise ``error``.

        Exceptions from the processor are re-raised as the same object.
        """
        previous = self._state
        self._state = PipelineState.ERRORED
        logger.error(
            "Row pipeline failed",
            state=str(previous),
            error=str(error),
            error_type=type(error).__name__,
            row_number=row_number,
            rows_processed=self._rows_processed,
        )
        self._release()
        raise error

    def _release(self) -> None:
        """Close the decoder and byte source iterators, releasing the source handle."""
        rows, chunks = self._rows, self._chunks
        self._rows = None
        self._chunks = None
        for iterator in (rows, chunks):
            close = getattr(iterator, "close", None)
            if close is not None:
                close()

    def _check_not_failed_or_running(self, operation: str) -> None:
        if self._state is PipelineState.ERRORED:
            raise PipelineStateError(f"{operation}() called on a failed pipeline; build a new pipeline to retry")
        if self._state in (PipelineState.STREAMING, PipelineState.FAST_FORWARDING):
            raise PipelineStateError(f"{operation}() called while the pipeline is already running")

    def _transition(self, new_state: PipelineState) -> None:
        logger.debug("Pipeline state change", from_state=str(self._state), to_state=str(new_state))
        self._state = new_state


def _default_decoder() -> FormatDecoderProtocol:
    from rowstream.plugins.decoders.csv_decoder import CsvDecoder

    return CsvDecoder()
