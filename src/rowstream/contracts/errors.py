"""Exception taxonomy for the ingestion engine.

All errors are surfaced to the immediate caller; nothing is retried
internally. Errors raised by a RowProcessor are not wrapped - they propagate
as the original exception object.
"""


class RowStreamError(Exception):
    """Base class for all rowstream errors."""


class ConfigError(RowStreamError):
    """Raised when decoder, source or settings configuration is invalid."""


class DecodeError(RowStreamError):
    """Raised when the byte source cannot be decoded into rows.

    Covers malformed JSON lines, a non-string header line, a row/header length
    mismatch in strict mode and CSV syntax errors.

    Attributes:
        line_number: 1-based physical line (JSONL) or record (CSV) number, when known
    """

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class RowTooLargeError(DecodeError):
    """Raised when a single row exceeds the configured maximum byte length."""

    def __init__(self, max_row_bytes: int, *, line_number: int | None = None) -> None:
        self.max_row_bytes = max_row_bytes
        super().__init__(f"row exceeds the maximum size of {max_row_bytes} bytes", line_number=line_number)


class SourceError(RowStreamError):
    """Raised when the underlying byte source cannot be read."""


class ResumeMarkerNotFoundError(RowStreamError):
    """Raised when fastforward exhausts the source without matching the marker.

    The persisted checkpoint no longer exists in the source (for example the
    source was regenerated with different content). No automatic recovery is
    attempted: restarting from zero could reprocess or skip data.

    Attributes:
        marker: The fingerprint that was searched for
        rows_skipped: Number of rows inspected before the source ran out
    """

    def __init__(self, marker: str, rows_skipped: int) -> None:
        self.marker = marker
        self.rows_skipped = rows_skipped
        super().__init__(f"Resume marker {marker} not found after scanning {rows_skipped} rows; the source no longer matches the checkpoint")


class PipelineStateError(RowStreamError):
    """Raised when an operation is invalid for the pipeline's current state."""


class IncompatibleCheckpointError(RowStreamError):
    """Raised when a persisted marker was produced by a different fingerprint algorithm."""
