"""Shared contracts: enums, errors, rows and job boundary types.

Leaf module - imports nothing else from rowstream.
"""

from rowstream.contracts.enums import PipelineState, SourceFormat
from rowstream.contracts.errors import (
    ConfigError,
    DecodeError,
    IncompatibleCheckpointError,
    PipelineStateError,
    ResumeMarkerNotFoundError,
    RowStreamError,
    RowTooLargeError,
    SourceError,
)
from rowstream.contracts.job import JobInvocation, JobStatus
from rowstream.contracts.row import Marker, Row, RowProcessor

__all__ = [
    "ConfigError",
    "DecodeError",
    "IncompatibleCheckpointError",
    "JobInvocation",
    "JobStatus",
    "Marker",
    "PipelineState",
    "PipelineStateError",
    "ResumeMarkerNotFoundError",
    "Row",
    "RowProcessor",
    "RowStreamError",
    "RowTooLargeError",
    "SourceError",
    "SourceFormat",
]
