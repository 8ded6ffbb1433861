"""Status codes and kinds shared across subsystem boundaries."""

from enum import StrEnum


class PipelineState(StrEnum):
    """Lifecycle state of a PausableRowPipeline.

    Transitions:
        IDLE -> STREAMING (first process_some)
        IDLE -> FAST_FORWARDING -> STREAMING (fastforward on a restarted run)
        STREAMING <-> PAUSED
        STREAMING -> FINISHED | ERRORED

    FINISHED and ERRORED are terminal.
    """

    IDLE = "idle"
    STREAMING = "streaming"
    PAUSED = "paused"
    FAST_FORWARDING = "fast_forwarding"
    FINISHED = "finished"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.FINISHED, PipelineState.ERRORED)


class SourceFormat(StrEnum):
    """Wire format of a byte source."""

    CSV = "csv"
    JSONL = "jsonl"
