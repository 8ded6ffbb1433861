# src/rowstream/engine/job.py
"""RowStreamJob: adapts a PausableRowPipeline to a host job-execution loop.

The host loop calls prepare() once when a job starts or resumes after an
interruption, then perform() repeatedly, persisting the returned JobStatus
between calls until ``complete`` is True. Each perform() is one bounded unit
of work: one process_some() (or, on the first slice of a resumed job, one
fastforward()).

Persisted state (all JSON-serializable):
    marker: fingerprint returned by the last slice, None when complete
    fingerprint_version: algorithm that produced the marker
    rows_processed: cumulative rows delivered to the processor across resumptions
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import structlog

from rowstream.contracts import IncompatibleCheckpointError, JobInvocation, JobStatus, PipelineStateError
from rowstream.core.canonical import FINGERPRINT_VERSION
from rowstream.engine.pipeline import PausableRowPipeline

logger = structlog.get_logger(__name__)


class RowStreamJob(ABC):
    """Base class for jobs that ingest a row stream.

    Subclasses build the pipeline (byte source, decoder, processor) from the
    job parameters. Secrets and connections belong in build_pipeline().

    Example:
        class ImportOrders(RowStreamJob):
            def build_pipeline(self, params):
                processor = BatchingRowProcessor(self.store_batch, batch_size=500)
                return PausableRowPipeline.from_url(params["url"], processor, JsonLinesDecoder())
    """

    def __init__(self, invocation: JobInvocation) -> None:
        self.invocation = invocation
        self._pipeline: PausableRowPipeline | None = None
        self._resume_marker: str | None = None
        self._rows_base = 0

    @abstractmethod
    def build_pipeline(self, params: dict[str, Any]) -> PausableRowPipeline:
        """Build a fresh pipeline for this job run."""
        ...

    @property
    def pipeline(self) -> PausableRowPipeline | None:
        return self._pipeline

    def prepare(self, params: dict[str, Any], status: JobStatus | None = None) -> JobStatus:
        """Build the pipeline; remember the resume marker from a prior status.

        Args:
            params: Job parameters (empty dict if none were supplied)
            status: Last persisted status when the job is being resumed

        Raises:
            IncompatibleCheckpointError: If the stored marker came from a
                different fingerprint algorithm.
        """
        prior_state: dict[str, Any] = dict(status["state"]) if status is not None else {}
        marker = prior_state.get("marker")
        if marker is not None:
            version = prior_state.get("fingerprint_version")
            if version != FINGERPRINT_VERSION:
                raise IncompatibleCheckpointError(
                    f"Checkpoint marker was produced by fingerprint version {version!r}, current version is {FINGERPRINT_VERSION!r}"
                )

        self._pipeline = self.build_pipeline(params)
        self._resume_marker = marker
        self._rows_base = int(prior_state.get("rows_processed", 0))

        logger.info(
            "Job prepared",
            job_id=self.invocation.job_id,
            resuming=marker is not None,
            rows_processed=self._rows_base,
        )
        return self._status(marker, complete=False)

    def perform(self, status: JobStatus) -> JobStatus:
        """Run one slice of the pipeline and return the new status.

        Raises:
            PipelineStateError: If prepare() was not called.
            ResumeMarkerNotFoundError: If the resume marker is gone from the
                source. This is a job failure, never a silent restart.
        """
        pipeline = self._pipeline
        if pipeline is None:
            raise PipelineStateError("perform() called before prepare()")

        if self._resume_marker is not None:
            marker = pipeline.fastforward(self._resume_marker)
            self._resume_marker = None
        else:
            marker = pipeline.process_some()

        result = self._status(marker, complete=pipeline.is_finished)
        logger.debug(
            "Job slice performed",
            job_id=self.invocation.job_id,
            marker=marker,
            rows_processed=result["state"]["rows_processed"],
            complete=result["complete"],
        )
        return result

    def _status(self, marker: str | None, *, complete: bool) -> JobStatus:
        rows_processed = self._rows_base + (self._pipeline.rows_processed if self._pipeline is not None else 0)
        return {
            "state": {
                "marker": marker,
                "fingerprint_version": FINGERPRINT_VERSION,
                "rows_processed": rows_processed,
            },
            "complete": complete,
        }
