"""Boundary types for the host job-execution loop.

The loop itself (bounded time slices, persistence between invocations) is
provided by the host. It calls ``prepare`` once per start or resume and then
``perform`` repeatedly until ``complete`` is True, persisting the returned
status between calls. Everything in a JobStatus must be JSON-serializable.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypedDict


class JobStatus(TypedDict):
    """State handed back and forth between the host loop and a job."""

    state: dict[str, Any]
    complete: bool


@dataclass(frozen=True)
class JobInvocation:
    """Details of one job run as scheduled by the host."""

    job_id: str
    scheduled_at: datetime
    parameters: dict[str, Any] = field(default_factory=dict)
