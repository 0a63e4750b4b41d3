"""
In-flight render job tracking and admission control.

The registry is the only mutable state shared by concurrent render requests.
All requests run on one asyncio event loop and none of the methods here
await, so a capacity check followed by ``register()`` with no ``await`` in
between is atomic. Moving render handling onto threads would require a lock
around that check-then-register sequence.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List

from render_api.middleware.error_handler import ConcurrencyLimitError

from .output_naming import iso_utc

logger = logging.getLogger(__name__)


class JobKind(str, Enum):
    PDF = "pdf"
    IMAGE = "image"


class JobStatus(str, Enum):
    PENDING = "pending"
    RENDERING = "rendering"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

# Allowed lifecycle transitions
_TRANSITIONS: Dict[JobStatus, frozenset] = {
    JobStatus.PENDING: frozenset({JobStatus.RENDERING, JobStatus.FAILED}),
    JobStatus.RENDERING: frozenset({JobStatus.UPLOADING, JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.UPLOADING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


@dataclass
class RenderJob:
    """One in-flight render request."""

    id: str
    kind: JobKind
    target_url: str = "unknown"
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: JobStatus = JobStatus.PENDING

    @classmethod
    def create(cls, kind: JobKind, target_url: str = "unknown") -> "RenderJob":
        return cls(id=str(uuid.uuid4()), kind=kind, target_url=target_url)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def advance(self, status: JobStatus) -> None:
        """
        Move the job to ``status``.

        Raises:
            ValueError: If the lifecycle does not allow the transition
        """
        if status not in _TRANSITIONS[self.status]:
            raise ValueError(
                f"Illegal job transition for {self.id}: {self.status.value} -> {status.value}"
            )
        self.status = status

    def to_detail(self) -> dict:
        return {
            "id": self.id,
            "type": self.kind.value,
            "status": self.status.value,
            "startedAt": iso_utc(self.started_at),
        }


class JobRegistry:
    """Keyed set of in-flight jobs. Not a queue; it only tracks existence and status."""

    def __init__(self):
        self._jobs: Dict[str, RenderJob] = {}

    def register(self, job: RenderJob) -> None:
        self._jobs[job.id] = job
        logger.debug(
            f"Job registered: {job.id}",
            extra={"type": job.kind.value, "active_jobs": len(self._jobs)},
        )

    def update_status(self, job_id: str, status: JobStatus) -> None:
        """Advance the named job; no-op if it is already gone."""
        job = self._jobs.get(job_id)
        if job is not None:
            job.advance(status)

    def remove(self, job_id: str) -> None:
        """Forget the job. Safe to call for unknown ids."""
        self._jobs.pop(job_id, None)
        logger.debug(f"Job removed: {job_id}", extra={"active_jobs": len(self._jobs)})

    def get(self, job_id: str) -> RenderJob | None:
        return self._jobs.get(job_id)

    def count(self) -> int:
        return len(self._jobs)

    def list(self) -> List[RenderJob]:
        return list(self._jobs.values())

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def clear(self) -> None:
        self._jobs.clear()


class AdmissionGate:
    """
    Reject new work once the registry holds ``max_jobs`` in-flight jobs.

    Callers must register the admitted job without awaiting anything between
    ``check()`` and ``JobRegistry.register()``.
    """

    def __init__(self, registry: JobRegistry, max_jobs: int):
        self.registry = registry
        self.max_jobs = max_jobs

    def has_capacity(self) -> bool:
        return self.registry.count() < self.max_jobs

    def check(self) -> None:
        """
        Raises:
            ConcurrencyLimitError: 503 if the ceiling has been reached
        """
        active = self.registry.count()
        if active >= self.max_jobs:
            logger.warning(
                "Concurrency limit reached",
                extra={"active_jobs": active, "max_concurrent": self.max_jobs},
            )
            raise ConcurrencyLimitError(active_jobs=active, max_concurrent=self.max_jobs)


# Global registry shared by the render routes and the health endpoint
job_registry = JobRegistry()


def get_job_registry() -> JobRegistry:
    """FastAPI dependency returning the process-wide job registry."""
    return job_registry
