"""
Introspection job tracker — process-wide registry of background jobs.

One instance is created in the app lifespan and shared by every request.
All writes go through a single lock; each write replaces the stored record
so a reader never sees a half-updated job. Finished jobs are dropped lazily
by get() once they have been terminal for longer than the grace period.
"""
import logging
import threading
import time
import uuid
from typing import Any, Callable, Optional

from models.job import IntrospectionJob, JobStatus

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD_SECONDS = 5 * 60


class JobTracker:
    def __init__(
        self,
        grace_period_seconds: float = DEFAULT_GRACE_PERIOD_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.grace_period_seconds = grace_period_seconds
        self._clock = clock
        self._jobs: dict[str, IntrospectionJob] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    # ── Writes ────────────────────────────────────────────────────────────────

    def create(self, message: str = "Starting schema introspection...") -> str:
        """Register a pending job and return its id."""
        with self._lock:
            now = self._clock()
            job_id = self._new_id(now)
            self._jobs[job_id] = IntrospectionJob(
                status=JobStatus.PENDING,
                progress=0,
                message=message,
                start_time=int(now * 1000),
            )
        logger.info("Created introspection job %s", job_id)
        return job_id

    def mark_processing(self, job_id: str, message: str, progress: int = 10) -> bool:
        return self._update(job_id, status=JobStatus.PROCESSING, progress=progress, message=message)

    def report_progress(self, job_id: str, progress: int, message: str) -> bool:
        return self._update(job_id, progress=progress, message=message)

    def complete(self, job_id: str, result: dict[str, Any], message: str) -> bool:
        return self._update(job_id, status=JobStatus.COMPLETED, progress=100, message=message, result=result)

    def fail(self, job_id: str, error: str, message: str = "Schema introspection failed") -> bool:
        return self._update(job_id, status=JobStatus.ERROR, progress=0, message=message, error=error)

    def _update(self, job_id: str, **changes: Any) -> bool:
        """Apply `changes` to a live job. Returns False for unknown or finished jobs."""
        if "progress" in changes:
            changes["progress"] = max(0, min(100, int(changes["progress"])))

        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning("Ignoring update for unknown job %s", job_id)
                return False
            if job.status.is_terminal:
                logger.warning("Ignoring update for finished job %s (%s)", job_id, job.status.value)
                return False
            if changes.get("status", job.status).is_terminal:
                changes["finished_at"] = self._clock()
            self._jobs[job_id] = job.model_copy(update=changes)
        return True

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get(self, job_id: str) -> Optional[IntrospectionJob]:
        """Snapshot of a job, or None if unknown or expired."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            if self._is_expired(job):
                del self._jobs[job_id]
                logger.debug("Expired introspection job %s", job_id)
                return None
            return job.model_copy(deep=True)

    def _is_expired(self, job: IntrospectionJob) -> bool:
        if not job.status.is_terminal or job.finished_at is None:
            return False
        return self._clock() - job.finished_at > self.grace_period_seconds

    def _new_id(self, now: float) -> str:
        while True:
            job_id = f"schema_{int(now * 1000)}_{uuid.uuid4().hex[:12]}"
            if job_id not in self._jobs:
                return job_id
