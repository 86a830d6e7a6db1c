import itertools
import threading
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from rentroll.database.models import JobRecord, ParsedUnitRecord
from rentroll.jobs.backoff import BackoffPolicy, NoBackoff
from rentroll.jobs.base import BaseJobStore
from rentroll.jobs.exceptions import ConflictError, JobNotFoundError
from rentroll.jobs.lifecycle import resolve_failure, resolve_progress
from rentroll.jobs.status import JobStatus, is_in_flight
from rentroll.logging.logger import Log


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryJobStore(BaseJobStore):
    """Process-local job store guarded by a single mutex.

    Useful for local development and tests. Claim atomicity holds across
    threads of one process only.
    """

    def __init__(
        self,
        *,
        max_retries: int = 3,
        backoff: BackoffPolicy | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._max_retries = max_retries
        self._backoff = backoff if backoff is not None else NoBackoff()
        self._clock = clock
        self._lock = threading.Lock()
        self._jobs: dict[str, JobRecord] = {}
        self._units: dict[str, list[ParsedUnitRecord]] = {}
        self._order: dict[str, int] = {}
        self._sequence = itertools.count()

    def enqueue(
        self,
        *,
        file_name: str,
        file_path: str,
        file_size_bytes: int,
        asset_id: str | None = None,
        cross_reference: bool = False,
        max_retries: int | None = None,
    ) -> JobRecord:
        now = self._clock()
        job = JobRecord(
            id=str(uuid.uuid4()),
            file_name=file_name,
            file_path=file_path,
            file_size_bytes=file_size_bytes,
            status=JobStatus.PENDING,
            max_retries=max_retries if max_retries is not None else self._max_retries,
            asset_id=asset_id,
            cross_reference=cross_reference,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._jobs[job.id] = job
            self._order[job.id] = next(self._sequence)
        return replace(job)

    def claim_next(self, worker_id: str) -> JobRecord | None:
        with self._lock:
            now = self._clock()
            candidates = sorted(
                (job for job in self._jobs.values() if self._is_claimable(job, now)),
                key=lambda job: (job.created_at or now, self._order[job.id]),
            )
            if not candidates:
                return None
            job = candidates[0]
            job.status = JobStatus.PROCESSING
            job.locked_by = worker_id
            job.started_at = job.started_at or now
            job.updated_at = now
            return replace(job)

    def update_progress(
        self,
        job_id: str,
        status: str,
        percent: int,
        message: str | None = None,
    ) -> int:
        with self._lock:
            job = self._get(job_id)
            recorded = resolve_progress(job_id, job.status, job.progress, status, percent)
            job.status = status
            job.progress = recorded
            job.updated_at = self._clock()
        if message:
            Log.debug(f"Job {job_id} [{status} {recorded}%] {message}")
        return recorded

    def fail(self, job_id: str, error_message: str, structural: bool = False) -> JobRecord:
        with self._lock:
            job = self._get(job_id)
            if job.is_terminal:
                raise ConflictError(f"Job {job_id} is already '{job.status}'")
            retry_count, terminal = resolve_failure(job.retry_count, job.max_retries, structural)
            now = self._clock()
            job.retry_count = retry_count
            job.error_message = error_message
            job.locked_by = None
            job.updated_at = now
            if terminal:
                job.status = JobStatus.FAILED
                job.completed_at = now
                job.next_attempt_at = None
            else:
                job.status = JobStatus.PENDING
                job.progress = 0
                job.next_attempt_at = now + self._backoff.delay(retry_count)
            return replace(job)

    def complete(self, job_id: str, result: dict[str, Any]) -> JobRecord:
        with self._lock:
            job = self._get(job_id)
            if not is_in_flight(job.status):
                raise ConflictError(f"Job {job_id} is '{job.status}', cannot complete")
            now = self._clock()
            job.status = JobStatus.COMPLETED
            job.progress = 100
            job.result = result
            job.locked_by = None
            job.completed_at = now
            job.updated_at = now
            return replace(job)

    def cancel(self, job_id: str) -> None:
        with self._lock:
            job = self._get(job_id)
            if is_in_flight(job.status):
                raise ConflictError(f"Cannot cancel job {job_id} while {job.status}")
            del self._jobs[job_id]
            self._order.pop(job_id, None)
            self._units.pop(job_id, None)

    def find_by_id(self, job_id: str) -> JobRecord | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job is not None else None

    def list_jobs(
        self,
        *,
        status: str | None = None,
        asset_id: str | None = None,
        limit: int = 20,
    ) -> list[JobRecord]:
        with self._lock:
            jobs = [
                job
                for job in self._jobs.values()
                if (status is None or job.status == status)
                and (asset_id is None or job.asset_id == asset_id)
            ]
        jobs.sort(key=lambda job: job.created_at or self._clock(), reverse=True)
        return [replace(job) for job in jobs[: self._cap_limit(limit)]]

    def save_parsed_units(self, job_id: str, units: list[ParsedUnitRecord]) -> None:
        with self._lock:
            self._get(job_id)
            self._units[job_id] = [replace(unit) for unit in units]

    def list_parsed_units(self, job_id: str) -> list[ParsedUnitRecord]:
        with self._lock:
            return [replace(unit) for unit in self._units.get(job_id, [])]

    def _get(self, job_id: str) -> JobRecord:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return job

    @staticmethod
    def _is_claimable(job: JobRecord, now: datetime) -> bool:
        if job.status != JobStatus.PENDING or job.retry_count >= job.max_retries:
            return False
        return job.next_attempt_at is None or job.next_attempt_at <= now
