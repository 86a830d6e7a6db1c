from abc import ABC, abstractmethod
from typing import Any

from rentroll.database.models import JobRecord, ParsedUnitRecord


class BaseJobStore(ABC):
    """Contract for durable job state with an atomic claim operation."""

    MAX_LIST_LIMIT = 100

    @abstractmethod
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
        """Create a job in 'pending' with progress 0 and retry_count 0."""

    @abstractmethod
    def claim_next(self, worker_id: str) -> JobRecord | None:
        """Atomically move one claimable job to 'processing' and return it.

        No two callers may ever receive the same job. Returns None when
        nothing is claimable.
        """

    @abstractmethod
    def update_progress(
        self,
        job_id: str,
        status: str,
        percent: int,
        message: str | None = None,
    ) -> int:
        """Record stage/progress for an in-flight job and return the stored percent.

        Lower percent values are logged and clamped.

        Raises:
            JobNotFoundError: if the job does not exist.
            ConflictError: if the job is not in flight.
        """

    @abstractmethod
    def fail(self, job_id: str, error_message: str, structural: bool = False) -> JobRecord:
        """Register a failed attempt; requeue with backoff or fail terminally."""

    @abstractmethod
    def complete(self, job_id: str, result: dict[str, Any]) -> JobRecord:
        """Mark an in-flight job completed and store its result."""

    @abstractmethod
    def cancel(self, job_id: str) -> None:
        """Delete a job that is not in flight, together with its parsed units.

        Raises:
            JobNotFoundError: if the job does not exist.
            ConflictError: if the job is in flight.
        """

    @abstractmethod
    def find_by_id(self, job_id: str) -> JobRecord | None:
        """Find a job by ID."""

    @abstractmethod
    def list_jobs(
        self,
        *,
        status: str | None = None,
        asset_id: str | None = None,
        limit: int = 20,
    ) -> list[JobRecord]:
        """List jobs newest first, limit capped at MAX_LIST_LIMIT."""

    @abstractmethod
    def save_parsed_units(self, job_id: str, units: list[ParsedUnitRecord]) -> None:
        """Replace the parsed units owned by a job."""

    @abstractmethod
    def list_parsed_units(self, job_id: str) -> list[ParsedUnitRecord]:
        """Return the parsed units owned by a job."""

    def _cap_limit(self, limit: int) -> int:
        return max(1, min(limit, self.MAX_LIST_LIMIT))
