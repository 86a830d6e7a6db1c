from rentroll.config.settings import Settings
from rentroll.database.repositories.job_repository import JobRepository
from rentroll.jobs.backoff import build_backoff_policy
from rentroll.jobs.base import BaseJobStore
from rentroll.jobs.memory_store import InMemoryJobStore


class JobStoreFactory:
    """Creates the job store named by settings.job_store_backend."""

    BACKENDS = ("postgres", "memory")

    @classmethod
    def create(cls, settings: Settings) -> BaseJobStore:
        backend = settings.job_store_backend.lower()
        backoff = build_backoff_policy(settings)
        if backend == "postgres":
            return JobRepository(settings.max_job_attempts, backoff)
        if backend == "memory":
            return InMemoryJobStore(max_retries=settings.max_job_attempts, backoff=backoff)
        raise ValueError(f"Unknown job store backend '{backend}'. Choose from: {list(cls.BACKENDS)}")
