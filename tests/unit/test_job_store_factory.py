from unittest.mock import MagicMock

import pytest

from rentroll.database.repositories.job_repository import JobRepository
from rentroll.jobs.factory import JobStoreFactory
from rentroll.jobs.memory_store import InMemoryJobStore


def _settings(backend: str) -> MagicMock:
    return MagicMock(
        job_store_backend=backend,
        max_job_attempts=4,
        backoff_policy="none",
    )


class TestJobStoreFactory:
    def test_creates_postgres_repository(self) -> None:
        assert isinstance(JobStoreFactory.create(_settings("postgres")), JobRepository)

    def test_creates_memory_store(self) -> None:
        store = JobStoreFactory.create(_settings("MEMORY"))

        assert isinstance(store, InMemoryJobStore)
        job = store.enqueue(file_name="a.pdf", file_path="local://a.pdf", file_size_bytes=1)
        assert job.max_retries == 4

    def test_unknown_backend_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown job store backend"):
            JobStoreFactory.create(_settings("redis"))
