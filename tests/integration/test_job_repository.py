import threading
import uuid
from typing import Any

import psycopg
import pytest

from rentroll.database.models import JobRecord, ParsedUnitRecord
from rentroll.database.repositories.job_repository import JobRepository
from rentroll.jobs.backoff import FixedBackoff, NoBackoff
from rentroll.jobs.exceptions import ConflictError, JobNotFoundError
from rentroll.jobs.status import JobStatus

pytestmark = [pytest.mark.integration, pytest.mark.usefixtures("clean_jobs")]


def _repo(max_retries: int = 3, backoff_seconds: float = 0) -> JobRepository:
    backoff = FixedBackoff(backoff_seconds) if backoff_seconds else NoBackoff()
    return JobRepository(max_retries, backoff)


def _enqueue(repo: JobRepository, name: str = "roll.pdf", **kwargs: Any) -> JobRecord:
    return repo.enqueue(file_name=name, file_path=f"local://{name}", file_size_bytes=100, **kwargs)


class TestEnqueueAndFind:
    def test_enqueue_creates_pending_job(self) -> None:
        repo = _repo()

        job = _enqueue(repo, asset_id="A1", cross_reference=True)

        assert job.status == JobStatus.PENDING
        assert job.progress == 0
        assert job.retry_count == 0
        assert job.max_retries == 3
        found = repo.find_by_id(job.id)
        assert found is not None
        assert found.asset_id == "A1"
        assert found.cross_reference is True

    def test_find_unknown_or_malformed_id(self) -> None:
        repo = _repo()

        assert repo.find_by_id(str(uuid.uuid4())) is None
        assert repo.find_by_id("not-a-uuid") is None


class TestClaim:
    def test_claims_oldest_pending_job(self, db_conn: psycopg.Connection[Any]) -> None:
        repo = _repo()
        first = _enqueue(repo, "a.pdf")
        _enqueue(repo, "b.pdf")

        job = repo.claim_next("worker-1")

        assert job is not None
        assert job.id == first.id
        assert job.status == JobStatus.PROCESSING
        assert job.locked_by == "worker-1"
        row = db_conn.execute("SELECT locked_at FROM pdf_jobs WHERE id = %s", (job.id,)).fetchone()
        assert row is not None and row[0] is not None

    def test_returns_none_when_nothing_pending(self) -> None:
        assert _repo().claim_next("worker-1") is None

    def test_skips_job_waiting_for_backoff(self) -> None:
        repo = _repo(backoff_seconds=3600)
        job = _enqueue(repo)
        repo.claim_next("worker-1")
        repo.fail(job.id, "timeout")

        assert repo.claim_next("worker-1") is None

    def test_concurrent_claims_are_exclusive(self) -> None:
        repo = _repo()
        for n in range(20):
            _enqueue(repo, f"{n}.pdf")
        claimed: list[str] = []
        lock = threading.Lock()

        def claim_all(worker_id: str) -> None:
            while (job := repo.claim_next(worker_id)) is not None:
                with lock:
                    claimed.append(job.id)

        threads = [threading.Thread(target=claim_all, args=(f"w{n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(claimed) == 20
        assert len(set(claimed)) == 20


class TestProgressAndCompletion:
    def test_progress_is_monotonic(self) -> None:
        repo = _repo()
        job = _enqueue(repo)
        repo.claim_next("worker-1")

        assert repo.update_progress(job.id, JobStatus.EXTRACTING, 35) == 35
        assert repo.update_progress(job.id, JobStatus.EXTRACTING, 20) == 35

    def test_progress_on_pending_job_conflicts(self) -> None:
        repo = _repo()
        job = _enqueue(repo)

        with pytest.raises(ConflictError):
            repo.update_progress(job.id, JobStatus.EXTRACTING, 20)

    def test_complete_stores_result(self) -> None:
        repo = _repo()
        job = _enqueue(repo)
        repo.claim_next("worker-1")

        completed = repo.complete(job.id, {"stats": {"matched": 2}, "summary": "ok"})

        assert completed.status == JobStatus.COMPLETED
        assert completed.progress == 100
        assert completed.result == {"stats": {"matched": 2}, "summary": "ok"}
        assert completed.completed_at is not None


class TestFailure:
    def test_transient_failure_requeues(self) -> None:
        repo = _repo()
        job = _enqueue(repo)
        repo.claim_next("worker-1")
        repo.update_progress(job.id, JobStatus.MATCHING, 50)

        failed = repo.fail(job.id, "AI timeout")

        assert failed.status == JobStatus.PENDING
        assert failed.retry_count == 1
        assert failed.progress == 0
        assert failed.error_message == "AI timeout"
        assert failed.locked_by is None

    def test_structural_failure_is_terminal(self) -> None:
        repo = _repo()
        job = _enqueue(repo)
        repo.claim_next("worker-1")

        failed = repo.fail(job.id, "corrupt pdf", structural=True)

        assert failed.status == JobStatus.FAILED
        assert failed.retry_count == 3
        assert repo.claim_next("worker-1") is None

    def test_retry_budget(self) -> None:
        repo = _repo(max_retries=2)
        job = _enqueue(repo)
        for _ in range(2):
            assert repo.claim_next("worker-1") is not None
            repo.fail(job.id, "timeout")

        stored = repo.find_by_id(job.id)
        assert stored is not None
        assert stored.status == JobStatus.FAILED
        assert repo.claim_next("worker-1") is None


class TestCancelAndUnits:
    def _unit(self, job_id: str, unit_id: str) -> ParsedUnitRecord:
        return ParsedUnitRecord(
            id=str(uuid.uuid4()),
            job_id=job_id,
            unit_id=unit_id,
            address="Vesterbrogade 12",
            floor="0",
            door="tv",
            size_sqm=72,
            match_status="matched",
            matched_unit_id=1,
            match_confidence=1.0,
            match_method="exact",
        )

    def test_parsed_units_round_trip(self) -> None:
        repo = _repo()
        job = _enqueue(repo)

        repo.save_parsed_units(job.id, [self._unit(job.id, "1")])
        repo.save_parsed_units(job.id, [self._unit(job.id, "2"), self._unit(job.id, "3")])

        units = repo.list_parsed_units(job.id)
        assert sorted(unit.unit_id or "" for unit in units) == ["2", "3"]
        assert units[0].size_sqm == 72
        assert units[0].match_method == "exact"

    def test_cancel_removes_job_and_units(self) -> None:
        repo = _repo()
        job = _enqueue(repo)
        repo.save_parsed_units(job.id, [self._unit(job.id, "1")])

        repo.cancel(job.id)

        assert repo.find_by_id(job.id) is None
        assert repo.list_parsed_units(job.id) == []

    def test_cancel_in_flight_conflicts(self) -> None:
        repo = _repo()
        job = _enqueue(repo)
        repo.claim_next("worker-1")

        with pytest.raises(ConflictError):
            repo.cancel(job.id)

    def test_cancel_unknown_job(self) -> None:
        with pytest.raises(JobNotFoundError):
            _repo().cancel(str(uuid.uuid4()))


class TestListJobs:
    def test_filters_and_orders_newest_first(self) -> None:
        repo = _repo()
        older = _enqueue(repo, "a.pdf", asset_id="A1")
        newer = _enqueue(repo, "b.pdf", asset_id="A1")
        _enqueue(repo, "c.pdf", asset_id="B2")

        jobs = repo.list_jobs(asset_id="A1", status=JobStatus.PENDING)

        assert [job.id for job in jobs] == [newer.id, older.id]
        assert len(repo.list_jobs(limit=1)) == 1
