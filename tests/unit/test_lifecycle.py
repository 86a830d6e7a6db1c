import pytest

from rentroll.jobs.exceptions import ConflictError
from rentroll.jobs.lifecycle import resolve_failure, resolve_progress
from rentroll.jobs.status import JobStatus, can_advance, is_in_flight, is_terminal


class TestStatusHelpers:
    def test_in_flight_statuses(self) -> None:
        assert is_in_flight(JobStatus.PROCESSING)
        assert is_in_flight(JobStatus.MATCHING)
        assert not is_in_flight(JobStatus.PENDING)
        assert not is_in_flight(JobStatus.COMPLETED)

    def test_terminal_statuses(self) -> None:
        assert is_terminal(JobStatus.COMPLETED)
        assert is_terminal(JobStatus.FAILED)
        assert not is_terminal(JobStatus.EXTRACTING)

    def test_can_advance_forward_and_in_place(self) -> None:
        assert can_advance(JobStatus.PROCESSING, JobStatus.EXTRACTING)
        assert can_advance(JobStatus.EXTRACTING, JobStatus.EXTRACTING)

    def test_cannot_move_backwards(self) -> None:
        assert not can_advance(JobStatus.MATCHING, JobStatus.EXTRACTING)

    def test_cannot_advance_from_pending(self) -> None:
        assert not can_advance(JobStatus.PENDING, JobStatus.PROCESSING)


class TestResolveProgress:
    def test_records_new_percent(self) -> None:
        assert resolve_progress("j", JobStatus.PROCESSING, 10, JobStatus.EXTRACTING, 20) == 20

    def test_clamps_lower_percent(self) -> None:
        assert resolve_progress("j", JobStatus.EXTRACTING, 35, JobStatus.EXTRACTING, 20) == 35

    def test_clamps_to_range(self) -> None:
        assert resolve_progress("j", JobStatus.PROCESSING, 0, JobStatus.MATCHING, 150) == 100

    def test_rejects_job_not_in_flight(self) -> None:
        with pytest.raises(ConflictError):
            resolve_progress("j", JobStatus.COMPLETED, 100, JobStatus.MATCHING, 50)

    def test_rejects_backwards_status(self) -> None:
        with pytest.raises(ConflictError):
            resolve_progress("j", JobStatus.MATCHING, 50, JobStatus.EXTRACTING, 60)


class TestResolveFailure:
    def test_transient_below_budget_requeues(self) -> None:
        assert resolve_failure(0, 3, structural=False) == (1, False)

    def test_transient_at_budget_is_terminal(self) -> None:
        assert resolve_failure(2, 3, structural=False) == (3, True)

    def test_structural_consumes_budget(self) -> None:
        assert resolve_failure(0, 3, structural=True) == (3, True)
