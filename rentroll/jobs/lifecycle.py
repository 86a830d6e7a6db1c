"""State-machine rules shared by every job store implementation."""

from rentroll.jobs.exceptions import ConflictError
from rentroll.jobs.status import can_advance, is_in_flight
from rentroll.logging.logger import Log


def resolve_progress(
    job_id: str,
    current_status: str,
    current_progress: int,
    status: str,
    percent: int,
) -> int:
    """Validate a progress update and return the percent to record.

    Raises:
        ConflictError: if the job is not in flight or the status would move
            backwards.
    """
    if not is_in_flight(current_status):
        raise ConflictError(
            f"Job {job_id} is '{current_status}', progress can only be reported while in flight"
        )
    if not can_advance(current_status, status):
        raise ConflictError(
            f"Job {job_id} cannot move from '{current_status}' to '{status}'"
        )
    percent = max(0, min(100, percent))
    if percent < current_progress:
        Log.warning(
            f"Job {job_id}: progress {percent} is below recorded {current_progress}, clamping"
        )
        return current_progress
    return percent


def resolve_failure(retry_count: int, max_retries: int, structural: bool) -> tuple[int, bool]:
    """Return (new_retry_count, is_terminal) for a failed attempt.

    Structural failures consume the whole retry budget at once.
    """
    if structural:
        return max(max_retries, retry_count + 1), True
    new_count = retry_count + 1
    return new_count, new_count >= max_retries
