class JobStatus:
    """String constants for the pdf_jobs.status column."""

    PENDING = "pending"
    PROCESSING = "processing"
    EXTRACTING = "extracting"
    MATCHING = "matching"
    COMPLETED = "completed"
    FAILED = "failed"


ALL_STATUSES = frozenset(
    {
        JobStatus.PENDING,
        JobStatus.PROCESSING,
        JobStatus.EXTRACTING,
        JobStatus.MATCHING,
        JobStatus.COMPLETED,
        JobStatus.FAILED,
    }
)

# Lease-holding statuses, in the order a job moves through them.
IN_FLIGHT_STATUSES: tuple[str, ...] = (
    JobStatus.PROCESSING,
    JobStatus.EXTRACTING,
    JobStatus.MATCHING,
)

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


def is_in_flight(status: str) -> bool:
    return status in IN_FLIGHT_STATUSES


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def can_advance(current: str, target: str) -> bool:
    """Whether an in-flight job may move from `current` to `target`.

    Staying in the same status is allowed so progress can be reported
    several times within one stage.
    """
    if current not in IN_FLIGHT_STATUSES or target not in IN_FLIGHT_STATUSES:
        return False
    return IN_FLIGHT_STATUSES.index(target) >= IN_FLIGHT_STATUSES.index(current)
