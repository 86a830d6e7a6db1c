class JobError(Exception):
    """Base exception for all job lifecycle errors."""


class ValidationError(JobError):
    """Raised for bad input (missing file, wrong type, oversized). Never retried."""


class TransientError(JobError):
    """Raised when a backend is unavailable or timed out. Retried with backoff."""


class StructuralError(JobError):
    """Raised for corrupt, empty or unparsable documents. Terminal immediately."""


class ConflictError(JobError):
    """Raised when a job is not in a state that allows the requested operation."""


class JobNotFoundError(JobError):
    """Raised when a job cannot be found in the store."""
