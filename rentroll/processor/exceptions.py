from rentroll.jobs.exceptions import StructuralError, TransientError


class EmptyDocumentError(StructuralError):
    """Raised when a document has no extractable text."""


class StageTimeoutError(TransientError):
    """Raised when the matching or anomaly stage exceeds its time budget."""
