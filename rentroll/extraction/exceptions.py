class ExtractionError(Exception):
    """Raised when unit extraction fails."""


class ExtractionValidationError(ExtractionError):
    """Raised when the extraction response does not have the expected shape."""


class ExtractionNetworkError(ExtractionError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""
