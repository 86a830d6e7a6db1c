from abc import ABC, abstractmethod

from rentroll.extraction.models import ExtractionResult


class BaseUnitExtractor(ABC):
    """Contract for all unit extraction adapters."""

    @abstractmethod
    def extract(self, text: str) -> ExtractionResult:
        """Turn rent-roll text into normalized candidate units.

        Args:
            text: Page text already prioritized and capped by the page selector.

        Returns:
            ExtractionResult with units, an optional property profile and the
            number of rows dropped for lacking an identifying key.

        Raises:
            ExtractionNetworkError: when the provider cannot be reached.
            ExtractionError: on any other failure.
        """
