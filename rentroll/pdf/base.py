from abc import ABC, abstractmethod

from rentroll.pdf.models import ExtractedDocument


class BasePdfExtractor(ABC):
    """Contract for all PDF text extraction adapters."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> ExtractedDocument:
        """Extract the text layer of every page.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            ExtractedDocument with one PageText per page, in page order.

        Raises:
            PdfExtractionError: if extraction fails for any reason.
        """
