import io

import pdfplumber

from rentroll.pdf.base import BasePdfExtractor
from rentroll.pdf.exceptions import PdfExtractionError
from rentroll.pdf.models import ExtractedDocument, PageText


class PdfPlumberAdapter(BasePdfExtractor):
    """Extracts page text from PDF using pdfplumber."""

    def extract(self, pdf_bytes: bytes) -> ExtractedDocument:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = [
                    PageText(number=index, text=(page.extract_text() or "").strip())
                    for index, page in enumerate(pdf.pages, start=1)
                ]
            return ExtractedDocument(pages=pages)
        except PdfExtractionError:
            raise
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber extraction failed: {exc}") from exc
