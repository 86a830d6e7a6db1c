import pymupdf

from rentroll.pdf.base import BasePdfExtractor
from rentroll.pdf.exceptions import PdfExtractionError
from rentroll.pdf.models import ExtractedDocument, PageText


class PyMuPdfAdapter(BasePdfExtractor):
    """Extracts page text from PDF using PyMuPDF."""

    def extract(self, pdf_bytes: bytes) -> ExtractedDocument:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [
                    PageText(number=index, text=page.get_text().strip())
                    for index, page in enumerate(doc, start=1)
                ]
            return ExtractedDocument(pages=pages)
        except PdfExtractionError:
            raise
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf extraction failed: {exc}") from exc
