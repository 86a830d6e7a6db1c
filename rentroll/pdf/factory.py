from rentroll.config.settings import Settings
from rentroll.pdf.base import BasePdfExtractor
from rentroll.pdf.pdfplumber_adapter import PdfPlumberAdapter
from rentroll.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfExtractorFactory:
    """Creates the page text extractor named by settings.pdf_engine."""

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        return cls.for_engine(settings.pdf_engine)

    @classmethod
    def for_engine(cls, engine: str) -> BasePdfExtractor:
        adapter_cls = cls.ADAPTERS.get(engine.lower())
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine.lower()}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()
