from rentroll.extraction.base import BaseUnitExtractor
from rentroll.extraction.extractor import UnitExtractor
from rentroll.extraction.factory import UnitExtractorFactory

__all__ = ["BaseUnitExtractor", "UnitExtractor", "UnitExtractorFactory"]
