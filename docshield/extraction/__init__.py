from docshield.extraction.base import ExtractionBackend
from docshield.extraction.extractor import TextExtractor
from docshield.extraction.factory import TextExtractorFactory
from docshield.extraction.models import ExtractionMethod, ExtractionResult, ExtractionStrategy

__all__ = [
    "ExtractionBackend",
    "ExtractionMethod",
    "ExtractionResult",
    "ExtractionStrategy",
    "TextExtractor",
    "TextExtractorFactory",
]
