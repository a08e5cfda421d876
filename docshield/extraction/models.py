from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ExtractionStrategy(str, Enum):
    DIRECT = "direct"
    TIKA = "tika"
    OCR = "ocr"
    HYBRID = "hybrid"


class ExtractionMethod(str, Enum):
    """How the returned text was actually obtained."""

    DIRECT = "direct"
    TIKA = "tika"
    OCR = "ocr"
    HYBRID = "hybrid"
    FAILED = "failed"


@dataclass
class ExtractionResult:
    """Text extracted from a file plus processing and quality metadata."""

    text: str
    confidence: float
    extraction_method: ExtractionMethod
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.extraction_method is ExtractionMethod.FAILED
