from abc import ABC, abstractmethod
from pathlib import Path

from docshield.extraction.models import ExtractionResult


class ExtractionBackend(ABC):
    """Contract for all text extraction adapters."""

    name: str = ""

    def health_check(self) -> bool:
        """Cheap availability probe. Advisory only; ``extract`` may still fail."""
        return True

    @abstractmethod
    def extract(self, path: Path) -> ExtractionResult:
        """Extract raw (not yet post-processed) text from *path*.

        Raises:
            ServiceUnavailableError: if the backend is down, times out, or
                returns an unusable response.
        """
