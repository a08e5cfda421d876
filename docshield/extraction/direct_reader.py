from datetime import UTC, datetime
from pathlib import Path

from docshield.extraction.base import ExtractionBackend
from docshield.extraction.models import ExtractionMethod, ExtractionResult
from docshield.logging.logger import Log
from docshield.processor.exceptions import ServiceUnavailableError


class DirectTextReader(ExtractionBackend):
    """Reads text files from disk: UTF-8 first, Latin-1 as a lower-confidence fallback."""

    name = "direct"

    def extract(self, path: Path) -> ExtractionResult:
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise ServiceUnavailableError(f"Failed to read text file: {exc}") from exc

        try:
            text = raw.decode("utf-8")
            return self._result(text, confidence=1.0, encoding="utf-8")
        except UnicodeDecodeError:
            Log.warning(f"{Log.path(path)} is not valid UTF-8, reading as Latin-1")

        text = raw.decode("latin-1")
        result = self._result(text, confidence=0.8, encoding="latin-1")
        result.metadata["fallback_encoding"] = True
        return result

    @staticmethod
    def _result(text: str, *, confidence: float, encoding: str) -> ExtractionResult:
        return ExtractionResult(
            text=text,
            confidence=confidence,
            extraction_method=ExtractionMethod.DIRECT,
            metadata={
                "original_length": len(text),
                "encoding": encoding,
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )
