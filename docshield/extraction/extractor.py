import os
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from docshield.extraction.base import ExtractionBackend
from docshield.extraction.fallback import FallbackChain, FallbackStep
from docshield.extraction.file_types import detect_file_type, is_probably_text, strategy_for
from docshield.extraction.models import ExtractionMethod, ExtractionResult, ExtractionStrategy
from docshield.extraction.postprocess import post_process
from docshield.logging.logger import Log
from docshield.processor.exceptions import FileValidationError, ServiceUnavailableError

MIN_OCR_TEXT_LENGTH = 10
HYBRID_MIN_TEXT_LENGTH = 50
HYBRID_MIN_CONFIDENCE = 0.8


def tika_result_is_good(result: ExtractionResult) -> bool:
    return len(result.text) > HYBRID_MIN_TEXT_LENGTH and result.confidence >= HYBRID_MIN_CONFIDENCE


def select_hybrid(
    tika_result: ExtractionResult, ocr_result: ExtractionResult | None
) -> ExtractionResult:
    """Pick between a document-service result and an OCR result.

    A good Tika result is returned untouched. Otherwise the longer text wins
    and the result is tagged ``hybrid`` with the primary method recorded.
    """
    if tika_result_is_good(tika_result):
        return tika_result

    if ocr_result is not None and len(ocr_result.text) > len(tika_result.text):
        winner, primary, attempted = ocr_result, ExtractionMethod.OCR, "tika_attempted"
    else:
        winner, primary, attempted = tika_result, ExtractionMethod.TIKA, "ocr_attempted"

    return ExtractionResult(
        text=winner.text,
        confidence=winner.confidence,
        extraction_method=ExtractionMethod.HYBRID,
        metadata={**winner.metadata, attempted: True, "primary_method": primary.value},
    )


class TextExtractor:
    """Turns a file into plain text, choosing a strategy by file type.

    Backends that fail with ``ServiceUnavailableError`` are retried through
    the strategy's fallback chain. When every fallback is exhausted the
    result comes back with method ``failed``; only invalid input raises.
    """

    def __init__(
        self,
        *,
        direct: ExtractionBackend,
        tika: ExtractionBackend,
        ocr: ExtractionBackend,
        max_file_size_bytes: int,
        max_text_length: int,
        hybrid_file_types: Iterable[str] = (),
    ) -> None:
        self._direct = direct
        self._tika = tika
        self._ocr = ocr
        self._max_file_size_bytes = max_file_size_bytes
        self._max_text_length = max_text_length
        self._hybrid_file_types = frozenset(t.upper() for t in hybrid_file_types)

    def extract(
        self,
        path: str | Path,
        file_type: str | None = None,
        mime_type: str | None = None,
        strategy: str | None = None,
    ) -> ExtractionResult:
        path = Path(path)
        self._validate(path)

        detected = (file_type or detect_file_type(path)).upper()
        chosen = (
            ExtractionStrategy(strategy)
            if strategy
            else strategy_for(detected, mime_type, self._hybrid_file_types)
        )
        Log.info(f"Extracting text from {Log.path(path)}: type={detected} strategy={chosen.value}")

        try:
            result = self._run(chosen, path)
        except ServiceUnavailableError as exc:
            Log.error(f"Text extraction failed for {Log.path(path)}: {exc}")
            return ExtractionResult(
                text="",
                confidence=0.0,
                extraction_method=ExtractionMethod.FAILED,
                metadata={
                    "error": str(exc),
                    "strategy": chosen.value,
                    "timestamp": datetime.now(UTC).isoformat(),
                },
            )

        result = post_process(result, self._max_text_length)
        Log.info(
            f"Text extraction completed for {Log.path(path)}: "
            f"method={result.extraction_method.value} length={len(result.text)} "
            f"confidence={result.confidence:.2f}"
        )
        return result

    def _validate(self, path: Path) -> None:
        if not path.exists():
            raise FileValidationError(f"File not found: {Log.path(path)}")
        if not path.is_file():
            raise FileValidationError(f"Not a regular file: {Log.path(path)}")
        if not os.access(path, os.R_OK):
            raise FileValidationError(f"File is not readable: {Log.path(path)}")

        size = path.stat().st_size
        if size > self._max_file_size_bytes:
            raise FileValidationError(
                f"File too large: {size} bytes (max: {self._max_file_size_bytes})"
            )

    def _run(self, strategy: ExtractionStrategy, path: Path) -> ExtractionResult:
        if strategy is ExtractionStrategy.DIRECT:
            return FallbackChain(
                [FallbackStep("direct", lambda: self._direct.extract(path))]
            ).execute()
        if strategy is ExtractionStrategy.TIKA:
            return FallbackChain(self._tika_steps(path)).execute()
        if strategy is ExtractionStrategy.OCR:
            return FallbackChain(self._ocr_steps(path) + self._tika_steps(path)).execute()
        return self._hybrid(path)

    def _tika_steps(self, path: Path) -> list[FallbackStep]:
        return [
            FallbackStep("tika", lambda: self._probe_then_extract(self._tika, path)),
            FallbackStep(
                "direct",
                lambda: self._direct.extract(path),
                applies=lambda: is_probably_text(path),
            ),
        ]

    def _ocr_steps(self, path: Path) -> list[FallbackStep]:
        return [
            FallbackStep(
                "ocr",
                lambda: self._ocr.extract(path),
                accept=lambda result: len(result.text.strip()) >= MIN_OCR_TEXT_LENGTH,
                applies=self._ocr.health_check,
            ),
        ]

    def _hybrid(self, path: Path) -> ExtractionResult:
        tika_result = FallbackChain(self._tika_steps(path)).execute()
        if tika_result_is_good(tika_result):
            return tika_result

        ocr_result = None
        try:
            ocr_result = FallbackChain(self._ocr_steps(path)).execute()
        except ServiceUnavailableError as exc:
            Log.warning(f"OCR pass of hybrid extraction failed, keeping Tika result: {exc}")
        return select_hybrid(tika_result, ocr_result)

    @staticmethod
    def _probe_then_extract(backend: ExtractionBackend, path: Path) -> ExtractionResult:
        if not backend.health_check():
            Log.warning(f"{backend.name} health check failed, attempting extraction anyway")
        return backend.extract(path)
