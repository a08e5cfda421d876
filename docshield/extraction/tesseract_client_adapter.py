import json
import re
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx

from docshield.extraction.base import ExtractionBackend
from docshield.extraction.file_types import mime_type_for
from docshield.extraction.models import ExtractionMethod, ExtractionResult
from docshield.logging.logger import Log
from docshield.processor.exceptions import ServiceUnavailableError

SUPPORTED_IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "tiff", "tif", "bmp", "gif"})

DEFAULT_OCR_CONFIDENCE = 0.7
LOW_CONFIDENCE_THRESHOLD = 0.6

_GARBLED_CHARS = re.compile(r"[^a-zA-Z0-9\s\-()@.,]")
_PHONE_SHAPE = re.compile(r"\d{3}-\d{3}-\d{4}")
_SSN_SHAPE = re.compile(r"\d{3}-\d{2}-\d{4}")


def estimate_confidence(text: str, stderr: str = "") -> float:
    """Score OCR output that came back without a confidence value.

    Starts from a baseline of 85, penalises tesseract warnings and garbled or
    very short text, rewards recognisable PII shapes, clamps to [60, 95] and
    returns the score on a 0-1 scale.
    """
    score = 85

    if "Invalid resolution" in stderr:
        score -= 5
    if "Warning" in stderr:
        score -= 3
    if "Error" in stderr:
        score -= 15

    total_chars = len(text)
    word_count = len(text.split())
    if total_chars and len(_GARBLED_CHARS.findall(text)) / total_chars > 0.2:
        score -= 10
    if word_count < 3:
        score -= 10
    if total_chars < 10:
        score -= 15

    if "@" in text:
        score += 5
    if _PHONE_SHAPE.search(text):
        score += 5
    if _SSN_SHAPE.search(text):
        score += 5

    return max(60, min(95, score)) / 100


def _clamp(value: float) -> float:
    return max(0.1, min(1.0, value))


class TesseractClientAdapter(ExtractionBackend):
    """OCR through a tesseract-server instance."""

    name = "ocr"

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: int,
        health_timeout_seconds: int,
        language: str = "eng",
        psm: int = 3,
        oem: int = 1,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(base_url=base_url)
        self._timeout = timeout_seconds
        self._health_timeout = health_timeout_seconds
        self._language = language
        self._psm = psm
        self._oem = oem

    def health_check(self) -> bool:
        try:
            response = self._client.get("/", timeout=self._health_timeout)
        except httpx.HTTPError as exc:
            Log.warning(f"OCR health check failed: {exc}")
            return False
        return response.status_code == 200

    def extract(self, path: Path) -> ExtractionResult:
        extension = path.suffix.lower().lstrip(".")
        if extension not in SUPPORTED_IMAGE_EXTENSIONS:
            raise ServiceUnavailableError(f"Unsupported image format: {extension or 'unknown'}")

        try:
            content = path.read_bytes()
        except OSError as exc:
            raise ServiceUnavailableError(f"Failed to read image: {exc}") from exc

        options = {
            "languages": [self._language],
            "pageSegmentationMethod": self._psm,
            "ocrEngineMode": self._oem,
        }
        started = time.monotonic()
        try:
            response = self._client.post(
                "/tesseract",
                files={"file": (path.name, content, mime_type_for(path))},
                data={"options": json.dumps(options)},
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ServiceUnavailableError(f"OCR timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise ServiceUnavailableError(
                f"OCR service returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ServiceUnavailableError(f"OCR request failed: {exc}") from exc

        text, confidence = self._parse(response)
        elapsed_ms = int((time.monotonic() - started) * 1000)

        metadata: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "ocr_confidence": confidence,
            "language": self._language,
            "processing_time_ms": elapsed_ms,
            "word_count": len(text.split()),
            "image_format": extension,
        }
        if confidence < LOW_CONFIDENCE_THRESHOLD:
            Log.warning(
                f"OCR result for {Log.path(path)} has low confidence ({confidence:.2f})"
            )
            metadata["quality_warnings"] = [
                f"Low OCR confidence: {confidence:.2f}"
            ]

        return ExtractionResult(
            text=text,
            confidence=confidence,
            extraction_method=ExtractionMethod.OCR,
            metadata=metadata,
        )

    @classmethod
    def _parse(cls, response: httpx.Response) -> tuple[str, float]:
        """Accept a ``{text, confidence}`` body, the tesseract-server envelope, or raw text."""
        content_type = response.headers.get("content-type", "")
        if "json" not in content_type:
            return response.text.strip(), DEFAULT_OCR_CONFIDENCE

        try:
            body = response.json()
        except ValueError as exc:
            raise ServiceUnavailableError("OCR service returned malformed JSON") from exc
        if not isinstance(body, dict):
            raise ServiceUnavailableError("OCR service returned an unexpected payload")

        try:
            return cls._read_body(body)
        except (AttributeError, TypeError, ValueError) as exc:
            raise ServiceUnavailableError(f"OCR service returned a malformed body: {exc}") from exc

    @staticmethod
    def _read_body(body: dict[str, Any]) -> tuple[str, float]:
        if "text" in body:
            raw = body.get("confidence")
            if raw is None:
                return str(body["text"] or "").strip(), DEFAULT_OCR_CONFIDENCE
            confidence = float(raw)
            # some servers report a percentage
            if confidence > 1.0:
                confidence /= 100
            return str(body["text"] or "").strip(), _clamp(confidence)

        data = body.get("data")
        if isinstance(data, dict):
            exit_code = (data.get("exit") or {}).get("code", 0)
            stderr = data.get("stderr") or ""
            if exit_code != 0:
                raise ServiceUnavailableError(
                    f"OCR processing failed with exit code {exit_code}: {stderr}"
                )
            text = (data.get("stdout") or "").strip()
            return text, estimate_confidence(text, stderr)

        raise ServiceUnavailableError("OCR service response has no text")
