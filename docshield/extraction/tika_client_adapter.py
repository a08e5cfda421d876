from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx

from docshield.extraction.base import ExtractionBackend
from docshield.extraction.file_types import mime_type_for
from docshield.extraction.models import ExtractionMethod, ExtractionResult
from docshield.logging.logger import Log
from docshield.processor.exceptions import ServiceUnavailableError

TIKA_CONFIDENCE = 0.9


class TikaClientAdapter(ExtractionBackend):
    """Document conversion through an Apache Tika server."""

    name = "tika"

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: int,
        metadata_timeout_seconds: int,
        health_timeout_seconds: int,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(base_url=base_url)
        self._timeout = timeout_seconds
        self._metadata_timeout = metadata_timeout_seconds
        self._health_timeout = health_timeout_seconds

    def health_check(self) -> bool:
        try:
            response = self._client.get("/version", timeout=self._health_timeout)
        except httpx.HTTPError as exc:
            Log.warning(f"Tika health check failed: {exc}")
            return False
        return response.status_code == 200

    def extract(self, path: Path) -> ExtractionResult:
        content = self._read(path)
        mime_type = mime_type_for(path)
        try:
            response = self._client.post(
                "/tika/form",
                files={"upload": (path.name, content, mime_type)},
                headers={"Accept": "text/plain"},
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ServiceUnavailableError(f"Tika timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise ServiceUnavailableError(
                f"Tika returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ServiceUnavailableError(f"Tika request failed: {exc}") from exc

        metadata: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "tika_version": self._version(),
            "original_file_name": path.name,
            "detected_mime_type": mime_type,
        }
        document_metadata = self._document_metadata(path, content, mime_type)
        if document_metadata is not None:
            metadata["document_metadata"] = document_metadata

        return ExtractionResult(
            text=response.text or "",
            confidence=TIKA_CONFIDENCE,
            extraction_method=ExtractionMethod.TIKA,
            metadata=metadata,
        )

    def _document_metadata(
        self, path: Path, content: bytes, mime_type: str
    ) -> dict[str, Any] | None:
        """Best effort: a failure here never fails the extraction."""
        try:
            response = self._client.post(
                "/meta/form",
                files={"upload": (path.name, content, mime_type)},
                headers={"Accept": "application/json"},
                timeout=self._metadata_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            Log.warning(f"Could not extract document metadata for {Log.path(path)}: {exc}")
            return None
        return data if isinstance(data, dict) else {"raw": data}

    def _version(self) -> str:
        try:
            response = self._client.get("/version", timeout=self._health_timeout)
            response.raise_for_status()
        except httpx.HTTPError:
            return "unknown"
        return response.text.strip()

    @staticmethod
    def _read(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ServiceUnavailableError(f"Failed to read {Log.path(path)}: {exc}") from exc
