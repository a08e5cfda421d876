from typing import Any

import httpx

from docshield.anonymization.base import AnonymizationBackend
from docshield.anonymization.models import (
    AnalyzerResult,
    AnonymizationOperator,
    AnonymizationResult,
    AppliedOperation,
)
from docshield.logging.logger import Log
from docshield.processor.exceptions import ServiceUnavailableError


class PresidioAnonymizerAdapter(AnonymizationBackend):
    """Anonymization adapter for the Presidio anonymizer REST service."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: int,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout_seconds,
            headers={"User-Agent": "docshield-worker/1.0"},
        )

    def anonymize(
        self,
        text: str,
        analyzer_results: list[AnalyzerResult],
        operators: dict[str, AnonymizationOperator],
        conflict_resolution: str = "merge_similar_or_contained",
    ) -> AnonymizationResult:
        payload = {
            "text": text,
            "analyzer_results": [r.to_payload() for r in analyzer_results],
            "anonymizers": {k: op.to_payload() for k, op in operators.items()},
            "conflict_resolution": conflict_resolution,
        }
        Log.debug(
            f"Sending {len(analyzer_results)} spans to Presidio with operators {sorted(operators)}"
        )
        try:
            response = self._client.post("/anonymize", json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ServiceUnavailableError(f"Anonymizer network error: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise ServiceUnavailableError(
                f"Anonymizer returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ServiceUnavailableError(f"Anonymizer request failed: {exc}") from exc

        return self._parse(body)

    @staticmethod
    def _parse(body: Any) -> AnonymizationResult:
        if not isinstance(body, dict) or not isinstance(body.get("text"), str):
            raise ServiceUnavailableError("Anonymizer response has no 'text' field")
        items = body.get("items") or []
        if not isinstance(items, list):
            raise ServiceUnavailableError("Anonymizer response 'items' must be a list")
        applied = [
            AppliedOperation(
                entity_type=str(item.get("entity_type", "")),
                start=int(item.get("start", 0)),
                end=int(item.get("end", 0)),
                operator=str(item.get("operator", "")),
                text=str(item.get("text", "")),
            )
            for item in items
            if isinstance(item, dict)
        ]
        return AnonymizationResult(text=body["text"], items=applied)
