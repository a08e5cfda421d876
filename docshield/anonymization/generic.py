"""Anonymization for everything that is not a PDF or DOCX container.

The source text is anonymized by an AnonymizationBackend and the result is
serialized as JSON, plain text, or (for images) an anonymization report.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from docshield.anonymization.base import AnonymizationBackend
from docshield.anonymization.models import (
    AnalyzerResult,
    AnonymizationOperator,
    AnonymizationResult,
)
from docshield.extraction.file_types import is_image_type
from docshield.logging.logger import Log
from docshield.processor.models import Dataset, Finding

CONFLICT_RESOLUTION = "merge_similar_or_contained"

IMAGE_REPORT_NOTE = (
    "This report contains the PII-anonymized text extracted from the image. "
    "The original image remains unchanged."
)


@dataclass(frozen=True)
class RenderedOutput:
    """Serialized anonymization output ready to be written to disk."""

    content: str
    extension: str
    kind: str  # "json", "text" or "image_report"


class GenericAnonymizer:
    """Sends text + findings + operators to the backend and serializes the result."""

    def __init__(self, backend: AnonymizationBackend) -> None:
        self._backend = backend

    def anonymize(
        self,
        text: str,
        findings: list[Finding],
        operators: dict[str, AnonymizationOperator],
    ) -> AnonymizationResult:
        analyzer_results = [self._to_analyzer_result(f) for f in findings]
        result = self._backend.anonymize(
            text,
            analyzer_results,
            operators,
            conflict_resolution=CONFLICT_RESOLUTION,
        )
        Log.info(
            f"Anonymized text: {len(text)} -> {len(result.text)} chars, "
            f"{len(result.items)} operations"
        )
        return result

    def render(
        self,
        result: AnonymizationResult,
        *,
        output_type: str,
        dataset: Dataset,
        original_length: int,
        source_path: Path,
    ) -> RenderedOutput:
        """Serialize *result* for storage.

        Image datasets always get a JSON report, whatever *output_type* says.
        """
        if is_image_type(dataset.file_type):
            return RenderedOutput(
                content=self._image_report(result, dataset, original_length, source_path),
                extension="json",
                kind="image_report",
            )

        kind = output_type.lower()
        if kind == "json":
            content = json.dumps(
                {
                    "anonymizedText": result.text,
                    "originalLength": original_length,
                    "anonymizedLength": len(result.text),
                    "operationsApplied": len(result.items),
                    "operations": [item.to_dict() for item in result.items],
                    "timestamp": _now_iso(),
                    "datasetId": dataset.id,
                },
                indent=2,
                ensure_ascii=False,
            )
            return RenderedOutput(content=content, extension="json", kind="json")
        if kind in ("text", "txt"):
            return RenderedOutput(content=result.text, extension=kind, kind="text")

        Log.warning(f"Unknown output type '{output_type}', defaulting to JSON")
        content = json.dumps(
            {
                "anonymizedText": result.text,
                "metadata": {
                    "originalLength": original_length,
                    "anonymizedLength": len(result.text),
                    "operationsCount": len(result.items),
                },
            },
            indent=2,
            ensure_ascii=False,
        )
        return RenderedOutput(content=content, extension="json", kind="json")

    @staticmethod
    def _to_analyzer_result(finding: Finding) -> AnalyzerResult:
        return AnalyzerResult(
            entity_type=finding.entity_type,
            start=finding.start_offset,
            end=finding.end_offset,
            score=finding.confidence,
        )

    @staticmethod
    def _image_report(
        result: AnonymizationResult,
        dataset: Dataset,
        original_length: int,
        source_path: Path,
    ) -> str:
        return json.dumps(
            {
                "reportType": "IMAGE_ANONYMIZATION_REPORT",
                "originalFile": {
                    "name": dataset.filename,
                    "type": dataset.file_type,
                    "path": source_path.name,
                },
                "extractedText": {
                    "anonymized": result.text,
                    "length": len(result.text),
                },
                "anonymizationSummary": {
                    "operationsApplied": len(result.items),
                    "operations": [item.to_dict() for item in result.items],
                    "piiEntitiesProcessed": result.entity_types,
                },
                "metadata": {
                    "originalTextLength": original_length,
                    "anonymizedTextLength": len(result.text),
                    "processingTimestamp": _now_iso(),
                    "datasetId": dataset.id,
                    "originalImageModified": False,
                    "note": IMAGE_REPORT_NOTE,
                },
            },
            indent=2,
            ensure_ascii=False,
        )


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()
