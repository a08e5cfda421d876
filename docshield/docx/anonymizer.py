import shutil
from pathlib import Path

from docshield.anonymization.models import DocxAnonymizationResult
from docshield.docx.base import DocumentEditBackend
from docshield.logging.logger import Log
from docshield.masking.rules import generate_anonymized_text
from docshield.processor.exceptions import (
    AnonymizationError,
    FileValidationError,
    OutputWriteError,
)
from docshield.processor.models import Finding


def build_replacements(findings: list[Finding]) -> tuple[list[str], list[str]]:
    """Parallel search/replacement lists; findings with empty text are skipped."""
    searches: list[str] = []
    replacements: list[str] = []
    for finding in findings:
        if not finding.text:
            continue
        action = (finding.action or "mask").lower()
        if action == "replace" and finding.replacement:
            replacement = finding.replacement
        else:
            replacement = generate_anonymized_text(finding.text, finding.entity_type, action)
        searches.append(finding.text)
        replacements.append(replacement)
    return searches, replacements


class DocxAnonymizer:
    """Format-preserving anonymization of Word documents.

    Text is matched literally, so the first finding with a given text decides
    how every occurrence of that text is rewritten.
    """

    def __init__(self, backend: DocumentEditBackend) -> None:
        self._backend = backend

    def anonymize(
        self,
        source_path: Path,
        findings: list[Finding],
        output_path: Path,
    ) -> DocxAnonymizationResult:
        self._validate_source(source_path)
        original_size = source_path.stat().st_size
        searches, replacements = build_replacements(findings)
        Log.info(
            f"Starting DOCX anonymization of {Log.path(source_path)}: "
            f"{len(searches)} replacements"
        )

        if not searches:
            Log.info("No replacements needed, copying DOCX unchanged")
            try:
                output_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source_path, output_path)
            except OSError as exc:
                raise OutputWriteError(f"Failed to copy DOCX: {exc}") from exc
        else:
            replaced = self._backend.search_and_replace(
                source_path, searches, replacements, output_path
            )
            Log.debug(f"DOCX backend replaced {replaced} occurrences")

        if not output_path.is_file() or output_path.stat().st_size == 0:
            raise AnonymizationError(
                f"Anonymized DOCX is missing or empty: {Log.path(output_path)}"
            )

        anonymized_size = output_path.stat().st_size
        Log.info(
            f"DOCX anonymization completed: {len(searches)} operations, "
            f"{original_size} -> {anonymized_size} bytes"
        )
        return DocxAnonymizationResult(
            output_path=output_path,
            original_size=original_size,
            anonymized_size=anonymized_size,
            operations_count=len(searches),
            entity_types={f.entity_type for f in findings if f.text},
        )

    @staticmethod
    def _validate_source(source_path: Path) -> None:
        if not source_path.exists():
            raise FileValidationError(f"DOCX file not found: {Log.path(source_path)}")
        if not source_path.is_file():
            raise FileValidationError(f"Not a regular file: {Log.path(source_path)}")
        if source_path.suffix.lower() != ".docx":
            raise FileValidationError(f"Not a DOCX file: {Log.path(source_path)}")
