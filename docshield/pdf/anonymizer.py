from collections import defaultdict
from pathlib import Path

import pymupdf

from docshield.anonymization.models import PdfAnonymizationResult
from docshield.logging.logger import Log
from docshield.processor.exceptions import AnonymizationError, OutputWriteError
from docshield.processor.models import Finding

RED = (1, 0, 0)
WHITE = (1, 1, 1)
BLACK = (0, 0, 0)
DARK_RED = (0.7, 0, 0)

# first-page notice per non-redact action: (label, verb, y offset from top, colour)
_NOTICES: dict[str, tuple[str, str, float, tuple[float, float, float]]] = {
    "mask": ("MASKED", "masked", 80, (0, 0, 1)),
    "replace": ("REPLACED", "replaced with placeholders", 110, (0, 0.5, 0)),
    "hash": ("HASHED", "replaced with hash tokens", 140, (0.5, 0, 0.5)),
}


def group_by_action(findings: list[Finding]) -> dict[str, list[Finding]]:
    """Group findings by action; ``encrypt``, missing and unknown actions become ``redact``."""
    groups: dict[str, list[Finding]] = defaultdict(list)
    for finding in findings:
        action = (finding.action or "redact").lower()
        if action not in _NOTICES:
            action = "redact"
        groups[action].append(finding)
    return dict(groups)


class PdfAnonymizer:
    """Stamps redaction banners and notices onto a PDF with PyMuPDF.

    Findings carry text offsets, not page coordinates, so the output marks
    what was anonymized rather than blacking out the exact glyphs.
    """

    def anonymize(
        self,
        source_path: Path,
        findings: list[Finding],
        output_path: Path,
    ) -> PdfAnonymizationResult:
        Log.info(
            f"Starting PDF anonymization of {Log.path(source_path)} "
            f"with {len(findings)} findings"
        )
        try:
            original_size = source_path.stat().st_size
            with pymupdf.open(str(source_path)) as doc:  # type: ignore[no-untyped-call]
                operations = 0
                entity_types: set[str] = set()
                for action, group in group_by_action(findings).items():
                    Log.info(f"Processing {len(group)} {action} operations")
                    if action == "redact":
                        operations += self._apply_redactions(doc, group)
                    else:
                        operations += self._apply_notice(doc, action, group)
                    entity_types.update(f.entity_type for f in group)

                self._write_metadata(doc, len(findings), operations)
                self._save(doc, output_path)
        except (OutputWriteError, AnonymizationError):
            raise
        except Exception as exc:
            Log.error(f"PDF anonymization failed for {Log.path(source_path)}: {exc}")
            raise AnonymizationError(f"PDF anonymization failed: {exc}") from exc

        anonymized_size = output_path.stat().st_size
        Log.info(
            f"PDF anonymization completed: {operations} operations, "
            f"{original_size} -> {anonymized_size} bytes, output {Log.path(output_path)}"
        )
        return PdfAnonymizationResult(
            output_path=output_path,
            original_size=original_size,
            anonymized_size=anonymized_size,
            operations_count=operations,
            entity_types=entity_types,
        )

    @staticmethod
    def _apply_redactions(doc: pymupdf.Document, findings: list[Finding]) -> int:
        if not findings:
            return 0

        banner = f"REDACTED: {len(findings)} PII entities removed"
        operations = 0
        for page in doc:
            width = page.rect.width
            page.draw_rect(
                pymupdf.Rect(50, 25, width - 50, 50),
                color=None,
                fill=RED,
                fill_opacity=0.7,
            )
            page.insert_text((60, 42), banner, fontsize=10, color=WHITE)
            operations += 1

        if doc.page_count:
            first = doc[0]
            entity_types = list(dict.fromkeys(f.entity_type for f in findings))
            for index, entity_type in enumerate(entity_types):
                top = 185 + index * 30
                first.draw_rect(pymupdf.Rect(100, top, 300, top + 15), color=None, fill=BLACK)
                first.insert_text(
                    (320, top + 12), f"[{entity_type} REDACTED]", fontsize=8, color=DARK_RED
                )

        return operations + len(findings)

    @staticmethod
    def _apply_notice(doc: pymupdf.Document, action: str, findings: list[Finding]) -> int:
        if not findings or not doc.page_count:
            return 0
        label, verb, offset, colour = _NOTICES[action]
        doc[0].insert_text(
            (50, offset), f"{label}: {len(findings)} PII entities {verb}", fontsize=8, color=colour
        )
        return 1

    @staticmethod
    def _write_metadata(doc: pymupdf.Document, findings_count: int, operations: int) -> None:
        existing = doc.metadata or {}
        metadata = {key: existing.get(key) or "" for key in ("author", "creator", "modDate")}
        metadata.update(
            {
                "title": "Anonymized Document",
                "subject": (
                    f"PII anonymized document - {findings_count} findings, "
                    f"{operations} operations applied"
                ),
                "keywords": "anonymized, privacy, PII-removed",
                "producer": "docshield PDF anonymizer",
                "creationDate": pymupdf.get_pdf_now(),
            }
        )
        try:
            doc.set_metadata(metadata)
        except (RuntimeError, ValueError) as exc:
            Log.warning(f"Failed to write PDF anonymization metadata: {exc}")

    @staticmethod
    def _save(doc: pymupdf.Document, output_path: Path) -> None:
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            doc.save(str(output_path), garbage=3, deflate=True)
        except OSError as exc:
            raise OutputWriteError(f"Failed to write anonymized PDF: {exc}") from exc
