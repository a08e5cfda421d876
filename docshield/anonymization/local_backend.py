"""In-process anonymization backend.

No network calls. Useful for local development, tests, and deployments
without an anonymizer service. Spans are rendered with the same
entity-shape rules used for DOCX documents, so ``mask`` shortens an email
to ``tes***@***.com`` rather than masking a fixed number of characters.
"""

from docshield.anonymization.base import AnonymizationBackend
from docshield.anonymization.models import (
    AnalyzerResult,
    AnonymizationOperator,
    AnonymizationResult,
    AppliedOperation,
    HashOperator,
    MaskOperator,
    ReplaceOperator,
)
from docshield.masking import rules


class LocalAnonymizationBackend(AnonymizationBackend):
    """Applies operators directly to the text. Overlapping spans are always merged."""

    def anonymize(
        self,
        text: str,
        analyzer_results: list[AnalyzerResult],
        operators: dict[str, AnonymizationOperator],
        conflict_resolution: str = "merge_similar_or_contained",
    ) -> AnonymizationResult:
        spans = self._merge(analyzer_results)

        parts: list[str] = []
        items: list[AppliedOperation] = []
        cursor = 0
        out_len = 0
        for span in spans:
            operator = operators.get(span.entity_type)
            if operator is None:
                raise ValueError(
                    f"No operator configured for entity type {span.entity_type}"
                )
            gap = text[cursor : span.start]
            parts.append(gap)
            out_len += len(gap)
            rendered = self._render(text[span.start : span.end], span.entity_type, operator)
            parts.append(rendered)
            items.append(
                AppliedOperation(
                    entity_type=span.entity_type,
                    start=out_len,
                    end=out_len + len(rendered),
                    operator=operator.type,
                    text=rendered,
                )
            )
            out_len += len(rendered)
            cursor = span.end
        parts.append(text[cursor:])
        return AnonymizationResult(text="".join(parts), items=items)

    @staticmethod
    def _merge(results: list[AnalyzerResult]) -> list[AnalyzerResult]:
        """Collapse overlapping or contained spans into one; the higher score names it."""
        ordered = sorted(results, key=lambda r: (r.start, -r.end))
        merged: list[AnalyzerResult] = []
        for current in ordered:
            if merged and current.start < merged[-1].end:
                prev = merged[-1]
                winner = prev if prev.score >= current.score else current
                merged[-1] = AnalyzerResult(
                    entity_type=winner.entity_type,
                    start=prev.start,
                    end=max(prev.end, current.end),
                    score=max(prev.score, current.score),
                )
            else:
                merged.append(current)
        return merged

    @staticmethod
    def _render(original: str, entity_type: str, operator: AnonymizationOperator) -> str:
        if isinstance(operator, MaskOperator):
            return rules.mask_text(original, entity_type, operator.masking_char)
        if isinstance(operator, ReplaceOperator):
            return operator.new_value
        if isinstance(operator, HashOperator):
            return rules.hash_text(original)
        return rules.REDACTED
