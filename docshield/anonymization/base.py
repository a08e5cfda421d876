from abc import ABC, abstractmethod

from docshield.anonymization.models import (
    AnalyzerResult,
    AnonymizationOperator,
    AnonymizationResult,
)


class AnonymizationBackend(ABC):
    """Contract for all text anonymization adapters."""

    @abstractmethod
    def anonymize(
        self,
        text: str,
        analyzer_results: list[AnalyzerResult],
        operators: dict[str, AnonymizationOperator],
        conflict_resolution: str = "merge_similar_or_contained",
    ) -> AnonymizationResult:
        """Apply *operators* to the spans in *analyzer_results*.

        Args:
            text: Source text the spans refer to.
            analyzer_results: Entity spans with scores.
            operators: Operator per entity type. Must cover every span's type.
            conflict_resolution: How overlapping spans are combined.

        Returns:
            AnonymizationResult with the new text and the applied operations.

        Raises:
            ServiceUnavailableError: if the backend cannot be reached or
                answers with an unusable payload.
        """
