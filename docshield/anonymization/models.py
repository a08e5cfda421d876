from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class RedactOperator:
    """Remove the span entirely."""

    type: str = "redact"

    def to_payload(self) -> dict[str, object]:
        return {"type": self.type}


@dataclass(frozen=True)
class MaskOperator:
    """Hide ``chars_to_mask`` characters of the span with ``masking_char``."""

    masking_char: str = "*"
    chars_to_mask: int = 4
    from_end: bool = True
    type: str = "mask"

    def to_payload(self) -> dict[str, object]:
        return {
            "type": self.type,
            "masking_char": self.masking_char,
            "chars_to_mask": self.chars_to_mask,
            "from_end": self.from_end,
        }


@dataclass(frozen=True)
class ReplaceOperator:
    """Substitute the span with a literal value."""

    new_value: str = "[REDACTED]"
    type: str = "replace"

    def to_payload(self) -> dict[str, object]:
        return {"type": self.type, "new_value": self.new_value}


@dataclass(frozen=True)
class HashOperator:
    """Substitute the span with a digest token. The algorithm is a label only."""

    hash_type: str = "sha256"
    type: str = "hash"

    def to_payload(self) -> dict[str, object]:
        return {"type": self.type, "hash_type": self.hash_type}


AnonymizationOperator = RedactOperator | MaskOperator | ReplaceOperator | HashOperator


@dataclass(frozen=True)
class AnalyzerResult:
    """A finding in the shape the anonymization backend expects."""

    entity_type: str
    start: int
    end: int
    score: float

    def to_payload(self) -> dict[str, object]:
        return {
            "entity_type": self.entity_type,
            "start": self.start,
            "end": self.end,
            "score": self.score,
        }


@dataclass(frozen=True)
class AppliedOperation:
    """Single entry of the backend's operation ledger."""

    entity_type: str
    start: int
    end: int
    operator: str
    text: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "entity_type": self.entity_type,
            "start": self.start,
            "end": self.end,
            "operator": self.operator,
            "text": self.text,
        }


@dataclass
class AnonymizationResult:
    """Output of the generic (text) anonymizer."""

    text: str
    items: list[AppliedOperation] = field(default_factory=list)

    @property
    def entity_types(self) -> list[str]:
        return sorted({item.entity_type for item in self.items})


@dataclass
class ContainerAnonymizationResult:
    """Output of a format-preserving anonymizer."""

    output_path: Path
    original_size: int
    anonymized_size: int
    operations_count: int
    entity_types: set[str] = field(default_factory=set)
    success: bool = True


class PdfAnonymizationResult(ContainerAnonymizationResult):
    """Result of anonymizing a PDF."""


class DocxAnonymizationResult(ContainerAnonymizationResult):
    """Result of anonymizing a DOCX."""
