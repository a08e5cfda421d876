from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Finding:
    """A detected PII span in the source text."""

    entity_type: str
    text: str
    start_offset: int
    end_offset: int
    confidence: float
    line_number: int | None = None
    context: str | None = None
    action: str | None = None  # per-finding override, e.g. "redact"
    replacement: str | None = None


@dataclass(frozen=True)
class Dataset:
    """Domain model for an uploaded dataset (subset of DB columns)."""

    id: str
    name: str
    filename: str
    file_type: str  # canonical upper-case type, e.g. "PDF", "TXT", "PNG"
    source_path: str
    mime_type: str | None = None


@dataclass(frozen=True)
class AnonymizationJob:
    """Everything the pipeline needs to know about one queued job."""

    job_id: str
    dataset_id: str
    policy_id: str | None
    findings: list[Finding] = field(default_factory=list)
    source_path: str = ""
    output_type: str = "json"


@dataclass
class OrchestrationResult:
    """Summary returned once a job completes."""

    job_id: str
    dataset_id: str
    output_path: Path
    operations_count: int
    original_length: int | None = None
    anonymized_length: int | None = None
    entity_types: list[str] = field(default_factory=list)
