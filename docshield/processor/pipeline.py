from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar

from docshield.anonymization.generic import RenderedOutput
from docshield.anonymization.models import (
    AnonymizationOperator,
    AnonymizationResult,
    ContainerAnonymizationResult,
)
from docshield.extraction.models import ExtractionResult
from docshield.policy.models import PolicyConfig
from docshield.processor.models import AnonymizationJob, Dataset, Finding


@dataclass(slots=True)
class PipelineContext:
    job: AnonymizationJob
    dataset: Dataset | None = None
    source_path: Path | None = None
    extraction: ExtractionResult | None = None
    policy: PolicyConfig | None = None
    findings: list[Finding] = field(default_factory=list)
    operators: dict[str, AnonymizationOperator] = field(default_factory=dict)
    anonymization_result: AnonymizationResult | None = None
    container_result: ContainerAnonymizationResult | None = None
    rendered: RenderedOutput | None = None
    output_path: Path | None = None


class PipelineStep(ABC):
    """One stage of a job. ``progress`` is reported when the stage starts."""

    progress: ClassVar[int]
    phase: ClassVar[str]

    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
