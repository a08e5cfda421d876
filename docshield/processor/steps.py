from dataclasses import replace

from docshield.anonymization.generic import GenericAnonymizer
from docshield.anonymization.operator_builder import OperatorBuilder
from docshield.database.repositories.dataset_repository import DatasetRepository
from docshield.database.repositories.policy_repository import PolicyRepository
from docshield.docx.anonymizer import DocxAnonymizer
from docshield.extraction.extractor import TextExtractor
from docshield.logging.logger import Log
from docshield.pdf.anonymizer import PdfAnonymizer
from docshield.processor.exceptions import (
    ExtractionError,
    FileValidationError,
    ValidationError,
)
from docshield.processor.findings import check_offsets
from docshield.processor.output_writer import OutputWriter
from docshield.processor.path_resolver import PathResolver
from docshield.processor.pipeline import PipelineContext, PipelineStep


class LoadDatasetStep(PipelineStep):
    progress = 10
    phase = "Loading dataset"

    def __init__(self, dataset_repo: DatasetRepository, path_resolver: PathResolver) -> None:
        self._dataset_repo = dataset_repo
        self._path_resolver = path_resolver

    def run(self, context: PipelineContext) -> PipelineContext:
        dataset = self._dataset_repo.find_by_id(context.job.dataset_id)
        source_path = self._path_resolver.resolve(context.job.source_path or dataset.source_path)
        if not source_path.is_file():
            raise FileValidationError(f"Source file not found: {Log.path(source_path)}")
        context.dataset = dataset
        context.source_path = source_path
        Log.info(f"Loaded dataset {dataset.id} ({dataset.file_type}) from {Log.path(source_path)}")
        return context


class ExtractTextStep(PipelineStep):
    progress = 20
    phase = "Extracting text"

    def __init__(self, extractor: TextExtractor) -> None:
        self._extractor = extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.dataset is None or context.source_path is None:
            raise ValueError("PipelineContext.dataset must be set before extraction")
        result = self._extractor.extract(
            context.source_path,
            file_type=context.dataset.file_type,
            mime_type=context.dataset.mime_type,
        )
        if result.failed:
            raise ExtractionError(
                f"Text extraction failed: {result.metadata.get('error', 'unknown error')}"
            )
        if not result.text.strip():
            raise ValidationError(f"No text extracted from dataset {context.dataset.id}")
        context.extraction = result
        return context


class LoadPolicyStep(PipelineStep):
    progress = 30
    phase = "Loading policy"

    def __init__(self, policy_repo: PolicyRepository) -> None:
        self._policy_repo = policy_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        context.policy = self._policy_repo.load(context.job.policy_id)
        Log.info(
            f"Loaded policy '{context.policy.name or context.job.policy_id}' "
            f"with {len(context.policy.entity_configurations)} entity rules"
        )
        return context


class ResolveActionsStep(PipelineStep):
    progress = 40
    phase = "Resolving actions"

    def __init__(self, operator_builder: OperatorBuilder) -> None:
        self._operator_builder = operator_builder

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.policy is None:
            raise ValueError("PipelineContext.policy must be set before resolving actions")
        context.findings = [
            replace(f, action=self._operator_builder.resolve_action(context.policy, f))
            for f in context.job.findings
        ]
        return context


class ValidateFindingsStep(PipelineStep):
    progress = 45
    phase = "Validating findings"

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None:
            raise ValueError("PipelineContext.extraction must be set before validating findings")
        check_offsets(context.findings, context.extraction.text)
        return context


class BuildOperatorsStep(PipelineStep):
    progress = 50
    phase = "Building operators"

    def __init__(self, operator_builder: OperatorBuilder) -> None:
        self._operator_builder = operator_builder

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.policy is None:
            raise ValueError("PipelineContext.policy must be set before building operators")
        context.operators = self._operator_builder.build(context.policy, context.findings)
        return context


class AnonymizeTextStep(PipelineStep):
    progress = 70
    phase = "Anonymizing text"

    def __init__(self, anonymizer: GenericAnonymizer) -> None:
        self._anonymizer = anonymizer

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None or context.dataset is None or context.source_path is None:
            raise ValueError("PipelineContext.extraction must be set before anonymization")
        result = self._anonymizer.anonymize(
            context.extraction.text, context.findings, context.operators
        )
        context.anonymization_result = result
        context.rendered = self._anonymizer.render(
            result,
            output_type=context.job.output_type,
            dataset=context.dataset,
            original_length=len(context.extraction.text),
            source_path=context.source_path,
        )
        return context


class AnonymizePdfStep(PipelineStep):
    progress = 70
    phase = "Anonymizing PDF"

    def __init__(self, anonymizer: PdfAnonymizer, output_writer: OutputWriter) -> None:
        self._anonymizer = anonymizer
        self._output_writer = output_writer

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.dataset is None or context.source_path is None:
            raise ValueError("PipelineContext.dataset must be set before PDF anonymization")
        output_path = self._output_writer.path_for(context.dataset.id, "pdf")
        context.container_result = self._anonymizer.anonymize(
            context.source_path, context.findings, output_path
        )
        context.output_path = output_path
        return context


class AnonymizeDocxStep(PipelineStep):
    progress = 70
    phase = "Anonymizing DOCX"

    def __init__(self, anonymizer: DocxAnonymizer, output_writer: OutputWriter) -> None:
        self._anonymizer = anonymizer
        self._output_writer = output_writer

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.dataset is None or context.source_path is None:
            raise ValueError("PipelineContext.dataset must be set before DOCX anonymization")
        output_path = self._output_writer.path_for(context.dataset.id, "docx")
        context.container_result = self._anonymizer.anonymize(
            context.source_path, context.findings, output_path
        )
        context.output_path = output_path
        return context


class StoreOutputStep(PipelineStep):
    progress = 85
    phase = "Storing output"

    def __init__(self, output_writer: OutputWriter) -> None:
        self._output_writer = output_writer

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.rendered is None or context.dataset is None:
            raise ValueError("PipelineContext.rendered must be set before storing output")
        context.output_path = self._output_writer.write(
            context.dataset.id,
            context.rendered.content,
            context.rendered.extension,
            report=context.rendered.kind == "image_report",
        )
        return context


class UpdateDatasetStep(PipelineStep):
    progress = 95
    phase = "Updating dataset"

    def __init__(self, dataset_repo: DatasetRepository) -> None:
        self._dataset_repo = dataset_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.dataset is None or context.output_path is None:
            raise ValueError("PipelineContext.output_path must be set before updating dataset")
        extraction = context.extraction
        self._dataset_repo.update_anonymization(
            context.dataset.id,
            context.output_path,
            extraction_method=extraction.extraction_method.value if extraction else None,
            extraction_confidence=extraction.confidence if extraction else None,
        )
        return context
