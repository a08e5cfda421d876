from collections.abc import Iterator, Sequence
from pathlib import Path

from docshield.anonymization.factory import AnonymizationBackendFactory
from docshield.anonymization.generic import GenericAnonymizer
from docshield.anonymization.operator_builder import OperatorBuilder
from docshield.config.settings import Settings
from docshield.database.repositories.dataset_repository import DatasetRepository
from docshield.database.repositories.job_repository import JobRepository
from docshield.database.repositories.policy_repository import PolicyRepository
from docshield.docx.anonymizer import DocxAnonymizer
from docshield.docx.python_docx_adapter import PythonDocxAdapter
from docshield.extraction.factory import TextExtractorFactory
from docshield.jobs.state import JobEvent, JobState
from docshield.logging.logger import Log
from docshield.pdf.anonymizer import PdfAnonymizer
from docshield.processor.models import AnonymizationJob, OrchestrationResult
from docshield.processor.output_writer import OutputWriter
from docshield.processor.path_resolver import PathResolver
from docshield.processor.pipeline import PipelineContext, PipelineStep
from docshield.processor.steps import (
    AnonymizeDocxStep,
    AnonymizePdfStep,
    AnonymizeTextStep,
    BuildOperatorsStep,
    ExtractTextStep,
    LoadDatasetStep,
    LoadPolicyStep,
    ResolveActionsStep,
    StoreOutputStep,
    UpdateDatasetStep,
    ValidateFindingsStep,
)


class JobOrchestrator:
    """Runs one anonymization job through the pipeline for its file type.

    Pipelines:
        PDF:   load -> policy -> actions -> PDF anonymize -> dataset
        DOCX:  load -> policy -> actions -> DOCX anonymize -> dataset
        other: load -> extract -> policy -> actions -> validate -> operators
               -> anonymize -> store -> dataset

    Before each step the job's progress is advanced and saved. Any error
    marks the job FAILED and is re-raised; there is no retry here.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        load_steps: Sequence[PipelineStep],
        pipelines: dict[str, Sequence[PipelineStep]],
        default_pipeline: Sequence[PipelineStep],
    ) -> None:
        self._job_repo = job_repo
        self._load_steps = list(load_steps)
        self._pipelines = {kind.upper(): list(steps) for kind, steps in pipelines.items()}
        self._default_pipeline = list(default_pipeline)

    def process(self, job: AnonymizationJob) -> OrchestrationResult:
        Log.info(
            f"Processing job {job.job_id} for dataset {job.dataset_id} "
            f"with {len(job.findings)} findings"
        )
        state = self._save(JobState(job.job_id).transition(JobEvent.START))
        context = PipelineContext(job=job)

        try:
            for step in self._steps(context):
                state = self._save(
                    state.transition(JobEvent.ADVANCE, progress=step.progress, phase=step.phase)
                )
                Log.debug(f"Job {state.job_id}: {step.phase} ({step.progress}%)")
                context = step.run(context)
            result = self._summarize(context)
        except Exception as exc:
            Log.error(f"Job {job.job_id} failed at '{state.phase}': {exc}")
            self._save(state.transition(JobEvent.FAIL, error=str(exc)))
            raise

        self._save(state.transition(JobEvent.COMPLETE))
        Log.info(
            f"Job {job.job_id} completed: {result.operations_count} operations, "
            f"output {Log.path(result.output_path)}"
        )
        return result

    def _steps(self, context: PipelineContext) -> Iterator[PipelineStep]:
        """Load steps, then the pipeline for the file type they loaded."""
        yield from self._load_steps
        yield from self._pipeline_for(context)

    def _pipeline_for(self, context: PipelineContext) -> list[PipelineStep]:
        if context.dataset is None:
            raise ValueError("PipelineContext.dataset must be set before dispatch")
        return self._pipelines.get(context.dataset.file_type.upper(), self._default_pipeline)

    def _save(self, state: JobState) -> JobState:
        self._job_repo.save_state(state)
        return state

    @staticmethod
    def _summarize(context: PipelineContext) -> OrchestrationResult:
        if context.output_path is None:
            raise ValueError("Pipeline finished without producing an output")

        job = context.job
        if context.container_result is not None:
            return OrchestrationResult(
                job_id=job.job_id,
                dataset_id=job.dataset_id,
                output_path=context.output_path,
                operations_count=context.container_result.operations_count,
                entity_types=sorted(context.container_result.entity_types),
            )

        anonymized = context.anonymization_result
        extraction = context.extraction
        return OrchestrationResult(
            job_id=job.job_id,
            dataset_id=job.dataset_id,
            output_path=context.output_path,
            operations_count=len(anonymized.items) if anonymized else 0,
            original_length=len(extraction.text) if extraction else None,
            anonymized_length=len(anonymized.text) if anonymized else None,
            entity_types=anonymized.entity_types if anonymized else [],
        )


def build_orchestrator(settings: Settings) -> JobOrchestrator:
    """Build a JobOrchestrator with all required adapters."""
    job_repo = JobRepository()
    dataset_repo = DatasetRepository()
    policy_repo = PolicyRepository()
    operator_builder = OperatorBuilder()
    output_writer = OutputWriter(Path(settings.storage_dir))
    path_resolver = PathResolver(Path(settings.source_root))
    generic = GenericAnonymizer(AnonymizationBackendFactory.create(settings))
    extractor = TextExtractorFactory.create(settings)

    load_policy = LoadPolicyStep(policy_repo)
    resolve_actions = ResolveActionsStep(operator_builder)
    update_dataset = UpdateDatasetStep(dataset_repo)

    return JobOrchestrator(
        job_repo=job_repo,
        load_steps=[LoadDatasetStep(dataset_repo, path_resolver)],
        pipelines={
            "PDF": [
                load_policy,
                resolve_actions,
                AnonymizePdfStep(PdfAnonymizer(), output_writer),
                update_dataset,
            ],
            "DOCX": [
                load_policy,
                resolve_actions,
                AnonymizeDocxStep(DocxAnonymizer(PythonDocxAdapter()), output_writer),
                update_dataset,
            ],
        },
        default_pipeline=[
            ExtractTextStep(extractor),
            load_policy,
            resolve_actions,
            ValidateFindingsStep(),
            BuildOperatorsStep(operator_builder),
            AnonymizeTextStep(generic),
            StoreOutputStep(output_writer),
            update_dataset,
        ],
    )
