from docshield.database.models import JobRecord
from docshield.database.repositories.finding_repository import FindingRepository
from docshield.database.repositories.job_repository import JobRepository
from docshield.jobs.state import JobEvent, JobState
from docshield.logging.logger import Log
from docshield.processor.exceptions import ValidationError
from docshield.processor.findings import parse_findings
from docshield.processor.models import AnonymizationJob
from docshield.processor.orchestrator import JobOrchestrator


class JobRunner:
    """Run one claimed job and log the outcome. Retries are left to the queue."""

    def __init__(
        self,
        orchestrator: JobOrchestrator,
        job_repo: JobRepository,
        finding_repo: FindingRepository,
    ) -> None:
        self._orchestrator = orchestrator
        self._job_repo = job_repo
        self._finding_repo = finding_repo

    def run(self, record: JobRecord) -> None:
        Log.info(f"Running job {record.id} for dataset {record.dataset_id}")
        try:
            job = self.to_job(record)
        except ValidationError as exc:
            Log.error(f"Job {record.id} has an invalid payload: {exc}")
            self._job_repo.save_state(
                JobState(record.id).transition(JobEvent.FAIL, error=str(exc))
            )
            return

        try:
            self._orchestrator.process(job)
        except Exception as exc:
            # the orchestrator has already recorded the failure on the job
            Log.error(f"Job {record.id} failed: {exc}")
            return
        Log.info(f"Job {record.id} completed successfully")

    def to_job(self, record: JobRecord) -> AnonymizationJob:
        """Build the pipeline input from a job row.

        Findings come from the job's ``findingsData`` metadata when present,
        otherwise from the dataset's stored analysis findings.
        """
        metadata = record.metadata or {}
        if metadata.get("findingsData") is not None:
            findings = parse_findings(metadata["findingsData"])
        else:
            findings = self._finding_repo.find_by_dataset(record.dataset_id)

        return AnonymizationJob(
            job_id=record.id,
            dataset_id=record.dataset_id,
            policy_id=record.policy_id,
            findings=findings,
            source_path=metadata.get("sourceFilePath") or "",
            output_type=metadata.get("outputType") or "json",
        )
