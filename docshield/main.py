from docshield.config.settings import Settings
from docshield.database.connection import close_pool, init_pool
from docshield.database.repositories.finding_repository import FindingRepository
from docshield.database.repositories.job_repository import JobRepository
from docshield.logging.logger import Log
from docshield.processor.orchestrator import build_orchestrator
from docshield.worker.job_runner import JobRunner
from docshield.worker.worker import Worker


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        orchestrator = build_orchestrator(settings)
        job_repo = JobRepository()
        job_runner = JobRunner(orchestrator, job_repo, FindingRepository())
        worker = Worker(job_repo, job_runner, settings)
        worker.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
