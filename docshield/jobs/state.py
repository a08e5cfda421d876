"""Job lifecycle state machine.

    PENDING --START--> PROCESSING --ADVANCE*--> PROCESSING --COMPLETE--> COMPLETED
    PENDING | PROCESSING --FAIL--> FAILED

Progress never goes backwards and only reaches 100 on COMPLETE.
"""

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum

from docshield.jobs.exceptions import InvalidTransitionError


class JobStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class JobEvent(str, Enum):
    START = "START"
    ADVANCE = "ADVANCE"
    COMPLETE = "COMPLETE"
    FAIL = "FAIL"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


@dataclass(frozen=True)
class JobState:
    job_id: str
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    phase: str = ""
    error: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition(
        self,
        event: JobEvent,
        *,
        progress: int | None = None,
        phase: str = "",
        error: str | None = None,
    ) -> "JobState":
        """Return the state after *event*. The current state is not modified.

        Raises:
            InvalidTransitionError: if *event* is not allowed from the current
                status, or *progress* would go backwards or out of range.
        """
        if self.is_terminal:
            raise InvalidTransitionError(
                f"Job {self.job_id} is {self.status.value}; cannot apply {event.value}"
            )

        now = datetime.now(UTC)

        if event is JobEvent.START:
            self._require(event, JobStatus.PENDING)
            return replace(
                self,
                status=JobStatus.PROCESSING,
                progress=self._checked_progress(progress or self.progress),
                phase=phase or "Started",
                started_at=now,
            )

        if event is JobEvent.ADVANCE:
            self._require(event, JobStatus.PROCESSING)
            if progress is None:
                raise InvalidTransitionError("ADVANCE requires a progress value")
            return replace(self, progress=self._checked_progress(progress), phase=phase)

        if event is JobEvent.COMPLETE:
            self._require(event, JobStatus.PROCESSING)
            return replace(
                self,
                status=JobStatus.COMPLETED,
                progress=100,
                phase=phase or "Completed",
                ended_at=now,
            )

        if event is JobEvent.FAIL:
            return replace(
                self,
                status=JobStatus.FAILED,
                phase=phase or "Failed",
                error=error or "Unknown error",
                ended_at=now,
            )

        raise InvalidTransitionError(f"Unknown event: {event}")

    def _require(self, event: JobEvent, status: JobStatus) -> None:
        if self.status is not status:
            raise InvalidTransitionError(
                f"Cannot apply {event.value} to job {self.job_id} in status {self.status.value}"
            )

    def _checked_progress(self, progress: int) -> int:
        if not 0 <= progress < 100:
            raise InvalidTransitionError(
                f"Progress {progress} out of range for an unfinished job (0-99)"
            )
        if progress < self.progress:
            raise InvalidTransitionError(
                f"Progress cannot go backwards: {self.progress} -> {progress}"
            )
        return progress
