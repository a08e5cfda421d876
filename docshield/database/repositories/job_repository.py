from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from docshield.database.connection import get_connection
from docshield.database.models import JobRecord
from docshield.jobs.state import JobState, JobStatus

# The jobs table predates the worker and names two statuses differently.
_DB_STATUS: dict[JobStatus, str] = {
    JobStatus.PENDING: "QUEUED",
    JobStatus.PROCESSING: "RUNNING",
    JobStatus.COMPLETED: "COMPLETED",
    JobStatus.FAILED: "FAILED",
}

ANONYMIZE_JOB_TYPE = "ANONYMIZE"


class JobRepository:
    """Database operations for the jobs table."""

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> JobRecord | None:
        """Claim the oldest queued anonymization job using SELECT FOR UPDATE SKIP LOCKED."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id, "datasetId", "policyId", status, progress, metadata
                FROM jobs
                WHERE status = 'QUEUED'
                  AND type = %s
                ORDER BY priority DESC, "createdAt"
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (ANONYMIZE_JOB_TYPE,),
            )
            row = cur.fetchone()

        if row is None:
            return None

        conn.execute(
            """
            UPDATE jobs
            SET status = 'RUNNING', "updatedAt" = NOW()
            WHERE id = %s
            """,
            (row["id"],),
        )
        conn.commit()

        return JobRecord(
            id=row["id"],
            dataset_id=row["datasetId"],
            policy_id=row["policyId"],
            status="RUNNING",
            progress=row["progress"] or 0,
            metadata=row["metadata"] or {},
        )

    def save_state(self, state: JobState) -> None:
        """Persist status, progress, phase, error and timestamps of *state*."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE jobs
                SET status = %s,
                    progress = %s,
                    error = %s,
                    "startedAt" = COALESCE(%s, "startedAt"),
                    "endedAt" = %s,
                    metadata = COALESCE(metadata, '{}'::jsonb) || %s,
                    "updatedAt" = NOW()
                WHERE id = %s
                """,
                (
                    _DB_STATUS[state.status],
                    state.progress,
                    state.error,
                    state.started_at,
                    state.ended_at,
                    Jsonb({"phase": state.phase}),
                    state.job_id,
                ),
            )
            conn.commit()

    def find_by_id(self, job_id: str) -> JobRecord | None:
        """Find a job by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, "datasetId", "policyId", status, progress, metadata,
                           error, "startedAt", "endedAt", "createdAt"
                    FROM jobs
                    WHERE id = %s
                    """,
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return JobRecord(
            id=row["id"],
            dataset_id=row["datasetId"],
            policy_id=row["policyId"],
            status=row["status"],
            progress=row["progress"],
            metadata=row["metadata"] or {},
            error=row["error"],
            started_at=row["startedAt"],
            ended_at=row["endedAt"],
            created_at=row["createdAt"],
        )
