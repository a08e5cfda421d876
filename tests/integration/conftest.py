import json
import os
import uuid
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from docshield.config.settings import Settings
from docshield.database.connection import close_pool, get_connection, init_pool
from docshield.database.models import JobRecord


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docshield_test")
    return Settings()


def _choose_existing_owner(db_conn: psycopg.Connection[Any]) -> tuple[str, str]:
    """Return (project_id, user_id) of any existing project."""
    with db_conn.cursor() as cur:
        cur.execute('SELECT id, "userId" FROM projects ORDER BY "createdAt" LIMIT 1')
        row = cur.fetchone()
    if row is None:
        pytest.skip("No projects rows in DB for integration test setup")
    return str(row[0]), str(row[1])


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute("SELECT 1")
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a migrated docshield database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup() -> Generator[list[tuple[str, str]], None, None]:
    cleanup: list[tuple[str, str]] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for table in ("jobs", "datasets"):
                for cleanup_table, row_id in cleanup:
                    if cleanup_table == table:
                        cur.execute(f"DELETE FROM {table} WHERE id = %s", (row_id,))
        conn.commit()


@pytest.fixture
def files_root(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def seed_dataset(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, str]],
    files_root: Path,
) -> str:
    """Insert a TXT dataset whose source file lives under ``files_root``."""
    dataset_id = str(uuid.uuid4())
    project_id, _ = _choose_existing_owner(db_conn)
    source = files_root / f"{dataset_id}.txt"
    source.write_text("Contact test@example.com today", encoding="utf-8")
    with db_conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO datasets
            (id, name, filename, "fileType", "fileSize", "sourcePath", "sourceType",
             "contentHash", "metadataHash", "updatedAt", "projectId")
            VALUES (%s, %s, %s, 'TXT', %s, %s, 'UPLOAD', %s, %s, NOW(), %s)
            """,
            (
                dataset_id,
                "Integration contacts",
                source.name,
                source.stat().st_size,
                str(source),
                "a" * 64,
                "b" * 64,
                project_id,
            ),
        )
    db_conn.commit()
    integration_cleanup.append(("datasets", dataset_id))
    return dataset_id


def insert_job(
    db_conn: psycopg.Connection[Any],
    dataset_id: str,
    *,
    priority: int = 1,
    job_type: str = "ANONYMIZE",
    metadata: dict[str, Any] | None = None,
) -> str:
    job_id = str(uuid.uuid4())
    _, user_id = _choose_existing_owner(db_conn)
    with db_conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO jobs
            (id, type, status, priority, metadata, "updatedAt", "datasetId", "createdById")
            VALUES (%s, %s, 'QUEUED', %s, %s::jsonb, NOW(), %s, %s)
            """,
            (job_id, job_type, priority, json.dumps(metadata or {}), dataset_id, user_id),
        )
    db_conn.commit()
    return job_id


@pytest.fixture
def make_job(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, str]],
) -> Callable[..., str]:
    """Insert a queued job and register it for cleanup."""

    def _make(dataset_id: str, **kwargs: Any) -> str:
        job_id = insert_job(db_conn, dataset_id, **kwargs)
        integration_cleanup.append(("jobs", job_id))
        return job_id

    return _make


@pytest.fixture
def seed_job(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, str]],
    seed_dataset: str,
) -> JobRecord:
    metadata = {
        "findingsData": [
            {
                "entityType": "EMAIL_ADDRESS",
                "text": "test@example.com",
                "startOffset": 8,
                "endOffset": 24,
                "confidence": 0.95,
            }
        ],
        "outputType": "json",
    }
    job_id = insert_job(db_conn, seed_dataset, metadata=metadata)
    integration_cleanup.append(("jobs", job_id))
    return JobRecord(
        id=job_id,
        dataset_id=seed_dataset,
        status="QUEUED",
        metadata=metadata,
    )
