from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from psycopg.types.json import Jsonb

from docshield.database.repositories.dataset_repository import DatasetRepository
from docshield.database.repositories.finding_repository import FindingRepository
from docshield.database.repositories.job_repository import JobRepository
from docshield.database.repositories.policy_repository import PolicyRepository
from docshield.jobs.state import JobEvent, JobState
from docshield.processor.exceptions import DatasetNotFoundError
from docshield.processor.models import Dataset


def _mock_connection(mock_get_conn: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Wire up a mock connection + cursor and return (mock_conn, mock_cursor)."""
    mock_cursor = MagicMock()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
    mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
    return mock_conn, mock_cursor


def _make_dataset_row() -> dict:
    return {
        "id": "ds-1",
        "name": "Contacts",
        "filename": "contacts.txt",
        "fileType": "txt",
        "sourcePath": "uploads/contacts.txt",
    }


class TestDatasetRepository:
    @patch("docshield.database.repositories.dataset_repository.get_connection")
    def test_find_by_id(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _make_dataset_row()

        result = DatasetRepository().find_by_id("ds-1")

        assert result == Dataset(
            id="ds-1",
            name="Contacts",
            filename="contacts.txt",
            file_type="TXT",
            source_path="uploads/contacts.txt",
        )

    @patch("docshield.database.repositories.dataset_repository.get_connection")
    def test_find_by_id_missing(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        with pytest.raises(DatasetNotFoundError, match="Dataset ds-9 not found"):
            DatasetRepository().find_by_id("ds-9")

    @patch("docshield.database.repositories.dataset_repository.get_connection")
    def test_update_anonymization(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        DatasetRepository().update_anonymization(
            "ds-1", Path("/storage/anonymized/out.json"), "direct", 1.0
        )

        params = mock_cursor.execute.call_args.args[1]
        assert params == ("/storage/anonymized/out.json", "direct", 1.0, "ds-1")
        mock_conn.commit.assert_called_once()

    @patch("docshield.database.repositories.dataset_repository.get_connection")
    def test_update_anonymization_missing(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 0

        with pytest.raises(DatasetNotFoundError):
            DatasetRepository().update_anonymization("ds-9", Path("/out.pdf"))
        mock_conn.commit.assert_not_called()


class TestJobRepository:
    def test_claim_next_job(self) -> None:
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
        mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
        mock_cursor.fetchone.return_value = {
            "id": "job-1",
            "datasetId": "ds-1",
            "policyId": None,
            "status": "QUEUED",
            "progress": 0,
            "metadata": {"outputType": "text"},
        }

        record = JobRepository().claim_next_job(mock_conn)

        assert record is not None
        assert record.id == "job-1"
        assert record.status == "RUNNING"
        assert record.metadata == {"outputType": "text"}
        assert mock_cursor.execute.call_args.args[1] == ("ANONYMIZE",)
        assert "RUNNING" in mock_conn.execute.call_args.args[0]
        mock_conn.commit.assert_called_once()

    def test_claim_next_job_none(self) -> None:
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
        mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
        mock_cursor.fetchone.return_value = None

        assert JobRepository().claim_next_job(mock_conn) is None
        mock_conn.execute.assert_not_called()

    @patch("docshield.database.repositories.job_repository.get_connection")
    def test_save_state_maps_status(self, mock_get_conn: MagicMock) -> None:
        mock_conn, _cursor = _mock_connection(mock_get_conn)
        state = JobState("job-1").transition(JobEvent.START)

        JobRepository().save_state(state)

        params = mock_conn.execute.call_args.args[1]
        assert params[0] == "RUNNING"
        assert params[1] == 0
        assert isinstance(params[3], datetime)
        assert isinstance(params[5], Jsonb)
        assert params[5].obj == {"phase": "Started"}
        assert params[6] == "job-1"
        mock_conn.commit.assert_called_once()

    @patch("docshield.database.repositories.job_repository.get_connection")
    def test_save_failed_state(self, mock_get_conn: MagicMock) -> None:
        mock_conn, _cursor = _mock_connection(mock_get_conn)
        state = JobState("job-1").transition(JobEvent.FAIL, error="boom")

        JobRepository().save_state(state)

        params = mock_conn.execute.call_args.args[1]
        assert params[0] == "FAILED"
        assert params[2] == "boom"
        assert params[4] is not None

    @patch("docshield.database.repositories.job_repository.get_connection")
    def test_find_by_id(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        created = datetime(2025, 8, 25, tzinfo=UTC)
        mock_cursor.fetchone.return_value = {
            "id": "job-1",
            "datasetId": "ds-1",
            "policyId": "policy-1",
            "status": "COMPLETED",
            "progress": 100,
            "metadata": None,
            "error": None,
            "startedAt": created,
            "endedAt": created,
            "createdAt": created,
        }

        record = JobRepository().find_by_id("job-1")

        assert record is not None
        assert record.progress == 100
        assert record.metadata == {}
        assert record.created_at == created


class TestFindingRepository:
    @patch("docshield.database.repositories.finding_repository.get_connection")
    def test_find_by_dataset(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [
            {
                "entityType": "EMAIL_ADDRESS",
                "text": "test@example.com",
                "confidence": 0.95,
                "startOffset": 8,
                "endOffset": 24,
                "lineNumber": 1,
                "contextBefore": "Contact ",
                "contextAfter": " today",
            },
            {
                "entityType": "SSN",
                "text": "123-45-6789",
                "confidence": 0.9,
                "startOffset": 40,
                "endOffset": 51,
                "lineNumber": None,
                "contextBefore": None,
                "contextAfter": None,
            },
        ]

        findings = FindingRepository().find_by_dataset("ds-1")

        assert [f.entity_type for f in findings] == ["EMAIL_ADDRESS", "SSN"]
        assert findings[0].context == "Contact … today"
        assert findings[1].context is None
        assert findings[0].action is None


class TestPolicyRepository:
    def test_no_policy_id_uses_default(self) -> None:
        policy = PolicyRepository().load(None)
        assert policy.default_action == "redact"
        assert len(policy.entities) == 8

    @patch("docshield.database.repositories.policy_repository.get_connection")
    def test_active_version_wins(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = {
            "config": "detection:\n  entities:\n    - type: SSN\n      action: hash\n"
        }

        policy = PolicyRepository().load("policy-1")

        assert policy.entity_config("SSN").action == "hash"
        assert mock_cursor.execute.call_count == 1

    @patch("docshield.database.repositories.policy_repository.get_connection")
    def test_legacy_config_without_version(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.side_effect = [None, {"config": {"entities": ["PERSON"]}}]

        policy = PolicyRepository().load("policy-1")

        assert policy.entities == ("PERSON",)

    @patch("docshield.database.repositories.policy_repository.get_connection")
    def test_invalid_version_falls_back_to_legacy(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.side_effect = [
            {"config": {"detection": {"entities": "SSN"}}},
            {"config": {"entities": ["SSN"]}},
        ]

        policy = PolicyRepository().load("policy-1")

        assert policy.entities == ("SSN",)

    @patch("docshield.database.repositories.policy_repository.get_connection")
    def test_missing_policy_uses_default(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        policy = PolicyRepository().load("policy-9")

        assert policy.default_action == "redact"

    @patch("docshield.database.repositories.policy_repository.get_connection")
    def test_invalid_legacy_config_uses_default(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.side_effect = [None, {"config": "{broken"}]

        policy = PolicyRepository().load("policy-1")

        assert len(policy.entities) == 8
