from pathlib import Path

from psycopg.rows import dict_row

from docshield.database.connection import get_connection
from docshield.processor.exceptions import DatasetNotFoundError
from docshield.processor.models import Dataset


class DatasetRepository:
    """Database operations for the datasets table."""

    def find_by_id(self, dataset_id: str) -> Dataset:
        """Find a dataset by ID.

        Raises:
            DatasetNotFoundError: if no dataset with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, name, filename, "fileType", "sourcePath"
                    FROM datasets
                    WHERE id = %s
                    """,
                    (dataset_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DatasetNotFoundError(f"Dataset {dataset_id} not found")

        return Dataset(
            id=row["id"],
            name=row["name"],
            filename=row["filename"],
            file_type=str(row["fileType"]).upper(),
            source_path=row["sourcePath"],
        )

    def update_anonymization(
        self,
        dataset_id: str,
        output_path: Path,
        extraction_method: str | None = None,
        extraction_confidence: float | None = None,
    ) -> None:
        """Mark the dataset completed and record where its anonymized output lives.

        Extraction columns are left untouched when not given (PDF/DOCX path).

        Raises:
            DatasetNotFoundError: if no dataset with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE datasets
                    SET status = 'COMPLETED',
                        "outputPath" = %s,
                        "extractionMethod" = COALESCE(%s, "extractionMethod"),
                        "extractionConfidence" = COALESCE(%s, "extractionConfidence"),
                        "updatedAt" = NOW()
                    WHERE id = %s
                    """,
                    (str(output_path), extraction_method, extraction_confidence, dataset_id),
                )
                if cur.rowcount == 0:
                    raise DatasetNotFoundError(f"Dataset {dataset_id} not found")
            conn.commit()
