from psycopg.rows import dict_row

from docshield.database.connection import get_connection
from docshield.processor.models import Finding


class FindingRepository:
    """Reads stored analysis findings for jobs that do not carry their own."""

    def find_by_dataset(self, dataset_id: str) -> list[Finding]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT "entityType", text, confidence, "startOffset", "endOffset",
                           "lineNumber", "contextBefore", "contextAfter"
                    FROM findings
                    WHERE "datasetId" = %s
                    ORDER BY "startOffset"
                    """,
                    (dataset_id,),
                )
                rows = cur.fetchall()

        return [
            Finding(
                entity_type=str(row["entityType"]),
                text=row["text"],
                start_offset=row["startOffset"],
                end_offset=row["endOffset"],
                confidence=row["confidence"],
                line_number=row["lineNumber"],
                context=_join_context(row["contextBefore"], row["contextAfter"]),
            )
            for row in rows
        ]


def _join_context(before: str | None, after: str | None) -> str | None:
    if before is None and after is None:
        return None
    return f"{before or ''}…{after or ''}"
