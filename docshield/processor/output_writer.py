from datetime import UTC, datetime
from pathlib import Path

from docshield.logging.logger import Log
from docshield.processor.exceptions import OutputWriteError


def output_file_name(dataset_id: str, extension: str, report: bool = False) -> str:
    """``{dataset_id}_anonymized[_report]_{utc timestamp}.{extension}``"""
    stamp = datetime.now(UTC).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    infix = "anonymized_report" if report else "anonymized"
    return f"{dataset_id}_{infix}_{stamp}.{extension}"


class OutputWriter:
    """Places anonymized outputs under ``<storage_dir>/anonymized``."""

    SUBDIR = "anonymized"

    def __init__(self, storage_dir: Path) -> None:
        self._output_dir = storage_dir / self.SUBDIR

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def path_for(self, dataset_id: str, extension: str, report: bool = False) -> Path:
        """Reserve an output path, creating the output directory if needed.

        Raises:
            OutputWriteError: if the directory cannot be created.
        """
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputWriteError(f"Cannot create output directory: {exc}") from exc
        return self._output_dir / output_file_name(dataset_id, extension, report)

    def write(self, dataset_id: str, content: str, extension: str, report: bool = False) -> Path:
        path = self.path_for(dataset_id, extension, report)
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise OutputWriteError(f"Failed to write {Log.path(path)}: {exc}") from exc
        Log.info(f"Wrote anonymized output {Log.path(path)} ({len(content)} chars)")
        return path
