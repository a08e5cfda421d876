from pathlib import Path


class PathResolver:
    """Resolves dataset source paths; relative paths are taken from the upload root."""

    def __init__(self, source_root: Path) -> None:
        self._source_root = source_root

    def resolve(self, source_path: str) -> Path:
        path = Path(source_path)
        if path.is_absolute():
            return path
        return (self._source_root / path).resolve()
