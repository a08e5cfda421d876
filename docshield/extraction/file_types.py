"""File type detection and the file-type -> extraction-strategy map."""

from pathlib import Path

from docshield.extraction.models import ExtractionStrategy

_EXTENSION_TYPES: dict[str, str] = {
    "txt": "TXT",
    "csv": "CSV",
    "json": "JSON",
    "jsonl": "JSONL",
    "pdf": "PDF",
    "doc": "DOC",
    "docx": "DOCX",
    "xls": "XLS",
    "xlsx": "XLSX",
    "ppt": "PPT",
    "pptx": "PPTX",
    "odt": "ODT",
    "ods": "ODS",
    "odp": "ODP",
    "rtf": "RTF",
    "html": "HTML",
    "htm": "HTML",
    "xml": "XML",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "tiff": "TIFF",
    "tif": "TIFF",
    "bmp": "BMP",
    "gif": "GIF",
}

_MIME_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
    ".bmp": "image/bmp",
    ".gif": "image/gif",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".odt": "application/vnd.oasis.opendocument.text",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    ".odp": "application/vnd.oasis.opendocument.presentation",
    ".rtf": "application/rtf",
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".json": "application/json",
    ".jsonl": "application/jsonl",
    ".html": "text/html",
    ".htm": "text/html",
    ".xml": "application/xml",
}

TEXT_TYPES = frozenset({"TXT", "CSV", "JSON", "JSONL", "HTML", "XML"})
DOCUMENT_TYPES = frozenset(
    {"PDF", "DOC", "DOCX", "XLS", "XLSX", "PPT", "PPTX", "ODT", "ODS", "ODP", "RTF"}
)
IMAGE_TYPES = frozenset({"JPEG", "JPG", "PNG", "TIFF", "BMP", "GIF"})

_TEXT_EXTENSIONS = frozenset({".txt", ".csv", ".json", ".jsonl", ".html", ".htm", ".xml"})

UNKNOWN = "UNKNOWN"


def detect_file_type(path: Path) -> str:
    """Canonical upper-case type for *path*'s extension, or ``UNKNOWN``."""
    return _EXTENSION_TYPES.get(path.suffix.lower().lstrip("."), UNKNOWN)


def mime_type_for(path: Path) -> str:
    return _MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")


def is_image_type(file_type: str) -> bool:
    return file_type.upper() in IMAGE_TYPES


def is_probably_text(path: Path) -> bool:
    return path.suffix.lower() in _TEXT_EXTENSIONS


def strategy_for(
    file_type: str,
    mime_type: str | None = None,
    hybrid_types: frozenset[str] = frozenset(),
) -> ExtractionStrategy:
    """Pick the extraction strategy for a canonical file type.

    Unknown types use the MIME hint, then default to the document service.
    """
    kind = file_type.upper()
    if kind in hybrid_types:
        return ExtractionStrategy.HYBRID
    if kind in TEXT_TYPES:
        return ExtractionStrategy.DIRECT
    if kind in DOCUMENT_TYPES:
        return ExtractionStrategy.TIKA
    if kind in IMAGE_TYPES:
        return ExtractionStrategy.OCR

    if mime_type:
        mime = mime_type.lower()
        if mime.startswith("text/"):
            return ExtractionStrategy.DIRECT
        if mime.startswith("image/"):
            return ExtractionStrategy.OCR
        if "pdf" in mime or "document" in mime or "office" in mime:
            return ExtractionStrategy.TIKA

    return ExtractionStrategy.TIKA
