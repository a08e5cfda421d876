class ProcessorError(Exception):
    """Base exception for all pipeline errors."""


class ValidationError(ProcessorError):
    """Raised for bad input. Fatal: the job fails without any fallback."""


class DatasetNotFoundError(ValidationError):
    """Raised when a dataset cannot be found in the database."""


class FileValidationError(ValidationError):
    """Raised when a source file is missing, unreadable, or too large."""


class FindingsValidationError(ValidationError):
    """Raised when findings are malformed or do not fit the source text."""


class ServiceUnavailableError(ProcessorError):
    """Raised when an external backend is down, times out, or answers garbage."""


class ExtractionError(ServiceUnavailableError):
    """Raised when every applicable extraction fallback has failed."""


class AnonymizationError(ProcessorError):
    """Raised when a container (PDF/DOCX) cannot be anonymized."""


class OutputWriteError(ProcessorError):
    """Raised when anonymized output cannot be written to disk."""
