from docshield.anonymization.base import AnonymizationBackend
from docshield.anonymization.local_backend import LocalAnonymizationBackend
from docshield.anonymization.presidio_client_adapter import PresidioAnonymizerAdapter
from docshield.config.settings import Settings


class AnonymizationBackendFactory:
    """Creates the configured text anonymization backend."""

    BACKENDS = ("presidio", "local")

    @classmethod
    def create(cls, settings: Settings) -> AnonymizationBackend:
        backend = settings.anonymizer_backend.lower()
        if backend == "presidio":
            return PresidioAnonymizerAdapter(
                base_url=settings.presidio_anonymizer_url,
                timeout_seconds=settings.anonymizer_timeout_seconds,
            )
        if backend == "local":
            return LocalAnonymizationBackend()
        raise ValueError(
            f"Unknown anonymizer backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
