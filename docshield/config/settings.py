from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "docshield"
    db_username: str = "docshield"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    job_poll_interval_seconds: int = 5

    storage_dir: str = "./storage"
    source_root: str = "../api"
    max_file_size_bytes: int = 100 * 1024 * 1024
    max_text_length: int = 10 * 1024 * 1024

    tika_url: str = "http://localhost:9998"
    tika_timeout_seconds: int = 60
    tika_metadata_timeout_seconds: int = 30

    tesseract_url: str = "http://localhost:8884"
    ocr_timeout_seconds: int = 120
    ocr_language: str = "eng"
    ocr_psm: int = 3
    ocr_oem: int = 1

    health_check_timeout_seconds: int = 5
    hybrid_file_types: list[str] = []

    anonymizer_backend: str = "presidio"
    presidio_anonymizer_url: str = "http://localhost:5004"
    anonymizer_timeout_seconds: int = 30
