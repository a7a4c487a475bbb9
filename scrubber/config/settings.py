from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "scrubber"
    db_username: str = "scrubber"
    db_password: str = "secret"

    run_poll_interval_seconds: int = 5
    progress_flush_every: int = Field(10, ge=1)
    stale_run_timeout_seconds: int = 900
    max_reported_errors: int = 100

    ner_engine: str = "spacy"
    spacy_model: str = "en_core_web_sm"

    preview_sample_size: int = Field(5, ge=1)
    output_sample_size: int = Field(10, ge=1)

    files_root: Path = Path("/app/uploads")
