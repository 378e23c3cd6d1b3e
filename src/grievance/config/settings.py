"""Application settings loaded from environment."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed settings for the grievance core."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    pghost: Optional[str] = Field(default=None, alias="PGHOST")
    pgport: int = Field(default=5432, alias="PGPORT")
    pguser: Optional[str] = Field(default=None, alias="PGUSER")
    pgpassword: Optional[str] = Field(default=None, alias="PGPASSWORD")
    pgdatabase: Optional[str] = Field(default=None, alias="PGDATABASE")
    db_connect_timeout_seconds: float = Field(default=5.0, alias="DB_CONNECT_TIMEOUT_SECONDS")

    # Supabase
    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")
    supabase_evidence_bucket: str = Field(
        default="complaint-evidence", alias="SUPABASE_EVIDENCE_BUCKET"
    )

    # Classifier
    classifier_enable_vision: bool = Field(default=True, alias="CLASSIFIER_ENABLE_VISION")
    classifier_model_name: str = Field(default="mobilenet_v2", alias="CLASSIFIER_MODEL_NAME")
    classifier_timeout_seconds: float = Field(default=20.0, alias="CLASSIFIER_TIMEOUT_SECONDS")
    image_fetch_timeout_seconds: float = Field(default=15.0, alias="IMAGE_FETCH_TIMEOUT_SECONDS")

    # Duplicate detection
    duplicate_timeout_seconds: float = Field(default=5.0, alias="DUPLICATE_TIMEOUT_SECONDS")

    # Runtime
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    run_env: str = Field(default="local", alias="RUN_ENV")

    def get_database_url(self) -> str:
        """Return a usable database URL or raise."""
        if self.database_url:
            return self.database_url

        if all([self.pghost, self.pguser, self.pgpassword, self.pgdatabase]):
            return (
                "postgresql://"
                f"{self.pguser}:{self.pgpassword}@{self.pghost}:{self.pgport}/"
                f"{self.pgdatabase}"
            )

        raise ValueError("DATABASE_URL or PG* env vars must be set")

    def public_media_url(self, path: str) -> Optional[str]:
        """Build the public storage URL for an evidence object path."""
        if not self.supabase_url:
            return None
        base = self.supabase_url.rstrip("/")
        return f"{base}/storage/v1/object/public/{self.supabase_evidence_bucket}/{path.lstrip('/')}"
