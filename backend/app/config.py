"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

_POSTGRES_SCHEMES = ("postgres://", "postgresql://", "postgresql+asyncpg://", "postgresql+psycopg2://")


def _with_postgres_driver(url: str, scheme: str) -> str:
    """Point a Postgres URL at `scheme`; other databases (sqlite) pass through."""
    for prefix in _POSTGRES_SCHEMES:
        if url.startswith(prefix):
            return f"{scheme}://{url[len(prefix):]}"
    return url


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "PeakPerform"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    # DATABASE_URL_OVERRIDE (e.g. a hosted Postgres URL with sslmode=require, or
    # sqlite+aiosqlite:// for tests) wins over the individual POSTGRES_* parts.
    database_url_override: str | None = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "peakperform"
    postgres_password: str = ""
    postgres_db: str = "peakperform"

    def _raw_database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field
    @property
    def database_url(self) -> str:
        """Async URL for the app engine (asyncpg; query string dropped, SSL goes via connect_args)."""
        url = _with_postgres_driver(self._raw_database_url(), "postgresql+asyncpg")
        if url.startswith("postgresql+asyncpg://"):
            url = url.split("?", 1)[0]
        return url

    @computed_field
    @property
    def database_url_sync(self) -> str:
        """Sync URL for Alembic (psycopg2)."""
        return _with_postgres_driver(self._raw_database_url(), "postgresql")

    @computed_field
    @property
    def database_requires_ssl(self) -> bool:
        query = self._raw_database_url().partition("?")[2]
        return "sslmode=require" in query or "ssl=require" in query

    # Auth / JWT
    jwt_secret_key: str  # Required - no default, must be set in .env
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Google OAuth
    google_client_id: str  # Required - get from Google Cloud Console

    # CORS
    # Every handler answers pre-flights with an open origin and a fixed header list.
    # Credentials stay off so the wildcard is sent back literally.
    cors_origins: list[str] = ["*"]
    cors_allow_headers: list[str] = ["authorization", "x-client-info", "apikey", "content-type"]
    cors_allow_credentials: bool = False

    # Cookies
    # Set to true when frontend and backend are on different domains
    # This uses samesite="none" + secure=True instead of samesite="lax"
    cookie_cross_domain: bool = False

    # AWS S3 (for uploaded study documents)
    aws_access_key_id: str
    aws_secret_access_key: str
    aws_s3_bucket: str = "academic-documents"
    aws_s3_region: str = "us-east-2"
    aws_s3_endpoint_url: str | None = None  # Set for MinIO/LocalStack (e.g. http://localhost:9000)

    # Anthropic API
    # Optional at start-up; generation handlers fail with a configuration error without it.
    anthropic_api_key: str | None = None

    # LLM Configuration
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 4000

    # Study material generation
    document_flashcard_count: int = 10
    document_question_count: int = 5
    extracted_text_max_chars: int = 50000
    # A run still "processing" after this long is assumed dead and may be reclaimed
    document_processing_timeout_seconds: int = 900

    # Document upload
    max_document_size_bytes: int = 20 * 1024 * 1024  # 20MB
    allowed_document_types: list[str] = [
        "application/pdf",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ]

    # Progress
    study_minutes_per_quiz: int = 15  # Placeholder estimate, not measured time


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "An internal error occurred.") -> str:
    """
    Return a user-safe error message.

    In development, returns the full exception string for debugging.
    In staging/production, returns a generic message to avoid leaking internals.
    """
    settings = get_settings()
    if settings.environment == "development":
        return str(error)
    return generic_message
