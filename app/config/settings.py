from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "school_manager"
    schema_name: Optional[str] = Field(default=None, validation_alias="DB_SCHEMA")
    serverless: bool = Field(
        default=True,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )
    url_override: Optional[str] = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Full SQLAlchemy URL; takes precedence over the discrete fields.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        if self.url_override:
            return self.url_override
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class GeminiConfig(BaseSettings):
    """Google Gemini configuration."""

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="GEMINI_API_KEY",
    )
    transcription_models: list[str] = Field(
        default=[
            "gemini-2.5-flash",
            "gemini-2.0-flash",
            "gemini-flash-latest",
            "gemini-1.5-flash",
        ],
        validation_alias="GEMINI_TRANSCRIPTION_MODELS",
    )
    analysis_models: list[str] = Field(
        default=[
            "gemini-2.5-flash",
            "gemini-2.0-flash",
            "gemini-flash-latest",
            "gemini-1.5-flash",
        ],
        validation_alias="GEMINI_ANALYSIS_MODELS",
    )
    document_models: list[str] = Field(
        default=[
            "gemini-2.5-flash",
            "gemini-2.5-pro",
            "gemini-2.0-flash",
            "gemini-flash-latest",
            "gemini-pro-latest",
        ],
        validation_alias="GEMINI_DOCUMENT_MODELS",
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        validation_alias="GEMINI_POLL_INTERVAL_SECONDS",
        ge=0.0,
    )
    poll_max_attempts: int = Field(
        default=150,
        validation_alias="GEMINI_POLL_MAX_ATTEMPTS",
        ge=1,
    )
    ffmpeg_binary: str = Field(default="ffmpeg", validation_alias="FFMPEG_BINARY")
    ffmpeg_timeout_seconds: int = Field(
        default=15 * 60,
        validation_alias="FFMPEG_TIMEOUT_SECONDS",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class UploadConfig(BaseSettings):
    """Local upload storage configuration."""

    directory: str = "uploads"
    max_video_bytes: int = 500 * 1024 * 1024
    max_document_bytes: int = 50 * 1024 * 1024
    video_extensions: list[str] = [".mp4", ".mov", ".avi", ".mkv"]
    document_extensions: list[str] = [".pdf", ".doc", ".docx", ".xls", ".xlsx"]
    chunk_size: int = 1024 * 1024

    model_config = SettingsConfigDict(
        env_prefix="UPLOAD_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class AnalysisConfig(BaseSettings):
    """Policy switches for the COB analysis pipeline."""

    mock_fallback: bool = Field(
        default=True,
        description=(
            "Return the canned mock report when every analysis model fails "
            "instead of failing the analysis."
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="ANALYSIS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class SecurityConfig(BaseSettings):
    """JWT and application security configuration."""

    jwt_secret_key: SecretStr = Field(
        default=SecretStr("change-me"),
        validation_alias="JWT_SECRET",
    )
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    access_token_expires_minutes: int = Field(
        default=60,
        validation_alias="JWT_EXPIRATION_MINUTES",
        ge=1,
    )
    password_hash_iterations: int = Field(
        default=120_000,
        validation_alias="PASSWORD_HASH_ITERATIONS",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "School Manager Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/analysis_pipeline.log"
    persist_request_logs: bool = False

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # Gemini
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)

    # Uploads
    uploads: UploadConfig = Field(default_factory=UploadConfig)

    # Analysis
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    # Security
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
