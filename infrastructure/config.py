from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from application.use_cases.file_use_cases import DEFAULT_CATEGORIES


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # absolute so reload/CWD doesn't break it
        env_file=Path(__file__).resolve().parents[1] / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="FileVault", validation_alias="APP_NAME")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        validation_alias="APP_ENV",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_dir: Path = Field(
        default=Path(__file__).resolve().parents[1] / "logs",
        validation_alias="LOG_DIR",
    )

    # API
    api_host: str = Field(default="127.0.0.1", validation_alias="API_HOST")
    api_port: int = Field(default=5000, validation_alias="API_PORT")
    base_url: str = Field(
        default="http://localhost:5000",
        validation_alias="BASE_URL",
        description="Public URL prefix used in retrieval and approval links.",
    )
    cors_origins: list[str] = Field(default=["*"], validation_alias="CORS_ORIGINS")

    # Uploads
    max_upload_bytes: int = Field(
        default=100 * 1024 * 1024,
        validation_alias="MAX_UPLOAD_BYTES",
        gt=0,
    )
    categories: list[str] = Field(
        default=list(DEFAULT_CATEGORIES),
        validation_alias="CATEGORIES",
    )

    # Blob Storage
    blob_backend: Literal["gridfs", "fsspec"] = Field(
        default="gridfs",
        validation_alias="BLOB_BACKEND",
    )
    blob_chunk_size: int = Field(
        default=255 * 1024,
        validation_alias="BLOB_CHUNK_SIZE",
        gt=0,
        description="Chunk size for store writes and download reads (GridFS default).",
    )

    # MongoDB / GridFS
    mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        validation_alias="MONGODB_URI",
    )
    mongo_db: str = Field(default="fileStorage", validation_alias="MONGO_DB")
    gridfs_bucket: str = Field(default="uploads", validation_alias="GRIDFS_BUCKET")

    # fsspec
    blob_base_url: str = Field(
        default="file://" + str(Path(__file__).resolve().parents[1] / "blobs"),
        validation_alias="BLOB_BASE_URL",
    )
    blob_storage_options: dict = {}

    # Access approval
    access_secret: str = Field(default="", validation_alias="PDF_PASSWORD")
    operator_email: str = Field(default="", validation_alias="OPERATOR_EMAIL")
    approval_ttl_seconds: int = Field(
        default=3600,
        validation_alias="APPROVAL_TTL_SECONDS",
        ge=0,
        description="Lifetime of a pending approval. 0 keeps entries until consumed.",
    )

    # Notifications
    notification_backend: Literal["smtp", "console"] = Field(
        default="smtp",
        validation_alias="NOTIFICATION_BACKEND",
    )
    smtp_host: str = Field(default="smtp.gmail.com", validation_alias="SMTP_HOST")
    smtp_port: int = Field(default=465, validation_alias="SMTP_PORT")
    smtp_use_ssl: bool = Field(default=True, validation_alias="SMTP_USE_SSL")
    smtp_username: str | None = Field(default=None, validation_alias="EMAIL_USER")
    smtp_password: str | None = Field(default=None, validation_alias="EMAIL_PASS")
    smtp_sender: str | None = Field(
        default=None,
        validation_alias="SMTP_SENDER",
        description="From address. Falls back to EMAIL_USER.",
    )
    smtp_timeout_seconds: float = Field(default=30.0, validation_alias="SMTP_TIMEOUT_SECONDS")

    @property
    def operator_address(self) -> str:
        """Where approval links go; the mail account itself when unset."""
        return self.operator_email or self.smtp_username or ""


# Global settings instance
settings = Settings()
