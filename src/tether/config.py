from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TETHER_", env_file=".env", extra="ignore", populate_by_name=True
    )

    app_name: str = "tether"
    env: str = "dev"

    # In test environments, keep blobs from writing themselves to storage
    suppress_persistence: bool = Field(
        default=False, validation_alias="BLOB_SUPPRESS_PERSISTENCE"
    )
    base_url: str = Field(default="/files/", validation_alias="BLOB_BASE_URL")

    # Default provider for folders without an explicit mapping
    storage_type: str = Field(default="local", validation_alias="BLOB_STORAGE_TYPE")
    storage_path: str = Field(default="./blobs", validation_alias="BLOB_STORAGE_PATH")

    # "Invoice.Attachment=s3,Customer.Photo=local"
    folder_storage: str = Field(default="", validation_alias="BLOB_FOLDER_STORAGE")

    # S3 (storage type "s3" or "minio")
    s3_bucket: str | None = Field(default=None, validation_alias="S3_BUCKET")
    s3_prefix: str = Field(default="", validation_alias="S3_PREFIX")
    s3_endpoint_url: str | None = Field(default=None, validation_alias="S3_ENDPOINT_URL")
    s3_region: str = Field(default="us-east-1", validation_alias="S3_REGION")
    s3_access_key_id: str | None = Field(default=None, validation_alias="AWS_ACCESS_KEY_ID")
    s3_secret_access_key: str | None = Field(default=None, validation_alias="AWS_SECRET_ACCESS_KEY")

    # GCS (storage type "gcs")
    gcs_bucket: str | None = Field(default=None, validation_alias="GCS_BUCKET")
    gcs_prefix: str = Field(default="", validation_alias="GCS_PREFIX")
    gcs_project: str | None = Field(default=None, validation_alias="GCS_PROJECT")
    gcs_credentials_path: str | None = Field(default=None, validation_alias="GCS_CREDENTIALS_PATH")

    # Azure (storage type "azure")
    azure_container: str | None = Field(default=None, validation_alias="AZURE_CONTAINER")
    azure_prefix: str = Field(default="", validation_alias="AZURE_PREFIX")
    azure_connection_string: str | None = Field(
        default=None, validation_alias="AZURE_STORAGE_CONNECTION_STRING"
    )
    azure_account_url: str | None = Field(default=None, validation_alias="AZURE_ACCOUNT_URL")
    azure_account_key: str | None = Field(default=None, validation_alias="AZURE_ACCOUNT_KEY")
    azure_sas_token: str | None = Field(default=None, validation_alias="AZURE_SAS_TOKEN")

    # Observability
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="console", validation_alias="LOG_FORMAT")

    @field_validator("storage_type")
    @classmethod
    def _normalize_storage_type(cls, value: str) -> str:
        return value.strip().lower()

    def folder_storage_map(self) -> dict[str, str]:
        """Parse ``folder_storage`` into a folder -> storage type mapping."""
        mapping: dict[str, str] = {}
        for item in self.folder_storage.split(","):
            item = item.strip()
            if not item:
                continue
            folder, sep, kind = item.partition("=")
            if not sep or not folder.strip() or not kind.strip():
                raise ValueError(f"Invalid BLOB_FOLDER_STORAGE entry: {item!r}")
            mapping[folder.strip()] = kind.strip().lower()
        return mapping


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the settings instance (read once per process)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
