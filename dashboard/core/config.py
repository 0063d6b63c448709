from typing import List, Optional
from pydantic import Field, field_validator
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class IngestionSettings(BaseSettings):
    """Bulk upload ingestion settings."""

    batch_size: int = Field(default=1000, ge=1)
    upload_dir: str = Field(default="./uploads")
    max_upload_size: int = 50 * 1024 * 1024  # 50MB in bytes
    allowed_extensions: List[str] = Field(default=[".csv", ".xls", ".xlsx"])
    encoding_sample_size: int = Field(default=10000, ge=1)  # bytes handed to chardet
    export_chunk_size: int = Field(default=500, ge=1)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", env_file_encoding="utf-8")

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, value: List[str]) -> List[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]


class LoggingSettings(BaseSettings):
    level: str = Field(default="INFO")
    json_format: bool = Field(default=False)
    format: str = Field(default="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    file_path: Optional[str] = Field(default=None)
    max_bytes: int = Field(default=10 * 1024 * 1024)
    backup_count: int = Field(default=5)

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore", env_file_encoding="utf-8")


class Settings(BaseSettings):
    project_name: str = Field(default="Admin Dashboard Backend")
    version: str = Field(default="0.1.0")
    debug: bool = Field(default=False)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    cors_origins: List[str] = Field(default=[])

    database_url: str = Field(default="postgresql://user:password@db:5432/dashboard")
    database_echo: bool = Field(default=False)

    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Pagination
    default_page_size: int = Field(default=50)
    max_page_size: int = Field(default=1000)

    model_config = SettingsConfigDict(env_file=".env", extra="allow", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    return Settings()
