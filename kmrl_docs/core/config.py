"""
Configuration management for the KMRL document intake service.

This module centralizes environment-driven configuration using Pydantic's
`BaseSettings`. The API, the ingestion pipeline and the CLI all consume the
shared `settings` instance.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import AnyUrl, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    # General application settings
    API_TITLE: str = "KMRL Document Intake API"
    API_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field("development", pattern=r"^(development|staging|production)$")
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Document store
    STORE_BACKEND: str = Field("json", pattern=r"^(json|memory)$")
    DOCUMENT_STORE_PATH: Path = Field(default_factory=lambda: Path("data/documents.json"))
    UPLOAD_STORAGE_PREFIX: str = "assets"
    DEFAULT_UPLOADER: str = "Unknown"

    # Capabilities
    ENABLE_METADATA_EXTRACTION: bool = True
    ENABLE_CONNECTORS: bool = True

    # Connectors
    CONNECTOR_TIMEOUT_SECONDS: PositiveInt = 30
    CONNECTOR_FEEDS: Dict[str, str] = Field(default_factory=dict)
    JIRA_BASE_URL: Optional[AnyUrl] = None
    JIRA_EMAIL: Optional[str] = None
    JIRA_API_TOKEN: Optional[str] = None
    JIRA_JQL: str = "order by updated desc"
    JIRA_MAX_RESULTS: PositiveInt = 50
    JIRA_DEPARTMENT: str = "Engineering"
    CONFLUENCE_URL: Optional[AnyUrl] = None
    CONFLUENCE_EMAIL: Optional[str] = None
    CONFLUENCE_API_TOKEN: Optional[str] = None
    CONFLUENCE_SPACE_KEY: Optional[str] = None
    CONFLUENCE_LIMIT: PositiveInt = 50
    CONFLUENCE_DEPARTMENT: str = "Operations"

    # Tracing
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_HEADERS: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @field_validator("ALLOWED_ORIGINS", mode="before")
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @property
    def jira_configured(self) -> bool:
        return bool(self.JIRA_BASE_URL and self.JIRA_EMAIL and self.JIRA_API_TOKEN)

    @property
    def confluence_configured(self) -> bool:
        return bool(self.CONFLUENCE_URL and self.CONFLUENCE_EMAIL and self.CONFLUENCE_API_TOKEN)


@lru_cache()
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()


# Singleton-style settings instance for modules that prefer direct access.
settings = get_settings()
