"""Configuration management for CAS Store using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageConfig(BaseModel):
    """Blob storage configuration."""

    data_dir: Path = Field(default=Path("./data"), description="Root storage directory")
    chunk_size: int = Field(
        default=65536, ge=1024, le=16777216, description="Read size while staging uploads"
    )
    fsync: bool = Field(default=True, description="fsync staged files before commit")

    @property
    def tmp_dir(self) -> Path:
        """Staging subtree for in-flight uploads."""
        return self.data_dir / "tmp"

    @property
    def objects_dir(self) -> Path:
        """Content tree holding committed blobs."""
        return self.data_dir / "objects"


class MetadataConfig(BaseModel):
    """Metadata index configuration."""

    url: Optional[str] = Field(
        default=None, description="SQLAlchemy URL (default: SQLite file in data_dir)"
    )
    busy_timeout_ms: int = Field(
        default=5000, ge=0, description="SQLite busy timeout for concurrent writers"
    )


class ServerConfig(BaseModel):
    """Storage node HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8081, ge=1, le=65535, description="Server port")
    node_id: str = Field(default="node-1", description="Identifier reported in logs")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], description="Allowed origins")


class DispatcherConfig(BaseModel):
    """Round-robin dispatcher configuration."""

    host: str = Field(default="0.0.0.0", description="Dispatcher host")
    port: int = Field(default=8080, ge=1, le=65535, description="Dispatcher port")
    backends: list[str] = Field(default_factory=list, description="Backend base URLs")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Backend request timeout")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: Optional[str] = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    environment: str = Field(default="development", description="Deployment environment")


class Config(BaseSettings):
    """Root configuration for CAS Store."""

    model_config = SettingsConfigDict(
        env_prefix="CAS_STORE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    dispatcher: DispatcherConfig = Field(default_factory=DispatcherConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @property
    def metadata_url(self) -> str:
        """Effective SQLAlchemy URL for the metadata index."""
        if self.metadata.url:
            return self.metadata.url
        return f"sqlite:///{(self.storage.data_dir / 'metadata.db').as_posix()}"


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config()
