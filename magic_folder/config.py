"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables (or a ``.env`` file)
once at startup and passed explicitly into each component.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class EmbeddingSettings(BaseSettings):
    """Embedding service configuration.

    Defaults target a local Ollama instance.
    """

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = Field(
        default="http://localhost:11434",
        description="Embedding service base URL (Ollama default)",
    )
    endpoint: str = Field(
        default="/api/embed",
        description="Path of the embedding endpoint",
    )
    model: str = Field(
        default="mxbai-embed-large",
        description="Embedding model name",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds",
    )


class VectorIndexSettings(BaseSettings):
    """Vector index configuration."""

    model_config = SettingsConfigDict(env_prefix="VECTOR_")

    path: Path = Field(
        default=Path("data/vector_data"),
        description="Directory holding the vector index",
    )
    collection_name: str = Field(
        default="files",
        description="Collection holding file embeddings",
    )
    dimension: int = Field(
        default=1024,
        gt=0,
        description="Embedding dimension, fixed at collection creation",
    )


class CatalogSettings(BaseSettings):
    """Metadata catalog configuration."""

    model_config = SettingsConfigDict(env_prefix="CATALOG_")

    path: Path = Field(
        default=Path("data/metadata.sqlite"),
        description="SQLite database file",
    )
    max_pending: int = Field(
        default=64,
        gt=0,
        description="Maximum catalog requests queued behind the single writer",
    )


class WatcherSettings(BaseSettings):
    """Folder watcher configuration."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    folder: Path = Field(
        default=Path("data/watched"),
        description="Folder to watch for new or modified files",
    )
    debounce_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Quiet period before a changed file is queued",
    )
    poll_interval: float = Field(
        default=0.5,
        gt=0,
        description="Seconds between folder scans",
    )
    queue_size: int = Field(
        default=256,
        gt=0,
        description="Maximum paths waiting to be processed",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    # Nested settings
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vector: VectorIndexSettings = Field(default_factory=VectorIndexSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Only entry points (API lifespan, CLI) call this; components receive
    their settings section through their constructors.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
