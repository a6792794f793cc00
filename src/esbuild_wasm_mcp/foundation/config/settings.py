"""Environment-based configuration using pydantic-settings.

Example:
    >>> from esbuild_wasm_mcp.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.engine.fetch_timeout
    30.0
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # ESBUILD_WASM_ENGINE_MODULE_PATH=/opt/esbuild/esbuild.wasm
    # ESBUILD_WASM_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, PositiveFloat, PositiveInt, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Engine module location and execution defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ESBUILD_WASM_ENGINE_",
        extra="ignore",
        validate_default=True,
    )

    module_path: Path | None = Field(
        default=None,
        description="Default esbuild.wasm (WASI build) used when a load names no module",
    )
    root_dir: Path = Field(
        default_factory=Path.cwd,
        description="Host directory builds resolve entry points against",
    )
    fetch_timeout: PositiveFloat = Field(default=30.0, description="Timeout for remote module downloads")
    use_worker: bool = Field(default=False, description="Run engine calls in an isolated worker process by default")
    worker_processes: PositiveInt = Field(default=1, description="Size of the isolated worker process pool")

    @field_validator("root_dir", mode="after")
    @classmethod
    def _absolute_root(cls, v: Path) -> Path:
        return v.expanduser().resolve()


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ESBUILD_WASM_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"


class ServerSettings(BaseSettings):
    """MCP server bootstrap configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ESBUILD_WASM_SERVER_",
        extra="ignore",
    )

    name: str = "esbuild-wasm"
    transport: Literal["stdio", "sse", "streamable-http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1, le=65535)

    @computed_field
    @property
    def is_stdio(self) -> bool:
        return self.transport == "stdio"


class EsbuildSettings(BaseSettings):
    """Root settings, loaded from ``ESBUILD_WASM_*`` variables and ``.env``.

    Example environment variables:
        ESBUILD_WASM_DEBUG=true
        ESBUILD_WASM_ENGINE_USE_WORKER=true
        ESBUILD_WASM_LOG_FORMAT=json
        ESBUILD_WASM_SERVER_TRANSPORT=sse
    """

    model_config = SettingsConfigDict(
        env_prefix="ESBUILD_WASM_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    engine: EngineSettings = Field(default_factory=EngineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


@lru_cache(maxsize=1)
def get_settings() -> EsbuildSettings:
    """Get the global settings instance (cached)."""
    return EsbuildSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
