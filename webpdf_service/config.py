"""
Web PDF Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class PdfServiceSettings(BaseSettings):
    """
    Web PDF service configuration with validation.

    All settings can be overridden via environment variables.
    """

    # === Server ===
    host: str = Field(default="0.0.0.0", description="Interface to bind to")
    port: int = Field(default=3000, ge=1, le=65535, description="Listening port")
    keep_alive_timeout: int = Field(
        default=60,
        ge=1,
        le=600,
        description="HTTP keep-alive timeout in seconds"
    )
    max_body_mb: int = Field(
        default=50,
        ge=1,
        le=1024,
        description="Maximum accepted request body size in MB"
    )

    # === Logging & Telemetry ===
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    applicationinsights_connection_string: Optional[str] = Field(
        default=None,
        description="Telemetry sink connection string; enables JSON log output"
    )

    # === Rendering ===
    playwright_headless: bool = Field(default=True, description="Run Chromium headless")
    render_timeout_ms: int = Field(
        default=70000,
        ge=1000,
        description="Default navigation/render timeout in milliseconds"
    )
    max_concurrent_renders: Optional[int] = Field(
        default=None,
        ge=1,
        le=100,
        description="Cap on simultaneous renders (unset = unbounded)"
    )

    # === Compression ===
    ghostscript_command: str = Field(
        default="gs",
        min_length=1,
        description="Ghostscript executable"
    )
    compression_timeout_seconds: Optional[int] = Field(
        default=None,
        ge=1,
        description="Kill Ghostscript after this many seconds (unset = wait forever)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known value."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(allowed))}")
        return v_upper

    @field_validator("applicationinsights_connection_string")
    @classmethod
    def blank_connection_string_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def telemetry_enabled(self) -> bool:
        """Check if the external telemetry sink is configured."""
        return self.applicationinsights_connection_string is not None

    @property
    def max_body_bytes(self) -> int:
        return self.max_body_mb * 1024 * 1024

    class Config:
        env_prefix = ""  # No prefix, use exact env var names
        case_sensitive = False  # PORT = port


@lru_cache()
def get_settings() -> PdfServiceSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for performance.
    Use this function to access configuration throughout the app.
    """
    return PdfServiceSettings()


def validate_config_on_startup() -> PdfServiceSettings:
    """
    Validate configuration at application startup.

    Raises ValueError with details if config is invalid.
    """
    try:
        settings = get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    logger.info(f"Configuration loaded: port={settings.port}")
    logger.info(f"  keep_alive_timeout={settings.keep_alive_timeout}s")
    logger.info(f"  render_timeout={settings.render_timeout_ms}ms")
    logger.info(f"  max_concurrent_renders={settings.max_concurrent_renders or 'unbounded'}")
    logger.info(f"  ghostscript_command={settings.ghostscript_command}")
    logger.info(f"  telemetry_enabled={settings.telemetry_enabled}")

    return settings
