"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables
  - Fall back to a .env file
  - Validate types and constraints at startup

Only AppSettings is a BaseSettings instance. Sub-settings are plain
BaseModel classes populated via env_nested_delimiter="__", so the env var
ENROLLMENT__URL maps to enrollment.url, STORAGE__DIRECTORY maps to
storage.directory, etc.

Settings are read once by the composition root and turned into an
EnrollmentConfig; nothing below main.py reads the environment.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ant_enroll.domain.models import (
    DEFAULT_CERTIFICATE_FILENAME,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT_PREFIX,
)

_ENV_FILE = Path(__file__).parent.parent.parent / ".env"


class EnrollmentSettings(BaseModel):
    """Enrollment endpoint and request behavior."""

    url: str = Field(description="Enrollment endpoint URL (HTTPS POST)")
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    skip_server_verification: bool = Field(
        default=True,
        description="Do not verify the server certificate for the enrollment request",
    )
    user_agent_prefix: str = Field(default=DEFAULT_USER_AGENT_PREFIX, min_length=1)
    payload_file: Path | None = Field(
        default=None,
        description="File whose content is sent as the request body (e.g. a CSR)",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """Only http(s) URLs can be enrolled against."""
        value = value.strip()
        if not value.startswith(("https://", "http://")):
            raise ValueError(f"Enrollment URL must be http(s), got: {value!r}")
        return value


class StorageSettings(BaseModel):
    """
    Local state layout.

    The certificate and identifier files live in `directory` when set,
    otherwise in `<home>/<dir_name>`.
    """

    directory: Path | None = Field(default=None, description="Explicit state directory")
    dir_name: str = Field(default=".marabunta")
    id_file: str = Field(default="ant.id")
    certificate_file: str = Field(default=DEFAULT_CERTIFICATE_FILENAME)


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    enrollment: EnrollmentSettings
    storage: StorageSettings = Field(default_factory=lambda: StorageSettings())

    log_level: str = Field(default="INFO")
