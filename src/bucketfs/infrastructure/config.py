"""Configuration management for bucketfs using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError
from pydantic_settings import BaseSettings, SettingsConfigDict

from bucketfs.domain.exceptions import ConfigurationError
from bucketfs.domain.value_objects import Visibility, normalize_path


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    model_config = ConfigDict(frozen=True)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="bucketfs", description="Service name for tracing")


class AdapterConfig(BaseSettings):
    """Immutable adapter configuration, validated once at construction."""

    model_config = SettingsConfigDict(
        env_prefix="BUCKETFS_",
        env_nested_delimiter="__",
        case_sensitive=False,
        frozen=True,
    )

    # Backend
    bucket: str = Field(min_length=1, description="Bucket name")
    credentials_file: Path | None = Field(
        default=None, description="Service account JSON key file"
    )
    anonymous: bool = Field(
        default=False, description="Use unauthenticated access (public buckets, emulators)"
    )
    project: str | None = Field(default=None, description="Cloud project id")
    service_account_email: str | None = Field(
        default=None, description="Expected service account of the key file"
    )
    application_name: str | None = Field(
        default=None, description='Sent with requests, e.g. "MyCompany-Product/1.0"'
    )
    endpoint: str | None = Field(default=None, description="Override API endpoint")

    # Filesystem behavior
    path_prefix: str = Field(default="", description="Key prefix all paths live under")
    default_visibility: Visibility = Field(default=Visibility.PRIVATE)
    directory_markers: bool = Field(
        default=True, description="Write marker objects for created directories"
    )
    overwrite_destination: bool = Field(
        default=False, description="Let copy and rename replace an existing destination"
    )

    # Requests
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout (s)")
    list_page_size: int = Field(default=1000, ge=1, le=1000, description="Listing page size")

    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @field_validator("bucket")
    @classmethod
    def _strip_bucket(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("bucket must not be blank")
        return value

    @field_validator("path_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        return normalize_path(value)

    @model_validator(mode="after")
    def _require_credentials(self) -> "AdapterConfig":
        if self.credentials_file is None and not self.anonymous:
            raise PydanticCustomError(
                "missing_credentials",
                "{field} is required unless anonymous access is enabled",
                {"field": "credentials_file"},
            )
        return self


def _error_fields(exc: ValidationError) -> list[str]:
    fields = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()))
        # Model-level errors have no location; they may name their field.
        fields.append(loc or error.get("ctx", {}).get("field", "__root__"))
    return fields


def load_config(**overrides: Any) -> AdapterConfig:
    """Build a configuration from the environment plus explicit overrides.

    Raises:
        ConfigurationError: If required values are missing or invalid.
    """
    try:
        return AdapterConfig(**overrides)
    except ValidationError as exc:
        fields = _error_fields(exc)
        raise ConfigurationError(
            f"Invalid adapter configuration: {', '.join(fields)}",
            fields=fields,
        ) from exc


@lru_cache
def get_config() -> AdapterConfig:
    """Get cached configuration instance."""
    return load_config()
