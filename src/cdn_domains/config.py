"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings so that:
  - every option can come from an environment variable (12-factor)
  - a local .env file is honoured during development
  - types and constraints are validated once, at startup

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated through env_nested_delimiter="__", so CLOUDFRONT__LOG_BUCKET
maps to cloudfront.log_bucket and JANITOR__CRON to janitor.cron. List values
are given as JSON, e.g. CLOUDFRONT__DISTRIBUTION_IDS='["E1ABC", "E2DEF"]'.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

_SUPPORTED_PROTOCOL_VERSIONS = (
    "TLSv1",
    "TLSv1_2016",
    "TLSv1.1_2016",
    "TLSv1.2_2018",
    "TLSv1.2_2019",
    "TLSv1.2_2021",
)


class CloudFrontSettings(BaseModel):
    """
    Shared distribution pool and the shape of dedicated distributions.

    The pool order matters: registration fills earlier distributions first.
    """

    distribution_ids: list[str] = Field(
        default_factory=list,
        description="Ordered ids of the shared distributions custom domains are bound to",
    )
    max_aliases_per_distribution: int = Field(
        default=100, ge=1, description="Alias capacity of a single distribution"
    )
    origin_domain: str = Field(default="", description="Application origin hostname")
    custom_errors_domain: str = Field(
        default="", description="Static-assets origin (S3 bucket domain) serving error pages"
    )
    custom_errors_path: str = Field(default="/__cloudfront-errors")
    no_cache_path_pattern: str = Field(
        default="/__nocdn/*", description="Path pattern passed through to the origin uncached"
    )
    log_bucket: str = Field(default="", description="Access-log destination bucket domain")
    cookie_prefix: str = Field(default="_app", description="Prefix of the cookies forwarded by default")
    minimum_protocol_version: str = Field(default="TLSv1")
    price_class: str = Field(default="PriceClass_All")
    serve_forbidden_error_page: bool = Field(
        default=False, description="Also serve a custom page for 403 (domain not yet resolving)"
    )

    @field_validator("distribution_ids")
    @classmethod
    def reject_duplicate_ids(cls, value: list[str]) -> list[str]:
        """A distribution listed twice would be scanned twice."""
        cleaned = [v.strip() for v in value if v.strip()]
        if len(set(cleaned)) != len(cleaned):
            raise ValueError(f"Duplicate distribution ids in pool: {value!r}")
        return cleaned

    @field_validator("minimum_protocol_version")
    @classmethod
    def validate_protocol_version(cls, value: str) -> str:
        if value not in _SUPPORTED_PROTOCOL_VERSIONS:
            raise ValueError(
                f"minimum_protocol_version must be one of {', '.join(_SUPPORTED_PROTOCOL_VERSIONS)}, "
                f"got {value!r}"
            )
        return value

    @field_validator("custom_errors_path")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        path = "/" + value.strip().strip("/")
        return path


class CertificateSettings(BaseModel):
    """Key-material storage and managed certificate authority settings."""

    key_material_path: str = Field(
        default="/cloudfront/",
        description="Path prefix under which uploaded certificates are stored",
    )
    certificate_manager_region: str | None = Field(
        default=None, description="Region of the managed certificate authority"
    )

    @field_validator("key_material_path")
    @classmethod
    def validate_path(cls, value: str) -> str:
        """The key-material store requires the path to start and end with '/'."""
        if not (value.startswith("/") and value.endswith("/")):
            raise ValueError(f"key_material_path must start and end with '/', got {value!r}")
        return value


class JanitorSettings(BaseModel):
    """
    Periodic retirement of managed certificates no longer used by any distribution.

    Cron format: minute hour day-of-month month day-of-week
      "0 3 * * *"  — daily at 03:00 (default)
      "0 */6 * * *" — every 6 hours
    """

    enabled: bool = Field(default=False)
    cron: str = Field(default="0 3 * * *")
    run_on_startup: bool = Field(default=False)
    min_age_hours: int = Field(default=72, ge=1)
    retire_statuses: list[str] = Field(
        default_factory=lambda: [
            "ISSUED",
            "EXPIRED",
            "FAILED",
            "VALIDATION_TIMED_OUT",
            "REVOKED",
            "INACTIVE",
        ]
    )

    @field_validator("cron")
    @classmethod
    def validate_cron(cls, value: str) -> str:
        """Reject expressions that don't have exactly 5 space-separated fields."""
        fields = value.strip().split()
        if len(fields) != 5:
            raise ValueError(
                f"Cron expression must have exactly 5 fields "
                f"(minute hour dom month dow), got {len(fields)}: {value!r}"
            )
        return value.strip()


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

    cloudfront: CloudFrontSettings = Field(default_factory=lambda: CloudFrontSettings())
    certificates: CertificateSettings = Field(default_factory=lambda: CertificateSettings())
    janitor: JanitorSettings = Field(default_factory=lambda: JanitorSettings())

    aws_region: str | None = Field(default=None)
    aws_max_attempts: int = Field(
        default=1, ge=1, description="botocore attempts per call; 1 disables transport retries"
    )
    log_level: str = Field(default="INFO")
