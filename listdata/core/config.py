"""Engine configuration using Pydantic Settings.

Configuration is loaded from environment variables prefixed with
``LISTDATA_``. Optionally, point ``ENV_FILE`` at a local env file for
development.
"""

import os
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from listdata.domain.enums import UnknownFieldPolicy


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class EpochUnit(str, Enum):
    """Unit used to interpret numeric timestamps."""

    SECONDS = "s"
    MILLISECONDS = "ms"


class Settings(BaseSettings):
    """
    List engine settings with type validation.

    Page-size limits, highlighting and unknown-field policies can all be
    overridden per deployment; a processor may also be given its own
    Settings instance.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="LISTDATA_", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "listdata"
    log_level: str = "INFO"

    # Observability
    structured_logs: bool = True
    metrics_enabled: bool = True

    # OpenTelemetry Configuration
    otel_enabled: bool = False
    otel_service_name: str = "listdata"
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_exporter_otlp_headers: str | None = None
    otel_traces_sampler_arg: float = Field(default=1.0, ge=0.0, le=1.0)

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100

    # Search
    highlight_context: int = Field(default=50, ge=0)
    highlight_pre_tag: str = "<mark>"
    highlight_post_tag: str = "</mark>"
    fuzzy_threshold: float = Field(default=0.6, gt=0.0, le=1.0)

    # Cursor pagination tiebreaker (should be a unique field on every record)
    cursor_tiebreaker_field: str = "id"

    # Numeric timestamps are epoch milliseconds unless configured otherwise
    timestamp_epoch_unit: EpochUnit = EpochUnit.MILLISECONDS

    # Unknown-field handling per stage
    filter_unknown_field_policy: UnknownFieldPolicy = UnknownFieldPolicy.FAIL_CLOSED
    sort_unknown_field_policy: UnknownFieldPolicy = UnknownFieldPolicy.FAIL_LOUD

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Validate and parse app_env to AppEnvironment enum."""
        if isinstance(v, AppEnvironment):
            return v
        try:
            return AppEnvironment(v.lower())
        except ValueError:
            raise ValueError(
                f"app_env must be one of {[e.value for e in AppEnvironment]}, got '{v}'"
            )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level names."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"log_level must be a standard logging level, got '{v}'")
        return level

    @field_validator("default_page_size", "max_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Page sizes must be positive."""
        if v < 1:
            raise ValueError("page sizes must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_page_bounds(self) -> "Settings":
        """The default page size must fit inside the maximum."""
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                "default_page_size cannot exceed max_page_size "
                f"({self.default_page_size} > {self.max_page_size})"
            )
        return self


settings = Settings()
