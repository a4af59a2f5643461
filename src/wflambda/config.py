"""Configuration for wflambda."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Telemetry settings, read from ``WAVEFRONT_*`` environment variables."""

    enabled: bool = Field(
        True, description="Whether to collect telemetry for wrapped handlers"
    )
    report_standard_metrics: bool = Field(
        True,
        description="Whether to send duration, memory, cold start and invocation metrics",
    )
    namespace: str = Field(
        "wavefront-lambda", description="Namespace metrics are published under"
    )
    point_tags: dict[str, str] = Field(
        default_factory=dict, description="Static tags added to every metric"
    )
    service: Optional[str] = Field(None, description="Service name used in logs")
    server: Optional[str] = Field(
        None,
        description="Wavefront cluster or proxy URL; metrics go to CloudWatch EMF when unset",
    )
    token: Optional[str] = Field(
        None, description="Wavefront API token, not needed when sending to a proxy"
    )
    batch_size: int = Field(10_000, gt=0, description="Points sent per request")
    max_queue_size: int = Field(
        50_000, gt=0, description="Points buffered before new ones are dropped"
    )
    flush_interval_seconds: int = Field(
        1, gt=0, description="Interval of the Wavefront client's background flush"
    )

    @field_validator("point_tags")
    @classmethod
    def strip_empty_tags(cls, v):
        """Drop tags without a key or value."""
        return {k.strip(): val for k, val in v.items() if k.strip() and val != ""}

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="WAVEFRONT_", extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    This function returns a cached instance of the Settings object.
    Caching is used to prevent re-reading the environment on every invocation.
    To pick up changed environment variables (e.g., during testing), reset the
    cache with `get_settings.cache_clear()`.
    """
    return Settings()
