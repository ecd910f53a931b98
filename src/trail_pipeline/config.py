"""
Pipeline configuration.

Uses Pydantic Settings so every constant can be overridden from the
environment (``TRAIL_BATCH_SIZE=50``) or a ``.env`` file.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Tunable constants for building a trail."""

    # === Distance ===
    authoritative_total_miles: float = Field(
        default=2197.9,
        description="Known total trail length used to rescale haversine mileage",
    )

    # === Elevation service ===
    elevation_api_url: str = Field(
        default="https://api.open-meteo.com/v1/elevation",
        description="Batched elevation lookup endpoint",
    )
    elevation_timeout_s: float = Field(default=30.0)
    batch_size: int = Field(default=100, description="Max coordinates per elevation request")
    max_retries: int = Field(default=5, description="Attempts per batch, including the first")
    initial_backoff_ms: int = Field(default=2000)
    max_backoff_ms: int = Field(default=30000)
    inter_batch_delay_ms: int = Field(default=1500)

    # === Simplification ===
    simplification_target_count: int = Field(default=5000)
    simplification_tolerance_bounds: tuple[float, float] = Field(default=(0.0, 0.1))
    simplification_max_iterations: int = Field(default=30)
    simplification_tolerance_ratio: float = Field(default=0.05)

    # === Proximity ===
    off_trail_threshold_miles: float = Field(default=0.25)

    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="TRAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("authoritative_total_miles", "batch_size", "max_retries", "simplification_max_iterations")
    @classmethod
    def must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("simplification_target_count")
    @classmethod
    def target_at_least_two(cls, v: int) -> int:
        if v < 2:
            raise ValueError("a simplified trail keeps at least its two endpoints")
        return v

    @model_validator(mode="after")
    def check_ranges(self):
        lo, hi = self.simplification_tolerance_bounds
        if lo < 0 or hi <= lo:
            raise ValueError("simplification_tolerance_bounds must satisfy 0 <= lo < hi")
        if self.max_backoff_ms < self.initial_backoff_ms:
            raise ValueError("max_backoff_ms must not be below initial_backoff_ms")
        return self
