"""Engine configuration and settings management."""

from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TERRITORY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    locations_per_day: int = Field(default=17, ge=1, description="Visits scheduled per working day.")
    num_zones: int = Field(default=11, ge=1, description="Target number of geographic zones.")
    num_groups: int = Field(default=1, ge=1, description="Number of assignees sharing the zones.")
    random_seed: Optional[int] = Field(
        default=None,
        description="Seed for centroid initialization. Leave unset for a fresh seed per run.",
    )

    kmeans_max_iterations: int = Field(default=50, ge=1)
    kmeans_tolerance_miles: float = Field(
        default=0.01,
        ge=0.0,
        description="Centroid movement (miles) below which clustering is considered converged.",
    )
    coherence_max_passes: int = Field(default=3, ge=0)
    outlier_median_multiplier: float = Field(default=2.5, gt=0.0)
    outlier_min_improvement: float = Field(
        default=0.3,
        ge=0.0,
        lt=1.0,
        description="Fraction by which an outlier's centroid distance must shrink before it is moved.",
    )
    outlier_capacity_slack: int = Field(default=2, ge=0)

    two_opt_tolerance_seconds: float = Field(default=1.0, ge=0.0)
    average_speed_mph: float = Field(
        default=25.0,
        gt=0.0,
        description="Flat urban speed used to turn drive time into an estimated distance.",
    )
    road_factor: float = Field(
        default=1.25,
        ge=1.0,
        description="Ratio of road distance to straight-line distance for offline travel estimates.",
    )
    working_days_per_week: int = Field(default=5, ge=1, le=7)

    zone_name_prefix: str = "Zone"
    group_name_prefix: str = "FRM"

    @field_validator("random_seed", mode="before")
    @classmethod
    def _parse_optional_seed(cls, value: Any) -> Optional[int]:
        """Treat blank environment values as an unset seed."""
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return value


settings = Settings()
