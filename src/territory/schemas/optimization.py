"""Pydantic models for optimization inputs."""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import settings
from ..models.domain import Location


def _parse_coordinate(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def _coerce_text(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return value


def is_valid_position(latitude: Any, longitude: Any) -> bool:
    """True when both coordinates parse to finite values inside the WGS84 ranges."""
    lat = _parse_coordinate(latitude)
    lng = _parse_coordinate(longitude)
    if lat is None or lng is None:
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


class LocationRecord(BaseModel):
    """A raw location row as supplied by the surrounding application."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    location_id: str = Field(..., alias="id")
    name: str = ""
    street: Optional[str] = Field(default=None, alias="address")
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, alias="zip")
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("location_id", "street", "city", "state", "postal_code", mode="before")
    @classmethod
    def _coerce_scalars(cls, value: Any) -> Any:
        return _coerce_text(value)

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value: Any) -> Any:
        return "" if value is None else _coerce_text(value)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _parse_coordinates(cls, value: Any) -> Optional[float]:
        return _parse_coordinate(value)

    @property
    def is_geocoded(self) -> bool:
        return is_valid_position(self.latitude, self.longitude)

    def to_location(self) -> Optional[Location]:
        """Return a domain location, or None when the record has no usable coordinates."""
        if not self.is_geocoded:
            return None
        return Location(
            location_id=self.location_id,
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            street=self.street,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
        )


class OptimizationOptions(BaseModel):
    """Caller-facing knobs for a single optimization run."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    locations_per_day: int = Field(
        default_factory=lambda: settings.locations_per_day,
        alias="locationsPerDay",
        ge=1,
        description="Target daily visit batch size.",
    )
    num_zones: int = Field(
        default_factory=lambda: settings.num_zones,
        alias="numZones",
        ge=1,
        description="Target zone count.",
    )
    num_groups: int = Field(
        default_factory=lambda: settings.num_groups,
        alias="numGroups",
        ge=1,
        description="Number of assignees to partition zones across.",
    )
    random_seed: Optional[int] = Field(
        default_factory=lambda: settings.random_seed,
        alias="randomSeed",
        description="Seed for centroid initialization; fixes zone membership across runs.",
    )
