"""Domain models for locations, zones and visit schedules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

Centroid = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class Location:
    """A geocoded service site. Immutable for the duration of a run."""

    location_id: str
    name: str
    latitude: float
    longitude: float
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None


@dataclass(slots=True)
class ScheduledStop:
    location: Location
    sequence: int


@dataclass(slots=True)
class DailyAssignment:
    """One zone's visits for a (week number, day of week) pair."""

    day_of_week: int
    week_number: int
    stops: List[ScheduledStop]
    estimated_drive_minutes: Optional[float] = None
    estimated_distance_miles: Optional[float] = None
    zone_number: Optional[int] = None
    zone_name: Optional[str] = None

    @property
    def locations(self) -> List[Location]:
        return [stop.location for stop in self.stops]

    @property
    def location_count(self) -> int:
        return len(self.stops)


@dataclass(slots=True)
class Zone:
    number: int
    name: str
    locations: List[Location]
    centroid: Centroid
    daily_assignments: List[DailyAssignment] = field(default_factory=list)
    boundary: List[Tuple[float, float]] = field(default_factory=list)

    @property
    def location_count(self) -> int:
        return len(self.locations)

    @property
    def total_days(self) -> int:
        return len(self.daily_assignments)

    @property
    def average_drive_minutes(self) -> Optional[float]:
        estimates = [
            day.estimated_drive_minutes
            for day in self.daily_assignments
            if day.estimated_drive_minutes is not None
        ]
        if not estimates:
            return None
        return round(sum(estimates) / len(estimates), 1)


@dataclass(slots=True)
class AssigneeGroup:
    """Zones handed to a single field rep with their merged schedule."""

    number: int
    name: str
    zone_names: List[str]
    total_locations: int
    total_days: int
    daily_schedule: List[DailyAssignment]


@dataclass(slots=True)
class OptimizationStats:
    total_locations: int
    geocoded_locations: int
    zones_created: int
    num_groups: int
    locations_per_day: int
    algorithm: str
    city_splits_before: int
    city_splits_after: int
    total_cities: int
    avg_daily_drive_minutes: Optional[float]
    drive_time_optimized_days: int
    fallback_days: int
    coherence_swaps: int
    outliers_moved: int


@dataclass(slots=True)
class OptimizationResult:
    zones: List[Zone]
    groups: List[AssigneeGroup]
    stats: OptimizationStats
    degraded: bool = False
