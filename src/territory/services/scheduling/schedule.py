"""Proximity ordering and daily batching of a zone's locations."""

from __future__ import annotations

from typing import Sequence

from ...config import settings
from ...models.domain import DailyAssignment, Location, ScheduledStop
from ..geospatial import haversine_miles


def sort_by_proximity(locations: Sequence[Location]) -> list[Location]:
    """Nearest-neighbor walk starting from the south-westernmost location."""
    if len(locations) <= 1:
        return list(locations)

    remaining = list(locations)
    current = min(remaining, key=lambda loc: loc.latitude + loc.longitude)
    remaining.remove(current)
    ordered = [current]

    while remaining:
        nearest = min(
            range(len(remaining)),
            key=lambda i: haversine_miles(
                current.latitude, current.longitude, remaining[i].latitude, remaining[i].longitude
            ),
        )
        current = remaining.pop(nearest)
        ordered.append(current)

    return ordered


def sequence_stops(locations: Sequence[Location]) -> list[ScheduledStop]:
    return [ScheduledStop(location=location, sequence=seq) for seq, location in enumerate(locations, start=1)]


def build_daily_schedule(
    ordered: Sequence[Location],
    locations_per_day: int | None = None,
    *,
    days_per_week: int | None = None,
) -> list[DailyAssignment]:
    """Slice an ordered zone into daily batches cycling Mon-Fri across weeks."""
    locations_per_day = locations_per_day if locations_per_day is not None else settings.locations_per_day
    days_per_week = days_per_week if days_per_week is not None else settings.working_days_per_week
    if locations_per_day < 1:
        raise ValueError("locations_per_day must be >= 1")
    if days_per_week < 1:
        raise ValueError("days_per_week must be >= 1")

    days: list[DailyAssignment] = []
    day_of_week = 1
    week_number = 1

    for start in range(0, len(ordered), locations_per_day):
        batch = ordered[start : start + locations_per_day]
        days.append(
            DailyAssignment(
                day_of_week=day_of_week,
                week_number=week_number,
                stops=sequence_stops(batch),
            )
        )
        day_of_week += 1
        if day_of_week > days_per_week:
            day_of_week = 1
            week_number += 1

    return days
