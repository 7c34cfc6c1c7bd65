"""High-level orchestration for territory route optimization."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Iterable, Mapping, Sequence, Union

import numpy as np
from pydantic import ValidationError

from ...config import settings
from ...errors import InputError
from ...models.domain import (
    AssigneeGroup,
    DailyAssignment,
    Location,
    OptimizationResult,
    OptimizationStats,
    Zone,
)
from ...schemas.optimization import LocationRecord, OptimizationOptions, is_valid_position
from ..geospatial import convex_hull_ring, location_distance, mean_position
from ..routing import TravelTimeProvider, refine_daily_route
from ..scheduling import build_daily_schedule, sequence_stops, sort_by_proximity
from ..zoning import (
    balanced_assignment,
    count_city_splits,
    find_centroids,
    refine_city_coherence,
    resolve_outliers,
)

logger = logging.getLogger(__name__)

ALGORITHM_DRIVE_TIME = "balanced-kmeans-drivetime"
ALGORITHM_PROXIMITY = "balanced-kmeans"

RecordInput = Union[LocationRecord, Location, Mapping[str, Any]]


def _parse_options(options: OptimizationOptions | Mapping[str, Any] | None) -> OptimizationOptions:
    if options is None:
        options = {}
    if isinstance(options, OptimizationOptions):
        return options
    try:
        return OptimizationOptions.model_validate(dict(options))
    except ValidationError as exc:
        raise InputError(f"Invalid optimization options: {exc}") from exc


def _to_location(record: RecordInput, position: int) -> Location | None:
    if isinstance(record, Location):
        return record if is_valid_position(record.latitude, record.longitude) else None
    if isinstance(record, Mapping) and not is_valid_position(record.get("latitude"), record.get("longitude")):
        # Ungeocoded rows are dropped without validating the rest of the row.
        return None
    if not isinstance(record, LocationRecord):
        try:
            record = LocationRecord.model_validate(record)
        except ValidationError as exc:
            raise InputError(f"Location record {position} is malformed: {exc}") from exc
    return record.to_location()


def filter_geocoded(records: Iterable[RecordInput]) -> tuple[list[Location], int]:
    """Parse raw records, returning the geocoded locations and the input count."""
    locations: list[Location] = []
    total = 0
    for position, record in enumerate(records):
        total += 1
        location = _to_location(record, position)
        if location is not None:
            locations.append(location)
    return locations, total


def zone_label(index: int) -> str:
    """Spreadsheet-style letters: 0 -> A, 25 -> Z, 26 -> AA."""
    label = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        label = chr(65 + remainder) + label
    return label


def partition_zones(zones: Sequence[Zone], num_groups: int) -> list[AssigneeGroup]:
    """Split the ordered zone list into ``num_groups`` consecutive slices.

    Slices are balanced by zone count, not by location count. Each group's
    schedule is the concatenation of its zones' days sorted by week then
    weekday.
    """
    if num_groups < 1:
        raise InputError("num_groups must be >= 1")

    per_group = math.ceil(len(zones) / num_groups) if zones else 0
    groups: list[AssigneeGroup] = []
    for group_index in range(num_groups):
        group_zones = list(zones[group_index * per_group : (group_index + 1) * per_group])
        schedule: list[DailyAssignment] = [day for zone in group_zones for day in zone.daily_assignments]
        schedule.sort(key=lambda day: (day.week_number, day.day_of_week))
        groups.append(
            AssigneeGroup(
                number=group_index + 1,
                name=f"{settings.group_name_prefix} {group_index + 1}",
                zone_names=[zone.name for zone in group_zones],
                total_locations=sum(zone.location_count for zone in group_zones),
                total_days=sum(zone.total_days for zone in group_zones),
                daily_schedule=schedule,
            )
        )
    return groups


def find_nearest_zone(location: Location, zones: Sequence[Zone]) -> Zone:
    """Zone whose centroid is closest to ``location``, for interim assignment of new sites."""
    if not zones:
        raise InputError("No zones available to assign the location to.")
    return min(zones, key=lambda zone: location_distance(location, zone.centroid))


async def _schedule_zone(
    number: int,
    members: Sequence[Location],
    *,
    locations_per_day: int,
    provider: TravelTimeProvider | None,
) -> Zone:
    name = f"{settings.zone_name_prefix} {zone_label(number - 1)}"
    ordered = sort_by_proximity(members)
    days = build_daily_schedule(ordered, locations_per_day)

    refined_days: list[DailyAssignment] = []
    for day in days:
        # One provider call in flight at a time.
        route = await refine_daily_route(day.locations, provider)
        refined_days.append(
            DailyAssignment(
                day_of_week=day.day_of_week,
                week_number=day.week_number,
                stops=sequence_stops(route.locations),
                estimated_drive_minutes=route.estimated_drive_minutes,
                estimated_distance_miles=route.estimated_distance_miles,
                zone_number=number,
                zone_name=name,
            )
        )

    return Zone(
        number=number,
        name=name,
        locations=list(members),
        centroid=mean_position(members),
        daily_assignments=refined_days,
        boundary=convex_hull_ring(members),
    )


async def optimize_routes(
    records: Iterable[RecordInput],
    options: OptimizationOptions | Mapping[str, Any] | None = None,
    provider: TravelTimeProvider | None = None,
    *,
    rng: np.random.Generator | None = None,
) -> OptimizationResult:
    """Build balanced zones, a recurring daily schedule and refined daily routes.

    Raises:
        InputError: invalid options, malformed records or no geocoded locations.
    """
    options = _parse_options(options)
    locations, total_records = filter_geocoded(records)

    logger.info(
        f"Starting route optimization for {total_records} locations: "
        f"{options.num_zones} zones, {options.num_groups} group(s), {options.locations_per_day} visits/day"
    )
    logger.info(f"Drive-time optimization: {'ENABLED' if provider is not None else 'DISABLED (proximity fallback)'}")

    if not locations:
        raise InputError("No geocoded locations found. Geocode locations before optimizing routes.")
    logger.info(f"Found {len(locations)} geocoded locations")

    rng = rng if rng is not None else np.random.default_rng(options.random_seed)
    zone_count = options.num_zones

    centroids = find_centroids(locations, zone_count, rng=rng)
    chunks = balanced_assignment(locations, centroids)

    splits_before, _ = count_city_splits(chunks)
    coherence = refine_city_coherence(chunks, zone_count=zone_count)
    splits_after, total_cities = count_city_splits(coherence.zones)
    logger.info(f"City splits: {splits_before} -> {splits_after} (of {total_cities} cities)")

    outliers = resolve_outliers(coherence.zones, zone_count=zone_count)
    chunks = outliers.zones
    logger.info(f"Final zone sizes: {[len(chunk) for chunk in chunks]}")

    zones: list[Zone] = []
    for members in chunks:
        if not members:
            continue
        zones.append(
            await _schedule_zone(
                len(zones) + 1,
                members,
                locations_per_day=options.locations_per_day,
                provider=provider,
            )
        )

    groups = partition_zones(zones, options.num_groups)

    all_days = [day for zone in zones for day in zone.daily_assignments]
    estimates = [day.estimated_drive_minutes for day in all_days if day.estimated_drive_minutes is not None]
    routable_days = [day for day in all_days if day.location_count > 2]
    fallback_days = len(routable_days) - len(estimates) if provider is not None else 0
    avg_drive_minutes = round(sum(estimates) / len(estimates), 1) if estimates else None

    stats = OptimizationStats(
        total_locations=total_records,
        geocoded_locations=len(locations),
        zones_created=len(zones),
        num_groups=options.num_groups,
        locations_per_day=options.locations_per_day,
        algorithm=ALGORITHM_DRIVE_TIME if provider is not None else ALGORITHM_PROXIMITY,
        city_splits_before=splits_before,
        city_splits_after=splits_after,
        total_cities=total_cities,
        avg_daily_drive_minutes=avg_drive_minutes,
        drive_time_optimized_days=len(estimates),
        fallback_days=fallback_days,
        coherence_swaps=coherence.swaps,
        outliers_moved=len(outliers.moves),
    )

    degraded = provider is None or fallback_days > 0
    if degraded:
        logger.warning(
            f"Optimization ran in degraded mode: {fallback_days} of {len(routable_days)} daily routes "
            f"kept proximity order{' (no travel-time provider)' if provider is None else ''}"
        )
    logger.info(
        f"Optimization complete: {len(zones)} zones, {len(all_days)} daily routes, "
        f"algorithm={stats.algorithm}, avg drive={avg_drive_minutes} min"
    )

    return OptimizationResult(zones=zones, groups=groups, stats=stats, degraded=degraded)


def run_optimization(
    records: Iterable[RecordInput],
    options: OptimizationOptions | Mapping[str, Any] | None = None,
    provider: TravelTimeProvider | None = None,
    *,
    rng: np.random.Generator | None = None,
) -> OptimizationResult:
    """Synchronous entry point for callers without a running event loop."""
    return asyncio.run(optimize_routes(records, options, provider, rng=rng))
