"""Per-day route refinement using travel times, nearest-neighbor and 2-opt."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ...config import settings
from ...models.domain import Location
from .provider import MatrixErr, MatrixOk, TravelTimeProvider, request_matrix
from .tsp import nearest_neighbor_tour, tour_time, two_opt

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RefinedRoute:
    locations: List[Location]
    estimated_drive_minutes: Optional[float] = None
    estimated_distance_miles: Optional[float] = None
    optimized: bool = False


def _unchanged(locations: Sequence[Location]) -> RefinedRoute:
    return RefinedRoute(locations=list(locations))


async def refine_daily_route(
    locations: Sequence[Location],
    provider: TravelTimeProvider | None,
    *,
    tolerance_seconds: float | None = None,
    average_speed_mph: float | None = None,
) -> RefinedRoute:
    """Reorder a daily batch to approximately minimize travel time.

    Batches of two or fewer locations, a missing provider and provider
    failures all keep the incoming (proximity) order with no estimates.
    The distance estimate is derived from drive time at a flat average
    speed; it is not a measured road distance.
    """
    if len(locations) <= 2 or provider is None:
        return _unchanged(locations)

    tolerance_seconds = (
        tolerance_seconds if tolerance_seconds is not None else settings.two_opt_tolerance_seconds
    )
    average_speed_mph = average_speed_mph or settings.average_speed_mph

    result = await request_matrix(provider, locations)
    match result:
        case MatrixErr(reason=reason):
            logger.warning(f"Falling back to proximity order for {len(locations)} locations: {reason}")
            return _unchanged(locations)
        case MatrixOk(matrix=matrix):
            initial = nearest_neighbor_tour(matrix)
            improved = two_opt(initial, matrix, tolerance=tolerance_seconds)
            total_seconds = tour_time(improved, matrix)
            logger.debug(
                f"2-opt refined {len(locations)} stops: "
                f"{tour_time(initial, matrix):.0f}s -> {total_seconds:.0f}s"
            )
            return RefinedRoute(
                locations=[locations[index] for index in improved],
                estimated_drive_minutes=round(total_seconds / 60, 1),
                estimated_distance_miles=round(total_seconds / 3600 * average_speed_mph, 1),
                optimized=True,
            )
