"""Detect and relocate locations far from their zone's centroid."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Sequence

from ...config import settings
from ...models.domain import Location
from ..geospatial import location_distance, mean_position

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OutlierMove:
    location_id: str
    from_zone: int
    to_zone: int
    distance_before_miles: float
    distance_after_miles: float


@dataclass(slots=True)
class OutlierResult:
    zones: List[List[Location]]
    moves: List[OutlierMove] = field(default_factory=list)


def _median(values: Sequence[float]) -> float:
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def resolve_outliers(
    zones: Sequence[Sequence[Location]],
    *,
    zone_count: int | None = None,
    multiplier: float | None = None,
    min_improvement: float | None = None,
    capacity_slack: int | None = None,
) -> OutlierResult:
    """Move geographic outliers into a markedly closer zone that still has room.

    A member is an outlier when its centroid distance exceeds ``multiplier``
    times the zone's median distance. It moves to the closest other zone
    whose centroid is more than ``min_improvement`` nearer, provided that
    zone holds fewer than ``ceil(N / K) + capacity_slack`` locations.
    This is a single pass; centroids are recomputed from current membership
    as moves happen.
    """
    zone_count = zone_count or len(zones)
    multiplier = multiplier if multiplier is not None else settings.outlier_median_multiplier
    min_improvement = min_improvement if min_improvement is not None else settings.outlier_min_improvement
    capacity_slack = capacity_slack if capacity_slack is not None else settings.outlier_capacity_slack

    current = [list(zone) for zone in zones]
    total = sum(len(zone) for zone in current)
    receive_limit = math.ceil(total / zone_count) + capacity_slack
    moves: list[OutlierMove] = []

    for zone_index, zone in enumerate(current):
        if not zone:
            continue

        centroid = mean_position(zone)
        distances = [location_distance(location, centroid) for location in zone]
        threshold = _median(distances) * multiplier

        # Walk backwards so removals don't shift unvisited positions.
        for position in range(len(zone) - 1, -1, -1):
            distance = distances[position]
            if distance <= threshold:
                continue

            location = zone[position]
            best_zone = -1
            best_distance = distance * (1 - min_improvement)
            for other_index, other in enumerate(current):
                if other_index == zone_index or not other:
                    continue
                if len(other) >= receive_limit:
                    continue
                other_distance = location_distance(location, mean_position(other))
                if other_distance < best_distance:
                    best_distance = other_distance
                    best_zone = other_index

            if best_zone == -1:
                continue

            zone.pop(position)
            current[best_zone].append(location)
            moves.append(
                OutlierMove(
                    location_id=location.location_id,
                    from_zone=zone_index,
                    to_zone=best_zone,
                    distance_before_miles=distance,
                    distance_after_miles=best_distance,
                )
            )

    logger.info(f"Outlier removal: {len(moves)} locations reassigned")
    return OutlierResult(zones=current, moves=moves)
