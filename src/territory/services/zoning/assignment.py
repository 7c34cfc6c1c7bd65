"""Capacity-capped assignment of locations to cluster centers."""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np

from ...models.domain import Centroid, Location
from ..geospatial import as_points, pairwise_miles

logger = logging.getLogger(__name__)


def zone_capacity(total: int, zones: int) -> int:
    return math.ceil(total / zones)


def balanced_assignment(
    locations: Sequence[Location],
    centroids: Sequence[Centroid],
) -> list[list[Location]]:
    """Distribute locations to centroids so no zone exceeds ``ceil(N / K)``.

    Every (location, centroid) pair is ranked by distance and walked
    shortest-first; a pair is taken when the location is still unassigned
    and the centroid's zone has room. Zones keep the input order of their
    members.
    """
    zone_count = len(centroids)
    if zone_count < 1:
        raise ValueError("At least one centroid is required.")
    if not locations:
        return [[] for _ in range(zone_count)]

    capacity = zone_capacity(len(locations), zone_count)
    distances = pairwise_miles(as_points(locations), np.array(centroids, dtype=float))
    ranked = np.argsort(distances, axis=None, kind="stable")

    assignments = [-1] * len(locations)
    sizes = [0] * zone_count
    assigned = 0

    for flat_index in ranked:
        if assigned == len(locations):
            break
        location_index, zone_index = divmod(int(flat_index), zone_count)
        if assignments[location_index] != -1:
            continue
        if sizes[zone_index] >= capacity:
            continue
        assignments[location_index] = zone_index
        sizes[zone_index] += 1
        assigned += 1

    zones: list[list[Location]] = [[] for _ in range(zone_count)]
    for location, zone_index in zip(locations, assignments):
        zones[zone_index].append(location)

    logger.info(f"Assigned {len(locations)} locations into {zone_count} zones: {sizes}")
    return zones
