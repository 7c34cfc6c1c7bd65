"""City coherence refinement: keep each city's locations in one zone.

The city index maps a normalized city name to ``{zone index: count}``. It is
treated as a value: :func:`refine_pass` receives one, returns an updated copy
and never touches module state, so every pass feeds the next explicitly.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ...config import settings
from ...models.domain import Location
from ..geospatial import location_distance, mean_position

logger = logging.getLogger(__name__)

CityIndex = Dict[str, Dict[int, int]]


@dataclass(slots=True)
class CoherenceResult:
    zones: List[List[Location]]
    city_index: CityIndex
    swaps: int
    passes: int


def normalize_city(city: Optional[str]) -> str:
    return (city or "").strip().lower()


def build_city_index(zones: Sequence[Sequence[Location]]) -> CityIndex:
    index: CityIndex = {}
    for zone_index, zone in enumerate(zones):
        for location in zone:
            city = normalize_city(location.city)
            if not city:
                continue
            counts = index.setdefault(city, {})
            counts[zone_index] = counts.get(zone_index, 0) + 1
    return index


def count_city_splits(zones: Sequence[Sequence[Location]]) -> Tuple[int, int]:
    """Return ``(split_cities, total_cities)`` for the current zoning."""
    index = build_city_index(zones)
    split = sum(1 for counts in index.values() if len(counts) > 1)
    return split, len(index)


def _dominant_zone(counts: Dict[int, int]) -> int:
    # Highest count wins; ties go to the lowest zone index.
    return min(counts.items(), key=lambda item: (-item[1], item[0]))[0]


def _move_count(index: CityIndex, city: str, from_zone: int, to_zone: int) -> None:
    counts = index.get(city)
    if counts is None:
        return
    remaining = counts.get(from_zone, 0) - 1
    if remaining > 0:
        counts[from_zone] = remaining
    else:
        counts.pop(from_zone, None)
    counts[to_zone] = counts.get(to_zone, 0) + 1


def _majority_zone(counts: Dict[int, int], current_zone: int) -> Optional[int]:
    """Zone holding a strict majority of the city, if it is not ``current_zone``."""
    best_zone = current_zone
    best_count = counts.get(current_zone, 0)
    for zone_index, count in sorted(counts.items()):
        if count > best_count:
            best_zone, best_count = zone_index, count
    if best_zone == current_zone:
        return None
    if best_count <= sum(counts.values()) / 2:
        return None
    return best_zone


def refine_pass(
    zones: Sequence[Sequence[Location]],
    city_index: CityIndex,
    *,
    min_per_zone: int,
    max_per_zone: int,
) -> Tuple[List[List[Location]], CityIndex, int]:
    """Run one sweep of majority-city swaps.

    Returns the new zones, the city index matching them and the number of
    swaps made. The inputs are left untouched.
    """
    new_zones = [list(zone) for zone in zones]
    index = {city: dict(counts) for city, counts in city_index.items()}
    swaps = 0

    for zone_index, zone in enumerate(new_zones):
        zone_centroid = mean_position(zone)

        for position, location in enumerate(zone):
            city = normalize_city(location.city)
            if not city or city not in index:
                continue

            target_index = _majority_zone(index[city], zone_index)
            if target_index is None:
                continue

            target = new_zones[target_index]
            best_position = -1
            best_distance = math.inf
            for candidate_position, candidate in enumerate(target):
                candidate_city = normalize_city(candidate.city)
                candidate_counts = index.get(candidate_city)
                if candidate_counts and _dominant_zone(candidate_counts) == target_index:
                    continue
                distance = location_distance(candidate, zone_centroid)
                if distance < best_distance:
                    best_distance = distance
                    best_position = candidate_position

            if best_position == -1:
                continue

            # A swap leaves both sizes unchanged; only proceed when they are in bounds.
            if not (min_per_zone <= len(zone) <= max_per_zone):
                continue
            if not (min_per_zone <= len(target) <= max_per_zone):
                continue

            partner = target[best_position]
            _move_count(index, city, zone_index, target_index)
            partner_city = normalize_city(partner.city)
            if partner_city:
                _move_count(index, partner_city, target_index, zone_index)

            zone[position] = partner
            target[best_position] = location
            swaps += 1

    return new_zones, index, swaps


def refine_city_coherence(
    zones: Sequence[Sequence[Location]],
    *,
    zone_count: int | None = None,
    max_passes: int | None = None,
) -> CoherenceResult:
    """Swap locations between zones until cities stop being split or passes run out."""
    zone_count = zone_count or len(zones)
    max_passes = max_passes if max_passes is not None else settings.coherence_max_passes
    total = sum(len(zone) for zone in zones)
    max_per_zone = math.ceil(total / zone_count)
    min_per_zone = total // zone_count - 1

    current = [list(zone) for zone in zones]
    index = build_city_index(current)
    total_swaps = 0
    passes = 0

    for iteration in range(max_passes):
        current, index, swaps = refine_pass(
            current,
            index,
            min_per_zone=min_per_zone,
            max_per_zone=max_per_zone,
        )
        passes += 1
        total_swaps += swaps
        logger.info(f"City coherence pass {iteration + 1}: {swaps} swaps")
        if swaps == 0:
            break

    logger.info(f"City coherence refinement: {total_swaps} total swaps")
    return CoherenceResult(zones=current, city_index=index, swaps=total_swaps, passes=passes)
