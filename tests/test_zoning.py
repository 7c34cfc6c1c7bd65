import math
from collections import Counter

import numpy as np
import pytest

from territory.models.domain import Location
from territory.services.geospatial import mean_position
from territory.services.zoning import (
    balanced_assignment,
    build_city_index,
    count_city_splits,
    find_centroids,
    normalize_city,
    refine_city_coherence,
    refine_pass,
    resolve_outliers,
    seed_centroids,
    zone_capacity,
)


def _location(lid: str, lat: float, lng: float, city: str | None = "Springfield") -> Location:
    return Location(location_id=lid, name=f"Location {lid}", latitude=lat, longitude=lng, city=city)


def _cluster(prefix: str, lat: float, lng: float, count: int, city: str) -> list[Location]:
    return [
        _location(f"{prefix}{i}", lat + (i % 5) * 0.01, lng + (i // 5) * 0.01, city=city)
        for i in range(count)
    ]


def _ids(zones) -> list[str]:
    return sorted(location.location_id for zone in zones for location in zone)


# --- centroids -------------------------------------------------------------


def test_seed_centroids_spreads_across_clusters():
    locations = _cluster("A", 40.0, -75.0, 10, "A") + _cluster("B", 34.0, -118.0, 10, "B")
    points = np.array([[loc.latitude, loc.longitude] for loc in locations])

    seeds = seed_centroids(points, 2, np.random.default_rng(3))

    latitudes = sorted(seed[0] for seed in seeds)
    assert latitudes[0] < 35.0 < latitudes[1]


def test_find_centroids_recovers_cluster_means():
    west = _cluster("W", 34.0, -118.0, 10, "West")
    east = _cluster("E", 40.0, -75.0, 10, "East")

    centroids = find_centroids(west + east, 2, rng=np.random.default_rng(11))

    expected = sorted([mean_position(west), mean_position(east)])
    for found, target in zip(sorted(centroids), expected):
        assert found == pytest.approx(target, abs=1e-9)


def test_find_centroids_is_deterministic_with_seed():
    locations = _cluster("A", 40.0, -75.0, 12, "A") + _cluster("B", 41.0, -74.0, 12, "B")
    first = find_centroids(locations, 3, rng=np.random.default_rng(99))
    second = find_centroids(locations, 3, rng=np.random.default_rng(99))
    assert first == second


def test_find_centroids_tolerates_more_zones_than_points():
    locations = [_location(str(i), 40.0 + i, -75.0) for i in range(3)]
    centroids = find_centroids(locations, 7, rng=np.random.default_rng(0))
    assert len(centroids) == 7


def test_find_centroids_handles_duplicate_points():
    locations = [_location(str(i), 40.0, -75.0) for i in range(4)]
    centroids = find_centroids(locations, 2, rng=np.random.default_rng(0))
    assert centroids == [(40.0, -75.0), (40.0, -75.0)]


# --- balanced assignment -----------------------------------------------------


@pytest.mark.parametrize("total, zones, expected", [(100, 3, 34), (99, 3, 33), (5, 11, 1), (0, 4, 0)])
def test_zone_capacity(total, zones, expected):
    assert zone_capacity(total, zones) == expected


def test_balanced_assignment_respects_capacity_and_coverage():
    # All ten locations sit next to the first centroid.
    locations = _cluster("A", 40.0, -75.0, 10, "A")
    zones = balanced_assignment(locations, [(40.0, -75.0), (45.0, -80.0), (30.0, -90.0)])

    assert [len(zone) for zone in zones] == [4, 4, 2]
    assert _ids(zones) == sorted(loc.location_id for loc in locations)


def test_balanced_assignment_prefers_nearest_centroid_when_room():
    west = _cluster("W", 34.0, -118.0, 5, "West")
    east = _cluster("E", 40.0, -75.0, 5, "East")
    zones = balanced_assignment(west + east, [(40.0, -75.0), (34.0, -118.0)])

    assert {loc.city for loc in zones[0]} == {"East"}
    assert {loc.city for loc in zones[1]} == {"West"}


def test_balanced_assignment_with_more_centroids_than_locations():
    locations = [_location(str(i), 40.0 + i * 0.1, -75.0) for i in range(5)]
    centroids = [(40.0, -75.0)] * 11

    zones = balanced_assignment(locations, centroids)

    assert len(zones) == 11
    assert max(len(zone) for zone in zones) == 1
    assert sum(1 for zone in zones if zone) == 5
    assert _ids(zones) == sorted(loc.location_id for loc in locations)


# --- city coherence ----------------------------------------------------------


def test_normalize_city():
    assert normalize_city("  Philadelphia ") == "philadelphia"
    assert normalize_city(None) == ""


def test_build_city_index_and_split_count():
    zones = [
        [_location("1", 40.0, -75.0, "Dover"), _location("2", 40.0, -75.0, " dover ")],
        [_location("3", 41.0, -75.0, "Dover"), _location("4", 41.0, -75.0, "Camden"), _location("5", 41.0, -75.0, None)],
    ]

    index = build_city_index(zones)

    assert index == {"dover": {0: 2, 1: 1}, "camden": {1: 1}}
    assert count_city_splits(zones) == (1, 2)


def _split_city_zones() -> list[list[Location]]:
    # "Alpha" has 3 of 4 locations in zone 0; one stray sits in zone 1.
    # "Beta" has 3 of 4 in zone 1; its stray sits in zone 0.
    zone_0 = [
        _location("a1", 40.00, -75.00, "Alpha"),
        _location("a2", 40.01, -75.00, "Alpha"),
        _location("a3", 40.02, -75.00, "Alpha"),
        _location("b4", 40.20, -75.00, "Beta"),
    ]
    zone_1 = [
        _location("a4", 40.03, -75.00, "Alpha"),
        _location("b1", 40.50, -75.00, "Beta"),
        _location("b2", 40.51, -75.00, "Beta"),
        _location("b3", 40.52, -75.00, "Beta"),
    ]
    return [zone_0, zone_1]


def test_refine_pass_reunites_split_city():
    zones = _split_city_zones()
    index = build_city_index(zones)

    new_zones, new_index, swaps = refine_pass(zones, index, min_per_zone=3, max_per_zone=4)

    assert swaps == 1
    assert {loc.location_id for loc in new_zones[0]} == {"a1", "a2", "a3", "a4"}
    assert {loc.location_id for loc in new_zones[1]} == {"b4", "b1", "b2", "b3"}
    assert new_index == build_city_index(new_zones)


def test_refine_pass_does_not_mutate_inputs():
    zones = _split_city_zones()
    index = build_city_index(zones)
    snapshot_zones = [list(zone) for zone in zones]
    snapshot_index = {city: dict(counts) for city, counts in index.items()}

    refine_pass(zones, index, min_per_zone=3, max_per_zone=4)

    assert zones == snapshot_zones
    assert index == snapshot_index


def test_refine_pass_skips_swaps_outside_size_bounds():
    zones = _split_city_zones()
    index = build_city_index(zones)

    new_zones, new_index, swaps = refine_pass(zones, index, min_per_zone=5, max_per_zone=6)

    assert swaps == 0
    assert new_zones == zones
    assert new_index == index


def test_refine_city_coherence_converges_and_index_mirrors_membership():
    zones = _split_city_zones()

    result = refine_city_coherence(zones, max_passes=3)

    assert result.swaps == 1
    assert result.passes == 2
    assert count_city_splits(result.zones) == (0, 2)
    assert result.city_index == build_city_index(result.zones)
    assert _ids(result.zones) == _ids(zones)


def test_refine_city_coherence_zero_passes_is_identity():
    zones = _split_city_zones()
    result = refine_city_coherence(zones, max_passes=0)
    assert result.zones == zones
    assert result.swaps == 0


# --- outliers ----------------------------------------------------------------


def test_resolve_outliers_moves_far_member_to_closer_zone():
    zone_0 = _cluster("A", 40.0, -75.0, 9, "A") + [_location("stray", 42.0, -80.0, "B")]
    zone_1 = _cluster("B", 42.0, -80.0, 8, "B")

    result = resolve_outliers([zone_0, zone_1])

    assert [move.location_id for move in result.moves] == ["stray"]
    assert "stray" in {loc.location_id for loc in result.zones[1]}
    assert len(result.zones[0]) == 9
    assert _ids(result.zones) == _ids([zone_0, zone_1])


def test_resolve_outliers_keeps_member_when_no_zone_has_room():
    zone_0 = _cluster("A", 40.0, -75.0, 9, "A") + [_location("stray", 42.0, -80.0, "B")]
    zone_1 = _cluster("B", 42.0, -80.0, 14, "B")

    result = resolve_outliers([zone_0, zone_1])

    assert result.moves == []
    assert "stray" in {loc.location_id for loc in result.zones[0]}


def test_resolve_outliers_requires_meaningful_improvement():
    zone_0 = _cluster("A", 40.0, -75.0, 9, "A") + [_location("edge", 40.3, -75.0, "A")]
    # The other zone is on the far side, so moving would not help.
    zone_1 = _cluster("B", 39.0, -75.0, 8, "B")

    result = resolve_outliers([zone_0, zone_1])

    assert result.moves == []


def test_resolve_outliers_ignores_empty_and_single_member_zones():
    zones = [[], [_location("solo", 40.0, -75.0)], _cluster("B", 41.0, -75.0, 3, "B")]
    result = resolve_outliers(zones, zone_count=3)
    assert result.moves == []
    assert [len(zone) for zone in result.zones] == [0, 1, 3]


def test_stages_preserve_coverage_and_balance():
    rng = np.random.default_rng(5)
    cities = ["Alpha", "Beta", "Gamma", "Delta", "Epsilon"]
    locations = [
        _location(
            f"L{i}",
            float(39.0 + rng.uniform(0, 2)),
            float(-76.0 + rng.uniform(0, 2)),
            city=cities[i % len(cities)],
        )
        for i in range(60)
    ]
    k = 4
    capacity = math.ceil(len(locations) / k)

    assigned = balanced_assignment(locations, find_centroids(locations, k, rng=np.random.default_rng(1)))
    refined = refine_city_coherence(assigned, zone_count=k).zones
    resolved = resolve_outliers(refined, zone_count=k).zones

    expected = sorted(loc.location_id for loc in locations)
    for stage in (assigned, refined, resolved):
        ids = _ids(stage)
        assert ids == expected
        assert not [lid for lid, n in Counter(ids).items() if n > 1]

    assert max(len(zone) for zone in assigned) <= capacity
    assert [len(zone) for zone in refined] == [len(zone) for zone in assigned]
    assert max(len(zone) for zone in resolved) <= capacity + 2
