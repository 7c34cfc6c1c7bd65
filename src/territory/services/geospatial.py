"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from shapely.geometry import MultiPoint
from sklearn.metrics.pairwise import haversine_distances

from ..models.domain import Centroid, Location

EARTH_RADIUS_MILES = 3959.0


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def location_distance(location: Location, point: Centroid) -> float:
    return haversine_miles(location.latitude, location.longitude, point[0], point[1])


def as_points(locations: Sequence[Location]) -> np.ndarray:
    """Stack locations into an (n, 2) array of [lat, lng] degrees."""
    if not locations:
        return np.empty((0, 2), dtype=float)
    return np.array([[loc.latitude, loc.longitude] for loc in locations], dtype=float)


def pairwise_miles(points_a: np.ndarray, points_b: np.ndarray) -> np.ndarray:
    """Great-circle distance matrix (miles) between two arrays of [lat, lng] degrees."""
    return haversine_distances(np.radians(points_a), np.radians(points_b)) * EARTH_RADIUS_MILES


def mean_position(locations: Sequence[Location]) -> Centroid:
    """Arithmetic mean of member coordinates; (0, 0) for an empty sequence."""
    if not locations:
        return (0.0, 0.0)
    lat = sum(loc.latitude for loc in locations) / len(locations)
    lng = sum(loc.longitude for loc in locations) / len(locations)
    return (lat, lng)


def convex_hull_ring(locations: Sequence[Location]) -> list[tuple[float, float]]:
    """Closed (lat, lng) ring around the locations, for map overlays.

    Fewer than three distinct points cannot form a polygon; their
    coordinates are returned as-is.
    """
    if not locations:
        return []
    hull = MultiPoint([(loc.longitude, loc.latitude) for loc in locations]).convex_hull
    if hull.is_empty:
        return []
    if hull.geom_type == "Polygon":
        return [(lat, lng) for lng, lat in hull.exterior.coords]
    return [(lat, lng) for lng, lat in hull.coords]
