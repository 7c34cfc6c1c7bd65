"""Zoning stages: clustering, balanced assignment and refinement."""

from .assignment import balanced_assignment, zone_capacity
from .centroids import find_centroids, seed_centroids
from .coherence import (
    CoherenceResult,
    build_city_index,
    count_city_splits,
    normalize_city,
    refine_city_coherence,
    refine_pass,
)
from .outliers import OutlierResult, resolve_outliers

__all__ = [
    "find_centroids",
    "seed_centroids",
    "balanced_assignment",
    "zone_capacity",
    "normalize_city",
    "build_city_index",
    "count_city_splits",
    "refine_pass",
    "refine_city_coherence",
    "CoherenceResult",
    "resolve_outliers",
    "OutlierResult",
]
