"""Optimization pipeline orchestration."""

from .service import (
    ALGORITHM_DRIVE_TIME,
    ALGORITHM_PROXIMITY,
    filter_geocoded,
    find_nearest_zone,
    optimize_routes,
    partition_zones,
    run_optimization,
    zone_label,
)

__all__ = [
    "optimize_routes",
    "run_optimization",
    "partition_zones",
    "find_nearest_zone",
    "filter_geocoded",
    "zone_label",
    "ALGORITHM_DRIVE_TIME",
    "ALGORITHM_PROXIMITY",
]
