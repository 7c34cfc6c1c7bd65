"""Territory route optimization: balanced zones, visit schedules and refined daily routes."""

from .errors import InputError, OptimizationError, ProviderError
from .models.domain import (
    AssigneeGroup,
    DailyAssignment,
    Location,
    OptimizationResult,
    OptimizationStats,
    ScheduledStop,
    Zone,
)
from .services.optimization import find_nearest_zone, optimize_routes, run_optimization
from .services.routing import MatrixErr, MatrixOk, StraightLineTravelTimeProvider, TravelTimeProvider

__all__ = [
    "optimize_routes",
    "run_optimization",
    "find_nearest_zone",
    "Location",
    "Zone",
    "DailyAssignment",
    "ScheduledStop",
    "AssigneeGroup",
    "OptimizationStats",
    "OptimizationResult",
    "TravelTimeProvider",
    "StraightLineTravelTimeProvider",
    "MatrixOk",
    "MatrixErr",
    "OptimizationError",
    "InputError",
    "ProviderError",
]
