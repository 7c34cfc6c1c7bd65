"""Daily route refinement."""

from .provider import (
    MatrixErr,
    MatrixOk,
    MatrixResult,
    StraightLineTravelTimeProvider,
    TravelTimeProvider,
    request_matrix,
)
from .refiner import RefinedRoute, refine_daily_route
from .tsp import nearest_neighbor_tour, tour_time, two_opt

__all__ = [
    "MatrixOk",
    "MatrixErr",
    "MatrixResult",
    "TravelTimeProvider",
    "StraightLineTravelTimeProvider",
    "request_matrix",
    "RefinedRoute",
    "refine_daily_route",
    "nearest_neighbor_tour",
    "two_opt",
    "tour_time",
]
