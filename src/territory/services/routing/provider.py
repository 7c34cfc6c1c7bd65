"""Travel-time provider contract and result types."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Protocol, Sequence, Union, runtime_checkable

from ...config import settings
from ...errors import ProviderError
from ...models.domain import Location
from ..geospatial import haversine_miles

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MatrixOk:
    """Pairwise travel times in seconds; ``matrix[i][j]`` is i -> j."""

    matrix: List[List[float]]


@dataclass(frozen=True, slots=True)
class MatrixErr:
    reason: str


MatrixResult = Union[MatrixOk, MatrixErr]


@runtime_checkable
class TravelTimeProvider(Protocol):
    """Supplies an N x N travel-time matrix for an ordered batch of locations.

    Implementations own their own HTTP calls, caching, retries and rate
    limiting. Symmetry is not assumed.
    """

    async def travel_times(self, locations: Sequence[Location]) -> MatrixResult: ...


def _validate_matrix(matrix: Sequence[Sequence[float]], size: int) -> str | None:
    if len(matrix) != size:
        return f"expected {size} rows, got {len(matrix)}"
    for row_index, row in enumerate(matrix):
        if len(row) != size:
            return f"row {row_index} has {len(row)} columns, expected {size}"
        for value in row:
            try:
                seconds = float(value)
            except (TypeError, ValueError):
                return f"row {row_index} contains a non-numeric travel time"
            if not math.isfinite(seconds):
                return f"row {row_index} contains a non-finite travel time"
    return None


async def request_matrix(provider: TravelTimeProvider, locations: Sequence[Location]) -> MatrixResult:
    """Ask ``provider`` for a matrix, turning any failure into :class:`MatrixErr`.

    Providers are external collaborators, so a raised exception or a
    malformed matrix is converted here and never propagates into the run.
    """
    try:
        result = await provider.travel_times(locations)
    except ProviderError as exc:
        logger.warning(f"Travel-time provider rejected batch of {len(locations)} locations: {exc}")
        return MatrixErr(reason=str(exc))
    except Exception as exc:
        logger.warning(f"Travel-time provider failed for {len(locations)} locations: {exc}")
        return MatrixErr(reason=str(exc) or exc.__class__.__name__)

    if isinstance(result, MatrixErr):
        return result
    if not isinstance(result, MatrixOk):
        return MatrixErr(reason=f"provider returned {type(result).__name__}, expected MatrixOk or MatrixErr")

    problem = _validate_matrix(result.matrix, len(locations))
    if problem:
        return MatrixErr(reason=f"malformed travel-time matrix: {problem}")
    return MatrixOk(matrix=[[float(value) for value in row] for row in result.matrix])


class StraightLineTravelTimeProvider:
    """Offline estimate: haversine miles stretched by a road factor at a flat speed.

    Useful when no routing backend is configured; times are symmetric.
    """

    def __init__(self, speed_mph: float | None = None, road_factor: float | None = None) -> None:
        self.speed_mph = speed_mph or settings.average_speed_mph
        self.road_factor = road_factor or settings.road_factor
        if self.speed_mph <= 0:
            raise ValueError("speed_mph must be > 0")

    def seconds_between(self, origin: Location, destination: Location) -> float:
        miles = haversine_miles(origin.latitude, origin.longitude, destination.latitude, destination.longitude)
        return miles * self.road_factor / self.speed_mph * 3600.0

    async def travel_times(self, locations: Sequence[Location]) -> MatrixResult:
        return MatrixOk(
            matrix=[[self.seconds_between(origin, destination) for destination in locations] for origin in locations]
        )
