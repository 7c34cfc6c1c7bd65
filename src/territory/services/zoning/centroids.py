"""K-means++ seeding and Lloyd refinement on great-circle distances."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from ...config import settings
from ...models.domain import Centroid, Location
from ..geospatial import as_points, pairwise_miles

logger = logging.getLogger(__name__)


def seed_centroids(points: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    """Pick ``k`` spread-out seeds from ``points``.

    The first seed is uniform; each later seed is drawn with probability
    proportional to its squared distance from the nearest seed so far.
    When every remaining weight is zero (all points already coincide with a
    seed) the draw falls back to uniform, producing duplicate seeds.
    """
    count = len(points)
    chosen = [points[rng.integers(count)]]

    for _ in range(1, k):
        nearest = pairwise_miles(points, np.array(chosen)).min(axis=1)
        weights = nearest**2
        total = weights.sum()
        if total > 0:
            index = rng.choice(count, p=weights / total)
        else:
            index = rng.integers(count)
        chosen.append(points[index])

    return np.array(chosen, dtype=float)


def find_centroids(
    locations: Sequence[Location],
    k: int,
    *,
    rng: np.random.Generator,
    max_iterations: int | None = None,
    tolerance_miles: float | None = None,
) -> list[Centroid]:
    """Return ``k`` cluster centers for the given locations.

    Empty clusters keep their previous position. Iteration stops once no
    centroid moves further than ``tolerance_miles`` or after
    ``max_iterations`` rounds.
    """
    if k < 1:
        raise ValueError("k must be >= 1")
    if not locations:
        raise ValueError("At least one location is required to find centroids.")

    max_iterations = max_iterations if max_iterations is not None else settings.kmeans_max_iterations
    tolerance_miles = tolerance_miles if tolerance_miles is not None else settings.kmeans_tolerance_miles

    points = as_points(locations)
    centroids = seed_centroids(points, k, rng)

    for iteration in range(max_iterations):
        labels = pairwise_miles(points, centroids).argmin(axis=1)

        updated = centroids.copy()
        for cluster in range(k):
            members = points[labels == cluster]
            if len(members):
                updated[cluster] = members.mean(axis=0)

        movement = np.diag(pairwise_miles(centroids, updated))
        centroids = updated
        if movement.max() <= tolerance_miles:
            logger.debug(f"K-Means converged after {iteration + 1} iterations")
            break
    else:
        logger.debug(f"K-Means stopped after {max_iterations} iterations without converging")

    return [(float(lat), float(lng)) for lat, lng in centroids]
