"""Open-path tour heuristics over a travel-time matrix (seconds)."""

from __future__ import annotations

import math
from typing import Sequence

Matrix = Sequence[Sequence[float]]


def tour_time(tour: Sequence[int], matrix: Matrix) -> float:
    """Total travel time of visiting ``tour`` in order (no return leg)."""
    return sum(matrix[tour[i]][tour[i + 1]] for i in range(len(tour) - 1))


def nearest_neighbor_tour(matrix: Matrix, start: int = 0) -> list[int]:
    """Greedy tour: from ``start`` repeatedly go to the quickest unvisited node."""
    size = len(matrix)
    if size <= 1:
        return list(range(size))

    visited = [False] * size
    visited[start] = True
    tour = [start]
    current = start

    while len(tour) < size:
        nearest = -1
        nearest_time = math.inf
        for candidate in range(size):
            if visited[candidate]:
                continue
            if matrix[current][candidate] < nearest_time:
                nearest_time = matrix[current][candidate]
                nearest = candidate
        if nearest == -1:
            break
        visited[nearest] = True
        tour.append(nearest)
        current = nearest

    return tour


def _reversal_gain(tour: Sequence[int], matrix: Matrix, i: int, j: int) -> float:
    """Time saved by reversing ``tour[i + 1 : j + 1]``.

    Includes the segment interior so the gain stays exact when the matrix
    is not symmetric.
    """
    a, b, c = tour[i], tour[i + 1], tour[j]
    d = tour[j + 1] if j + 1 < len(tour) else None

    current = matrix[a][b] + (matrix[c][d] if d is not None else 0.0)
    proposed = matrix[a][c] + (matrix[b][d] if d is not None else 0.0)
    for k in range(i + 1, j):
        current += matrix[tour[k]][tour[k + 1]]
        proposed += matrix[tour[k + 1]][tour[k]]
    return current - proposed


def two_opt(tour: Sequence[int], matrix: Matrix, *, tolerance: float = 1.0) -> list[int]:
    """Improve ``tour`` by segment reversals until a full scan finds none.

    A reversal is applied only when it saves more than ``tolerance``
    seconds, so every accepted move strictly shortens the tour and the loop
    terminates. The first node never moves.
    """
    best = list(tour)
    size = len(best)
    if size <= 3:
        return best

    improved = True
    while improved:
        improved = False
        for i in range(size - 1):
            for j in range(i + 2, size):
                if _reversal_gain(best, matrix, i, j) > tolerance:
                    best[i + 1 : j + 1] = reversed(best[i + 1 : j + 1])
                    improved = True

    return best
