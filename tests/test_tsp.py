import itertools
import random

from territory.services.routing.tsp import nearest_neighbor_tour, tour_time, two_opt


def _line_matrix(size: int, spacing: float = 120.0) -> list[list[float]]:
    return [[abs(i - j) * spacing for j in range(size)] for i in range(size)]


def test_tour_time_sums_consecutive_legs():
    matrix = [[0, 10, 30], [10, 0, 5], [30, 5, 0]]
    assert tour_time([0, 1, 2], matrix) == 15
    assert tour_time([0, 2, 1], matrix) == 35
    assert tour_time([0], matrix) == 0


def test_nearest_neighbor_starts_at_zero_and_visits_everything():
    matrix = [
        [0, 50, 10, 40],
        [50, 0, 20, 5],
        [10, 20, 0, 30],
        [40, 5, 30, 0],
    ]
    assert nearest_neighbor_tour(matrix) == [0, 2, 1, 3]


def test_nearest_neighbor_trivial_sizes():
    assert nearest_neighbor_tour([]) == []
    assert nearest_neighbor_tour([[0]]) == [0]


def test_line_order_is_kept_by_both_heuristics():
    matrix = _line_matrix(17)

    initial = nearest_neighbor_tour(matrix)
    improved = two_opt(initial, matrix)

    assert initial == list(range(17))
    assert improved == list(range(17))


def test_two_opt_untangles_crossing():
    # Points on a line visited out of order: 0 -> 2 -> 1 -> 3.
    matrix = _line_matrix(4)
    improved = two_opt([0, 2, 1, 3], matrix)
    assert improved == [0, 1, 2, 3]
    assert tour_time(improved, matrix) < tour_time([0, 2, 1, 3], matrix)


def test_two_opt_ignores_gains_within_tolerance():
    # Reversing [1, 2] saves half a second.
    matrix = [
        [0.0, 100.0, 99.5, 200.0],
        [100.0, 0.0, 100.0, 100.0],
        [99.5, 100.0, 0.0, 100.0],
        [200.0, 100.0, 100.0, 0.0],
    ]
    tour = [0, 1, 2, 3]
    assert two_opt(tour, matrix, tolerance=1.0) == tour
    assert two_opt(tour, matrix, tolerance=0.0) == [0, 2, 1, 3]


def test_two_opt_never_worse_on_random_asymmetric_matrices():
    rng = random.Random(1234)
    for _ in range(25):
        size = rng.randint(3, 12)
        matrix = [[0.0 if i == j else rng.uniform(60, 3600) for j in range(size)] for i in range(size)]
        initial = nearest_neighbor_tour(matrix)
        improved = two_opt(initial, matrix)

        assert sorted(improved) == list(range(size))
        assert improved[0] == initial[0]
        assert tour_time(improved, matrix) <= tour_time(initial, matrix)


def test_two_opt_reaches_optimum_on_small_symmetric_instance():
    coords = [(0, 0), (4, 0), (4, 3), (0, 3), (2, 1)]
    matrix = [
        [((ax - bx) ** 2 + (ay - by) ** 2) ** 0.5 * 60 for bx, by in coords]
        for ax, ay in coords
    ]
    improved = two_opt(nearest_neighbor_tour(matrix), matrix)
    best = min(
        tour_time([0, *perm], matrix) for perm in itertools.permutations(range(1, len(coords)))
    )
    assert tour_time(improved, matrix) <= best * 1.25
