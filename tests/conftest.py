import numpy as np
import pytest

from faco_tour import ProblemInstance


class MatrixDistance:
    """Distance model without a numpy matrix, forcing the generic code paths."""

    def __init__(self, matrix):
        self.matrix = [[float(x) for x in row] for row in matrix]

    def dimension(self):
        return len(self.matrix)

    def distance(self, a, b):
        return self.matrix[a][b]

    def route_length(self, route):
        route = [int(x) for x in route]
        return sum(self.matrix[route[i - 1]][route[i]] for i in range(len(route)))


def reference_relocate(route, u, v):
    """Remove v and reinsert it right after u, using plain lists."""
    out = [x for x in route if x != v]
    out.insert(out.index(u) + 1, v)
    return out


def same_cycle(a, b):
    a, b = list(a), list(b)
    if len(a) != len(b):
        return False
    if not a:
        return True
    k = b.index(a[0])
    return a == b[k:] + b[:k]


@pytest.fixture
def pentagon():
    # Integer distances keep the hand-computed expectations exact
    coords = np.array([[0, 0], [3, 0], [3, 4], [0, 4], [-3, 2]], dtype=np.float64)
    dist = np.abs(coords[:, None, :] - coords[None, :, :]).sum(axis=2)
    return ProblemInstance(dist, name="pentagon")


@pytest.fixture
def rand12():
    return ProblemInstance.random(12, seed=7)


@pytest.fixture
def rand12_generic(rand12):
    return MatrixDistance(rand12.distances.tolist())
