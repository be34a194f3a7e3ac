"""
Distance capability consumed by tours and ants.

Anything providing ``dimension()``, ``distance(a, b)`` and
``route_length(route)`` can be passed where a ``DistanceModel`` is expected.
``ProblemInstance`` is the dense implementation: it keeps a float64 numpy
matrix, which also lets the tour kernels read distances directly.

Usage:
    from faco_tour import ProblemInstance

    instance = ProblemInstance.random(100, seed=0)
    instance.route_length(np.arange(100))
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional, Protocol, Sequence, Union

import numba as nb
import numpy as np
import torch

logger = logging.getLogger(__name__)

COST_DTYPE = np.float64


class DistanceModel(Protocol):
    def dimension(self) -> int: ...

    def distance(self, a: int, b: int) -> float: ...

    def route_length(self, route: Sequence[int]) -> float: ...


@nb.jit(nopython=True, nogil=True)
def _route_length(route: np.ndarray, distances: np.ndarray) -> float:
    """Cyclic length of a route, including the closing edge."""
    n = route.shape[0]
    if n == 0:
        return 0.0
    cost = 0.0
    for i in range(n - 1):
        cost += distances[route[i], route[i + 1]]
    cost += distances[route[n - 1], route[0]]
    return cost


def gen_distance_matrix(coordinates: torch.Tensor) -> torch.Tensor:
    """Euclidean (n, n) distance matrix for (n, 2) coordinates."""
    coordinates = coordinates.to(torch.float64)
    n_nodes = len(coordinates)
    distances = torch.norm(coordinates[:, None] - coordinates, dim=2, p=2)
    distances[torch.arange(n_nodes), torch.arange(n_nodes)] = 0.0
    return distances


class ProblemInstance:
    """
    Dense symmetric distance model.

    Asymmetric matrices are accepted with a warning: ``Tour.contains_edge`` and
    the incremental cost updates treat every edge as undirected.
    """

    def __init__(self, distances: Union[np.ndarray, torch.Tensor], name: str = ""):
        if isinstance(distances, torch.Tensor):
            dist_np = distances.detach().cpu().numpy()
        else:
            dist_np = np.asarray(distances)
        if dist_np.ndim != 2 or dist_np.shape[0] != dist_np.shape[1]:
            raise ValueError(f"distances must be a square (n, n) matrix, got shape {dist_np.shape}")

        self.name = name
        self.distances = np.array(dist_np, dtype=COST_DTYPE, order="C")
        self.distances.flags.writeable = False
        self._dimension = int(self.distances.shape[0])

        if not self.is_symmetric():
            warnings.warn(
                f"Instance {name or '<unnamed>'} has an asymmetric distance matrix; "
                "edge tests and incremental cost updates assume symmetric distances."
            )

    @classmethod
    def from_coords(cls, coords: Union[np.ndarray, torch.Tensor], name: str = "") -> "ProblemInstance":
        if not isinstance(coords, torch.Tensor):
            coords = torch.as_tensor(np.asarray(coords, dtype=np.float64))
        return cls(gen_distance_matrix(coords), name=name)

    @classmethod
    def random(cls, n: int, seed: Optional[int] = None, device: str = "cpu") -> "ProblemInstance":
        """Uniform points in the unit square."""
        generator = torch.Generator(device=device)
        if seed is not None:
            generator.manual_seed(int(seed))
        coords = torch.rand(size=(int(n), 2), generator=generator, device=device)
        logger.debug("Generated random instance with %d nodes (seed=%s)", n, seed)
        return cls.from_coords(coords, name=f"rand{n}")

    def dimension(self) -> int:
        return self._dimension

    def distance(self, a: int, b: int) -> float:
        return float(self.distances[a, b])

    def route_length(self, route: Sequence[int]) -> float:
        route_np = np.ascontiguousarray(route, dtype=np.int64)
        return float(_route_length(route_np, self.distances))

    def is_symmetric(self) -> bool:
        return bool(np.array_equal(self.distances, self.distances.T))

    def __repr__(self) -> str:
        return f"ProblemInstance(name={self.name!r}, dimension={self._dimension})"
