"""
Tour: a cyclic route stored as a permutation plus its inverse index.

    route[i]            node at slot i
    positions[node]     slot of node

Every mutation updates both arrays together, so successor/predecessor lookups
stay O(1) while nodes are relocated. The transposition primitives are numba
kernels operating on the two arrays in place.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numba as nb
import numpy as np

from .instance import DistanceModel

ROUTE_DTYPE = np.int64


# =============================================================================
# Numba kernels
# =============================================================================

@nb.jit(nopython=True, nogil=True)
def _build_positions(route: np.ndarray, positions: np.ndarray) -> None:
    for i in range(route.shape[0]):
        positions[route[i]] = i


@nb.jit(nopython=True, nogil=True)
def _swap_slots(route: np.ndarray, positions: np.ndarray, i: int, j: int) -> None:
    """Exchange the nodes at slots i and j, keeping positions in sync."""
    a = route[i]
    b = route[j]
    positions[a] = j
    positions[b] = i
    route[i] = b
    route[j] = a


@nb.jit(nopython=True, nogil=True)
def _relocate(route: np.ndarray, positions: np.ndarray, u: int, v: int) -> int:
    """Place v right after u. Returns the number of transpositions."""
    i = positions[u]
    j = positions[v]
    swaps = 0
    if j < i:
        # v and u trade places, then u walks back to slot i - 1
        _swap_slots(route, positions, i, j)
        swaps += 1
        while j < i - 1:
            _swap_slots(route, positions, j, j + 1)
            j += 1
            swaps += 1
    else:
        while j > i + 1:
            _swap_slots(route, positions, j, j - 1)
            j -= 1
            swaps += 1
    return swaps


@nb.jit(nopython=True, nogil=True)
def _swap_with_next(route: np.ndarray, positions: np.ndarray, i: int,
                    distances: np.ndarray, cost: float) -> float:
    """Swap slot i with its cyclic successor slot and return the updated cost."""
    n = route.shape[0]
    k = i + 1 if i + 1 < n else 0
    u = route[i]
    v = route[k]

    pred = route[i - 1] if i > 0 else route[n - 1]
    succ = route[k + 1] if k + 1 < n else route[0]
    cost -= distances[pred, u] + distances[v, succ]

    _swap_slots(route, positions, i, k)

    pred = route[i - 1] if i > 0 else route[n - 1]
    succ = route[k + 1] if k + 1 < n else route[0]
    cost += distances[pred, v] + distances[u, succ]
    return cost


@nb.jit(nopython=True, nogil=True)
def _relocate_with_cost(route: np.ndarray, positions: np.ndarray, u: int, v: int,
                        distances: np.ndarray, cost: float):
    i = positions[u]
    j = positions[v]
    swaps = 0
    while j < i:
        cost = _swap_with_next(route, positions, j, distances, cost)
        j += 1
        swaps += 1
    while j > i + 1:
        cost = _swap_with_next(route, positions, j - 1, distances, cost)
        j -= 1
        swaps += 1
    return cost, swaps


def _dense_distances(instance: DistanceModel) -> Optional[np.ndarray]:
    """The instance's float64 matrix if it has one the kernels can read."""
    matrix = getattr(instance, "distances", None)
    if isinstance(matrix, np.ndarray) and matrix.ndim == 2 and matrix.dtype == np.float64:
        return matrix
    return None


# =============================================================================
# Route cursor
# =============================================================================

class RouteCursor:
    """
    Cyclic iterator over a tour's slots.

    The cursor remembers a slot, not a node: after the owning tour is
    relocated or swapped the slot may hold a different node.
    """

    def __init__(self, route: np.ndarray, position: int = 0):
        self._route = route
        self.position = int(position)

    @property
    def node(self) -> int:
        return int(self._route[self.position])

    def advance_successor(self) -> int:
        self.position = self.position + 1 if self.position + 1 < self._route.shape[0] else 0
        return int(self._route[self.position])

    def advance_predecessor(self) -> int:
        self.position = self.position - 1 if self.position != 0 else self._route.shape[0] - 1
        return int(self._route[self.position])


# =============================================================================
# Tour
# =============================================================================

class Tour:
    """
    Permutation of nodes [0, n) read as a cycle, with its inverse index and cost.

    ``route`` and ``positions`` are read-only views; the arrays are only
    written through the methods below so the two stay consistent. The cost is
    whatever the caller recorded, except where a method says it keeps it
    exact. Cost-aware methods assume symmetric distances.
    """

    def __init__(self, route: Optional[Sequence[int]] = None, cost: float = float("inf")):
        self._route = np.empty(0, dtype=ROUTE_DTYPE)
        self._positions = np.empty(0, dtype=ROUTE_DTYPE)
        self._cost = float(cost)
        if route is not None:
            self.update(route, cost)

    # ---------- construction ----------

    def update(self, route: Sequence[int], cost: float) -> None:
        """Adopt a complete route and its cost, rebuilding the inverse index."""
        route_np = np.array(route, dtype=ROUTE_DTYPE)
        if route_np.ndim != 1:
            raise ValueError(f"route must be one-dimensional, got shape {route_np.shape}")
        n = route_np.shape[0]
        if n > 0 and (route_np.min() < 0 or route_np.max() >= n):
            raise ValueError(f"route entries must lie in [0, {n})")

        self._route = route_np
        self._positions = np.zeros(n, dtype=ROUTE_DTYPE)
        _build_positions(self._route, self._positions)
        self._cost = float(cost)

    def copy_from(self, other: "Tour") -> None:
        self.update(other._route, other._cost)

    # ---------- accessors ----------

    def __len__(self) -> int:
        return int(self._route.shape[0])

    @property
    def route(self) -> np.ndarray:
        view = self._route.view()
        view.flags.writeable = False
        return view

    @property
    def positions(self) -> np.ndarray:
        view = self._positions.view()
        view.flags.writeable = False
        return view

    @property
    def cost(self) -> float:
        return self._cost

    @cost.setter
    def cost(self, value: float) -> None:
        self._cost = float(value)

    def position_of(self, node: int) -> int:
        return int(self._positions[self._check_member(node)])

    def is_complete(self) -> bool:
        return True

    def recompute_cost(self, instance: DistanceModel) -> float:
        self._check_complete()
        self._check_instance(instance)
        self._cost = float(instance.route_length(self._route))
        return self._cost

    def cursor(self, start_node: int) -> RouteCursor:
        self._check_complete()
        return RouteCursor(self._route, self.position_of(start_node))

    # ---------- neighbourhood ----------

    def successor(self, node: int) -> int:
        self._check_complete()
        index = self._positions[self._check_member(node)]
        return int(self._route[index + 1 if index + 1 < self._route.shape[0] else 0])

    def predecessor(self, node: int) -> int:
        self._check_complete()
        index = self._positions[self._check_member(node)]
        return int(self._route[index - 1 if index > 0 else self._route.shape[0] - 1])

    def contains_edge(self, edge_head: int, edge_tail: int) -> bool:
        # Undirected: either orientation counts
        return self.successor(edge_head) == edge_tail or self.predecessor(edge_head) == edge_tail

    # ---------- mutation ----------

    def relocate(self, u: int, v: int) -> int:
        """
        Move v so that it directly follows u, keeping the order of every other
        node. The cost is left untouched. Returns the number of adjacent
        transpositions performed (0 when v already follows u).
        """
        self._check_complete()
        u = self._check_member(u)
        v = self._check_member(v)
        if u == v or self.successor(u) == v:
            return 0
        return int(_relocate(self._route, self._positions, u, v))

    def relocate_with_cost_update(self, u: int, v: int, instance: DistanceModel) -> int:
        """
        Same move as ``relocate`` performed as a chain of ``swap_adjacent``
        steps, so the cost is exact after each transposition.
        """
        self._check_complete()
        self._check_instance(instance)
        u = self._check_member(u)
        v = self._check_member(v)
        if u == v or self.successor(u) == v:
            return 0

        distances = _dense_distances(instance)
        if distances is not None:
            cost, swaps = _relocate_with_cost(self._route, self._positions, u, v, distances, self._cost)
            self._cost = float(cost)
            return int(swaps)

        i = int(self._positions[u])
        j = int(self._positions[v])
        swaps = 0
        while j < i:
            self._swap_with_next_generic(j, instance)
            j += 1
            swaps += 1
        while j > i + 1:
            self._swap_with_next_generic(j - 1, instance)
            j -= 1
            swaps += 1
        return swaps

    def swap_adjacent(self, i: int, instance: DistanceModel) -> None:
        """Exchange slots i and (i + 1) mod n, updating the cost incrementally."""
        i = int(i)
        n = self._route.shape[0]
        if i < 0 or i >= n:
            raise ValueError(f"Slot {i} out of range for tour of size {n}")
        self._check_complete()
        self._check_instance(instance)

        distances = _dense_distances(instance)
        if distances is not None:
            self._cost = float(_swap_with_next(self._route, self._positions, i, distances, self._cost))
        else:
            self._swap_with_next_generic(i, instance)

    def _swap_with_next_generic(self, i: int, instance: DistanceModel) -> None:
        n = self._route.shape[0]
        k = i + 1 if i + 1 < n else 0
        u = int(self._route[i])
        v = int(self._route[k])
        self._cost -= instance.distance(self.predecessor(u), u) + instance.distance(v, self.successor(v))
        _swap_slots(self._route, self._positions, i, k)
        self._cost += instance.distance(self.predecessor(v), v) + instance.distance(u, self.successor(u))

    def _check_node(self, node: int) -> int:
        node = int(node)
        if node < 0 or node >= self._positions.shape[0]:
            raise ValueError(f"Node {node} out of range for tour of size {self._positions.shape[0]}")
        return node

    def _check_member(self, node: int) -> int:
        node = self._check_node(node)
        if self._positions[node] < 0:
            raise ValueError(f"Node {node} is not placed in the tour")
        return node

    def _check_complete(self) -> None:
        if not self.is_complete():
            raise ValueError("Operation requires a complete tour")

    def _check_instance(self, instance: DistanceModel) -> None:
        # Kernels index the matrix without bounds checks
        n = instance.dimension()
        if n != len(self):
            raise ValueError(f"Instance has {n} nodes, tour has {len(self)}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n={len(self)}, cost={self._cost})"
