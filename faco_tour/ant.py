"""
Ant: a tour grown one node at a time.

The first ``visited_count`` slots of the route hold the nodes placed so far;
the rest hold -1 until construction completes. A bitmask answers "already
placed?" in O(1), and a cache of candidate nodes is compacted lazily when the
remaining nodes are requested.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from .bitmask import Bitmask
from .instance import DistanceModel
from .tour import ROUTE_DTYPE, Tour

logger = logging.getLogger(__name__)


class Ant(Tour):
    """
    Incremental tour constructor.

    Typical round:
        ant.initialize(n)
        ant.visit(start)
        while ant.unvisited_count():
            ant.visit(choose(ant.current_node(), ant.unvisited_nodes()))
        ant.finish(instance)
    """

    def __init__(self, route: Optional[Sequence[int]] = None, cost: float = float("inf")):
        self._visited = Bitmask()
        self._unvisited = np.empty(0, dtype=ROUTE_DTYPE)
        self._dimension = 0
        self._visited_count = 0
        super().__init__(route, cost)

    def update(self, route: Sequence[int], cost: float) -> None:
        # A complete route means every node has been visited
        super().update(route, cost)
        n = len(self)
        self._dimension = n
        self._visited_count = n
        self._visited.resize(n)
        self._visited.set_all()
        self._unvisited = np.empty(0, dtype=ROUTE_DTYPE)

    def initialize(self, dimension: int) -> None:
        n = int(dimension)
        if n < 0:
            raise ValueError(f"dimension must be non-negative, got {n}")

        self._dimension = n
        self._visited_count = 0
        self._cost = float("inf")

        if self._route.shape[0] == n:
            self._route.fill(-1)
            self._positions.fill(-1)
        else:
            self._route = np.full(n, -1, dtype=ROUTE_DTYPE)
            self._positions = np.full(n, -1, dtype=ROUTE_DTYPE)

        self._unvisited = np.arange(n, dtype=ROUTE_DTYPE)
        self._visited.resize(n)
        self._visited.clear()
        logger.debug("Ant initialized for %d nodes", n)

    @property
    def visited_count(self) -> int:
        return self._visited_count

    @property
    def dimension(self) -> int:
        return self._dimension

    def is_visited(self, node: int) -> bool:
        return self._visited.get_bit(self._check_node(node))

    def visit(self, node: int) -> None:
        node = self._check_node(node)
        if self._visited.get_bit(node):
            raise ValueError(f"Node {node} is already visited")

        slot = self._visited_count
        self._route[slot] = node
        self._positions[node] = slot
        self._visited.set_bit(node)
        self._visited_count += 1

    def try_visit(self, node: int) -> bool:
        if self.is_visited(node):
            return False
        self.visit(node)
        return True

    def current_node(self) -> int:
        if self._visited_count == 0:
            raise RuntimeError("No node has been visited yet")
        return int(self._route[self._visited_count - 1])

    def unvisited_count(self) -> int:
        return self._dimension - self._visited_count

    def is_complete(self) -> bool:
        return self._visited_count == self._dimension

    def unvisited_nodes(self) -> np.ndarray:
        """
        Nodes not placed yet, in the order of the candidate cache.

        Entries visited since the last call are dropped here, and the cache
        keeps only the survivors, so repeated calls cost O(remaining).
        """
        if self._unvisited.shape[0] != self.unvisited_count():
            stale = self._visited.as_array()[self._unvisited] != 0
            logger.debug("Compacting candidate cache: %d -> %d",
                         self._unvisited.shape[0], self._unvisited.shape[0] - int(stale.sum()))
            self._unvisited = self._unvisited[~stale]

        view = self._unvisited.view()
        view.flags.writeable = False
        return view

    def finish(self, instance: DistanceModel) -> float:
        """Record the length of the completed tour as its cost."""
        if self.unvisited_count() != 0:
            raise ValueError(f"Tour is incomplete: {self.unvisited_count()} nodes not visited")
        return self.recompute_cost(instance)

    def validate(self, instance: DistanceModel) -> bool:
        """Check the finished tour against the instance from scratch. Not for hot paths."""
        n = instance.dimension()
        route = self._route
        if route.shape[0] != n:
            raise ValueError(f"Route has {route.shape[0]} slots, instance has {n} nodes")
        if n > 0 and (route.min() < 0 or route.max() >= n):
            raise ValueError(f"Route contains nodes outside [0, {n})")

        seen = Bitmask(n)
        for node in route.tolist():
            if seen.get_bit(node):
                raise ValueError(f"Node {node} appears more than once in the route")
            seen.set_bit(node)

        expected = instance.route_length(route)
        if self._cost != expected:
            raise ValueError(f"Recorded cost {self._cost} does not match route length {expected}")

        logger.debug("Validated tour of %d nodes, cost %.6f", n, expected)
        return True
