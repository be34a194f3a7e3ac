"""Tour and ant data structures for focused ant-colony / local-search TSP solvers."""

from .ant import Ant
from .bitmask import Bitmask
from .instance import DistanceModel, ProblemInstance, gen_distance_matrix
from .tour import ROUTE_DTYPE, RouteCursor, Tour

__all__ = [
    'Ant',
    'Bitmask',
    'DistanceModel',
    'ProblemInstance',
    'gen_distance_matrix',
    'ROUTE_DTYPE',
    'RouteCursor',
    'Tour',
]

__version__ = "0.1.0"
