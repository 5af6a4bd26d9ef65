"""Step-by-step maze carving and solving with rendering and dataset tools."""

__all__ = [
    "AbstractDatasetBuilder",
    "AbstractDatasetEvaluator",
    "AStarSolver",
    "CarveStep",
    "Direction",
    "Grid",
    "GridNotSealedError",
    "GridSealedError",
    "GrowingTreeGenerator",
    "MazeRenderer",
    "MazeSession",
    "MazeState",
]

from .base import AbstractDatasetBuilder, AbstractDatasetEvaluator
from .grid import Direction, Grid, GridNotSealedError, GridSealedError
from .generator import CarveStep, GrowingTreeGenerator
from .solver import AStarSolver
from .session import MazeSession, MazeState
from .render import MazeRenderer
