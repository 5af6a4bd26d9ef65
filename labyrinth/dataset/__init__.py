"""Maze dataset generation and evaluation package."""

__all__ = [
    "MazeDatasetBuilder",
    "MazeEvaluator",
    "MazeRecord",
    "MazeEvaluationResult",
]

from .builder import MazeDatasetBuilder, MazeRecord
from .evaluator import MazeEvaluator, MazeEvaluationResult
