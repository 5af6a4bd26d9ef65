"""Maze solution evaluator for coordinate paths and rendered solution images."""

from __future__ import annotations

import argparse
import json
import logging
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np
from PIL import Image

try:
    RESAMPLE_LANCZOS = Image.Resampling.LANCZOS
except AttributeError:  # pragma: no cover
    RESAMPLE_LANCZOS = Image.LANCZOS

from ..base import AbstractDatasetEvaluator, PathLike
from ..grid import Coord, Grid
from ..solver import AStarSolver
from .builder import MazeRecord

logger = logging.getLogger(__name__)

BLUE_THRESHOLD = 150
BLUE_DOMINANCE = 80


@dataclass
class MazeEvaluationResult:
    maze_id: str
    valid_maze: bool
    connected: bool
    reaches_goal: bool
    blocked_moves: List[Tuple[Coord, Coord]]
    path_cells: List[Coord]
    length: int
    optimal_length: int
    is_optimal: bool
    message: str

    def to_dict(self) -> dict:
        return {
            "maze_id": self.maze_id,
            "valid_maze": self.valid_maze,
            "connected": self.connected,
            "reaches_goal": self.reaches_goal,
            "blocked_moves": [[list(a), list(b)] for a, b in self.blocked_moves],
            "path_cells": [list(cell) for cell in self.path_cells],
            "length": self.length,
            "optimal_length": self.optimal_length,
            "is_optimal": self.is_optimal,
            "message": self.message,
        }


class MazeEvaluator(AbstractDatasetEvaluator):
    """Check candidate solutions against the maze stored in a record."""

    def evaluate(
        self,
        maze_id: str,
        candidate: Sequence[Coord],
    ) -> MazeEvaluationResult:
        record = MazeRecord.from_dict(self.get_record(maze_id))
        grid = record.to_grid()
        valid_maze = self.is_perfect_maze(grid)
        optimal = self._shortest_path(grid)

        path = [tuple(map(int, cell)) for cell in candidate]
        blocked = self._blocked_moves(grid, path)
        connected = bool(path) and not blocked
        reaches_goal = bool(path) and path[0] == grid.start and path[-1] == grid.end
        is_optimal = connected and reaches_goal and len(path) == len(optimal)

        if not path:
            message = "No path provided."
        elif blocked:
            message = "Path crosses walls or skips cells."
        elif not reaches_goal:
            message = "Path does not run from start to goal."
        elif not is_optimal:
            message = "Path reaches the goal but is not a shortest route."
        else:
            message = "Path is a shortest route from start to goal."
        if not valid_maze:
            message = f"Stored maze is not a perfect maze. {message}"

        return MazeEvaluationResult(
            maze_id=maze_id,
            valid_maze=valid_maze,
            connected=connected,
            reaches_goal=reaches_goal,
            blocked_moves=blocked,
            path_cells=path,
            length=len(path),
            optimal_length=len(optimal),
            is_optimal=is_optimal,
            message=message,
        )

    def evaluate_image(
        self,
        maze_id: str,
        candidate_image: Optional[PathLike] = None,
        *,
        trim_tolerance: int = 12,
    ) -> MazeEvaluationResult:
        """Detect solution-colored cells in an image and check they link start to goal.

        Without ``candidate_image`` the record's own solution image is checked,
        resolved against ``base_dir``.
        """

        record = MazeRecord.from_dict(self.get_record(maze_id))
        if candidate_image is None:
            candidate_path = self.resolve_path(record.solution_image_path)
        else:
            candidate_path = Path(candidate_image)
        if not candidate_path.exists():
            raise FileNotFoundError(f"Candidate image not found: {candidate_path}")

        grid = record.to_grid()
        valid_maze = self.is_perfect_maze(grid)
        optimal = self._shortest_path(grid)

        with Image.open(candidate_path) as image:
            candidate = self._align(image.convert("RGB"), record.canvas_dimensions, trim_tolerance)
        candidate_arr = np.asarray(candidate)

        detected: Set[Coord] = set()
        for y, row in enumerate(record.cell_bboxes):
            for x, (left, top, right, bottom) in enumerate(row):
                margin = max(1, (right - left) // 6)
                cell_slice = candidate_arr[top + margin : bottom - margin, left + margin : right - margin]
                if cell_slice.size == 0:
                    continue
                if self._is_solution_colored(cell_slice):
                    detected.add((x, y))

        # Start and end fills are painted over the line.
        cells = detected | {grid.start, grid.end}
        drawn = bool(detected) or len(optimal) <= 2
        connected = drawn and self._links_start_to_end(grid, cells)
        is_optimal = connected and cells == set(optimal)

        if not drawn:
            message = "No solution path detected."
        elif not connected:
            message = "Detected path does not connect start to goal."
        elif not is_optimal:
            message = "Detected path connects start to goal with extra cells."
        else:
            message = "Detected path is the shortest route from start to goal."
        if not valid_maze:
            message = f"Stored maze is not a perfect maze. {message}"

        return MazeEvaluationResult(
            maze_id=maze_id,
            valid_maze=valid_maze,
            connected=connected,
            reaches_goal=connected,
            blocked_moves=[],
            path_cells=sorted(cells),
            length=len(cells),
            optimal_length=len(optimal),
            is_optimal=is_optimal,
            message=message,
        )

    @staticmethod
    def is_perfect_maze(grid: Grid) -> bool:
        """True when every cell is reachable and there are no loops."""

        distances = MazeEvaluator._distances(grid, grid.start)
        if np.any(distances < 0):
            return False
        return grid.cleared_pairs() == grid.width * grid.height - 1

    # ------------------------------------------------------------------

    @staticmethod
    def _distances(grid: Grid, origin: Coord) -> np.ndarray:
        distances = np.full((grid.height, grid.width), -1, dtype=np.int32)
        ox, oy = origin
        distances[oy, ox] = 0
        queue = deque([origin])
        while queue:
            x, y = queue.popleft()
            for nx, ny in grid.open_neighbors(x, y):
                if distances[ny, nx] < 0:
                    distances[ny, nx] = distances[y, x] + 1
                    queue.append((nx, ny))
        return distances

    @staticmethod
    def _shortest_path(grid: Grid) -> List[Coord]:
        solver = AStarSolver(grid)
        solver.run()
        return solver.build_path()

    @staticmethod
    def _blocked_moves(grid: Grid, path: Sequence[Coord]) -> List[Tuple[Coord, Coord]]:
        blocked: List[Tuple[Coord, Coord]] = []
        for a, b in zip(path, path[1:]):
            if not grid.in_bounds(*a) or b not in set(grid.open_neighbors(*a)):
                blocked.append((a, b))
        return blocked

    @staticmethod
    def _links_start_to_end(grid: Grid, cells: Iterable[Coord]) -> bool:
        allowed = set(cells)
        queue = deque([grid.start])
        seen = {grid.start}
        while queue:
            x, y = queue.popleft()
            if (x, y) == grid.end:
                return True
            for neighbor in grid.open_neighbors(x, y):
                if neighbor in allowed and neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(neighbor)
        return False

    def _align(
        self,
        image: Image.Image,
        reference_size: Tuple[int, int],
        trim_tolerance: int,
    ) -> Image.Image:
        if image.size == tuple(reference_size):
            return image
        trimmed = self._trim_borders(image, tolerance=trim_tolerance)
        if trimmed.size != tuple(reference_size):
            trimmed = trimmed.resize(tuple(reference_size), RESAMPLE_LANCZOS)
        return trimmed

    @staticmethod
    def _trim_borders(image: Image.Image, *, tolerance: int = 12) -> Image.Image:
        arr = np.asarray(image).astype(np.int16)
        if arr.size == 0:
            return image
        if arr.ndim == 3:
            diff = np.max(np.abs(arr - arr[0, 0]), axis=2)
        else:
            diff = np.abs(arr - arr[0, 0])
        mask = diff > tolerance
        if not np.any(mask):
            return image
        ys, xs = np.where(mask)
        top, bottom = int(ys.min()), int(ys.max())
        left, right = int(xs.min()), int(xs.max())
        return image.crop((left, top, right + 1, bottom + 1))

    @staticmethod
    def _is_solution_colored(pixels: np.ndarray) -> bool:
        flat = pixels.reshape(-1, 3).astype(np.float32)
        if flat.size == 0:
            return False
        r = flat[:, 0]
        g = flat[:, 1]
        b = flat[:, 2]
        dominance = b - np.maximum(r, g)
        return bool(np.any((b >= BLUE_THRESHOLD) & (dominance >= BLUE_DOMINANCE)))


__all__ = ["MazeEvaluator", "MazeEvaluationResult"]


def _load_candidate_path(path: Path) -> List[Coord]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("path", [])
    if not isinstance(payload, list):
        raise ValueError("Candidate path must be a list of [x, y] pairs")
    return [tuple(map(int, cell)) for cell in payload]


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate maze solutions")
    parser.add_argument("metadata", type=Path, help="Path to maze metadata JSON")
    parser.add_argument("maze_id", type=str, help="Identifier of the maze to evaluate")
    parser.add_argument(
        "candidate",
        type=Path,
        nargs="?",
        default=None,
        help="JSON list of [x, y] cells, or an image containing the drawn solution "
        "(defaults to the maze's stored solution image)",
    )
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help="Directory that stored image paths are relative to (defaults to the metadata folder)",
    )
    parser.add_argument("--trim-tolerance", type=int, default=12)
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    evaluator = MazeEvaluator(args.metadata, base_dir=args.base_dir)
    if args.candidate is not None and args.candidate.suffix.lower() == ".json":
        if not args.candidate.exists():
            raise FileNotFoundError(f"Candidate path not found: {args.candidate}")
        result = evaluator.evaluate(args.maze_id, _load_candidate_path(args.candidate))
    else:
        result = evaluator.evaluate_image(args.maze_id, args.candidate, trim_tolerance=args.trim_tolerance)
    logger.debug("Evaluated %s: %s", args.maze_id, result.message)
    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
