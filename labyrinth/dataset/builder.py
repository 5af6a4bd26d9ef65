"""Maze dataset builder: carve, solve and render batches of mazes."""

from __future__ import annotations

import argparse
import logging
import random
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image

from ..base import AbstractDatasetBuilder, PathLike
from ..generator import DEFAULT_CORRIDOR_BIAS, GrowingTreeGenerator
from ..grid import Coord, Grid
from ..render import DEFAULT_CELL_SIZE, MazeRenderer
from ..solver import AStarSolver

logger = logging.getLogger(__name__)


@dataclass
class MazeRecord:
    id: str
    grid_size: Tuple[int, int]
    seed: int
    bias: float
    start: Coord
    end: Coord
    walls: List[List[int]]
    carve_steps: int
    expanded_cells: int
    path: List[Coord]
    cell_size: int
    cell_bboxes: List[List[Tuple[int, int, int, int]]]
    canvas_dimensions: Tuple[int, int]
    puzzle_image_path: str
    solution_image_path: str
    animation_path: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "grid_size": list(self.grid_size),
            "seed": self.seed,
            "bias": self.bias,
            "start": list(self.start),
            "end": list(self.end),
            "walls": self.walls,
            "carve_steps": self.carve_steps,
            "expanded_cells": self.expanded_cells,
            "path": [list(cell) for cell in self.path],
            "cell_size": self.cell_size,
            "cell_bboxes": [
                [list(map(int, bbox)) for bbox in row] for row in self.cell_bboxes
            ],
            "canvas_dimensions": list(self.canvas_dimensions),
            "puzzle_image_path": self.puzzle_image_path,
            "solution_image_path": self.solution_image_path,
            "animation_path": self.animation_path,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "MazeRecord":
        return cls(
            id=str(payload["id"]),
            grid_size=tuple(map(int, payload["grid_size"])),
            seed=int(payload["seed"]),
            bias=float(payload["bias"]),
            start=tuple(map(int, payload["start"])),
            end=tuple(map(int, payload["end"])),
            walls=[list(map(int, row)) for row in payload["walls"]],
            carve_steps=int(payload["carve_steps"]),
            expanded_cells=int(payload["expanded_cells"]),
            path=[tuple(map(int, cell)) for cell in payload["path"]],
            cell_size=int(payload["cell_size"]),
            cell_bboxes=[
                [tuple(map(int, bbox)) for bbox in row] for row in payload["cell_bboxes"]
            ],
            canvas_dimensions=tuple(map(int, payload["canvas_dimensions"])),
            puzzle_image_path=str(payload["puzzle_image_path"]),
            solution_image_path=str(payload["solution_image_path"]),
            animation_path=payload.get("animation_path"),
        )

    def to_grid(self) -> Grid:
        """Rebuild the sealed grid this record was generated on."""

        width, height = self.grid_size
        return Grid.from_dict(
            {
                "width": width,
                "height": height,
                "start": self.start,
                "end": self.end,
                "sealed": True,
                "walls": self.walls,
            }
        )


class MazeDatasetBuilder(AbstractDatasetBuilder[MazeRecord]):
    """Generate perfect mazes with puzzle/solution images and optional animations."""

    def __init__(
        self,
        output_dir: PathLike = "data/maze",
        *,
        width: int = 15,
        height: int = 15,
        cell_size: int = DEFAULT_CELL_SIZE,
        bias: float = DEFAULT_CORRIDOR_BIAS,
        seed: Optional[int] = None,
        animate: bool = False,
        frame_stride: int = 1,
        frame_duration: int = 40,
    ) -> None:
        super().__init__(output_dir)
        if width < 1 or height < 1:
            raise ValueError("width and height must be at least 1")
        if not 0.0 <= bias <= 1.0:
            raise ValueError("bias must be within [0, 1]")
        if frame_stride < 1:
            raise ValueError("frame_stride must be at least 1")
        self.width = width
        self.height = height
        self.bias = bias
        self.animate = animate
        self.frame_stride = frame_stride
        self.frame_duration = frame_duration
        self.renderer = MazeRenderer(cell_size=cell_size)
        self._rng = random.Random(seed)

        self.puzzle_dir = self.output_dir / "puzzles"
        self.solution_dir = self.output_dir / "solutions"
        self.animation_dir = self.output_dir / "animations"
        for directory in (self.puzzle_dir, self.solution_dir):
            directory.mkdir(parents=True, exist_ok=True)
        if animate:
            self.animation_dir.mkdir(parents=True, exist_ok=True)

    def create_maze(
        self,
        *,
        maze_id: Optional[str] = None,
        seed: Optional[int] = None,
    ) -> MazeRecord:
        maze_uuid = maze_id or str(uuid.uuid4())
        if seed is None:
            seed = self._rng.randrange(2**32)

        grid = Grid(self.width, self.height)
        frames: List[Image.Image] = []
        generator = GrowingTreeGenerator(grid, seed, bias=self.bias)
        for step in generator:
            if self.animate and generator.steps % self.frame_stride == 0:
                frames.append(self.renderer.render(grid, carve=step))

        solver = AStarSolver(grid)
        for _ in solver:
            if self.animate and len(solver.expanded) % self.frame_stride == 0:
                frames.append(self.renderer.render(grid, visited=solver.expanded))
        path = solver.build_path()
        if not path:
            raise RuntimeError("Failed to solve generated maze")

        puzzle_image = self.renderer.render(grid)
        solution_image = self.renderer.render(grid, path=path)

        puzzle_path = self.puzzle_dir / f"{maze_uuid}_puzzle.png"
        solution_path = self.solution_dir / f"{maze_uuid}_solution.png"
        puzzle_image.save(puzzle_path)
        solution_image.save(solution_path)

        animation_path: Optional[str] = None
        if self.animate:
            frames.append(self.renderer.render(grid, visited=solver.expanded, path=path))
            gif_path = self.renderer.save_animation(
                frames,
                self.animation_dir / f"{maze_uuid}.gif",
                duration=self.frame_duration,
            )
            animation_path = self.relativize_path(gif_path)

        logger.info(
            "Built maze %s (%dx%d, seed=%d): %d carves, %d expansions, path length %d",
            maze_uuid,
            self.width,
            self.height,
            seed,
            generator.steps,
            len(solver.expanded),
            len(path),
        )

        return MazeRecord(
            id=maze_uuid,
            grid_size=(self.width, self.height),
            seed=seed,
            bias=self.bias,
            start=grid.start,
            end=grid.end,
            walls=grid.walls.astype(int).tolist(),
            carve_steps=generator.steps,
            expanded_cells=len(solver.expanded),
            path=path,
            cell_size=self.renderer.cell_size,
            cell_bboxes=self._compute_cell_bboxes(),
            canvas_dimensions=self.renderer.canvas_size(grid),
            puzzle_image_path=self.relativize_path(puzzle_path),
            solution_image_path=self.relativize_path(solution_path),
            animation_path=animation_path,
        )

    def create_random_maze(self) -> MazeRecord:
        return self.create_maze()

    def _compute_cell_bboxes(self) -> List[List[Tuple[int, int, int, int]]]:
        return [
            [self.renderer.cell_bbox(x, y) for x in range(self.width)]
            for y in range(self.height)
        ]


__all__ = ["MazeDatasetBuilder", "MazeRecord"]


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate perfect mazes with rendered solutions")
    parser.add_argument("count", type=int, help="Number of mazes to generate")
    parser.add_argument("--output-dir", type=Path, default=Path("data/maze"), help="Where to save assets")
    parser.add_argument("--width", type=int, default=15)
    parser.add_argument("--height", type=int, default=15)
    parser.add_argument("--cell-size", type=int, default=DEFAULT_CELL_SIZE)
    parser.add_argument(
        "--bias",
        type=float,
        default=DEFAULT_CORRIDOR_BIAS,
        help="Probability of growing from the newest cell (1.0 = long corridors, 0.0 = bushy)",
    )
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--animate", action="store_true", help="Also write a GIF of carving and search")
    parser.add_argument("--frame-stride", type=int, default=1, help="Keep every Nth step as a frame")
    parser.add_argument("--frame-duration", type=int, default=40, help="Milliseconds per GIF frame")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    builder = MazeDatasetBuilder(
        output_dir=args.output_dir,
        width=args.width,
        height=args.height,
        cell_size=args.cell_size,
        bias=args.bias,
        seed=args.seed,
        animate=args.animate,
        frame_stride=args.frame_stride,
        frame_duration=args.frame_duration,
    )
    builder.generate_dataset(args.count)


if __name__ == "__main__":
    main()
