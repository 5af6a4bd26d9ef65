"""Pillow rendering of grids and session snapshots."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from .base import PathLike
from .grid import Coord, Direction, Grid
from .session import MazeSession, MazeState

Color = Tuple[int, ...]

BACKGROUND_COLOR = (255, 255, 255)
WALL_COLOR = (0, 0, 0)
CARVE_COLOR = (255, 0, 0)
VISITED_COLOR = (0, 191, 255, 80)
SOLUTION_COLOR = (0, 0, 255)
START_COLOR = (50, 205, 50)
END_COLOR = (255, 215, 0)

DEFAULT_CELL_SIZE = 20
DEFAULT_PADDING = 10


class MazeRenderer:
    """Draw a maze with optional search, carve and solution overlays."""

    def __init__(
        self,
        cell_size: int = DEFAULT_CELL_SIZE,
        padding: int = DEFAULT_PADDING,
        *,
        carve_width: int = 2,
        solution_width: int = 3,
    ) -> None:
        if cell_size < 4:
            raise ValueError("cell_size must be at least 4")
        if padding < 0:
            raise ValueError("padding must be non-negative")
        self.cell_size = cell_size
        self.padding = padding
        self.wall_width = max(1, cell_size // 10)
        self.carve_width = carve_width
        self.solution_width = solution_width

    def canvas_size(self, grid: Grid) -> Tuple[int, int]:
        return (
            self.padding * 2 + grid.width * self.cell_size + 1,
            self.padding * 2 + grid.height * self.cell_size + 1,
        )

    def cell_origin(self, x: int, y: int) -> Tuple[int, int]:
        return self.padding + x * self.cell_size, self.padding + y * self.cell_size

    def cell_center(self, x: int, y: int) -> Tuple[float, float]:
        x0, y0 = self.cell_origin(x, y)
        return x0 + self.cell_size / 2, y0 + self.cell_size / 2

    def cell_bbox(self, x: int, y: int) -> Tuple[int, int, int, int]:
        x0, y0 = self.cell_origin(x, y)
        return x0, y0, x0 + self.cell_size, y0 + self.cell_size

    def render(
        self,
        grid: Grid,
        *,
        visited: Optional[Iterable[Coord]] = None,
        carve: Optional[Tuple[int, int, int, int]] = None,
        path: Optional[Sequence[Coord]] = None,
    ) -> Image.Image:
        canvas = Image.new("RGB", self.canvas_size(grid), BACKGROUND_COLOR)

        if visited:
            overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
            overlay_draw = ImageDraw.Draw(overlay)
            for vx, vy in visited:
                self._fill_cell(overlay_draw, vx, vy, VISITED_COLOR)
            canvas = Image.alpha_composite(canvas.convert("RGBA"), overlay).convert("RGB")

        draw = ImageDraw.Draw(canvas)
        self._draw_walls(draw, grid)

        if carve is not None:
            from_x, from_y, to_x, to_y = carve
            draw.line(
                [self.cell_center(from_x, from_y), self.cell_center(to_x, to_y)],
                fill=CARVE_COLOR,
                width=self.carve_width,
            )

        if path is not None and len(path) > 1:
            points = [self.cell_center(px, py) for px, py in path]
            draw.line(points, fill=SOLUTION_COLOR, width=self.solution_width, joint="curve")

        self._fill_cell(draw, *grid.start, START_COLOR)
        self._fill_cell(draw, *grid.end, END_COLOR)
        return canvas

    def render_session(self, session: MazeSession) -> Image.Image:
        """Render the session the way its current phase is meant to be seen."""

        state = session.state
        visited = session.visited if state is not MazeState.GENERATING else None
        carve = session.last_carve if state is MazeState.GENERATING else None
        path = None
        if state in (MazeState.DRAWING_SOLUTION, MazeState.SHOWING_SOLUTION):
            path = session.visible_path
        return self.render(session.grid, visited=visited, carve=carve, path=path)

    def save_animation(
        self,
        frames: Sequence[Image.Image],
        output_path: PathLike,
        *,
        duration: int = 40,
    ) -> Path:
        """Write ``frames`` as a looping GIF and return its path."""

        if not frames:
            raise ValueError("At least one frame is required")
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        first, *rest = frames
        first.save(path, save_all=True, append_images=list(rest), duration=duration, loop=0)
        return path

    # ------------------------------------------------------------------

    def _draw_walls(self, draw: ImageDraw.ImageDraw, grid: Grid) -> None:
        for y in range(grid.height):
            for x in range(grid.width):
                x0, y0, x1, y1 = self.cell_bbox(x, y)
                mask = int(grid.walls[y, x])
                if mask & Direction.NORTH:
                    draw.line([(x0, y0), (x1, y0)], fill=WALL_COLOR, width=self.wall_width)
                if mask & Direction.SOUTH:
                    draw.line([(x0, y1), (x1, y1)], fill=WALL_COLOR, width=self.wall_width)
                if mask & Direction.WEST:
                    draw.line([(x0, y0), (x0, y1)], fill=WALL_COLOR, width=self.wall_width)
                if mask & Direction.EAST:
                    draw.line([(x1, y0), (x1, y1)], fill=WALL_COLOR, width=self.wall_width)

    def _fill_cell(self, draw: ImageDraw.ImageDraw, x: int, y: int, color: Color) -> None:
        x0, y0 = self.cell_origin(x, y)
        size = self.cell_size - 2
        draw.rectangle((x0 + 1, y0 + 1, x0 + size, y0 + size), fill=color)


__all__ = [
    "DEFAULT_CELL_SIZE",
    "DEFAULT_PADDING",
    "MazeRenderer",
    "SOLUTION_COLOR",
    "START_COLOR",
    "END_COLOR",
]
