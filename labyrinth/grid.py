"""Grid data model shared by the maze generator and solver."""

from __future__ import annotations

import operator
from enum import IntFlag
from typing import Any, Dict, Iterator, List, Tuple

import numpy as np

Coord = Tuple[int, int]


class Direction(IntFlag):
    NORTH = 1
    SOUTH = 2
    EAST = 4
    WEST = 8


ALL_WALLS = int(Direction.NORTH | Direction.SOUTH | Direction.EAST | Direction.WEST)

# Neighbor enumeration order: (direction, dx, dy, opposite)
DIRECTIONS: Tuple[Tuple[Direction, int, int, Direction], ...] = (
    (Direction.NORTH, 0, -1, Direction.SOUTH),
    (Direction.SOUTH, 0, 1, Direction.NORTH),
    (Direction.EAST, 1, 0, Direction.WEST),
    (Direction.WEST, -1, 0, Direction.EAST),
)

_OFFSETS = {direction: (dx, dy, opposite) for direction, dx, dy, opposite in DIRECTIONS}


class GridSealedError(RuntimeError):
    """Raised when a sealed grid is mutated."""


class GridNotSealedError(RuntimeError):
    """Raised when a grid is solved before generation has sealed it."""


class Grid:
    """Rectangular array of cells, each holding a 4-bit wall mask.

    ``walls`` is indexed ``[y, x]``. A set bit means the wall in that direction
    is present. Walls only ever change in matched pairs through :meth:`carve`
    and :meth:`build_wall`. While the grid is sealed the array itself is
    read-only, so direct writes raise ``ValueError`` from numpy.
    """

    def __init__(self, width: int, height: int) -> None:
        if isinstance(width, bool) or isinstance(height, bool):
            raise ValueError("width and height must be integers")
        try:
            width, height = operator.index(width), operator.index(height)
        except TypeError as exc:
            raise ValueError("width and height must be integers") from exc
        if width < 1 or height < 1:
            raise ValueError("width and height must be at least 1")
        self.width = width
        self.height = height
        self.walls = np.full((height, width), ALL_WALLS, dtype=np.uint8)
        self._start: Coord = (0, 0)
        self._end: Coord = (0, 0)
        self._sealed = False

    def __repr__(self) -> str:
        return (
            f"Grid(width={self.width}, height={self.height}, start={self._start}, "
            f"end={self._end}, sealed={self._sealed})"
        )

    # ------------------------------------------------------------------

    @property
    def start(self) -> Coord:
        return self._start

    @start.setter
    def start(self, value: Coord) -> None:
        self._start = self._checked_endpoint(value)

    @property
    def end(self) -> Coord:
        return self._end

    @end.setter
    def end(self, value: Coord) -> None:
        self._end = self._checked_endpoint(value)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """Mark the grid read-only; solvers require a sealed grid."""

        self._sealed = True
        self.walls.flags.writeable = False

    def unseal(self) -> None:
        self._sealed = False
        self.walls.flags.writeable = True

    def reset(self) -> None:
        """Restore every wall, move both endpoints to (0, 0) and unseal."""

        self.unseal()
        self.walls.fill(ALL_WALLS)
        self._start = (0, 0)
        self._end = (0, 0)

    # ------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def has_wall(self, x: int, y: int, direction: Direction) -> bool:
        return bool(self.walls[y, x] & int(direction))

    def neighbors(self, x: int, y: int) -> Iterator[Tuple[int, int, Direction]]:
        """Yield in-bounds orthogonal neighbors as ``(nx, ny, direction)``."""

        for direction, dx, dy, _ in DIRECTIONS:
            nx, ny = x + dx, y + dy
            if 0 <= nx < self.width and 0 <= ny < self.height:
                yield nx, ny, direction

    def open_neighbors(self, x: int, y: int) -> Iterator[Coord]:
        """Yield neighbors reachable from ``(x, y)`` without crossing a wall."""

        mask = int(self.walls[y, x])
        for nx, ny, direction in self.neighbors(x, y):
            if not mask & int(direction):
                yield nx, ny

    def carve(self, x: int, y: int, direction: Direction) -> Coord:
        """Clear the wall pair between ``(x, y)`` and its neighbor in ``direction``."""

        nx, ny, opposite = self._neighbor_of(x, y, direction)
        self.walls[y, x] &= ALL_WALLS ^ int(direction)
        self.walls[ny, nx] &= ALL_WALLS ^ int(opposite)
        return nx, ny

    def build_wall(self, x: int, y: int, direction: Direction) -> Coord:
        """Restore the wall pair between ``(x, y)`` and its neighbor in ``direction``."""

        nx, ny, opposite = self._neighbor_of(x, y, direction)
        self.walls[y, x] |= int(direction)
        self.walls[ny, nx] |= int(opposite)
        return nx, ny

    def cleared_pairs(self) -> int:
        """Number of cleared wall pairs (each shared wall counted once)."""

        south_open = (self.walls[:-1, :] & int(Direction.SOUTH)) == 0
        east_open = (self.walls[:, :-1] & int(Direction.EAST)) == 0
        return int(np.count_nonzero(south_open) + np.count_nonzero(east_open))

    def farthest_from(self, origin: Coord) -> Coord:
        """Cell of maximum Manhattan distance from ``origin``.

        Cells are scanned x-major, y-minor; the first strict maximum wins.
        """

        ox, oy = origin
        best = -1
        found = origin
        for x in range(self.width):
            for y in range(self.height):
                dist = abs(x - ox) + abs(y - oy)
                if dist > best:
                    best = dist
                    found = (x, y)
        return found

    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "start": list(self._start),
            "end": list(self._end),
            "sealed": self._sealed,
            "walls": self.walls.astype(int).tolist(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Grid":
        grid = cls(int(payload["width"]), int(payload["height"]))
        walls = np.asarray(payload["walls"], dtype=np.uint8)
        if walls.shape != grid.walls.shape:
            raise ValueError(
                f"Wall array shape {walls.shape} does not match grid {grid.walls.shape}"
            )
        if np.any(walls > ALL_WALLS):
            raise ValueError("Wall masks must be in the range 0..15")
        grid.walls[...] = walls
        grid.start = tuple(map(int, payload["start"]))
        grid.end = tuple(map(int, payload["end"]))
        if payload.get("sealed", False):
            grid.seal()
        return grid

    # ------------------------------------------------------------------

    def _checked_endpoint(self, value: Coord) -> Coord:
        if self._sealed:
            raise GridSealedError("Cannot move endpoints of a sealed grid")
        x, y = value
        if not self.in_bounds(x, y):
            raise ValueError(f"Coordinate ({x}, {y}) out of bounds")
        return (x, y)

    def _neighbor_of(self, x: int, y: int, direction: Direction) -> Tuple[int, int, Direction]:
        if self._sealed:
            raise GridSealedError("Cannot change walls of a sealed grid")
        if not self.in_bounds(x, y):
            raise ValueError(f"Coordinate ({x}, {y}) out of bounds")
        try:
            dx, dy, opposite = _OFFSETS[direction]
        except KeyError as exc:
            raise ValueError(f"Not a single direction: {direction!r}") from exc
        nx, ny = x + dx, y + dy
        if not self.in_bounds(nx, ny):
            raise ValueError(f"No neighbor {direction.name} of ({x}, {y})")
        return nx, ny, opposite


__all__ = [
    "ALL_WALLS",
    "DIRECTIONS",
    "Coord",
    "Direction",
    "Grid",
    "GridNotSealedError",
    "GridSealedError",
]
