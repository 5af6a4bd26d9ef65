"""A* search over a carved grid, one expanded cell per step."""

from __future__ import annotations

import heapq
import itertools
import logging
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from .grid import Coord, Grid, GridNotSealedError

logger = logging.getLogger(__name__)

_UNREACHED = np.iinfo(np.int32).max


class AStarSolver:
    """Shortest path from ``grid.start`` to ``grid.end``.

    Iterating the solver yields every cell as it is finalized. The frontier is
    a binary heap keyed by ``(f, insertion order)``: stale duplicates are
    discarded on pop and cells with equal ``f`` come out first-in first-out.
    """

    def __init__(self, grid: Grid) -> None:
        if not grid.sealed:
            raise GridNotSealedError("Grid must be fully generated before solving")
        self.grid = grid
        self.reset()

    def reset(self) -> None:
        """Discard all search state so the next iteration starts from scratch."""

        grid = self.grid
        self._start = grid.start
        self._end = grid.end
        self._closed = np.zeros((grid.height, grid.width), dtype=bool)
        self._g = np.full((grid.height, grid.width), _UNREACHED, dtype=np.int32)
        self._came_from: Dict[Coord, Coord] = {}
        self._counter = itertools.count()
        self._frontier: List[Tuple[int, int, Coord]] = []
        self.expanded: List[Coord] = []
        self._exhausted = False

        sx, sy = self._start
        self._g[sy, sx] = 0
        self._push(self._start, self.heuristic(sx, sy))

    def heuristic(self, x: int, y: int) -> int:
        ex, ey = self._end
        return abs(x - ex) + abs(y - ey)

    @property
    def finished(self) -> bool:
        return self._exhausted

    @property
    def found(self) -> bool:
        ex, ey = self._end
        return bool(self._closed[ey, ex])

    def __iter__(self) -> Iterator[Coord]:
        return self

    def __next__(self) -> Coord:
        if self._exhausted:
            raise StopIteration

        while self._frontier:
            _, _, current = heapq.heappop(self._frontier)
            cx, cy = current
            if self._closed[cy, cx]:
                continue

            self._closed[cy, cx] = True
            self.expanded.append(current)
            if current == self._end:
                # Nothing left to do once the goal is finalized.
                self._frontier.clear()
                return current

            tentative = int(self._g[cy, cx]) + 1
            for nx, ny in self.grid.open_neighbors(cx, cy):
                if self._closed[ny, nx]:
                    continue
                if tentative >= self._g[ny, nx]:
                    continue
                self._g[ny, nx] = tentative
                self._came_from[(nx, ny)] = current
                self._push((nx, ny), tentative + self.heuristic(nx, ny))
            return current

        self._exhausted = True
        logger.debug(
            "Search finished after %d expansions, end %s",
            len(self.expanded),
            "reached" if self.found else "unreachable",
        )
        raise StopIteration

    def run(self) -> List[Coord]:
        """Drain the remaining steps and return the expanded cells."""

        for _ in self:
            pass
        return list(self.expanded)

    def cost_to(self, x: int, y: int) -> Optional[int]:
        """Best known distance from start, or ``None`` if never reached."""

        value = int(self._g[y, x])
        return None if value == _UNREACHED else value

    def build_path(self) -> List[Coord]:
        """Cells from start to end inclusive; empty when end is unreachable."""

        if not self._exhausted:
            raise RuntimeError("Search must be drained before building the path")
        if not self.found:
            return []

        node = self._end
        path: List[Coord] = [node]
        while node != self._start:
            node = self._came_from[node]
            path.append(node)
        path.reverse()
        return path

    def _push(self, cell: Coord, priority: int) -> None:
        heapq.heappush(self._frontier, (priority, next(self._counter), cell))


__all__ = ["AStarSolver"]
