"""Growing-tree maze carving exposed as a step iterator."""

from __future__ import annotations

import logging
import random
from typing import Iterator, List, NamedTuple, Optional

import numpy as np

from .grid import Coord, Grid

logger = logging.getLogger(__name__)

# 1.0 always grows from the newest cell (long corridors),
# 0.0 always from a random active cell (bushy, cave-like).
DEFAULT_CORRIDOR_BIAS = 0.8


class CarveStep(NamedTuple):
    from_x: int
    from_y: int
    to_x: int
    to_y: int


class GrowingTreeGenerator:
    """Carve a perfect maze into ``grid``, one passage per ``next()`` call.

    The grid is reset on construction and sealed once the last cell has been
    visited, at which point ``grid.end`` holds the cell farthest from
    ``grid.start``. The iterator cannot be restarted; build a new generator to
    carve again.
    """

    def __init__(
        self,
        grid: Grid,
        seed: Optional[int] = None,
        *,
        bias: float = DEFAULT_CORRIDOR_BIAS,
    ) -> None:
        if not 0.0 <= bias <= 1.0:
            raise ValueError("bias must be within [0, 1]")
        self.grid = grid
        self.seed = seed
        self.bias = bias
        self.steps = 0
        self._rng = random.Random(seed)

        grid.reset()
        self._visited = np.zeros((grid.height, grid.width), dtype=bool)
        origin: Coord = (0, 0)
        self._visited[origin[1], origin[0]] = True
        grid.start = origin
        self._active: List[Coord] = [origin]
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def __iter__(self) -> Iterator[CarveStep]:
        return self

    def __next__(self) -> CarveStep:
        if self._finished:
            raise StopIteration

        while self._active:
            if self._rng.random() < self.bias:
                index = len(self._active) - 1
            else:
                index = self._rng.randrange(len(self._active))
            cx, cy = self._active[index]

            candidates = [
                (nx, ny, direction)
                for nx, ny, direction in self.grid.neighbors(cx, cy)
                if not self._visited[ny, nx]
            ]
            if not candidates:
                del self._active[index]
                continue

            nx, ny, direction = candidates[self._rng.randrange(len(candidates))]
            self.grid.carve(cx, cy, direction)
            self._visited[ny, nx] = True
            self._active.append((nx, ny))
            self.steps += 1
            return CarveStep(cx, cy, nx, ny)

        self._finish()
        raise StopIteration

    def run(self) -> List[CarveStep]:
        """Drain the remaining steps and return them."""

        return list(self)

    def _finish(self) -> None:
        self.grid.end = self.grid.farthest_from(self.grid.start)
        self.grid.seal()
        self._finished = True
        logger.debug(
            "Carved %dx%d maze in %d steps (seed=%s, bias=%.2f), end=%s",
            self.grid.width,
            self.grid.height,
            self.steps,
            self.seed,
            self.bias,
            self.grid.end,
        )


__all__ = ["CarveStep", "DEFAULT_CORRIDOR_BIAS", "GrowingTreeGenerator"]
