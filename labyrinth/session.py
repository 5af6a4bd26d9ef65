"""Tick-driven session cycling through generation, search and solution display."""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import List, Optional

from .generator import DEFAULT_CORRIDOR_BIAS, CarveStep, GrowingTreeGenerator
from .grid import Coord, Grid
from .solver import AStarSolver

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 40
DEFAULT_HEIGHT = 40
SHOW_SOLUTION_TICKS = 120


class MazeState(Enum):
    GENERATING = "generating"
    SEARCHING = "searching"
    DRAWING_SOLUTION = "drawing_solution"
    SHOWING_SOLUTION = "showing_solution"


class MazeSession:
    """Advance one maze through its phases, one unit of work per :meth:`tick`.

    The session owns a single grid at a time. Generation runs to completion
    before a solver is created, so the two never touch the grid together.
    """

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        *,
        seed: Optional[int] = None,
        bias: float = DEFAULT_CORRIDOR_BIAS,
        hold_ticks: int = SHOW_SOLUTION_TICKS,
        auto_restart: bool = True,
    ) -> None:
        if hold_ticks < 0:
            raise ValueError("hold_ticks must be non-negative")
        self.width = width
        self.height = height
        self.bias = bias
        self.hold_ticks = hold_ticks
        self.auto_restart = auto_restart
        self._seeds = random.Random(seed)
        self.mazes_started = 0
        self.reset()

    def reset(self) -> None:
        self.grid = Grid(self.width, self.height)
        self.seed = self._seeds.randrange(2**32)
        self.generator = GrowingTreeGenerator(self.grid, self.seed, bias=self.bias)
        self.last_carve: Optional[CarveStep] = None
        self.solver: Optional[AStarSolver] = None
        self.visited: List[Coord] = []
        self.solution_path: List[Coord] = []
        self.solution_index = 0
        self.show_solution_ticks = 0
        self.mazes_started += 1
        self._set_state(MazeState.GENERATING)

    @property
    def visible_path(self) -> List[Coord]:
        return self.solution_path[: self.solution_index]

    def tick(self) -> MazeState:
        """Advance by one step and return the resulting state."""

        if self.state is MazeState.GENERATING:
            self._step_generation()
        elif self.state is MazeState.SEARCHING:
            self._step_searching()
        elif self.state is MazeState.DRAWING_SOLUTION:
            self._step_drawing_solution()
        else:
            self._step_showing_solution()
        return self.state

    def run_until(self, state: MazeState, max_ticks: int = 1_000_000) -> int:
        """Tick until ``state`` is reached; return the number of ticks taken."""

        ticks = 0
        while self.state is not state:
            if ticks >= max_ticks:
                raise RuntimeError(f"State {state.value} not reached within {max_ticks} ticks")
            self.tick()
            ticks += 1
        return ticks

    # ------------------------------------------------------------------

    def _step_generation(self) -> None:
        try:
            self.last_carve = next(self.generator)
        except StopIteration:
            self.last_carve = None
            self.solver = AStarSolver(self.grid)
            self.visited = []
            self._set_state(MazeState.SEARCHING)

    def _step_searching(self) -> None:
        if self.solver is None:
            raise RuntimeError("Search phase entered without a solver")
        try:
            self.visited.append(next(self.solver))
        except StopIteration:
            self.solution_path = self.solver.build_path()
            self.solution_index = 1 if self.solution_path else 0
            self._set_state(MazeState.DRAWING_SOLUTION)

    def _step_drawing_solution(self) -> None:
        if not self.solution_path:
            self._set_state(MazeState.SHOWING_SOLUTION)
            return

        self.solution_index += 1
        if self.solution_index >= len(self.solution_path):
            self.solution_index = len(self.solution_path)
            self.show_solution_ticks = 0
            self._set_state(MazeState.SHOWING_SOLUTION)

    def _step_showing_solution(self) -> None:
        if self.show_solution_ticks < self.hold_ticks:
            self.show_solution_ticks += 1
        if self.show_solution_ticks >= self.hold_ticks and self.auto_restart:
            self.reset()

    def _set_state(self, state: MazeState) -> None:
        self.state = state
        logger.debug("Maze #%d (seed=%d) -> %s", self.mazes_started, self.seed, state.value)


__all__ = [
    "DEFAULT_HEIGHT",
    "DEFAULT_WIDTH",
    "MazeSession",
    "MazeState",
    "SHOW_SOLUTION_TICKS",
]
