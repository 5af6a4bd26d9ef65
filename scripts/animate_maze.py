#!/usr/bin/env python3
"""Run one maze session from carving to shown solution and save it as a GIF."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from labyrinth.generator import DEFAULT_CORRIDOR_BIAS
from labyrinth.render import DEFAULT_CELL_SIZE, MazeRenderer
from labyrinth.session import MazeSession, MazeState

logger = logging.getLogger("animate_maze")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--width", type=int, default=20)
    parser.add_argument("--height", type=int, default=20)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--bias", type=float, default=DEFAULT_CORRIDOR_BIAS)
    parser.add_argument("--cell-size", type=int, default=DEFAULT_CELL_SIZE)
    parser.add_argument("--stride", type=int, default=4, help="Render every Nth tick")
    parser.add_argument("--hold", type=int, default=30, help="Ticks to keep the finished solution on screen")
    parser.add_argument("--duration", type=int, default=40, help="Milliseconds per frame")
    parser.add_argument("--output", type=Path, default=Path("out/maze.gif"))
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def render_cycle(session: MazeSession, renderer: MazeRenderer, stride: int) -> list:
    """Tick ``session`` until its hold expires, keeping every ``stride``-th frame."""

    frames = [renderer.render_session(session)]
    ticks = 0
    while not (
        session.state is MazeState.SHOWING_SOLUTION
        and session.show_solution_ticks >= session.hold_ticks
    ):
        previous = session.state
        session.tick()
        ticks += 1
        if ticks % stride == 0 or session.state is not previous:
            frames.append(renderer.render_session(session))
    logger.info(
        "Session finished after %d ticks: %d carves, %d expansions, path length %d",
        ticks,
        session.generator.steps,
        len(session.visited),
        len(session.solution_path),
    )
    return frames


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    if args.stride < 1:
        raise SystemExit("--stride must be at least 1")

    session = MazeSession(
        args.width,
        args.height,
        seed=args.seed,
        bias=args.bias,
        hold_ticks=args.hold,
        auto_restart=False,
    )
    renderer = MazeRenderer(cell_size=args.cell_size)
    frames = render_cycle(session, renderer, args.stride)
    path = renderer.save_animation(frames, args.output, duration=args.duration)
    logger.info("Wrote %d frames to %s", len(frames), path)


if __name__ == "__main__":
    main()
