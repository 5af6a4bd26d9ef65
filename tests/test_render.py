import tempfile
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

from labyrinth.generator import GrowingTreeGenerator
from labyrinth.grid import Direction, Grid
from labyrinth.render import END_COLOR, SOLUTION_COLOR, START_COLOR, MazeRenderer
from labyrinth.session import MazeSession, MazeState
from labyrinth.solver import AStarSolver

CARVE_COLOR = (255, 0, 0)


def has_color(image, color, box=None):
    if box is not None:
        image = image.crop(box)
    arr = np.asarray(image.convert("RGB"))
    return bool(np.all(arr == np.array(color, dtype=np.uint8), axis=2).any())


class MazeRendererTests(unittest.TestCase):
    def setUp(self) -> None:
        self.renderer = MazeRenderer(cell_size=20, padding=10)
        self.grid = Grid(5, 5)
        GrowingTreeGenerator(self.grid, 17).run()
        solver = AStarSolver(self.grid)
        self.expanded = solver.run()
        self.path = solver.build_path()

    def _center_pixel(self, image, cell):
        cx, cy = self.renderer.cell_center(*cell)
        return image.getpixel((int(cx), int(cy)))

    def test_canvas_size_includes_padding(self) -> None:
        image = self.renderer.render(Grid(5, 4))
        self.assertEqual(image.size, (121, 101))
        self.assertEqual(image.mode, "RGB")

    def test_start_and_end_cells_are_filled(self) -> None:
        image = self.renderer.render(self.grid)
        self.assertEqual(self._center_pixel(image, self.grid.start), START_COLOR)
        self.assertEqual(self._center_pixel(image, self.grid.end), END_COLOR)

    def test_carved_wall_is_not_drawn(self) -> None:
        grid = Grid(2, 1)
        column = [(x, 20) for x in (29, 30, 31)]

        walled = self.renderer.render(grid)
        self.assertTrue(any(walled.getpixel(p) == (0, 0, 0) for p in column))

        grid.carve(0, 0, Direction.EAST)
        carved = self.renderer.render(grid)
        self.assertTrue(all(carved.getpixel(p) == (255, 255, 255) for p in column))

    def test_solution_runs_through_path_cells(self) -> None:
        image = self.renderer.render(self.grid, path=self.path)
        for cell in self.path[1:-1]:
            left, top, right, bottom = self.renderer.cell_bbox(*cell)
            self.assertTrue(has_color(image, SOLUTION_COLOR, (left + 5, top + 5, right - 5, bottom - 5)))
        off_path = [
            (x, y)
            for y in range(self.grid.height)
            for x in range(self.grid.width)
            if (x, y) not in self.path
        ]
        for cell in off_path:
            left, top, right, bottom = self.renderer.cell_bbox(*cell)
            self.assertFalse(has_color(image, SOLUTION_COLOR, (left + 3, top + 3, right - 3, bottom - 3)))

    def test_visited_cells_are_tinted(self) -> None:
        plain = self.renderer.render(self.grid)
        tinted = self.renderer.render(self.grid, visited=self.expanded)
        for cell in self.expanded:
            if cell in (self.grid.start, self.grid.end):
                continue
            r, g, b = self._center_pixel(tinted, cell)
            self.assertNotEqual((r, g, b), self._center_pixel(plain, cell))
            self.assertGreater(b, r)

    def test_session_frames_follow_the_phase(self) -> None:
        session = MazeSession(4, 4, seed=5, hold_ticks=1, auto_restart=False)
        session.tick()
        self.assertTrue(has_color(self.renderer.render_session(session), CARVE_COLOR))

        session.run_until(MazeState.SHOWING_SOLUTION)
        frame = self.renderer.render_session(session)
        self.assertFalse(has_color(frame, CARVE_COLOR))
        if len(session.solution_path) > 2:
            self.assertTrue(has_color(frame, SOLUTION_COLOR))

    def test_save_animation_writes_gif(self) -> None:
        frames = [
            self.renderer.render(self.grid),
            self.renderer.render(self.grid, visited=self.expanded),
            self.renderer.render(self.grid, path=self.path),
        ]
        with tempfile.TemporaryDirectory() as tmp:
            path = self.renderer.save_animation(frames, Path(tmp) / "nested" / "maze.gif", duration=20)
            self.assertTrue(path.exists())
            with Image.open(path) as gif:
                self.assertEqual(gif.n_frames, 3)
                self.assertEqual(gif.size, frames[0].size)

    def test_save_animation_needs_frames(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ValueError):
                self.renderer.save_animation([], Path(tmp) / "empty.gif")

    def test_rejects_tiny_cells(self) -> None:
        with self.assertRaises(ValueError):
            MazeRenderer(cell_size=2)


if __name__ == "__main__":
    unittest.main()
