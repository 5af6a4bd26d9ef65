import unittest
from collections import deque

from labyrinth.generator import GrowingTreeGenerator
from labyrinth.grid import DIRECTIONS, Direction, Grid, GridNotSealedError
from labyrinth.solver import AStarSolver


def bfs_distance(grid, origin, target):
    distances = {origin: 0}
    queue = deque([origin])
    while queue:
        cell = queue.popleft()
        for neighbor in grid.open_neighbors(*cell):
            if neighbor not in distances:
                distances[neighbor] = distances[cell] + 1
                queue.append(neighbor)
    return distances.get(target)


def carved_grid(width, height, seed, bias=0.8):
    grid = Grid(width, height)
    GrowingTreeGenerator(grid, seed, bias=bias).run()
    return grid


def direction_between(a, b):
    for direction, dx, dy, _ in DIRECTIONS:
        if (a[0] + dx, a[1] + dy) == b:
            return direction
    raise AssertionError(f"{a} and {b} are not adjacent")


class AStarSolverTests(unittest.TestCase):
    def test_requires_a_generated_grid(self) -> None:
        with self.assertRaises(GridNotSealedError):
            AStarSolver(Grid(3, 3))

    def test_path_length_matches_breadth_first_search(self) -> None:
        for seed in range(10):
            with self.subTest(seed=seed):
                grid = carved_grid(5, 5, seed)
                solver = AStarSolver(grid)
                solver.run()
                path = solver.build_path()
                self.assertEqual(len(path) - 1, bfs_distance(grid, grid.start, grid.end))

    def test_path_is_a_walk_through_open_walls(self) -> None:
        grid = carved_grid(9, 7, 21, bias=0.4)
        solver = AStarSolver(grid)
        solver.run()
        path = solver.build_path()

        self.assertEqual(path[0], grid.start)
        self.assertEqual(path[-1], grid.end)
        for a, b in zip(path, path[1:]):
            self.assertIn(b, set(grid.open_neighbors(*a)))

    def test_search_stops_at_the_end_cell(self) -> None:
        grid = carved_grid(6, 6, 4)
        solver = AStarSolver(grid)
        expanded = list(solver)

        self.assertEqual(expanded[-1], grid.end)
        self.assertEqual(len(expanded), len(set(expanded)))
        self.assertLessEqual(len(expanded), 36)
        self.assertTrue(solver.finished)
        self.assertTrue(solver.found)
        self.assertEqual(solver.expanded, expanded)

    def test_build_path_before_search_is_drained(self) -> None:
        solver = AStarSolver(carved_grid(4, 4, 2))
        with self.assertRaises(RuntimeError):
            solver.build_path()
        next(solver)
        with self.assertRaises(RuntimeError):
            solver.build_path()

    def test_unreachable_end_gives_empty_path(self) -> None:
        grid = Grid(3, 3)
        grid.end = (2, 2)
        grid.seal()

        solver = AStarSolver(grid)
        self.assertEqual(list(solver), [(0, 0)])
        self.assertFalse(solver.found)
        self.assertEqual(solver.build_path(), [])
        self.assertEqual(solver.cost_to(0, 0), 0)
        self.assertIsNone(solver.cost_to(2, 2))

    def test_broken_connectivity_never_reaches_end(self) -> None:
        grid = carved_grid(5, 5, 13)
        solver = AStarSolver(grid)
        solver.run()
        path = solver.build_path()

        grid.unseal()
        grid.build_wall(*path[0], direction_between(path[0], path[1]))
        grid.seal()

        broken = AStarSolver(grid)
        expanded = broken.run()
        self.assertNotIn(grid.end, expanded)
        self.assertEqual(broken.build_path(), [])

    def test_start_equal_to_end(self) -> None:
        grid = carved_grid(1, 1, 0)
        solver = AStarSolver(grid)
        self.assertEqual(solver.run(), [(0, 0)])
        self.assertEqual(solver.build_path(), [(0, 0)])

    def test_equal_costs_pop_in_insertion_order(self) -> None:
        grid = Grid(2, 2)
        grid.carve(0, 0, Direction.SOUTH)
        grid.carve(0, 0, Direction.EAST)
        grid.carve(0, 1, Direction.EAST)
        grid.carve(1, 0, Direction.SOUTH)
        grid.end = (1, 1)
        grid.seal()

        solver = AStarSolver(grid)
        self.assertEqual(solver.run(), [(0, 0), (0, 1), (1, 0), (1, 1)])
        self.assertEqual(solver.build_path(), [(0, 0), (0, 1), (1, 1)])

    def test_reset_reruns_the_same_search(self) -> None:
        grid = carved_grid(7, 7, 99)
        solver = AStarSolver(grid)
        first = solver.run()
        first_path = solver.build_path()

        solver.reset()
        self.assertFalse(solver.finished)
        self.assertEqual(solver.run(), first)
        self.assertEqual(solver.build_path(), first_path)

    def test_costs_are_recorded(self) -> None:
        grid = carved_grid(5, 5, 6)
        solver = AStarSolver(grid)
        solver.run()
        path = solver.build_path()
        for index, cell in enumerate(path):
            self.assertEqual(solver.cost_to(*cell), index)

    def test_three_by_three_seed_42(self) -> None:
        grid = carved_grid(3, 3, 42)
        solver = AStarSolver(grid)
        steps = solver.run()
        path = solver.build_path()

        self.assertLessEqual(len(steps), 9)
        self.assertEqual(len(path) - 1, bfs_distance(grid, grid.start, grid.end))
        self.assertEqual(path[0], (0, 0))
        self.assertEqual(path[-1], (2, 2))


if __name__ == "__main__":
    unittest.main()
