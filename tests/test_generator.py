import unittest
from collections import deque

from labyrinth.generator import CarveStep, GrowingTreeGenerator
from labyrinth.grid import Direction, Grid


def reachable_from(grid, origin):
    seen = {origin}
    queue = deque([origin])
    while queue:
        x, y = queue.popleft()
        for neighbor in grid.open_neighbors(x, y):
            if neighbor not in seen:
                seen.add(neighbor)
                queue.append(neighbor)
    return seen


class GrowingTreeGeneratorTests(unittest.TestCase):
    SIZES = [(1, 1), (1, 6), (6, 1), (2, 2), (4, 7), (10, 10)]

    def test_carves_a_spanning_tree(self) -> None:
        for width, height in self.SIZES:
            for seed in range(5):
                with self.subTest(width=width, height=height, seed=seed):
                    grid = Grid(width, height)
                    steps = GrowingTreeGenerator(grid, seed).run()
                    self.assertEqual(len(steps), width * height - 1)
                    self.assertEqual(grid.cleared_pairs(), width * height - 1)
                    self.assertEqual(len(reachable_from(grid, grid.start)), width * height)

    def test_walls_are_symmetric(self) -> None:
        grid = Grid(8, 6)
        GrowingTreeGenerator(grid, 11, bias=0.3).run()
        for y in range(grid.height):
            for x in range(grid.width):
                if x + 1 < grid.width:
                    self.assertEqual(
                        grid.has_wall(x, y, Direction.EAST),
                        grid.has_wall(x + 1, y, Direction.WEST),
                    )
                if y + 1 < grid.height:
                    self.assertEqual(
                        grid.has_wall(x, y, Direction.SOUTH),
                        grid.has_wall(x, y + 1, Direction.NORTH),
                    )

    def test_same_seed_same_maze(self) -> None:
        for bias in (0.0, 0.5, 0.8, 1.0):
            with self.subTest(bias=bias):
                first, second = Grid(7, 5), Grid(7, 5)
                steps_a = GrowingTreeGenerator(first, 1234, bias=bias).run()
                steps_b = GrowingTreeGenerator(second, 1234, bias=bias).run()
                self.assertEqual(steps_a, steps_b)
                self.assertEqual(first.to_dict(), second.to_dict())

    def test_each_step_grows_from_the_carved_tree(self) -> None:
        grid = Grid(6, 6)
        carved = {(0, 0)}
        for step in GrowingTreeGenerator(grid, 3):
            self.assertIsInstance(step, CarveStep)
            self.assertIn((step.from_x, step.from_y), carved)
            self.assertNotIn((step.to_x, step.to_y), carved)
            self.assertEqual(abs(step.from_x - step.to_x) + abs(step.from_y - step.to_y), 1)
            self.assertIn((step.to_x, step.to_y), set(grid.open_neighbors(step.from_x, step.from_y)))
            carved.add((step.to_x, step.to_y))
        self.assertEqual(len(carved), 36)

    def test_three_by_three_seed_42(self) -> None:
        grid = Grid(3, 3)
        generator = GrowingTreeGenerator(grid, 42, bias=0.8)
        steps = generator.run()

        self.assertEqual(len(steps), 8)
        self.assertEqual(generator.steps, 8)
        self.assertEqual(grid.start, (0, 0))
        self.assertEqual(grid.end, (2, 2))
        self.assertEqual(len(reachable_from(grid, (0, 0))), 9)
        self.assertTrue(grid.sealed)

    def test_single_cell_grid(self) -> None:
        grid = Grid(1, 1)
        generator = GrowingTreeGenerator(grid, 0)
        self.assertEqual(generator.run(), [])
        self.assertTrue(generator.finished)
        self.assertEqual(grid.start, (0, 0))
        self.assertEqual(grid.end, (0, 0))

    def test_exhausted_generator_stays_exhausted(self) -> None:
        generator = GrowingTreeGenerator(Grid(3, 2), 9)
        self.assertFalse(generator.finished)
        generator.run()
        self.assertTrue(generator.finished)
        with self.assertRaises(StopIteration):
            next(generator)
        self.assertEqual(generator.run(), [])

    def test_grid_is_sealed_only_after_last_step(self) -> None:
        grid = Grid(4, 4)
        generator = GrowingTreeGenerator(grid, 5)
        for _ in range(15):
            next(generator)
            self.assertFalse(grid.sealed)
        with self.assertRaises(StopIteration):
            next(generator)
        self.assertTrue(grid.sealed)
        self.assertEqual(grid.end, (3, 3))

    def test_regenerating_resets_the_grid(self) -> None:
        grid = Grid(5, 5)
        GrowingTreeGenerator(grid, 1).run()
        GrowingTreeGenerator(grid, 2).run()
        self.assertEqual(grid.cleared_pairs(), 24)
        self.assertEqual(len(reachable_from(grid, grid.start)), 25)

    def test_pure_newest_bias_walks_like_depth_first_search(self) -> None:
        grid = Grid(6, 6)
        steps = GrowingTreeGenerator(grid, 8, bias=1.0).run()
        stack = [(0, 0)]
        for step in steps:
            while stack and stack[-1] != (step.from_x, step.from_y):
                stack.pop()
            self.assertTrue(stack, f"{step} does not grow from the current branch")
            stack.append((step.to_x, step.to_y))

    def test_bias_must_be_a_probability(self) -> None:
        for bias in (-0.1, 1.5):
            with self.assertRaises(ValueError):
                GrowingTreeGenerator(Grid(2, 2), bias=bias)


if __name__ == "__main__":
    unittest.main()
