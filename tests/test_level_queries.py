# ==============================================================================
# Файл: tests/test_level_queries.py
# Назначение: Юнит-тесты запросов к готовому уровню: выборка полей,
#             проходимость, ближайшие узлы/существа, маршруты.
# ==============================================================================
import math
import unittest

import numpy as np

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent))

from levelgen_core import LevelBuilder, LevelPartBuilder, PartAlign
from levelgen_core.algorithms.graph.pathfinding import path_length
from levelgen_core.algorithms.terrain.rasterize import (
    bilinear_sample, compute_normals, grid_shape, rasterize_height,
)
from levelgen_core.core.types import Rect
from levelgen_core.level.spatial_index import SpatialIndex


def corridor_level():
    """
    Один прямой коридор вдоль y = 0 от x = -8 до x = 8.
    Часть 20x4 + отступы -> границы (-11, -3)..(11, 3), при scale = 1
    строка сетки 3 ровно на оси коридора.
    """
    part = (
        LevelPartBuilder("safe").with_size(20, 4).with_count(1)
        .with_points([(-8.0, 0.0), (8.0, 0.0)]).build()
    )
    builder = LevelBuilder()
    builder.add((0.0, 0.0), part)
    return builder.build(1.0)


def diagonal_level(scale):
    """Наклонный коридор (-8, -4) -> (8, 5); концы попадают в узлы сетки при scale 1 и 4."""
    part = (
        LevelPartBuilder("safe").with_size(20, 20).with_count(1)
        .with_points([(-8.0, -4.0), (8.0, 5.0)]).build()
    )
    builder = LevelBuilder()
    builder.add((0.0, 0.0), part)
    return builder.build(scale)


def two_rooms_level(scale=4.0):
    room = LevelPartBuilder("forest").with_size(20, 20).with_count(20).with_fill_ratio(0.2).with_seed(1).build()
    cellar = LevelPartBuilder("cave").with_size(20, 20).with_count(20).with_fill_ratio(0.2).with_seed(2).build()
    builder = LevelBuilder()
    builder.add((0.0, 0.0), room)
    builder.add_after(0, PartAlign.RIGHT, cellar)
    return builder.build(scale)


class TestFieldHelpers(unittest.TestCase):

    def test_grid_shape(self):
        self.assertEqual(grid_shape(Rect(-11, -3, 11, 3), 1.0), (6, 22))
        self.assertEqual(grid_shape(Rect(0, 0, 10, 5), 2.0), (10, 20))
        self.assertEqual(grid_shape(Rect(0, 0, 0.01, 0.01), 1.0), (1, 1))

    def test_bilinear_sample_interpolates_and_clamps(self):
        field = np.array([[0.0, 1.0], [2.0, 3.0]], dtype=np.float32)
        self.assertAlmostEqual(bilinear_sample(field, 0.5, 0.5), 1.5)
        self.assertAlmostEqual(bilinear_sample(field, -5.0, -5.0), 0.0)
        self.assertAlmostEqual(bilinear_sample(field, 10.0, 10.0), 3.0)

        multi = np.stack([field, field * 2], axis=-1)
        self.assertTrue(np.allclose(bilinear_sample(multi, 1.0, 0.0), [1.0, 2.0]))

    def test_height_profile(self):
        """Центр дороги = -road_width, край дороги = 0, дальше рост вверх."""
        mask = np.zeros((1, 20), dtype=bool)
        mask[0, 0] = True
        radius = np.full((1, 20), 8.0, dtype=np.float32)  # rw = 2, max_h = 2
        h = rasterize_height(mask, radius, 1.0)

        self.assertAlmostEqual(float(h[0, 0]), -2.0, places=5)
        self.assertAlmostEqual(float(h[0, 2]), 0.0, places=5)
        self.assertAlmostEqual(float(h[0, 4]), 3.0, places=4)
        self.assertTrue(np.all(np.diff(h[0]) > 0))

    def test_height_without_edges_is_finite(self):
        h = rasterize_height(np.zeros((4, 5), dtype=bool), np.ones((4, 5), dtype=np.float32), 1.0)
        self.assertTrue(np.all(np.isfinite(h)))
        self.assertTrue(np.all(h > 0))

    def test_height_with_degenerate_radius(self):
        """Нулевой и крошечный радиус: max_height зажат снизу, NaN/inf не появляются."""
        print("\n[TEST] Running test_height_with_degenerate_radius...")
        mask = np.zeros((3, 5), dtype=bool)
        mask[1, :] = True

        for radius in (0.0, 3e-4, 1e-12):
            field = np.full((3, 5), radius, dtype=np.float32)
            h = rasterize_height(mask, field, 1.0)
            self.assertTrue(np.all(np.isfinite(h)), f"radius={radius}")
            self.assertTrue(np.all(h[mask] <= 0.0), f"radius={radius}")
            self.assertTrue(np.all(h[~mask] > 0.0), f"radius={radius}")
        print("[TEST] test_height_with_degenerate_radius: OK")

    def test_height_with_road_narrower_than_cell(self):
        """road_width чуть меньше клетки: отрицательна только сама линия."""
        mask = np.zeros((1, 6), dtype=bool)
        mask[0, 0] = True
        radius = np.full((1, 6), 3.9, dtype=np.float32)  # rw = 0.975 < 1 клетки
        h = rasterize_height(mask, radius, 1.0)

        self.assertTrue(np.all(np.isfinite(h)))
        self.assertAlmostEqual(float(h[0, 0]), -0.975, places=5)
        self.assertTrue(np.all(h[0, 1:] > 0.0))

    def test_normals_point_downhill(self):
        h = np.tile(np.arange(5, dtype=np.float32), (3, 1))  # растет по x
        n = compute_normals(h, 1.0)
        self.assertTrue(np.allclose(n[..., 0], -1.0))
        self.assertTrue(np.allclose(n[..., 1], 0.0))
        self.assertTrue(np.allclose(compute_normals(np.zeros((3, 3)), 1.0), 0.0))


class TestLevelFields(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.level = two_rooms_level()

    def test_nodes_lie_inside_corridors(self):
        for p in self.level.points():
            self.assertLess(self.level.height(p), 0.0)

    def test_sampling_outside_bounds_is_clamped(self):
        b = self.level.bounds
        far = self.level.height((b.min_x - 1000.0, b.min_y - 1000.0))
        corner = self.level.height((b.min_x, b.min_y))
        self.assertTrue(math.isfinite(far))
        self.assertAlmostEqual(far, corner)
        self.assertEqual(len(self.level.biome((1e9, -1e9))), 9)

    def test_biome_blends_between_parts(self):
        self.assertEqual(self.level.dominant_biome((0.0, 0.0)), "forest")
        self.assertEqual(self.level.dominant_biome((22.0, 0.0)), "cave")

        weights = self.level.biome_weights((11.0, 0.0))
        self.assertGreater(weights["forest"], 0.2)
        self.assertGreater(weights["cave"], 0.2)
        self.assertAlmostEqual(sum(weights.values()), 1.0, places=3)

    def test_derived_widths(self):
        pos = (0.0, 0.0)
        r = self.level.radius(pos)
        self.assertAlmostEqual(self.level.road_width(pos), 0.25 * r, places=5)
        self.assertAlmostEqual(self.level.max_height(pos), 0.25 * r, places=5)

    def test_3d_positions_use_xz(self):
        x, y = self.level.node(0)
        self.assertAlmostEqual(self.level.height((x, 123.0, y)), self.level.height((x, y)))
        n = self.level.normal((x, 0.0, y))
        self.assertAlmostEqual(float(np.linalg.norm(n)), 1.0, places=5)
        self.assertGreater(n[1], 0.0)

    def test_nearest_terrain(self):
        x, y = self.level.node(5)
        self.assertEqual(self.level.nearest_id_terrain(1, (x + 1e-3, y))[0], 5)
        found = self.level.nearest_terrain(3, (x, y))
        self.assertEqual(len(found), 3)
        self.assertEqual(found[0], (x, y))
        self.assertEqual(len(self.level.nearest_terrain(10_000, (x, y))), self.level.node_count)

    def test_find_path_follows_edges(self):
        goal = self.level.node_count - 1
        path = self.level.find_path(0, goal)
        self.assertIsNotNone(path)
        self.assertEqual((path[0], path[-1]), (0, goal))
        for a, b in zip(path, path[1:]):
            self.assertIn(b, self.level.neighbors(a))

        straight = math.dist(self.level.node(0), self.level.node(goal))
        self.assertGreaterEqual(path_length(self.level.points_array, path), straight - 1e-9)
        self.assertEqual(path_length(self.level.points_array, [0]), 0.0)


class TestCanWalk(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.level = corridor_level()
        cls.rw = cls.level.road_width((0.0, 0.0))

    def test_corridor_geometry(self):
        self.assertEqual(self.level.texture_size, (22, 6))
        self.assertEqual(self.level.edge_count, 1)
        self.assertAlmostEqual(self.level.height((0.0, 0.0)), -self.rw, places=4)

        self.assertEqual(self.level.world_to_grid((0.0, 0.0)), (11.0, 3.0))
        self.assertEqual(self.level.grid_to_world(11.0, 3.0), (0.0, 0.0))
        self.assertEqual(self.level.world_to_grid((-50.0, 50.0)), (0.0, 5.0))
        self.assertTrue(self.level.bounds.contains(0.0, 0.0))

    def test_narrow_creature_walks_along_corridor(self):
        self.assertTrue(self.level.can_walk((-5.0, 0.0), (5.0, 0.0), 0.5 * self.rw))
        self.assertTrue(self.level.can_walk((-5.0, 0.0), (5.0, 0.0), 0.9 * self.rw))

    def test_wide_creature_is_blocked(self):
        self.assertFalse(self.level.can_walk((-5.0, 0.0), (5.0, 0.0), 1.5 * self.rw))

    def test_leaving_corridor_is_blocked(self):
        self.assertFalse(self.level.can_walk((0.0, 0.0), (0.0, 2.9), 0.5))

    def test_zero_length_walk(self):
        self.assertTrue(self.level.can_walk((0.0, 0.0), (0.0, 0.0), 0.5))

    def test_normal_points_back_to_road(self):
        n = self.level.normal_2d((0.0, 1.5))
        self.assertLess(n[1], 0.0)
        self.assertAlmostEqual(float(np.hypot(*n)), 1.0, places=5)

    def test_route_reaches_goal(self):
        route = self.level.route((-7.0, 0.0), (7.0, 0.0), 0.5)
        self.assertEqual(route[-1], (7.0, 0.0))


class TestDiagonalCorridor(unittest.TestCase):
    """Осевая линия по Брезенхэму: ширина вдоль ребра занижена не больше чем на пару клеток."""

    START = (-4.8, -2.2)
    TARGET = (4.8, 3.2)

    def test_walk_radius_passes_along_edge(self):
        print("\n[TEST] Running test_walk_radius_passes_along_edge...")
        for scale in (1.0, 4.0):
            level = diagonal_level(scale)
            rw = level.road_width((0.0, 0.0))
            radius = level.walk_radius((0.0, 0.0))
            self.assertGreater(radius, 0.0)
            self.assertAlmostEqual(radius, rw - 2.0 / scale, places=5)
            self.assertTrue(level.can_walk(self.START, self.TARGET, radius), f"scale={scale}")
            self.assertTrue(level.can_walk(self.TARGET, self.START, radius), f"scale={scale}")
        print("[TEST] test_walk_radius_passes_along_edge: OK")

    def test_finer_grid_loses_less_width(self):
        coarse, fine = diagonal_level(1.0), diagonal_level(4.0)
        self.assertGreater(fine.walk_radius((0.0, 0.0)), coarse.walk_radius((0.0, 0.0)))

    def test_wider_than_road_is_blocked(self):
        for scale in (1.0, 4.0):
            level = diagonal_level(scale)
            rw = level.road_width((0.0, 0.0))
            self.assertFalse(level.can_walk(self.START, self.TARGET, 1.2 * rw), f"scale={scale}")


class TestCreatures(unittest.TestCase):

    def test_spatial_index_orders_by_distance(self):
        index = SpatialIndex()
        self.assertEqual(index.nearest((0.0, 0.0), 3), [])
        index.insert([(5.0, 0.0), (1.0, 0.0), (3.0, 0.0)], ["far", "near", "mid"])
        ids = [key for _, key, _ in index.nearest((0.0, 0.0), 2)]
        self.assertEqual(ids, ["near", "mid"])
        with self.assertRaises(ValueError):
            index.insert([(0.0, 0.0)], [])

    def test_nearest_creatures_rebuilt_per_frame(self):
        level = corridor_level()
        level.add_creature("wolf", (4.0, 0.0, 0.0))
        level.add_creature("bat", (-1.0, 0.0))
        found = level.nearest_creatures(1, (0.0, 0.0))
        self.assertEqual(found, [("bat", (-1.0, 0.0))])

        level.clear_creatures()
        self.assertEqual(level.nearest_creatures(2, (0.0, 0.0)), [])


if __name__ == '__main__':
    unittest.main()
