# ==============================================================================
# Файл: tests/test_level_builder.py
# Назначение: Юнит-тесты сборки уровня из частей: размещение, сшивание, build().
# ==============================================================================
import unittest

import numpy as np

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent))

from levelgen_core import LevelBuilder, LevelPartBuilder, PartAlign, Rect
from levelgen_core.core.errors import LevelGenerationError, ValidationError


def make_room(biome="forest", seed=1, width=20.0, height=20.0, count=20, fill_ratio=0.2):
    return (
        LevelPartBuilder(biome)
        .with_size(width, height)
        .with_count(count)
        .with_fill_ratio(fill_ratio)
        .with_seed(seed)
        .build()
    )


def bfs_reachable(level, start=0):
    seen, stack = {start}, [start]
    while stack:
        for nxt in level.neighbors(stack.pop()):
            if nxt not in seen:
                seen.add(nxt)
                stack.append(nxt)
    return seen


class TestPartBuilder(unittest.TestCase):

    def test_part_bounds_include_gap(self):
        part = make_room(width=20.0, height=10.0)
        self.assertEqual(part.bounds, Rect(-11.0, -6.0, 11.0, 6.0))
        self.assertGreater(part.radius, 0.0)
        self.assertEqual(part.biome, "forest")

    def test_explicit_points_skip_sampling(self):
        corners = [[-48.0, -4.8], [-48.0, 0.0], [48.0, 0.0], [48.0, -4.8]]
        part = (
            LevelPartBuilder("safe").with_size(120, 12).with_count(1)
            .with_fill_ratio(1.0).with_points(corners).build()
        )
        self.assertTrue(np.array_equal(part.points, np.array(corners)))
        self.assertGreaterEqual(len(part.edges), 3)

    def test_parts_compare_by_identity(self):
        a = make_room(seed=5)
        b = make_room(seed=5)
        self.assertEqual(a, a)
        self.assertNotEqual(a, b)
        self.assertTrue(np.array_equal(a.points, b.points))
        self.assertEqual(len({a, b, a}), 2)

    def test_invalid_parameters(self):
        with self.assertRaises(ValidationError):
            LevelPartBuilder("forest").with_size(0, 10).with_count(5).build()
        with self.assertRaises(ValidationError):
            LevelPartBuilder("swamp").with_size(10, 10).with_count(5).build()
        with self.assertRaises(ValidationError):
            LevelPartBuilder("forest").with_size(10, 10).with_count(5).with_fill_ratio(1.5).build()
        with self.assertRaises(ValidationError):
            LevelPartBuilder("forest").with_size(10, 10).with_count(0).build()


class TestLevelBuilder(unittest.TestCase):

    def setUp(self):
        self.room = make_room("forest", seed=1)
        self.cellar = make_room("cave", seed=2)

    def _two_rooms(self):
        builder = LevelBuilder()
        first = builder.add((0.0, 0.0), self.room)
        second = builder.add_after(first, PartAlign.RIGHT, self.cellar)
        return builder, first, second

    def test_add_returns_sequential_ids(self):
        builder, first, second = self._two_rooms()
        self.assertEqual((first, second), (0, 1))
        self.assertEqual(len(builder), 2)
        self.assertEqual(builder.node_count, self.room.node_count + self.cellar.node_count)

    def test_stitch_adds_exactly_two_edges(self):
        """Две комнаты справа друг от друга: ребер = сумма внутренних + 2."""
        print("\n[TEST] Running test_stitch_adds_exactly_two_edges...")
        builder, _, second = self._two_rooms()
        expected = len(self.room.edges) + len(self.cellar.edges) + 2
        self.assertEqual(len(builder.edges), expected)

        new_nodes = set(builder.part_nodes(second))
        cross = [e for e in builder.edges if (e[0] in new_nodes) != (e[1] in new_nodes)]
        self.assertEqual(len(cross), 2)
        print("[TEST] test_stitch_adds_exactly_two_edges: OK")

    def test_stitch_picks_globally_closest_pairs(self):
        builder, first, second = self._two_rooms()
        level = builder.build(2.0)
        pts = level.points_array
        old = list(builder.part_nodes(first))
        new = list(builder.part_nodes(second))

        candidates = []
        for n in new:
            d = np.hypot(*(pts[old] - pts[n]).T)
            for k in np.argsort(d, kind="stable")[:2]:
                candidates.append((float(d[k]), min(n, old[k]), max(n, old[k])))
        candidates.sort()
        expected = {(i, j) for _, i, j in candidates[:2]}

        new_set = set(new)
        cross = {e for e in level.edge_ids() if (e[0] in new_set) != (e[1] in new_set)}
        self.assertEqual(cross, expected)

    def test_offsets_for_every_align(self):
        builder = LevelBuilder()
        builder.add((0.0, 0.0), self.room)  # 22x22 с отступом
        flat = make_room(width=20.0, height=10.0)  # 22x12 с отступом

        self.assertEqual(builder.offset_after(0, "right", flat), (22.0, 0.0))
        self.assertEqual(builder.offset_after(0, "left", flat), (-22.0, 0.0))
        self.assertEqual(builder.offset_after(0, "up", flat), (0.0, 17.0))
        self.assertEqual(builder.offset_after(0, "down", flat), (0.0, -17.0))

    def test_add_after_places_parts_adjacent(self):
        builder, first, second = self._two_rooms()
        a, b = builder.part_bounds(first), builder.part_bounds(second)
        self.assertAlmostEqual(a.max_x, b.min_x)
        self.assertAlmostEqual(a.min_y, b.min_y)
        self.assertEqual(builder.bounds, a.union(b))

    def test_add_after_unknown_part(self):
        builder = LevelBuilder()
        builder.add((0.0, 0.0), self.room)
        with self.assertRaises(IndexError):
            builder.add_after(5, PartAlign.UP, self.cellar)
        with self.assertRaises(ValueError):
            builder.add_after(0, "sideways", self.cellar)

    def test_build_round_trip(self):
        """Сквозной сценарий: граф связный, веса = евклидовы длины, поля без NaN."""
        print("\n[TEST] Running test_build_round_trip...")
        builder, _, _ = self._two_rooms()
        level = builder.build(2.0)

        self.assertEqual(level.edge_count, len(self.room.edges) + len(self.cellar.edges) + 2)
        self.assertTrue(level.is_connected())
        self.assertEqual(len(bfs_reachable(level)), level.node_count)
        self.assertEqual(level.bounds, Rect(-11.0, -11.0, 33.0, 11.0))
        self.assertEqual(level.texture_size, (88, 44))

        pts = level.points_array
        e = level.edges_array
        self.assertTrue(np.allclose(level.edge_weights, np.hypot(*(pts[e[:, 0]] - pts[e[:, 1]]).T)))

        self.assertTrue(np.all(np.isfinite(level.height_field)))
        self.assertTrue(np.all(np.isfinite(level.biome_field)))
        self.assertTrue(np.all(np.isfinite(level.normal_field)))
        print("[TEST] test_build_round_trip: OK")

    def test_same_seeds_same_level(self):
        a, _, _ = self._two_rooms()
        b, _, _ = self._two_rooms()
        la, lb = a.build(1.0), b.build(1.0)
        self.assertTrue(np.array_equal(la.points_array, lb.points_array))
        self.assertTrue(np.array_equal(la.edges_array, lb.edges_array))
        self.assertTrue(np.array_equal(la.height_field, lb.height_field))

    def test_builder_is_single_use(self):
        builder, _, _ = self._two_rooms()
        builder.build(1.0)
        with self.assertRaises(LevelGenerationError):
            builder.build(1.0)
        with self.assertRaises(LevelGenerationError):
            builder.add((100.0, 0.0), self.room)

    def test_build_rejects_bad_input(self):
        with self.assertRaises(ValidationError):
            LevelBuilder().build(1.0)
        builder, _, _ = self._two_rooms()
        with self.assertRaises(ValidationError):
            builder.build(0.0)
        with self.assertRaises(ValidationError):
            builder.add((float("nan"), 0.0), self.room)

    def test_empty_part_gets_no_stitch_edges(self):
        empty = (
            LevelPartBuilder("safe").with_size(10, 10).with_count(1)
            .with_points([]).build()
        )
        builder = LevelBuilder()
        builder.add((0.0, 0.0), self.room)
        builder.add_after(0, PartAlign.DOWN, empty)
        self.assertEqual(len(builder.edges), len(self.room.edges))

        level = builder.build(1.0)
        self.assertEqual(level.node_count, self.room.node_count)
        self.assertEqual(len(level.part_bounds()), 2)


if __name__ == '__main__':
    unittest.main()
