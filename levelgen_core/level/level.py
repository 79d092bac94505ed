# ==============================================================================
# Файл: levelgen_core/level/level.py
# Назначение: Готовый уровень - неизменяемый снимок графа и полей
#             плюс запросы к нему (высота, биом, ближайшие узлы, проходимость).
# ==============================================================================
from __future__ import annotations
import logging
import math
from typing import Any, Dict, Hashable, Iterator, List, Sequence, Tuple

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial import cKDTree

from ..algorithms.graph.pathfinding import find_path
from ..algorithms.terrain.rasterize import bilinear_sample, march_segment
from ..core.constants import (
    BIOME_KIND_TO_CHANNEL, CHANNEL_RADIUS, MAX_HEIGHT_FACTOR, ROAD_WIDTH_FACTOR, WALK_TOLERANCE_CELLS,
)
from ..core.types import Rect
from .spatial_index import SpatialIndex

logger = logging.getLogger(__name__)


def count_components(n: int, edges: np.ndarray) -> int:
    if n == 0:
        return 0
    edges = np.asarray(edges, dtype=np.int64).reshape(-1, 2)
    data = np.ones(len(edges), dtype=np.int8)
    mat = coo_matrix((data, (edges[:, 0], edges[:, 1])), shape=(n, n))
    count, _ = connected_components(mat, directed=False)
    return int(count)


def _xy(pos: Sequence[float]) -> Tuple[float, float]:
    """(x, y) или (x, высота, z) -> точка на плоскости уровня."""
    if len(pos) == 3:
        return float(pos[0]), float(pos[2])
    return float(pos[0]), float(pos[1])


class Level:
    """
    Результат LevelBuilder.build(). Все поля только для чтения;
    единственное изменяемое состояние - индекс существ, который
    вызывающий код перестраивает каждый кадр.

    Сетки: height (H, W), biome (H, W, C), normals (H, W, 2).
    Клетка (row, col) соответствует мировой точке bounds.min + (col, row) / scale.
    """

    def __init__(
            self,
            points: np.ndarray,
            edges: np.ndarray,
            bounds: Rect,
            scale: float,
            height: np.ndarray,
            biome: np.ndarray,
            normals: np.ndarray,
            part_bounds: List[Rect],
            part_biomes: List[str],
            part_radii: List[float],
    ):
        self._points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        self._edges = np.asarray(edges, dtype=np.int64).reshape(-1, 2)
        self._bounds = bounds
        self.scale = float(scale)
        self._height = height
        self._biome = biome
        self._normals = normals
        self._part_bounds = list(part_bounds)
        self._part_biomes = list(part_biomes)
        self._part_radii = list(part_radii)

        for arr in (self._points, self._edges, self._height, self._biome, self._normals):
            arr.setflags(write=False)

        d = self._points[self._edges[:, 0]] - self._points[self._edges[:, 1]]
        self._weights = np.hypot(d[:, 0], d[:, 1]) if len(d) else np.empty(0)
        self._weights.setflags(write=False)

        self._adjacency: List[List[Tuple[int, float]]] = [[] for _ in range(len(self._points))]
        for (i, j), w in zip(self._edges, self._weights):
            self._adjacency[int(i)].append((int(j), float(w)))
            self._adjacency[int(j)].append((int(i), float(w)))

        self._kd = cKDTree(self._points) if len(self._points) else None
        self._creatures = SpatialIndex()

    # ==========================================================================
    # --- Граф ---
    # ==========================================================================

    @property
    def bounds(self) -> Rect:
        return self._bounds

    @property
    def node_count(self) -> int:
        return len(self._points)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    @property
    def edge_weights(self) -> np.ndarray:
        return self._weights

    @property
    def points_array(self) -> np.ndarray:
        return self._points

    @property
    def edges_array(self) -> np.ndarray:
        return self._edges

    def points(self) -> Iterator[Tuple[float, float]]:
        for x, y in self._points:
            yield float(x), float(y)

    def edges(self) -> Iterator[Tuple[Tuple[float, float], Tuple[float, float]]]:
        for i, j in self._edges:
            yield self.node(int(i)), self.node(int(j))

    def edge_ids(self) -> Iterator[Tuple[int, int]]:
        for i, j in self._edges:
            yield int(i), int(j)

    def node(self, idx: int) -> Tuple[float, float]:
        x, y = self._points[idx]
        return float(x), float(y)

    def neighbors(self, idx: int) -> List[int]:
        return [n for n, _ in self._adjacency[idx]]

    def part_bounds(self) -> List[Rect]:
        return list(self._part_bounds)

    def part_biomes(self) -> List[str]:
        return list(self._part_biomes)

    def part_radii(self) -> List[float]:
        return list(self._part_radii)

    def connected_components(self) -> int:
        return count_components(len(self._points), self._edges)

    def is_connected(self) -> bool:
        return self.connected_components() <= 1

    # ==========================================================================
    # --- Сетка ---
    # ==========================================================================

    @property
    def height_field(self) -> np.ndarray:
        return self._height

    @property
    def biome_field(self) -> np.ndarray:
        return self._biome

    @property
    def normal_field(self) -> np.ndarray:
        return self._normals

    @property
    def texture_size(self) -> Tuple[int, int]:
        """(W, H) в клетках."""
        h, w = self._height.shape
        return w, h

    @property
    def pixel_size(self) -> float:
        return 1.0 / self.scale

    def world_to_grid(self, pos: Sequence[float]) -> Tuple[float, float]:
        x, y = _xy(pos)
        w, h = self.texture_size
        gx = (x - self._bounds.min_x) * self.scale
        gy = (y - self._bounds.min_y) * self.scale
        return min(max(gx, 0.0), w - 1.0), min(max(gy, 0.0), h - 1.0)

    def grid_to_world(self, gx: float, gy: float) -> Tuple[float, float]:
        return self._bounds.min_x + gx / self.scale, self._bounds.min_y + gy / self.scale

    # ==========================================================================
    # --- Выборка полей ---
    # ==========================================================================

    def height(self, pos: Sequence[float]) -> float:
        """< 0 - внутри коридора, > 0 - поднимающийся рельеф."""
        return float(bilinear_sample(self._height, *self.world_to_grid(pos)))

    def biome(self, pos: Sequence[float]) -> np.ndarray:
        """Вектор каналов: [радиус, веса биомов...]."""
        return bilinear_sample(self._biome, *self.world_to_grid(pos))

    def biome_weights(self, pos: Sequence[float]) -> Dict[str, float]:
        px = self.biome(pos)
        return {kind: float(px[ch]) for kind, ch in BIOME_KIND_TO_CHANNEL.items()}

    def dominant_biome(self, pos: Sequence[float]) -> str:
        weights = self.biome_weights(pos)
        return max(weights, key=weights.get)

    def radius(self, pos: Sequence[float]) -> float:
        return float(self.biome(pos)[CHANNEL_RADIUS])

    def road_width(self, pos: Sequence[float]) -> float:
        return ROAD_WIDTH_FACTOR * self.radius(pos)

    def max_height(self, pos: Sequence[float]) -> float:
        return MAX_HEIGHT_FACTOR * self.radius(pos) - self.road_width(pos)

    def walk_radius(self, pos: Sequence[float]) -> float:
        """Наибольший радиус существа, которому can_walk гарантированно разрешает идти вдоль ребер."""
        return max(self.road_width(pos) - WALK_TOLERANCE_CELLS * self.pixel_size, 0.0)

    def normal_2d(self, pos: Sequence[float]) -> np.ndarray:
        """Единичное направление "под уклон" (к ближайшей дороге), либо 0."""
        v = np.asarray(bilinear_sample(self._normals, *self.world_to_grid(pos)), dtype=np.float32)
        n = float(np.hypot(v[0], v[1]))
        return v / n if n > 0.0 else np.zeros(2, dtype=np.float32)

    def normal(self, pos: Sequence[float]) -> np.ndarray:
        """Нормаль поверхности в 3D (x, y-вверх, z)."""
        gx, gy = self.world_to_grid(pos)
        step = 1.0
        dx = (bilinear_sample(self._height, gx + step, gy) - bilinear_sample(self._height, gx - step, gy))
        dz = (bilinear_sample(self._height, gx, gy + step) - bilinear_sample(self._height, gx, gy - step))
        n = np.array([-dx * 0.5 * self.scale, 1.0, -dz * 0.5 * self.scale], dtype=np.float32)
        return n / np.linalg.norm(n)

    # ==========================================================================
    # --- Ближайшие узлы и существа ---
    # ==========================================================================

    def nearest_id_terrain(self, k: int, pos: Sequence[float]) -> List[int]:
        if self._kd is None or k <= 0:
            return []
        k = min(int(k), len(self._points))
        _, idx = self._kd.query(np.asarray(_xy(pos)), k=k)
        return [int(i) for i in np.atleast_1d(idx)]

    def nearest_terrain(self, k: int, pos: Sequence[float]) -> List[Tuple[float, float]]:
        return [self.node(i) for i in self.nearest_id_terrain(k, pos)]

    def clear_creatures(self) -> None:
        self._creatures.clear()

    def add_creature(self, key: Hashable, pos: Sequence[float]) -> None:
        self._creatures.insert([_xy(pos)], [key])

    def nearest_creatures(self, k: int, pos: Sequence[float]) -> List[Tuple[Any, Tuple[float, float]]]:
        return [
            (key, self._creatures.point(slot))
            for _, key, slot in self._creatures.nearest(_xy(pos), k)
        ]

    # ==========================================================================
    # --- Проходимость и маршруты ---
    # ==========================================================================

    def can_walk(self, start: Sequence[float], target: Sequence[float], radius: float) -> bool:
        """
        Можно ли пройти по прямой от start до target существу радиуса `radius`,
        не выходя из коридора (полуширина -height нигде не меньше радиуса).

        Осевые линии коридоров нарисованы Брезенхэмом по клеткам, поэтому
        на наклонных ребрах ширина вдоль оси меньше road_width на величину
        до WALK_TOLERANCE_CELLS клеток. Существо с радиусом
        <= road_width - WALK_TOLERANCE_CELLS / scale проходит вдоль любого ребра.
        """
        ax, ay = _xy(start)
        bx, by = _xy(target)
        return bool(march_segment(
            self._height, ax, ay, bx, by,
            self._bounds.min_x, self._bounds.min_y,
            self.scale, float(radius), self.pixel_size,
        ))

    def find_path(self, start_node: int, goal_node: int) -> List[int] | None:
        return find_path(self._points, self._adjacency, int(start_node), int(goal_node))

    def route(self, start: Sequence[float], goal: Sequence[float], radius: float) -> List[Tuple[float, float]]:
        """
        Путь из точки в точку: узлы графа от ближайшего к start до ближайшего
        к goal плюс сама цель. Промежуточные точки, до которых можно дойти
        напрямую, пропускаются.
        """
        start_ids = self.nearest_id_terrain(1, start)
        goal_ids = self.nearest_id_terrain(1, goal)
        if not start_ids or not goal_ids:
            return [_xy(goal)]
        path = self.find_path(start_ids[0], goal_ids[0]) or []
        waypoints = [self.node(i) for i in path] + [_xy(goal)]

        result: List[Tuple[float, float]] = []
        pos = _xy(start)
        i = 0
        while i < len(waypoints):
            # Самая дальняя точка, видимая напрямую
            j = len(waypoints) - 1
            while j > i and not self.can_walk(pos, waypoints[j], radius):
                j -= 1
            result.append(waypoints[j])
            pos = waypoints[j]
            i = j + 1
        return result

    def __repr__(self) -> str:
        w, h = self.texture_size
        return (
            f"Level(nodes={self.node_count}, edges={self.edge_count}, "
            f"grid={w}x{h}, scale={self.scale}, parts={len(self._part_bounds)})"
        )
