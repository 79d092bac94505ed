# ==============================================================================
# Файл: levelgen_core/level/builder.py
# Назначение: Сборщик уровня. Принимает части, размещает их в мире,
#             сшивает с уже размещенными и в конце "запекает" поля (build).
# ==============================================================================
from __future__ import annotations
import logging
import math
import time
from typing import List, Tuple

import numpy as np

from ..algorithms.terrain.rasterize import (
    compute_normals, grid_shape, rasterize_biomes, rasterize_edges, rasterize_height,
)
from ..core.constants import CHANNEL_RADIUS, STITCH_EDGES, STITCH_NEIGHBOURS
from ..core.errors import LevelGenerationError, ValidationError
from ..core.types import Edge, LevelPart, PartAlign, Rect
from .level import Level, count_components
from .spatial_index import SpatialIndex

logger = logging.getLogger(__name__)


class LevelBuilder:
    """
    Одноразовый построитель: add()/add_after() сколько угодно раз,
    затем ровно один build(scale) -> неизменяемый Level.
    """

    def __init__(self) -> None:
        self._index = SpatialIndex()
        self._points: List[Tuple[float, float]] = []
        self._edges: List[Edge] = []
        self._part_bounds: List[Rect] = []
        self._part_biomes: List[str] = []
        self._part_radii: List[float] = []
        self._part_nodes: List[Tuple[int, int]] = []
        self._bounds: Rect | None = None
        self._consumed = False

    # --- Служебное ---

    def _check_alive(self) -> None:
        if self._consumed:
            raise LevelGenerationError("LevelBuilder has already been built")

    def __len__(self) -> int:
        return len(self._part_bounds)

    @property
    def node_count(self) -> int:
        return len(self._points)

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    @property
    def bounds(self) -> Rect | None:
        return self._bounds

    def part_bounds(self, part_id: int) -> Rect:
        return self._part_bounds[part_id]

    def part_nodes(self, part_id: int) -> range:
        start, stop = self._part_nodes[part_id]
        return range(start, stop)

    def _insert_nodes(self, points: np.ndarray) -> List[int]:
        """Единственное место, где выдаются глобальные индексы узлов."""
        base = len(self._points)
        self._points.extend((float(x), float(y)) for x, y in points)
        return list(range(base, base + len(points)))

    def _stitch(self, new_points: np.ndarray, new_ids: List[int]) -> List[Edge]:
        """
        Для каждой новой точки - 2 ближайших уже размещенных (до вставки),
        из всех кандидатов берем 2 глобально ближайшие пары.
        """
        if len(self._index) == 0 or len(new_ids) == 0:
            return []

        candidates = []
        for pos, node in zip(new_points, new_ids):
            for dist, other, _ in self._index.nearest(pos, STITCH_NEIGHBOURS):
                candidates.append((dist, node, other))
        candidates.sort()

        stitched: List[Edge] = []
        for _, node, other in candidates[:STITCH_EDGES]:
            stitched.append((min(node, other), max(node, other)))
        return stitched

    # --- Публичное API ---

    def add(self, offset, part: LevelPart) -> int:
        """Размещает часть со смещением `offset`, возвращает id части."""
        self._check_alive()
        ox, oy = float(offset[0]), float(offset[1])
        if not (math.isfinite(ox) and math.isfinite(oy)):
            raise ValidationError(f"Offset must be finite, got {offset}")

        points = np.asarray(part.points, dtype=np.float64).reshape(-1, 2) + np.array([ox, oy])
        ids = self._insert_nodes(points)
        base = ids[0] if ids else len(self._points)

        for i, j in part.edges:
            self._edges.append((base + int(i), base + int(j)))

        stitched = self._stitch(points, ids)
        self._edges.extend(stitched)

        self._index.insert(points, ids)

        rect = part.bounds.translate(ox, oy)
        self._bounds = rect if self._bounds is None else self._bounds.union(rect)
        self._part_bounds.append(rect)
        self._part_biomes.append(part.biome)
        self._part_radii.append(float(part.radius))
        self._part_nodes.append((base, base + len(ids)))

        part_id = len(self._part_bounds) - 1
        logger.info(
            "Part #%d ('%s') added at (%.1f, %.1f): nodes=%d, stitched=%d",
            part_id, part.biome, ox, oy, len(ids), len(stitched),
        )
        return part_id

    def offset_after(self, after_id: int, align: PartAlign | str, part: LevelPart) -> Tuple[float, float]:
        """Смещение, при котором часть встает вплотную к части `after_id`."""
        if not 0 <= after_id < len(self._part_bounds):
            raise IndexError(f"Part id {after_id} is out of range (have {len(self._part_bounds)} parts)")
        align = PartAlign.parse(align)
        after = self._part_bounds[after_id]

        (aw, ah), (pw, ph) = after.size, part.bounds.size
        edge_x, edge_y = 0.5 * (aw + pw), 0.5 * (ah + ph)
        (acx, acy), (pcx, pcy) = after.center, part.bounds.center
        ox, oy = acx - pcx, acy - pcy

        if align is PartAlign.LEFT:
            ox -= edge_x
        elif align is PartAlign.RIGHT:
            ox += edge_x
        elif align is PartAlign.UP:
            oy += edge_y
        else:
            oy -= edge_y
        return ox, oy

    def add_after(self, after_id: int, align: PartAlign | str, part: LevelPart) -> int:
        self._check_alive()
        return self.add(self.offset_after(after_id, align, part), part)

    def build(self, scale: float) -> Level:
        """Запекает граф и метаданные частей в поля и возвращает Level."""
        self._check_alive()
        scale = float(scale)
        if not (scale > 0.0 and math.isfinite(scale)):
            raise ValidationError(f"Scale must be > 0, got {scale}")
        if not self._part_bounds:
            raise ValidationError("Cannot build a level without parts")

        t0 = time.perf_counter()
        points = np.asarray(self._points, dtype=np.float64).reshape(-1, 2)
        edges = np.asarray(self._edges, dtype=np.int64).reshape(-1, 2)

        components = count_components(len(points), edges)
        if components > 1:
            raise LevelGenerationError(f"Level graph is disconnected: {components} components")

        bounds = self._bounds
        shape = grid_shape(bounds, scale)
        logger.info("Rasterizing level fields: grid=%dx%d, scale=%.2f", shape[1], shape[0], scale)

        biome = rasterize_biomes(
            bounds, scale, zip(self._part_bounds, self._part_biomes, self._part_radii)
        )
        mask = rasterize_edges(shape, bounds, scale, points, edges)
        height = rasterize_height(mask, biome[..., CHANNEL_RADIUS], scale)
        normals = compute_normals(height, scale)

        level = Level(
            points=points,
            edges=edges,
            bounds=bounds,
            scale=scale,
            height=height,
            biome=biome,
            normals=normals,
            part_bounds=list(self._part_bounds),
            part_biomes=list(self._part_biomes),
            part_radii=list(self._part_radii),
        )
        self._consumed = True
        self._index.clear()

        logger.info(
            "Level built in %.2fs: parts=%d, nodes=%d, edges=%d",
            time.perf_counter() - t0, len(self._part_bounds), len(points), len(edges),
        )
        return level
