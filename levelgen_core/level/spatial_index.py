# levelgen_core/level/spatial_index.py
from __future__ import annotations
from typing import Any, Hashable, List, Sequence, Tuple

import numpy as np
from scipy.spatial import cKDTree


class SpatialIndex:
    """
    Инкрементальный индекс k ближайших соседей: "вставить точки,
    спросить k ближайших среди всех уже вставленных".
    cKDTree статичен, поэтому дерево пересобирается лениво после вставок.
    """

    def __init__(self) -> None:
        self._points: List[Tuple[float, float]] = []
        self._ids: List[Hashable] = []
        self._tree: cKDTree | None = None

    def __len__(self) -> int:
        return len(self._points)

    def clear(self) -> None:
        self._points.clear()
        self._ids.clear()
        self._tree = None

    def insert(self, points: np.ndarray | Sequence[Sequence[float]], ids: Sequence[Hashable]) -> None:
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(points) != len(ids):
            raise ValueError(f"insert: {len(points)} points but {len(ids)} ids")
        self._points.extend((float(x), float(y)) for x, y in points)
        self._ids.extend(ids)
        self._tree = None

    def point(self, slot: int) -> Tuple[float, float]:
        return self._points[slot]

    def _ensure_tree(self) -> cKDTree:
        if self._tree is None:
            self._tree = cKDTree(np.asarray(self._points, dtype=np.float64))
        return self._tree

    def nearest(self, point: Sequence[float], k: int) -> List[Tuple[float, Any, int]]:
        """
        До k ближайших точек: список (расстояние, id, слот),
        по возрастанию расстояния. Пустой индекс -> пустой список.
        """
        k = min(int(k), len(self._points))
        if k <= 0:
            return []
        dist, slot = self._ensure_tree().query(np.asarray(point, dtype=np.float64)[:2], k=k)
        dist = np.atleast_1d(dist)
        slot = np.atleast_1d(slot)
        return [(float(d), self._ids[int(s)], int(s)) for d, s in zip(dist, slot)]
