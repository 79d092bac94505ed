# ==============================================================================
# Файл: levelgen_core/algorithms/graph/proximity.py
# Назначение: Граф "близости" для части уровня:
#             Делоне -> Габриэль -> MST + доля дополнительных ребер.
# ==============================================================================
from __future__ import annotations
import logging
import math
from typing import List, Tuple

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import minimum_spanning_tree
from scipy.spatial import Delaunay, QhullError, cKDTree

from ...core.constants import GABRIEL_TOLERANCE
from ...core.errors import TriangulationError, ValidationError
from ...core.types import Edge

logger = logging.getLogger(__name__)


def _canonical(edges: np.ndarray) -> np.ndarray:
    """(i, j) с i < j, без повторов, в лексикографическом порядке."""
    if edges.size == 0:
        return np.empty((0, 2), dtype=np.int64)
    edges = np.sort(edges.astype(np.int64), axis=1)
    return np.unique(edges, axis=0)


def edge_lengths(points: np.ndarray, edges: np.ndarray) -> np.ndarray:
    if len(edges) == 0:
        return np.empty(0, dtype=np.float64)
    d = points[edges[:, 0]] - points[edges[:, 1]]
    return np.hypot(d[:, 0], d[:, 1])


def delaunay_edges(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Ребра триангуляции Делоне, каждое ровно один раз, и их длины.
    Вырожденные наборы (меньше 3 точек, дубликаты, все точки на одной
    прямой) -> TriangulationError.
    """
    points = np.asarray(points, dtype=np.float64)
    n = len(points)
    if n < 3:
        raise TriangulationError(f"Cannot triangulate {n} point(s): at least 3 required")
    if len(np.unique(points, axis=0)) != n:
        raise TriangulationError("Cannot triangulate: point set contains duplicates")

    try:
        tri = Delaunay(points)
    except QhullError as e:
        raise TriangulationError(f"Cannot triangulate: degenerate point set ({e})") from e

    simplices = tri.simplices
    used = np.unique(simplices)
    if len(used) != n:
        raise TriangulationError(
            f"Cannot triangulate: {n - len(used)} point(s) left out of the triangulation"
        )

    raw = np.concatenate([
        simplices[:, [0, 1]],
        simplices[:, [1, 2]],
        simplices[:, [2, 0]],
    ])
    edges = _canonical(raw)
    return edges, edge_lengths(points, edges)


def gabriel_edges(points: np.ndarray, edges: np.ndarray) -> np.ndarray:
    """
    Подграф Габриэля: убираем ребро, если внутри его диаметральной окружности
    (строго) лежит хоть одна другая точка.
    """
    points = np.asarray(points, dtype=np.float64)
    if len(edges) == 0:
        return np.empty((0, 2), dtype=np.int64)

    tree = cKDTree(points)
    keep = np.ones(len(edges), dtype=bool)
    for k, (i, j) in enumerate(edges):
        mid = 0.5 * (points[i] + points[j])
        radius = 0.5 * math.dist(points[i], points[j])
        limit = radius * (1.0 - GABRIEL_TOLERANCE)
        for other in tree.query_ball_point(mid, radius):
            if other == i or other == j:
                continue
            if math.dist(mid, points[other]) < limit:
                keep[k] = False
                break
    return edges[keep]


def minimum_spanning_tree_edges(n: int, edges: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """Минимальное остовное дерево по взвешенному списку ребер."""
    if n < 2 or len(edges) == 0:
        return np.empty((0, 2), dtype=np.int64)
    mat = coo_matrix((weights, (edges[:, 0], edges[:, 1])), shape=(n, n))
    mst = minimum_spanning_tree(mat).tocoo()
    return _canonical(np.stack([mst.row, mst.col], axis=1))


def build_graph(points: np.ndarray, fill_ratio: float) -> List[Edge]:
    """
    Связный граф над точками части.

    MST гарантирует связность; затем из ребер Габриэля, отсортированных
    от длинных к коротким, добавляем ребра, пока их общее число не достигнет
    mst + floor(fill_ratio * (gabriel - mst)).
    Длинные ребра идут первыми: при малом fill_ratio граф получает
    немного дальних "срезок", а не короткие дубли.
    """
    ratio = float(fill_ratio)
    if not (0.0 <= ratio <= 1.0) or math.isnan(ratio):
        raise ValidationError(f"fill_ratio must be in [0,1], got {fill_ratio}")

    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    n = len(points)
    if n < 2:
        return []
    if n == 2:
        if np.array_equal(points[0], points[1]):
            raise TriangulationError("Cannot connect two identical points")
        return [(0, 1)]

    d_edges, d_weights = delaunay_edges(points)
    g_edges = gabriel_edges(points, d_edges)
    mst = minimum_spanning_tree_edges(n, d_edges, d_weights)

    g_weights = edge_lengths(points, g_edges)
    # По убыванию длины, при равенстве - по индексам (детерминизм)
    order = np.lexsort((g_edges[:, 1], g_edges[:, 0], -g_weights)) if len(g_edges) else []

    edges = {(int(i), int(j)) for i, j in mst}
    extra = max(0, len(g_edges) - len(edges))
    target = len(edges) + int(math.floor(ratio * extra))

    for k in order:
        if len(edges) >= target:
            break
        edges.add((int(g_edges[k, 0]), int(g_edges[k, 1])))

    logger.debug(
        "Graph: points=%d delaunay=%d gabriel=%d mst=%d -> edges=%d (ratio=%.2f)",
        n, len(d_edges), len(g_edges), len(mst), len(edges), ratio,
    )
    return sorted(edges)
