# levelgen_core/algorithms/graph/pathfinding.py
from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple
import heapq
import math

import numpy as np


def reconstruct(came_from: Dict[int, int], current: int) -> List[int]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


def find_path(
        points: np.ndarray,
        adjacency: Sequence[Sequence[Tuple[int, float]]],
        start: int,
        goal: int,
) -> List[int] | None:
    """
    A* по графу уровня. Стоимость шага - вес ребра (евклидова длина),
    эвристика - прямое расстояние до цели (допустимая).
    Возвращает список узлов от start до goal включительно или None.
    """
    n = len(adjacency)
    if not (0 <= start < n and 0 <= goal < n):
        return None
    if start == goal:
        return [start]

    gx, gy = float(points[goal][0]), float(points[goal][1])

    def heuristic(node: int) -> float:
        return math.hypot(float(points[node][0]) - gx, float(points[node][1]) - gy)

    open_heap: List[Tuple[float, int, int]] = []
    heapq.heappush(open_heap, (heuristic(start), 0, start))
    came_from: Dict[int, int] = {}
    g_score: Dict[int, float] = {start: 0.0}
    closed: set[int] = set()
    tie_breaker = 0

    while open_heap:
        _, _, current = heapq.heappop(open_heap)
        if current in closed:
            continue
        if current == goal:
            return reconstruct(came_from, current)

        closed.add(current)
        for nbr, weight in adjacency[current]:
            if nbr in closed:
                continue
            tentative_g = g_score[current] + weight
            if tentative_g < g_score.get(nbr, math.inf):
                came_from[nbr] = current
                g_score[nbr] = tentative_g
                tie_breaker += 1
                heapq.heappush(open_heap, (tentative_g + heuristic(nbr), tie_breaker, nbr))

    return None


def path_length(points: np.ndarray, path: Optional[Sequence[int]]) -> float:
    if not path or len(path) < 2:
        return 0.0
    pts = np.asarray(points)[list(path)]
    d = np.diff(pts, axis=0)
    return float(np.hypot(d[:, 0], d[:, 1]).sum())
