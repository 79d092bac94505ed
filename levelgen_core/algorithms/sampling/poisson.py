# ==============================================================================
# Файл: levelgen_core/algorithms/sampling/poisson.py
# Назначение: Точки "голубого шума" (Poisson-disk) для одной части уровня.
# ==============================================================================
from __future__ import annotations
import logging
import math

import numpy as np

from ...core.constants import POISSON_ATTEMPTS
from ...core.errors import ValidationError
from ...core.utils.rng import make_generator

logger = logging.getLogger(__name__)


def estimate_radius(width: float, height: float, count: int) -> float:
    """
    Минимальное расстояние между точками, при котором на площади w*h
    в среднем помещается примерно `count` точек.
    Это приближение: точное количество точек не гарантируется.
    """
    return math.sqrt(2.0 * width * height / (math.e * count))


def poisson_disk_sample(
        width: float,
        height: float,
        radius: float,
        rng: np.random.Generator,
        attempts: int = POISSON_ATTEMPTS,
) -> np.ndarray:
    """
    Алгоритм Бридсона в прямоугольнике [0, width] x [0, height].
    Возвращает массив (N, 2); все точки попарно не ближе `radius`.
    """
    cell = radius / math.sqrt(2.0)
    gw = max(1, int(math.ceil(width / cell)))
    gh = max(1, int(math.ceil(height / cell)))
    grid = np.full((gh, gw), -1, dtype=np.int64)
    r2 = radius * radius

    points: list[tuple[float, float]] = []
    active: list[int] = []

    def cell_of(x: float, y: float) -> tuple[int, int]:
        return min(int(y / cell), gh - 1), min(int(x / cell), gw - 1)

    def fits(x: float, y: float) -> bool:
        row, col = cell_of(x, y)
        for rr in range(max(0, row - 2), min(gh, row + 3)):
            for cc in range(max(0, col - 2), min(gw, col + 3)):
                idx = grid[rr, cc]
                if idx < 0:
                    continue
                px, py = points[idx]
                if (px - x) ** 2 + (py - y) ** 2 < r2:
                    return False
        return True

    def insert(x: float, y: float) -> None:
        grid[cell_of(x, y)] = len(points)
        active.append(len(points))
        points.append((x, y))

    insert(float(rng.uniform(0.0, width)), float(rng.uniform(0.0, height)))

    while active:
        slot = int(rng.integers(len(active)))
        ox, oy = points[active[slot]]
        for _ in range(attempts):
            # Кандидат в кольце [r, 2r] вокруг активной точки
            ang = float(rng.uniform(0.0, 2.0 * math.pi))
            dist = float(rng.uniform(radius, 2.0 * radius))
            x = ox + dist * math.cos(ang)
            y = oy + dist * math.sin(ang)
            if 0.0 <= x < width and 0.0 <= y < height and fits(x, y):
                insert(x, y)
                break
        else:
            active[slot] = active[-1]
            active.pop()

    return np.asarray(points, dtype=np.float64).reshape(-1, 2)


def sample_points(width: float, height: float, count: int, seed=None) -> np.ndarray:
    """Точки для части уровня, центрированные относительно (0, 0)."""
    if not (width > 0.0 and height > 0.0):
        raise ValidationError(f"Part size must be > 0, got {width}x{height}")
    if int(count) < 1:
        raise ValidationError(f"Point count must be >= 1, got {count}")

    radius = estimate_radius(width, height, int(count))
    rng = make_generator(seed)
    pts = poisson_disk_sample(width, height, radius, rng)
    pts -= np.array([0.5 * width, 0.5 * height])
    logger.debug(
        "Poisson sampling %.1fx%.1f: target=%d, got=%d, radius=%.3f",
        width, height, count, len(pts), radius,
    )
    return pts
