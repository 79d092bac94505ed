# ==============================================================================
# Файл: levelgen_core/algorithms/terrain/rasterize.py
# Назначение: Растеризация графа уровня в непрерывные поля:
#             карта биомов (с радиусом), карта высот и нормали.
# ==============================================================================
from __future__ import annotations
import logging
import math
from typing import Iterable, Tuple

import numpy as np
from numba import njit
from scipy.ndimage import distance_transform_edt, gaussian_filter

from ...core.constants import (
    BIOME_BLUR_SIGMA, BIOME_CHANNELS, BIOME_KIND_TO_CHANNEL, CHANNEL_RADIUS,
    FALLBACK_BIOME, FALLBACK_RADIUS, HEIGHT_EPS, HEIGHT_SLOPE_GAIN,
    HEIGHT_SLOPE_POWER, MAX_HEIGHT_FACTOR, ROAD_WIDTH_FACTOR,
)
from ...core.types import Rect

logger = logging.getLogger(__name__)


# ==============================================================================
# --- БЛОК 1: СЕТКА ---
# ==============================================================================

def grid_shape(bounds: Rect, scale: float) -> Tuple[int, int]:
    """(H, W) - размер сетки в клетках; scale = клеток на мировую единицу."""
    w, h = bounds.size
    return max(1, int(round(h * scale))), max(1, int(round(w * scale)))


def bilinear_sample(field: np.ndarray, gx: float, gy: float) -> np.ndarray | float:
    """
    Билинейная выборка из 2D (H, W) или многоканального (H, W, C) поля.
    Координаты зажимаются в пределы сетки, выхода за границы не бывает.
    """
    h, w = field.shape[:2]
    gx = min(max(float(gx), 0.0), float(w - 1))
    gy = min(max(float(gy), 0.0), float(h - 1))
    x0, y0 = int(math.floor(gx)), int(math.floor(gy))
    x1, y1 = min(x0 + 1, w - 1), min(y0 + 1, h - 1)
    fx, fy = gx - x0, gy - y0

    top = field[y0, x0] * (1.0 - fx) + field[y0, x1] * fx
    bottom = field[y1, x0] * (1.0 - fx) + field[y1, x1] * fx
    out = top * (1.0 - fy) + bottom * fy
    if np.ndim(out) == 0:
        return float(out)
    return np.asarray(out, dtype=np.float32)


@njit(cache=True)
def _sample2d(field: np.ndarray, gx: float, gy: float) -> float:
    h, w = field.shape
    gx = min(max(gx, 0.0), w - 1.0)
    gy = min(max(gy, 0.0), h - 1.0)
    x0 = int(math.floor(gx))
    y0 = int(math.floor(gy))
    x1 = min(x0 + 1, w - 1)
    y1 = min(y0 + 1, h - 1)
    fx = gx - x0
    fy = gy - y0
    top = field[y0, x0] * (1.0 - fx) + field[y0, x1] * fx
    bottom = field[y1, x0] * (1.0 - fx) + field[y1, x1] * fx
    return top * (1.0 - fy) + bottom * fy


# ==============================================================================
# --- БЛОК 2: КАРТА БИОМОВ ---
# ==============================================================================

def rasterize_biomes(
        bounds: Rect,
        scale: float,
        parts: Iterable[Tuple[Rect, str, float]],
        sigma: float = BIOME_BLUR_SIGMA,
) -> np.ndarray:
    """
    Рисует прямоугольник каждой части в свой канал биома (one-hot) и
    радиус части в канал 0, затем размывает все каналы по Гауссу,
    чтобы границы биомов и радиусы плавно перетекали друг в друга.
    parts: (мировые границы части, биом, характерный радиус).
    """
    h, w = grid_shape(bounds, scale)
    biome = np.zeros((h, w, BIOME_CHANNELS), dtype=np.float32)

    # Фон: радиус 1.0 и "лес", чтобы на краях не было деления на ноль
    biome[..., CHANNEL_RADIUS] = FALLBACK_RADIUS
    biome[..., BIOME_KIND_TO_CHANNEL[FALLBACK_BIOME]] = 1.0

    for rect, kind, radius in parts:
        c0 = int(math.floor((rect.min_x - bounds.min_x) * scale))
        c1 = int(math.ceil((rect.max_x - bounds.min_x) * scale))
        r0 = int(math.floor((rect.min_y - bounds.min_y) * scale))
        r1 = int(math.ceil((rect.max_y - bounds.min_y) * scale))
        c0, c1 = max(0, c0), min(w, c1)
        r0, r1 = max(0, r0), min(h, r1)
        if c0 >= c1 or r0 >= r1:
            continue

        pixel = np.zeros(BIOME_CHANNELS, dtype=np.float32)
        pixel[CHANNEL_RADIUS] = radius
        pixel[BIOME_KIND_TO_CHANNEL[kind]] = 1.0
        biome[r0:r1, c0:c1, :] = pixel

    if sigma > 0:
        biome = gaussian_filter(biome, sigma=(sigma, sigma, 0.0), mode='reflect', truncate=3.0)
    return biome.astype(np.float32, copy=False)


# ==============================================================================
# --- БЛОК 3: КАРТА ВЫСОТ ---
# ==============================================================================

@njit(cache=True)
def _draw_segments(mask: np.ndarray, segments: np.ndarray) -> None:
    """Брезенхэм: рисует отрезки (x0, y0, x1, y1) в координатах сетки."""
    h, w = mask.shape
    for k in range(segments.shape[0]):
        x0 = int(math.floor(segments[k, 0] + 0.5))
        y0 = int(math.floor(segments[k, 1] + 0.5))
        x1 = int(math.floor(segments[k, 2] + 0.5))
        y1 = int(math.floor(segments[k, 3] + 0.5))
        dx = abs(x1 - x0)
        dy = -abs(y1 - y0)
        sx = 1 if x0 < x1 else -1
        sy = 1 if y0 < y1 else -1
        err = dx + dy
        while True:
            if 0 <= x0 < w and 0 <= y0 < h:
                mask[y0, x0] = True
            if x0 == x1 and y0 == y1:
                break
            e2 = 2 * err
            if e2 >= dy:
                err += dy
                x0 += sx
            if e2 <= dx:
                err += dx
                y0 += sy


def rasterize_edges(
        shape: Tuple[int, int],
        bounds: Rect,
        scale: float,
        points: np.ndarray,
        edges: np.ndarray,
) -> np.ndarray:
    """Бинарная маска осевых линий коридоров (ребер графа)."""
    mask = np.zeros(shape, dtype=np.bool_)
    if len(edges) == 0:
        return mask
    origin = np.array([bounds.min_x, bounds.min_y], dtype=np.float64)
    grid_pts = (np.asarray(points, dtype=np.float64) - origin) * scale
    edges = np.asarray(edges, dtype=np.int64)
    segments = np.ascontiguousarray(
        np.concatenate([grid_pts[edges[:, 0]], grid_pts[edges[:, 1]]], axis=1)
    )
    _draw_segments(mask, segments)
    return mask


def rasterize_height(mask: np.ndarray, radius_field: np.ndarray, scale: float) -> np.ndarray:
    """
    Высота = функция расстояния до ближайшей дороги.
    Внутри дороги (d <= road_width) значение d - road_width <= 0,
    снаружи - 3 * ((d - road_width) / max_height) ** 0.75 > 0.
    """
    h, w = mask.shape
    if mask.any():
        dist = distance_transform_edt(~mask).astype(np.float32) / np.float32(scale)
    else:
        logger.warning("Height field: no edges to rasterize, terrain will be flat-high.")
        dist = np.full((h, w), math.hypot(h, w) / scale, dtype=np.float32)

    radius = np.maximum(radius_field.astype(np.float32), np.float32(HEIGHT_EPS))
    road_width = ROAD_WIDTH_FACTOR * radius
    max_height = np.maximum(MAX_HEIGHT_FACTOR * radius - road_width, np.float32(HEIGHT_EPS))

    over = np.maximum(dist - road_width, 0.0)
    rising = HEIGHT_SLOPE_GAIN * np.power(over / max_height, HEIGHT_SLOPE_POWER)
    height = np.where(dist <= road_width, dist - road_width, rising)
    return height.astype(np.float32)


def compute_normals(height: np.ndarray, scale: float) -> np.ndarray:
    """
    Направление "под уклон" (-grad h / |grad h|) для каждой клетки, (H, W, 2).
    Центральные разности на копии с продленными краями: на границе сетки
    координаты зажимаются, а не заворачиваются.
    """
    p = np.pad(height.astype(np.float32), 1, mode='edge')
    gx = (p[1:-1, 2:] - p[1:-1, :-2]) * (0.5 * scale)
    gy = (p[2:, 1:-1] - p[:-2, 1:-1]) * (0.5 * scale)
    norm = np.hypot(gx, gy)
    safe = np.where(norm > 0.0, norm, 1.0)
    normals = np.stack([-gx / safe, -gy / safe], axis=-1)
    normals[norm == 0.0] = 0.0
    return normals.astype(np.float32)


# ==============================================================================
# --- БЛОК 4: ПРОХОДИМОСТЬ ---
# ==============================================================================

@njit(cache=True)
def march_segment(
        height: np.ndarray,
        ax: float, ay: float,
        bx: float, by: float,
        min_x: float, min_y: float,
        scale: float,
        radius: float,
        min_step: float,
) -> bool:
    """
    Идем от A к B шагами размером с запас ширины коридора.
    Полуширина в точке = -height; если она меньше radius - путь закрыт.
    """
    dx = bx - ax
    dy = by - ay
    dist = math.sqrt(dx * dx + dy * dy)
    width = -_sample2d(height, (ax - min_x) * scale, (ay - min_y) * scale)
    if width < radius:
        return False
    if dist == 0.0:
        return True

    ux = dx / dist
    uy = dy / dist
    travelled = 0.0
    max_iter = int(dist / min_step) + 2
    for _ in range(max_iter):
        px = ax + ux * travelled
        py = ay + uy * travelled
        width = -_sample2d(height, (px - min_x) * scale, (py - min_y) * scale)
        if width < radius:
            return False
        step = max(width - radius, min_step)
        if dist - travelled <= step:
            return True
        travelled += step
    return False
