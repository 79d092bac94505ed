# levelgen_core/core/types.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

import numpy as np

from .constants import FALLBACK_BIOME

Vec2 = Tuple[float, float]
Edge = Tuple[int, int]


@dataclass(frozen=True)
class Rect:
    """Осевой прямоугольник в мировых координатах."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_center_size(cls, cx: float, cy: float, w: float, h: float) -> "Rect":
        return cls(cx - 0.5 * w, cy - 0.5 * h, cx + 0.5 * w, cy + 0.5 * h)

    @property
    def center(self) -> Vec2:
        return 0.5 * (self.min_x + self.max_x), 0.5 * (self.min_y + self.max_y)

    @property
    def size(self) -> Vec2:
        return self.max_x - self.min_x, self.max_y - self.min_y

    def translate(self, dx: float, dy: float) -> "Rect":
        return Rect(self.min_x + dx, self.min_y + dy, self.max_x + dx, self.max_y + dy)

    def union(self, other: "Rect") -> "Rect":
        return Rect(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


class PartAlign(Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"

    @classmethod
    def parse(cls, value: "PartAlign | str") -> "PartAlign":
        if isinstance(value, PartAlign):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown align '{value}', expected one of: "
                + ", ".join(a.value for a in cls)
            ) from None


@dataclass(frozen=True, eq=False)
class LevelPart:
    """
    Независимо сгенерированная "комната": точки, внутренний граф,
    границы (с отступом), характерный радиус и биом.
    Точки центрированы относительно (0, 0). Части сравниваются по identity.
    """

    points: np.ndarray
    edges: List[Edge]
    bounds: Rect
    radius: float
    biome: str = FALLBACK_BIOME
    seed: int | None = None

    @property
    def node_count(self) -> int:
        return int(len(self.points))
