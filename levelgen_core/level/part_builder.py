# ==============================================================================
# Файл: levelgen_core/level/part_builder.py
# Назначение: Построитель одной части ("комнаты") уровня.
# ==============================================================================
from __future__ import annotations
import logging
import math
from typing import Sequence

import numpy as np

from ..algorithms.graph.proximity import build_graph
from ..algorithms.sampling.poisson import estimate_radius, sample_points
from ..core.constants import BIOME_KIND_TO_CHANNEL, FALLBACK_BIOME, PART_GAP
from ..core.errors import ValidationError
from ..core.types import LevelPart, Rect

logger = logging.getLogger(__name__)


class LevelPartBuilder:
    """
    Fluent-построитель части уровня:

        LevelPartBuilder("forest").with_size(120, 120).with_count(40) \\
            .with_fill_ratio(0.2).with_seed(7).build()

    with_points() подменяет сэмплинг явным списком точек
    (например, 4 угла прямого "безопасного коридора").
    """

    def __init__(self, biome: str = FALLBACK_BIOME):
        self.biome = biome
        self.width = 0.0
        self.height = 0.0
        self.count = 0
        self.fill_ratio = 0.0
        self.seed = None
        self.points: np.ndarray | None = None

    def with_size(self, width: float, height: float) -> "LevelPartBuilder":
        self.width = float(width)
        self.height = float(height)
        return self

    def with_count(self, count: int) -> "LevelPartBuilder":
        self.count = int(count)
        return self

    def with_fill_ratio(self, fill_ratio: float) -> "LevelPartBuilder":
        self.fill_ratio = float(fill_ratio)
        return self

    def with_seed(self, seed) -> "LevelPartBuilder":
        self.seed = seed
        return self

    def with_points(self, points: Sequence[Sequence[float]]) -> "LevelPartBuilder":
        self.points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        return self

    def estimate_radius(self) -> float:
        return estimate_radius(self.width, self.height, self.count)

    def _validate(self) -> None:
        if self.biome not in BIOME_KIND_TO_CHANNEL:
            raise ValidationError(f"Unknown biome '{self.biome}'")
        if not (self.width > 0.0 and self.height > 0.0) or not math.isfinite(self.width * self.height):
            raise ValidationError(f"Part size must be > 0, got {self.width}x{self.height}")
        if self.count < 1:
            raise ValidationError(f"Part count must be >= 1, got {self.count}")
        if not (0.0 <= self.fill_ratio <= 1.0):
            raise ValidationError(f"fill_ratio must be in [0,1], got {self.fill_ratio}")
        if self.points is not None and not np.all(np.isfinite(self.points)):
            raise ValidationError("Explicit points must be finite")

    def build(self) -> LevelPart:
        self._validate()

        if self.points is not None:
            points = self.points.copy()
        else:
            points = sample_points(self.width, self.height, self.count, self.seed)

        edges = build_graph(points, self.fill_ratio)

        gx, gy = PART_GAP
        bounds = Rect.from_center_size(0.0, 0.0, self.width + 2.0 * gx, self.height + 2.0 * gy)

        part = LevelPart(
            points=points,
            edges=edges,
            bounds=bounds,
            radius=self.estimate_radius(),
            biome=self.biome,
            seed=self.seed,
        )
        logger.info(
            "Part '%s' built: %d points, %d edges, radius=%.2f",
            self.biome, part.node_count, len(edges), part.radius,
        )
        return part
