# ==============================================================================
# Файл: levelgen_core/__init__.py
# Назначение: Публичное API генератора уровней.
# ==============================================================================
from __future__ import annotations

from .core.errors import LevelGenError, LevelGenerationError, TriangulationError, ValidationError
from .core.types import LevelPart, PartAlign, Rect
from .level.builder import LevelBuilder
from .level.layout import build_level_from_preset
from .level.level import Level
from .level.part_builder import LevelPartBuilder

__all__ = [
    "Level",
    "LevelBuilder",
    "LevelPart",
    "LevelPartBuilder",
    "PartAlign",
    "Rect",
    "build_level_from_preset",
    "LevelGenError",
    "LevelGenerationError",
    "TriangulationError",
    "ValidationError",
]
