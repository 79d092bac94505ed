# ==============================================================================
# Файл: levelgen_core/core/export/__init__.py
# Назначение: Точка входа в пакет для экспорта данных уровня.
# ==============================================================================
from __future__ import annotations

from .binary_exporters import encode_heightmap_r16, write_heightmap_r16
from .image_exporters import render_level_preview, write_level_preview
from .numpy_exporters import read_level_npz, write_level_npz

__all__ = [
    "encode_heightmap_r16",
    "write_heightmap_r16",
    "render_level_preview",
    "write_level_preview",
    "read_level_npz",
    "write_level_npz",
]
