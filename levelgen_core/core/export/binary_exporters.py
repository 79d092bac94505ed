# ==============================================================================
# Файл: levelgen_core/core/export/binary_exporters.py
# Назначение: Запись карты высот в бинарный формат r16 (для движка).
# ==============================================================================
from __future__ import annotations
import logging
import os
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


def _ensure_path_exists(path: str) -> None:
    """Убеждается, что директория для файла существует."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def encode_heightmap_r16(height_grid: np.ndarray, max_height: float) -> np.ndarray:
    """
    Высоты -> uint16 little-endian.
    Отрицательные значения (дно коридора) прижимаются к 0, как и в меше земли.
    """
    if max_height <= 0:
        max_height = 1.0
    height_array = np.asarray(height_grid, dtype=np.float32)
    normalized = np.clip(height_array / max_height, 0.0, 1.0)
    return (normalized * 65535.0).astype("<u2")


def write_heightmap_r16(path: str, height_grid: np.ndarray, max_height: float) -> None:
    """Сохраняет карту высот в 16-битном беззнаковом формате."""
    if height_grid is None or np.size(height_grid) == 0:
        raise ValueError("write_heightmap_r16: empty height grid")

    final_array = encode_heightmap_r16(height_grid, max_height)

    _ensure_path_exists(path)
    tmp_path = path + ".tmp"
    with open(tmp_path, "wb") as f:
        f.write(final_array.tobytes())
    os.replace(tmp_path, path)
    logger.info("16-bit UINT heightmap saved: %s (%dx%d)", path, final_array.shape[1], final_array.shape[0])
