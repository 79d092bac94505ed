# ==============================================================================
# Файл: levelgen_core/core/export/numpy_exporters.py
# Назначение: Сохранение/загрузка готового уровня (NPZ + meta.json).
# ==============================================================================
from __future__ import annotations
import dataclasses
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, TYPE_CHECKING

import numpy as np

from ..constants import BIOME_KIND_TO_CHANNEL, CHANNEL_RADIUS
from ..types import Rect

if TYPE_CHECKING:
    from ...level.level import Level

logger = logging.getLogger(__name__)

LEVEL_FORMAT_VERSION = "level_v1"


def _ensure_path_exists(path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def _atomic_write_json(path: str, data: Any) -> None:
    _ensure_path_exists(path)
    tmp_path = path + ".tmp"

    def serializer(o):
        if dataclasses.is_dataclass(o): return dataclasses.asdict(o)
        raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")

    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=serializer)
    os.replace(tmp_path, path)
    logger.debug("JSON file saved: %s", path)


def write_level_npz(path_prefix: str, level: "Level", extra_meta: Dict[str, Any] | None = None) -> None:
    """
    Сохраняет уровень: <prefix>.meta.json (масштаб, границы, части)
    и <prefix>.npz (height, biome, points, edges) - плоские массивы
    с явными размерами сетки.
    """
    meta_path = path_prefix + ".meta.json"
    grid_path = path_prefix + ".npz"

    w, h = level.texture_size
    meta = {
        "version": LEVEL_FORMAT_VERSION,
        "scale": level.scale,
        "bounds": level.bounds,
        "grid": {"width": w, "height": h},
        "channels": {"radius": CHANNEL_RADIUS, **BIOME_KIND_TO_CHANNEL},
        "parts": [
            {"bounds": rect, "biome": biome, "radius": radius}
            for rect, biome, radius in zip(level.part_bounds(), level.part_biomes(), level.part_radii())
        ],
    }
    if extra_meta:
        # Например, пресет и сид, из которых уровень был собран
        meta["source"] = extra_meta
    _atomic_write_json(meta_path, meta)

    _ensure_path_exists(grid_path)
    tmp_path = grid_path + ".tmp"
    with open(tmp_path, "wb") as f:
        np.savez_compressed(
            f,
            height=level.height_field.astype(np.float32),
            biome=level.biome_field.astype(np.float32),
            points=level.points_array.astype(np.float64),
            edges=level.edges_array.astype(np.int64),
        )
    os.replace(tmp_path, grid_path)
    logger.info("Level saved: %s (.npz/.meta.json)", path_prefix)


def read_level_npz(path_prefix: str) -> "Level | None":
    """Читает уровень, сохраненный write_level_npz. Нет файлов -> None."""
    from ...algorithms.terrain.rasterize import compute_normals
    from ...level.level import Level

    meta_path = path_prefix + ".meta.json"
    grid_path = path_prefix + ".npz"
    if not os.path.exists(meta_path) or not os.path.exists(grid_path):
        return None

    with open(meta_path, "r", encoding="utf-8") as f:
        meta = json.load(f)
    if meta.get("version") != LEVEL_FORMAT_VERSION:
        raise ValueError(f"Unsupported level format: {meta.get('version')!r}")

    with np.load(grid_path) as data:
        height = data["height"]
        biome = data["biome"]
        points = data["points"]
        edges = data["edges"]

    expected = (meta["grid"]["height"], meta["grid"]["width"])
    if height.shape != expected:
        raise ValueError(f"Height grid shape {height.shape} does not match meta {expected}")

    scale = float(meta["scale"])
    parts = meta.get("parts", [])
    return Level(
        points=points,
        edges=edges,
        bounds=Rect(**meta["bounds"]),
        scale=scale,
        height=height,
        biome=biome,
        normals=compute_normals(height, scale),
        part_bounds=[Rect(**p["bounds"]) for p in parts],
        part_biomes=[p["biome"] for p in parts],
        part_radii=[float(p["radius"]) for p in parts],
    )
