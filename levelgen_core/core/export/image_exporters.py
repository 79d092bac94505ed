# ==============================================================================
# Файл: levelgen_core/core/export/image_exporters.py
# Назначение: Превью уровня в PNG (биомы + высоты + граф).
# ==============================================================================
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Dict, Tuple, TYPE_CHECKING

import numpy as np
from PIL import Image, ImageDraw

from ..constants import BIOME_CHANNEL_TO_KIND, END_BIOME, START_BIOME

if TYPE_CHECKING:
    from ...level.level import Level

logger = logging.getLogger(__name__)

_DEFAULT_COLOR = "#808080"


def _ensure_path_exists(path: str) -> None:
    """Убеждается, что директория для файла существует."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def _hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    hex_color = hex_color.lstrip("#")
    if len(hex_color) == 8: hex_color = hex_color[2:]  # Убираем альфа-канал
    return tuple(int(hex_color[i: i + 2], 16) for i in (0, 2, 4))


def render_level_preview(level: "Level", palette: Dict[str, str], shade_height: float = 8.0) -> np.ndarray:
    """
    RGB-массив (H, W, 3): цвет доминирующего биома, затемненный по высоте;
    клетки коридоров (height <= 0) - цветом дороги.
    Строка 0 - верх картинки, т.е. максимальный y мира.
    """
    biome = level.biome_field
    height = level.height_field

    lut = np.zeros((END_BIOME, 3), dtype=np.float32)
    for ch in range(START_BIOME, END_BIOME):
        lut[ch] = _hex_to_rgb(palette.get(BIOME_CHANNEL_TO_KIND[ch], _DEFAULT_COLOR))

    dominant = START_BIOME + np.argmax(biome[..., START_BIOME:END_BIOME], axis=-1)
    rgb = lut[dominant]

    shade = 1.0 - 0.6 * np.clip(height / max(shade_height, 1e-6), 0.0, 1.0)
    rgb *= shade[..., None]

    road = np.array(_hex_to_rgb(palette.get("road", _DEFAULT_COLOR)), dtype=np.float32)
    rgb[height <= 0.0] = road

    return np.ascontiguousarray(np.flipud(np.clip(rgb, 0, 255).astype(np.uint8)))


def write_level_preview(
        path: str,
        level: "Level",
        palette: Dict[str, str],
        max_px: int = 1024,
        draw_graph: bool = True,
) -> None:
    """Рисует превью уровня и сохраняет его в PNG."""
    if not palette:
        logger.warning("[Preview] palette is empty, default colors will be used.")

    img = Image.fromarray(render_level_preview(level, palette))
    w, h = img.size
    factor = min(1.0, float(max_px) / max(w, h))
    if factor < 1.0:
        img = img.resize((max(1, int(w * factor)), max(1, int(h * factor))), Image.Resampling.NEAREST)

    if draw_graph and level.edge_count:
        draw = ImageDraw.Draw(img)
        out_h = img.size[1]

        def to_px(p):
            gx = (p[0] - level.bounds.min_x) * level.scale * factor
            gy = (p[1] - level.bounds.min_y) * level.scale * factor
            return gx, out_h - 1 - gy

        for a, b in level.edges():
            draw.line([to_px(a), to_px(b)], fill=(20, 20, 20), width=1)

    _ensure_path_exists(path)
    tmp_path = path + ".tmp"
    img.save(tmp_path, format="PNG")
    os.replace(tmp_path, path)
    logger.info("Preview image saved: %s", path)
