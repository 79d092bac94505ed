# ==============================================================================
# Файл: levelgen_core/level/layout.py
# Назначение: Сборка уровня по пресету раскладки (какие части и куда ставить).
# ==============================================================================
from __future__ import annotations
import logging
from typing import Any, Dict

from ..core.preset import LevelPreset
from ..core.utils.rng import part_seed
from .builder import LevelBuilder
from .level import Level
from .part_builder import LevelPartBuilder

logger = logging.getLogger(__name__)


def make_part_builder(params: Dict[str, Any], seed) -> LevelPartBuilder:
    builder = (
        LevelPartBuilder(params["biome"])
        .with_size(params["width"], params["height"])
        .with_count(params["count"])
        .with_fill_ratio(params.get("fill_ratio", 0.0))
        .with_seed(seed)
    )
    if params.get("points") is not None:
        builder.with_points(params["points"])
    return builder


def build_level_from_preset(preset: LevelPreset, seed=None) -> Level:
    """
    Строит все части пресета и размещает их в порядке `layout`.
    Сид каждой части зависит от сида уровня и номера в раскладке,
    поэтому одинаковые части (например, два "safe") получают разные точки.
    """
    level_seed = preset.seed if seed is None else seed
    logger.info("Building level '%s' (seed=%s, scale=%.2f)", preset.id, level_seed, preset.scale)

    level_builder = LevelBuilder()
    layout_ids = []
    for i, entry in enumerate(preset.layout):
        params = preset.parts[entry["part"]]
        part = make_part_builder(params, part_seed(level_seed, i)).build()

        if "after" in entry:
            part_id = level_builder.add_after(layout_ids[entry["after"]], entry["align"], part)
        else:
            part_id = level_builder.add(entry["offset"], part)
        layout_ids.append(part_id)

    return level_builder.build(preset.scale)
