# Файл: run_level_generator.py
from __future__ import annotations
import logging
import pathlib
import sys
from typing import Union

from levelgen_core.core.export import write_heightmap_r16, write_level_npz, write_level_preview
from levelgen_core.core.preset import PresetNotFoundError, list_preset_ids, load_preset
from levelgen_core.core.utils.rng import parse_seed
from levelgen_core.level.layout import build_level_from_preset
from levelgen_core.setup_logging import setup_logging

logger = logging.getLogger(__name__)

ROOT = pathlib.Path(__file__).resolve().parent
ARTIFACTS_ROOT = ROOT / "artifacts" / "levels"
DEFAULT_PRESET_ID = "level/tuonela"


def get_seed_from_console(default: Union[int, str]) -> Union[int, str]:
    seed_str = input(f">>> Enter level seed (default {default}) and press Enter: ")
    return parse_seed(seed_str) if seed_str.strip() else default


def main():
    setup_logging()
    preset_id = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_PRESET_ID
    try:
        preset = load_preset(preset_id)
    except PresetNotFoundError as e:
        logger.error("%s. Available: %s", e, ", ".join(list_preset_ids()))
        sys.exit(1)

    seed = parse_seed(sys.argv[2]) if len(sys.argv) > 2 else get_seed_from_console(preset.seed)
    logger.info("--- Level Generation: preset=%s seed=%s ---", preset.id, seed)

    level = build_level_from_preset(preset, seed=seed)
    if not level.is_connected():
        logger.error("Generated level graph is disconnected, aborting.")
        sys.exit(1)

    out_dir = ARTIFACTS_ROOT / preset.id.replace("/", "_") / str(seed).replace("/", "_")
    export_cfg = preset.export
    write_level_npz(str(out_dir / "level"), level, extra_meta={"seed": seed, "preset": preset.to_dict()})
    write_heightmap_r16(str(out_dir / "height.r16"), level.height_field, float(export_cfg.get("heightmap_max", 8.0)))
    write_level_preview(
        str(out_dir / "preview.png"),
        level,
        export_cfg.get("palette", {}),
        max_px=int(export_cfg.get("preview_max_px", 1024)),
    )

    logger.info("--- Done: %r -> %s ---", level, out_dir)


if __name__ == "__main__":
    main()
