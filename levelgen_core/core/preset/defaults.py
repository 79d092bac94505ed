# ========================
# file: levelgen_core/core/preset/defaults.py
# ========================
from __future__ import annotations
from typing import Any, Dict

from .version import CURRENT_PRESET_VERSION

# Strict python-dict mirror of the JSON layout preset defaults
DEFAULT_LEVEL_PRESET: Dict[str, Any] = {
    "id": "level/default",
    "version": CURRENT_PRESET_VERSION,
    "seed": 123,
    "scale": 4.0,
    # name -> параметры LevelPartBuilder
    "parts": {},
    # порядок размещения: {"part", "offset"} или {"part", "after", "align"}
    "layout": [],
    "export": {
        "heightmap_max": 8.0,
        "preview_max_px": 1024,
        "palette": {
            "home": "#C8A452",
            "safe": "#E0E0E0",
            "forest": "#3F7F2F",
            "cave": "#5A5A6E",
            "mushroom": "#8E5BB0",
            "temple": "#B8A27A",
            "meat": "#9E2F3A",
            "boss": "#2A1A1A",
            "road": "#7A5C3A",
        },
    },
}
