# ========================
# file: levelgen_core/core/preset/__init__.py
# ========================
from .version import CURRENT_PRESET_VERSION
from .model import LevelPreset
from .loader import load_preset, deep_merge
from .defaults import DEFAULT_LEVEL_PRESET
from .errors import PresetError, PresetValidationError, PresetNotFoundError
from .registry import add_search_folder, list_preset_ids, resolve_preset_path

__all__ = [
    "CURRENT_PRESET_VERSION",
    "LevelPreset",
    "load_preset",
    "deep_merge",
    "DEFAULT_LEVEL_PRESET",
    "PresetError",
    "PresetValidationError",
    "PresetNotFoundError",
    "add_search_folder",
    "list_preset_ids",
    "resolve_preset_path",
]
