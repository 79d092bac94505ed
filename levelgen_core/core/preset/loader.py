# ========================
# file: levelgen_core/core/preset/loader.py
# ========================
from __future__ import annotations
import copy
import json
import logging
import os
from typing import Any, Dict, Mapping, Union

from .defaults import DEFAULT_LEVEL_PRESET
from .errors import PresetValidationError
from .model import LevelPreset
from .registry import resolve_preset_path
from .validators import validate_dict
from .version import CURRENT_PRESET_VERSION

logger = logging.getLogger(__name__)


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Слияние словарей по вложенным ключам. Списки (layout, points) заменяются целиком."""
    merged = copy.deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _read_source(source: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(source, dict):
        return source
    if not isinstance(source, str):
        raise TypeError(f"Preset source must be an id, a JSON path or a dict, got {type(source).__name__}")

    path = source if os.path.isfile(source) else resolve_preset_path(source)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    logger.debug("Preset '%s' read from %s", source, path)
    if not isinstance(data, dict):
        raise PresetValidationError(f"Preset file {path} must contain a JSON object")
    return data


def _normalize(cfg: Dict[str, Any]) -> None:
    """Приводит align к нижнему регистру и offset к float, чтобы сборщик не гадал."""
    for entry in cfg["layout"]:
        if "align" in entry:
            entry["align"] = str(entry["align"]).strip().lower()
        if "offset" in entry:
            entry["offset"] = [float(v) for v in entry["offset"]]


def load_preset(
        source: Union[str, Dict[str, Any]],
        overrides: Mapping[str, Any] | None = None,
) -> LevelPreset:
    """
    Слои: DEFAULT_LEVEL_PRESET <- пресет (id / путь к JSON / dict) <- overrides.
    После слияния пресет проверяется и замораживается в LevelPreset.
    """
    cfg = deep_merge(DEFAULT_LEVEL_PRESET, _read_source(source))
    if overrides:
        cfg = deep_merge(cfg, overrides)
    cfg["version"] = CURRENT_PRESET_VERSION

    validate_dict(cfg)
    _normalize(cfg)

    return LevelPreset(
        id=cfg["id"],
        version=int(cfg["version"]),
        seed=cfg["seed"],
        scale=float(cfg["scale"]),
        parts={name: dict(params) for name, params in cfg["parts"].items()},
        layout=[dict(entry) for entry in cfg["layout"]],
        export=dict(cfg.get("export", {})),
    )
