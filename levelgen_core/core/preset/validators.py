# ========================
# file: levelgen_core/core/preset/validators.py
# ========================
from __future__ import annotations
import math
from typing import Any, Dict
from .errors import PresetValidationError
from ..constants import BIOME_KINDS

_ALIGNS = ("left", "right", "up", "down")


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise PresetValidationError(msg)


def _number(value: Any, where: str) -> float:
    """float(value) или PresetValidationError; bool числом не считается."""
    if isinstance(value, bool):
        raise PresetValidationError(f"{where} must be a number, got {value!r}")
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise PresetValidationError(f"{where} must be a number, got {value!r}") from None
    _require(math.isfinite(out), f"{where} must be finite, got {value!r}")
    return out


def _integer(value: Any, where: str) -> int:
    out = _number(value, where)
    _require(out == int(out), f"{where} must be an integer, got {value!r}")
    return int(out)


def validate_dict(cfg: Dict[str, Any]) -> None:
    """Conservative validation for level layout presets.

    Raises PresetValidationError on the first failing check.
    """
    _require(
        isinstance(cfg.get("id"), str) and cfg["id"],
        "Preset.id must be non-empty string",
    )
    _require(_number(cfg.get("scale", 0.0), "Preset.scale") > 0.0, "Preset.scale must be > 0")
    seed = cfg.get("seed")
    _require(
        isinstance(seed, (int, str)) and not isinstance(seed, bool),
        "Preset.seed must be int or string",
    )

    # Parts
    parts = cfg.get("parts", {})
    _require(isinstance(parts, dict) and parts, "Preset.parts must be a non-empty mapping")
    for name, p in parts.items():
        _require(isinstance(p, dict), f"parts.{name} must be a mapping")
        _require(p.get("biome") in BIOME_KINDS, f"parts.{name}.biome must be one of {BIOME_KINDS}")
        for key in ("width", "height"):
            _require(_number(p.get(key), f"parts.{name}.{key}") > 0.0, f"parts.{name}.{key} must be > 0")
        _require(_integer(p.get("count"), f"parts.{name}.count") >= 1, f"parts.{name}.count must be >= 1")
        fr = _number(p.get("fill_ratio", 0.0), f"parts.{name}.fill_ratio")
        _require(0.0 <= fr <= 1.0, f"parts.{name}.fill_ratio must be in [0,1]")
        pts = p.get("points")
        if pts is not None:
            _require(
                isinstance(pts, list)
                and all(isinstance(pt, (list, tuple)) and len(pt) == 2 for pt in pts),
                f"parts.{name}.points must be a list of [x, y] pairs",
            )
            for k, pt in enumerate(pts):
                _number(pt[0], f"parts.{name}.points[{k}].x")
                _number(pt[1], f"parts.{name}.points[{k}].y")

    # Layout
    layout = cfg.get("layout", [])
    _require(isinstance(layout, list) and layout, "Preset.layout must be a non-empty list")
    for i, entry in enumerate(layout):
        _require(isinstance(entry, dict), f"layout[{i}] must be a mapping")
        _require(entry.get("part") in parts, f"layout[{i}].part must reference a defined part")
        has_offset = "offset" in entry
        has_after = "after" in entry
        if i == 0:
            _require(not has_after, "layout[0] cannot be placed 'after' another part")
        _require(has_offset != has_after, f"layout[{i}] needs exactly one of 'offset' or 'after'")
        if has_offset:
            off = entry["offset"]
            _require(
                isinstance(off, (list, tuple)) and len(off) == 2,
                f"layout[{i}].offset must be [x, y]",
            )
            _number(off[0], f"layout[{i}].offset.x")
            _number(off[1], f"layout[{i}].offset.y")
        if has_after:
            after = entry["after"]
            _require(
                isinstance(after, int) and not isinstance(after, bool) and 0 <= after < i,
                f"layout[{i}].after must reference an earlier layout entry",
            )
            _require(
                str(entry.get("align", "")).lower() in _ALIGNS,
                f"layout[{i}].align must be one of {_ALIGNS}",
            )

    # Export
    exp = cfg.get("export", {})
    _require(isinstance(exp, dict), "Preset.export must be a mapping")
    if exp:
        _require(
            _number(exp.get("heightmap_max", 1.0), "export.heightmap_max") > 0.0,
            "export.heightmap_max must be > 0",
        )
        pal = exp.get("palette", {})
        _require(isinstance(pal, dict), "export.palette must be a mapping")
        for k, col in pal.items():
            _require(
                str(col).startswith("#"),
                f"export.palette['{k}'] must be hex like '#RRGGBB' or '#AARRGGBB'",
            )
