# ========================
# file: levelgen_core/core/preset/registry.py
# ========================
from __future__ import annotations
from pathlib import Path
from typing import List

from .errors import PresetNotFoundError

# Встроенные пресеты лежат в пакете; приложение может добавить свои папки
BUILTIN_PRESET_ROOT = Path(__file__).resolve().parents[2] / "data" / "presets"
_search_roots: List[Path] = [BUILTIN_PRESET_ROOT]


def resolve_preset_path(preset_id: str) -> str:
    """'level/tuonela' -> <root>/level/tuonela.json, первая найденная папка выигрывает."""
    rel = Path(*preset_id.replace("\\", "/").strip("/").split("/")).with_suffix(".json")
    for root in _search_roots:
        candidate = root / rel
        if candidate.is_file():
            return str(candidate)
    raise PresetNotFoundError(
        f"Level preset '{preset_id}' not found (searched: {', '.join(str(r) for r in _search_roots)})"
    )


def list_preset_ids(group: str = "level") -> List[str]:
    """Все id пресетов в группе по всем папкам поиска, без повторов."""
    ids = set()
    for root in _search_roots:
        folder = root / group
        if folder.is_dir():
            ids.update(f"{group}/{p.stem}" for p in folder.glob("*.json"))
    return sorted(ids)


def add_search_folder(path: str | Path) -> None:
    root = Path(path).resolve()
    if root not in _search_roots:
        _search_roots.append(root)
