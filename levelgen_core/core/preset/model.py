from dataclasses import dataclass
from typing import Any, Dict, List, Union


@dataclass(frozen=True)
class LevelPreset:
    id: str
    version: int
    seed: Union[int, str]
    scale: float
    parts: Dict[str, Dict[str, Any]]
    layout: List[Dict[str, Any]]
    export: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "seed": self.seed,
            "scale": self.scale,
            "parts": {k: dict(v) for k, v in self.parts.items()},
            "layout": [dict(x) for x in self.layout],
            "export": dict(self.export),
        }
