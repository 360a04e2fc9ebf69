"""
Конфігурація побудови оболонки: збурення, стеля граней, зерно, допуск.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional

from .geom import EPS


@dataclass
class HullConfig:
    # частка розмаху осі для збурення координат
    noise_fraction: float = 1e-7

    # стеля кількості граней (аварійна зупинка)
    max_faces: int = 50_000

    # зерно для генератора збурень; None - недетерміновано
    seed: Optional[int] = None

    # допуск для validate() (опуклість)
    eps: float = EPS

    def __post_init__(self):
        if self.noise_fraction < 0:
            raise ValueError(f"noise_fraction must be >= 0, got {self.noise_fraction}")
        if self.max_faces < 4:
            raise ValueError(f"max_faces must be >= 4, got {self.max_faces}")
        if self.eps < 0:
            raise ValueError(f"eps must be >= 0, got {self.eps}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HullConfig":
        return cls(**data)

    @classmethod
    def from_json(cls, path: Path) -> "HullConfig":
        """Завантажити конфіг з JSON-файлу."""
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)


# Глобальний конфіг за замовчуванням
DEFAULT_CONFIG = HullConfig()
