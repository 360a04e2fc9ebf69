"""
Підготовка точок перед побудовою оболонки.

Кожна координата зсувається на u * noise_fraction * span(осі), u ~ U[0, 1);
після цього дублікати і точна копланарність майже напевно зникають.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .errors import InsufficientPointsError

logger = logging.getLogger(__name__)

MIN_POINTS = 4  # d + 1 для d = 3


def as_point_array(points: Iterable[Sequence[float]]) -> np.ndarray:
    """Привести вхід (кортежі, Pt, numpy) до масиву (N, 3) float."""
    if isinstance(points, np.ndarray):
        arr = points.astype(float, copy=False)
    else:
        arr = np.array([tuple(p) for p in points], dtype=float)
    if arr.size == 0:
        return arr.reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected an (N, 3) array of points, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError("Points contain NaN or infinite coordinates")
    return arr


@dataclass(frozen=True)
class PreparedPoints:
    """
    Збурені точки.
    xyz[i]   - координати i-ї вхідної точки після збурення;
    homog[i] - ті самі координати з додатковою «1» для детермінантів;
    span     - розмах (max - min) кожної осі до збурення.
    """
    xyz: np.ndarray
    homog: np.ndarray
    span: np.ndarray

    def __len__(self) -> int:
        return len(self.xyz)

    @cached_property
    def rows(self) -> List[List[float]]:
        """Однорідні координати як списки float (для детермінантів)."""
        return self.homog.tolist()


class PointPreprocessor:
    """
    Додає до кожної координати незалежний зсув u * noise_fraction * span[j],
    u ~ U[0, 1). Генератор передається ззовні - при фіксованому зерні
    результат детермінований.
    """

    def __init__(self, noise_fraction: float = 1e-7, rng: Optional[np.random.Generator] = None):
        self.noise_fraction = noise_fraction
        self.rng = rng if rng is not None else np.random.default_rng()

    def run(self, points: Iterable[Sequence[float]]) -> PreparedPoints:
        arr = as_point_array(points)
        n = len(arr)
        if n < MIN_POINTS:
            raise InsufficientPointsError(n)

        span = arr.max(axis=0) - arr.min(axis=0)
        noise = self.rng.random((n, 3)) * (self.noise_fraction * span)
        xyz = arr + noise

        homog = np.ones((n, 4), dtype=float)
        homog[:, :3] = xyz

        logger.debug(f"Prepared {n} points, span={span.tolist()}")
        return PreparedPoints(xyz=xyz, homog=homog, span=span)
