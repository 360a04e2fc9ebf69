"""
Типізовані помилки побудови оболонки.

Усі «жорсткі» збої переривають побудову повністю: часткової сітки немає.
"""
from __future__ import annotations
from typing import Optional


class HullError(ValueError):
    """Базова помилка побудови опуклої оболонки."""


class InsufficientPointsError(HullError):
    """Менше 4 точок - тетраедр не побудувати."""

    def __init__(self, count: int):
        super().__init__(f"Need at least 4 points, got {count}")
        self.count = count


class DegenerateInputError(HullError):
    """Точки копланарні/колінеарні навіть після збурення."""


class FaceLimitExceededError(HullError):
    """Кількість граней перевищила стелю з конфігурації."""

    def __init__(self, faces: int, limit: int, point: Optional[int] = None):
        msg = f"Face count {faces} exceeds the limit of {limit}"
        if point is not None:
            msg += f" while inserting point {point}"
        super().__init__(msg)
        self.faces = faces
        self.limit = limit
        self.point = point
