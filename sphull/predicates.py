# sphull/predicates.py
from __future__ import annotations
from typing import List, Sequence, Tuple

from .errors import DegenerateInputError
from .geom import Pt, sub, cross, dot, norm

Plane = Tuple[Pt, float]  # (одинична нормаль, зсув): dot(n, p) + d == 0

def orient3d(a: Pt, b: Pt, c: Pt, d: Pt) -> float:
    ab = sub(b, a)
    ac = sub(c, a)
    ad = sub(d, a)
    return dot(cross(ab, ac), ad)

# ---------- інструмент для детермінанта ----------
def det(m: List[List[float]]) -> float:
    """Детермінант через Гауса з частковим вибором опорного елемента (float)."""
    n = len(m)
    a = [list(row) for row in m]
    res = 1.0
    for i in range(n):
        # півод
        piv = i
        maxv = abs(a[i][i])
        for r in range(i+1, n):
            v = abs(a[r][i])
            if v > maxv:
                maxv = v; piv = r
        if maxv == 0.0:
            return 0.0
        if piv != i:
            a[i], a[piv] = a[piv], a[i]
            res = -res
        res *= a[i][i]
        # елімінація; однакові рядки дають точний нуль
        for r in range(i+1, n):
            factor = a[r][i] / a[i][i]
            if factor != 0.0:
                for c in range(i, n):
                    a[r][c] -= factor * a[i][c]
    return res

def orientation(a: Sequence[float], b: Sequence[float], c: Sequence[float], p: Sequence[float]) -> float:
    """
    Тест орієнтації грані (a, b, c) відносно точки p.

    Рядки матриці 4x4 - однорідні координати a, b, c, p (з останньою «1»).
    Знак нормовано так, що:
      >0  p бачить грань (нормаль cross(b-a, c-a) дивиться в бік p),
      <0  p по внутрішній стороні,
       0  p копланарна грані.
    """
    m = [
        [a[0], a[1], a[2], 1.0],
        [b[0], b[1], b[2], 1.0],
        [c[0], c[1], c[2], 1.0],
        [p[0], p[1], p[2], 1.0],
    ]
    # det(a,b,c,p | 1) == -orient3d(a,b,c,p)
    return -det(m)

def plane_through(a: Pt, b: Pt, c: Pt) -> Plane:
    """Площина через три точки: нормаль cross(b-a, c-a) / |...|, зсув -dot(n, a)."""
    n = cross(sub(b, a), sub(c, a))
    length = norm(n)
    if length == 0.0:
        raise DegenerateInputError("Face points are collinear: plane normal is undefined")
    inv = 1.0 / length
    n = Pt(n.x*inv, n.y*inv, n.z*inv)
    return n, -dot(n, a)

def signed_distance(plane: Plane, p: Pt) -> float:
    n, d = plane
    return dot(n, p) + d
