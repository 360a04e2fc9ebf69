from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import HullConfig
from .errors import DegenerateInputError, HullError, InsufficientPointsError
from .export import face_normal
from .hull import ConvexHull3D
from .preprocess import MIN_POINTS

logger = logging.getLogger(__name__)


@dataclass
class HrirRecord:
    """
    Один виміряний напрямок: вектор напрямку (≈ одиничний), пара імпульсних
    відгуків (лівий/правий) і частота дискретизації.
    """
    direction: Tuple[float, float, float]
    left: Sequence[float]
    right: Sequence[float]
    sample_rate: int


@dataclass
class SphereMesh:
    """
    Оболонка напрямків у тому вигляді, який бере бінарний записувач:
    частота, довжина HRIR, напрямки-вершини і плаский індексний буфер.
    """
    sample_rate: int
    hrir_len: int
    directions: np.ndarray      # (N, 3)
    indices: np.ndarray         # (3F,) uint32
    records: List[HrirRecord]

    @property
    def vertex_count(self) -> int:
        return len(self.directions)

    @property
    def index_count(self) -> int:
        return len(self.indices)

    def faces(self) -> List[Tuple[int, int, int]]:
        return [(a, b, c) for a, b, c in self.indices.reshape(-1, 3).tolist()]


def _check_records(records: Sequence[HrirRecord]) -> Tuple[int, int]:
    """Однакові частота і довжина у всіх записах; повертає (sample_rate, hrir_len)."""
    if not records:
        return 0, 0
    sample_rate = records[0].sample_rate
    hrir_len = len(records[0].left)
    for i, r in enumerate(records):
        if r.sample_rate != sample_rate:
            raise ValueError(f"Record {i}: sample rate {r.sample_rate} != {sample_rate}")
        if len(r.left) != hrir_len or len(r.right) != hrir_len:
            raise ValueError(
                f"Record {i}: HRIR length {len(r.left)}/{len(r.right)} != {hrir_len}"
            )
    return sample_rate, hrir_len


def scipy_hull_faces(points: np.ndarray) -> List[Tuple[int, int, int]]:
    """
    Опукла оболонка через scipy.spatial.ConvexHull (Qhull) з переорієнтацією
    симплексів назовні - як контрольний бекенд.
    """
    try:
        from scipy.spatial import ConvexHull, QhullError
    except ImportError as e:
        raise RuntimeError(
            "backend='scipy', but SciPy is not installed. "
            "Install scipy or use backend='internal'."
        ) from e

    if len(points) < MIN_POINTS:
        raise InsufficientPointsError(len(points))
    try:
        hull = ConvexHull(points)
    except QhullError as e:
        raise DegenerateInputError(f"Qhull failed: {e}") from e

    faces: List[Tuple[int, int, int]] = []
    for (a, b, c), eq in zip(hull.simplices.tolist(), hull.equations):
        n = face_normal(points[a], points[b], points[c])
        # equations[:, :3] - зовнішні нормалі Qhull
        if np.dot(n, eq[:3]) < 0:
            b, c = c, b
        faces.append((a, b, c))
    return faces


def build_sphere_mesh(
    records: Sequence[HrirRecord],
    config: Optional[HullConfig] = None,
    backend: str = "internal",
    rng: Optional[np.random.Generator] = None,
) -> SphereMesh:
    """
    Повний пайплайн:
      - перевіряє узгодженість частоти і довжини HRIR;
      - будує оболонку напрямків (наш ConvexHull3D або SciPy);
      - пакує грані в плаский індексний буфер.

    Грані посилаються на індекси records. HullError пробрасується далі:
    побудова «все або нічого».
    """
    records = list(records)
    sample_rate, hrir_len = _check_records(records)
    directions = np.array([tuple(r.direction) for r in records], dtype=float).reshape(-1, 3)

    try:
        if backend.lower() == "internal":
            faces = ConvexHull3D(directions, config, rng).faces()
        elif backend.lower() == "scipy":
            faces = scipy_hull_faces(directions)
        else:
            raise ValueError(f"Unknown backend: {backend}")
    except HullError as e:
        logger.error(f"Sphere mesh failed for {len(records)} directions ({backend}): {e}")
        raise

    indices = np.asarray(faces, dtype=np.uint32).reshape(-1)
    logger.info(
        f"Sphere mesh: {len(records)} directions, {len(faces)} faces, "
        f"{sample_rate} Hz, HRIR length {hrir_len}"
    )
    return SphereMesh(sample_rate, hrir_len, directions, indices, records)
