"""
Текстові експорти оболонки (OFF / OBJ / MATLAB) і читання точок.

Для візуалізації та зовнішньої перевірки; сам алгоритм їх не використовує.
"""
from __future__ import annotations

import logging
from math import sqrt
from pathlib import Path
from typing import List, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
Tri = Tuple[int, int, int]
XYZ = Tuple[float, float, float]


def _xyz(p: Sequence[float]) -> XYZ:
    return float(p[0]), float(p[1]), float(p[2])


def face_normal(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> XYZ:
    """Одинична нормаль cross(b-a, c-a); малий доданок у знаменнику - від нуля."""
    ux, uy, uz = b[0] - a[0], b[1] - a[1], b[2] - a[2]
    vx, vy, vz = c[0] - a[0], c[1] - a[1], c[2] - a[2]
    nx, ny, nz = uy*vz - uz*vy, uz*vx - ux*vz, ux*vy - uy*vx
    scale = 1.0 / (sqrt(nx*nx + ny*ny + nz*nz) + 2.23e-9)
    return nx*scale, ny*scale, nz*scale


def _with_suffix(path: PathLike, suffix: str) -> Path:
    path = Path(path)
    return path if path.suffix == suffix else path.with_suffix(suffix)


# ---------- OFF ----------
def to_off(points: Sequence[Sequence[float]], faces: Sequence[Tri]) -> str:
    """
    OFF для трикутної поверхні: лише вершини, на які посилаються грані,
    з перенумерацією.
    """
    used = sorted({i for tri in faces for i in tri})
    remap = {old: new for new, old in enumerate(used)}
    lines = ["OFF", f"{len(used)} {len(faces)} 0"]
    for i in used:
        x, y, z = _xyz(points[i])
        lines.append(f"{x} {y} {z}")
    for a, b, c in faces:
        lines.append(f"3 {remap[a]} {remap[b]} {remap[c]}")
    return "\n".join(lines)


def write_off(path: PathLike, points: Sequence[Sequence[float]], faces: Sequence[Tri]) -> Path:
    path = _with_suffix(path, ".off")
    with open(path, "w", encoding="utf-8") as f:
        f.write(to_off(points, faces))
    logger.info(f"Wrote {path} ({len(faces)} faces)")
    return path


# ---------- OBJ ----------
def to_obj(points: Sequence[Sequence[float]], faces: Sequence[Tri], keep_only_used: bool = False) -> str:
    """
    OBJ з нормаллю на кожну грань (`f a//n b//n c//n`, індекси з 1).
    keep_only_used=True: вершини пишуться окремо для кожного кута грані
    (3 на грань, у порядку граней) - формат «одразу в GPU-буфер».
    """
    lines = ["o"]
    if keep_only_used:
        for tri in faces:
            for i in tri:
                x, y, z = _xyz(points[i])
                lines.append(f"v {x:f} {y:f} {z:f}")
    else:
        for p in points:
            x, y, z = _xyz(p)
            lines.append(f"v {x:f} {y:f} {z:f}")

    for a, b, c in faces:
        nx, ny, nz = face_normal(points[a], points[b], points[c])
        lines.append(f"vn {nx:f} {ny:f} {nz:f}")

    for k, (a, b, c) in enumerate(faces):
        n = k + 1
        if keep_only_used:
            a, b, c = 3*k, 3*k + 1, 3*k + 2
        lines.append(f"f {a + 1}//{n} {b + 1}//{n} {c + 1}//{n}")
    return "\n".join(lines) + "\n"


def write_obj(path: PathLike, points: Sequence[Sequence[float]], faces: Sequence[Tri],
              keep_only_used: bool = False) -> Path:
    path = _with_suffix(path, ".obj")
    with open(path, "w", encoding="utf-8") as f:
        f.write(to_obj(points, faces, keep_only_used))
    logger.info(f"Wrote {path} ({len(faces)} faces)")
    return path


def read_obj_vertices(path: PathLike) -> List[XYZ]:
    """Прочитати з OBJ лише вершини (`v x y z`); решта рядків ігнорується."""
    path = _with_suffix(path, ".obj")
    out: List[XYZ] = []
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            parts = line.split()
            if not parts or parts[0] != "v":
                continue
            if len(parts) < 4:
                raise ValueError(f"{path}:{lineno}: vertex needs 3 coordinates")
            try:
                out.append((float(parts[1]), float(parts[2]), float(parts[3])))
            except ValueError:
                raise ValueError(f"{path}:{lineno}: cannot parse vertex '{line.strip()}'")
    return out


# ---------- MATLAB ----------
def to_m(points: Sequence[Sequence[float]], faces: Sequence[Tri]) -> str:
    """Скрипт для перевірки в MatLab: матриці vertices і faces (індекси з 1)."""
    lines = ["vertices = ["]
    for p in points:
        x, y, z = _xyz(p)
        lines.append(f"{x:f}, {y:f}, {z:f};")
    lines.append("];")
    lines.append("")
    lines.append("faces = [")
    for a, b, c in faces:
        lines.append(f" {a + 1}, {b + 1}, {c + 1};")
    lines.append("];")
    lines.append("")
    lines.append("trisurf(faces, vertices(:,1), vertices(:,2), vertices(:,3));")
    return "\n".join(lines) + "\n"


def write_m(path: PathLike, points: Sequence[Sequence[float]], faces: Sequence[Tri]) -> Path:
    path = _with_suffix(path, ".m")
    with open(path, "w", encoding="utf-8") as f:
        f.write(to_m(points, faces))
    logger.info(f"Wrote {path}")
    return path


# ---------- текстовий ввід ----------
def parse_points(text: str) -> List[XYZ]:
    """
    Парсить точки з багаторядкового тексту.
    Кожен рядок: x y z або x, y, z; порожні рядки та `#`-коментарі пропускаються.
    """
    points: List[XYZ] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.replace(",", " ").split()
        if len(parts) != 3:
            raise ValueError(f"Line {lineno}: expected 3 numbers, got {len(parts)}")
        try:
            x, y, z = map(float, parts)
        except ValueError:
            raise ValueError(f"Line {lineno}: cannot parse numbers '{line}'")
        points.append((x, y, z))
    return points
