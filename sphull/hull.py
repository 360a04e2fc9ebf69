from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .config import DEFAULT_CONFIG, HullConfig
from .errors import DegenerateInputError, FaceLimitExceededError, HullError, InsufficientPointsError
from .export import to_off
from .geom import Pt, as_pt, centroid
from .predicates import Plane, orientation, plane_through, signed_distance
from .preprocess import MIN_POINTS, PointPreprocessor, PreparedPoints, as_point_array

logger = logging.getLogger(__name__)

Edge = Tuple[int, int]          # ребро горизонту (u, v)
UEdge = Tuple[int, int]         # неорієнтоване ребро (min(u,v), max(u,v))
Tri = Tuple[int, int, int]


@dataclass(frozen=True)
class Face:
    """
    Трикутна грань опуклої оболонки.
    v: індекси вершин (у вхідному масиві точок) з орієнтацією «нормаль назовні».
    normal, offset: площина dot(normal, p) + offset == 0; > 0 - p бачить грань.
    """
    v: Tri
    normal: Tuple[float, float, float]
    offset: float

    def edge(self, i: int) -> Edge:
        a, b, c = self.v
        if i == 0:
            return (a, b)
        if i == 1:
            return (b, c)
        return (c, a)


class HullMesh:
    """
    Поточна множина граней і їхніх площин у стовпчиковому вигляді:
      tris    - (F, 3) індекси вершин,
      normals - (F, 3) одиничні нормалі,
      offsets - (F,)   зсуви площин.
    Змінюється лише через without()/extended(), які повертають новий стан,
    тож те, що читається, і те, що пишеться, ніколи не збігаються.
    """

    def __init__(self, tris=None, normals=None, offsets=None):
        self.tris = np.asarray([] if tris is None else tris, dtype=np.intp).reshape(-1, 3)
        self.normals = np.asarray([] if normals is None else normals, dtype=float).reshape(-1, 3)
        self.offsets = np.asarray([] if offsets is None else offsets, dtype=float).reshape(-1)
        if not (len(self.tris) == len(self.normals) == len(self.offsets)):
            raise ValueError("tris, normals and offsets must have the same length")

    def __len__(self) -> int:
        return len(self.tris)

    def __iter__(self) -> Iterator[Face]:
        for i in range(len(self)):
            yield self.face(i)

    def face(self, i: int) -> Face:
        a, b, c = (int(x) for x in self.tris[i])
        nx, ny, nz = (float(x) for x in self.normals[i])
        return Face((a, b, c), (nx, ny, nz), float(self.offsets[i]))

    def faces(self) -> List[Tri]:
        return [(a, b, c) for a, b, c in self.tris.tolist()]

    def vertex_ids(self) -> np.ndarray:
        return np.unique(self.tris)

    def scores(self, p: np.ndarray) -> np.ndarray:
        """dot(normal, p) + offset для всіх граней одразу."""
        return self.normals @ p + self.offsets

    def without(self, mask: np.ndarray) -> "HullMesh":
        keep = ~mask
        return HullMesh(self.tris[keep], self.normals[keep], self.offsets[keep])

    def extended(self, tris: Sequence[Tri], normals: Sequence[Sequence[float]], offsets: Sequence[float]) -> "HullMesh":
        return HullMesh(
            np.vstack([self.tris, np.asarray(tris, dtype=np.intp).reshape(-1, 3)]),
            np.vstack([self.normals, np.asarray(normals, dtype=float).reshape(-1, 3)]),
            np.concatenate([self.offsets, np.asarray(offsets, dtype=float).reshape(-1)]),
        )


# ---------------- орієнтація ----------------
def flip(face: Tri, plane: Plane) -> Tuple[Tri, Plane]:
    """Поміняти місцями дві останні вершини і перевернути площину."""
    a, b, c = face
    n, d = plane
    return (a, c, b), (Pt(-n.x, -n.y, -n.z), -d)


def orient_face(rows: Sequence[Sequence[float]], face: Tri, plane: Plane, ref: int) -> Tuple[Tri, Plane]:
    """
    Зорієнтувати грань назовні відносно точки ref, що лежить по внутрішній
    стороні: якщо ref «бачить» грань - перевернути. Для вже правильно
    зорієнтованої грані нічого не змінюється.
    """
    a, b, c = face
    if orientation(rows[a], rows[b], rows[c], rows[ref]) > 0:
        return flip(face, plane)
    return face, plane


# ---------------- 1) стартовий симплекс ----------------
class SimplexInitializer:
    """Тетраедр із перших 4 точок: грань k - усі вершини, крім k."""

    def __init__(self, pts: PreparedPoints):
        self.pts = pts

    def build(self) -> HullMesh:
        rows = self.pts.rows
        ids = tuple(range(MIN_POINTS))
        if orientation(rows[0], rows[1], rows[2], rows[3]) == 0.0:
            raise DegenerateInputError(
                "First 4 points are coplanar even after perturbation: cannot form a simplex"
            )

        tris: List[Tri] = []
        normals: List[Pt] = []
        offsets: List[float] = []
        for k in ids:
            a, b, c = (i for i in ids if i != k)
            plane = plane_through(as_pt(rows[a]), as_pt(rows[b]), as_pt(rows[c]))
            # k не лежить на грані і не повинна її бачити
            face, (n, d) = orient_face(rows, (a, b, c), plane, k)
            tris.append(face)
            normals.append(n)
            offsets.append(d)
        return HullMesh(tris, [tuple(n) for n in normals], offsets)


# ---------------- 2) черга точок ----------------
class PendingPointQueue:
    """
    Точки, ще не додані до оболонки. Порядок задається один раз на старті:
    спадання нормованої (на розмах осі) відстані від центроїда решти точок.
    Далі - лише pop() спереду, без пересортування.
    """

    def __init__(self, order: Sequence[int]):
        self._order: List[int] = list(order)
        self._head = 0

    @classmethod
    def from_points(cls, pts: PreparedPoints, start: int = MIN_POINTS) -> "PendingPointQueue":
        rest = pts.xyz[start:]
        if len(rest) == 0:
            return cls([])
        mean = rest.mean(axis=0)
        scale = np.where(pts.span > 0, pts.span, 1.0)
        reldist = (((rest - mean) / scale) ** 2).sum(axis=1)
        order = np.argsort(-reldist, kind="stable") + start
        return cls(order.tolist())

    def __len__(self) -> int:
        return len(self._order) - self._head

    def pop(self) -> int:
        if self._head >= len(self._order):
            raise IndexError("pop from empty PendingPointQueue")
        p = self._order[self._head]
        self._head += 1
        return p

    def remaining(self) -> List[int]:
        return self._order[self._head:]


# ---------------- 3) видимість ----------------
@dataclass(frozen=True)
class Visibility:
    point: int
    visible: np.ndarray  # bool-маска (F,)

    @property
    def any(self) -> bool:
        return bool(self.visible.any())

    @property
    def visible_ids(self) -> np.ndarray:
        return np.flatnonzero(self.visible)

    @property
    def hidden_ids(self) -> np.ndarray:
        return np.flatnonzero(~self.visible)


def classify(mesh: HullMesh, point: np.ndarray, p_idx: int = -1) -> Visibility:
    """Грань видима, якщо dot(normal, p) + offset > 0. Сітку не змінює."""
    return Visibility(p_idx, mesh.scores(point) > 0.0)


# ---------------- 4) горизонт ----------------
def trace_horizon(mesh: HullMesh, vis: Visibility) -> List[Edge]:
    """
    Ребра між видимою і невидимою частинами: для кожної видимої грані -
    невидимі грані, що мають із нею рівно 2 спільні вершини. Вершини ребра
    беруться в порядку невидимої грані; порядок знаходження зберігається.
    """
    hidden = mesh.tris[~vis.visible]
    horizon: List[Edge] = []
    for fid in vis.visible_ids:
        member = np.isin(hidden, mesh.tris[fid])
        for h in np.flatnonzero(member.sum(axis=1) == 2):
            u, v = hidden[h][member[h]]
            horizon.append((int(u), int(v)))
    return horizon


# ---------------- 5) перетріангуляція ----------------
class FaceRetriangulator:
    """
    Прибирає видимі грані й пришиває по одній новій грані на кожне ребро
    горизонту, орієнтуючи її назовні детермінантом відносно вже обробленої точки.
    anchors - вершини стартового симплекса: вони завжди всередині оболонки.
    """

    def __init__(self, pts: PreparedPoints, anchors: Sequence[int], max_faces: int):
        self.pts = pts
        self.anchors = tuple(anchors)
        self.max_faces = max_faces

    def _reference(self, face: Tri, processed: Sequence[int]) -> Tuple[int, float]:
        """
        Точка по внутрішній стороні грані та значення тесту орієнтації.
        Спершу - вершина симплекса з найбільшим |det|; якщо всі копланарні,
        перебираємо інші оброблені точки до першого ненульового det.
        """
        rows = self.pts.rows
        a, b, c = face
        best, best_det = -1, 0.0
        for r in self.anchors:
            if r in face:
                continue
            dv = orientation(rows[a], rows[b], rows[c], rows[r])
            if abs(dv) > abs(best_det):
                best, best_det = r, dv
        if best >= 0:
            return best, best_det

        for r in processed:
            if r in face or r in self.anchors:
                continue
            dv = orientation(rows[a], rows[b], rows[c], rows[r])
            if dv != 0.0:
                logger.debug(f"Face {face}: simplex vertices coplanar, using point {r} as reference")
                return r, dv
        raise DegenerateInputError(f"Face {face} is coplanar with every processed point")

    def apply(self, mesh: HullMesh, vis: Visibility, horizon: Sequence[Edge],
              p_idx: int, processed: Sequence[int]) -> HullMesh:
        # 1) знести видимі грані разом з їхніми площинами
        if not horizon:
            raise DegenerateInputError(f"Point {p_idx} sees every face: horizon is empty")
        kept = mesh.without(vis.visible)

        total = len(kept) + len(horizon)
        if total > self.max_faces:
            raise FaceLimitExceededError(total, self.max_faces, p_idx)

        # 2) по одній новій грані на ребро горизонту
        rows = self.pts.rows
        tris: List[Tri] = []
        normals: List[Tuple[float, float, float]] = []
        offsets: List[float] = []
        for u, v in horizon:
            face: Tri = (u, v, p_idx)
            plane = plane_through(as_pt(rows[u]), as_pt(rows[v]), as_pt(rows[p_idx]))

            # 3) орієнтувати назовні
            ref, dv = self._reference(face, processed)
            if dv > 0:
                face, plane = flip(face, plane)
            n, d = plane
            tris.append(face)
            normals.append((n.x, n.y, n.z))
            offsets.append(d)

        return kept.extended(tris, normals, offsets)


# ---------------- головний цикл ----------------
class HullState(Enum):
    INITIALIZING = "initializing"
    EXPANDING = "expanding"
    DONE = "done"
    FAILED = "failed"


class ConvexHull3D:
    """
    Інкрементальний 3D convex hull (quickhull) для хмари точок біля сфери.

    Вхід: послідовність точок (x, y, z), мінімум 4.
    Вихід: self.mesh - HullMesh; faces() повертає трійки індексів у вхідному
    масиві, зорієнтовані назовні.
    Помилки (HullError) переривають побудову повністю: state == FAILED,
    сітка порожня.
    """

    def __init__(self, points, config: Optional[HullConfig] = None,
                 rng: Optional[np.random.Generator] = None):
        self.config = config if config is not None else DEFAULT_CONFIG
        if rng is None:
            rng = np.random.default_rng(self.config.seed)

        self.points = as_point_array(points)        # незбурені, для експорту
        self.state = HullState.INITIALIZING
        self.mesh = HullMesh()
        self.processed: List[int] = []              # порядок обробки точок
        self.discarded = 0                          # точки всередині оболонки
        self.iterations = 0

        try:
            # 0) збурення + однорідна координата
            self.P = PointPreprocessor(self.config.noise_fraction, rng).run(self.points)

            # 1) стартовий тетраедр
            self.mesh = SimplexInitializer(self.P).build()
            self.processed.extend(range(MIN_POINTS))
            self.state = HullState.EXPANDING

            # 2) основний цикл
            self._expand_until_done()
        except HullError:
            self.state = HullState.FAILED
            self.mesh = HullMesh()
            raise

        self.state = HullState.DONE
        logger.info(
            f"Hull built: {len(self.points)} points, {len(self.mesh)} faces, "
            f"{self.discarded} interior points discarded"
        )

    # ---------------- Публічний API ----------------
    def faces(self) -> List[Tri]:
        """Грані (трикутники) як індекси вершин."""
        return self.mesh.faces()

    # ---------------- Внутрішні методи ----------------
    def _expand_until_done(self) -> None:
        """Поки черга не порожня: класифікація → горизонт → перетріангуляція."""
        queue = PendingPointQueue.from_points(self.P)
        retri = FaceRetriangulator(self.P, self.processed[:MIN_POINTS], self.config.max_faces)

        while len(queue):
            p_idx = queue.pop()
            self.iterations += 1

            vis = classify(self.mesh, self.P.xyz[p_idx], p_idx)
            if not vis.any:
                # всередині (або на) поточній оболонці
                self.discarded += 1
                self.processed.append(p_idx)
                continue

            horizon = trace_horizon(self.mesh, vis)
            self.mesh = retri.apply(self.mesh, vis, horizon, p_idx, self.processed)
            self.processed.append(p_idx)
            logger.debug(
                f"Point {p_idx}: {len(vis.visible_ids)} visible, "
                f"{len(horizon)} horizon edges, {len(self.mesh)} faces"
            )

    # ---------------- Діагностика ----------------
    def validate(self, eps: Optional[float] = None) -> dict:
        """
        Перевірка коректності:
          - кожне неорієнтоване ребро зустрічається рівно у 2 гранях;
          - нормалі дивляться геть від внутрішньої точки O (центроїд вершин);
          - жодна (збурена) точка не лежить зовні площини грані далі за eps;
          - Ейлер: F == 2V - 4.
        Повертає словник із діагностикою (порожні списки = все ок).
        """
        eps = self.config.eps if eps is None else eps
        faces = list(self.mesh)

        # 1) ребра мають кратність 2
        edge_count: Dict[UEdge, int] = {}
        for f in faces:
            for ei in range(3):
                u, v = f.edge(ei)
                key = (min(u, v), max(u, v))
                edge_count[key] = edge_count.get(key, 0) + 1
        bad_edges = [(e, k) for e, k in edge_count.items() if k != 2]

        used = self.mesh.vertex_ids().tolist()

        # 2) орієнтації: O має бути по внутрішній стороні кожної грані
        bad_orient: List[int] = []
        if used:
            O = centroid(as_pt(self.P.xyz[i]) for i in used)
            for fid, f in enumerate(faces):
                n = Pt(*f.normal)
                if signed_distance((n, f.offset), O) >= 0:
                    bad_orient.append(fid)

        # 3) опуклість
        outside: List[Tuple[int, int]] = []
        if faces:
            dist = self.P.xyz @ self.mesh.normals.T + self.mesh.offsets
            outside = [(int(p), int(f)) for p, f in np.argwhere(dist > eps)]

        return {
            "faces": len(faces),
            "unique_vertices": len(used),
            "bad_edges": bad_edges,
            "bad_orient_faces": bad_orient,
            "outside_points": outside,
            "euler_ok": len(faces) == 2 * len(used) - 4,
        }

    def to_off(self) -> str:
        """Експорт оболонки у формат OFF (незбурені координати)."""
        return to_off(self.points, self.faces())


# ---------------- вхідна точка ----------------
@dataclass
class HullResult:
    """Результат побудови: або повна сітка, або помилка й порожній список граней."""
    faces: List[Tri]
    error: Optional[HullError] = None
    hull: Optional[ConvexHull3D] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def state(self) -> HullState:
        return HullState.DONE if self.ok else HullState.FAILED


def build_hull(points, config: Optional[HullConfig] = None,
               rng: Optional[np.random.Generator] = None) -> HullResult:
    """
    Побудувати оболонку «все або нічого». HullError не пропускається назовні:
    результат з порожнім faces і заповненим error.
    """
    try:
        hull = ConvexHull3D(points, config, rng)
    except InsufficientPointsError as e:
        logger.info(f"Hull skipped: {e}")
        return HullResult(faces=[], error=e)
    except HullError as e:
        logger.warning(f"Hull construction failed: {e}")
        return HullResult(faces=[], error=e)
    return HullResult(faces=hull.faces(), hull=hull)
