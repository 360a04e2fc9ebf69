from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np
from mpl_toolkits.mplot3d.art3d import Poly3DCollection


def plot_hull(ax, points, faces: Sequence[Tuple[int, int, int]], show_points: bool = True,
              facecolor: str = "cyan", edgecolor: str = "k", alpha: float = 0.5):
    """
    Намалювати оболонку на 3D-осі matplotlib (projection="3d").
    Повертає Poly3DCollection з трикутниками.
    """
    pts = np.asarray([tuple(p) for p in points], dtype=float).reshape(-1, 3)
    ax.clear()

    if not faces:
        ax.set_title("Немає граней")
        return None

    tris = pts[np.asarray(faces, dtype=np.intp)]
    coll = Poly3DCollection(tris, facecolor=facecolor, edgecolor=edgecolor,
                            linewidths=0.3, alpha=alpha)
    ax.add_collection3d(coll)

    if show_points:
        ax.scatter(pts[:, 0], pts[:, 1], pts[:, 2], s=4, c="k")

    # однакові масштаби
    lo, hi = pts.min(axis=0), pts.max(axis=0)
    mid = 0.5 * (lo + hi)
    max_range = float((hi - lo).max()) or 1.0
    ax.set_xlim(mid[0] - max_range / 2, mid[0] + max_range / 2)
    ax.set_ylim(mid[1] - max_range / 2, mid[1] + max_range / 2)
    ax.set_zlim(mid[2] - max_range / 2, mid[2] + max_range / 2)

    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    ax.set_zlabel("Z")
    ax.set_title(f"Convex hull ({len(faces)} faces)")
    return coll
