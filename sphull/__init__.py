"""
sphull - опукла оболонка (quickhull) для напрямків вимірювань HRTF.
Грані оболонки визначають, які три виміряні напрямки обмежують довільний
напрямок запиту під час інтерполяції.
"""

__version__ = "0.1.0"

from sphull.geom import Pt, EPS, centroid, unique_points
from sphull.predicates import orient3d, orientation, plane_through
from sphull.errors import HullError, InsufficientPointsError, DegenerateInputError, FaceLimitExceededError
from sphull.config import HullConfig, DEFAULT_CONFIG
from sphull.hull import ConvexHull3D, HullMesh, HullResult, HullState, build_hull
from sphull.export import to_off, to_obj, to_m

__all__ = [
    "Pt", "EPS", "centroid", "unique_points",
    "orient3d", "orientation", "plane_through",
    "HullError", "InsufficientPointsError", "DegenerateInputError", "FaceLimitExceededError",
    "HullConfig", "DEFAULT_CONFIG",
    "ConvexHull3D", "HullMesh", "HullResult", "HullState", "build_hull",
    "to_off", "to_obj", "to_m", "__version__",
]
