"""
sphull - командний рядок.

Usage:
    python -m sphull points.txt --off hull.off --obj hull --m hull
    python -m sphull directions.obj --seed 1 --max-faces 100000 --plot hull.png
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import HullConfig
from .errors import HullError
from .export import parse_points, read_obj_vertices, write_m, write_obj, write_off
from .geom import unique_points
from .hull import ConvexHull3D

logger = logging.getLogger(__name__)


def load_points(path: Path):
    if path.suffix.lower() == ".obj":
        return read_obj_vertices(path)
    return parse_points(path.read_text(encoding="utf-8"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sphull", description="3D convex hull of a point cloud")
    parser.add_argument("input", type=Path, help="points file: 'x y z' per line, or .obj")
    parser.add_argument("--config", type=Path, help="HullConfig JSON")
    parser.add_argument("--seed", type=int, help="perturbation seed")
    parser.add_argument("--max-faces", type=int, help="face count ceiling")
    parser.add_argument("--noise", type=float, help="perturbation as a fraction of axis span")
    parser.add_argument("--dedup", action="store_true", help="drop duplicate points first")
    parser.add_argument("--off", type=Path, help="write OFF")
    parser.add_argument("--obj", type=Path, help="write OBJ (extension added)")
    parser.add_argument("--keep-only-used", action="store_true", help="OBJ: vertices per face corner")
    parser.add_argument("--m", type=Path, help="write MatLab script (extension added)")
    parser.add_argument("--plot", type=Path, help="save a matplotlib render")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = HullConfig.from_json(args.config) if args.config else HullConfig()
    if args.seed is not None:
        config.seed = args.seed
    if args.max_faces is not None:
        config.max_faces = args.max_faces
    if args.noise is not None:
        config.noise_fraction = args.noise

    points = load_points(args.input)
    if args.dedup:
        points = [tuple(p) for p in unique_points(points)]
    logger.info(f"Loaded {len(points)} points from {args.input}")

    try:
        hull = ConvexHull3D(points, config)
    except HullError as e:
        logger.error(f"Hull construction failed for {args.input}: {e}")
        return 1

    report = hull.validate()
    print("VALIDATION:", json.dumps(report))

    faces = hull.faces()
    if args.off:
        write_off(args.off, points, faces)
    if args.obj:
        write_obj(args.obj, points, faces, keep_only_used=args.keep_only_used)
    if args.m:
        write_m(args.m, points, faces)
    if args.plot:
        import matplotlib
        matplotlib.use("Agg")
        from matplotlib.figure import Figure
        from .plot import plot_hull

        fig = Figure(figsize=(6, 6))
        ax = fig.add_subplot(111, projection="3d")
        plot_hull(ax, points, faces)
        fig.savefig(args.plot)
        logger.info(f"Wrote {args.plot}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
