"""
Tests for the quickhull core:
- simplex initialization and orientation
- pending point queue ordering
- visibility / horizon / retriangulation
- full construction scenarios and failure modes
"""

import numpy as np
import pytest

from sphull.config import HullConfig
from sphull.errors import DegenerateInputError, FaceLimitExceededError, InsufficientPointsError
from sphull.hull import (
    ConvexHull3D,
    FaceRetriangulator,
    HullMesh,
    HullState,
    PendingPointQueue,
    SimplexInitializer,
    build_hull,
    classify,
    orient_face,
    trace_horizon,
)
from sphull.predicates import plane_through
from sphull.geom import as_pt
from sphull.preprocess import PointPreprocessor, PreparedPoints

from conftest import edge_multiplicity


def exact(points):
    """Підготувати точки без збурення."""
    return PointPreprocessor(noise_fraction=0.0).run(points)


def assert_closed(faces):
    counts = edge_multiplicity(faces)
    assert counts
    assert all(k == 2 for k in counts.values())


# ============== SimplexInitializer ==============

class TestSimplexInitializer:

    def test_four_faces_each_omitting_one_point(self, tetra_points):
        mesh = SimplexInitializer(exact(tetra_points)).build()

        assert len(mesh) == 4
        omitted = sorted(({0, 1, 2, 3} - set(f)).pop() for f in mesh.faces())
        assert omitted == [0, 1, 2, 3]

    def test_no_vertex_sees_its_opposite_face(self, tetra_points):
        pts = exact(tetra_points)
        mesh = SimplexInitializer(pts).build()

        for f in mesh:
            k = ({0, 1, 2, 3} - set(f.v)).pop()
            score = np.dot(f.normal, pts.xyz[k]) + f.offset
            assert score < 0

    def test_plane_passes_through_face_points(self, tetra_points):
        pts = exact(tetra_points)
        mesh = SimplexInitializer(pts).build()

        for f in mesh:
            for i in f.v:
                assert abs(np.dot(f.normal, pts.xyz[i]) + f.offset) < 1e-12
            assert np.linalg.norm(f.normal) == pytest.approx(1.0)

    def test_coplanar_first_points_raise(self):
        pts = exact([(0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0), (0, 0, 1)])
        with pytest.raises(DegenerateInputError):
            SimplexInitializer(pts).build()

    def test_orientation_fix_is_idempotent(self, tetra_points):
        pts = exact(tetra_points)
        mesh = SimplexInitializer(pts).build()

        for f in mesh:
            k = ({0, 1, 2, 3} - set(f.v)).pop()
            plane = plane_through(*(as_pt(pts.xyz[i]) for i in f.v))
            face, (n, d) = orient_face(pts.rows, f.v, plane, k)
            assert face == f.v
            np.testing.assert_allclose(tuple(n), f.normal, atol=1e-12)
            assert d == pytest.approx(f.offset)


# ============== PendingPointQueue ==============

class TestPendingPointQueue:

    def test_descending_distance_from_centroid(self):
        xyz = np.array([
            [0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1],
            [0, 0, 0], [2, 0, 0], [10, 0, 0], [1, 0, 0],
        ], dtype=float)
        homog = np.hstack([xyz, np.ones((len(xyz), 1))])
        pts = PreparedPoints(xyz=xyz, homog=homog, span=np.ones(3))

        queue = PendingPointQueue.from_points(pts)

        assert queue.remaining() == [6, 4, 7, 5]
        assert len(queue) == 4
        assert queue.pop() == 6
        assert len(queue) == 3

    def test_pop_from_empty(self, tetra_points):
        queue = PendingPointQueue.from_points(exact(tetra_points))
        assert len(queue) == 0
        with pytest.raises(IndexError):
            queue.pop()


# ============== Visibility / horizon / retriangulation ==============

class TestIncrementalStep:

    @pytest.fixture
    def step(self, tetra_points):
        """Тетраедр + точка за вершиною 0: її бачать 3 грані."""
        pts = exact(tetra_points + [(3, 3, 3)])
        mesh = SimplexInitializer(pts).build()
        return pts, mesh

    def test_classify_is_pure(self, step):
        pts, mesh = step
        tris, normals, offsets = mesh.tris.copy(), mesh.normals.copy(), mesh.offsets.copy()

        vis = classify(mesh, pts.xyz[4], 4)

        assert len(vis.visible_ids) == 3
        assert len(vis.hidden_ids) == 1
        np.testing.assert_array_equal(mesh.tris, tris)
        np.testing.assert_array_equal(mesh.normals, normals)
        np.testing.assert_array_equal(mesh.offsets, offsets)

    def test_interior_point_sees_nothing(self, step):
        pts, mesh = step
        vis = classify(mesh, np.zeros(3))
        assert not vis.any

    def test_horizon_is_closed_loop(self, step):
        pts, mesh = step
        vis = classify(mesh, pts.xyz[4], 4)

        horizon = trace_horizon(mesh, vis)

        assert len(horizon) == 3
        seen = [v for e in horizon for v in e]
        assert sorted(seen) == [1, 1, 2, 2, 3, 3]

    def test_retriangulation_restores_manifold(self, step):
        pts, mesh = step
        vis = classify(mesh, pts.xyz[4], 4)
        horizon = trace_horizon(mesh, vis)

        new_mesh = FaceRetriangulator(pts, (0, 1, 2, 3), 100).apply(mesh, vis, horizon, 4, [0, 1, 2, 3])

        assert len(new_mesh) == 4
        assert_closed(new_mesh.faces())
        assert 0 not in new_mesh.vertex_ids()
        # стара сітка не змінилась
        assert len(mesh) == 4 and 4 not in mesh.vertex_ids()
        # жодна точка не зовні
        dist = pts.xyz @ new_mesh.normals.T + new_mesh.offsets
        assert np.all(dist <= 1e-12)

    def test_face_limit(self, step):
        pts, mesh = step
        vis = classify(mesh, pts.xyz[4], 4)
        horizon = trace_horizon(mesh, vis)

        with pytest.raises(FaceLimitExceededError) as exc:
            FaceRetriangulator(pts, (0, 1, 2, 3), 3).apply(mesh, vis, horizon, 4, [0, 1, 2, 3])
        assert exc.value.limit == 3
        assert exc.value.faces == 4

    def test_reference_falls_back_to_processed_point(self):
        pts = exact([
            (0, 0, 0), (2, 2, 0),                       # «якорі» в площині грані
            (1, 0, 0), (0, 1, 0), (1, 1, 0),            # грань z = 0
            (0, 0, 1),
        ])
        retri = FaceRetriangulator(pts, (0, 1), 100)

        ref, dv = retri._reference((2, 3, 4), [0, 1, 5])

        assert ref == 5
        assert dv < 0

    def test_reference_all_coplanar_raises(self):
        pts = exact([(0, 0, 0), (2, 2, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0)])
        retri = FaceRetriangulator(pts, (0, 1), 100)

        with pytest.raises(DegenerateInputError):
            retri._reference((2, 3, 4), [0, 1])


# ============== HullMesh ==============

class TestHullMesh:

    def test_empty(self):
        mesh = HullMesh()
        assert len(mesh) == 0
        assert mesh.faces() == []
        assert mesh.scores(np.zeros(3)).shape == (0,)

    def test_mismatched_columns(self):
        with pytest.raises(ValueError):
            HullMesh([(0, 1, 2)], [], [])

    def test_without_and_extended_return_new_state(self):
        mesh = HullMesh([(0, 1, 2), (0, 2, 3)], [(0, 0, 1), (0, 0, -1)], [0.0, 1.0])

        smaller = mesh.without(np.array([True, False]))
        bigger = smaller.extended([(4, 5, 6)], [(1, 0, 0)], [2.0])

        assert mesh.faces() == [(0, 1, 2), (0, 2, 3)]
        assert smaller.faces() == [(0, 2, 3)]
        assert bigger.faces() == [(0, 2, 3), (4, 5, 6)]
        assert bigger.face(1).offset == 2.0


# ============== Full construction ==============

class TestConvexHull3D:

    def test_regular_tetrahedron(self, tetra_points):
        hull = ConvexHull3D(tetra_points, HullConfig(seed=0))

        faces = hull.faces()
        assert len(faces) == 4
        assert all(sorted(f) != sorted(g) for i, f in enumerate(faces) for g in faces[i + 1:])
        assert {i for f in faces for i in f} == {0, 1, 2, 3}
        assert hull.state is HullState.DONE

    def test_cube(self, cube_points):
        hull = ConvexHull3D(cube_points, HullConfig(seed=1))

        faces = hull.faces()
        assert len(faces) == 12
        assert {i for f in faces for i in f} == set(range(8))
        assert_closed(faces)

        center = np.array([0.5, 0.5, 0.5])
        pts = np.asarray(cube_points, dtype=float)
        for f in hull.mesh:
            mid = pts[list(f.v)].mean(axis=0)
            assert np.dot(f.normal, mid - center) > 0

    def test_cube_with_interior_points(self, cube_points):
        raw = cube_points + [(0.5, 0.5, 0.5), (0.2, 0.8, 0.3), (0.8, 0.2, 0.7)]
        hull = ConvexHull3D(raw, HullConfig(seed=2))

        assert len(hull.faces()) == 12
        assert hull.discarded == 3
        assert hull.iterations == len(raw) - 4
        report = hull.validate()
        assert report["bad_edges"] == []
        assert report["bad_orient_faces"] == []
        assert report["outside_points"] == []
        assert report["euler_ok"]

    def test_sphere_cloud(self, sphere_points):
        hull = ConvexHull3D(sphere_points, HullConfig(seed=3))

        faces = hull.faces()
        used = {i for f in faces for i in f}
        assert len(faces) == 2 * len(used) - 4
        assert_closed(faces)

        # незбурені вхідні точки теж усередині
        dist = sphere_points @ hull.mesh.normals.T + hull.mesh.offsets
        assert dist.max() <= 1e-6

        report = hull.validate()
        assert report["bad_orient_faces"] == []
        assert report["outside_points"] == []

    def test_deterministic_for_fixed_seed(self, sphere_points):
        a = ConvexHull3D(sphere_points[:200], HullConfig(seed=7)).faces()
        b = ConvexHull3D(sphere_points[:200], HullConfig(seed=7)).faces()
        assert a == b

    def test_injected_rng(self, cube_points):
        a = ConvexHull3D(cube_points, rng=np.random.default_rng(5)).faces()
        b = ConvexHull3D(cube_points, rng=np.random.default_rng(5)).faces()
        assert a == b

    def test_too_few_points(self):
        with pytest.raises(InsufficientPointsError) as exc:
            ConvexHull3D([(0, 0, 0), (1, 0, 0), (0, 1, 0)])
        assert exc.value.count == 3

    def test_coincident_points(self):
        with pytest.raises(DegenerateInputError):
            ConvexHull3D([(0.3, 0.3, 0.3)] * 10, HullConfig(seed=0))

    def test_face_limit_exceeded(self, cube_points):
        with pytest.raises(FaceLimitExceededError):
            ConvexHull3D(cube_points, HullConfig(seed=0, max_faces=10))

    def test_to_off(self, cube_points):
        hull = ConvexHull3D(cube_points, HullConfig(seed=0))
        lines = hull.to_off().splitlines()
        assert lines[0] == "OFF"
        assert lines[1] == "8 12 0"


# ============== build_hull ==============

class TestBuildHull:

    def test_success(self, cube_points):
        result = build_hull(cube_points, HullConfig(seed=0))

        assert result.ok
        assert result.state is HullState.DONE
        assert len(result.faces) == 12
        assert result.hull is not None

    def test_three_points_give_empty_result(self):
        result = build_hull([(0, 0, 0), (1, 0, 0), (0, 1, 0)])

        assert not result.ok
        assert result.faces == []
        assert isinstance(result.error, InsufficientPointsError)
        assert result.state is HullState.FAILED

    def test_empty_input(self):
        result = build_hull([])
        assert isinstance(result.error, InsufficientPointsError)

    def test_coincident_points(self):
        result = build_hull(np.full((20, 3), 0.5), HullConfig(seed=0))

        assert result.faces == []
        assert isinstance(result.error, DegenerateInputError)

    def test_face_limit_gives_no_partial_mesh(self, sphere_points):
        result = build_hull(sphere_points[:200], HullConfig(seed=0, max_faces=50))

        assert result.faces == []
        assert isinstance(result.error, FaceLimitExceededError)
        assert result.hull is None
