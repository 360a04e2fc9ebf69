"""Спільні фікстури для тестів sphull."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


CUBE = [
    (0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0),
    (0, 0, 1), (1, 0, 1), (1, 1, 1), (0, 1, 1),
]

REGULAR_TETRA = [
    (1, 1, 1), (1, -1, -1), (-1, 1, -1), (-1, -1, 1),
]


@pytest.fixture
def cube_points():
    return list(CUBE)


@pytest.fixture
def tetra_points():
    return list(REGULAR_TETRA)


@pytest.fixture
def sphere_points():
    """1000 точок біля одиничної сфери (1% радіального шуму)."""
    rng = np.random.default_rng(42)
    dirs = rng.normal(size=(1000, 3))
    dirs /= np.linalg.norm(dirs, axis=1, keepdims=True)
    radii = 1.0 + 0.01 * rng.uniform(-1.0, 1.0, size=(1000, 1))
    return dirs * radii


def edge_multiplicity(faces):
    counts = {}
    for a, b, c in faces:
        for u, v in ((a, b), (b, c), (c, a)):
            key = (min(u, v), max(u, v))
            counts[key] = counts.get(key, 0) + 1
    return counts
