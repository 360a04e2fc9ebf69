# examples/demo_pipeline.py
import numpy as np

from sphull.config import HullConfig
from sphull.pipeline import HrirRecord, build_sphere_mesh

if __name__ == "__main__":
    rng = np.random.default_rng(0)
    dirs = rng.normal(size=(200, 3))
    dirs /= np.linalg.norm(dirs, axis=1, keepdims=True)

    # фіктивні HRIR: 128 відліків на вухо
    records = [
        HrirRecord(tuple(d), np.zeros(128), np.zeros(128), 44100)
        for d in dirs
    ]

    mesh = build_sphere_mesh(records, HullConfig(seed=1))                  # або backend="scipy"
    print("Vertices:", mesh.vertex_count)
    print("Indices:", mesh.index_count)
    print("Faces:", len(mesh.faces()))
