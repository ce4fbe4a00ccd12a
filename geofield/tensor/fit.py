"""Least-squares plane through a point cloud (covariance PCA).

Cases
- N = 0: world frame at the origin.
- N = 1: world frame at the point.
- N = 2: x along the segment, normal from orthogonal_vector(x).
- N ≥ 3: centroid and covariance; the normal is the eigenvector of the
  smallest eigenvalue, x is the first point's in-plane offset from the
  centroid. Coincident points collapse to the world frame at the centroid.

`deviation` is the largest absolute distance of any input point from the
fitted plane.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from geofield.frame.basis import (
    Frame,
    normalize_axes,
    orthogonal_vector,
    plane_coordinates,
    world_frame,
)
from geofield.numeric.guards import EPSILON, as_vec3, safe_normalize, try_normalize
from geofield.tensor.symmetric import EigenConfig, SymmetricTensor, eigen_decompose
from geofield.utils.logging import get_logger

_LOG = get_logger("geofield.tensor")


@dataclass(frozen=True, eq=False)
class PlaneFit:
    frame: Frame
    deviation: float


def _covariance(points: np.ndarray, centroid: np.ndarray) -> SymmetricTensor:
    d = points - centroid
    n = float(points.shape[0])
    m = (d.T @ d) / n
    return SymmetricTensor.from_matrix(m)


def fit_plane(points: Sequence[Sequence[float]], config: Optional[EigenConfig] = None) -> PlaneFit:
    pts = np.array([as_vec3(p) for p in points], dtype=np.float64).reshape(-1, 3)
    count = pts.shape[0]

    if count == 0:
        return PlaneFit(world_frame(), 0.0)
    if count == 1:
        return PlaneFit(world_frame(pts[0]), 0.0)
    if count == 2:
        x = try_normalize(pts[1] - pts[0])
        if x is None:
            _LOG.debug("fit_plane: coincident pair, using world x")
            x = np.array([1.0, 0.0, 0.0])
        normal = orthogonal_vector(x)
        y = safe_normalize(np.cross(normal, x))
        return PlaneFit(normalize_axes(pts[0], x, y, normal), 0.0)

    centroid = pts.mean(axis=0)
    cov = _covariance(pts, centroid)
    if cov.trace() < EPSILON * EPSILON:
        _LOG.debug("fit_plane: %d coincident points, using world axes", count)
        return PlaneFit(world_frame(centroid), 0.0)

    smallest = eigen_decompose(cov, config).pairs("asc")[0]
    normal = try_normalize(smallest.vector)
    if normal is None:
        normal = np.array([0.0, 0.0, 1.0])

    rel = pts[0] - centroid
    x = try_normalize(rel - normal * float(np.dot(rel, normal)))
    if x is None:
        x = orthogonal_vector(normal)
    y = safe_normalize(np.cross(normal, x))
    x = safe_normalize(np.cross(y, normal))
    frame = normalize_axes(centroid, x, y, normal)

    deviation = max(abs(float(plane_coordinates(p, frame)[2])) for p in pts)
    return PlaneFit(frame, deviation)


__all__ = ["PlaneFit", "fit_plane"]
