from __future__ import annotations

import numpy as np
import pytest

from geofield.frame import is_orthonormal, plane_coordinates
from geofield.tensor import fit_plane


def test_fit_plane_small_counts():
    f0 = fit_plane([])
    assert np.allclose(f0.frame.origin, 0.0)
    assert np.allclose(f0.frame.z_axis, [0, 0, 1])
    assert f0.deviation == 0.0

    f1 = fit_plane([(1, 2, 3)])
    assert np.allclose(f1.frame.origin, [1, 2, 3])
    assert np.allclose(f1.frame.x_axis, [1, 0, 0])

    f2 = fit_plane([(0, 0, 0), (0, 3, 0)])
    assert np.allclose(f2.frame.x_axis, [0, 1, 0])
    assert abs(float(np.dot(f2.frame.z_axis, [0, 1, 0]))) < 1e-12
    assert is_orthonormal(f2.frame)


def test_fit_plane_coincident_pair_uses_world_x():
    fit = fit_plane([(1, 1, 1), (1, 1, 1)])
    assert np.allclose(fit.frame.x_axis, [1, 0, 0])
    assert is_orthonormal(fit.frame)


def test_fit_plane_exact_tilted_plane():
    rng = np.random.default_rng(7)
    normal = np.array([1.0, -2.0, 0.5])
    normal /= np.linalg.norm(normal)
    u = np.cross(normal, [0.0, 0.0, 1.0])
    u /= np.linalg.norm(u)
    v = np.cross(normal, u)
    origin = np.array([3.0, -1.0, 2.0])
    pts = [origin + a * u + b * v for a, b in rng.uniform(-5, 5, size=(30, 2))]

    fit = fit_plane(pts)
    assert is_orthonormal(fit.frame)
    assert abs(abs(float(np.dot(fit.frame.z_axis, normal))) - 1.0) < 1e-9
    assert fit.deviation < 1e-9
    assert np.allclose(fit.frame.origin, np.mean(pts, axis=0))
    # x follows the first point's in-plane offset
    rel = pts[0] - fit.frame.origin
    assert float(np.dot(rel / np.linalg.norm(rel), fit.frame.x_axis)) == pytest.approx(1.0)


def test_fit_plane_deviation_is_max_distance():
    pts = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0), (0.5, 0.5, 0.2), (0.5, 0.5, -0.2)]
    fit = fit_plane(pts)
    assert np.allclose(np.abs(fit.frame.z_axis), [0, 0, 1], atol=1e-9)
    expected = max(abs(float(plane_coordinates(p, fit.frame)[2])) for p in pts)
    assert fit.deviation == pytest.approx(expected)
    assert fit.deviation == pytest.approx(0.2)


def test_fit_plane_degenerate_clouds_do_not_raise():
    same = fit_plane([(2, 2, 2)] * 5)
    assert np.allclose(same.frame.origin, [2, 2, 2])
    assert same.deviation == 0.0
    line = fit_plane([(0, 0, 0), (1, 1, 1), (2, 2, 2), (3, 3, 3)])
    assert is_orthonormal(line.frame)
    assert line.deviation < 1e-9
