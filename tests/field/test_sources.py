from __future__ import annotations

import math

import numpy as np
import pytest

from geofield.field import (
    Box,
    LineCharge,
    PointCharge,
    SpinForce,
    VectorForce,
    evaluate_field,
    line_charge,
    point_charge,
    spin_force,
    vector_force,
)
from geofield.field.sources import line_segment_count
from geofield.frame import world_frame
from geofield.numeric import EPSILON


@pytest.mark.parametrize("d", [0.5, 1.0, 2.0, 7.5])
def test_unit_point_charge_inverse_square(d):
    src = PointCharge((0, 0, 0), 1.0, 2.0)
    direction = np.array([1.0, 2.0, -2.0]) / 3.0
    s = src.evaluate(direction * d)
    assert np.linalg.norm(s.vector) == pytest.approx(1.0 / (d + EPSILON) ** 2)
    assert np.allclose(s.vector / np.linalg.norm(s.vector), direction)
    assert s.strength == pytest.approx(1.0 / (d + EPSILON) ** 2)
    assert s.tensor is None


def test_point_charge_singularity_and_sign():
    src = PointCharge((1, 1, 1), -3.0, 2.0)
    s = src.evaluate((1, 1, 1))
    assert np.allclose(s.vector, 0.0)
    assert s.strength == pytest.approx(3.0)
    # negative charge pulls toward the source
    s2 = src.evaluate((2, 1, 1))
    assert s2.vector[0] < 0.0
    assert s2.strength > 0.0


def test_point_charge_parameters_sanitized():
    src = PointCharge((0, 0, 0), float("nan"), -4.0)
    assert src.charge == 1.0
    assert src.decay == 0.0
    # decay 0: constant magnitude q
    s = src.evaluate((10, 0, 0))
    assert np.linalg.norm(s.vector) == pytest.approx(1.0)


def test_line_segment_count():
    assert line_segment_count(np.zeros(3), np.array([1.0, 0, 0])) == 8
    assert line_segment_count(np.zeros(3), np.array([10.0, 0, 0])) == 40
    assert line_segment_count(np.zeros(3), np.array([2.625, 0, 0])) == 11


def test_line_charge_symmetric_push_and_tensor():
    src = LineCharge((-1, 0, 0), (1, 0, 0), 1.0)
    s = src.evaluate((0, 1, 0))
    # symmetric about the perpendicular bisector: only a y component
    assert abs(s.vector[0]) < 1e-12
    assert s.vector[1] > 0.0
    assert s.tensor is not None
    assert s.strength == pytest.approx(s.tensor.trace())

    segments = 8
    cps = 1.0 / segments
    expected = 0.0
    for i in range(segments):
        mx = -1.0 + 2.0 * (i + 0.5) / segments
        dsq = mx * mx + 1.0
        expected += cps / (dsq + EPSILON) * (1.0 / math.sqrt(dsq))
    assert s.vector[1] == pytest.approx(expected)


def _line_charge_by_pieces(start, end, charge, point):
    start, end, point = (np.asarray(v, dtype=np.float64) for v in (start, end, point))
    n = line_segment_count(start, end)
    vector, strength, tensor = np.zeros(3), 0.0, np.zeros((3, 3))
    for i in range(n):
        offset = point - (start + (end - start) * ((i + 0.5) / n))
        d = float(np.linalg.norm(offset))
        if d < EPSILON:
            continue
        m = charge / n / (d * d + EPSILON)
        u = offset / d
        vector += u * m
        strength += abs(m)
        tensor += abs(m) * np.outer(u, u)
    return vector, strength, tensor


def test_line_charge_matches_piecewise_sum():
    start, end, q = (0.5, -2.0, 1.0), (3.0, 4.0, -1.5), -2.0
    for p in [(0, 0, 0), (1.2, 0.3, 2.0), (10, -4, 1)]:
        s = LineCharge(start, end, q).evaluate(p)
        vector, strength, tensor = _line_charge_by_pieces(start, end, q, p)
        assert np.allclose(s.vector, vector)
        assert s.strength == pytest.approx(strength)
        assert np.allclose(s.tensor.as_matrix(), tensor)


def test_long_line_charge_evaluates():
    s = LineCharge((0, 0, 0), (1e5, 0, 0), 1.0).evaluate((5e4, 1.0, 0.0))
    assert np.all(np.isfinite(s.vector))
    assert s.vector[1] > 0.0
    assert s.strength == pytest.approx(s.tensor.trace())


def test_line_charge_skips_coincident_midpoint():
    src = LineCharge((-1, 0, 0), (1, 0, 0), 1.0)
    mid = -1.0 + 2.0 * 0.5 / 8
    s = src.evaluate((mid, 0, 0))
    assert np.all(np.isfinite(s.vector))
    assert np.isfinite(s.strength)


def test_spin_force_tangential_profile():
    src = SpinForce(world_frame(), 2.0, 1.0, 2.0)
    s = src.evaluate((1, 0, 0))
    # tangential direction at +x is +y
    assert np.allclose(s.vector / np.linalg.norm(s.vector), [0, 1, 0])
    assert np.linalg.norm(s.vector) == pytest.approx(2.0 / 2.0 ** 3)
    up = src.evaluate((1, 0, 1))
    assert np.linalg.norm(up.vector) == pytest.approx(2.0 / 2.0 ** 3 / 2.0)
    axis = src.evaluate((0, 0, 5))
    assert np.allclose(axis.vector, 0.0)
    assert axis.strength == 0.0


def test_spin_force_radius_guard():
    src = SpinForce(world_frame(), 1.0, 0.0, 1.0)
    assert src.radius == EPSILON
    s = src.evaluate((1, 0, 0))
    assert np.all(np.isfinite(s.vector))
    assert SpinForce(world_frame(), 1.0, -3.0).radius == 3.0


def test_vector_force_axial_and_radial():
    src = VectorForce((0, 0, 0), (2, 0, 0))
    s = src.evaluate((1, 1, 0))
    # closest point (1,0,0), distance 1
    assert np.allclose(s.vector, [0.5, 0.25, 0.0])
    assert s.strength == pytest.approx(math.hypot(0.5, 0.25))
    beyond = src.evaluate((4, 0, 0))
    # closest is the clamped end (2,0,0), offset along +x
    assert np.allclose(beyond.vector, [1.5 / 5.0, 0.0, 0.0])
    on = src.evaluate((1, 0, 0))
    assert np.allclose(on.vector, [1.0, 0.0, 0.0])


def test_vector_force_degenerate_segment():
    src = VectorForce((1, 1, 1), (1, 1, 1))
    s = src.evaluate((1, 1, 2))
    assert np.allclose(s.vector, [0.0, 0.0, 0.25])


def test_factories_return_single_source_fields():
    box = Box((-1, -1, -1), (1, 1, 1))
    for f in (
        point_charge((0, 0, 0), bounds=[box]),
        line_charge((0, 0, 0), (1, 0, 0), bounds=[box]),
        spin_force(world_frame(), bounds=[box]),
        vector_force((0, 0, 0), (1, 0, 0), bounds=[box]),
    ):
        assert len(f.sources) == 1
        assert f.bounds == (box,)
        assert f.sources[0].bounds == (box,)


def test_sources_are_immutable():
    src = PointCharge((0, 0, 0))
    with pytest.raises(Exception):
        src.charge = 2.0  # type: ignore[misc]
    with pytest.raises(ValueError):
        src.position[0] = 1.0


def test_point_charge_field_matches_source():
    f = point_charge((0, 0, 0), 2.0, 1.0)
    ev = evaluate_field(f, (0, 0, 4))
    assert ev.magnitude == pytest.approx(2.0 / (4.0 + EPSILON))
    assert np.allclose(ev.direction, [0, 0, 1])
