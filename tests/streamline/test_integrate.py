from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pytest

from geofield.field import Box, Field, FieldSource, SourceSample, point_charge
from geofield.streamline import StreamlineConfig, field_direction, integrate


@dataclass(frozen=True, eq=False)
class _Constant(FieldSource):
    value: tuple = (1.0, 0.0, 0.0)
    bounds: tuple = ()

    kind = "constant"

    def evaluate(self, point):
        v = np.array(self.value, dtype=np.float64)
        return SourceSample(v, float(np.linalg.norm(v)))


@dataclass(frozen=True, eq=False)
class _LinearX(FieldSource):
    """v = (1 + x, 0, 0)."""

    bounds: tuple = ()

    kind = "linear_x"

    def evaluate(self, point):
        return SourceSample(np.array([1.0 + float(point[0]), 0.0, 0.0]), 1.0)


def _xs(points):
    return [float(p[0]) for p in points]


def test_zero_steps_returns_seed():
    pts = integrate(Field((_Constant(),)), (1, 2, 3), steps=0, step_size=0.5, order=4)
    assert len(pts) == 1
    assert np.allclose(pts[0], [1, 2, 3])


@pytest.mark.parametrize("steps", [0, 1, 10])
def test_empty_field_returns_seed(steps):
    pts = integrate(Field(), (0, 0, 0), steps=steps)
    assert len(pts) == 1


def test_rk4_constant_field_unit_steps():
    seed = np.array([0.5, -1.0, 2.0])
    pts = integrate(Field((_Constant(),)), seed, steps=3, step_size=1.0, order=4)
    assert len(pts) == 4
    for i, p in enumerate(pts):
        assert np.allclose(p, seed + np.array([float(i), 0.0, 0.0]))


@pytest.mark.parametrize("order", [1, 2, 3, 4])
def test_every_order_is_exact_on_constant_field(order):
    pts = integrate(Field((_Constant((0.0, 2.0, 0.0)),)), (0, 0, 0), steps=5, step_size=0.5, order=order)
    assert len(pts) == 6
    assert np.allclose(pts[-1], [0.0, 5.0, 0.0])


def test_step_rules_by_order_on_linear_field():
    f = Field((_LinearX(),))
    one = {k: _xs(integrate(f, (0, 0, 0), steps=1, step_size=1.0, order=k))[1] for k in (1, 2, 3, 4)}
    assert one[1] == pytest.approx(1.0)
    assert one[2] == pytest.approx(1.25)
    # plain three-sample average: (1 + 1.5 + 1.75) / 3
    assert one[3] == pytest.approx(4.25 / 3.0)
    # classical RK4: (1 + 2*1.5 + 2*1.75 + 2.75) / 6
    assert one[4] == pytest.approx(10.25 / 6.0)


def test_speed_is_clamped():
    fast = integrate(Field((_Constant((10.0, 0.0, 0.0)),)), (0, 0, 0), steps=1, step_size=1.0, order=1)
    assert np.allclose(fast[1], [5.0, 0.0, 0.0])
    slow = integrate(Field((_Constant((0.01, 0.0, 0.0)),)), (0, 0, 0), steps=1, step_size=1.0, order=1)
    assert np.allclose(slow[1], [0.1, 0.0, 0.0])
    custom = integrate(
        Field((_Constant((10.0, 0.0, 0.0)),)),
        (0, 0, 0),
        steps=1,
        step_size=1.0,
        order=1,
        config=StreamlineConfig(min_speed=0.0, max_speed=2.0),
    )
    assert np.allclose(custom[1], [2.0, 0.0, 0.0])


def test_leaving_bounds_halts_integration():
    box = Box((-0.5, -1, -1), (1.5, 1, 1))
    pts = integrate(Field((_Constant((1.0, 0.0, 0.0), (box,)),)), (0, 0, 0), steps=10, step_size=1.0, order=1)
    assert _xs(pts) == pytest.approx([0.0, 1.0, 2.0])


def test_missing_intermediate_direction_reuses_previous_sample():
    box = Box((0, -1, -1), (1.2, 1, 1))
    f = Field((_Constant((1.0, 0.0, 0.0), (box,)),))
    pts = integrate(f, (1, 0, 0), steps=5, step_size=1.0, order=2)
    assert _xs(pts) == pytest.approx([1.0, 2.0])
    pts4 = integrate(f, (1, 0, 0), steps=5, step_size=1.0, order=4)
    assert _xs(pts4) == pytest.approx([1.0, 2.0])


def test_stall_guard():
    f = Field((_Constant((0.5, 0.0, 0.0)),))
    pts = integrate(f, (0, 0, 0), steps=10, step_size=0.0, order=1)
    assert len(pts) == 1


def test_inputs_are_sanitized():
    f = Field((_Constant(),))
    assert len(integrate(f, (0, 0, 0), steps=-3)) == 1
    assert len(integrate(f, (0, 0, 0), steps=2.9, step_size=1.0)) == 3
    hi = integrate(Field((_LinearX(),)), (0, 0, 0), steps=1, step_size=1.0, order=9)
    assert hi[1][0] == pytest.approx(10.25 / 6.0)
    lo = integrate(Field((_LinearX(),)), (0, 0, 0), steps=1, step_size=1.0, order=0)
    assert lo[1][0] == pytest.approx(1.0)
    nan_step = integrate(f, (0, 0, 0), steps=1, step_size=float("nan"), order=1)
    assert np.allclose(nan_step[1], [0.5, 0.0, 0.0])


def test_point_charge_streamline_runs_radially_outward():
    pts = integrate(point_charge((0, 0, 0)), (1, 0, 0), steps=20, step_size=0.25, order=4)
    assert len(pts) == 21
    xs = _xs(pts)
    assert all(b > a for a, b in zip(xs, xs[1:]))
    assert np.allclose([p[1] for p in pts], 0.0)
    assert np.allclose([p[2] for p in pts], 0.0)


def test_direction_function_contract():
    f = field_direction(Field())
    assert f(np.zeros(3)) is None
    g = field_direction(Field((_Constant((0.0, 0.0, 3.0)),)))
    assert np.allclose(g(np.zeros(3)), [0.0, 0.0, 3.0])


def test_streamline_config_validation():
    with pytest.raises(ValueError):
        StreamlineConfig(min_speed=-1.0)
    with pytest.raises(ValueError):
        StreamlineConfig(min_speed=2.0, max_speed=1.0)
    with pytest.raises(ValueError):
        StreamlineConfig(max_speed=float("inf"))


def test_streamline_skips_tensor_analysis(monkeypatch):
    import geofield.field.compose as compose

    def _no_eigen(*args, **kwargs):
        raise AssertionError("eigen analysis is not needed for a streamline")

    monkeypatch.setattr(compose, "principal_directions", _no_eigen)
    pts = integrate(point_charge((0, 0, 0)), (1, 0, 0), steps=4, step_size=0.25, order=4)
    assert len(pts) == 5
