from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pytest

from geofield.field import (
    Box,
    Field,
    FieldSource,
    PointCharge,
    SourceSample,
    VectorForce,
    contains,
    envelope,
    evaluate_field,
    field_vector,
    line_charge,
    merge_fields,
    point_charge,
    split_field,
    vector_force,
)
from geofield.frame import from_normal, world_frame
from geofield.tensor import SymmetricTensor


@dataclass(frozen=True, eq=False)
class _Constant(FieldSource):
    value: tuple = (1.0, 0.0, 0.0)
    strength: float = 1.0
    bounds: tuple = ()

    kind = "constant"

    def evaluate(self, point):
        return SourceSample(np.array(self.value, dtype=np.float64), self.strength)


def test_empty_field_evaluates_to_zero():
    ev = evaluate_field(Field(), (1, 2, 3))
    assert np.allclose(ev.vector, 0.0)
    assert ev.magnitude == 0.0
    assert np.allclose(ev.direction, 0.0)
    assert ev.strength == 0.0
    assert ev.tensor.total_magnitude == 0.0
    assert ev.contributions == ()
    assert not ev.has_direction


def test_superposition_sums_vectors_and_abs_strengths():
    f = Field((_Constant((1.0, 0.0, 0.0), 2.0), _Constant((0.0, -3.0, 0.0), -3.0)))
    ev = evaluate_field(f, (0, 0, 0))
    assert np.allclose(ev.vector, [1.0, -3.0, 0.0])
    assert ev.magnitude == pytest.approx(np.sqrt(10.0))
    assert ev.strength == pytest.approx(5.0)
    # synthesized tensor: diag(|s1|, |s2|, 0)
    assert np.allclose(ev.tensor.matrix, np.diag([2.0, 3.0, 0.0]))
    assert ev.tensor.total_magnitude == pytest.approx(np.sqrt(5.0))
    assert [p.value for p in ev.tensor.principal] == pytest.approx([3.0, 2.0, 0.0])
    assert [c.index for c in ev.contributions] == [0, 1]
    assert [c.kind for c in ev.contributions] == ["constant", "constant"]


def test_source_supplied_tensor_is_used():
    @dataclass(frozen=True, eq=False)
    class _Tensored(FieldSource):
        bounds: tuple = ()
        kind = "tensored"

        def evaluate(self, point):
            return SourceSample(np.array([1.0, 0.0, 0.0]), 1.0, SymmetricTensor(zz=4.0))

    ev = evaluate_field(Field((_Tensored(),)), (0, 0, 0))
    assert np.allclose(ev.tensor.matrix, np.diag([0.0, 0.0, 4.0]))


def test_bounds_gate_sources():
    box = Box((0, 0, 0), (1, 1, 1))
    f = Field((_Constant((1.0, 0.0, 0.0), 1.0, (box,)), _Constant((0.0, 1.0, 0.0), 1.0)))
    inside = evaluate_field(f, (0.5, 0.5, 0.5))
    assert np.allclose(inside.vector, [1.0, 1.0, 0.0])
    edge = evaluate_field(f, (1.0, 1.0, 1.0))
    assert np.allclose(edge.vector, [1.0, 1.0, 0.0])
    outside = evaluate_field(f, (2.0, 0.5, 0.5))
    assert np.allclose(outside.vector, [0.0, 1.0, 0.0])
    assert [c.index for c in outside.contributions] == [1]


def test_field_vector_matches_full_evaluation():
    box = Box((0, 0, 0), (1, 1, 1))
    f = merge_fields(
        [
            Field((_Constant((1.0, 0.0, 0.0), 1.0, (box,)),)),
            point_charge((0, 2, 0), -1.5),
            line_charge((-1, 0, 1), (1, 0, 1)),
        ]
    )
    for p in [(0.5, 0.5, 0.5), (3.0, -1.0, 0.0), (0.0, 2.0, 0.0)]:
        assert np.allclose(field_vector(f, p), evaluate_field(f, p).vector)
    assert np.allclose(field_vector(Field(), (1, 2, 3)), 0.0)


def test_box_normalization_multi_box_and_frame():
    b = Box((1, 1, 1), (-1, -1, -1))
    assert np.allclose(b.min, [-1, -1, -1]) and np.allclose(b.max, [1, 1, 1])
    far = Box((5, 5, 5), (6, 6, 6))
    assert contains((b, far), (5.5, 5.5, 5.5))
    assert contains((b, far), (0, 0, 0))
    assert not contains((b, far), (3, 3, 3))
    assert contains((), (100, 100, 100))
    assert b.contains((1.0 + 1e-10, 0, 0))
    # oriented box: frame with x = world z, y = -world y, z = world x
    oriented = Box((0, 0, 0), (1, 1, 2), frame=from_normal((0, 0, 0), (1, 0, 0)))
    assert oriented.contains((1.5, 0, 0))
    assert oriented.contains((1.5, -0.5, 0.5))
    assert not oriented.contains((1.5, 0.5, 0.5))
    assert not oriented.contains((-1.0, 0, 0))


def test_envelope():
    assert envelope(()) is None
    env = envelope((Box((0, 0, 0), (1, 1, 1)), Box((2, -1, 0), (3, 0, 5))))
    assert np.allclose(env.min, [0, -1, 0])
    assert np.allclose(env.max, [3, 1, 5])


def test_merge_preserves_order_and_counts():
    a = Field((PointCharge((0, 0, 0)), PointCharge((1, 0, 0))), metadata={"name": "a", "k": 1})
    b = Field((VectorForce((0, 0, 0), (0, 0, 1)),), metadata={"k": 2})
    merged = merge_fields([a, b])
    assert len(merged.sources) == len(a.sources) + len(b.sources)
    assert merged.sources[:2] == a.sources
    assert merged.sources[2] is b.sources[0]
    assert merged.metadata == {"name": "a", "k": 2}
    assert merge_fields([]).sources == ()


def test_merge_bounds_rules():
    box_a = Box((0, 0, 0), (1, 1, 1))
    box_b = Box((2, 2, 2), (3, 3, 3))
    bounded = point_charge((0, 0, 0), bounds=[box_a])
    free = vector_force((0, 0, 0), (1, 0, 0))
    assert merge_fields([bounded, free]).bounds == (box_a,)
    both = merge_fields([bounded, point_charge((0, 0, 0), bounds=[box_b])])
    assert both.bounds == (box_a, box_b)
    assert merge_fields([free, free]).bounds == ()


def test_merged_field_keeps_per_source_gating():
    box_a = Box((0, 0, 0), (1, 1, 1))
    merged = merge_fields([point_charge((0, 0, 0), bounds=[box_a]), vector_force((0, 0, 0), (1, 0, 0))])
    ev = evaluate_field(merged, (5, 0, 0))
    assert [c.kind for c in ev.contributions] == ["vector_force"]


def test_split_returns_single_source_fields():
    box = Box((0, 0, 0), (1, 1, 1))
    f = merge_fields([point_charge((0, 0, 0), bounds=[box]), vector_force((0, 0, 0), (1, 0, 0))])
    parts = split_field(f)
    assert len(parts) == 2
    assert parts[0].sources == (f.sources[0],)
    assert parts[0].bounds == (box,)
    assert parts[1].bounds == ()
    assert split_field(Field()) == []


def test_split_then_merge_evaluates_identically():
    f = merge_fields(
        [point_charge((0, 0, 0), 1.0), vector_force((0, 0, 0), (0, 1, 0)), point_charge((2, 0, 0), -1.0)]
    )
    g = merge_fields(split_field(f))
    for p in [(0.5, 0.5, 0.0), (3, 1, -1), (-2, 0, 4)]:
        assert np.allclose(evaluate_field(f, p).vector, evaluate_field(g, p).vector)


def test_field_is_immutable_tuple():
    f = Field([PointCharge((0, 0, 0))])
    assert isinstance(f.sources, tuple)
    with pytest.raises(Exception):
        f.sources = ()  # type: ignore[misc]
    assert len(f) == 1


def test_world_frame_spin_evaluation_direction():
    from geofield.field import spin_force

    ev = evaluate_field(spin_force(world_frame()), (0, 2, 0))
    assert np.allclose(ev.direction, [-1, 0, 0])
