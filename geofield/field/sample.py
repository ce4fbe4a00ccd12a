"""Uniform grid sampling of a field over a rectangular section of a frame.

This is the interface a display layer consumes: each sample carries the
full FieldEvaluation plus an `alignment` factor in [0, 1] describing how
the field direction relates to the section normal (1 along +z, 0 along -z,
0.5 in-plane or where the field has no direction). Mapping samples to
colors or glyphs is left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from geofield.field.compose import Field, FieldEvaluation, evaluate_field
from geofield.frame.basis import (
    Frame,
    from_three_points,
    plane_coordinates,
    point_from_frame_coordinates,
    world_frame,
)
from geofield.numeric.guards import as_vec3, clamp, finite_or, length, lerp
from geofield.tensor.symmetric import EigenConfig


@dataclass(frozen=True, eq=False)
class Section:
    frame: Frame = field(default_factory=world_frame)
    min_u: float = -0.5
    max_u: float = 0.5
    min_v: float = -0.5
    max_v: float = 0.5

    def __post_init__(self) -> None:
        for name, default in (("min_u", -0.5), ("max_u", 0.5), ("min_v", -0.5), ("max_v", 0.5)):
            object.__setattr__(self, name, finite_or(getattr(self, name), default))

    def sample_point(self, u_index: int, v_index: int, u_count: int, v_count: int) -> np.ndarray:
        u_ratio = 0.0 if u_count <= 1 else u_index / (u_count - 1.0)
        v_ratio = 0.0 if v_count <= 1 else v_index / (v_count - 1.0)
        u = lerp(self.min_u, self.max_u, u_ratio)
        v = lerp(self.min_v, self.max_v, v_ratio)
        return point_from_frame_coordinates(self.frame, u, v)


def section_from_points(points: Sequence[Sequence[float]]) -> Section:
    """
    Section spanned by up to three points.

    - 3+ points: plane through the first three, extents covering their
      in-plane coordinates.
    - 2 points: vertical plane from a toward b, a square of side |ab|
      starting at a.
    - otherwise: the default unit section on the world frame.
    """
    pts = [as_vec3(p) for p in points]
    if len(pts) >= 3:
        a, b, c = pts[:3]
        frame = from_three_points(a, b, c)
        coords = [plane_coordinates(p, frame) for p in (a, b, c)]
        us = [float(q[0]) for q in coords]
        vs = [float(q[1]) for q in coords]
        return Section(frame, min(us), max(us), min(vs), max(vs))
    if len(pts) == 2:
        a, b = pts
        frame = from_three_points(a, b, a + np.array([0.0, 0.0, 1.0]))
        side = length(b - a)
        return Section(frame, 0.0, side, 0.0, side)
    return Section()


@dataclass(frozen=True, eq=False)
class GridSample:
    u_index: int
    v_index: int
    point: np.ndarray
    evaluation: FieldEvaluation
    alignment: float


def _count(value, default: int = 10) -> int:
    return max(1, int(round(finite_or(value, default))))


def sample_section(
    field: Field,
    section: Optional[Section] = None,
    samples_u=10,
    samples_v=None,
    eigen_config: Optional[EigenConfig] = None,
) -> List[GridSample]:
    """Evaluate `field` on a samples_u × samples_v grid, u-major order."""
    section = section or Section()
    nu = _count(samples_u)
    nv = _count(samples_v, nu) if samples_v is not None else nu
    normal = section.frame.z_axis

    out: List[GridSample] = []
    for iu in range(nu):
        for iv in range(nv):
            point = section.sample_point(iu, iv, nu, nv)
            evaluation = evaluate_field(field, point, eigen_config)
            if evaluation.has_direction:
                dot = float(np.dot(evaluation.direction, normal))
            else:
                dot = 0.0
            alignment = clamp((dot + 1.0) / 2.0, 0.0, 1.0)
            out.append(GridSample(iu, iv, point, evaluation, alignment))
    return out


__all__ = ["Section", "section_from_points", "GridSample", "sample_section"]
