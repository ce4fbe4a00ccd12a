"""Field source kinds and their pointwise contributions.

Every source is an immutable value with an `evaluate(point)` method that
returns a SourceSample (vector, non-negative strength, optional tensor) and
a tuple of activation boxes. Sources never raise on degenerate geometry:

- PointCharge: magnitude q / (d + ε)^decay along the offset from the
  charge; at the charge itself the vector is zero and strength is |q|.
- LineCharge: the segment is split into max(8, round(4·length)) pieces,
  each a charge q/segments at its midpoint with a fixed inverse-square
  falloff (cps / (d² + ε)). Supplies its own tensor summed per piece.
- SpinForce: tangential swirl about a frame's z axis,
  s · (1 + ρ/r)^-(decay+1) · (1 + |z|/r)^-1; zero on the axis.
- VectorForce: unit axial pull along a segment plus half-strength radial
  push from the closest segment point, both scaled by 1 / (1 + d²).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Sequence, Tuple

import numpy as np

from geofield.field.bounds import Box, contains, normalize_bounds
from geofield.frame.basis import Frame, plane_coordinates, world_frame
from geofield.numeric.guards import (
    EPSILON,
    as_vec3,
    clamp,
    finite_or,
    length,
    length_sq,
    safe_normalize,
    try_normalize,
    zero_vec3,
)
from geofield.tensor.symmetric import SymmetricTensor


@dataclass(frozen=True, eq=False)
class SourceSample:
    vector: np.ndarray
    strength: float
    tensor: Optional[SymmetricTensor] = None


def _freeze(obj: Any, name: str, value: Any) -> None:
    object.__setattr__(obj, name, value)


def _frozen_vec(value: Any) -> np.ndarray:
    arr = as_vec3(value)
    arr.setflags(write=False)
    return arr


class FieldSource:
    """
    Base for field sources.

    Subclasses are frozen dataclasses that define `kind`, a `bounds` tuple and
    `evaluate(point) -> SourceSample`.
    """

    kind: ClassVar[str] = "source"
    bounds: Tuple[Box, ...] = ()

    def active(self, point: Sequence[float]) -> bool:
        return contains(self.bounds, point)

    def evaluate(self, point: Sequence[float]) -> SourceSample:
        raise NotImplementedError


@dataclass(frozen=True, eq=False)
class PointCharge(FieldSource):
    position: np.ndarray
    charge: float = 1.0
    decay: float = 2.0
    bounds: Tuple[Box, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    kind: ClassVar[str] = "point_charge"

    def __post_init__(self) -> None:
        _freeze(self, "position", _frozen_vec(self.position))
        _freeze(self, "charge", finite_or(self.charge, 1.0))
        _freeze(self, "decay", max(0.0, finite_or(self.decay, 2.0)))
        _freeze(self, "bounds", normalize_bounds(self.bounds))

    def evaluate(self, point: Sequence[float]) -> SourceSample:
        offset = as_vec3(point) - self.position
        distance = length(offset)
        if distance < EPSILON:
            return SourceSample(zero_vec3(), abs(self.charge))
        magnitude = self.charge / (distance + EPSILON) ** self.decay
        return SourceSample(offset / distance * magnitude, abs(magnitude))


def line_segment_count(start: np.ndarray, end: np.ndarray) -> int:
    return max(8, int(math.floor(4.0 * length(end - start) + 0.5)))


@dataclass(frozen=True, eq=False)
class LineCharge(FieldSource):
    start: np.ndarray
    end: np.ndarray
    charge: float = 1.0
    bounds: Tuple[Box, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    kind: ClassVar[str] = "line_charge"

    def __post_init__(self) -> None:
        _freeze(self, "start", _frozen_vec(self.start))
        _freeze(self, "end", _frozen_vec(self.end))
        _freeze(self, "charge", finite_or(self.charge, 1.0))
        _freeze(self, "bounds", normalize_bounds(self.bounds))

    def evaluate(self, point: Sequence[float]) -> SourceSample:
        p = as_vec3(point)
        direction = self.end - self.start
        segments = line_segment_count(self.start, self.end)
        per_segment = self.charge / segments

        fractions = (np.arange(segments, dtype=np.float64) + 0.5) / segments
        offsets = p - (self.start + fractions[:, None] * direction)
        dist_sq = np.einsum("ij,ij->i", offsets, offsets)
        dist = np.sqrt(dist_sq)
        # midpoints coinciding with the point contribute nothing
        keep = dist >= EPSILON
        units = offsets[keep] / dist[keep, None]
        magnitudes = per_segment / (dist_sq[keep] + EPSILON)
        weights = np.abs(magnitudes)

        vector = (units * magnitudes[:, None]).sum(axis=0)
        tensor = SymmetricTensor.from_matrix((units * weights[:, None]).T @ units)
        return SourceSample(vector, float(weights.sum()), tensor)


@dataclass(frozen=True, eq=False)
class SpinForce(FieldSource):
    frame: Frame = field(default_factory=world_frame)
    strength: float = 1.0
    radius: float = 1.0
    decay: float = 2.0
    bounds: Tuple[Box, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    kind: ClassVar[str] = "spin_force"

    def __post_init__(self) -> None:
        _freeze(self, "strength", finite_or(self.strength, 1.0))
        _freeze(self, "radius", max(abs(finite_or(self.radius, 1.0)), EPSILON))
        _freeze(self, "decay", max(0.0, finite_or(self.decay, 2.0)))
        _freeze(self, "bounds", normalize_bounds(self.bounds))

    def evaluate(self, point: Sequence[float]) -> SourceSample:
        x, y, z = plane_coordinates(point, self.frame)
        radial = math.hypot(x, y)
        tangential = try_normalize(self.frame.y_axis * x - self.frame.x_axis * y)
        if tangential is None:
            return SourceSample(zero_vec3(), 0.0)
        r = self.radius
        horizontal = 1.0 / (1.0 + radial / r) ** (self.decay + 1.0)
        vertical = 1.0 / (1.0 + abs(z) / r)
        magnitude = self.strength * horizontal * vertical
        return SourceSample(tangential * magnitude, abs(magnitude))


@dataclass(frozen=True, eq=False)
class VectorForce(FieldSource):
    start: np.ndarray
    end: np.ndarray
    bounds: Tuple[Box, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    kind: ClassVar[str] = "vector_force"

    def __post_init__(self) -> None:
        _freeze(self, "start", _frozen_vec(self.start))
        _freeze(self, "end", _frozen_vec(self.end))
        _freeze(self, "bounds", normalize_bounds(self.bounds))

    def closest_point(self, point: Sequence[float]) -> np.ndarray:
        p = as_vec3(point)
        direction = self.end - self.start
        denom = length_sq(direction)
        if denom < EPSILON * EPSILON:
            return self.start.copy()
        t = clamp(float(np.dot(p - self.start, direction)) / denom, 0.0, 1.0)
        return self.start + direction * t

    def evaluate(self, point: Sequence[float]) -> SourceSample:
        p = as_vec3(point)
        offset = p - self.closest_point(p)
        falloff = 1.0 / (1.0 + length_sq(offset))
        axial = safe_normalize(self.end - self.start) * falloff
        radial = safe_normalize(offset) * (0.5 * falloff)
        vector = axial + radial
        return SourceSample(vector, length(vector))


SOURCE_KINDS = {
    cls.kind: cls for cls in (PointCharge, LineCharge, SpinForce, VectorForce)
}


__all__ = [
    "SourceSample",
    "FieldSource",
    "PointCharge",
    "LineCharge",
    "SpinForce",
    "VectorForce",
    "SOURCE_KINDS",
    "line_segment_count",
]
