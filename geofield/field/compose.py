"""Field composition: superposition, merge and split.

A Field is an ordered, immutable tuple of sources plus declared bounds and
metadata. Evaluation is a pure superposition over the sources that are
active at the point (each source is gated by its own boxes; a source with
no boxes is always active):

    vector   = Σ v_i
    strength = Σ |s_i|
    tensor   = Σ T_i, with T_i the source tensor when supplied, otherwise
               unit(v_i) ⊗ unit(v_i) · |s_i|

The declared `bounds` of a Field describe where its sources act; they are
carried through merge/split and serialization but do not gate evaluation
on their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from geofield.field.bounds import Box, normalize_bounds
from geofield.field.sources import (
    FieldSource,
    LineCharge,
    PointCharge,
    SpinForce,
    VectorForce,
)
from geofield.frame.basis import Frame
from geofield.numeric.guards import EPSILON, as_vec3, finite_or, length, try_normalize, zero_vec3
from geofield.tensor.symmetric import EigenConfig, FieldTensor, SymmetricTensor, principal_directions


@dataclass(frozen=True, eq=False)
class Field:
    sources: Tuple[FieldSource, ...] = ()
    bounds: Tuple[Box, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sources", tuple(self.sources))
        object.__setattr__(self, "bounds", normalize_bounds(self.bounds))
        object.__setattr__(self, "metadata", dict(self.metadata or {}))

    def __len__(self) -> int:
        return len(self.sources)


@dataclass(frozen=True, eq=False)
class SourceContribution:
    index: int
    kind: str
    vector: np.ndarray
    strength: float


@dataclass(frozen=True, eq=False)
class FieldEvaluation:
    point: np.ndarray
    vector: np.ndarray
    magnitude: float
    direction: np.ndarray
    strength: float
    tensor: FieldTensor
    contributions: Tuple[SourceContribution, ...]

    @property
    def has_direction(self) -> bool:
        return self.magnitude >= EPSILON


def evaluate_field(
    field: Field, point: Sequence[float], eigen_config: Optional[EigenConfig] = None
) -> FieldEvaluation:
    p = as_vec3(point)
    vector = zero_vec3()
    strength = 0.0
    tensor = SymmetricTensor.zeros()
    contributions: List[SourceContribution] = []

    for index, source in enumerate(field.sources):
        if not source.active(p):
            continue
        sample = source.evaluate(p)
        v = as_vec3(sample.vector)
        s = abs(finite_or(sample.strength, 0.0))
        vector = vector + v
        strength += s
        if sample.tensor is not None:
            tensor = tensor + sample.tensor
        else:
            unit = try_normalize(v)
            if unit is not None:
                tensor = tensor + SymmetricTensor.outer(unit, s)
        contributions.append(SourceContribution(index, source.kind, v, s))

    magnitude = length(vector)
    direction = vector / magnitude if magnitude >= EPSILON else zero_vec3()
    return FieldEvaluation(
        point=p,
        vector=vector,
        magnitude=magnitude,
        direction=direction,
        strength=strength,
        tensor=principal_directions(tensor, eigen_config),
        contributions=tuple(contributions),
    )


def field_vector(field: Field, point: Sequence[float]) -> np.ndarray:
    """Summed vector of the active sources at `point`; no strength or tensor."""
    p = as_vec3(point)
    vector = zero_vec3()
    for source in field.sources:
        if source.active(p):
            vector = vector + as_vec3(source.evaluate(p).vector)
    return vector


def merge_fields(fields: Iterable[Field]) -> Field:
    """
    Concatenate sources in input order.

    Declared bounds are the concatenation of every input's boxes, so a single
    bounded input contributes exactly its own boxes. Metadata is merged left
    to right.
    """
    sources: List[FieldSource] = []
    bounds: List[Box] = []
    metadata: Dict[str, Any] = {}
    for f in fields:
        sources.extend(f.sources)
        bounds.extend(f.bounds)
        metadata.update(f.metadata)
    return Field(tuple(sources), tuple(bounds), metadata)


def split_field(field: Field) -> List[Field]:
    return [Field((source,), source.bounds, dict(field.metadata)) for source in field.sources]


def single_source_field(source: FieldSource) -> Field:
    return Field((source,), source.bounds)


# ---- Factories ----

def point_charge(
    position: Sequence[float], charge: float = 1.0, decay: float = 2.0, bounds: Iterable[Box] = ()
) -> Field:
    return single_source_field(PointCharge(position, charge, decay, bounds))


def line_charge(
    start: Sequence[float], end: Sequence[float], charge: float = 1.0, bounds: Iterable[Box] = ()
) -> Field:
    return single_source_field(LineCharge(start, end, charge, bounds))


def spin_force(
    frame: Frame,
    strength: float = 1.0,
    radius: float = 1.0,
    decay: float = 2.0,
    bounds: Iterable[Box] = (),
) -> Field:
    return single_source_field(SpinForce(frame, strength, radius, decay, bounds))


def vector_force(start: Sequence[float], end: Sequence[float], bounds: Iterable[Box] = ()) -> Field:
    return single_source_field(VectorForce(start, end, bounds))


__all__ = [
    "Field",
    "SourceContribution",
    "FieldEvaluation",
    "evaluate_field",
    "field_vector",
    "merge_fields",
    "split_field",
    "single_source_field",
    "point_charge",
    "line_charge",
    "spin_force",
    "vector_force",
]
