"""Composable vector fields from physical-analogy sources.

Exports:
- Box, contains, envelope
- SourceSample, FieldSource, PointCharge, LineCharge, SpinForce, VectorForce
- Field, FieldEvaluation, SourceContribution
- evaluate_field, field_vector, merge_fields, split_field
- point_charge, line_charge, spin_force, vector_force
- Section, section_from_points, GridSample, sample_section
"""

from .bounds import Box, contains, envelope, normalize_bounds
from .sources import (
    SourceSample,
    FieldSource,
    PointCharge,
    LineCharge,
    SpinForce,
    VectorForce,
    SOURCE_KINDS,
)
from .compose import (
    Field,
    SourceContribution,
    FieldEvaluation,
    evaluate_field,
    field_vector,
    merge_fields,
    split_field,
    single_source_field,
    point_charge,
    line_charge,
    spin_force,
    vector_force,
)
from .sample import Section, section_from_points, GridSample, sample_section

__all__ = [
    "Box",
    "contains",
    "envelope",
    "normalize_bounds",
    "SourceSample",
    "FieldSource",
    "PointCharge",
    "LineCharge",
    "SpinForce",
    "VectorForce",
    "SOURCE_KINDS",
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
    "Section",
    "section_from_points",
    "GridSample",
    "sample_section",
]
