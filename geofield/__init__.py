from __future__ import annotations

# Public API surface: frames, tensors, fields, streamlines, curve search

from .errors import ConfigurationError
from .numeric import EPSILON
from .frame import (
    Frame,
    orthogonal_vector,
    normalize_axes,
    world_frame,
    from_three_points,
    from_line_and_point,
    from_two_lines,
    plane_coordinates,
    point_from_frame_coordinates,
    align,
)
from .tensor import (
    SymmetricTensor,
    EigenConfig,
    EigenResult,
    eigen_decompose,
    FieldTensor,
    principal_directions,
    PlaneFit,
    fit_plane,
)
from .field import (
    Box,
    Field,
    FieldEvaluation,
    evaluate_field,
    merge_fields,
    split_field,
    point_charge,
    line_charge,
    spin_force,
    vector_force,
    Section,
    sample_section,
)
from .streamline import StreamlineConfig, integrate
from .curve import CurveSearchConfig, CurveQueryResult, closest_point, map_parameter, PolylineCurve
from .boundary import KernelRegistry, register_core_kernels

__all__ = [
    "ConfigurationError",
    "EPSILON",
    "Frame",
    "orthogonal_vector",
    "normalize_axes",
    "world_frame",
    "from_three_points",
    "from_line_and_point",
    "from_two_lines",
    "plane_coordinates",
    "point_from_frame_coordinates",
    "align",
    "SymmetricTensor",
    "EigenConfig",
    "EigenResult",
    "eigen_decompose",
    "FieldTensor",
    "principal_directions",
    "PlaneFit",
    "fit_plane",
    "Box",
    "Field",
    "FieldEvaluation",
    "evaluate_field",
    "merge_fields",
    "split_field",
    "point_charge",
    "line_charge",
    "spin_force",
    "vector_force",
    "Section",
    "sample_section",
    "StreamlineConfig",
    "integrate",
    "CurveSearchConfig",
    "CurveQueryResult",
    "closest_point",
    "map_parameter",
    "PolylineCurve",
    "KernelRegistry",
    "register_core_kernels",
]
