from .coerce import (
    ValueKind,
    to_scalar,
    to_point,
    to_vector,
    to_boolean,
    to_frame,
    to_curve,
    to_field,
    to_color,
    to_date,
    COERCERS,
    coerce,
)
from .codec import (
    frame_to_dict,
    frame_from_dict,
    box_to_dict,
    box_from_dict,
    source_to_dict,
    source_from_dict,
    field_to_dict,
    field_from_dict,
)
from .registry import KernelRegistry, register_core_kernels

__all__ = [
    "ValueKind",
    "to_scalar",
    "to_point",
    "to_vector",
    "to_boolean",
    "to_frame",
    "to_curve",
    "to_field",
    "to_color",
    "to_date",
    "COERCERS",
    "coerce",
    "frame_to_dict",
    "frame_from_dict",
    "box_to_dict",
    "box_from_dict",
    "source_to_dict",
    "source_from_dict",
    "field_to_dict",
    "field_from_dict",
    "KernelRegistry",
    "register_core_kernels",
]
