"""Epsilon guards, clamping and safe normalization."""

from .guards import (
    EPSILON,
    is_finite,
    finite_or,
    clamp,
    as_vec3,
    zero_vec3,
    length,
    length_sq,
    is_zero_vector,
    try_normalize,
    safe_normalize,
    lerp,
)

__all__ = [
    "EPSILON",
    "is_finite",
    "finite_or",
    "clamp",
    "as_vec3",
    "zero_vec3",
    "length",
    "length_sq",
    "is_zero_vector",
    "try_normalize",
    "safe_normalize",
    "lerp",
]
