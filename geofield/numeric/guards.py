"""Numeric guards shared by every kernel.

Invariants
- Never raise for well-typed input; non-finite values are replaced by a
  caller-supplied fallback (scalars) or 0.0 (vector components).
- Vectors are float64 arrays of shape (3,). A vector shorter than EPSILON is
  the zero sentinel ("no direction"), not an error.
- Pure functions; inputs are never modified in place.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

import numpy as np

EPSILON = 1e-9

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


def is_finite(value: Any) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def finite_or(value: Any, fallback: float) -> float:
    """Return float(value) when it is a finite real, else `fallback`."""
    if isinstance(value, bool):
        return float(value)
    try:
        v = float(value)
    except (TypeError, ValueError):
        return float(fallback)
    return v if math.isfinite(v) else float(fallback)


def clamp(value: float, lo: float, hi: float) -> float:
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def zero_vec3() -> np.ndarray:
    return np.zeros(3, dtype=np.float64)


def as_vec3(value: Any, fallback: Optional[Sequence[float]] = None) -> np.ndarray:
    """
    Coerce a 3-sequence into a fresh float64 array.

    Non-finite components become 0.0. Anything that is not a length-3
    sequence of numbers yields `fallback` (or the zero vector).
    """
    try:
        arr = np.array(value, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError):
        arr = None
    if arr is None or arr.shape != (3,):
        if fallback is None:
            return zero_vec3()
        return as_vec3(fallback)
    arr[~np.isfinite(arr)] = 0.0
    return arr


def length_sq(v: np.ndarray) -> float:
    return float(np.dot(v, v))


def length(v: np.ndarray) -> float:
    return math.sqrt(length_sq(v))


def is_zero_vector(v: np.ndarray, eps: float = EPSILON) -> bool:
    return length(v) < eps


def try_normalize(v: np.ndarray, eps: float = EPSILON) -> Optional[np.ndarray]:
    """Unit vector along `v`, or None when `v` is the zero sentinel."""
    n = length(v)
    if not math.isfinite(n) or n < eps:
        return None
    return np.asarray(v, dtype=np.float64) / n


def safe_normalize(v: np.ndarray, eps: float = EPSILON) -> np.ndarray:
    unit = try_normalize(v, eps)
    return zero_vec3() if unit is None else unit


def lerp(a, b, t: float):
    """Linear interpolation for scalars or arrays."""
    return a + (b - a) * t
