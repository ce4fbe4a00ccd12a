"""Orthonormal reference frames ("planes") built from partial or degenerate hints.

Invariants
- Every returned Frame has unit axes, mutually orthogonal within float
  round-off, and is right-handed: z ≈ x × y.
- Degenerate hints (zero vectors, colinear points, parallel lines) never
  raise; each constructor documents its deterministic fallback and logs the
  recovery at DEBUG.
- Frames are immutable; all operations return new instances.

Orthonormalization (used by every constructor):
    z = unit(z_hint)  or (0,0,1)
    x = unit(x_hint)  or orthogonal_vector(z)
    y = unit(y_hint)  or unit(z × x)
    x = unit(y × z);  y = unit(z × x)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from geofield.numeric.guards import (
    EPSILON,
    as_vec3,
    clamp,
    length,
    safe_normalize,
    try_normalize,
)
from geofield.utils.logging import get_logger

_LOG = get_logger("geofield.frame")

_WORLD_X = (1.0, 0.0, 0.0)
_WORLD_Y = (0.0, 1.0, 0.0)
_WORLD_Z = (0.0, 0.0, 1.0)


@dataclass(frozen=True, eq=False)
class Frame:
    origin: np.ndarray
    x_axis: np.ndarray
    y_axis: np.ndarray
    z_axis: np.ndarray

    def __post_init__(self) -> None:
        for name in ("origin", "x_axis", "y_axis", "z_axis"):
            arr = as_vec3(getattr(self, name))
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    def __repr__(self) -> str:
        def fmt(v: np.ndarray) -> str:
            return "(" + ", ".join(f"{c:.6g}" for c in v) + ")"

        return (
            f"Frame(origin={fmt(self.origin)}, x={fmt(self.x_axis)}, "
            f"y={fmt(self.y_axis)}, z={fmt(self.z_axis)})"
        )


# ---- Helpers ----

def orthogonal_vector(v: Sequence[float]) -> np.ndarray:
    """
    Deterministic unit vector perpendicular to `v`.

    Crosses `v` with the basis vector of its smallest-magnitude component.
    The zero vector maps to (1,0,0).
    """
    v = as_vec3(v)
    ax, ay, az = np.abs(v)
    if ax <= ay and ax <= az:
        c = np.array([0.0, -v[2], v[1]])
    elif ay <= ax and ay <= az:
        c = np.array([-v[2], 0.0, v[0]])
    else:
        c = np.array([-v[1], v[0], 0.0])
    unit = try_normalize(c)
    if unit is None:
        return np.array(_WORLD_X)
    return unit


def _reject(v: np.ndarray, axis: np.ndarray) -> np.ndarray:
    """Component of `v` orthogonal to the unit vector `axis`."""
    return v - axis * float(np.dot(v, axis))


def normalize_axes(
    origin: Sequence[float],
    x_hint: Optional[Sequence[float]] = None,
    y_hint: Optional[Sequence[float]] = None,
    z_hint: Optional[Sequence[float]] = None,
) -> Frame:
    """Build a valid right-handed frame from approximate (or missing) axes."""
    zero = (0.0, 0.0, 0.0)
    z = try_normalize(as_vec3(z_hint if z_hint is not None else zero))
    if z is None:
        z = np.array(_WORLD_Z)
    x = try_normalize(as_vec3(x_hint if x_hint is not None else zero))
    if x is None:
        x = orthogonal_vector(z)
    y = try_normalize(as_vec3(y_hint if y_hint is not None else zero))
    if y is None:
        y = safe_normalize(np.cross(z, x))

    x_fixed = try_normalize(np.cross(y, z))
    if x_fixed is None:
        # y hint parallel to z: keep the x hint's in-plane part instead
        x_fixed = try_normalize(_reject(x, z))
        if x_fixed is None:
            x_fixed = orthogonal_vector(z)
        _LOG.debug("normalize_axes: y hint parallel to z, rebuilt x from x hint")
    y_fixed = safe_normalize(np.cross(z, x_fixed))
    return Frame(as_vec3(origin), x_fixed, y_fixed, z)


# ---- Canonical frames ----

def world_frame(origin: Sequence[float] = (0.0, 0.0, 0.0)) -> Frame:
    return Frame(as_vec3(origin), np.array(_WORLD_X), np.array(_WORLD_Y), np.array(_WORLD_Z))


def xy_frame(origin: Sequence[float] = (0.0, 0.0, 0.0)) -> Frame:
    return normalize_axes(origin, _WORLD_X, _WORLD_Y, _WORLD_Z)


def xz_frame(origin: Sequence[float] = (0.0, 0.0, 0.0)) -> Frame:
    return normalize_axes(origin, _WORLD_X, (0.0, 0.0, -1.0), _WORLD_Y)


def yz_frame(origin: Sequence[float] = (0.0, 0.0, 0.0)) -> Frame:
    return normalize_axes(origin, _WORLD_Y, _WORLD_Z, _WORLD_X)


# ---- Constructors from hints ----

def from_normal(origin: Sequence[float], normal: Sequence[float]) -> Frame:
    n = try_normalize(as_vec3(normal))
    if n is None:
        _LOG.debug("from_normal: zero normal, using world z")
        n = np.array(_WORLD_Z)
    x = orthogonal_vector(n)
    y = safe_normalize(np.cross(n, x))
    return normalize_axes(origin, x, y, n)


def from_axes(
    origin: Sequence[float],
    x_axis: Sequence[float] = _WORLD_X,
    y_axis: Sequence[float] = _WORLD_Y,
) -> Frame:
    """Frame from an x and a y direction; z follows from x × y."""
    x = as_vec3(x_axis)
    if length(x) < EPSILON:
        x = np.array(_WORLD_X)
    y = as_vec3(y_axis)
    if length(y) < EPSILON:
        y = orthogonal_vector(x)
    z = np.cross(x, y)
    if length(z) < EPSILON:
        _LOG.debug("from_axes: parallel axes, substituting a perpendicular y")
        y = orthogonal_vector(x)
        z = np.cross(x, y)
    return normalize_axes(origin, x, y, z)


def from_three_points(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> Frame:
    """
    Frame at `a` with x toward `b` and z along (b-a) × (c-a).

    Colinear (or coincident) points return the world-aligned frame at `a`.
    """
    a = as_vec3(a)
    ab = as_vec3(b) - a
    ac = as_vec3(c) - a
    normal = np.cross(ab, ac)
    if length(normal) < EPSILON:
        _LOG.debug("from_three_points: colinear points, falling back to world axes")
        return world_frame(a)
    x = try_normalize(ab)
    if x is None:
        x = orthogonal_vector(normal)
    y = safe_normalize(np.cross(normal, x))
    z = safe_normalize(normal)
    return normalize_axes(a, x, y, z)


def _line_direction(start: np.ndarray, end: np.ndarray) -> np.ndarray:
    x = try_normalize(end - start)
    if x is None:
        _LOG.debug("degenerate line, using world x as direction")
        return np.array(_WORLD_X)
    return x


def from_line_and_point(
    start: Sequence[float], end: Sequence[float], point: Sequence[float]
) -> Frame:
    """Frame on the line start with x along the line and the point in the xy plane."""
    origin = as_vec3(start)
    x = _line_direction(origin, as_vec3(end))
    reference = try_normalize(_reject(as_vec3(point) - origin, x))
    if reference is None:
        reference = orthogonal_vector(x)
    normal = try_normalize(np.cross(x, reference))
    if normal is None:
        normal = safe_normalize(np.cross(x, orthogonal_vector(x)))
    y = safe_normalize(np.cross(normal, x))
    return normalize_axes(origin, x, y, normal)


def from_two_lines(
    line_a: Tuple[Sequence[float], Sequence[float]],
    line_b: Tuple[Sequence[float], Sequence[float]],
) -> Frame:
    """
    Frame on the start of `line_a`, x along `line_a`, spanning `line_b`.

    The in-plane reference is the second line's direction; when that is
    degenerate or parallel to the first line, the offset between the line
    starts is used, then `orthogonal_vector(x)`.
    """
    a0, a1 = as_vec3(line_a[0]), as_vec3(line_a[1])
    b0, b1 = as_vec3(line_b[0]), as_vec3(line_b[1])
    origin = a0
    x = _line_direction(a0, a1)

    reference = None
    for candidate in (b1 - b0, b0 - origin):
        reference = try_normalize(_reject(candidate, x))
        if reference is not None:
            break
    if reference is None:
        _LOG.debug("from_two_lines: lines coincide, synthesizing a reference")
        reference = orthogonal_vector(x)
    normal = safe_normalize(np.cross(x, reference))
    y = safe_normalize(np.cross(normal, x))
    return normalize_axes(origin, x, y, normal)


# ---- Coordinates ----

def plane_coordinates(point: Sequence[float], frame: Frame) -> np.ndarray:
    """(u, v, w) coordinates of `point` in `frame`."""
    rel = as_vec3(point) - frame.origin
    return np.array(
        [np.dot(rel, frame.x_axis), np.dot(rel, frame.y_axis), np.dot(rel, frame.z_axis)],
        dtype=np.float64,
    )


def point_from_frame_coordinates(frame: Frame, u: float, v: float, w: float = 0.0) -> np.ndarray:
    return frame.origin + frame.x_axis * float(u) + frame.y_axis * float(v) + frame.z_axis * float(w)


def closest_point(point: Sequence[float], frame: Frame) -> Tuple[np.ndarray, np.ndarray, float]:
    """Projection onto the frame's xy plane: (projected, (u, v), signed distance)."""
    u, v, w = plane_coordinates(point, frame)
    projected = point_from_frame_coordinates(frame, u, v, 0.0)
    return projected, np.array([u, v], dtype=np.float64), float(w)


# ---- Derived frames ----

def offset(frame: Frame, distance: float) -> Frame:
    return Frame(frame.origin + frame.z_axis * float(distance), frame.x_axis, frame.y_axis, frame.z_axis)


def with_origin(frame: Frame, origin: Sequence[float]) -> Frame:
    return Frame(as_vec3(origin), frame.x_axis, frame.y_axis, frame.z_axis)


def flip(frame: Frame, reverse_x: bool = False, reverse_y: bool = False, swap_axes: bool = False) -> Frame:
    x, y = frame.x_axis, frame.y_axis
    if swap_axes:
        x, y = y, x
    if reverse_x:
        x = -x
    if reverse_y:
        y = -y
    z = np.cross(x, y)
    if length(z) < EPSILON:
        z = frame.z_axis
    return normalize_axes(frame.origin, x, y, z)


def rotate(frame: Frame, angle: float) -> Frame:
    """Rotate the x/y axes about z by `angle` radians (right-hand rule)."""
    if abs(angle) < EPSILON:
        return frame
    c, s = math.cos(angle), math.sin(angle)
    x = frame.x_axis * c + frame.y_axis * s
    y = frame.y_axis * c - frame.x_axis * s
    return normalize_axes(frame.origin, x, y, frame.z_axis)


def align_to_direction(frame: Frame, direction: Sequence[float]) -> Tuple[Frame, float]:
    """
    Spin the frame about z so x points along `direction` projected into the plane.

    Returns the new frame and the applied angle. A zero direction, or one
    parallel to z, leaves the frame unchanged with angle 0.
    """
    projected = try_normalize(_reject(as_vec3(direction), frame.z_axis))
    if projected is None:
        return frame, 0.0
    cos_t = clamp(float(np.dot(frame.x_axis, projected)), -1.0, 1.0)
    sin_t = float(np.dot(frame.y_axis, projected))
    angle = math.atan2(sin_t, cos_t)
    return rotate(frame, angle), angle


def adjust(frame: Frame, normal: Optional[Sequence[float]] = None) -> Frame:
    """Re-aim z along `normal`, keeping x as close to the old x as possible."""
    n = try_normalize(as_vec3(normal)) if normal is not None else None
    if n is None:
        n = frame.z_axis
    x = try_normalize(_reject(frame.x_axis, n))
    if x is None:
        x = try_normalize(_reject(frame.y_axis, n))
    if x is None:
        x = orthogonal_vector(n)
    y = safe_normalize(np.cross(n, x))
    return normalize_axes(frame.origin, x, y, n)


def align(reference: Frame, candidate: Frame) -> Frame:
    """
    Rotate `candidate` into the orientation closest to `reference`.

    First flips all three axes when the z axes oppose, then picks between the
    candidate and its 180° turn about z, whichever maximizes
    x·x_ref + y·y_ref.
    """
    x, y, z = candidate.x_axis, candidate.y_axis, candidate.z_axis
    if float(np.dot(z, reference.z_axis)) < 0.0:
        x, y, z = -x, -y, -z

    best = (x, y)
    best_score = -math.inf
    for cx, cy in ((x, y), (-x, -y)):
        score = float(np.dot(cx, reference.x_axis) + np.dot(cy, reference.y_axis))
        if score > best_score:
            best, best_score = (cx, cy), score
    return normalize_axes(candidate.origin, best[0], best[1], z)


def align_frames(frames: Iterable[Frame], master: Optional[Frame] = None) -> List[Frame]:
    """Align a sequence so each frame follows the previous aligned one."""
    result: List[Frame] = []
    reference = master
    for frame in frames:
        if reference is None:
            aligned = frame
        else:
            aligned = align(reference, frame)
        result.append(aligned)
        reference = aligned
    return result


def is_orthonormal(frame: Frame, tol: float = 1e-9) -> bool:
    x, y, z = frame.x_axis, frame.y_axis, frame.z_axis
    units = all(abs(length(a) - 1.0) <= tol for a in (x, y, z))
    ortho = all(abs(float(np.dot(a, b))) <= tol for a, b in ((x, y), (y, z), (z, x)))
    handed = bool(np.allclose(np.cross(x, y), z, atol=tol, rtol=0.0))
    return units and ortho and handed


__all__ = [
    "Frame",
    "orthogonal_vector",
    "normalize_axes",
    "world_frame",
    "xy_frame",
    "xz_frame",
    "yz_frame",
    "from_normal",
    "from_axes",
    "from_three_points",
    "from_line_and_point",
    "from_two_lines",
    "plane_coordinates",
    "point_from_frame_coordinates",
    "closest_point",
    "offset",
    "with_origin",
    "flip",
    "rotate",
    "align_to_direction",
    "adjust",
    "align",
    "align_frames",
    "is_orthonormal",
]
