"""Axis-aligned activation boxes for field sources.

A box is given by min/max corners, optionally expressed in the coordinates
of a frame (then the box is oriented with that frame). Corners are
normalized so min ≤ max per axis. Containment is inclusive with a small
tolerance.

A source carries a tuple of 0..n boxes: empty means unconditional, several
boxes mean "active inside any of them".
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from geofield.frame.basis import Frame, plane_coordinates, point_from_frame_coordinates
from geofield.numeric.guards import EPSILON, as_vec3


@dataclass(frozen=True, eq=False)
class Box:
    min: np.ndarray
    max: np.ndarray
    frame: Optional[Frame] = None

    def __post_init__(self) -> None:
        lo = as_vec3(self.min)
        hi = as_vec3(self.max)
        lo, hi = np.minimum(lo, hi), np.maximum(lo, hi)
        lo.setflags(write=False)
        hi.setflags(write=False)
        object.__setattr__(self, "min", lo)
        object.__setattr__(self, "max", hi)

    def local(self, point: Sequence[float]) -> np.ndarray:
        if self.frame is None:
            return as_vec3(point)
        return plane_coordinates(point, self.frame)

    def contains(self, point: Sequence[float], tol: float = EPSILON) -> bool:
        p = self.local(point)
        return bool(np.all(p >= self.min - tol) and np.all(p <= self.max + tol))

    def corners(self) -> np.ndarray:
        """The eight corners in world coordinates."""
        out = []
        for ix, iy, iz in itertools.product((0, 1), repeat=3):
            c = (
                self.max[0] if ix else self.min[0],
                self.max[1] if iy else self.min[1],
                self.max[2] if iz else self.min[2],
            )
            if self.frame is None:
                out.append(np.array(c, dtype=np.float64))
            else:
                out.append(point_from_frame_coordinates(self.frame, *c))
        return np.array(out, dtype=np.float64)


def normalize_bounds(bounds: Optional[Iterable[Box]]) -> Tuple[Box, ...]:
    if bounds is None:
        return ()
    if isinstance(bounds, Box):
        return (bounds,)
    return tuple(bounds)


def contains(bounds: Sequence[Box], point: Sequence[float], tol: float = EPSILON) -> bool:
    """True when `bounds` is empty or any box holds `point`."""
    if not bounds:
        return True
    return any(box.contains(point, tol) for box in bounds)


def envelope(bounds: Sequence[Box]) -> Optional[Box]:
    """World-axis box enclosing every box, or None for no boxes."""
    if not bounds:
        return None
    corners = np.vstack([box.corners() for box in bounds])
    return Box(corners.min(axis=0), corners.max(axis=0))


__all__ = ["Box", "normalize_bounds", "contains", "envelope"]
