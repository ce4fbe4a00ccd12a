"""Narrow conversions from host values to canonical core values.

The host editor hands over loosely typed values (numbers, strings, nested
lists, dicts). Each ValueKind has exactly one conversion function here; the
core packages never coerce on their own. Every function takes a fallback
and returns it when the value cannot be read as the requested kind.
"""

from __future__ import annotations

import datetime as _dt
from enum import Enum, auto
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from geofield.boundary.codec import field_from_dict, frame_from_dict
from geofield.curve.search import PolylineCurve
from geofield.field.compose import Field
from geofield.frame.basis import Frame, from_normal, from_three_points, world_frame
from geofield.numeric.guards import clamp, finite_or


class ValueKind(Enum):
    SCALAR = auto()
    POINT = auto()
    VECTOR = auto()
    FRAME = auto()
    CURVE = auto()
    FIELD = auto()
    BOOLEAN = auto()
    COLOR = auto()
    DATE = auto()


_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0", ""}


def _unwrap(value: Any) -> Any:
    """Single-element lists stand for their only element."""
    while isinstance(value, (list, tuple)) and len(value) == 1:
        value = value[0]
    return value


def to_scalar(value: Any, fallback: float = 0.0) -> float:
    value = _unwrap(value)
    if isinstance(value, str):
        value = value.strip()
    return finite_or(value, fallback)


def _xyz(value: Any) -> Optional[np.ndarray]:
    value = _unwrap(value)
    if isinstance(value, Mapping):
        if not all(k in value for k in ("x", "y", "z")):
            return None
        value = (value["x"], value["y"], value["z"])
    if isinstance(value, (str, bytes)) or not isinstance(value, (Sequence, np.ndarray)):
        return None
    try:
        arr = np.asarray(value, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError):
        return None
    if arr.shape != (3,) or not np.all(np.isfinite(arr)):
        return None
    return arr


def to_point(value: Any, fallback: Sequence[float] = (0.0, 0.0, 0.0)) -> np.ndarray:
    arr = _xyz(value)
    return np.array(fallback, dtype=np.float64) if arr is None else arr


def to_vector(value: Any, fallback: Sequence[float] = (0.0, 0.0, 0.0)) -> np.ndarray:
    """A 3-vector, or the difference end - start of a two-point line."""
    value = _unwrap(value)
    if isinstance(value, (list, tuple)) and len(value) == 2:
        a, b = _xyz(value[0]), _xyz(value[1])
        if a is not None and b is not None:
            return b - a
    return to_point(value, fallback)


def to_boolean(value: Any, fallback: bool = False) -> bool:
    value = _unwrap(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 if np.isfinite(value) else fallback
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    return fallback


def to_frame(value: Any, fallback: Optional[Frame] = None) -> Frame:
    """
    Frame from a Frame, a frame dict, three points, an (origin, normal)
    pair, or a single point (world axes at that point).
    """
    value = _unwrap(value)
    if isinstance(value, Frame):
        return value
    if isinstance(value, Mapping) and "origin" in value:
        return frame_from_dict(value)
    if isinstance(value, (list, tuple)):
        if len(value) >= 3:
            pts = [_xyz(v) for v in value[:3]]
            if all(p is not None for p in pts):
                return from_three_points(*pts)
        elif len(value) == 2:
            origin, normal = _xyz(value[0]), _xyz(value[1])
            if origin is not None and normal is not None:
                return from_normal(origin, normal)
    point = _xyz(value)
    if point is not None:
        return world_frame(point)
    return fallback if fallback is not None else world_frame()


def to_curve(value: Any, fallback: Any = None) -> Any:
    """An object with `evaluate_at`, or a polyline through a list of points."""
    if callable(getattr(value, "evaluate_at", None)):
        return value
    if isinstance(value, (list, tuple)):
        pts = [_xyz(v) for v in value]
        if pts and all(p is not None for p in pts):
            return PolylineCurve(pts)
    return fallback


def to_field(value: Any, fallback: Optional[Field] = None) -> Field:
    if isinstance(value, Field):
        return value
    if isinstance(value, Mapping):
        return field_from_dict(value)
    return fallback if fallback is not None else Field()


def _hex_color(text: str) -> Optional[Tuple[float, float, float]]:
    text = text.strip().lstrip("#")
    if len(text) == 3:
        text = "".join(c * 2 for c in text)
    if len(text) != 6:
        return None
    try:
        rgb = [int(text[i:i + 2], 16) for i in (0, 2, 4)]
    except ValueError:
        return None
    return (rgb[0] / 255.0, rgb[1] / 255.0, rgb[2] / 255.0)


def to_color(
    value: Any, fallback: Tuple[float, float, float] = (0.0, 0.0, 0.0)
) -> Tuple[float, float, float]:
    """RGB in [0, 1]; hex strings and 0..255 triples are rescaled."""
    value = _unwrap(value)
    if isinstance(value, str):
        rgb = _hex_color(value)
        return rgb if rgb is not None else fallback
    arr = _xyz(value)
    if arr is None:
        return fallback
    if float(arr.max()) > 1.0:
        arr = arr / 255.0
    r, g, b = (clamp(float(c), 0.0, 1.0) for c in arr)
    return (r, g, b)


def _utc(moment: _dt.datetime) -> _dt.datetime:
    """Naive datetimes are read as UTC; aware ones are converted."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=_dt.timezone.utc)
    return moment.astimezone(_dt.timezone.utc)


def to_date(value: Any, fallback: Optional[_dt.datetime] = None) -> Optional[_dt.datetime]:
    """
    UTC-aware datetime from a datetime/date, an ISO-8601 string or a POSIX
    timestamp. Every result carries tzinfo=UTC.
    """
    value = _unwrap(value)
    if isinstance(value, _dt.datetime):
        return _utc(value)
    if isinstance(value, _dt.date):
        return _dt.datetime(value.year, value.month, value.day, tzinfo=_dt.timezone.utc)
    if isinstance(value, str):
        try:
            return _utc(_dt.datetime.fromisoformat(value.strip()))
        except ValueError:
            return fallback
    if isinstance(value, (int, float)) and not isinstance(value, bool) and np.isfinite(value):
        try:
            return _dt.datetime.fromtimestamp(float(value), tz=_dt.timezone.utc)
        except (OverflowError, OSError, ValueError):
            return fallback
    return fallback


COERCERS: Dict[ValueKind, Callable[..., Any]] = {
    ValueKind.SCALAR: to_scalar,
    ValueKind.POINT: to_point,
    ValueKind.VECTOR: to_vector,
    ValueKind.FRAME: to_frame,
    ValueKind.CURVE: to_curve,
    ValueKind.FIELD: to_field,
    ValueKind.BOOLEAN: to_boolean,
    ValueKind.COLOR: to_color,
    ValueKind.DATE: to_date,
}


def coerce(kind: ValueKind, value: Any, *fallback: Any) -> Any:
    return COERCERS[kind](value, *fallback)


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
]
