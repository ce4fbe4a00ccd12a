"""JSON-compatible encoding of frames, boxes and fields.

Layout (all vectors are 3-lists of floats):

    frame  {"origin", "x_axis", "y_axis", "z_axis"}
    box    {"min", "max", "frame"?}
    source {"kind", <kind parameters>, "bounds": [box...], "metadata": {}}
    field  {"sources": [source...], "bounds": [box...], "metadata": {}}

Decoding repairs geometry the same way the constructors do (frames are
re-orthonormalized, box corners re-ordered). Structural problems (not a
mapping, unknown source kind, missing required keys) raise ValueError.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping

import numpy as np

from geofield.field.bounds import Box
from geofield.field.compose import Field
from geofield.field.sources import (
    SOURCE_KINDS,
    FieldSource,
    LineCharge,
    PointCharge,
    SpinForce,
    VectorForce,
)
from geofield.frame.basis import Frame, normalize_axes


def _vec(v: np.ndarray) -> List[float]:
    return [float(c) for c in v]


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what}: expected a mapping, got {type(data).__name__}")
    return data


def _require(data: Mapping[str, Any], key: str, what: str) -> Any:
    if key not in data:
        raise ValueError(f"{what}: missing key '{key}'")
    return data[key]


# ---- Frames / boxes ----

def frame_to_dict(frame: Frame) -> Dict[str, Any]:
    return {
        "origin": _vec(frame.origin),
        "x_axis": _vec(frame.x_axis),
        "y_axis": _vec(frame.y_axis),
        "z_axis": _vec(frame.z_axis),
    }


def frame_from_dict(data: Any) -> Frame:
    d = _require_mapping(data, "frame")
    return normalize_axes(
        d.get("origin", (0.0, 0.0, 0.0)),
        d.get("x_axis"),
        d.get("y_axis"),
        d.get("z_axis"),
    )


def box_to_dict(box: Box) -> Dict[str, Any]:
    out: Dict[str, Any] = {"min": _vec(box.min), "max": _vec(box.max)}
    if box.frame is not None:
        out["frame"] = frame_to_dict(box.frame)
    return out


def box_from_dict(data: Any) -> Box:
    d = _require_mapping(data, "box")
    frame = d.get("frame")
    return Box(
        _require(d, "min", "box"),
        _require(d, "max", "box"),
        frame_from_dict(frame) if frame is not None else None,
    )


def _boxes_from(data: Mapping[str, Any]) -> tuple:
    raw = data.get("bounds") or []
    if isinstance(raw, Mapping):
        raw = [raw]
    return tuple(box_from_dict(b) for b in raw)


# ---- Sources ----

def _encode_point_charge(s: PointCharge) -> Dict[str, Any]:
    return {"position": _vec(s.position), "charge": s.charge, "decay": s.decay}


def _encode_line_charge(s: LineCharge) -> Dict[str, Any]:
    return {"start": _vec(s.start), "end": _vec(s.end), "charge": s.charge}


def _encode_spin_force(s: SpinForce) -> Dict[str, Any]:
    return {
        "frame": frame_to_dict(s.frame),
        "strength": s.strength,
        "radius": s.radius,
        "decay": s.decay,
    }


def _encode_vector_force(s: VectorForce) -> Dict[str, Any]:
    return {"start": _vec(s.start), "end": _vec(s.end)}


def _decode_point_charge(d: Mapping[str, Any], bounds: tuple, meta: dict) -> FieldSource:
    return PointCharge(
        _require(d, "position", "point_charge"),
        d.get("charge", 1.0),
        d.get("decay", 2.0),
        bounds,
        meta,
    )


def _decode_line_charge(d: Mapping[str, Any], bounds: tuple, meta: dict) -> FieldSource:
    return LineCharge(
        _require(d, "start", "line_charge"),
        _require(d, "end", "line_charge"),
        d.get("charge", 1.0),
        bounds,
        meta,
    )


def _decode_spin_force(d: Mapping[str, Any], bounds: tuple, meta: dict) -> FieldSource:
    return SpinForce(
        frame_from_dict(_require(d, "frame", "spin_force")),
        d.get("strength", 1.0),
        d.get("radius", 1.0),
        d.get("decay", 2.0),
        bounds,
        meta,
    )


def _decode_vector_force(d: Mapping[str, Any], bounds: tuple, meta: dict) -> FieldSource:
    return VectorForce(
        _require(d, "start", "vector_force"),
        _require(d, "end", "vector_force"),
        bounds,
        meta,
    )


_ENCODERS: Dict[str, Callable[[Any], Dict[str, Any]]] = {
    PointCharge.kind: _encode_point_charge,
    LineCharge.kind: _encode_line_charge,
    SpinForce.kind: _encode_spin_force,
    VectorForce.kind: _encode_vector_force,
}

_DECODERS: Dict[str, Callable[[Mapping[str, Any], tuple, dict], FieldSource]] = {
    PointCharge.kind: _decode_point_charge,
    LineCharge.kind: _decode_line_charge,
    SpinForce.kind: _decode_spin_force,
    VectorForce.kind: _decode_vector_force,
}


def source_to_dict(source: FieldSource) -> Dict[str, Any]:
    encoder = _ENCODERS.get(source.kind)
    if encoder is None:
        raise ValueError(f"source kind '{source.kind}' has no encoder")
    out: Dict[str, Any] = {"kind": source.kind}
    out.update(encoder(source))
    out["bounds"] = [box_to_dict(b) for b in source.bounds]
    out["metadata"] = dict(getattr(source, "metadata", {}) or {})
    return out


def source_from_dict(data: Any) -> FieldSource:
    d = _require_mapping(data, "source")
    kind = str(_require(d, "kind", "source"))
    decoder = _DECODERS.get(kind)
    if decoder is None:
        raise ValueError(f"unknown source kind '{kind}'; expected one of {sorted(SOURCE_KINDS)}")
    return decoder(d, _boxes_from(d), dict(d.get("metadata") or {}))


# ---- Fields ----

def field_to_dict(field: Field) -> Dict[str, Any]:
    return {
        "sources": [source_to_dict(s) for s in field.sources],
        "bounds": [box_to_dict(b) for b in field.bounds],
        "metadata": dict(field.metadata),
    }


def field_from_dict(data: Any) -> Field:
    d = _require_mapping(data, "field")
    raw_sources = d.get("sources", [])
    if not isinstance(raw_sources, list):
        raise ValueError("field: 'sources' must be a list")
    sources = tuple(source_from_dict(s) for s in raw_sources)
    return Field(sources, _boxes_from(d), dict(d.get("metadata") or {}))


__all__ = [
    "frame_to_dict",
    "frame_from_dict",
    "box_to_dict",
    "box_from_dict",
    "source_to_dict",
    "source_from_dict",
    "field_to_dict",
    "field_from_dict",
]
