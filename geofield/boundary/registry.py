"""Explicit kernel registry for host integration.

The host's composition root builds a KernelRegistry, installs the core
kernels with `register_core_kernels(registry, coercers)` and dispatches by
key. Handlers accept raw host values as keyword inputs, coerce them through
the supplied conversion functions and return a dict of named outputs.

There is no module-level registry; two registries never share state.
Setup problems (a missing or non-callable coercer, a duplicate key) raise
ConfigurationError immediately.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

import numpy as np

from geofield.boundary.codec import box_from_dict, field_to_dict, frame_to_dict
from geofield.boundary.coerce import COERCERS, ValueKind
from geofield.curve.search import native_parameter, pull_to_curve, sort_along_curve
from geofield.errors import ConfigurationError
from geofield.field.bounds import Box
from geofield.field.compose import (
    evaluate_field,
    line_charge,
    merge_fields,
    point_charge,
    spin_force,
    split_field,
    vector_force,
)
from geofield.field.sample import Section, sample_section, section_from_points
from geofield.frame.basis import (
    align,
    align_frames,
    closest_point as frame_closest_point,
    from_line_and_point,
    from_three_points,
    from_two_lines,
    plane_coordinates,
)
from geofield.streamline.integrate import integrate
from geofield.tensor.fit import fit_plane
from geofield.utils.logging import get_logger

_LOG = get_logger("geofield.boundary")

Handler = Callable[..., Dict[str, Any]]


class KernelRegistry:
    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}

    def register(self, key: str, handler: Handler) -> None:
        if not isinstance(key, str) or not key:
            raise ConfigurationError(f"kernel key must be a non-empty string, got {key!r}")
        if not callable(handler):
            raise ConfigurationError(f"kernel '{key}': handler is not callable")
        if key in self._handlers:
            raise ConfigurationError(f"kernel '{key}' already registered")
        self._handlers[key] = handler

    def get(self, key: str) -> Handler:
        try:
            return self._handlers[key]
        except KeyError:
            raise KeyError(f"no kernel registered under '{key}'") from None

    def invoke(self, key: str, **inputs: Any) -> Dict[str, Any]:
        return self.get(key)(**inputs)

    def keys(self) -> List[str]:
        return sorted(self._handlers)

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._handlers)


def _resolve_coercers(coercers: Optional[Mapping[ValueKind, Callable[..., Any]]]) -> Dict[ValueKind, Callable[..., Any]]:
    table = dict(COERCERS if coercers is None else coercers)
    for kind in ValueKind:
        fn = table.get(kind)
        if fn is None:
            raise ConfigurationError(f"missing coercer for {kind.name}")
        if not callable(fn):
            raise ConfigurationError(f"coercer for {kind.name} is not callable")
    return table


def _is_point(value: Any) -> bool:
    if isinstance(value, np.ndarray):
        return value.shape == (3,)
    return (
        isinstance(value, (list, tuple))
        and len(value) == 3
        and all(isinstance(c, (int, float)) for c in value)
    )


def _point_list(value: Any) -> List[Any]:
    """A single point (sequence or dict) becomes a one-element list."""
    if value is None:
        return []
    if isinstance(value, Mapping) or _is_point(value):
        return [value]
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _bounds(value: Any, to_point: Callable[..., Any]) -> Tuple[Box, ...]:
    """Boxes from Box objects, box dicts, a [min, max] point pair, or a list of those."""
    if value is None:
        return ()
    if isinstance(value, Box):
        return (value,)
    if isinstance(value, Mapping):
        return (box_from_dict(value),)
    if not isinstance(value, (list, tuple)):
        return ()
    if len(value) == 2 and all(_is_point(v) for v in value):
        return (Box(to_point(value[0]), to_point(value[1])),)
    out: List[Box] = []
    for item in value:
        out.extend(_bounds(item, to_point))
    return tuple(out)


def _evaluation_outputs(ev) -> Dict[str, Any]:
    return {
        "point": ev.point.tolist(),
        "vector": ev.vector.tolist(),
        "magnitude": ev.magnitude,
        "direction": ev.direction.tolist(),
        "strength": ev.strength,
        "tensor": ev.tensor.matrix.tolist(),
        "total_magnitude": ev.tensor.total_magnitude,
    }


def register_core_kernels(
    registry: KernelRegistry,
    coercers: Optional[Mapping[ValueKind, Callable[..., Any]]] = None,
) -> KernelRegistry:
    """Install the core operations on `registry` and return it."""
    if not isinstance(registry, KernelRegistry):
        raise ConfigurationError("register_core_kernels needs a KernelRegistry")
    c = _resolve_coercers(coercers)
    as_scalar, as_point = c[ValueKind.SCALAR], c[ValueKind.POINT]
    as_frame, as_curve, as_field = c[ValueKind.FRAME], c[ValueKind.CURVE], c[ValueKind.FIELD]

    def k_point_charge(point=None, charge=1.0, decay=2.0, bounds=None):
        f = point_charge(as_point(point), as_scalar(charge, 1.0), as_scalar(decay, 2.0), _bounds(bounds, as_point))
        return {"field": f}

    def k_line_charge(start=None, end=None, charge=1.0, bounds=None):
        f = line_charge(as_point(start), as_point(end), as_scalar(charge, 1.0), _bounds(bounds, as_point))
        return {"field": f}

    def k_spin_force(plane=None, strength=1.0, radius=1.0, decay=2.0, bounds=None):
        f = spin_force(
            as_frame(plane),
            as_scalar(strength, 1.0),
            as_scalar(radius, 1.0),
            as_scalar(decay, 2.0),
            _bounds(bounds, as_point),
        )
        return {"field": f}

    def k_vector_force(start=None, end=None, bounds=None):
        return {"field": vector_force(as_point(start), as_point(end), _bounds(bounds, as_point))}

    def k_merge(fields=()):
        return {"field": merge_fields(as_field(f) for f in (fields or ()))}

    def k_split(field=None):
        return {"fields": split_field(as_field(field))}

    def k_evaluate(field=None, point=None):
        return _evaluation_outputs(evaluate_field(as_field(field), as_point(point)))

    def k_field_line(field=None, seed=None, steps=25, step_size=0.5, order=4):
        pts = integrate(
            as_field(field), as_point(seed), as_scalar(steps, 25), as_scalar(step_size, 0.5), as_scalar(order, 4)
        )
        return {"points": [p.tolist() for p in pts]}

    def k_sample(field=None, section=None, samples_u=10, samples_v=None):
        if isinstance(section, Section):
            sec = section
        else:
            sec = section_from_points([as_point(p) for p in _point_list(section)])
        nu = as_scalar(samples_u, 10)
        nv = None if samples_v is None else as_scalar(samples_v, nu)
        grid = sample_section(as_field(field), sec, nu, nv)
        return {
            "samples": [
                dict(_evaluation_outputs(s.evaluation), u=s.u_index, v=s.v_index, alignment=s.alignment)
                for s in grid
            ]
        }

    def k_fit_plane(points=()):
        fit = fit_plane([as_point(p) for p in (points or ())])
        return {"plane": fit.frame, "deviation": fit.deviation}

    def k_three_points(a=None, b=None, c=None):
        return {"plane": from_three_points(as_point(a), as_point(b), as_point(c))}

    def k_line_point(start=None, end=None, point=None):
        return {"plane": from_line_and_point(as_point(start), as_point(end), as_point(point))}

    def k_two_lines(line_a=(), line_b=()):
        a = [as_point(p) for p in line_a] + [as_point(None)] * (2 - len(line_a))
        b = [as_point(p) for p in line_b] + [as_point(None)] * (2 - len(line_b))
        return {"plane": from_two_lines((a[0], a[1]), (b[0], b[1]))}

    def k_align(plane=None, reference=None):
        return {"plane": align(as_frame(reference), as_frame(plane))}

    def k_align_many(planes=(), master=None):
        m = as_frame(master) if master is not None else None
        return {"planes": align_frames([as_frame(p) for p in planes], m)}

    def k_plane_coordinates(point=None, plane=None):
        u, v, w = plane_coordinates(as_point(point), as_frame(plane))
        return {"u": float(u), "v": float(v), "w": float(w)}

    def k_plane_closest(point=None, plane=None):
        projected, uv, distance = frame_closest_point(as_point(point), as_frame(plane))
        return {"point": projected.tolist(), "uv": uv.tolist(), "distance": distance}

    def k_curve_closest(curve=None, point=None):
        crv = as_curve(curve)
        if crv is None:
            return {"point": None, "t": None, "distance": None}
        result = pull_to_curve([as_point(point)], crv)[0]
        if result is None:
            return {"point": None, "t": None, "distance": None}
        return {
            "point": result.point.tolist(),
            "t": native_parameter(crv, result.t),
            "distance": result.distance,
        }

    def k_sort_along(points=(), curve=None):
        crv = as_curve(curve)
        if crv is None:
            return {"points": [as_point(p).tolist() for p in points], "indices": list(range(len(points)))}
        pts, order = sort_along_curve([as_point(p) for p in points], crv)
        return {"points": [p.tolist() for p in pts], "indices": order}

    def k_pull(points=(), curve=None):
        crv = as_curve(curve)
        results = pull_to_curve([as_point(p) for p in points], crv) if crv is not None else [None] * len(points)
        return {
            "points": [r.point.tolist() if r is not None else None for r in results],
            "distances": [r.distance if r is not None else None for r in results],
        }

    def k_frame_to_dict(plane=None):
        return {"plane": frame_to_dict(as_frame(plane))}

    def k_field_to_dict(field=None):
        return {"field": field_to_dict(as_field(field))}

    kernels = {
        "field.point_charge": k_point_charge,
        "field.line_charge": k_line_charge,
        "field.spin_force": k_spin_force,
        "field.vector_force": k_vector_force,
        "field.merge": k_merge,
        "field.split": k_split,
        "field.evaluate": k_evaluate,
        "field.line": k_field_line,
        "field.sample_section": k_sample,
        "field.to_dict": k_field_to_dict,
        "plane.fit": k_fit_plane,
        "plane.three_points": k_three_points,
        "plane.line_point": k_line_point,
        "plane.two_lines": k_two_lines,
        "plane.align": k_align,
        "plane.align_many": k_align_many,
        "plane.coordinates": k_plane_coordinates,
        "plane.closest_point": k_plane_closest,
        "plane.to_dict": k_frame_to_dict,
        "curve.closest_point": k_curve_closest,
        "curve.sort_points": k_sort_along,
        "curve.pull_points": k_pull,
    }
    for key, handler in kernels.items():
        registry.register(key, handler)
    _LOG.debug("registered %d core kernels", len(kernels))
    return registry


__all__ = ["KernelRegistry", "register_core_kernels"]
