"""Closest-point search against an opaque parametric curve.

The curve is anything exposing `evaluate_at(t)` for t in [0, 1] (or a plain
callable with that signature) returning a 3-point or None. An optional
`domain = (start, end)` attribute declares the curve's native parameter
range; `map_parameter` converts normalized results to it.

Search
- Phase 1: max(8, samples) uniform samples, t_i = i / (n - 1); keep the
  smallest squared distance and its t0.
- Phase 2: `refinements` rounds of `refine_samples` evenly spaced samples
  on [t0 - r, t0 + r] ∩ [0, 1]; r starts at 1/n and halves each round.

Samples that are None, wrongly shaped or non-finite are skipped. When no
sample is valid the result is None. The search is local; it is not
guaranteed to find the global minimum on curves that fold back on
themselves.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from geofield.errors import ConfigurationError
from geofield.numeric.guards import EPSILON, as_vec3, clamp, finite_or, length, length_sq

Evaluator = Callable[[float], Any]


class CurveEvaluator(Protocol):
    def evaluate_at(self, t: float) -> Optional[Sequence[float]]:
        ...


@dataclass(frozen=True)
class CurveSearchConfig:
    samples: int = 128
    refinements: int = 4
    refine_samples: int = 11

    def __post_init__(self) -> None:
        if int(self.samples) < 1:
            raise ValueError("samples must be ≥ 1")
        if int(self.refinements) < 0:
            raise ValueError("refinements must be ≥ 0")
        if int(self.refine_samples) < 2:
            raise ValueError("refine_samples must be ≥ 2")


@dataclass(frozen=True, eq=False)
class CurveQueryResult:
    t: float
    point: np.ndarray
    distance: float
    distance_sq: float


def resolve_evaluator(curve: Any) -> Evaluator:
    """The curve's `evaluate_at`, or the curve itself when it is callable."""
    fn = getattr(curve, "evaluate_at", None)
    if fn is None and callable(curve):
        fn = curve
    if fn is None or not callable(fn):
        raise ConfigurationError(
            f"curve evaluator missing: {type(curve).__name__} has no callable evaluate_at"
        )
    return fn


def _valid_point(value: Any) -> Optional[np.ndarray]:
    if value is None:
        return None
    try:
        arr = np.asarray(value, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError):
        return None
    if arr.shape != (3,) or not np.all(np.isfinite(arr)):
        return None
    return arr.copy()


def closest_point(
    curve: Any, query: Sequence[float], config: Optional[CurveSearchConfig] = None
) -> Optional[CurveQueryResult]:
    cfg = config or CurveSearchConfig()
    evaluate = resolve_evaluator(curve)
    q = as_vec3(query)

    best_t = 0.0
    best_point: Optional[np.ndarray] = None
    best_dsq = math.inf

    def consider(t: float) -> None:
        nonlocal best_t, best_point, best_dsq
        p = _valid_point(evaluate(t))
        if p is None:
            return
        dsq = length_sq(p - q)
        if dsq < best_dsq:
            best_t, best_point, best_dsq = t, p, dsq

    n = max(8, int(cfg.samples))
    for i in range(n):
        consider(i / (n - 1))
    if best_point is None:
        return None

    m = int(cfg.refine_samples)
    radius = 1.0 / n
    for _ in range(int(cfg.refinements)):
        lo = max(0.0, best_t - radius)
        hi = min(1.0, best_t + radius)
        for j in range(m):
            consider(lo + (hi - lo) * j / (m - 1))
        radius *= 0.5

    return CurveQueryResult(
        t=best_t,
        point=best_point,
        distance=math.sqrt(best_dsq),
        distance_sq=best_dsq,
    )


def map_parameter(t: float, domain: Optional[Tuple[float, float]]) -> float:
    """Rescale a normalized parameter to `domain` (identity when None)."""
    if domain is None:
        return float(t)
    start, end = finite_or(domain[0], 0.0), finite_or(domain[1], 1.0)
    return start + float(t) * (end - start)


def native_parameter(curve: Any, t: float) -> float:
    return map_parameter(t, getattr(curve, "domain", None))


class PolylineCurve:
    """
    Arc-length parametrized polyline.

    `evaluate_at(t)` walks the fraction t of the total length; an empty
    polyline yields None and a zero-length one its first point. The native
    domain is (0, length).
    """

    def __init__(self, points: Sequence[Sequence[float]]):
        self.points = [as_vec3(p) for p in points]
        self._cumulative = [0.0]
        for a, b in zip(self.points, self.points[1:]):
            self._cumulative.append(self._cumulative[-1] + length(b - a))

    @property
    def length(self) -> float:
        return self._cumulative[-1]

    @property
    def domain(self) -> Tuple[float, float]:
        return (0.0, self.length)

    def evaluate_at(self, t: float) -> Optional[np.ndarray]:
        if not self.points:
            return None
        total = self.length
        if total < EPSILON:
            return self.points[0].copy()
        target = clamp(finite_or(t, 0.0), 0.0, 1.0) * total
        for i in range(1, len(self.points)):
            seg_start, seg_end = self._cumulative[i - 1], self._cumulative[i]
            if target <= seg_end or i == len(self.points) - 1:
                seg_len = seg_end - seg_start
                if seg_len < EPSILON:
                    return self.points[i].copy()
                ratio = clamp((target - seg_start) / seg_len, 0.0, 1.0)
                return self.points[i - 1] + (self.points[i] - self.points[i - 1]) * ratio
        return self.points[-1].copy()

    def project(self, point: Sequence[float]) -> float:
        """Exact arc-length parameter of the closest polyline point."""
        p = as_vec3(point)
        best_distance = math.inf
        best = 0.0
        for i, (a, b) in enumerate(zip(self.points, self.points[1:])):
            segment = b - a
            seg_len = length(segment)
            if seg_len < EPSILON:
                continue
            s = clamp(float(np.dot(p - a, segment)) / (seg_len * seg_len), 0.0, 1.0)
            distance = length(p - (a + segment * s))
            if distance < best_distance:
                best_distance = distance
                best = self._cumulative[i] + s * seg_len
        return best

    def closest(self, point: Sequence[float]) -> Optional[CurveQueryResult]:
        """Exact closest point, with t normalized to [0, 1] like `closest_point`."""
        if not self.points:
            return None
        p = as_vec3(point)
        total = self.length
        t = self.project(p) / total if total >= EPSILON else 0.0
        on_curve = self.evaluate_at(t)
        d_sq = length_sq(p - on_curve)
        return CurveQueryResult(t, on_curve, math.sqrt(d_sq), d_sq)


def pull_to_curve(
    points: Sequence[Sequence[float]], curve: Any, config: Optional[CurveSearchConfig] = None
) -> List[Optional[CurveQueryResult]]:
    """
    Closest curve point for each input point (None where the curve is empty).

    Polylines are projected exactly; other curves go through `closest_point`.
    """
    if isinstance(curve, PolylineCurve):
        return [curve.closest(p) for p in points]
    resolve_evaluator(curve)
    return [closest_point(curve, p, config) for p in points]


def sort_along_curve(
    points: Sequence[Sequence[float]], curve: Any, config: Optional[CurveSearchConfig] = None
) -> Tuple[List[np.ndarray], List[int]]:
    """
    Stable sort of `points` by their closest curve parameter.

    Points for which no curve point could be found sort last, in input order.
    Returns the sorted points and their original indices.
    """
    results = pull_to_curve(points, curve, config)
    keys = [(r.t if r is not None else math.inf, i) for i, r in enumerate(results)]
    order = [i for _, i in sorted(keys)]
    pts = [as_vec3(p) for p in points]
    return [pts[i] for i in order], order


__all__ = [
    "CurveEvaluator",
    "CurveSearchConfig",
    "CurveQueryResult",
    "resolve_evaluator",
    "closest_point",
    "map_parameter",
    "native_parameter",
    "PolylineCurve",
    "pull_to_curve",
    "sort_along_curve",
]
