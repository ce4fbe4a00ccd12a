"""Closest-point and parameter search against opaque parametric curves."""

from .search import (
    CurveEvaluator,
    CurveSearchConfig,
    CurveQueryResult,
    resolve_evaluator,
    closest_point,
    map_parameter,
    native_parameter,
    PolylineCurve,
    pull_to_curve,
    sort_along_curve,
)

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
