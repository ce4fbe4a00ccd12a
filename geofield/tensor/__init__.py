"""Symmetric 3×3 tensor algebra: Jacobi eigen-solver, principal axes, plane fit."""

from .symmetric import (
    EigenConfig,
    SymmetricTensor,
    EigenPair,
    EigenResult,
    eigen_decompose,
    FieldTensor,
    principal_directions,
)
from .fit import PlaneFit, fit_plane

__all__ = [
    "EigenConfig",
    "SymmetricTensor",
    "EigenPair",
    "EigenResult",
    "eigen_decompose",
    "FieldTensor",
    "principal_directions",
    "PlaneFit",
    "fit_plane",
]
