"""3×3 symmetric tensors and a cyclic-Jacobi eigen-solver.

Numerics (deterministic, numpy-only):
- Components that are not finite are replaced by 0 before decomposition.
- Each sweep picks a pivot with a two-comparison heuristic: (0,1) vs (0,2),
  then the winner vs (1,2); the rotation angle is
  atan2(2·a_pq, a_qq − a_pp) / 2, which zeroes a_pq.
- Eigenvectors are accumulated into a matrix initialized to the identity;
  column k pairs with diagonal entry k.
- Rotation limit and tolerance come from EigenConfig (32 rotations,
  1e-10). Hitting the limit is not an error: the partially converged
  result is returned with converged=False.

Usage sites choose the ordering of the returned pairs:
- "abs_desc" for principal field directions,
- "asc" for plane-fit normal selection.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from geofield.numeric.guards import as_vec3, safe_normalize
from geofield.utils.logging import get_logger

_LOG = get_logger("geofield.tensor")


@dataclass(frozen=True)
class EigenConfig:
    max_iterations: int = 32          # ≥ 1 Jacobi rotations
    tolerance: float = 1e-10          # > 0, off-diagonal stop threshold

    def __post_init__(self) -> None:
        if int(self.max_iterations) < 1:
            raise ValueError("max_iterations must be ≥ 1")
        if not (float(self.tolerance) > 0.0):
            raise ValueError("tolerance must be > 0")


@dataclass(frozen=True)
class SymmetricTensor:
    xx: float = 0.0
    xy: float = 0.0
    xz: float = 0.0
    yy: float = 0.0
    yz: float = 0.0
    zz: float = 0.0

    @classmethod
    def zeros(cls) -> "SymmetricTensor":
        return cls()

    @classmethod
    def from_matrix(cls, m: Sequence[Sequence[float]]) -> "SymmetricTensor":
        """Symmetric part of a 3×3 matrix."""
        a = np.asarray(m, dtype=np.float64).reshape(3, 3)
        s = 0.5 * (a + a.T)
        return cls(
            float(s[0, 0]), float(s[0, 1]), float(s[0, 2]),
            float(s[1, 1]), float(s[1, 2]), float(s[2, 2]),
        )

    @classmethod
    def outer(cls, vector: Sequence[float], weight: float = 1.0) -> "SymmetricTensor":
        """weight · (v ⊗ v)."""
        x, y, z = as_vec3(vector)
        w = float(weight)
        return cls(w * x * x, w * x * y, w * x * z, w * y * y, w * y * z, w * z * z)

    def __add__(self, other: "SymmetricTensor") -> "SymmetricTensor":
        if not isinstance(other, SymmetricTensor):
            return NotImplemented
        return SymmetricTensor(
            self.xx + other.xx, self.xy + other.xy, self.xz + other.xz,
            self.yy + other.yy, self.yz + other.yz, self.zz + other.zz,
        )

    def scaled(self, factor: float) -> "SymmetricTensor":
        f = float(factor)
        return SymmetricTensor(
            f * self.xx, f * self.xy, f * self.xz, f * self.yy, f * self.yz, f * self.zz
        )

    def sanitized(self) -> "SymmetricTensor":
        vals = [v if math.isfinite(v) else 0.0 for v in self.components()]
        return SymmetricTensor(*vals)

    def components(self) -> Tuple[float, float, float, float, float, float]:
        return (self.xx, self.xy, self.xz, self.yy, self.yz, self.zz)

    def trace(self) -> float:
        return self.xx + self.yy + self.zz

    def as_matrix(self) -> np.ndarray:
        return np.array(
            [
                [self.xx, self.xy, self.xz],
                [self.xy, self.yy, self.yz],
                [self.xz, self.yz, self.zz],
            ],
            dtype=np.float64,
        )


@dataclass(frozen=True, eq=False)
class EigenPair:
    value: float
    vector: np.ndarray


_ORDERS = {
    "abs_desc": lambda v: -abs(v),
    "desc": lambda v: -v,
    "asc": lambda v: v,
}


@dataclass(frozen=True, eq=False)
class EigenResult:
    values: np.ndarray        # (3,)
    vectors: np.ndarray       # (3,3), column k pairs with values[k]
    iterations: int
    converged: bool

    def pairs(self, order: str = "abs_desc") -> List[EigenPair]:
        if order not in _ORDERS:
            raise ValueError(f"order must be one of {sorted(_ORDERS)}")
        key = _ORDERS[order]
        idx = sorted(range(3), key=lambda k: key(float(self.values[k])))
        return [EigenPair(float(self.values[k]), self.vectors[:, k].copy()) for k in idx]


def _pivot(m: np.ndarray) -> Tuple[int, int]:
    p, q = 0, 1
    if abs(m[0, 1]) < abs(m[0, 2]):
        p, q = 0, 2
    if abs(m[p, q]) < abs(m[1, 2]):
        p, q = 1, 2
    return p, q


def eigen_decompose(tensor: SymmetricTensor, config: Optional[EigenConfig] = None) -> EigenResult:
    """
    Cyclic Jacobi eigen-decomposition of a symmetric 3×3 tensor.

    Returns eigenvalues in diagonal order with unit eigenvector columns.
    Never raises on numeric content; see module notes on convergence.
    """
    cfg = config or EigenConfig()
    m = tensor.sanitized().as_matrix()
    V = np.eye(3, dtype=np.float64)
    tol = float(cfg.tolerance)

    converged = False
    iterations = 0
    for _ in range(int(cfg.max_iterations)):
        p, q = _pivot(m)
        if abs(m[p, q]) < tol:
            converged = True
            break
        app, aqq, apq = m[p, p], m[q, q], m[p, q]
        angle = 0.5 * math.atan2(2.0 * apq, aqq - app)
        c, s = math.cos(angle), math.sin(angle)
        for k in range(3):
            if k == p or k == q:
                continue
            mkp, mkq = m[k, p], m[k, q]
            m[k, p] = m[p, k] = c * mkp - s * mkq
            m[k, q] = m[q, k] = c * mkq + s * mkp
        m[p, p] = c * c * app - 2.0 * s * c * apq + s * s * aqq
        m[q, q] = s * s * app + 2.0 * s * c * apq + c * c * aqq
        m[p, q] = m[q, p] = 0.0
        vp, vq = V[:, p].copy(), V[:, q].copy()
        V[:, p] = c * vp - s * vq
        V[:, q] = s * vp + c * vq
        iterations += 1

    if not converged:
        p, q = _pivot(m)
        converged = abs(m[p, q]) < tol
        if not converged:
            _LOG.debug(
                "eigen_decompose: reached %d rotations, off-diagonal %.3e",
                cfg.max_iterations,
                abs(m[p, q]),
            )

    vectors = np.column_stack([safe_normalize(V[:, k]) for k in range(3)])
    values = np.array([m[0, 0], m[1, 1], m[2, 2]], dtype=np.float64)
    return EigenResult(values=values, vectors=vectors, iterations=iterations, converged=converged)


@dataclass(frozen=True, eq=False)
class FieldTensor:
    matrix: np.ndarray
    principal: List[EigenPair]
    total_magnitude: float


def principal_directions(tensor: SymmetricTensor, config: Optional[EigenConfig] = None) -> FieldTensor:
    """Principal directions sorted by |eigenvalue| descending; total = sqrt(max(0, trace))."""
    clean = tensor.sanitized()
    result = eigen_decompose(clean, config)
    return FieldTensor(
        matrix=clean.as_matrix(),
        principal=result.pairs("abs_desc"),
        total_magnitude=math.sqrt(max(0.0, clean.trace())),
    )


__all__ = [
    "EigenConfig",
    "SymmetricTensor",
    "EigenPair",
    "EigenResult",
    "eigen_decompose",
    "FieldTensor",
    "principal_directions",
]
