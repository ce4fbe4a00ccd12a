"""Explicit streamline integration through a composed field.

Direction function
    f(p) = unit(V(p)) · clamp(|V(p)|, min_speed, max_speed)
or None where |V(p)| < EPSILON (no direction; integration halts).

Steppers (h = step size, k_i = f at the stated sample):
- 1 Euler:     p + h·k1
- 2 midpoint:  p + h·(k1 + k2)/2,            k2 at p + k1·h/2
- 3 averaged:  p + h·(k1 + k2 + k3)/3,       k2 at p + k1·h/2, k3 at p + k2·h/2
- 4 RK4:       p + h·(k1 + 2k2 + 2k3 + k4)/6

Order 3 is a plain three-sample average, not a weighted RK3 scheme.
An intermediate sample with no direction reuses the previous k.

Termination: no direction at the step start, stall (|Δp|² < EPSILON²), or
`steps` completed. The seed is always the first point.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from geofield.field.compose import Field, field_vector
from geofield.numeric.guards import EPSILON, as_vec3, clamp, finite_or, length, length_sq
from geofield.utils.logging import get_logger

_LOG = get_logger("geofield.streamline")

Direction = Callable[[np.ndarray], Optional[np.ndarray]]


@dataclass(frozen=True)
class StreamlineConfig:
    min_speed: float = 0.1
    max_speed: float = 5.0

    def __post_init__(self) -> None:
        lo, hi = float(self.min_speed), float(self.max_speed)
        if not (math.isfinite(lo) and math.isfinite(hi)):
            raise ValueError("speed bounds must be finite")
        if lo < 0.0:
            raise ValueError("min_speed must be ≥ 0")
        if hi < lo:
            raise ValueError("max_speed must be ≥ min_speed")


def field_direction(
    field: Field,
    config: Optional[StreamlineConfig] = None,
) -> Direction:
    """Build the speed-clamped direction function f(p) for `field`."""
    cfg = config or StreamlineConfig()

    def f(point: np.ndarray) -> Optional[np.ndarray]:
        v = field_vector(field, point)
        magnitude = length(v)
        if magnitude < EPSILON:
            return None
        return v / magnitude * clamp(magnitude, cfg.min_speed, cfg.max_speed)

    return f


def _or(value: Optional[np.ndarray], fallback: np.ndarray) -> np.ndarray:
    return fallback if value is None else value


def _euler(f: Direction, p: np.ndarray, k1: np.ndarray, h: float) -> np.ndarray:
    return p + h * k1


def _midpoint(f: Direction, p: np.ndarray, k1: np.ndarray, h: float) -> np.ndarray:
    k2 = _or(f(p + k1 * (h / 2.0)), k1)
    return p + h * (k1 + k2) / 2.0


def _averaged3(f: Direction, p: np.ndarray, k1: np.ndarray, h: float) -> np.ndarray:
    k2 = _or(f(p + k1 * (h / 2.0)), k1)
    k3 = _or(f(p + k2 * (h / 2.0)), k2)
    return p + h * (k1 + k2 + k3) / 3.0


def _rk4(f: Direction, p: np.ndarray, k1: np.ndarray, h: float) -> np.ndarray:
    k2 = _or(f(p + k1 * (h / 2.0)), k1)
    k3 = _or(f(p + k2 * (h / 2.0)), k2)
    k4 = _or(f(p + k3 * h), k3)
    return p + h * (k1 + 2.0 * k2 + 2.0 * k3 + k4) / 6.0


STEPPERS: Dict[int, Callable[[Direction, np.ndarray, np.ndarray, float], np.ndarray]] = {
    1: _euler,
    2: _midpoint,
    3: _averaged3,
    4: _rk4,
}


def trace(f: Direction, seed: Sequence[float], steps: int, step_size: float, order: int) -> List[np.ndarray]:
    """Integrate an arbitrary direction function; arguments must already be sanitized."""
    stepper = STEPPERS[order]
    p = as_vec3(seed)
    points = [p.copy()]
    for i in range(steps):
        k1 = f(p)
        if k1 is None:
            _LOG.debug("streamline: no direction after %d steps", i)
            break
        nxt = stepper(f, p, k1, step_size)
        if length_sq(nxt - p) < EPSILON * EPSILON:
            _LOG.debug("streamline: stalled after %d steps", i)
            break
        points.append(nxt)
        p = nxt
    return points


def integrate(
    field: Field,
    seed: Sequence[float],
    steps=25,
    step_size=0.5,
    order=4,
    config: Optional[StreamlineConfig] = None,
) -> List[np.ndarray]:
    """
    Streamline through `field` from `seed`.

    Args
    - steps: iteration cap, coerced to an int ≥ 0 (non-finite → 25).
    - step_size: coerced to max(step_size, EPSILON) (non-finite → 0.5).
    - order: 1..4, rounded and clamped (non-finite → 4).

    Returns a list of float64 points starting with the seed.
    """
    n = max(0, int(finite_or(steps, 25.0)))
    h = max(finite_or(step_size, 0.5), EPSILON)
    k = int(clamp(round(finite_or(order, 4.0)), 1, 4))
    return trace(field_direction(field, config), seed, n, h, k)


__all__ = ["StreamlineConfig", "field_direction", "STEPPERS", "trace", "integrate"]
