"""Streamline integrators of order 1–4 through a composed field."""

from .integrate import StreamlineConfig, field_direction, STEPPERS, trace, integrate

__all__ = ["StreamlineConfig", "field_direction", "STEPPERS", "trace", "integrate"]
