"""Package logging and metric output.

Invariants
- One StreamHandler on the "geofield" logger, installed once. Child loggers
  ("geofield.frame", ...) carry no handlers and propagate into it.
- Library modules only log recoveries at DEBUG; nothing reaches the console
  at the default WARNING level unless a caller lowers it.
- Metric values must be finite reals; bad values raise before anything is
  written.

Public API
- get_logger(name="geofield", level=None) -> logging.Logger
- log_metrics(metrics, step=None, logger=None) -> None
- csv_logger(path) -> Callable[[Mapping[str, float]], None]
"""
from __future__ import annotations

import csv
import logging
import math
import os
from typing import Callable, Dict, Mapping, Optional

ROOT_LOGGER_NAME = "geofield"

_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def _install_handler(logger: logging.Logger) -> None:
    if any(getattr(h, "_geofield_handler", False) for h in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler._geofield_handler = True  # type: ignore[attr-defined]
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False


def get_logger(name: str = ROOT_LOGGER_NAME, level: Optional[int] = None) -> logging.Logger:
    """
    Return `name` under the package namespace, installing the package
    handler on first use. `level` is applied only when given, so importing
    the library never overrides a level chosen by the host.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    _install_handler(root)
    if root.level == logging.NOTSET:
        root.setLevel(logging.WARNING)

    logger = root if name == ROOT_LOGGER_NAME else logging.getLogger(name)
    if level is not None:
        logger.setLevel(int(level))
    return logger


def _finite_metrics(metrics: Mapping[str, float]) -> Dict[str, float]:
    """Validated copy of `metrics` with float values, keys sorted."""
    if not isinstance(metrics, Mapping) or not metrics:
        raise ValueError("metrics must be a non-empty mapping of str -> float")
    out: Dict[str, float] = {}
    for key in sorted(metrics):
        if not isinstance(key, str) or not key:
            raise ValueError("metric keys must be non-empty strings")
        try:
            value = float(metrics[key])
        except (TypeError, ValueError) as e:
            raise TypeError(f"metric '{key}' is not a real number") from e
        if not math.isfinite(value):
            raise ValueError(f"metric '{key}' must be finite, got {value}")
        out[key] = value
    return out


def log_metrics(
    metrics: Mapping[str, float],
    step: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Log one INFO line: "metrics k1=v1 k2=v2 [step=n]" with sorted keys."""
    values = _finite_metrics(metrics)
    line = "metrics " + " ".join(f"{k}={v:.10g}" for k, v in values.items())
    if step is not None:
        line += f" step={int(step)}"
    (logger or get_logger()).info(line)


def csv_logger(path: str) -> Callable[[Mapping[str, float]], None]:
    """
    Appender for one CSV file. The header (sorted keys of the first row) is
    written when the file is missing or empty; later rows must use the same
    keys.
    """
    if not isinstance(path, str) or not path:
        raise ValueError("path must be a non-empty string")
    abs_path = os.path.abspath(path)

    def write(metrics: Mapping[str, float]) -> None:
        values = _finite_metrics(metrics)
        new_file = not os.path.exists(abs_path) or os.path.getsize(abs_path) == 0
        with open(abs_path, "a", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, lineterminator="\n")
            if new_file:
                writer.writerow(list(values))
            writer.writerow([f"{v:.10g}" for v in values.values()])

    return write


__all__ = ["ROOT_LOGGER_NAME", "get_logger", "log_metrics", "csv_logger"]
