#!/usr/bin/env python3
"""
Field-line runner.

Features:
- Loads a scenario JSON holding a serialized field (geofield.boundary.codec
  layout) and optional defaults: seed, steps, step_size, order, section,
  samples.
- mode "line": integrates one streamline from the seed and prints its points.
- mode "sample": evaluates the field on a uniform grid over a section and
  prints per-sample vector/magnitude/alignment.
- Prints a compact JSON summary (sorted keys) on stdout.
- Optional --csv appends one row per output point via csv_logger.

Scenario example:
    {
      "field": {"sources": [{"kind": "point_charge", "position": [0, 0, 0]}]},
      "seed": [1, 0, 0], "steps": 25, "step_size": 0.5, "order": 4
    }
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from geofield.boundary.codec import field_from_dict, frame_from_dict
from geofield.field.compose import Field
from geofield.field.sample import Section, sample_section, section_from_points
from geofield.streamline.integrate import integrate
from geofield.utils.logging import csv_logger, get_logger, log_metrics


def _to_native(obj: Any) -> Any:
    """Recursively convert numpy arrays/scalars into JSON-native values."""
    if isinstance(obj, dict):
        return {str(k): _to_native(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_native(v) for v in obj]
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    return obj


def load_scenario(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        scenario = json.load(f)
    if not isinstance(scenario, dict) or "field" not in scenario:
        raise ValueError(f"{path}: scenario must be an object with a 'field' entry")
    return scenario


def _section(raw: Any) -> Section:
    if raw is None:
        return Section()
    if isinstance(raw, dict):
        return Section(
            frame_from_dict(raw.get("frame", {"origin": [0.0, 0.0, 0.0]})),
            raw.get("min_u", -0.5),
            raw.get("max_u", 0.5),
            raw.get("min_v", -0.5),
            raw.get("max_v", 0.5),
        )
    return section_from_points(raw)


def run_line(
    field: Field,
    seed: Sequence[float],
    steps: int = 25,
    step_size: float = 0.5,
    order: int = 4,
) -> Dict[str, Any]:
    points = integrate(field, seed, steps, step_size, order)
    arc = 0.0
    for a, b in zip(points, points[1:]):
        arc += float(np.linalg.norm(b - a))
    return {
        "mode": "line",
        "points": points,
        "steps_taken": len(points) - 1,
        "arc_length": arc,
    }


def run_sample(field: Field, section: Section, samples_u: int = 10, samples_v: Optional[int] = None) -> Dict[str, Any]:
    grid = sample_section(field, section, samples_u, samples_v)
    rows: List[Dict[str, Any]] = []
    for s in grid:
        rows.append(
            {
                "u": s.u_index,
                "v": s.v_index,
                "point": s.point,
                "vector": s.evaluation.vector,
                "magnitude": s.evaluation.magnitude,
                "strength": s.evaluation.strength,
                "alignment": s.alignment,
            }
        )
    return {"mode": "sample", "samples": rows, "count": len(rows)}


def _write_csv(path: str, summary: Dict[str, Any]) -> None:
    write = csv_logger(path)
    if summary["mode"] == "line":
        for i, p in enumerate(summary["points"]):
            write({"index": float(i), "x": float(p[0]), "y": float(p[1]), "z": float(p[2])})
    else:
        for row in summary["samples"]:
            p = row["point"]
            write(
                {
                    "u": float(row["u"]),
                    "v": float(row["v"]),
                    "x": float(p[0]),
                    "y": float(p[1]),
                    "z": float(p[2]),
                    "magnitude": float(row["magnitude"]),
                    "alignment": float(row["alignment"]),
                }
            )


def main(argv: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    ap = argparse.ArgumentParser(description="Integrate or sample a serialized vector field")
    ap.add_argument("--config", required=True, help="Path to scenario JSON")
    ap.add_argument("--mode", choices=("line", "sample"), default="line", help="Streamline or grid sampling")
    ap.add_argument("--seed", type=float, nargs=3, default=None, help="Override seed point x y z")
    ap.add_argument("--steps", type=int, default=None, help="Override streamline step count")
    ap.add_argument("--step-size", type=float, default=None, help="Override streamline step size")
    ap.add_argument("--order", type=int, default=None, choices=(1, 2, 3, 4), help="Integrator order")
    ap.add_argument("--samples", type=int, nargs="+", default=None, help="Grid samples: U [V]")
    ap.add_argument("--csv", type=str, default=None, help="Append output points to a CSV file")
    ap.add_argument("--verbose", action="store_true", help="Log summary metrics at INFO")
    args = ap.parse_args(argv)

    logger = get_logger(level=logging.INFO if args.verbose else None)
    scenario = load_scenario(args.config)
    field = field_from_dict(scenario["field"])

    if args.mode == "line":
        seed = args.seed if args.seed is not None else scenario.get("seed", [0.0, 0.0, 0.0])
        summary = run_line(
            field,
            seed,
            steps=args.steps if args.steps is not None else scenario.get("steps", 25),
            step_size=args.step_size if args.step_size is not None else scenario.get("step_size", 0.5),
            order=args.order if args.order is not None else scenario.get("order", 4),
        )
        log_metrics({"steps_taken": summary["steps_taken"], "arc_length": summary["arc_length"]}, logger=logger)
    else:
        samples = args.samples if args.samples is not None else scenario.get("samples", [10])
        if not isinstance(samples, list):
            samples = [samples]
        samples_u = samples[0] if samples else 10
        samples_v = samples[1] if len(samples) > 1 else None
        summary = run_sample(field, _section(scenario.get("section")), samples_u, samples_v)
        log_metrics({"samples": summary["count"]}, logger=logger)

    if args.csv:
        _write_csv(args.csv, summary)

    native = _to_native(summary)
    print(json.dumps(native, sort_keys=True, separators=(",", ":")))
    return native


if __name__ == "__main__":
    main()
