"""Run frozen-flow turbulence cases.

Usage:
    python scripts/run_case.py tests/cases/channel/system/case.yaml \
        --summary tests/artifacts/channel_summary.json

Each case loads its velocity field, solves the configured turbulence model
for the requested number of steps, writes the fields under the case
directory and prints min/max of the main quantities.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from time import perf_counter

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from turbpot import FrozenFlowCase


def run_case(case_path: Path, quiet: bool = False) -> dict[str, float]:
    case = FrozenFlowCase.from_yaml(case_path)
    case.logger.verbose = not quiet
    start = perf_counter()
    model = case.solve()
    summary: dict[str, float] = {"wall_clock": perf_counter() - start, "steps": float(len(case.logger.history))}
    for name, field in model.fields().items():
        values = np.asarray(field.values)
        if values.ndim > 1:
            values = np.linalg.norm(values.reshape(values.shape[0], -1), axis=1)
        summary[f"{name}_min"] = float(values.min())
        summary[f"{name}_max"] = float(values.max())
    return summary


def main() -> None:
    parser = argparse.ArgumentParser(description="Run frozen-flow turbulence cases")
    parser.add_argument("cases", nargs="*", type=Path, help="Path(s) to system/case.yaml")
    parser.add_argument("--quiet", action="store_true", help="Do not print per-step residuals")
    parser.add_argument("--summary", type=Path, default=None, help="Write a JSON summary here")
    args = parser.parse_args()

    case_paths = args.cases or [Path("tests/cases/channel/system/case.yaml")]
    results: dict[str, dict[str, float]] = {}
    for path in case_paths:
        print(f"\n=== {path} ===")
        summary = run_case(path, quiet=args.quiet)
        for key, value in summary.items():
            print(f"{key:>20}: {value:.6g}")
        results[str(path)] = summary

    if args.summary is not None:
        args.summary.parent.mkdir(parents=True, exist_ok=True)
        args.summary.write_text(json.dumps(results, indent=2))
        print(f"\nWrote summary to {args.summary}")


if __name__ == "__main__":
    main()
