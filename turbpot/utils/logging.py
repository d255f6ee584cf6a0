"""Simple logging utilities for turbulence corrections."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np


@dataclass
class IterationLogger:
    name: str
    history: List[Dict[str, float]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    verbose: bool = True

    def log(self, iteration: int, residuals: Dict[str, float]) -> None:
        entry = {"iter": iteration, **residuals}
        self.history.append(entry)
        if not self.verbose:
            return
        pieces = [f"{self.name} iter {iteration:3d}"]
        for name, value in residuals.items():
            pieces.append(f"{name} = {value:.3e}")
        print(" | ".join(pieces), flush=True)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        print(f"{self.name} warning: {message}", flush=True)

    def summary(self, name: str, values) -> None:
        arr = np.asarray(values, dtype=float)
        if arr.ndim > 1:
            arr = np.linalg.norm(arr.reshape(arr.shape[0], -1), axis=1)
        if self.verbose:
            print(
                f"{self.name} {name}: min = {arr.min():.4e}, max = {arr.max():.4e}, "
                f"mean = {arr.mean():.4e}",
                flush=True,
            )
