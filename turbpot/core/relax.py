"""Under-relaxation helpers."""

from __future__ import annotations

import numpy as np


def implicit_relaxation(diagonal: np.ndarray, source: np.ndarray, field_values: np.ndarray, alpha: float):
    """Return the relaxed ``(diagonal, source)`` pair of a steady equation.

    ``source`` may carry one column per vector component; the diagonal is
    shared between components.
    """

    if alpha <= 0.0 or alpha > 1.0:
        raise ValueError("alpha must be in (0, 1]")
    if alpha == 1.0:
        return diagonal, source
    diag_relaxed = diagonal / alpha
    weight = (1.0 - alpha) / alpha * diagonal
    if source.ndim > 1:
        weight = weight[:, None]
    return diag_relaxed, source + weight * field_values
