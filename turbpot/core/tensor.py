"""Cell-wise tensor algebra on ``(ncells, 3, 3)`` arrays."""

from __future__ import annotations

import numpy as np


def identity(ncells: int) -> np.ndarray:
    return np.broadcast_to(np.eye(3), (ncells, 3, 3)).copy()


def transpose(tensor: np.ndarray) -> np.ndarray:
    return np.swapaxes(tensor, -1, -2)


def symm(tensor: np.ndarray) -> np.ndarray:
    return 0.5 * (tensor + transpose(tensor))


def two_symm(tensor: np.ndarray) -> np.ndarray:
    return tensor + transpose(tensor)


def skew(tensor: np.ndarray) -> np.ndarray:
    return 0.5 * (tensor - transpose(tensor))


def trace(tensor: np.ndarray) -> np.ndarray:
    return np.einsum("...ii->...", tensor)


def dev(tensor: np.ndarray) -> np.ndarray:
    """Deviatoric part, ``T - tr(T)/3 I``."""
    return tensor - (trace(tensor) / 3.0)[..., None, None] * np.eye(3)


def double_dot(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.einsum("...ij,...ij->...", a, b)


def magnitude(tensor: np.ndarray) -> np.ndarray:
    return np.sqrt(double_dot(tensor, tensor))


def scale(field: np.ndarray, tensor: np.ndarray) -> np.ndarray:
    """Multiply a tensor field by a scalar field cell by cell."""
    return np.asarray(field, dtype=float)[:, None, None] * tensor


def curl_from_grad(grad_u: np.ndarray) -> np.ndarray:
    """Curl of a vector from its gradient ``G[c, i, j] = d u_j / d x_i``."""
    g = grad_u
    return np.stack(
        [
            g[:, 1, 2] - g[:, 2, 1],
            g[:, 2, 0] - g[:, 0, 2],
            g[:, 0, 1] - g[:, 1, 0],
        ],
        axis=1,
    )
