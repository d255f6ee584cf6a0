"""Finite-volume helper operations.

All operators work on plain arrays or fields and loop over faces through
the cached face arrays of :class:`~turbpot.core.mesh.Mesh`. Gradients follow
the convention ``grad[c, i, j] = d(value_j)/dx_i``.
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from .field import Field
from .mesh import Mesh


def _values_array(field) -> np.ndarray:
    if isinstance(field, Field):
        return field.values
    return np.asarray(field, dtype=float)


def _broadcast(face_weights: np.ndarray, values: np.ndarray) -> np.ndarray:
    return face_weights.reshape((-1,) + (1,) * (values.ndim - 1))


def interpolate(
    mesh: Mesh,
    field,
    scheme: str = "linear",
    face_flux: Optional[np.ndarray] = None,
    bcs: Optional[Iterable] = None,
) -> np.ndarray:
    """Cell-to-face interpolation; boundary faces take the owner value unless a BC overrides it."""

    values = _values_array(field)
    owners = mesh.owners
    neighbours = mesh.neighbours
    inner = mesh.internal
    face_vals = values[owners].copy()

    if scheme.lower() == "upwind":
        if face_flux is None:
            raise ValueError("Upwind interpolation requires face_flux")
        take_neighbour = inner & (np.asarray(face_flux) < 0.0)
        face_vals[take_neighbour] = values[neighbours[take_neighbour]]
    elif scheme.lower() == "linear":
        w = _broadcast(mesh.weights[inner], values)
        face_vals[inner] = w * values[owners[inner]] + (1.0 - w) * values[neighbours[inner]]
    else:
        raise ValueError(f"Unknown interpolation scheme '{scheme}'")

    if bcs is not None:
        for bc in bcs:
            bc.update_face_values(face_vals, field)
    return face_vals


def _accumulate(mesh: Mesh, face_contrib: np.ndarray) -> np.ndarray:
    """Sum face contributions into owners (+) and neighbours (-)."""
    out = np.zeros((mesh.ncells,) + face_contrib.shape[1:])
    np.add.at(out, mesh.owners, face_contrib)
    inner = mesh.internal
    np.add.at(out, mesh.neighbours[inner], -face_contrib[inner])
    return out


def _per_volume(mesh: Mesh, values: np.ndarray) -> np.ndarray:
    return values / _broadcast(mesh.cell_volumes, values)


def grad(mesh: Mesh, field, bcs: Optional[Iterable] = None) -> np.ndarray:
    """Gauss gradient of a scalar ``(n, 3)`` or vector ``(n, 3, 3)`` field."""

    values = _values_array(field)
    face_vals = interpolate(mesh, field, bcs=bcs)
    sf = mesh.area_vectors
    if values.ndim == 1:
        contrib = face_vals[:, None] * sf
    else:
        contrib = sf[:, :, None] * face_vals[:, None, :]
    return _per_volume(mesh, _accumulate(mesh, contrib))


def div(mesh: Mesh, face_flux: np.ndarray) -> np.ndarray:
    face_flux = np.asarray(face_flux, dtype=float)
    if face_flux.ndim != 1:
        raise ValueError("div expects scalar flux per face")
    return _per_volume(mesh, _accumulate(mesh, face_flux))


def div_tensor(mesh: Mesh, tensor, bcs: Optional[Iterable] = None) -> np.ndarray:
    """Gauss divergence of a tensor field, ``(div T)_j = d T_ij / dx_i``."""

    values = _values_array(tensor)
    if values.ndim != 3:
        raise ValueError("div_tensor expects an (ncells, 3, 3) field")
    face_vals = interpolate(mesh, values, bcs=bcs)
    contrib = np.einsum("fi,fij->fj", mesh.area_vectors, face_vals)
    return _per_volume(mesh, _accumulate(mesh, contrib))


def face_gamma(mesh: Mesh, gamma) -> np.ndarray:
    """Face diffusivity from a cell field (owner value on boundaries) or a constant."""
    if isinstance(gamma, (float, int)):
        return np.full(mesh.nfaces, float(gamma))
    return interpolate(mesh, gamma)


def laplacian(mesh: Mesh, gamma, field, bcs: Optional[Iterable] = None) -> np.ndarray:
    """Explicit ``div(gamma grad(field))`` for scalar or vector fields.

    Boundary faces contribute only where ``bcs`` set a face value that
    differs from the owner value, i.e. on Dirichlet patches.
    """

    phi = _values_array(field)
    face_vals = interpolate(mesh, field, bcs=bcs)
    owners = mesh.owners
    inner = mesh.internal
    far = face_vals.copy()
    far[inner] = phi[mesh.neighbours[inner]]
    delta = far - phi[owners]
    coeff = face_gamma(mesh, gamma) * mesh.face_areas / mesh.deltas
    contrib = _broadcast(coeff, delta) * delta
    return _per_volume(mesh, _accumulate(mesh, contrib))


def face_flux(mesh: Mesh, density, face_velocity: np.ndarray) -> np.ndarray:
    """Face flux ``rho_f U_f . Sf``; ``density`` is a constant or a cell field."""
    if isinstance(density, (float, int)):
        rho = float(density)
    else:
        rho = interpolate(mesh, density)
    return rho * np.einsum("fi,fi->f", np.asarray(face_velocity, dtype=float), mesh.area_vectors)
