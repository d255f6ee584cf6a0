"""Generic transport-equation assembler for turbulence scalars and vectors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from ..core import fv_ops
from ..core.linalg import FvMatrix
from ..core.mesh import Mesh
from ..core.relax import implicit_relaxation


@dataclass
class TransportSystem:
    matrix: FvMatrix
    rhs: np.ndarray
    diag: np.ndarray


class TransportAssembler:
    """Builds ``ddt(x) + div(F, x) - div(F) x - laplacian(D, x) = Su - Sp x``.

    Convection is first-order upwind on the volumetric face flux ``F``.
    Vector unknowns share the matrix and get one right-hand side column per
    component.
    """

    def __init__(self, mesh: Mesh, bcs: Optional[Iterable] = None) -> None:
        self.mesh = mesh
        self.bcs = list(bcs or [])
        self._dirichlet_faces = np.zeros(mesh.nfaces, dtype=bool)
        seen = set()
        for bc in self.bcs:
            for fid in bc.faces:
                if fid in seen:
                    raise ValueError(f"Face {fid} already has a boundary condition assigned")
                seen.add(fid)
            if bc.is_dirichlet():
                self._dirichlet_faces[bc.faces] = True

    def build(
        self,
        values,
        flux: np.ndarray,
        diffusivity,
        su,
        sp,
        delta_t: Optional[float] = None,
        old_values=None,
        alpha: float = 1.0,
    ) -> TransportSystem:
        mesh = self.mesh
        x = np.asarray(getattr(values, "values", values), dtype=float)
        flux = np.asarray(flux, dtype=float)
        if flux.shape != (mesh.nfaces,):
            raise ValueError(f"Face flux expects {mesh.nfaces} faces, got {flux.shape}")
        ncells = mesh.ncells
        vols = mesh.cell_volumes
        owners = mesh.owners
        neighbours = mesh.neighbours
        inner = mesh.internal
        boundary = ~inner

        diag = np.zeros(ncells)
        rhs = np.zeros_like(x)

        coeff = fv_ops.face_gamma(mesh, diffusivity) * mesh.face_areas / mesh.deltas

        # interior faces: diffusion + upwind convection
        own = owners[inner]
        nei = neighbours[inner]
        f_in = flux[inner]
        d_in = coeff[inner]
        f_pos = np.maximum(f_in, 0.0)
        f_neg = np.minimum(f_in, 0.0)
        np.add.at(diag, own, d_in + f_pos)
        np.add.at(diag, nei, d_in - f_neg)

        # boundary faces: outflow implicit, inflow and fixed values explicit
        face_vals = fv_ops.interpolate(mesh, values, bcs=self.bcs)
        own_b = owners[boundary]
        f_b = flux[boundary]
        np.add.at(diag, own_b, np.maximum(f_b, 0.0))
        inflow = np.minimum(f_b, 0.0)
        vals_b = face_vals[boundary]
        np.add.at(rhs, own_b, -_column(inflow, vals_b) * vals_b)

        fixed = self._dirichlet_faces & boundary
        if fixed.any():
            d_fix = coeff[fixed]
            np.add.at(diag, owners[fixed], d_fix)
            np.add.at(rhs, owners[fixed], _column(d_fix, face_vals[fixed]) * face_vals[fixed])

        # -div(F) x keeps a non-solenoidal frozen flux from acting as a source
        net_outflow = fv_ops.div(mesh, flux) * vols
        diag -= net_outflow

        su = np.asarray(su, dtype=float)
        sp = np.broadcast_to(np.asarray(sp, dtype=float), (ncells,))
        if np.any(sp < 0.0):
            raise ValueError("implicit source coefficient must be non-negative")
        rhs += _column(vols, rhs) * np.broadcast_to(su, rhs.shape)
        diag += sp * vols

        if delta_t is not None:
            if delta_t <= 0.0:
                raise ValueError("delta_t must be positive")
            old = x if old_values is None else np.asarray(getattr(old_values, "values", old_values))
            ddt = vols / delta_t
            diag += ddt
            rhs += _column(ddt, rhs) * old

        diag, rhs = implicit_relaxation(diag, rhs, x, alpha)

        matrix = FvMatrix(mesh)
        matrix.add_diag(range(ncells), diag)
        matrix.add_nb(own, nei, -d_in + f_neg)
        matrix.add_nb(nei, own, -d_in - f_pos)
        return TransportSystem(matrix=matrix, rhs=rhs, diag=diag)


def _column(weights: np.ndarray, like: np.ndarray) -> np.ndarray:
    """Reshape per-face or per-cell weights to broadcast against ``like``."""
    weights = np.asarray(weights, dtype=float)
    if like.ndim > 1:
        return weights[:, None]
    return weights


def solve_system(system: TransportSystem, initial, method: str, tol: float, maxiter: int):
    """Solve a transport system column by column.

    Returns the solution with the shape of ``initial`` and the worst-case
    solver statistics over the components.
    """

    x0 = np.asarray(initial, dtype=float)
    rhs = system.rhs
    if rhs.ndim == 1:
        return system.matrix.solve(
            rhs, method=method, tol=tol, maxiter=maxiter, return_stats=True, initial_guess=x0
        )
    solution = np.zeros_like(x0)
    worst = {"initial": 0.0, "final": 0.0, "relative": 0.0, "iterations": 0.0, "converged": 1.0}
    for comp in range(rhs.shape[1]):
        column, stats = system.matrix.solve(
            rhs[:, comp],
            method=method,
            tol=tol,
            maxiter=maxiter,
            return_stats=True,
            initial_guess=x0[:, comp],
        )
        solution[:, comp] = column
        for key in ("initial", "final", "relative", "iterations"):
            # np.maximum keeps a NaN residual visible
            worst[key] = float(np.maximum(worst[key], stats[key]))
        worst["converged"] = min(worst["converged"], stats["converged"])
    return solution, worst
