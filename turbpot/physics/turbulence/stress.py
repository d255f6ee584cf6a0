"""Reynolds stress and momentum source of the turbulent potential closure."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from ...core import fv_ops, tensor
from ...core.mesh import Mesh
from . import derived


@dataclass
class MomentumSource:
    """Split of ``-div(devReff)`` handed to a momentum solver.

    ``nu_eff`` is the coefficient of the implicit ``laplacian(nu_eff, U)``;
    ``explicit`` is the per-volume remainder that goes to the right-hand
    side, so that the two together reproduce ``-div(devReff)``.
    """

    mesh: Mesh
    nu_eff: np.ndarray
    explicit: np.ndarray

    def evaluate(self, velocity, bcs: Optional[Iterable] = None) -> np.ndarray:
        return fv_ops.laplacian(self.mesh, self.nu_eff, velocity, bcs) + self.explicit


class ReynoldsStressModel:
    """Stress closure ``R = 2/3 k I - 2 cMu T phi S``.

    Reads the model state only; call it after a correction step has
    finished, otherwise it sees a partially updated field set.
    """

    def __init__(self, mesh: Mesh) -> None:
        self.mesh = mesh

    def isotropic(self, k) -> np.ndarray:
        return tensor.scale((2.0 / 3.0) * np.asarray(k, dtype=float), tensor.identity(self.mesh.ncells))

    def anisotropic(self, phi, ts, grad_u, c_mu: float) -> np.ndarray:
        """``2 cMu T phiS``, the eddy-viscosity part of the stress."""
        return tensor.scale(2.0 * c_mu * np.asarray(ts, dtype=float), derived.phi_s(phi, grad_u))

    def stress(self, k, phi, ts, grad_u, c_mu: float) -> np.ndarray:
        return self.isotropic(k) - self.anisotropic(phi, ts, grad_u, c_mu)

    def viscous(self, grad_u, nu: float) -> np.ndarray:
        return 2.0 * nu * tensor.symm(np.asarray(grad_u, dtype=float))

    def effective_stress(self, k, phi, ts, grad_u, nu: float, c_mu: float) -> np.ndarray:
        return self.stress(k, phi, ts, grad_u, c_mu) - self.viscous(grad_u, nu)

    def momentum_source(
        self,
        velocity,
        k,
        phi,
        ts,
        grad_u,
        nu: float,
        nut,
        c_mu: float,
        bcs: Optional[Iterable] = None,
    ) -> MomentumSource:
        mesh = self.mesh
        nu_eff = nu + np.asarray(nut, dtype=float)
        explicit = (
            -fv_ops.div_tensor(mesh, self.isotropic(k) - self.viscous(grad_u, nu))
            + fv_ops.div_tensor(mesh, self.anisotropic(phi, ts, grad_u, c_mu))
            - fv_ops.laplacian(mesh, nu_eff, velocity, bcs)
        )
        return MomentumSource(mesh=mesh, nu_eff=nu_eff, explicit=explicit)
