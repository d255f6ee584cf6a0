"""Laminar turbulence model (nut = 0)."""

from __future__ import annotations

import numpy as np

from ...core import fv_ops
from ...core.field import ScalarField, TensorField
from .base import TurbulenceModel, register_turbulence
from .stress import MomentumSource, ReynoldsStressModel


@register_turbulence("laminar")
class LaminarModel(TurbulenceModel):
    type_name = "laminar"

    def __init__(self, mesh, velocity, flux, transport, config=None, **kwargs) -> None:
        super().__init__(mesh, velocity, flux, transport, config, **kwargs)
        self._nut = ScalarField("nut", mesh, np.zeros(mesh.ncells))
        self._k = ScalarField("k", mesh, np.zeros(mesh.ncells))
        self.stress_model = ReynoldsStressModel(mesh)

    def correct(self) -> None:
        self._nut.fill(0.0)

    def read(self) -> bool:
        return True

    def nut(self) -> ScalarField:
        return self._nut

    def k(self) -> ScalarField:
        return self._k

    def reynolds_stress(self) -> TensorField:
        return TensorField.uniform("R", self.mesh, 0.0)

    def momentum_source(self, velocity=None) -> MomentumSource:
        velocity = self.velocity if velocity is None else velocity
        zeros = np.zeros(self.mesh.ncells)
        return self.stress_model.momentum_source(
            velocity,
            zeros,
            zeros,
            zeros,
            fv_ops.grad(self.mesh, velocity, self.bcs.get("U")),
            self.nu(),
            zeros,
            0.0,
            bcs=self.bcs.get("U"),
        )
