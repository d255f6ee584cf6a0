"""Persistent and per-step fields of the turbulent potential model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from ...core.field import Field, ScalarField, TensorField, VectorField
from ...core.mesh import Mesh

PERSISTENT_SCALARS = ("k", "epsilon", "epsHat", "nut", "tpphi")
PERSISTENT_VECTORS = ("tppsi", "vorticity")
PERSISTENT_TENSORS = ("uGrad",)

SCRATCH_SCALARS = (
    "kSafe",
    "epsilonSafe",
    "nutSafe",
    "sigmaK",
    "sigmaEps",
    "sigmaPhi",
    "sigmaPsi",
    "cEp2",
    "tpProd",
)

DIAGNOSTICS = (
    "phiPressureStrain",
    "phiProduction",
    "phiDiss",
    "phiViscDiff",
    "phiTurbDiff",
)


@dataclass
class FieldStore:
    """Owns every per-cell array of one model instance.

    Persistent fields are allocated once and overwritten in place by each
    correction step. Scratch fields are recomputed from the persistent ones
    at the start of a step and are not meant to be read across steps.
    """

    mesh: Mesh
    k: ScalarField
    epsilon: ScalarField
    epsHat: ScalarField
    nut: ScalarField
    tpphi: ScalarField
    tppsi: VectorField
    vorticity: VectorField
    uGrad: TensorField
    scratch: Dict[str, ScalarField] = field(default_factory=dict)
    diagnostics: Dict[str, ScalarField] = field(default_factory=dict)

    @classmethod
    def allocate(
        cls,
        mesh: Mesh,
        supplied: Optional[Dict[str, Field]] = None,
        k0: float = 1.0e-3,
        epsilon0: float = 1.0e-3,
        phi0: Optional[float] = None,
    ) -> "FieldStore":
        """Build the store from restart fields where given, uniform defaults otherwise."""

        supplied = dict(supplied or {})
        phi0 = (2.0 / 3.0) * k0 if phi0 is None else phi0

        def take(name: str, kind, default) -> Field:
            if name in supplied:
                source = supplied[name]
                values = getattr(source, "values", source)
                return kind(name, mesh, np.array(values, dtype=float))
            return kind.uniform(name, mesh, default)

        k = take("k", ScalarField, k0)
        epsilon = take("epsilon", ScalarField, epsilon0)
        store = cls(
            mesh=mesh,
            k=k,
            epsilon=epsilon,
            epsHat=take("epsHat", ScalarField, epsilon.values),
            nut=take("nut", ScalarField, 0.0),
            tpphi=take("tpphi", ScalarField, phi0),
            tppsi=take("tppsi", VectorField, 0.0),
            vorticity=take("vorticity", VectorField, 0.0),
            uGrad=take("uGrad", TensorField, 0.0),
        )
        for name in SCRATCH_SCALARS:
            store.scratch[name] = ScalarField.uniform(name, mesh, 0.0)
        return store

    def persistent(self) -> Dict[str, Field]:
        names = PERSISTENT_SCALARS + PERSISTENT_VECTORS + PERSISTENT_TENSORS
        return {name: getattr(self, name) for name in names}

    def __getitem__(self, name: str) -> Field:
        if name in self.scratch:
            return self.scratch[name]
        if name in self.diagnostics:
            return self.diagnostics[name]
        if name in self.persistent():
            return getattr(self, name)
        raise KeyError(f"Unknown turbulence field '{name}'")

    def set_scratch(self, name: str, values) -> ScalarField:
        target = self.scratch[name]
        target.assign(values)
        return target

    def set_diagnostic(self, name: str, values) -> ScalarField:
        if name not in self.diagnostics:
            self.diagnostics[name] = ScalarField.uniform(name, self.mesh, 0.0)
        self.diagnostics[name].assign(values)
        return self.diagnostics[name]

    def snapshot(self) -> Dict[str, np.ndarray]:
        """Copies of the persistent values, e.g. for checkpointing after a step."""
        return {name: fld.values.copy() for name, fld in self.persistent().items()}
