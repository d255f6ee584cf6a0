"""Base turbulence model implementation and registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Mapping, Optional

import numpy as np

from ...core import fv_ops, tensor
from ...core.field import ScalarField, TensorField, VectorField
from ...core.mesh import Mesh
from ...utils.errors import ConfigurationError
from ...utils.logging import IterationLogger
from ...utils.registry import Registry


turbulence_registry = Registry("turbulence")


def register_turbulence(name: str):
    return turbulence_registry.register(name)


def make_turbulence_model(name: str, *args, **kwargs):
    return turbulence_registry.create(name, *args, **kwargs)


class TurbulenceModel(ABC):
    """Eddy-viscosity closure driven by a frozen or externally solved velocity.

    ``velocity`` and ``flux`` are held by reference: the owning solver updates
    them between calls to :meth:`correct`. ``bcs`` maps a field name (``U``,
    ``k``, ``epsilon``, ``tpphi``, ``tppsi``) to its boundary conditions.
    """

    type_name = "turbulenceModel"

    def __init__(
        self,
        mesh: Mesh,
        velocity: VectorField,
        flux: np.ndarray,
        transport,
        config=None,
        fields: Optional[Dict[str, Any]] = None,
        bcs: Optional[Dict[str, Iterable]] = None,
        delta_t: Optional[float] = None,
        logger: Optional[IterationLogger] = None,
    ) -> None:
        self.mesh = mesh
        self.velocity = velocity
        self.flux = np.asarray(flux, dtype=float)
        self.transport = transport
        self.config = config if config is not None else {}
        self.bcs = {name: list(items) for name, items in (bcs or {}).items()}
        self.delta_t = delta_t
        self.logger = logger or IterationLogger(self.type_name, verbose=False)
        self.supplied_fields = dict(fields or {})

    def model_dict(self) -> Mapping[str, Any]:
        """Current model dictionary, re-read from ``config`` on each call."""

        source = self.config
        data = source.read() if hasattr(source, "read") else source
        data = data or {}
        if not isinstance(data, Mapping):
            raise ConfigurationError(self.type_name, "model dictionary must be a mapping")
        sub = data.get(self.type_name)
        if isinstance(sub, Mapping):
            return sub
        return data

    def nu(self) -> float:
        return self.transport.nu()

    def velocity_gradient(self) -> np.ndarray:
        return fv_ops.grad(self.mesh, self.velocity, self.bcs.get("U"))

    @abstractmethod
    def correct(self) -> None:
        """Advance the turbulence fields by one step."""

    @abstractmethod
    def read(self) -> bool:
        """Reload the model dictionary; ``False`` keeps the previous settings."""

    @abstractmethod
    def nut(self) -> ScalarField:
        ...

    @abstractmethod
    def k(self) -> ScalarField:
        ...

    @abstractmethod
    def reynolds_stress(self) -> TensorField:
        ...

    @abstractmethod
    def momentum_source(self, velocity=None):
        """Implicit Laplacian coefficient and explicit remainder of ``-div(devReff)`` for ``velocity``."""

    def effective_stress(self) -> TensorField:
        viscous = 2.0 * self.nu() * tensor.symm(self.velocity_gradient())
        return TensorField("devReff", self.mesh, self.reynolds_stress().values - viscous)

    def fields(self) -> Dict[str, Any]:
        """Fields written at each output time."""
        return {"nut": self.nut()}
