"""Physics models."""

from .transport import ConstantTransport
from .turbulence import (
    LaminarModel,
    TurbulentPotentialModel,
    make_turbulence_model,
    register_turbulence,
    turbulence_registry,
)

__all__ = [
    "ConstantTransport",
    "LaminarModel",
    "TurbulentPotentialModel",
    "make_turbulence_model",
    "register_turbulence",
    "turbulence_registry",
]
