"""turbpot: turbulent potential RANS closure on structured finite-volume meshes."""

from .physics.turbulence import (
    LaminarModel,
    TurbulentPotentialModel,
    make_turbulence_model,
)
from .run.case import FrozenFlowCase
from .run.time import TimeControl
from .utils.errors import ConfigurationError, NumericalDivergence

__all__ = [
    "ConfigurationError",
    "FrozenFlowCase",
    "LaminarModel",
    "NumericalDivergence",
    "TimeControl",
    "TurbulentPotentialModel",
    "make_turbulence_model",
]
