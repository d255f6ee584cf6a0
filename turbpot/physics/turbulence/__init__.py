"""Turbulence model package."""

from .base import TurbulenceModel, make_turbulence_model, register_turbulence, turbulence_registry
from .coefficients import CoefficientSet, SolverControls, load_coefficients, load_controls
from .fields import FieldStore
from .laminar import LaminarModel  # noqa: F401
from .potential import CorrectorState, TurbulentPotentialModel  # noqa: F401
from .stress import MomentumSource, ReynoldsStressModel

__all__ = [
    "make_turbulence_model",
    "register_turbulence",
    "turbulence_registry",
    "TurbulenceModel",
    "CoefficientSet",
    "SolverControls",
    "load_coefficients",
    "load_controls",
    "FieldStore",
    "LaminarModel",
    "TurbulentPotentialModel",
    "CorrectorState",
    "MomentumSource",
    "ReynoldsStressModel",
]
