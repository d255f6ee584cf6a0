"""Boundary condition implementations."""

from .base import BoundaryCondition
from .fixed import FixedValue, VelocityInlet
from .wall import MovingWall, NoSlipWall
from .zero import ZeroGradient

__all__ = [
    "BoundaryCondition",
    "FixedValue",
    "VelocityInlet",
    "NoSlipWall",
    "MovingWall",
    "ZeroGradient",
]
