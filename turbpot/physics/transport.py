"""Transport properties models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class ConstantTransport:
    rho: float = 1.0
    mu: float = 1.0e-3

    def __post_init__(self) -> None:
        if self.rho <= 0.0:
            raise ValueError("rho must be positive")
        if self.mu < 0.0:
            raise ValueError("mu must be non-negative")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, float]]) -> "ConstantTransport":
        data = data or {}
        if "nu" in data and "mu" not in data:
            rho = float(data.get("rho", 1.0))
            return cls(rho=rho, mu=float(data["nu"]) * rho)
        return cls(rho=float(data.get("rho", 1.0)), mu=float(data.get("mu", 1.0e-3)))

    def update(self, _time: float) -> None:
        return

    def density(self) -> float:
        return self.rho

    def viscosity(self) -> float:
        return self.mu

    def nu(self) -> float:
        """Kinematic viscosity."""
        return self.mu / self.rho
