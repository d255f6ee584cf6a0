"""Fixed-value (Dirichlet) boundary conditions."""

from __future__ import annotations

import numpy as np

from .base import BoundaryCondition


class FixedValue(BoundaryCondition):
    """Prescribed face value; scalar for scalar fields, 3-vector for vectors."""

    def __init__(self, name, mesh, faces, value=0.0):
        super().__init__(name, mesh, faces)
        self.value = np.asarray(value, dtype=float)

    def is_dirichlet(self) -> bool:
        return True

    def update_face_values(self, face_values: np.ndarray, field) -> None:
        if not self.faces:
            return
        if face_values.ndim == 1 and self.value.ndim == 1:
            component = getattr(field, "component", None)
            if component is None:
                raise ValueError(f"Patch {self.name}: vector value given for a scalar field")
            face_values[self.faces] = self.value[component]
            return
        face_values[self.faces] = self.value


class VelocityInlet(FixedValue):
    def __init__(self, name, mesh, faces, value):
        super().__init__(name, mesh, faces, value)
        if self.value.shape != (3,):
            raise ValueError(f"Inlet {name} expects a 3-component velocity")

    @property
    def velocity(self) -> np.ndarray:
        return self.value
