"""Wall boundary conditions."""

from __future__ import annotations

import numpy as np

from .fixed import FixedValue


class NoSlipWall(FixedValue):
    """Zero velocity at the wall; zero value when applied to a scalar."""

    def __init__(self, name, mesh, faces):
        super().__init__(name, mesh, faces, np.zeros(3))

    @property
    def velocity(self) -> np.ndarray:
        return self.value

    def update_face_values(self, face_values: np.ndarray, field) -> None:
        component = getattr(field, "component", None)
        if face_values.ndim == 1:
            face_values[self.faces] = 0.0 if component is None else self.value[component]
        else:
            face_values[self.faces] = self.value


class MovingWall(NoSlipWall):
    def __init__(self, name, mesh, faces, velocity):
        super().__init__(name, mesh, faces)
        self.value = np.asarray(velocity, dtype=float)
