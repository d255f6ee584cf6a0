"""Zero-gradient (Neumann) boundary condition."""

from __future__ import annotations

from .base import BoundaryCondition


class ZeroGradient(BoundaryCondition):
    def update_face_values(self, face_values, field) -> None:
        values = getattr(field, "values", field)
        face_values[self.faces] = values[self.cells]
