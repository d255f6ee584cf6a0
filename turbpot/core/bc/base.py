"""Boundary condition base classes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

import numpy as np

from ..mesh import Mesh


class BoundaryCondition(ABC):
    def __init__(self, name: str, mesh: Mesh, faces: Iterable[int]) -> None:
        self.name = name
        self.mesh = mesh
        self.faces = list(faces)

    @abstractmethod
    def update_face_values(self, face_values: np.ndarray, field) -> None:
        """Recompute face values consistent with the boundary condition."""

    @property
    def cells(self) -> np.ndarray:
        """Cells owning the patch faces, in face order."""
        return self.mesh.owners[self.faces]

    def is_dirichlet(self) -> bool:
        """Whether the patch fixes the face value (walls, inlets) rather than extrapolating it."""

        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r}, nfaces={len(self.faces)})"
