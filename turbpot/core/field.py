"""Field containers for collocated FV variables."""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .mesh import Mesh


class Field:
    """Base class for collocated fields.

    Subclasses fix the per-cell shape through ``component_shape``; the cell
    count always comes from the mesh.
    """

    component_shape: Tuple[int, ...] = ()

    def __init__(self, name: str, mesh: Mesh, values) -> None:
        arr = np.array(values, dtype=float)
        expected = (mesh.ncells, *self.component_shape)
        if arr.shape != expected:
            raise ValueError(
                f"{self.__class__.__name__} {name} expects shape {expected}, got {arr.shape}"
            )
        self.name = name
        self.mesh = mesh
        self.values = arr

    @classmethod
    def uniform(cls, name: str, mesh: Mesh, value=0.0) -> "Field":
        data = np.empty((mesh.ncells, *cls.component_shape))
        data[...] = value
        return cls(name, mesh, data)

    def copy(self, name: Optional[str] = None) -> "Field":
        return self.__class__(name or self.name, self.mesh, self.values.copy())

    def fill(self, value) -> None:
        self.values[...] = value

    def assign(self, values) -> None:
        """Overwrite the values in place, keeping the underlying array."""
        self.values[...] = values

    def norm(self) -> float:
        return float(np.linalg.norm(self.values))

    def min(self) -> float:
        return float(self.values.min())

    def max(self) -> float:
        return float(self.values.max())

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        if dtype is None:
            return self.values
        return self.values.astype(dtype)

    def __len__(self) -> int:
        return self.values.shape[0]

    def __getitem__(self, idx):
        return self.values[idx]

    def __setitem__(self, idx, value) -> None:
        self.values[idx] = value

    def __iadd__(self, other):
        self.values += np.asarray(other)
        return self

    def __isub__(self, other):
        self.values -= np.asarray(other)
        return self

    def __imul__(self, other):
        self.values *= np.asarray(other)
        return self

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r}, ncells={len(self)})"


class ScalarField(Field):
    """Scalar field stored at cell centres."""


class VectorField(Field):
    """Vector field with three components per cell."""

    component_shape = (3,)

    @property
    def x(self) -> np.ndarray:
        return self.values[:, 0]

    @property
    def y(self) -> np.ndarray:
        return self.values[:, 1]

    @property
    def z(self) -> np.ndarray:
        return self.values[:, 2]

    def magnitude(self) -> np.ndarray:
        return np.linalg.norm(self.values, axis=1)


class TensorField(Field):
    """Second-rank tensor field, ``values[c, i, j]``."""

    component_shape = (3, 3)

    def transpose(self, name: Optional[str] = None) -> "TensorField":
        return TensorField(name or f"{self.name}.T", self.mesh, np.swapaxes(self.values, 1, 2))

    def magnitude(self) -> np.ndarray:
        return np.sqrt(np.einsum("cij,cij->c", self.values, self.values))
