"""Core finite-volume data structures."""

from .field import ScalarField, TensorField, VectorField
from .linalg import FvMatrix
from .mesh import Mesh

__all__ = ["FvMatrix", "Mesh", "ScalarField", "TensorField", "VectorField"]
