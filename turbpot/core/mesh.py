"""Structured mesh definitions for the turbulence closure."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np


@dataclass
class Face:
    """Face connecting two cells or a cell and boundary."""

    owner: int
    neighbour: Optional[int]
    area_vector: np.ndarray
    center: np.ndarray
    patch: Optional[str] = None

    @property
    def area(self) -> float:
        return float(np.linalg.norm(self.area_vector))

    @property
    def normal(self) -> np.ndarray:
        mag = self.area
        if mag == 0.0:
            return np.zeros_like(self.area_vector)
        return self.area_vector / mag


def graded_coordinates(n: int, length: float, ratio: float = 1.0, symmetric: bool = False) -> np.ndarray:
    """Return ``n + 1`` node coordinates on ``[0, length]``.

    ``ratio`` is the size of the last cell divided by the first one. With
    ``symmetric`` the grading is mirrored about the mid-plane so both ends
    get the fine cells, which is what wall-bounded channels want.
    """

    if n <= 0:
        raise ValueError("grading requires at least one cell")
    if ratio <= 0.0:
        raise ValueError("grading ratio must be positive")
    if symmetric:
        half = n // 2
        if half == 0 or n % 2:
            raise ValueError("symmetric grading requires an even cell count")
        left = graded_coordinates(half, 0.5 * length, ratio)
        right = length - left[::-1]
        return np.concatenate([left, right[1:]])
    if n == 1 or np.isclose(ratio, 1.0):
        return np.linspace(0.0, length, n + 1)
    growth = ratio ** (1.0 / (n - 1))
    sizes = growth ** np.arange(n)
    sizes *= length / sizes.sum()
    return np.concatenate([[0.0], np.cumsum(sizes)])


class Mesh:
    """Cartesian structured mesh with collocated storage."""

    def __init__(
        self,
        cell_centers: np.ndarray,
        cell_volumes: np.ndarray,
        faces: Sequence[Face],
        cell_faces: Sequence[List[int]],
        shape: Tuple[int, int],
        boundary_patches: Dict[str, List[int]],
    ) -> None:
        self.cell_centers = np.asarray(cell_centers, dtype=float)
        self.cell_volumes = np.asarray(cell_volumes, dtype=float)
        self.faces = list(faces)
        self.cell_faces = [list(fids) for fids in cell_faces]
        self.shape = shape
        self.boundary_patches: Dict[str, List[int]] = {
            name: list(face_ids) for name, face_ids in boundary_patches.items()
        }

    @property
    def ncells(self) -> int:
        return int(len(self.cell_centers))

    @property
    def nfaces(self) -> int:
        return len(self.faces)

    @classmethod
    def structured(
        cls,
        nx: int,
        ny: int,
        lengths: Tuple[float, float] = (1.0, 1.0),
        patch_aliases: Optional[Dict[str, str]] = None,
        grading: Tuple[float, float] = (1.0, 1.0),
        symmetric: Tuple[bool, bool] = (False, False),
    ) -> "Mesh":
        if nx <= 0 or ny <= 0:
            raise ValueError("Structured mesh requires nx, ny > 0")
        xs = graded_coordinates(nx, float(lengths[0]), float(grading[0]), bool(symmetric[0]))
        ys = graded_coordinates(ny, float(lengths[1]), float(grading[1]), bool(symmetric[1]))
        xc = 0.5 * (xs[:-1] + xs[1:])
        yc = 0.5 * (ys[:-1] + ys[1:])
        dx = np.diff(xs)
        dy = np.diff(ys)

        def cell_index(i: int, j: int) -> int:
            return j * nx + i

        centers = np.array([[xc[i], yc[j], 0.0] for j in range(ny) for i in range(nx)])
        volumes = np.array([dx[i] * dy[j] for j in range(ny) for i in range(nx)])
        faces: List[Face] = []
        cell_faces: List[List[int]] = [[] for _ in range(nx * ny)]
        boundary_patches: Dict[str, List[int]] = {"xmin": [], "xmax": [], "ymin": [], "ymax": []}

        def add_face(owner: int, neighbour: Optional[int], area_vector, center, patch=None) -> None:
            fid = len(faces)
            faces.append(Face(owner, neighbour, np.asarray(area_vector, dtype=float), np.asarray(center), patch))
            cell_faces[owner].append(fid)
            if neighbour is not None:
                cell_faces[neighbour].append(fid)
            else:
                boundary_patches[patch].append(fid)

        # Faces normal to x; boundary area vectors point out of the domain.
        for j in range(ny):
            for i in range(nx + 1):
                center = [xs[i], yc[j], 0.0]
                if i == 0:
                    add_face(cell_index(0, j), None, [-dy[j], 0.0, 0.0], center, "xmin")
                elif i == nx:
                    add_face(cell_index(nx - 1, j), None, [dy[j], 0.0, 0.0], center, "xmax")
                else:
                    add_face(cell_index(i - 1, j), cell_index(i, j), [dy[j], 0.0, 0.0], center)

        # Faces normal to y.
        for j in range(ny + 1):
            for i in range(nx):
                center = [xc[i], ys[j], 0.0]
                if j == 0:
                    add_face(cell_index(i, 0), None, [0.0, -dx[i], 0.0], center, "ymin")
                elif j == ny:
                    add_face(cell_index(i, ny - 1), None, [0.0, dx[i], 0.0], center, "ymax")
                else:
                    add_face(cell_index(i, j - 1), cell_index(i, j), [0.0, dx[i], 0.0], center)

        if patch_aliases:
            for base_name, alias in patch_aliases.items():
                if base_name not in boundary_patches:
                    raise KeyError(f"Unknown base patch '{base_name}'")
                boundary_patches[alias] = boundary_patches.pop(base_name)
                for fid in boundary_patches[alias]:
                    faces[fid].patch = alias

        return cls(
            cell_centers=centers,
            cell_volumes=volumes,
            faces=faces,
            cell_faces=cell_faces,
            shape=(nx, ny),
            boundary_patches=boundary_patches,
        )

    # Face data as arrays, used by the vectorised operators.

    @cached_property
    def owners(self) -> np.ndarray:
        return np.array([face.owner for face in self.faces], dtype=int)

    @cached_property
    def neighbours(self) -> np.ndarray:
        """Neighbour cell per face, ``-1`` on boundary faces."""
        return np.array(
            [-1 if face.neighbour is None else face.neighbour for face in self.faces], dtype=int
        )

    @cached_property
    def internal(self) -> np.ndarray:
        return self.neighbours >= 0

    @cached_property
    def area_vectors(self) -> np.ndarray:
        return np.array([face.area_vector for face in self.faces])

    @cached_property
    def face_areas(self) -> np.ndarray:
        return np.linalg.norm(self.area_vectors, axis=1)

    @cached_property
    def face_centers(self) -> np.ndarray:
        return np.array([face.center for face in self.faces])

    @cached_property
    def weights(self) -> np.ndarray:
        """Owner weight of linear interpolation (1 on boundary faces)."""
        w = np.ones(self.nfaces)
        inner = self.internal
        d_own = np.linalg.norm(self.face_centers[inner] - self.cell_centers[self.owners[inner]], axis=1)
        d_nei = np.linalg.norm(self.face_centers[inner] - self.cell_centers[self.neighbours[inner]], axis=1)
        w[inner] = d_nei / (d_own + d_nei)
        return w

    @cached_property
    def deltas(self) -> np.ndarray:
        """Owner-to-neighbour distance, owner-to-face distance on boundaries."""
        far = self.face_centers.copy()
        inner = self.internal
        far[inner] = self.cell_centers[self.neighbours[inner]]
        return np.linalg.norm(far - self.cell_centers[self.owners], axis=1)

    def faces_for_cell(self, cell_id: int) -> Iterable[int]:
        return self.cell_faces[cell_id]

    def patch_faces(self, name: str) -> List[int]:
        try:
            return self.boundary_patches[name]
        except KeyError as exc:
            raise KeyError(f"Unknown patch '{name}' (available: {', '.join(self.patches())})") from exc

    def patches(self) -> List[str]:
        return list(self.boundary_patches.keys())

    def patch_cells(self, name: str) -> np.ndarray:
        return self.owners[self.patch_faces(name)]
