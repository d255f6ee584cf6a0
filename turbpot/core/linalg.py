"""Linear algebra scaffolding for FV matrices."""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

import numpy as np
import pyamg
from scipy import sparse
from scipy.sparse import linalg as sparse_linalg

from .mesh import Mesh


SOLVER_METHODS = ("direct", "bicgstab", "cg", "gmres", "amg")


class FvMatrix:
    """Sparse matrix builder for finite-volume systems."""

    def __init__(self, mesh: Mesh) -> None:
        self.mesh = mesh
        self._diag = np.zeros(mesh.ncells)
        self._offdiag: Dict[Tuple[int, int], float] = {}

    def add_diag(self, cell_ids: Iterable[int], coeffs: Iterable[float]) -> None:
        np.add.at(self._diag, np.asarray(list(cell_ids), dtype=int), np.asarray(list(coeffs), dtype=float))

    def add_nb(
        self, cell_ids: Iterable[int], nb_ids: Iterable[int], coeffs: Iterable[float]
    ) -> None:
        for cid, nid, coeff in zip(cell_ids, nb_ids, coeffs):
            cid, nid = int(cid), int(nid)
            if cid == nid:
                self._diag[cid] += coeff
            else:
                key = (cid, nid)
                self._offdiag[key] = self._offdiag.get(key, 0.0) + float(coeff)

    def diagonal(self) -> np.ndarray:
        return self._diag.copy()

    def to_csr(self) -> sparse.csr_matrix:
        n = self.mesh.ncells
        rows = np.arange(n)
        cols = np.arange(n)
        data = self._diag
        if self._offdiag:
            keys = np.array(list(self._offdiag.keys()), dtype=int)
            rows = np.concatenate([rows, keys[:, 0]])
            cols = np.concatenate([cols, keys[:, 1]])
            data = np.concatenate([data, np.fromiter(self._offdiag.values(), dtype=float)])
        return sparse.csr_matrix((data, (rows, cols)), shape=(n, n))

    def to_dense(self) -> np.ndarray:
        return self.to_csr().toarray()

    def matvec(self, vector: np.ndarray) -> np.ndarray:
        return self.to_csr() @ np.asarray(vector, dtype=float)

    def solve(
        self,
        rhs: np.ndarray,
        method: str = "direct",
        tol: float = 1e-10,
        maxiter: int = 500,
        return_stats: bool = False,
        initial_guess: np.ndarray | None = None,
    ) -> np.ndarray | tuple[np.ndarray, dict[str, float]]:
        method = method.lower()
        if method not in SOLVER_METHODS:
            raise NotImplementedError(f"Unknown solver method '{method}'")

        A = self.to_csr()
        b = np.asarray(rhs, dtype=float)
        x0 = np.zeros_like(b) if initial_guess is None else np.asarray(initial_guess, dtype=float).copy()
        initial_res = float(np.linalg.norm(b - A @ x0))
        iterations = 0

        if method == "direct":
            solution = np.asarray(sparse_linalg.spsolve(A.tocsc(), b), dtype=float)
            iterations = 1
            info = 0
        else:
            counter = {"n": 0}

            def _count(_xk):
                counter["n"] += 1

            if method == "amg":
                M = pyamg.ruge_stuben_solver(A).aspreconditioner()
                krylov = sparse_linalg.bicgstab
            else:
                diag = A.diagonal()
                inv_diag = np.where(diag != 0.0, 1.0 / np.where(diag != 0.0, diag, 1.0), 0.0)
                M = sparse.diags(inv_diag)
                krylov = {
                    "bicgstab": sparse_linalg.bicgstab,
                    "cg": sparse_linalg.cg,
                    "gmres": sparse_linalg.gmres,
                }[method]
            extra = {"callback_type": "pr_norm"} if method == "gmres" else {}
            solution, info = krylov(
                A, b, x0=x0, rtol=tol, atol=tol * 1e-3, maxiter=maxiter, M=M, callback=_count, **extra
            )
            solution = np.asarray(solution, dtype=float)
            iterations = counter["n"]

        if not return_stats:
            return solution

        final_res = float(np.linalg.norm(b - A @ solution))
        denom = initial_res if initial_res > 0.0 else float(np.linalg.norm(b)) or 1.0
        stats = {
            "initial": initial_res,
            "final": final_res,
            "relative": final_res / denom,
            "iterations": float(iterations),
            "converged": float(info == 0),
        }
        return solution, stats
