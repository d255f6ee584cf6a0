"""Derived quantities of the turbulent potential closure.

Pure functions of the current field values and the coefficient set. None
of them mutate their inputs or keep state between calls; the model calls
them afresh on every correction step. Scalars are ``(n,)`` arrays, vectors
``(n, 3)`` and tensors ``(n, 3, 3)``.
"""

from __future__ import annotations

import numpy as np

from ...core import fv_ops, tensor
from ...core.mesh import Mesh
from .coefficients import CoefficientSet

KOLMOGOROV_FACTOR = 6.0


def floored(values, floor: float) -> np.ndarray:
    return np.maximum(np.asarray(values, dtype=float), floor)


def time_scale(k, epsilon) -> np.ndarray:
    """Eddy turnover time ``k / epsilon``; pass floored fields to guard the division."""
    return np.asarray(k, dtype=float) / np.asarray(epsilon, dtype=float)


def kolmogorov_time_scale(nu, epsilon) -> np.ndarray:
    return KOLMOGOROV_FACTOR * np.sqrt(nu / np.asarray(epsilon, dtype=float))


def strain_rate_magnitude(grad_u) -> np.ndarray:
    """``sqrt(2 S:S)``."""
    s = tensor.symm(np.asarray(grad_u, dtype=float))
    return np.sqrt(2.0 * tensor.double_dot(s, s))


def limit_time_scale(ts, k, epsilon, phi, grad_u, nu, coeffs: CoefficientSet) -> np.ndarray:
    """Apply the ``tslimiter`` variant to a time scale (all inputs floored)."""

    mode = coeffs.switch("tslimiter")
    ts = np.asarray(ts, dtype=float)
    if mode == "none":
        return ts.copy()
    if mode == "kolmogorov":
        return np.maximum(ts, coeffs.cT * np.sqrt(nu / epsilon))
    if mode == "smooth":
        p = coeffs.gT2
        lower = coeffs.gT3 * kolmogorov_time_scale(nu, epsilon)
        return (ts**p + lower**p) ** (1.0 / p)
    if mode == "durbin":
        lower = np.maximum(ts, coeffs.cT * np.sqrt(nu / epsilon))
        mag_s = strain_rate_magnitude(grad_u)
        with np.errstate(divide="ignore"):
            upper = coeffs.gT1 * np.asarray(k) / (np.sqrt(6.0) * coeffs.cMu * np.asarray(phi) * mag_s)
        return np.minimum(lower, upper)
    raise ValueError(f"unhandled tslimiter '{mode}'")


def phi_s(phi, grad_u) -> np.ndarray:
    return tensor.scale(phi, tensor.symm(np.asarray(grad_u, dtype=float)))


def div_phi_s(mesh: Mesh, phi, grad_u) -> np.ndarray:
    return fv_ops.div_tensor(mesh, phi_s(phi, grad_u))


def s_real(psi, phi) -> np.ndarray:
    return np.asarray(psi, dtype=float) / np.asarray(phi, dtype=float)[:, None]


def phi_over_k(phi, k) -> np.ndarray:
    return np.asarray(phi, dtype=float) / np.asarray(k, dtype=float)


def psi_over_k(psi, k) -> np.ndarray:
    return np.asarray(psi, dtype=float) / np.asarray(k, dtype=float)[:, None]


def grad_sqrt(mesh: Mesh, values, bcs=None) -> np.ndarray:
    """Gradient of ``sqrt(max(values, 0))``; boundary values follow ``bcs``."""
    root = np.sqrt(np.maximum(np.asarray(values, dtype=float), 0.0))
    if bcs:
        # fixed values are given for the field itself, not its root
        bcs = [_SqrtBoundary(bc) for bc in bcs]
    return fv_ops.grad(mesh, root, bcs)


class _SqrtBoundary:
    def __init__(self, bc) -> None:
        self.bc = bc

    def update_face_values(self, face_values, field) -> None:
        if not self.bc.is_dirichlet():
            self.bc.update_face_values(face_values, field)
            return
        raw = np.zeros_like(face_values)
        self.bc.update_face_values(raw, field)
        face_values[self.bc.faces] = np.sqrt(np.maximum(raw[self.bc.faces], 0.0))


def grad_sqrt_k_magnitude(mesh: Mesh, k, bcs=None) -> np.ndarray:
    return np.linalg.norm(grad_sqrt(mesh, k, bcs), axis=1)


def turbulent_reynolds(k, epsilon, nu) -> np.ndarray:
    k = np.asarray(k, dtype=float)
    return k * k / (nu * np.asarray(epsilon, dtype=float))


def potential_reynolds(phi, k, epsilon, nu) -> np.ndarray:
    """Reynolds number built on the wall-normal fluctuation proxy ``phi``."""
    return np.asarray(phi, dtype=float) * np.asarray(k, dtype=float) / (nu * np.asarray(epsilon, dtype=float))


def reynolds_number(k, epsilon, phi, nu, coeffs: CoefficientSet) -> np.ndarray:
    if coeffs.switch("reynoldsType") == "phi":
        return potential_reynolds(phi, k, epsilon, nu)
    return turbulent_reynolds(k, epsilon, nu)


def nut_fraction(nut, nu, c_nf: float) -> np.ndarray:
    nut = np.asarray(nut, dtype=float)
    return nut / (nut + c_nf * nu)


def alpha(phi, k) -> np.ndarray:
    return 1.0 / (1.0 + 1.5 * phi_over_k(phi, k))


def epsilon_hat(epsilon, grad_sqrt_k_mag, reynolds, nu, coeffs: CoefficientSet) -> np.ndarray:
    mode = coeffs.switch("eqnEpsHat")
    eps = np.asarray(epsilon, dtype=float)
    if mode == "none":
        value = eps.copy()
    elif mode == "mod":
        value = eps - coeffs.cEhm * 2.0 * nu * np.asarray(grad_sqrt_k_mag) ** 2
    elif mode == "reynolds":
        value = eps * (1.0 - np.exp(-np.asarray(reynolds) / coeffs.cEhR))
    else:
        raise ValueError(f"unhandled eqnEpsHat '{mode}'")
    return floored(value, coeffs.epsilonMin)


def c_ep2(alpha_values, reynolds, coeffs: CoefficientSet) -> np.ndarray:
    """Field-valued destruction coefficient of the dissipation equation."""

    mode = coeffs.switch("eqncEp2")
    base = np.full(np.shape(alpha_values), coeffs.cEp2con)
    if mode == "constant":
        return base
    if mode == "alpha":
        return base - coeffs.cEp3 * (1.0 - np.asarray(alpha_values))
    if mode == "reynolds":
        return base * (1.0 - coeffs.cD1 * np.exp(-((np.asarray(reynolds) / coeffs.cD2) ** 2)))
    raise ValueError(f"unhandled eqncEp2 '{mode}'")


def sigma(name: str, nut_frac, coeffs: CoefficientSet) -> np.ndarray:
    """Diffusivity multiplier for ``name`` in ``K``, ``Eps``, ``Phi``, ``Psi``."""

    init = coeffs[f"sigma{name}Init"]
    mode = coeffs.switch(f"eqnSigma{name}")
    frac = np.asarray(nut_frac, dtype=float)
    if mode == "constant":
        return np.full(frac.shape, init)
    if mode == "blended":
        return init * (frac + (1.0 - frac) * coeffs.cPr)
    raise ValueError(f"unhandled eqnSigma{name} '{mode}'")


def effective_diffusivity(nut, sigma_values, nu, nu_factor: float = 1.0) -> np.ndarray:
    return np.asarray(nut, dtype=float) * np.asarray(sigma_values, dtype=float) + nu * nu_factor


def production(psi, vorticity, nut, grad_u, coeffs: CoefficientSet) -> np.ndarray:
    """Turbulence production ``G`` selected by ``prodType``."""

    mode = coeffs.switch("prodType")
    if mode == "psi":
        return np.einsum("ci,ci->c", np.asarray(psi, dtype=float), np.asarray(vorticity, dtype=float))
    if mode == "strain":
        s = tensor.symm(np.asarray(grad_u, dtype=float))
        return np.asarray(nut, dtype=float) * 2.0 * tensor.double_dot(s, s)
    if mode == "magnitude":
        return np.linalg.norm(psi, axis=1) * np.linalg.norm(vorticity, axis=1)
    raise ValueError(f"unhandled prodType '{mode}'")
