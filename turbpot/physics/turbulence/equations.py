"""Source terms of the k, epsilon, phi and psi transport equations.

Every builder returns an :class:`EquationTerms` triple for
:class:`~turbpot.solvers.transport.TransportAssembler`: explicit source
``su``, implicit sink coefficient ``sp`` (non-negative) and cell diffusivity.
Production that turns negative is moved into ``sp`` so the matrix stays
diagonally dominant. All inputs are expected to be floored already.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .coefficients import CoefficientSet


@dataclass
class EquationTerms:
    su: np.ndarray
    sp: np.ndarray
    diffusivity: np.ndarray


def _split(values):
    values = np.asarray(values, dtype=float)
    return np.maximum(values, 0.0), np.maximum(-values, 0.0)


def k_terms(production, k, epsilon, dk_eff) -> EquationTerms:
    g_pos, g_neg = _split(production)
    return EquationTerms(
        su=g_pos,
        sp=(epsilon + g_neg) / k,
        diffusivity=np.asarray(dk_eff, dtype=float),
    )


def epsilon_terms(production, epsilon, t_eps, c_ep2, depsilon_eff, coeffs: CoefficientSet) -> EquationTerms:
    g_pos, g_neg = _split(production)
    return EquationTerms(
        su=coeffs.cEp1 * g_pos / t_eps,
        sp=np.asarray(c_ep2) / t_eps + coeffs.cEp1 * g_neg / (t_eps * epsilon),
        diffusivity=np.asarray(depsilon_eff, dtype=float),
    )


def phi_production_weight(alpha, coeffs: CoefficientSet) -> np.ndarray:
    alpha = np.asarray(alpha, dtype=float)
    return coeffs.cPphi * alpha + coeffs.cPw * (1.0 - alpha)


def wall_damping(nut_frac, epsilon, nu, coefficient: float) -> np.ndarray:
    """Viscous sink ``c (1 - nutFrac) sqrt(eps / nu)``; zero when ``c`` is zero."""
    return coefficient * (1.0 - np.asarray(nut_frac)) * np.sqrt(np.asarray(epsilon) / nu)


def phi_terms(production, phi, k, epsilon, alpha, nut_frac, nu, dphi_eff, coeffs: CoefficientSet) -> EquationTerms:
    weight = phi_production_weight(alpha, coeffs)
    g_pos, g_neg = _split(weight * np.asarray(production, dtype=float))
    return EquationTerms(
        su=g_pos + (2.0 / 3.0) * coeffs.cP1 * epsilon,
        sp=(1.0 + coeffs.cP1) * epsilon / k + wall_damping(nut_frac, epsilon, nu, coeffs.cTv1) + g_neg / phi,
        diffusivity=np.asarray(dphi_eff, dtype=float),
    )


def psi_production_factor(alpha, coeffs: CoefficientSet) -> np.ndarray:
    alpha = np.asarray(alpha, dtype=float)
    if coeffs.switch("psiProd") == "alpha":
        return 1.0 - coeffs.cP4 + coeffs.cP4 * alpha
    return np.ones_like(alpha)


def psi_terms(phi, vorticity, alpha, nut_frac, epsilon, nu, ts, dpsi_eff, coeffs: CoefficientSet) -> EquationTerms:
    factor = coeffs.cP2 * psi_production_factor(alpha, coeffs) * np.asarray(phi, dtype=float)
    return EquationTerms(
        su=factor[:, None] * np.asarray(vorticity, dtype=float),
        sp=coeffs.cP3 / ts + wall_damping(nut_frac, epsilon, nu, coeffs.cVv1),
        diffusivity=np.asarray(dpsi_eff, dtype=float),
    )


def eddy_viscosity(phi, ts, coeffs: CoefficientSet) -> np.ndarray:
    """``nut = cMu phi T`` limited to ``[0, nutMax]``."""
    nut = coeffs.cMu * np.asarray(phi, dtype=float) * np.asarray(ts, dtype=float)
    return np.clip(nut, 0.0, coeffs.nutMax)


def phi_budget(production, phi, k, epsilon, alpha, coeffs: CoefficientSet):
    """Local terms of the phi balance, written out when debug output is on."""

    weight = phi_production_weight(alpha, coeffs)
    ratio = np.asarray(epsilon) / np.asarray(k)
    return {
        "phiProduction": weight * np.asarray(production, dtype=float),
        "phiPressureStrain": coeffs.cP1 * ((2.0 / 3.0) * np.asarray(epsilon) - ratio * phi),
        "phiDiss": -ratio * np.asarray(phi, dtype=float),
    }
