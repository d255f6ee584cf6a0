"""Turbulent potential (k, epsilon, phi, psi) eddy-viscosity model."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

import numpy as np
import yaml

from ...core import fv_ops, tensor
from ...core.field import ScalarField, TensorField, VectorField
from ...solvers.transport import TransportAssembler, solve_system
from ...utils.errors import ConfigurationError, NumericalDivergence
from . import derived, equations
from .base import TurbulenceModel, register_turbulence
from .coefficients import load_coefficients, load_controls
from .fields import FieldStore
from .stress import MomentumSource, ReynoldsStressModel


class CorrectorState(Enum):
    IDLE = "Idle"
    DERIVING_QUANTITIES = "DerivingQuantities"
    SOLVING_K = "SolvingK"
    SOLVING_DISSIPATION = "SolvingDissipation"
    SOLVING_PHI = "SolvingPhi"
    SOLVING_PSI = "SolvingPsi"
    UPDATING_VISCOSITY = "UpdatingViscosity"
    DONE = "Done"


# transported field -> (boundary key, relaxation key, floor)
TRANSPORTED = {
    "k": ("k", "k", "kMin"),
    "epsilon": ("epsilon", "epsilon", "epsilonMin"),
    "tpphi": ("tpphi", "phi", "phiMin"),
    "tppsi": ("tppsi", "psi", None),
}


@register_turbulence("turbulentPotential")
class TurbulentPotentialModel(TurbulenceModel):
    """Four-equation turbulent potential closure.

    Each call to :meth:`correct` solves k, epsilon, phi and psi in that
    order, every equation reading the values the previous ones just
    produced, and then updates ``nut = cMu phi T``. Queries read the
    persistent fields and are only meaningful once a step has reached
    :attr:`CorrectorState.DONE`.
    """

    type_name = "turbulentPotential"

    def __init__(self, mesh, velocity, flux, transport, config=None, **kwargs) -> None:
        super().__init__(mesh, velocity, flux, transport, config, **kwargs)
        data = self.model_dict()
        self.coeffs = load_coefficients(data)
        self.controls = load_controls(data)

        self.store = FieldStore.allocate(
            mesh,
            self.supplied_fields,
            k0=self.controls.k0,
            epsilon0=self.controls.epsilon0,
            phi0=self.controls.phi0,
        )
        self.assemblers = {
            name: TransportAssembler(mesh, self.bcs.get(bc_key))
            for name, (bc_key, _relax, _floor) in TRANSPORTED.items()
        }
        self.stress_model = ReynoldsStressModel(mesh)
        self.residuals: Dict[str, Dict[str, float]] = {}
        self.state = CorrectorState.IDLE
        self.iteration = 0

        grad_u = self.velocity_gradient()
        self.store.uGrad.assign(grad_u)
        self.store.vorticity.assign(tensor.curl_from_grad(grad_u))
        if "nut" not in self.supplied_fields:
            self.store.nut.assign(equations.eddy_viscosity(self._phi_safe(), self._limited_ts(), self.coeffs))

    # configuration

    def read(self) -> bool:
        try:
            data = self.model_dict()
            coeffs = load_coefficients(data)
            controls = load_controls(data)
        except (ConfigurationError, OSError, yaml.YAMLError) as exc:
            self.logger.warn(f"{self.type_name}: keeping previous coefficients ({exc})")
            return False
        self.coeffs = coeffs
        self.controls = controls
        return True

    # correction step

    def correct(self) -> None:
        coeffs = self.coeffs
        store = self.store
        self.residuals = {}

        self.state = CorrectorState.DERIVING_QUANTITIES
        self._derive()
        nu = self.nu()
        nut_frac = derived.nut_fraction(store.scratch["nutSafe"].values, nu, coeffs.cNF)
        production = store.scratch["tpProd"].values

        if coeffs.enabled("solveK"):
            self.state = CorrectorState.SOLVING_K
            terms = equations.k_terms(
                production,
                store.scratch["kSafe"].values,
                store.scratch["epsilonSafe"].values,
                self._diffusivity("sigmaK"),
            )
            self._solve("k", store.k, terms)
            self._refresh_safe()

        if coeffs.enabled("solveEps"):
            self.state = CorrectorState.SOLVING_DISSIPATION
            terms = equations.epsilon_terms(
                production,
                store.scratch["epsilonSafe"].values,
                self._epsilon_time_scale(),
                store.scratch["cEp2"].values,
                self._diffusivity("sigmaEps", coeffs.sigmaEpsVisc),
                coeffs,
            )
            self._solve("epsilon", store.epsilon, terms)
            self._refresh_safe()
            store.epsHat.assign(self._epsilon_hat())

        if coeffs.enabled("solvePhi"):
            self.state = CorrectorState.SOLVING_PHI
            phi_old = store.tpphi.values.copy()
            alpha = derived.alpha(self._phi_safe(), store.scratch["kSafe"].values)
            terms = equations.phi_terms(
                production,
                self._phi_safe(),
                store.scratch["kSafe"].values,
                store.scratch["epsilonSafe"].values,
                alpha,
                nut_frac,
                nu,
                self._diffusivity("sigmaPhi"),
                coeffs,
            )
            self._solve("tpphi", store.tpphi, terms)
            if coeffs.enabled("debugWrite"):
                self._phi_diagnostics(production, phi_old, alpha)

        if coeffs.enabled("solvePsi"):
            self.state = CorrectorState.SOLVING_PSI
            alpha = derived.alpha(self._phi_safe(), store.scratch["kSafe"].values)
            terms = equations.psi_terms(
                self._phi_safe(),
                store.vorticity.values,
                alpha,
                nut_frac,
                store.scratch["epsilonSafe"].values,
                nu,
                self._limited_ts(),
                self._diffusivity("sigmaPsi", coeffs.psiNuFrac),
                coeffs,
            )
            self._solve("tppsi", store.tppsi, terms)

        if coeffs.enabled("solveNut"):
            self.state = CorrectorState.UPDATING_VISCOSITY
            store.nut.assign(equations.eddy_viscosity(self._phi_safe(), self._limited_ts(), coeffs))
            self._check("nut", store.nut.values, allow_zero=True)

        self.iteration += 1
        self.logger.log(self.iteration, {name: stats["final"] for name, stats in self.residuals.items()})
        if coeffs.enabled("debugWrite"):
            for name in ("k", "epsilon", "tpphi", "nut"):
                self.logger.summary(name, store[name].values)
        self.state = CorrectorState.DONE

    def _derive(self) -> None:
        coeffs = self.coeffs
        store = self.store
        grad_u = self.velocity_gradient()
        store.uGrad.assign(grad_u)
        store.vorticity.assign(tensor.curl_from_grad(grad_u))
        self._refresh_safe()
        store.epsHat.assign(self._epsilon_hat())

        nu = self.nu()
        nut_frac = derived.nut_fraction(store.scratch["nutSafe"].values, nu, coeffs.cNF)
        for name in ("K", "Eps", "Phi", "Psi"):
            store.set_scratch(f"sigma{name}", derived.sigma(name, nut_frac, coeffs))

        k_safe = store.scratch["kSafe"].values
        eps_safe = store.scratch["epsilonSafe"].values
        phi_safe = self._phi_safe()
        reynolds = derived.reynolds_number(k_safe, eps_safe, phi_safe, nu, coeffs)
        store.set_scratch("cEp2", derived.c_ep2(derived.alpha(phi_safe, k_safe), reynolds, coeffs))
        store.set_scratch(
            "tpProd",
            derived.production(store.tppsi.values, store.vorticity.values, store.scratch["nutSafe"].values, grad_u, coeffs),
        )

    def _refresh_safe(self) -> None:
        coeffs = self.coeffs
        store = self.store
        store.set_scratch("kSafe", derived.floored(store.k.values, coeffs.kMin))
        store.set_scratch("epsilonSafe", derived.floored(store.epsilon.values, coeffs.epsilonMin))
        store.set_scratch("nutSafe", derived.floored(store.nut.values, coeffs.nutMin))

    def _solve(self, name: str, field, terms: equations.EquationTerms) -> None:
        _bc_key, relax_key, floor_name = TRANSPORTED[name]
        controls = self.controls
        system = self.assemblers[name].build(
            field.values,
            self.flux,
            terms.diffusivity,
            terms.su,
            terms.sp,
            delta_t=self.delta_t,
            alpha=controls.alpha(relax_key),
        )
        solution, stats = solve_system(
            system, field.values, controls.solver, controls.tolerance, controls.max_iter
        )
        scale = float(np.linalg.norm(system.rhs))
        stats["scaled"] = stats["final"] / scale if scale > 0.0 else stats["final"]
        self.residuals[name] = stats

        if not np.all(np.isfinite(solution)):
            raise NumericalDivergence(name, "linear solve returned non-finite values", stats)
        if not stats["scaled"] <= controls.max_residual:
            raise NumericalDivergence(
                name, f"residual {stats['scaled']:.3e} exceeds maxResidual {controls.max_residual:.3e}", stats
            )
        if not stats["converged"]:
            self.logger.warn(f"{name}: solver stopped after {int(stats['iterations'])} iterations")

        if floor_name is not None:
            floor = self.coeffs[floor_name]
            if floor <= 0.0:
                raise NumericalDivergence(name, f"clipping floor {floor_name} = {floor} is not positive", stats)
            solution = np.maximum(solution, floor)
            self._check(name, solution)
        field.assign(solution)

    def _check(self, name: str, values, allow_zero: bool = False) -> None:
        if not np.all(np.isfinite(values)):
            raise NumericalDivergence(name, "field holds non-finite values")
        bad = values < 0.0 if allow_zero else values <= 0.0
        if np.any(bad):
            raise NumericalDivergence(name, f"{int(np.count_nonzero(bad))} cells remain non-positive after clipping")

    def _phi_diagnostics(self, production, phi_old, alpha) -> None:
        store = self.store
        coeffs = self.coeffs
        phi_safe = derived.floored(phi_old, coeffs.phiMin)
        budget = equations.phi_budget(
            production, phi_safe, store.scratch["kSafe"].values, store.scratch["epsilonSafe"].values, alpha, coeffs
        )
        for name, values in budget.items():
            store.set_diagnostic(name, values)
        phi_bcs = self.bcs.get("tpphi")
        nu = self.nu()
        store.set_diagnostic("phiViscDiff", fv_ops.laplacian(self.mesh, nu, store.tpphi, phi_bcs))
        turb = store.scratch["nutSafe"].values * store.scratch["sigmaPhi"].values
        store.set_diagnostic("phiTurbDiff", fv_ops.laplacian(self.mesh, turb, store.tpphi, phi_bcs))

    # helpers shared by the step and the queries

    def _k_safe(self) -> np.ndarray:
        return derived.floored(self.store.k.values, self.coeffs.kMin)

    def _epsilon_safe(self) -> np.ndarray:
        return derived.floored(self.store.epsilon.values, self.coeffs.epsilonMin)

    def _phi_safe(self) -> np.ndarray:
        return derived.floored(self.store.tpphi.values, self.coeffs.phiMin)

    def _nut_safe(self) -> np.ndarray:
        return derived.floored(self.store.nut.values, self.coeffs.nutMin)

    def _epsilon_hat(self) -> np.ndarray:
        nu = self.nu()
        k_safe = self._k_safe()
        eps_safe = self._epsilon_safe()
        reynolds = derived.reynolds_number(k_safe, eps_safe, self._phi_safe(), nu, self.coeffs)
        gsk = derived.grad_sqrt_k_magnitude(self.mesh, self.store.k.values, self.bcs.get("k"))
        return derived.epsilon_hat(eps_safe, gsk, reynolds, nu, self.coeffs)

    def _limited_ts(self, epsilon: Optional[np.ndarray] = None) -> np.ndarray:
        k_safe = self._k_safe()
        eps = self._epsilon_safe() if epsilon is None else epsilon
        return derived.limit_time_scale(
            derived.time_scale(k_safe, eps),
            k_safe,
            eps,
            self._phi_safe(),
            self.store.uGrad.values,
            self.nu(),
            self.coeffs,
        )

    def _epsilon_time_scale(self) -> np.ndarray:
        if self.coeffs.switch("timeScaleEps") == "epshat":
            return self._limited_ts(derived.floored(self.store.epsHat.values, self.coeffs.epsilonMin))
        return self._limited_ts()

    def _diffusivity(self, sigma_name: str, nu_factor: float = 1.0) -> np.ndarray:
        return derived.effective_diffusivity(
            self.store.scratch["nutSafe"].values, self.store.scratch[sigma_name].values, self.nu(), nu_factor
        )

    def _nut_frac(self) -> np.ndarray:
        return derived.nut_fraction(self._nut_safe(), self.nu(), self.coeffs.cNF)

    def _scalar(self, name: str, values) -> ScalarField:
        return ScalarField(name, self.mesh, values)

    def _vector(self, name: str, values) -> VectorField:
        return VectorField(name, self.mesh, values)

    # state queries

    def nut(self) -> ScalarField:
        return self.store.nut

    def k(self) -> ScalarField:
        return self.store.k

    def epsilon(self) -> ScalarField:
        return self.store.epsilon

    def epsilon_hat(self) -> ScalarField:
        return self.store.epsHat

    def vorticity(self) -> VectorField:
        return self.store.vorticity

    def tp_phi(self) -> ScalarField:
        return self.store.tpphi

    def tp_psi(self) -> VectorField:
        return self.store.tppsi

    # stress

    def reynolds_stress(self) -> TensorField:
        values = self.stress_model.stress(
            self.store.k.values, self._phi_safe(), self._limited_ts(), self.store.uGrad.values, self.coeffs.cMu
        )
        return TensorField("R", self.mesh, values)

    def effective_stress(self) -> TensorField:
        values = self.stress_model.effective_stress(
            self.store.k.values,
            self._phi_safe(),
            self._limited_ts(),
            self.store.uGrad.values,
            self.nu(),
            self.coeffs.cMu,
        )
        return TensorField("devReff", self.mesh, values)

    def momentum_source(self, velocity=None) -> MomentumSource:
        if velocity is None:
            velocity, grad_u = self.velocity, self.store.uGrad.values
        else:
            grad_u = fv_ops.grad(self.mesh, velocity, self.bcs.get("U"))
        return self.stress_model.momentum_source(
            velocity,
            self.store.k.values,
            self._phi_safe(),
            self._limited_ts(),
            grad_u,
            self.nu(),
            self.store.nut.values,
            self.coeffs.cMu,
            bcs=self.bcs.get("U"),
        )

    # derived quantities

    def ts(self) -> ScalarField:
        return self._scalar("Ts", derived.time_scale(self._k_safe(), self._epsilon_safe()))

    def ts_eps_hat(self) -> ScalarField:
        eps_hat = derived.floored(self.store.epsHat.values, self.coeffs.epsilonMin)
        return self._scalar("TsEh", derived.time_scale(self._k_safe(), eps_hat))

    def min_ts(self) -> ScalarField:
        return self._scalar("minTS", derived.kolmogorov_time_scale(self.nu(), self._epsilon_safe()))

    def phi_s(self) -> TensorField:
        return TensorField("phiS", self.mesh, derived.phi_s(self.store.tpphi.values, self.store.uGrad.values))

    def div_phi_s(self) -> VectorField:
        return self._vector("divPhiS", derived.div_phi_s(self.mesh, self.store.tpphi.values, self.store.uGrad.values))

    def s_real(self) -> VectorField:
        return self._vector("sreal", derived.s_real(self.store.tppsi.values, self._phi_safe()))

    def phi_over_k(self) -> ScalarField:
        return self._scalar("phiOverK", derived.phi_over_k(self.store.tpphi.values, self._k_safe()))

    def psi_over_k(self) -> VectorField:
        return self._vector("psiOverK", derived.psi_over_k(self.store.tppsi.values, self._k_safe()))

    def grad_sqrt_k(self) -> VectorField:
        return self._vector("gradkSqrt", derived.grad_sqrt(self.mesh, self.store.k.values, self.bcs.get("k")))

    def grad_phi(self) -> VectorField:
        return self._vector("gradPhi", fv_ops.grad(self.mesh, self.store.tpphi, self.bcs.get("tpphi")))

    def grad_sqrt_phi(self) -> VectorField:
        return self._vector(
            "gradPhiSqrt", derived.grad_sqrt(self.mesh, self.store.tpphi.values, self.bcs.get("tpphi"))
        )

    def re_tau(self) -> ScalarField:
        return self._scalar("reTau", derived.turbulent_reynolds(self._k_safe(), self._epsilon_safe(), self.nu()))

    def tp_reynolds(self) -> ScalarField:
        values = derived.reynolds_number(
            self._k_safe(), self._epsilon_safe(), self._phi_safe(), self.nu(), self.coeffs
        )
        return self._scalar("tpReynolds", values)

    def nut_frac(self) -> ScalarField:
        return self._scalar("nutFrac", self._nut_frac())

    def alpha(self) -> ScalarField:
        return self._scalar("Alpha", derived.alpha(self._phi_safe(), self._k_safe()))

    def c_ep2(self) -> ScalarField:
        return self.store.scratch["cEp2"].copy("cEp2")

    def _sigma(self, name: str) -> np.ndarray:
        return derived.sigma(name, self._nut_frac(), self.coeffs)

    def dk_eff(self) -> ScalarField:
        return self._scalar("DkEff", derived.effective_diffusivity(self._nut_safe(), self._sigma("K"), self.nu()))

    def depsilon_eff(self) -> ScalarField:
        values = derived.effective_diffusivity(
            self._nut_safe(), self._sigma("Eps"), self.nu(), self.coeffs.sigmaEpsVisc
        )
        return self._scalar("DepsilonEff", values)

    def dphi_eff(self) -> ScalarField:
        return self._scalar("DphiEff", derived.effective_diffusivity(self._nut_safe(), self._sigma("Phi"), self.nu()))

    def dpsi_eff(self) -> ScalarField:
        values = derived.effective_diffusivity(self._nut_safe(), self._sigma("Psi"), self.nu(), self.coeffs.psiNuFrac)
        return self._scalar("DpsiEff", values)

    def d_eff(self) -> ScalarField:
        return self._scalar("DEff", derived.effective_diffusivity(self._nut_safe(), 1.0, self.nu()))

    def psi_production(self) -> VectorField:
        """Source of the psi equation, ``cP2 f phi omega``."""
        alpha = derived.alpha(self._phi_safe(), self._k_safe())
        factor = self.coeffs.cP2 * equations.psi_production_factor(alpha, self.coeffs) * self._phi_safe()
        return self._vector("psiProduction", factor[:, None] * self.store.vorticity.values)

    def diagnostics(self) -> Dict[str, ScalarField]:
        return dict(self.store.diagnostics)

    def fields(self) -> Dict[str, object]:
        """Fields written at each output time, diagnostics included in debug mode."""
        out = dict(self.store.persistent())
        if self.coeffs.enabled("debugWrite"):
            out.update(self.store.diagnostics)
        return out
