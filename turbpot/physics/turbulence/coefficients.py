"""Model coefficients, mode switches and solver controls.

A :class:`CoefficientSet` is built in one go from a model dictionary by
:func:`load_coefficients`; every entry is validated before the set exists,
so a failed reload never leaves a half-updated set behind.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ...core.linalg import SOLVER_METHODS
from ...utils.errors import ConfigurationError

Dimensions = Tuple[float, ...]

DIMENSIONLESS: Dimensions = (0, 0, 0, 0, 0, 0, 0)
VELOCITY_SQUARED: Dimensions = (0, 2, -2, 0, 0, 0, 0)
DISSIPATION: Dimensions = (0, 2, -3, 0, 0, 0, 0)
KINEMATIC_VISCOSITY: Dimensions = (0, 2, -1, 0, 0, 0, 0)


# name -> (default, dimensions)
MODEL_COEFFICIENTS: Dict[str, Tuple[float, Dimensions]] = {
    "cEp1": (1.45, DIMENSIONLESS),
    "cEp2con": (1.83, DIMENSIONLESS),
    "cEp3": (0.15, DIMENSIONLESS),
    "cD1": (0.3, DIMENSIONLESS),
    "cD2": (1.0, DIMENSIONLESS),
    "cVv1": (0.0, DIMENSIONLESS),
    "cTv1": (0.0, DIMENSIONLESS),
    "cP1": (2.0, DIMENSIONLESS),
    "cP2": (0.42, DIMENSIONLESS),
    "cP3": (2.0, DIMENSIONLESS),
    "cP4": (0.5, DIMENSIONLESS),
    "cPphi": (2.0, DIMENSIONLESS),
    "cMu": (0.21, DIMENSIONLESS),
    "cT": (6.0, DIMENSIONLESS),
    "cPr": (1.0, DIMENSIONLESS),
    "cEhm": (1.0, DIMENSIONLESS),
    "cEhR": (1.0, DIMENSIONLESS),
    "gT1": (0.6, DIMENSIONLESS),
    "gT2": (2.0, DIMENSIONLESS),
    "gT3": (1.0, DIMENSIONLESS),
    "cNF": (1.0, DIMENSIONLESS),
    "cPw": (0.0, DIMENSIONLESS),
    "sigmaKInit": (1.0, DIMENSIONLESS),
    "sigmaEpsInit": (0.833, DIMENSIONLESS),
    "sigmaEpsVisc": (1.0, DIMENSIONLESS),
    "sigmaPhiInit": (1.0, DIMENSIONLESS),
    "sigmaPsiInit": (1.0, DIMENSIONLESS),
    "psiNuFrac": (1.0, DIMENSIONLESS),
    "kMin": (1.0e-10, VELOCITY_SQUARED),
    "epsilonMin": (1.0e-10, DISSIPATION),
    "phiMin": (1.0e-10, VELOCITY_SQUARED),
    "nutMin": (1.0e-12, KINEMATIC_VISCOSITY),
    "nutMax": (10.0, KINEMATIC_VISCOSITY),
}

SAFETY_FLOORS = ("kMin", "epsilonMin", "phiMin", "nutMin")

# switch -> (allowed values, default); values are compared lower-case
MODE_SWITCHES: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "solveK": (("on", "off"), "on"),
    "solveEps": (("on", "off"), "on"),
    "solvePhi": (("on", "off"), "on"),
    "solvePsi": (("on", "off"), "on"),
    "solveNut": (("on", "off"), "on"),
    "eqnSigmaK": (("constant", "blended"), "constant"),
    "eqnSigmaEps": (("constant", "blended"), "constant"),
    "eqnSigmaPhi": (("constant", "blended"), "constant"),
    "eqnSigmaPsi": (("constant", "blended"), "constant"),
    "eqncEp2": (("constant", "alpha", "reynolds"), "alpha"),
    "eqnEpsHat": (("none", "mod", "reynolds"), "mod"),
    "timeScaleEps": (("epsilon", "epshat"), "epsilon"),
    "prodType": (("psi", "strain", "magnitude"), "psi"),
    "psiProd": (("phi", "alpha"), "phi"),
    "debugWrite": (("on", "off"), "off"),
    "tslimiter": (("none", "kolmogorov", "smooth", "durbin"), "kolmogorov"),
    "reynoldsType": (("standard", "phi"), "standard"),
}

_BOOLEAN_WORDS = {"true": "on", "yes": "on", "false": "off", "no": "off"}
_DIMENSIONED = re.compile(r"^\s*(?:[A-Za-z_]\w*\s+)?\[([^\]]*)\]\s+(\S+)\s*$")


@dataclass(frozen=True)
class DimensionedScalar:
    name: str
    dimensions: Dimensions
    value: float

    def __float__(self) -> float:
        return self.value


@dataclass(frozen=True)
class CoefficientSet:
    """Read-only model constants and mode switches."""

    coefficients: Mapping[str, DimensionedScalar]
    switches: Mapping[str, str]

    def __getitem__(self, name: str) -> float:
        return self.coefficients[name].value

    def __getattr__(self, name: str) -> float:
        coefficients = self.__dict__.get("coefficients", {})
        if name in coefficients:
            return coefficients[name].value
        raise AttributeError(name)

    def switch(self, name: str) -> str:
        return self.switches[name]

    def enabled(self, name: str) -> bool:
        return self.switches[name] == "on"

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {name: c.value for name, c in self.coefficients.items()}
        data.update(self.switches)
        return data


@dataclass(frozen=True)
class SolverControls:
    solver: str = "bicgstab"
    tolerance: float = 1e-10
    max_iter: int = 500
    max_residual: float = 1e-3
    relaxation: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType({"k": 1.0, "epsilon": 1.0, "phi": 1.0, "psi": 1.0})
    )
    k0: float = 1.0e-3
    epsilon0: float = 1.0e-3
    phi0: Optional[float] = None

    def alpha(self, name: str) -> float:
        return float(self.relaxation.get(name, 1.0))


def _parse_dimensions(entry: str, raw) -> Dimensions:
    try:
        dims = tuple(float(tok) for tok in str(raw).replace(",", " ").split())
    except ValueError as exc:
        raise ConfigurationError(entry, f"cannot parse dimensions '{raw}'") from exc
    if len(dims) != 7:
        raise ConfigurationError(entry, f"dimensions need 7 exponents, got {len(dims)}")
    return dims


def parse_dimensioned(name: str, entry, expected: Dimensions) -> DimensionedScalar:
    """Parse a bare number, ``"[0 2 -2 0 0 0 0] 1e-10"`` or ``{value, dimensions}``."""

    dims = expected
    if isinstance(entry, Mapping):
        if "value" not in entry:
            raise ConfigurationError(name, "dimensioned entry needs a 'value'")
        if "dimensions" in entry:
            raw = entry["dimensions"]
            dims = _parse_dimensions(name, " ".join(map(str, raw)) if isinstance(raw, (list, tuple)) else raw)
        value = entry["value"]
    elif isinstance(entry, str):
        match = _DIMENSIONED.match(entry)
        if match:
            dims = _parse_dimensions(name, match.group(1))
            value = match.group(2)
        else:
            value = entry
    else:
        value = entry

    if isinstance(value, bool):
        raise ConfigurationError(name, f"expected a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(name, f"expected a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise ConfigurationError(name, f"expected a finite number, got {value!r}")

    if tuple(float(d) for d in dims) != tuple(float(d) for d in expected):
        raise ConfigurationError(
            name,
            f"dimensions {list(dims)} do not match expected {list(expected)}",
        )
    return DimensionedScalar(name=name, dimensions=tuple(expected), value=number)


def parse_switch(name: str, entry) -> str:
    allowed, _default = MODE_SWITCHES[name]
    if isinstance(entry, bool):
        value = "on" if entry else "off"
    else:
        value = str(entry).strip().lower()
        if "on" in allowed:
            value = _BOOLEAN_WORDS.get(value, value)
    if value not in allowed:
        raise ConfigurationError(name, f"'{entry}' is not one of {', '.join(allowed)}")
    return value


def load_coefficients(dictionary: Optional[Mapping[str, Any]]) -> CoefficientSet:
    data = dictionary or {}
    coefficients = {}
    for name, (default, dims) in MODEL_COEFFICIENTS.items():
        coefficients[name] = parse_dimensioned(name, data.get(name, default), dims)
    for name in SAFETY_FLOORS:
        if not coefficients[name].value > 0.0:
            raise ConfigurationError(name, "safety floor must be strictly positive")
    if coefficients["nutMax"].value <= coefficients["nutMin"].value:
        raise ConfigurationError("nutMax", "must exceed nutMin")

    switches = {}
    for name, (_allowed, default) in MODE_SWITCHES.items():
        switches[name] = parse_switch(name, data.get(name, default))

    return CoefficientSet(
        coefficients=MappingProxyType(coefficients),
        switches=MappingProxyType(switches),
    )


def load_controls(dictionary: Optional[Mapping[str, Any]]) -> SolverControls:
    data = dictionary or {}
    defaults = SolverControls()
    relax_cfg = data.get("relaxation", {}) or {}
    if not isinstance(relax_cfg, Mapping):
        raise ConfigurationError("relaxation", "expected a mapping of field -> factor")
    relaxation = dict(defaults.relaxation)
    for key, value in relax_cfg.items():
        if key not in relaxation:
            raise ConfigurationError(f"relaxation.{key}", f"unknown field, expected one of {', '.join(relaxation)}")
        factor = _number(f"relaxation.{key}", value)
        if not 0.0 < factor <= 1.0:
            raise ConfigurationError(f"relaxation.{key}", "must lie in (0, 1]")
        relaxation[key] = factor

    solver = str(data.get("solver", defaults.solver)).lower()
    if solver not in SOLVER_METHODS:
        raise ConfigurationError("solver", f"'{solver}' is not one of {', '.join(SOLVER_METHODS)}")

    phi0 = data.get("phi0", defaults.phi0)
    controls = SolverControls(
        solver=solver,
        tolerance=_number("tolerance", data.get("tolerance", defaults.tolerance)),
        max_iter=int(_number("maxIter", data.get("maxIter", defaults.max_iter))),
        max_residual=_number("maxResidual", data.get("maxResidual", defaults.max_residual)),
        relaxation=MappingProxyType(relaxation),
        k0=_number("k0", data.get("k0", defaults.k0)),
        epsilon0=_number("epsilon0", data.get("epsilon0", defaults.epsilon0)),
        phi0=None if phi0 is None else _number("phi0", phi0),
    )
    if controls.max_iter < 1:
        raise ConfigurationError("maxIter", "must be at least 1")
    return controls


def _number(entry: str, value) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(entry, f"expected a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(entry, f"expected a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise ConfigurationError(entry, f"expected a finite number, got {value!r}")
    return number
