import dataclasses
import pathlib
import sys

import pytest
import yaml

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from turbpot.physics.turbulence.coefficients import (
    MODE_SWITCHES,
    MODEL_COEFFICIENTS,
    load_coefficients,
    load_controls,
    parse_dimensioned,
    VELOCITY_SQUARED,
)
from turbpot.utils.errors import ConfigurationError


def test_defaults_cover_every_entry():
    coeffs = load_coefficients(None)
    for name, (default, dims) in MODEL_COEFFICIENTS.items():
        assert coeffs[name] == default
        assert coeffs.coefficients[name].dimensions == dims
    for name, (_allowed, default) in MODE_SWITCHES.items():
        assert coeffs.switch(name) == default
    assert coeffs.cMu == 0.21
    assert coeffs.enabled("solveK")
    assert not coeffs.enabled("debugWrite")


def test_dimensioned_entry_forms():
    assert parse_dimensioned("kMin", "[0 2 -2 0 0 0 0] 1e-8", VELOCITY_SQUARED).value == 1e-8
    assert parse_dimensioned("kMin", "kMin [0 2 -2 0 0 0 0] 2e-8", VELOCITY_SQUARED).value == 2e-8
    entry = {"value": 3e-8, "dimensions": [0, 2, -2, 0, 0, 0, 0]}
    assert parse_dimensioned("kMin", entry, VELOCITY_SQUARED).value == 3e-8
    assert parse_dimensioned("kMin", 4e-8, VELOCITY_SQUARED).value == 4e-8


def test_dimension_mismatch_names_entry():
    with pytest.raises(ConfigurationError) as excinfo:
        load_coefficients({"kMin": "[0 2 -3 0 0 0 0] 1e-10"})
    assert excinfo.value.entry == "kMin"
    assert "kMin" in str(excinfo.value)

    with pytest.raises(ConfigurationError):
        load_coefficients({"cMu": {"value": 0.09, "dimensions": [0, 1, 0, 0, 0, 0, 0]}})


@pytest.mark.parametrize(
    "entry",
    ["abc", True, "[0 2 -2 0 0] 1e-10", {"dimensions": [0, 2, -2, 0, 0, 0, 0]}],
)
def test_malformed_coefficients_rejected(entry):
    with pytest.raises(ConfigurationError):
        load_coefficients({"kMin": entry})


def test_switches_are_case_insensitive_and_accept_yaml_booleans():
    data = yaml.safe_load("tslimiter: Durbin\nsolveK: off\nsolvePsi: on\ntimeScaleEps: epsHat\n")
    coeffs = load_coefficients(data)
    assert coeffs.switch("tslimiter") == "durbin"
    assert coeffs.switch("solveK") == "off"
    assert coeffs.switch("solvePsi") == "on"
    assert coeffs.switch("timeScaleEps") == "epshat"


@pytest.mark.parametrize(
    "name, value",
    [("tslimiter", "bogus"), ("eqncEp2", "linear"), ("solveK", "maybe"), ("prodType", False)],
)
def test_unknown_switch_value_rejected(name, value):
    with pytest.raises(ConfigurationError) as excinfo:
        load_coefficients({name: value})
    assert excinfo.value.entry == name


@pytest.mark.parametrize("name", ["kMin", "epsilonMin", "phiMin", "nutMin"])
def test_safety_floors_must_be_positive(name):
    with pytest.raises(ConfigurationError):
        load_coefficients({name: 0.0})


def test_nut_max_must_exceed_nut_min():
    with pytest.raises(ConfigurationError):
        load_coefficients({"nutMin": 1.0, "nutMax": 0.5})


def test_coefficient_set_is_read_only():
    coeffs = load_coefficients({})
    with pytest.raises(dataclasses.FrozenInstanceError):
        coeffs.switches = {}
    with pytest.raises(TypeError):
        coeffs.coefficients["cMu"] = None
    with pytest.raises(AttributeError):
        coeffs.notACoefficient


def test_as_dict_round_trips_through_loader():
    coeffs = load_coefficients({"cMu": 0.25, "tslimiter": "smooth"})
    again = load_coefficients(coeffs.as_dict())
    assert again.as_dict() == coeffs.as_dict()


def test_controls_defaults_and_overrides():
    controls = load_controls({})
    assert controls.solver == "bicgstab"
    assert controls.alpha("k") == 1.0
    assert controls.phi0 is None

    controls = load_controls(
        {
            "solver": "AMG",
            "tolerance": 1e-8,
            "maxIter": 50,
            "maxResidual": 1e-2,
            "relaxation": {"k": 0.5, "psi": 0.8},
            "k0": 0.1,
            "phi0": 0.05,
        }
    )
    assert controls.solver == "amg"
    assert controls.max_iter == 50
    assert controls.alpha("k") == 0.5
    assert controls.alpha("epsilon") == 1.0
    assert controls.alpha("psi") == 0.8
    assert controls.phi0 == 0.05


@pytest.mark.parametrize(
    "data",
    [
        {"solver": "jacobi"},
        {"relaxation": {"k": 0.0}},
        {"relaxation": {"k": 1.5}},
        {"relaxation": {"U": 0.5}},
        {"relaxation": 0.5},
        {"maxIter": 0},
        {"tolerance": "tight"},
    ],
)
def test_controls_rejected(data):
    with pytest.raises(ConfigurationError):
        load_controls(data)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), "[0 2 -2 0 0 0 0] nan"])
def test_non_finite_floor_rejected(value):
    with pytest.raises(ConfigurationError) as excinfo:
        load_coefficients({"kMin": value})
    assert excinfo.value.entry == "kMin"


@pytest.mark.parametrize("entry", ["maxIter", "tolerance", "maxResidual", "k0"])
@pytest.mark.parametrize("value", [float("inf"), float("nan")])
def test_non_finite_controls_rejected(entry, value):
    with pytest.raises(ConfigurationError) as excinfo:
        load_controls({entry: value})
    assert excinfo.value.entry == entry
