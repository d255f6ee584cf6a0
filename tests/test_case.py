import pathlib
import shutil
import sys

import numpy as np
import pytest
import yaml

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from turbpot import FrozenFlowCase, TimeControl, TurbulentPotentialModel

CASE = ROOT / "tests" / "cases" / "channel"


@pytest.fixture
def channel(tmp_path):
    target = tmp_path / "channel"
    shutil.copytree(CASE, target)
    return target


def test_channel_case_runs_and_writes(channel):
    case = FrozenFlowCase.from_yaml(channel / "system" / "case.yaml")
    assert isinstance(case.turbulence_model, TurbulentPotentialModel)
    assert case.turbulence_model.delta_t is None

    model = case.solve()
    assert len(model.logger.history) == 5
    assert np.all(model.k().values > 0.0)
    assert np.all(model.epsilon().values > 0.0)
    assert np.all(model.tp_phi().values > 0.0)

    written = channel / "5" / "k.yaml"
    assert written.exists()
    data = yaml.safe_load(written.read_text())
    assert len(data["internalField"]["nonuniform"]) == case.mesh.ncells
    assert data["boundaryField"]["inlet"]["type"] == "fixedValue"
    assert (channel / "5" / "tppsi.yaml").exists()
    assert np.allclose(case.field("nut").values, model.nut().values)


def test_case_fields_are_shared_with_the_model(channel):
    case = FrozenFlowCase.from_yaml(channel / "system" / "case.yaml")
    assert case.field("k").values is case.turbulence_model.k().values
    assert np.allclose(case.field("tpphi").values, 0.0066)
    # parabolic profile, zero at the walls
    assert case.U.values[:, 0].max() <= 1.5


def test_model_rereads_turbulence_dictionary(channel):
    case = FrozenFlowCase.from_yaml(channel / "system" / "case.yaml")
    model = case.turbulence_model
    path = channel / "constant" / "turbulence.yaml"
    data = yaml.safe_load(path.read_text())
    data["turbulentPotential"]["cMu"] = 0.18
    path.write_text(yaml.safe_dump(data))
    assert model.read() is True
    assert model.coeffs["cMu"] == 0.18

    data["turbulentPotential"]["tslimiter"] = "sometimes"
    path.write_text(yaml.safe_dump(data))
    assert model.read() is False
    assert model.coeffs["cMu"] == 0.18


def test_unknown_boundary_type_rejected(channel):
    path = channel / "0" / "k.yaml"
    data = yaml.safe_load(path.read_text())
    data["boundaryField"]["top"] = {"type": "slip"}
    path.write_text(yaml.safe_dump(data))
    with pytest.raises(ValueError):
        FrozenFlowCase.from_yaml(channel / "system" / "case.yaml")


def test_nonuniform_field_shape_checked(channel):
    path = channel / "0" / "epsilon.yaml"
    data = yaml.safe_load(path.read_text())
    data["internalField"] = {"nonuniform": [0.01, 0.02, 0.03]}
    path.write_text(yaml.safe_dump(data))
    with pytest.raises(ValueError):
        FrozenFlowCase.from_yaml(channel / "system" / "case.yaml")


def test_case_path_must_be_case_yaml(channel):
    with pytest.raises(ValueError):
        FrozenFlowCase.from_yaml(channel / "constant" / "turbulence.yaml")


def test_time_control_sequences():
    steady = TimeControl.from_dict({"mode": "steady", "iterations": 3})
    assert list(steady) == [1.0, 2.0, 3.0]
    assert len(steady) == 3
    assert steady.delta_t is None

    transient = TimeControl.from_dict({"mode": "transient", "start": 0.0, "end": 0.3, "dt": 0.1})
    assert list(transient) == pytest.approx([0.1, 0.2, 0.3])
    assert len(transient) == 3
    assert transient.delta_t == 0.1

    with pytest.raises(ValueError):
        TimeControl.from_dict({"mode": "adjoint"})
    with pytest.raises(ValueError):
        TimeControl(dt=0.0)
