"""Frozen-flow case management: a fixed velocity field drives the turbulence model."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from ..core import fv_ops
from ..core.bc import (
    FixedValue,
    MovingWall,
    NoSlipWall,
    VelocityInlet,
    ZeroGradient,
)
from ..core.field import ScalarField, VectorField
from ..core.mesh import Mesh
from ..physics.transport import ConstantTransport
from ..physics.turbulence import make_turbulence_model
from ..utils.io import YamlDictionary, read_yaml_file, write_yaml_file
from ..utils.logging import IterationLogger
from .time import TimeControl


BOUNDARY_CONDITIONS = {
    "noslip": NoSlipWall,
    "movingwall": MovingWall,
    "velocityinlet": VelocityInlet,
    "fixedvalue": FixedValue,
    "zerogradient": ZeroGradient,
}

# field name -> vector-valued
TURBULENCE_FIELDS = {
    "k": False,
    "epsilon": False,
    "tpphi": False,
    "tppsi": True,
    "nut": False,
}


class FrozenFlowCase:
    """Case directory with a prescribed velocity and a turbulence model to solve.

    Layout: ``system/case.yaml``, ``constant/transport.yaml``,
    ``constant/turbulence.yaml`` and ``0/<field>.yaml``. Results go to
    ``<case>/<time>/<field>.yaml``.
    """

    def __init__(self, root: Path, config: Dict) -> None:
        self.root = Path(root)
        self.config = config
        self.mesh = self._build_mesh(config.get("mesh", {}))
        self.transport = self._load_transport()
        self.time_control = TimeControl.from_dict(config.get("time"))
        self.fields: Dict[str, ScalarField | VectorField] = {}
        self.boundary_data: Dict[str, Dict] = {}
        self.bcs: Dict[str, List] = {}

        self.U = self._load_field_file("U", vector=True)
        if self.U is None:
            raise RuntimeError("Velocity field U is required")
        for name, vector in TURBULENCE_FIELDS.items():
            self._load_field_file(name, vector=vector)

        self.flux = fv_ops.face_flux(
            self.mesh, 1.0, fv_ops.interpolate(self.mesh, self.U, bcs=self.bcs.get("U"))
        )

        turbulence_path = self.root / "constant" / "turbulence.yaml"
        turbulence_cfg = read_yaml_file(turbulence_path)
        self.model_name = turbulence_cfg.get("TurbulenceModel", "laminar")
        self.logger = IterationLogger(self.model_name, verbose=bool(config.get("verbose", True)))
        self.turbulence_model = make_turbulence_model(
            self.model_name,
            mesh=self.mesh,
            velocity=self.U,
            flux=self.flux,
            transport=self.transport,
            config=YamlDictionary(turbulence_path),
            fields={name: field for name, field in self.fields.items() if name != "U"},
            bcs=self.bcs,
            delta_t=self.time_control.delta_t,
            logger=self.logger,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "FrozenFlowCase":
        case_path = Path(path)
        if case_path.name.lower() != "case.yaml":
            raise ValueError("Expected system/case.yaml")
        root = case_path.parent.parent
        config = read_yaml_file(case_path)
        return cls(root=root, config=config)

    def _build_mesh(self, mesh_cfg: Dict) -> Mesh:
        mtype = mesh_cfg.get("type", "structured").lower()
        if mtype != "structured":
            raise NotImplementedError("Only structured meshes are supported")
        nx = int(mesh_cfg.get("nx", 10))
        ny = int(mesh_cfg.get("ny", 10))
        lengths = tuple(mesh_cfg.get("lengths", [1.0, 1.0]))
        patches = mesh_cfg.get("patches")
        grading = tuple(mesh_cfg.get("grading", [1.0, 1.0]))
        symmetric = tuple(mesh_cfg.get("symmetric", [False, False]))
        return Mesh.structured(
            nx, ny, lengths=lengths, patch_aliases=patches, grading=grading, symmetric=symmetric
        )

    def _load_transport(self) -> ConstantTransport:
        path = self.root / "constant" / "transport.yaml"
        data = read_yaml_file(path)
        return ConstantTransport.from_dict(data)

    def _parse_internal(self, entry, vector: bool):
        """``uniform`` strings, numbers, lists, ``{uniform: ..}`` or ``{nonuniform: [..]}``."""

        ncells = self.mesh.ncells
        if isinstance(entry, dict) and "nonuniform" in entry:
            values = np.asarray(entry["nonuniform"], dtype=float)
            expected = (ncells, 3) if vector else (ncells,)
            if values.shape != expected:
                raise ValueError(f"nonuniform field expects shape {expected}, got {values.shape}")
            return values
        if isinstance(entry, dict) and "uniform" in entry:
            entry = entry["uniform"]
        if isinstance(entry, str):
            tokens = entry.replace("uniform", "").replace("(", " ").replace(")", " ")
            tokens = tokens.replace("[", " ").replace("]", " ").split()
            entry = [float(tok.strip(",")) for tok in tokens]
        values = np.asarray(entry, dtype=float)
        if vector:
            if values.size == 1:
                values = np.repeat(values.reshape(-1), 3)
            values = values.reshape(1, -1)
            return np.repeat(values, ncells, axis=0)
        return np.full(ncells, float(values.reshape(-1)[0]))

    def _load_field_file(self, name: str, vector: bool):
        path = self.root / "0" / f"{name}.yaml"
        if not path.exists():
            return None
        data = read_yaml_file(path)
        internal = data.get("internalField", 0.0 if not vector else [0.0, 0.0, 0.0])
        values = self._parse_internal(internal, vector)
        field = VectorField(name, self.mesh, values) if vector else ScalarField(name, self.mesh, values)
        self.fields[name] = field
        self.boundary_data[name] = data.get("boundaryField", {}) or {}
        self.bcs[name] = self._build_bcs(name, self.boundary_data[name], vector)
        return field

    def _build_bcs(self, field_name: str, bc_data: Dict, vector: bool):
        bcs = []
        for patch, cfg in bc_data.items():
            faces = self.mesh.patch_faces(patch)
            info = cfg or {}
            if isinstance(info, str):
                info = {"type": info}
            bc_type = info.get("type", "zeroGradient")
            cls = BOUNDARY_CONDITIONS.get(bc_type.lower())
            if cls is None:
                raise ValueError(f"{field_name}: unknown boundary type '{bc_type}' on patch '{patch}'")
            if cls in (VelocityInlet, MovingWall):
                bc = cls(patch, self.mesh, faces, info.get("value", [0.0, 0.0, 0.0]))
            elif cls is FixedValue:
                default = [0.0, 0.0, 0.0] if vector else 0.0
                bc = cls(patch, self.mesh, faces, self._parse_value(info.get("value", default)))
            else:
                bc = cls(patch, self.mesh, faces)
            bcs.append(bc)
        return bcs

    @staticmethod
    def _parse_value(value):
        if isinstance(value, str):
            tokens = value.replace("uniform", "").replace("(", " ").replace(")", " ").split()
            numbers = [float(tok) for tok in tokens]
            return numbers[0] if len(numbers) == 1 else numbers
        return value

    def solve(self):
        model = self.turbulence_model
        interval = self.time_control.write_interval
        time = None
        written = None
        for step, time in enumerate(self.time_control, start=1):
            self.transport.update(time)
            model.correct()
            if step % interval == 0:
                self.write(time)
                written = time
        if time is not None and written != time:
            self.write(time)
        return model

    def write(self, time: float, directory: Optional[Path] = None) -> Path:
        out = Path(directory) if directory is not None else self.root / f"{time:g}"
        for name, field in self.turbulence_model.fields().items():
            write_yaml_file(
                out / f"{name}.yaml",
                {
                    "internalField": {"nonuniform": field.values},
                    "boundaryField": self.boundary_data.get(name, {}),
                },
            )
        return out

    def field(self, name: str):
        """Current field by name; model fields shadow the initial ones read from disk."""
        model_fields = self.turbulence_model.fields()
        if name in model_fields:
            return model_fields[name]
        return self.fields[name]
