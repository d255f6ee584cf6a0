import pathlib
import sys

import numpy as np
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from turbpot.core import fv_ops
from turbpot.core.bc import FixedValue, ZeroGradient
from turbpot.core.mesh import Mesh
from turbpot.solvers.transport import TransportAssembler, solve_system


def uniform_flux(mesh, velocity):
    face_velocity = np.tile(np.asarray(velocity, dtype=float), (mesh.nfaces, 1))
    return fv_ops.face_flux(mesh, 1.0, face_velocity)


def test_pure_diffusion_between_fixed_values_is_linear():
    mesh = Mesh.structured(5, 1)
    bcs = [
        FixedValue("xmin", mesh, mesh.patch_faces("xmin"), 0.0),
        FixedValue("xmax", mesh, mesh.patch_faces("xmax"), 1.0),
    ]
    assembler = TransportAssembler(mesh, bcs)
    system = assembler.build(
        np.zeros(mesh.ncells),
        np.zeros(mesh.nfaces),
        diffusivity=np.ones(mesh.ncells),
        su=0.0,
        sp=0.0,
    )
    solution, stats = solve_system(system, np.zeros(mesh.ncells), "direct", 1e-12, 10)
    assert np.allclose(solution, mesh.cell_centers[:, 0])
    assert stats["converged"] == 1.0


def test_upwind_convection_carries_inlet_value():
    mesh = Mesh.structured(6, 2)
    bcs = [
        FixedValue("xmin", mesh, mesh.patch_faces("xmin"), 2.5),
        ZeroGradient("xmax", mesh, mesh.patch_faces("xmax")),
    ]
    assembler = TransportAssembler(mesh, bcs)
    system = assembler.build(
        np.ones(mesh.ncells),
        uniform_flux(mesh, [1.0, 0.0, 0.0]),
        diffusivity=np.zeros(mesh.ncells),
        su=0.0,
        sp=0.0,
    )
    solution, _ = solve_system(system, np.ones(mesh.ncells), "direct", 1e-12, 10)
    assert np.allclose(solution, 2.5)


def test_source_and_sink_balance():
    mesh = Mesh.structured(3, 3)
    assembler = TransportAssembler(mesh)
    system = assembler.build(
        np.ones(mesh.ncells),
        np.zeros(mesh.nfaces),
        diffusivity=np.full(mesh.ncells, 0.1),
        su=np.full(mesh.ncells, 4.0),
        sp=np.full(mesh.ncells, 2.0),
    )
    solution, _ = solve_system(system, np.ones(mesh.ncells), "direct", 1e-12, 10)
    assert np.allclose(solution, 2.0)


def test_vector_unknown_solves_each_component():
    mesh = Mesh.structured(3, 3)
    assembler = TransportAssembler(mesh)
    su = np.zeros((mesh.ncells, 3))
    su[:, 2] = 3.0
    su[:, 0] = -1.0
    system = assembler.build(
        np.zeros((mesh.ncells, 3)),
        np.zeros(mesh.nfaces),
        diffusivity=np.ones(mesh.ncells),
        su=su,
        sp=np.full(mesh.ncells, 1.5),
    )
    assert system.rhs.shape == (mesh.ncells, 3)
    solution, stats = solve_system(system, np.zeros((mesh.ncells, 3)), "bicgstab", 1e-12, 200)
    assert solution.shape == (mesh.ncells, 3)
    assert np.allclose(solution[:, 0], -1.0 / 1.5)
    assert np.allclose(solution[:, 1], 0.0)
    assert np.allclose(solution[:, 2], 2.0)
    assert stats["relative"] < 1e-6


def test_transient_term_without_sources_keeps_old_value():
    mesh = Mesh.structured(4, 4)
    old = np.linspace(1.0, 2.0, mesh.ncells)
    assembler = TransportAssembler(mesh)
    system = assembler.build(
        old,
        np.zeros(mesh.nfaces),
        diffusivity=np.zeros(mesh.ncells),
        su=0.0,
        sp=0.0,
        delta_t=0.1,
    )
    solution, _ = solve_system(system, old, "direct", 1e-12, 10)
    assert np.allclose(solution, old)


def test_relaxation_keeps_the_steady_solution():
    mesh = Mesh.structured(3, 3)
    assembler = TransportAssembler(mesh)
    values = np.full(mesh.ncells, 2.0)
    system = assembler.build(
        values,
        np.zeros(mesh.nfaces),
        diffusivity=np.ones(mesh.ncells),
        su=np.full(mesh.ncells, 4.0),
        sp=np.full(mesh.ncells, 2.0),
        alpha=0.5,
    )
    solution, _ = solve_system(system, values, "direct", 1e-12, 10)
    assert np.allclose(solution, 2.0)


@pytest.mark.parametrize("method", ["cg", "gmres", "amg"])
def test_iterative_solvers_match_direct(method):
    mesh = Mesh.structured(6, 6)
    bcs = [FixedValue("xmin", mesh, mesh.patch_faces("xmin"), 1.0)]
    assembler = TransportAssembler(mesh, bcs)
    system = assembler.build(
        np.zeros(mesh.ncells),
        np.zeros(mesh.nfaces),
        diffusivity=np.ones(mesh.ncells),
        su=mesh.cell_centers[:, 1],
        sp=np.full(mesh.ncells, 0.5),
    )
    reference, _ = solve_system(system, np.zeros(mesh.ncells), "direct", 1e-12, 10)
    solution, stats = solve_system(system, np.zeros(mesh.ncells), method, 1e-10, 500)
    assert np.allclose(solution, reference, atol=1e-7)
    assert stats["iterations"] >= 1.0


def test_negative_sink_rejected():
    mesh = Mesh.structured(2, 2)
    assembler = TransportAssembler(mesh)
    with pytest.raises(ValueError):
        assembler.build(np.zeros(mesh.ncells), np.zeros(mesh.nfaces), 1.0, 0.0, -1.0)


def test_duplicate_boundary_faces_rejected():
    mesh = Mesh.structured(2, 2)
    faces = mesh.patch_faces("xmin")
    with pytest.raises(ValueError):
        TransportAssembler(mesh, [FixedValue("a", mesh, faces, 0.0), ZeroGradient("b", mesh, faces)])


def test_flux_shape_checked():
    mesh = Mesh.structured(2, 2)
    with pytest.raises(ValueError):
        TransportAssembler(mesh).build(np.zeros(mesh.ncells), np.zeros(3), 1.0, 0.0, 0.0)
