import pathlib
import sys

import numpy as np
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from turbpot.core import fv_ops, tensor
from turbpot.core.bc import FixedValue, MovingWall, NoSlipWall, VelocityInlet, ZeroGradient
from turbpot.core.field import ScalarField, TensorField, VectorField
from turbpot.core.linalg import FvMatrix
from turbpot.core.mesh import Mesh, graded_coordinates


def interior_cells(mesh):
    nx, ny = mesh.shape
    return [j * nx + i for j in range(1, ny - 1) for i in range(1, nx - 1)]


def test_structured_mesh_topology():
    mesh = Mesh.structured(3, 2, lengths=(3.0, 1.0), patch_aliases={"ymin": "bottom"})
    assert mesh.ncells == 6
    assert mesh.nfaces == 4 * 2 + 3 * 3
    assert set(mesh.patches()) == {"xmin", "xmax", "bottom", "ymax"}
    assert np.allclose(mesh.cell_volumes, 0.5)
    assert np.count_nonzero(mesh.internal) == 2 * 2 + 3 * 1
    assert np.all(mesh.neighbours[~mesh.internal] == -1)
    for patch, axis, sign in (("xmin", 0, -1), ("xmax", 0, 1), ("bottom", 1, -1), ("ymax", 1, 1)):
        sf = mesh.area_vectors[mesh.patch_faces(patch)]
        assert np.all(np.sign(sf[:, axis]) == sign)
    with pytest.raises(KeyError):
        mesh.patch_faces("inlet")


def test_graded_coordinates():
    nodes = graded_coordinates(8, 2.0, ratio=4.0)
    sizes = np.diff(nodes)
    assert nodes[0] == 0.0 and nodes[-1] == pytest.approx(2.0)
    assert sizes[-1] / sizes[0] == pytest.approx(4.0)

    mirrored = graded_coordinates(8, 2.0, ratio=4.0, symmetric=True)
    sizes = np.diff(mirrored)
    assert np.allclose(sizes, sizes[::-1])
    assert sizes[0] < sizes[3]
    with pytest.raises(ValueError):
        graded_coordinates(7, 1.0, 2.0, symmetric=True)


def test_field_shapes_checked():
    mesh = Mesh.structured(2, 2)
    with pytest.raises(ValueError):
        ScalarField("k", mesh, np.zeros(3))
    with pytest.raises(ValueError):
        VectorField("U", mesh, np.zeros(mesh.ncells))
    tensor_field = TensorField.uniform("R", mesh, np.eye(3))
    assert tensor_field.values.shape == (4, 3, 3)
    field = ScalarField.uniform("k", mesh, 1.0)
    array = field.values
    field.assign(np.arange(4.0))
    assert field.values is array


def test_gradient_of_linear_fields_is_exact_inside():
    mesh = Mesh.structured(5, 5)
    x, y = mesh.cell_centers[:, 0], mesh.cell_centers[:, 1]
    scalar = 2.0 * x + 3.0 * y
    grad = fv_ops.grad(mesh, scalar)
    inner = interior_cells(mesh)
    assert np.allclose(grad[inner, 0], 2.0)
    assert np.allclose(grad[inner, 1], 3.0)

    velocity = np.zeros((mesh.ncells, 3))
    velocity[:, 0] = 4.0 * y
    grad_u = fv_ops.grad(mesh, velocity)
    assert grad_u.shape == (mesh.ncells, 3, 3)
    # grad[c, i, j] = d u_j / d x_i
    assert np.allclose(grad_u[inner, 1, 0], 4.0)
    assert np.allclose(grad_u[inner, 0, 1], 0.0)


def test_gradient_honours_wall_values():
    mesh = Mesh.structured(2, 4, lengths=(1.0, 1.0))
    velocity = VectorField.uniform("U", mesh, [1.0, 0.0, 0.0])
    walls = [NoSlipWall("ymin", mesh, mesh.patch_faces("ymin"))]
    grad_u = fv_ops.grad(mesh, velocity, walls)
    bottom = mesh.patch_cells("ymin")
    assert np.all(grad_u[bottom, 1, 0] > 0.0)


def test_divergence_of_uniform_flux_vanishes():
    mesh = Mesh.structured(4, 3)
    face_velocity = np.tile([1.0, 0.5, 0.0], (mesh.nfaces, 1))
    flux = fv_ops.face_flux(mesh, 1.0, face_velocity)
    assert np.allclose(fv_ops.div(mesh, flux), 0.0)


def test_laplacian_of_linear_field_vanishes_inside():
    mesh = Mesh.structured(5, 5)
    values = 1.0 + mesh.cell_centers[:, 0] - 2.0 * mesh.cell_centers[:, 1]
    lap = fv_ops.laplacian(mesh, 0.7, values)
    assert np.allclose(lap[interior_cells(mesh)], 0.0)


def test_laplacian_with_fixed_value_pulls_towards_boundary():
    mesh = Mesh.structured(3, 1)
    bcs = [FixedValue("xmin", mesh, mesh.patch_faces("xmin"), 1.0)]
    lap = fv_ops.laplacian(mesh, 1.0, np.zeros(mesh.ncells), bcs)
    assert lap[0] > 0.0
    assert np.allclose(lap[1:], 0.0)


def test_div_tensor_of_uniform_tensor_vanishes():
    mesh = Mesh.structured(3, 3)
    values = np.tile(np.array([[1.0, 2.0, 0.0], [2.0, -1.0, 0.0], [0.0, 0.0, 3.0]]), (mesh.ncells, 1, 1))
    assert np.allclose(fv_ops.div_tensor(mesh, values), 0.0)


def test_tensor_algebra():
    g = np.zeros((2, 3, 3))
    g[:, 1, 0] = 2.0
    s = tensor.symm(g)
    assert np.allclose(s, tensor.transpose(s))
    assert np.allclose(tensor.two_symm(g), 2.0 * s)
    assert np.allclose(tensor.symm(g) + tensor.skew(g), g)
    assert np.allclose(tensor.double_dot(s, s), 2.0)
    assert np.allclose(tensor.trace(tensor.dev(g + tensor.identity(2))), 0.0)
    assert np.allclose(tensor.curl_from_grad(g), [[0.0, 0.0, -2.0]] * 2)
    assert np.allclose(tensor.magnitude(tensor.identity(2)), np.sqrt(3.0))


def test_boundary_conditions_fill_face_values():
    mesh = Mesh.structured(2, 2)
    values = np.arange(4.0)
    faces = np.zeros(mesh.nfaces)
    ZeroGradient("xmin", mesh, mesh.patch_faces("xmin")).update_face_values(faces, values)
    assert np.allclose(faces[mesh.patch_faces("xmin")], values[mesh.patch_cells("xmin")])

    vector_faces = np.zeros((mesh.nfaces, 3))
    inlet = VelocityInlet("xmin", mesh, mesh.patch_faces("xmin"), [2.0, 0.0, 0.0])
    moving = MovingWall("ymax", mesh, mesh.patch_faces("ymax"), [1.0, 0.0, 0.0])
    inlet.update_face_values(vector_faces, None)
    moving.update_face_values(vector_faces, None)
    assert np.allclose(vector_faces[mesh.patch_faces("xmin"), 0], 2.0)
    assert np.allclose(vector_faces[mesh.patch_faces("ymax"), 0], 1.0)
    assert inlet.is_dirichlet() and moving.is_dirichlet()
    with pytest.raises(ValueError):
        VelocityInlet("xmin", mesh, mesh.patch_faces("xmin"), 1.0)


def test_fv_matrix_assembly_and_solve():
    mesh = Mesh.structured(3, 1)
    matrix = FvMatrix(mesh)
    matrix.add_diag(range(3), [2.0, 2.0, 2.0])
    matrix.add_nb([0, 1, 1, 2], [1, 0, 2, 1], [-1.0, -1.0, -1.0, -1.0])
    dense = matrix.to_dense()
    assert np.allclose(dense, [[2, -1, 0], [-1, 2, -1], [0, -1, 2]])
    rhs = np.array([1.0, 0.0, 1.0])
    assert np.allclose(matrix.solve(rhs), [1.0, 1.0, 1.0])
    solution, stats = matrix.solve(rhs, method="cg", return_stats=True)
    assert np.allclose(solution, 1.0)
    assert stats["converged"] == 1.0
    with pytest.raises(NotImplementedError):
        matrix.solve(rhs, method="sor")
