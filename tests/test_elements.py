import pytest
import numpy as np
import numpy.testing as npt
import pyocto as poc
from pyocto.common.elements import get_D, eval_shape_fun


def test_shape_functions_partition_of_unity():
    for xi, eta in [(0.0, 0.0), (0.3, -0.7), (-1.0, 1.0)]:
        npt.assert_allclose(np.sum(eval_shape_fun(xi, eta)), 1.0)
    npt.assert_allclose(eval_shape_fun(-1.0, -1.0), [1, 0, 0, 0])
    npt.assert_allclose(eval_shape_fun(1.0, 1.0), [0, 0, 1, 0])


class TestQuadStiffness:
    def test_symmetric(self):
        Ke = poc.quad_stiffness(1.0, 2.0, nu=0.25)
        assert Ke.shape == (8, 8)
        npt.assert_allclose(Ke, Ke.T, atol=1e-14)

    def test_known_diagonal(self):
        # Diagonal of the classical unit square element (Andreassen et al., 2011)
        nu = 0.3
        Ke = poc.quad_stiffness(nu=nu)
        npt.assert_allclose(np.diag(Ke), (0.5 - nu / 6) / (1 - nu**2))

    @pytest.mark.parametrize('plane', ['stress', 'strain'])
    def test_rigid_body_modes(self, plane):
        unitx, unity = 1.5, 0.5
        Ke = poc.quad_stiffness(unitx, unity, plane=plane)
        x = np.array([0, unitx, unitx, 0])
        y = np.array([0, 0, unity, unity])
        translation_x = np.kron(np.ones(4), [1, 0])
        translation_y = np.kron(np.ones(4), [0, 1])
        rotation = np.stack([-y, x], axis=-1).flatten()
        for mode in [translation_x, translation_y, rotation]:
            npt.assert_allclose(Ke @ mode, 0, atol=1e-12)
        # Exactly three zero eigenvalues
        w = np.linalg.eigvalsh(Ke)
        assert np.sum(w < 1e-10) == 3

    def test_thickness(self):
        npt.assert_allclose(poc.quad_stiffness(thickness=2.0), 2 * poc.quad_stiffness())

    def test_invalid_plane(self):
        with pytest.raises(ValueError):
            get_D(1.0, 0.3, plane="shell")


def test_material_matrix():
    D = get_D(2.0, 0.0, plane="stress")
    npt.assert_allclose(D, [[2, 0, 0], [0, 2, 0], [0, 0, 1]])
    npt.assert_allclose(get_D(2.0, 0.0, plane="strain"), D)


def test_quad_conduction():
    Ke = poc.quad_conduction()
    npt.assert_allclose(np.diag(Ke), 2 / 3)
    npt.assert_allclose(Ke[0, 1], -1 / 6)
    npt.assert_allclose(Ke[0, 2], -1 / 3)
    npt.assert_allclose(Ke @ np.ones(4), 0, atol=1e-14)


@pytest.mark.parametrize('ndof_per_node', [1, 2])
def test_quad_mass(ndof_per_node):
    Me = poc.quad_mass(2.0, 0.5, thickness=3.0, ndof_per_node=ndof_per_node)
    assert Me.shape == (4 * ndof_per_node, 4 * ndof_per_node)
    npt.assert_allclose(Me, Me.T)
    # Total mass for each direction equals area times thickness
    npt.assert_allclose(np.sum(Me), ndof_per_node * 3.0)
    assert np.all(np.linalg.eigvalsh(Me) > 0)
