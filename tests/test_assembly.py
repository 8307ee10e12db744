import pytest
import numpy as np
import scipy.sparse as sps
import numpy.testing as npt
import pyocto as poc


class TestAssembleGeneral:
    def test_rows_columns(self):
        """ Check if element rows and columns are implemented correctly """
        elmat = np.arange(4*4).reshape((4, 4))
        A = poc.AssembleGeneral([[0, 1, 2, 3]], elmat)(np.ones(1))
        npt.assert_allclose(A.toarray(), elmat)

    def test_permuted_dofs(self):
        elmat = np.arange(3*3).reshape((3, 3))
        A = poc.AssembleGeneral([[2, 0, 1]], elmat)(np.array([2.0])).toarray()
        for i, gi in enumerate([2, 0, 1]):
            for j, gj in enumerate([2, 0, 1]):
                assert A[gi, gj] == 2.0 * elmat[i, j]

    def test_shared_dofs_accumulate(self):
        elmat = np.array([[1.0, -1.0], [-1.0, 1.0]])
        A = poc.AssembleGeneral([[0, 1], [1, 2]], elmat)(np.array([1.0, 3.0]))
        npt.assert_allclose(A.toarray(), [[1, -1, 0],
                                          [-1, 4, -3],
                                          [0, -3, 3]])

    @pytest.mark.parametrize('matrix_type', [sps.csr_matrix, sps.csc_matrix, sps.coo_matrix, np.ndarray])
    def test_matrix_types(self, matrix_type):
        mesh = poc.RectangularMesh(3, 2)
        Ke0 = poc.quad_stiffness()
        x = np.random.rand(mesh.nel)
        A_ref = poc.AssembleGeneral(mesh.Edof, Ke0)(x).toarray()
        A = poc.AssembleGeneral(mesh.Edof, Ke0, matrix_type=matrix_type)(x)
        if matrix_type is np.ndarray:
            assert isinstance(A, np.ndarray)
        else:
            assert sps.issparse(A)
            A = A.toarray()
        npt.assert_allclose(A, A_ref)

    def test_ndof(self):
        A = poc.AssembleGeneral([[0, 1]], np.eye(2), ndof=4)(np.ones(1))
        assert A.shape == (4, 4)
        with pytest.raises(ValueError):
            poc.AssembleGeneral([[0, 5]], np.eye(2), ndof=4)

    def test_wrong_input_size(self):
        assemble = poc.AssembleGeneral([[0, 1], [1, 2]], np.eye(2))
        with pytest.raises(ValueError):
            assemble(np.ones(3))

    def test_wrong_element_matrix(self):
        with pytest.raises(ValueError):
            poc.AssembleGeneral([[0, 1, 2]], np.eye(2))
        with pytest.raises(ValueError):
            poc.AssembleGeneral([[0, 1]], np.ones((2, 3)))

    def test_invalid_matrix_type(self):
        with pytest.raises(TypeError):
            poc.AssembleGeneral([[0, 1]], np.eye(2), matrix_type=list)(np.ones(1))


def test_stiffness_rigid_body():
    mesh = poc.RectangularMesh(4, 3)
    K = poc.AssembleStiffness(mesh.Edof, poc.quad_stiffness())(np.random.rand(mesh.nel) + 0.1)
    npt.assert_allclose((K - K.T).toarray(), 0, atol=1e-14)
    u = np.zeros(mesh.ndof)
    u[0::2] = 1.0  # Translation in x
    npt.assert_allclose(K @ u, 0, atol=1e-12)


def test_stiffness_rebuilt_each_call():
    mesh = poc.RectangularMesh(2, 2)
    assemble = poc.AssembleStiffness(mesh.Edof, poc.quad_stiffness())
    K1 = assemble(np.ones(mesh.nel))
    K2 = assemble(2 * np.ones(mesh.nel))
    npt.assert_allclose(K2.toarray(), 2 * K1.toarray())
    npt.assert_allclose(assemble.Ke0, poc.quad_stiffness())


def test_mass_total():
    mesh = poc.RectangularMesh(3, 2, unitx=0.5)
    M = poc.AssembleMass(mesh.Edof, poc.quad_mass(0.5, 1.0))(np.ones(mesh.nel))
    u = np.zeros(mesh.ndof)
    u[0::2] = 1.0
    # Kinetic energy of a unit translation equals the total mass
    npt.assert_allclose(u @ (M @ u), 3.0)
