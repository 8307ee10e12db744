import numpy as np
import scipy.linalg as spla  # Dense matrix solvers
from .solvers import LinearSolver


class SolverDenseLU(LinearSolver):
    """ Solver for dense (square) matrices using an LU decomposition """
    def update(self, A):
        r"""  Factorize the matrix as :math:`\mathbf{A}=\mathbf{P}\mathbf{L}\mathbf{U}`, where :math:`\mathbf{L}` is
        a lower triangular matrix and :math:`\mathbf{U}` is upper triangular.

        Raises:
            numpy.linalg.LinAlgError: When the matrix is exactly singular
        """
        self.lu, self.piv = spla.lu_factor(A)
        if np.any(np.diag(self.lu) == 0):
            raise np.linalg.LinAlgError("Matrix is singular.")
        return self

    def solve(self, rhs):
        r""" Solves :math:`\mathbf{A} \mathbf{x} = \mathbf{b}` by forward and backward substitution of
        :math:`\mathbf{x} = \mathbf{U}^{-1}\mathbf{L}^{-1}\mathbf{P}^\text{T}\mathbf{b}`.
        """
        return spla.lu_solve((self.lu, self.piv), rhs)


class SolverDenseCholesky(LinearSolver):
    """ Solver for symmetric positive-definite matrices using a Cholesky factorization """
    def update(self, A):
        r""" Factorize the matrix as :math:`\mathbf{A}=\mathbf{U}^{\text{T}}\mathbf{U}`, where :math:`\mathbf{U}` is an
        upper triangular matrix.

        Raises:
            numpy.linalg.LinAlgError: When the matrix is not positive definite (e.g. singular)
        """
        self.U = spla.cholesky(A)
        return self

    def solve(self, rhs):
        r""" Solves :math:`\mathbf{A} \mathbf{x} = \mathbf{b}` by forward and backward substitution of
        :math:`\mathbf{x} = \mathbf{U}^{-1}\mathbf{U}^{-\text{T}}\mathbf{b}`.
        """
        return spla.solve_triangular(self.U, spla.solve_triangular(self.U, rhs, trans='T'))
