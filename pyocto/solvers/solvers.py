import numpy as np
import scipy.sparse as sps


def matrix_is_sparse(A):
    return sps.issparse(A)


def matrix_is_symmetric(A):
    """Checks whether a matrix is numerically symmetric"""
    if matrix_is_sparse(A):
        return np.allclose((A - A.T).data, 0)
    else:
        return np.allclose(A, A.T)


class LinearSolver:
    """ Base class of the solvers for the free block of the stiffness matrix

    A solver is used in two stages: :meth:`update` factorizes a matrix, after which :meth:`solve` can be called for
    any number of right-hand sides.

    Args:
        A (optional): Matrix to factorize on construction
    """

    def __init__(self, A=None):
        if A is not None:
            self.update(A)

    def update(self, A):
        """ Factorize the matrix ``A`` of size ``(n, n)`` and return the solver itself """
        raise NotImplementedError(f"{type(self).__name__} does not implement update()")

    def solve(self, rhs):
        r""" Solution :math:`\mathbf{x}` of :math:`\mathbf{A}\mathbf{x}=\mathbf{b}` for the last factorized matrix

        Args:
            rhs: Right-hand side of shape ``(n)``, or ``(n, k)`` to solve for k right-hand sides at once
        """
        raise NotImplementedError(f"{type(self).__name__} does not implement solve()")

    @staticmethod
    def residual(A, x, b):
        r""" Relative residual :math:`\|\mathbf{A}\mathbf{x}-\mathbf{b}\| / \|\mathbf{b}\|` (per column) """
        if x.shape != b.shape:
            raise ValueError(f"Solution {x.shape} and right-hand side {b.shape} must have the same shape")
        return np.linalg.norm(A @ x - b, axis=0) / np.linalg.norm(b, axis=0)
