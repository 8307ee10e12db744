import numpy as np

from .solvers import matrix_is_sparse, matrix_is_symmetric
from .dense import SolverDenseLU, SolverDenseCholesky
from .sparse import SolverSparseLU


def auto_determine_solver(A, issymmetric=None, ispositivedefinite=None):
    """Select a solver for the matrix

    Args:
        A: The matrix
        issymmetric (optional): Override for symmetric matrix (prevents check)
        ispositivedefinite (optional): Manual override for positive definiteness

    Returns:
        LinearSolver which should be 'best' for the matrix
    """
    if A.shape[0] != A.shape[1]:
        raise ValueError(f"Matrix must be square, got shape {A.shape}")

    if matrix_is_sparse(A):
        return SolverSparseLU()

    if issymmetric is None:
        issymmetric = matrix_is_symmetric(A)
    if issymmetric:
        if ispositivedefinite is None:
            # Necessary condition, a failing factorization reveals the rest
            ispositivedefinite = np.all(A.diagonal() > 0)
        if ispositivedefinite:
            return SolverDenseCholesky()
    return SolverDenseLU()
