import numpy as np

from ..utils import _parse_column, _parse_pairs
from .auto_determine import auto_determine_solver


def solve_equilibrium(K, F, bc, solver=None):
    r"""Solve the static equilibrium :math:`\mathbf{K}\mathbf{u} = \mathbf{f}` with Dirichlet boundary conditions

    The system is partitioned in free (f) and prescribed (p) degrees of freedom. The prescribed values are moved to
    the right-hand side, and the reduced system :math:`\mathbf{K}_{ff}\mathbf{u}_f = \mathbf{f}_f -
    \mathbf{K}_{fp}\mathbf{u}_p` is solved.

    Args:
        K: Square (dense or sparse) stiffness matrix of size ``(ndof, ndof)``
        F: Load vector of size ``(ndof)``
        bc: Boundary conditions, one row ``[dof, value]`` per prescribed degree of freedom
        solver (optional): A :class:`LinearSolver` used for the free block; determined automatically if not given

    Returns:
        Displacement vector of size ``(ndof)``

    Raises:
        numpy.linalg.LinAlgError or RuntimeError: When the free block of the stiffness matrix is singular
    """
    ndof = K.shape[0]
    if K.ndim != 2 or K.shape[1] != ndof:
        raise ValueError(f"\"K\" has to be square, got shape {K.shape}")
    F = _parse_column(F, "F", length=ndof)
    bc_dofs, bc_vals = _parse_pairs(bc, "bc")
    if bc_dofs.size > 0 and bc_dofs.max() >= ndof:
        raise ValueError(f"\"bc\" refers to dof {bc_dofs.max()}, but \"K\" only has {ndof} dofs")

    u = np.zeros(ndof)
    u[bc_dofs] = bc_vals
    fdof = np.setdiff1d(np.arange(ndof), bc_dofs)
    if fdof.size == 0:
        return u

    Kff = K[fdof, :][:, fdof]
    rhs = F[fdof]
    if bc_dofs.size > 0 and np.any(bc_vals != 0):
        rhs = rhs - np.asarray(K[fdof, :][:, bc_dofs] @ bc_vals).ravel()

    if solver is None:
        solver = auto_determine_solver(Kff)
    solver.update(Kff)
    u[fdof] = solver.solve(rhs)
    return u
