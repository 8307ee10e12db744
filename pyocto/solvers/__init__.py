from .solvers import LinearSolver, matrix_is_sparse, matrix_is_symmetric
from .dense import SolverDenseLU, SolverDenseCholesky
from .sparse import SolverSparseLU
from .auto_determine import auto_determine_solver
from .equilibrium import solve_equilibrium

__all__ = ['matrix_is_sparse', 'matrix_is_symmetric',
           'LinearSolver', 'SolverDenseLU', 'SolverDenseCholesky', 'SolverSparseLU',
           'auto_determine_solver', 'solve_equilibrium',
           ]
