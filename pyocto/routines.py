from typing import Callable

import numpy as np

from .common.problem import Problem
from .common.optimizers import OC
from .modules.assembly import AssembleStiffness
from .modules.interpolation import get_interpolation
from .modules.objective import Compliance
from .solvers import solve_equilibrium


def compliance_response(problem: Problem, interpolation=None, param=None, solver=solve_equilibrium):
    """Creates a function ``fn(x) -> (C, dC)`` which evaluates the compliance of ``problem`` for design ``x``

    Args:
        problem: The problem definition
        interpolation (optional): Material interpolation law. Defaults to linear interpolation.
        param (optional): Parameter of the interpolation law
        solver (optional): Equilibrium solver ``solver(K, F, bc) -> u``

    Returns:
        The compliance function
    """
    interp = get_interpolation(interpolation)
    assemble = AssembleStiffness(problem.Edof, problem.Ke0, ndof=problem.ndof)
    objective = Compliance(solver=solver)

    def fn(x):
        E, dE = interp(x, problem.E0, problem.Emin, param)
        K = assemble(E)
        return objective(x, E, dE, problem.Edof, problem.Ke0, K, problem.F, problem.bc)
    return fn


def finite_difference(fn: Callable, x: np.ndarray, dx: float = 1e-6, tol: float = 1e-5, relative_dx: bool = False,
                      keep_zero_structure: bool = False, verbose: bool = True):
    """Performs a finite difference check on the sensitivities of a scalar function

    Each variable is perturbed in both directions and the central difference is compared to the analytical
    sensitivity.

    Args:
        fn: Function ``fn(x) -> (f, dfdx)`` returning the function value and its sensitivities, *e.g.* the result of
          :func:`compliance_response`
        x: Design vector around which the sensitivities are checked

    Keyword Args:
        dx: Perturbation size
        tol: Tolerance on the relative error
        relative_dx: Use a relative perturbation size or not
        keep_zero_structure: If ``True`` variables that are ``0`` are not perturbed
        verbose: Print the comparison of each variable to console

    Returns:
        df_an: Analytical sensitivities
        df_fd: Finite difference sensitivities (``nan`` for variables that are not perturbed)
        n_failed: Number of variables where the relative error exceeds the tolerance
    """
    x = np.array(x, dtype=float)
    f0, df_an = fn(x)
    df_an = np.asarray(df_an, dtype=float).ravel()
    if df_an.size != x.size:
        raise ValueError(f"Sensitivity size ({df_an.size}) does not match the design size ({x.size})")

    if verbose:
        print(f'Starting finite difference with dx = {dx}, and tol = {tol}')
        print(f"f0 = {f0}")

    df_fd = np.full(x.size, np.nan)
    n_failed = 0
    for i in range(x.size):
        x0 = x[i]
        if x0 == 0 and keep_zero_structure:
            continue
        sf = abs(x0) if (relative_dx and x0 != 0) else 1.0  # Scale factor

        x[i] = x0 + dx * sf
        fp = fn(x)[0]
        x[i] = x0 - dx * sf
        fm = fn(x)[0]
        x[i] = x0

        df_fd[i] = (fp - fm) / (2 * dx * sf)

        if abs(df_an[i]) == 0:
            error = abs(df_fd[i] - df_an[i])
        else:
            error = abs(df_fd[i] - df_an[i]) / max(abs(df_fd[i]), abs(df_an[i]))
        if error > tol:
            n_failed += 1

        if verbose or error > tol:
            print("δf/δx     i = %i \tAn :% .3e \tFD : % .3e \tError: % .3e %s"
                  % (i, df_an[i], df_fd[i], error, "<--*" if error > tol else ""))

    if verbose:
        print(f"-- Number of finite difference values beyond tolerance ({tol}) = {n_failed} / {x.size}")
    return df_an, df_fd, n_failed


def minimize_oc(problem: Problem, vfrac: float, maxiter: int = 50, abstol: float = 1e-2, gradtol: float = 1e-6,
                verbosity: int = 2, **kwargs):
    """Execute compliance minimization using the OC-method

    Args:
        problem: The problem definition
        vfrac: Volume fraction constraint

    Keyword Args:
        maxiter: Maximum number of iterations
        abstol: Stopping criterium for the maximum absolute design change
        gradtol: Stopping criterium for the norm of the sensitivities of the free design variables
        verbosity: 0 - No prints, 1 - Only convergence message, 2 - Convergence and iteration info
        **kwargs: Other keyword arguments are passed to :class:`pyocto.OC`, *e.g.* ``interpolation``, ``filter``,
          ``move`` or ``callback``

    Returns:
        x: The final design
        k: The number of iterations performed
    """
    oc = OC(problem, vfrac, maxiter=maxiter, abstol=abstol, gradtol=gradtol, verbosity=verbosity, **kwargs)
    res = oc.optimize()
    return res.x, res.iterations
