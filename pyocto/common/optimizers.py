from abc import ABC, abstractmethod
from enum import Enum
from typing import NamedTuple, List
import warnings

import numpy as np
import scipy.sparse as sps

from .problem import Problem
from ..modules.assembly import AssembleStiffness
from ..modules.filter import Filter
from ..modules.interpolation import get_interpolation
from ..modules.objective import Compliance
from ..solvers import solve_equilibrium
from ..utils import _parse_to_list


class Status(Enum):
    """State of an optimizer"""
    INITIALIZING = "initializing"
    ITERATING = "iterating"
    CONVERGED = "change tolerance"
    MAX_ITER = "max iterations"
    GRAD_CONVERGED = "gradient tolerance"

    @property
    def is_terminal(self):
        return self not in (Status.INITIALIZING, Status.ITERATING)


class IterationState(NamedTuple):
    """Result of a single design iteration"""
    iteration: int
    x: np.ndarray  # Committed (physical) design
    x_old: np.ndarray  # Design at the start of the iteration
    objective: float
    sensitivity: np.ndarray  # (Filtered) sensitivity used for the update
    volume_fraction: float
    change: float  # Maximum absolute design change
    grad_norm: float  # Norm of the sensitivity of the free design variables
    lagrange: float = np.nan  # Lagrange multiplier of the volume constraint
    bisections: int = 0  # Number of bisection steps


class OptimizationResult(NamedTuple):
    x: np.ndarray
    iterations: int
    status: Status
    history: List[IterationState]

    @property
    def objectives(self):
        return np.array([s.objective for s in self.history])


class Optimizer(ABC):
    """General abstract optimizer for a topology optimization :class:`Problem`"""
    def __init__(self,
                 problem: Problem,
                 maxiter: int = 50,
                 abstol: float = 1e-2,
                 gradtol: float = 1e-6,
                 verbosity: int = 0,
                 callback=None,
    ):
        """Initialize general optimization object

        Args:
            problem (Problem): The problem definition
            maxiter (int, optional): Maximum number of iterations. Defaults to 50.
            abstol (float, optional): Stopping criterium on the maximum absolute design change. Defaults to 1e-2.
            gradtol (float, optional): Stopping criterium on the norm of the sensitivities of the free design
              variables. Defaults to 1e-6.
            verbosity (int, optional): Level of information to print. Defaults to 0.
              0 - No prints
              1 - Only convergence message
              2 - Convergence and iteration info
              3 - Additional info on the design update
            callback (optional): One or more callables ``callback(state, optimizer)`` called after each iteration,
              e.g. :class:`pyocto.PlotDensity`
        """
        if not isinstance(problem, Problem):
            raise TypeError(f"Expected a Problem, got {type(problem).__name__}")
        if maxiter < 1:
            raise ValueError(f"maxiter must be at least 1, got {maxiter}")
        self.problem = problem
        self.maxiter = int(maxiter)
        self.abstol = abstol
        self.gradtol = gradtol
        self.verbosity = verbosity
        self.callbacks = _parse_to_list(callback)
        for cb in self.callbacks:
            if not callable(cb):
                raise TypeError(f"Callback must be callable, not {type(cb).__name__}")

        self.x = problem.x0.copy()
        self.iter = 0
        self.status = Status.INITIALIZING
        self.history = []

    def check_stopping_criteria(self, state: IterationState):
        """Stopping criteria, of which the first satisfied one is returned (or None to continue)

        The order is fixed: maximum iterations, design change, and gradient norm.
        """
        if state.iteration >= self.maxiter:
            return Status.MAX_ITER
        if self.problem.free_elements.size == 0:
            # Nothing to optimize: the gradient over the free design variables vanishes
            return Status.GRAD_CONVERGED
        if state.change < self.abstol:
            return Status.CONVERGED
        if state.grad_norm < self.gradtol:
            return Status.GRAD_CONVERGED
        return None

    def print_iteration_info(self, state: IterationState):
        """Print iteration information"""
        print("It.: {0:4d} Obj.: {1:3.3e} Vol.frac.: {2:1.2f} Ch.: {3:3.3e} N.: {4:3.3e}".format(
            state.iteration, state.objective, state.volume_fraction, state.change, state.grad_norm))
        if self.verbosity >= 3:
            print(f"  | λ = {state.lagrange:.4e} ({state.bisections} bisections), "
                  f"x = [{np.min(state.x):.2e}…{np.max(state.x):.2e}]")

    def optimize(self) -> OptimizationResult:
        """Iterate until one of the stopping criteria is satisfied

        Returns:
            OptimizationResult with the final design, the number of iterations, the reason of termination and the
            iteration history
        """
        self.status = Status.ITERATING
        while True:
            state = self.step(self.x)

            # Commit
            self.x = state.x
            self.iter = state.iteration
            self.history.append(state)

            if self.verbosity >= 2:
                self.print_iteration_info(state)
            for cb in self.callbacks:
                cb(state, self)

            stop = self.check_stopping_criteria(state)
            if stop is not None:
                self.status = stop
                if self.verbosity >= 1:
                    print(f"Stop criteria: {stop.value}")
                break
        return OptimizationResult(self.x.copy(), self.iter, self.status, list(self.history))

    @abstractmethod
    def step(self, x: np.ndarray) -> IterationState:
        """ Performs a single design iteration starting from design ``x``, without modifying the optimizer state

        Args:
            x (np.ndarray): The design to start from

        Returns:
            IterationState of the new design
        """
        raise NotImplementedError()


class OC(Optimizer):
    def __init__(self,
                 problem: Problem,
                 vfrac: float,
                 interpolation=None,
                 filter: Filter = None,
                 param=None,
                 move: float = 0.2,
                 eta: float = 0.5,
                 ltol: float = 1e-4,
                 l1init: float = 0.0,
                 l2init: float = 1e5,
                 objective=None,
                 solver=solve_equilibrium,
                 matrix_type=sps.csr_matrix,
                 **kwargs,
    ):
        r"""Optimality criteria optimization of the compliance with a volume constraint

        Each iteration interpolates the material properties, assembles the stiffness matrix, solves the equilibrium,
        evaluates the compliance and its sensitivity, filters, and updates the design by

        :math:`x_e^{new} = \text{clamp}\left(x_e \left(\frac{\max(0, -\partial C / \partial x_e)}{\lambda\,
        \partial V / \partial x_e}\right)^\eta, \max(0, x_e - m), \min(1, x_e + m) \right)`,

        where the Lagrange multiplier :math:`\lambda` is found by bisection such that the volume constraint is met.

        Args:
            problem (Problem): The problem definition
            vfrac (float): Volume fraction constraint (``0 <= vfrac <= 1``)

        Keyword Args:
            interpolation (optional): Material interpolation law (:class:`pyocto.Interpolation`, name or callable
              ``f(x, E0, Emin, param) -> (E, dE)``). Defaults to linear interpolation.
            filter (Filter, optional): :class:`pyocto.SensitivityFilter` or :class:`pyocto.DensityFilter`. When not set
              up yet, it is set up from the element centroids. Defaults to no filtering.
            param (optional): Parameter passed to the interpolation law
            move (float): Move limit on the absolute variable change per iteration. Defaults to 0.2.
            eta (float): Numerical damping exponent. Defaults to 0.5.
            ltol (float): Tolerance on the Lagrange multiplier bisection. Defaults to 1e-4.
            l1init (float): Lower bound of the Lagrange multiplier. Defaults to 0.
            l2init (float): Upper bound of the Lagrange multiplier. Defaults to 1e5.
            objective (optional): Objective evaluator ``objective(x, E, dE, Edof, Ke0, K, F, bc) -> (C, dC)``.
              Defaults to :class:`pyocto.Compliance` using ``solver``.
            solver (optional): Equilibrium solver ``solver(K, F, bc) -> u``. Defaults to
              :func:`pyocto.solvers.solve_equilibrium`.
            matrix_type (optional): Type of the assembled stiffness matrix. Defaults to ``scipy.sparse.csr_matrix``.
            **kwargs: Other keyword arguments are passed to :class:`Optimizer` (``maxiter``, ``abstol``,
              ``gradtol``, ``verbosity``, ``callback``)
        """
        super().__init__(problem, **kwargs)

        if not np.isscalar(vfrac):
            raise ValueError("\"vfrac\" must be a scalar")
        if vfrac < 0 or vfrac > 1:
            raise ValueError(f"\"vfrac\" must be within 0 <= vfrac <= 1, got {vfrac}")
        if move <= 0:
            raise ValueError(f"Move limit must be positive, got {move}")
        if ltol <= 0 or l2init <= l1init:
            raise ValueError(f"Invalid bisection settings: l1init={l1init}, l2init={l2init}, ltol={ltol}")
        self.vfrac = vfrac

        # OC parameters
        self.move = move
        self.eta = eta
        self.ltol = ltol
        self.l1init = l1init
        self.l2init = l2init

        # Young's modulus by interpolation
        self.interpolation = get_interpolation(interpolation)
        self.param = param

        # Filter setup
        if filter is not None and not isinstance(filter, Filter):
            raise TypeError(f"Filter must be a SensitivityFilter or DensityFilter, not {type(filter).__name__}")
        self.filter = filter
        if self.filter is not None and not self.filter.is_setup:
            self.filter.setup(problem.centroids)
        if self.filter is not None and self.filter.H.shape[0] != problem.nel:
            raise ValueError(f"Filter size ({self.filter.H.shape[0]}) does not match the number of elements "
                             f"({problem.nel})")

        # Objective
        if objective is None:
            if solver is None:
                raise RuntimeError("An equilibrium solver has to be available")
            objective = Compliance(solver=solver)
        if not callable(objective):
            raise TypeError(f"Objective must be callable, not {type(objective).__name__}")
        self.objective = objective

        self.assemble = AssembleStiffness(problem.Edof, problem.Ke0, ndof=problem.ndof, matrix_type=matrix_type)

        # Constraint
        self.dV = np.ones(problem.nel) * problem.Ve0

        # Filter volume derivatives once for the density filter
        if self.filter is not None and self.filter.filters_density:
            self.dV = self.filter.sensitivity(self.x, self.dV)

    @property
    def uses_density_filter(self):
        return self.filter is not None and self.filter.filters_density

    def physical_density(self, x_new: np.ndarray):
        """Physical densities for the raw design ``x_new``, with prescribed values enforced"""
        x_new = self.problem.apply_prescribed(x_new)
        if self.uses_density_filter:
            x_phys = self.filter.density(x_new)
        else:
            x_phys = x_new
        return self.problem.apply_prescribed(x_phys)

    def update(self, x: np.ndarray, dfdx: np.ndarray):
        """Design update by the optimality criteria method

        Args:
            x: Current design
            dfdx: (Filtered) sensitivity of the objective

        Returns:
            x_phys: New physical design
            lmid: Lagrange multiplier of the volume constraint
            n: Number of bisection steps
        """
        maxdfdx = np.max(dfdx) if dfdx.size > 0 else 0.0
        if maxdfdx > 1e-15:
            warnings.warn(f"OC only works for negative sensitivities: max(dfdx) = {maxdfdx}. Clipping positive values.")
        fac = np.maximum(0, -dfdx) / self.dV

        # Move limits within the bounds [0, 1]
        lb = np.maximum(0.0, x - self.move)
        ub = np.minimum(1.0, x + self.move)

        target = self.vfrac * self.problem.V0
        l1, l2 = self.l1init, self.l2init
        lmid = 0.5 * (l1 + l2)
        x_phys = self.physical_density(x)
        n = 0
        while l2 - l1 > self.ltol:
            lmid = 0.5 * (l1 + l2)
            x_new = np.clip(x * (fac / lmid) ** self.eta, lb, ub)
            x_phys = self.physical_density(x_new)
            l1, l2 = (lmid, l2) if np.sum(x_phys * self.problem.Ve0) - target > 0 else (l1, lmid)
            n += 1
        return x_phys, lmid, n

    def step(self, x: np.ndarray) -> IterationState:
        p = self.problem
        x_old = p.apply_prescribed(x)

        # Interpolate material properties
        E, dE = self.interpolation(x_old, p.E0, p.Emin, self.param)

        # Assemble stiffness matrix
        K = self.assemble(E)

        # Objective function and sensitivity analysis
        obj, dobj = self.objective(x_old, E, dE, p.Edof, p.Ke0, K, p.F, p.bc)
        dobj = np.asarray(dobj, dtype=float).ravel()

        # Apply filter
        if self.filter is not None:
            dobj = self.filter.sensitivity(x_old, dobj)

        # Design update by the optimality criteria method
        x_new, lmid, nbisect = self.update(x_old, dobj)

        change = float(np.max(np.abs(x_new - x_old))) if x_new.size > 0 else 0.0
        free = p.free_elements
        grad_norm = float(np.linalg.norm(dobj[free])) if free.size > 0 else 0.0

        return IterationState(
            iteration=self.iter + 1,
            x=x_new,
            x_old=x_old,
            objective=float(obj),
            sensitivity=dobj,
            volume_fraction=float(p.volume_fraction(x_new)),
            change=change,
            grad_norm=grad_norm,
            lagrange=lmid,
            bisections=nbisect,
        )
