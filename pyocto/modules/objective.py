"""Objective functions"""
import numpy as np

from ..solvers import solve_equilibrium

try:
    from opt_einsum import contract as einsum
except ModuleNotFoundError:
    from numpy import einsum


def _check_compliance_input(Edof, Ke0, E, dE=None, x=None, K=None):
    """Consistency checks of the compliance input, raising ``ValueError`` with the offending field"""
    Edof = np.atleast_2d(np.asarray(Edof))
    nel, ndofe = Edof.shape

    if x is not None:
        x = np.asarray(x)
        if not (x.ndim == 1 or (x.ndim == 2 and x.shape[1] == 1)):
            raise ValueError(f"\"x\" must be a column vector of length nelem, got shape {x.shape}")
        if x.shape[0] != nel:
            raise ValueError(f"\"x\" ({x.shape[0]}) and \"Edof\" ({nel}) has to have the same number of rows")
    n = nel if x is None else x.shape[0]

    if E is None:
        raise ValueError("\"E\" has to be specified")
    E = np.asarray(E, dtype=float).ravel()
    if E.size != n:
        raise ValueError(f"\"x\" and \"E\" has to have the same size ({n} != {E.size})")

    if dE is not None:
        dE = np.asarray(dE, dtype=float).ravel()
        if dE.size != n:
            raise ValueError(f"\"x\" and \"dE\" has to have the same size ({n} != {dE.size})")

    if Ke0 is None:
        raise ValueError("\"Ke0\" has to be specified")
    Ke0 = np.asarray(Ke0)
    if Ke0.ndim != 2 or Ke0.shape[0] != Ke0.shape[1]:
        raise ValueError(f"\"Ke0\" has to be square, got shape {Ke0.shape}")
    if Ke0.shape[0] != ndofe:
        raise ValueError(f"\"Ke0\" ({Ke0.shape[0]}) has not the same number of DOFs as specified in \"Edof\" ({ndofe})")

    if K is not None:
        ndof = int(Edof.max()) + 1
        if K.ndim != 2 or K.shape[0] != K.shape[1]:
            raise ValueError(f"\"K\" has to be square, got shape {K.shape}")
        if K.shape[0] != ndof:
            raise ValueError(f"Number of DOFs in \"K\" ({K.shape[0]}) and in \"Edof\" ({ndof}) is not equal")
    return Edof, Ke0, E, dE


def element_energy(u, Edof, Ke0):
    r"""Element specific energies :math:`\mathbf{u}_e^\text{T}\mathbf{K}_{e0}\mathbf{u}_e` for all elements"""
    ue = np.asarray(u)[np.asarray(Edof)]
    return einsum("ei,ij,ej->e", ue, Ke0, ue)


def compliance(u, Edof, Ke0, E, dE=None, x=None, K=None):
    r"""Compliance and its sensitivity for given displacements

    The compliance is computed as

    :math:`C = \sum_e E_e \mathbf{u}_e^\text{T}\mathbf{K}_{e0}\mathbf{u}_e`,

    and its derivative with respect to the densities as

    :math:`\frac{\partial C}{\partial x_e} = -\frac{\partial E_e}{\partial x_e}\mathbf{u}_e^\text{T}\mathbf{K}_{e0}
    \mathbf{u}_e`,

    where :math:`\mathbf{u}_e` are the element displacements, solved from :math:`\mathbf{K}\mathbf{u}=\mathbf{f}`.

    Args:
        u: Displacement vector of size ``(ndof)``
        Edof: Element degrees of freedom of size ``(nel, ndofe)``
        Ke0: Element stiffness matrix with unit stiffness
        E: Young's modulus of each element
        dE (optional): Derivative of the Young's modulus with respect to the density; if given, the sensitivity is
          returned as well
        x (optional): Design vector, only used for consistency checks
        K (optional): Global stiffness matrix, only used for consistency checks

    Returns:
        C: Compliance
        dC: Sensitivity of the compliance (only when ``dE`` is given)
    """
    Edof, Ke0, E, dE = _check_compliance_input(Edof, Ke0, E, dE=dE, x=x, K=K)
    ese = element_energy(u, Edof, Ke0)
    C = float(np.dot(E, ese))
    if dE is None:
        return C
    return C, -dE * ese


class Compliance:
    """Compliance evaluator which solves the equilibrium and evaluates :func:`compliance`

    Args:
        solver (optional): Equilibrium solver ``solver(K, F, bc) -> u``. Defaults to
          :func:`pyocto.solvers.solve_equilibrium`.
    """
    def __init__(self, solver=solve_equilibrium):
        self.solver = solver

    def solve(self, K, F, bc):
        if self.solver is None or not callable(self.solver):
            raise RuntimeError(f"{type(self).__name__}: an equilibrium solver has to be available, got {self.solver}")
        return self.solver(K, F, bc)

    def __call__(self, x, E, dE, Edof, Ke0, K, F, bc):
        """Evaluate compliance and sensitivity

        Args:
            x: Physical densities
            E: Young's modulus of each element
            dE: Derivative of the Young's modulus
            Edof: Element degrees of freedom
            Ke0: Element unit stiffness matrix
            K: Global stiffness matrix
            F: Load vector
            bc: Boundary conditions ``[dof, value]``

        Returns:
            C: Compliance
            dC: Sensitivity of the compliance
        """
        _check_compliance_input(Edof, Ke0, E, dE=dE, x=x, K=K)
        if dE is None:
            raise ValueError("\"dE\" has to be specified")
        u = self.solve(K, F, bc)
        return compliance(u, Edof, Ke0, E, dE)
