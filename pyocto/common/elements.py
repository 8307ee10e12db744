"""Element unit matrices for equally sized rectangular elements

All matrices are evaluated for a unit material property (unit Young's modulus, conductivity or density), such that the
global matrices are obtained by scaling them per element. The corner numbering follows
:class:`pyocto.common.mesh.RectangularMesh` (counter-clockwise, starting bottom-left).
"""
import numpy as np

# Natural coordinates of the corners, counter-clockwise
_corners = np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0]])
_gauss = np.array([-1.0, 1.0]) / np.sqrt(3)


def eval_shape_fun(xi: float, eta: float):
    """Bilinear shape functions [N1, N2, N3, N4] at natural coordinates (xi, eta)"""
    return 0.25 * (1 + _corners[:, 0] * xi) * (1 + _corners[:, 1] * eta)


def eval_shape_fun_der(xi: float, eta: float, unitx: float, unity: float):
    """Shape function derivatives in x and y direction of size ``(2, 4)`` for a rectangle of ``unitx`` by ``unity``"""
    dN_dxi = 0.25 * _corners[:, 0] * (1 + _corners[:, 1] * eta)
    dN_deta = 0.25 * _corners[:, 1] * (1 + _corners[:, 0] * xi)
    return np.stack([dN_dxi * 2 / unitx, dN_deta * 2 / unity], axis=0)


def get_B(dN_dx):
    """Gets the 2D strain-displacement relation [ε_x; ε_y; γ_xy]_i = B [u, v]_i

    Args:
        dN_dx: Shape function derivatives [dNi_dxj] of size (#dimensions x #shapefn.)

    Returns:
        B strain-displacement relation of size (3 x 2*#shapefn.)
    """
    n_shapefn = dN_dx.shape[1]
    B = np.zeros((3, 2 * n_shapefn), dtype=dN_dx.dtype)
    B[0, 0::2] = dN_dx[0]
    B[1, 1::2] = dN_dx[1]
    B[2, 0::2] = dN_dx[1]
    B[2, 1::2] = dN_dx[0]
    return B


def get_D(E: float, nu: float, plane: str = "stress"):
    """Get the 2D material constitutive relation for linear elasticity

    Args:
        E: Young's modulus
        nu: Poisson's ratio
        plane: Plane-``stress`` or plane-``strain``

    Returns:
        Material matrix of size (3 x 3)
    """
    if "stress" in plane.lower():
        a = E / (1 - nu * nu)
        return a * np.array([[1, nu, 0], [nu, 1, 0], [0, 0, (1 - nu) / 2]])
    elif "strain" in plane.lower():
        mu = E / (2 * (1 + nu))
        lam = (E * nu) / ((1 + nu) * (1 - 2 * nu))
        c1 = 2 * mu + lam
        return np.array([[c1, lam, 0], [lam, c1, 0], [0, 0, mu]])
    else:
        raise ValueError(f"Only plane-stress or plane-strain, not \"{plane}\"")


def quad_stiffness(unitx: float = 1.0, unity: float = 1.0, nu: float = 0.3, thickness: float = 1.0,
                   plane: str = "stress"):
    """Unit stiffness matrix ``Ke0`` (E = 1) of a bilinear plane elasticity element

    Args:
        unitx (float, optional): Element size in x-direction. Defaults to 1.0.
        unity (float, optional): Element size in y-direction. Defaults to 1.0.
        nu (float, optional): Poisson's ratio. Defaults to 0.3.
        thickness (float, optional): Element thickness. Defaults to 1.0.
        plane (str, optional): Plane ``"stress"`` or plane ``"strain"``. Defaults to ``"stress"``.

    Returns:
        Stiffness matrix of size (8 x 8), dofs ordered as [u1, v1, u2, v2, u3, v3, u4, v4]
    """
    D = get_D(1.0, nu, plane)
    w = thickness * unitx * unity / 4  # Jacobian determinant
    Ke = np.zeros((8, 8))
    for xi in _gauss:
        for eta in _gauss:
            B = get_B(eval_shape_fun_der(xi, eta, unitx, unity))
            Ke += w * B.T @ D @ B
    return Ke


def quad_conduction(unitx: float = 1.0, unity: float = 1.0, thickness: float = 1.0):
    """Unit conduction matrix (scalar field, one dof per node) of a bilinear element, size (4 x 4)"""
    w = thickness * unitx * unity / 4
    Ke = np.zeros((4, 4))
    for xi in _gauss:
        for eta in _gauss:
            dN_dx = eval_shape_fun_der(xi, eta, unitx, unity)
            Ke += w * dN_dx.T @ dN_dx
    return Ke


def quad_mass(unitx: float = 1.0, unity: float = 1.0, thickness: float = 1.0, ndof_per_node: int = 2):
    """Consistent unit mass matrix ``Me0`` (unit density) of a bilinear element

    Args:
        unitx (float, optional): Element size in x-direction. Defaults to 1.0.
        unity (float, optional): Element size in y-direction. Defaults to 1.0.
        thickness (float, optional): Element thickness. Defaults to 1.0.
        ndof_per_node (int, optional): Amount of dofs per node. Defaults to 2.

    Returns:
        Mass matrix of size (4*ndof_per_node x 4*ndof_per_node)
    """
    w = thickness * unitx * unity / 4
    n = 4 * ndof_per_node
    Me = np.zeros((n, n))
    Nmat = np.zeros((ndof_per_node, n))
    for xi in _gauss:
        for eta in _gauss:
            N = eval_shape_fun(xi, eta)
            for d in range(4):
                Nmat[:, ndof_per_node * d: ndof_per_node * (d + 1)] = np.identity(ndof_per_node) * N[d]
            Me += w * Nmat.T @ Nmat
    return Me
