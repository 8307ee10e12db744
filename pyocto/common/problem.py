import numpy as np

from .mesh import ElementMesh, polygon_area
from ..utils import _parse_column, _parse_pairs


class Problem:
    r"""Definition of a compliance topology optimization problem

    Holds the immutable data of one optimization run: the mesh, element matrices, loads, boundary conditions, design
    prescriptions and material parameters. All arguments are checked on construction, such that inconsistent input is
    reported before any computation starts.

    Degrees of freedom and element indices are zero-based.

    Args:
        x0: Initial design vector of size ``(nel)`` with :math:`0 \leq x_i \leq 1`
        Ke0: Element stiffness matrix with unit stiffness (:math:`E=1`), size ``(ndofe, ndofe)``
        Edof: Element degrees of freedom, one row ``[u1, u2, ..., un]`` for each element
        Ex: Element x-coordinates, one row for each element
        Ey: Element y-coordinates, one row for each element
        F: Global load vector of size ``(ndof)``
        bc: Boundary conditions, one row ``[dof, value]`` for each prescribed degree of freedom

    Keyword Args:
        xp: Prescribed design variables, one row ``[e, value]`` for each element ``e`` with a fixed value
        E0: Young's modulus of the base material. Defaults to 1.0.
        Emin: Minimum Young's modulus (:math:`0 < E_{min} < E_0`). Defaults to 1e-9.
        Ve0: Volume of a single element. Defaults to the area of the first element.
        V0: Volume of the design domain. Defaults to ``nel * Ve0``.
        Me0: Element mass matrix with unit mass (optional)
    """
    def __init__(self, x0, Ke0, Edof, Ex, Ey, F, bc, xp=None, E0: float = 1.0, Emin: float = 1e-9,
                 Ve0: float = None, V0: float = None, Me0=None):
        # Design parameters
        x0 = _parse_column(x0, "x0")
        if np.any(x0 < 0) or np.any(x0 > 1):
            raise ValueError("\"x0\" must be within 0 <= x0 <= 1")
        nel = x0.size

        # Unit stiffness matrix
        if Ke0 is None:
            raise ValueError("\"Ke0\" has to be specified")
        Ke0 = np.asarray(Ke0, dtype=float)
        if Ke0.ndim != 2 or Ke0.shape[0] != Ke0.shape[1]:
            raise ValueError(f"\"Ke0\" has to be square, got shape {Ke0.shape}")
        ndofe = Ke0.shape[0]

        if Me0 is not None:
            Me0 = np.asarray(Me0, dtype=float)
            if Me0.shape != Ke0.shape:
                raise ValueError(f"\"Me0\" {Me0.shape} must have the same shape as \"Ke0\" {Ke0.shape}")

        # Element degrees of freedom
        if Edof is None:
            raise ValueError("\"Edof\" has to be specified")
        Edof = np.atleast_2d(np.asarray(Edof))
        if Edof.shape[0] != nel:
            raise ValueError(f"\"Edof\" has to have nelem ({nel}) rows, got {Edof.shape[0]}")
        if Edof.shape[1] != ndofe:
            raise ValueError(f"\"Edof\" has to have ndofe ({ndofe}) columns, got {Edof.shape[1]}")

        # Element coordinates
        if Ex is None:
            raise ValueError("\"Ex\" has to be specified")
        if Ey is None:
            raise ValueError("\"Ey\" has to be specified")
        self.mesh = ElementMesh(Ex, Ey, Edof)
        ndof = self.mesh.ndof

        # Boundary conditions
        bc_dofs, bc_vals = _parse_pairs(bc, "bc")
        if bc_dofs.size == 0:
            raise ValueError("\"bc\" has to have at least 1 row")
        if bc_dofs.max() >= ndof:
            raise ValueError(f"\"bc\" refers to dof {bc_dofs.max()}, but \"Edof\" only has {ndof} dofs")
        if np.unique(bc_dofs).size != bc_dofs.size:
            raise ValueError("\"bc\" contains duplicate dofs")

        # Load vector
        F = _parse_column(F, "F")
        if F.size != ndof:
            raise ValueError(f"\"F\" must have same number of degrees of freedom ({ndof}) as specified in \"Edof\"")

        # Prescribed design parameters
        xp_idx, xp_val = _parse_pairs(xp, "xp")
        if xp_idx.size > 0:
            if xp_idx.max() >= nel:
                raise ValueError(f"\"xp\" refers to element {xp_idx.max()}, but there are only {nel} elements")
            if np.any(xp_val < 0) or np.any(xp_val > 1):
                raise ValueError("\"xp\" values must be within 0 <= xp <= 1")

        # Material
        if not E0 > 0:
            raise ValueError(f"\"E0\" must be positive, got {E0}")
        if not 0 < Emin < E0:
            raise ValueError(f"\"Emin\" must be within 0 < Emin < E0, got {Emin}")

        # Volume
        if Ve0 is None:
            Ve0 = float(abs(polygon_area(self.mesh.Ex[0], self.mesh.Ey[0])))
        if not Ve0 > 0:
            raise ValueError(f"\"Ve0\" must be positive, got {Ve0}")
        if V0 is None:
            V0 = nel * Ve0
        if not V0 > 0:
            raise ValueError(f"\"V0\" must be positive, got {V0}")

        self.x0 = x0
        self.Ke0 = Ke0
        self.Me0 = Me0
        self.F = F
        self.bc_dofs, self.bc_vals = bc_dofs, bc_vals
        self.xp_idx, self.xp_val = xp_idx, xp_val
        self.E0, self.Emin = float(E0), float(Emin)
        self.Ve0, self.V0 = float(Ve0), float(V0)

        self.free_elements = np.setdiff1d(np.arange(nel), xp_idx)
        self.free_dofs = np.setdiff1d(np.arange(ndof), bc_dofs)

        # Make sure prescribed values are prescribed in the initial design
        self.x0 = self.apply_prescribed(self.x0)

    @property
    def Edof(self):
        return self.mesh.Edof

    @property
    def Ex(self):
        return self.mesh.Ex

    @property
    def Ey(self):
        return self.mesh.Ey

    @property
    def bc(self):
        """Boundary conditions as ``(nbc, 2)`` array of ``[dof, value]``"""
        return np.stack([self.bc_dofs.astype(float), self.bc_vals], axis=-1)

    @property
    def nel(self):
        return self.mesh.nel

    @property
    def ndofe(self):
        return self.mesh.ndofe

    @property
    def ndof(self):
        return self.mesh.ndof

    @property
    def centroids(self):
        return self.mesh.centroids

    def apply_prescribed(self, x: np.ndarray):
        """Returns a copy of ``x`` with the prescribed design variables set to their prescribed values"""
        x = np.array(x, dtype=float)
        if self.xp_idx.size > 0:
            x[self.xp_idx] = self.xp_val
        return x

    def volume_fraction(self, x: np.ndarray):
        """Current volume fraction of design ``x``"""
        return np.sum(x * self.Ve0) / self.V0

    @classmethod
    def from_mesh(cls, mesh: ElementMesh, x0, Ke0, F, bc, **kwargs):
        """Create a problem using the coordinates and connectivity of a mesh

        Args:
            mesh: The element mesh, *e.g.* a :class:`pyocto.RectangularMesh`
            x0: Initial design, scalar values are expanded to all elements
            Ke0: Element unit stiffness matrix
            F: Global load vector
            bc: Boundary conditions ``[dof, value]``
            **kwargs: Other keyword arguments are passed to :class:`Problem`
        """
        x0 = np.asarray(x0, dtype=float)
        if x0.ndim == 0:
            x0 = x0 * np.ones(mesh.nel)
        if "Ve0" not in kwargs:
            kwargs["Ve0"] = float(mesh.element_areas[0])
        return cls(x0, Ke0, mesh.Edof, mesh.Ex, mesh.Ey, F, bc, **kwargs)
