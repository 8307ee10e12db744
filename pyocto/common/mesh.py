from typing import Union, Iterable

from numpy.typing import NDArray
import numpy as np

IndexType = Union[int, Iterable[int], NDArray[np.integer]]


def polygon_area(ex: np.ndarray, ey: np.ndarray):
    """Area of polygon(s) by the shoelace formula

    Args:
        ex: Corner x-coordinates of size ``(..., #corners)``
        ey: Corner y-coordinates of size ``(..., #corners)``

    Returns:
        Area(s), positive for counter-clockwise corner ordering
    """
    return 0.5 * np.sum(ex * np.roll(ey, -1, axis=-1) - np.roll(ex, -1, axis=-1) * ey, axis=-1)


class ElementMesh:
    """ Unstructured collection of 2D elements given by their corner coordinates and degrees of freedom

    Attributes:
        Ex: Element x-coordinates, one row per element ``(nel, #corners)``
        Ey: Element y-coordinates, one row per element ``(nel, #corners)``
        Edof: Element degrees of freedom (zero-based), one row per element ``(nel, #dofs per element)``
    """
    def __init__(self, Ex, Ey, Edof):
        self.Ex = np.atleast_2d(np.asarray(Ex, dtype=float))
        self.Ey = np.atleast_2d(np.asarray(Ey, dtype=float))
        self.Edof = np.atleast_2d(np.asarray(Edof))

        if self.Ex.shape != self.Ey.shape:
            raise ValueError(f"\"Ex\" {self.Ex.shape} and \"Ey\" {self.Ey.shape} has to have the same size")
        if self.Edof.shape[0] != self.Ex.shape[0]:
            raise ValueError(f"\"Ex\" and \"Ey\" has to have nelem ({self.Edof.shape[0]}) rows")
        if not np.issubdtype(self.Edof.dtype, np.integer):
            if np.any(self.Edof != np.round(self.Edof)):
                raise ValueError("\"Edof\" must contain integer dof numbers")
            self.Edof = self.Edof.astype(int)
        if self.Edof.size > 0 and self.Edof.min() < 0:
            raise ValueError("\"Edof\" must contain non-negative (zero-based) dof numbers")

    @property
    def nel(self):
        """Number of elements"""
        return self.Edof.shape[0]

    @property
    def ndofe(self):
        """Number of dofs per element"""
        return self.Edof.shape[1]

    @property
    def ndof(self):
        """Number of dofs referenced by the connectivity"""
        return int(self.Edof.max()) + 1

    @property
    def centroids(self):
        """Element centroids as the mean of the corner coordinates, size ``(nel, 2)``"""
        return np.stack([self.Ex.mean(axis=1), self.Ey.mean(axis=1)], axis=-1)

    @property
    def element_areas(self):
        return np.abs(polygon_area(self.Ex, self.Ey))


class RectangularMesh(ElementMesh):
    r""" Structured mesh of equally sized rectangular elements

    Node and element numbering is row-wise (x runs fastest). The corners of each element are ordered
    counter-clockwise, and so are its degrees of freedom

    ::

            [u7,u8]      [u5,u6]
             4 o-----------o 3
               |           |
               |     e     |  unity
               |           |
             1 o-----------o 2
            [u1,u2] unitx [u3,u4]

    Attributes:
        nelx, nely: Number of elements in x- and y-direction
        nodes: Helper array for node slicing of size ``(nelx+1, nely+1)``
        elements: Helper array for element slicing of size ``(nelx, nely)``
    """

    # Corner offsets (i, j) in counter-clockwise order
    node_numbering = [(0, 0), (1, 0), (1, 1), (0, 1)]

    def __init__(self, nelx: int, nely: int, unitx: float = 1.0, unity: float = 1.0, ndof_per_node: int = 2):
        """Create a structured 2D mesh

        Args:
            nelx (int): Number of elements in x-direction
            nely (int): Number of elements in y-direction
            unitx (float, optional): Element size in x-direction. Defaults to 1.0.
            unity (float, optional): Element size in y-direction. Defaults to 1.0.
            ndof_per_node (int, optional): Number of degrees of freedom per node (2 for plane elasticity, 1 for scalar
              fields). Defaults to 2.
        """
        if nelx < 1 or nely < 1:
            raise ValueError(f"Number of elements must be positive, got ({nelx}, {nely})")
        if unitx <= 0 or unity <= 0:
            raise ValueError("Element size needs to be positive")
        self.nelx, self.nely = nelx, nely
        self.unitx, self.unity = unitx, unity
        self.ndof_per_node = ndof_per_node

        self.nnodes = (self.nelx + 1) * (self.nely + 1)

        eli, elj = np.meshgrid(np.arange(self.nelx), np.arange(self.nely), indexing="ij")
        self.elements = self.get_elemnumber(eli, elj)

        ndi, ndj = np.meshgrid(np.arange(self.nelx + 1), np.arange(self.nely + 1), indexing="ij")
        self.nodes = self.get_nodenumber(ndi, ndj)

        # Node connectivity, ordered by element number
        el = np.arange(self.nelx * self.nely)
        elx, ely = el % self.nelx, el // self.nelx
        self.conn = np.stack([self.get_nodenumber(elx + di, ely + dj) for di, dj in self.node_numbering], axis=-1)

        pos = self.get_node_position()
        Edof = np.reshape(self.get_dofnumber(self.conn), (self.conn.shape[0], -1))
        super().__init__(pos[0][self.conn], pos[1][self.conn], Edof)

    @property
    def element_size(self):
        return np.array([self.unitx, self.unity])

    @property
    def domain_size(self):
        return np.array([self.nelx * self.unitx, self.nely * self.unity])

    @property
    def ndof(self):
        return self.nnodes * self.ndof_per_node

    def get_elemnumber(self, eli: IndexType, elj: IndexType):
        """Gets the element number(s) for element(s) with given Cartesian indices (i, j)"""
        return elj * self.nelx + eli

    def get_nodenumber(self, nodi: IndexType, nodj: IndexType):
        """Gets the node number(s) for nodes with given Cartesian indices (i, j)"""
        return nodj * (self.nelx + 1) + nodi

    def get_node_indices(self, nod_idx: IndexType = None):
        """Gets the Cartesian index (i, j) for given node number(s)"""
        if nod_idx is None:
            nod_idx = np.arange(self.nnodes)
        nod_idx = np.asarray(nod_idx)
        return np.stack([nod_idx % (self.nelx + 1), nod_idx // (self.nelx + 1)], axis=0)

    def get_node_position(self, nod_idx: IndexType = None):
        ij = self.get_node_indices(nod_idx)
        return (self.element_size * ij.T).T

    def get_dofnumber(self, nod_idx: IndexType, dof_idx: IndexType = None):
        """Gets the degree of freedom number(s) for node(s)

        Args:
            nod_idx : Node number; can be integer or array
            dof_idx (optional) : Dof index to request (e.g. `0` for x, `[0, 1]` for x and y) (default is all dofs)

        Returns:
            The dof number(s) of shape ``(*shape(nod_idx), *shape(dof_idx))``
        """
        ndof = self.ndof_per_node
        if dof_idx is None:
            dof_idx = np.arange(ndof)
        nod_idx, dof_idx = np.asarray(nod_idx), np.asarray(dof_idx)
        if np.any(dof_idx >= ndof):
            raise ValueError(f"Dof index must be smaller than the number of dofs per node ({ndof})")
        if dof_idx.ndim == 0 or nod_idx.ndim == 0:
            return nod_idx * ndof + dof_idx
        return nod_idx[..., np.newaxis] * ndof + dof_idx
