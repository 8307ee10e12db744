"""Assembly of global matrices from scaled element matrices"""
import sys

import numpy as np
import scipy.sparse as sps


class AssembleGeneral:
    r"""Assembles a matrix according to element scaling :math:`\mathbf{A} = \sum_e x_e \mathbf{A}_e`

    All elements share the same element matrix :math:`\mathbf{A}_e`, which is scattered into the global matrix at the
    degrees of freedom of each element. Entries of dofs shared by multiple elements accumulate the contributions of all
    incident elements. The matrix is rebuilt completely on every call.

    Args:
        Edof: Element degrees of freedom (zero-based) of size ``(nel, ndofe)``
        element_matrix: The element matrix :math:`\mathbf{A}_e` of size ``(ndofe, ndofe)``
        ndof (int, optional): Size of the global matrix. Defaults to the number of dofs referenced in ``Edof``.
        matrix_type (optional): The matrix type to construct. This is a constructor which must accept the arguments
          ``matrix_type((vals, (row_idx, col_idx)), shape=(n, n))``, or ``numpy.ndarray`` for a dense matrix.
          Defaults to ``scipy.sparse.csr_matrix``.
    """

    def __init__(self, Edof, element_matrix, ndof: int = None, matrix_type: type = sps.csr_matrix):
        self.Edof = np.atleast_2d(np.asarray(Edof, dtype=int))
        self.elmat = np.asarray(element_matrix)
        if self.elmat.ndim != 2 or self.elmat.shape[0] != self.elmat.shape[1]:
            raise ValueError(f"Element matrix has to be square, got shape {self.elmat.shape}")
        self.nel, ndofe = self.Edof.shape
        if self.elmat.shape[0] != ndofe:
            raise ValueError(f"Element matrix ({self.elmat.shape[0]} dofs) does not match \"Edof\" ({ndofe} dofs)")

        self.n = int(self.Edof.max()) + 1 if ndof is None else ndof
        if self.n <= self.Edof.max():
            raise ValueError(f"Matrix size ({self.n}) too small for the dofs in \"Edof\" ({self.Edof.max() + 1})")

        self.matrix_type = matrix_type

        # Row and column index of each entry of each element matrix
        self.rows = np.kron(self.Edof, np.ones((1, ndofe), dtype=int)).ravel()
        self.cols = np.kron(self.Edof, np.ones((ndofe, 1), dtype=int)).ravel()

    def __call__(self, xscale: np.ndarray):
        xscale = np.asarray(xscale)
        if xscale.size != self.nel:
            raise ValueError(f"Input vector wrong size ({xscale.size}), must be equal to #nel ({self.nel})")

        # Calculate scaled element data
        vals = (self.elmat.ravel()[None, :] * xscale.ravel()[:, None]).ravel()

        if self.matrix_type is np.ndarray:
            mat = np.zeros((self.n, self.n), dtype=vals.dtype)
            np.add.at(mat, (self.rows, self.cols), vals)
            return mat

        try:
            # Duplicate entries are summed
            return self.matrix_type((vals, (self.rows, self.cols)), shape=(self.n, self.n))
        except TypeError as e:
            raise type(e)(
                str(e)
                + f" Invalid matrix_type={self.matrix_type}. Either scipy.sparse.csc_matrix, "
                "scipy.sparse.csr_matrix or numpy.ndarray are supported"
            ).with_traceback(sys.exc_info()[2]) from None


class AssembleStiffness(AssembleGeneral):
    r"""Stiffness matrix assembly :math:`\mathbf{K} = \sum_e E_e \mathbf{K}_{e0}`

    Args:
        Edof: Element degrees of freedom of size ``(nel, ndofe)``
        Ke0: Element stiffness matrix with unit stiffness
        *args: Other arguments are passed to :py:class:`AssembleGeneral`
        **kwargs: Other keyword arguments are passed to :py:class:`AssembleGeneral`
    """
    def __init__(self, Edof, Ke0, *args, **kwargs):
        super().__init__(Edof, Ke0, *args, **kwargs)

    @property
    def Ke0(self):
        return self.elmat


class AssembleMass(AssembleGeneral):
    r"""Mass matrix assembly :math:`\mathbf{M} = \sum_e \rho_e \mathbf{M}_{e0}` from the unit element mass matrix"""
    def __init__(self, Edof, Me0, *args, **kwargs):
        super().__init__(Edof, Me0, *args, **kwargs)
