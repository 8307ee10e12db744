"""Spatial filters regularizing densities or sensitivities"""
from abc import ABC, abstractmethod

import numpy as np
import scipy.sparse as sps
from scipy.spatial import cKDTree


def filter_setup(centroids: np.ndarray, radius: float):
    r"""Build the filter weighting operator from element centroids

    The weights decay linearly with the distance between the centroids

    :math:`H_{ij}=\max \left( r - \sqrt{ (x_j - x_i)^2 + (y_j - y_i)^2 } , 0 \right)`,

    and the normalization vector contains the row sums :math:`s_i = \sum_j H_{ij}`. A radius of zero (or a radius
    smaller than the element spacing) results in the identity operator.

    Args:
        centroids: Element centroids of size ``(nel, 2)``
        radius (float): Filter radius in absolute units

    Returns:
        H: Weighting matrix of size ``(nel, nel)`` (CSC format)
        Hs: Row-sum normalization vector of size ``(nel)``
    """
    centroids = np.asarray(centroids, dtype=float)
    if centroids.ndim != 2:
        raise ValueError(f"Centroids must be of size (nel, dim), got shape {centroids.shape}")
    nel = centroids.shape[0]
    if radius is None or radius <= 0:
        return sps.identity(nel, format="csc"), np.ones(nel)

    tree = cKDTree(centroids)
    pairs = tree.sparse_distance_matrix(tree, radius, output_type="ndarray")
    offdiag = pairs["i"] != pairs["j"]

    # Every element carries weight r with respect to itself
    h_rows = np.concatenate([np.arange(nel), pairs["i"][offdiag]])
    h_cols = np.concatenate([np.arange(nel), pairs["j"][offdiag]])
    h_values = np.concatenate([np.full(nel, float(radius)), np.maximum(0.0, radius - pairs["v"][offdiag])])
    keep = h_values > 0
    H = sps.coo_matrix((h_values[keep], (h_rows[keep], h_cols[keep])), shape=(nel, nel)).tocsc()
    Hs = np.asarray(H.sum(1)).ravel()
    return H, Hs


class Filter(ABC):
    r"""Abstract base class for a linear filter with normalization :math:`\mathbf{y} = \mathbf{S}^{-1}\mathbf{H}\mathbf{x}`

    A filter is either a density filter, in which case the optimizer works on raw design variables which are mapped to
    physical densities, or a sensitivity filter, in which case only the sensitivities are regularized.

    Args:
        radius (float, optional): Filter radius in absolute units. The weighting operator is built once by
          :meth:`setup` (which is done by the optimizer from the element centroids when not done beforehand)
        centroids (np.ndarray, optional): Element centroids, when given the filter is set up right away
    """
    filters_density = False

    def __init__(self, radius: float = None, centroids: np.ndarray = None):
        self.radius = radius
        self.H, self.Hs = None, None
        if centroids is not None:
            self.setup(centroids)

    def setup(self, centroids: np.ndarray, radius: float = None):
        """Build the weighting operator from the element centroids

        Returns:
            self
        """
        if radius is not None:
            self.radius = radius
        if self.radius is None:
            raise ValueError(f"{type(self).__name__}: filter radius has to be specified")
        self.H, self.Hs = filter_setup(centroids, self.radius)
        return self

    @property
    def is_setup(self):
        return self.H is not None

    def _check_setup(self):
        if not self.is_setup:
            raise RuntimeError(f"{type(self).__name__} is not set up; call setup(centroids) first")

    def density(self, x: np.ndarray) -> np.ndarray:
        """Physical densities for design ``x``"""
        return np.array(x, dtype=float)

    def sensitivity(self, x: np.ndarray, dfdx: np.ndarray) -> np.ndarray:
        """Regularized sensitivities ``dfdx`` at design ``x``"""
        self._check_setup()
        return self.apply(self.H, self.Hs, x, dfdx)

    @staticmethod
    @abstractmethod
    def apply(H, Hs: np.ndarray, x: np.ndarray, field: np.ndarray) -> np.ndarray:
        """Filter a field using the weighting operator

        Args:
            H: Weighting matrix
            Hs: Row sums of the weighting matrix
            x: Design driving the filter
            field: The field to filter

        Returns:
            The filtered field
        """
        raise NotImplementedError("Filter not implemented.")


class SensitivityFilter(Filter):
    r"""Sensitivity filter of Sigmund (1997)

    :math:`\widehat{\frac{\partial f}{\partial x_i}} = \frac{1}{\max(\gamma, x_i) s_i} \sum_j H_{ij} x_j
    \frac{\partial f}{\partial x_j}`, with :math:`\gamma = 10^{-3}`

    The densities themselves are not filtered. With a zero radius the weighting operator is the identity, and the
    result reduces to :math:`\frac{x_i}{\max(\gamma, x_i)} \frac{\partial f}{\partial x_i}`: the sensitivities are
    unchanged for :math:`x_i \geq \gamma` and scaled down by :math:`x_i / \gamma` below it (zero for void elements).

    References:
      - Sigmund, O. (2001). *A 99 line topology optimization code written in Matlab*.
        Structural and Multidisciplinary Optimization, 21(2), 120-127.
        `doi: 10.1007/s001580050176 <https://doi.org/10.1007/s001580050176>`_
    """
    filters_density = False
    xmin = 1e-3

    @staticmethod
    def apply(H, Hs, x, field):
        x = np.asarray(x, dtype=float)
        return np.asarray(H @ (x * field)).ravel() / Hs / np.maximum(SensitivityFilter.xmin, x)


class DensityFilter(Filter):
    r"""Density filter of Bruns & Tortorelli (2001)

    The physical densities are :math:`\tilde{x}_i = \frac{1}{s_i}\sum_j H_{ij} x_j`. Sensitivities with respect to the
    physical densities are transformed to the design variables by the chain rule
    :math:`\frac{\partial f}{\partial x_j} = \sum_i \frac{H_{ij}}{s_i} \frac{\partial f}{\partial \tilde{x}_i}`.

    References:
      - Bruns & Tortorelli (2001). *Topology optimization of non-linear elastic structures and compliant mechanisms*.
        Computer Methods in Applied Mechanics and Engineering, 190(26–27), 3443–3459.
        `doi: 10.1016/S0045-7825(00)00278-4 <https://doi.org/10.1016/S0045-7825(00)00278-4>`_
      - Bourdin (2001). *Filters in topology optimization*. International Journal for Numerical Methods in
        Engineering, 50, 2143-2158. `doi: 10.1002/nme.116 <https://doi.org/10.1002/nme.116>`_
    """
    filters_density = True

    def density(self, x):
        self._check_setup()
        return np.asarray(self.H @ np.asarray(x, dtype=float)).ravel() / self.Hs

    @staticmethod
    def apply(H, Hs, x, field):
        return np.asarray(H.T @ (np.asarray(field, dtype=float) / Hs)).ravel()
