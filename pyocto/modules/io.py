"""Reporting of optimization progress and design output"""
import os
import warnings

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import PolyCollection

from ..common.mesh import ElementMesh


class PrintIteration:
    """Prints a summary line for every iteration

    Can be passed as ``callback`` to an optimizer, as an alternative to ``verbosity=2``.

    Args:
        every (int, optional): Only print every n-th iteration. Defaults to 1.
    """
    fmt = "It.: {0:4d} Obj.: {1:3.3e} Vol.frac.: {2:1.2f} Ch.: {3:3.3e} N.: {4:3.3e}"

    def __init__(self, every: int = 1):
        self.every = every

    def __call__(self, state, optimizer=None):
        if state.iteration % self.every != 0:
            return
        print(self.fmt.format(state.iteration, state.objective, state.volume_fraction, state.change, state.grad_norm))


def _makedirs(filename):
    dirname = os.path.dirname(str(filename))
    if dirname != "" and not os.path.exists(dirname):
        os.makedirs(dirname)


class FigCallback:
    """Base class for callbacks which draw a figure every iteration

    Derived classes create ``self.fig``, draw into it and call :meth:`_update_fig` afterwards.

    Keyword Args:
        saveto (str): File the figure is saved to after each update, *e.g.* ``"out/design.png"``. Unless
          ``overwrite`` is set the update number is appended: ``out/design_0000.png``, ``out/design_0001.png``, ...
        overwrite (bool): Keep a single file, overwritten on every update
        show (bool): Show the figure on the screen (non-blocking)
    """

    def __init__(self, saveto=None, overwrite=False, show=True):
        self.saveto = None if saveto is None else str(saveto)
        self.overwrite = overwrite
        self.show = show
        self.fig = None
        self.n_updates = 0
        if self.saveto is not None:
            _makedirs(self.saveto)

    def savename(self):
        """File name for the current update, ``None`` when nothing is saved"""
        if self.saveto is None or self.overwrite:
            return self.saveto
        root, ext = os.path.splitext(self.saveto)
        return f"{root}_{self.n_updates:04d}{ext}"

    def _update_fig(self):
        if self.show:
            if self.n_updates == 0:
                plt.show(block=False)
            plt.pause(1e-3)
        if self.saveto is not None:
            self.fig.savefig(self.savename())
        self.n_updates += 1

    def close(self):
        if self.fig is not None:
            plt.close(self.fig)
            self.fig = None


class PlotDensity(FigCallback):
    """Plots the density field on the (unstructured) element mesh

    Every element is drawn as a polygon with corners ``(Ex[e], Ey[e])``, colored by its density.

    Args:
        mesh: The element mesh, *e.g.* ``problem.mesh``

    Keyword Args:
        saveto, overwrite, show: See :class:`FigCallback`
        clim: Color limits ``[cmin, cmax]`` (default = ``[0, 1]``)
        cmap (str): Colormap (default = ``"gray_r"``, solid is black)
    """

    def __init__(self, mesh: ElementMesh, *args, clim=(0.0, 1.0), cmap="gray_r", **kwargs):
        super().__init__(*args, **kwargs)
        self.mesh = mesh
        self.clim = clim
        self.cmap = cmap
        self.coll = None

    def __call__(self, state, optimizer=None):
        """Update the plot with the design of an iteration state (or a plain density vector)"""
        if hasattr(state, "x"):
            x, it = state.x, state.iteration
        else:
            x, it = state, self.n_updates
        self.plot(x, title=f"Density, Iteration {it}")

    def plot(self, x, title="Density"):
        x = np.asarray(x, dtype=float).ravel()
        if x.size != self.mesh.nel:
            raise ValueError(f"Density field ({x.size}) does not match the number of elements ({self.mesh.nel})")
        if x.size == 0:
            warnings.warn("Nothing to plot, the density field is empty")
            return

        if self.fig is None:
            self.fig = plt.figure()
        if self.coll is None:
            ax = self.fig.add_subplot(111)
            verts = np.stack([self.mesh.Ex, self.mesh.Ey], axis=-1)
            self.coll = PolyCollection(verts, cmap=self.cmap, edgecolors="face")
            self.coll.set_array(x)
            ax.add_collection(self.coll)
            ax.set_xlim(np.min(self.mesh.Ex), np.max(self.mesh.Ex))
            ax.set_ylim(np.min(self.mesh.Ey), np.max(self.mesh.Ey))
            ax.set_aspect("equal")
            ax.set(xlabel="x", ylabel="y")
            self.cbar = self.fig.colorbar(self.coll, orientation="horizontal")
        self.coll.set_array(x)
        self.coll.set_clim(vmin=self.clim[0], vmax=self.clim[1])
        self.fig.axes[0].set_title(title)

        self._update_fig()


def write_design(filename, x, mesh: ElementMesh = None):
    """Write a design (and optionally its mesh) to a numpy ``.npz`` file

    Args:
        filename: The file to write to
        x: Design vector
        mesh (optional): The element mesh, storing ``Ex``, ``Ey`` and ``Edof`` alongside the design
    """
    data = dict(x=np.asarray(x, dtype=float).ravel())
    if mesh is not None:
        if data["x"].size != mesh.nel:
            raise ValueError(f"Design ({data['x'].size}) does not match the number of elements ({mesh.nel})")
        data.update(Ex=mesh.Ex, Ey=mesh.Ey, Edof=mesh.Edof)
    _makedirs(filename)
    np.savez(filename, **data)


def read_design(filename):
    """Read a design written by :func:`write_design`

    Returns:
        x: The design vector
        mesh: The :class:`ElementMesh` or ``None`` when no mesh was stored
    """
    with np.load(filename) as data:
        x = data["x"].copy()
        mesh = ElementMesh(data["Ex"], data["Ey"], data["Edof"]) if "Edof" in data.files else None
    return x, mesh
