""" Symmetric half of the MBB beam, with a solid load introduction and a sensitivity filter """
import numpy as np
import pyocto as poc

nx, ny = 90, 30
filter_radius = 1.5
volfrac = 0.4


if __name__ == "__main__":
    print(__doc__)
    mesh = poc.RectangularMesh(nx, ny)

    # Symmetry at the left edge (x-direction), roller support at the bottom right corner (y-direction)
    symmetry_dofs = mesh.get_dofnumber(mesh.get_nodenumber(0, np.arange(ny + 1)), 0)
    support_dof = mesh.get_dofnumber(mesh.get_nodenumber(nx, 0), 1)
    fixed = np.append(symmetry_dofs, support_dof)
    bc = np.stack([fixed, np.zeros(fixed.size)], axis=-1)

    # Downward load at the top left corner
    f = np.zeros(mesh.ndof)
    f[mesh.get_dofnumber(mesh.get_nodenumber(0, ny), 1)] = -1.0

    # Keep the elements below the load solid
    solid = mesh.get_elemnumber(np.arange(3), ny - 1)
    xp = np.stack([solid, np.ones(solid.size)], axis=-1)

    problem = poc.Problem.from_mesh(mesh, volfrac, poc.quad_stiffness(nu=0.3), f, bc, xp=xp)

    x, k = poc.minimize_oc(problem, volfrac,
                           interpolation='simp',
                           filter=poc.SensitivityFilter(radius=filter_radius),
                           maxiter=200,
                           callback=poc.PlotDensity(mesh))
    print(f"Optimization finished after {k} iterations, volume fraction {problem.volume_fraction(x):.3f}")
