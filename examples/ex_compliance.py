""" Compliance topology optimization of a cantilever beam (or a heat conduction plate) """
import numpy as np
import pyocto as poc

nx, ny = 60, 30
filter_radius = 2.0
volfrac = 0.5
thermal = False  # If this is False, static mechanical analysis will be done


if __name__ == "__main__":
    print(__doc__)

    if thermal:
        # Generate a grid with one temperature dof per node
        mesh = poc.RectangularMesh(nx, ny, ndof_per_node=1)

        # Heat sink in the middle of the left edge
        boundary_dofs = mesh.get_nodenumber(0, np.arange(ny // 4, (ny+1) - ny//4))

        # Uniform heat load everywhere except at the sink
        force_dofs = mesh.get_nodenumber(*np.meshgrid(np.arange(1, nx + 1), np.arange(ny + 1))).flatten()

        # Element conductivity matrix
        el = poc.quad_conduction()

    else:  # Mechanical
        mesh = poc.RectangularMesh(nx, ny)

        # Clamp the left edge
        boundary_nodes = mesh.get_nodenumber(0, np.arange(ny+1))
        boundary_dofs = mesh.get_dofnumber(boundary_nodes).flatten()

        # Which dofs to put a force on? The 1 is for a force in y-direction (x-direction would be zero)
        force_dofs = mesh.get_dofnumber(mesh.get_nodenumber(nx, ny//2), 1)

        # Element stiffness matrix
        el = poc.quad_stiffness(nu=0.3)

    # Generate a force vector
    f = np.zeros(mesh.ndof)
    f[force_dofs] = 1.0  # Uniform force of 1.0 at all selected dofs

    # Homogeneous Dirichlet conditions [dof, value]
    bc = np.stack([boundary_dofs, np.zeros(boundary_dofs.size)], axis=-1)

    problem = poc.Problem.from_mesh(mesh, volfrac, el, f, bc, E0=1.0, Emin=1e-9)

    optimizer = poc.OC(problem, volfrac,
                       interpolation=poc.SIMP(penal=3.0),
                       filter=poc.DensityFilter(radius=filter_radius),
                       maxiter=100,
                       verbosity=2,
                       callback=poc.PlotDensity(mesh, saveto="out/design.png", overwrite=True))
    result = optimizer.optimize()

    poc.write_design("out/design.npz", result.x, mesh)
    print(f"Final compliance {result.history[-1].objective:.4e} after {result.iterations} iterations")
