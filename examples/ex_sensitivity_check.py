""" Finite difference check of the compliance sensitivities for different interpolation laws """
import numpy as np
import pyocto as poc

if __name__ == "__main__":
    print(__doc__)
    mesh = poc.RectangularMesh(4, 3)
    clamped = mesh.get_dofnumber(mesh.get_nodenumber(0, np.arange(4))).flatten()
    bc = np.stack([clamped, np.zeros(clamped.size)], axis=-1)
    f = np.zeros(mesh.ndof)
    f[-1] = -1.0
    problem = poc.Problem.from_mesh(mesh, 0.5, poc.quad_stiffness(), f, bc)

    x = np.random.rand(mesh.nel)
    for law in [poc.Linear(), poc.SIMP(3.0), poc.RAMP(8.0), poc.MathInterpolation("Emin + (E0 - Emin)*x^p", param=3)]:
        print(f"\nInterpolation: {law}")
        _, _, n_failed = poc.finite_difference(poc.compliance_response(problem, interpolation=law), x, verbose=False)
        print(f"{n_failed} of {x.size} sensitivities beyond tolerance")
