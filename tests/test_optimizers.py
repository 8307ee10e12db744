import pytest
import numpy as np
import numpy.testing as npt
import pyocto as poc
from pyocto import Status


def single_element(x0=0.3, **kwargs):
    """ Single conduction element, left edge fixed, unit load at the bottom right node """
    F = np.zeros(4)
    F[1] = 1.0
    return poc.Problem([x0], poc.quad_conduction(), [[0, 1, 2, 3]], [[0, 1, 1, 0]], [[0, 0, 1, 1]],
                       F, [[0, 0.0], [3, 0.0]], **kwargs)


def cantilever(nelx=8, nely=4, x0=0.5, **kwargs):
    mesh = poc.RectangularMesh(nelx, nely)
    clamped = mesh.get_dofnumber(mesh.nodes[0, :]).flatten()
    bc = np.stack([clamped, np.zeros_like(clamped)], axis=-1)
    F = np.zeros(mesh.ndof)
    F[mesh.get_dofnumber(mesh.nodes[-1, 0], 1)] = -1.0
    return poc.Problem.from_mesh(mesh, x0, poc.quad_stiffness(), F, bc, **kwargs)


class TestSingleElement:
    def test_converges_to_volume_fraction(self):
        oc = poc.OC(single_element(0.3), vfrac=0.5)
        res = oc.optimize()
        assert res.status == Status.CONVERGED
        assert oc.status == Status.CONVERGED
        assert res.iterations == 2
        npt.assert_allclose(res.x, 0.5, atol=1e-3)
        assert np.all(np.diff(res.objectives) <= 0)

    def test_first_iteration(self):
        oc = poc.OC(single_element(0.3), vfrac=0.5)
        state = oc.step(oc.x)
        assert state.iteration == 1
        npt.assert_allclose(state.x_old, 0.3)
        npt.assert_allclose(state.objective, 1.6 / (1e-9 + 0.3 * (1 - 1e-9)))
        npt.assert_allclose(state.change, 0.2, atol=1e-3)
        assert state.sensitivity[0] < 0
        assert state.grad_norm == pytest.approx(abs(state.sensitivity[0]))

    def test_idempotent(self):
        oc = poc.OC(single_element(0.3), vfrac=0.5)
        res = oc.optimize()
        state = oc.step(res.x)
        assert state.change < oc.abstol
        npt.assert_allclose(state.x, res.x, atol=1e-3)

    def test_step_does_not_commit(self):
        oc = poc.OC(single_element(0.3), vfrac=0.5)
        oc.step(oc.x)
        npt.assert_allclose(oc.x, 0.3)
        assert oc.iter == 0
        assert oc.status == Status.INITIALIZING
        assert len(oc.history) == 0

    @pytest.mark.parametrize('x0', [0.3, 0.7])
    def test_minimize_oc(self, x0):
        x, k = poc.minimize_oc(single_element(x0), 0.5, verbosity=0)
        npt.assert_allclose(x, 0.5, atol=1e-3)
        assert k == 2


class TestPrescribed:
    def test_all_prescribed(self):
        oc = poc.OC(single_element(0.3, xp=[[0, 0.5]]), vfrac=0.3)
        res = oc.optimize()
        assert res.status == Status.GRAD_CONVERGED
        assert res.iterations == 1
        assert res.history[0].change == 0.0
        assert res.history[0].grad_norm == 0.0
        npt.assert_allclose(res.x, 0.5)

    def test_prescribed_retained(self):
        xp = [[0, 1.0], [5, 0.0], [17, 0.25]]
        p = cantilever(xp=xp)
        states = []
        oc = poc.OC(p, 0.5, interpolation=poc.SIMP(3.0), maxiter=5, abstol=0.0, gradtol=0.0,
                    callback=lambda s, opt: states.append(s))
        oc.optimize()
        assert len(states) == 5
        for s in states:
            npt.assert_equal(s.x[[0, 5, 17]], [1.0, 0.0, 0.25])

    def test_void_element_math_interpolation(self):
        p = cantilever(xp=[[10, 0.0]])
        law = poc.MathInterpolation("Emin + x^p*(E0 - Emin)", param=3)
        oc = poc.OC(p, 0.5, interpolation=law, filter=poc.SensitivityFilter(radius=1.5), maxiter=3, abstol=0.0)
        res = oc.optimize()
        assert res.status == Status.MAX_ITER
        for s in res.history:
            assert np.all(np.isfinite(s.sensitivity))
            assert np.all(s.x >= 0) and np.all(s.x <= 1)
            assert s.x[10] == 0.0

    def test_prescribed_density_filter(self):
        xp = [[0, 1.0], [31, 0.0]]
        p = cantilever(xp=xp)
        oc = poc.OC(p, 0.5, interpolation='simp', filter=poc.DensityFilter(radius=1.5), maxiter=5)
        res = oc.optimize()
        for s in res.history:
            npt.assert_equal(s.x[[0, 31]], [1.0, 0.0])


class TestUpdate:
    def test_move_limit_and_bounds(self):
        p = cantilever(x0=0.5)
        oc = poc.OC(p, 0.3, interpolation=poc.SIMP(3.0), filter=poc.SensitivityFilter(radius=1.5), move=0.1,
                    maxiter=8)
        res = oc.optimize()
        for s in res.history:
            assert np.all(np.abs(s.x - s.x_old) <= 0.1 + 1e-12)
            assert np.all(s.x >= 0) and np.all(s.x <= 1)

    def test_bisection_terminates(self):
        oc = poc.OC(cantilever(), 0.5, interpolation='simp')
        state = oc.step(oc.x)
        assert 0 < state.bisections <= int(np.ceil(np.log2(oc.l2init / oc.ltol)))

    def test_volume_constraint(self):
        p = cantilever(x0=0.4)
        oc = poc.OC(p, 0.4, interpolation=poc.SIMP(3.0), filter=poc.SensitivityFilter(radius=1.5), maxiter=10)
        res = oc.optimize()
        for s in res.history:
            assert s.volume_fraction == pytest.approx(0.4, abs=1e-3)
            assert s.volume_fraction == pytest.approx(p.volume_fraction(s.x))

    def test_volume_constraint_density_filter(self):
        p = cantilever(x0=0.4)
        oc = poc.OC(p, 0.4, interpolation=poc.SIMP(3.0), filter=poc.DensityFilter(radius=1.5), maxiter=10)
        res = oc.optimize()
        assert res.history[-1].volume_fraction == pytest.approx(0.4, abs=1e-3)
        assert np.all(res.x >= 0) and np.all(res.x <= 1)

    def test_update_direct(self):
        oc = poc.OC(cantilever(), 0.5)
        x = 0.5 * np.ones(oc.problem.nel)
        dfdx = -np.ones(oc.problem.nel)
        x_phys, lmid, n = oc.update(x, dfdx)
        # Uniform sensitivities keep the uniform design
        npt.assert_allclose(x_phys, 0.5, atol=1e-4)
        assert n > 0

    def test_positive_sensitivity_warning(self):
        def objective(x, E, dE, Edof, Ke0, K, F, bc):
            return np.sum(x), np.ones_like(x)
        oc = poc.OC(single_element(0.5), 0.5, objective=objective, maxiter=1)
        with pytest.warns(UserWarning):
            oc.optimize()

    def test_compliance_decreases(self):
        oc = poc.OC(cantilever(x0=0.5), 0.5, interpolation=poc.SIMP(3.0), filter=poc.SensitivityFilter(radius=1.5),
                    maxiter=10)
        res = oc.optimize()
        assert res.objectives[-1] < res.objectives[0]


class TestStoppingCriteria:
    def test_max_iter_priority(self):
        oc = poc.OC(single_element(0.3, xp=[[0, 0.5]]), vfrac=0.3, maxiter=1)
        assert oc.optimize().status == Status.MAX_ITER

    def test_max_iter(self):
        oc = poc.OC(cantilever(), 0.5, interpolation='simp', maxiter=3, abstol=0.0, gradtol=0.0)
        res = oc.optimize()
        assert res.status == Status.MAX_ITER
        assert res.iterations == 3
        assert len(res.history) == 3
        npt.assert_equal([s.iteration for s in res.history], [1, 2, 3])

    def test_change_before_gradient(self):
        oc = poc.OC(single_element(0.3), vfrac=0.5, abstol=1e3, gradtol=1e3)
        res = oc.optimize()
        assert res.status == Status.CONVERGED
        assert res.iterations == 1

    def test_gradient(self):
        oc = poc.OC(single_element(0.3), vfrac=0.5, abstol=0.0, gradtol=1e3)
        res = oc.optimize()
        assert res.status == Status.GRAD_CONVERGED
        assert res.iterations == 1

    def test_status_terminal(self):
        assert not Status.INITIALIZING.is_terminal
        assert not Status.ITERATING.is_terminal
        assert Status.CONVERGED.is_terminal
        assert Status.MAX_ITER.is_terminal
        assert Status.GRAD_CONVERGED.is_terminal


class TestConfiguration:
    def test_defaults(self):
        oc = poc.OC(single_element(), 0.5)
        assert oc.maxiter == 50
        assert oc.abstol == 1e-2
        assert oc.gradtol == 1e-6
        assert oc.ltol == 1e-4
        assert oc.move == 0.2
        assert oc.eta == 0.5
        assert oc.l2init == 1e5
        assert isinstance(oc.interpolation, poc.Linear)
        assert oc.status == Status.INITIALIZING

    def test_filter_set_up_from_centroids(self):
        p = cantilever()
        filt = poc.SensitivityFilter(radius=1.5)
        poc.OC(p, 0.5, filter=filt)
        assert filt.is_setup
        assert filt.H.shape == (p.nel, p.nel)

    def test_density_filter_volume_derivative(self):
        p = cantilever()
        oc = poc.OC(p, 0.5, filter=poc.DensityFilter(radius=1.5))
        H, Hs = oc.filter.H, oc.filter.Hs
        npt.assert_allclose(oc.dV, H.T @ (p.Ve0 * np.ones(p.nel) / Hs))

    def test_callable_interpolation(self):
        def interp(x, E0, Emin, param):
            return Emin + x**param * (E0 - Emin), param * x**(param - 1) * (E0 - Emin)
        oc = poc.OC(single_element(), 0.5, interpolation=interp, param=2.0)
        assert oc.optimize().status == Status.CONVERGED

    @pytest.mark.parametrize('kwargs, error', [
        (dict(vfrac=1.5), ValueError),
        (dict(vfrac=[0.5, 0.5]), ValueError),
        (dict(vfrac=0.5, move=0.0), ValueError),
        (dict(vfrac=0.5, ltol=0.0), ValueError),
        (dict(vfrac=0.5, maxiter=0), ValueError),
        (dict(vfrac=0.5, interpolation=3), TypeError),
        (dict(vfrac=0.5, filter='density'), TypeError),
        (dict(vfrac=0.5, callback=3), TypeError),
        (dict(vfrac=0.5, solver=None), RuntimeError),
    ])
    def test_invalid(self, kwargs, error):
        with pytest.raises(error):
            poc.OC(single_element(), **kwargs)

    def test_filter_size_mismatch(self):
        filt = poc.DensityFilter(radius=1.5, centroids=poc.RectangularMesh(2, 2).centroids)
        with pytest.raises(ValueError):
            poc.OC(single_element(), 0.5, filter=filt)

    def test_not_a_problem(self):
        with pytest.raises(TypeError):
            poc.OC(None, 0.5)


def test_solver_failure_keeps_design():
    def failing_solver(K, F, bc):
        raise np.linalg.LinAlgError("Matrix is singular.")
    oc = poc.OC(single_element(0.3), 0.5, solver=failing_solver)
    with pytest.raises(np.linalg.LinAlgError):
        oc.optimize()
    npt.assert_allclose(oc.x, 0.3)
    assert len(oc.history) == 0
    assert oc.iter == 0


class TestVerbosity:
    def test_silent(self, capsys):
        poc.OC(single_element(), 0.5, verbosity=0).optimize()
        assert capsys.readouterr().out == ""

    def test_stop_message(self, capsys):
        poc.OC(single_element(), 0.5, verbosity=1).optimize()
        out = capsys.readouterr().out
        assert out.strip() == "Stop criteria: change tolerance"

    def test_iteration_info(self, capsys):
        poc.OC(single_element(), 0.5, verbosity=2).optimize()
        lines = capsys.readouterr().out.strip().split("\n")
        assert len(lines) == 3
        assert lines[0].startswith("It.:    1 Obj.: 5.333e+00 Vol.frac.: 0.50 Ch.: 2.000e-01 N.:")
        assert lines[-1] == "Stop criteria: change tolerance"

    def test_bisection_info(self, capsys):
        poc.OC(single_element(), 0.5, verbosity=3, maxiter=1).optimize()
        out = capsys.readouterr().out
        assert "bisections" in out
        assert "Stop criteria: max iterations" in out

    def test_gradient_message(self, capsys):
        poc.OC(single_element(xp=[[0, 0.5]]), 0.5, verbosity=1).optimize()
        assert capsys.readouterr().out.strip() == "Stop criteria: gradient tolerance"
