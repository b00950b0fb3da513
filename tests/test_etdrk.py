import logging
import numpy as np
import pytest

from etdcoeffs import models
from etdcoeffs.etdrk import ETDRK, STARTUP_SCHEME
from etdcoeffs.exceptions import SchemeConfigError
from etdcoeffs.phi import PhiConfig
from testing_util import ALL_SCHEMES, kdv_soliton_setup, relative_error, stiff_logistic_setup


@pytest.mark.parametrize("scheme", ALL_SCHEMES)
def test_stiff_logistic_accuracy(scheme):
    """All schemes reproduce the exact solution of a stiff diagonal problem."""
    lams, nl_func, u0, exact = stiff_logistic_setup()
    solver = ETDRK(lams, nl_func, scheme=scheme)
    u_final = solver.evolve(u0, t0=0.0, tf=1.0, h=0.01, store_data=False)
    assert relative_error(u_final, exact(1.0)) < 1e-6


@pytest.mark.parametrize("scheme", ["etdrk4", "krogstad"])
def test_fourth_order_convergence(scheme):
    lams, nl_func, u0, exact = stiff_logistic_setup()
    errors = []
    for h in (0.1, 0.05):
        solver = ETDRK(lams, nl_func, scheme=scheme)
        u_final = solver.evolve(u0, t0=0.0, tf=1.0, h=h, store_data=False)
        errors.append(relative_error(u_final, exact(1.0)))
    assert errors[0] / errors[1] > 6


@pytest.mark.parametrize("scheme", ["etdrk4", "krogstad", "exprk5s8"])
def test_kdv_soliton_step(scheme):
    u0_fft, linear_op, nl_func, u_exact_fft, h, steps = kdv_soliton_setup()
    solver = ETDRK(linear_op, nl_func, scheme=scheme)
    u_final = u0_fft.copy()
    for _ in range(steps):
        u_final = solver.step(u_final, h)
    assert relative_error(u_final, u_exact_fft) < 1e-5


def test_kdv_soliton_evolve():
    u0_fft, linear_op, nl_func, u_exact_fft, h, steps = kdv_soliton_setup()
    solver = ETDRK(linear_op, nl_func, scheme="etdrk4")
    u_final = solver.evolve(u0_fft, t0=0.0, tf=h * steps, h=h, store_data=True, store_freq=50)
    assert relative_error(u_final, u_exact_fft) < 1e-5
    assert len(solver.t) == len(solver.u) == 5


def test_burgers_multistep_conserves_mean():
    x, kx = models.construct_x_kx_rfft(128)
    lin_op, nl_func = models.burgers_ops(kx, mu=0.05)
    u0_fft = np.fft.rfft(np.sin(x) + 0.5)
    solver = ETDRK(lin_op, nl_func, scheme="pecec433")
    u_final = solver.evolve(u0_fft, t0=0.0, tf=0.5, h=0.01, store_data=False)
    assert np.all(np.isfinite(u_final))
    assert u_final[0] == pytest.approx(u0_fft[0], rel=1e-10)


@pytest.mark.parametrize("scheme", ["krogstad", "pecec433", "eglm433"])
def test_matrix_operator_matches_diagonal(scheme):
    lams, nl_func, u0, _ = stiff_logistic_setup()
    u_diag = ETDRK(lams, nl_func, scheme=scheme).evolve(u0, 0.0, 0.5, 0.01, store_data=False)
    u_mat = ETDRK(np.diag(lams), nl_func, scheme=scheme).evolve(u0, 0.0, 0.5, 0.01, store_data=False)
    np.testing.assert_allclose(u_mat, u_diag, rtol=1e-8, atol=1e-15)


def test_step_and_evolve_agree():
    lams, nl_func, u0, _ = stiff_logistic_setup()
    solver = ETDRK(lams, nl_func, scheme="eglm433")
    u_step = u0.copy()
    for _ in range(10):
        u_step = solver.step(u_step, 0.1)
    u_evolve = solver.evolve(u0, t0=0.0, tf=1.0, h=0.1, store_data=False)
    np.testing.assert_allclose(u_evolve, u_step, rtol=1e-14)


def test_multistep_history_startup():
    lams, nl_func, u0, _ = stiff_logistic_setup()
    solver = ETDRK(lams, nl_func, scheme="pecec433")
    u = u0
    for expected in (1, 2, 2):
        u = solver.step(u, 0.05)
        assert len(solver._nl_history) == expected
    assert solver._startup_coeffs.scheme is STARTUP_SCHEME
    assert solver.coeffs.scheme.label == "pecec433"


def test_single_step_scheme_keeps_no_history():
    lams, nl_func, u0, _ = stiff_logistic_setup()
    solver = ETDRK(lams, nl_func, scheme="exprk5s8")
    solver.step(solver.step(u0, 0.05), 0.05)
    assert len(solver._nl_history) == 0
    assert solver._startup_coeffs is None


def test_coefficients_cached_for_same_step():
    lams, nl_func, u0, _ = stiff_logistic_setup()
    solver = ETDRK(lams, nl_func, scheme="krogstad")
    assert solver.coeffs is None
    u1 = solver.step(u0, 0.05)
    bundle = solver.coeffs
    solver.step(u1, 0.05)
    assert solver.coeffs is bundle
    assert bundle.dt == 0.05


def test_step_size_change_restarts_history(caplog):
    lams, nl_func, u0, _ = stiff_logistic_setup()
    solver = ETDRK(lams, nl_func, scheme="eglm433", loglevel="INFO")
    u = u0
    for _ in range(3):
        u = solver.step(u, 0.05)
    assert len(solver._nl_history) == 2

    with caplog.at_level(logging.INFO, logger="etdcoeffs.ETDRK"):
        solver.step(u, 0.025)
    assert "restarting multistep history" in caplog.text
    assert len(solver._nl_history) == 1
    assert solver.coeffs.dt == 0.025


def test_reset_clears_coefficients_and_history():
    lams, nl_func, u0, _ = stiff_logistic_setup()
    solver = ETDRK(lams, nl_func, scheme="pecec433")
    solver.step(solver.step(u0, 0.05), 0.05)
    solver.reset()
    assert solver.coeffs is None
    assert len(solver._nl_history) == 0


def test_phi_config_is_used():
    lams, nl_func, u0, exact = stiff_logistic_setup()
    config = PhiConfig(modecutoff=0.2, contour_points=64, contour_radius=0.5)
    solver = ETDRK(lams, nl_func, scheme="etdrk4", phi_config=config)
    assert solver.phi_config is config
    u_final = solver.evolve(u0, t0=0.0, tf=1.0, h=0.01, store_data=False)
    assert relative_error(u_final, exact(1.0)) < 1e-6


def test_unknown_scheme():
    with pytest.raises(SchemeConfigError):
        ETDRK(np.array([-1.0]), lambda u: u, scheme="rk4")


@pytest.mark.parametrize("h", [0.0, -0.01])
def test_step_rejects_nonpositive_h(h):
    solver = ETDRK(np.array([-1.0]), lambda u: u)
    with pytest.raises(ValueError):
        solver.step(np.array([1.0]), h)


def test_startup_logging(caplog):
    lams, nl_func, u0, _ = stiff_logistic_setup()
    solver = ETDRK(lams, nl_func, scheme="pecec433", loglevel="DEBUG")
    with caplog.at_level(logging.DEBUG, logger="etdcoeffs.ETDRK"):
        solver.step(u0, 0.05)
    assert "Multistep startup step 1 with etdrk4" in caplog.text
    assert "pecec433 coefficients updated for step size h=0.05" in caplog.text
