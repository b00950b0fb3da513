import logging
import pytest
import numpy as np

from etdcoeffs.solver import BaseSolver


# ======================================================================
# Minimal concrete solver for testing BaseSolver
# ======================================================================
class MockSolver(BaseSolver):
    def __init__(self, lin_op, nl_func=None, **kwargs):
        if nl_func is None:
            nl_func = lambda u: u
        super().__init__(lin_op, nl_func, **kwargs)
        self._reset_called = False
        self.mock_unew = None
        self.last_u = None
        self.last_h = None
        self.num_calls = 0

    def _reset(self):
        self._reset_called = True

    def _update_stages(self, u, h):
        # record calls for testing
        self.last_u = u
        self.last_h = h
        self.num_calls += 1
        return self.mock_unew


class IncompleteSolver(BaseSolver):
    """Solver missing required abstract methods."""


# ======================================================================
# Tests: construction
# ======================================================================
def test_abstract_solver_cannot_be_instantiated():
    with pytest.raises(TypeError):
        IncompleteSolver(np.ones(2), lambda u: u)  # pylint: disable=abstract-class-instantiated


def test_diagonal_and_matrix_operators():
    assert MockSolver(np.array([1.0, 2.0]))._diag is True
    assert MockSolver(np.eye(2))._diag is False


@pytest.mark.parametrize("lin_op", [np.ones((3, 3, 3)), np.array(5.0)])
def test_invalid_operator_rank(lin_op):
    with pytest.raises(ValueError, match="lin_op must be 1D or 2D"):
        MockSolver(lin_op)


def test_non_square_matrix():
    with pytest.raises(ValueError, match="square"):
        MockSolver(np.ones((2, 3)))


def test_logger_name_and_level():
    solver = MockSolver(np.eye(1), loglevel="INFO")
    assert solver.logger.name == "etdcoeffs.MockSolver"
    assert solver.logger.level == logging.INFO

    solver.set_loglevel(logging.DEBUG)
    assert solver.logger.level == logging.DEBUG
    with pytest.raises(ValueError, match="Invalid log level"):
        solver.set_loglevel("LOUD")


# ======================================================================
# Tests: reset()
# ======================================================================
def test_reset_clears_state_and_calls_subclass_reset():
    solver = MockSolver(np.eye(1))
    solver.t = [1.0, 2.0]
    solver.u = [np.array([1.0])]
    solver.reset()

    assert solver.t == []
    assert solver.u == []
    assert solver._reset_called is True


# ======================================================================
# Tests: step()
# ======================================================================
def test_step_calls_update_stages_and_returns_value():
    solver = MockSolver(np.eye(1))
    solver.mock_unew = np.array([2.0])

    u0 = np.array([1.0])
    out = solver.step(u0, h=0.1)

    assert np.allclose(out, solver.mock_unew)
    assert np.allclose(solver.last_u, u0)
    assert solver.last_h == 0.1


@pytest.mark.parametrize("h", [0.0, -0.1])
def test_step_rejects_nonpositive_h(h):
    solver = MockSolver(np.eye(1))
    with pytest.raises(ValueError, match="must be positive"):
        solver.step(np.array([1.0]), h=h)


# ======================================================================
# Tests: evolve()
# ======================================================================
def test_evolve_runs_and_stores_snapshots():
    solver = MockSolver(np.eye(1))
    solver.mock_unew = np.array([10.0])

    u0 = np.array([1.0])
    u_final = solver.evolve(u0, t0=0.0, tf=0.3, h=0.1)

    assert solver._reset_called is True
    assert solver.num_calls == 3

    # Expected time points: [0.0, 0.1, 0.2, 0.3]
    assert len(solver.t) == 4
    assert solver.t[0] == 0.0
    assert solver.t[-1] == pytest.approx(0.3)

    assert np.allclose(u_final, solver.mock_unew)
    assert len(solver.u) == 4


def test_evolve_no_store_data():
    solver = MockSolver(np.eye(1))
    solver.mock_unew = np.array([5.0])

    u_final = solver.evolve(np.array([1.0]), t0=0.0, tf=0.2, h=0.1, store_data=False)

    assert solver.t == []
    assert solver.u == []
    assert np.allclose(u_final, solver.mock_unew)


def test_evolve_store_every_other_step():
    solver = MockSolver(np.eye(1))
    solver.mock_unew = np.array([3.0])

    solver.evolve(np.array([1.0]), t0=0.0, tf=0.4, h=0.1, store_data=True, store_freq=2)

    # Store at steps 2 and 4, plus initial t0
    assert solver.t == [0.0, 0.2, 0.4]


def test_evolve_raises_if_h_too_large():
    solver = MockSolver(np.eye(1))
    solver.mock_unew = np.array([2.0])

    with pytest.raises(ValueError):
        solver.evolve(np.array([1.0]), t0=0.0, tf=0.1, h=0.2)


def test_evolve_final_solution_is_correct():
    solver = MockSolver(np.eye(1))

    def _update(u, h):
        return 2 * u

    solver._update_stages = _update

    u_final = solver.evolve(np.array([1.0]), t0=0.0, tf=0.3, h=0.1)

    # 3 steps: 1 -> 2 -> 4 -> 8
    assert np.allclose(u_final, np.array([8.0]))


def test_evolve_logs_progress(caplog):
    solver = MockSolver(np.eye(1), loglevel="INFO")
    solver.mock_unew = np.array([1.0])
    with caplog.at_level(logging.INFO, logger="etdcoeffs.MockSolver"):
        solver.evolve(np.array([1.0]), t0=0.0, tf=1.0, h=0.005, store_data=False)
    assert "Progress" in caplog.text
    assert "Evolution complete after 200 steps" in caplog.text


def test_evolve_stops_at_nearest_whole_step(caplog):
    solver = MockSolver(np.eye(1))
    solver.mock_unew = np.array([1.0])
    with caplog.at_level(logging.WARNING, logger="etdcoeffs.MockSolver"):
        solver.evolve(np.array([1.0]), t0=0.0, tf=1.0, h=0.3)

    # 1.0 / 0.3 rounds to 3 steps, ending at t = 0.9
    assert solver.num_calls == 3
    assert solver.t[-1] == pytest.approx(0.9)
    assert "does not divide" in caplog.text


def test_evolve_no_warning_when_step_divides_span(caplog):
    solver = MockSolver(np.eye(1))
    solver.mock_unew = np.array([1.0])
    with caplog.at_level(logging.WARNING, logger="etdcoeffs.MockSolver"):
        solver.evolve(np.array([1.0]), t0=0.0, tf=0.3, h=0.1)
    assert "does not divide" not in caplog.text
