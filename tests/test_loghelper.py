"""Logging behaviour of the solver and coefficient loggers."""

import logging
import numpy as np
import pytest

import etdcoeffs
from etdcoeffs import coeffs
from etdcoeffs.etdrk import ETDRK
from etdcoeffs.util import loghelper


def _solver(loglevel="WARNING"):
    return ETDRK(-np.arange(4.0), lambda u: u**2, scheme="etdrk4", loglevel=loglevel)


# -------------------------------------------------------------------------
# Solver logger
# -------------------------------------------------------------------------


@pytest.mark.parametrize(
    "loglevel, expected",
    [("info", logging.INFO), ("DEBUG", logging.DEBUG), (logging.ERROR, logging.ERROR)],
)
def test_etdrk_logger_name_and_level(loglevel, expected):
    solver = _solver(loglevel)
    assert solver.logger.name == "etdcoeffs.ETDRK"
    assert solver.logger.level == expected


def test_etdrk_logger_has_one_formatted_handler():
    first = _solver("INFO")
    second = _solver("WARNING")

    assert first.logger is second.logger
    stream_handlers = [h for h in second.logger.handlers if isinstance(h, logging.StreamHandler)]
    assert len(stream_handlers) == 1
    formatter = stream_handlers[0].formatter
    assert formatter._fmt == loghelper.LOG_FORMAT
    assert formatter.datefmt == loghelper.DATE_FORMAT
    # the most recent construction sets the shared level
    assert second.logger.level == logging.WARNING


def test_etdrk_invalid_loglevel():
    with pytest.raises(ValueError, match="Invalid log level: chatty"):
        _solver("chatty")


def test_set_loglevel_reports_new_level(caplog):
    solver = _solver("WARNING")
    with caplog.at_level(logging.DEBUG, logger="etdcoeffs.ETDRK"):
        solver.set_loglevel("DEBUG")
        assert solver.logger.level == logging.DEBUG
    assert "Log level changed to DEBUG" in caplog.text

    caplog.clear()
    with caplog.at_level(15, logger="etdcoeffs.ETDRK"):
        solver.set_loglevel(15)
        assert solver.logger.level == 15
    assert "Log level changed to Level 15" in caplog.text


def test_set_loglevel_invalid_keeps_level():
    solver = _solver("ERROR")
    with pytest.raises(ValueError, match="Invalid log level"):
        solver.set_loglevel("LOUDEST")
    assert solver.logger.level == logging.ERROR


def test_solver_logger_level_filters_step_messages(caplog):
    solver = _solver("WARNING")
    u0 = np.full(4, 0.1)
    solver.step(u0, 0.1)
    assert not [r for r in caplog.records if r.name == "etdcoeffs.ETDRK"]

    solver.set_loglevel("DEBUG")
    with caplog.at_level(logging.DEBUG, logger="etdcoeffs.ETDRK"):
        solver.step(u0, 0.05)
    messages = [r.getMessage() for r in caplog.records if r.name == "etdcoeffs.ETDRK"]
    assert "Executing constant step with h=0.05" in messages
    assert "etdrk4 coefficients updated for step size h=0.05" in messages


# -------------------------------------------------------------------------
# Coefficient module logger
# -------------------------------------------------------------------------


def test_coeffs_module_logger_is_package_child():
    assert coeffs.logger is logging.getLogger("etdcoeffs.coeffs")
    assert coeffs.logger.handlers == []
    assert coeffs.logger.propagate is True


def test_coeffs_logger_quiet_above_debug(caplog):
    with caplog.at_level(logging.INFO, logger="etdcoeffs.coeffs"):
        coeffs.compute_coeffs("etdrk4", 0.1, -np.arange(4.0))
    assert not [r for r in caplog.records if r.name == "etdcoeffs.coeffs"]


def test_coeffs_logger_reports_phi_evaluations(caplog):
    with caplog.at_level(logging.DEBUG, logger="etdcoeffs.coeffs"):
        coeffs.compute_coeffs("pecec433", 0.1, -np.arange(4.0))
    messages = [r.getMessage() for r in caplog.records if r.name == "etdcoeffs.coeffs"]
    assert messages == [
        "Assembled pecec433 coefficients from 4 phi-function evaluations",
        "Completed pecec433 coefficients for dt=0.1",
    ]


def test_package_logger_has_null_handler():
    handlers = logging.getLogger(etdcoeffs.__name__).handlers
    assert any(isinstance(h, logging.NullHandler) for h in handlers)
