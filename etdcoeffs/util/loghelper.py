r"""
Logging helper utilities
========================

Logging helpers for :mod:`etdcoeffs` solvers and coefficient builders.

All loggers live below the ``etdcoeffs`` namespace so that applications can
silence or enable the whole package with one call, e.g.
``logging.getLogger("etdcoeffs").setLevel(logging.DEBUG)``.

Overview
--------

- :func:`_parse_loglevel` - Convert user-specified log level to a numeric constant.
- :func:`get_level_name` - Return string name for a numeric logging level.
- :func:`setup_logger` - Configure and return a new logger.
- :func:`set_log_level` - Adjust the level of an existing logger.
- :func:`get_solver_logger` - Create a standardized logger for solver classes.

Example
-------

.. code-block:: python

    from etdcoeffs.util.loghelper import get_solver_logger

    class ETDRK:
        def __init__(self):
            self.logger = get_solver_logger(self.__class__, "INFO")
            self.logger.info("Initialized ETDRK solver")

    # Output:
    # 2026-10-18 10:30:45 - etdcoeffs.ETDRK - INFO - Initialized ETDRK solver
"""

import logging
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _parse_loglevel(loglevel: Union[str, int]) -> int:
    r"""
    Convert a log level (string or numeric) into a ``logging`` integer constant.

    Parameters
    ----------
    loglevel : str or int
        Logging level, e.g. ``"INFO"`` or ``logging.DEBUG``.

    Returns
    -------
    int
        Numeric logging level constant.

    Raises
    ------
    ValueError
        If the string does not match a valid logging level name.

    Examples
    --------
    >>> _parse_loglevel("debug")
    10
    """
    if isinstance(loglevel, str):
        numeric_level = getattr(logging, loglevel.upper(), None)
        if not isinstance(numeric_level, int):
            raise ValueError(f"Invalid log level: {loglevel}")
        return numeric_level
    return loglevel


def get_level_name(level: int) -> str:
    """Return the canonical name of a numeric logging level (``'Level 15'`` if unnamed)."""
    level_names = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARNING",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }
    return level_names.get(level, f"Level {level}")


def setup_logger(name: str, loglevel: Union[str, int] = "WARNING") -> logging.Logger:
    r"""
    Create and configure a logger writing timestamped lines to stderr.

    The format is::

        YYYY-MM-DD HH:MM:SS - logger_name - LEVEL - message

    Calling this twice with the same name reuses the existing handler.

    Parameters
    ----------
    name : str
        Logger name (e.g. ``"etdcoeffs.ETDRK"``).
    loglevel : str or int, optional
        Logging level. Default is ``"WARNING"``.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_parse_loglevel(loglevel))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger


def set_log_level(logger: logging.Logger, loglevel: Union[str, int]) -> None:
    """
    Set or update the logging level of an existing logger.

    Raises
    ------
    ValueError
        If the provided string does not correspond to a valid logging level.
    """
    logger.setLevel(_parse_loglevel(loglevel))


def get_solver_logger(solver_class: type, loglevel: Union[str, int] = "WARNING") -> logging.Logger:
    r"""
    Return a standardized logger for a solver class.

    The logger name follows the pattern ``etdcoeffs.<ClassName>``.

    Parameters
    ----------
    solver_class : type
        Class object whose ``__name__`` names the logger.
    loglevel : str or int, optional
        Logging level. Default is ``"WARNING"``.

    Returns
    -------
    logging.Logger
        Configured logger named ``"etdcoeffs.<ClassName>"``.
    """
    return setup_logger(f"etdcoeffs.{solver_class.__name__}", loglevel)
