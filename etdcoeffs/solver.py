r"""
Constant-step solver infrastructure
===================================

Base class for solvers that advance semi-linear systems

.. math::

        \frac{\partial \mathbf{U}}{\partial t}
        = \mathcal{L}\mathbf{U}
        + \mathcal{N}(\mathbf{U}),

with a *fixed* time step, where :math:`\mathcal{L}` is a (possibly stiff)
linear operator and :math:`\mathcal{N}` a nonlinear function.

:class:`BaseSolver` validates the linear operator, owns the solver logger and
implements the :meth:`~BaseSolver.step` / :meth:`~BaseSolver.evolve` loop.
Subclasses such as :class:`etdcoeffs.etdrk.ETDRK` implement the stage updates.
"""

from abc import ABC, abstractmethod
from typing import Callable, Union, Literal
import numpy as np

from .util.loghelper import get_solver_logger, set_log_level, get_level_name


class BaseSolver(ABC):
    r"""
    Abstract base class for constant-step stiff solvers.

    Parameters
    ----------
    lin_op : np.ndarray
        Linear operator :math:`\mathcal{L}`. Either a 1D array (diagonal
        operator) or a 2D square matrix.
    nl_func : Callable[[np.ndarray], np.ndarray]
        Nonlinear function :math:`\mathcal{N}(\mathbf{U})`.
    loglevel : str or int, optional
        Logging level, as a name (``'DEBUG'``, ``'INFO'``...) or a
        :mod:`logging` constant. Default is ``'WARNING'``.

    Attributes
    ----------
    lin_op : np.ndarray
        Linear operator passed at construction.
    nl_func : Callable[[np.ndarray], np.ndarray]
        Nonlinear function for the system.
    logger : logging.Logger
        Logger named ``etdcoeffs.<ClassName>``.
    t : list of float
        Time points recorded during the last :meth:`evolve`.
    u : list of np.ndarray
        Solution vectors corresponding to :attr:`t`.

    Raises
    ------
    ValueError
        If ``lin_op`` is not 1D or a 2D square matrix.
    """

    def __init__(
        self,
        lin_op: np.ndarray,
        nl_func: Callable[[np.ndarray], np.ndarray],
        loglevel: Union[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], int] = "WARNING",
    ) -> None:
        self.lin_op = lin_op
        self.nl_func = nl_func

        self.logger = get_solver_logger(self.__class__, loglevel)
        self.logger.info("Initialized %s solver", self.__class__.__name__)

        self.t, self.u = [], []
        self.__tf, self.__tc = 0, 0

        dims = lin_op.shape
        if len(dims) not in (1, 2):
            raise ValueError("lin_op must be 1D or 2D")
        if len(dims) == 2 and dims[0] != dims[1]:
            raise ValueError("lin_op must be a square matrix")

        self._diag = len(dims) == 1
        self.logger.debug("Linear operator shape: %s, diagonal: %s", dims, self._diag)

    def set_loglevel(self, loglevel: Union[str, int]) -> None:
        """
        Adjust the solver's logging verbosity at runtime.

        Examples
        --------
        >>> solver.set_loglevel("INFO")
        >>> solver.set_loglevel(logging.DEBUG)
        """
        set_log_level(self.logger, loglevel)
        self.logger.info("Log level changed to %s", get_level_name(self.logger.level))

    def reset(self) -> None:
        """Reset solver state and clear stored time/solution data."""
        self.logger.debug("Resetting solver state")
        self.t, self.u = [], []
        self.__tf, self.__tc = 0, 0
        self._reset()

    @abstractmethod
    def _reset(self) -> None:
        """Clear subclass-specific caches or history."""

    @abstractmethod
    def _update_stages(self, u: np.ndarray, h: float) -> np.ndarray:
        r"""
        Advance one step of size :math:`h`.

        Parameters
        ----------
        u : np.ndarray
            Current solution vector :math:`\mathbf{u}_n`.
        h : float
            Time step size.

        Returns
        -------
        np.ndarray
            Updated state :math:`\mathbf{u}_{n+1}`.
        """

    def step(self, u: np.ndarray, h: float) -> np.ndarray:
        """
        Perform a single step of size ``h``.

        Parameters
        ----------
        u : np.ndarray
            Current solution vector.
        h : float
            Step size, must be positive.

        Returns
        -------
        np.ndarray
            Updated solution after one step.
        """
        if h <= 0.0:
            raise ValueError(f"Step size h must be positive but is {h}")
        self.logger.debug("Executing constant step with h=%s", h)
        return self._update_stages(u, h)

    def evolve(
        self,
        u: np.ndarray,
        t0: float,
        tf: float,
        h: float,
        store_data: bool = True,
        store_freq: int = 1,
    ) -> np.ndarray:
        r"""
        Integrate the system from :math:`t_0` to :math:`t_f` with fixed step size.

        Parameters
        ----------
        u : np.ndarray
            Initial solution vector at :math:`t_0`.
        t0 : float
            Initial time.
        tf : float
            Final time. The run takes the whole number of steps that ends
            nearest ``tf`` (ties round down), so it stops short of or past
            ``tf`` when ``h`` does not divide ``tf - t0``.
        h : float
            Constant step size.
        store_data : bool, default=True
            Whether to store intermediate results in :attr:`t` and :attr:`u`.
        store_freq : int, default=1
            Store every ``store_freq`` steps.

        Returns
        -------
        np.ndarray
            Final solution vector.

        Raises
        ------
        ValueError
            If ``h`` exceeds the total time span ``tf - t0``.
        """
        self.reset()
        self.logger.info("Starting constant-step evolution from t=%s to t=%s", t0, tf)
        self.__tf, self.__tc = tf, t0

        if store_data:
            self.t.append(t0)
            self.u.append(u)

        if self.__tc + h > self.__tf:
            raise ValueError("Step size h must be <= (tf - t0); reduce h or extend tf.")

        num_steps = (self.__tf - self.__tc) / h
        if not np.isclose(num_steps, round(num_steps)):
            self.logger.warning(
                "Step size h=%s does not divide tf - t0 = %s; stopping at the nearest step", h, self.__tf - self.__tc
            )

        step_count = 0
        # half-step slack keeps float accumulation of tc from adding an extra step
        while self.__tc < self.__tf - 0.5 * h:
            u = self.step(u, h)
            self.__tc += h
            step_count += 1

            if step_count % 100 == 0:
                self.logger.info("Progress: t=%.6f/%.6f, steps=%d", self.__tc, self.__tf, step_count)

            if store_data and (step_count % store_freq == 0):
                self.t.append(self.__tc)
                self.u.append(u)

        self.logger.info("Evolution complete after %d steps", step_count)
        return u
