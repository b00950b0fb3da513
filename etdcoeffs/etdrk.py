r"""
Constant-step exponential integrator driven by a coefficient bundle
===================================================================

:class:`ETDRK` advances

.. math::

    \frac{\partial \mathbf{U}}{\partial t}
      = \mathcal{L}\mathbf{U} + \mathcal{N}(\mathbf{U})

with any scheme of :class:`etdcoeffs.schemes.Scheme`, using the
coefficients of :func:`etdcoeffs.coeffs.compute_coeffs`:

.. math::

    \mathbf{k}_i &= E_i\,\mathbf{u}_n
        + \sum_{j<i} A_{ij}\,\mathcal{N}_j
        + \sum_{k} U_{ik}\,\mathcal{N}(\mathbf{u}_{n-1-k}), \\
    \mathbf{u}_{n+1} &= E_{s+1}\,\mathbf{u}_n
        + \sum_{i} B_i\,\mathcal{N}_i
        + \sum_{k} V_k\,\mathcal{N}(\mathbf{u}_{n-1-k}),

with :math:`\mathcal{N}_i = \mathcal{N}(\mathbf{k}_i)`. Multistep schemes
take their first :math:`q - 1` steps with ``etdrk4`` to fill the history of
nonlinear evaluations.

References
----------
Cox, S. M. and Matthews, P. C. (2002).
*Exponential time differencing for stiff systems.*
Journal of Computational Physics, 176(2), 430-455.

Montanelli, H. and Bootland, N. (2020).
*Solving periodic semilinear stiff PDEs in 1D, 2D and 3D with exponential integrators.*
Mathematics and Computers in Simulation, 178, 307-327.
"""

from collections import deque
from typing import Callable, Deque, List, Optional, Union, Literal
import numpy as np

from .coeffs import CoeffBundle, compute_coeffs
from .phi import PhiConfig
from .schemes import Scheme
from .solver import BaseSolver

STARTUP_SCHEME = Scheme.ETDRK4


class ETDRK(BaseSolver):
    r"""
    Constant-step exponential time-differencing Runge-Kutta solver.

    Parameters
    ----------
    lin_op : np.ndarray
        Linear operator :math:`\mathcal{L}`, 1D (diagonal) or 2D square.
    nl_func : Callable[[np.ndarray], np.ndarray]
        Nonlinear function :math:`\mathcal{N}(\mathbf{U})`.
    scheme : str or Scheme, optional
        Scheme name. Default is ``"etdrk4"``.
    dim : int, optional
        Spatial dimension of the discretization (1, 2 or 3).
    nvars : int, optional
        Number of variables stacked in ``lin_op``.
    phi_config : PhiConfig, optional
        Contour settings for the phi-functions.
    loglevel : str or int, optional
        Logging verbosity level.

    Raises
    ------
    SchemeConfigError
        If ``scheme`` is not supported.

    Examples
    --------
    >>> solver = ETDRK(lin_op, nl_func, scheme="krogstad")
    >>> u_final = solver.evolve(u0, t0=0.0, tf=1.0, h=0.01, store_data=False)
    """

    def __init__(
        self,
        lin_op: np.ndarray,
        nl_func: Callable[[np.ndarray], np.ndarray],
        scheme: Union[str, Scheme] = "etdrk4",
        dim: int = 1,
        nvars: int = 1,
        phi_config: Optional[PhiConfig] = None,
        loglevel: Union[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], int] = "WARNING",
    ) -> None:
        super().__init__(lin_op, nl_func, loglevel=loglevel)
        self.scheme = Scheme.from_name(scheme)
        self.dim = dim
        self.nvars = nvars
        self.phi_config = phi_config if phi_config is not None else PhiConfig()
        self._coeffs: Optional[CoeffBundle] = None
        self._startup_coeffs: Optional[CoeffBundle] = None
        self._nl_history: Deque[np.ndarray] = deque(maxlen=self.scheme.steps - 1)
        self.logger.debug("Using scheme %s (order %d)", self.scheme.label, self.scheme.order)

    @property
    def coeffs(self) -> Optional[CoeffBundle]:
        """Coefficient bundle for the current step size (``None`` before the first step)."""
        return self._coeffs

    def _reset(self) -> None:
        """Drop cached coefficients and the multistep history."""
        self._coeffs = None
        self._startup_coeffs = None
        self._nl_history.clear()

    def _compute(self, scheme: Scheme, h: float) -> CoeffBundle:
        return compute_coeffs(
            scheme, h, self.lin_op, dim=self.dim, nvars=self.nvars, phi_config=self.phi_config
        )

    def _update_coeffs(self, h: float) -> None:
        """Recompute the coefficient bundle if the step size has changed."""
        if self._coeffs is not None and self._coeffs.dt == h:
            return
        if self._nl_history:
            self.logger.info("Step size changed to h=%s, restarting multistep history", h)
            self._nl_history.clear()
        self._coeffs = self._compute(self.scheme, h)
        self._startup_coeffs = None
        self.logger.debug("%s coefficients updated for step size h=%s", self.scheme.label, h)

    def _apply(self, op: np.ndarray, v: np.ndarray) -> np.ndarray:
        if self._diag:
            return op * v
        return op.dot(v)

    def _advance(self, coeffs: CoeffBundle, u: np.ndarray, nl_u: np.ndarray, nl_prev: List[np.ndarray]) -> np.ndarray:
        stage_nl = [nl_u]
        for i in range(1, coeffs.num_stages):
            k = self._apply(coeffs.E[i], u)
            for j, a_ij in coeffs.stage_terms(i):
                k = k + self._apply(a_ij, stage_nl[j])
            for m, u_im in coeffs.memory_terms(i):
                k = k + self._apply(u_im, nl_prev[m])
            stage_nl.append(self.nl_func(k))

        u_new = self._apply(coeffs.E[-1], u)
        for i, b_i in coeffs.output_terms():
            u_new = u_new + self._apply(b_i, stage_nl[i])
        for m, v_m in coeffs.output_memory_terms():
            u_new = u_new + self._apply(v_m, nl_prev[m])
        return u_new

    def _update_stages(self, u: np.ndarray, h: float) -> np.ndarray:
        """
        Advance the solution by one step of size ``h``.

        Parameters
        ----------
        u : np.ndarray
            Current solution vector.
        h : float
            Time step size.

        Returns
        -------
        np.ndarray
            Updated solution vector.
        """
        self._update_coeffs(h)
        nl_u = self.nl_func(u)

        if len(self._nl_history) < self.scheme.steps - 1:
            if self._startup_coeffs is None:
                self._startup_coeffs = self._compute(STARTUP_SCHEME, h)
            self.logger.debug("Multistep startup step %d with %s", len(self._nl_history) + 1, STARTUP_SCHEME.label)
            u_new = self._advance(self._startup_coeffs, u, nl_u, [])
        else:
            u_new = self._advance(self._coeffs, u, nl_u, list(self._nl_history))

        if self.scheme.is_multistep:
            self._nl_history.appendleft(nl_u)
        return u_new
