r"""
Phi-function evaluation for exponential integrators
===================================================

Evaluates the **phi-functions**

.. math::

    \varphi_0(z) = e^z, \qquad
    \varphi_{k+1}(z) = \frac{\varphi_k(z) - 1/k!}{z}, \qquad
    \varphi_k(0) = \frac{1}{k!},

and the **phit-functions** :math:`\varphi_k(c, z) = c^k \varphi_k(c z)` used by
the stages of exponential Runge-Kutta schemes with abscissa :math:`c`.

Direct evaluation of the recurrence loses all accuracy as :math:`z \to 0`.
For such modes the value is recovered from the mean-value property of
analytic functions: averaging :math:`\varphi_k` over a circle of nodes
centred at :math:`z`,

.. math::

    \varphi_k(z) \approx \frac{1}{M}\sum_{m=1}^{M} \varphi_k(z + r_m),
    \qquad r_m = R\,e^{i\theta_m},

keeps every evaluation point away from the removable singularity
(Kassam & Trefethen, 2005). When the linear operator is real only the upper
half circle is needed, and the real part of the mean is taken.

Contents
--------
- :class:`PhiConfig` - contour and cutoff settings.
- :func:`phi_direct` - elementwise recurrence evaluation.
- :func:`condition_operator` - build the conditioned operator ``LR``.
- :class:`ContourPhiProvider` - provider for diagonal operators.
- :class:`ExpmPhiProvider` - provider for dense square operators.
- :func:`default_provider` - pick a provider from the operator's shape.

References
----------
Kassam, A.-K. and Trefethen, L. N. (2005).
*Fourth-order time-stepping for stiff PDEs.*
SIAM J. Sci. Comput. 26(4), 1214-1233.
"""

from typing import Optional, Union
import numpy as np
from scipy.linalg import expm

from .exceptions import PhiEvaluationError


class PhiConfig:
    r"""
    Configuration parameters for phi-function evaluation.

    Parameters
    ----------
    modecutoff : float, optional
        Modes with :math:`|\Delta t\,\lambda|` below this threshold are
        evaluated by contour averaging, larger modes directly.
    contour_points : int, optional
        Number of contour nodes :math:`M`.
    contour_radius : float, optional
        Radius :math:`R` of the circle of nodes around each small mode.

    Notes
    -----
    The recurrence for :math:`\varphi_5` divides by :math:`z^4` after the
    first step, so the cutoff is much larger than the one needed by
    :math:`\varphi_1` alone.
    """

    def __init__(self, modecutoff: float = 0.5, contour_points: int = 32, contour_radius: float = 1.0) -> None:
        self._modecutoff: float = 0.5
        self._contour_points: int = 32
        self._contour_radius: float = 1.0
        self.modecutoff = modecutoff
        self.contour_points = contour_points
        self.contour_radius = contour_radius

    def __repr__(self) -> str:
        return (
            f"PhiConfig(modecutoff={self.modecutoff}, contour_points={self.contour_points}, "
            f"contour_radius={self.contour_radius})"
        )

    @property
    def modecutoff(self) -> float:
        """Threshold between contour and direct evaluation.

        Must be between 0.0 and 1.0.
        """
        return self._modecutoff

    @modecutoff.setter
    def modecutoff(self, value: float) -> None:
        if (value > 1.0) or (value <= 0):
            raise ValueError(f"modecutoff must be between 0.0 and 1.0 but is {value}")
        self._modecutoff = value

    @property
    def contour_points(self) -> int:
        """Number of contour nodes.

        Must be an integer greater than 1.
        """
        return self._contour_points

    @contour_points.setter
    def contour_points(self, value: int) -> None:
        if not isinstance(value, int):
            raise TypeError(f"contour_points must be an integer but is {value}")
        if value <= 1:
            raise ValueError(f"contour_points must be an integer greater than 1 but is {value}")
        self._contour_points = value

    @property
    def contour_radius(self) -> float:
        """Radius of the circle of contour nodes.

        Must be greater than 0.
        """
        return self._contour_radius

    @contour_radius.setter
    def contour_radius(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"contour_radius must greater than 0 but is {value}")
        self._contour_radius = value


def phi_direct(order: int, z: np.ndarray) -> np.ndarray:
    r"""
    Evaluate :math:`\varphi_k(z)` element-wise by the recurrence.

    Accurate only away from :math:`z = 0`; use a provider for arbitrary modes.

    Parameters
    ----------
    order : int
        Non-negative phi-function index :math:`k`.
    z : np.ndarray
        Real or complex array without zero entries (for ``order >= 1``).

    Returns
    -------
    np.ndarray
        Array of the same shape as `z`.
    """
    if order < 0:
        raise ValueError(f"order must be non-negative but is {order}")
    z = np.asarray(z)
    if order == 0:
        return np.exp(z)
    phi = np.expm1(z) / z
    factorial = 1.0
    for k in range(1, order):
        factorial *= k
        phi = (phi - 1.0 / factorial) / z
    return phi


def condition_operator(lin_op: np.ndarray, dt: float, config: Optional[PhiConfig] = None) -> np.ndarray:
    r"""
    Build the conditioned operator ``LR`` passed to the phi-function providers.

    Parameters
    ----------
    lin_op : np.ndarray
        Linear operator :math:`\mathcal{L}`, either 1D (diagonal) or a 2D
        square matrix.
    dt : float
        Time step.
    config : PhiConfig, optional
        Contour settings. Defaults to :class:`PhiConfig()`.

    Returns
    -------
    np.ndarray
        For a diagonal operator, a ``(rows, contour_points)`` complex array
        whose row ``i`` holds the nodes at which :math:`\varphi_k` is averaged
        for mode :math:`\Delta t\,\lambda_i` (all equal to
        :math:`\Delta t\,\lambda_i` for large modes). For a matrix operator,
        :math:`\Delta t\,\mathcal{L}`.

    Raises
    ------
    ValueError
        If ``lin_op`` is neither 1D nor square 2D.
    """
    config = config if config is not None else PhiConfig()
    lin_op = np.asarray(lin_op)
    if lin_op.ndim == 2:
        if lin_op.shape[0] != lin_op.shape[1]:
            raise ValueError("lin_op must be a square matrix")
        return dt * lin_op
    if lin_op.ndim != 1:
        raise ValueError("lin_op must be 1D or 2D")

    m = config.contour_points
    if np.all(np.isreal(lin_op)):
        # conj symmetry: the real part of the upper half mean is the full mean
        nodes = config.contour_radius * np.exp(1j * np.pi * np.arange(0.5, m) / m)
    else:
        nodes = config.contour_radius * np.exp(2j * np.pi * np.arange(0.5, m) / m)

    z = dt * lin_op.astype(np.complex128)
    lr = np.repeat(z[:, np.newaxis], m, axis=1)
    smallmode_idx = np.abs(z) < config.modecutoff
    lr[smallmode_idx, :] += nodes[np.newaxis, :]
    return lr


def _check_order(order: int) -> None:
    if not isinstance(order, (int, np.integer)) or order < 1:
        raise ValueError(f"order must be a positive integer but is {order}")


def _check_fraction(fraction: float) -> None:
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"fraction must lie in [0, 1] but is {fraction}")


def _check_layout(rows: int, n: int, dim: int, nvars: int) -> None:
    if dim not in (1, 2, 3):
        raise ValueError(f"dim must be 1, 2 or 3 but is {dim}")
    if nvars < 1 or n * nvars != rows:
        raise ValueError(f"operator has {rows} rows, expected n*nvars = {n}*{nvars}")


def _check_finite(result: np.ndarray, order: int) -> np.ndarray:
    if not np.all(np.isfinite(result)):
        raise PhiEvaluationError(f"phi_{order} evaluation produced non-finite values")
    return result


class ContourPhiProvider:
    r"""
    Phi-function provider for diagonal operators.

    Accepts the ``(rows, M)`` array built by :func:`condition_operator` and
    averages :func:`phi_direct` over each row. A 1D ``lr`` is evaluated
    directly, which is only safe when no mode is close to zero.
    """

    def phi(self, order: int, lr: np.ndarray, n: int, dim: int, nvars: int) -> np.ndarray:
        r"""
        Evaluate :math:`\varphi_k` of the conditioned operator.

        Parameters
        ----------
        order : int
            Phi-function index :math:`k \geq 1`.
        lr : np.ndarray
            Conditioned operator.
        n : int
            Per-variable discretization size.
        dim : int
            Spatial dimension (1, 2 or 3).
        nvars : int
            Number of variables.

        Returns
        -------
        np.ndarray
            1D array with one value per mode.
        """
        _check_order(order)
        lr = np.asarray(lr)
        _check_layout(lr.shape[0], n, dim, nvars)
        values = phi_direct(order, lr)
        if values.ndim == 2:
            values = np.mean(values, axis=1)
        return _check_finite(values, order)

    def phit(self, order: int, fraction: float, lr: np.ndarray, n: int, dim: int, nvars: int) -> np.ndarray:
        r"""Evaluate :math:`c^k\varphi_k(c\,LR)` for abscissa ``fraction`` :math:`= c`."""
        _check_order(order)
        _check_fraction(fraction)
        lr = np.asarray(lr)
        if fraction == 0:
            _check_layout(lr.shape[0], n, dim, nvars)
            return np.zeros(lr.shape[0], dtype=np.complex128)
        return fraction**order * self.phi(order, fraction * lr, n, dim, nvars)


class ExpmPhiProvider:
    r"""
    Phi-function provider for dense square operators.

    Uses the augmented-matrix identity

    .. math::

        \exp\begin{pmatrix}
            Z & I & & \\
              & 0 & \ddots & \\
              &   & \ddots & I \\
              &   &        & 0
        \end{pmatrix}
        = \begin{pmatrix}
            e^Z & \varphi_1(Z) & \cdots & \varphi_k(Z) \\
                & \ddots & & \vdots
        \end{pmatrix}

    so that a single :func:`scipy.linalg.expm` of size :math:`(k+1)m` yields
    :math:`\varphi_k(Z)` with no cancellation near singular :math:`Z`.
    """

    def phi(self, order: int, lr: np.ndarray, n: int, dim: int, nvars: int) -> np.ndarray:
        """Evaluate :math:`\\varphi_k(LR)` for a square ``lr``."""
        _check_order(order)
        lr = np.asarray(lr)
        if lr.ndim != 2 or lr.shape[0] != lr.shape[1]:
            raise ValueError("ExpmPhiProvider requires a square 2D operator")
        _check_layout(lr.shape[0], n, dim, nvars)

        m = lr.shape[0]
        aug = np.zeros(((order + 1) * m, (order + 1) * m), dtype=np.result_type(lr, np.float64))
        aug[:m, :m] = lr
        for k in range(order):
            aug[k * m : (k + 1) * m, (k + 1) * m : (k + 2) * m] = np.eye(m)
        result = expm(aug)[:m, order * m : (order + 1) * m]
        return _check_finite(result, order)

    def phit(self, order: int, fraction: float, lr: np.ndarray, n: int, dim: int, nvars: int) -> np.ndarray:
        """Evaluate :math:`c^k\\varphi_k(c\\,LR)` for a square ``lr``."""
        _check_order(order)
        _check_fraction(fraction)
        lr = np.asarray(lr)
        if fraction == 0:
            _check_layout(lr.shape[0], n, dim, nvars)
            return np.zeros(lr.shape, dtype=np.result_type(lr, np.float64))
        return fraction**order * self.phi(order, fraction * lr, n, dim, nvars)


def default_provider(lin_op: np.ndarray) -> Union[ContourPhiProvider, ExpmPhiProvider]:
    """Return :class:`ExpmPhiProvider` for matrix operators, :class:`ContourPhiProvider` otherwise."""
    if np.ndim(lin_op) == 2:
        return ExpmPhiProvider()
    return ContourPhiProvider()
