r"""
Coefficients of exponential time-differencing Runge-Kutta schemes
=================================================================

Builds the coefficient bundle used to advance

.. math::

    \frac{\partial \mathbf{U}}{\partial t}
    = \mathcal{L}\mathbf{U} + \mathcal{N}(\mathbf{U})

with an :math:`s`-stage, :math:`q`-step exponential integrator:

.. math::

    \mathbf{k}_i &= E_i\,\mathbf{u}_n
        + \sum_{j<i} A_{ij}\,\mathcal{N}(\mathbf{k}_j)
        + \sum_{k=1}^{q-1} U_{ik}\,\mathcal{N}(\mathbf{u}_{n-k}), \\
    \mathbf{u}_{n+1} &= E_{s+1}\,\mathbf{u}_n
        + \sum_{i} B_i\,\mathcal{N}(\mathbf{k}_i)
        + \sum_{k=1}^{q-1} V_k\,\mathcal{N}(\mathbf{u}_{n-k}),

where :math:`E_i = e^{c_i\Delta t\mathcal{L}}` and every :math:`A`, :math:`B`,
:math:`U`, :math:`V` entry is :math:`\Delta t` times a rational combination of
phi-functions of :math:`\Delta t\mathcal{L}`.

The work is split in two steps:

1. :func:`assemble` evaluates the phi-functions a scheme needs and fills in
   its hand-derived entries.
2. :func:`complete` fills the first column of :math:`A` and the first
   output weight from the row-sum identities

   .. math::

       \sum_j A_{ij} + \sum_k U_{ik} = c_i\,\varphi_1(c_i\Delta t\mathcal{L}),
       \qquad
       \sum_i B_i + \sum_k V_k = \varphi_1(\Delta t\mathcal{L}),

   builds the propagators and scales by :math:`\Delta t`.

:func:`compute_coeffs` runs both. Stage, output and memory indices are
0-based: ``A[(i, 0)]`` is the first column and ``U[(i, 0)]`` multiplies the
nonlinear term of the previous step.
"""

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union
import numpy as np
from scipy.linalg import expm

from .exceptions import CoeffConsistencyError
from .phi import PhiConfig, condition_operator, default_provider, ContourPhiProvider
from .schemes import Scheme

logger = logging.getLogger(__name__)


class PhiTable:
    r"""
    Per-call cache of evaluated phi- and phit-functions.

    Values are keyed by ``(order, fraction)``; :math:`\varphi_k` itself is the
    key ``(k, 1.0)`` since :math:`\varphi_k(1, z) = \varphi_k(z)`. Each key is
    sent to the provider at most once, so stages sharing an abscissa share a
    single evaluation.

    Parameters
    ----------
    provider : object
        Phi-function provider with ``phi(order, lr, n, dim, nvars)`` and
        ``phit(order, fraction, lr, n, dim, nvars)`` methods.
    lr : np.ndarray
        Conditioned linear operator.
    n, dim, nvars : int
        Layout metadata passed through to the provider.
    real : bool
        Take the real part of every evaluated value.
    """

    def __init__(self, provider: Any, lr: np.ndarray, n: int, dim: int, nvars: int, real: bool) -> None:
        self.provider = provider
        self.lr = lr
        self.n = n
        self.dim = dim
        self.nvars = nvars
        self.real = real
        self._values: Dict[Tuple[int, float], np.ndarray] = {}

    @staticmethod
    def _key(order: int, fraction: float) -> Tuple[int, float]:
        return int(order), float(fraction)

    def __contains__(self, key: Tuple[int, float]) -> bool:
        return self._key(*key) in self._values

    def __len__(self) -> int:
        return len(self._values)

    def keys(self) -> List[Tuple[int, float]]:
        """Evaluated ``(order, fraction)`` keys in evaluation order."""
        return list(self._values)

    def phi(self, order: int) -> np.ndarray:
        r"""Return :math:`\varphi_k`, evaluating it on first use."""
        return self.phit(order, 1.0)

    def phit(self, order: int, fraction: float) -> np.ndarray:
        r"""Return :math:`\varphi_k(c, \cdot)` for ``fraction`` :math:`= c`, evaluating it on first use."""
        key = self._key(order, fraction)
        if key not in self._values:
            self._values[key] = self._reduce(self._evaluate(*key))
        return self._values[key]

    def lookup(self, order: int, fraction: float) -> np.ndarray:
        """
        Return an already evaluated value without calling the provider.

        Raises
        ------
        CoeffConsistencyError
            If ``(order, fraction)`` was never evaluated.
        """
        key = self._key(order, fraction)
        try:
            return self._values[key]
        except KeyError:
            raise CoeffConsistencyError(
                f"phit(order={key[0]}, fraction={key[1]}) is needed but was never evaluated"
            ) from None

    def _evaluate(self, order: int, fraction: float) -> np.ndarray:
        if fraction == 1.0:
            return self.provider.phi(order, self.lr, self.n, self.dim, self.nvars)
        return self.provider.phit(order, fraction, self.lr, self.n, self.dim, self.nvars)

    def _reduce(self, value: np.ndarray) -> np.ndarray:
        # every evaluated value passes through here exactly once
        return np.real(value) if self.real else value


class PartialCoeffs:  # pylint: disable=too-few-public-methods
    """
    Coefficients filled in by :func:`assemble`, before completion and scaling.

    Attributes
    ----------
    scheme : Scheme
        Scheme the coefficients belong to.
    A : dict
        Stage coupling entries keyed by ``(i, j)`` with ``i > j >= 1``.
    B : dict
        Output weights keyed by stage ``i >= 1``.
    C : np.ndarray
        Stage abscissae.
    U : dict
        Stage memory entries keyed by ``(i, k)`` with ``0 <= k < q - 1``.
    V : dict
        Output memory weights keyed by ``k``.
    """

    def __init__(self, scheme: Scheme) -> None:
        self.scheme = scheme
        self.A: Dict[Tuple[int, int], np.ndarray] = {}
        self.B: Dict[int, np.ndarray] = {}
        self.C = np.zeros(scheme.internal_stages)
        self.U: Dict[Tuple[int, int], np.ndarray] = {}
        self.V: Dict[int, np.ndarray] = {}


def _freeze(value: np.ndarray) -> np.ndarray:
    value = np.array(value, copy=True)
    value.setflags(write=False)
    return value


class CoeffBundle:
    r"""
    Immutable set of ETDRK coefficients for one ``(dt, L)`` pair.

    Parameters
    ----------
    scheme : Scheme
        Scheme the coefficients belong to.
    dt : float
        Time step the coefficients were scaled with.
    A, B, C, E, U, V
        Completed and scaled coefficients (see module docstring).

    Notes
    -----
    ``A``, ``B``, ``U`` and ``V`` are read-only mappings holding only the
    populated entries; absent keys are structural zeros. ``C`` and the
    stored arrays are write-protected.
    """

    def __init__(
        self,
        scheme: Scheme,
        dt: float,
        A: Mapping[Tuple[int, int], np.ndarray],
        B: Mapping[int, np.ndarray],
        C: np.ndarray,
        E: Tuple[np.ndarray, ...],
        U: Mapping[Tuple[int, int], np.ndarray],
        V: Mapping[int, np.ndarray],
    ) -> None:
        self.scheme = scheme
        self.dt = dt
        self.A = MappingProxyType({key: _freeze(val) for key, val in A.items()})
        self.B = MappingProxyType({key: _freeze(val) for key, val in B.items()})
        self.C = _freeze(C)
        self.E = tuple(_freeze(val) for val in E)
        self.U = MappingProxyType({key: _freeze(val) for key, val in U.items()})
        self.V = MappingProxyType({key: _freeze(val) for key, val in V.items()})

    def __repr__(self) -> str:
        return f"CoeffBundle(scheme={self.scheme.label!r}, dt={self.dt})"

    @property
    def num_stages(self) -> int:
        """Number of internal stages :math:`s`."""
        return self.scheme.internal_stages

    @property
    def num_steps(self) -> int:
        """Number of steps :math:`q`."""
        return self.scheme.steps

    def stage_terms(self, i: int) -> List[Tuple[int, np.ndarray]]:
        """Populated ``(j, A[(i, j)])`` pairs of stage ``i`` in ascending ``j``."""
        return [(j, self.A[(i, j)]) for j in range(i) if (i, j) in self.A]

    def memory_terms(self, i: int) -> List[Tuple[int, np.ndarray]]:
        """Populated ``(k, U[(i, k)])`` pairs of stage ``i`` in ascending ``k``."""
        return [(k, self.U[(i, k)]) for k in range(self.num_steps - 1) if (i, k) in self.U]

    def output_terms(self) -> List[Tuple[int, np.ndarray]]:
        """Populated ``(i, B[i])`` pairs in ascending ``i``."""
        return [(i, self.B[i]) for i in range(self.num_stages) if i in self.B]

    def output_memory_terms(self) -> List[Tuple[int, np.ndarray]]:
        """Populated ``(k, V[k])`` pairs in ascending ``k``."""
        return [(k, self.V[k]) for k in range(self.num_steps - 1) if k in self.V]


# ----------------------------------------------------------------------
# Scheme recipes
# ----------------------------------------------------------------------
def _eglm433(table: PhiTable, coeffs: PartialCoeffs) -> None:
    coeffs.C[:] = [0.0, 1 / 2, 1.0]

    phi2, phi3 = table.phi(2), table.phi(3)
    phi4, phi5 = table.phi(4), table.phi(5)
    table.phit(1, coeffs.C[1])
    table.phit(1, coeffs.C[2])
    phit2_2 = table.phit(2, coeffs.C[1])
    phit3_2 = table.phit(3, coeffs.C[1])

    coeffs.A[(2, 1)] = 16 / 15 * phi2 + 16 / 5 * phi3 + 16 / 5 * phi4

    coeffs.B[1] = 32 / 15 * (phi2 + phi3) - 64 / 5 * phi4 - 128 / 5 * phi5
    coeffs.B[2] = -1 / 3 * phi2 + 1 / 3 * phi3 + 5 * phi4 + 8 * phi5

    coeffs.U[(1, 0)] = -2 * (phit2_2 + phit3_2)
    coeffs.U[(2, 0)] = -2 / 3 * phi2 + 2 * phi3 + 4 * phi4
    coeffs.U[(1, 1)] = 1 / 2 * phit2_2 + phit3_2
    coeffs.U[(2, 1)] = 1 / 10 * phi2 - 1 / 5 * phi3 - 6 / 5 * phi4

    coeffs.V[0] = -1 / 3 * phi2 + 5 / 3 * phi3 - phi4 - 8 * phi5
    coeffs.V[1] = 1 / 30 * phi2 - 2 / 15 * phi3 - 1 / 5 * phi4 + 8 / 5 * phi5


def _etdrk4(table: PhiTable, coeffs: PartialCoeffs) -> None:
    coeffs.C[:] = [0.0, 1 / 2, 1 / 2, 1.0]

    phi2, phi3 = table.phi(2), table.phi(3)
    phit1_2 = table.phit(1, coeffs.C[1])
    table.phit(1, coeffs.C[2])
    table.phit(1, coeffs.C[3])

    coeffs.A[(2, 1)] = phit1_2
    coeffs.A[(3, 2)] = 2 * phit1_2

    coeffs.B[1] = 2 * phi2 - 4 * phi3
    coeffs.B[2] = 2 * phi2 - 4 * phi3
    coeffs.B[3] = -phi2 + 4 * phi3


def _exprk5s8(table: PhiTable, coeffs: PartialCoeffs) -> None:  # pylint: disable=too-many-locals
    c = coeffs.C
    c[:] = [0.0, 1 / 2, 1 / 2, 1 / 4, 1 / 2, 1 / 5, 2 / 3, 1.0]

    phi2, phi3, phi4 = table.phi(2), table.phi(3), table.phi(4)
    for i in range(1, 8):
        table.phit(1, c[i])
    phit2_2 = table.phit(2, c[1])
    phit2_4 = table.phit(2, c[3])
    phit2_6 = table.phit(2, c[5])
    phit2_7 = table.phit(2, c[6])
    phit3_2 = table.phit(3, c[1])
    phit3_6 = table.phit(3, c[5])
    phit3_7 = table.phit(3, c[6])
    phit4_6 = table.phit(4, c[5])
    phit4_7 = table.phit(4, c[6])

    a = coeffs.A
    a[(2, 1)] = 2 * phit2_2
    a[(3, 2)] = 2 * phit2_4
    a[(4, 2)] = -2 * phit2_2 + 16 * phit3_2
    a[(4, 3)] = 8 * phit2_2 - 32 * phit3_2
    a[(5, 3)] = 8 * phit2_6 - 32 * phit3_6
    a[(6, 3)] = -(125 / 162) * a[(5, 3)]
    a[(5, 4)] = -2 * phit2_6 + 16 * phit3_6
    a[(6, 4)] = (125 / 1944) * a[(5, 3)] - (4 / 3) * phit2_7 + (40 / 3) * phit3_7
    big_phi = (
        (5 / 32) * a[(5, 3)]
        - (25 / 28) * phit2_6
        + (81 / 175) * phit2_7
        - (162 / 25) * phit3_7
        + (150 / 7) * phit4_6
        + (972 / 35) * phit4_7
        + 6 * phi4
    )
    a[(7, 4)] = -(16 / 3) * phi2 + (208 / 3) * phi3 - 40 * big_phi
    a[(6, 5)] = (3125 / 3888) * a[(5, 3)] + (25 / 3) * phit2_7 - (100 / 3) * phit3_7
    a[(7, 5)] = (250 / 21) * phi2 - (250 / 3) * phi3 + (250 / 7) * big_phi
    a[(7, 6)] = (27 / 14) * phi2 - 27 * phi3 + (135 / 7) * big_phi

    coeffs.B[5] = (125 / 14) * phi2 - (625 / 14) * phi3 + (1125 / 14) * phi4
    coeffs.B[6] = -(27 / 14) * phi2 + (162 / 7) * phi3 - (405 / 7) * phi4
    coeffs.B[7] = (1 / 2) * phi2 - (13 / 2) * phi3 + (45 / 2) * phi4


def _krogstad(table: PhiTable, coeffs: PartialCoeffs) -> None:
    coeffs.C[:] = [0.0, 1 / 2, 1 / 2, 1.0]

    phi2, phi3 = table.phi(2), table.phi(3)
    table.phit(1, coeffs.C[1])
    table.phit(1, coeffs.C[2])
    table.phit(1, coeffs.C[3])
    phit2_2 = table.phit(2, coeffs.C[1])

    coeffs.A[(2, 1)] = 4 * phit2_2
    coeffs.A[(3, 2)] = 2 * phi2

    coeffs.B[1] = 2 * phi2 - 4 * phi3
    coeffs.B[2] = 2 * phi2 - 4 * phi3
    coeffs.B[3] = -phi2 + 4 * phi3


def _pecec433(table: PhiTable, coeffs: PartialCoeffs) -> None:
    coeffs.C[:] = [0.0, 1.0, 1.0]

    phi2, phi3, phi4 = table.phi(2), table.phi(3), table.phi(4)
    table.phit(1, coeffs.C[1])
    table.phit(1, coeffs.C[2])

    coeffs.A[(2, 1)] = 1 / 3 * phi2 + phi3 + phi4

    coeffs.B[2] = 1 / 3 * phi2 + phi3 + phi4

    coeffs.U[(1, 0)] = -2 * phi2 - 2 * phi3
    coeffs.U[(2, 0)] = -phi2 + phi3 + 3 * phi4
    coeffs.U[(1, 1)] = 1 / 2 * phi2 + phi3
    coeffs.U[(2, 1)] = 1 / 6 * phi2 - phi4

    coeffs.V[0] = -phi2 + phi3 + 3 * phi4
    coeffs.V[1] = 1 / 6 * phi2 - phi4


_RECIPES: Dict[Scheme, Callable[[PhiTable, PartialCoeffs], None]] = {
    Scheme.EGLM433: _eglm433,
    Scheme.ETDRK4: _etdrk4,
    Scheme.EXPRK5S8: _exprk5s8,
    Scheme.KROGSTAD: _krogstad,
    Scheme.PECEC433: _pecec433,
}


def _check_structure(coeffs: PartialCoeffs) -> None:
    """Reject recipe entries outside the explicit, non-derived part of the tables."""
    s, q = coeffs.scheme.internal_stages, coeffs.scheme.steps
    for i, j in coeffs.A:
        if not 1 <= j < i < s:
            raise CoeffConsistencyError(f"{coeffs.scheme.label}: recipe sets A[({i}, {j})]")
    for i in coeffs.B:
        if not 1 <= i < s:
            raise CoeffConsistencyError(f"{coeffs.scheme.label}: recipe sets B[{i}]")
    for i, k in coeffs.U:
        if not (1 <= i < s and 0 <= k < q - 1):
            raise CoeffConsistencyError(f"{coeffs.scheme.label}: recipe sets U[({i}, {k})]")
    for k in coeffs.V:
        if not 0 <= k < q - 1:
            raise CoeffConsistencyError(f"{coeffs.scheme.label}: recipe sets V[{k}]")


# ----------------------------------------------------------------------
# Assembly and completion
# ----------------------------------------------------------------------
def assemble(
    scheme_name: Union[str, Scheme],
    internal_stages: int,
    steps: int,
    lr: np.ndarray,
    n: int,
    dim: int,
    nvars: int,
    l_is_real: bool,
    provider: Optional[Any] = None,
) -> Tuple[PartialCoeffs, np.ndarray, PhiTable]:
    r"""
    Compute the scheme-specific coefficients of an ETDRK scheme.

    Parameters
    ----------
    scheme_name : str or Scheme
        One of :func:`etdcoeffs.schemes.available_schemes`.
    internal_stages : int
        Number of stages :math:`s`; must match the scheme.
    steps : int
        Number of steps :math:`q`; must match the scheme.
    lr : np.ndarray
        Conditioned linear operator (see :func:`etdcoeffs.phi.condition_operator`).
    n : int
        Per-variable discretization size.
    dim : int
        Spatial dimension, passed to the provider.
    nvars : int
        Number of variables, passed to the provider.
    l_is_real : bool
        Whether the linear operator is real; if so the real part of every
        phi/phit value is used.
    provider : object, optional
        Phi-function provider. Defaults to :class:`etdcoeffs.phi.ContourPhiProvider`.

    Returns
    -------
    partial : PartialCoeffs
        Abscissae and the recipe entries of ``A``, ``B``, ``U``, ``V``.
    phi1 : np.ndarray
        :math:`\varphi_1` of the conditioned operator.
    table : PhiTable
        All evaluated phi/phit values, used by :func:`complete`.

    Raises
    ------
    SchemeConfigError
        If the scheme is unknown or ``internal_stages``/``steps`` do not match it.
    """
    scheme = Scheme.from_name(scheme_name)
    scheme.validate(internal_stages, steps)
    provider = provider if provider is not None else ContourPhiProvider()

    table = PhiTable(provider, lr, n, dim, nvars, real=l_is_real)
    phi1 = table.phi(1)
    table.phi(2)
    table.phi(3)

    partial = PartialCoeffs(scheme)
    _RECIPES[scheme](table, partial)
    _check_structure(partial)
    logger.debug("Assembled %s coefficients from %d phi-function evaluations", scheme.label, len(table))
    return partial, phi1, table


def _propagator(lin_op: np.ndarray, t: float) -> np.ndarray:
    if lin_op.ndim == 2:
        return expm(t * lin_op)
    return np.exp(t * lin_op)


def complete(
    scheme: Union[str, Scheme],
    lin_op: np.ndarray,
    partial: PartialCoeffs,
    dt: float,
    phi1: np.ndarray,
    table: PhiTable,
) -> CoeffBundle:
    r"""
    Complete a partial coefficient set and scale it by the time step.

    Fills :math:`A_{i1}` for every stage and :math:`B_1` from the row-sum
    identities, builds :math:`E_i = e^{c_i\Delta t\mathcal{L}}` and
    :math:`E_{s+1} = e^{\Delta t\mathcal{L}}`, then multiplies every
    :math:`A`, :math:`B`, :math:`U` and :math:`V` entry by :math:`\Delta t`.

    Parameters
    ----------
    scheme : str or Scheme
        Scheme of ``partial``.
    lin_op : np.ndarray
        Linear operator :math:`\mathcal{L}` (1D diagonal or 2D square).
    partial : PartialCoeffs
        Output of :func:`assemble`. Not modified.
    dt : float
        Time step.
    phi1 : np.ndarray
        :math:`\varphi_1` of the conditioned operator.
    table : PhiTable
        Evaluated phit-functions; must contain ``phit(1, C[i])`` for every stage.

    Returns
    -------
    CoeffBundle
        Completed, scaled coefficients.

    Raises
    ------
    CoeffConsistencyError
        If a needed phit value is missing from ``table``.
    """
    scheme = Scheme.from_name(scheme)
    if partial.scheme is not scheme:
        raise CoeffConsistencyError(f"partial coefficients of {partial.scheme.label} completed as {scheme.label}")
    s, q = scheme.internal_stages, scheme.steps
    lin_op = np.asarray(lin_op)

    a_coeffs = dict(partial.A)
    b_coeffs = dict(partial.B)
    u_coeffs = dict(partial.U)
    v_coeffs = dict(partial.V)
    c_coeffs = np.array(partial.C, dtype=float)

    # row sums, in ascending stage order
    for i in range(1, s):
        a_i1 = table.lookup(1, c_coeffs[i])
        for j in range(1, i):
            if (i, j) in a_coeffs:
                a_i1 = a_i1 - a_coeffs[(i, j)]
        for k in range(q - 1):
            if (i, k) in u_coeffs:
                a_i1 = a_i1 - u_coeffs[(i, k)]
        a_coeffs[(i, 0)] = a_i1

    b_1 = phi1
    for i in range(1, s):
        if i in b_coeffs:
            b_1 = b_1 - b_coeffs[i]
    for k in range(q - 1):
        if k in v_coeffs:
            b_1 = b_1 - v_coeffs[k]
    b_coeffs[0] = b_1

    e_coeffs = tuple(_propagator(lin_op, c_coeffs[i] * dt) for i in range(s)) + (_propagator(lin_op, dt),)

    bundle = CoeffBundle(
        scheme,
        dt,
        A={key: dt * val for key, val in a_coeffs.items()},
        B={key: dt * val for key, val in b_coeffs.items()},
        C=c_coeffs,
        E=e_coeffs,
        U={key: dt * val for key, val in u_coeffs.items()},
        V={key: dt * val for key, val in v_coeffs.items()},
    )
    logger.debug("Completed %s coefficients for dt=%s", scheme.label, dt)
    return bundle


def compute_coeffs(
    scheme: Union[str, Scheme],
    dt: float,
    lin_op: np.ndarray,
    lr: Optional[np.ndarray] = None,
    dim: int = 1,
    nvars: int = 1,
    provider: Optional[Any] = None,
    phi_config: Optional[PhiConfig] = None,
) -> CoeffBundle:
    r"""
    Compute the full coefficient bundle of an ETDRK scheme.

    Parameters
    ----------
    scheme : str or Scheme
        Scheme name, e.g. ``"etdrk4"``.
    dt : float
        Time step, must be positive.
    lin_op : np.ndarray
        Linear operator :math:`\mathcal{L}`: 1D (diagonal) or 2D square.
    lr : np.ndarray, optional
        Conditioned operator. Built with :func:`etdcoeffs.phi.condition_operator`
        when omitted.
    dim : int, optional
        Spatial dimension (1, 2 or 3). Default is 1.
    nvars : int, optional
        Number of variables sharing the discretization. Default is 1.
    provider : object, optional
        Phi-function provider; chosen from the shape of ``lin_op`` when omitted.
    phi_config : PhiConfig, optional
        Contour settings used when ``lr`` is built here.

    Returns
    -------
    CoeffBundle
        Completed coefficients scaled by ``dt``.

    Raises
    ------
    SchemeConfigError
        If ``scheme`` is not supported.
    ValueError
        If ``dt``, ``lin_op``, ``dim`` or ``nvars`` are invalid.

    Examples
    --------
    >>> import numpy as np
    >>> bundle = compute_coeffs("etdrk4", 0.1, np.array([-1.0, -4.0]))
    >>> bundle.C
    array([0. , 0.5, 0.5, 1. ])
    """
    scheme = Scheme.from_name(scheme)
    if dt <= 0:
        raise ValueError(f"dt must be positive but is {dt}")
    lin_op = np.asarray(lin_op)
    if lin_op.ndim not in (1, 2):
        raise ValueError("lin_op must be 1D or 2D")
    if lin_op.ndim == 2 and lin_op.shape[0] != lin_op.shape[1]:
        raise ValueError("lin_op must be a square matrix")
    if dim not in (1, 2, 3):
        raise ValueError(f"dim must be 1, 2 or 3 but is {dim}")
    rows = lin_op.shape[0]
    if nvars < 1 or rows % nvars != 0:
        raise ValueError(f"nvars={nvars} does not divide the {rows} rows of lin_op")

    if lr is None:
        lr = condition_operator(lin_op, dt, phi_config)
    if provider is None:
        provider = default_provider(lin_op)
    l_is_real = bool(np.all(np.isreal(lin_op)))

    partial, phi1, table = assemble(
        scheme, scheme.internal_stages, scheme.steps, lr, rows // nvars, dim, nvars, l_is_real, provider
    )
    return complete(scheme, lin_op, partial, dt, phi1, table)
