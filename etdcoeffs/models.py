r"""
Benchmark models for exponential integrators
============================================

Periodic Fourier-space test problems with a diagonal linear part, used to
exercise the coefficient bundles of :mod:`etdcoeffs.coeffs` in a real time
loop.

Models included
---------------

- **Korteweg-de Vries (KdV)** equation: soliton dynamics, purely
  dispersive (imaginary) linear part.
- **Viscous Burgers** equation: real, diffusive linear part.
- **Kuramoto-Sivashinsky** equation: real linear part with unstable
  long waves and a zero mode.
"""

from typing import Callable, Tuple
import numpy as np


def construct_x_kx_rfft(n: int, a: float = 0.0, b: float = 2 * np.pi) -> Tuple[np.ndarray, np.ndarray]:
    r"""
    Construct a uniform periodic grid and its rFFT wavenumbers.

    Parameters
    ----------
    n : int
        Number of grid points. Must be an even integer greater than 2.
    a : float, optional
        Left endpoint of the domain. Default is ``0.0``.
    b : float, optional
        Right endpoint of the domain. Default is ``2π``.

    Returns
    -------
    x : np.ndarray
        ``n`` uniformly spaced points in :math:`[a, b)`.
    kx : np.ndarray
        ``n/2 + 1`` wavenumbers :math:`2\pi\,\mathrm{rfftfreq}(n, \Delta x)`.
    """
    if not isinstance(n, int):
        raise TypeError("n must be an integer.")
    if n <= 2 or (n % 2) != 0:
        raise ValueError("n must be an even integer greater than 2.")

    dx = (b - a) / n
    x = a + dx * np.arange(n)
    kx = 2 * np.pi * np.fft.rfftfreq(n, d=dx)
    return x, kx


def kdv_soliton(x: np.ndarray, ampl: float = 0.5, x0: float = 0.0, t: float = 0.0) -> np.ndarray:
    r"""
    Single-soliton solution of the KdV equation
    :math:`u_t + 6 u u_x + u_{xxx} = 0`:

    .. math::

        u(x,t) = \tfrac{1}{2} a^2
          \operatorname{sech}^2\!\left[\tfrac{1}{2} a (x - x_0 - a^2 t)\right].
    """
    return 0.5 * ampl**2 / (np.cosh(ampl * (x - x0 - ampl**2 * t) / 2) ** 2)


def kdv_ops(kx: np.ndarray) -> Tuple[np.ndarray, Callable[[np.ndarray], np.ndarray]]:
    r"""
    Linear and nonlinear operators of the KdV equation in rFFT space.

    Returns
    -------
    lin_op : np.ndarray
        :math:`L = i k_x^3`.
    nl_func : Callable[[np.ndarray], np.ndarray]
        :math:`N(\hat u) = -6\,\mathcal{F}[u u_x]`.
    """
    lin_op = 1j * kx**3

    def nl_func(uf: np.ndarray) -> np.ndarray:
        u = np.fft.irfft(uf)
        ux = np.fft.irfft(1j * kx * uf)
        return -6 * np.fft.rfft(u * ux)

    return lin_op, nl_func


def burgers_ops(kx: np.ndarray, mu: float) -> Tuple[np.ndarray, Callable[[np.ndarray], np.ndarray]]:
    r"""
    Linear and nonlinear operators of the viscous Burgers equation
    :math:`u_t + u u_x = \mu u_{xx}` in rFFT space.

    Returns
    -------
    lin_op : np.ndarray
        :math:`L = -\mu k_x^2` (real).
    nl_func : Callable[[np.ndarray], np.ndarray]
        :math:`N(\hat u) = -\mathcal{F}[u u_x]`.
    """
    lin_op = -mu * kx**2

    def nl_func(uf: np.ndarray) -> np.ndarray:
        u = np.fft.irfft(uf)
        ux = np.fft.irfft(1j * kx * uf)
        return -np.fft.rfft(u * ux)

    return lin_op, nl_func


def kuramoto_sivashinsky_ops(kx: np.ndarray) -> Tuple[np.ndarray, Callable[[np.ndarray], np.ndarray]]:
    r"""
    Linear and nonlinear operators of the Kuramoto-Sivashinsky equation

    .. math::

        u_t = -u_{xx} - u_{xxxx} - \tfrac{1}{2}(u^2)_x

    in rFFT space.

    Returns
    -------
    lin_op : np.ndarray
        :math:`L = k_x^2 - k_x^4` (real, with a zero mode at :math:`k_x = 0`).
    nl_func : Callable[[np.ndarray], np.ndarray]
        :math:`N(\hat u) = -\tfrac{i}{2} k_x \mathcal{F}[u^2]`.
    """
    lin_op = kx**2 - kx**4

    def nl_func(uf: np.ndarray) -> np.ndarray:
        u = np.fft.irfft(uf)
        return -0.5j * kx * np.fft.rfft(u * u)

    return lin_op, nl_func
