r"""
Supported exponential integrator schemes
========================================

Closed enumeration of the exponential time-differencing schemes whose
coefficients :mod:`etdcoeffs.coeffs` knows how to build.

Each member of :class:`Scheme` fixes the scheme's order, number of internal
Runge-Kutta stages :math:`s` and number of steps :math:`q`. The number of
retained previous steps is :math:`q - 1`; single-step schemes have
:math:`q = 1`.

============  =====  ===  ===  ==========
label         order   s    q   multistep
============  =====  ===  ===  ==========
eglm433         4     3    3   yes
etdrk4          4     4    1   no
exprk5s8        5     8    1   no
krogstad        4     4    1   no
pecec433        4     3    3   yes
============  =====  ===  ===  ==========
"""

from __future__ import annotations
from enum import Enum
from typing import List

from .exceptions import SchemeConfigError


class Scheme(Enum):
    """
    Exponential integrator scheme descriptor.

    Attributes
    ----------
    label : str
        Lower-case scheme name.
    order : int
        Classical order of accuracy.
    internal_stages : int
        Number of internal stages :math:`s`.
    steps : int
        Number of steps :math:`q` (current step plus retained previous steps).

    Notes
    -----
    The ``eglm433`` and ``pecec433`` recipes fill two memory columns
    (``U[(i, 0)]``, ``U[(i, 1)]``, ``V[0]``, ``V[1]``), so they need
    :math:`q = 3`; passing ``(3, 2)`` raises :class:`SchemeConfigError`.
    """

    EGLM433 = ("eglm433", 4, 3, 3)
    ETDRK4 = ("etdrk4", 4, 4, 1)
    EXPRK5S8 = ("exprk5s8", 5, 8, 1)
    KROGSTAD = ("krogstad", 4, 4, 1)
    PECEC433 = ("pecec433", 4, 3, 3)

    def __init__(self, label: str, order: int, internal_stages: int, steps: int) -> None:
        self.label = label
        self.order = order
        self.internal_stages = internal_stages
        self.steps = steps

    def __str__(self) -> str:
        return self.label

    @property
    def is_multistep(self) -> bool:
        """True when the scheme reuses nonlinear evaluations from previous steps."""
        return self.steps > 1

    @classmethod
    def from_name(cls, name: str | Scheme) -> Scheme:
        """
        Look up a scheme by name (case-insensitive).

        Parameters
        ----------
        name : str or Scheme
            Scheme label such as ``"etdrk4"``. A :class:`Scheme` is returned as is.

        Returns
        -------
        Scheme
            Matching scheme member.

        Raises
        ------
        SchemeConfigError
            If ``name`` is not one of :func:`available_schemes`.
        """
        if isinstance(name, cls):
            return name
        if isinstance(name, str):
            key = name.strip().lower()
            for member in cls:
                if member.label == key:
                    return member
        raise SchemeConfigError(str(name), f"expected one of {available_schemes()}")

    def validate(self, internal_stages: int, steps: int) -> None:
        """
        Check that caller-supplied stage and step counts match this scheme.

        Raises
        ------
        SchemeConfigError
            If ``internal_stages`` or ``steps`` differ from the scheme's constants.
        """
        if internal_stages != self.internal_stages or steps != self.steps:
            raise SchemeConfigError(
                self.label,
                f"requires internal_stages={self.internal_stages} and steps={self.steps}, "
                f"got internal_stages={internal_stages} and steps={steps}",
            )


def available_schemes() -> List[str]:
    """Return the sorted labels of all supported schemes."""
    return sorted(member.label for member in Scheme)
