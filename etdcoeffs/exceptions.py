"""
Exception hierarchy for :mod:`etdcoeffs`.

``SchemeConfigError`` is raised for bad scheme names or stage/step counts,
``CoeffConsistencyError`` when the completion step needs a phit-function the
assembler never evaluated, and ``PhiEvaluationError`` by the bundled
phi-function providers when an evaluation fails.
"""

from typing import Optional


class EtdCoeffsError(Exception):
    """Base class for all errors raised by :mod:`etdcoeffs`."""


class SchemeConfigError(EtdCoeffsError, ValueError):
    """
    Unknown scheme name or stage/step counts that disagree with the scheme.

    Parameters
    ----------
    scheme : str
        Offending scheme name as supplied by the caller.
    message : str, optional
        Extra detail appended to the default message.
    """

    def __init__(self, scheme: str, message: Optional[str] = None) -> None:
        self.scheme = scheme
        text = f"unsupported scheme configuration '{scheme}'"
        if message:
            text = f"{text}: {message}"
        super().__init__(text)


class CoeffConsistencyError(EtdCoeffsError, RuntimeError):
    """A completion step referenced a phi/phit entry that was never evaluated."""


class PhiEvaluationError(EtdCoeffsError, FloatingPointError):
    """A phi-function provider could not produce a finite result."""
