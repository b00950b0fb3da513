"""etdcoeffs package initialization."""

import logging
from .__version__ import version as __version__
from .exceptions import EtdCoeffsError, SchemeConfigError, CoeffConsistencyError, PhiEvaluationError
from .schemes import Scheme, available_schemes
from .phi import PhiConfig, ContourPhiProvider, ExpmPhiProvider, condition_operator
from .coeffs import CoeffBundle, compute_coeffs

# Prevent "No handlers could be found" warnings when etdcoeffs is imported by
# applications that have not configured logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "EtdCoeffsError",
    "SchemeConfigError",
    "CoeffConsistencyError",
    "PhiEvaluationError",
    "Scheme",
    "available_schemes",
    "PhiConfig",
    "ContourPhiProvider",
    "ExpmPhiProvider",
    "condition_operator",
    "CoeffBundle",
    "compute_coeffs",
]
