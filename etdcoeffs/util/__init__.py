"""Utility helpers shared across :mod:`etdcoeffs`."""
