"""
Error Taxonomy
==============

Exceptions raised by PySATL Risk.

- :class:`InvalidParameterError` : a parameter vector fails a domain check.
  Raised lazily, at the first evaluation after the invalid vector was set.
- :class:`EstimationNotImplementedError` : the requested estimation method is
  not available for the distribution.
- :class:`InvalidSampleError` : a sample cannot be used for estimation.
- :class:`DimensionMismatchError` : arrays of incompatible length or shape.

Notes
-----
Numerical-solve failures (a root not bracketed, an optimizer that did not
converge) are not exceptions: they are reported through result objects with a
status flag, and callers fall back or continue with the best point found.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from typing import Any


class PySATLRiskError(Exception):
    """Base class for all PySATL Risk errors."""


class InvalidParameterError(PySATLRiskError, ValueError):
    """
    A distribution parameter violates its domain constraint.

    Parameters
    ----------
    parameter : str
        Name of the offending parameter.
    value : Any
        Offending value.
    constraint : str
        Human-readable description of the violated constraint.
    """

    def __init__(self, parameter: str, value: Any, constraint: str) -> None:
        self.parameter = parameter
        self.value = value
        self.constraint = constraint
        super().__init__(
            f'Invalid parameter "{parameter}" = {value!r}: constraint "{constraint}" does not hold'
        )


class EstimationNotImplementedError(PySATLRiskError, NotImplementedError):
    """
    The estimation method is not supported for the distribution.

    Parameters
    ----------
    method : str
        Requested estimation method.
    distribution : str
        Name of the distribution (family) the method was requested for.
    """

    def __init__(self, method: str, distribution: str) -> None:
        self.method = method
        self.distribution = distribution
        super().__init__(f"Estimation method '{method}' is not implemented for {distribution}.")


class InvalidSampleError(PySATLRiskError, ValueError):
    """A sample is empty, too short, or yields non-finite statistics."""


class DimensionMismatchError(PySATLRiskError, ValueError):
    """
    Array dimensions are inconsistent.

    Parameters
    ----------
    name : str
        Name of the offending argument.
    expected : Any
        Expected length or shape.
    actual : Any
        Actual length or shape.
    """

    def __init__(self, name: str, expected: Any, actual: Any) -> None:
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"'{name}' has dimension {actual}, expected {expected}.")


__all__ = [
    "PySATLRiskError",
    "InvalidParameterError",
    "EstimationNotImplementedError",
    "InvalidSampleError",
    "DimensionMismatchError",
]
