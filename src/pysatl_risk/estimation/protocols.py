"""
Estimation Capabilities
=======================

Optional capabilities a :class:`~pysatl_risk.distributions.distribution.Distribution`
may expose to the estimation engine. The dispatcher checks them with
``isinstance`` before calling them.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pysatl_risk.estimation.bounds import ParameterBounds
    from pysatl_risk.types import EstimationMethod, NumericArray


@runtime_checkable
class SupportsMomentEstimation(Protocol):
    """Closed-form inversion of product moments and L-moments."""

    def parameters_from_moments(self, moments: NumericArray) -> NumericArray: ...

    def parameters_from_linear_moments(self, moments: NumericArray) -> NumericArray: ...


@runtime_checkable
class SupportsMaximumLikelihood(Protocol):
    """Data-driven search region for the constrained likelihood fitter."""

    def parameter_bounds(self, sample: NumericArray) -> ParameterBounds: ...


@runtime_checkable
class SupportsExpectationMaximization(Protocol):
    """A distribution that maximizes its own likelihood (e.g. mixture EM)."""

    def expectation_maximization(self, sample: NumericArray) -> Any: ...


@runtime_checkable
class SupportsStandardError(Protocol):
    """Asymptotic covariance of the estimates and the quantile gradient."""

    def parameter_covariance(
        self, sample_size: int, method: EstimationMethod | str
    ) -> NumericArray: ...

    def quantile_gradient(self, probability: float) -> NumericArray: ...


__all__ = [
    "SupportsMomentEstimation",
    "SupportsMaximumLikelihood",
    "SupportsExpectationMaximization",
    "SupportsStandardError",
]
