"""
Parameter estimation for PySATL Risk distributions.

This package provides the estimation dispatcher, the constrained maximum
likelihood fitter, sample statistics and standard-error propagation.
"""

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from .bounds import MACHINE_EPSILON, ParameterBounds, decade_bound
from .dispatcher import bootstrap, estimate
from .mle import MLEResult, fit_maximum_likelihood, log_likelihood_objective
from .protocols import (
    SupportsExpectationMaximization,
    SupportsMaximumLikelihood,
    SupportsMomentEstimation,
    SupportsStandardError,
)
from .standard_error import expected_information, quantile_jacobian, quantile_variance
from .statistics import linear_moments, product_moments

__all__ = [
    "MACHINE_EPSILON",
    "ParameterBounds",
    "decade_bound",
    "estimate",
    "bootstrap",
    "MLEResult",
    "fit_maximum_likelihood",
    "log_likelihood_objective",
    "SupportsExpectationMaximization",
    "SupportsMaximumLikelihood",
    "SupportsMomentEstimation",
    "SupportsStandardError",
    "expected_information",
    "quantile_jacobian",
    "quantile_variance",
    "linear_moments",
    "product_moments",
]
