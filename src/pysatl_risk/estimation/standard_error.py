"""
Standard-Error Propagation
==========================

Delta-method variance of quantile estimates and the numerical expected
Fisher information.

The variance of an estimated quantile ``Q(p; theta)`` is
``grad(p) @ Cov(theta) @ grad(p)``, where the covariance of the parameter
estimates comes from the distribution for a given sample size and estimation
method.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from typing import TYPE_CHECKING

import numpy as np

from pysatl_risk.config import get_config
from pysatl_risk.errors import DimensionMismatchError, EstimationNotImplementedError
from pysatl_risk.estimation.protocols import SupportsStandardError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pysatl_risk.distributions.distribution import Distribution
    from pysatl_risk.types import EstimationMethod, NumericArray

HESSIAN_RELATIVE_STEP = 1e-4


def _standard_error_capable(distribution: Distribution) -> SupportsStandardError:
    if not isinstance(distribution, SupportsStandardError):
        raise EstimationNotImplementedError("standard error", distribution.name)
    return distribution


def quantile_variance(
    distribution: Distribution,
    probability: float,
    sample_size: int,
    method: EstimationMethod | str,
) -> float:
    """
    Delta-method variance of the quantile estimate at ``probability``.

    Parameters
    ----------
    distribution : Distribution
        Fitted distribution.
    probability : float
        Non-exceedance probability of the quantile.
    sample_size : int
        Size of the sample the parameters were estimated from.
    method : EstimationMethod or str
        Estimation method whose covariance is propagated.

    Returns
    -------
    float
        ``sum grad_i^2 Var_i + 2 sum_{i<j} grad_i grad_j Cov_ij``.

    Raises
    ------
    EstimationNotImplementedError
        If the distribution has no covariance for ``method``.
    """
    model = _standard_error_capable(distribution)
    covariance = model.parameter_covariance(sample_size, method)
    gradient = model.quantile_gradient(probability)
    return float(gradient @ covariance @ gradient)


def quantile_jacobian(
    distribution: Distribution, probabilities: Sequence[float] | NumericArray
) -> tuple[NumericArray, float]:
    """
    Jacobian of quantiles with respect to the parameters.

    One row per probability; the matrix must be square.

    Returns
    -------
    tuple[NumericArray, float]
        The Jacobian and its determinant.

    Raises
    ------
    DimensionMismatchError
        If the number of probabilities differs from the number of parameters.
    """
    model = _standard_error_capable(distribution)
    probs = np.asarray(probabilities, dtype=np.float64).ravel()
    if probs.size != distribution.number_of_parameters:
        raise DimensionMismatchError("probabilities", distribution.number_of_parameters, probs.size)
    jacobian = np.vstack([model.quantile_gradient(float(p)) for p in probs])
    return jacobian, float(np.linalg.det(jacobian))


def expected_information(distribution: Distribution, sample_size: int) -> NumericArray:
    """
    Numerical expected Fisher information of ``sample_size`` observations.

    The Hessian of the mean log-density is taken by central differences and
    averaged over a stratified grid of quantiles (the midpoints of
    ``moment_bins`` equal-probability strata).

    Returns
    -------
    NumericArray
        ``-n * E[d^2 log f / d theta^2]``.
    """
    distribution.ensure_valid()
    bins = get_config().moment_bins
    probs = (np.arange(bins, dtype=np.float64) + 0.5) / bins
    x = np.asarray(distribution.inverse_cdf(probs), dtype=np.float64)

    model = distribution.clone()
    theta = np.asarray(distribution.parameters, dtype=np.float64)
    steps = HESSIAN_RELATIVE_STEP * np.maximum(1.0, np.abs(theta))

    def mean_log_density(point: NumericArray) -> float:
        model.set_parameters(point)
        with np.errstate(divide="ignore", invalid="ignore"):
            return float(np.mean(model.log_pdf(x)))

    d = theta.size
    hessian = np.empty((d, d))
    center = mean_log_density(theta)
    for i in range(d):
        ei = np.zeros(d)
        ei[i] = steps[i]
        hessian[i, i] = (
            mean_log_density(theta + ei) - 2.0 * center + mean_log_density(theta - ei)
        ) / steps[i] ** 2
        for j in range(i):
            ej = np.zeros(d)
            ej[j] = steps[j]
            hessian[i, j] = hessian[j, i] = (
                mean_log_density(theta + ei + ej)
                - mean_log_density(theta + ei - ej)
                - mean_log_density(theta - ei + ej)
                + mean_log_density(theta - ei - ej)
            ) / (4.0 * steps[i] * steps[j])
    return -sample_size * hessian


__all__ = [
    "quantile_variance",
    "quantile_jacobian",
    "expected_information",
]
