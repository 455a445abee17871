"""
Estimation Dispatcher
=====================

Routes ``estimate(distribution, sample, method)`` to the estimator the
distribution supports and writes the result back through
``set_parameters``.

- Method of moments and L-moments invert the sample statistics in closed
  form and return the new parameter vector.
- Maximum likelihood runs the distribution's own EM when it has one and the
  constrained Nelder-Mead fitter otherwise, and returns the fit status.

Unsupported methods and unusable samples raise before any mutation.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import logging
from typing import TYPE_CHECKING

from pysatl_risk.distributions.sampling import as_sample_array
from pysatl_risk.errors import EstimationNotImplementedError
from pysatl_risk.estimation.mle import fit_maximum_likelihood
from pysatl_risk.estimation.protocols import (
    SupportsExpectationMaximization,
    SupportsMomentEstimation,
)
from pysatl_risk.estimation.statistics import linear_moments, product_moments
from pysatl_risk.types import EstimationMethod

if TYPE_CHECKING:
    from typing import Any

    import numpy.typing as npt

    from pysatl_risk.distributions.distribution import Distribution
    from pysatl_risk.distributions.sampling import Sample

logger = logging.getLogger(__name__)

DEFAULT_BOOTSTRAP_SEED = 12345


def estimate(
    distribution: Distribution,
    sample: Sample | npt.ArrayLike,
    method: EstimationMethod | str,
) -> Any:
    """
    Estimate the parameters of ``distribution`` from ``sample`` in place.

    Parameters
    ----------
    distribution : Distribution
        Distribution to fit. Its parameters are replaced on success.
    sample : Sample or array_like
        Non-empty univariate sample.
    method : EstimationMethod or str
        Estimation method.

    Returns
    -------
    Any
        The new parameter vector for the closed-form methods, the
        :class:`~pysatl_risk.estimation.mle.MLEResult` (or the EM result) for
        maximum likelihood.

    Raises
    ------
    EstimationNotImplementedError
        If the method is not supported for the distribution.
    InvalidSampleError
        If the sample is empty, too short or yields non-finite statistics.
    """
    method = EstimationMethod(method)
    if method not in distribution.estimation_methods:
        raise EstimationNotImplementedError(method, distribution.name)
    values = as_sample_array(sample)

    if method is EstimationMethod.MAXIMUM_LIKELIHOOD:
        if isinstance(distribution, SupportsExpectationMaximization):
            return distribution.expectation_maximization(values)
        result = fit_maximum_likelihood(distribution, values)
        if not result.converged:
            logger.warning(
                "Maximum likelihood for %s did not converge (%s); using the best point found.",
                distribution.name,
                result.message,
            )
        distribution.set_parameters(result.parameters)
        return result

    if not isinstance(distribution, SupportsMomentEstimation):
        raise EstimationNotImplementedError(method, distribution.name)
    if method is EstimationMethod.MOMENTS:
        parameters = distribution.parameters_from_moments(product_moments(values))
    else:
        parameters = distribution.parameters_from_linear_moments(linear_moments(values))
    distribution.set_parameters(parameters)
    return parameters


def bootstrap(
    distribution: Distribution,
    method: EstimationMethod | str,
    sample_size: int,
    seed: int = DEFAULT_BOOTSTRAP_SEED,
) -> Distribution:
    """
    Parametric bootstrap replicate of ``distribution``.

    Draws a seeded sample of ``sample_size`` points from the distribution and
    re-estimates a clone from it.

    Returns
    -------
    Distribution
        The re-estimated clone; the original is not mutated.

    Raises
    ------
    InvalidParameterError
        If the re-estimated parameters are invalid.
    """
    sample = distribution.sample(sample_size, seed=seed)
    replicate = distribution.clone()
    estimate(replicate, sample, method)
    replicate.ensure_valid()
    return replicate


__all__ = [
    "estimate",
    "bootstrap",
]
