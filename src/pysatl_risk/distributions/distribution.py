"""
Distribution Interface
======================

This module defines the public :class:`Distribution` protocol shared by the
parametric families and the composite distributions, together with the
helpers every implementation relies on.

- :class:`Distribution` protocol: the capability set used throughout the
  package (density and cumulative evaluation in linear and log domain,
  inverse CDF, parameter get/set/validate, clone, sampling, estimation).
- :func:`evaluate_quantiles`: probability validation and the ``p = 0`` /
  ``p = 1`` bypass of any inverse CDF.
- :func:`central_moments`: numerical moments from the forward CDF.

Notes
-----
- Every function accepts a scalar or an array and returns a float or an
  array of the same shape.
- Evaluation never raises for points outside the support; it returns the
  boundary value instead.
- Implementations store invalid parameter vectors without complaint and raise
  :class:`~pysatl_risk.errors.InvalidParameterError` lazily, at evaluation
  time. Optimizers may therefore hold invalid points transiently.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import copy
import sys
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

import numpy as np

from pysatl_risk.distributions.sampling import as_sample_array
from pysatl_risk.distributions.support import ContinuousSupport

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

    import numpy.typing as npt

    from pysatl_risk.distributions.sampling import ArraySample, Sample
    from pysatl_risk.distributions.strategies import SamplingStrategy
    from pysatl_risk.errors import InvalidParameterError
    from pysatl_risk.types import EstimationMethod, NumericArray, ScalarOrArray

WORST_LOG_LIKELIHOOD = -sys.float_info.max
"""Worst representable log-likelihood, returned instead of NaN or -inf."""

MOMENT_TAIL_PROBABILITY = 1e-8


@runtime_checkable
class Distribution(Protocol):
    """Public univariate distribution interface used by estimators and composites."""

    @property
    def name(self) -> str: ...

    @property
    def parameters(self) -> NumericArray: ...

    @property
    def parameter_names(self) -> tuple[str, ...]: ...

    @property
    def parameters_valid(self) -> bool: ...

    @property
    def minimum(self) -> float: ...

    @property
    def maximum(self) -> float: ...

    @property
    def moments(self) -> tuple[float, float, float, float]: ...

    @property
    def sampling_strategy(self) -> SamplingStrategy: ...

    @property
    def estimation_methods(self) -> frozenset[EstimationMethod]: ...

    def set_parameters(self, values: npt.ArrayLike) -> None: ...

    def validate(self, values: npt.ArrayLike) -> InvalidParameterError | None: ...

    def pdf(self, x: ScalarOrArray) -> ScalarOrArray: ...

    def log_pdf(self, x: ScalarOrArray) -> ScalarOrArray: ...

    def cdf(self, x: ScalarOrArray) -> ScalarOrArray: ...

    def log_cdf(self, x: ScalarOrArray) -> ScalarOrArray: ...

    def log_ccdf(self, x: ScalarOrArray) -> ScalarOrArray: ...

    def inverse_cdf(self, p: ScalarOrArray) -> ScalarOrArray: ...

    @property
    def number_of_parameters(self) -> int:
        return len(self.parameter_names)

    @property
    def support(self) -> ContinuousSupport:
        return ContinuousSupport(self.minimum, self.maximum)

    @property
    def mean(self) -> float:
        return self.moments[0]

    @property
    def standard_deviation(self) -> float:
        return self.moments[1]

    @property
    def skewness(self) -> float:
        return self.moments[2]

    @property
    def kurtosis(self) -> float:
        return self.moments[3]

    def ensure_valid(self) -> None:
        """
        Raise the stored validation error, if any.

        Raises
        ------
        InvalidParameterError
            If the current parameter vector is invalid.
        """
        if not self.parameters_valid:
            error = self.validate(self.parameters)
            if error is not None:
                raise error

    def ccdf(self, x: ScalarOrArray) -> ScalarOrArray:
        """Complementary CDF (survival function) ``1 - cdf(x)``."""
        return as_output(1.0 - np.asarray(self.cdf(x), dtype=np.float64), x)

    def hazard(self, x: ScalarOrArray) -> ScalarOrArray:
        """Hazard function ``pdf(x) / ccdf(x)`` evaluated in the log domain."""
        with np.errstate(invalid="ignore", over="ignore"):
            log_h = np.asarray(self.log_pdf(x), dtype=np.float64) - np.asarray(
                self.log_ccdf(x), dtype=np.float64
            )
            h = np.exp(log_h)
        return as_output(np.where(np.isnan(h), 0.0, h), x)

    def log_likelihood(self, sample: Sample | npt.ArrayLike) -> float:
        """
        Log-likelihood of a sample.

        Returns
        -------
        float
            ``sum(log_pdf(x_i))``, or the worst representable value when the
            sum is not finite.
        """
        values = as_sample_array(sample)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            total = float(np.sum(self.log_pdf(values)))
        if not np.isfinite(total):
            return WORST_LOG_LIKELIHOOD
        return total

    def sample(self, n: int, seed: int | None = None, **options: Any) -> ArraySample:
        """Draw an ``(n, 1)`` sample with an explicitly seeded generator."""
        self.ensure_valid()
        return self.sampling_strategy.sample(n, distr=self, seed=seed, **options)

    def clone(self) -> Self:
        """Return a deep copy, including nested component distributions."""
        return copy.deepcopy(self)

    def estimate(self, sample: Sample | npt.ArrayLike, method: EstimationMethod | str) -> Any:
        """
        Estimate parameters from a sample in place.

        See Also
        --------
        pysatl_risk.estimation.dispatcher.estimate
        """
        from pysatl_risk.estimation.dispatcher import estimate

        return estimate(self, sample, method)

    def bootstrap(
        self, method: EstimationMethod | str, sample_size: int, seed: int = 12345
    ) -> Distribution:
        """
        Re-estimate a clone from a seeded sample of this distribution.

        See Also
        --------
        pysatl_risk.estimation.dispatcher.bootstrap
        """
        from pysatl_risk.estimation.dispatcher import bootstrap

        return bootstrap(self, method, sample_size, seed)


def as_output(values: npt.ArrayLike, like: ScalarOrArray) -> ScalarOrArray:
    """
    Shape a result after the argument it was computed from.

    Parameters
    ----------
    values : array_like
        Computed values.
    like : float or NumericArray
        Original argument.

    Returns
    -------
    float or NumericArray
        A Python float for scalar arguments, a float array otherwise.
    """
    arr = np.asarray(values, dtype=np.float64)
    if np.ndim(like) == 0:
        return float(arr.reshape(-1)[0]) if arr.size else float("nan")
    return arr


def check_probability(p: ScalarOrArray) -> NumericArray:
    """
    Validate probabilities.

    Raises
    ------
    ValueError
        If any probability is NaN or lies outside ``[0, 1]``.
    """
    arr = np.asarray(p, dtype=np.float64)
    if np.any(np.isnan(arr)) or np.any((arr < 0.0) | (arr > 1.0)):
        raise ValueError("Probability must be in [0, 1]")
    return arr


def evaluate_quantiles(
    p: ScalarOrArray,
    minimum: float,
    maximum: float,
    interior: Callable[[NumericArray], NumericArray],
) -> ScalarOrArray:
    """
    Evaluate an inverse CDF with the endpoint bypass.

    Parameters
    ----------
    p : float or NumericArray
        Probabilities in ``[0, 1]``.
    minimum, maximum : float
        Values returned for ``p == 0`` and ``p == 1``.
    interior : Callable[[NumericArray], NumericArray]
        Quantile function for probabilities strictly inside ``(0, 1)``.

    Returns
    -------
    float or NumericArray
        Quantiles shaped like ``p``.
    """
    arr = np.atleast_1d(check_probability(p))
    out = np.empty_like(arr)
    out[arr == 0.0] = minimum
    out[arr == 1.0] = maximum
    inner = (arr > 0.0) & (arr < 1.0)
    if np.any(inner):
        out[inner] = interior(arr[inner])
    return as_output(out, p)


def central_moments(distribution: Distribution, bins: int) -> tuple[float, float, float, float]:
    """
    Numerical mean, standard deviation, skewness and kurtosis.

    The range between the ``1e-8`` and ``1 - 1e-8`` quantiles is split into
    equal-width bins. Each bin midpoint is weighted by the probability mass
    ``cdf(upper) - cdf(lower)`` of its bin.

    Parameters
    ----------
    distribution : Distribution
        Distribution with valid parameters.
    bins : int
        Number of strata.

    Returns
    -------
    tuple[float, float, float, float]
        Mean, standard deviation, skewness, (raw) kurtosis.
    """
    lower = float(distribution.inverse_cdf(MOMENT_TAIL_PROBABILITY))
    upper = float(distribution.inverse_cdf(1.0 - MOMENT_TAIL_PROBABILITY))
    edges = np.linspace(lower, upper, bins + 1)
    mids = 0.5 * (edges[1:] + edges[:-1])
    mass = np.clip(np.diff(np.asarray(distribution.cdf(edges), dtype=np.float64)), 0.0, None)
    mass = mass / np.sum(mass)

    mean = float(np.sum(mids * mass))
    centered = mids - mean
    var = float(np.sum(centered**2 * mass))
    sd = float(np.sqrt(var))
    if sd == 0.0:
        return mean, 0.0, float("nan"), float("nan")
    skew = float(np.sum(centered**3 * mass)) / sd**3
    kurt = float(np.sum(centered**4 * mass)) / var**2
    return mean, sd, skew, kurt


__all__ = [
    "Distribution",
    "WORST_LOG_LIKELIHOOD",
    "as_output",
    "check_probability",
    "evaluate_quantiles",
    "central_moments",
]
