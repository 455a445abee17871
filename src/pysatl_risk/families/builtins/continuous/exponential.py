"""
Shifted exponential loss family.

Losses above a threshold ``xi`` with exponential excess of mean ``alpha``:
``F(x) = 1 - exp(-(x - xi) / alpha)`` for ``x >= xi``. The one-parameter
exponential is the ``rate`` parametrization with ``xi = 0``.
"""

from __future__ import annotations

__author__ = "Fedor Myznikov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math
from typing import TYPE_CHECKING, cast

import numpy as np

from pysatl_risk.distributions.support import ContinuousSupport
from pysatl_risk.errors import InvalidSampleError
from pysatl_risk.estimation.bounds import MACHINE_EPSILON, ParameterBounds, decade_bound
from pysatl_risk.families.parametric_family import ParametricFamily
from pysatl_risk.families.parametrizations import (
    Parametrization,
    constraint,
    parametrization,
)
from pysatl_risk.families.registry import ParametricFamilyRegister
from pysatl_risk.types import (
    CharacteristicName,
    EstimationMethod,
    FamilyName,
    NumericArray,
)

if TYPE_CHECKING:
    from typing import Any


def configure_exponential_family() -> None:
    """Declare the shifted exponential family and add it to the shared register."""
    if ParametricFamilyRegister.contains(FamilyName.EXPONENTIAL):
        return

    def _threshold_scale(parameters: Parametrization) -> tuple[float, float]:
        base = cast(_LocationScale, parameters)
        return base.xi, base.alpha

    def _excess(parameters: Parametrization, x: NumericArray) -> NumericArray:
        """Standardised excess over the threshold, floored at zero."""
        xi, alpha = _threshold_scale(parameters)
        return np.maximum((x - xi) / alpha, 0.0)

    def pdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        xi, alpha = _threshold_scale(parameters)
        return np.where(x >= xi, np.exp(-_excess(parameters, x)) / alpha, 0.0)

    def log_pdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        xi, alpha = _threshold_scale(parameters)
        return np.where(x >= xi, -_excess(parameters, x) - math.log(alpha), -np.inf)

    def cdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        return cast(NumericArray, -np.expm1(-_excess(parameters, x)))

    def log_cdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        """``-inf`` at and below the threshold."""
        with np.errstate(divide="ignore"):
            return cast(NumericArray, np.log(cdf(parameters, x)))

    def log_ccdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        return cast(NumericArray, -_excess(parameters, x))

    def ppf(parameters: Parametrization, p: NumericArray) -> NumericArray:
        xi, alpha = _threshold_scale(parameters)
        return cast(NumericArray, xi - alpha * np.log1p(-p))

    def mean_func(parameters: Parametrization, _: Any) -> float:
        return sum(_threshold_scale(parameters))

    def var_func(parameters: Parametrization, _: Any) -> float:
        return _threshold_scale(parameters)[1] ** 2

    def skew_func(_1: Parametrization, _2: Any) -> float:
        return 2.0

    def kurt_func(_1: Parametrization, _2: Any) -> float:
        """Non-excess kurtosis."""
        return 9.0

    def _support(parameters: Parametrization) -> ContinuousSupport:
        return ContinuousSupport(left=_threshold_scale(parameters)[0])

    def _from_mean_scale(mean: float, alpha: float) -> Parametrization:
        return _LocationScale(xi=mean - alpha, alpha=alpha)

    def from_moments(moments: NumericArray) -> Parametrization:
        """The scale equals the standard deviation."""
        return _from_mean_scale(float(moments[0]), float(moments[1]))

    def from_linear_moments(moments: NumericArray) -> Parametrization:
        """The scale is twice ``L2``."""
        return _from_mean_scale(float(moments[0]), 2.0 * float(moments[1]))

    def parameter_bounds(sample: NumericArray) -> ParameterBounds:
        """
        Likelihood search box started at the unbiased estimates.

        With ``m`` the smallest loss and ``n`` observations the start is
        ``xi = (n m - mean) / (n - 1)`` and ``alpha = n (mean - m) / (n - 1)``.
        The threshold may not rise above ``m`` and may fall one decade of its
        own magnitude.

        Raises
        ------
        InvalidSampleError
            Fewer than two observations.
        """
        n = len(sample)
        if n < 2:
            raise InvalidSampleError(
                f"Exponential likelihood needs at least two observations, got {n}"
            )
        smallest, mean = float(np.min(sample)), float(np.mean(sample))
        xi = (n * smallest - mean) / (n - 1) or MACHINE_EPSILON
        alpha = n * (mean - smallest) / (n - 1)
        xi_decade = 10.0 ** math.ceil(math.log10(abs(xi)))
        return ParameterBounds.build(
            initial=[xi, alpha],
            lower=[xi - xi_decade, MACHINE_EPSILON],
            upper=[smallest, decade_bound(alpha)],
        )

    def moments_covariance(parameters: Parametrization, n: int) -> NumericArray:
        unit = _threshold_scale(parameters)[1] ** 2 / n
        return unit * np.array([[1.0, -1.0], [-1.0, 2.0]])

    def likelihood_covariance(parameters: Parametrization, n: int) -> NumericArray:
        """Exact covariance of the unbiased likelihood estimates."""
        unit = _threshold_scale(parameters)[1] ** 2 / (n - 1)
        return unit * np.array([[1.0 / n, -1.0 / n], [-1.0 / n, 1.0]])

    def quantile_gradient(parameters: Parametrization, p: float) -> NumericArray:
        return np.array([1.0, -math.log1p(-p)])

    Exponential = ParametricFamily(
        name=FamilyName.EXPONENTIAL,
        distr_parametrizations=["locationScale", "rate"],
        distr_characteristics={
            CharacteristicName.PDF: pdf,
            CharacteristicName.LOG_PDF: log_pdf,
            CharacteristicName.CDF: cdf,
            CharacteristicName.LOG_CDF: log_cdf,
            CharacteristicName.LOG_CCDF: log_ccdf,
            CharacteristicName.PPF: ppf,
            CharacteristicName.MEAN: mean_func,
            CharacteristicName.VAR: var_func,
            CharacteristicName.SKEW: skew_func,
            CharacteristicName.KURT: kurt_func,
        },
        support_by_parametrization=_support,
        distr_estimators={
            EstimationMethod.MOMENTS: from_moments,
            EstimationMethod.LINEAR_MOMENTS: from_linear_moments,
        },
        parameter_bounds=parameter_bounds,
        distr_covariances={
            EstimationMethod.MOMENTS: moments_covariance,
            EstimationMethod.MAXIMUM_LIKELIHOOD: likelihood_covariance,
        },
        quantile_gradient=quantile_gradient,
    )
    Exponential.__doc__ = __doc__

    @parametrization(family=Exponential, name="locationScale")
    class _LocationScale(Parametrization):
        """
        Base parametrization.

        Parameters
        ----------
        xi : float
            Threshold, the smallest possible loss.
        alpha : float
            Mean excess over the threshold.
        """

        xi: float
        alpha: float

        @constraint(description="alpha > 0")
        def check_alpha(self) -> bool:
            return self.alpha > 0

    @parametrization(family=Exponential, name="rate")
    class _Rate(Parametrization):
        """Unshifted exponential with rate ``lambda_ = 1 / alpha``."""

        lambda_: float

        @constraint(description="lambda_ > 0")
        def check_rate(self) -> bool:
            return self.lambda_ > 0

        def transform_to_base_parametrization(self) -> Parametrization:
            return _LocationScale(xi=0.0, alpha=1.0 / self.lambda_)

    ParametricFamilyRegister.register(Exponential)
