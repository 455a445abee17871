"""
Normal loss family.

Gaussian severities with mean ``mu`` and standard deviation ``sigma``,
declared in three equivalent parametrizations (``meanStd``, ``meanVar`` and
``meanPrec``). Besides the closed-form characteristics the family carries
moment and L-moment inversions, likelihood search bounds, asymptotic
covariances for every estimation method and the quantile gradient used for
confidence bands.
"""

from __future__ import annotations

__author__ = "Fedor Myznikov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math
from typing import TYPE_CHECKING, cast

import numpy as np
from scipy.special import log_ndtr, ndtr, ndtri

from pysatl_risk.distributions.support import ContinuousSupport
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

LINEAR_MOMENTS_SCALE_VARIANCE = 0.5113
"""Asymptotic variance of the L-moment scale estimate in units of sigma^2 / n."""

_LOG_SQRT_2PI = 0.5 * math.log(2.0 * math.pi)


def configure_normal_family() -> None:
    """Declare the normal family and add it to the shared register."""
    if ParametricFamilyRegister.contains(FamilyName.NORMAL):
        return

    def _location_scale(parameters: Parametrization) -> tuple[float, float]:
        base = cast(_MeanStd, parameters)
        return base.mu, base.sigma

    def _z(parameters: Parametrization, x: NumericArray) -> NumericArray:
        mu, sigma = _location_scale(parameters)
        return (x - mu) / sigma

    def log_pdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        """
        Log density ``-z^2 / 2 - log(sigma) - log(sqrt(2 pi))``.

        Parameters
        ----------
        parameters : Parametrization
            ``meanStd`` parameters.
        x : NumericArray
            Loss values.

        Returns
        -------
        NumericArray
            Log density at each ``x``; finite everywhere.
        """
        _, sigma = _location_scale(parameters)
        return cast(NumericArray, -0.5 * _z(parameters, x) ** 2 - math.log(sigma) - _LOG_SQRT_2PI)

    def pdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        return cast(NumericArray, np.exp(log_pdf(parameters, x)))

    def cdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        return cast(NumericArray, ndtr(_z(parameters, x)))

    def log_cdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        return cast(NumericArray, log_ndtr(_z(parameters, x)))

    def log_ccdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        """Upper-tail log probability via the mirrored lower tail."""
        return cast(NumericArray, log_ndtr(-_z(parameters, x)))

    def ppf(parameters: Parametrization, p: NumericArray) -> NumericArray:
        mu, sigma = _location_scale(parameters)
        return cast(NumericArray, mu + sigma * ndtri(p))

    def mean_func(parameters: Parametrization, _: Any) -> float:
        return _location_scale(parameters)[0]

    def var_func(parameters: Parametrization, _: Any) -> float:
        return _location_scale(parameters)[1] ** 2

    def skew_func(_1: Parametrization, _2: Any) -> float:
        return 0.0

    def kurt_func(_1: Parametrization, _2: Any) -> float:
        """Non-excess kurtosis."""
        return 3.0

    def _support(_: Parametrization) -> ContinuousSupport:
        return ContinuousSupport()

    def from_moments(moments: NumericArray) -> Parametrization:
        return _MeanStd(mu=float(moments[0]), sigma=float(moments[1]))

    def from_linear_moments(moments: NumericArray) -> Parametrization:
        """``L2`` of a normal is ``sigma / sqrt(pi)``."""
        return _MeanStd(mu=float(moments[0]), sigma=math.sqrt(math.pi) * float(moments[1]))

    def parameter_bounds(sample: NumericArray) -> ParameterBounds:
        """
        Likelihood search box from the sample mean and deviation.

        Both limits of ``mu`` and the upper limit of ``sigma`` sit one decade
        above the magnitude of the corresponding sample statistic.
        """
        centre = float(np.mean(sample))
        spread = float(np.std(sample, ddof=1)) if len(sample) > 1 else 1.0
        mu_limit = decade_bound(centre)
        return ParameterBounds.build(
            initial=[centre, spread],
            lower=[-mu_limit, MACHINE_EPSILON],
            upper=[mu_limit, decade_bound(spread)],
        )

    def _diagonal_covariance(sigma: float, n: int, scale_factor: float) -> NumericArray:
        per_observation = sigma**2 / n
        return np.diag([per_observation, scale_factor * per_observation])

    def moments_covariance(parameters: Parametrization, n: int) -> NumericArray:
        """``Var(sigma_hat) = sigma^2 / 2n``, shared with maximum likelihood."""
        return _diagonal_covariance(_location_scale(parameters)[1], n, 0.5)

    def linear_moments_covariance(parameters: Parametrization, n: int) -> NumericArray:
        return _diagonal_covariance(
            _location_scale(parameters)[1], n, LINEAR_MOMENTS_SCALE_VARIANCE
        )

    def quantile_gradient(parameters: Parametrization, p: float) -> NumericArray:
        return np.array([1.0, float(ndtri(p))])

    Normal = ParametricFamily(
        name=FamilyName.NORMAL,
        distr_parametrizations=["meanStd", "meanVar", "meanPrec"],
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
            EstimationMethod.LINEAR_MOMENTS: linear_moments_covariance,
            EstimationMethod.MAXIMUM_LIKELIHOOD: moments_covariance,
        },
        quantile_gradient=quantile_gradient,
    )
    Normal.__doc__ = __doc__

    @parametrization(family=Normal, name="meanStd")
    class _MeanStd(Parametrization):
        """
        Base parametrization.

        Parameters
        ----------
        mu : float
            Mean loss.
        sigma : float
            Standard deviation of the loss.
        """

        mu: float
        sigma: float

        @constraint(description="sigma > 0")
        def check_sigma(self) -> bool:
            return self.sigma > 0

    @parametrization(family=Normal, name="meanVar")
    class _MeanVar(Parametrization):
        mu: float
        var: float

        @constraint(description="var > 0")
        def check_var(self) -> bool:
            return self.var > 0

        def transform_to_base_parametrization(self) -> Parametrization:
            return _MeanStd(mu=self.mu, sigma=math.sqrt(self.var))

    @parametrization(family=Normal, name="meanPrec")
    class _MeanPrec(Parametrization):
        """Mean and precision ``tau = 1 / sigma^2``."""

        mu: float
        tau: float

        @constraint(description="tau > 0")
        def check_tau(self) -> bool:
            return self.tau > 0

        def transform_to_base_parametrization(self) -> Parametrization:
            return _MeanStd(mu=self.mu, sigma=1.0 / math.sqrt(self.tau))

    ParametricFamilyRegister.register(Normal)
