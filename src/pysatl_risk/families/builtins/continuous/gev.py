"""
Generalized Extreme Value distribution family implementation.

Contains the GEV family in Hosking's sign convention: the support is bounded
above for ``kappa > 0`` (Weibull type), bounded below for ``kappa < 0``
(Fréchet type) and unbounded for ``kappa = 0`` (Gumbel). This is the same
convention as :data:`scipy.stats.genextreme` with ``c = kappa``.
"""

from __future__ import annotations

__author__ = "Fedor Myznikov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math
from typing import TYPE_CHECKING, cast

import numpy as np
from scipy.optimize import brentq
from scipy.special import digamma, gamma

from pysatl_risk.distributions.support import ContinuousSupport
from pysatl_risk.estimation.bounds import MACHINE_EPSILON, ParameterBounds, decade_bound
from pysatl_risk.estimation.standard_error import expected_information
from pysatl_risk.estimation.statistics import linear_moments
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

NEAR_ZERO = 1e-4
"""Shapes with ``|kappa|`` at or below this value use the Gumbel limit."""

ANALYTIC_INFORMATION_MIN_SHAPE = 1e-2
EULER_GAMMA = float(np.euler_gamma)
GUMBEL_SKEWNESS = 12.0 * math.sqrt(6.0) * 1.2020569031595942 / math.pi**3
GUMBEL_KURTOSIS = 5.4

SHAPE_FROM_SKEW_BRACKET = (-1.0 / 3.0 + 1e-6, 5.0)
SHAPE_FROM_TAU3_BRACKET = (-0.999, 20.0)
SHAPE_LIMITS = (-10.0, 10.0)


def _gamma_moments(kappa: float, order: int) -> list[float]:
    return [float(gamma(1.0 + r * kappa)) for r in range(1, order + 1)]


def gev_skewness(kappa: float) -> float:
    """
    Skewness of the GEV distribution as a function of the shape.

    Defined for ``kappa > -1/3``; NaN below.
    """
    if abs(kappa) <= NEAR_ZERO:
        return GUMBEL_SKEWNESS
    if kappa <= -1.0 / 3.0:
        return float("nan")
    g1, g2, g3 = _gamma_moments(kappa, 3)
    return math.copysign(1.0, kappa) * (-g3 + 3.0 * g1 * g2 - 2.0 * g1**3) / (g2 - g1**2) ** 1.5


def gev_tau3(kappa: float) -> float:
    """L-skewness of the GEV distribution as a function of the shape."""
    if abs(kappa) <= NEAR_ZERO:
        return 2.0 * math.log(3.0) / math.log(2.0) - 3.0
    return 2.0 * (1.0 - 3.0**-kappa) / (1.0 - 2.0**-kappa) - 3.0


def _solve_shape(func: Any, target: float, bracket: tuple[float, float]) -> float:
    """Root of the decreasing ``func(kappa) = target``, clamped to ``bracket``."""
    lower, upper = bracket
    if target >= func(lower):
        return lower
    if target <= func(upper):
        return upper
    return float(brentq(lambda k: func(k) - target, lower, upper, xtol=1e-12))


def configure_gev_family() -> None:
    """
    Configure and register the Generalized Extreme Value distribution family.
    """

    if ParametricFamilyRegister.contains(FamilyName.GEV):
        return

    GEV_DOC = """
    Generalized Extreme Value distribution.

    Limit distribution of normalized block maxima, parameterized by location ξ,
    scale α and shape κ (Hosking convention).

    Cumulative distribution function:
        F(x) = exp(-exp(-y)),  y = -ln(1 - κ(x - ξ)/α)/κ  (κ ≠ 0)
                               y = (x - ξ)/α             (κ = 0)
    """

    def _reduced(parameters: Parametrization, x: NumericArray) -> tuple[NumericArray, NumericArray]:
        """
        Reduced variate ``y`` and the in-support mask.

        Outside the support ``y`` is ``+inf`` above an upper bound and
        ``-inf`` below a lower bound, so that ``exp(-exp(-y))`` gives the
        boundary CDF value.
        """
        parameters = cast(_Standard, parameters)
        k = parameters.kappa
        y = (x - parameters.xi) / parameters.alpha
        if abs(k) <= NEAR_ZERO:
            return y, np.ones_like(y, dtype=bool)
        t = 1.0 - k * y
        inside = t > 0.0
        with np.errstate(divide="ignore", invalid="ignore"):
            reduced = -np.log(np.where(inside, t, 1.0)) / k
        outside = np.inf if k > 0 else -np.inf
        return np.where(inside, reduced, outside), inside

    def log_pdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        """Logarithm of the GEV density, ``-inf`` outside the support."""
        parameters = cast(_Standard, parameters)
        y, inside = _reduced(parameters, x)
        with np.errstate(over="ignore", invalid="ignore"):
            value = -math.log(parameters.alpha) - (1.0 - parameters.kappa) * y - np.exp(-y)
        return np.where(inside & np.isfinite(y), value, -np.inf)

    def pdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        """Density as the exponential of the log density, zero outside the support."""
        return cast(NumericArray, np.exp(log_pdf(parameters, x)))

    def cdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        """Cumulative distribution function for GEV distribution."""
        y, _ = _reduced(parameters, x)
        with np.errstate(over="ignore"):
            return cast(NumericArray, np.exp(-np.exp(-y)))

    def log_cdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        """Logarithm of the GEV CDF, ``-exp(-y)``."""
        y, _ = _reduced(parameters, x)
        with np.errstate(over="ignore"):
            return cast(NumericArray, -np.exp(-y))

    def log_ccdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        """Logarithm of the GEV survival function."""
        y, _ = _reduced(parameters, x)
        with np.errstate(over="ignore", divide="ignore"):
            return cast(NumericArray, np.log(-np.expm1(-np.exp(-y))))

    def ppf(parameters: Parametrization, p: NumericArray) -> NumericArray:
        """
        Hosking quantile ``xi + alpha (1 - (-log p)^kappa) / kappa``.

        Near ``kappa = 0`` the Gumbel limit ``xi - alpha log(-log p)`` is used.
        """
        parameters = cast(_Standard, parameters)
        xi, alpha, k = parameters.xi, parameters.alpha, parameters.kappa
        y = -np.log(p)
        if abs(k) <= NEAR_ZERO:
            return cast(NumericArray, xi - alpha * np.log(y))
        return cast(NumericArray, xi + alpha / k * (1.0 - y**k))

    def mean_func(parameters: Parametrization, _: Any) -> float:
        """Mean of GEV distribution, NaN for ``kappa <= -1``."""
        parameters = cast(_Standard, parameters)
        xi, alpha, k = parameters.xi, parameters.alpha, parameters.kappa
        if abs(k) <= NEAR_ZERO:
            return xi + alpha * EULER_GAMMA
        if k <= -1.0:
            return float("nan")
        return xi + alpha / k * (1.0 - float(gamma(1.0 + k)))

    def var_func(parameters: Parametrization, _: Any) -> float:
        """Variance of GEV distribution, NaN for ``kappa <= -1/2``."""
        parameters = cast(_Standard, parameters)
        alpha, k = parameters.alpha, parameters.kappa
        if abs(k) <= NEAR_ZERO:
            return alpha**2 * math.pi**2 / 6.0
        if k <= -0.5:
            return float("nan")
        g1, g2 = _gamma_moments(k, 2)
        return alpha**2 * (g2 - g1**2) / k**2

    def skew_func(parameters: Parametrization, _: Any) -> float:
        """Skewness of GEV distribution."""
        return gev_skewness(cast(_Standard, parameters).kappa)

    def kurt_func(parameters: Parametrization, _: Any) -> float:
        """Raw kurtosis of GEV distribution, NaN for ``kappa <= -1/4``."""
        k = cast(_Standard, parameters).kappa
        if abs(k) <= NEAR_ZERO:
            return GUMBEL_KURTOSIS
        if k <= -0.25:
            return float("nan")
        g1, g2, g3, g4 = _gamma_moments(k, 4)
        return (g4 - 4.0 * g1 * g3 + 6.0 * g1**2 * g2 - 3.0 * g1**4) / (g2 - g1**2) ** 2

    def _support(parameters: Parametrization) -> ContinuousSupport:
        """Support of GEV distribution"""
        parameters = cast(_Standard, parameters)
        k = parameters.kappa
        if k > NEAR_ZERO:
            return ContinuousSupport(right=parameters.xi + parameters.alpha / k)
        if k < -NEAR_ZERO:
            return ContinuousSupport(left=parameters.xi + parameters.alpha / k)
        return ContinuousSupport()

    def from_moments(moments: NumericArray) -> Parametrization:
        """
        Method of moments.

        The shape is found by a bracketed root solve of the skewness equation
        and clamped to the bracket when the sample skewness lies outside the
        attainable range.
        """
        mean, sd, skew = float(moments[0]), float(moments[1]), float(moments[2])
        k = _solve_shape(gev_skewness, skew, SHAPE_FROM_SKEW_BRACKET)
        if abs(k) <= NEAR_ZERO:
            alpha = math.sqrt(6.0) / math.pi * sd
            return _Standard(xi=mean - alpha * EULER_GAMMA, alpha=alpha, kappa=k)
        g1, g2 = _gamma_moments(k, 2)
        alpha = math.sqrt(sd**2 * k**2 / (g2 - g1**2))
        return _Standard(xi=mean - alpha / k * (1.0 - g1), alpha=alpha, kappa=k)

    def from_linear_moments(moments: NumericArray) -> Parametrization:
        """
        Method of L-moments.

        Uses Hosking's rational approximation of the shape for
        ``|tau3| <= 0.5`` and a root solve of the L-skewness equation otherwise.
        """
        l1, l2, t3 = float(moments[0]), float(moments[1]), float(moments[2])
        if abs(t3) <= 0.5:
            c = 2.0 / (3.0 + t3) - math.log(2.0) / math.log(3.0)
            k = 7.8590 * c + 2.9554 * c**2
        else:
            k = _solve_shape(gev_tau3, t3, SHAPE_FROM_TAU3_BRACKET)
        if abs(k) <= NEAR_ZERO:
            alpha = l2 / math.log(2.0)
            return _Standard(xi=l1 - EULER_GAMMA * alpha, alpha=alpha, kappa=k)
        g1 = float(gamma(1.0 + k))
        alpha = l2 * k / ((1.0 - 2.0**-k) * g1)
        return _Standard(xi=l1 - alpha * (1.0 - g1) / k, alpha=alpha, kappa=k)

    def parameter_bounds(sample: NumericArray) -> ParameterBounds:
        """
        Search region for maximum likelihood, centred on the L-moment estimate.
        """
        initial = from_linear_moments(linear_moments(sample)).to_vector()
        if initial[0] == 0.0:
            initial[0] = MACHINE_EPSILON
        xi_limit = decade_bound(float(initial[0]))
        return ParameterBounds.build(
            initial=initial,
            lower=[-xi_limit, MACHINE_EPSILON, SHAPE_LIMITS[0]],
            upper=[xi_limit, decade_bound(float(initial[1])), SHAPE_LIMITS[1]],
        )

    def _analytic_information(parameters: _Standard, n: int) -> NumericArray:
        a, k = parameters.alpha, parameters.kappa
        g = float(gamma(1.0 - k))
        p = (1.0 - k) ** 2 * float(gamma(1.0 - 2.0 * k))
        q = (1.0 - k) * g * (float(digamma(1.0 - k)) - (1.0 - k) / k)
        d_uu = n / a**2 * p
        d_aa = n / (a**2 * k**2) * (1.0 - 2.0 * (1.0 - k) * g + p)
        d_kk = n / k**2 * (
            math.pi**2 / 6.0 + (1.0 - EULER_GAMMA - 1.0 / k) ** 2 + 2.0 * q / k + p / k**2
        )
        d_ua = n / (a**2 * k) * (p - (1.0 - k) * g)
        d_uk = -n / (a * k) * (p / k + q)
        d_ak = n / (a * k**2) * (1.0 - EULER_GAMMA - (1.0 - (1.0 - k) * g) / k - p / k - q)
        return np.array(
            [
                [d_uu, d_ua, d_uk],
                [d_ua, d_aa, d_ak],
                [d_uk, d_ak, d_kk],
            ]
        )

    def likelihood_covariance(parameters: Parametrization, n: int) -> NumericArray:
        """
        Inverse of the expected Fisher information.

        The closed form holds for ``1e-2 <= |kappa| < 1/2``; other shapes use
        the numerical expected information.
        """
        parameters = cast(_Standard, parameters)
        k = parameters.kappa
        if ANALYTIC_INFORMATION_MIN_SHAPE <= abs(k) and k < 0.5:
            information = _analytic_information(parameters, n)
        else:
            information = expected_information(GEV.distribution(**parameters.parameters), n)
        return cast(NumericArray, np.linalg.inv(information))

    def quantile_gradient(parameters: Parametrization, p: float) -> NumericArray:
        """Gradient of the quantile with respect to ``(xi, alpha, kappa)``."""
        parameters = cast(_Standard, parameters)
        alpha, k = parameters.alpha, parameters.kappa
        y = -math.log(p)
        log_y = math.log(y)
        if abs(k) <= NEAR_ZERO:
            return np.array([1.0, -log_y, -alpha * log_y**2 / 2.0])
        yk = y**k
        return np.array(
            [
                1.0,
                (1.0 - yk) / k,
                -alpha / k**2 * (1.0 - yk) - alpha / k * yk * log_y,
            ]
        )

    GEV = ParametricFamily(
        name=FamilyName.GEV,
        distr_parametrizations=["standard", "coles"],
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
            EstimationMethod.MAXIMUM_LIKELIHOOD: likelihood_covariance,
        },
        quantile_gradient=quantile_gradient,
    )
    GEV.__doc__ = GEV_DOC

    @parametrization(family=GEV, name="standard")
    class _Standard(Parametrization):
        """
        Hosking parametrization of GEV distribution.

        Parameters
        ----------
        xi : float
            Location parameter
        alpha : float
            Scale parameter
        kappa : float
            Shape parameter (positive for an upper-bounded support)
        """

        xi: float
        alpha: float
        kappa: float

        @constraint(description="alpha > 0")
        def check_alpha_positive(self) -> bool:
            """Check that scale parameter is positive."""
            return self.alpha > 0

    @parametrization(family=GEV, name="coles")
    class _Coles(Parametrization):
        """
        Climatological parametrization of GEV distribution.

        Parameters
        ----------
        mu : float
            Location parameter
        sigma : float
            Scale parameter
        shape : float
            Shape parameter with the opposite sign of ``kappa``
        """

        mu: float
        sigma: float
        shape: float

        @constraint(description="sigma > 0")
        def check_sigma_positive(self) -> bool:
            return self.sigma > 0

        def transform_to_base_parametrization(self) -> Parametrization:
            return _Standard(xi=self.mu, alpha=self.sigma, kappa=-self.shape)

    ParametricFamilyRegister.register(GEV)
