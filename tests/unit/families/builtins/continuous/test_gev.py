"""
The GEV family in Hosking's sign convention against
:data:`scipy.stats.genextreme` (``c = kappa``), including the Gumbel limit,
the bounded supports and the estimation hooks.
"""

__author__ = "Fedor Myznikov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math

import numpy as np
import pytest
from scipy.stats import genextreme, gumbel_r

from pysatl_risk.config import configure
from pysatl_risk.estimation.standard_error import expected_information
from pysatl_risk.families.builtins.continuous.gev import (
    GUMBEL_KURTOSIS,
    gev_skewness,
    gev_tau3,
)
from pysatl_risk.families.configuration import configure_families_register
from pysatl_risk.types import ContinuousSupportShape1D, EstimationMethod, FamilyName

from .base import BaseDistributionTest


class TestGEVFamily(BaseDistributionTest):
    def setup_method(self):
        self.family = configure_families_register().get(FamilyName.GEV)
        self.severity = self.family(xi=10.0, alpha=2.0, kappa=0.1)

    def test_declaration(self):
        assert self.family.name == FamilyName.GEV
        assert set(self.family.parametrization_names) == {"standard", "coles"}
        assert self.family.base_parametrization_name == "standard"

    def test_coles_parametrization_flips_shape(self):
        dist = self.family(mu=10.0, sigma=2.0, shape=0.2, parametrization_name="coles")

        self.assert_arrays_almost_equal(dist.parameters, [10.0, 2.0, -0.2])

    def test_scale_constraint(self):
        assert not self.family(xi=0.0, alpha=-1.0, kappa=0.1).parameters_valid
        with pytest.raises(ValueError, match="sigma > 0"):
            self.family(mu=0.0, sigma=0.0, shape=0.1, parametrization_name="coles")

    @pytest.mark.parametrize("kappa", [-0.3, -0.1, 0.1, 0.4])
    @pytest.mark.parametrize(
        "method, scipy_method",
        [
            ("pdf", "pdf"),
            ("log_pdf", "logpdf"),
            ("cdf", "cdf"),
            ("log_cdf", "logcdf"),
            ("log_ccdf", "logsf"),
        ],
    )
    def test_characteristics_against_scipy(self, kappa, method, scipy_method):
        """Inside the support every characteristic agrees with genextreme."""
        dist = self.family(xi=10.0, alpha=2.0, kappa=kappa)
        x = genextreme.ppf([0.01, 0.2, 0.5, 0.8, 0.99], kappa, loc=10.0, scale=2.0)

        result = getattr(dist, method)(x)
        expected = getattr(genextreme, scipy_method)(x, kappa, loc=10.0, scale=2.0)
        np.testing.assert_allclose(result, expected, rtol=1e-9)

    @pytest.mark.parametrize("kappa", [-0.3, 0.0, 0.1, 0.4])
    def test_inverse_cdf_against_scipy(self, kappa):
        dist = self.family(xi=10.0, alpha=2.0, kappa=kappa)
        p = np.array([0.001, 0.01, 0.1, 0.5, 0.9, 0.99, 0.999])

        np.testing.assert_allclose(
            dist.inverse_cdf(p), genextreme.ppf(p, kappa, loc=10.0, scale=2.0), rtol=1e-10
        )

    def test_gumbel_limit_against_scipy(self):
        """A near-zero shape evaluates the Gumbel distribution."""
        dist = self.family(xi=1.0, alpha=3.0, kappa=1e-5)
        x = np.array([-5.0, 0.0, 1.0, 4.0, 20.0])

        np.testing.assert_allclose(dist.cdf(x), gumbel_r.cdf(x, loc=1.0, scale=3.0), rtol=1e-4)
        np.testing.assert_allclose(
            dist.log_pdf(x), gumbel_r.logpdf(x, loc=1.0, scale=3.0), rtol=1e-4
        )
        assert dist.support.shape == ContinuousSupportShape1D.REAL_LINE

    def test_weibull_type_support(self):
        """Positive shape bounds the support above at ``xi + alpha / kappa``."""
        dist = self.severity
        upper = 10.0 + 2.0 / 0.1

        assert dist.maximum == pytest.approx(upper)
        assert dist.minimum == float("-inf")
        assert dist.support.shape == ContinuousSupportShape1D.RAY_LEFT
        assert dist.cdf(upper + 1.0) == 1.0
        assert dist.pdf(upper + 1.0) == 0.0
        assert dist.log_pdf(upper + 1.0) == float("-inf")
        assert dist.inverse_cdf(1.0) == pytest.approx(upper)

    def test_frechet_type_support(self):
        """Negative shape bounds the support below at ``xi + alpha / kappa``."""
        dist = self.family(xi=10.0, alpha=2.0, kappa=-0.2)
        lower = 10.0 + 2.0 / -0.2

        assert dist.minimum == pytest.approx(lower)
        assert dist.support.shape == ContinuousSupportShape1D.RAY_RIGHT
        assert dist.cdf(lower - 1.0) == 0.0
        assert dist.pdf(lower - 1.0) == 0.0

    @pytest.mark.parametrize("kappa", [-0.2, -0.05, 0.1, 0.3])
    def test_moments_against_scipy(self, kappa):
        """Kurtosis is raw, i.e. scipy's excess kurtosis plus three."""
        dist = self.family(xi=10.0, alpha=2.0, kappa=kappa)
        mean, var, skew, excess = genextreme.stats(kappa, loc=10.0, scale=2.0, moments="mvsk")

        np.testing.assert_allclose(
            dist.moments,
            [float(mean), math.sqrt(float(var)), float(skew), float(excess) + 3.0],
            rtol=1e-8,
        )

    def test_gumbel_moments(self):
        dist = self.family(xi=0.0, alpha=1.0, kappa=0.0)

        assert abs(dist.mean - np.euler_gamma) < self.CALCULATION_PRECISION
        assert abs(dist.standard_deviation - math.pi / math.sqrt(6.0)) < 1e-12
        assert dist.kurtosis == GUMBEL_KURTOSIS

    def test_undefined_moments_are_nan(self):
        dist = self.family(xi=0.0, alpha=1.0, kappa=-1.5)

        assert math.isnan(dist.mean)
        assert math.isnan(dist.standard_deviation)
        assert math.isnan(dist.skewness)

    def test_shape_functions_are_continuous_at_zero(self):
        assert gev_skewness(2e-4) == pytest.approx(gev_skewness(0.0), rel=1e-2)
        assert gev_tau3(2e-4) == pytest.approx(gev_tau3(0.0), rel=1e-2)
        assert gev_tau3(0.0) == pytest.approx(0.1699, abs=1e-4)

    def test_quantile_round_trip(self):
        self.assert_quantile_round_trip(self.severity)
        self.assert_quantile_round_trip(self.family(xi=10.0, alpha=2.0, kappa=-0.25))

    def test_method_of_linear_moments_recovers_shape(self):
        sample = self.severity.sample(5000, seed=21)

        dist = self.family(xi=0.0, alpha=1.0, kappa=0.0)
        dist.estimate(sample, EstimationMethod.LINEAR_MOMENTS)

        xi, alpha, kappa = dist.parameters
        assert abs(xi - 10.0) < 0.15
        assert abs(alpha - 2.0) < 0.15
        assert abs(kappa - 0.1) < 0.05

    def test_method_of_moments_matches_sample_moments(self):
        """The fitted distribution reproduces the sample mean and deviation."""
        sample = self.severity.sample(2000, seed=22)
        values = sample.values

        dist = self.family(xi=0.0, alpha=1.0, kappa=0.0)
        dist.estimate(sample, EstimationMethod.MOMENTS)

        assert dist.mean == pytest.approx(np.mean(values), rel=1e-8)
        assert dist.standard_deviation == pytest.approx(np.std(values, ddof=1), rel=1e-8)

    def test_maximum_likelihood(self):
        sample = self.severity.sample(2000, seed=23)

        dist = self.family(xi=0.0, alpha=1.0, kappa=0.0)
        dist.estimate(sample, EstimationMethod.MAXIMUM_LIKELIHOOD)

        xi, alpha, kappa = dist.parameters
        assert abs(xi - 10.0) < 0.2
        assert abs(alpha - 2.0) < 0.2
        assert abs(kappa - 0.1) < 0.06
        assert dist.log_likelihood(sample) >= self.severity.log_likelihood(sample)

    def test_parameter_bounds(self):
        sample = self.severity.sample(200, seed=24)

        bounds = self.severity.parameter_bounds(sample.values)

        assert bounds.is_consistent
        self.assert_arrays_almost_equal(bounds.lower[2:], [-10.0])
        self.assert_arrays_almost_equal(bounds.upper[2:], [10.0])

    def test_likelihood_covariance_matches_numerical_information(self):
        configure(moment_bins=20000)
        n = 100

        covariance = self.severity.parameter_covariance(
            n, EstimationMethod.MAXIMUM_LIKELIHOOD
        )
        information = expected_information(self.severity, n)

        np.testing.assert_allclose(covariance, covariance.T)
        np.testing.assert_allclose(
            np.diag(np.linalg.inv(covariance))[:2], np.diag(information)[:2], rtol=0.05
        )

    def test_likelihood_covariance_near_gumbel_uses_numerical_information(self):
        dist = self.family(xi=0.0, alpha=1.0, kappa=1e-3)

        covariance = dist.parameter_covariance(100, EstimationMethod.MAXIMUM_LIKELIHOOD)

        assert covariance.shape == (3, 3)
        assert np.all(np.diag(covariance) > 0.0)

    @pytest.mark.parametrize("kappa", [0.1, -0.2])
    def test_quantile_gradient_matches_finite_differences(self, kappa):
        p, h = 0.99, 1e-6
        theta = np.array([10.0, 2.0, kappa])
        dist = self.family(xi=10.0, alpha=2.0, kappa=kappa)

        gradient = dist.quantile_gradient(p)

        shifted = dist.clone()
        numerical = []
        for i in range(3):
            step = np.zeros(3)
            step[i] = h
            shifted.set_parameters(theta + step)
            upper = shifted.inverse_cdf(p)
            shifted.set_parameters(theta - step)
            lower = shifted.inverse_cdf(p)
            numerical.append((upper - lower) / (2 * h))
        np.testing.assert_allclose(gradient, numerical, rtol=1e-4, atol=1e-6)

    def test_gumbel_quantile_gradient(self):
        dist = self.family(xi=10.0, alpha=2.0, kappa=0.0)
        log_y = math.log(-math.log(0.99))

        gradient = dist.quantile_gradient(0.99)

        self.assert_arrays_almost_equal(gradient, [1.0, -log_y, -2.0 * log_y**2 / 2.0])
