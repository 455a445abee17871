"""
Shifted exponential severities checked against scipy.stats.expon.
"""

__author__ = "Fedor Myznikov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math

import numpy as np
import pytest
from scipy.stats import expon

from pysatl_risk.errors import InvalidSampleError
from pysatl_risk.families.configuration import configure_families_register
from pysatl_risk.types import ContinuousSupportShape1D, EstimationMethod, FamilyName

from .base import BaseDistributionTest


class TestExponentialFamily(BaseDistributionTest):
    def setup_method(self):
        self.family = configure_families_register().get(FamilyName.EXPONENTIAL)
        self.severity = self.family(xi=1.0, alpha=2.0)

    def test_declaration(self):
        assert self.family.name == FamilyName.EXPONENTIAL
        assert set(self.family.parametrization_names) == {"locationScale", "rate"}
        assert self.family.base_parametrization_name == "locationScale"

    def test_rate_parametrization(self):
        """Rate parametrization fixes the location at zero."""
        dist = self.family(lambda_=0.5, parametrization_name="rate")

        self.assert_arrays_almost_equal(dist.parameters, [0.0, 2.0])

    def test_parametrization_constraints(self):
        with pytest.raises(ValueError, match="lambda_ > 0"):
            self.family(lambda_=-0.5, parametrization_name="rate")
        assert not self.family(xi=0.0, alpha=0.0).parameters_valid

    @pytest.mark.parametrize(
        "method, scipy_method, test_data",
        [
            ("pdf", "pdf", [0.0, 1.0, 1.5, 3.0, 10.0]),
            ("log_pdf", "logpdf", [1.0, 1.5, 3.0, 100.0]),
            ("cdf", "cdf", [0.0, 1.0, 1.5, 3.0, 10.0]),
            ("log_ccdf", "logsf", [1.0, 1.5, 3.0, 100.0]),
            ("inverse_cdf", "ppf", [0.001, 0.01, 0.1, 0.5, 0.9, 0.99, 0.999]),
        ],
    )
    def test_array_input_for_characteristics(self, method, scipy_method, test_data):
        """Characteristics agree with scipy's location-scale exponential."""
        input_array = np.array(test_data)
        result_array = getattr(self.severity, method)(input_array)

        assert result_array.shape == input_array.shape
        expected_array = getattr(expon, scipy_method)(input_array, loc=1.0, scale=2.0)
        self.assert_arrays_almost_equal(result_array, expected_array)

    def test_out_of_support_values(self):
        """Below the location the density is zero and nothing raises."""
        dist = self.severity

        assert dist.pdf(0.5) == 0.0
        assert dist.cdf(0.5) == 0.0
        assert dist.log_pdf(0.5) == float("-inf")

    def test_moments(self):
        dist = self.severity

        assert abs(dist.mean - 3.0) < self.CALCULATION_PRECISION
        assert abs(dist.standard_deviation - 2.0) < self.CALCULATION_PRECISION
        assert abs(dist.skewness - 2.0) < self.CALCULATION_PRECISION
        assert abs(dist.kurtosis - 9.0) < self.CALCULATION_PRECISION

    def test_support(self):
        dist = self.severity

        assert dist.minimum == 1.0
        assert dist.maximum == float("inf")
        assert dist.support.shape == ContinuousSupportShape1D.RAY_RIGHT

    def test_quantile_round_trip(self):
        self.assert_quantile_round_trip(self.severity)

    def test_method_of_moments(self):
        sample = self.severity.sample(500, seed=7)
        values = sample.values

        dist = self.family(xi=0.0, alpha=1.0)
        dist.estimate(sample, EstimationMethod.MOMENTS)

        sd = np.std(values, ddof=1)
        self.assert_arrays_almost_equal(dist.parameters, [np.mean(values) - sd, sd])

    def test_maximum_likelihood_location_not_above_minimum(self):
        sample = self.severity.sample(1000, seed=8)

        dist = self.family(xi=0.0, alpha=1.0)
        dist.estimate(sample, EstimationMethod.MAXIMUM_LIKELIHOOD)

        xi, alpha = dist.parameters
        assert xi <= np.min(sample.values)
        assert abs(xi - 1.0) < 0.05
        assert abs(alpha - 2.0) < 0.2

    def test_parameter_bounds(self):
        sample = np.array([2.0, 3.0, 5.0, 6.0])
        n, minimum, mean = 4, 2.0, 4.0

        bounds = self.severity.parameter_bounds(sample)

        xi = (n * minimum - mean) / (n - 1)
        alpha = n * (mean - minimum) / (n - 1)
        self.assert_arrays_almost_equal(bounds.initial, [xi, alpha])
        self.assert_arrays_almost_equal(bounds.lower[:1], [xi - 10.0])
        self.assert_arrays_almost_equal(bounds.upper, [minimum, 100.0])

    def test_parameter_bounds_need_two_points(self):
        with pytest.raises(InvalidSampleError):
            self.severity.parameter_bounds(np.array([1.0]))

    def test_covariances(self):
        dist = self.severity
        n = 50

        moments = dist.parameter_covariance(n, EstimationMethod.MOMENTS)
        likelihood = dist.parameter_covariance(n, EstimationMethod.MAXIMUM_LIKELIHOOD)

        self.assert_arrays_almost_equal(moments, [[4 / n, -4 / n], [-4 / n, 8 / n]])
        off = -4 / (n * (n - 1))
        self.assert_arrays_almost_equal(likelihood, [[4 / (n * (n - 1)), off], [off, 4 / (n - 1)]])

    def test_quantile_gradient(self):
        gradient = self.severity.quantile_gradient(0.9)

        self.assert_arrays_almost_equal(gradient, [1.0, -math.log(0.1)])
