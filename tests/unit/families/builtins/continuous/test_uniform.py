"""
Uniform severities checked against scipy.stats.uniform.
"""

__author__ = "Fedor Myznikov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math

import numpy as np
import pytest
from scipy.stats import uniform

from pysatl_risk.errors import EstimationNotImplementedError
from pysatl_risk.estimation.statistics import linear_moments
from pysatl_risk.families.configuration import configure_families_register
from pysatl_risk.types import ContinuousSupportShape1D, EstimationMethod, FamilyName

from .base import BaseDistributionTest


class TestUniformFamily(BaseDistributionTest):
    def setup_method(self):
        self.family = configure_families_register().get(FamilyName.CONTINUOUS_UNIFORM)
        self.severity = self.family(lower_bound=2.0, upper_bound=5.0)

    def test_declaration(self):
        assert self.family.name == FamilyName.CONTINUOUS_UNIFORM

        expected_parametrizations = {"standard", "meanWidth", "minRange"}
        assert set(self.family.parametrization_names) == expected_parametrizations
        assert self.family.base_parametrization_name == "standard"

    @pytest.mark.parametrize(
        "parametrization_name, params, expected_lower, expected_upper",
        [
            ("standard", {"lower_bound": 2.0, "upper_bound": 5.0}, 2.0, 5.0),
            ("meanWidth", {"mean": 3.5, "width": 3.0}, 2.0, 5.0),
            ("minRange", {"minimum": 2.0, "range_val": 3.0}, 2.0, 5.0),
        ],
    )
    def test_parametrization_conversions(
        self, parametrization_name, params, expected_lower, expected_upper
    ):
        dist = self.family(parametrization_name=parametrization_name, **params)

        self.assert_arrays_almost_equal(dist.parameters, [expected_lower, expected_upper])

    def test_parametrization_constraints(self):
        with pytest.raises(ValueError, match="width > 0"):
            self.family(mean=0.0, width=-1.0, parametrization_name="meanWidth")
        with pytest.raises(ValueError, match="range_val > 0"):
            self.family(minimum=0.0, range_val=0.0, parametrization_name="minRange")

        assert not self.family(lower_bound=5.0, upper_bound=2.0).parameters_valid

    @pytest.mark.parametrize(
        "method, scipy_method, test_data",
        [
            ("pdf", "pdf", [0.0, 2.0, 3.0, 4.5, 5.0, 7.0]),
            ("cdf", "cdf", [0.0, 2.0, 3.0, 4.5, 5.0, 7.0]),
            ("log_pdf", "logpdf", [2.5, 3.0, 4.5]),
            ("log_ccdf", "logsf", [2.0, 3.0, 4.5]),
            ("inverse_cdf", "ppf", [0.001, 0.1, 0.5, 0.9, 0.999]),
        ],
    )
    def test_array_input_for_characteristics(self, method, scipy_method, test_data):
        """Characteristics agree with scipy's uniform on ``[loc, loc + scale]``."""
        input_array = np.array(test_data)
        result_array = getattr(self.severity, method)(input_array)

        assert result_array.shape == input_array.shape
        expected_array = getattr(uniform, scipy_method)(input_array, loc=2.0, scale=3.0)
        self.assert_arrays_almost_equal(result_array, expected_array)

    def test_log_pdf_outside_support(self):
        assert self.severity.log_pdf(1.0) == float("-inf")
        assert self.severity.log_ccdf(6.0) == float("-inf")

    def test_moments(self):
        dist = self.severity

        assert abs(dist.mean - 3.5) < self.CALCULATION_PRECISION
        assert abs(dist.standard_deviation - 3.0 / math.sqrt(12)) < self.CALCULATION_PRECISION
        assert abs(dist.skewness) < self.CALCULATION_PRECISION
        assert abs(dist.kurtosis - 1.8) < self.CALCULATION_PRECISION

    def test_support(self):
        dist = self.severity

        assert dist.minimum == 2.0
        assert dist.maximum == 5.0
        assert dist.support.shape == ContinuousSupportShape1D.BOUNDED_INTERVAL
        assert dist.inverse_cdf(0.0) == 2.0
        assert dist.inverse_cdf(1.0) == 5.0

    def test_quantile_round_trip(self):
        self.assert_quantile_round_trip(self.severity)

    def test_method_of_moments(self):
        sample = self.severity.sample(400, seed=11)
        values = sample.values

        dist = self.family(lower_bound=0.0, upper_bound=1.0)
        dist.estimate(sample, EstimationMethod.MOMENTS)

        half_width = math.sqrt(3.0) * np.std(values, ddof=1)
        expected = [np.mean(values) - half_width, np.mean(values) + half_width]
        self.assert_arrays_almost_equal(dist.parameters, expected)

    def test_method_of_linear_moments(self):
        sample = self.severity.sample(400, seed=12)
        l1, l2, _, _ = linear_moments(sample)

        dist = self.family(lower_bound=0.0, upper_bound=1.0)
        dist.estimate(sample, EstimationMethod.LINEAR_MOMENTS)

        self.assert_arrays_almost_equal(dist.parameters, [l1 - 3.0 * l2, l1 + 3.0 * l2])

    def test_parameter_bounds(self):
        sample = np.array([2.5, 3.0, 4.0, 4.5])

        bounds = self.severity.parameter_bounds(sample)

        assert bounds.is_consistent
        self.assert_arrays_almost_equal(bounds.lower, [0.5, 4.5])
        self.assert_arrays_almost_equal(bounds.upper, [2.5, 6.5])

    def test_no_covariance_formulas(self):
        with pytest.raises(EstimationNotImplementedError):
            self.severity.parameter_covariance(100, EstimationMethod.MOMENTS)

    def test_quantile_gradient(self):
        gradient = self.severity.quantile_gradient(0.25)

        self.assert_arrays_almost_equal(gradient, [0.75, 0.25])
