__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math

import numpy as np
import pytest
from scipy.stats import norm

from pysatl_risk.config import get_config
from pysatl_risk.distributions.distribution import (
    WORST_LOG_LIKELIHOOD,
    Distribution,
    central_moments,
)
from pysatl_risk.errors import (
    DimensionMismatchError,
    EstimationNotImplementedError,
    InvalidParameterError,
)
from pysatl_risk.families import ParametricFamilyDistribution
from pysatl_risk.families.configuration import configure_families_register
from pysatl_risk.types import CharacteristicName, EstimationMethod, FamilyName


class TestParametricFamilyDistribution:
    def setup_method(self) -> None:
        self.normal = configure_families_register().get(FamilyName.NORMAL)
        self.dist = self.normal(mu=1.0, sigma=2.0)

    def test_satisfies_distribution_protocol(self) -> None:
        assert isinstance(self.dist, Distribution)
        assert isinstance(self.dist, ParametricFamilyDistribution)
        assert self.dist.name == FamilyName.NORMAL
        assert self.dist.number_of_parameters == 2

    def test_set_parameters_replaces_vector(self) -> None:
        self.dist.set_parameters([3.0, 0.5])

        np.testing.assert_array_equal(self.dist.parameters, [3.0, 0.5])
        assert self.dist.cdf(3.0) == pytest.approx(0.5)

    def test_set_parameters_checks_length(self) -> None:
        with pytest.raises(DimensionMismatchError):
            self.dist.set_parameters([1.0, 2.0, 3.0])

    def test_invalid_vector_is_stored_and_raised_lazily(self) -> None:
        self.dist.set_parameters([0.0, -1.0])

        assert not self.dist.parameters_valid
        with pytest.raises(InvalidParameterError):
            self.dist.cdf(0.0)
        with pytest.raises(InvalidParameterError):
            _ = self.dist.moments

        self.dist.set_parameters([0.0, 1.0])
        assert self.dist.parameters_valid
        assert self.dist.cdf(0.0) == pytest.approx(0.5)

    def test_validate_does_not_mutate(self) -> None:
        error = self.dist.validate([0.0, 0.0])

        assert isinstance(error, InvalidParameterError)
        assert self.dist.validate([0.0, 1.0]) is None
        np.testing.assert_array_equal(self.dist.parameters, [1.0, 2.0])

    def test_moments_cache_is_dropped_on_update(self) -> None:
        assert self.dist.mean == pytest.approx(1.0)

        self.dist.set_parameters([5.0, 2.0])

        assert self.dist.mean == pytest.approx(5.0)

    def test_missing_characteristics_are_integrated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delitem(self.normal.distr_characteristics, CharacteristicName.SKEW)
        monkeypatch.delitem(self.normal.distr_characteristics, CharacteristicName.KURT)
        numerical = central_moments(self.dist, get_config().moment_bins)

        mean, sd, skew, kurtosis = self.dist.moments

        assert (mean, sd) == (1.0, 2.0)
        assert (skew, kurtosis) == (numerical[2], numerical[3])
        assert abs(kurtosis - 3.0) < 0.05

    def test_clone_is_independent(self) -> None:
        clone = self.dist.clone()
        clone.set_parameters([10.0, 1.0])

        np.testing.assert_array_equal(self.dist.parameters, [1.0, 2.0])
        np.testing.assert_array_equal(clone.parameters, [10.0, 1.0])

    def test_ccdf_and_hazard(self) -> None:
        x = np.array([-1.0, 1.0, 4.0])

        np.testing.assert_allclose(self.dist.ccdf(x), norm.sf(x, 1.0, 2.0), rtol=1e-12)
        np.testing.assert_allclose(
            self.dist.hazard(x), norm.pdf(x, 1.0, 2.0) / norm.sf(x, 1.0, 2.0), rtol=1e-10
        )

    def test_log_likelihood(self) -> None:
        values = np.array([0.0, 1.0, 2.5])

        expected = float(np.sum(norm.logpdf(values, 1.0, 2.0)))
        assert self.dist.log_likelihood(values) == pytest.approx(expected, rel=1e-12)

    def test_log_likelihood_outside_support_is_worst_value(self) -> None:
        exponential = configure_families_register().get(FamilyName.EXPONENTIAL)
        dist = exponential(xi=1.0, alpha=1.0)

        assert dist.log_likelihood([0.0, 2.0]) == WORST_LOG_LIKELIHOOD

    def test_sample_is_seeded(self) -> None:
        first = self.dist.sample(50, seed=5)
        second = self.dist.sample(50, seed=5)

        assert first.shape == (50, 1)
        np.testing.assert_array_equal(first.values, second.values)

    def test_bootstrap_leaves_original_untouched(self) -> None:
        replicate = self.dist.bootstrap(EstimationMethod.MOMENTS, 500, seed=99)

        np.testing.assert_array_equal(self.dist.parameters, [1.0, 2.0])
        assert replicate is not self.dist
        assert abs(replicate.mean - 1.0) < 0.3
        assert abs(replicate.standard_deviation - 2.0) < 0.3

    def test_bootstrap_is_reproducible(self) -> None:
        first = self.dist.bootstrap("linear_moments", 100, seed=3)
        second = self.dist.bootstrap("linear_moments", 100, seed=3)

        np.testing.assert_array_equal(first.parameters, second.parameters)

    def test_missing_covariance_raises(self) -> None:
        gev = configure_families_register().get(FamilyName.GEV)

        with pytest.raises(EstimationNotImplementedError):
            gev(xi=0.0, alpha=1.0, kappa=0.1).parameter_covariance(10, "moments")

    def test_scalar_and_array_outputs(self) -> None:
        assert isinstance(self.dist.pdf(1.0), float)
        assert isinstance(self.dist.inverse_cdf(0.5), float)
        assert self.dist.pdf(np.array([[1.0, 2.0]])).shape == (1, 2)
        assert math.isclose(self.dist.inverse_cdf(0.5), 1.0)
