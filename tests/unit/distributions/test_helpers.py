from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math

import numpy as np
import pytest

from pysatl_risk.distributions.distribution import (
    as_output,
    central_moments,
    check_probability,
    evaluate_quantiles,
)
from pysatl_risk.families.configuration import configure_families_register
from pysatl_risk.types import FamilyName


class TestAsOutput:
    def test_scalar_argument_gives_float(self) -> None:
        result = as_output(np.array([0.25]), 1.0)

        assert isinstance(result, float)
        assert result == 0.25

    def test_array_argument_gives_array(self) -> None:
        result = as_output([1, 2], np.array([0.0, 0.0]))

        assert isinstance(result, np.ndarray)
        assert result.dtype == np.float64


class TestEvaluateQuantiles:
    def test_endpoints_bypass_interior(self) -> None:
        calls = []

        def interior(p):
            calls.append(p.copy())
            return 10.0 * p

        result = evaluate_quantiles(np.array([0.0, 0.5, 1.0]), -1.0, 99.0, interior)

        np.testing.assert_array_equal(result, [-1.0, 5.0, 99.0])
        assert len(calls) == 1
        np.testing.assert_array_equal(calls[0], [0.5])

    def test_only_endpoints_never_calls_interior(self) -> None:
        def interior(p):
            raise AssertionError("interior must not be called")

        assert evaluate_quantiles(1.0, 0.0, math.inf, interior) == math.inf

    @pytest.mark.parametrize("p", [-0.1, 1.1, float("nan")])
    def test_invalid_probability_raises(self, p) -> None:
        with pytest.raises(ValueError):
            check_probability(p)


class TestCentralMoments:
    def test_normal_moments_from_cdf(self) -> None:
        normal = configure_families_register().get(FamilyName.NORMAL)(mu=2.0, sigma=3.0)

        mean, sd, skew, kurt = central_moments(normal, 2000)

        assert mean == pytest.approx(2.0, abs=1e-6)
        assert sd == pytest.approx(3.0, rel=1e-3)
        assert abs(skew) < 1e-6
        assert kurt == pytest.approx(3.0, rel=1e-2)

    def test_exponential_skewness(self) -> None:
        exponential = configure_families_register().get(FamilyName.EXPONENTIAL)

        _, sd, skew, _ = central_moments(exponential(xi=0.0, alpha=1.0), 5000)

        assert sd == pytest.approx(1.0, rel=1e-2)
        assert skew == pytest.approx(2.0, rel=5e-2)
