__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import itertools
import math

import numpy as np
import pytest
from scipy import stats

from pysatl_risk.distributions.sampling import ArraySample
from pysatl_risk.errors import InvalidSampleError
from pysatl_risk.estimation.statistics import linear_moments, product_moments


class TestProductMoments:
    def test_against_scipy(self):
        x = np.random.default_rng(0).gamma(2.0, size=200)

        moments = product_moments(x)

        expected = [
            np.mean(x),
            np.std(x, ddof=1),
            stats.skew(x, bias=False),
            stats.kurtosis(x, fisher=False, bias=False),
        ]
        np.testing.assert_allclose(moments, expected, rtol=1e-12)

    def test_accepts_sample_container(self):
        x = np.array([[1.0], [2.0], [4.0], [8.0]])

        np.testing.assert_array_equal(product_moments(ArraySample(x)), product_moments(x[:, 0]))

    @pytest.mark.parametrize("x", [[1.0, 2.0, 3.0], [2.0, 2.0, 2.0, 2.0]], ids=["short", "flat"])
    def test_unusable_sample_raises(self, x):
        with pytest.raises(InvalidSampleError):
            product_moments(x)


class TestLinearMoments:
    def test_l_scale_is_half_the_gini_mean_difference(self):
        x = np.random.default_rng(1).normal(size=30)

        l1, l2, _, _ = linear_moments(x)

        pairs = list(itertools.combinations(x, 2))
        gini = sum(abs(a - b) for a, b in pairs) / len(pairs)
        assert l1 == pytest.approx(np.mean(x), rel=1e-12)
        assert l2 == pytest.approx(gini / 2.0, rel=1e-10)

    def test_symmetric_sample_has_zero_l_skewness(self):
        x = np.array([-3.0, -1.0, -0.5, 0.0, 0.5, 1.0, 3.0])

        _, _, t3, _ = linear_moments(x)

        assert abs(t3) < 1e-12

    def test_order_does_not_matter(self):
        x = np.array([5.0, 1.0, 3.0, 2.0, 9.0])

        np.testing.assert_allclose(linear_moments(x), linear_moments(np.sort(x)[::-1]))

    def test_large_normal_sample(self):
        x = np.random.default_rng(2).normal(10.0, 2.0, size=200_000)

        l1, l2, t3, t4 = linear_moments(x)

        assert l1 == pytest.approx(10.0, abs=0.02)
        assert l2 == pytest.approx(2.0 / math.sqrt(math.pi), rel=1e-2)
        assert abs(t3) < 0.01
        assert t4 == pytest.approx(0.1226, abs=0.005)

    @pytest.mark.parametrize("x", [[1.0, 2.0, 3.0], [4.0, 4.0, 4.0, 4.0]], ids=["short", "flat"])
    def test_unusable_sample_raises(self, x):
        with pytest.raises(InvalidSampleError):
            linear_moments(x)
