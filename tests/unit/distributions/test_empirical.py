from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import numpy as np
import pytest
from scipy.stats import expon, norm

from pysatl_risk.config import configure
from pysatl_risk.distributions.empirical import (
    EmpiricalInverseCDF,
    build_inverse_cdf_table,
    table_size,
)
from pysatl_risk.errors import DimensionMismatchError
from pysatl_risk.types import Transform


class TestEmpiricalInverseCDF:
    def test_non_monotone_points_are_dropped(self) -> None:
        table = EmpiricalInverseCDF(
            [0.0, 1.0, 0.5, 2.0, 3.0, 4.0],
            [0.1, 0.2, 0.3, 0.2, 0.6, 0.6],
            probability_transform=Transform.NONE,
        )

        np.testing.assert_array_equal(table.x, [0.0, 1.0, 3.0])
        np.testing.assert_array_equal(table.p, [0.1, 0.2, 0.6])
        assert len(table) == 3

    def test_points_without_finite_transform_are_dropped(self) -> None:
        table = EmpiricalInverseCDF([-1.0, 0.0, 1.0, 2.0], [0.0, 0.25, 0.5, 1.0])

        np.testing.assert_array_equal(table.x, [0.0, 1.0])

    def test_logarithmic_x_drops_non_positive_abscissae(self) -> None:
        table = EmpiricalInverseCDF(
            [0.0, 1.0, 10.0, 100.0], [0.1, 0.2, 0.5, 0.9], x_transform=Transform.LOGARITHMIC
        )

        np.testing.assert_array_equal(table.x, [1.0, 10.0, 100.0])
        assert table.inverse_cdf(norm.cdf(0.5 * (norm.ppf(0.2) + norm.ppf(0.5)))) == (
            pytest.approx(10.0**0.5)
        )

    def test_interpolates_linearly_in_normal_z(self) -> None:
        x = np.linspace(-4.0, 4.0, 81)
        table = EmpiricalInverseCDF(x, norm.cdf(x))

        p = np.array([0.01, 0.3, 0.5, 0.9])
        np.testing.assert_allclose(table.inverse_cdf(p), norm.ppf(p), atol=1e-12)
        np.testing.assert_allclose(table.cdf(norm.ppf(p)), p, rtol=1e-12)

    def test_queries_outside_the_table(self) -> None:
        table = EmpiricalInverseCDF([0.0, 1.0, 2.0], [0.2, 0.5, 0.8])

        assert table.cdf(-1.0) == 0.0
        assert table.cdf(5.0) == 1.0
        assert table.inverse_cdf(0.01) == 0.0
        assert table.inverse_cdf(0.99) == 2.0

    def test_length_mismatch_raises(self) -> None:
        with pytest.raises(DimensionMismatchError):
            EmpiricalInverseCDF([0.0, 1.0], [0.5])

    def test_no_finite_points_raises(self) -> None:
        with pytest.raises(ValueError):
            EmpiricalInverseCDF([0.0, 1.0], [0.0, 1.0])


class TestBuildInverseCDFTable:
    @pytest.mark.parametrize(
        "min_x, max_x, expected",
        [
            (1.0, 10.0, 199),
            (1.0, 1e5, 499),
            (-10.0, 1e4, 399),
            (0.0, 1.0, 199),
        ],
    )
    def test_table_size(self, min_x, max_x, expected) -> None:
        assert table_size(min_x, max_x, 200, 100) == expected

    def test_table_tracks_forward_cdf(self) -> None:
        table = build_inverse_cdf_table(lambda x: expon.cdf(x), 1e-6, 40.0)

        p = np.array([0.5, 0.9, 0.99])
        np.testing.assert_allclose(table.inverse_cdf(p), expon.ppf(p), rtol=5e-3)

    def test_table_size_follows_configuration(self) -> None:
        configure(min_bins=50)

        table = build_inverse_cdf_table(lambda x: norm.cdf(x), -3.0, 3.0)

        assert len(table) == 50

    @pytest.mark.parametrize("min_x, max_x", [(1.0, 1.0), (2.0, 1.0), (0.0, np.inf)])
    def test_invalid_range_raises(self, min_x, max_x) -> None:
        with pytest.raises(ValueError):
            build_inverse_cdf_table(lambda x: norm.cdf(x), min_x, max_x)
