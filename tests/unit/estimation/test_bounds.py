__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math

import numpy as np
import pytest

from pysatl_risk.errors import DimensionMismatchError
from pysatl_risk.estimation.bounds import ParameterBounds, decade_bound


@pytest.mark.parametrize(
    "value, extra, expected",
    [
        (37.0, 1, 1000.0),
        (-37.0, 1, 1000.0),
        (100.0, 1, 1000.0),
        (0.02, 1, 1.0),
        (0.0, 1, 10.0),
        (math.inf, 2, 100.0),
        (5.0, 0, 10.0),
    ],
)
def test_decade_bound(value, extra, expected):
    assert decade_bound(value, extra) == pytest.approx(expected)


class TestParameterBounds:
    def test_vectors_are_flat_float_arrays(self):
        bounds = ParameterBounds([[1, 2]], [0, 0], [3, 3])

        assert bounds.initial.shape == (2,)
        assert bounds.initial.dtype == np.float64
        assert len(bounds) == 2
        assert bounds.is_consistent

    def test_length_mismatch_raises(self):
        with pytest.raises(DimensionMismatchError):
            ParameterBounds([1.0, 2.0], [0.0], [3.0, 3.0])

    def test_repaired_swaps_limits(self):
        bounds = ParameterBounds([1.0], [5.0], [0.0]).repaired()

        np.testing.assert_array_equal(bounds.lower, [0.0])
        np.testing.assert_array_equal(bounds.upper, [5.0])
        np.testing.assert_array_equal(bounds.initial, [1.0])

    def test_repaired_resets_initial_to_midpoint(self):
        bounds = ParameterBounds([7.0, -1.0], [0.0, 0.0], [4.0, 2.0]).repaired()

        np.testing.assert_array_equal(bounds.initial, [2.0, 1.0])
        assert bounds.is_consistent

    def test_repaired_keeps_initial_on_a_limit(self):
        bounds = ParameterBounds([1.0, 0.0], [0.0, 0.0], [1.0, 2.0]).repaired()

        np.testing.assert_array_equal(bounds.initial, [1.0, 0.0])

    def test_repaired_with_infinite_limit_uses_clipped_zero(self):
        bounds = ParameterBounds([np.nan, np.nan], [-np.inf, 1.0], [np.inf, np.inf]).repaired()

        np.testing.assert_array_equal(bounds.initial, [0.0, 1.0])

    def test_repaired_collapses_equal_limits(self):
        bounds = ParameterBounds([9.0], [2.0], [2.0]).repaired()

        np.testing.assert_array_equal(bounds.initial, [2.0])

    def test_build_repairs(self):
        bounds = ParameterBounds.build(initial=[10.0], lower=[0.0], upper=[1.0])

        assert bounds.is_consistent
        np.testing.assert_array_equal(bounds.initial, [0.5])

    def test_concatenate(self):
        first = ParameterBounds([1.0], [0.0], [2.0])
        second = ParameterBounds([5.0, 6.0], [4.0, 5.0], [6.5, 7.0])

        joined = ParameterBounds.concatenate([first, second])

        np.testing.assert_array_equal(joined.initial, [1.0, 5.0, 6.0])
        np.testing.assert_array_equal(joined.lower, [0.0, 4.0, 5.0])
        np.testing.assert_array_equal(joined.upper, [2.0, 6.5, 7.0])
        assert len(ParameterBounds.concatenate([])) == 0
