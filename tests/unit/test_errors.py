__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import pytest

from pysatl_risk.errors import (
    DimensionMismatchError,
    EstimationNotImplementedError,
    InvalidParameterError,
    InvalidSampleError,
    PySATLRiskError,
)
from pysatl_risk.types import EstimationMethod


@pytest.mark.parametrize(
    "error, builtin",
    [
        (InvalidParameterError("sigma", -1.0, "sigma > 0"), ValueError),
        (EstimationNotImplementedError("moments", "Mixture"), NotImplementedError),
        (InvalidSampleError("empty"), ValueError),
        (DimensionMismatchError("weights", 2, 3), ValueError),
    ],
)
def test_errors_share_a_base_and_a_builtin(error, builtin):
    assert isinstance(error, PySATLRiskError)
    assert isinstance(error, builtin)


def test_invalid_parameter_message():
    error = InvalidParameterError("sigma", -1.0, "sigma > 0")

    assert (error.parameter, error.value, error.constraint) == ("sigma", -1.0, "sigma > 0")
    assert str(error) == 'Invalid parameter "sigma" = -1.0: constraint "sigma > 0" does not hold'


def test_estimation_not_implemented_message():
    error = EstimationNotImplementedError(EstimationMethod.LINEAR_MOMENTS, "Mixture")

    assert error.method == "linear_moments"
    assert "linear_moments" in str(error)
    assert "Mixture" in str(error)


def test_dimension_mismatch_message():
    error = DimensionMismatchError("correlation_matrix", (3, 3), (2, 2))

    assert str(error) == "'correlation_matrix' has dimension (2, 2), expected (3, 3)."
