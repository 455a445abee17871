"""
Shared aliases and enumerations
===============================

Names used across PySATL Risk for numeric values, family identifiers and the
switches that select estimation methods, dependency models and interpolation
transforms.
"""

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from collections.abc import Callable
from enum import Enum, StrEnum, auto
from typing import Any, TypeAlias

import numpy as np
from numpy.typing import NDArray

NumPyNumber = np.floating[Any] | np.integer[Any]

Number = NumPyNumber | int | float

NumericArray = NDArray[NumPyNumber]
"""Array of losses, probabilities or parameter values."""

BoolArray = NDArray[np.bool_]

ScalarOrArray: TypeAlias = float | NumericArray
"""Argument and result type of the vectorised distribution functions."""

ScalarFunc = Callable[[float], float]

ParametrizationName: TypeAlias = str


class ContinuousSupportShape1D(Enum):
    """
    Kind of interval a loss distribution lives on.

    ``RAY_LEFT`` is bounded above only (``-inf .. b``) and ``RAY_RIGHT`` is
    bounded below only (``a .. inf``). A degenerate interval with both ends
    equal and closed is a ``SINGLE_POINT``.
    """

    REAL_LINE = auto()
    RAY_LEFT = auto()
    RAY_RIGHT = auto()
    BOUNDED_INTERVAL = auto()
    EMPTY = auto()
    SINGLE_POINT = auto()


class CharacteristicName(StrEnum):
    """
    Functions a parametric family can supply in closed form.

    Notes
    -----
    ``PDF``, ``CDF`` and ``PPF`` are mandatory for built-in families. The
    log-domain characteristics are optional: when a family does not provide
    them, the distribution falls back to the logarithm of the linear value.
    Moments that are not provided are integrated numerically.
    """

    PDF = "pdf"
    LOG_PDF = "log_pdf"
    CDF = "cdf"
    LOG_CDF = "log_cdf"
    LOG_CCDF = "log_ccdf"
    PPF = "ppf"
    MEAN = "mean"
    VAR = "var"
    SKEW = "skewness"
    KURT = "kurtosis"


class FamilyName(StrEnum):
    NORMAL = "Normal"
    EXPONENTIAL = "Exponential"
    CONTINUOUS_UNIFORM = "ContinuousUniform"
    GEV = "GeneralizedExtremeValue"
    MIXTURE = "Mixture"
    COMPETING_RISKS = "CompetingRisks"


class EstimationMethod(StrEnum):
    """
    Parameter estimation methods.

    Attributes
    ----------
    MOMENTS : str
        Method of (product) moments.
    LINEAR_MOMENTS : str
        Method of L-moments.
    MAXIMUM_LIKELIHOOD : str
        Maximum likelihood estimation.
    """

    MOMENTS = "moments"
    LINEAR_MOMENTS = "linear_moments"
    MAXIMUM_LIKELIHOOD = "maximum_likelihood"


class DependencyType(StrEnum):
    """
    Dependency structure between the components of a competing-risks model.

    Attributes
    ----------
    INDEPENDENT : str
        Components are mutually independent.
    PERFECTLY_POSITIVE : str
        Components are comonotone (perfect positive dependence).
    PERFECTLY_NEGATIVE : str
        Components are as negatively correlated as a Gaussian copula allows.
    CORRELATION_MATRIX : str
        Components are coupled through a Gaussian copula with a given
        correlation matrix.
    """

    INDEPENDENT = "independent"
    PERFECTLY_POSITIVE = "perfectly_positive"
    PERFECTLY_NEGATIVE = "perfectly_negative"
    CORRELATION_MATRIX = "correlation_matrix"


class Transform(StrEnum):
    """
    Coordinate transforms applied before linear interpolation.

    Attributes
    ----------
    NONE : str
        Identity.
    LOGARITHMIC : str
        Base-10 logarithm (positive values only).
    NORMAL_Z : str
        Standard normal quantile (probabilities only).
    """

    NONE = "none"
    LOGARITHMIC = "logarithmic"
    NORMAL_Z = "normal_z"


__all__ = [
    "BoolArray",
    "CharacteristicName",
    "ContinuousSupportShape1D",
    "DependencyType",
    "EstimationMethod",
    "FamilyName",
    "Number",
    "NumericArray",
    "NumPyNumber",
    "ParametrizationName",
    "ScalarFunc",
    "ScalarOrArray",
    "Transform",
]
