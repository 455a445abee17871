"""
Dependency-Aware Probability Algebra
====================================

Joint (AND) and union (OR) probabilities of events whose marginal
probabilities are known, under a :class:`~pysatl_risk.types.DependencyType`:

======================  ==========================  ==================
Dependency              Joint probability           Union
======================  ==========================  ==================
independent             ``prod(p)``                 ``1 - prod(1 - p)``
perfectly positive      ``min(p)``                  ``max(p)``
perfectly negative      Gaussian copula             via complement
correlation matrix      Gaussian copula             via complement
======================  ==========================  ==================

The Gaussian copula maps each marginal probability to ``z = Phi^{-1}(p)`` and
evaluates a multivariate normal rectangle probability with
:data:`scipy.stats.multivariate_normal`. Standard-normal bounds are clipped to
the quantiles of the configured tail probability.
:func:`conditional_normal` gives the law of the other scores given one of
them, which copula densities are built from.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math
from typing import TYPE_CHECKING

import numpy as np
from scipy import special, stats

from pysatl_risk.config import get_config
from pysatl_risk.errors import DimensionMismatchError
from pysatl_risk.estimation.bounds import MACHINE_EPSILON
from pysatl_risk.types import DependencyType

if TYPE_CHECKING:
    import numpy.typing as npt

    from pysatl_risk.types import NumericArray


def perfectly_negative_correlation(dimension: int) -> NumericArray:
    """
    Most negative equicorrelation matrix that is still positive definite.

    Off-diagonal entries are ``-1 / (K - 1) + sqrt(eps)``.
    """
    if dimension < 2:
        return np.ones((dimension, dimension))
    rho = -1.0 / (dimension - 1) + math.sqrt(MACHINE_EPSILON)
    matrix = np.full((dimension, dimension), rho)
    np.fill_diagonal(matrix, 1.0)
    return matrix


def check_correlation_matrix(matrix: npt.ArrayLike, dimension: int) -> NumericArray:
    """
    Validate the shape of a correlation matrix.

    Raises
    ------
    DimensionMismatchError
        If the matrix is not ``dimension x dimension``.
    """
    arr = np.asarray(matrix, dtype=np.float64)
    if arr.shape != (dimension, dimension):
        raise DimensionMismatchError("correlation_matrix", (dimension, dimension), arr.shape)
    return arr


def standard_normal_bounds(probabilities: npt.ArrayLike) -> NumericArray:
    """Standard-normal quantiles of ``probabilities``, clipped to the tails."""
    tail = get_config().tail_probability
    p = np.clip(np.asarray(probabilities, dtype=np.float64), tail, 1.0 - tail)
    return np.asarray(special.ndtri(p), dtype=np.float64)


def rectangle_probability(
    lower: npt.ArrayLike, upper: npt.ArrayLike, correlation: NumericArray
) -> float:
    """
    Probability that a standard multivariate normal lies in ``[lower, upper]``.

    Parameters
    ----------
    lower, upper : array_like
        Rectangle bounds in standard-normal coordinates.
    correlation : NumericArray
        Correlation matrix of the normal vector.

    Returns
    -------
    float
        Rectangle probability; NaN when it cannot be evaluated.
    """
    lo = np.asarray(lower, dtype=np.float64)
    hi = np.asarray(upper, dtype=np.float64)
    if np.any(hi <= lo):
        return 0.0
    if lo.size == 1:
        return float(special.ndtr(hi[0]) - special.ndtr(lo[0]))
    mvn = stats.multivariate_normal(mean=np.zeros(lo.size), cov=correlation, allow_singular=True)
    return float(mvn.cdf(hi, lower_limit=lo))


def conditional_normal(
    correlation: NumericArray, index: int
) -> tuple[NumericArray, NumericArray, NumericArray]:
    """
    Law of the other coordinates of a standard normal vector given one of them.

    Given ``Z[index] = z`` the remaining coordinates are normal with mean
    ``slopes * z``, standard deviations ``scales`` and the returned
    correlation matrix.

    Parameters
    ----------
    correlation : NumericArray
        ``K x K`` correlation matrix of the vector.
    index : int
        Conditioning coordinate.

    Returns
    -------
    slopes, scales, correlation : NumericArray
        Regression slopes on ``Z[index]``, conditional standard deviations
        (floored at ``sqrt(eps)``) and conditional correlation.
    """
    others = np.delete(np.arange(correlation.shape[0]), index)
    slopes = correlation[others, index]
    covariance = correlation[np.ix_(others, others)] - np.outer(slopes, slopes)
    scales = np.sqrt(np.maximum(np.diag(covariance), MACHINE_EPSILON))
    return slopes, scales, covariance / np.outer(scales, scales)


def _copula_matrix(
    dependency: DependencyType, dimension: int, correlation_matrix: NumericArray | None
) -> NumericArray:
    if dependency is DependencyType.PERFECTLY_NEGATIVE:
        return perfectly_negative_correlation(dimension)
    if correlation_matrix is None:
        raise ValueError("A correlation matrix is required for CORRELATION_MATRIX dependency.")
    return check_correlation_matrix(correlation_matrix, dimension)


def joint_probability(
    probabilities: npt.ArrayLike,
    dependency: DependencyType | str,
    correlation_matrix: NumericArray | None = None,
) -> float:
    """
    Probability that every event occurs.

    Parameters
    ----------
    probabilities : array_like
        Marginal probabilities of the events.
    dependency : DependencyType or str
        Dependency between the events.
    correlation_matrix : NumericArray, optional
        Gaussian copula correlation, required for ``CORRELATION_MATRIX``.

    Returns
    -------
    float
        Joint probability in ``[0, 1]``.
    """
    p = np.asarray(probabilities, dtype=np.float64).ravel()
    match DependencyType(dependency):
        case DependencyType.INDEPENDENT:
            return float(np.prod(p))
        case DependencyType.PERFECTLY_POSITIVE:
            return float(np.min(p))
        case dependency:
            if np.any(p <= 0.0):
                return 0.0
            matrix = _copula_matrix(dependency, p.size, correlation_matrix)
            lower = np.full(p.size, -np.inf)
            return rectangle_probability(lower, standard_normal_bounds(p), matrix)


def union_probability(
    probabilities: npt.ArrayLike,
    dependency: DependencyType | str,
    correlation_matrix: NumericArray | None = None,
) -> float:
    """
    Probability that at least one event occurs.

    For the copula dependencies this is ``1 - P(no event occurs)``.
    """
    p = np.asarray(probabilities, dtype=np.float64).ravel()
    match DependencyType(dependency):
        case DependencyType.INDEPENDENT:
            return float(1.0 - np.prod(1.0 - p))
        case DependencyType.PERFECTLY_POSITIVE:
            return float(np.max(p))
        case dependency:
            if np.any(p >= 1.0):
                return 1.0
            matrix = _copula_matrix(dependency, p.size, correlation_matrix)
            upper = np.full(p.size, np.inf)
            return 1.0 - rectangle_probability(standard_normal_bounds(p), upper, matrix)


__all__ = [
    "perfectly_negative_correlation",
    "check_correlation_matrix",
    "standard_normal_bounds",
    "rectangle_probability",
    "conditional_normal",
    "joint_probability",
    "union_probability",
]
