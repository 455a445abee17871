"""
Sample Statistics
=================

Product moments and L-moments of a univariate sample, the inputs of the
closed-form estimators.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from typing import TYPE_CHECKING

import numpy as np
from scipy import stats

from pysatl_risk.distributions.sampling import as_sample_array
from pysatl_risk.errors import InvalidSampleError

if TYPE_CHECKING:
    import numpy.typing as npt

    from pysatl_risk.distributions.sampling import Sample
    from pysatl_risk.types import NumericArray


def _finite(values: NumericArray, what: str) -> NumericArray:
    if not np.all(np.isfinite(values)):
        raise InvalidSampleError(f"Sample {what} are not finite: {values}")
    return values


def product_moments(sample: Sample | npt.ArrayLike) -> NumericArray:
    """
    Sample mean, standard deviation, skewness and kurtosis.

    The standard deviation uses ``n - 1`` degrees of freedom; skewness and
    (raw) kurtosis are the bias-corrected estimators.

    Parameters
    ----------
    sample : Sample or array_like
        Univariate sample.

    Returns
    -------
    NumericArray
        ``[mean, sd, skew, kurtosis]``.

    Raises
    ------
    InvalidSampleError
        If the sample has fewer than four points or a moment is not finite.
    """
    x = as_sample_array(sample)
    if x.size < 4:
        raise InvalidSampleError("Product moments need at least four observations.")
    with np.errstate(divide="ignore", invalid="ignore"):
        moments = np.array(
            [
                np.mean(x),
                np.std(x, ddof=1),
                stats.skew(x, bias=False),
                stats.kurtosis(x, fisher=False, bias=False),
            ],
            dtype=np.float64,
        )
    return _finite(moments, "product moments")


def linear_moments(sample: Sample | npt.ArrayLike) -> NumericArray:
    """
    Sample L-moments from unbiased probability-weighted moments.

    Parameters
    ----------
    sample : Sample or array_like
        Univariate sample.

    Returns
    -------
    NumericArray
        ``[L1, L2, T3, T4]``: L-location, L-scale, L-skewness and L-kurtosis.

    Raises
    ------
    InvalidSampleError
        If the sample has fewer than four points or an L-moment is not finite
        (for instance a constant sample).
    """
    x = np.sort(as_sample_array(sample))
    n = x.size
    if n < 4:
        raise InvalidSampleError("L-moments need at least four observations.")
    i = np.arange(n, dtype=np.float64)
    b0 = np.mean(x)
    b1 = np.sum(i / (n - 1) * x) / n
    b2 = np.sum(i * (i - 1) / ((n - 1) * (n - 2)) * x) / n
    b3 = np.sum(i * (i - 1) * (i - 2) / ((n - 1) * (n - 2) * (n - 3)) * x) / n

    l1 = b0
    l2 = 2.0 * b1 - b0
    l3 = 6.0 * b2 - 6.0 * b1 + b0
    l4 = 20.0 * b3 - 30.0 * b2 + 12.0 * b1 - b0
    with np.errstate(divide="ignore", invalid="ignore"):
        moments = np.array([l1, l2, l3 / l2, l4 / l2], dtype=np.float64)
    return _finite(moments, "L-moments")


__all__ = [
    "product_moments",
    "linear_moments",
]
