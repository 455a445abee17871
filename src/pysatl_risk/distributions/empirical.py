"""
Empirical Inverse CDF
=====================

Monotone piecewise-linear quantile tables, used when a distribution has
neither a closed-form nor a reliable iterative quantile function (mixtures
whose root solve failed, competing risks with several components).

- :class:`EmpiricalInverseCDF`: two strictly increasing sequences ``(x, p)``
  interpolated linearly in optionally transformed coordinates.
- :func:`build_inverse_cdf_table`: tabulate a forward CDF over a grid whose
  size follows the decade span of the x-range.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import logging
import math
from typing import TYPE_CHECKING

import numpy as np
from scipy import special

from pysatl_risk.config import get_config
from pysatl_risk.distributions.distribution import as_output
from pysatl_risk.errors import DimensionMismatchError
from pysatl_risk.types import Transform

if TYPE_CHECKING:
    from collections.abc import Callable

    import numpy.typing as npt

    from pysatl_risk.types import NumericArray, ScalarOrArray

logger = logging.getLogger(__name__)


def _forward(values: NumericArray, transform: Transform) -> NumericArray:
    with np.errstate(divide="ignore", invalid="ignore"):
        match transform:
            case Transform.LOGARITHMIC:
                return np.log10(values)
            case Transform.NORMAL_Z:
                return special.ndtri(values)
            case _:
                return values


def _backward(values: NumericArray, transform: Transform) -> NumericArray:
    match transform:
        case Transform.LOGARITHMIC:
            return np.power(10.0, values)
        case Transform.NORMAL_Z:
            return special.ndtr(values)
        case _:
            return values


def _strictly_increasing(x: NumericArray, p: NumericArray) -> tuple[NumericArray, NumericArray]:
    """Keep the points that increase in both coordinates over the last kept point."""
    kept_x = [float(x[0])]
    kept_p = [float(p[0])]
    for xi, pi in zip(x[1:], p[1:], strict=True):
        if xi > kept_x[-1] and pi > kept_p[-1]:
            kept_x.append(float(xi))
            kept_p.append(float(pi))
    return np.asarray(kept_x), np.asarray(kept_p)


class EmpiricalInverseCDF:
    """
    Piecewise-linear CDF / inverse CDF table.

    Parameters
    ----------
    x : array_like
        Abscissae, in the order they were evaluated.
    p : array_like
        Cumulative probabilities at ``x``.
    x_transform : Transform, default Transform.NONE
        Transform of ``x`` applied before interpolation.
    probability_transform : Transform, default Transform.NORMAL_Z
        Transform of ``p`` applied before interpolation.

    Raises
    ------
    DimensionMismatchError
        If ``x`` and ``p`` differ in length.
    ValueError
        If no point is finite in transformed coordinates.

    Notes
    -----
    Points that are not strictly increasing in both ``x`` and ``p`` relative
    to the last retained point are dropped, as are points whose transformed
    coordinates are not finite (``p`` equal to 0 or 1 under ``NORMAL_Z``,
    non-positive ``x`` under ``LOGARITHMIC``).
    """

    __slots__ = ("_x", "_p", "_tx", "_tp", "x_transform", "probability_transform")

    def __init__(
        self,
        x: npt.ArrayLike,
        p: npt.ArrayLike,
        x_transform: Transform = Transform.NONE,
        probability_transform: Transform = Transform.NORMAL_Z,
    ) -> None:
        x_arr = np.asarray(x, dtype=np.float64).ravel()
        p_arr = np.asarray(p, dtype=np.float64).ravel()
        if x_arr.size != p_arr.size:
            raise DimensionMismatchError("p", x_arr.size, p_arr.size)

        self.x_transform = Transform(x_transform)
        self.probability_transform = Transform(probability_transform)

        finite = np.isfinite(_forward(x_arr, self.x_transform)) & np.isfinite(
            _forward(p_arr, self.probability_transform)
        )
        if not np.any(finite):
            raise ValueError("Empirical table has no finite points.")

        self._x, self._p = _strictly_increasing(x_arr[finite], p_arr[finite])
        self._tx = _forward(self._x, self.x_transform)
        self._tp = _forward(self._p, self.probability_transform)

    def __len__(self) -> int:
        return int(self._x.size)

    @property
    def x(self) -> NumericArray:
        """Stored abscissae (strictly increasing)."""
        return self._x.copy()

    @property
    def p(self) -> NumericArray:
        """Stored probabilities (strictly increasing)."""
        return self._p.copy()

    def inverse_cdf(self, p: ScalarOrArray) -> ScalarOrArray:
        """
        Interpolate the quantile at probability ``p``.

        Queries beyond the table are clamped to its first/last abscissa.
        """
        tp = _forward(np.asarray(p, dtype=np.float64), self.probability_transform)
        tx = np.interp(tp, self._tp, self._tx)
        return as_output(_backward(tx, self.x_transform), p)

    def cdf(self, x: ScalarOrArray) -> ScalarOrArray:
        """Interpolate the cumulative probability at ``x``."""
        arr = np.asarray(x, dtype=np.float64)
        tx = _forward(arr, self.x_transform)
        tp = np.interp(tx, self._tx, self._tp)
        out = _backward(tp, self.probability_transform)
        out = np.where(arr < self._x[0], 0.0, np.where(arr > self._x[-1], 1.0, out))
        return as_output(out, x)


def table_size(min_x: float, max_x: float, min_bins: int, bins_per_decade: int) -> int:
    """
    Number of bins for a table spanning ``[min_x, max_x]``.

    The range is shifted to start at 1 when it touches zero or below, and the
    count grows with the number of decades it spans: ``max(min_bins,
    bins_per_decade * decades) - 1``.
    """
    shift = abs(min_x) + 1.0 if min_x <= 0.0 else 0.0
    decades = math.floor(math.log10(max_x + shift) - math.log10(min_x + shift))
    return max(min_bins, bins_per_decade * decades) - 1


def build_inverse_cdf_table(
    cdf: Callable[[NumericArray], NumericArray],
    min_x: float,
    max_x: float,
    x_transform: Transform = Transform.NONE,
    probability_transform: Transform = Transform.NORMAL_Z,
) -> EmpiricalInverseCDF:
    """
    Tabulate a forward CDF.

    Parameters
    ----------
    cdf : Callable[[NumericArray], NumericArray]
        Vectorized forward CDF.
    min_x, max_x : float
        Finite x-range, usually the extreme component quantiles at the
        configured tail probability.
    x_transform, probability_transform : Transform
        Interpolation transforms of the resulting table.

    Returns
    -------
    EmpiricalInverseCDF
        Strictly monotone table.

    Raises
    ------
    ValueError
        If the range is not finite or is empty.
    """
    if not (math.isfinite(min_x) and math.isfinite(max_x)) or max_x <= min_x:
        raise ValueError(f"Invalid table range [{min_x}, {max_x}].")

    cfg = get_config()
    bins = table_size(min_x, max_x, cfg.min_bins, cfg.bins_per_decade)
    if Transform(x_transform) is Transform.LOGARITHMIC and min_x > 0.0:
        edges = np.geomspace(min_x, max_x, bins + 1)
    else:
        edges = np.linspace(min_x, max_x, bins + 1)

    probabilities = np.asarray(cdf(edges), dtype=np.float64)
    table = EmpiricalInverseCDF(edges, probabilities, x_transform, probability_transform)
    logger.debug(
        "Built inverse CDF table on [%g, %g]: %d of %d points retained",
        min_x,
        max_x,
        len(table),
        edges.size,
    )
    return table


__all__ = [
    "EmpiricalInverseCDF",
    "build_inverse_cdf_table",
    "table_size",
]
