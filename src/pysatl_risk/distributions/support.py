"""
Range of values a loss distribution can take.

A support is an interval of the real line whose ends may be infinite. Infinite
ends are limits, never members, so ``inf`` lies outside even the real line.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from dataclasses import dataclass
from math import inf, isinf
from typing import cast, overload

import numpy as np

from pysatl_risk.types import BoolArray, ContinuousSupportShape1D, Number, NumericArray


@dataclass(frozen=True, slots=True)
class ContinuousSupport:
    """
    Interval ``left .. right`` with per-end closure.

    Parameters
    ----------
    left, right : float
        Ends of the interval, infinite by default.
    left_closed, right_closed : bool, default=True
        Whether each finite end belongs to the support. Infinite ends are
        always open.
    """

    left: float = -inf
    right: float = inf
    left_closed: bool = True
    right_closed: bool = True

    def __post_init__(self) -> None:
        if isinf(self.left):
            object.__setattr__(self, "left_closed", False)
        if isinf(self.right):
            object.__setattr__(self, "right_closed", False)

    @overload
    def contains(self, x: Number) -> bool: ...
    @overload
    def contains(self, x: NumericArray) -> BoolArray: ...

    def contains(self, x: Number | NumericArray) -> bool | BoolArray:
        """Elementwise membership test; scalars give a plain ``bool``."""
        values = np.asarray(x, dtype=np.float64)
        above = values >= self.left if self.left_closed else values > self.left
        below = values <= self.right if self.right_closed else values < self.right
        inside = np.logical_and(above, below)
        if inside.ndim == 0:
            return bool(inside)
        return cast(BoolArray, inside)

    def __contains__(self, x: object) -> bool:
        return bool(self.contains(cast(Number, x)))

    @property
    def is_empty(self) -> bool:
        if self.left == self.right:
            return not (self.left_closed and self.right_closed)
        return self.left > self.right

    @property
    def shape(self) -> ContinuousSupportShape1D:
        """Topological kind of the interval."""
        if self.is_empty:
            return ContinuousSupportShape1D.EMPTY
        if self.left == self.right:
            return ContinuousSupportShape1D.SINGLE_POINT
        match isinf(self.left), isinf(self.right):
            case True, True:
                return ContinuousSupportShape1D.REAL_LINE
            case True, False:
                return ContinuousSupportShape1D.RAY_LEFT
            case False, True:
                return ContinuousSupportShape1D.RAY_RIGHT
            case _:
                return ContinuousSupportShape1D.BOUNDED_INTERVAL


__all__ = [
    "ContinuousSupport",
]
