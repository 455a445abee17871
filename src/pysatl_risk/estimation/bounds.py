"""
Parameter bounds for constrained maximum likelihood.

A :class:`ParameterBounds` triple holds initial values together with lower and
upper limits for every free parameter. Families derive it from sample
statistics, usually widening the limits to the next decade so that the search
region is generous but finite.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from pysatl_risk.errors import DimensionMismatchError

if TYPE_CHECKING:
    from collections.abc import Iterable

    import numpy.typing as npt

    from pysatl_risk.types import NumericArray


MACHINE_EPSILON = float(np.finfo(np.float64).eps)


def decade_bound(value: float, extra_decades: int = 1) -> float:
    """
    Round ``|value|`` up to a power of ten, then widen by ``extra_decades``.

    ``decade_bound(37.0) == 1000.0``; zero maps to ``10 ** extra_decades``.
    """
    if value == 0.0 or not math.isfinite(value):
        return 10.0**extra_decades
    return 10.0 ** (math.ceil(math.log10(abs(value))) + extra_decades)


@dataclass(frozen=True, slots=True)
class ParameterBounds:
    """
    Initial, lower and upper values of the parameters being optimized.

    Parameters
    ----------
    initial : numpy.ndarray
        Starting point.
    lower : numpy.ndarray
        Lower limits.
    upper : numpy.ndarray
        Upper limits.

    Raises
    ------
    DimensionMismatchError
        If the three vectors differ in length.
    """

    initial: NumericArray
    lower: NumericArray
    upper: NumericArray

    def __post_init__(self) -> None:
        for name in ("initial", "lower", "upper"):
            object.__setattr__(
                self, name, np.asarray(getattr(self, name), dtype=np.float64).ravel()
            )
        n = self.initial.size
        for name in ("lower", "upper"):
            size = getattr(self, name).size
            if size != n:
                raise DimensionMismatchError(name, n, size)

    @classmethod
    def build(
        cls,
        initial: npt.ArrayLike,
        lower: npt.ArrayLike,
        upper: npt.ArrayLike,
    ) -> ParameterBounds:
        """Build bounds and repair them in one step."""
        return cls(np.asarray(initial), np.asarray(lower), np.asarray(upper)).repaired()

    @classmethod
    def concatenate(cls, parts: Iterable[ParameterBounds]) -> ParameterBounds:
        """Stack the bounds of several parameter blocks end to end."""
        parts = list(parts)
        if not parts:
            empty = np.empty(0)
            return cls(empty, empty, empty)
        return cls(
            np.concatenate([b.initial for b in parts]),
            np.concatenate([b.lower for b in parts]),
            np.concatenate([b.upper for b in parts]),
        )

    def __len__(self) -> int:
        return int(self.initial.size)

    @property
    def is_consistent(self) -> bool:
        """Whether ``lower <= initial <= upper`` holds component-wise."""
        return bool(np.all(self.lower <= self.initial) and np.all(self.initial <= self.upper))

    def repaired(self) -> ParameterBounds:
        """
        Return bounds satisfying ``lower <= initial <= upper``.

        Swapped limits are reordered. An initial value on or outside its
        limits is reset to their midpoint, or to zero (clipped into the
        limits) when a limit is infinite.
        """
        lower = np.minimum(self.lower, self.upper)
        upper = np.maximum(self.lower, self.upper)
        initial = self.initial.copy()

        outside = (initial < lower) | (initial > upper) | ~np.isfinite(initial)
        finite = np.isfinite(lower) & np.isfinite(upper)
        midpoint = np.where(finite, 0.5 * (lower + upper), np.clip(0.0, lower, upper))
        initial = np.where(outside & (lower < upper), midpoint, initial)
        initial = np.where(lower == upper, lower, initial)
        return ParameterBounds(initial, lower, upper)


__all__ = [
    "MACHINE_EPSILON",
    "ParameterBounds",
    "decade_bound",
]
