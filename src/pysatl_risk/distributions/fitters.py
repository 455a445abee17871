"""
Numerical Fitters
=================

Root finding and differentiation helpers used when a characteristic has no
closed form:

- :func:`solve_quantile`: invert a monotone CDF at one probability with
  bracket expansion followed by Brent's method. Failures are reported through
  :class:`RootSolveResult`, never raised.
- :func:`numerical_derivative`: five-point central derivative, used for
  ``cdf -> pdf``.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from dataclasses import dataclass
from enum import StrEnum
from math import inf, isfinite
from typing import TYPE_CHECKING

import numpy as np
from scipy import optimize as _sp_optimize

if TYPE_CHECKING:
    from collections.abc import Callable

    from pysatl_risk.types import NumericArray, ScalarFunc


class RootSolveStatus(StrEnum):
    CONVERGED = "converged"
    NOT_BRACKETED = "not_bracketed"
    MAX_ITERATIONS = "max_iterations"


@dataclass(frozen=True, slots=True)
class RootSolveResult:
    """
    Outcome of a bracketed root solve.

    Parameters
    ----------
    root : float
        Best root estimate, NaN when no bracket was found.
    status : RootSolveStatus
        Whether the solve converged, and why not otherwise.
    iterations : int
        Iterations spent by the solver (zero if it did not start).
    """

    root: float
    status: RootSolveStatus
    iterations: int = 0

    @property
    def converged(self) -> bool:
        return self.status is RootSolveStatus.CONVERGED


def _expand_bracket(
    cdf: ScalarFunc,
    q: float,
    lower: float,
    upper: float,
    *,
    minimum: float,
    maximum: float,
    expand_factor: float,
    max_expand: int,
) -> tuple[float, float] | None:
    """
    Grow ``[lower, upper]`` until ``cdf(lower) <= q <= cdf(upper)``.

    The bracket never leaves ``[minimum, maximum]``. Returns ``None`` if no
    valid bracket is found within ``max_expand`` expansions.
    """
    L, R = (lower, upper) if lower <= upper else (upper, lower)
    step = max(R - L, 1e-8 * max(abs(L), abs(R)), 1.0)
    FL = float(cdf(L))
    FR = float(cdf(R))

    for _ in range(max_expand):
        if not (isfinite(FL) and isfinite(FR)):
            return None
        grow_left = FL > q
        grow_right = FR < q
        if not (grow_left or grow_right):
            return L, R

        step *= expand_factor
        if grow_left:
            if L <= minimum:
                return None
            L = max(L - step, minimum)
            FL = float(cdf(L))
        if grow_right:
            if R >= maximum:
                return None
            R = min(R + step, maximum)
            FR = float(cdf(R))

    return None


def solve_quantile(
    cdf: ScalarFunc,
    q: float,
    lower: float,
    upper: float,
    *,
    minimum: float = -inf,
    maximum: float = inf,
    x_tol: float = 1e-12,
    max_iter: int = 100,
    expand_factor: float = 2.0,
    max_expand: int = 60,
) -> RootSolveResult:
    """
    Solve ``cdf(x) = q`` by bracket expansion and Brent's method.

    Parameters
    ----------
    cdf : Callable[[float], float]
        Monotone non-decreasing CDF.
    q : float
        Target probability in ``(0, 1)``.
    lower, upper : float
        Initial bracket guess; expanded geometrically if it does not contain
        the root.
    minimum, maximum : float
        Support bounds the bracket never crosses.
    x_tol : float, default 1e-12
        Absolute tolerance in ``x``.
    max_iter : int, default 100
        Iteration cap of Brent's method.
    expand_factor : float, default 2.0
        Multiplicative factor for bracket growth.
    max_expand : int, default 60
        Maximum number of expansions.

    Returns
    -------
    RootSolveResult
        Root and status; the caller decides on a fallback when the status is
        not ``CONVERGED``.
    """
    if not (isfinite(lower) and isfinite(upper)):
        return RootSolveResult(float("nan"), RootSolveStatus.NOT_BRACKETED)

    bracket = _expand_bracket(
        cdf,
        q,
        lower,
        upper,
        minimum=minimum,
        maximum=maximum,
        expand_factor=expand_factor,
        max_expand=max_expand,
    )
    if bracket is None:
        return RootSolveResult(float("nan"), RootSolveStatus.NOT_BRACKETED)

    L, R = bracket
    if L == R:
        return RootSolveResult(L, RootSolveStatus.CONVERGED)

    try:
        root, info = _sp_optimize.brentq(
            lambda x: float(cdf(x)) - q,
            L,
            R,
            xtol=x_tol,
            maxiter=max_iter,
            full_output=True,
            disp=False,
        )
    except ValueError:
        return RootSolveResult(float("nan"), RootSolveStatus.NOT_BRACKETED)

    status = RootSolveStatus.CONVERGED if info.converged else RootSolveStatus.MAX_ITERATIONS
    return RootSolveResult(float(root), status, int(info.iterations))


def numerical_derivative(
    f: Callable[[NumericArray], NumericArray], x: NumericArray, h: float = 1e-5
) -> NumericArray:
    """
    5-point central numerical derivative used for ``cdf -> pdf``.

    Parameters
    ----------
    f : Callable[[NumericArray], NumericArray]
        Vectorized function.
    x : NumericArray
        Evaluation points.
    h : float, default 1e-5
        Step for the stencil, scaled by ``max(1, |x|)``.

    Returns
    -------
    NumericArray
        Approximated derivative ``f'(x)``; NaN at non-finite points.
    """
    x = np.asarray(x, dtype=np.float64)
    step = h * np.maximum(1.0, np.abs(np.where(np.isfinite(x), x, 0.0)))
    f1 = np.asarray(f(x + step), dtype=np.float64)
    f_1 = np.asarray(f(x - step), dtype=np.float64)
    f2 = np.asarray(f(x + 2 * step), dtype=np.float64)
    f_2 = np.asarray(f(x - 2 * step), dtype=np.float64)
    d = (-f2 + 8 * f1 - 8 * f_1 + f_2) / (12.0 * step)
    return np.where(np.isfinite(x), d, np.nan)


__all__ = [
    "RootSolveStatus",
    "RootSolveResult",
    "solve_quantile",
    "numerical_derivative",
]
