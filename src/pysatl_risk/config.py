"""
Numerical Configuration
=======================

Tolerances, iteration caps and grid sizes shared by the estimation and
quantile-inversion machinery.

The active configuration is a frozen :class:`NumericalConfig` returned by
:func:`get_config`. Use :func:`configure` to replace individual values and
:func:`reset_config` to restore the defaults. Components read the
configuration when they are called, not when they are imported.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any


@dataclass(frozen=True, slots=True)
class NumericalConfig:
    """
    Numerical settings.

    Parameters
    ----------
    tail_probability : float, default 1e-16
        Extreme probability used to bound the x-range of inverse-CDF tables
        and cumulative incidence grids (``p`` and ``1 - p``).
    min_bins : int, default 200
        Minimum number of points of an inverse-CDF table.
    bins_per_decade : int, default 100
        Table points per decade of the (shifted) x-range.
    cif_bins : int, default 200
        Number of bins of cumulative incidence curves.
    root_x_tolerance : float, default 1e-12
        Absolute x tolerance of bracketed root solves.
    root_max_iterations : int, default 100
        Iteration cap of bracketed root solves.
    bracket_max_expansions : int, default 60
        Maximum number of bracket expansions before a root solve gives up.
    em_tolerance : float, default 1e-8
        Relative log-likelihood change that stops Expectation-Maximization.
    em_max_iterations : int, default 1000
        Iteration cap of Expectation-Maximization.
    optimizer_max_iterations : int, default 5000
        Iteration cap of the bounded Nelder-Mead optimizer.
    optimizer_xatol : float, default 1e-8
        Absolute parameter tolerance of the optimizer.
    optimizer_fatol : float, default 1e-10
        Absolute objective tolerance of the optimizer.
    moment_bins : int, default 200
        Strata used by numerical moment integration.
    derivative_step : float, default 1e-5
        Step of five-point numerical derivatives.
    """

    tail_probability: float = 1e-16
    min_bins: int = 200
    bins_per_decade: int = 100
    cif_bins: int = 200
    root_x_tolerance: float = 1e-12
    root_max_iterations: int = 100
    bracket_max_expansions: int = 60
    em_tolerance: float = 1e-8
    em_max_iterations: int = 1000
    optimizer_max_iterations: int = 5000
    optimizer_xatol: float = 1e-8
    optimizer_fatol: float = 1e-10
    moment_bins: int = 200
    derivative_step: float = 1e-5


_overrides: dict[str, Any] = {}


@lru_cache(maxsize=1)
def get_config() -> NumericalConfig:
    """
    Return the active numerical configuration.

    Returns
    -------
    NumericalConfig
        Defaults updated with the values passed to :func:`configure`.
    """
    return replace(NumericalConfig(), **_overrides)


def configure(**overrides: Any) -> NumericalConfig:
    """
    Override configuration values.

    Parameters
    ----------
    **overrides
        Field names of :class:`NumericalConfig` and their new values.

    Returns
    -------
    NumericalConfig
        The new active configuration.

    Raises
    ------
    TypeError
        If an unknown field name is given.
    """
    unknown = set(overrides) - set(NumericalConfig.__dataclass_fields__)
    if unknown:
        raise TypeError(f"Unknown configuration fields: {sorted(unknown)}")
    _overrides.update(overrides)
    get_config.cache_clear()
    return get_config()


def reset_config() -> None:
    """Restore the default configuration."""
    _overrides.clear()
    get_config.cache_clear()


__all__ = [
    "NumericalConfig",
    "get_config",
    "configure",
    "reset_config",
]
