"""
Distribution building blocks

The :class:`Distribution` protocol every loss model implements, with the
numerical machinery behind it: inverse-CDF tables in :mod:`.empirical`, root
solving and differentiation in :mod:`.fitters`, loss samples and sampling
strategies, and supports.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"
from .distribution import WORST_LOG_LIKELIHOOD, Distribution
from .empirical import EmpiricalInverseCDF, build_inverse_cdf_table
from .fitters import RootSolveResult, RootSolveStatus, numerical_derivative, solve_quantile
from .sampling import ArraySample, Sample
from .strategies import InverseTransformSamplingStrategy, SamplingStrategy
from .support import ContinuousSupport

__all__ = [
    # distribution
    "Distribution",
    "WORST_LOG_LIKELIHOOD",
    # empirical tables
    "EmpiricalInverseCDF",
    "build_inverse_cdf_table",
    # fitters
    "RootSolveResult",
    "RootSolveStatus",
    "solve_quantile",
    "numerical_derivative",
    # sampling
    "Sample",
    "ArraySample",
    # strategies
    "SamplingStrategy",
    "InverseTransformSamplingStrategy",
    # support
    "ContinuousSupport",
]
