"""
Composite distributions built from other distributions.

This package provides finite mixtures (optionally zero-inflated), competing
risks models of the minimum or maximum of components, and the
dependency-aware probability algebra they share.
"""

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from .competing_risks import CompetingRisks, CompetingRisksSamplingStrategy, CumulativeIncidence
from .mixture import EMResult, Mixture, MixtureSamplingStrategy
from .probability import (
    joint_probability,
    perfectly_negative_correlation,
    rectangle_probability,
    union_probability,
)

__all__ = [
    "CompetingRisks",
    "CompetingRisksSamplingStrategy",
    "CumulativeIncidence",
    "EMResult",
    "Mixture",
    "MixtureSamplingStrategy",
    "joint_probability",
    "perfectly_negative_correlation",
    "rectangle_probability",
    "union_probability",
]
