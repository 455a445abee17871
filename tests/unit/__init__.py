"""
PySATL Risk unit tests
======================

Distributions, parametric families, estimation and composite models.
"""

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"
