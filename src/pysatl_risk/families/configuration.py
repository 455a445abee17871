"""
Built-in loss families
======================

Populates the shared :class:`ParametricFamilyRegister` with the families PySATL
Risk ships with:

=================================  ==========================================
``FamilyName.NORMAL``              Gaussian severity, mean and ``sigma`` scale
``FamilyName.EXPONENTIAL``         shifted exponential (location and scale)
``FamilyName.CONTINUOUS_UNIFORM``  flat density on ``[lower_bound, upper_bound]``
``FamilyName.GEV``                 generalized extreme value (Hosking's kappa)
=================================  ==========================================

Each family carries its alternative parametrizations, the closed-form moment
and L-moment inversions, and the parameter bounds used by maximum likelihood.
"""

from __future__ import annotations

__author__ = "Fedor Myznikov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from functools import lru_cache

from pysatl_risk.families.builtins import (
    configure_exponential_family,
    configure_gev_family,
    configure_normal_family,
    configure_uniform_family,
)
from pysatl_risk.families.registry import ParametricFamilyRegister

_BUILTIN_CONFIGURATORS = (
    configure_normal_family,
    configure_exponential_family,
    configure_uniform_family,
    configure_gev_family,
)


@lru_cache(maxsize=1)
def configure_families_register() -> ParametricFamilyRegister:
    """
    Register every built-in family and return the shared register.

    Repeated calls are free: the result is cached until
    :func:`reset_families_register` is called.
    """
    for configure in _BUILTIN_CONFIGURATORS:
        configure()
    return ParametricFamilyRegister()


def reset_families_register() -> None:
    """Empty the shared register and drop the cached configuration."""
    configure_families_register.cache_clear()
    ParametricFamilyRegister._reset()
