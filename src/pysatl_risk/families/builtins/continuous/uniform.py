"""
Continuous uniform loss family.

Losses spread evenly over ``[lower_bound, upper_bound]``. Useful as a flat
prior-style severity and as an easy closed-form check for the numerical
machinery.
"""

from __future__ import annotations

__author__ = "Fedor Myznikov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math
from typing import TYPE_CHECKING, cast

import numpy as np

from pysatl_risk.distributions.support import ContinuousSupport
from pysatl_risk.estimation.bounds import ParameterBounds
from pysatl_risk.families.parametric_family import ParametricFamily
from pysatl_risk.families.parametrizations import (
    Parametrization,
    constraint,
    parametrization,
)
from pysatl_risk.families.registry import ParametricFamilyRegister
from pysatl_risk.types import (
    CharacteristicName,
    EstimationMethod,
    FamilyName,
    NumericArray,
)

if TYPE_CHECKING:
    from typing import Any

_SQRT3 = math.sqrt(3.0)


def configure_uniform_family() -> None:
    """Declare the uniform family and add it to the shared register."""
    if ParametricFamilyRegister.contains(FamilyName.CONTINUOUS_UNIFORM):
        return

    def _ends(parameters: Parametrization) -> tuple[float, float]:
        standard = cast(_Standard, parameters)
        return standard.lower_bound, standard.upper_bound

    def pdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        """``1 / (b - a)`` on the closed interval, zero elsewhere."""
        a, b = _ends(parameters)
        return np.where((a <= x) & (x <= b), 1.0 / (b - a), 0.0)

    def log_pdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        a, b = _ends(parameters)
        return np.where((a <= x) & (x <= b), -math.log(b - a), -np.inf)

    def cdf(parameters: Parametrization, x: NumericArray) -> NumericArray:
        a, b = _ends(parameters)
        return np.clip((x - a) / (b - a), 0.0, 1.0)

    def ppf(parameters: Parametrization, p: NumericArray) -> NumericArray:
        a, b = _ends(parameters)
        return cast(NumericArray, a + p * (b - a))

    def mean_func(parameters: Parametrization, _: Any) -> float:
        a, b = _ends(parameters)
        return 0.5 * (a + b)

    def var_func(parameters: Parametrization, _: Any) -> float:
        a, b = _ends(parameters)
        return (b - a) ** 2 / 12.0

    def skew_func(_1: Parametrization, _2: Any) -> float:
        return 0.0

    def kurt_func(_1: Parametrization, _2: Any) -> float:
        """Non-excess kurtosis, ``9 / 5``."""
        return 1.8

    def _support(parameters: Parametrization) -> ContinuousSupport:
        a, b = _ends(parameters)
        return ContinuousSupport(left=a, right=b)

    def _centred(centre: float, half_width: float) -> Parametrization:
        return _Standard(lower_bound=centre - half_width, upper_bound=centre + half_width)

    def from_moments(moments: NumericArray) -> Parametrization:
        """The half width is ``sqrt(3)`` standard deviations."""
        return _centred(float(moments[0]), _SQRT3 * float(moments[1]))

    def from_linear_moments(moments: NumericArray) -> Parametrization:
        """The half width is three times ``L2``."""
        return _centred(float(moments[0]), 3.0 * float(moments[1]))

    def parameter_bounds(sample: NumericArray) -> ParameterBounds:
        """
        Likelihood search box around the observed range.

        ``a`` may move at most one sample range below the smallest loss and
        ``b`` at most one range above the largest; neither may cut into the
        data.
        """
        low, high = float(np.min(sample)), float(np.max(sample))
        spread = high - low or 1.0
        return ParameterBounds.build(
            initial=[low, high],
            lower=[low - spread, high],
            upper=[low, high + spread],
        )

    def quantile_gradient(parameters: Parametrization, p: float) -> NumericArray:
        return np.array([1.0 - p, p])

    Uniform = ParametricFamily(
        name=FamilyName.CONTINUOUS_UNIFORM,
        distr_parametrizations=["standard", "meanWidth", "minRange"],
        distr_characteristics={
            CharacteristicName.PDF: pdf,
            CharacteristicName.LOG_PDF: log_pdf,
            CharacteristicName.CDF: cdf,
            CharacteristicName.PPF: ppf,
            CharacteristicName.MEAN: mean_func,
            CharacteristicName.VAR: var_func,
            CharacteristicName.SKEW: skew_func,
            CharacteristicName.KURT: kurt_func,
        },
        support_by_parametrization=_support,
        distr_estimators={
            EstimationMethod.MOMENTS: from_moments,
            EstimationMethod.LINEAR_MOMENTS: from_linear_moments,
        },
        parameter_bounds=parameter_bounds,
        quantile_gradient=quantile_gradient,
    )
    Uniform.__doc__ = __doc__

    @parametrization(family=Uniform, name="standard")
    class _Standard(Parametrization):
        """Interval ends ``lower_bound < upper_bound``."""

        lower_bound: float
        upper_bound: float

        @constraint(description="upper_bound > lower_bound")
        def check_ordered(self) -> bool:
            return self.upper_bound > self.lower_bound

    @parametrization(family=Uniform, name="meanWidth")
    class _MeanWidth(Parametrization):
        """Centre of the interval and its full width."""

        mean: float
        width: float

        @constraint(description="width > 0")
        def check_width(self) -> bool:
            return self.width > 0

        def transform_to_base_parametrization(self) -> Parametrization:
            return _centred(self.mean, 0.5 * self.width)

    @parametrization(family=Uniform, name="minRange")
    class _MinRange(Parametrization):
        """Smallest possible loss and the length of the range."""

        minimum: float
        range_val: float

        @constraint(description="range_val > 0")
        def check_range(self) -> bool:
            return self.range_val > 0

        def transform_to_base_parametrization(self) -> Parametrization:
            return _Standard(lower_bound=self.minimum, upper_bound=self.minimum + self.range_val)

    ParametricFamilyRegister.register(Uniform)
