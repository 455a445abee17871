"""
Loss distributions drawn from a parametric family.

A :class:`ParametricFamilyDistribution` pairs a family name with base
parameter values and answers every distribution query through the family's
closed-form characteristics, falling back to numerical routines where the
family is silent. Instances are mutable through
:meth:`ParametricFamilyDistribution.set_parameters` only; every other state
(validity, cached moments) is derived from the parameter vector.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"


from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from pysatl_risk.config import get_config
from pysatl_risk.distributions.distribution import (
    Distribution,
    as_output,
    central_moments,
    evaluate_quantiles,
)
from pysatl_risk.errors import EstimationNotImplementedError, InvalidParameterError
from pysatl_risk.families.registry import ParametricFamilyRegister
from pysatl_risk.types import CharacteristicName, EstimationMethod

if TYPE_CHECKING:
    from typing import Any

    import numpy.typing as npt

    from pysatl_risk.distributions.strategies import SamplingStrategy
    from pysatl_risk.distributions.support import ContinuousSupport
    from pysatl_risk.estimation.bounds import ParameterBounds
    from pysatl_risk.families.parametric_family import ParametricFamily
    from pysatl_risk.families.parametrizations import Parametrization
    from pysatl_risk.types import NumericArray, ScalarOrArray


def _check(parametrization: Parametrization) -> InvalidParameterError | None:
    try:
        parametrization.validate()
    except InvalidParameterError as error:
        return error
    return None


@dataclass(slots=True)
class ParametricFamilyDistribution(Distribution):
    """
    One member of a registered family.

    Invalid parameters are accepted and remembered; any evaluation then
    raises the stored :class:`InvalidParameterError`.

    Parameters
    ----------
    family_name : str
        Register key of the family.
    parametrization : Parametrization
        Parameter values in the base parametrization of the family.
    """

    family_name: str
    parametrization: Parametrization
    _validation_error: InvalidParameterError | None = field(init=False, repr=False)
    _moments: tuple[float, float, float, float] | None = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._validation_error = _check(self.parametrization)
        self._moments = None

    @property
    def name(self) -> str:
        return self.family_name

    @property
    def family(self) -> ParametricFamily:
        """Family looked up in the shared register."""
        return ParametricFamilyRegister.get(self.family_name)

    @property
    def parameters(self) -> NumericArray:
        return self.parametrization.to_vector()

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return self.parametrization.parameter_names()

    @property
    def parameters_valid(self) -> bool:
        return self._validation_error is None

    def set_parameters(self, values: npt.ArrayLike) -> None:
        """
        Replace the parameter vector.

        The vector is validated and the outcome cached; an invalid vector is
        stored and reported at the next evaluation. Cached moments are
        discarded.
        """
        self.parametrization = self.family.base.from_vector(values)
        self._validation_error = _check(self.parametrization)
        self._moments = None

    def validate(self, values: npt.ArrayLike) -> InvalidParameterError | None:
        return _check(self.family.base.from_vector(values))

    def ensure_valid(self) -> None:
        if self._validation_error is not None:
            raise self._validation_error

    def _evaluate(self, name: CharacteristicName, x: ScalarOrArray) -> NumericArray:
        self.ensure_valid()
        func = self.family.characteristic(name)
        if func is None:
            raise RuntimeError(f"Family {self.family_name} provides no '{name}'.")
        return np.asarray(func(self.parametrization, np.asarray(x, dtype=np.float64)))

    def _evaluate_optional(self, name: CharacteristicName, x: ScalarOrArray) -> NumericArray | None:
        if self.family.characteristic(name) is None:
            return None
        return self._evaluate(name, x)

    def pdf(self, x: ScalarOrArray) -> ScalarOrArray:
        return as_output(self._evaluate(CharacteristicName.PDF, x), x)

    def log_pdf(self, x: ScalarOrArray) -> ScalarOrArray:
        values = self._evaluate_optional(CharacteristicName.LOG_PDF, x)
        if values is None:
            with np.errstate(divide="ignore"):
                values = np.log(self._evaluate(CharacteristicName.PDF, x))
        return as_output(values, x)

    def cdf(self, x: ScalarOrArray) -> ScalarOrArray:
        return as_output(self._evaluate(CharacteristicName.CDF, x), x)

    def log_cdf(self, x: ScalarOrArray) -> ScalarOrArray:
        values = self._evaluate_optional(CharacteristicName.LOG_CDF, x)
        if values is None:
            with np.errstate(divide="ignore"):
                values = np.log(self._evaluate(CharacteristicName.CDF, x))
        return as_output(values, x)

    def log_ccdf(self, x: ScalarOrArray) -> ScalarOrArray:
        values = self._evaluate_optional(CharacteristicName.LOG_CCDF, x)
        if values is None:
            with np.errstate(divide="ignore"):
                values = np.log1p(-self._evaluate(CharacteristicName.CDF, x))
        return as_output(values, x)

    def ccdf(self, x: ScalarOrArray) -> ScalarOrArray:
        return as_output(np.exp(np.asarray(self.log_ccdf(x), dtype=np.float64)), x)

    def inverse_cdf(self, p: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        return evaluate_quantiles(
            p,
            self.minimum,
            self.maximum,
            lambda q: self._evaluate(CharacteristicName.PPF, q),
        )

    @property
    def support(self) -> ContinuousSupport:
        """Get the support of this distribution."""
        return self.family.support_resolver(self.parametrization)

    @property
    def minimum(self) -> float:
        return float(self.support.left)

    @property
    def maximum(self) -> float:
        return float(self.support.right)

    @property
    def moments(self) -> tuple[float, float, float, float]:
        """
        Mean, standard deviation, skewness and raw kurtosis.

        Analytical characteristics are used where the family provides them;
        the rest are integrated numerically. The result is cached until the
        parameters change.
        """
        self.ensure_valid()
        if self._moments is None:
            analytical = [
                self.family.characteristic(name)
                for name in (
                    CharacteristicName.MEAN,
                    CharacteristicName.VAR,
                    CharacteristicName.SKEW,
                    CharacteristicName.KURT,
                )
            ]
            if any(func is None for func in analytical):
                values = list(central_moments(self, get_config().moment_bins))
            else:
                values = [0.0, 0.0, 0.0, 0.0]
            for i, func in enumerate(analytical):
                if func is not None:
                    value = float(func(self.parametrization, None))
                    values[i] = float(np.sqrt(value)) if i == 1 else value
            self._moments = (values[0], values[1], values[2], values[3])
        return self._moments

    @property
    def sampling_strategy(self) -> SamplingStrategy:
        """Get the sampling strategy for this distribution."""
        return self.family.sampling_strategy

    @property
    def estimation_methods(self) -> frozenset[EstimationMethod]:
        return self.family.estimation_methods

    def _moment_inversion(self, method: EstimationMethod, moments: NumericArray) -> NumericArray:
        inversion = self.family.distr_estimators.get(method)
        if inversion is None:
            raise EstimationNotImplementedError(method, self.family_name)
        return inversion(np.asarray(moments, dtype=np.float64)).to_vector()

    def parameters_from_moments(self, moments: NumericArray) -> NumericArray:
        """Parameters matching product moments ``(mean, sd, skew, kurtosis)``."""
        return self._moment_inversion(EstimationMethod.MOMENTS, moments)

    def parameters_from_linear_moments(self, moments: NumericArray) -> NumericArray:
        """Parameters matching L-moments ``(L1, L2, T3, T4)``."""
        return self._moment_inversion(EstimationMethod.LINEAR_MOMENTS, moments)

    def parameter_bounds(self, sample: NumericArray) -> ParameterBounds:
        """Data-driven initial values and limits for maximum likelihood."""
        if self.family.parameter_bounds is None:
            raise EstimationNotImplementedError(
                EstimationMethod.MAXIMUM_LIKELIHOOD, self.family_name
            )
        return self.family.parameter_bounds(np.asarray(sample, dtype=np.float64))

    def parameter_covariance(
        self, sample_size: int, method: EstimationMethod | str
    ) -> NumericArray:
        """
        Asymptotic covariance matrix of the parameter estimates.

        Raises
        ------
        EstimationNotImplementedError
            If no covariance formula is known for ``method``.
        """
        method = EstimationMethod(method)
        covariance = self.family.distr_covariances.get(method)
        if covariance is None:
            raise EstimationNotImplementedError(method, self.family_name)
        self.ensure_valid()
        return np.asarray(covariance(self.parametrization, int(sample_size)), dtype=np.float64)

    def quantile_gradient(self, probability: float) -> NumericArray:
        """
        Gradient of the quantile at ``probability`` with respect to the parameters.

        Raises
        ------
        EstimationNotImplementedError
            If the family provides no quantile gradient.
        """
        if self.family.quantile_gradient is None:
            raise EstimationNotImplementedError("quantile gradient", self.family_name)
        self.ensure_valid()
        return np.asarray(
            self.family.quantile_gradient(self.parametrization, float(probability)),
            dtype=np.float64,
        )

    def __deepcopy__(self, memo: dict[int, Any]) -> ParametricFamilyDistribution:
        clone = ParametricFamilyDistribution(self.family_name, self.parametrization)
        clone._moments = self._moments
        return clone
