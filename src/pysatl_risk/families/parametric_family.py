"""
Parametric loss families.

A :class:`ParametricFamily` bundles everything known about one family of
severity distributions: how it may be parametrized, its closed-form
characteristics, its support, and the estimation hooks (moment and L-moment
inversions, likelihood search bounds, asymptotic covariances and quantile
gradients). Calling a family produces a
:class:`~pysatl_risk.families.distribution.ParametricFamilyDistribution`.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov, Fedor Myznikov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from typing import TYPE_CHECKING

from pysatl_risk.distributions.strategies import InverseTransformSamplingStrategy
from pysatl_risk.families.distribution import ParametricFamilyDistribution
from pysatl_risk.types import EstimationMethod

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any, TypeAlias

    from pysatl_risk.distributions.strategies import SamplingStrategy
    from pysatl_risk.distributions.support import ContinuousSupport
    from pysatl_risk.estimation.bounds import ParameterBounds
    from pysatl_risk.families.parametrizations import Parametrization
    from pysatl_risk.types import CharacteristicName, NumericArray, ParametrizationName

    ParametrizedFunction: TypeAlias = Callable[[Parametrization, Any], Any]
    SupportResolver: TypeAlias = Callable[[Parametrization], ContinuousSupport]
    MomentInversion: TypeAlias = Callable[[NumericArray], Parametrization]
    BoundsResolver: TypeAlias = Callable[[NumericArray], ParameterBounds]
    CovarianceFunction: TypeAlias = Callable[[Parametrization, int], NumericArray]
    GradientFunction: TypeAlias = Callable[[Parametrization, float], NumericArray]


class ParametricFamily:
    """
    One family of loss distributions.

    Characteristics, support and estimation hooks are all written against the
    base parametrization, the first entry of ``distr_parametrizations``.
    Parameters given in any other parametrization are converted to the base
    one when a distribution is built.

    Parameters
    ----------
    name : str
        Family name, normally a :class:`~pysatl_risk.types.FamilyName`.
    distr_parametrizations : list[ParametrizationName]
        Names of the parametrizations; the first is the base.
    distr_characteristics : dict[CharacteristicName, Callable]
        Vectorised ``(parameters, x) -> values`` functions.
    support_by_parametrization : Callable
        ``parameters -> ContinuousSupport``.
    sampling_strategy : SamplingStrategy, optional
        Defaults to inverse-transform sampling.
    distr_estimators : dict[EstimationMethod, Callable], optional
        Moment inversions. ``MOMENTS`` receives ``(mean, sd, skew, kurtosis)``
        and ``LINEAR_MOMENTS`` receives ``(L1, L2, T3, T4)``.
    parameter_bounds : Callable, optional
        ``sample -> ParameterBounds`` for the likelihood search. Maximum
        likelihood is offered only when this is given.
    distr_covariances : dict[EstimationMethod, Callable], optional
        ``(parameters, n) -> matrix``, asymptotic covariance per method.
    quantile_gradient : Callable, optional
        ``(parameters, p) -> vector``, derivative of the quantile with respect
        to the base parameters.
    """

    def __init__(
        self,
        name: str,
        distr_parametrizations: list[ParametrizationName],
        distr_characteristics: dict[CharacteristicName, ParametrizedFunction],
        support_by_parametrization: SupportResolver,
        sampling_strategy: SamplingStrategy | None = None,
        distr_estimators: dict[EstimationMethod, MomentInversion] | None = None,
        parameter_bounds: BoundsResolver | None = None,
        distr_covariances: dict[EstimationMethod, CovarianceFunction] | None = None,
        quantile_gradient: GradientFunction | None = None,
    ):
        if not distr_parametrizations:
            raise ValueError(f"Family '{name}' needs at least one parametrization.")
        self._name = name
        self.parametrization_names = list(distr_parametrizations)
        self.base_parametrization_name = self.parametrization_names[0]
        self._parametrizations: dict[ParametrizationName, type[Parametrization]] = {}
        self._support_resolver = support_by_parametrization

        self.distr_characteristics = dict(distr_characteristics)
        self.sampling_strategy = sampling_strategy or InverseTransformSamplingStrategy()
        self.distr_estimators = dict(distr_estimators or {})
        self.parameter_bounds = parameter_bounds
        self.distr_covariances = dict(distr_covariances or {})
        self.quantile_gradient = quantile_gradient

    def __repr__(self) -> str:
        return f"ParametricFamily({self._name!r}, parametrizations={self.parametrization_names})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def parametrizations(self) -> dict[ParametrizationName, type[Parametrization]]:
        """Declared parametrization classes keyed by name."""
        return self._parametrizations

    @property
    def base(self) -> type[Parametrization]:
        """
        Class of the base parametrization.

        Raises
        ------
        ValueError
            If the base parametrization has not been declared yet.
        """
        base = self._parametrizations.get(self.base_parametrization_name)
        if base is None:
            raise ValueError(
                f"Family '{self._name}' has no '{self.base_parametrization_name}' "
                "parametrization declared."
            )
        return base

    @property
    def support_resolver(self) -> SupportResolver:
        return self._support_resolver

    @property
    def estimation_methods(self) -> frozenset[EstimationMethod]:
        """Moment inversions on offer, plus likelihood when bounds are known."""
        likelihood = {EstimationMethod.MAXIMUM_LIKELIHOOD} if self.parameter_bounds else set()
        return frozenset(self.distr_estimators.keys() | likelihood)

    def characteristic(self, name: CharacteristicName) -> ParametrizedFunction | None:
        return self.distr_characteristics.get(name)

    def register_parametrization(
        self,
        name: ParametrizationName,
        parametrization_class: type[Parametrization],
    ) -> None:
        """
        Attach a parametrization class under ``name``.

        Raises
        ------
        ValueError
            If ``name`` is taken.
        """
        if name in self._parametrizations:
            raise ValueError(f"Parametrization '{name}' is already registered.")
        self._parametrizations[name] = parametrization_class

    def get_parametrization(self, name: ParametrizationName) -> type[Parametrization]:
        return self._parametrizations[name]

    def to_base(self, parameters: Parametrization) -> Parametrization:
        """Same parameters expressed in the base parametrization."""
        if parameters.name == self.base_parametrization_name:
            return parameters
        return parameters.transform_to_base_parametrization()

    def distribution(
        self,
        parametrization_name: str | None = None,
        **parameters_values: Any,
    ) -> ParametricFamilyDistribution:
        """
        Build a distribution of this family.

        Parameters
        ----------
        parametrization_name : str, optional
            Parametrization the values are given in; the base one by default.
        **parameters_values
            Parameter values by name.

        Raises
        ------
        KeyError
            Unknown parametrization name.
        InvalidParameterError
            Values in a non-base parametrization break its constraints, so
            they cannot be converted. Invalid base values are accepted here
            and reported on first evaluation.
        """
        parametrization_class = (
            self.base
            if parametrization_name is None
            else self._parametrizations[parametrization_name]
        )
        parameters = parametrization_class(**parameters_values)
        if parameters.name != self.base_parametrization_name:
            parameters.validate()
        return ParametricFamilyDistribution(self._name, self.to_base(parameters))

    __call__ = distribution
