"""
Competing Risks
===============

Distribution of the minimum (series system) or maximum (parallel system) of
several component random variables, under one of the dependency structures of
:class:`~pysatl_risk.types.DependencyType`.

- Independent components have closed-form log-domain densities.
- Copula-coupled components evaluate the CDF through the probability algebra
  of :mod:`pysatl_risk.composite.probability`; their density sums each
  marginal density weighted by a conditional normal rectangle probability.
- Comonotone components differentiate the CDF numerically.
- Quantiles come from an empirical inverse-CDF table.
- :meth:`CompetingRisks.cumulative_incidence_functions` splits the combined
  CDF into one curve per cause.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import logging
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from scipy import special

from pysatl_risk.composite.probability import (
    check_correlation_matrix,
    conditional_normal,
    joint_probability,
    perfectly_negative_correlation,
    rectangle_probability,
    standard_normal_bounds,
    union_probability,
)
from pysatl_risk.config import get_config
from pysatl_risk.distributions.distribution import (
    Distribution,
    as_output,
    central_moments,
    evaluate_quantiles,
)
from pysatl_risk.distributions.empirical import build_inverse_cdf_table
from pysatl_risk.distributions.fitters import numerical_derivative
from pysatl_risk.distributions.sampling import ArraySample
from pysatl_risk.distributions.strategies import SamplingStrategy
from pysatl_risk.errors import DimensionMismatchError, EstimationNotImplementedError
from pysatl_risk.estimation.bounds import ParameterBounds
from pysatl_risk.estimation.protocols import SupportsMaximumLikelihood
from pysatl_risk.types import DependencyType, EstimationMethod, FamilyName, Transform

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Any

    import numpy.typing as npt

    from pysatl_risk.distributions.empirical import EmpiricalInverseCDF
    from pysatl_risk.errors import InvalidParameterError
    from pysatl_risk.types import NumericArray, ScalarOrArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CumulativeIncidence:
    """
    Cumulative incidence curve of one cause.

    Parameters
    ----------
    x : NumericArray
        Bin edges, starting with the lower end of the grid.
    probabilities : NumericArray
        Probability that this cause is the decisive one by ``x``.
    """

    x: NumericArray
    probabilities: NumericArray


class CompetingRisksSamplingStrategy(SamplingStrategy):
    """
    Sample every component from one seeded generator and combine row-wise.

    Independent components get their own uniforms, comonotone ones share a
    single uniform, and copula-coupled ones transform a correlated normal
    draw with the standard normal CDF.
    """

    def sample(
        self, n: int, distr: Distribution, seed: int | None = None, **options: Any
    ) -> ArraySample:
        if not isinstance(distr, CompetingRisks):
            raise TypeError(
                "CompetingRisksSamplingStrategy samples CompetingRisks distributions only."
            )
        rng = np.random.default_rng(seed)
        k = len(distr.components)
        match distr.dependency:
            case DependencyType.INDEPENDENT:
                u = rng.random((k, n))
            case DependencyType.PERFECTLY_POSITIVE:
                u = np.broadcast_to(rng.random(n), (k, n))
            case _:
                z = rng.multivariate_normal(np.zeros(k), distr.correlation_matrix, size=n)
                u = special.ndtr(z.T)

        draws = np.stack(
            [
                np.asarray(c.inverse_cdf(u[i]), dtype=np.float64)
                for i, c in enumerate(distr.components)
            ]
        )
        combine = np.min if distr.minimum_of_random_variables else np.max
        return ArraySample(combine(draws, axis=0).reshape(n, 1))


class CompetingRisks(Distribution):
    """
    Minimum or maximum of component random variables.

    Parameters
    ----------
    distributions : Sequence[Distribution]
        Components. They are deep-copied, so the model owns them.
    minimum_of_random_variables : bool, default True
        Model the minimum (first failure) when true, the maximum otherwise.
    dependency : DependencyType or str, default DependencyType.INDEPENDENT
        Dependency between the components.
    correlation_matrix : array_like, optional
        Gaussian copula correlation, required for ``CORRELATION_MATRIX``.
    x_transform : Transform or str, default Transform.NONE
        Abscissa transform of the inverse-CDF table. ``LOGARITHMIC`` also
        spaces cumulative incidence bins geometrically on a positive range.
    probability_transform : Transform or str, default Transform.NORMAL_Z
        Probability transform of the inverse-CDF table.

    Raises
    ------
    DimensionMismatchError
        If the correlation matrix is not ``K x K``.
    ValueError
        If no component is given, or a correlation matrix is required but
        missing.
    """

    def __init__(
        self,
        distributions: Sequence[Distribution],
        minimum_of_random_variables: bool = True,
        dependency: DependencyType | str = DependencyType.INDEPENDENT,
        correlation_matrix: npt.ArrayLike | None = None,
        x_transform: Transform | str = Transform.NONE,
        probability_transform: Transform | str = Transform.NORMAL_Z,
    ) -> None:
        if len(distributions) == 0:
            raise ValueError("CompetingRisks needs at least one component.")
        self._components = [d.clone() for d in distributions]
        self.minimum_of_random_variables = bool(minimum_of_random_variables)
        self.dependency = DependencyType(dependency)

        k = len(self._components)
        matrix = None
        if correlation_matrix is not None:
            matrix = check_correlation_matrix(correlation_matrix, k)
        if self.dependency is DependencyType.PERFECTLY_NEGATIVE:
            matrix = perfectly_negative_correlation(k)
        elif self.dependency is DependencyType.CORRELATION_MATRIX and matrix is None:
            raise ValueError("A correlation matrix is required for CORRELATION_MATRIX dependency.")
        self._correlation_matrix = matrix
        self._moments: tuple[float, float, float, float] | None = None
        self._table: EmpiricalInverseCDF | None = None
        self._x_transform = Transform(x_transform)
        self._probability_transform = Transform(probability_transform)

    @property
    def name(self) -> str:
        return FamilyName.COMPETING_RISKS

    @property
    def components(self) -> tuple[Distribution, ...]:
        return tuple(self._components)

    @property
    def x_transform(self) -> Transform:
        return self._x_transform

    @x_transform.setter
    def x_transform(self, value: Transform | str) -> None:
        self._x_transform = Transform(value)
        self._table = None

    @property
    def probability_transform(self) -> Transform:
        return self._probability_transform

    @probability_transform.setter
    def probability_transform(self, value: Transform | str) -> None:
        self._probability_transform = Transform(value)
        self._table = None

    @property
    def correlation_matrix(self) -> NumericArray | None:
        """Copula correlation, ``None`` for independent and comonotone components."""
        if self._correlation_matrix is None:
            return None
        return self._correlation_matrix.copy()

    @property
    def parameters(self) -> NumericArray:
        return np.concatenate([c.parameters for c in self._components])

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(
            f"{c.name}_{k}.{p}"
            for k, c in enumerate(self._components, start=1)
            for p in c.parameter_names
        )

    @property
    def parameters_valid(self) -> bool:
        return all(c.parameters_valid for c in self._components)

    def _split(self, values: npt.ArrayLike) -> list[NumericArray]:
        arr = np.asarray(values, dtype=np.float64).ravel()
        if arr.size != self.number_of_parameters:
            raise DimensionMismatchError("parameters", self.number_of_parameters, arr.size)
        offsets = np.cumsum([0] + [c.number_of_parameters for c in self._components])
        return [arr[lo:hi] for lo, hi in zip(offsets[:-1], offsets[1:], strict=True)]

    def set_parameters(self, values: npt.ArrayLike) -> None:
        """Split the vector over the components; cached moments and table are discarded."""
        for component, block in zip(self._components, self._split(values), strict=True):
            component.set_parameters(block)
        self._moments = None
        self._table = None

    def validate(self, values: npt.ArrayLike) -> InvalidParameterError | None:
        for component, block in zip(self._components, self._split(values), strict=True):
            error = component.validate(block)
            if error is not None:
                return error
        return None

    def ensure_valid(self) -> None:
        for component in self._components:
            component.ensure_valid()

    @property
    def _independent(self) -> bool:
        return self.dependency is DependencyType.INDEPENDENT

    @property
    def _copula(self) -> bool:
        return self.dependency in (
            DependencyType.PERFECTLY_NEGATIVE,
            DependencyType.CORRELATION_MATRIX,
        )

    def _stack(self, method: str, arr: NumericArray) -> NumericArray:
        return np.stack(
            [np.asarray(getattr(c, method)(arr), dtype=np.float64) for c in self._components]
        )

    def _combined_cdf(self, arr: NumericArray) -> NumericArray:
        marginals = self._stack("cdf", arr)
        if self._independent:
            if self.minimum_of_random_variables:
                return -np.expm1(np.sum(self._stack("log_ccdf", arr), axis=0))
            return np.prod(marginals, axis=0)
        if self.dependency is DependencyType.PERFECTLY_POSITIVE:
            if self.minimum_of_random_variables:
                return np.max(marginals, axis=0)
            return np.min(marginals, axis=0)

        algebra = union_probability if self.minimum_of_random_variables else joint_probability
        columns = marginals.reshape(len(self._components), -1).T
        values = [algebra(col, self.dependency, self._correlation_matrix) for col in columns]
        return np.clip(np.asarray(values), 0.0, 1.0).reshape(arr.shape)

    def cdf(self, x: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        return as_output(self._combined_cdf(np.asarray(x, dtype=np.float64)), x)

    def log_cdf(self, x: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        arr = np.asarray(x, dtype=np.float64)
        if self._independent and not self.minimum_of_random_variables:
            return as_output(np.sum(self._stack("log_cdf", arr), axis=0), x)
        with np.errstate(divide="ignore"):
            return as_output(np.log(self._combined_cdf(arr)), x)

    def log_ccdf(self, x: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        arr = np.asarray(x, dtype=np.float64)
        if self._independent and self.minimum_of_random_variables:
            return as_output(np.sum(self._stack("log_ccdf", arr), axis=0), x)
        with np.errstate(divide="ignore"):
            return as_output(np.log1p(-self._combined_cdf(arr)), x)

    def _independent_log_pdf(self, arr: NumericArray) -> NumericArray:
        log_f = self._stack("log_pdf", arr)
        log_tail = self._stack(
            "log_ccdf" if self.minimum_of_random_variables else "log_cdf", arr
        )
        with np.errstate(invalid="ignore", divide="ignore"):
            # log hazard (minimum) or log reversed hazard (maximum)
            log_rate = special.logsumexp(log_f - log_tail, axis=0)
            values = log_rate + np.sum(log_tail, axis=0)
        return np.where(np.isnan(values), -np.inf, values)

    def _copula_pdf(self, arr: NumericArray, correlation: NumericArray) -> NumericArray:
        """
        Density of the Gaussian-copula minimum or maximum.

        Component ``i`` contributes ``f_i(x)`` times the probability, given
        its own normal score, that every other score lies above (minimum) or
        below (maximum) the score of ``x``.
        """
        flat = arr.ravel()
        densities = self._stack("pdf", flat)
        if len(self._components) == 1:
            return densities[0].reshape(arr.shape)
        scores = standard_normal_bounds(self._stack("cdf", flat))
        values = np.zeros(flat.size)
        for i in range(len(self._components)):
            slopes, scales, conditional = conditional_normal(correlation, i)
            others = np.delete(scores, i, axis=0)
            for j in np.flatnonzero(densities[i] > 0.0):
                threshold = (others[:, j] - slopes * scores[i, j]) / scales
                unbounded = np.full(threshold.size, np.inf)
                if self.minimum_of_random_variables:
                    share = rectangle_probability(threshold, unbounded, conditional)
                else:
                    share = rectangle_probability(-unbounded, threshold, conditional)
                values[j] += densities[i, j] * share
        return values.reshape(arr.shape)

    def _dependent_pdf(self, arr: NumericArray) -> NumericArray:
        correlation = self._correlation_matrix
        if self._copula and correlation is not None:
            return self._copula_pdf(arr, correlation)
        # comonotone: the CDF is the pointwise extreme of the marginal CDFs
        step = get_config().derivative_step
        return np.clip(numerical_derivative(self._combined_cdf, arr, step), 0.0, None)

    def pdf(self, x: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        arr = np.asarray(x, dtype=np.float64)
        if self._independent:
            return as_output(np.exp(self._independent_log_pdf(arr)), x)
        return as_output(self._dependent_pdf(arr), x)

    def log_pdf(self, x: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        arr = np.asarray(x, dtype=np.float64)
        if self._independent:
            return as_output(self._independent_log_pdf(arr), x)
        with np.errstate(divide="ignore"):
            return as_output(np.log(self._dependent_pdf(arr)), x)

    @property
    def minimum(self) -> float:
        lowest = [c.minimum for c in self._components]
        return min(lowest) if self.minimum_of_random_variables else max(lowest)

    @property
    def maximum(self) -> float:
        highest = [c.maximum for c in self._components]
        return min(highest) if self.minimum_of_random_variables else max(highest)

    def _grid_range(self) -> tuple[float, float]:
        tail = get_config().tail_probability
        lower = min(float(c.inverse_cdf(tail)) for c in self._components)
        upper = max(float(c.inverse_cdf(1.0 - tail)) for c in self._components)
        return lower, upper

    def _inverse_table(self) -> EmpiricalInverseCDF:
        if self._table is None:
            self._table = build_inverse_cdf_table(
                self._combined_cdf,
                *self._grid_range(),
                self._x_transform,
                self._probability_transform,
            )
        return self._table

    def inverse_cdf(self, p: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        if len(self._components) == 1:
            return self._components[0].inverse_cdf(p)

        def interior(q: NumericArray) -> NumericArray:
            values = np.asarray(self._inverse_table().inverse_cdf(q), dtype=np.float64)
            return np.clip(values, self.minimum, self.maximum)

        return evaluate_quantiles(p, self.minimum, self.maximum, interior)

    @property
    def moments(self) -> tuple[float, float, float, float]:
        self.ensure_valid()
        if self._moments is None:
            self._moments = central_moments(self, get_config().moment_bins)
        return self._moments

    @property
    def sampling_strategy(self) -> CompetingRisksSamplingStrategy:
        return CompetingRisksSamplingStrategy()

    @property
    def estimation_methods(self) -> frozenset[EstimationMethod]:
        supported = all(
            isinstance(c, SupportsMaximumLikelihood)
            and EstimationMethod.MAXIMUM_LIKELIHOOD in c.estimation_methods
            for c in self._components
        )
        return frozenset({EstimationMethod.MAXIMUM_LIKELIHOOD}) if supported else frozenset()

    def parameter_bounds(self, sample: NumericArray) -> ParameterBounds:
        """Component bounds for maximum likelihood, concatenated in parameter order."""
        parts = []
        for component in self._components:
            if not isinstance(component, SupportsMaximumLikelihood):
                raise EstimationNotImplementedError(
                    EstimationMethod.MAXIMUM_LIKELIHOOD, component.name
                )
            parts.append(component.parameter_bounds(sample))
        return ParameterBounds.concatenate(parts)

    def _cause_increment(
        self,
        cause: int,
        lower: NumericArray,
        upper: NumericArray,
        middle: NumericArray,
    ) -> float:
        """
        Probability that ``cause`` fails in ``(l, u]`` while it is decisive at ``m``.

        ``lower``, ``upper`` and ``middle`` hold the marginal CDFs of every
        component at the bin's lower edge, upper edge and midpoint.
        """
        others = np.arange(len(self._components)) != cause
        if self._copula:
            z_lo, z_hi = standard_normal_bounds([0.0, 1.0])
            z_mid = standard_normal_bounds(middle)
            low = np.full(len(self._components), z_lo)
            high = np.full(len(self._components), z_hi)
            if self.minimum_of_random_variables:
                low[others] = z_mid[others]
            else:
                high[others] = z_mid[others]
            low[cause] = standard_normal_bounds(lower[cause])
            high[cause] = standard_normal_bounds(upper[cause])
            return rectangle_probability(low, high, self._correlation_matrix)

        if self.minimum_of_random_variables:
            survival_lower = 1.0 - np.where(others, middle, lower)
            survival_upper = 1.0 - np.where(others, middle, upper)
            return joint_probability(survival_lower, self.dependency) - joint_probability(
                survival_upper, self.dependency
            )
        return joint_probability(np.where(others, middle, upper), self.dependency) - (
            joint_probability(np.where(others, middle, lower), self.dependency)
        )

    def _incidence_edges(self, bins: int | npt.ArrayLike | None) -> NumericArray:
        if bins is not None and np.ndim(bins) > 0:
            edges = np.asarray(bins, dtype=np.float64).ravel()
            if edges.size == 0 or not np.all(np.isfinite(edges)):
                raise ValueError("Cumulative incidence edges must be finite and non-empty.")
            if np.any(np.diff(edges) <= 0.0):
                raise ValueError("Cumulative incidence edges must be strictly increasing.")
            return edges
        count = get_config().cif_bins if bins is None else int(np.asarray(bins))
        if count < 1:
            raise ValueError(f"Number of cumulative incidence bins must be positive, got {count}")
        lo, hi = self._grid_range()
        if self._x_transform is Transform.LOGARITHMIC and lo > 0.0:
            return np.geomspace(lo, hi, count + 1)
        return np.linspace(lo, hi, count + 1)

    def cumulative_incidence_functions(
        self, bins: int | npt.ArrayLike | None = None, max_workers: int | None = None
    ) -> list[CumulativeIncidence]:
        """
        Cumulative incidence curve of every cause.

        Parameters
        ----------
        bins : int or array_like, optional
            Either the number of bins between the extreme component quantiles
            at the configured tail probability, or explicit strictly
            increasing bin edges. A count defaults to the configured
            ``cif_bins``; its bins are equal-width, or geometric when
            ``x_transform`` is ``LOGARITHMIC`` and the range is positive.
        max_workers : int, optional
            Evaluate the bins on a thread pool of this size.

        Returns
        -------
        list[CumulativeIncidence]
            One curve per component, in component order.

        Raises
        ------
        ValueError
            If explicit edges are empty, not finite or not strictly
            increasing, or a bin count is not positive.

        Notes
        -----
        Each bin increment is a midpoint approximation. Increments are
        clamped to ``[0, 1]``; if the running total over causes first
        exceeds one in some bin, that bin is rescaled to reach exactly one,
        all later increments are zeroed and a ``UserWarning`` is emitted.
        """
        self.ensure_valid()
        edges = self._incidence_edges(bins)
        middles = np.concatenate(([edges[0]], 0.5 * (edges[:-1] + edges[1:])))

        upper_cdf = self._stack("cdf", edges)
        lower_cdf = np.concatenate((np.zeros((upper_cdf.shape[0], 1)), upper_cdf[:, :-1]), axis=1)
        middle_cdf = self._stack("cdf", middles)
        k = len(self._components)

        def bin_increments(j: int) -> NumericArray:
            row = np.array(
                [
                    self._cause_increment(i, lower_cdf[:, j], upper_cdf[:, j], middle_cdf[:, j])
                    for i in range(k)
                ]
            )
            return np.clip(np.nan_to_num(row, nan=0.0), 0.0, 1.0)

        if max_workers is None:
            rows = [bin_increments(j) for j in range(edges.size)]
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                rows = list(pool.map(bin_increments, range(edges.size)))
        increments = np.stack(rows, axis=1)
        logger.debug("Computed %d cumulative incidence bins for %d causes", edges.size, k)

        totals = np.cumsum(np.sum(increments, axis=0))
        exceeded = np.flatnonzero(totals > 1.0)
        if exceeded.size:
            j = int(exceeded[0])
            before = totals[j - 1] if j > 0 else 0.0
            increments[:, j] *= (1.0 - before) / np.sum(increments[:, j])
            increments[:, j + 1 :] = 0.0
            warnings.warn(
                f"Cumulative incidence exceeded one at x={edges[j]:g}; "
                "later increments were set to zero.",
                UserWarning,
                stacklevel=2,
            )

        curves = np.cumsum(increments, axis=1)
        return [CumulativeIncidence(edges.copy(), curves[i]) for i in range(k)]

    def __deepcopy__(self, memo: dict[int, Any]) -> CompetingRisks:
        clone = CompetingRisks.__new__(CompetingRisks)
        clone._components = [c.clone() for c in self._components]
        clone.minimum_of_random_variables = self.minimum_of_random_variables
        clone.dependency = self.dependency
        clone._correlation_matrix = self.correlation_matrix
        clone._moments = self._moments
        clone._table = self._table
        clone._x_transform = self._x_transform
        clone._probability_transform = self._probability_transform
        return clone


__all__ = [
    "CumulativeIncidence",
    "CompetingRisks",
    "CompetingRisksSamplingStrategy",
]
