"""
Finite Mixture
==============

Weighted combination of component distributions, optionally with a point
mass at zero (zero inflation).

The parameter vector is the ``K`` weights followed by the parameters of each
component. Weights are normalized on every :meth:`Mixture.set_parameters` so
that they sum to ``1 - zero_weight``. Maximum likelihood is fitted by
Expectation-Maximization; the component parameters are re-optimized with the
constrained likelihood fitter while the weights are held fixed.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import logging
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from scipy.special import logsumexp

from pysatl_risk.config import get_config
from pysatl_risk.distributions.distribution import (
    WORST_LOG_LIKELIHOOD,
    Distribution,
    as_output,
    central_moments,
    evaluate_quantiles,
)
from pysatl_risk.distributions.empirical import build_inverse_cdf_table
from pysatl_risk.distributions.fitters import solve_quantile
from pysatl_risk.distributions.sampling import ArraySample, as_sample_array
from pysatl_risk.distributions.strategies import SamplingStrategy
from pysatl_risk.errors import (
    DimensionMismatchError,
    EstimationNotImplementedError,
    InvalidParameterError,
)
from pysatl_risk.estimation.bounds import ParameterBounds
from pysatl_risk.estimation.mle import fit_maximum_likelihood
from pysatl_risk.estimation.protocols import SupportsMaximumLikelihood
from pysatl_risk.types import EstimationMethod, FamilyName, Transform

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from typing import Any

    import numpy.typing as npt

    from pysatl_risk.distributions.empirical import EmpiricalInverseCDF
    from pysatl_risk.distributions.sampling import Sample
    from pysatl_risk.types import NumericArray, ScalarOrArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EMResult:
    """
    Outcome of an Expectation-Maximization fit.

    Parameters
    ----------
    parameters : NumericArray
        Final parameter vector (weights, then component parameters).
    log_likelihood : float
        Log-likelihood of the last E-step.
    converged : bool
        Whether the relative log-likelihood change fell below the tolerance.
    iterations : int
        Number of E-steps performed.
    """

    parameters: NumericArray
    log_likelihood: float
    converged: bool
    iterations: int


class MixtureSamplingStrategy(SamplingStrategy):
    """
    Two-stage sampler: pick a component by cumulative weight, then invert it.

    Both stages draw from one ``numpy.random.default_rng(seed)`` generator.
    """

    def sample(
        self, n: int, distr: Distribution, seed: int | None = None, **options: Any
    ) -> ArraySample:
        if not isinstance(distr, Mixture):
            raise TypeError("MixtureSamplingStrategy samples Mixture distributions only.")
        rng = np.random.default_rng(seed)
        choice = rng.random(n)
        u = rng.random(n)

        masses = np.concatenate(([distr.zero_weight], distr.weights))
        index = np.searchsorted(np.cumsum(masses), choice, side="right")
        index = np.minimum(index, masses.size - 1)

        values = np.zeros(n, dtype=np.float64)
        for k, component in enumerate(distr.components, start=1):
            picked = index == k
            if np.any(picked):
                values[picked] = component.inverse_cdf(u[picked])
        return ArraySample(values.reshape(n, 1))


class Mixture(Distribution):
    """
    Mixture of univariate distributions.

    Parameters
    ----------
    weights : array_like
        Component weights; normalized to sum to ``1 - zero_weight``.
    distributions : Sequence[Distribution]
        Components. They are deep-copied, so the mixture owns them.
    zero_inflated : bool, default False
        Whether the mixture carries a point mass at zero.
    zero_weight : float, default 0.0
        Probability of the zero mass; ignored unless ``zero_inflated``.
    tolerance : float, optional
        Relative log-likelihood change that stops EM. Defaults to the
        configured ``em_tolerance``.
    max_iterations : int, optional
        EM iteration cap. Defaults to the configured ``em_max_iterations``.
    x_transform : Transform or str, default Transform.NONE
        Abscissa transform of the fallback inverse-CDF table.
    probability_transform : Transform or str, default Transform.NORMAL_Z
        Probability transform of the fallback inverse-CDF table.

    Raises
    ------
    DimensionMismatchError
        If the number of weights and components differ.
    ValueError
        If no component is given.
    """

    def __init__(
        self,
        weights: npt.ArrayLike,
        distributions: Sequence[Distribution],
        zero_inflated: bool = False,
        zero_weight: float = 0.0,
        tolerance: float | None = None,
        max_iterations: int | None = None,
        x_transform: Transform | str = Transform.NONE,
        probability_transform: Transform | str = Transform.NORMAL_Z,
    ) -> None:
        if len(distributions) == 0:
            raise ValueError("A mixture needs at least one component.")
        w = np.asarray(weights, dtype=np.float64).ravel()
        if w.size != len(distributions):
            raise DimensionMismatchError("weights", len(distributions), w.size)

        self._components = [d.clone() for d in distributions]
        self.zero_inflated = bool(zero_inflated)
        self._zero_weight = float(zero_weight) if self.zero_inflated else 0.0
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self._weights = w
        self._validation_error: InvalidParameterError | None = None
        self._moments: tuple[float, float, float, float] | None = None
        self._table: EmpiricalInverseCDF | None = None
        self._x_transform = Transform(x_transform)
        self._probability_transform = Transform(probability_transform)
        self.set_parameters(np.concatenate([w, *[c.parameters for c in self._components]]))

    @property
    def name(self) -> str:
        return FamilyName.MIXTURE

    @property
    def components(self) -> tuple[Distribution, ...]:
        return tuple(self._components)

    @property
    def weights(self) -> NumericArray:
        return self._weights.copy()

    @property
    def zero_weight(self) -> float:
        return self._zero_weight

    @property
    def x_transform(self) -> Transform:
        """Abscissa transform of the inverse-CDF table; setting it drops the table."""
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
    def parameters(self) -> NumericArray:
        return np.concatenate([self._weights, *[c.parameters for c in self._components]])

    @property
    def parameter_names(self) -> tuple[str, ...]:
        names = [f"weight_{k}" for k in range(1, len(self._components) + 1)]
        for k, component in enumerate(self._components, start=1):
            names.extend(f"{component.name}_{k}.{p}" for p in component.parameter_names)
        return tuple(names)

    @property
    def parameters_valid(self) -> bool:
        return self._validation_error is None

    def _split(self, values: npt.ArrayLike) -> tuple[NumericArray, list[NumericArray]]:
        arr = np.asarray(values, dtype=np.float64).ravel()
        if arr.size != self.number_of_parameters:
            raise DimensionMismatchError("parameters", self.number_of_parameters, arr.size)
        k = len(self._components)
        blocks = []
        start = k
        for component in self._components:
            stop = start + component.number_of_parameters
            blocks.append(arr[start:stop])
            start = stop
        return arr[:k], blocks

    def _normalized(self, weights: NumericArray, warn: bool) -> NumericArray:
        target = 1.0 - self._zero_weight
        total = float(np.sum(weights))
        if total == 0.0 or not np.isfinite(total):
            if warn:
                warnings.warn(
                    "Mixture weights sum to zero; resetting them to equal weights.",
                    UserWarning,
                    stacklevel=3,
                )
            return np.full(weights.size, target / weights.size)
        return weights * (target / total)

    def _check(
        self, weights: NumericArray, blocks: list[NumericArray]
    ) -> InvalidParameterError | None:
        if not 0.0 <= self._zero_weight <= 1.0:
            return InvalidParameterError("zero_weight", self._zero_weight, "0 <= zero_weight <= 1")
        for k, w in enumerate(weights, start=1):
            if not 0.0 <= w <= 1.0:
                return InvalidParameterError(f"weight_{k}", float(w), "0 <= weight <= 1")
        for component, block in zip(self._components, blocks, strict=True):
            error = component.validate(block)
            if error is not None:
                return error
        return None

    def set_parameters(self, values: npt.ArrayLike) -> None:
        """
        Replace the weights and the component parameters.

        The weights are normalized so that they sum to ``1 - zero_weight``;
        if they sum to zero they are reset to equal weights with a
        ``UserWarning``. Cached moments and the inverse-CDF table are
        discarded.
        """
        weights, blocks = self._split(values)
        self._weights = self._normalized(weights, warn=True)
        for component, block in zip(self._components, blocks, strict=True):
            component.set_parameters(block)
        self._validation_error = self._check(self._weights, blocks)
        self._moments = None
        self._table = None

    def validate(self, values: npt.ArrayLike) -> InvalidParameterError | None:
        weights, blocks = self._split(values)
        return self._check(self._normalized(weights, warn=False), blocks)

    def ensure_valid(self) -> None:
        if self._validation_error is not None:
            raise self._validation_error

    def _log_weights(self) -> NumericArray:
        with np.errstate(divide="ignore"):
            return np.log(self._weights)

    def _zero_mask(self, arr: NumericArray) -> NumericArray:
        if self.zero_inflated:
            return arr <= 0.0
        return np.zeros(arr.shape, dtype=bool)

    def _stack(self, method: str, arr: NumericArray) -> NumericArray:
        return np.stack(
            [np.asarray(getattr(c, method)(arr), dtype=np.float64) for c in self._components]
        )

    def _log_combine(self, method: str, x: ScalarOrArray) -> NumericArray:
        arr = np.asarray(x, dtype=np.float64)
        log_w = self._log_weights().reshape((-1,) + (1,) * arr.ndim)
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.asarray(logsumexp(log_w + self._stack(method, arr), axis=0))

    def pdf(self, x: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        arr = np.asarray(x, dtype=np.float64)
        values = np.tensordot(self._weights, self._stack("pdf", arr), axes=1)
        values = np.where(self._zero_mask(arr), self._zero_weight, values)
        return as_output(values, x)

    def log_pdf(self, x: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        arr = np.asarray(x, dtype=np.float64)
        values = self._log_combine("log_pdf", arr)
        if self.zero_inflated:
            with np.errstate(divide="ignore"):
                values = np.where(self._zero_mask(arr), np.log(self._zero_weight), values)
        return as_output(np.where(np.isfinite(values), values, WORST_LOG_LIKELIHOOD), x)

    def cdf(self, x: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        arr = np.asarray(x, dtype=np.float64)
        values = np.tensordot(self._weights, self._stack("cdf", arr), axes=1) + self._zero_weight
        values = np.where(self._zero_mask(arr), self._zero_weight, values)
        return as_output(np.clip(values, 0.0, 1.0), x)

    def log_cdf(self, x: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        arr = np.asarray(x, dtype=np.float64)
        values = self._log_combine("log_cdf", arr)
        if self.zero_inflated:
            with np.errstate(divide="ignore"):
                log_zero = np.log(self._zero_weight)
            values = np.where(
                self._zero_mask(arr), log_zero, np.logaddexp(values, log_zero)
            )
        return as_output(np.where(np.isfinite(values), values, WORST_LOG_LIKELIHOOD), x)

    def log_ccdf(self, x: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        arr = np.asarray(x, dtype=np.float64)
        values = self._log_combine("log_ccdf", arr)
        if self.zero_inflated:
            values = np.where(self._zero_mask(arr), np.log1p(-self._zero_weight), values)
        return as_output(values, x)

    @property
    def minimum(self) -> float:
        lowest = min(c.minimum for c in self._components)
        return min(lowest, 0.0) if self.zero_inflated else lowest

    @property
    def maximum(self) -> float:
        return max(c.maximum for c in self._components)

    def _inverse_table(self) -> EmpiricalInverseCDF:
        if self._table is None:
            tail = get_config().tail_probability
            min_x = min(float(c.inverse_cdf(tail)) for c in self._components)
            max_x = max(float(c.inverse_cdf(1.0 - tail)) for c in self._components)
            self._table = build_inverse_cdf_table(
                self.cdf, min_x, max_x, self._x_transform, self._probability_transform
            )
        return self._table

    def _quantile(self, p: float) -> float:
        if self.zero_inflated and p <= self._zero_weight:
            return 0.0
        quantiles = [float(c.inverse_cdf(p)) for c in self._components]
        lower, upper = min(quantiles), max(quantiles)

        cfg = get_config()
        result = solve_quantile(
            lambda x: float(self.cdf(x)),
            p,
            lower,
            upper,
            minimum=self.minimum,
            maximum=self.maximum,
            x_tol=cfg.root_x_tolerance,
            max_iter=cfg.root_max_iterations,
            max_expand=cfg.bracket_max_expansions,
        )
        if result.converged:
            return result.root
        logger.warning(
            "Mixture quantile solve at p=%g failed (%s); using the empirical table.",
            p,
            result.status,
        )
        return float(self._inverse_table().inverse_cdf(p))

    def inverse_cdf(self, p: ScalarOrArray) -> ScalarOrArray:
        self.ensure_valid()
        if len(self._components) == 1 and not self.zero_inflated:
            return self._components[0].inverse_cdf(p)

        def interior(q: NumericArray) -> NumericArray:
            roots = np.array([self._quantile(float(v)) for v in q])
            return np.clip(roots, self.minimum, self.maximum)

        return evaluate_quantiles(p, self.minimum, self.maximum, interior)

    @property
    def moments(self) -> tuple[float, float, float, float]:
        """Numerically integrated mean, standard deviation, skewness and kurtosis."""
        self.ensure_valid()
        if self._moments is None:
            self._moments = central_moments(self, get_config().moment_bins)
        return self._moments

    @property
    def sampling_strategy(self) -> MixtureSamplingStrategy:
        return MixtureSamplingStrategy()

    @property
    def estimation_methods(self) -> frozenset[EstimationMethod]:
        return frozenset({EstimationMethod.MAXIMUM_LIKELIHOOD})

    def _component_bounds(self, sample: NumericArray) -> ParameterBounds:
        parts = []
        for component in self._components:
            if not isinstance(component, SupportsMaximumLikelihood):
                raise EstimationNotImplementedError(
                    EstimationMethod.MAXIMUM_LIKELIHOOD, component.name
                )
            parts.append(component.parameter_bounds(sample))
        bounds = ParameterBounds.concatenate(parts)
        current = np.concatenate([c.parameters for c in self._components])
        return ParameterBounds(current, bounds.lower, bounds.upper).repaired()

    def _fixed_weight_objective(self, sample: NumericArray) -> Callable[[NumericArray], float]:
        model = self.clone()
        weights = self._weights.copy()

        def objective(theta: NumericArray) -> float:
            model.set_parameters(np.concatenate([weights, theta]))
            if not model.parameters_valid:
                return WORST_LOG_LIKELIHOOD
            return model.log_likelihood(sample)

        return objective

    def expectation_maximization(self, sample: Sample | npt.ArrayLike) -> EMResult:
        """
        Fit weights and component parameters by Expectation-Maximization.

        Parameters
        ----------
        sample : Sample or array_like
            Univariate sample.

        Returns
        -------
        EMResult
            Final parameters and convergence status. Hitting the iteration
            cap is logged as a warning, not raised.

        Notes
        -----
        The convergence test is skipped while either of the two compared
        log-likelihoods is ``-sys.float_info.max`` (the value used for a
        non-finite likelihood), so at least one M-step always runs.
        Zero-inflated mixtures assign non-positive observations to the zero
        mass.
        """
        values = as_sample_array(sample)
        cfg = get_config()
        tolerance = cfg.em_tolerance if self.tolerance is None else self.tolerance
        max_iterations = (
            cfg.em_max_iterations if self.max_iterations is None else self.max_iterations
        )

        n = values.size
        zeros = self._zero_mask(values)
        n_zero = int(np.sum(zeros))
        positive = values[~zeros]
        if positive.size == 0:
            raise ValueError("Sample has no observations for the mixture components.")
        k = len(self._components)
        bounds = self._component_bounds(positive)

        old_ll = WORST_LOG_LIKELIHOOD
        log_likelihood = WORST_LOG_LIKELIHOOD
        converged = False
        iteration = 0
        while iteration < max_iterations:
            iteration += 1

            # E-step
            log_r = self._log_weights()[:, None] + self._stack("log_pdf", positive)
            with np.errstate(divide="ignore", invalid="ignore"):
                log_norm = logsumexp(log_r, axis=0)
                responsibilities = np.exp(log_r - log_norm)
            responsibilities[:, ~np.isfinite(log_norm)] = 1.0 / k
            log_likelihood = float(np.sum(log_norm))
            if n_zero:
                with np.errstate(divide="ignore"):
                    log_likelihood += n_zero * float(np.log(self._zero_weight))
            if not np.isfinite(log_likelihood):
                log_likelihood = WORST_LOG_LIKELIHOOD

            change = abs(log_likelihood - old_ll) / max(abs(old_ll), np.finfo(np.float64).tiny)
            logger.debug("EM iteration %d: log-likelihood %.10g", iteration, log_likelihood)
            comparable = WORST_LOG_LIKELIHOOD not in (old_ll, log_likelihood)
            if comparable and change < tolerance:
                converged = True
                break

            # M-step
            if self.zero_inflated:
                self._zero_weight = n_zero / n
            weights = np.sum(responsibilities, axis=1) / n
            current = np.concatenate([c.parameters for c in self._components])
            self.set_parameters(np.concatenate([weights, current]))

            bounds = ParameterBounds(current, bounds.lower, bounds.upper).repaired()
            fit = fit_maximum_likelihood(
                self, positive, bounds, objective=self._fixed_weight_objective(values)
            )
            self.set_parameters(np.concatenate([self._weights, fit.parameters]))
            old_ll = log_likelihood

        if not converged:
            logger.warning(
                "EM for %s stopped at the iteration cap (%d) without converging.",
                self.name,
                max_iterations,
            )
        return EMResult(self.parameters, log_likelihood, converged, iteration)

    def __deepcopy__(self, memo: dict[int, Any]) -> Mixture:
        clone = Mixture.__new__(Mixture)
        clone._components = [c.clone() for c in self._components]
        clone.zero_inflated = self.zero_inflated
        clone._zero_weight = self._zero_weight
        clone.tolerance = self.tolerance
        clone.max_iterations = self.max_iterations
        clone._weights = self._weights.copy()
        clone._validation_error = self._validation_error
        clone._moments = self._moments
        clone._table = self._table
        clone._x_transform = self._x_transform
        clone._probability_transform = self._probability_transform
        return clone


__all__ = [
    "EMResult",
    "Mixture",
    "MixtureSamplingStrategy",
]
