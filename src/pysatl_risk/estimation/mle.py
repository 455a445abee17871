"""
Constrained Maximum Likelihood
==============================

Bounded Nelder-Mead maximization of the log-likelihood.

The objective never returns NaN or infinity: invalid parameter vectors and
non-finite sums map to the worst representable log-likelihood, so the simplex
simply moves away from them. Non-convergence is reported through
:class:`MLEResult`, never raised.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from scipy.optimize import Bounds, minimize

from pysatl_risk.config import get_config
from pysatl_risk.distributions.distribution import WORST_LOG_LIKELIHOOD
from pysatl_risk.distributions.sampling import as_sample_array
from pysatl_risk.errors import EstimationNotImplementedError
from pysatl_risk.estimation.protocols import SupportsMaximumLikelihood
from pysatl_risk.types import EstimationMethod

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

    import numpy.typing as npt

    from pysatl_risk.distributions.distribution import Distribution
    from pysatl_risk.distributions.sampling import Sample
    from pysatl_risk.estimation.bounds import ParameterBounds
    from pysatl_risk.types import NumericArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MLEResult:
    """
    Outcome of a maximum likelihood fit.

    Parameters
    ----------
    parameters : NumericArray
        Best parameter vector found.
    log_likelihood : float
        Log-likelihood at ``parameters``.
    converged : bool
        Whether the optimizer met its tolerances.
    message : str
        Optimizer status message.
    evaluations : int
        Number of objective evaluations.
    """

    parameters: NumericArray
    log_likelihood: float
    converged: bool
    message: str
    evaluations: int


def log_likelihood_objective(
    distribution: Distribution, sample: Sample | npt.ArrayLike
) -> Callable[[NumericArray], float]:
    """
    Build the log-likelihood as a function of the parameter vector.

    The distribution is cloned once; every call sets the vector on the clone,
    so the original is never mutated.

    Returns
    -------
    Callable[[NumericArray], float]
        ``theta -> sum(log_pdf(x_i))``, or ``-sys.float_info.max`` for an
        invalid ``theta`` or a non-finite sum.
    """
    values = as_sample_array(sample)
    model = distribution.clone()

    def objective(theta: NumericArray) -> float:
        model.set_parameters(theta)
        if not model.parameters_valid:
            return WORST_LOG_LIKELIHOOD
        return model.log_likelihood(values)

    return objective


def fit_maximum_likelihood(
    distribution: Distribution,
    sample: Sample | npt.ArrayLike,
    bounds: ParameterBounds | None = None,
    options: dict[str, Any] | None = None,
    objective: Callable[[NumericArray], float] | None = None,
) -> MLEResult:
    """
    Maximize the log-likelihood with bounded Nelder-Mead.

    Parameters
    ----------
    distribution : Distribution
        Model whose parameters are fitted. It is not mutated.
    sample : Sample or array_like
        Univariate sample.
    bounds : ParameterBounds, optional
        Search region. Defaults to ``distribution.parameter_bounds(sample)``.
        The bounds are repaired before use.
    options : dict, optional
        Extra options for :func:`scipy.optimize.minimize`, overriding the
        configured iteration cap and tolerances.
    objective : Callable[[NumericArray], float], optional
        Log-likelihood of the free parameter vector. Defaults to
        :func:`log_likelihood_objective`; a custom objective lets a caller
        hold part of the parameters fixed.

    Returns
    -------
    MLEResult
        Best point found and the convergence status.

    Raises
    ------
    EstimationNotImplementedError
        If no bounds are given and the distribution cannot derive them.
    """
    values = as_sample_array(sample)
    if bounds is None:
        if not isinstance(distribution, SupportsMaximumLikelihood):
            raise EstimationNotImplementedError(
                EstimationMethod.MAXIMUM_LIKELIHOOD, distribution.name
            )
        bounds = distribution.parameter_bounds(values)
    bounds = bounds.repaired()

    if objective is None:
        objective = log_likelihood_objective(distribution, values)
    config = get_config()
    solver_options: dict[str, Any] = {
        "maxiter": config.optimizer_max_iterations,
        "maxfev": config.optimizer_max_iterations,
        "xatol": config.optimizer_xatol,
        "fatol": config.optimizer_fatol,
        "adaptive": len(bounds) > 2,
    }
    solver_options.update(options or {})

    result = minimize(
        lambda theta: -objective(theta),
        bounds.initial,
        method="Nelder-Mead",
        bounds=Bounds(bounds.lower, bounds.upper),
        options=solver_options,
    )
    fit = MLEResult(
        parameters=np.asarray(result.x, dtype=np.float64),
        log_likelihood=-float(result.fun),
        converged=bool(result.success),
        message=str(result.message),
        evaluations=int(result.nfev),
    )
    logger.debug(
        "Nelder-Mead on %s finished after %d evaluations: %s",
        distribution.name,
        fit.evaluations,
        fit.message,
    )
    return fit


__all__ = [
    "MLEResult",
    "log_likelihood_objective",
    "fit_maximum_likelihood",
]
