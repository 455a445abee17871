"""
How losses are simulated.

A distribution delegates ``sample`` to its strategy. Strategies hold no
random state: each call builds ``numpy.random.default_rng(seed)``, so equal
seeds reproduce equal samples.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from typing import TYPE_CHECKING, Any, Protocol

import numpy as np

from .sampling import ArraySample

if TYPE_CHECKING:
    from .distribution import Distribution


class SamplingStrategy(Protocol):
    """Draws ``n`` losses from ``distr`` as an ``(n, 1)`` :class:`ArraySample`."""

    def sample(
        self, n: int, distr: Distribution, seed: int | None = None, **options: Any
    ) -> ArraySample: ...


class InverseTransformSamplingStrategy(SamplingStrategy):
    """Quantile function applied to seeded standard uniforms."""

    def sample(
        self, n: int, distr: Distribution, seed: int | None = None, **options: Any
    ) -> ArraySample:
        rng = np.random.default_rng(seed)
        uniforms = rng.random(n)
        losses = np.asarray(distr.inverse_cdf(uniforms), dtype=np.float64)
        return ArraySample(losses.reshape(n, 1))
