"""
Loss samples
============

Containers for simulated or observed losses, and the normalisation every
estimator applies to its input before fitting.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

from pysatl_risk.errors import InvalidSampleError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Any

    import numpy.typing as npt


@runtime_checkable
class Sample(Protocol):
    """Anything exposing its observations as an ``(n, d)`` float array."""

    def __len__(self) -> int: ...
    @property
    def array(self) -> npt.NDArray[np.floating[Any]]: ...
    @property
    def shape(self) -> tuple[int, ...]: ...


@dataclass(frozen=True, slots=True, eq=False)
class ArraySample:
    """
    Observations stored row-wise in an ``(n, d)`` array.

    Distributions in this package are univariate, so their samples have
    ``d == 1`` and :attr:`values` gives the flat loss vector.

    Raises
    ------
    ValueError
        If ``data`` is not two-dimensional.
    """

    data: npt.NDArray[np.floating[Any]]

    def __post_init__(self) -> None:
        if np.ndim(self.data) != 2:
            raise ValueError(f"Sample data must have shape (n, d), got {np.shape(self.data)}.")

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self) -> Iterator[npt.NDArray[np.floating[Any]]]:
        return iter(self.data)

    @property
    def dimension(self) -> int:
        return int(self.data.shape[1])

    @property
    def array(self) -> npt.NDArray[np.floating[Any]]:
        return self.data

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(int(extent) for extent in self.data.shape)

    @property
    def values(self) -> npt.NDArray[np.float64]:
        """Losses of a one-column sample as a vector."""
        if self.dimension != 1:
            raise ValueError(f"Cannot flatten a {self.dimension}-dimensional sample.")
        return self.data[:, 0].astype(np.float64, copy=False)


def as_sample_array(sample: Sample | npt.ArrayLike) -> npt.NDArray[np.float64]:
    """
    Validated flat loss vector.

    Parameters
    ----------
    sample : Sample or array_like
        A sample container, or any sequence or array of shape ``(n,)`` or
        ``(n, 1)``.

    Returns
    -------
    numpy.ndarray
        Float array of shape ``(n,)``.

    Raises
    ------
    InvalidSampleError
        On empty, multi-column or non-finite input.
    """
    raw = sample.array if isinstance(sample, Sample) else sample
    losses = np.asarray(raw, dtype=np.float64)
    if losses.ndim == 2 and losses.shape[1] == 1:
        losses = losses.ravel()
    if losses.ndim != 1:
        raise InvalidSampleError(f"Expected a univariate sample, got shape {losses.shape}.")
    if losses.size == 0:
        raise InvalidSampleError("Sample must be non-empty.")
    if not np.isfinite(losses).all():
        raise InvalidSampleError("Sample contains non-finite values.")
    return losses
