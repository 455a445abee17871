"""
Parametrizations of loss families.

A family may be parametrized several ways (an exponential by scale or by
rate, a normal by variance or by precision). Each way is a frozen dataclass
declared with :func:`parametrization`; its validity rules are methods marked
with :func:`constraint`. Every parametrization converts itself to the family's
base one, and all of them convert to and from flat parameter vectors, the form
optimizers work with.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import math
from abc import ABC
from dataclasses import dataclass, fields, is_dataclass
from inspect import isfunction
from typing import TYPE_CHECKING, Self, TypeVar

import numpy as np

from pysatl_risk.errors import DimensionMismatchError, InvalidParameterError
from pysatl_risk.types import ParametrizationName

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any, ClassVar

    import numpy.typing as npt

    from pysatl_risk.families.parametric_family import ParametricFamily
    from pysatl_risk.types import NumericArray

_CONSTRAINT_MARK = "__constraint__"


@dataclass(slots=True, frozen=True)
class ParametrizationConstraint:
    """
    One validity rule of a parametrization.

    Parameters
    ----------
    description : str
        Readable form of the rule, e.g. ``"sigma > 0"``.
    parameter : str
        Parameter blamed when the rule fails.
    check : Callable[[Any], bool]
        Predicate over the parametrization instance.
    """

    description: str
    parameter: str
    check: Callable[[Any], bool]


class Parametrization(ABC):
    """
    Base class of every family parametrization.

    Subclasses are turned into frozen dataclasses by :func:`parametrization`,
    which also sets ``__family__`` and ``__param_name__``.
    """

    __family__: ClassVar[ParametricFamily]
    __param_name__: ClassVar[ParametrizationName]

    _constraints: ClassVar[list[ParametrizationConstraint]] = []

    @property
    def name(self) -> str:
        return type(self).__param_name__

    @property
    def parameters(self) -> dict[str, Any]:
        """Parameter values keyed by field name, in declaration order."""
        return {name: getattr(self, name) for name in self.parameter_names()}

    @property
    def constraints(self) -> list[ParametrizationConstraint]:
        return self._constraints

    @classmethod
    def parameter_names(cls) -> tuple[str, ...]:
        return tuple(field.name for field in fields(cls))  # type: ignore[arg-type]

    @classmethod
    def from_vector(cls, values: npt.ArrayLike) -> Self:
        """
        Inverse of :meth:`to_vector`.

        Raises
        ------
        DimensionMismatchError
            If ``values`` does not hold exactly one entry per parameter.
        """
        names = cls.parameter_names()
        vector = np.ravel(np.asarray(values, dtype=np.float64))
        if len(vector) != len(names):
            raise DimensionMismatchError("parameters", len(names), len(vector))
        return cls(**dict(zip(names, map(float, vector), strict=True)))

    def to_vector(self) -> NumericArray:
        return np.fromiter(self.parameters.values(), dtype=np.float64)

    def validate(self) -> None:
        """
        Check that every parameter is finite and every constraint holds.

        Raises
        ------
        InvalidParameterError
            Naming the first offending parameter.
        """
        for parameter, value in self.parameters.items():
            if not math.isfinite(value):
                raise InvalidParameterError(parameter, value, f"{parameter} is finite")
        failed = next((rule for rule in self._constraints if not rule.check(self)), None)
        if failed is not None:
            raise InvalidParameterError(
                failed.parameter, getattr(self, failed.parameter), failed.description
            )

    def transform_to_base_parametrization(self) -> Parametrization:
        """
        Equivalent parameters in the family's base parametrization.

        The base parametrization itself returns ``self``; alternative ones
        override this.
        """
        return self


F = TypeVar("F", bound="Callable[..., bool]")


def constraint(
    description: str, parameter: str | None = None
) -> Callable[[F], F]:
    """
    Mark a predicate method as a validity rule of its parametrization.

    Parameters
    ----------
    description : str
        Readable form of the rule.
    parameter : str, optional
        Parameter blamed on failure. Defaults to the first word of
        ``description``, so ``"sigma > 0"`` blames ``sigma``.

    Notes
    -----
    The method is returned unchanged apart from a ``__constraint__``
    attribute holding its :class:`ParametrizationConstraint`.
    """
    blamed = parameter or description.split()[0]

    def mark(check: F) -> F:
        setattr(check, _CONSTRAINT_MARK, ParametrizationConstraint(description, blamed, check))
        return check

    return mark


def _marked_constraints(cls: type) -> list[ParametrizationConstraint]:
    found: list[ParametrizationConstraint] = []
    for attr_name, attr in vars(cls).items():
        if isinstance(attr, staticmethod | classmethod):
            if hasattr(attr.__func__, _CONSTRAINT_MARK):
                kind = type(attr).__name__
                raise TypeError(
                    f"Constraint '{attr_name}' must be an instance method, not a {kind}"
                )
            continue
        if isfunction(attr) and hasattr(attr, _CONSTRAINT_MARK):
            found.append(getattr(attr, _CONSTRAINT_MARK))
    return found


def parametrization(
    *,
    family: ParametricFamily,
    name: str,
) -> Callable[[type[Parametrization]], type[Parametrization]]:
    """
    Class decorator declaring a parametrization of ``family``.

    The class becomes a frozen, slotted dataclass (unless it already is a
    dataclass), learns its family and name, collects its ``@constraint``
    methods and is registered with the family under ``name``.

    Raises
    ------
    TypeError
        If a constraint is declared as a static or class method.
    """

    def declare(cls: type[Parametrization]) -> type[Parametrization]:
        if not is_dataclass(cls):
            cls = dataclass(slots=True, frozen=True)(cls)
        cls.__family__ = family
        cls.__param_name__ = name
        cls._constraints = _marked_constraints(cls)
        family.register_parametrization(name, cls)
        return cls

    return declare
