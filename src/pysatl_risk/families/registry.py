"""
Process-wide lookup of the loss families known to PySATL Risk.

Families announce themselves once through :meth:`ParametricFamilyRegister.register`
and are afterwards found by their :class:`~pysatl_risk.types.FamilyName`. Because
``FamilyName`` is a string enum, plain strings such as ``"Normal"`` resolve to
the same entry.
"""

from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import ClassVar

    from pysatl_risk.families.parametric_family import ParametricFamily


class ParametricFamilyRegister:
    """
    Shared table of parametric loss families keyed by family name.

    Every instantiation returns the same object, so modules that build
    distributions, fit them or compose them all see one set of families.
    """

    _instance: ClassVar[ParametricFamilyRegister | None] = None
    _families: dict[str, ParametricFamily]

    def __new__(cls) -> ParametricFamilyRegister:
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._families = {}
            cls._instance = instance
        return cls._instance

    @classmethod
    def _table(cls) -> dict[str, ParametricFamily]:
        return cls()._families

    @classmethod
    def get(cls, name: str) -> ParametricFamily:
        """
        Look up a family.

        Parameters
        ----------
        name : str
            Family name, either a ``FamilyName`` member or its string value.

        Returns
        -------
        ParametricFamily

        Raises
        ------
        ValueError
            If nothing was registered under ``name``.
        """
        family = cls._table().get(str(name))
        if family is None:
            known = ", ".join(sorted(cls._table())) or "none"
            raise ValueError(f"Unknown family '{name}'; registered families: {known}")
        return family

    @classmethod
    def contains(cls, name: str) -> bool:
        return str(name) in cls._table()

    @classmethod
    def names(cls) -> list[str]:
        """Registered family names in registration order."""
        return list(cls._table())

    @classmethod
    def register(cls, family: ParametricFamily) -> None:
        """
        Add ``family`` under its own name.

        Raises
        ------
        ValueError
            If the name is taken. Families are immutable once published.
        """
        key = str(family.name)
        if key in cls._table():
            raise ValueError(f"Family '{key}' is already registered")
        cls._table()[key] = family

    @classmethod
    def _reset(cls) -> None:
        """Forget the shared instance together with its families."""
        cls._instance = None
