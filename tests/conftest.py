from __future__ import annotations

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from collections.abc import Generator
from typing import Any

import pytest

from pysatl_risk.config import reset_config
from pysatl_risk.families.configuration import reset_families_register


@pytest.fixture(autouse=True)
def _isolated_state() -> Generator[None, Any, None]:
    """Each test starts with an empty family register and default numerics."""
    reset_families_register()
    reset_config()
    yield
    reset_config()
