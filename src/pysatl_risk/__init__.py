"""
PySATL Risk
===========

Univariate probability distributions for statistical risk analysis: parametric
families with closed-form characteristics, composite mixtures and competing
risks, parameter estimation (moments, L-moments, maximum likelihood) and
standard-error propagation for quantiles.
"""

__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

from importlib.metadata import version

from .composite import *
from .composite import __all__ as _composite_all
from .config import *
from .config import __all__ as _config_all
from .distributions import *
from .distributions import __all__ as _distr_all
from .errors import *
from .errors import __all__ as _errors_all
from .estimation import *
from .estimation import __all__ as _estimation_all
from .families import *
from .families import __all__ as _family_all
from .types import *
from .types import __all__ as _types_all

__version__ = version("pysatl-risk")
__all__ = [
    "__version__",
    *_composite_all,
    *_config_all,
    *_distr_all,
    *_errors_all,
    *_estimation_all,
    *_family_all,
    *_types_all,
]

del _composite_all
del _config_all
del _distr_all
del _errors_all
del _estimation_all
del _family_all
del _types_all
