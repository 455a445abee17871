__author__ = "Leonid Elkin, Mikhail Mikhailov"
__copyright__ = "Copyright (c) 2025 PySATL project"
__license__ = "SPDX-License-Identifier: MIT"

import dataclasses

import pytest

from pysatl_risk.config import NumericalConfig, configure, get_config, reset_config


class TestNumericalConfig:
    def test_defaults(self):
        config = get_config()

        assert config == NumericalConfig()
        assert config.tail_probability == 1e-16
        assert config.min_bins == 200
        assert config.bins_per_decade == 100
        assert config.em_tolerance == 1e-8
        assert config.em_max_iterations == 1000

    def test_configure_overrides_selected_fields(self):
        config = configure(cif_bins=50, em_tolerance=1e-6)

        assert config.cif_bins == 50
        assert config.em_tolerance == 1e-6
        assert config.min_bins == 200
        assert get_config() is config

    def test_overrides_accumulate(self):
        configure(min_bins=10)
        configure(bins_per_decade=5)

        assert (get_config().min_bins, get_config().bins_per_decade) == (10, 5)

    def test_unknown_field(self):
        with pytest.raises(TypeError, match="no_such_setting"):
            configure(no_such_setting=1)
        assert get_config() == NumericalConfig()

    def test_reset(self):
        configure(moment_bins=5)

        reset_config()

        assert get_config().moment_bins == 200

    def test_config_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            get_config().min_bins = 1  # type: ignore[misc]
