"""Tests for GridConfig validation and presets."""

import pytest

from treegridlib import DataModel, GridConfig, Row, TreeGrid
from treegridlib.exceptions import InvalidConfigError, TreeGridError
from treegridlib.fetching import TreatAsLeafPolicy


class TestValidation:

    def test_defaults_are_valid(self):
        config = GridConfig()
        assert config.validate() == []
        assert config.expand_all_budget == 5.0
        assert config.search_spinner_delay == 1.0
        assert config.fetch_timeout is None

    def test_collects_every_problem(self):
        config = GridConfig(expand_all_budget=-1, fetch_timeout=0, poll_interval=0)
        errors = config.validate()
        assert len(errors) == 3
        assert "expand_all_budget cannot be negative" in errors

    def test_error_policy_must_handle(self):
        assert GridConfig(error_policy=object()).validate() == ["error_policy must provide handle()"]
        assert GridConfig(error_policy=TreatAsLeafPolicy()).validate() == []

    def test_grid_rejects_invalid_config(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            TreeGrid(DataModel(rows=[Row("a")]), GridConfig(search_spinner_delay=-0.5))

        assert exc_info.value.errors == ["search_spinner_delay cannot be negative"]
        assert isinstance(exc_info.value, TreeGridError)
        assert isinstance(exc_info.value, ValueError)


class TestPresets:

    def test_lazy(self):
        assert GridConfig.lazy().expand_first_generation is False

    def test_eager(self):
        config = GridConfig.eager()
        assert config.expand_first_generation is True
        assert config.expand_all_budget == 30.0
        assert GridConfig.eager(expand_all_budget=12).expand_all_budget == 12
