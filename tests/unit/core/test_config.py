"""Tests for settings validation and the placement policy built from it."""

import pytest
from pydantic import ValidationError

from app.config import Settings
from app.modules.cells.policy import PlacementPolicy


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.default_region == "eastus"
        assert settings.max_tenants_per_shared_cell == 100
        assert settings.shared_cell_capacity_threshold == 0.8
        assert settings.async_database_url.startswith("postgresql+asyncpg://")

    @pytest.mark.parametrize("value", [0, -0.1, 1.5])
    def test_threshold_must_be_ratio(self, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, shared_cell_capacity_threshold=value)

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, max_tenants_per_shared_cell=0)

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_REGION", "westeurope")
        monkeypatch.setenv("MAX_DEDICATED_CELLS_PER_REGION", "5")

        settings = Settings(_env_file=None)

        assert settings.default_region == "westeurope"
        assert settings.max_dedicated_cells_per_region == 5


class TestPlacementPolicy:
    def test_from_settings(self):
        source = Settings(
            _env_file=None,
            default_region="westus",
            max_shared_cells_per_region=3,
            auto_activate_cells=False,
        )

        policy = PlacementPolicy.from_settings(source)

        assert policy.default_region == "westus"
        assert policy.max_shared_cells_per_region == 3
        assert policy.auto_activate_cells is False

    def test_is_immutable(self):
        policy = PlacementPolicy()

        with pytest.raises(AttributeError):
            policy.default_region = "westus"  # type: ignore[misc]
