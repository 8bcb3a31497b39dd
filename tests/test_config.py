"""Tests for configuration models, presets, and TOML loading."""

from pathlib import Path

import pytest

from planetgen.config import (
    PRESETS,
    PlanetConfig,
    check_dimensions,
    list_presets,
    load_config,
    preset_data,
)
from planetgen.exceptions import ConfigurationError


class TestPlanetConfig:
    """Tests for the top-level model."""

    def test_defaults_valid(self) -> None:
        """Defaults describe a 2:1 grid."""
        config = PlanetConfig()
        assert config.width == 2 * config.height
        assert config.hydraulic.method == "steepest_descent"

    @pytest.mark.parametrize("width,height", [(100, 100), (64, 31), (0, 0)])
    def test_rejects_non_equirectangular(self, width: int, height: int) -> None:
        """Grids that are not positive and 2:1 fail validation."""
        with pytest.raises(ValueError):
            PlanetConfig(width=width, height=height)

    def test_rejects_zero_workers(self) -> None:
        """At least one worker is required."""
        with pytest.raises(ValueError):
            PlanetConfig(workers=0)

    def test_configuration_error_is_value_error(self) -> None:
        """Callers may catch configuration problems as ValueError."""
        with pytest.raises(ValueError):
            check_dimensions(10, 10)
        assert issubclass(ConfigurationError, ValueError)


class TestPresets:
    """Tests for named presets."""

    def test_list_presets(self) -> None:
        """Presets are listed sorted."""
        names = list_presets()
        assert names == sorted(PRESETS)
        assert {"earthlike", "desert", "ice", "lava", "alien"} <= set(names)

    def test_from_preset(self) -> None:
        """A preset fills in its sections and records its name."""
        config = PlanetConfig.from_preset("Lava")
        assert config.preset == "lava"
        assert config.emissive.kind == "lava"
        assert config.terrain.mountain_intensity == 1.5

    def test_overrides_win(self) -> None:
        """Overrides replace preset values without dropping the rest."""
        config = PlanetConfig.from_preset(
            "desert", seed=9, width=64, height=32, terrain={"sea_level": 0.2}
        )
        assert config.seed == 9
        assert config.terrain.sea_level == 0.2
        assert config.terrain.continent_scale == 2.5

    def test_unknown_preset(self) -> None:
        """Unknown presets raise a configuration error."""
        with pytest.raises(ConfigurationError):
            PlanetConfig.from_preset("gas_giant")

    def test_preset_data_is_a_copy(self) -> None:
        """Mutating returned data leaves the preset intact."""
        data = preset_data("ice")
        data["terrain"]["sea_level"] = 0.9
        assert PRESETS["ice"]["terrain"]["sea_level"] == -0.1


class TestLoadConfig:
    """Tests for TOML loading."""

    def test_load_with_preset(self, tmp_path: Path) -> None:
        """The file's preset seeds values and its own keys override them."""
        path = tmp_path / "planet.toml"
        path.write_text(
            'preset = "earthlike"\n'
            "seed = 5\nwidth = 64\nheight = 32\n"
            "[hydraulic]\nmethod = \"shallow_water\"\niterations = 3\n"
        )
        config = load_config(path)
        assert config.seed == 5
        assert config.preset == "earthlike"
        assert config.hydraulic.method == "shallow_water"
        assert config.hydraulic.iterations == 3
        assert config.hydraulic.rainfall == 0.6
        assert config.emissive.kind == "night_lights"

    def test_preset_argument_takes_precedence(self, tmp_path: Path) -> None:
        """An explicit preset replaces the file's preset key."""
        path = tmp_path / "planet.toml"
        path.write_text('preset = "earthlike"\nwidth = 64\nheight = 32\n')
        config = load_config(path, preset="lava")
        assert config.preset == "lava"
        assert config.width == 64

    def test_invalid_grid_in_file(self, tmp_path: Path) -> None:
        """A non-2:1 grid in the file is rejected."""
        path = tmp_path / "bad.toml"
        path.write_text("width = 64\nheight = 64\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")
