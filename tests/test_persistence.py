"""Tests for saving and loading planets."""

from pathlib import Path

import numpy as np
import pytest

from planetgen.generator import PlanetResult
from planetgen.persistence import (
    FORMAT_VERSION,
    SURFACE_PREFIX,
    config_from_metadata,
    load_planet,
    save_planet,
)


class TestSaveLoad:
    """Tests for the .npz bundle."""

    def test_round_trip_grids(self, planet: PlanetResult, tmp_path: Path) -> None:
        """Saved grids load back unchanged."""
        path = tmp_path / "planets" / "p.npz"
        save_planet(path, planet)
        grids, metadata = load_planet(path)

        np.testing.assert_array_equal(grids["height"], planet.height)
        np.testing.assert_array_equal(grids["flow_accumulation"], planet.flow.accumulation)
        np.testing.assert_array_equal(grids[SURFACE_PREFIX + "albedo"], planet.surface.albedo)
        np.testing.assert_array_equal(grids[SURFACE_PREFIX + "biome"], planet.surface.biome)
        assert "clouds" in grids and "emissive" in grids

    def test_metadata(self, planet: PlanetResult, tmp_path: Path) -> None:
        """Metadata records the seed, size, version, and full config."""
        path = tmp_path / "p.npz"
        save_planet(path, planet)
        _, metadata = load_planet(path)

        assert metadata["version"] == FORMAT_VERSION
        assert metadata["seed"] == planet.config.seed
        assert (metadata["width"], metadata["height"]) == (32, 16)
        assert "generated_at" in metadata
        assert config_from_metadata(metadata) == planet.config

    def test_missing_file(self, tmp_path: Path) -> None:
        """Loading a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_planet(tmp_path / "nope.npz")

    def test_file_without_height(self, tmp_path: Path) -> None:
        """A bundle without a height grid is rejected."""
        path = tmp_path / "bad.npz"
        np.savez_compressed(path, other=np.zeros(3))
        with pytest.raises(ValueError):
            load_planet(path)

    def test_metadata_without_config(self) -> None:
        """Metadata lacking a config cannot rebuild one."""
        with pytest.raises(ValueError):
            config_from_metadata({"seed": 1})
