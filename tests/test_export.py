"""Tests for PNG export."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from planetgen.exceptions import ConfigurationError
from planetgen.export import (
    ALL_MAPS,
    export_maps,
    height_to_uint16,
    parse_map_list,
    to_uint8,
)
from planetgen.generator import PlanetResult


class TestQuantize:
    """Tests for value quantization."""

    def test_to_uint8(self) -> None:
        """[0, 1] maps to 0..255 with clipping."""
        np.testing.assert_array_equal(to_uint8(np.array([-0.5, 0.0, 0.5, 1.0, 2.0])), [0, 0, 128, 255, 255])

    def test_height_to_uint16(self) -> None:
        """[-1, 1] spans the full 16-bit range."""
        np.testing.assert_array_equal(height_to_uint16(np.array([-1.0, 1.0])), [0, 65535])


class TestParseMapList:
    """Tests for the comma-separated map list."""

    def test_all(self) -> None:
        """'all' expands to every map."""
        assert parse_map_list("all") == list(ALL_MAPS)

    def test_names(self) -> None:
        """Names are trimmed and lowercased."""
        assert parse_map_list(" Albedo, height,,normal ") == ["albedo", "height", "normal"]

    def test_unknown(self) -> None:
        """Unknown names are rejected."""
        with pytest.raises(ConfigurationError):
            parse_map_list("albedo,sparkles")


class TestExportMaps:
    """Tests for writing map files."""

    def test_writes_every_map(self, planet: PlanetResult, tmp_path: Path) -> None:
        """Every map with data becomes a PNG of the grid size."""
        written = export_maps(planet, tmp_path / "maps")
        assert set(written) == set(ALL_MAPS)
        for name, path in written.items():
            assert path.name == f"{name}.png"
            with Image.open(path) as image:
                assert image.size == (32, 16)

    def test_image_modes(self, planet: PlanetResult, tmp_path: Path) -> None:
        """Height is 16-bit, albedo RGB, atmosphere RGBA, roughness grayscale."""
        written = export_maps(planet, tmp_path, ["height", "albedo", "atmosphere", "roughness"])
        with Image.open(written["height"]) as image:
            assert image.mode.startswith("I")
        with Image.open(written["albedo"]) as image:
            assert image.mode == "RGB"
        with Image.open(written["atmosphere"]) as image:
            assert image.mode == "RGBA"
        with Image.open(written["roughness"]) as image:
            assert image.mode == "L"

    def test_skips_missing_layers(self, planet: PlanetResult, tmp_path: Path) -> None:
        """Maps without data are skipped, not written."""
        bare = PlanetResult(
            planet.config,
            planet.height,
            planet.flow,
            planet.rivers,
            planet.lakes,
            planet.lake_regions,
            planet.surface,
            planet.normals,
        )
        written = export_maps(bare, tmp_path, ["clouds", "emissive", "albedo"])
        assert set(written) == {"albedo"}
        assert not (tmp_path / "clouds.png").exists()

    def test_unknown_map(self, planet: PlanetResult, tmp_path: Path) -> None:
        """Unknown names raise before anything is written."""
        with pytest.raises(ConfigurationError):
            export_maps(planet, tmp_path / "out", ["albedo", "sparkles"])
        assert not (tmp_path / "out").exists()
