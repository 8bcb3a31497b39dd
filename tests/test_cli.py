"""Tests for the command-line interface."""

import argparse
from pathlib import Path

import pytest

from planetgen.cli import build_parser, main, parse_resolution, resolve_config


class TestParseResolution:
    """Tests for WxH parsing."""

    def test_valid(self) -> None:
        """A 2:1 resolution parses."""
        assert parse_resolution("64x32") == (64, 32)
        assert parse_resolution("64X32") == (64, 32)

    @pytest.mark.parametrize("value", ["64x64", "64", "ax32", "0x0", "-4x-2"])
    def test_invalid(self, value: str) -> None:
        """Malformed or non-2:1 resolutions are rejected."""
        with pytest.raises(argparse.ArgumentTypeError):
            parse_resolution(value)


class TestResolveConfig:
    """Tests for combining preset, file, and flags."""

    def test_flags_override_preset(self) -> None:
        """Seed, resolution, and workers flags win over the preset."""
        args = build_parser().parse_args(
            ["--preset", "ice", "--seed", "3", "--resolution", "64x32", "--workers", "2"]
        )
        config = resolve_config(args)
        assert config.preset == "ice"
        assert (config.seed, config.width, config.height, config.workers) == (3, 64, 32, 2)
        assert config.terrain.sea_level == -0.1

    def test_defaults(self) -> None:
        """No flags yields the default configuration."""
        config = resolve_config(build_parser().parse_args([]))
        assert config.width == 1024 and config.height == 512

    def test_rejects_non_equirectangular_flag(self) -> None:
        """argparse refuses a non-2:1 resolution."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--resolution", "100x100"])


class TestMain:
    """End-to-end CLI runs on a tiny grid."""

    def test_generate_export_and_save(self, tmp_path: Path) -> None:
        """The CLI writes the requested maps and the bundle."""
        out = tmp_path / "maps"
        bundle = tmp_path / "planet.npz"
        main(
            [
                "--preset", "desert",
                "--resolution", "32x16",
                "--seed", "11",
                "--export", "albedo,height,biome",
                "--out", str(out),
                "--save", str(bundle),
            ]
        )
        assert sorted(p.name for p in out.iterdir()) == ["albedo.png", "biome.png", "height.png"]
        assert bundle.exists()

    def test_unknown_map_exits(self, tmp_path: Path) -> None:
        """An unknown export name is a usage error."""
        with pytest.raises(SystemExit):
            main(["--resolution", "32x16", "--export", "sparkles", "--out", str(tmp_path)])

    def test_missing_config_exits(self, tmp_path: Path) -> None:
        """A missing config file exits with status 1."""
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", str(tmp_path / "missing.toml")])
        assert excinfo.value.code == 1
