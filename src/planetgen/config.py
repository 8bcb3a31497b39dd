"""Planet generation configuration models and built-in presets."""

import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from .exceptions import ConfigurationError


class TerrainConfig(BaseModel):
    """Height field synthesis parameters."""

    sea_level: float = Field(default=0.02, description="Offset subtracted after normalization")
    continent_scale: float = Field(default=2.2, description="Base frequency of continental noise")
    mountain_intensity: float = Field(default=0.9, description="Ridged mountain strength")
    continent_octaves: int = Field(default=2, description="Octaves for continental fBm")
    mountain_octaves: int = Field(default=4, description="Octaves for ridged mountains")
    detail_octaves: int = Field(default=3, description="Octaves for detail fBm")
    lacunarity: float = Field(default=2.0, description="Frequency multiplier per octave")
    gain: float = Field(default=0.5, description="Amplitude multiplier per octave")
    mountain_gain: float = Field(default=0.6, description="Amplitude multiplier for ridges")
    warp_amplitude: float = Field(default=0.08, description="Domain warp displacement")
    slope_exponent: float = Field(
        default=2.0, ge=1.0, description="Power applied to the detail slope mask"
    )
    continent_weight: float = Field(default=0.6, description="Continental layer weight")
    mountain_weight: float = Field(default=0.3, description="Mountain layer weight")
    detail_weight: float = Field(default=0.1, description="Detail layer weight")


class ThermalConfig(BaseModel):
    """Thermal (talus) erosion parameters."""

    iterations: int = Field(default=20, description="Number of diffusion passes")
    talus: float = Field(default=0.55, description="Height difference before material slides")
    rate: float = Field(default=0.15, ge=0.0, le=1.0, description="Fraction of excess moved per pass")
    neighbors: Literal[4, 8] = Field(default=4, description="Stencil size")


class HydraulicConfig(BaseModel):
    """Hydraulic erosion parameters shared by both strategies."""

    method: Literal["steepest_descent", "shallow_water"] = Field(
        default="steepest_descent", description="Erosion strategy"
    )
    iterations: int = Field(default=60, description="Number of rainfall cycles")
    rainfall: float = Field(default=0.6, description="Water added per cell per cycle")
    evaporation: float = Field(default=0.1, description="Fraction of water lost per cycle")
    min_water: float = Field(default=0.001, description="Below this a cell counts as dry")
    capacity_factor: float = Field(default=0.01, description="Sediment capacity coefficient")
    min_slope: float = Field(default=0.001, description="Slope floor for capacity")
    min_capacity: float = Field(default=0.0001, description="Capacity floor")
    erosion_rate: float = Field(default=0.1, description="Fraction of capacity deficit eroded")
    deposition_rate: float = Field(default=0.1, description="Fraction of excess deposited")
    max_erosion: float = Field(default=0.05, description="Bed lowering cap per cell per cycle")

    # Shallow-water (virtual pipe) lattice
    time_step: float = Field(default=0.1, description="Integration step")
    gravity: float = Field(default=9.81, description="Gravitational acceleration")
    pipe_area: float = Field(default=1.0, description="Cross-section of each virtual pipe")


class ClimateConfig(BaseModel):
    """Temperature and moisture coefficients."""

    base_temperature: float = Field(default=0.7, description="Equatorial temperature")
    temp_lat_coeff: float = Field(default=1.2, description="Cooling by |sin(lat)|")
    temp_alt_coeff: float = Field(default=0.9, description="Cooling by altitude above sea")
    moisture_bias: float = Field(default=0.1, description="Base moisture level")
    moisture_scale: float = Field(default=3.0, description="Frequency of moisture noise")


class HydrologyConfig(BaseModel):
    """River and lake derivation parameters."""

    enable_rivers: bool = Field(default=True, description="Derive river strength")
    river_threshold: float = Field(default=0.35, description="Normalized accumulation cutoff")
    river_smoothing: int = Field(default=1, description="Box filter radius for rivers")
    lake_threshold: float | None = Field(
        default=None, description="Lake water level (None = sea level)"
    )
    lake_min_size: int = Field(default=4, description="Smallest lake region kept")


class CloudConfig(BaseModel):
    """Cloud layer coefficients (rendered outside the terrain core)."""

    enabled: bool = Field(default=True, description="Generate the cloud alpha layer")
    coverage: float = Field(default=0.55, description="Overall opacity scale")
    warp: float = Field(default=0.25, description="Domain warp of the coverage noise")
    gamma: float = Field(default=2.4, description="Edge softness")
    threshold: float = Field(default=0.3, description="Density below which sky is clear")


class EmissiveConfig(BaseModel):
    """Night lights or lava glow."""

    kind: Literal["none", "night_lights", "lava"] = Field(
        default="none", description="Emissive pattern"
    )
    intensity: float = Field(default=0.5, description="Emission strength")
    threshold: float = Field(default=0.3, description="Elevation where lava starts")


def check_dimensions(width: int, height: int) -> None:
    """Reject grid sizes that are not positive and 2:1.

    Raises:
        ConfigurationError: If either dimension is non-positive or W != 2H.
    """
    if width <= 0 or height <= 0:
        raise ConfigurationError(
            f"Grid dimensions must be positive, got {width}x{height}"
        )
    if width != 2 * height:
        raise ConfigurationError(
            f"Grid must be 2:1 equirectangular, got {width}x{height}"
        )


class PlanetConfig(BaseModel):
    """Complete planet generation configuration."""

    seed: int = Field(default=123456, description="64-bit generation seed")
    width: int = Field(default=1024, description="Grid width in pixels")
    height: int = Field(default=512, description="Grid height in pixels")
    workers: int = Field(default=1, ge=1, description="Row-band worker threads")
    preset: str | None = Field(default=None, description="Preset the values came from")

    terrain: TerrainConfig = Field(default_factory=TerrainConfig)
    thermal: ThermalConfig = Field(default_factory=ThermalConfig)
    hydraulic: HydraulicConfig = Field(default_factory=HydraulicConfig)
    climate: ClimateConfig = Field(default_factory=ClimateConfig)
    hydrology: HydrologyConfig = Field(default_factory=HydrologyConfig)
    clouds: CloudConfig = Field(default_factory=CloudConfig)
    emissive: EmissiveConfig = Field(default_factory=EmissiveConfig)

    @model_validator(mode="after")
    def _check_grid(self) -> "PlanetConfig":
        check_dimensions(self.width, self.height)
        return self

    @classmethod
    def from_preset(cls, name: str, **overrides: Any) -> "PlanetConfig":
        """Build a config from a named preset.

        Args:
            name: One of the names in PRESETS (case-insensitive).
            **overrides: Top-level fields or whole sections that replace
                the preset's values.

        Returns:
            Validated PlanetConfig.

        Raises:
            ConfigurationError: If the preset name is unknown.
        """
        data = preset_data(name)
        _deep_update(data, overrides)
        return cls.model_validate(data)


# Named presets. Only the values that differ from the defaults matter,
# but each preset lists its full terrain/erosion/climate character.
PRESETS: dict[str, dict[str, Any]] = {
    "earthlike": {
        "terrain": {"sea_level": 0.02, "continent_scale": 2.2, "mountain_intensity": 0.9},
        "thermal": {"iterations": 8, "talus": 0.55, "rate": 0.15},
        "hydraulic": {"iterations": 15, "rainfall": 0.6, "evaporation": 0.1},
        "climate": {"temp_lat_coeff": 1.2, "temp_alt_coeff": 0.9, "moisture_bias": 0.1},
        "clouds": {"coverage": 0.55, "warp": 0.25, "gamma": 2.4},
        "emissive": {"kind": "night_lights", "intensity": 0.3},
        "hydrology": {"enable_rivers": True, "river_threshold": 0.3},
    },
    "desert": {
        "terrain": {"sea_level": 0.05, "continent_scale": 2.5, "mountain_intensity": 0.6},
        "thermal": {"iterations": 6, "talus": 0.55, "rate": 0.15},
        "hydraulic": {"iterations": 10, "rainfall": 0.2, "evaporation": 0.3},
        "climate": {"temp_lat_coeff": 0.8, "temp_alt_coeff": 1.1, "moisture_bias": -0.3},
        "clouds": {"coverage": 0.2, "warp": 0.15, "gamma": 2.0},
        "emissive": {"kind": "night_lights", "intensity": 0.2},
        "hydrology": {"enable_rivers": False},
    },
    "ice": {
        "terrain": {"sea_level": -0.1, "continent_scale": 1.8, "mountain_intensity": 1.2},
        "thermal": {"iterations": 12, "talus": 0.55, "rate": 0.15},
        "hydraulic": {"iterations": 20, "rainfall": 0.4, "evaporation": 0.05},
        "climate": {"temp_lat_coeff": 1.5, "temp_alt_coeff": 1.3, "moisture_bias": 0.2},
        "clouds": {"coverage": 0.7, "warp": 0.3, "gamma": 2.6},
        "emissive": {"kind": "night_lights", "intensity": 0.2},
        "hydrology": {"enable_rivers": False},
    },
    "lava": {
        "terrain": {"sea_level": 0.0, "continent_scale": 2.0, "mountain_intensity": 1.5},
        "thermal": {"iterations": 10, "talus": 0.55, "rate": 0.15},
        "hydraulic": {"iterations": 12, "rainfall": 0.1, "evaporation": 0.2},
        "climate": {"temp_lat_coeff": 0.5, "temp_alt_coeff": 0.5, "moisture_bias": -0.5},
        "clouds": {"coverage": 0.1, "warp": 0.1, "gamma": 1.8},
        "emissive": {"kind": "lava", "intensity": 0.8},
        "hydrology": {"enable_rivers": False},
    },
    "alien": {
        "terrain": {"sea_level": 0.03, "continent_scale": 3.0, "mountain_intensity": 1.1},
        "thermal": {"iterations": 7, "talus": 0.55, "rate": 0.15},
        "hydraulic": {"iterations": 14, "rainfall": 0.65, "evaporation": 0.08},
        "climate": {"temp_lat_coeff": 0.9, "temp_alt_coeff": 0.8, "moisture_bias": 0.15},
        "clouds": {"coverage": 0.6, "warp": 0.4, "gamma": 2.2},
        "emissive": {"kind": "night_lights", "intensity": 0.4},
        "hydrology": {"enable_rivers": True, "river_threshold": 0.25},
    },
}


def list_presets() -> list[str]:
    """List available preset names."""
    return sorted(PRESETS)


def preset_data(name: str) -> dict[str, Any]:
    """Return a fresh, mutable copy of a preset's raw values.

    Raises:
        ConfigurationError: If the preset name is unknown.
    """
    key = name.lower()
    if key not in PRESETS:
        raise ConfigurationError(
            f"Unknown preset '{name}'. Available presets: {list_presets()}"
        )
    data: dict[str, Any] = {"preset": key}
    _deep_update(data, PRESETS[key])
    return data


def load_config(config_path: Path, preset: str | None = None) -> PlanetConfig:
    """Load configuration from a TOML file.

    A top-level ``preset`` key seeds the values; everything else in the
    file overrides the preset.

    Args:
        config_path: Path to the TOML config file.
        preset: Preset to seed from, taking precedence over the file's own
            ``preset`` key.

    Returns:
        Parsed PlanetConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If values are invalid (including W != 2H).
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    file_preset = data.pop("preset", None)
    preset = preset or file_preset
    if preset:
        merged = preset_data(preset)
        _deep_update(merged, data)
        data = merged
    return PlanetConfig.model_validate(data)


def _deep_update(target: dict[str, Any], updates: dict[str, Any]) -> None:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        elif isinstance(value, dict):
            target[key] = {}
            _deep_update(target[key], value)
        else:
            target[key] = value
