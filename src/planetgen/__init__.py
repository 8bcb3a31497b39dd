"""Procedural planet generation package.

Seed-driven terrain on a 2:1 equirectangular grid: layered noise height
synthesis, thermal and hydraulic erosion, flow routing with rivers and
lakes, climate and biome classification, and per-pixel surface maps.
"""

from .config import PlanetConfig, list_presets, load_config
from .exceptions import ConfigurationError, PlanetGenError
from .export import export_maps
from .generator import PlanetResult, generate_planet
from .persistence import load_planet, save_planet
from .surface import SurfaceData
from .validation import ValidationResult, validate_planet

__all__ = [
    "ConfigurationError",
    "PlanetConfig",
    "PlanetGenError",
    "PlanetResult",
    "SurfaceData",
    "ValidationResult",
    "export_maps",
    "generate_planet",
    "list_presets",
    "load_config",
    "load_planet",
    "save_planet",
    "validate_planet",
]
