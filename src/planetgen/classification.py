"""Biome classification and per-biome surface shading (vectorized).

Every function is total: inputs are clamped where they enter a formula
and every output is clipped to its valid range.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .biomes import BASE_COLOR_TABLE, METALLIC_TABLE, ROUGHNESS_TABLE, Biome
from .grid import clamp01

VEGETATION_TINT = np.array([0.18, 0.32, 0.18])
SNOW_TINT = np.array([0.96, 0.97, 0.98])
DETAIL_CHANNEL_WEIGHTS = np.array([1.0, 0.8, 0.6])


def compute_vegetation(temp, moisture, slope, river, lake):
    """Vegetation density in [0, 1]; peaks near temperate, wet, flat ground."""
    thermal = clamp01(1.0 - np.abs(temp - 0.65) * 1.4)
    base = clamp01(moisture * thermal)
    water_boost = clamp01(river * 0.6 + lake * 0.4)
    slope_penalty = 1.0 - clamp01(slope * 1.5)
    return clamp01(base * slope_penalty + water_boost * 0.4)


def compute_snow(temp, height, sea_level, slope, abs_sin_lat):
    """Snow coverage in [0, 1] from altitude, polar latitude, and cold."""
    altitude = clamp01((height - sea_level) * 1.4)
    polar = clamp01((abs_sin_lat - 0.65) * 1.2)
    cold = clamp01((0.18 - temp) * 2.0)
    slope_penalty = 1.0 - clamp01(slope * 1.1)
    return clamp01(np.maximum(np.maximum(altitude, polar), cold) * slope_penalty)


def compute_atmosphere_mask(height, sea_level, temp, humidity, abs_sin_lat):
    """Haze strength in [0, 1]."""
    altitude = clamp01((height - sea_level) * 0.9)
    polar_glow = clamp01((abs_sin_lat - 0.55) * 0.9)
    dryness = clamp01(1.0 - humidity)
    cold = clamp01((0.35 - temp) * 1.1)
    return clamp01(np.maximum(altitude * 0.45 + dryness * 0.15, polar_glow * 0.35 + cold * 0.25))


def classify_biomes(
    is_water: NDArray[np.bool_],
    temp: NDArray[np.float64],
    moisture: NDArray[np.float64],
    slope: NDArray[np.float64],
    river: NDArray[np.float64],
    lake: NDArray[np.float64],
    snow: NDArray[np.float64],
    height: NDArray[np.float64],
    sea_level: float,
    macro: NDArray[np.float64],
) -> NDArray[np.uint8]:
    """Pick a biome per cell with a fixed-priority decision list.

    Args:
        is_water: Cells below sea level.
        temp: Temperature remapped to [0, 1].
        moisture: Moisture in [0, 1].
        slope: Steepest-descent slope, clamped to [0, 1].
        river: River strength in [0, 1].
        lake: Lake strength in [0, 1].
        snow: Snow coverage in [0, 1].
        height: Elevation.
        sea_level: Water level of the planet.
        macro: Large-scale variation noise in [0, 1].

    Returns:
        uint8 Biome ids.
    """
    land = ~is_water
    cold = temp < 0.25
    cool = temp < 0.5
    conditions = [
        is_water & (height < sea_level - 0.18),
        is_water & (height < sea_level - 0.04),
        is_water,
        land & (snow > 0.6) & cold,
        land & (snow > 0.6),
        lake > 0.4,
        (river > 0.5) & (moisture > 0.5),
        (slope > 0.75) | (height > sea_level + 0.55),
        cold & (moisture > 0.45),
        cold,
        cool & (moisture > 0.6),
        cool & (moisture > 0.35),
        cool,
        moisture > 0.75,
        moisture > 0.55,
        moisture > 0.35,
        (temp > 0.8) & (macro > 0.6),
    ]
    choices = [
        Biome.OCEAN_DEEP,
        Biome.OCEAN_SHALLOW,
        Biome.BEACH,
        Biome.SNOW,
        Biome.ICE,
        Biome.SWAMP,
        Biome.RIPARIAN,
        Biome.MOUNTAIN,
        Biome.TAIGA,
        Biome.TUNDRA,
        Biome.FOREST,
        Biome.GRASSLAND,
        Biome.SHRUBLAND,
        Biome.RAINFOREST,
        Biome.SAVANNA,
        Biome.SEMIARID,
        Biome.VOLCANIC,
    ]
    return np.select(conditions, [int(c) for c in choices], default=int(Biome.DESERT)).astype(np.uint8)


@dataclass
class Shading:
    """Shaded surface channels; colors are (H, W, 3) in [0, 1]."""

    albedo: NDArray[np.float64]
    roughness: NDArray[np.float64]
    metallic: NDArray[np.float64]
    ocean_specular: NDArray[np.float64]
    ocean_color: NDArray[np.float64]
    atmosphere_color: NDArray[np.float64]


def _mix(a: NDArray, b: NDArray, t: NDArray) -> NDArray:
    return a * (1.0 - t) + b * t


def _rgb(r, g, b) -> NDArray[np.float64]:
    return np.stack(np.broadcast_arrays(r, g, b), axis=-1)


def shade_biomes(
    biome: NDArray[np.uint8],
    is_water: NDArray[np.bool_],
    vegetation: NDArray[np.float64],
    snow: NDArray[np.float64],
    detail: NDArray[np.float64],
    macro: NDArray[np.float64],
    river: NDArray[np.float64],
    water_depth: NDArray[np.float64],
    lat: NDArray[np.float64],
) -> Shading:
    """Turn biome ids into albedo, roughness, metallic, and ocean/atmosphere colors.

    Starts from each biome's baseline, applies the biome's own variation
    (depth for oceans, detail noise for sand and rock, and so on), then the
    shared modifiers in order: vegetation tint, snow whitening, detail
    jitter, polar desaturation.
    """
    color = BASE_COLOR_TABLE[biome].copy()
    roughness = ROUGHNESS_TABLE[biome].copy()
    metallic = METALLIC_TABLE[biome].copy()
    ocean_specular = np.zeros(biome.shape)
    ocean_color = np.zeros(biome.shape + (3,))
    lat = np.broadcast_to(lat, biome.shape)
    sin_lat = np.abs(np.sin(lat))
    cos2 = np.cos(lat) ** 2

    def where(b: Biome) -> NDArray[np.bool_]:
        return biome == int(b)

    def add(mask: NDArray[np.bool_], offset: NDArray[np.float64]) -> None:
        color[mask] += offset[mask]

    m = where(Biome.OCEAN_DEEP)
    depth = clamp01(water_depth / 0.5)
    shallow_part = 1.0 - depth
    deep = _rgb(
        0.04 + 0.03 * shallow_part,
        0.11 + 0.18 * shallow_part,
        0.25 + 0.4 * shallow_part + clamp01(sin_lat * 0.6) * 0.12,
    )
    color[m] = deep[m]
    roughness[m] = 0.05 + 0.05 * depth[m]
    specular = clamp01(0.25 + cos2 * 0.55)
    ocean_specular[m] = specular[m]
    ocean_color[m] = (deep + specular[..., None] * np.array([40.0, 50.0, 80.0]) / 255.0)[m]

    m = where(Biome.OCEAN_SHALLOW)
    depth = clamp01(water_depth / 0.2)
    shallow_part = 1.0 - depth
    coast = _rgb(0.12 + 0.08 * shallow_part, 0.32 + 0.25 * shallow_part, 0.42 + 0.35 * shallow_part)
    color[m] = coast[m]
    specular = clamp01(0.35 + cos2 * 0.45)
    ocean_specular[m] = specular[m]
    ocean_color[m] = (coast + specular[..., None] * np.array([30.0, 40.0, 60.0]) / 255.0)[m]

    add(where(Biome.BEACH), _rgb(detail * 0.06, detail * 0.04, detail * 0.02))
    zero = np.zeros(biome.shape)
    add(where(Biome.SWAMP), _rgb(zero, vegetation * 0.2, zero))
    add(where(Biome.RIPARIAN), _rgb(zero, river * 0.15, zero))
    add(where(Biome.RAINFOREST), _rgb(zero, vegetation * 0.2, vegetation * 0.1))
    add(where(Biome.FOREST), _rgb(zero, vegetation * 0.1, vegetation * 0.05))
    add(where(Biome.TAIGA), _rgb(zero, snow * 0.2, snow * 0.05))
    add(where(Biome.TUNDRA), _rgb(vegetation * 0.05, vegetation * 0.08, zero))
    add(where(Biome.SAVANNA), _rgb(zero, vegetation * 0.1, zero))
    add(where(Biome.GRASSLAND), _rgb(zero, vegetation * 0.12, zero))
    add(where(Biome.DESERT), _rgb(detail * 0.08, detail * 0.05, detail * 0.03))
    add(where(Biome.MOUNTAIN), _rgb(detail * 0.08, detail * 0.08, detail * 0.08))
    glow = clamp01(macro * 0.6)
    add(where(Biome.VOLCANIC), _rgb(macro * 0.2 + glow * 0.4, glow * 0.1, zero))

    land = ~is_water
    tint = np.where(land, vegetation * 0.6, 0.0)[..., None]
    color = _mix(color, VEGETATION_TINT, tint)
    color = _mix(color, SNOW_TINT, np.maximum(snow, 0.0)[..., None])

    strength = np.where(is_water, 0.02, 0.08)
    offset = ((detail - 0.5) * strength)[..., None] * DETAIL_CHANNEL_WEIGHTS
    color = clamp01(color + offset)

    polar = clamp01(sin_lat * 0.9 - 0.45)
    desat = np.where(land, polar * 0.1, 0.0)[..., None]
    color = _mix(color, color.mean(axis=-1, keepdims=True), desat)

    # Land and beaches take their final albedo as ocean shading
    unset = ~(where(Biome.OCEAN_DEEP) | where(Biome.OCEAN_SHALLOW))
    ocean_color[unset] = color[unset]

    atmosphere = _rgb(0.3 + polar * 0.08, 0.42 + polar * 0.12, 0.65 + polar * 0.1)

    return Shading(
        albedo=clamp01(color),
        roughness=clamp01(roughness),
        metallic=clamp01(metallic),
        ocean_specular=clamp01(ocean_specular),
        ocean_color=clamp01(ocean_color),
        atmosphere_color=clamp01(atmosphere),
    )
