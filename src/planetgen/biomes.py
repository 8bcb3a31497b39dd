"""Biome and material identifiers, their display palettes, and shading baselines."""

from enum import IntEnum

import numpy as np


class Biome(IntEnum):
    """Surface biomes, stored as uint8 ids in the biome grid."""

    OCEAN_DEEP = 0
    OCEAN_SHALLOW = 1
    BEACH = 2
    SWAMP = 3
    RIPARIAN = 4
    RAINFOREST = 5
    FOREST = 6
    TAIGA = 7
    TUNDRA = 8
    SAVANNA = 9
    SEMIARID = 10
    GRASSLAND = 11
    SHRUBLAND = 12
    DESERT = 13
    MOUNTAIN = 14
    VOLCANIC = 15
    ICE = 16
    SNOW = 17

    @property
    def is_water(self) -> bool:
        return self in _WATER_BIOMES

    @property
    def material(self) -> "Material":
        return BIOME_MATERIAL[self]


class Material(IntEnum):
    """Physical surface materials, coarser than biomes."""

    DEEP_WATER = 0
    SHALLOW_WATER = 1
    SAND = 2
    WETLAND = 3
    CANOPY = 4
    GRASS = 5
    SOIL = 6
    ROCK = 7
    BASALT = 8
    ICE = 9
    SNOW = 10


_WATER_BIOMES = frozenset({Biome.OCEAN_DEEP, Biome.OCEAN_SHALLOW})

BIOME_MATERIAL: dict[Biome, Material] = {
    Biome.OCEAN_DEEP: Material.DEEP_WATER,
    Biome.OCEAN_SHALLOW: Material.SHALLOW_WATER,
    Biome.BEACH: Material.SAND,
    Biome.SWAMP: Material.WETLAND,
    Biome.RIPARIAN: Material.WETLAND,
    Biome.RAINFOREST: Material.CANOPY,
    Biome.FOREST: Material.CANOPY,
    Biome.TAIGA: Material.CANOPY,
    Biome.TUNDRA: Material.SOIL,
    Biome.SAVANNA: Material.GRASS,
    Biome.SEMIARID: Material.SOIL,
    Biome.GRASSLAND: Material.GRASS,
    Biome.SHRUBLAND: Material.SOIL,
    Biome.DESERT: Material.SAND,
    Biome.MOUNTAIN: Material.ROCK,
    Biome.VOLCANIC: Material.BASALT,
    Biome.ICE: Material.ICE,
    Biome.SNOW: Material.SNOW,
}

# Display colors (RGB, 0-255) for the biome and material id maps
BIOME_COLORS: dict[Biome, tuple[int, int, int]] = {
    Biome.OCEAN_DEEP: (0x1A, 0x2A, 0x5A),
    Biome.OCEAN_SHALLOW: (0x2E, 0x6C, 0x88),
    Biome.BEACH: (0xE2, 0xD1, 0xA0),
    Biome.SWAMP: (0x2F, 0x4B, 0x35),
    Biome.RIPARIAN: (0x2D, 0x6C, 0x3A),
    Biome.RAINFOREST: (0x2C, 0x5E, 0x3A),
    Biome.FOREST: (0x35, 0x66, 0x3B),
    Biome.TAIGA: (0x36, 0x53, 0x38),
    Biome.TUNDRA: (0x84, 0x8F, 0x82),
    Biome.SAVANNA: (0x9C, 0x8C, 0x46),
    Biome.SEMIARID: (0x9A, 0x7B, 0x4C),
    Biome.GRASSLAND: (0x7D, 0xA6, 0x53),
    Biome.SHRUBLAND: (0x9C, 0x8B, 0x60),
    Biome.DESERT: (0xE2, 0xBF, 0x7D),
    Biome.MOUNTAIN: (0x6E, 0x6C, 0x6F),
    Biome.VOLCANIC: (0x9D, 0x40, 0x23),
    Biome.ICE: (0xE5, 0xF1, 0xF8),
    Biome.SNOW: (0xF3, 0xF6, 0xFA),
}

MATERIAL_COLORS: dict[Material, tuple[int, int, int]] = {
    Material.DEEP_WATER: (0x20, 0x30, 0x50),
    Material.SHALLOW_WATER: (0x2A, 0x6B, 0x76),
    Material.SAND: (0xE0, 0xC0, 0x7A),
    Material.WETLAND: (0x32, 0x41, 0x32),
    Material.CANOPY: (0x29, 0x53, 0x32),
    Material.GRASS: (0x5F, 0x7D, 0x3C),
    Material.SOIL: (0x85, 0x74, 0x54),
    Material.ROCK: (0x54, 0x53, 0x54),
    Material.BASALT: (0x5B, 0x2E, 0x28),
    Material.ICE: (0xDC, 0xEC, 0xF2),
    Material.SNOW: (0xE9, 0xF0, 0xF6),
}

# Per-biome shading baseline: base linear color, roughness, metallic
BIOME_SHADING: dict[Biome, tuple[tuple[float, float, float], float, float]] = {
    Biome.OCEAN_DEEP: ((0.04, 0.11, 0.25), 0.05, 0.0),
    Biome.OCEAN_SHALLOW: ((0.12, 0.32, 0.42), 0.08, 0.0),
    Biome.BEACH: ((0.78, 0.71, 0.56), 0.55, 0.0),
    Biome.SWAMP: ((0.24, 0.33, 0.24), 0.72, 0.02),
    Biome.RIPARIAN: ((0.19, 0.36, 0.24), 0.48, 0.02),
    Biome.RAINFOREST: ((0.16, 0.38, 0.22), 0.42, 0.02),
    Biome.FOREST: ((0.24, 0.45, 0.28), 0.5, 0.025),
    Biome.TAIGA: ((0.22, 0.38, 0.24), 0.56, 0.02),
    Biome.TUNDRA: ((0.53, 0.55, 0.5), 0.7, 0.01),
    Biome.SAVANNA: ((0.58, 0.52, 0.28), 0.58, 0.015),
    Biome.SEMIARID: ((0.55, 0.48, 0.32), 0.65, 0.015),
    Biome.GRASSLAND: ((0.45, 0.57, 0.32), 0.55, 0.015),
    Biome.SHRUBLAND: ((0.52, 0.48, 0.36), 0.63, 0.02),
    Biome.DESERT: ((0.78, 0.68, 0.45), 0.8, 0.008),
    Biome.MOUNTAIN: ((0.42, 0.41, 0.43), 0.72, 0.03),
    Biome.VOLCANIC: ((0.35, 0.18, 0.1), 0.4, 0.18),
    Biome.ICE: ((0.86, 0.9, 0.95), 0.78, 0.0),
    Biome.SNOW: ((0.92, 0.94, 0.97), 0.74, 0.0),
}


def _table(values: dict, width: int) -> np.ndarray:
    out = np.zeros((len(values), width), dtype=np.float64)
    for key, value in values.items():
        out[int(key)] = value
    return out


# Lookup arrays indexed by id, for vectorized gathers
BASE_COLOR_TABLE = _table({b: s[0] for b, s in BIOME_SHADING.items()}, 3)
ROUGHNESS_TABLE = _table({b: (s[1],) for b, s in BIOME_SHADING.items()}, 1)[:, 0]
METALLIC_TABLE = _table({b: (s[2],) for b, s in BIOME_SHADING.items()}, 1)[:, 0]
MATERIAL_TABLE = np.array([int(BIOME_MATERIAL[b]) for b in Biome], dtype=np.uint8)
BIOME_PALETTE = _table(BIOME_COLORS, 3).astype(np.uint8)
MATERIAL_PALETTE = _table(MATERIAL_COLORS, 3).astype(np.uint8)
