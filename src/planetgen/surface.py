"""Surface analysis: climate, biomes, and physically based material channels."""

from dataclasses import dataclass, fields

import numpy as np
import structlog
from numpy.typing import NDArray

from .biomes import MATERIAL_TABLE
from .classification import (
    classify_biomes,
    compute_atmosphere_mask,
    compute_snow,
    compute_vegetation,
    shade_biomes,
)
from .climate import ClimateModel
from .flow import FlowField, compute_flow_field
from .grid import clamp01, map_row_bands
from .hydrology import detect_lakes, detect_rivers, smooth_rivers
from .noise import GradientNoise
from .occlusion import ambient_occlusion
from .sphere import CoordinateCache

logger = structlog.get_logger()

# Seed mixers for the per-texel detail and macro variation noise
DETAIL_SEED_MIX = 0x9E3779B97F4A7C15
MACRO_SEED_MIX = 0xC6BC279692B5CC83
DETAIL_SCALE = 6.0
MACRO_SCALE = 1.25

SURFACE_RIVER_THRESHOLD = 0.35
SURFACE_RIVER_SMOOTHING = 1


@dataclass(frozen=True)
class SurfaceData:
    """Per-pixel surface channels for one planet.

    Scalar channels are float32 (H, W) grids in [0, 1]. Colors are float32
    in [0, 1]: ``albedo`` and ``ocean_shading`` are RGB, ``atmosphere_color``
    is RGBA with alpha = atmosphere mask * 210/255. ``biome`` and
    ``material`` hold uint8 ids.
    """

    width: int
    height: int
    sea_level: float
    albedo: NDArray[np.float32]
    roughness: NDArray[np.float32]
    metallic: NDArray[np.float32]
    ao: NDArray[np.float32]
    vegetation: NDArray[np.float32]
    snow: NDArray[np.float32]
    detail: NDArray[np.float32]
    ocean_specular: NDArray[np.float32]
    atmosphere_mask: NDArray[np.float32]
    water_depth: NDArray[np.float32]
    ocean_shading: NDArray[np.float32]
    atmosphere_color: NDArray[np.float32]
    biome: NDArray[np.uint8]
    material: NDArray[np.uint8]

    SCALAR_CHANNELS = (
        "roughness",
        "metallic",
        "ao",
        "vegetation",
        "snow",
        "detail",
        "ocean_specular",
        "atmosphere_mask",
        "water_depth",
    )
    COLOR_CHANNELS = ("albedo", "ocean_shading", "atmosphere_color")

    def scalar_channels(self) -> dict[str, NDArray[np.float32]]:
        return {name: getattr(self, name) for name in self.SCALAR_CHANNELS}

    def arrays(self) -> dict[str, NDArray]:
        """All grids by field name."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if isinstance(getattr(self, f.name), np.ndarray)
        }


def analyze_surface(
    height: NDArray[np.float64],
    cache: CoordinateCache,
    climate: ClimateModel,
    seed: int,
    flow: FlowField | None = None,
    rivers: NDArray[np.float32] | None = None,
    lakes: NDArray[np.float32] | None = None,
    workers: int = 1,
) -> SurfaceData:
    """Derive every surface channel from the final height grid.

    Args:
        height: Final elevation grid in [-1, 1].
        cache: Coordinate cache for the grid.
        climate: Climate model (carries the sea level and moisture noise).
        seed: Generation seed, mixed into the detail and macro noise seeds.
        flow: Flow field of ``height``; computed if omitted.
        rivers: River strength; derived from ``flow`` if omitted.
        lakes: Lake strength; derived at the sea level if omitted.
        workers: Row-band threads.

    Returns:
        Immutable SurfaceData.
    """
    rows, cols = height.shape
    sea_level = climate.sea_level
    if flow is None:
        flow = compute_flow_field(height, workers=workers)
    if rivers is None:
        rivers = smooth_rivers(detect_rivers(flow, SURFACE_RIVER_THRESHOLD), SURFACE_RIVER_SMOOTHING)
    if lakes is None:
        lakes = detect_lakes(height, sea_level)

    detail_noise = GradientNoise(seed ^ DETAIL_SEED_MIX)
    macro_noise = GradientNoise(seed ^ MACRO_SEED_MIX)
    relief_ao = ambient_occlusion(height)

    out = {name: np.zeros((rows, cols), dtype=np.float32) for name in SurfaceData.SCALAR_CHANNELS}
    out["albedo"] = np.zeros((rows, cols, 3), dtype=np.float32)
    out["ocean_shading"] = np.zeros((rows, cols, 3), dtype=np.float32)
    out["atmosphere_color"] = np.zeros((rows, cols, 4), dtype=np.float32)
    out["biome"] = np.zeros((rows, cols), dtype=np.uint8)
    out["material"] = np.zeros((rows, cols), dtype=np.uint8)

    def run_band(band: slice) -> None:
        h = height[band]
        normals = cache.normals[band]
        lat = np.broadcast_to(cache.lats[band, None], h.shape)
        abs_sin_lat = np.abs(np.broadcast_to(cache.sin_lat[band, None], h.shape))
        is_water = h < sea_level

        slope = clamp01(flow.slope[band])
        river = clamp01(rivers[band].astype(np.float64))
        lake = clamp01(lakes[band].astype(np.float64))
        water_depth = np.where(is_water, sea_level - h, 0.0)

        sample = climate.sample(h, abs_sin_lat, normals)
        temp = sample.temperature01
        moisture = clamp01(sample.moisture)
        humidity = clamp01(sample.humidity)

        nx, ny, nz = normals[..., 0], normals[..., 1], normals[..., 2]
        detail = (detail_noise.sample(nx * DETAIL_SCALE, ny * DETAIL_SCALE, nz * DETAIL_SCALE) + 1.0) * 0.5
        macro = (macro_noise.sample(nx * MACRO_SCALE, ny * MACRO_SCALE, nz * MACRO_SCALE) + 1.0) * 0.5

        vegetation = compute_vegetation(temp, moisture, slope, river, lake)
        snow = compute_snow(temp, h, sea_level, slope, abs_sin_lat)
        biome = classify_biomes(
            is_water, temp, moisture, slope, river, lake, snow, h, sea_level, macro
        )
        shading = shade_biomes(
            biome, is_water, vegetation, snow, detail, macro, river, water_depth, lat
        )
        atmosphere = compute_atmosphere_mask(h, sea_level, temp, humidity, abs_sin_lat)

        out["roughness"][band] = shading.roughness
        out["metallic"][band] = shading.metallic
        out["ao"][band] = clamp01(relief_ao[band] * 0.6 + (1.0 - slope * 0.8) * 0.4)
        out["vegetation"][band] = vegetation
        out["snow"][band] = snow
        out["detail"][band] = clamp01(detail)
        out["ocean_specular"][band] = shading.ocean_specular
        out["atmosphere_mask"][band] = atmosphere
        out["water_depth"][band] = clamp01(water_depth)
        out["albedo"][band] = shading.albedo
        out["ocean_shading"][band] = shading.ocean_color
        out["atmosphere_color"][band, ..., :3] = shading.atmosphere_color
        out["atmosphere_color"][band, ..., 3] = clamp01(atmosphere * 210.0 / 255.0)
        out["biome"][band] = biome
        out["material"][band] = MATERIAL_TABLE[biome]

    map_row_bands(run_band, rows, workers)

    biome_counts = np.bincount(out["biome"].ravel(), minlength=1)
    logger.debug("surface_analyzed", biomes=int(np.count_nonzero(biome_counts)))

    for arr in out.values():
        arr.setflags(write=False)
    return SurfaceData(width=cols, height=rows, sea_level=sea_level, **out)
