"""Main planet generation orchestration."""

import time
from collections.abc import Iterator
from contextlib import contextmanager

import numpy as np
import structlog
from numpy.typing import NDArray

from .climate import ClimateModel
from .clouds import generate_clouds
from .config import PlanetConfig, check_dimensions
from .emissive import render_emissive
from .erosion import apply_hydraulic_erosion, apply_thermal_erosion
from .flow import FlowField, compute_flow_field
from .grid import normalize_height
from .heightfield import synthesize_height
from .hydrology import detect_lakes, detect_rivers, lake_regions, smooth_rivers
from .noise import GradientNoise
from .normals import tangent_normals
from .sphere import CoordinateCache
from .surface import SurfaceData, analyze_surface
from .validation import ValidationResult, validate_planet

logger = structlog.get_logger()

# Offsets from the planet seed for independent noise fields
CLOUD_SEED_OFFSET = 1
MOISTURE_SEED_OFFSET = 42424242


class PlanetResult:
    """Result of planet generation with all intermediate data."""

    def __init__(
        self,
        config: PlanetConfig,
        height: NDArray[np.float64],
        flow: FlowField,
        rivers: NDArray[np.float32],
        lakes: NDArray[np.float32],
        lake_regions: NDArray[np.int32],
        surface: SurfaceData,
        normals: NDArray[np.float32],
        clouds: NDArray[np.float32] | None = None,
        emissive: NDArray[np.float32] | None = None,
        timings: dict[str, float] | None = None,
    ):
        self.config = config
        self.height = height
        self.flow = flow
        self.rivers = rivers
        self.lakes = lakes
        self.lake_regions = lake_regions
        self.surface = surface
        self.normals = normals
        self.clouds = clouds
        self.emissive = emissive
        self.timings = timings or {}
        self.validation: ValidationResult | None = None

    @property
    def width(self) -> int:
        return self.height.shape[1]

    @property
    def rows(self) -> int:
        return self.height.shape[0]


@contextmanager
def _stage(name: str, timings: dict[str, float]) -> Iterator[None]:
    logger.info("stage_started", stage=name)
    start = time.perf_counter()
    yield
    elapsed = time.perf_counter() - start
    timings[name] = elapsed
    logger.info("stage_finished", stage=name, seconds=round(elapsed, 3))


def generate_height(config: PlanetConfig, cache: CoordinateCache, timings: dict[str, float]) -> NDArray[np.float64]:
    """Synthesize and erode the height grid; every stage ends normalized."""
    sea_level = config.terrain.sea_level
    workers = config.workers

    with _stage("synthesis", timings):
        height = synthesize_height(config.seed, cache, config.terrain, workers)

    with _stage("thermal_erosion", timings):
        apply_thermal_erosion(height, config.thermal, workers)
        if config.thermal.iterations > 0:
            normalize_height(height, sea_level)

    with _stage("hydraulic_erosion", timings):
        apply_hydraulic_erosion(height, config.hydraulic, workers)
        if config.hydraulic.iterations > 0:
            normalize_height(height, sea_level)

    return height


def generate_planet(config: PlanetConfig) -> PlanetResult:
    """Generate a complete planet from configuration.

    Args:
        config: Planet generation configuration.

    Returns:
        PlanetResult with the final height grid, hydrology, and surface data.

    Raises:
        ConfigurationError: If the grid is not a positive 2:1 rectangle.
    """
    check_dimensions(config.width, config.height)
    logger.info(
        "planet_generation_started",
        seed=config.seed,
        width=config.width,
        height=config.height,
        preset=config.preset,
        workers=config.workers,
    )
    timings: dict[str, float] = {}
    total_start = time.perf_counter()
    sea_level = config.terrain.sea_level
    workers = config.workers

    with _stage("coordinates", timings):
        cache = CoordinateCache.for_grid(config.width, config.height)

    height = generate_height(config, cache, timings)

    with _stage("hydrology", timings):
        flow = compute_flow_field(height, workers=workers)
        hydro = config.hydrology
        if hydro.enable_rivers:
            rivers = smooth_rivers(
                detect_rivers(flow, hydro.river_threshold), hydro.river_smoothing
            )
        else:
            rivers = np.zeros(height.shape, dtype=np.float32)
        water_level = hydro.lake_threshold if hydro.lake_threshold is not None else sea_level
        lakes = detect_lakes(height, water_level)
        regions = lake_regions(lakes, hydro.lake_min_size)
        logger.info(
            "hydrology_derived",
            river_cells=int(np.count_nonzero(rivers)),
            lakes=int(regions.max()) if regions.size else 0,
        )

    with _stage("surface", timings):
        climate = ClimateModel(GradientNoise(config.seed + MOISTURE_SEED_OFFSET), config.climate, sea_level)
        surface = analyze_surface(
            height, cache, climate, config.seed, flow=flow, rivers=rivers, lakes=lakes, workers=workers
        )
        normals = tangent_normals(height, cache)

    clouds = None
    if config.clouds.enabled:
        with _stage("clouds", timings):
            clouds = generate_clouds(config.seed + CLOUD_SEED_OFFSET, cache, config.clouds, workers)

    emissive = None
    if config.emissive.kind != "none":
        with _stage("emissive", timings):
            emissive = render_emissive(height, cache, config.emissive, config.seed, sea_level)

    result = PlanetResult(
        config=config,
        height=height,
        flow=flow,
        rivers=rivers,
        lakes=lakes,
        lake_regions=regions,
        surface=surface,
        normals=normals,
        clouds=clouds,
        emissive=emissive,
        timings=timings,
    )

    with _stage("validation", timings):
        result.validation = validate_planet(result)

    logger.info(
        "planet_generation_finished",
        seconds=round(time.perf_counter() - total_start, 3),
        passed=result.validation.passed,
    )
    return result
