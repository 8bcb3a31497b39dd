"""Height field synthesis: continental, mountain, and detail layers.

Each row band reads the shared (read-only) noise generators and the
coordinate cache, writes only its own rows, and reports its own min/max.
The band extremes are merged on the calling thread before normalizing,
so the result is identical for any worker count.
"""

import numpy as np
import structlog
from numpy.typing import NDArray

from .config import TerrainConfig
from .grid import map_row_bands, normalize_height
from .noise import DomainWarp, Fractal, GradientNoise, NoiseSource
from .sphere import CoordinateCache

logger = structlog.get_logger()

# Finite-difference step for the slope estimate, in normal-vector units
SLOPE_DELTA = 0.01


def estimate_slope(
    noise: NoiseSource,
    x: NDArray[np.float64],
    y: NDArray[np.float64],
    z: NDArray[np.float64],
    scale: float,
    delta: float = SLOPE_DELTA,
) -> NDArray[np.float64]:
    """Forward-difference gradient magnitude of ``noise`` at ``scale``."""
    h0 = noise.sample(x * scale, y * scale, z * scale)
    dx = noise.sample((x + delta) * scale, y * scale, z * scale) - h0
    dy = noise.sample(x * scale, (y + delta) * scale, z * scale) - h0
    dz = noise.sample(x * scale, y * scale, (z + delta) * scale) - h0
    return np.sqrt(dx * dx + dy * dy + dz * dz) / delta


class HeightSynthesizer:
    """Evaluates the layered terrain function on bands of the sphere grid."""

    def __init__(self, seed: int, config: TerrainConfig):
        self.config = config
        self.base = GradientNoise(seed)
        self.warped = DomainWarp(
            self.base,
            GradientNoise(seed + 1),
            GradientNoise(seed + 2),
            GradientNoise(seed + 3),
            config.warp_amplitude,
        )
        scale = config.continent_scale
        self.continent = Fractal(scale, config.continent_octaves, config.lacunarity, config.gain)
        self.mountains = Fractal(
            scale * 1.5, config.mountain_octaves, config.lacunarity, config.mountain_gain
        )
        self.detail = Fractal(scale * 3.0, config.detail_octaves, config.lacunarity, config.gain)

    def layers(
        self,
        x: NDArray[np.float64],
        y: NDArray[np.float64],
        z: NDArray[np.float64],
    ) -> dict[str, NDArray[np.float64]]:
        """Evaluate each layer separately at the given unit normals."""
        cfg = self.config
        continent = self.continent.fbm(self.warped, x, y, z)
        ridges = self.mountains.ridged(self.base, x, y, z)
        mountains = ridges * cfg.mountain_intensity * np.maximum(0.0, continent)
        slope = estimate_slope(self.base, x, y, z, cfg.continent_scale)
        slope_mask = np.maximum(0.0, slope) ** cfg.slope_exponent
        detail = self.detail.fbm(self.base, x, y, z) * 0.15 * slope_mask
        return {"continent": continent, "mountains": mountains, "detail": detail}

    def raw(
        self,
        x: NDArray[np.float64],
        y: NDArray[np.float64],
        z: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """Weighted layer sum before normalization."""
        cfg = self.config
        parts = self.layers(x, y, z)
        return (
            cfg.continent_weight * parts["continent"]
            + cfg.mountain_weight * parts["mountains"]
            + cfg.detail_weight * parts["detail"]
        )


def synthesize_height(
    seed: int,
    cache: CoordinateCache,
    config: TerrainConfig,
    workers: int = 1,
) -> NDArray[np.float64]:
    """Generate a normalized height grid for one planet.

    Args:
        seed: Generation seed; the warp fields use seed + 1..3.
        cache: Coordinate cache for the target grid.
        config: Terrain parameters.
        workers: Number of row-band threads.

    Returns:
        float64 grid of shape (H, W) in [-1, 1], sea level already subtracted.
    """
    synth = HeightSynthesizer(seed, config)
    height = np.empty((cache.height, cache.width), dtype=np.float64)

    def run_band(rows: slice) -> tuple[float, float]:
        x, y, z = cache.band_normals(rows)
        band = synth.raw(x, y, z)
        height[rows] = band
        return float(band.min()), float(band.max())

    extremes = map_row_bands(run_band, cache.height, workers)
    lo = min(e[0] for e in extremes)
    hi = max(e[1] for e in extremes)
    logger.debug("height_raw_range", min=lo, max=hi, bands=len(extremes))

    return normalize_height(height, config.sea_level, bounds=(lo, hi))
