"""Three-layer cloud opacity (stratocumulus, altocumulus, cirrus)."""

import numpy as np
from numpy.typing import NDArray

from .config import CloudConfig
from .grid import map_row_bands
from .noise import DomainWarp, Fractal, GradientNoise
from .sphere import CoordinateCache

STRATO_SCALE = 1.5
ALTO_SCALE = 4.0
CIRRUS_SCALE = 8.0
LAYER_WEIGHTS = (0.6, 0.3, 0.1)


def _unit(values: NDArray[np.float64]) -> NDArray[np.float64]:
    return (values + 1.0) * 0.5


class CloudField:
    """Cloud density sampler for one seed.

    Stratocumulus: warped low-frequency coverage blended with billows.
    Altocumulus: ridged bands with turbulence. Cirrus: faint fine fBm.
    """

    def __init__(self, seed: int, config: CloudConfig):
        self.config = config
        self.base = GradientNoise(seed)
        self.coverage = DomainWarp(
            self.base,
            GradientNoise(seed + 10),
            GradientNoise(seed + 11),
            GradientNoise(seed + 12),
            config.warp,
        )
        self.strato_macro = Fractal(STRATO_SCALE, 2, 2.0, 0.5)
        self.strato_detail = Fractal(STRATO_SCALE * 2.5, 3, 2.0, 0.6)
        self.alto_ridges = Fractal(ALTO_SCALE, 4, 2.0, 0.6)
        self.alto_turbulence = Fractal(ALTO_SCALE * 3.0, 2, 2.0, 0.5)
        self.cirrus = Fractal(CIRRUS_SCALE, 5, 2.0, 0.5)

    def layers(self, x, y, z) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        strato = (
            _unit(self.strato_macro.fbm(self.coverage, x, y, z)) * 0.7
            + _unit(self.strato_detail.fbm(self.base, x, y, z)) * 0.3
        )
        alto = (
            _unit(self.alto_ridges.ridged(self.base, x, y, z)) * 0.6
            + _unit(self.alto_turbulence.fbm(self.base, x, y, z)) * 0.4
        )
        cirrus = _unit(self.cirrus.fbm(self.base, x, y, z)) * 0.6
        return strato, alto, cirrus

    def opacity(self, x, y, z) -> NDArray[np.float64]:
        """Blend, threshold, gamma-shape, and scale by coverage; result in [0, 1]."""
        cfg = self.config
        strato, alto, cirrus = self.layers(x, y, z)
        w_strato, w_alto, w_cirrus = LAYER_WEIGHTS
        density = w_strato * strato + w_alto * alto + w_cirrus * cirrus
        threshold = min(cfg.threshold, 1.0 - 1e-6)
        shaped = np.maximum(0.0, density - threshold) / (1.0 - threshold)
        shaped = np.power(shaped, 1.0 / max(cfg.gamma, 1e-6))
        return np.clip(shaped * cfg.coverage, 0.0, 1.0)


def generate_clouds(
    seed: int,
    cache: CoordinateCache,
    config: CloudConfig,
    workers: int = 1,
) -> NDArray[np.float32]:
    """Cloud alpha grid in [0, 1], computed in row bands."""
    field = CloudField(seed, config)
    alpha = np.zeros((cache.height, cache.width), dtype=np.float32)

    def run_band(rows: slice) -> None:
        alpha[rows] = field.opacity(*cache.band_normals(rows))

    map_row_bands(run_band, cache.height, workers)
    return alpha
