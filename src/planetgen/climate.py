"""Temperature, moisture, and humidity as pure functions of position and height."""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .config import ClimateConfig
from .noise import NoiseSource


@dataclass(frozen=True)
class ClimateSample:
    """Climate grids (or scalars) for a set of cells.

    Attributes:
        temperature: In [-1, 1]; 0.7 is a warm equator at sea level.
        moisture: In [0, 1].
        humidity: In [0, 1]; moisture reduced in hot regions.
    """

    temperature: NDArray[np.float64]
    moisture: NDArray[np.float64]
    humidity: NDArray[np.float64]

    @property
    def temperature01(self) -> NDArray[np.float64]:
        """Temperature remapped to [0, 1]."""
        return np.clip((self.temperature + 1.0) * 0.5, 0.0, 1.0)


class ClimateModel:
    """Latitude/altitude temperature and noise-driven moisture.

    The moisture noise is supplied by the caller, so seeding stays under
    the pipeline's control.
    """

    def __init__(self, noise: NoiseSource, config: ClimateConfig, sea_level: float):
        self.noise = noise
        self.config = config
        self.sea_level = sea_level

    def temperature(self, height, sin_lat):
        cfg = self.config
        t = (
            cfg.base_temperature
            - cfg.temp_lat_coeff * np.abs(sin_lat)
            - cfg.temp_alt_coeff * np.maximum(0.0, height - self.sea_level)
        )
        return np.clip(t, -1.0, 1.0)

    def moisture(self, height, normals):
        """Bias + coherent noise + a valley term that grows below sea level."""
        cfg = self.config
        scale = cfg.moisture_scale
        n = self.noise.sample(normals[..., 0] * scale, normals[..., 1] * scale, normals[..., 2] * scale)
        noise01 = (n + 1.0) * 0.5
        valley = np.maximum(0.0, (self.sea_level - height) * 0.5)
        return np.clip(cfg.moisture_bias + 0.4 * noise01 + 0.4 * valley, 0.0, 1.0)

    @staticmethod
    def humidity(moisture, temperature):
        return np.clip(moisture * (0.5 + 0.5 * (1.0 - np.maximum(0.0, temperature))), 0.0, 1.0)

    def sample(
        self,
        height: NDArray[np.float64],
        sin_lat: NDArray[np.float64],
        normals: NDArray[np.float64],
    ) -> ClimateSample:
        """Evaluate the climate for matching grids.

        Args:
            height: Elevation per cell.
            sin_lat: sin(latitude), broadcastable to ``height``.
            normals: Unit normals with shape ``height.shape + (3,)``.
        """
        t = self.temperature(height, sin_lat)
        m = self.moisture(height, normals)
        return ClimateSample(t, m, self.humidity(m, t))
