"""Emissive layer: city lights near coasts or lava on high terrain."""

import numpy as np
from numpy.typing import NDArray

from .config import EmissiveConfig
from .noise import GradientNoise
from .sphere import CoordinateCache

# Sphere-space frequencies of the clustering noise
LIGHTS_SCALE = 8.0
LAVA_SCALE = 16.0


def night_lights(
    height: NDArray[np.float64],
    normals: NDArray[np.float64],
    noise: GradientNoise,
    sea_level: float,
    intensity: float,
) -> NDArray[np.float64]:
    """Warm clustered lights concentrated just above the coastline."""
    distance = np.abs(height - (sea_level + 0.1))
    coast = np.exp(-distance * distance * 5.0)
    s = LIGHTS_SCALE
    pattern = (noise.sample(normals[..., 0] * s, normals[..., 1] * s, normals[..., 2] * s) + 1.0) * 0.5
    emission = np.power(np.clip(coast * pattern * intensity, 0.0, 1.0), 0.4)

    rgba = np.zeros(height.shape + (4,))
    rgba[..., 0] = np.minimum(1.0, 1.0 + 0.2 * (pattern - 0.5))
    rgba[..., 1] = (200.0 / 255.0) * np.minimum(1.0, 1.0 + 0.1 * (pattern - 0.5))
    rgba[..., 2] = (100.0 / 255.0) * np.minimum(1.0, 1.0 - 0.2 * (pattern - 0.5))
    rgba[..., 3] = emission
    rgba[emission <= 0.01] = 0.0
    return rgba


def lava(
    height: NDArray[np.float64],
    normals: NDArray[np.float64],
    noise: GradientNoise,
    threshold: float,
    intensity: float,
) -> NDArray[np.float64]:
    """Ridged lava channels on terrain above ``threshold``, hotter = whiter."""
    s = LAVA_SCALE
    ridges = 1.0 - np.abs(noise.sample(normals[..., 0] * s, normals[..., 1] * s, normals[..., 2] * s))
    elevation = np.maximum(0.0, height - threshold) / max(1.0 - threshold, 1e-6)
    emission = np.clip(elevation * ridges * intensity, 0.0, 1.0)

    rgba = np.zeros(height.shape + (4,))
    rgba[..., 0] = np.minimum(255.0, 200.0 + 55.0 * emission) / 255.0
    rgba[..., 1] = np.minimum(255.0, 100.0 * emission) / 255.0
    rgba[..., 2] = np.minimum(255.0, 50.0 * emission * emission) / 255.0
    rgba[..., 3] = emission
    rgba[emission <= 0.05] = 0.0
    return rgba


def render_emissive(
    height: NDArray[np.float64],
    cache: CoordinateCache,
    config: EmissiveConfig,
    seed: int,
    sea_level: float,
) -> NDArray[np.float32] | None:
    """RGBA emission in [0, 1], or ``None`` when the kind is ``none``."""
    if config.kind == "none":
        return None
    noise = GradientNoise(seed)
    if config.kind == "night_lights":
        rgba = night_lights(height, cache.normals, noise, sea_level, config.intensity)
    else:
        rgba = lava(height, cache.normals, noise, config.threshold, config.intensity)
    return np.clip(rgba, 0.0, 1.0).astype(np.float32)
