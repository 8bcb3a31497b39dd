"""Ambient occlusion estimated from local slope and surrounding relief."""

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from .grid import central_gradient, neighbor


def slope_occlusion(height: NDArray[np.float64]) -> NDArray[np.float64]:
    """Brightness falling off with gradient magnitude (1 = unoccluded)."""
    dhdx, dhdy = central_gradient(height)
    slope = np.sqrt(dhdx * dhdx + dhdy * dhdy)
    return np.sqrt(1.0 - np.minimum(1.0, slope * 0.5))


def relief_occlusion(height: NDArray[np.float64], radius: int = 1) -> NDArray[np.float64]:
    """Occlusion from the mean positive height excess of neighbors within ``radius``."""
    excess = np.zeros_like(height)
    count = np.zeros_like(height)
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            if dy == 0 and dx == 0:
                continue
            values, valid = neighbor(height, dy, dx)
            excess += np.where(valid, np.maximum(values - height, 0.0), 0.0)
            count += valid
    mean = np.divide(excess, count, out=np.zeros_like(excess), where=count > 0)
    return np.sqrt(np.minimum(1.0, mean * 2.0))


def ambient_occlusion(
    height: NDArray[np.float64],
    radius: int = 1,
    smooth_radius: int = 0,
) -> NDArray[np.float64]:
    """Blend of slope and relief occlusion, optionally box-smoothed.

    Returns:
        float64 grid in [0, 1].
    """
    if height.size == 0:
        return np.zeros_like(height)
    ao = 0.6 * slope_occlusion(height) + 0.4 * relief_occlusion(height, radius)
    if smooth_radius > 0:
        ao = ndimage.uniform_filter(
            ao, size=2 * smooth_radius + 1, mode=("constant", "wrap"), cval=0.0
        )
    return np.clip(ao, 0.0, 1.0)
