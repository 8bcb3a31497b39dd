"""Tangent-space normal map from the height grid."""

import numpy as np
from numpy.typing import NDArray

from .grid import central_gradient
from .sphere import CoordinateCache


def tangent_normals(height: NDArray[np.float64], cache: CoordinateCache) -> NDArray[np.float32]:
    """Unit normals encoded to [0, 1] RGB.

    The longitude derivative is divided by cos(latitude), floored at 1e-6,
    to undo the horizontal stretching of the equirectangular grid.
    """
    dhdx, dhdy = central_gradient(height)
    dhdx = dhdx / np.maximum(cache.cos_lat, 1e-6)[:, None]
    n = np.stack([-dhdx, -dhdy, np.ones_like(height)], axis=-1)
    n /= np.linalg.norm(n, axis=-1, keepdims=True)
    return (n * 0.5 + 0.5).astype(np.float32)
