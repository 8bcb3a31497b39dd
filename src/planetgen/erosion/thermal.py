"""Thermal erosion: talus-limited material diffusion."""

import numpy as np
import structlog
from numpy.typing import NDArray

from ..config import ThermalConfig
from ..grid import D4_OFFSETS, D8_DISTANCE, D8_OFFSETS, map_row_bands, neighbor, shift_into

logger = structlog.get_logger()


def _stencil(neighbors: int) -> list[tuple[int, int, float]]:
    if neighbors == 8:
        return [(dy, dx, float(dist)) for (dy, dx), dist in zip(D8_OFFSETS, D8_DISTANCE)]
    return [(dy, dx, 1.0) for dy, dx in D4_OFFSETS]


def apply_thermal_erosion(
    height: NDArray[np.float64] | None,
    config: ThermalConfig,
    workers: int = 1,
) -> NDArray[np.float64] | None:
    """Slide material downhill wherever the drop to a neighbor exceeds the talus.

    For every cell and every stencil neighbor with ``diff > talus``
    (talus scaled by distance on diagonals), ``rate * (diff - talus)`` moves
    from the cell to the neighbor. The rate is clamped to one over the
    stencil size, so no pass can overshoot and the height range never
    grows. Each iteration reads one snapshot of the grid; outflows are
    computed in parallel row bands, then applied after all bands finish,
    so the result does not depend on cell order or worker count. Mass is
    conserved.

    Args:
        height: Elevation grid, modified in place.
        config: Iterations, talus, rate, and stencil size.
        workers: Row-band threads for the outflow pass.

    Returns:
        The same grid (``None`` or empty input is returned unchanged).
    """
    if height is None or height.size == 0 or config.iterations <= 0:
        return height

    rows = height.shape[0]
    stencil = _stencil(config.neighbors)
    # Every cell stays a convex combination of its neighborhood
    rate = min(config.rate, 1.0 / len(stencil))
    outflow = np.zeros((len(stencil),) + height.shape, dtype=height.dtype)

    def band_outflow(band: slice) -> None:
        center = height[band]
        for k, (dy, dx, dist) in enumerate(stencil):
            values, valid = neighbor(height, dy, dx, band)
            excess = center - values - config.talus * dist
            outflow[k, band] = np.where(valid & (excess > 0.0), rate * excess, 0.0)

    for _ in range(config.iterations):
        map_row_bands(band_outflow, rows, workers)
        height -= outflow.sum(axis=0)
        for k, (dy, dx, _) in enumerate(stencil):
            height += shift_into(outflow[k], dy, dx)

    logger.debug(
        "thermal_erosion_done",
        iterations=config.iterations,
        talus=config.talus,
        rate=rate,
    )
    return height
