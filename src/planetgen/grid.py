"""Grid helpers shared by every stage: neighbor stencils, row bands, normalization.

All grids are indexed ``[y, x]``. The longitude axis (x) wraps; the
latitude axis (y) is clamped, so neighbors past a pole do not exist.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

import numpy as np
from numpy.typing import NDArray

T = TypeVar("T")

# 8-neighborhood in scan order (row above left to right, same row, row below).
# Ties in steepest descent go to the first offset in this order.
D8_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
)
D8_DISTANCE = np.array(
    [np.sqrt(2.0) if dy != 0 and dx != 0 else 1.0 for dy, dx in D8_OFFSETS]
)

# 4-neighborhood: N, S, E, W
D4_OFFSETS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, 1), (0, -1))

# Direction code for cells without an outgoing edge
NO_FLOW = 255


def neighbor(
    field: NDArray,
    dy: int,
    dx: int,
    rows: slice | None = None,
) -> tuple[NDArray, NDArray[np.bool_]]:
    """Sample the neighbor at offset (dy, dx) for every cell in ``rows``.

    Args:
        field: 2D grid.
        dy: Row offset (clamped at the poles).
        dx: Column offset (wrapped around the globe).
        rows: Rows of the output; defaults to the whole grid.

    Returns:
        Tuple of (neighbor values, validity per row broadcastable to the
        values). Values for invalid rows are copies of the nearest valid
        row and must be masked by the caller.
    """
    height = field.shape[0]
    rows = rows or slice(0, height)
    ys = np.arange(rows.start, rows.stop) + dy
    valid = (ys >= 0) & (ys < height)
    values = field[np.clip(ys, 0, height - 1)]
    if dx:
        values = np.roll(values, -dx, axis=1)
    return values, valid[:, None]


def shift_into(field: NDArray, dy: int, dx: int) -> NDArray:
    """Move every cell's value to its neighbor at (dy, dx).

    The inverse of :func:`neighbor`: ``out[y + dy, x + dx] += field[y, x]``
    with wrap in x. Values pushed past a pole are dropped, so callers
    must zero them beforehand if mass has to be conserved.
    """
    out = np.zeros_like(field)
    height = field.shape[0]
    moved = np.roll(field, dx, axis=1) if dx else field
    if dy > 0:
        out[dy:] = moved[: height - dy]
    elif dy < 0:
        out[: height + dy] = moved[-dy:]
    else:
        out[:] = moved
    return out


def row_bands(height: int, workers: int) -> list[slice]:
    """Split ``height`` rows into at most ``workers`` contiguous bands."""
    count = max(1, min(workers, height))
    edges = np.linspace(0, height, count + 1).astype(int)
    return [slice(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]


def map_row_bands(
    fn: Callable[[slice], T],
    height: int,
    workers: int = 1,
) -> list[T]:
    """Run ``fn`` on every row band and return results in band order.

    Each band must write only its own rows; the executor shutdown is the
    barrier between this phase and whatever reads the result.
    """
    bands = row_bands(height, workers)
    if workers <= 1 or len(bands) == 1:
        return [fn(band) for band in bands]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(fn, bands))


def normalize_signed(
    field: NDArray[np.float64],
    bounds: tuple[float, float] | None = None,
) -> NDArray[np.float64]:
    """Rescale a grid in place to [-1, 1] using its realized min/max.

    Args:
        field: Grid to rescale.
        bounds: Precomputed (min, max); computed from the grid if omitted.

    Returns:
        The same array.
    """
    if field.size == 0:
        return field
    lo, hi = bounds if bounds is not None else (float(field.min()), float(field.max()))
    span = hi - lo
    if span < 1e-6:
        span = 1.0
    field -= lo
    field *= 2.0 / span
    field -= 1.0
    return field


def normalize_height(
    field: NDArray[np.float64],
    sea_level: float,
    bounds: tuple[float, float] | None = None,
) -> NDArray[np.float64]:
    """Rescale to [-1, 1], subtract the sea level offset and clip to [-1, 1]."""
    normalize_signed(field, bounds)
    field -= sea_level
    np.clip(field, -1.0, 1.0, out=field)
    return field


def central_gradient(field: NDArray[np.float64]) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Half central differences (d/dx, d/dy), wrapping x and clamping y at the poles."""
    east = np.roll(field, -1, axis=1)
    west = np.roll(field, 1, axis=1)
    south = np.concatenate([field[1:], field[-1:]], axis=0)
    north = np.concatenate([field[:1], field[:-1]], axis=0)
    return (east - west) * 0.5, (south - north) * 0.5


def clamp01(values: NDArray) -> NDArray:
    """Clip to [0, 1]."""
    return np.clip(values, 0.0, 1.0)
