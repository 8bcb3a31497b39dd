"""Rivers and lakes derived from a finished height grid and its flow field."""

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from .flow import FlowField
from .grid import D8_OFFSETS, neighbor


def detect_rivers(flow: FlowField, threshold: float) -> NDArray[np.float32]:
    """River strength from normalized flow accumulation.

    Accumulation is rescaled to [0, 1] by its realized min/max; cells at or
    above ``threshold`` get their normalized value as strength, all others 0.

    Args:
        flow: Flow field of the final height grid.
        threshold: Normalized accumulation cutoff.

    Returns:
        float32 river strength in [0, 1].
    """
    acc = flow.accumulation
    if acc.size == 0:
        return np.zeros(acc.shape, dtype=np.float32)
    lo = float(acc.min())
    span = max(float(acc.max()) - lo, 1e-6)
    normalized = (acc - lo) / span
    rivers = np.where(normalized >= threshold, np.minimum(normalized, 1.0), 0.0)
    return rivers.astype(np.float32)


def smooth_rivers(rivers: NDArray[np.float32], radius: int) -> NDArray[np.float32]:
    """Box-filter the river mask, wrapping in longitude.

    Rows past the poles count as zero and every window is divided by the
    full kernel area, so strength fades toward the poles.
    """
    if radius <= 0 or rivers.size == 0:
        return rivers
    size = 2 * radius + 1
    smoothed = ndimage.uniform_filter(
        rivers.astype(np.float64), size=size, mode=("constant", "wrap"), cval=0.0
    )
    return np.clip(smoothed, 0.0, 1.0).astype(np.float32)


def find_lake_seeds(height: NDArray[np.float64], water_level: float) -> NDArray[np.bool_]:
    """Cells below ``water_level`` whose valid 8-neighbors are all strictly higher."""
    below = height < water_level
    minimum = np.ones(height.shape, dtype=bool)
    has_neighbor = np.zeros(height.shape, dtype=bool)
    for dy, dx in D8_OFFSETS:
        values, valid = neighbor(height, dy, dx)
        valid = np.broadcast_to(valid, height.shape)
        minimum &= ~valid | (values > height)
        has_neighbor |= valid
    return below & minimum & has_neighbor


def detect_lakes(height: NDArray[np.float64], water_level: float) -> NDArray[np.float32]:
    """Lake strength: 1.0 at basin minima, 0.9 where the lake has spread.

    Seeds grow into 8-adjacent cells that are also below ``water_level``,
    one ring per pass. Every pass reads the previous one, so growth does
    not depend on scan order. The H * W pass bound lets a lake follow any
    winding basin to its end.
    """
    if height.size == 0:
        return np.zeros(height.shape, dtype=np.float32)
    lakes = np.where(find_lake_seeds(height, water_level), 1.0, 0.0).astype(np.float32)
    eligible = height < water_level

    for _ in range(height.size):
        touching = np.zeros(height.shape, dtype=bool)
        for dy, dx in D8_OFFSETS:
            values, valid = neighbor(lakes, dy, dx)
            touching |= valid & (values > 0.0)
        grow = eligible & (lakes == 0.0) & touching
        if not grow.any():
            break
        lakes[grow] = 0.9
    return lakes


def lake_regions(lakes: NDArray[np.float32], min_size: int) -> NDArray[np.int32]:
    """Label 4-connected lake regions, joining across the longitude seam.

    Cells with strength >= 0.5 count as lake. Regions smaller than
    ``min_size`` are cleared; surviving regions are numbered 1..n in
    order of their first cell in scan order.
    """
    mask = lakes >= 0.5
    labels, count = ndimage.label(mask, structure=ndimage.generate_binary_structure(2, 1))
    if count == 0:
        return labels.astype(np.int32)

    # Union labels that touch across the x = 0 / x = W-1 seam
    parent = np.arange(count + 1)

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    left, right = labels[:, 0], labels[:, -1]
    for a, b in zip(left.tolist(), right.tolist()):
        if a and b:
            ra, rb = find(a), find(b)
            if ra != rb:
                parent[max(ra, rb)] = min(ra, rb)
    roots = np.array([find(i) for i in range(count + 1)])
    merged = roots[labels]

    sizes = np.bincount(merged.ravel(), minlength=count + 1)
    keep = sizes >= min_size
    keep[0] = False

    # Renumber in scan order of first appearance
    flat = merged.ravel()
    _, first = np.unique(flat, return_index=True)
    ordered = [int(flat[i]) for i in sorted(first) if keep[flat[i]]]
    remap = np.zeros(count + 1, dtype=np.int32)
    for new_id, old in enumerate(ordered, start=1):
        remap[old] = new_id
    return remap[merged]
