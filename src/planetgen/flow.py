"""Steepest-descent flow routing and elevation-ordered flow accumulation.

Each cell drains to the neighbor with the greatest positive drop per
unit distance (D8, longitude wrapping, poles clamped). Cells without a
downhill neighbor are sinks. Accumulation walks cells from high to low
elevation so a cell's total is final before it is passed downstream.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .grid import D8_DISTANCE, D8_OFFSETS, NO_FLOW, map_row_bands, neighbor

# Flat-index target for sinks
SINK = -1


class FlowWorkspace:
    """Scratch grids reused across repeated flow computations.

    A workspace belongs to one erosion run. Buffers are reallocated only
    when the grid shape changes; every call to :func:`compute_flow_field`
    overwrites them, so a FlowField computed from a workspace is only
    valid until the next computation.
    """

    def __init__(self, height: int = 0, width: int = 0):
        self.height = -1
        self.width = -1
        self.allocations = 0
        self.ensure_capacity(height, width)

    def ensure_capacity(self, height: int, width: int) -> None:
        if height == self.height and width == self.width:
            return
        self.height = height
        self.width = width
        shape = (height, width)
        self.direction = np.full(shape, NO_FLOW, dtype=np.uint8)
        self.slope = np.zeros(shape, dtype=np.float64)
        self.target = np.full(shape, SINK, dtype=np.int64)
        self.accumulation = np.ones(shape, dtype=np.float64)
        self.flow_x = np.zeros(shape, dtype=np.float64)
        self.flow_y = np.zeros(shape, dtype=np.float64)
        self.scan_index = np.arange(height * width, dtype=np.int64)
        self.order = np.zeros(height * width, dtype=np.int64)
        self.allocations += 1


@dataclass
class FlowField:
    """Per-cell flow routing.

    Attributes:
        direction: Index into D8_OFFSETS, or NO_FLOW for sinks.
        slope: Drop per unit distance toward the target (0 for sinks).
        target: Flat index ``y * W + x`` of the downstream cell, or -1.
        accumulation: Upstream cell count including the cell itself (>= 1).
        flow_x: Unit flow vector, longitude component (0 for sinks).
        flow_y: Unit flow vector, latitude component, +1 = southward.
        order: Flat cell indices in processing order (high to low).
    """

    direction: NDArray[np.uint8]
    slope: NDArray[np.float64]
    target: NDArray[np.int64]
    accumulation: NDArray[np.float64]
    flow_x: NDArray[np.float64]
    flow_y: NDArray[np.float64]
    order: NDArray[np.int64]

    @property
    def shape(self) -> tuple[int, int]:
        return self.direction.shape

    @property
    def sinks(self) -> NDArray[np.bool_]:
        return self.target < 0

    def target_coords(self) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
        """Target (row, column) grids; -1 for sinks."""
        width = self.shape[1]
        ty = np.where(self.target >= 0, self.target // width, SINK)
        tx = np.where(self.target >= 0, self.target % width, SINK)
        return ty, tx

    def copy(self) -> "FlowField":
        """Detach from the workspace the field was computed in."""
        return FlowField(
            self.direction.copy(),
            self.slope.copy(),
            self.target.copy(),
            self.accumulation.copy(),
            self.flow_x.copy(),
            self.flow_y.copy(),
            self.order.copy(),
        )


def _route_band(height: NDArray[np.float64], ws: FlowWorkspace, rows: slice) -> None:
    """Pick the steepest downhill neighbor for every cell in ``rows``."""
    h_width = height.shape[1]
    center = height[rows]
    best = np.zeros_like(center)
    best_dir = np.full(center.shape, NO_FLOW, dtype=np.uint8)

    for d, (dy, dx) in enumerate(D8_OFFSETS):
        values, valid = neighbor(height, dy, dx, rows)
        drop = (center - values) / D8_DISTANCE[d]
        # Strict comparison: the first offset in scan order wins ties
        better = valid & (drop > best)
        best = np.where(better, drop, best)
        best_dir = np.where(better, np.uint8(d), best_dir)

    ws.slope[rows] = best
    ws.direction[rows] = best_dir

    ys = np.arange(rows.start, rows.stop)[:, None]
    xs = np.arange(h_width)[None, :]
    dys = np.array([o[0] for o in D8_OFFSETS] + [0])
    dxs = np.array([o[1] for o in D8_OFFSETS] + [0])
    code = np.where(best_dir == NO_FLOW, 8, best_dir)
    dy = dys[code]
    dx = dxs[code]
    target = (ys + dy) * h_width + (xs + dx) % h_width
    sink = best_dir == NO_FLOW
    ws.target[rows] = np.where(sink, SINK, target)

    dist = np.append(D8_DISTANCE, 1.0)[code]
    ws.flow_x[rows] = np.where(sink, 0.0, dx / dist)
    ws.flow_y[rows] = np.where(sink, 0.0, dy / dist)


def accumulate_flow(
    height: NDArray[np.float64],
    target: NDArray[np.int64],
    accumulation: NDArray[np.float64],
    order: NDArray[np.int64],
    scan_index: NDArray[np.int64] | None = None,
) -> None:
    """Accumulate runoff downstream in strictly descending elevation order.

    Cells are ordered by (height descending, scan index ascending), a
    total order under which every target follows its source, since a
    target is always strictly lower. Each cell is visited exactly once.
    Runs on the calling thread.

    Args:
        height: Elevation grid.
        target: Flat downstream index per cell (-1 for sinks).
        accumulation: Output grid, overwritten (starts at 1 per cell).
        order: Output buffer receiving the visit order.
        scan_index: Optional cached ``arange(H * W)``.
    """
    if scan_index is None:
        scan_index = np.arange(height.size, dtype=np.int64)
    order[:] = np.lexsort((scan_index, -height.ravel()))

    acc = [1.0] * height.size
    targets = target.ravel().tolist()
    for cell in order.tolist():
        t = targets[cell]
        if t >= 0:
            acc[t] += acc[cell]
    accumulation[...] = np.asarray(acc).reshape(accumulation.shape)


def compute_flow_field(
    height: NDArray[np.float64],
    workspace: FlowWorkspace | None = None,
    workers: int = 1,
) -> FlowField:
    """Compute routing and accumulation for a height grid.

    Direction selection runs in parallel row bands; accumulation is a
    single sequential pass.

    Args:
        height: Elevation grid (H, W).
        workspace: Reusable buffers; a fresh one is allocated if omitted.
        workers: Row-band threads for the direction pass.

    Returns:
        FlowField whose arrays are the workspace's buffers.
    """
    rows, cols = height.shape
    ws = workspace if workspace is not None else FlowWorkspace(rows, cols)
    ws.ensure_capacity(rows, cols)

    map_row_bands(lambda band: _route_band(height, ws, band), rows, workers)
    accumulate_flow(height, ws.target, ws.accumulation, ws.order, ws.scan_index)

    return FlowField(
        direction=ws.direction,
        slope=ws.slope,
        target=ws.target,
        accumulation=ws.accumulation,
        flow_x=ws.flow_x,
        flow_y=ws.flow_y,
        order=ws.order,
    )
