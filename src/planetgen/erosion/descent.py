"""Hydraulic erosion with single-target steepest-descent routing."""

import numpy as np
from numpy.typing import NDArray

from ..flow import FlowWorkspace, compute_flow_field
from ..grid import map_row_bands
from .hydraulic import HydraulicErosion, HydraulicState, register_strategy


@register_strategy
class SteepestDescentErosion(HydraulicErosion):
    """Rain, route, exchange sediment, advect one hop, evaporate.

    Carrying capacity is ``capacity_factor * water * max(slope, min_slope)
    * (1 + accumulation)``, floored at ``min_capacity``. Below capacity the
    bed erodes by ``erosion_rate * deficit * water`` (at most
    ``max_erosion`` per cycle); above it ``deposition_rate`` of the excess
    settles, though never above the starting bed of a cell that has been a
    sink. Water and sediment then move to each cell's flow target; sinks
    keep theirs.
    """

    name = "steepest_descent"

    def run(self, height, observer=None):
        self.workspace = FlowWorkspace(*height.shape)
        return super().run(height, observer)

    def step(self, state: HydraulicState) -> None:
        cfg = self.config
        state.water += cfg.rainfall

        flow = compute_flow_field(state.height, self.workspace, self.workers)
        state.flow = flow
        state.basins |= flow.sinks

        def exchange(rows: slice) -> None:
            w = state.water[rows]
            s = state.sediment[rows]
            h = state.height[rows]
            wet = w >= cfg.min_water
            slope = np.maximum(flow.slope[rows], cfg.min_slope)
            capacity = cfg.capacity_factor * w * slope * (1.0 + flow.accumulation[rows])
            capacity = np.maximum(capacity, cfg.min_capacity)

            erode = wet & (s < capacity)
            eroded = np.minimum(cfg.erosion_rate * (capacity - s) * w, cfg.max_erosion)
            eroded = np.where(erode, np.maximum(eroded, 0.0), 0.0)

            deposit = wet & ~erode
            settled = np.where(deposit, np.minimum(cfg.deposition_rate * (s - capacity), s), 0.0)
            settled = np.minimum(settled, state.headroom(rows))

            h += settled - eroded
            s += eroded - settled

        map_row_bands(exchange, state.height.shape[0], self.workers)

        state.water[...] = self._advect(state.water, flow.target)
        state.sediment[...] = self._advect(state.sediment, flow.target)
        self.evaporate(state)

    def _advect(self, quantity: NDArray[np.float64], target: NDArray[np.int64]) -> NDArray[np.float64]:
        """Move each cell's quantity to its target (sinks keep their own)."""
        own = np.arange(quantity.size)
        dest = np.where(target.ravel() >= 0, target.ravel(), own)
        moved = np.bincount(dest, weights=quantity.ravel(), minlength=quantity.size)
        return moved.reshape(quantity.shape)
