"""Hydraulic erosion on a virtual-pipe shallow-water lattice.

Every cell exchanges water with its four axis neighbors through pipes
whose flux grows with the water-surface difference. Outflow is scaled so
a cell never sends more water than it holds, which keeps depths
non-negative and bounds the scheme for any time step. Suspended sediment
leaves a cell in the same proportion as its water.
"""

import numpy as np
from numpy.typing import NDArray

from ..grid import D4_OFFSETS, neighbor, shift_into
from .hydraulic import HydraulicErosion, HydraulicState, register_strategy


@register_strategy
class ShallowWaterErosion(HydraulicErosion):
    """Explicit pipe-model water flow with capacity-driven sediment exchange."""

    name = "shallow_water"

    def run(self, height, observer=None):
        self.flux = np.zeros((len(D4_OFFSETS),) + height.shape, dtype=np.float64)
        return super().run(height, observer)

    def step(self, state: HydraulicState) -> None:
        cfg = self.config
        state.water += cfg.rainfall

        outflow = self._update_flux(state)
        inflow = self._transport(state, outflow)
        self._exchange(state, inflow)
        self.evaporate(state)

    def _update_flux(self, state: HydraulicState) -> NDArray[np.float64]:
        """Advance pipe fluxes and return the water volume leaving through each."""
        cfg = self.config
        surface = state.height + state.water
        gain = cfg.time_step * cfg.pipe_area * cfg.gravity

        for k, (dy, dx) in enumerate(D4_OFFSETS):
            values, valid = neighbor(surface, dy, dx)
            flux = np.maximum(0.0, self.flux[k] + gain * (surface - values))
            self.flux[k] = np.where(valid, flux, 0.0)

        total = self.flux.sum(axis=0) * cfg.time_step
        scale = np.ones_like(total)
        np.divide(state.water, total, out=scale, where=total > state.water)
        self.flux *= scale
        return self.flux * cfg.time_step

    def _transport(self, state: HydraulicState, outflow: NDArray[np.float64]) -> NDArray[np.float64]:
        """Move water and sediment along the pipes; returns inflow volume per cell."""
        sent = outflow.sum(axis=0)
        share = np.zeros_like(outflow)
        np.divide(outflow, state.water, out=share, where=state.water > 0.0)

        inflow = np.zeros_like(sent)
        carried = np.zeros_like(sent)
        received = np.zeros_like(sent)
        for k, (dy, dx) in enumerate(D4_OFFSETS):
            load = share[k] * state.sediment
            carried += load
            inflow += shift_into(outflow[k], dy, dx)
            received += shift_into(load, dy, dx)

        state.water += inflow - sent
        np.maximum(state.water, 0.0, out=state.water)
        state.sediment += received - carried
        np.maximum(state.sediment, 0.0, out=state.sediment)
        return inflow

    def _exchange(self, state: HydraulicState, inflow: NDArray[np.float64]) -> None:
        """Erode toward capacity or settle the excess, on wet cells only."""
        cfg = self.config
        h, w, s = state.height, state.water, state.sediment

        drop = np.zeros_like(h)
        for dy, dx in D4_OFFSETS:
            values, valid = neighbor(h, dy, dx)
            drop = np.maximum(drop, np.where(valid, h - values, 0.0))
        slope = np.maximum(drop, cfg.min_slope)
        state.basins |= drop <= 0.0

        capacity = cfg.capacity_factor * w * slope * (1.0 + inflow)
        capacity = np.maximum(capacity, cfg.min_capacity)
        wet = w >= cfg.min_water

        erode = wet & (s < capacity)
        eroded = np.where(erode, np.minimum(cfg.erosion_rate * (capacity - s) * w, cfg.max_erosion), 0.0)
        settled = np.where(
            wet & ~erode, np.minimum(cfg.deposition_rate * (s - capacity), s), 0.0
        )
        settled = np.minimum(settled, state.headroom())
        h += settled - eroded
        s += eroded - settled
