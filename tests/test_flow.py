"""Tests for flow routing and accumulation."""

import numpy as np
import pytest

from planetgen.flow import SINK, FlowWorkspace, compute_flow_field
from planetgen.grid import D8_OFFSETS, NO_FLOW


def ramp_west_to_east() -> np.ndarray:
    """4x8 grid whose height falls by one per column toward x = 7."""
    return -np.tile(np.arange(8, dtype=np.float64), (4, 1))


class TestFlowDirection:
    """Tests for steepest-descent neighbor selection."""

    def test_flows_downhill(self) -> None:
        """Cells on a ramp drain east."""
        flow = compute_flow_field(ramp_west_to_east())
        east = D8_OFFSETS.index((0, 1))
        np.testing.assert_array_equal(flow.direction[:, 1:7], east)

    def test_wraps_across_seam(self) -> None:
        """Column 0 drains west across the seam into the lowest column."""
        height = ramp_west_to_east()
        flow = compute_flow_field(height)
        west = D8_OFFSETS.index((0, -1))
        np.testing.assert_array_equal(flow.direction[:, 0], west)
        ty, tx = flow.target_coords()
        np.testing.assert_array_equal(tx[:, 0], 7)
        np.testing.assert_array_equal(ty[:, 0], np.arange(4))

    def test_flat_grid_all_sinks(self) -> None:
        """Without a drop every cell is a sink."""
        flow = compute_flow_field(np.zeros((4, 8)))
        assert flow.sinks.all()
        np.testing.assert_array_equal(flow.direction, NO_FLOW)
        np.testing.assert_array_equal(flow.slope, 0.0)

    def test_pole_does_not_drain_outward(self) -> None:
        """Top-row cells on a grid rising southward are sinks."""
        height = np.tile(np.arange(4, dtype=np.float64)[:, None], (1, 8))
        flow = compute_flow_field(height)
        assert flow.sinks[0].all()
        assert not flow.sinks[1:].any()

    def test_tie_goes_to_first_offset(self) -> None:
        """Equal drops resolve to the earliest offset in scan order."""
        height = np.zeros((4, 8))
        height[1, 3] = 1.0
        flow = compute_flow_field(height)
        assert flow.direction[1, 3] == D8_OFFSETS.index((-1, 0))

    def test_diagonal_drop_scaled_by_distance(self) -> None:
        """Slope is drop per unit distance."""
        height = np.zeros((4, 8))
        height[1, 3] = 1.0
        height[0, 3] = height[2, 3] = height[1, 2] = height[1, 4] = 0.5
        flow = compute_flow_field(height)
        assert flow.direction[1, 3] == D8_OFFSETS.index((-1, -1))
        assert flow.slope[1, 3] == pytest.approx(1.0 / np.sqrt(2.0))

    def test_flow_vectors(self) -> None:
        """Unit vectors follow the chosen offset; sinks have none."""
        flow = compute_flow_field(ramp_west_to_east())
        np.testing.assert_allclose(flow.flow_x[:, 1:7], 1.0)
        np.testing.assert_allclose(flow.flow_y[:, 1:7], 0.0)
        assert np.all(flow.flow_x[flow.sinks] == 0.0)


class TestAccumulation:
    """Tests for ordered flow accumulation."""

    def test_ramp_counts(self) -> None:
        """Accumulation grows by one per cell along the ramp."""
        flow = compute_flow_field(ramp_west_to_east())
        np.testing.assert_array_equal(flow.accumulation[:, 1], 1.0)
        np.testing.assert_array_equal(flow.accumulation[:, 6], 6.0)
        np.testing.assert_array_equal(flow.accumulation[:, 7], 8.0)

    def test_invariants_on_random_terrain(self, rng: np.random.Generator) -> None:
        """Every cell drains to exactly one sink through strictly lower cells."""
        height = rng.normal(size=(16, 32))
        flow = compute_flow_field(height)
        assert np.all(flow.accumulation >= 1.0)
        assert flow.accumulation[flow.sinks].sum() == pytest.approx(height.size)

        has_target = flow.target >= 0
        flat = height.ravel()
        assert np.all(flat[flow.target[has_target]] < height[has_target])
        assert np.all(flow.target[~has_target] == SINK)

    def test_order_descends(self, rng: np.random.Generator) -> None:
        """Processing order visits every cell once, highest first."""
        height = rng.normal(size=(8, 16))
        flow = compute_flow_field(height)
        assert sorted(flow.order.tolist()) == list(range(height.size))
        assert np.all(np.diff(height.ravel()[flow.order]) <= 0.0)

    def test_bowl_drains_to_center(self, bowl: np.ndarray) -> None:
        """All runoff collects at the single minimum."""
        flow = compute_flow_field(bowl)
        assert flow.sinks.sum() == 1
        assert flow.accumulation[2, 4] == bowl.size

    @pytest.mark.parametrize("workers", [2, 5])
    def test_worker_count_independent(self, rng: np.random.Generator, workers: int) -> None:
        """Banded routing does not change the field."""
        height = rng.normal(size=(16, 32))
        serial = compute_flow_field(height)
        parallel = compute_flow_field(height, workers=workers)
        np.testing.assert_array_equal(serial.target, parallel.target)
        np.testing.assert_array_equal(serial.accumulation, parallel.accumulation)


class TestFlowWorkspace:
    """Tests for buffer reuse."""

    def test_reused_for_same_shape(self, rng: np.random.Generator) -> None:
        """Repeated computations on one shape allocate once."""
        ws = FlowWorkspace(8, 16)
        for _ in range(3):
            compute_flow_field(rng.normal(size=(8, 16)), ws)
        assert ws.allocations == 1

    def test_reallocates_on_resize(self, rng: np.random.Generator) -> None:
        """A new shape triggers a reallocation."""
        ws = FlowWorkspace(8, 16)
        compute_flow_field(rng.normal(size=(4, 8)), ws)
        assert ws.allocations == 2
        assert ws.direction.shape == (4, 8)

    def test_copy_detaches(self, rng: np.random.Generator) -> None:
        """A copied field survives the next computation."""
        ws = FlowWorkspace(8, 16)
        first = compute_flow_field(rng.normal(size=(8, 16)), ws).copy()
        snapshot = first.target.copy()
        compute_flow_field(rng.normal(size=(8, 16)), ws)
        np.testing.assert_array_equal(first.target, snapshot)
