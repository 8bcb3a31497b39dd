"""Tests for hydraulic erosion strategies."""

import numpy as np
import pytest

from planetgen.config import HydraulicConfig
from planetgen.erosion import (
    STRATEGIES,
    HydraulicState,
    ShallowWaterErosion,
    SteepestDescentErosion,
    apply_hydraulic_erosion,
    get_strategy,
)
from planetgen.exceptions import ConfigurationError
from planetgen.flow import compute_flow_field

METHODS = ["steepest_descent", "shallow_water"]


def bowl_config(method: str) -> HydraulicConfig:
    return HydraulicConfig(
        method=method,
        iterations=5,
        rainfall=0.1,
        evaporation=0.5,
        capacity_factor=0.1,
        min_slope=0.5,
    )


class TestStrategyRegistry:
    """Tests for strategy lookup."""

    def test_both_strategies_registered(self) -> None:
        """Built-in strategies are available by name."""
        assert STRATEGIES["steepest_descent"] is SteepestDescentErosion
        assert STRATEGIES["shallow_water"] is ShallowWaterErosion

    def test_unknown_method_raises(self) -> None:
        """An unregistered name is a configuration error."""
        with pytest.raises(ConfigurationError):
            get_strategy("glacial")

    def test_config_rejects_unknown_method(self) -> None:
        """The config only accepts registered method names."""
        with pytest.raises(ValueError):
            HydraulicConfig(method="glacial")


@pytest.mark.parametrize("method", METHODS)
class TestHydraulicErosion:
    """Behavior shared by every strategy."""

    def test_zero_iterations_no_op(self, method: str, rng: np.random.Generator) -> None:
        """No iterations leave the grid untouched."""
        height = rng.uniform(-1.0, 1.0, size=(8, 16))
        before = height.copy()
        apply_hydraulic_erosion(height, HydraulicConfig(method=method, iterations=0))
        np.testing.assert_array_equal(height, before)

    def test_none_input_no_op(self, method: str) -> None:
        """None is returned unchanged."""
        assert apply_hydraulic_erosion(None, HydraulicConfig(method=method)) is None

    def test_observer_sees_every_cycle(self, method: str, rng: np.random.Generator) -> None:
        """The observer is called once per iteration in order."""
        seen: list[tuple[int, int]] = []
        height = rng.uniform(-1.0, 1.0, size=(8, 16))
        apply_hydraulic_erosion(
            height,
            HydraulicConfig(method=method, iterations=6),
            observer=lambda i, state: seen.append((i, state.iteration)),
        )
        assert seen == [(i, i + 1) for i in range(6)]

    def test_water_and_sediment_non_negative(self, method: str, rng: np.random.Generator) -> None:
        """Water and suspended sediment never go negative."""
        minima: list[float] = []

        def observe(_: int, state: HydraulicState) -> None:
            minima.append(min(state.water.min(), state.sediment.min()))

        height = rng.uniform(-1.0, 1.0, size=(16, 32))
        apply_hydraulic_erosion(
            height, HydraulicConfig(method=method, iterations=10, capacity_factor=0.5), observer=observe
        )
        assert min(minima) >= 0.0
        assert np.all(np.isfinite(height))

    def test_bed_plus_sediment_conserved(self, method: str, rng: np.random.Generator) -> None:
        """Erosion and deposition only trade material between bed and load."""
        height = rng.uniform(-1.0, 1.0, size=(16, 32))
        total = height.sum()
        loads: list[float] = []
        apply_hydraulic_erosion(
            height,
            HydraulicConfig(method=method, iterations=8, capacity_factor=0.2),
            observer=lambda _, state: loads.append(state.sediment.sum()),
        )
        assert height.sum() + loads[-1] == pytest.approx(total, abs=1e-9)

    def test_sink_collects_runoff(self, method: str, bowl: np.ndarray) -> None:
        """Accumulation at the sink never drops and its bed ends no higher than it started."""
        height = bowl.copy()
        at_sink: list[float] = []

        def observe(_: int, state: HydraulicState) -> None:
            at_sink.append(compute_flow_field(state.height.copy()).accumulation[2, 4])

        apply_hydraulic_erosion(height, bowl_config(method), observer=observe)
        assert len(at_sink) == 5
        assert all(b >= a for a, b in zip(at_sink, at_sink[1:]))
        assert np.unravel_index(height.argmin(), height.shape) == (2, 4)
        assert height[2, 4] <= bowl[2, 4]

    @pytest.mark.parametrize("iterations", [5, 20, 60])
    def test_sink_never_rises_with_defaults(self, method: str, bowl: np.ndarray, iterations: int) -> None:
        """Upstream load settling into the sink stops at its starting bed."""
        height = bowl.copy()
        state = get_strategy(method)(HydraulicConfig(method=method, iterations=iterations)).run(height)
        assert height[2, 4] <= bowl[2, 4]
        assert state.basins[2, 4]
        assert np.all(np.isfinite(height))

    def test_erodes_something(self, method: str, rng: np.random.Generator) -> None:
        """A wet, sloped grid changes."""
        height = rng.uniform(-1.0, 1.0, size=(16, 32))
        before = height.copy()
        apply_hydraulic_erosion(height, HydraulicConfig(method=method, iterations=5, capacity_factor=0.5))
        assert not np.array_equal(height, before)


class TestSteepestDescent:
    """Strategy-specific checks for steepest descent."""

    def test_worker_count_independent(self, rng: np.random.Generator) -> None:
        """Banded sediment exchange does not change the result."""
        base = rng.uniform(-1.0, 1.0, size=(16, 32))
        serial, parallel = base.copy(), base.copy()
        config = HydraulicConfig(iterations=5, capacity_factor=0.3)
        apply_hydraulic_erosion(serial, config)
        apply_hydraulic_erosion(parallel, config, workers=3)
        np.testing.assert_array_equal(serial, parallel)

    def test_records_flow(self, rng: np.random.Generator) -> None:
        """The state carries the latest flow routing."""
        strategy = SteepestDescentErosion(HydraulicConfig(iterations=2))
        state = strategy.run(rng.uniform(-1.0, 1.0, size=(8, 16)))
        assert state.flow is not None
        assert state.flow.shape == (8, 16)
        assert strategy.workspace.allocations == 1

    def test_evaporation_clamped(self) -> None:
        """Out-of-range evaporation is clamped to [0, 1]."""
        assert SteepestDescentErosion(HydraulicConfig(evaporation=1.5)).evaporation == 1.0
        assert SteepestDescentErosion(HydraulicConfig(evaporation=-0.2)).evaporation == 0.0


class TestShallowWater:
    """Strategy-specific checks for the pipe model."""

    def test_water_flows_downhill(self) -> None:
        """Water gathers in the low column of a V-shaped valley."""
        xs = np.arange(16)
        height = np.tile(np.abs(xs - 8).astype(np.float64) * 0.1, (8, 1))
        state = ShallowWaterErosion(
            HydraulicConfig(method="shallow_water", iterations=10, evaporation=0.0, capacity_factor=0.0)
        ).run(height)
        assert state.water[:, 8].mean() > state.water[:, 2].mean()


class TestHydraulicState:
    """Tests for the per-run state."""

    def test_headroom_bounds_basins_only(self) -> None:
        """Basins may refill to their starting bed; other cells are unbounded."""
        state = HydraulicState.dry(np.zeros((2, 4)))
        state.height[0, 0] = -0.3
        state.height[0, 1] = 0.2
        state.basins[0, :2] = True
        room = state.headroom()
        assert room[0, 0] == pytest.approx(0.3)
        assert room[0, 1] == 0.0
        assert np.isinf(room[1]).all()

    def test_dry_basin_keeps_excess_suspended(self) -> None:
        """Evaporation settles only up to a basin's starting bed."""
        strategy = SteepestDescentErosion(HydraulicConfig(evaporation=1.0))
        state = HydraulicState.dry(np.zeros((2, 4)))
        state.height[0, 0] = -0.1
        state.sediment[0, 0] = 0.4
        state.sediment[1, 0] = 0.4
        state.basins[0, 0] = True
        strategy.evaporate(state)
        assert state.height[0, 0] == pytest.approx(0.0)
        assert state.sediment[0, 0] == pytest.approx(0.3)
        assert state.height[1, 0] == pytest.approx(0.4)
        assert state.sediment[1, 0] == 0.0
