"""Hydraulic erosion: the strategy interface and its dispatcher.

A strategy runs rainfall cycles against an elevation grid in place,
carrying water and suspended sediment in a :class:`HydraulicState`.
Strategies register themselves by name; ``HydraulicConfig.method``
selects one.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

import numpy as np
import structlog
from numpy.typing import NDArray

from ..config import HydraulicConfig
from ..exceptions import ConfigurationError
from ..flow import FlowField

logger = structlog.get_logger()


@dataclass
class HydraulicState:
    """Mutable per-run simulation state.

    Attributes:
        height: The elevation grid being eroded (shared, not a copy).
        water: Water depth per cell, never negative.
        sediment: Suspended sediment per cell, never negative.
        start: Elevation before the first cycle.
        basins: Cells that have been sinks in any cycle so far.
        iteration: Number of completed cycles.
        flow: Routing of the latest cycle, for strategies that route.
    """

    height: NDArray[np.float64]
    water: NDArray[np.float64]
    sediment: NDArray[np.float64]
    start: NDArray[np.float64]
    basins: NDArray[np.bool_]
    iteration: int = 0
    flow: FlowField | None = None

    @classmethod
    def dry(cls, height: NDArray[np.float64]) -> "HydraulicState":
        return cls(
            height,
            np.zeros_like(height),
            np.zeros_like(height),
            height.copy(),
            np.zeros(height.shape, dtype=bool),
        )

    def headroom(self, rows: slice = slice(None)) -> NDArray[np.float64]:
        """How far deposition may raise each cell in ``rows``.

        Basins may fill back up to their starting elevation and no higher;
        their excess load stays suspended. Other cells are unbounded.
        """
        room = np.maximum(self.start[rows] - self.height[rows], 0.0)
        return np.where(self.basins[rows], room, np.inf)


Observer = Callable[[int, HydraulicState], None]


class HydraulicErosion(ABC):
    """Base class for erosion strategies."""

    name: ClassVar[str]

    def __init__(self, config: HydraulicConfig, workers: int = 1):
        self.config = config
        self.workers = workers
        self.evaporation = min(max(config.evaporation, 0.0), 1.0)

    def run(
        self,
        height: NDArray[np.float64],
        observer: Observer | None = None,
    ) -> HydraulicState:
        state = HydraulicState.dry(height)
        for i in range(self.config.iterations):
            self.step(state)
            state.iteration = i + 1
            if observer is not None:
                observer(i, state)
        return state

    @abstractmethod
    def step(self, state: HydraulicState) -> None:
        """Advance one rainfall cycle."""

    def evaporate(self, state: HydraulicState) -> None:
        """Shrink water; cells that fall dry drop their sediment on the bed (basins up to their headroom)."""
        state.water *= 1.0 - self.evaporation
        dry = state.water < self.config.min_water
        dropped = np.where(dry, np.minimum(state.sediment, state.headroom()), 0.0)
        state.height += dropped
        state.sediment -= dropped
        state.water[dry] = 0.0


STRATEGIES: dict[str, type[HydraulicErosion]] = {}


def register_strategy(cls: type[HydraulicErosion]) -> type[HydraulicErosion]:
    STRATEGIES[cls.name] = cls
    return cls


def get_strategy(name: str) -> type[HydraulicErosion]:
    """Look up a strategy class by name.

    Raises:
        ConfigurationError: If no strategy is registered under ``name``.
    """
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown hydraulic erosion method '{name}'. Available: {sorted(STRATEGIES)}"
        ) from None


def apply_hydraulic_erosion(
    height: NDArray[np.float64] | None,
    config: HydraulicConfig,
    workers: int = 1,
    observer: Observer | None = None,
) -> NDArray[np.float64] | None:
    """Erode ``height`` in place with the configured strategy.

    Args:
        height: Elevation grid, modified in place.
        config: Strategy selection and parameters.
        workers: Row-band threads for the parallel phases.
        observer: Called as ``observer(iteration, state)`` after each cycle.

    Returns:
        The same grid (``None``, empty input, or iterations <= 0 is a no-op).
    """
    if height is None or height.size == 0 or config.iterations <= 0:
        return height

    strategy = get_strategy(config.method)(config, workers)
    state = strategy.run(height, observer)
    logger.debug(
        "hydraulic_erosion_done",
        method=config.method,
        iterations=state.iteration,
        water=float(state.water.sum()),
        sediment=float(state.sediment.sum()),
    )
    return height
