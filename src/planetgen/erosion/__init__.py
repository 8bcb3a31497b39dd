"""Erosion passes that mutate an elevation grid in place."""

from .descent import SteepestDescentErosion
from .hydraulic import (
    STRATEGIES,
    HydraulicErosion,
    HydraulicState,
    apply_hydraulic_erosion,
    get_strategy,
)
from .shallow_water import ShallowWaterErosion
from .thermal import apply_thermal_erosion

__all__ = [
    "STRATEGIES",
    "HydraulicErosion",
    "HydraulicState",
    "ShallowWaterErosion",
    "SteepestDescentErosion",
    "apply_hydraulic_erosion",
    "apply_thermal_erosion",
    "get_strategy",
]
