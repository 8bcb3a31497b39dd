"""Shared test fixtures for planet generation tests."""

import numpy as np
import pytest

from planetgen.config import PlanetConfig
from planetgen.generator import PlanetResult, generate_planet


def small_config(**overrides: object) -> PlanetConfig:
    """32x16 planet with short erosion runs."""
    data: dict[str, object] = {
        "seed": 2024,
        "width": 32,
        "height": 16,
        "thermal": {"iterations": 3},
        "hydraulic": {"iterations": 4},
        "emissive": {"kind": "night_lights"},
    }
    data.update(overrides)
    return PlanetConfig.model_validate(data)


@pytest.fixture
def make_config():
    """Factory for small planet configurations with overrides."""
    return small_config


@pytest.fixture(scope="session")
def planet() -> PlanetResult:
    """One generated 32x16 planet shared by read-only tests."""
    return generate_planet(small_config())


@pytest.fixture
def bowl() -> np.ndarray:
    """8x4 grid sloping toward a single sink at row 2, column 4 (wrapped distance)."""
    rows, cols = 4, 8
    ys, xs = np.mgrid[0:rows, 0:cols]
    dx = np.abs(xs - 4)
    dx = np.minimum(dx, cols - dx)
    return 0.5 * np.sqrt((ys - 2) ** 2 + dx**2).astype(np.float64)


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(7)
