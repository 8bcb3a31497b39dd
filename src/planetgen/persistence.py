"""Planet persistence: save and load generated grids."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np
import structlog
from numpy.typing import NDArray

from .config import PlanetConfig

if TYPE_CHECKING:
    from .generator import PlanetResult

logger = structlog.get_logger()

FORMAT_VERSION = 1
SURFACE_PREFIX = "surface_"


def save_planet(path: Path, result: "PlanetResult") -> None:
    """Save a generated planet to disk.

    Uses numpy's compressed .npz format. Every grid is stored under its
    own key (surface channels prefixed with ``surface_``), plus a JSON
    metadata blob holding the full configuration.

    Args:
        path: Output path (should end with .npz).
        result: Output of generate_planet.
    """
    config = result.config
    metadata = {
        "version": FORMAT_VERSION,
        "seed": config.seed,
        "width": config.width,
        "height": config.height,
        "preset": config.preset,
        "sea_level": config.terrain.sea_level,
        "config": config.model_dump(mode="json"),
        "timings": result.timings,
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }

    grids: dict[str, NDArray] = {
        "height": result.height,
        "flow_direction": result.flow.direction,
        "flow_target": result.flow.target,
        "flow_slope": result.flow.slope,
        "flow_accumulation": result.flow.accumulation,
        "rivers": result.rivers,
        "lakes": result.lakes,
        "lake_regions": result.lake_regions,
        "normals": result.normals,
    }
    if result.clouds is not None:
        grids["clouds"] = result.clouds
    if result.emissive is not None:
        grids["emissive"] = result.emissive
    for name, array in result.surface.arrays().items():
        grids[SURFACE_PREFIX + name] = array

    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(path, metadata=json.dumps(metadata).encode("utf-8"), **grids)

    file_size = path.stat().st_size / (1024 * 1024)
    logger.info("planet_saved", path=str(path), size_mb=round(file_size, 2))


def load_planet(path: Path) -> tuple[dict[str, NDArray], dict[str, Any]]:
    """Load planet grids from disk.

    Args:
        path: Path to .npz file.

    Returns:
        Tuple of (grids by name, metadata dict).

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If file format is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Planet file not found: {path}")

    with np.load(path) as data:
        if "height" not in data:
            raise ValueError("Invalid planet file: missing 'height' array")
        metadata: dict[str, Any] = {}
        if "metadata" in data:
            metadata = json.loads(data["metadata"].tobytes().decode("utf-8"))
        grids = {key: data[key] for key in data.files if key != "metadata"}

    version = metadata.get("version", FORMAT_VERSION)
    if version > FORMAT_VERSION:
        raise ValueError(f"Unsupported planet file version {version}")

    logger.info("planet_loaded", path=str(path), shape=list(grids["height"].shape))
    return grids, metadata


def config_from_metadata(metadata: dict[str, Any]) -> PlanetConfig:
    """Rebuild the configuration a saved planet was generated with."""
    if "config" not in metadata:
        raise ValueError("Planet metadata has no stored configuration")
    return PlanetConfig.model_validate(metadata["config"])
