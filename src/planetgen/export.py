"""PNG export of planet maps via Pillow."""

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import structlog
from numpy.typing import NDArray
from PIL import Image

from .biomes import BIOME_PALETTE, MATERIAL_PALETTE
from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .generator import PlanetResult

logger = structlog.get_logger()


def to_uint8(values: NDArray) -> NDArray[np.uint8]:
    """Quantize [0, 1] values to 0-255."""
    return np.round(np.clip(values, 0.0, 1.0) * 255.0).astype(np.uint8)


def height_to_uint16(height: NDArray[np.float64]) -> NDArray[np.uint16]:
    """Map heights in [-1, 1] onto the full 16-bit range."""
    return np.round((np.clip(height, -1.0, 1.0) + 1.0) * 0.5 * 65535.0).astype(np.uint16)


def _image(values: NDArray) -> Image.Image:
    """L, RGB, or RGBA image depending on the trailing channel count."""
    return Image.fromarray(to_uint8(values))


def _height(result: "PlanetResult") -> Image.Image:
    return Image.fromarray(height_to_uint16(result.height))


def _pbr_pack(result: "PlanetResult") -> Image.Image:
    s = result.surface
    return _image(np.stack([s.ao, s.roughness, s.metallic], axis=-1))


def _optional(values: NDArray | None, render: Callable[[NDArray], Image.Image]) -> Image.Image | None:
    return None if values is None else render(values)


# Occlusion / roughness / metallic go to R / G / B of the packed map
MAP_RENDERERS: dict[str, Callable[["PlanetResult"], Image.Image | None]] = {
    "albedo": lambda r: _image(r.surface.albedo),
    "height": _height,
    "normal": lambda r: _image(r.normals),
    "roughness": lambda r: _image(r.surface.roughness),
    "metallic": lambda r: _image(r.surface.metallic),
    "ao": lambda r: _image(r.surface.ao),
    "pbrpack": _pbr_pack,
    "biome": lambda r: Image.fromarray(BIOME_PALETTE[r.surface.biome]),
    "material": lambda r: Image.fromarray(MATERIAL_PALETTE[r.surface.material]),
    "vegetation": lambda r: _image(r.surface.vegetation),
    "detail": lambda r: _image(r.surface.detail),
    "snow": lambda r: _image(r.surface.snow),
    "ocean": lambda r: _image(r.surface.ocean_shading),
    "atmosphere": lambda r: _image(r.surface.atmosphere_color),
    "clouds": lambda r: _optional(r.clouds, _image),
    "emissive": lambda r: _optional(r.emissive, _image),
}

ALL_MAPS = tuple(MAP_RENDERERS)


def parse_map_list(text: str) -> list[str]:
    """Split a comma-separated map list; ``all`` expands to every map.

    Raises:
        ConfigurationError: If a name is not a known map.
    """
    names = [part.strip().lower() for part in text.split(",") if part.strip()]
    if "all" in names:
        return list(ALL_MAPS)
    unknown = [n for n in names if n not in MAP_RENDERERS]
    if unknown:
        raise ConfigurationError(f"Unknown map(s) {unknown}. Available: {list(ALL_MAPS)}")
    return names


def export_maps(
    result: "PlanetResult",
    out_dir: Path,
    maps: Iterable[str] | None = None,
) -> dict[str, Path]:
    """Write the requested maps as PNG files named ``<map>.png``.

    Maps with no data (clouds disabled, no emissive layer) are skipped.

    Args:
        result: Output of generate_planet.
        out_dir: Directory to write into (created if missing).
        maps: Map names; every map if omitted.

    Returns:
        Written file paths by map name.

    Raises:
        ConfigurationError: If a map name is unknown.
    """
    names = list(ALL_MAPS) if maps is None else list(maps)
    unknown = [n for n in names if n not in MAP_RENDERERS]
    if unknown:
        raise ConfigurationError(f"Unknown map(s) {unknown}. Available: {list(ALL_MAPS)}")

    out_dir.mkdir(parents=True, exist_ok=True)
    written: dict[str, Path] = {}
    for name in names:
        image = MAP_RENDERERS[name](result)
        if image is None:
            logger.warning("map_skipped", map=name, reason="no data")
            continue
        path = out_dir / f"{name}.png"
        image.save(path)
        written[name] = path
        logger.info("map_exported", map=name, path=str(path))
    return written
