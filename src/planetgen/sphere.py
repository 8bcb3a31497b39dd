"""Equirectangular pixel <-> sphere mapping and the per-run coordinate cache."""

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import check_dimensions


class SphericalSampler:
    """Maps pixel centers of a W x H (W = 2H) grid onto the unit sphere.

    Longitude runs west to east across columns, latitude runs from the
    north pole (row 0) to the south pole (row H - 1). Longitude is
    periodic: the virtual column ``x = W`` lands on the same normal as
    column 0.
    """

    def __init__(self, width: int, height: int):
        check_dimensions(width, height)
        self.width = width
        self.height = height

    def lon(self, x: ArrayLike) -> NDArray[np.float64]:
        u = (np.asarray(x, dtype=np.float64) + 0.5) / self.width
        return 2.0 * np.pi * u - np.pi

    def lat(self, y: ArrayLike) -> NDArray[np.float64]:
        v = (np.asarray(y, dtype=np.float64) + 0.5) / self.height
        return np.pi / 2.0 - np.pi * v

    def normal(self, x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
        """Unit-sphere normal(s) at pixel center(s), stacked on the last axis."""
        return lonlat_to_normal(self.lon(x), self.lat(y))

    def cache(self) -> "CoordinateCache":
        return CoordinateCache.build(self)


def lonlat_to_normal(lon: ArrayLike, lat: ArrayLike) -> NDArray[np.float64]:
    """Convert longitude/latitude (radians) to unit vectors ``(..., 3)``."""
    lon = np.asarray(lon, dtype=np.float64)
    lat = np.asarray(lat, dtype=np.float64)
    cos_lat = np.cos(lat)
    return np.stack(
        np.broadcast_arrays(cos_lat * np.cos(lon), np.sin(lat), cos_lat * np.sin(lon)),
        axis=-1,
    )


@dataclass(frozen=True)
class CoordinateCache:
    """Precomputed trigonometry for one grid size.

    Built once per run; arrays are marked read-only so parallel workers
    can share them freely.
    """

    width: int
    height: int
    lons: NDArray[np.float64]
    lats: NDArray[np.float64]
    sin_lat: NDArray[np.float64]
    cos_lat: NDArray[np.float64]
    normals: NDArray[np.float64]

    @classmethod
    def build(cls, sampler: SphericalSampler) -> "CoordinateCache":
        lons = sampler.lon(np.arange(sampler.width))
        lats = sampler.lat(np.arange(sampler.height))
        normals = lonlat_to_normal(lons[None, :], lats[:, None])
        arrays = [lons, lats, np.sin(lats), np.cos(lats), normals]
        for arr in arrays:
            arr.setflags(write=False)
        return cls(sampler.width, sampler.height, *arrays)

    @classmethod
    def for_grid(cls, width: int, height: int) -> "CoordinateCache":
        return cls.build(SphericalSampler(width, height))

    def band_normals(self, rows: slice) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """Normal components (nx, ny, nz) for a band of rows."""
        band = self.normals[rows]
        return band[..., 0], band[..., 1], band[..., 2]
