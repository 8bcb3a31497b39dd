"""Seeded 3D gradient noise and its fractal compositions.

Provides a permutation-table gradient noise over R^3, fBm and ridged
fractal sums, and domain warping. Every function accepts scalars or
numpy arrays of coordinates and is vectorized over them.
"""

from dataclasses import dataclass, field
from typing import Protocol

import numpy as np
from numpy.typing import ArrayLike, NDArray

SEED_MASK = (1 << 64) - 1

# Smallest allowed value of (1 - gain) when normalizing fractal sums
MIN_GAIN_COMPLEMENT = 1e-6


class NoiseSource(Protocol):
    """Anything that can be sampled at 3D points."""

    def sample(self, x: ArrayLike, y: ArrayLike, z: ArrayLike) -> NDArray[np.float64]: ...


def _fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _lerp(t: NDArray[np.float64], a: NDArray[np.float64], b: NDArray[np.float64]) -> NDArray[np.float64]:
    return a + t * (b - a)


def _grad(
    h: NDArray[np.int64],
    x: NDArray[np.float64],
    y: NDArray[np.float64],
    z: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Dot product with one of 12 edge gradients picked by the low hash bits."""
    hh = h & 15
    u = np.where(hh < 8, x, y)
    v = np.where(hh < 4, y, np.where((hh == 12) | (hh == 14), x, z))
    return np.where(hh & 1 == 0, u, -u) + np.where(hh & 2 == 0, v, -v)


class GradientNoise:
    """Deterministic 3D gradient noise seeded through a shuffled permutation table.

    The table is a seeded Fisher-Yates shuffle of 0..255 drawn from
    ``numpy.random.default_rng``; output depends only on the seed and the
    sample coordinates. Samples are bounded to [-1, 1].
    """

    def __init__(self, seed: int):
        self.seed = seed
        rng = np.random.default_rng(seed & SEED_MASK)
        perm = rng.permutation(256).astype(np.int64)
        self._perm = np.concatenate([perm, perm])

    @property
    def permutation(self) -> NDArray[np.int64]:
        """The 256-entry permutation table."""
        return self._perm[:256].copy()

    def _hash(self, xi: NDArray[np.int64], yi: NDArray[np.int64], zi: NDArray[np.int64]) -> NDArray[np.int64]:
        p = self._perm
        return p[(xi + p[(yi + p[zi & 255]) & 255]) & 255] & 255

    def sample(self, x: ArrayLike, y: ArrayLike, z: ArrayLike) -> NDArray[np.float64]:
        """Sample the noise at one or many points.

        Args:
            x: X coordinates.
            y: Y coordinates.
            z: Z coordinates (all three broadcast together).

        Returns:
            Noise values in [-1, 1] with the broadcast shape of the inputs.
        """
        x, y, z = np.broadcast_arrays(
            np.asarray(x, dtype=np.float64),
            np.asarray(y, dtype=np.float64),
            np.asarray(z, dtype=np.float64),
        )
        x0 = np.floor(x)
        y0 = np.floor(y)
        z0 = np.floor(z)
        xf, yf, zf = x - x0, y - y0, z - z0
        xi = x0.astype(np.int64) & 255
        yi = y0.astype(np.int64) & 255
        zi = z0.astype(np.int64) & 255
        u, v, w = _fade(xf), _fade(yf), _fade(zf)

        n000 = _grad(self._hash(xi, yi, zi), xf, yf, zf)
        n100 = _grad(self._hash(xi + 1, yi, zi), xf - 1, yf, zf)
        n010 = _grad(self._hash(xi, yi + 1, zi), xf, yf - 1, zf)
        n110 = _grad(self._hash(xi + 1, yi + 1, zi), xf - 1, yf - 1, zf)
        n001 = _grad(self._hash(xi, yi, zi + 1), xf, yf, zf - 1)
        n101 = _grad(self._hash(xi + 1, yi, zi + 1), xf - 1, yf, zf - 1)
        n011 = _grad(self._hash(xi, yi + 1, zi + 1), xf, yf - 1, zf - 1)
        n111 = _grad(self._hash(xi + 1, yi + 1, zi + 1), xf - 1, yf - 1, zf - 1)

        x00 = _lerp(u, n000, n100)
        x10 = _lerp(u, n010, n110)
        x01 = _lerp(u, n001, n101)
        x11 = _lerp(u, n011, n111)
        result = _lerp(w, _lerp(v, x00, x10), _lerp(v, x01, x11))
        return np.clip(result, -1.0, 1.0)

    def sample3(self, x: float, y: float, z: float) -> float:
        """Sample a single point."""
        return float(self.sample(x, y, z))


class DomainWarp:
    """Noise whose input is displaced by three independent noise fields.

    Breaks the grid-aligned symmetry of the base lattice.
    """

    def __init__(
        self,
        base: NoiseSource,
        warp_x: NoiseSource,
        warp_y: NoiseSource,
        warp_z: NoiseSource,
        amplitude: float,
    ):
        self.base = base
        self.warp_x = warp_x
        self.warp_y = warp_y
        self.warp_z = warp_z
        self.amplitude = amplitude

    def sample(self, x: ArrayLike, y: ArrayLike, z: ArrayLike) -> NDArray[np.float64]:
        """Sample ``base`` at the warped position."""
        dx = self.warp_x.sample(x, y, z) * self.amplitude
        dy = self.warp_y.sample(x, y, z) * self.amplitude
        dz = self.warp_z.sample(x, y, z) * self.amplitude
        return self.base.sample(np.add(x, dx), np.add(y, dy), np.add(z, dz))

    @classmethod
    def from_seed(cls, seed: int, amplitude: float) -> "DomainWarp":
        """Warp a seeded base noise with the three following seeds."""
        return cls(
            GradientNoise(seed),
            GradientNoise(seed + 1),
            GradientNoise(seed + 2),
            GradientNoise(seed + 3),
            amplitude,
        )


@dataclass(frozen=True)
class Fractal:
    """Octave schedule for fractal sums.

    Amplitude shrinks by ``gain`` and frequency grows by ``lacunarity``
    each octave. The sum is divided by (1 - gain), which is clamped away
    from zero here, once, so sampling can never divide by zero.
    """

    scale: float
    octaves: int = 4
    lacunarity: float = 2.0
    gain: float = 0.5
    normalizer: float = field(init=False)

    def __post_init__(self) -> None:
        complement = max(1.0 - self.gain, MIN_GAIN_COMPLEMENT)
        object.__setattr__(self, "normalizer", complement)

    def fbm(self, noise: NoiseSource, x: ArrayLike, y: ArrayLike, z: ArrayLike) -> NDArray[np.float64]:
        """Weighted octave sum of ``noise``."""
        return self._sum(noise, x, y, z, ridged=False)

    def ridged(self, noise: NoiseSource, x: ArrayLike, y: ArrayLike, z: ArrayLike) -> NDArray[np.float64]:
        """Octave sum of ``1 - |noise|``, producing sharp ridge lines."""
        return self._sum(noise, x, y, z, ridged=True)

    def _sum(
        self,
        noise: NoiseSource,
        x: ArrayLike,
        y: ArrayLike,
        z: ArrayLike,
        ridged: bool,
    ) -> NDArray[np.float64]:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)
        total = np.zeros(np.broadcast_shapes(x.shape, y.shape, z.shape))
        amplitude = 1.0
        frequency = self.scale
        for _ in range(max(self.octaves, 0)):
            n = noise.sample(x * frequency, y * frequency, z * frequency)
            if ridged:
                n = 1.0 - np.abs(n)
            total += amplitude * n
            amplitude *= self.gain
            frequency *= self.lacunarity
        return total / self.normalizer


def fbm(
    noise: NoiseSource,
    x: ArrayLike,
    y: ArrayLike,
    z: ArrayLike,
    scale: float,
    octaves: int = 4,
    lacunarity: float = 2.0,
    gain: float = 0.5,
) -> NDArray[np.float64]:
    """Fractal Brownian motion of ``noise`` at the given points."""
    return Fractal(scale, octaves, lacunarity, gain).fbm(noise, x, y, z)


def ridged(
    noise: NoiseSource,
    x: ArrayLike,
    y: ArrayLike,
    z: ArrayLike,
    scale: float,
    octaves: int = 4,
    lacunarity: float = 2.0,
    gain: float = 0.5,
) -> NDArray[np.float64]:
    """Ridged fractal of ``noise`` at the given points."""
    return Fractal(scale, octaves, lacunarity, gain).ridged(noise, x, y, z)
