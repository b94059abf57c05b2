"""Seeded 2-D value noise on an xxhash lattice.

Lattice values are pure functions of (seed, octave, ix, iy) so the same
seed always reproduces the same elevation field.
"""

from __future__ import annotations

import math
import struct

import xxhash

_MAX_UINT64 = (1 << 64) - 1


def _smooth(t: float) -> float:
    return t * t * (3.0 - 2.0 * t)


class ValueNoise:
    """Fractal value noise.  ``fractal`` returns a value in roughly [-1, 1]."""

    __slots__ = ("_seed", "_cache")

    def __init__(self, seed: int) -> None:
        self._seed = seed
        self._cache: dict[tuple[int, int, int], float] = {}

    def _lattice(self, octave: int, ix: int, iy: int) -> float:
        key = (octave, ix, iy)
        value = self._cache.get(key)
        if value is None:
            payload = struct.pack("<qiqq", self._seed, octave, ix, iy)
            value = xxhash.xxh64(payload).intdigest() / _MAX_UINT64 * 2.0 - 1.0
            self._cache[key] = value
        return value

    def sample(self, x: float, y: float, octave: int = 0) -> float:
        ix, iy = math.floor(x), math.floor(y)
        fx, fy = _smooth(x - ix), _smooth(y - iy)
        v00 = self._lattice(octave, ix, iy)
        v10 = self._lattice(octave, ix + 1, iy)
        v01 = self._lattice(octave, ix, iy + 1)
        v11 = self._lattice(octave, ix + 1, iy + 1)
        top = v00 + (v10 - v00) * fx
        bottom = v01 + (v11 - v01) * fx
        return top + (bottom - top) * fy

    def fractal(
        self,
        x: float,
        y: float,
        octaves: int = 6,
        frequency: float = 0.012,
        lacunarity: float = 2.0,
        persistence: float = 0.5,
    ) -> float:
        total = 0.0
        amplitude = 1.0
        max_amplitude = 0.0
        freq = frequency
        for octave in range(octaves):
            total += self.sample(x * freq, y * freq, octave) * amplitude
            max_amplitude += amplitude
            amplitude *= persistence
            freq *= lacunarity
        return total / max_amplitude
