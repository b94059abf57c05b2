"""Derived terrain layers computed once when a world is loaded.

All layers are deterministic functions of the biome array and the world
seed: elevation from fractal value noise, a river-width mask traced
downhill from high ground, a lake mask from bounded flood fills, a
distance-from-land field and a spawn point.

Biomes are stored as small integers (index into ``BIOME_ORDER``) so the
layers can live in flat lists/bytearrays indexed ``y * width + x``.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from oasis.core.enums import Biome, Domain
from oasis.systems.noise import ValueNoise
from oasis.systems.rng import DeterministicRNG, SeededStream

logger = logging.getLogger(__name__)

BIOME_ORDER: tuple[Biome, ...] = (
    Biome.OCEAN,
    Biome.BEACH,
    Biome.GRASSLAND,
    Biome.FOREST,
    Biome.DESERT,
    Biome.MOUNTAIN,
    Biome.TUNDRA,
    Biome.SWAMP,
)
OCEAN = 0

_NEIGHBOURS_4 = ((-1, 0), (1, 0), (0, -1), (0, 1))
_NEIGHBOURS_8 = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))

# Generation parameters
ELEVATION_FREQ = 0.012
ELEVATION_OCTAVES = 6
RIVER_SAMPLES = 2000
RIVER_SOURCES = 80
RIVER_MIN_ELEVATION = 0.55
RIVER_MAX_STEPS = 2000
LAKE_SAMPLES = 400
LAKE_MIN_ELEVATION = 0.2
LAKE_MAX_ELEVATION = 0.42
LAKE_FILL_MARGIN = 0.018
LAKE_MAX_CELLS = 100
LAKE_MIN_CELLS = 10
SHORE_DISTANCE_CAP = 5
SPAWN_SAMPLES = 500


@dataclass(slots=True)
class TerrainLayers:
    elevation: list[float]
    rivers: bytearray
    lakes: bytearray
    dist_from_land: list[int]
    spawn: tuple[int, int]


def _normalised(noise: ValueNoise, x: float, y: float, freq: float, octaves: int) -> float:
    return (noise.fractal(x, y, octaves=octaves, frequency=freq) + 1.0) / 2.0


def _inset(size: int, preferred: int) -> int:
    return min(preferred, size // 4)


def _sample_coord(stream: SeededStream, size: int, inset: int) -> int:
    return int(stream.random() * (size - 2 * inset) + inset)


# ---------------------------------------------------------------------------
# Elevation
# ---------------------------------------------------------------------------

def compute_elevation(width: int, height: int, seed: int) -> list[float]:
    noise = ValueNoise(seed)
    return [
        _normalised(noise, x, y, ELEVATION_FREQ, ELEVATION_OCTAVES)
        for y in range(height)
        for x in range(width)
    ]


# ---------------------------------------------------------------------------
# Rivers
# ---------------------------------------------------------------------------

def compute_rivers(
    width: int, height: int, biomes: bytes, elevation: list[float], rng: DeterministicRNG,
) -> bytearray:
    """Trace up to RIVER_SOURCES rivers downhill from the highest land samples."""
    rivers = bytearray(width * height)
    stream = SeededStream(rng, Domain.TERRAIN, 1)
    meander = ValueNoise(rng.seed ^ 0x5EED)
    inset = _inset(width, 20), _inset(height, 20)

    sources: list[tuple[int, int]] = []
    for _ in range(RIVER_SAMPLES):
        x = _sample_coord(stream, width, inset[0])
        y = _sample_coord(stream, height, inset[1])
        idx = y * width + x
        if biomes[idx] != OCEAN and elevation[idx] > RIVER_MIN_ELEVATION:
            sources.append((x, y))
    sources.sort(key=lambda s: elevation[s[1] * width + s[0]], reverse=True)
    del sources[RIVER_SOURCES:]

    for sx, sy in sources:
        x, y, steps = sx, sy, 0
        visited: set[tuple[int, int]] = set()
        while steps < RIVER_MAX_STEPS:
            if x < 1 or x >= width - 1 or y < 1 or y >= height - 1:
                break
            if biomes[y * width + x] == OCEAN or (x, y) in visited:
                break
            visited.add((x, y))

            w = min(3, 1 + steps // 80)
            for dy in range(-w, w + 1):
                for dx in range(-w, w + 1):
                    if dx * dx + dy * dy > w * w:
                        continue
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < width and 0 <= ny < height:
                        ni = ny * width + nx
                        if rivers[ni] < w:
                            rivers[ni] = w

            best, bx, by = elevation[y * width + x], x, y
            m = (_normalised(meander, x * 0.5, y * 0.5, 0.03, 3) - 0.5) * 0.02
            for dx, dy in _NEIGHBOURS_8:
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and 0 <= ny < height:
                    e = elevation[ny * width + nx] + m * dx
                    if e < best:
                        best, bx, by = e, nx, ny
            if bx == x and by == y:
                x += 1 if stream.random() > 0.5 else -1
                y += 1 if stream.random() > 0.5 else -1
            else:
                x, y = bx, by
            steps += 1
    return rivers


# ---------------------------------------------------------------------------
# Lakes
# ---------------------------------------------------------------------------

def compute_lakes(
    width: int, height: int, biomes: bytes, elevation: list[float], rng: DeterministicRNG,
) -> bytearray:
    lakes = bytearray(width * height)
    stream = SeededStream(rng, Domain.TERRAIN, 2)
    lake_noise = ValueNoise(rng.seed ^ 0x1A4E)
    inset = _inset(width, 20), _inset(height, 20)

    for _ in range(LAKE_SAMPLES):
        x = _sample_coord(stream, width, inset[0])
        y = _sample_coord(stream, height, inset[1])
        idx = y * width + x
        if biomes[idx] == OCEAN:
            continue
        if not LAKE_MIN_ELEVATION <= elevation[idx] <= LAKE_MAX_ELEVATION:
            continue
        if _normalised(lake_noise, x, y, 0.025, 4) > 0.42:
            continue

        threshold = elevation[idx] + LAKE_FILL_MARGIN
        seen: set[int] = set()
        frontier = [idx]
        filled: list[int] = []
        while frontier and len(filled) < LAKE_MAX_CELLS:
            ci = frontier.pop()
            if ci in seen:
                continue
            seen.add(ci)
            if elevation[ci] > threshold or biomes[ci] == OCEAN:
                continue
            filled.append(ci)
            cx, cy = ci % width, ci // width
            for dx, dy in _NEIGHBOURS_4:
                nx, ny = cx + dx, cy + dy
                if 0 <= nx < width and 0 <= ny < height:
                    frontier.append(ny * width + nx)
        if len(filled) >= LAKE_MIN_CELLS:
            for fi in filled:
                lakes[fi] = 1
    return lakes


# ---------------------------------------------------------------------------
# Shore distance
# ---------------------------------------------------------------------------

def compute_distance_from_land(width: int, height: int, biomes: bytes) -> list[int]:
    """Multi-source BFS from every land cell, capped at SHORE_DISTANCE_CAP (-1 = farther)."""
    dist = [-1] * (width * height)
    queue: deque[int] = deque()
    for i, b in enumerate(biomes):
        if b != OCEAN:
            dist[i] = 0
            queue.append(i)
    while queue:
        ci = queue.popleft()
        cd = dist[ci]
        if cd >= SHORE_DISTANCE_CAP:
            continue
        cx, cy = ci % width, ci // width
        for dx, dy in _NEIGHBOURS_4:
            nx, ny = cx + dx, cy + dy
            if 0 <= nx < width and 0 <= ny < height:
                ni = ny * width + nx
                if dist[ni] == -1:
                    dist[ni] = cd + 1
                    queue.append(ni)
    return dist


# ---------------------------------------------------------------------------
# Spawn point
# ---------------------------------------------------------------------------

def find_spawn_point(
    width: int, height: int, biomes: bytes, rivers: bytearray, lakes: bytearray, rng: DeterministicRNG,
) -> tuple[int, int]:
    """Best-scoring habitable sample: grassland > forest > other, near water and coast."""
    stream = SeededStream(rng, Domain.SPAWN, 0)
    inset = _inset(width, 100), _inset(height, 100)
    best = (width // 2, height // 2)
    best_score = -1
    grassland = BIOME_ORDER.index(Biome.GRASSLAND)
    forest = BIOME_ORDER.index(Biome.FOREST)
    rejected = {OCEAN, BIOME_ORDER.index(Biome.MOUNTAIN), BIOME_ORDER.index(Biome.TUNDRA)}

    for _ in range(SPAWN_SAMPLES):
        x = _sample_coord(stream, width, inset[0])
        y = _sample_coord(stream, height, inset[1])
        b = biomes[y * width + x]
        if b in rejected:
            continue
        score = 10 if b == grassland else 7 if b == forest else 3

        for r in range(1, 16):
            if y + r < height:
                si = (y + r) * width + x
                if rivers[si] or lakes[si]:
                    score += 5
                    break
            if x + r < width:
                ei = y * width + x + r
                if rivers[ei] or lakes[ei]:
                    score += 5
                    break

        for r in range(1, 31):
            if x + r < width and biomes[y * width + x + r] == OCEAN:
                score += 3
                break

        if score > best_score:
            best_score = score
            best = (x, y)
    return best


def compute_layers(width: int, height: int, biomes: bytes, seed: int) -> TerrainLayers:
    rng = DeterministicRNG(seed)
    logger.info("Computing terrain layers for %dx%d world", width, height)
    elevation = compute_elevation(width, height, seed)
    rivers = compute_rivers(width, height, biomes, elevation, rng)
    lakes = compute_lakes(width, height, biomes, elevation, rng)
    dist = compute_distance_from_land(width, height, biomes)
    spawn = find_spawn_point(width, height, biomes, rivers, lakes, rng)
    logger.info("Spawn point: (%d, %d)", spawn[0], spawn[1])
    return TerrainLayers(elevation=elevation, rivers=rivers, lakes=lakes, dist_from_land=dist, spawn=spawn)
