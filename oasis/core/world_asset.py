"""Packed world asset: biome-id array, tile definition table, optional decorations.

Asset JSON::

    {"width": W, "height": H, "terrain": [int] * W*H, "decorations": [int] * W*H,
     "tileDefs": [{"id": int, "biome": str, "name": str}], "seed": str}

When no asset file is configured a fallback world is synthesised from
value noise so the server always has something to run on.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from oasis.core.enums import Biome
from oasis.core.errors import InvalidInput
from oasis.core.terrain import BIOME_ORDER
from oasis.systems.noise import ValueNoise
from oasis.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WorldAsset:
    width: int
    height: int
    terrain: list[int]
    tile_defs: list[dict[str, Any]]
    seed: str = "oasis"
    decorations: list[int] | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def numeric_seed(self) -> int:
        return DeterministicRNG.entity_key(self.seed)

    def biome_codes(self) -> bytes:
        """Map every terrain id to its BIOME_ORDER index (unknown ids become ocean)."""
        lookup: dict[int, int] = {}
        for d in self.tile_defs:
            try:
                lookup[int(d["id"])] = BIOME_ORDER.index(Biome(d["biome"]))
            except (KeyError, ValueError):
                logger.warning("Tile definition %r has no usable biome", d)
        return bytes(lookup.get(t, 0) for t in self.terrain)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorldAsset:
        try:
            width, height = int(data["width"]), int(data["height"])
            terrain = list(data["terrain"])
            tile_defs = list(data["tileDefs"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidInput(f"Malformed world asset: {exc}") from exc
        if len(terrain) != width * height:
            raise InvalidInput(f"World asset terrain has {len(terrain)} cells, expected {width * height}")
        decorations = data.get("decorations")
        return cls(
            width=width,
            height=height,
            terrain=terrain,
            tile_defs=tile_defs,
            seed=str(data.get("seed", "oasis")),
            decorations=list(decorations) if decorations else None,
        )

    @classmethod
    def load(cls, path: str | Path) -> WorldAsset:
        path = Path(path)
        logger.info("Loading world asset from %s", path)
        return cls.from_dict(json.loads(path.read_text(encoding="utf-8")))


# Fallback biome bands by noise height (upper bound exclusive).
_FALLBACK_BANDS: tuple[tuple[float, Biome], ...] = (
    (0.36, Biome.OCEAN),
    (0.40, Biome.BEACH),
    (0.55, Biome.GRASSLAND),
    (0.66, Biome.FOREST),
    (0.74, Biome.MOUNTAIN),
    (1.01, Biome.TUNDRA),
)


def fallback_asset(width: int, height: int, seed: int) -> WorldAsset:
    """Synthesize a plausible island world: ocean rim, beaches, grass, forest, mountains.

    A second noise field carves deserts and swamps out of the lowlands.
    """
    height_noise = ValueNoise(seed)
    moisture_noise = ValueNoise(seed ^ 0x3017)
    tile_defs = [{"id": i, "biome": b.value, "name": b.value.title()} for i, b in enumerate(BIOME_ORDER)]
    cx, cy = width / 2, height / 2
    terrain: list[int] = []
    for y in range(height):
        for x in range(width):
            h = (height_noise.fractal(x, y, octaves=4, frequency=0.02) + 1.0) / 2.0
            # Fade to ocean towards the map edge
            dx, dy = (x - cx) / cx, (y - cy) / cy
            h -= max(0.0, (dx * dx + dy * dy) ** 0.5 - 0.55) * 0.8
            biome = next(b for bound, b in _FALLBACK_BANDS if h < bound)
            if biome == Biome.GRASSLAND:
                m = (moisture_noise.fractal(x, y, octaves=3, frequency=0.03) + 1.0) / 2.0
                if m < 0.3:
                    biome = Biome.DESERT
                elif m > 0.72:
                    biome = Biome.SWAMP
            terrain.append(BIOME_ORDER.index(biome))
    return WorldAsset(width=width, height=height, terrain=terrain, tile_defs=tile_defs, seed=f"fallback-{seed}")
