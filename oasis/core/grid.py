"""Immutable tile world: biome codes plus derived terrain layers.

Zones are classified once at construction; every query after that is a
pure function of (x, y).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from oasis.core.enums import Biome, Direction, Zone
from oasis.core.terrain import (
    BIOME_ORDER, OCEAN, TerrainLayers, compute_distance_from_land, compute_layers,
)

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.core.world_asset import WorldAsset

BIOME_TO_ZONE: dict[Biome, Zone] = {
    Biome.OCEAN: Zone.WATER,
    Biome.BEACH: Zone.SAND,
    Biome.GRASSLAND: Zone.GRASS,
    Biome.FOREST: Zone.FOREST,
    Biome.DESERT: Zone.SAND,
    Biome.MOUNTAIN: Zone.ROCKY,
    Biome.TUNDRA: Zone.ROCKY,
    Biome.SWAMP: Zone.SWAMP,
}

ZONE_NAMES: dict[Zone, str] = {
    Zone.GRASS: "Grasslands",
    Zone.FOREST: "Forest",
    Zone.ROCKY: "Rocky Ground",
    Zone.SAND: "Sandy Shore",
    Zone.WATER: "Deep Water",
    Zone.SWAMP: "Swamp",
    Zone.RIVER: "River",
    Zone.CAVE: "Cave",
    Zone.COAST: "Coastline",
    Zone.PATH: "Path",
}

ZONE_DESCRIPTIONS: dict[Zone, str] = {
    Zone.GRASS: "Open grasslands with wildflowers swaying in the breeze",
    Zone.FOREST: "Dense trees and undergrowth alive with sounds",
    Zone.ROCKY: "Rough, rocky terrain with scattered boulders",
    Zone.SAND: "Warm sand stretching into the distance",
    Zone.WATER: "Deep waters, impassable",
    Zone.SWAMP: "Murky wetlands thick with fog",
    Zone.RIVER: "A flowing river of fresh water",
    Zone.CAVE: "A dark cavern entrance in the rock",
    Zone.COAST: "Where land meets the sea",
    Zone.PATH: "A well-worn dirt path",
}

TERRAIN_TRAVEL_COST: dict[Zone, float] = {
    Zone.PATH: 0.8,
    Zone.GRASS: 1.0,
    Zone.FOREST: 1.3,
    Zone.ROCKY: 1.5,
    Zone.SAND: 1.2,
    Zone.COAST: 1.1,
    Zone.CAVE: 1.4,
    Zone.SWAMP: 1.6,
    Zone.RIVER: 1.4,
    Zone.WATER: math.inf,
}

IMPASSABLE_ZONES = frozenset({Zone.WATER})

SLOPE_THRESHOLD = 0.05

EDGE_OF_WORLD = "Edge of the world — cannot go further"

# Single-character biome codes for compact test/fixture maps.
BIOME_CODES: dict[str, Biome] = {
    "o": Biome.OCEAN,
    "b": Biome.BEACH,
    "g": Biome.GRASSLAND,
    "f": Biome.FOREST,
    "d": Biome.DESERT,
    "m": Biome.MOUNTAIN,
    "t": Biome.TUNDRA,
    "s": Biome.SWAMP,
}


def js_round(value: float) -> int:
    """Round half toward +infinity."""
    return math.floor(value + 0.5)


def chebyshev(ax: int, ay: int, bx: int, by: int) -> int:
    return max(abs(ax - bx), abs(ay - by))


@dataclass(frozen=True, slots=True)
class Tile:
    x: int
    y: int
    terrain: Zone
    biome: Biome
    elevation: float
    walkable: bool
    name: str
    description: str
    is_river: bool
    is_lake: bool
    river: int
    deco_id: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "terrain": self.terrain.value,
            "biome": self.biome.value,
            "elevation": round(self.elevation, 4),
            "walkable": self.walkable,
            "name": self.name,
            "description": self.description,
            "isRiver": self.is_river,
            "isLake": self.is_lake,
            "river": self.river,
            "decoId": self.deco_id,
        }


@dataclass(slots=True)
class MoveResult:
    ok: bool
    error: str | None = None
    tile_x: int = 0
    tile_y: int = 0
    zone: Zone | None = None
    move_cost: int = 0
    elevation_cost: int = 0

    def to_dict(self) -> dict[str, Any]:
        if not self.ok:
            return {"error": self.error}
        return {
            "ok": True,
            "tileX": self.tile_x,
            "tileY": self.tile_y,
            "zone": self.zone.value if self.zone else None,
            "moveCost": self.move_cost,
            "elevationCost": self.elevation_cost,
        }


class TileGrid:
    """Fixed-size grid with zone classification, walkability and movement cost."""

    __slots__ = (
        "width", "height", "seed",
        "_biomes", "_elevation", "_rivers", "_lakes", "_dist",
        "_decorations", "_zones", "spawn_point",
    )

    def __init__(
        self,
        width: int,
        height: int,
        biomes: bytes,
        layers: TerrainLayers,
        decorations: list[int] | None = None,
        seed: int = 0,
    ) -> None:
        self.width = width
        self.height = height
        self.seed = seed
        self._biomes = bytes(biomes)
        self._elevation = layers.elevation
        self._rivers = layers.rivers
        self._lakes = layers.lakes
        self._dist = layers.dist_from_land
        self._decorations = decorations
        self._zones = [self._classify(i) for i in range(width * height)]
        sx, sy = layers.spawn
        self.spawn_point = (sx, sy) if self.is_walkable(sx, sy) else self._nearest_walkable(sx, sy)

    # -- construction helpers --

    @classmethod
    def from_asset(cls, asset: WorldAsset) -> TileGrid:
        biomes = asset.biome_codes()
        layers = compute_layers(asset.width, asset.height, biomes, asset.numeric_seed)
        return cls(asset.width, asset.height, biomes, layers, asset.decorations, asset.numeric_seed)

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[str],
        elevation: float = 0.5,
        rivers: dict[tuple[int, int], int] | None = None,
        lakes: Iterable[tuple[int, int]] = (),
        spawn: tuple[int, int] | None = None,
    ) -> TileGrid:
        """Build a flat grid from biome code rows (see BIOME_CODES). No derived rivers or lakes."""
        rows = list(rows)
        height, width = len(rows), len(rows[0])
        biomes = bytes(BIOME_ORDER.index(BIOME_CODES[c]) for row in rows for c in row)
        river_mask = bytearray(width * height)
        for (x, y), w in (rivers or {}).items():
            river_mask[y * width + x] = w
        lake_mask = bytearray(width * height)
        for x, y in lakes:
            lake_mask[y * width + x] = 1
        layers = TerrainLayers(
            elevation=[elevation] * (width * height),
            rivers=river_mask,
            lakes=lake_mask,
            dist_from_land=compute_distance_from_land(width, height, biomes),
            spawn=spawn or (width // 2, height // 2),
        )
        return cls(width, height, biomes, layers)

    @classmethod
    def uniform(cls, width: int, height: int, code: str = "g") -> TileGrid:
        return cls.from_rows([code * width] * height)

    # -- classification --

    def _idx(self, x: int, y: int) -> int:
        return y * self.width + x

    def _classify(self, idx: int) -> Zone:
        if self._lakes[idx]:
            return Zone.RIVER
        biome_code = self._biomes[idx]
        if self._rivers[idx] > 0 and biome_code != OCEAN:
            return Zone.RIVER
        if biome_code == OCEAN:
            return Zone.WATER
        x, y = idx % self.width, idx // self.width
        for dx, dy in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny) and self._biomes[self._idx(nx, ny)] == OCEAN:
                return Zone.COAST
        biome = BIOME_ORDER[biome_code]
        if biome == Biome.MOUNTAIN and 0.6 < self._elevation[idx] < 0.72:
            return Zone.CAVE
        return BIOME_TO_ZONE.get(biome, Zone.GRASS)

    def _nearest_walkable(self, cx: int, cy: int) -> tuple[int, int]:
        for r in range(max(self.width, self.height)):
            for dy in range(-r, r + 1):
                for dx in range(-r, r + 1):
                    if max(abs(dx), abs(dy)) != r:
                        continue
                    if self.is_walkable(cx + dx, cy + dy):
                        return cx + dx, cy + dy
        return cx, cy

    # -- queries --

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_zone(self, x: int, y: int) -> Zone:
        if not self.in_bounds(x, y):
            return Zone.WATER
        return self._zones[self._idx(x, y)]

    def biome_at(self, x: int, y: int) -> Biome:
        return BIOME_ORDER[self._biomes[self._idx(x, y)]]

    def elevation_at(self, x: int, y: int) -> float:
        return self._elevation[self._idx(x, y)]

    def distance_from_land(self, x: int, y: int) -> int:
        return self._dist[self._idx(x, y)]

    def is_walkable(self, x: int, y: int) -> bool:
        if not self.in_bounds(x, y):
            return False
        idx = self._idx(x, y)
        return self._zones[idx] not in IMPASSABLE_ZONES and self._biomes[idx] != OCEAN

    def get_tile(self, x: int, y: int) -> Tile | None:
        if not self.in_bounds(x, y):
            return None
        idx = self._idx(x, y)
        zone = self._zones[idx]
        return Tile(
            x=x,
            y=y,
            terrain=zone,
            biome=BIOME_ORDER[self._biomes[idx]],
            elevation=self._elevation[idx],
            walkable=self.is_walkable(x, y),
            name=ZONE_NAMES[zone],
            description=ZONE_DESCRIPTIONS[zone],
            is_river=self._rivers[idx] > 0,
            is_lake=bool(self._lakes[idx]),
            river=self._rivers[idx],
            deco_id=self._decorations[idx] if self._decorations else None,
        )

    @staticmethod
    def terrain_cost(zone: Zone) -> float:
        return TERRAIN_TRAVEL_COST.get(zone, 1.0)

    def slope(self, fx: int, fy: int, tx: int, ty: int) -> int:
        delta = self.elevation_at(tx, ty) - self.elevation_at(fx, fy)
        if delta > SLOPE_THRESHOLD:
            return 1
        if delta < -SLOPE_THRESHOLD:
            return -1
        return 0

    def step_cost(self, fx: int, fy: int, tx: int, ty: int) -> int:
        """Energy for one step: round(2 * terrainCost(dest) + slope)."""
        return js_round(2 * self.terrain_cost(self.get_zone(tx, ty)) + self.slope(fx, fy, tx, ty))

    # -- agent positioning --

    def walk_agent(self, agent: Agent, direction: str) -> MoveResult:
        """Move one tile in a compass direction. Never raises."""
        try:
            dx, dy = Direction(direction).delta
        except ValueError:
            return MoveResult(ok=False, error="Invalid direction")

        tx, ty = agent.tile_x + dx, agent.tile_y + dy
        if not self.in_bounds(tx, ty):
            return MoveResult(ok=False, error=EDGE_OF_WORLD)
        if not self.is_walkable(tx, ty):
            return MoveResult(ok=False, error=f"Cannot walk there — {ZONE_NAMES[self.get_zone(tx, ty)]}")

        elevation_cost = self.slope(agent.tile_x, agent.tile_y, tx, ty)
        move_cost = self.step_cost(agent.tile_x, agent.tile_y, tx, ty)
        agent.energy = max(0.0, agent.energy - move_cost)
        agent.tile_x, agent.tile_y = tx, ty
        agent.zone = self.get_zone(tx, ty)
        return MoveResult(
            ok=True, tile_x=tx, tile_y=ty, zone=agent.zone,
            move_cost=move_cost, elevation_cost=elevation_cost,
        )

    def teleport_agent(self, agent: Agent, x: int, y: int) -> MoveResult:
        if not self.in_bounds(x, y):
            return MoveResult(ok=False, error="Invalid coordinates")
        if not self.is_walkable(x, y):
            return MoveResult(ok=False, error="Tile is not walkable")
        agent.tile_x, agent.tile_y = x, y
        agent.zone = self.get_zone(x, y)
        return MoveResult(ok=True, tile_x=x, tile_y=y, zone=agent.zone)

    def migrate_agent_position(self, agent: Agent) -> None:
        """Relocate agents with missing or invalid positions to the spawn point; re-derive zone."""
        if not self.is_walkable(agent.tile_x, agent.tile_y):
            agent.tile_x, agent.tile_y = self.spawn_point
        agent.zone = self.get_zone(agent.tile_x, agent.tile_y)

    # -- area scans --

    def get_tiles_in_radius(self, cx: int, cy: int, radius: int) -> list[Tile]:
        """Tiles inside the Euclidean disc of ``radius`` around (cx, cy)."""
        tiles = []
        r2 = radius * radius
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                if dx * dx + dy * dy > r2:
                    continue
                tile = self.get_tile(cx + dx, cy + dy)
                if tile is not None:
                    tiles.append(tile)
        return tiles

    @staticmethod
    def get_agents_nearby(agents: Iterable[Agent], x: int, y: int, radius: int) -> list[Agent]:
        """Live agents within Chebyshev ``radius`` of (x, y)."""
        return [a for a in agents if a.alive and chebyshev(a.tile_x, a.tile_y, x, y) <= radius]

    def world_info(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "spawnPoint": {"x": self.spawn_point[0], "y": self.spawn_point[1]},
            "seed": self.seed,
            "biomes": [b.value for b in BIOME_ORDER],
            "zones": {z.value: ZONE_NAMES[z] for z in Zone},
        }
