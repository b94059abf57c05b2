"""Per-zone weighted resource tables and the resource oracle."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from oasis.core.enums import Zone

if TYPE_CHECKING:
    from oasis.core.grid import TileGrid


@dataclass(frozen=True, slots=True)
class ResourceTable:
    resources: tuple[str, ...]
    weights: tuple[int, ...]

    @property
    def total(self) -> int:
        return sum(self.weights)


TERRAIN_RESOURCES: dict[Zone, ResourceTable] = {
    Zone.GRASS: ResourceTable(("herbs", "berries", "flowers", "fiber"), (40, 30, 20, 10)),
    Zone.FOREST: ResourceTable(("wood", "mushrooms", "herbs", "berries", "resin"), (30, 25, 20, 15, 10)),
    Zone.ROCKY: ResourceTable(("stone", "ore", "crystals", "flint"), (35, 30, 20, 15)),
    Zone.SAND: ResourceTable(("shells", "driftwood", "salt", "sand"), (30, 25, 25, 20)),
    Zone.SWAMP: ResourceTable(("peat", "mushrooms", "herbs", "slime"), (25, 30, 25, 20)),
    Zone.RIVER: ResourceTable(("fish", "clay", "freshwater", "reeds"), (35, 25, 25, 15)),
    Zone.CAVE: ResourceTable(("crystals", "ore", "gems", "bat_guano"), (25, 30, 25, 20)),
    Zone.COAST: ResourceTable(("fish", "shells", "seaweed", "driftwood"), (30, 25, 25, 20)),
    Zone.WATER: ResourceTable((), ()),
    Zone.PATH: ResourceTable(("herbs", "fiber"), (60, 40)),
}

FOOD_MARKERS = ("berr", "fish", "mushroom", "herb", "fruit", "nut")


def is_food_resource(name: str) -> bool:
    n = name.lower()
    return any(marker in n for marker in FOOD_MARKERS)


def weighted_pick(table: ResourceTable, roll: float) -> str | None:
    """Exact cumulative pick with ``roll`` in [0, 1)."""
    if not table.resources:
        return None
    remaining = roll * table.total
    for name, weight in zip(table.resources, table.weights):
        remaining -= weight
        if remaining <= 0:
            return name
    return table.resources[0]


class ResourceOracle:
    """Answers "what can be gathered here" for any tile."""

    __slots__ = ("_grid",)

    def __init__(self, grid: TileGrid) -> None:
        self._grid = grid

    def table_at(self, x: int, y: int) -> ResourceTable | None:
        table = TERRAIN_RESOURCES.get(self._grid.get_zone(x, y))
        if table is None or not table.resources:
            return None
        return table

    def tile_resources(self, x: int, y: int) -> dict[str, Any] | None:
        table = self.table_at(x, y)
        if table is None:
            return None
        zone = self._grid.get_zone(x, y)
        return {
            "terrain": zone.value,
            "available": True,
            "source": zone.value,
            "resources": list(table.resources),
            "weights": list(table.weights),
        }

    def roll_resource(self, x: int, y: int, roll: float) -> str | None:
        table = self.table_at(x, y)
        if table is None:
            return None
        return weighted_pick(table, roll)
