"""Core data models: Item, Relationship, AgentStats, Agent."""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any

from oasis.core.enums import Zone

# Optional item attributes: (attribute, wire key). Absent values are not serialized.
_ITEM_OPTIONAL: tuple[tuple[str, str], ...] = (
    ("id", "id"),
    ("type", "type"),
    ("rarity", "rarity"),
    ("description", "description"),
    ("properties", "properties"),
    ("stackable", "stackable"),
    ("condition", "condition"),
    ("durability", "durability"),
    ("quality", "quality"),
    ("scroll_data", "scroll_data"),
    ("zone_origin", "zone_origin"),
    ("crafted_by", "craftedBy"),
)


@dataclass(slots=True)
class Item:
    """One inventory entry. Stackable items merge by name."""
    name: str
    quantity: int = 1
    id: str | None = None
    type: str | None = None
    rarity: str | None = None
    description: str | None = None
    properties: dict[str, Any] | None = None
    stackable: bool | None = None
    condition: float | None = None
    durability: float | None = None
    quality: str | None = None
    scroll_data: dict[str, Any] | None = None
    zone_origin: str | None = None
    crafted_by: str | None = None

    @property
    def is_stackable(self) -> bool:
        return self.stackable is not False

    @property
    def is_scroll(self) -> bool:
        return self.scroll_data is not None and self.name == "Inscribed Scroll"

    def split_off(self, quantity: int = 1) -> Item:
        """Detached copy holding *quantity* units. Identified items get a fresh id."""
        clone = copy.deepcopy(self)
        clone.quantity = quantity
        if clone.id is not None:
            clone.id = f"item_{uuid.uuid4().hex[:8]}"
        return clone

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "quantity": self.quantity}
        for attr, key in _ITEM_OPTIONAL:
            value = getattr(self, attr)
            if value is not None:
                out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        item = cls(name=data["name"], quantity=int(data.get("quantity") or 1))
        for attr, key in _ITEM_OPTIONAL:
            if key in data:
                setattr(item, attr, data[key])
        return item


@dataclass(slots=True)
class Relationship:
    score: int = 0
    interactions: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"score": self.score, "interactions": self.interactions}


@dataclass(slots=True)
class AgentStats:
    xp: int = 0
    level: int = 1
    title: str = "Hatchling"

    def to_dict(self) -> dict[str, Any]:
        return {"xp": self.xp, "level": self.level, "title": self.title}


def _parse_zone(value: Any) -> Zone:
    try:
        return Zone(value)
    except ValueError:
        return Zone.GRASS


@dataclass(slots=True)
class Agent:
    """A living (or dead) wanderer on the tile world.

    Invariants maintained by the grid and the dispatcher:
      - (tile_x, tile_y) is in bounds and walkable
      - zone == grid.get_zone(tile_x, tile_y)
      - len(inventory) <= inventory cap
    """
    id: str
    name: str
    tile_x: int
    tile_y: int
    zone: Zone = Zone.GRASS
    hp: float = 100.0
    energy: float = 100.0
    hunger: float = 0.0
    temperature: float = 20.0
    inventory: list[Item] = field(default_factory=list)
    stats: AgentStats = field(default_factory=AgentStats)
    relationships: dict[str, Relationship] = field(default_factory=dict)
    proficiencies: dict[str, Any] = field(default_factory=dict)
    titles: set[str] = field(default_factory=set)
    alive: bool = True
    ticks_born: int = 0
    coins: int = 0

    # -- inventory helpers --

    def find_item(self, name: str) -> Item | None:
        for item in self.inventory:
            if item.name == name:
                return item
        return None

    def find_item_by_id(self, item_id: str) -> Item | None:
        for item in self.inventory:
            if item.id == item_id:
                return item
        return None

    def stack_item(self, name: str, cap: int, quantity: int = 1, template: Item | None = None) -> bool:
        """Add to an existing stack or append a new entry. False when full.

        A new entry copies *template* (condition, properties) when one is given.
        """
        existing = self.find_item(name)
        if existing is not None and existing.is_stackable:
            existing.quantity += quantity
            return True
        if len(self.inventory) >= cap:
            return False
        if template is not None:
            self.inventory.append(template.split_off(quantity))
        else:
            self.inventory.append(Item(name=name, quantity=quantity))
        return True

    def take_one(self, item: Item) -> None:
        """Remove a single unit of ``item`` (by identity)."""
        if item.quantity > 1:
            item.quantity -= 1
            return
        self.inventory = [i for i in self.inventory if i is not item]

    def spend_energy(self, amount: float) -> None:
        self.energy = max(0.0, min(100.0, self.energy - amount))

    # -- relationships --

    def bump_relationship(self, other_id: str, delta: int, cap: int) -> Relationship:
        rel = self.relationships.setdefault(other_id, Relationship())
        rel.score = max(-cap, min(cap, rel.score + delta))
        rel.interactions += 1
        return rel

    # -- serialization --

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tileX": self.tile_x,
            "tileY": self.tile_y,
            "zone": self.zone.value,
            "hp": self.hp,
            "energy": self.energy,
            "hunger": self.hunger,
            "temperature": self.temperature,
            "inventory": [i.to_dict() for i in self.inventory],
            "stats": self.stats.to_dict(),
            "relationships": {k: r.to_dict() for k, r in self.relationships.items()},
            "proficiencies": dict(self.proficiencies),
            "titles": sorted(self.titles),
            "alive": self.alive,
            "ticksBorn": self.ticks_born,
            "coins": self.coins,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Agent:
        stats = data.get("stats") or {}
        rels = data.get("relationships") or {}
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            tile_x=int(data.get("tileX", -1)),
            tile_y=int(data.get("tileY", -1)),
            zone=_parse_zone(data.get("zone")),
            hp=data.get("hp", 100.0),
            energy=data.get("energy", 100.0),
            hunger=data.get("hunger", 0.0),
            temperature=data.get("temperature", 20.0),
            inventory=[Item.from_dict(i) for i in data.get("inventory") or []],
            stats=AgentStats(
                xp=int(stats.get("xp", 0)),
                level=int(stats.get("level", 1)),
                title=stats.get("title", "Hatchling"),
            ),
            relationships={
                k: Relationship(score=int(v.get("score", 0)), interactions=int(v.get("interactions", 0)))
                for k, v in rels.items()
            },
            proficiencies=dict(data.get("proficiencies") or {}),
            titles=set(data.get("titles") or []),
            alive=bool(data.get("alive", True)),
            ticks_born=int(data.get("ticksBorn", 0)),
            coins=int(data.get("coins", 0)),
        )
