"""Experiments: two items transformed by a force.

A force works only where its physical requirement holds (a heat source, a
liquid, something sharp, ...). Outcomes are deterministic in the inputs;
the only randomness is whether a failed attempt ruins the materials.
Every attempt reveals a few properties of the inputs to the experimenter.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable

from oasis.core.enums import Domain, Zone
from oasis.core.models import Item
from oasis.systems.materials import PROPERTY_KEYS, properties_of

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

DESTROY_CHANCE = 0.3
REVEAL_PER_ITEM = 2

Props = dict[str, float]


def _any(props: list[Props], key: str, minimum: float) -> bool:
    return any(p.get(key, 0) >= minimum for p in props)


def _is_liquid(p: Props) -> bool:
    return bool(p) and p.get("hardness", 0) <= 0


def _has_heat(props: list[Props], zone: Zone) -> bool:
    # rocky ground doubles as a natural forge
    return zone is Zone.ROCKY or _any(props, "temperature", 100)


@dataclass(frozen=True, slots=True)
class Force:
    label: str
    name_pattern: str
    failure: str
    zones: frozenset[Zone] | None = None
    requirement: Callable[[list[Props], Zone], bool] | None = None

    def applies(self, props: list[Props], zone: Zone) -> bool:
        if self.zones is not None and zone not in self.zones:
            return False
        return self.requirement is None or self.requirement(props, zone)


FORCES: dict[str, Force] = {
    "combine": Force("Combine", "{a}-{b} Blend", "The materials don't interact in any useful way."),
    "heat": Force(
        "Heat", "Fired {a}", "Not enough heat to transform these materials.",
        requirement=_has_heat,
    ),
    "impact": Force(
        "Impact", "Crushed {a}", "The impact produces no useful result.",
        requirement=lambda ps, z: _any(ps, "weight", 3) or _any(ps, "hardness", 6),
    ),
    "dissolve": Force(
        "Dissolve", "{a} Solution", "No suitable liquid or soluble material.",
        requirement=lambda ps, z: any(_is_liquid(p) for p in ps),
    ),
    "grow": Force(
        "Grow", "Sprouted {a}", "These materials lack the organic essence to cultivate.",
        zones=frozenset({Zone.GRASS, Zone.SWAMP}),
        requirement=lambda ps, z: _any(ps, "organic", 0.5),
    ),
    "ferment": Force(
        "Ferment", "Fermented {a}", "Fermentation requires organic material and liquid.",
        requirement=lambda ps, z: _any(ps, "organic", 0.5) and any(_is_liquid(p) for p in ps),
    ),
    "burn": Force(
        "Burn", "Charred {a}", "Nothing flammable enough to sustain combustion.",
        requirement=lambda ps, z: _any(ps, "flammability", 4) and _has_heat(ps, z),
    ),
    "flow": Force(
        "Flow", "Polished {a}", "The materials resist reshaping by water and current.",
        zones=frozenset({Zone.SAND, Zone.COAST, Zone.GRASS, Zone.CAVE, Zone.SWAMP, Zone.RIVER}),
    ),
    "decay": Force(
        "Decay", "Rotted {a}", "No organic matter to decompose.",
        requirement=lambda ps, z: _any(ps, "organic", 0.5),
    ),
    "cut": Force(
        "Cut", "Carved {a}", "Nothing sharp enough to cut with.",
        requirement=lambda ps, z: _any(ps, "hardness", 7),
    ),
}

ZONE_FORCES: dict[Zone, str] = {
    Zone.SAND: "heat",
    Zone.RIVER: "dissolve",
    Zone.COAST: "dissolve",
    Zone.SWAMP: "dissolve",
    Zone.WATER: "dissolve",
    Zone.FOREST: "grow",
    Zone.ROCKY: "impact",
    Zone.CAVE: "impact",
}

EXOTIC_FORCES: tuple[str, ...] = ("ferment", "burn", "flow", "decay", "cut")


def force_for_zone(zone: Zone) -> str:
    return ZONE_FORCES.get(zone, "combine")


def recipe_id(force: str, first: str, second: str) -> str:
    a, b = sorted((first, second))
    return f"{force}:{a}+{b}"


def _transform(force: str, props: Props) -> Props:
    p = dict(props)
    match force:
        case "heat":
            p["temperature"] = p["temperature"] + 100
            p["organic"] = p["organic"] * 0.5
            p["hardness"] = min(10, p["hardness"] + 1)
        case "impact":
            p["hardness"] = max(0, p["hardness"] - 2)
            p["weight"] = p["weight"] * 0.5
        case "dissolve":
            p["hardness"] = 0
            p["weight"] = p["weight"] * 0.5
        case "grow":
            p["organic"] = 1.0
            p["energy"] = p["energy"] + 5
        case "ferment":
            p["energy"] = p["energy"] * 1.5
            p["toxicity"] = p["toxicity"] + 1
            p["decay_rate"] = p["decay_rate"] * 0.5
        case "burn":
            p["flammability"] = 0
            p["organic"] = p["organic"] * 0.3
            p["temperature"] = p["temperature"] + 50
            p["luminosity"] = p["luminosity"] + 2
        case "flow":
            p["hardness"] = min(10, p["hardness"] + 1)
            p["weight"] = p["weight"] * 0.8
        case "decay":
            p["organic"] = 1.0
            p["decay_rate"] = p["decay_rate"] * 2
            p["energy"] = p["energy"] * 0.5
        case "cut":
            p["weight"] = p["weight"] * 0.7
    return {k: round(v, 3) for k, v in p.items()}


def _averaged(props: list[Props]) -> Props:
    return {key: sum(p.get(key, 0) for p in props) / len(props) for key in PROPERTY_KEYS}


def _rarity(props: Props) -> str:
    if props["resonance"] >= 6 or props["luminosity"] >= 5:
        return "Rare"
    if props["energy"] >= 10 or props["hardness"] >= 7:
        return "Uncommon"
    return "Common"


class ExperimentLab:
    """First discoveries and per-agent revealed properties."""

    FILE = "known-properties.json"
    DISCOVERIES_FILE = "discoveries.json"

    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx
        self._known: dict[str, dict[str, list[str]]] = {}
        self._discoveries: list[dict[str, Any]] = []

    def load(self) -> None:
        self._known = dict(self._ctx.store.load(self.FILE, {}))
        self._discoveries = list(self._ctx.store.load(self.DISCOVERIES_FILE, []))

    def save(self) -> None:
        self._ctx.store.save(self.FILE, self._known)
        self._ctx.store.save(self.DISCOVERIES_FILE, self._discoveries)

    @property
    def discoveries(self) -> list[dict[str, Any]]:
        return list(self._discoveries)

    def known_property_count(self, agent_id: str) -> int:
        return sum(len(keys) for keys in self._known.get(agent_id, {}).values())

    def known_properties(self, agent_id: str) -> dict[str, list[str]]:
        return {name: list(keys) for name, keys in self._known.get(agent_id, {}).items()}

    def _reveal(self, agent: Agent, items: list[Item]) -> dict[str, list[str]]:
        known = self._known.setdefault(agent.id, {})
        for salt, item in enumerate(items):
            props = properties_of(item)
            if not props:
                continue
            seen = known.setdefault(item.name, [])
            unknown = [k for k in PROPERTY_KEYS if k in props and k not in seen]
            for n in range(min(REVEAL_PER_ITEM, len(unknown))):
                roll = self._ctx.roll(Domain.EXPERIMENT, agent.id, 100 + salt * 10 + n)
                seen.append(unknown.pop(int(roll * len(unknown))))
        return self.known_properties(agent.id)

    def combine(self, agent: Agent, first: Item, second: Item, force: str) -> dict[str, Any]:
        """Run one experiment. Never raises for an unworkable combination; reports it instead."""
        ctx = self._ctx
        spec = FORCES.get(force)
        if spec is None:
            return {"success": False, "destroyed": False, "force": force, "message": f"Unknown force: {force}"}
        if first is second and first.quantity <= 1:
            return {"success": False, "destroyed": False, "force": force, "message": "Need two items to experiment."}

        revealed = self._reveal(agent, [first, second])
        props = [properties_of(first), properties_of(second)]

        if not spec.applies(props, agent.zone):
            destroyed = ctx.roll(Domain.EXPERIMENT, agent.id) < DESTROY_CHANCE
            if destroyed:
                agent.take_one(first)
                agent.take_one(second)
            return {
                "success": False,
                "destroyed": destroyed,
                "force": force,
                "properties_revealed": revealed,
                "message": (
                    f"The experiment failed catastrophically! Materials destroyed. {spec.failure}"
                    if destroyed else f"Nothing happened. {spec.failure}"
                ),
            }

        freed = sum(1 for i in (first, second) if i.quantity <= 1)
        if len(agent.inventory) - freed >= ctx.config.inventory_cap:
            return {"success": False, "destroyed": False, "force": force, "message": "Inventory full."}

        properties = _transform(force, _averaged(props))
        name = spec.name_pattern.format(a=first.name, b=second.name)
        result = Item(
            name=name,
            id=f"item_{uuid.uuid4().hex[:8]}",
            type="material",
            rarity=_rarity(properties),
            description=f"{first.name} and {second.name} transformed by {spec.label.lower()}.",
            stackable=False,
            zone_origin=agent.zone.value,
            crafted_by=agent.id,
            properties=properties,
        )
        agent.take_one(first)
        agent.take_one(second)
        agent.inventory.append(result)

        key = recipe_id(force, first.name, second.name)
        first_time = not any(d["key"] == key for d in self._discoveries)
        if first_time:
            self._discoveries.append({
                "key": key,
                "items": sorted((first.name, second.name)),
                "result": name,
                "discoveredBy": agent.id,
                "discovererName": agent.name,
                "discoveredAt": datetime.now(timezone.utc).isoformat(),
            })
            logger.info("%s discovered %s via %s", agent.name, name, force)

        if ctx.proficiency is not None:
            ctx.proficiency.on_action(agent, "experiment", agent.zone, first.name)
        if ctx.achievements is not None:
            ctx.achievements.record(agent, "craft", name)

        return {
            "success": True,
            "force": force,
            "recipe": key,
            "result_item": result.to_dict(),
            "discovery": {"first": True, "discoverer": agent.name} if first_time else None,
            "properties_revealed": revealed,
            "message": f"NEW DISCOVERY! {agent.name} created {name}!" if first_time else f"Created {name}.",
        }
