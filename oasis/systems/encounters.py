"""Zone encounters: ambushes, hazards, traps, creatures and lucky finds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from oasis.core.enums import Domain, WeatherKind, Zone

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

COOLDOWN_TICKS = 600
HISTORY_LIMIT = 10
DISCOVERY_COINS = (10, 30)
DISCOVERY_XP = 15
BROADCAST_DANGER = 3
DEFEAT_HP_PER_DANGER = 5


@dataclass(frozen=True, slots=True)
class EncounterType:
    danger: int
    energy_loss: tuple[int, int]
    zones: frozenset[Zone]
    item_damage: bool = False
    reward: bool = False
    description: str = "Something happens in the {zone}."


ENCOUNTER_TYPES: dict[str, EncounterType] = {
    "ambush": EncounterType(
        3, (10, 25), frozenset({Zone.CAVE, Zone.ROCKY}), item_damage=True,
        description="An ambush springs from the shadows of the {zone}!",
    ),
    "hazard": EncounterType(
        2, (5, 15), frozenset({Zone.ROCKY, Zone.CAVE, Zone.SAND}),
        description="A hazard blocks the path in the {zone}.",
    ),
    "discovery": EncounterType(
        0, (0, 0), frozenset({Zone.FOREST, Zone.GRASS, Zone.PATH}), reward=True,
        description="A curious discovery is found in the {zone}!",
    ),
    "trap": EncounterType(
        2, (8, 20), frozenset({Zone.CAVE, Zone.ROCKY, Zone.SWAMP}), item_damage=True,
        description="A hidden trap triggers in the {zone}!",
    ),
    "creature": EncounterType(
        4, (15, 30), frozenset({Zone.GRASS, Zone.SAND, Zone.CAVE}), item_damage=True,
        description="A wild creature appears in the {zone}!",
    ),
}

ZONE_BASE_PROBABILITY: dict[Zone, float] = {
    Zone.CAVE: 0.15,
    Zone.ROCKY: 0.12,
    Zone.SAND: 0.08,
    Zone.SWAMP: 0.08,
    Zone.GRASS: 0.05,
    Zone.FOREST: 0.03,
    Zone.PATH: 0.03,
    Zone.COAST: 0.05,
}
DEFAULT_PROBABILITY = 0.03


class EncounterTable:
    FILE = "encounters.json"

    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx
        self._history: dict[str, list[dict[str, Any]]] = {}
        self._cooldowns: dict[str, int] = {}

    def load(self) -> None:
        self._history = dict(self._ctx.store.load(self.FILE, {}).get("history") or {})

    def save(self) -> None:
        self._ctx.store.save(self.FILE, {"history": self._history})

    def probability(self, agent: Agent) -> float:
        ctx = self._ctx
        p = ZONE_BASE_PROBABILITY.get(agent.zone, DEFAULT_PROBABILITY)
        if ctx.current_weather() is WeatherKind.STORM:
            p += 0.05
        if ctx.game_time().is_night:
            p += 0.03
        if ctx.world_master is not None and ctx.world_master.dangers_for(agent.zone):
            p += 0.10
        if agent.energy < 30:
            p += 0.05
        if agent.find_item("Torch") is not None:
            p -= 0.03
        p -= (agent.stats.level // 5) * 0.01
        return max(0.0, min(1.0, p))

    def check(self, agent: Agent) -> dict[str, Any] | None:
        """Roll for an encounter in the agent's zone. ``None`` when nothing happens."""
        ctx = self._ctx
        last = self._cooldowns.get(agent.id)
        if last is not None and ctx.tick - last < COOLDOWN_TICKS:
            return None
        if ctx.roll(Domain.ENCOUNTER, agent.id, 0) >= self.probability(agent):
            return None
        eligible = [name for name, t in ENCOUNTER_TYPES.items() if agent.zone in t.zones]
        if not eligible:
            return None
        kind = eligible[int(ctx.roll(Domain.ENCOUNTER, agent.id, 1) * len(eligible))]
        spec = ENCOUNTER_TYPES[kind]
        self._cooldowns[agent.id] = ctx.tick
        return {
            "type": kind,
            "danger": spec.danger,
            "description": spec.description.format(zone=agent.zone.value),
        }

    def resolve(self, agent: Agent, encounter: dict[str, Any]) -> dict[str, Any]:
        ctx = self._ctx
        spec = ENCOUNTER_TYPES.get(encounter["type"])
        if spec is None:
            return {"effects": ["Unknown encounter type"], "survived": True}

        effects: list[str] = []
        survived = True
        low, high = spec.energy_loss
        if high > 0:
            loss = low + int(ctx.roll(Domain.ENCOUNTER, agent.id, 2) * (high - low + 1))
            agent.spend_energy(loss)
            effects.append(f"Lost {loss} energy (now {round(agent.energy)})")
            if agent.energy <= 0:
                survived = False
                hp_loss = spec.danger * DEFEAT_HP_PER_DANGER
                agent.hp = max(0.0, agent.hp - hp_loss)
                effects.append(f"Lost {hp_loss} health")

        if spec.item_damage and agent.inventory:
            idx = int(ctx.roll(Domain.ENCOUNTER, agent.id, 3) * len(agent.inventory))
            item = agent.inventory[idx]
            agent.take_one(item)
            if any(i is item for i in agent.inventory):
                effects.append(f"{item.name} damaged (quantity: {item.quantity})")
            else:
                effects.append(f"Lost item: {item.name}")

        if spec.reward:
            lo, hi = DISCOVERY_COINS
            coins = lo + int(ctx.roll(Domain.ENCOUNTER, agent.id, 4) * (hi - lo + 1))
            agent.coins += coins
            ctx.award_xp(agent, DISCOVERY_XP)
            effects.extend([f"Found {coins} coins", f"Gained {DISCOVERY_XP} XP"])

        history = self._history.setdefault(agent.id, [])
        history.append({"type": encounter["type"], "effects": effects, "survived": survived, "tick": ctx.tick})
        del history[:-HISTORY_LIMIT]

        if spec.danger >= BROADCAST_DANGER:
            ctx.emit({
                "type": "encounter",
                "agentId": agent.id,
                "encounterType": encounter["type"],
                "survived": survived,
            })
        if encounter["type"] == "creature":
            ctx.add_news("encounter", f"{agent.name} encountered a wild creature!", agent)
        logger.debug("%s encounter for %s: %s", encounter["type"], agent.name, effects)
        return {"effects": effects, "survived": survived}

    def history(self, agent_id: str) -> list[dict[str, Any]]:
        return list(self._history.get(agent_id, []))
