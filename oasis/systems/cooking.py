"""Cooking: one to three food items become a single quality-tiered meal."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from oasis.core.enums import Domain
from oasis.core.models import Item
from oasis.systems.materials import PROPERTY_KEYS, properties_of

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

MAX_INGREDIENTS = 3
COMPLEX_RECIPE_SIZE = 3
BURN_CHANCE = 0.3
BURN_LEVEL_CEILING = 5
BURNT_ENERGY_MULT = 0.5
DEFAULT_FOOD_ENERGY = 5


@dataclass(frozen=True, slots=True)
class QualityTier:
    label: str
    min_level: int
    energy_mult: float
    spoil_rate: float


QUALITY_TIERS: dict[str, QualityTier] = {
    "cooked": QualityTier("Cooked", 0, 1.5, 0.5),
    "seasoned": QualityTier("Seasoned", 10, 2.0, 0.4),
    "gourmet": QualityTier("Gourmet", 20, 2.5, 0.33),
}


def quality_for_level(level: int) -> str:
    if level >= QUALITY_TIERS["gourmet"].min_level:
        return "gourmet"
    if level >= QUALITY_TIERS["seasoned"].min_level:
        return "seasoned"
    return "cooked"


def meal_name(names: list[str], label: str, burnt: bool) -> str:
    if burnt:
        return f"Burnt {names[0]}"
    if len(names) == 1:
        return f"{label} {names[0]}"
    if len(names) == 2:
        return f"{label} {names[0]} with {names[1]}"
    return f"{label} {names[0]} with {names[1]} & {names[2]}"


def _cooked_properties(ingredients: list[Item], energy: int, spoil_rate: float) -> dict[str, float]:
    out = {}
    for key in PROPERTY_KEYS:
        values = [properties_of(i).get(key, 0) for i in ingredients]
        out[key] = round(sum(values) / len(values), 2)
    out["energy"] = energy
    out["decay_rate"] = round(spoil_rate * 0.01, 4)
    out["organic"] = max(out["organic"], 0.8)
    out["toxicity"] = round(out["toxicity"] * 0.7, 2)
    return out


class Kitchen:
    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx

    def _level(self, agent: Agent) -> int:
        if self._ctx.proficiency is None:
            return 0
        return self._ctx.proficiency.level(agent, "cooking")

    def cook(self, agent: Agent, ingredients: list[Item]) -> dict[str, Any] | None:
        """Consume one unit of each ingredient and add the meal. ``None`` when nothing was cooked."""
        ctx = self._ctx
        ingredients = ingredients[:MAX_INGREDIENTS]
        if not ingredients:
            return None
        freed = sum(1 for i in ingredients if i.quantity <= 1)
        if len(agent.inventory) - freed >= ctx.config.inventory_cap:
            return None

        level = self._level(agent)
        burnt = (
            len(ingredients) >= COMPLEX_RECIPE_SIZE
            and level < BURN_LEVEL_CEILING
            and ctx.roll(Domain.COOKING, agent.id) < BURN_CHANCE
        )
        tier_key = quality_for_level(level)
        tier = QUALITY_TIERS[tier_key]
        base = sum(properties_of(i).get("energy", 0) or DEFAULT_FOOD_ENERGY for i in ingredients)
        energy = round(base * (BURNT_ENERGY_MULT if burnt else tier.energy_mult))
        spoil = 1.0 if burnt else tier.spoil_rate
        names = [i.name for i in ingredients]

        meal = Item(
            name=meal_name(names, tier.label, burnt),
            id=f"item_{uuid.uuid4().hex[:8]}",
            type="consumable",
            rarity="Common" if burnt else ("Rare" if tier_key == "gourmet" else "Uncommon"),
            description="Charred beyond recognition. Still technically edible."
            if burnt else f"{tier.label} meal prepared with care.",
            stackable=False,
            quality="burnt" if burnt else tier_key,
            zone_origin=agent.zone.value,
            crafted_by=agent.id,
            properties=_cooked_properties(ingredients, energy, spoil),
        )
        for item in ingredients:
            agent.take_one(item)
        agent.inventory.append(meal)

        if ctx.proficiency is not None:
            ctx.proficiency.on_action(agent, "cook", agent.zone)
        ctx.emit({
            "type": "cookingBurnt" if burnt else "cookingSuccess",
            "agentId": agent.id,
            "agentName": agent.name,
            "item": meal.name,
            "quality": meal.quality,
            "zone": agent.zone.value,
        })
        logger.debug("%s cooked %s", agent.name, meal.name)
        return {
            "ok": True,
            "result_item": meal.to_dict(),
            "quality": meal.quality,
            "energy_value": energy,
            "burnt": burnt,
            "ingredients": names,
        }
