"""Perishable inventory: organic goods rot, faster in the heat."""

from __future__ import annotations

from typing import TYPE_CHECKING

from oasis.systems.materials import properties_of
from oasis.systems.survival import zone_temperature

if TYPE_CHECKING:
    from oasis.core.models import Agent, Item
    from oasis.engine.context import SimContext

VALUABLE_RARITIES = frozenset({"Rare", "Epic", "Legendary"})
HOT_ABOVE = 30
COLD_BELOW = 10


def _decay_amount(item: Item, game_hours: float, temperature: float) -> float:
    props = properties_of(item)
    rate = props.get("decay_rate", 0)
    if rate <= 0:
        return 0.0
    decay = rate * 10 * game_hours
    if props.get("organic", 0) >= 0.5:
        if temperature > HOT_ABOVE:
            decay *= 1.5
        elif temperature < COLD_BELOW:
            decay *= 0.5
    return decay


def decay_inventory(ctx: SimContext, agent: Agent) -> list[Item]:
    """Age every perishable item by one tick. Returns the items that rotted away."""
    if not agent.inventory:
        return []
    game_hours = ctx.config.game_minutes_per_tick / 60
    temperature = zone_temperature(ctx, agent.zone)
    destroyed: list[Item] = []
    for item in agent.inventory:
        decay = _decay_amount(item, game_hours, temperature)
        if decay <= 0:
            continue
        if item.condition is None:
            item.condition = 100.0
        item.condition = round(max(0.0, item.condition - decay), 4)
        if item.condition <= 0:
            destroyed.append(item)

    if destroyed:
        agent.inventory = [i for i in agent.inventory if all(i is not d for d in destroyed)]
    for item in destroyed:
        if item.rarity in VALUABLE_RARITIES:
            ctx.add_news("decay", f"{agent.name}'s {item.rarity} {item.name} decayed to nothing!", agent)
            ctx.emit({
                "type": "itemDecayed",
                "agentId": agent.id,
                "agentName": agent.name,
                "item": item.name,
                "rarity": item.rarity,
            })
    return destroyed
