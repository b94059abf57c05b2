"""Craft and experiment — turning inventory into something new.

Craft prefers cooking when there is raw food on hand and falls back to a
plain ``combine`` of the first two items. Experiment picks two items at
random and applies the force native to the agent's zone.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from oasis.core.enums import Domain, KnowledgeType
from oasis.core.resources import is_food_resource
from oasis.systems.experiments import EXOTIC_FORCES, force_for_zone

if TYPE_CHECKING:
    from oasis.actions.base import ActionContext
    from oasis.core.models import Item

logger = logging.getLogger(__name__)

COOK_XP = 5
CRAFT_XP = 8
EXPERIMENT_XP = 10
MAX_COOK_INGREDIENTS = 3
EXOTIC_CHANCE = 0.3


def _raw_food(items: list[Item]) -> list[Item]:
    # meals carry a quality; they are eaten, not recooked
    return [i for i in items if i.quality is None and is_food_resource(i.name)]


def _learned(ac: ActionContext, recipe: str) -> None:
    ctx, agent = ac.ctx, ac.agent
    ctx.knowledge.learn_recipe(agent.id, recipe)
    ctx.knowledge.on_observable_action(agent, KnowledgeType.RECIPE, recipe)
    ctx.knowledge.track_zone_action(agent, agent.zone, "craft")


def _announce(ac: ActionContext, kind: str, message: str, result: dict[str, Any]) -> None:
    ctx, agent = ac.ctx, ac.agent
    ctx.add_news(kind, message, agent)
    ctx.emit({
        "type": kind,
        "agentId": agent.id,
        "agentName": agent.name,
        "item": (result.get("result_item") or {}).get("name"),
        "zone": agent.zone.value,
    })


def _cook(ac: ActionContext) -> bool:
    ctx, agent = ac.ctx, ac.agent
    if ctx.cooking is None:
        return False
    ingredients = _raw_food(agent.inventory)[:MAX_COOK_INGREDIENTS]
    if not ingredients:
        return False
    first = ingredients[0].name
    result = ctx.cooking.cook(agent, ingredients)
    if not result:
        return False
    ctx.award_xp(agent, COOK_XP)
    ac.remember(f"Cooked something from {first}")
    _learned(ac, f"cook:{first}")
    _announce(ac, "craft", f"{agent.name} cooked a meal", result)
    return True


def execute_craft(ac: ActionContext) -> None:
    ctx, agent = ac.ctx, ac.agent
    if len(agent.inventory) < 2:
        return
    if _cook(ac):
        ac.spend()
        return

    first, second = agent.inventory[0], agent.inventory[1]
    if ctx.experiments is not None:
        result = ctx.experiments.combine(agent, first, second, "combine")
        if result["success"]:
            name = result["result_item"]["name"]
            ctx.award_xp(agent, CRAFT_XP)
            ac.remember(f"Crafted {name}")
            _learned(ac, result["recipe"])
            _announce(ac, "craft", f"{agent.name} crafted {name}", result)
        else:
            logger.debug("%s craft fizzled: %s", agent.name, result["message"])
    ac.on_action("craft", first.name)
    ac.spend()


def execute_experiment(ac: ActionContext) -> None:
    ctx, agent, mind = ac.ctx, ac.agent, ac.mind
    if ctx.experiments is None or len(agent.inventory) < 2:
        return
    pool = list(agent.inventory)
    first = pool.pop(min(len(pool) - 1, int(ac.roll(Domain.EXPERIMENT, 20) * len(pool))))
    second = ac.pick(Domain.EXPERIMENT, pool, salt=21)

    force = force_for_zone(agent.zone)
    if mind.has_trait("creative") and ac.roll(Domain.EXPERIMENT, 22) < EXOTIC_CHANCE:
        force = ac.pick(Domain.EXPERIMENT, list(EXOTIC_FORCES), salt=23)

    names = (first.name, second.name)
    result = ctx.experiments.combine(agent, first, second, force)
    if result["success"]:
        product = result["result_item"]["name"]
        ctx.award_xp(agent, EXPERIMENT_XP)
        ac.remember(f"Experimented with {force} on {names[0]} and {names[1]} → {product}")
        _learned(ac, result["recipe"])
        _announce(ac, "experiment", f"{agent.name} experimented with {force}: {result['message']}", result)
        if result.get("discovery"):
            _announce(ac, "discovery", f"{agent.name} made a first discovery: {product}!", result)
    else:
        ac.remember(f"Experiment with {force} on {names[0]} and {names[1]} failed")
    ac.on_action("experiment", names[0])
    ac.spend()
