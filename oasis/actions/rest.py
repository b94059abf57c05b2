"""Rest and eat — the two actions that give energy back."""

from __future__ import annotations

from typing import TYPE_CHECKING

from oasis.core.resources import is_food_resource

if TYPE_CHECKING:
    from oasis.actions.base import ActionContext

REST_ENERGY = 5
REST_HUNGER = 1
EAT_HUNGER = 30
EAT_ENERGY = 10

# Rest intents are kept until energy reaches this level.
REST_UNTIL = 80


def execute_rest(ac: ActionContext) -> None:
    agent = ac.agent
    agent.energy = min(100.0, agent.energy + REST_ENERGY)
    agent.hunger = max(0.0, agent.hunger - REST_HUNGER)


def execute_eat(ac: ActionContext) -> None:
    agent = ac.agent
    food = next((i for i in agent.inventory if is_food_resource(i.name)), None)
    if food is None:
        return
    agent.take_one(food)
    agent.hunger = max(0.0, agent.hunger - EAT_HUNGER)
    agent.energy = min(100.0, agent.energy + EAT_ENERGY)
    ac.remember(f"Ate some {food.name}")
